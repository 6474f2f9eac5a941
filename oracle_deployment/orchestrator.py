import warnings
from typing import Dict, List, NamedTuple, Optional

from oracle_deployment.artifacts import DeploymentArtifacts
from oracle_deployment.config import Configuration
from oracle_deployment.constants import (
    ADDRESSES_PROVIDER_CONTRACT,
    FALLBACK_ORACLE_CONTRACT,
    GET_REFERENCE_PRICE,
    LENDING_RATE_ORACLE_CONTRACT,
    MOCK_AGGREGATOR_CONTRACT,
    MOCK_TOKEN_CONTRACT,
    MOCK_TOKEN_DECIMALS,
    PROXY_PRICE_PROVIDER_CONTRACT,
    PROXY_SOURCE,
    SET_REFERENCE_PRICE,
    Role,
    asset_role,
)
from oracle_deployment.exceptions import ConfigMalformed, PairingDropped
from oracle_deployment.initializer import set_initial_prices, set_initial_rates
from oracle_deployment.ledger import Ledger
from oracle_deployment.pairing import PairingResult, pair_tokens_and_feeds
from oracle_deployment.sequencer import DeploymentRecord, DeploymentSpec, Sequencer
from oracle_deployment.wiring import AddressRegistry, RegistryLease, set_role

FALLBACK_ORACLE_ROLE = "FallbackPriceOracle"
PROXY_PRICE_PROVIDER_ROLE = PROXY_PRICE_PROVIDER_CONTRACT
LENDING_RATE_ORACLE_ROLE = LENDING_RATE_ORACLE_CONTRACT


class DeploymentReport(NamedTuple):
    records: List[DeploymentRecord]
    token_map: Dict[str, str]
    feed_map: Dict[str, str]
    pairing: PairingResult
    fallback_oracle: str
    proxy_price_provider: str
    lending_rate_oracle: str


class OracleDeployer:
    """
    Deploys and wires the oracle subsystem of a lending pool:
    fallback price oracle, mock price feeds, proxy price provider and lending rate oracle.
    """

    def __init__(
        self,
        config: Configuration,
        ledger: Ledger,
        artifacts: Optional[DeploymentArtifacts] = None,
        autosign: bool = True,
        deadline: Optional[float] = None,
    ):
        self.config = config
        self.ledger = ledger
        self.artifacts = artifacts
        self.sequencer = Sequencer(
            ledger=ledger,
            artifacts=artifacts,
            confirmations=config.confirmations,
            timeout=config.confirmation_timeout,
            autosign=autosign,
            deadline=deadline,
        )

    def run(self) -> DeploymentReport:
        # everything that can be checked without a transaction is checked first
        registry = AddressRegistry(self._registry_address())
        known_tokens = self._known_tokens()

        with registry.claim(self.sequencer) as lease:
            token_map = self.deploy_tokens(known_tokens)

            fallback_oracle = self.sequencer.deploy_and_confirm(
                DeploymentSpec(role=FALLBACK_ORACLE_ROLE, contract_name=FALLBACK_ORACLE_CONTRACT)
            )
            self.set_reference_price(fallback_oracle)
            set_initial_prices(
                self.sequencer,
                fallback_oracle.ref,
                self.config.price_pairs(),
                token_map,
                excluded_symbol=self.config.reference_symbol,
            )

            feed_map = self.deploy_aggregators()
            pairing = self.pair(token_map, feed_map)

            proxy_provider = self.sequencer.deploy_and_confirm(
                DeploymentSpec(
                    role=PROXY_PRICE_PROVIDER_ROLE,
                    contract_name=PROXY_PRICE_PROVIDER_CONTRACT,
                    args=(pairing.tokens, pairing.feeds, fallback_oracle.address),
                )
            )
            price_oracle = (
                proxy_provider
                if self.config.price_oracle_source == PROXY_SOURCE
                else fallback_oracle
            )
            set_role(lease, Role.PRICE_ORACLE, price_oracle.address)

            rate_oracle = self.deploy_rate_oracle(lease, token_map)

        return DeploymentReport(
            records=list(self.sequencer.records),
            token_map=token_map,
            feed_map=feed_map,
            pairing=pairing,
            fallback_oracle=fallback_oracle.address,
            proxy_price_provider=proxy_provider.address,
            lending_rate_oracle=rate_oracle.address,
        )

    def _registry_address(self) -> str:
        if self.config.registry_address:
            return self.config.registry_address
        entry = self.artifacts.get(ADDRESSES_PROVIDER_CONTRACT) if self.artifacts else None
        if entry is None:
            raise ConfigMalformed(
                f"No {ADDRESSES_PROVIDER_CONTRACT} address in profile '{self.config.name}' "
                "and none found in deployment artifacts."
            )
        return entry.address

    def _known_tokens(self) -> Dict[str, Optional[str]]:
        """Token addresses known before any transaction; None marks a mock token to deploy."""
        tokens, missing = dict(), list()
        for symbol in self.config.assets:
            role = asset_role(MOCK_TOKEN_CONTRACT, symbol)
            if symbol in self.config.tokens:
                tokens[symbol] = self.config.tokens[symbol]
            elif self.artifacts is not None and role in self.artifacts:
                tokens[symbol] = self.artifacts.get(role).address
            elif self.config.mock_tokens:
                tokens[symbol] = None
            else:
                missing.append(symbol)
        if missing:
            raise ConfigMalformed(
                f"No token address for {', '.join(missing)} and mock tokens are disabled."
            )
        return tokens

    def deploy_tokens(self, known_tokens: Dict[str, Optional[str]]) -> Dict[str, str]:
        """Returns the token address map, deploying mock tokens where needed."""
        token_map = dict()
        for symbol, address in known_tokens.items():
            if address is None:
                record = self.sequencer.deploy_and_confirm(
                    DeploymentSpec(
                        role=asset_role(MOCK_TOKEN_CONTRACT, symbol),
                        contract_name=MOCK_TOKEN_CONTRACT,
                        args=(symbol, symbol, MOCK_TOKEN_DECIMALS),
                    )
                )
                address = record.address
            token_map[symbol] = address
        token_map[self.config.reference_symbol] = self.config.reference_address
        return token_map

    def set_reference_price(self, fallback_oracle: DeploymentRecord) -> None:
        price = self.config.reference_price
        if self.sequencer.read(fallback_oracle.ref, GET_REFERENCE_PRICE) == price:
            print(f"(i) Reference price already set to {price}.")
            return
        self.sequencer.call_and_confirm(fallback_oracle.ref, SET_REFERENCE_PRICE, price)

    def deploy_aggregators(self) -> Dict[str, str]:
        feed_map = dict()
        for symbol in sorted(self.config.aggregator_prices):
            record = self.sequencer.deploy_and_confirm(
                DeploymentSpec(
                    role=asset_role(MOCK_AGGREGATOR_CONTRACT, symbol),
                    contract_name=MOCK_AGGREGATOR_CONTRACT,
                    args=(self.config.aggregator_prices[symbol],),
                )
            )
            feed_map[symbol] = record.address
        return feed_map

    def pair(self, token_map: Dict[str, str], feed_map: Dict[str, str]) -> PairingResult:
        pairing = pair_tokens_and_feeds(
            token_map, feed_map, excluded_symbol=self.config.reference_symbol
        )
        print(f"(i) Paired {len(pairing.symbols)} token(s) with price feeds.")
        if pairing.dropped:
            print(f"(!) No token/feed pair for: {', '.join(pairing.dropped)}")
            warnings.warn(PairingDropped(pairing.dropped))
        return pairing

    def deploy_rate_oracle(
        self, lease: RegistryLease, token_map: Dict[str, str]
    ) -> DeploymentRecord:
        rate_oracle = self.sequencer.deploy_and_confirm(
            DeploymentSpec(
                role=LENDING_RATE_ORACLE_ROLE, contract_name=LENDING_RATE_ORACLE_CONTRACT
            )
        )
        set_initial_rates(
            self.sequencer,
            rate_oracle.ref,
            self.config.rate_pairs(),
            token_map,
            excluded_symbol=self.config.reference_symbol,
        )
        set_role(lease, Role.LENDING_RATE_ORACLE, rate_oracle.address)
        return rate_oracle
