from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Set, Tuple

import yaml

from oracle_deployment.constants import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_CONFIRMATIONS,
    FALLBACK_SOURCE,
    PRICE_ORACLE_SOURCES,
    PROFILE_SUFFIX,
    PROFILES_DIR,
)
from oracle_deployment.exceptions import ConfigMalformed, ConfigNotFound
from oracle_deployment.utils import _load_yaml, checksum, get_artifact_filepath

AssetSymbol = str

KNOWN_SECTIONS = {
    "deployment",
    "artifacts",
    "protocol",
    "registry",
    "assets",
    "mock_tokens",
    "tokens",
    "prices",
    "aggregator_prices",
    "lending_rates",
}

BORROW_RATE_KEY = "borrow_rate"


class PricePair(NamedTuple):
    symbol: AssetSymbol
    price: int


class RatePair(NamedTuple):
    symbol: AssetSymbol
    rate: int


class Configuration(NamedTuple):
    """A validated deployment profile."""

    name: str
    chain_id: int
    artifacts_filepath: Path
    reference_symbol: AssetSymbol
    reference_address: str
    reference_price: int
    confirmations: int
    confirmation_timeout: int
    price_oracle_source: str
    registry_address: Optional[str]
    assets: Tuple[AssetSymbol, ...]
    mock_tokens: bool
    tokens: Dict[AssetSymbol, str]
    prices: Dict[AssetSymbol, int]
    aggregator_prices: Dict[AssetSymbol, int]
    lending_rates: Dict[AssetSymbol, int]

    @property
    def symbols(self) -> Tuple[AssetSymbol, ...]:
        """All valid symbols: configured assets plus the reference currency."""
        return self.assets + (self.reference_symbol,)

    def price_pairs(self) -> List[PricePair]:
        return [PricePair(symbol, price) for symbol, price in self.prices.items()]

    def rate_pairs(self) -> List[RatePair]:
        return [RatePair(symbol, rate) for symbol, rate in self.lending_rates.items()]


def available_profiles(profiles_dir: Path = PROFILES_DIR) -> List[str]:
    if not profiles_dir.is_dir():
        return []
    return sorted(p.stem for p in profiles_dir.glob(f"*{PROFILE_SUFFIX}"))


def resolve_config(profile_name: str, profiles_dir: Path = PROFILES_DIR) -> Configuration:
    """
    Loads and validates the named deployment profile.
    Raises ConfigNotFound if there is no such profile and ConfigMalformed if it is invalid.
    """
    filepath = profiles_dir / f"{profile_name}{PROFILE_SUFFIX}"
    if not filepath.is_file():
        raise ConfigNotFound(profile_name, available=available_profiles(profiles_dir))

    try:
        raw_config = _load_yaml(filepath)
    except yaml.YAMLError as e:
        raise ConfigMalformed(f"Profile '{profile_name}' is not valid YAML: {e}") from e

    return parse_config(profile_name, raw_config)


def parse_config(profile_name: str, config: Any) -> Configuration:
    if not isinstance(config, dict):
        raise ConfigMalformed(f"Profile '{profile_name}' must be a mapping.")

    unknown_sections = set(config) - KNOWN_SECTIONS
    if unknown_sections:
        raise ConfigMalformed(f"Unknown profile section(s): {', '.join(sorted(unknown_sections))}")

    deployment = _section(config, "deployment")
    chain_id = _integer(_require(deployment, "chain_id", "deployment"), "deployment.chain_id")

    protocol = _section(config, "protocol")
    reference_symbol = _require(protocol, "reference_symbol", "protocol")
    if not isinstance(reference_symbol, str) or not reference_symbol:
        raise ConfigMalformed("protocol.reference_symbol must be a non-empty string.")
    reference_address = _address(
        _require(protocol, "reference_address", "protocol"), "protocol.reference_address"
    )
    reference_price = _integer(
        _require(protocol, "reference_price", "protocol"), "protocol.reference_price"
    )
    confirmations = _integer(
        protocol.get("confirmations", DEFAULT_CONFIRMATIONS), "protocol.confirmations"
    )
    confirmation_timeout = _integer(
        protocol.get("confirmation_timeout", DEFAULT_CONFIRMATION_TIMEOUT),
        "protocol.confirmation_timeout",
    )
    price_oracle_source = protocol.get("price_oracle_source", FALLBACK_SOURCE)
    if price_oracle_source not in PRICE_ORACLE_SOURCES:
        raise ConfigMalformed(
            f"protocol.price_oracle_source must be one of {PRICE_ORACLE_SOURCES}, "
            f"got '{price_oracle_source}'."
        )

    assets = _assets(_require(config, "assets"), reference_symbol)
    valid_symbols = set(assets) | {reference_symbol}

    registry = config.get("registry") or {}
    registry_address = registry.get("address")
    if registry_address is not None:
        registry_address = _address(registry_address, "registry.address")

    tokens = {
        symbol: _address(address, f"tokens.{symbol}")
        for symbol, address in _symbol_map(config, "tokens", valid_symbols, required=False).items()
    }
    if reference_symbol in tokens:
        raise ConfigMalformed(
            f"tokens.{reference_symbol}: the reference currency uses protocol.reference_address."
        )

    prices = {
        symbol: _integer(price, f"prices.{symbol}")
        for symbol, price in _symbol_map(config, "prices", valid_symbols).items()
    }
    aggregator_prices = {
        symbol: _integer(price, f"aggregator_prices.{symbol}")
        for symbol, price in _symbol_map(
            config, "aggregator_prices", valid_symbols, required=False
        ).items()
    }

    lending_rates = dict()
    for symbol, params in _symbol_map(config, "lending_rates", valid_symbols).items():
        if not isinstance(params, dict) or BORROW_RATE_KEY not in params:
            raise ConfigMalformed(f"lending_rates.{symbol} must define '{BORROW_RATE_KEY}'.")
        lending_rates[symbol] = _integer(params[BORROW_RATE_KEY], f"lending_rates.{symbol}")

    mock_tokens = config.get("mock_tokens", False)
    if not isinstance(mock_tokens, bool):
        raise ConfigMalformed("mock_tokens must be true or false.")

    return Configuration(
        name=profile_name,
        chain_id=chain_id,
        artifacts_filepath=get_artifact_filepath(config, default_filename=f"{profile_name}.json"),
        reference_symbol=reference_symbol,
        reference_address=reference_address,
        reference_price=reference_price,
        confirmations=confirmations,
        confirmation_timeout=confirmation_timeout,
        price_oracle_source=price_oracle_source,
        registry_address=registry_address,
        assets=assets,
        mock_tokens=mock_tokens,
        tokens=tokens,
        prices=prices,
        aggregator_prices=aggregator_prices,
        lending_rates=lending_rates,
    )


def _require(section: Dict, key: str, section_name: Optional[str] = None) -> Any:
    value = section.get(key)
    if value is None:
        where = f"{section_name}.{key}" if section_name else key
        raise ConfigMalformed(f"'{where}' is not set in profile.")
    return value


def _section(config: Dict, name: str) -> Dict:
    section = _require(config, name)
    if not isinstance(section, dict):
        raise ConfigMalformed(f"'{name}' must be a mapping.")
    return section


def _assets(value: Any, reference_symbol: str) -> Tuple[AssetSymbol, ...]:
    if not isinstance(value, list) or not value:
        raise ConfigMalformed("'assets' must be a non-empty list of symbols.")
    seen = set()
    for symbol in value:
        if not isinstance(symbol, str) or not symbol:
            raise ConfigMalformed(f"Invalid asset symbol '{symbol}'.")
        if symbol in seen:
            raise ConfigMalformed(f"Duplicate asset symbol '{symbol}'.")
        if symbol == reference_symbol:
            raise ConfigMalformed(
                f"'{symbol}' is the reference currency and cannot be listed as an asset."
            )
        seen.add(symbol)
    return tuple(value)


def _symbol_map(
    config: Dict, name: str, valid_symbols: Set[str], required: bool = True
) -> Dict[AssetSymbol, Any]:
    if required:
        value = _require(config, name)
    else:
        value = config.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigMalformed(f"'{name}' must be a mapping of symbol to value.")
    unknown = [str(symbol) for symbol in value if symbol not in valid_symbols]
    if unknown:
        raise ConfigMalformed(f"'{name}' contains unknown symbol(s): {', '.join(sorted(unknown))}")
    return dict(value)


def _integer(value: Any, where: str) -> int:
    """Fixed-point values must be non-negative integers; quoted digit strings are accepted."""
    if isinstance(value, bool):
        raise ConfigMalformed(f"'{where}' must be an integer, got {value!r}.")
    if isinstance(value, str) and value.isascii() and value.isdigit():
        value = int(value)
    if not isinstance(value, int):
        raise ConfigMalformed(f"'{where}' must be an integer, got {value!r}.")
    if value < 0:
        raise ConfigMalformed(f"'{where}' must not be negative.")
    return value


def _address(value: Any, where: str) -> str:
    try:
        return checksum(value)
    except ValueError:
        raise ConfigMalformed(f"'{where}' is not a valid address: {value!r}.")
