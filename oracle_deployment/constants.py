from enum import Enum
from pathlib import Path

import oracle_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(oracle_deployment.__file__).parent
PROFILES_DIR = DEPLOYMENT_DIR / "profiles"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"
PROFILE_SUFFIX = ".yml"

#
# Chain
#

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_CONFIRMATIONS = 1
DEFAULT_CONFIRMATION_TIMEOUT = 300  # seconds

#
# Contracts
#

FALLBACK_ORACLE_CONTRACT = "PriceOracle"
MOCK_AGGREGATOR_CONTRACT = "MockAggregator"
PROXY_PRICE_PROVIDER_CONTRACT = "ChainlinkProxyPriceProvider"
LENDING_RATE_ORACLE_CONTRACT = "LendingRateOracle"
MOCK_TOKEN_CONTRACT = "MintableERC20"
ADDRESSES_PROVIDER_CONTRACT = "LendingPoolAddressesProvider"

MOCK_TOKEN_DECIMALS = 18

# artifact role names for per-asset deployments, e.g. "MockAggregator-DAI"
ROLE_SEPARATOR = "-"


def asset_role(contract_name: str, symbol: str) -> str:
    return f"{contract_name}{ROLE_SEPARATOR}{symbol}"


#
# Registry roles as defined in the LendingPoolAddressesProvider contract
#


class Role(Enum):
    PRICE_ORACLE = "PriceOracle"
    LENDING_RATE_ORACLE = "LendingRateOracle"

    @property
    def setter(self) -> str:
        return f"set{self.value}"

    @property
    def getter(self) -> str:
        return f"get{self.value}"


# registry PriceOracle pointer target
FALLBACK_SOURCE = "fallback"
PROXY_SOURCE = "proxy"
PRICE_ORACLE_SOURCES = [FALLBACK_SOURCE, PROXY_SOURCE]

#
# Oracle methods
#

SET_REFERENCE_PRICE = "setEthUsdPrice"
GET_REFERENCE_PRICE = "getEthUsdPrice"
SET_ASSET_PRICE = "setAssetPrice"
GET_ASSET_PRICE = "getAssetPrice"
SET_BORROW_RATE = "setMarketBorrowRate"
GET_BORROW_RATE = "getMarketBorrowRate"
