from typing import Iterable, List, Mapping, NamedTuple, Optional, Sequence

from oracle_deployment.config import PricePair, RatePair
from oracle_deployment.constants import (
    GET_ASSET_PRICE,
    GET_BORROW_RATE,
    SET_ASSET_PRICE,
    SET_BORROW_RATE,
)
from oracle_deployment.ledger import ContractRef, Receipt
from oracle_deployment.sequencer import Sequencer


class _AssetValue(NamedTuple):
    symbol: str
    asset: str
    value: int


def _resolve_pairs(
    sequencer: Sequencer,
    pairs: Iterable[NamedTuple],
    token_map: Mapping[str, str],
    excluded_symbol: Optional[str],
    step: str,
) -> List[_AssetValue]:
    resolved = list()
    for symbol, value in pairs:
        if symbol == excluded_symbol:
            continue
        asset = token_map.get(symbol)
        if asset is None:
            sequencer.halt(step, KeyError(f"No token address for {symbol}"))
        resolved.append(_AssetValue(symbol=symbol, asset=asset, value=value))
    return resolved


def _apply(
    sequencer: Sequencer,
    target: ContractRef,
    values: Sequence[_AssetValue],
    setter: str,
    getter: str,
    batch_method: Optional[str],
) -> List[Receipt]:
    pending = list()
    for item in values:
        if sequencer.read(target, getter, item.asset) == item.value:
            print(f"(i) {target.contract_name} {item.symbol} already set to {item.value}.")
            continue
        pending.append(item)

    if not pending:
        return []
    if batch_method:
        assets = [item.asset for item in pending]
        amounts = [item.value for item in pending]
        return [sequencer.call_and_confirm(target, batch_method, assets, amounts)]
    return [sequencer.call_and_confirm(target, setter, item.asset, item.value) for item in pending]


def set_initial_prices(
    sequencer: Sequencer,
    oracle: ContractRef,
    price_pairs: Iterable[PricePair],
    token_map: Mapping[str, str],
    excluded_symbol: Optional[str] = None,
    batch_method: Optional[str] = None,
) -> List[Receipt]:
    """
    Sets the initial price of every asset in the fallback price oracle.
    The reference currency is skipped: its price is fixed by protocol convention.
    """
    values = _resolve_pairs(
        sequencer, price_pairs, token_map, excluded_symbol, step=f"{oracle.contract_name} prices"
    )
    return _apply(sequencer, oracle, values, SET_ASSET_PRICE, GET_ASSET_PRICE, batch_method)


def set_initial_rates(
    sequencer: Sequencer,
    rate_oracle: ContractRef,
    rate_pairs: Iterable[RatePair],
    token_map: Mapping[str, str],
    excluded_symbol: Optional[str] = None,
    batch_method: Optional[str] = None,
) -> List[Receipt]:
    """Sets the initial market borrow rate of every asset in the lending rate oracle."""
    values = _resolve_pairs(
        sequencer,
        rate_pairs,
        token_map,
        excluded_symbol,
        step=f"{rate_oracle.contract_name} rates",
    )
    return _apply(sequencer, rate_oracle, values, SET_BORROW_RATE, GET_BORROW_RATE, batch_method)
