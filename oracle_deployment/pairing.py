from typing import List, Mapping, NamedTuple, Optional


class PairingResult(NamedTuple):
    """
    Index-aligned token and feed addresses: tokens[i] and feeds[i] describe symbols[i].
    Symbols that had only a token or only a feed are listed in `dropped`.
    """

    tokens: List[str]
    feeds: List[str]
    symbols: List[str]
    dropped: List[str]


def pair_tokens_and_feeds(
    token_map: Mapping[str, str],
    feed_map: Mapping[str, str],
    excluded_symbol: Optional[str] = None,
) -> PairingResult:
    """
    Pairs each token with its price feed by symbol, in lexicographic symbol order.
    The excluded symbol (the reference currency) is never paired and never reported as dropped.
    """
    tokens, feeds, symbols = list(), list(), list()
    for symbol in sorted(token_map):
        if symbol == excluded_symbol or symbol not in feed_map:
            continue
        symbols.append(symbol)
        tokens.append(token_map[symbol])
        feeds.append(feed_map[symbol])

    unpaired = set(token_map).symmetric_difference(feed_map)
    unpaired.discard(excluded_symbol)
    return PairingResult(tokens=tokens, feeds=feeds, symbols=symbols, dropped=sorted(unpaired))
