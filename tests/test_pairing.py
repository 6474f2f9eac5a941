import pytest

from oracle_deployment.pairing import pair_tokens_and_feeds

TOKENS = {"A": "0x1", "B": "0x2", "USD": "0x0"}
FEEDS = {"A": "0xa", "B": "0xb"}


def test_pairs_in_symbol_order_excluding_reference():
    result = pair_tokens_and_feeds(TOKENS, FEEDS, excluded_symbol="USD")
    assert result.tokens == ["0x1", "0x2"]
    assert result.feeds == ["0xa", "0xb"]
    assert result.symbols == ["A", "B"]
    assert result.dropped == []


def test_token_without_feed_is_dropped():
    result = pair_tokens_and_feeds({"A": "0x1"}, {}, excluded_symbol="USD")
    assert result.tokens == []
    assert result.feeds == []
    assert result.dropped == ["A"]


def test_empty_inputs():
    result = pair_tokens_and_feeds({}, {}, excluded_symbol="USD")
    assert result.tokens == result.feeds == result.symbols == result.dropped == []


def test_order_does_not_depend_on_insertion_order():
    tokens = {"WETH": "0x3", "DAI": "0x1", "USDC": "0x2"}
    feeds = {"USDC": "0xc", "WETH": "0xe", "DAI": "0xd"}
    result = pair_tokens_and_feeds(tokens, feeds)
    assert result.symbols == ["DAI", "USDC", "WETH"]
    assert result.tokens == ["0x1", "0x2", "0x3"]
    assert result.feeds == ["0xd", "0xc", "0xe"]


def test_feed_without_token_is_dropped():
    result = pair_tokens_and_feeds({"A": "0x1"}, {"A": "0xa", "Z": "0xz"}, excluded_symbol="USD")
    assert result.tokens == ["0x1"]
    assert result.dropped == ["Z"]


def test_excluded_symbol_is_not_reported_as_dropped():
    result = pair_tokens_and_feeds(
        {"A": "0x1", "USD": "0x0"}, {"A": "0xa", "USD": "0xf"}, excluded_symbol="USD"
    )
    assert result.symbols == ["A"]
    assert "USD" not in result.dropped


def test_pairing_is_repeatable():
    tokens = {"C": "0x3", "A": "0x1", "B": "0x2", "USD": "0x0"}
    feeds = {"B": "0xb", "C": "0xc", "D": "0xd"}
    first = pair_tokens_and_feeds(tokens, feeds, "USD")
    second = pair_tokens_and_feeds(tokens, feeds, "USD")
    assert first == second
    assert first.symbols == ["B", "C"]
    assert first.dropped == ["A", "D"]


@pytest.mark.parametrize(
    "tokens,feeds,excluded",
    [
        ({"A": "0x1", "B": "0x2"}, {"B": "0xb"}, "A"),
        ({"A": "0x1", "B": "0x2", "C": "0x3"}, {"A": "0xa", "C": "0xc", "X": "0xx"}, "C"),
        ({"USD": "0x0"}, {"USD": "0xf"}, "USD"),
        ({"A": "0x1"}, {"A": "0xa"}, None),
    ],
)
def test_paired_sequences_are_aligned(tokens, feeds, excluded):
    result = pair_tokens_and_feeds(tokens, feeds, excluded)
    assert len(result.tokens) == len(result.feeds) == len(result.symbols)
    for symbol, token, feed in zip(result.symbols, result.tokens, result.feeds):
        assert symbol in tokens and symbol in feeds
        assert symbol != excluded
        assert symbol not in result.dropped
        assert tokens[symbol] == token
        assert feeds[symbol] == feed
