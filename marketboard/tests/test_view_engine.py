from __future__ import annotations

import pytest

from marketboard.schemas.market import CoinRow
from marketboard.services.market_normalizer import normalize_market
from marketboard.services.market_state import MarketState
from marketboard.services.view_engine import derive_view, sort_rows


def _row(id_: str, name: str, price: float = 0.0, market_cap: float | None = None) -> CoinRow:
    return CoinRow(
        id=id_,
        rank=1,
        name=name,
        symbol=name.split("/")[0].upper(),
        price=price,
        market_cap=market_cap,
    )


@pytest.fixture()
def rows() -> list[CoinRow]:
    return [
        _row("Xbt_Aud", "Xbt/Aud", price=50000, market_cap=900),
        _row("Eth_Usd", "Eth/Usd", price=3000, market_cap=None),
        _row("Sol_Usd", "Sol/Usd", price=150, market_cap=50),
        _row("Ada_Usd", "Ada/Usd", price=0.5, market_cap=None),
    ]


def test_search_is_case_insensitive_substring(rows):
    state = MarketState(coins=rows[:2], search="xbt")
    assert [r.id for r in derive_view(state)] == ["Xbt_Aud"]


def test_search_matches_symbol_or_quote(rows):
    state = MarketState(coins=rows, search="USD")
    assert {r.id for r in derive_view(state)} == {"Eth_Usd", "Sol_Usd", "Ada_Usd"}


def test_empty_search_keeps_everything(rows):
    assert len(derive_view(MarketState(coins=rows, search=""))) == len(rows)


def test_only_favorites_filters(rows):
    state = MarketState(coins=rows, only_favorites=True, favorites={"Sol_Usd", "Ada_Usd"})
    assert {r.id for r in derive_view(state)} == {"Sol_Usd", "Ada_Usd"}


def test_only_favorites_with_empty_set_is_noop(rows):
    with_flag = derive_view(MarketState(coins=rows, only_favorites=True, favorites=set(), search="usd"))
    without = derive_view(MarketState(coins=rows, only_favorites=False, favorites=set(), search="usd"))
    assert [r.id for r in with_flag] == [r.id for r in without]


def test_numeric_sort_directions(rows):
    desc = derive_view(MarketState(coins=rows, sort_by="price", sort_dir="desc"))
    asc = derive_view(MarketState(coins=rows, sort_by="price", sort_dir="asc"))
    assert [r.price for r in desc] == [50000, 3000, 150, 0.5]
    assert [r.price for r in asc] == [0.5, 150, 3000, 50000]


@pytest.mark.parametrize("direction", ["asc", "desc"])
def test_nulls_sort_last_in_both_directions(rows, direction):
    out = derive_view(MarketState(coins=rows, sort_by="marketCap", sort_dir=direction))
    caps = [r.market_cap for r in out]
    assert caps[-2:] == [None, None]
    assert None not in caps[:2]


def test_string_sort_ignores_case():
    mixed = [_row("a", "eth/usd"), _row("b", "Btc/Usd"), _row("c", "ada/usd")]
    out = sort_rows(mixed, "name", "asc")
    assert [r.id for r in out] == ["c", "b", "a"]


@pytest.mark.parametrize("key", ["name", "price", "marketCap"])
@pytest.mark.parametrize("direction", ["asc", "desc"])
def test_sort_is_idempotent(rows, key, direction):
    once = sort_rows(rows, key, direction)
    twice = sort_rows(once, key, direction)
    assert [r.id for r in once] == [r.id for r in twice]


def test_view_does_not_mutate_state(rows):
    state = MarketState(coins=rows, sort_by="price", sort_dir="asc")
    before = [r.id for r in state.coins]
    out = derive_view(state)
    assert out is not state.coins
    assert [r.id for r in state.coins] == before


@pytest.mark.parametrize("direction", ["asc", "desc"])
def test_name_sort_tolerates_nul_characters(direction):
    state = MarketState(
        coins=normalize_market([{"pair": {"primary": "X\u0000b", "secondary": "Aud"}}, {"symbol": "ETH"}], "USD"),
        sort_by="name",
        sort_dir=direction,
    )
    out = derive_view(state)
    expected = ["ETH_USD", "X\u0000b_Aud"]
    assert [r.id for r in out] == (expected if direction == "asc" else expected[::-1])
