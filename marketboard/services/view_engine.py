"""Derived view: search + favorites filter, then a single-key sort."""

from __future__ import annotations

import locale
from typing import Any, List

from marketboard.schemas.market import SORT_FIELDS, CoinRow
from marketboard.services.market_state import MarketState


def favorite_key(row: CoinRow) -> str:
    return row.id or row.symbol


def matches_search(row: CoinRow, query: str) -> bool:
    return query.lower() in f"{row.name} {row.symbol}".lower()


def _sort_value(value: Any) -> Any:
    if isinstance(value, str):
        # strxfrm rejects NUL, which JSON strings may carry
        return locale.strxfrm(value.casefold().replace("\x00", ""))
    return value


def sort_rows(rows: List[CoinRow], sort_by: str, sort_dir: str) -> List[CoinRow]:
    """
    Stable sort on one key. Rows whose key is None go last in either
    direction, keeping their relative order.
    """
    attr = SORT_FIELDS.get(sort_by, sort_by)
    present = [r for r in rows if getattr(r, attr, None) is not None]
    missing = [r for r in rows if getattr(r, attr, None) is None]

    present.sort(key=lambda r: _sort_value(getattr(r, attr)), reverse=(sort_dir != "asc"))
    return present + missing


def derive_view(state: MarketState) -> List[CoinRow]:
    rows = list(state.coins)

    if state.search:
        rows = [r for r in rows if matches_search(r, state.search)]

    # an empty favorites set never hides everything
    if state.only_favorites and state.favorites:
        rows = [r for r in rows if favorite_key(r) in state.favorites]

    return sort_rows(rows, state.sort_by, state.sort_dir)
