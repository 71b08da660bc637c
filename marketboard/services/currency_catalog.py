"""Currency catalog: upstream currency records -> {CODE: CurrencyMeta}."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from marketboard.schemas.market import CurrencyMeta
from marketboard.services.upstream import fetch_json
from marketboard.utils.numbers import opt_str, to_number

DEFAULT_DECIMALS = 2
MAX_DECIMALS = 18
BASE_CURRENCY_PRIORITY = ("USD", "AUD")


def _records(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("currencies"), list):
        return payload["currencies"]
    return []


def _decimals(value: Any) -> int:
    n = to_number(value)
    if n is None or n < 0 or n > MAX_DECIMALS:
        return DEFAULT_DECIMALS
    return int(n)


def normalize_currencies(payload: Any) -> Dict[str, CurrencyMeta]:
    """
    Accepts a bare list of records or {"currencies": [...]}; any other shape is an
    empty catalog. Records resolve their code from `code` then `ticker`
    (uppercased); records without one are dropped. Later duplicates win.
    """
    meta: Dict[str, CurrencyMeta] = {}
    for rec in _records(payload):
        if not isinstance(rec, dict):
            continue
        code = str(rec.get("code") or rec.get("ticker") or "").strip().upper()
        if not code:
            continue

        sort = to_number(rec.get("sort_order"))
        meta[code] = CurrencyMeta(
            code=code,
            decimals=_decimals(rec.get("decimals_places")),
            icon=opt_str(rec.get("icon")),
            type=opt_str(rec.get("type")),
            sort=sort if sort is not None else 0,
        )
    return meta


def pick_base_currency(meta: Dict[str, CurrencyMeta], current: str) -> str:
    for code in BASE_CURRENCY_PRIORITY:
        if code in meta:
            return code
    if meta:
        return next(iter(meta))
    return current


async def load_currencies(client: httpx.AsyncClient, url: str) -> Dict[str, CurrencyMeta]:
    payload = await fetch_json(client, url, "Currency")
    return normalize_currencies(payload)


def currency_decimals(meta: Dict[str, CurrencyMeta], code: Optional[str]) -> int:
    entry = meta.get((code or "").upper())
    return entry.decimals if entry is not None else DEFAULT_DECIMALS
