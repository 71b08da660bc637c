"""
Market normalizer: upstream ticker rows -> CoinRow.

Upstreams name the same values differently. Two shapes are known:

  structured: {"pair": {"primary", "secondary"},
               "price": {"last", "bestBid", "bestOffer", "change": {"percent", "direction"}},
               "volume": {"primary", "secondary"}, "priceHistory": [...]}
  flat:       {"symbol" | "base", "quote", "last", "bestBid", "bestOffer", "volume_24h", ...}
              (a bare numeric "price" stands in for "last")

Every output field is resolved through the source tables below, in order:
structured path first, then the flat one, then the field default.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import httpx

from marketboard.schemas.market import CoinRow
from marketboard.services.upstream import fetch_json
from marketboard.utils.numbers import number_or, opt_str, to_number

logger = logging.getLogger("marketboard.market")

FALLBACK_SECONDARY = "USD"

Path = Tuple[str, ...]

# First source that is present (not None) wins.
PRESENT_SOURCES: Dict[str, Tuple[Path, ...]] = {
    "last": (("price", "last"), ("last",), ("price",)),
    "best_bid": (("price", "bestBid"), ("bestBid",)),
    "best_offer": (("price", "bestOffer"), ("bestOffer",)),
    "percent": (("price", "change", "percent"), ("change", "percent")),
    "direction": (("price", "change", "direction"), ("change", "direction")),
    "volume": (("volume", "secondary"), ("volume", "primary"), ("volume_24h",), ("volume",)),
    "rank": (("rank",),),
    "spark": (("priceHistory",), ("spark",)),
}

# First source that is truthy wins (empty strings and zeros fall through).
TRUTHY_SOURCES: Dict[str, Tuple[Path, ...]] = {
    "id": (("id",),),
    "primary": (("pair", "primary"), ("symbol",), ("base",)),
    "secondary": (("pair", "secondary"), ("quote",)),
    "market_cap": (("marketCap",), ("market_cap",)),
    "logo": (("image",), ("logo",), ("icon",)),
}


def _dig(row: Dict[str, Any], path: Path) -> Any:
    node: Any = row
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def first_present(row: Dict[str, Any], field: str) -> Any:
    for path in PRESENT_SOURCES[field]:
        value = _dig(row, path)
        if value is not None:
            return value
    return None


def first_truthy(row: Dict[str, Any], field: str) -> Any:
    for path in TRUTHY_SOURCES[field]:
        value = _dig(row, path)
        if value:
            return value
    return None


def detect_shape(row: Any) -> str:
    if not isinstance(row, dict):
        return "invalid"
    if isinstance(row.get("pair"), dict) or isinstance(row.get("price"), dict):
        return "structured"
    if any(k in row for k in ("symbol", "base", "quote", "last", "bestBid", "bestOffer")):
        return "flat"
    return "unknown"


def _rows(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    return []


def signed_change(percent: Any, direction: Any) -> float:
    magnitude = number_or(percent, 0.0)
    if str(direction or "").lower() == "down":
        return -magnitude
    return magnitude


def _market_cap(value: Any) -> Optional[float]:
    # 0 and "no data" both render as missing
    n = to_number(value)
    return n if n else None


def _spark(value: Any) -> List[float]:
    if not isinstance(value, list):
        return []
    out: List[float] = []
    for v in value:
        n = to_number(v)
        if n is not None:
            out.append(n)
    return out


def _rank(value: Any, idx: int) -> int:
    n = to_number(value)
    return int(n) if n is not None else idx + 1


def normalize_row(row: Dict[str, Any], idx: int, base_currency: Optional[str]) -> CoinRow:
    """Map one upstream row at input position `idx` (0-based) to a CoinRow."""
    primary = str(first_truthy(row, "primary") or f"COIN_{idx}")
    secondary = str(first_truthy(row, "secondary") or base_currency or FALLBACK_SECONDARY)

    return CoinRow(
        id=str(first_truthy(row, "id") or f"{primary}_{secondary}"),
        rank=_rank(first_present(row, "rank"), idx),
        name=f"{primary}/{secondary}",
        symbol=primary.upper(),
        price=number_or(first_present(row, "last")),
        best_bid=number_or(first_present(row, "best_bid")),
        best_offer=number_or(first_present(row, "best_offer")),
        change_24h=signed_change(first_present(row, "percent"), first_present(row, "direction")),
        volume=number_or(first_present(row, "volume")),
        market_cap=_market_cap(first_truthy(row, "market_cap")),
        spark=_spark(first_present(row, "spark")),
        logo=opt_str(first_truthy(row, "logo")),
    )


def normalize_market(payload: Any, base_currency: Optional[str]) -> List[CoinRow]:
    """
    Accepts a bare list or {"data": [...]}; any other shape yields no rows.
    Non-object entries are skipped but still count toward default ranks.
    """
    shapes: Counter = Counter()
    out: List[CoinRow] = []
    for idx, row in enumerate(_rows(payload)):
        shape = detect_shape(row)
        shapes[shape] += 1
        if shape == "invalid":
            continue
        out.append(normalize_row(row, idx, base_currency))

    if shapes:
        logger.debug("market rows normalized | rows=%d | shapes=%s", len(out), dict(shapes))
    return out


async def load_market(client: httpx.AsyncClient, url: str, base_currency: Optional[str]) -> List[CoinRow]:
    payload = await fetch_json(client, url, "Market")
    return normalize_market(payload, base_currency)
