"""Display formatting for prices, volumes, percentages and ages."""

from __future__ import annotations

import locale
import math
import time
from typing import Any, Dict, Optional

from marketboard.schemas.market import CoinRow
from marketboard.utils.time import to_utc_datetime

MISSING = "–"
MAX_DECIMALS = 18

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "AUD": "A$",
    "CAD": "CA$",
    "NZD": "NZ$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "CN¥",
    "INR": "₹",
    "KRW": "₩",
}


def _is_missing(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


def _separators() -> tuple[str, str]:
    # the C/POSIX locale defines no grouping; use en-style separators there
    conv = locale.localeconv()
    thousands = conv.get("thousands_sep") or ","
    decimal = conv.get("decimal_point") or "."
    if thousands == decimal:
        thousands = ","
    return thousands, decimal


def _group(value: float, decimals: int, trim: bool) -> str:
    text = f"{abs(value):,.{decimals}f}"
    if trim and "." in text:
        text = text.rstrip("0").rstrip(".")
    thousands, decimal = _separators()
    return text.translate(str.maketrans({",": thousands, ".": decimal}))


def format_number(value: Any, max_decimals: int = 2) -> str:
    """1234.5 -> '1,234.5'; at most `max_decimals` fraction digits, no trailing zeros."""
    if _is_missing(value):
        return MISSING
    n = float(value)
    text = _group(n, min(max(0, max_decimals), MAX_DECIMALS), trim=True)
    return f"-{text}" if n < 0 and text.strip("0.,") else text


def format_currency(value: Any, currency: str = "USD", decimals: int = 2) -> str:
    """1234.5, 'USD' -> '$1,234.50'; unknown codes render as 'XBT 1,234.50'."""
    if _is_missing(value):
        return MISSING
    n = float(value)
    code = (currency or "USD").upper()
    body = _group(n, min(max(0, decimals), MAX_DECIMALS), trim=False)
    sign = "-" if n < 0 and body.strip("0.,") else ""

    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{body}"
    return f"{sign}{code} {body}"


def format_percent(value: Any) -> str:
    """3.2 -> '+3.2%', -1 -> '-1%', 0 -> '0%'."""
    if _is_missing(value):
        return MISSING
    n = float(value)
    prefix = "+" if n > 0 else ""
    return f"{prefix}{format_number(n)}%"


def time_ago(value: Any, now: Optional[float] = None) -> str:
    dt = to_utc_datetime(value)
    if dt is None:
        return ""
    now_ts = time.time() if now is None else float(now)
    delta_s = math.floor(now_ts - dt.timestamp())

    if delta_s < 60:
        return f"{delta_s}s ago"
    minutes = delta_s // 60
    if minutes < 60:
        return f"{minutes}m ago"
    return f"{minutes // 60}h ago"


def format_row(row: CoinRow, currency: str, decimals: int = 2) -> Dict[str, Any]:
    """Display strings for one row, alongside its id and raw spark series."""
    return {
        "id": row.id,
        "rank": row.rank,
        "name": row.name,
        "symbol": row.symbol,
        "logo": row.logo,
        "price": format_currency(row.price, currency, decimals),
        "bestBid": format_currency(row.best_bid, currency, decimals),
        "bestOffer": format_currency(row.best_offer, currency, decimals),
        "change24h": format_percent(row.change_24h),
        "volume": format_number(row.volume),
        "marketCap": format_currency(row.market_cap, currency, decimals),
        "spark": list(row.spark),
    }
