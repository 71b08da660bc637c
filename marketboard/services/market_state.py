# marketboard/services/market_state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from marketboard.schemas.market import CoinRow, CurrencyMeta


@dataclass
class MarketState:
    # currency
    currencies: List[str] = field(default_factory=list)            # ["USD", "AUD", ...]
    currency_meta: Dict[str, CurrencyMeta] = field(default_factory=dict)
    base_currency: str = "USD"

    # market
    coins: List[CoinRow] = field(default_factory=list)              # current row snapshot
    loading: bool = False
    error: Optional[str] = None
    error_source: Optional[str] = None                             # "market" | "currency"
    last_updated: Optional[str] = None                              # ISO-8601, UTC

    # UI
    search: str = ""
    sort_by: str = "price"
    sort_dir: str = "desc"
    favorites: Set[str] = field(default_factory=set)
    only_favorites: bool = False

    # polling
    polling_ms: int = 10_000
