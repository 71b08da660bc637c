"""Pydantic models for the normalized market rows and the dashboard API."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


SortKey = Literal["name", "price", "change24h", "volume", "marketCap", "bestBid", "bestOffer"]
SortDir = Literal["asc", "desc"]

# public sort key -> CoinRow attribute
SORT_FIELDS: Dict[str, str] = {
    "name": "name",
    "price": "price",
    "change24h": "change_24h",
    "volume": "volume",
    "marketCap": "market_cap",
    "bestBid": "best_bid",
    "bestOffer": "best_offer",
}


class CurrencyMeta(BaseModel):
    """One entry of the currency catalog, keyed by its uppercase code."""

    code: str
    decimals: int = Field(2, ge=0, le=18)
    icon: Optional[str] = None
    type: Optional[str] = None
    sort: float = 0


class CoinRow(BaseModel):
    """Canonical market row, whatever shape the upstream sent."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    rank: int
    name: str
    symbol: str
    price: float = 0.0
    best_bid: float = Field(0.0, alias="bestBid")
    best_offer: float = Field(0.0, alias="bestOffer")
    change_24h: float = Field(0.0, alias="change24h")
    volume: float = 0.0
    market_cap: Optional[float] = Field(None, alias="marketCap")
    spark: List[float] = Field(default_factory=list)
    logo: Optional[str] = None


class MarketSnapshot(BaseModel):
    """JSON view of the whole dashboard state (the polling handle is not exposed)."""

    model_config = ConfigDict(populate_by_name=True)

    currencies: List[str]
    currency_meta: Dict[str, CurrencyMeta] = Field(alias="currencyMeta")
    base_currency: str = Field(alias="baseCurrency")
    coins: List[CoinRow]
    loading: bool
    error: Optional[str] = None
    last_updated: Optional[str] = Field(None, alias="lastUpdated")
    search: str
    sort_by: SortKey = Field(alias="sortBy")
    sort_dir: SortDir = Field(alias="sortDir")
    favorites: List[str]
    only_favorites: bool = Field(alias="onlyFavorites")
    polling_ms: int = Field(alias="pollingMs")
    polling: bool


# ---------- Request bodies ----------


class SortRequest(BaseModel):
    key: str = Field(..., description="One of name, price, change24h, volume, marketCap, bestBid, bestOffer")


class FiltersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search: Optional[str] = None
    only_favorites: Optional[bool] = Field(None, alias="onlyFavorites")
    base_currency: Optional[str] = Field(None, alias="baseCurrency")


class PollingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    interval_ms: Optional[int] = Field(None, alias="intervalMs", gt=0)
