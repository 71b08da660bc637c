"""
The dashboard's application state and its actions.

One MarketStore is built at startup and handed to consumers (the API keeps it on
app.state.store). Fetch actions never raise: failures land in `state.error` and
the previous data stays in place until the next successful fetch.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from marketboard.config.settings import Settings, get_settings
from marketboard.jobs.poller import Poller
from marketboard.schemas.market import SORT_FIELDS, CoinRow, MarketSnapshot
from marketboard.services.currency_catalog import load_currencies, pick_base_currency
from marketboard.services.market_normalizer import load_market
from marketboard.services.market_state import MarketState
from marketboard.services.upstream import UpstreamError, make_client
from marketboard.services.view_engine import derive_view
from marketboard.utils.time import iso_z, utcnow

logger = logging.getLogger("marketboard.store")


class MarketStore:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or make_client(self.settings.HTTP_TIMEOUT_S)
        self.state = MarketState(polling_ms=self.settings.POLLING_MS)
        self._poller = Poller(self.fetch_market, name="market")

    # ---------- Derived ----------

    @property
    def view(self) -> List[CoinRow]:
        return derive_view(self.state)

    @property
    def polling(self) -> bool:
        return self._poller.running

    def poller_info(self) -> Dict[str, Any]:
        return self._poller.info()

    def snapshot(self) -> MarketSnapshot:
        s = self.state
        return MarketSnapshot(
            currencies=list(s.currencies),
            currency_meta=dict(s.currency_meta),
            base_currency=s.base_currency,
            coins=list(s.coins),
            loading=s.loading,
            error=s.error,
            last_updated=s.last_updated,
            search=s.search,
            sort_by=s.sort_by,
            sort_dir=s.sort_dir,
            favorites=sorted(s.favorites),
            only_favorites=s.only_favorites,
            polling_ms=s.polling_ms,
            polling=self.polling,
        )

    # ---------- Fetch actions ----------

    async def fetch_currencies(self) -> bool:
        try:
            meta = await load_currencies(self.client, self.settings.currency_url)
        except UpstreamError as e:
            self.state.error = str(e)
            self.state.error_source = "currency"
            logger.warning("currency fetch failed | %s", e)
            return False

        self.state.currency_meta = meta
        self.state.currencies = list(meta.keys())
        self.state.base_currency = pick_base_currency(meta, self.state.base_currency)
        logger.info("currencies loaded | count=%d | base=%s", len(meta), self.state.base_currency)
        return True

    async def fetch_market(self) -> bool:
        self.state.loading = True
        self.state.error = None
        self.state.error_source = None
        try:
            rows = await load_market(self.client, self.settings.market_url, self.state.base_currency)
        except UpstreamError as e:
            self.state.error = str(e)
            self.state.error_source = "market"
            logger.warning("market fetch failed | %s", e)
            return False
        finally:
            self.state.loading = False

        self.state.coins = rows
        self.state.last_updated = iso_z(utcnow())
        logger.debug("market loaded | rows=%d", len(rows))
        return True

    # ---------- Polling ----------

    def start_polling(self, interval_ms: Optional[int] = None) -> None:
        if interval_ms is not None:
            self.set_polling_ms(interval_ms)
        self._poller.start(self.state.polling_ms)

    def stop_polling(self) -> None:
        self._poller.stop()

    # ---------- UI actions ----------

    def toggle_favorite(self, key: str) -> None:
        if key in self.state.favorites:
            self.state.favorites.discard(key)
        else:
            self.state.favorites.add(key)

    def set_sort(self, key: str) -> None:
        if key not in SORT_FIELDS:
            raise ValueError(f"Unsupported sort key '{key}'")

        if self.state.sort_by == key:
            self.state.sort_dir = "desc" if self.state.sort_dir == "asc" else "asc"
        else:
            self.state.sort_by = key
            self.state.sort_dir = "desc"

    def set_search(self, text: str) -> None:
        self.state.search = text or ""

    def set_only_favorites(self, flag: bool) -> None:
        self.state.only_favorites = bool(flag)

    def set_base_currency(self, code: str) -> None:
        self.state.base_currency = code.strip().upper()

    def set_polling_ms(self, ms: int) -> None:
        if ms <= 0:
            raise ValueError(f"pollingMs must be positive, got {ms}")
        self.state.polling_ms = int(ms)

    # ---------- Lifecycle ----------

    async def dispose(self) -> None:
        await self._poller.aclose()
        await self.client.aclose()
