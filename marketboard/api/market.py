from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from marketboard.schemas.market import (
    CoinRow,
    CurrencyMeta,
    FiltersRequest,
    MarketSnapshot,
    PollingRequest,
    SortRequest,
)
from marketboard.services.currency_catalog import currency_decimals
from marketboard.services.formatting import format_row
from marketboard.services.market_store import MarketStore
from marketboard.services.view_engine import favorite_key


router = APIRouter(prefix="/market", tags=["market"])


def get_store(request: Request) -> MarketStore:
    return request.app.state.store


def _error_response(*, code: str, message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


def _quote_currency(row: CoinRow, fallback: str) -> str:
    _, _, secondary = row.name.partition("/")
    return (secondary or fallback).upper()


@router.get("/state", response_model=MarketSnapshot)
async def get_state(store: MarketStore = Depends(get_store)):
    return store.snapshot()


@router.get("/view")
async def get_view(formatted: bool = False, store: MarketStore = Depends(get_store)) -> Any:
    """
    Filtered + sorted rows for the current search / favorites / sort state.
    Example: /market/view?formatted=true
    """
    rows = store.view
    if not formatted:
        return [row.model_dump(by_alias=True) for row in rows]

    meta = store.state.currency_meta
    out = []
    for row in rows:
        quote = _quote_currency(row, store.state.base_currency)
        display = format_row(row, quote, currency_decimals(meta, quote))
        display["favorite"] = favorite_key(row) in store.state.favorites
        out.append(display)
    return out


@router.get("/currencies", response_model=dict[str, CurrencyMeta])
async def get_currencies(store: MarketStore = Depends(get_store)):
    return store.state.currency_meta


@router.post("/refresh", response_model=MarketSnapshot)
async def refresh_market(store: MarketStore = Depends(get_store)):
    await store.fetch_market()
    return store.snapshot()


@router.post("/currencies/refresh", response_model=MarketSnapshot)
async def refresh_currencies(store: MarketStore = Depends(get_store)):
    await store.fetch_currencies()
    return store.snapshot()


@router.post("/favorites/{key}")
async def toggle_favorite(key: str, store: MarketStore = Depends(get_store)) -> dict[str, Any]:
    store.toggle_favorite(key)
    return {"key": key, "favorite": key in store.state.favorites, "favorites": sorted(store.state.favorites)}


@router.post("/sort")
async def set_sort(body: SortRequest, store: MarketStore = Depends(get_store)) -> Any:
    try:
        store.set_sort(body.key)
    except ValueError as e:
        return _error_response(code="unsupported_sort_key", message=str(e))
    return {"sortBy": store.state.sort_by, "sortDir": store.state.sort_dir}


@router.put("/filters", response_model=MarketSnapshot)
async def set_filters(body: FiltersRequest, store: MarketStore = Depends(get_store)):
    if body.search is not None:
        store.set_search(body.search)
    if body.only_favorites is not None:
        store.set_only_favorites(body.only_favorites)
    if body.base_currency:
        store.set_base_currency(body.base_currency)
    return store.snapshot()


@router.post("/polling/start")
async def start_polling(body: PollingRequest | None = None, store: MarketStore = Depends(get_store)) -> dict[str, Any]:
    store.start_polling(body.interval_ms if body else None)
    return store.poller_info()


@router.post("/polling/stop")
async def stop_polling(store: MarketStore = Depends(get_store)) -> dict[str, Any]:
    store.stop_polling()
    return store.poller_info()
