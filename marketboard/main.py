# marketboard/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI

from marketboard.api.health import router as health_router
from marketboard.api.market import router as market_router
from marketboard.api.proxy import build_proxy_router

from marketboard.config.settings import get_settings
from marketboard.services.market_store import MarketStore

logger = logging.getLogger("marketboard.main")

settings = get_settings()

app = FastAPI(title="Market Dashboard API")

# Routers
app.include_router(health_router)
app.include_router(market_router)
if settings.PROXY_ENABLED:
    app.include_router(build_proxy_router(settings.PROXY_PREFIX, settings.PROXY_TARGET))


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Market dashboard"}


@app.on_event("startup")
async def on_startup() -> None:
    store = MarketStore(settings)
    app.state.store = store

    await store.fetch_currencies()

    if settings.POLLING_ENABLED:
        store.start_polling()
    else:
        logger.info("polling disabled (POLLING_ENABLED=false)")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    store: MarketStore | None = getattr(app.state, "store", None)
    if store is not None:
        await store.dispose()
        app.state.store = None
