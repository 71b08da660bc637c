# marketboard/api/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from marketboard.services.market_store import MarketStore
from marketboard.utils.readiness import data_staleness

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


def _now_meta() -> Dict[str, Any]:
    now_ts = time.time()
    now_dt = datetime.fromtimestamp(now_ts, tz=timezone.utc)
    return {
        "now_ts": now_ts,
        "now_unix": int(now_ts),
        "now_iso": now_dt.isoformat().replace("+00:00", "Z"),
        "uptime_s": int(now_ts - APP_STARTED_AT),
    }


def build_ready_payload(store: MarketStore) -> Dict[str, Any]:
    s = store.state
    market_error = s.error if s.error_source == "market" else None
    currency_error = s.error if s.error_source == "currency" else None
    freshness = data_staleness(
        s.last_updated,
        s.polling_ms,
        stale_multiplier=store.settings.STALE_MULTIPLIER,
    )

    return {
        "status": "ok",
        **_now_meta(),
        "checks": {
            "poller": store.poller_info(),
            "market": {
                "ok": market_error is None and not freshness["stale"],
                "rows": len(s.coins),
                "last_updated": s.last_updated,
                "error": market_error,
                **freshness,
            },
            "currencies": {
                "ok": bool(s.currency_meta) and currency_error is None,
                "count": len(s.currency_meta),
                "base_currency": s.base_currency,
                "error": currency_error,
            },
        },
    }


@router.get("/live")
async def live():
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request, response: Response):
    store: MarketStore = request.app.state.store
    payload = build_ready_payload(store)
    checks = payload["checks"]

    degraded_reasons = []

    market = checks["market"]
    if market["error"]:
        degraded_reasons.append("market_fetch_error")
    if checks["currencies"]["error"]:
        degraded_reasons.append("currency_fetch_error")
    if market["stale"]:
        degraded_reasons.append("market_data_stale")
    # an in-flight first tick is not a failure yet
    if market["never_updated"] and checks["poller"]["completed_ticks"] > 0:
        degraded_reasons.append("market_never_loaded")

    if degraded_reasons:
        payload["status"] = "degraded"
        payload["degraded"] = True
        payload["degraded_reasons"] = degraded_reasons
        response.status_code = 503
    else:
        payload["degraded"] = False
        payload["degraded_reasons"] = []

    return payload


@router.get("/health")
async def health(request: Request, response: Response):
    return await ready(request, response)
