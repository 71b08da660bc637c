from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from marketboard.api.health import router as health_router
from marketboard.api.market import router as market_router
from marketboard.api.proxy import build_proxy_router
from marketboard.services.market_store import MarketStore
from marketboard.tests.fakes import UPSTREAM, FakeUpstream, make_settings

ROWS = [
    {
        "pair": {"primary": "Xbt", "secondary": "Aud"},
        "price": {"last": 50000, "bestBid": 49990, "bestOffer": 50010, "change": {"percent": 3.2, "direction": "up"}},
        "volume": {"secondary": 120000},
        "marketCap": 1000,
    },
    {"symbol": "Eth", "quote": "Usd", "last": 3000, "change": {"percent": 1.25, "direction": "down"}},
]


@pytest.fixture()
def market_client(c_locale):
    upstream = FakeUpstream()
    upstream.json("/market", {"data": ROWS})
    upstream.json("/currency", [{"code": "AUD", "decimals_places": 2}, {"code": "USD", "decimals_places": 2}])

    store = MarketStore(make_settings(), client=upstream.client())

    app = FastAPI()
    app.state.store = store
    app.include_router(health_router)
    app.include_router(market_router)
    app.include_router(build_proxy_router("/api", UPSTREAM))

    with TestClient(app) as client:
        yield client, store, upstream


def test_refresh_then_state(market_client):
    client, _, _ = market_client

    resp = client.post("/market/refresh")
    assert resp.status_code == 200
    body = resp.json()
    assert body["error"] is None
    assert [c["id"] for c in body["coins"]] == ["Xbt_Aud", "Eth_Usd"]
    assert body["coins"][0]["marketCap"] == 1000
    assert body["lastUpdated"].endswith("Z")

    state = client.get("/market/state").json()
    assert state["sortBy"] == "price"
    assert state["sortDir"] == "desc"


def test_refresh_currencies(market_client):
    client, _, _ = market_client

    body = client.post("/market/currencies/refresh").json()
    assert body["currencies"] == ["AUD", "USD"]
    assert body["baseCurrency"] == "USD"

    catalog = client.get("/market/currencies").json()
    assert catalog["AUD"]["decimals"] == 2


def test_view_sorted_and_formatted(market_client):
    client, _, _ = market_client
    client.post("/market/refresh")

    raw = client.get("/market/view").json()
    assert [r["id"] for r in raw] == ["Xbt_Aud", "Eth_Usd"]

    formatted = client.get("/market/view", params={"formatted": "true"}).json()
    assert formatted[0]["price"] == "A$50,000.00"
    assert formatted[0]["change24h"] == "+3.2%"
    assert formatted[1]["price"] == "$3,000.00"
    assert formatted[1]["change24h"] == "-1.25%"
    assert formatted[1]["marketCap"] == "–"
    assert formatted[0]["favorite"] is False


def test_sort_toggle_and_unknown_key(market_client):
    client, _, _ = market_client
    client.post("/market/refresh")

    assert client.post("/market/sort", json={"key": "price"}).json() == {"sortBy": "price", "sortDir": "asc"}
    assert [r["id"] for r in client.get("/market/view").json()] == ["Eth_Usd", "Xbt_Aud"]

    resp = client.post("/market/sort", json={"key": "rank"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "unsupported_sort_key"


def test_favorites_and_filters(market_client):
    client, _, _ = market_client
    client.post("/market/refresh")

    resp = client.post("/market/favorites/Eth_Usd")
    assert resp.json()["favorite"] is True

    state = client.put("/market/filters", json={"onlyFavorites": True}).json()
    assert state["onlyFavorites"] is True
    assert [r["id"] for r in client.get("/market/view").json()] == ["Eth_Usd"]

    client.post("/market/favorites/Eth_Usd")
    assert len(client.get("/market/view").json()) == 2

    client.put("/market/filters", json={"onlyFavorites": False, "search": "xbt"})
    assert [r["id"] for r in client.get("/market/view").json()] == ["Xbt_Aud"]


def test_polling_start_and_stop(market_client):
    client, store, _ = market_client

    info = client.post("/market/polling/start", json={"intervalMs": 60_000}).json()
    assert info["running"] is True
    assert info["interval_ms"] == 60_000
    assert store.state.polling_ms == 60_000

    info = client.post("/market/polling/stop").json()
    assert info["running"] is False


def test_ready_reports_fetch_error(market_client):
    client, _, upstream = market_client

    client.post("/market/refresh")
    assert client.get("/ready").status_code == 200

    upstream.json("/market", {}, status_code=503)
    client.post("/market/refresh")

    resp = client.get("/ready")
    assert resp.status_code == 503
    body = resp.json()
    assert "market_fetch_error" in body["degraded_reasons"]
    assert body["checks"]["market"]["error"] == "Market API 503"
    assert body["checks"]["market"]["rows"] == 2


def test_ready_separates_currency_errors_from_market_errors(market_client):
    client, _, upstream = market_client

    client.post("/market/refresh")
    upstream.json("/currency", {}, status_code=500)
    client.post("/market/currencies/refresh")

    resp = client.get("/ready")
    assert resp.status_code == 503
    body = resp.json()
    assert body["degraded_reasons"] == ["currency_fetch_error"]
    assert body["checks"]["market"]["error"] is None
    assert body["checks"]["market"]["ok"] is True
    assert body["checks"]["currencies"]["error"] == "Currency API 500"

    client.post("/market/refresh")
    assert client.get("/ready").status_code == 200


def test_ready_while_first_tick_in_flight(market_client):
    client, store, _ = market_client

    store._poller.stats["ticks"] = 1
    resp = client.get("/ready")
    assert resp.status_code == 200
    assert resp.json()["degraded_reasons"] == []

    store._poller.stats["completed_ticks"] = 1
    resp = client.get("/ready")
    assert resp.status_code == 503
    assert resp.json()["degraded_reasons"] == ["market_never_loaded"]


def test_proxy_rewrites_prefix(market_client):
    client, _, upstream = market_client

    resp = client.get("/api/currency", params={"page": 2})
    assert resp.status_code == 200
    assert resp.json()[0]["code"] == "AUD"

    forwarded = upstream.requests[-1]
    assert forwarded.url.path == "/test/api/currency"
    assert forwarded.url.params["page"] == "2"


def test_proxy_passes_upstream_status(market_client):
    client, _, _ = market_client
    assert client.get("/api/nope").status_code == 404


def test_proxy_unreachable_is_bad_gateway(c_locale):
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    store = MarketStore(make_settings(), client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    app = FastAPI()
    app.state.store = store
    app.include_router(build_proxy_router("/api", UPSTREAM))

    with TestClient(app) as client:
        assert client.get("/api/market").status_code == 502
