from __future__ import annotations

import locale

import pytest

from marketboard.services.market_store import MarketStore
from marketboard.tests.fakes import FakeUpstream, make_settings


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture()
def store(upstream: FakeUpstream) -> MarketStore:
    return MarketStore(make_settings(), client=upstream.client())


@pytest.fixture()
def c_locale(monkeypatch):
    monkeypatch.setattr(locale, "localeconv", lambda: {"thousands_sep": "", "decimal_point": "."})
