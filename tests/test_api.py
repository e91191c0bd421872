"""HTTP surface for history, positions and notes."""
from decimal import Decimal

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tradejournal.api.deps import build_services, get_services
from tradejournal.api.routers import notes, positions
from tradejournal.cache.wallet_cache import WalletTradeCache
from tradejournal.notes.legacy_store import MemoryNoteStore, legacy_note_key

from fakes import T0, FakeClock, FakePriceOracle, FakeTradeSource, FakeTradeStore, raw_trade

WALLET = "wallet_1"
TOKEN = "MINT_A"


def make_client(failures=None, store_kwargs=None):
    rows = [
        raw_trade(signature="s1", side="SELL", amount="40", value="500", ts=T0 + 1000),
        raw_trade(signature="b1", side="BUY", amount="100", value="1000", ts=T0),
        raw_trade(signature="b2", token="MINT_B", amount="5", value="5", ts=T0 - 1000),
    ]
    services = build_services(
        source=FakeTradeSource(rows, failures),
        store=FakeTradeStore(rows, **(store_kwargs or {})),
        oracle=FakePriceOracle({TOKEN: Decimal("12")}),
        legacy_store=MemoryNoteStore({legacy_note_key(WALLET, "MINT_B"): "legacy plan"}),
        cache=WalletTradeCache(ttl_minutes=5, clock=FakeClock()),
    )
    services.loader.page_size = 2

    app = FastAPI()
    app.include_router(positions.router)
    app.include_router(notes.router)
    app.dependency_overrides[get_services] = lambda: services
    return TestClient(app), services


def test_trades_pagination():
    client, services = make_client()
    with client:
        first = client.get(f"/wallets/{WALLET}/trades").json()
        cached = client.get(f"/wallets/{WALLET}/trades").json()
        more = client.post(f"/wallets/{WALLET}/trades/more").json()

    assert [t["identifier"] for t in first["trades"]] == ["s1", "b1"]
    assert first["has_more"] is True
    assert first["total_count"] == 3
    assert cached["from_cache"] is True
    assert [t["identifier"] for t in more["trades"]] == ["s1", "b1", "b2"]
    assert more["has_more"] is False
    assert more["error"] is None


def test_upstream_failure_reported_in_body():
    request = httpx.Request("GET", "https://upstream.test")
    failures = {1: httpx.HTTPStatusError("429", request=request, response=httpx.Response(429, request=request))}
    client, _ = make_client(failures=failures)
    with client:
        body = client.get(f"/wallets/{WALLET}/trades").json()

    assert body["error_type"] == "rate_limited"
    assert body["has_more"] is False
    assert body["trades"] == []


def test_refresh_and_clear_cache():
    client, services = make_client()
    with client:
        client.get(f"/wallets/{WALLET}/trades")
        refreshed = client.post(f"/wallets/{WALLET}/trades/refresh").json()
        cleared = client.delete(f"/wallets/{WALLET}/cache").json()

    assert refreshed["from_cache"] is False
    assert cleared["status"] == "ok"
    assert services.cache.get(WALLET) is None


def test_position_endpoint():
    client, _ = make_client()
    with client:
        body = client.get(f"/wallets/{WALLET}/tokens/{TOKEN}/position", params={"include_trades": True}).json()

    assert body["realized_pl"] == 100.0
    assert body["remaining"] == 60.0
    assert body["unrealized_pl"] == 120.0
    assert [t["identifier"] for t in body["trades"]] == ["s1", "b1"]


def test_position_store_failure_maps_to_http_status():
    client, _ = make_client(store_kwargs={"list_error": ConnectionError("connection refused")})
    with client:
        response = client.get(f"/wallets/{WALLET}/tokens/{TOKEN}/position")
    assert response.status_code == 503


def test_note_roundtrip():
    client, _ = make_client()
    with client:
        legacy = client.get(f"/wallets/{WALLET}/tokens/MINT_B/note").json()
        saved = client.put(f"/wallets/{WALLET}/tokens/{TOKEN}/note", json={"text": "scale out at 2x"}).json()
        resolved = client.get(f"/wallets/{WALLET}/tokens/{TOKEN}/note").json()

    assert legacy["note"] == "legacy plan"
    assert saved["complete"] is True
    assert saved["succeeded"] == ["s1", "b1"]
    assert resolved["note"] == "scale out at 2x"


def test_partial_note_save_is_not_an_http_error():
    client, _ = make_client(store_kwargs={"failing": ("b1",)})
    with client:
        response = client.put(f"/wallets/{WALLET}/tokens/{TOKEN}/note", json={"text": "plan"})

    body = response.json()
    assert response.status_code == 200
    assert body["partial"] is True
    assert body["failed"][0]["identifier"] == "b1"


def test_saved_note_shows_on_next_history_load():
    client, services = make_client()
    with client:
        client.get(f"/wallets/{WALLET}/trades")
        client.post(f"/wallets/{WALLET}/trades/more")
        client.put(f"/wallets/{WALLET}/tokens/{TOKEN}/note", json={"text": "trim into strength"})
        assert services.loader.loaded_trades(WALLET) == []
        reloaded = client.get(f"/wallets/{WALLET}/trades").json()

    assert reloaded["from_cache"] is False
    notes_by_id = {t["identifier"]: t["note"] for t in reloaded["trades"]}
    assert notes_by_id == {"s1": "trim into strength", "b1": "trim into strength"}
