import pytest
from fastapi.testclient import TestClient

import seewetter.storage as storage
from seewetter import auth, bora, fetcher, main, refresh
from seewetter.errors import UpstreamError


@pytest.fixture()
def client(local_store):
    main.limiter.reset()
    return TestClient(main.app)


def _payload():
    return {
        "sourceUrl": "https://meteo.hr/x",
        "title": "Marine forecast on 18.02.2026 at 06 UTC",
        "issuedAt": "2026-02-18T06:00:00.000Z",
        "fetchedAt": "2026-02-18T06:05:00.000Z",
        "blocks": {
            "warning": {"label": "Warning", "text": "Gale"},
            "synopsis": {"label": "", "text": ""},
            "forecast_12h": {"label": "", "text": ""},
            "outlook_12h": {"label": "", "text": ""},
        },
    }


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_cold_cache_is_503(client):
    r = client.get("/v1/seewetter", params={"lang": "de"})
    assert r.status_code == 503
    body = r.json()
    assert body["ok"] is False
    assert body["ready"] is False
    assert body["lang"] == "de"


def test_cached_bulletin_is_served_without_caching(client):
    storage.put_payload("en", _payload())
    r = client.get("/v1/seewetter", params={"lang": "en"})

    assert r.status_code == 200
    assert "no-store" in r.headers["cache-control"]
    body = r.json()
    assert body["ok"] is True
    assert body["lang"] == "en"
    assert body["blocks"]["warning"]["text"] == "Gale"


def test_french_and_default_language_read_english(client):
    storage.put_payload("en", _payload())
    en = client.get("/v1/seewetter", params={"lang": "en"}).json()
    assert client.get("/v1/seewetter", params={"lang": "fr"}).json() == en
    assert client.get("/v1/seewetter").json() == en


def test_malformed_cache_object_is_502(client, local_store):
    path = local_store / "seewetter" / "de.json"
    path.parent.mkdir(parents=True)
    path.write_text("[]", encoding="utf-8")

    r = client.get("/v1/seewetter", params={"lang": "de"})
    assert r.status_code == 502
    assert r.json()["error"] == "malformed cache object"


def test_cache_read_failure_is_502(client, monkeypatch):
    def broken(lang):
        raise UpstreamError("AccessDenied")

    monkeypatch.setattr(storage, "get_payload", broken)
    r = client.get("/v1/seewetter", params={"lang": "de"})
    assert r.status_code == 502
    assert "cache read failed" in r.json()["error"]


def _fake_refresh(ok):
    calls = []

    async def fake(langs=None, client=None):
        calls.append(langs)
        return {"ok": ok, "refreshedAt": "2026-02-18T06:05:00.000Z", "results": []}

    return fake, calls


@pytest.fixture()
def production(monkeypatch):
    monkeypatch.setattr(auth, "SEEWETTER_ENV", "production")
    monkeypatch.setattr(auth, "REFRESH_TOKEN", "s3cret")


def test_refresh_requires_credentials_in_production(client, production, monkeypatch):
    fake, calls = _fake_refresh(True)
    monkeypatch.setattr(refresh, "refresh_all", fake)

    r = client.post("/v1/seewetter/refresh-all")
    assert r.status_code == 401
    assert r.json()["ok"] is False
    assert calls == []


def test_refresh_with_bearer_token(client, production, monkeypatch):
    fake, calls = _fake_refresh(True)
    monkeypatch.setattr(refresh, "refresh_all", fake)

    r = client.post("/v1/seewetter/refresh-all", headers={"Authorization": "Bearer s3cret"})
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert len(calls) == 1


def test_refresh_from_scheduler(client, production, monkeypatch):
    fake, _ = _fake_refresh(True)
    monkeypatch.setattr(refresh, "refresh_all", fake)

    r = client.get("/v1/seewetter/refresh-all", headers={"x-vercel-cron": "1"})
    assert r.status_code == 200


def test_refresh_with_no_successes_is_500(client, production, monkeypatch):
    fake, _ = _fake_refresh(False)
    monkeypatch.setattr(refresh, "refresh_all", fake)

    r = client.post("/v1/seewetter/refresh-all", headers={"Authorization": "Bearer s3cret"})
    assert r.status_code == 500
    assert r.json()["ok"] is False


def test_raw_report_upstream_failure_is_502(client, monkeypatch):
    async def failing(lang, client=None):
        raise UpstreamError("upstream 503", status=503)

    monkeypatch.setattr(fetcher, "fetch_bulletin_html", failing)
    r = client.get("/v1/seewetter/report", params={"lang": "hr"})
    assert r.status_code == 502
    assert r.json()["status"] == 503


def test_raw_report_passes_html_through(client, monkeypatch):
    async def page(lang, client=None):
        return "<html>" + lang + "</html>"

    monkeypatch.setattr(fetcher, "fetch_bulletin_html", page)
    body = client.get("/v1/seewetter/report", params={"lang": "fr"}).json()
    assert body["html"] == "<html>en</html>"
    assert body["source"].endswith("el=jadran_e")


def test_bora_invalid_now_is_400(client):
    r = client.get("/v1/bora", params={"now": "yesterday-ish"})
    assert r.status_code == 400


def test_bora_upstream_failure_is_502(client, monkeypatch):
    async def failing(now=None, client=None):
        raise UpstreamError("weather API 500")

    monkeypatch.setattr(bora, "fetch_delta_series", failing)
    r = client.get("/v1/bora")
    assert r.status_code == 502


def test_bora_charts(client, monkeypatch):
    seen = {}

    async def series(now=None, client=None):
        seen["now"] = now
        inland = {"time": ["2026-02-18T00:00", "2026-02-18T06:00"], "pressure_msl": [1020.0, 1021.0]}
        coastal = {
            "time": ["2026-02-18T00:00", "2026-02-18T06:00"],
            "pressure_msl": [1014.0, 1012.0],
            "windspeed_10m": [18.52, 37.04],
            "winddirection_10m": [40.0, 50.0],
        }
        return bora.DeltaSeries(now=bora._utc(now), points=bora.compute_delta_frame(inland, coastal))

    monkeypatch.setattr(bora, "fetch_delta_series", series)
    r = client.get("/v1/bora", params={"now": "2026-02-18T00:10:00Z"})

    assert r.status_code == 200
    assert seen["now"].hour == 0
    body = r.json()
    assert body["week"] == {"labels": ["18.02", "06"], "data": [-6.0, -9.0]}
    assert body["h48"] == {"labels": ["06"], "data": [-9.0]}
    assert body["next36h"] == {"minDelta": -9.0, "level": "storm"}
    assert body["now"]["timeUtc"] == "2026-02-18T00:00"
    assert body["now"]["windKn"] == 10.0
