from __future__ import annotations

import os
import logging
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as dtparse
from fastapi import FastAPI, HTTPException, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from seewetter import auth, bora, fetcher, reader, refresh
from seewetter.errors import CacheMiss, MalformedCacheObject, UpstreamError
from seewetter.models import iso_utc

logging.basicConfig(
    level=os.environ.get("SEEWETTER_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Seewetter API"

app = FastAPI(title=APP_NAME, version="1.0.0")

limiter = Limiter(key_func=get_remote_address, default_limits=[os.environ.get("SEEWETTER_RATE_LIMIT", "60/minute")])
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

cors = os.environ.get("SEEWETTER_CORS_ORIGINS")
origins = [o.strip() for o in cors.split(",")] if cors else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

NO_STORE = {"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0"}


class HealthResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")
    ok: bool
    name: str
    version: str


def _json(payload: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=NO_STORE)


# ---------- Endpoints ----------
@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True, "name": APP_NAME, "version": app.version}


@app.get("/v1/seewetter")
def seewetter(request: Request, lang: Optional[str] = Query(default=None)):
    norm = reader.normalize_lang(lang)
    try:
        data = reader.read_bulletin(lang)
    except CacheMiss:
        return _json({
            "ok": False,
            "lang": norm,
            "ready": False,
            "error": "cache empty: no marine bulletin stored yet",
        }, status_code=503)
    except MalformedCacheObject as e:
        logger.error("%s", e)
        return _json({"ok": False, "lang": norm, "error": "malformed cache object"}, status_code=502)
    except UpstreamError as e:
        logger.error("Cache read failed for %s: %s", norm, e)
        return _json({"ok": False, "lang": norm, "error": f"cache read failed ({e})"}, status_code=502)
    return _json(data)


@app.api_route("/v1/seewetter/refresh-all", methods=["GET", "POST"])
@limiter.limit(os.environ.get("SEEWETTER_RATE_LIMIT_REFRESH", "10/minute"))
async def refresh_all(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
):
    try:
        caller = auth.authorize_refresh(request.headers.get(auth.SCHEDULER_HEADER), authorization)
    except HTTPException:
        return _json({"ok": False, "error": "unauthorized"}, status_code=401)

    logger.info("Refresh triggered via %s", caller.via)
    result = await refresh.refresh_all()
    return _json(result, status_code=200 if result["ok"] else 500)


@app.get("/v1/seewetter/report")
async def raw_report(request: Request, lang: str = Query(default="de")):
    # Raw upstream HTML, for checking what the extractor is looking at.
    norm = reader.normalize_lang(lang)
    try:
        html = await fetcher.fetch_bulletin_html(norm)
    except UpstreamError as e:
        return _json({"ok": False, "status": e.status, "error": str(e)}, status_code=502)
    return _json({
        "ok": True,
        "fetchedAt": iso_utc(datetime.now(timezone.utc)),
        "source": fetcher.source_url(norm),
        "html": html,
    })


@app.get("/v1/bora")
async def bora_forecast(request: Request, now: Optional[str] = Query(default=None)):
    ref = None
    if now:
        try:
            ref = dtparse.isoparse(now)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid 'now' timestamp: {now}")
    try:
        series = await bora.fetch_delta_series(now=ref)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=f"Bora data unavailable: {e}")
    return _json(bora.build_charts(series))
