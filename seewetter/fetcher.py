from __future__ import annotations

import os
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Sequence

import httpx

from seewetter import vocab
from seewetter.errors import UpstreamError

logger = logging.getLogger(__name__)

USER_AGENT = os.environ.get("SEEWETTER_USER_AGENT", "wind2horizon/1.0 (+https://wind2horizon.com)")
HTTP_TIMEOUT_SECONDS = float(os.environ.get("SEEWETTER_HTTP_TIMEOUT_SECONDS", "20"))
OPEN_METEO_URL = os.environ.get("SEEWETTER_OPEN_METEO_URL", "https://api.open-meteo.com/v1/forecast")

# The bulletin changes without usable Last-Modified/ETag, so never accept a stored copy.
BULLETIN_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml",
    "Cache-Control": "no-cache, no-store, max-age=0",
    "Pragma": "no-cache",
}


@asynccontextmanager
async def _client_scope(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as c:
        yield c


def source_url(lang: str) -> str:
    try:
        return vocab.SOURCE_URLS[lang]
    except KeyError:
        raise ValueError(f"no bulletin source for language '{lang}'")


async def fetch_bulletin_html(lang: str, client: Optional[httpx.AsyncClient] = None) -> str:
    url = source_url(lang)
    async with _client_scope(client) as c:
        try:
            r = await c.get(url, headers=BULLETIN_HEADERS)
        except httpx.HTTPError as e:
            raise UpstreamError(f"bulletin fetch failed: {e}") from e
    if not r.is_success:
        raise UpstreamError(f"upstream {r.status_code}", status=r.status_code)
    logger.info("Fetched %s bulletin, length: %d chars", lang, len(r.text))
    return r.text


async def fetch_station_series(
    lat: float,
    lon: float,
    start_date: str,
    end_date: str,
    hourly: Sequence[str],
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """Hourly arrays from the weather-model API for one point.

    Returns the ``hourly`` object of the response, e.g.
      {"time": ["2026-02-18T00:00", ...], "pressure_msl": [1016.2, ...]}
    """
    params = {
        "latitude": lat,
        "longitude": lon,
        "hourly": ",".join(hourly),
        "start_date": start_date,
        "end_date": end_date,
        "timezone": "UTC",
    }
    async with _client_scope(client) as c:
        try:
            r = await c.get(OPEN_METEO_URL, params=params)
        except httpx.HTTPError as e:
            raise UpstreamError(f"weather API request failed for {lat},{lon}: {e}") from e
    if not r.is_success:
        raise UpstreamError(f"weather API {r.status_code} for {lat},{lon}", status=r.status_code)
    try:
        data = r.json()
    except ValueError as e:
        raise UpstreamError(f"weather API returned invalid JSON for {lat},{lon}") from e
    return data.get("hourly") or {}
