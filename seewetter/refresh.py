from __future__ import annotations

import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx

from seewetter import fetcher, storage, vocab
from seewetter.extractor import extract_sections
from seewetter.mapper import blocks_to_dict, map_to_blocks
from seewetter.models import BulletinPayload, iso_utc

logger = logging.getLogger(__name__)

REFRESH_LANGS = tuple(
    l.strip()
    for l in os.environ.get("SEEWETTER_REFRESH_LANGS", ",".join(vocab.CACHED_LANGS)).split(",")
    if l.strip()
)


def build_payload(lang: str, html: str, fetched_at: Optional[datetime] = None) -> BulletinPayload:
    extracted = extract_sections(html, lang)
    blocks = map_to_blocks(extracted.raw_sections)
    logger.info(
        "Extracted %s bulletin via %s: %d sections, issuedAt=%s",
        lang, extracted.method, len(extracted.raw_sections), extracted.issued_at,
    )
    return BulletinPayload(
        source_url=fetcher.source_url(lang),
        title=extracted.title,
        issued_at=extracted.issued_at,
        fetched_at=iso_utc(fetched_at or datetime.now(timezone.utc)),
        blocks=blocks_to_dict(blocks),
    )


async def refresh_one(lang: str, client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    html = await fetcher.fetch_bulletin_html(lang, client=client)
    payload = build_payload(lang, html)
    storage.put_payload(lang, payload)
    return {
        "lang": lang,
        "ok": True,
        "sourceUrl": payload.source_url,
        "issuedAt": payload.issued_at,
        "title": payload.title,
    }


async def refresh_all(
    langs: Optional[Sequence[str]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """Refresh every language one after another.

    A failing language is recorded and skipped; its previous cache entry is
    left as it was. The run is ok when at least one language succeeded.
    """
    results: List[Dict[str, Any]] = []
    for lang in (langs if langs is not None else REFRESH_LANGS):
        try:
            results.append(await refresh_one(lang, client=client))
            logger.info("Refreshed %s bulletin", lang)
        except Exception as e:
            logger.error("Refresh failed for %s: %s", lang, e, exc_info=True)
            results.append({"lang": lang, "ok": False, "error": str(e) or type(e).__name__})

    return {
        "ok": any(r["ok"] for r in results),
        "refreshedAt": iso_utc(datetime.now(timezone.utc)),
        "results": results,
    }
