from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from seewetter import storage, vocab
from seewetter.errors import CacheMiss

logger = logging.getLogger(__name__)


def normalize_lang(raw: Optional[str]) -> str:
    lang = (raw or "").strip().lower()
    if lang not in vocab.SUPPORTED_LANGS:
        return vocab.DEFAULT_LANG
    # Aliased languages are served from another language's cache entry.
    return vocab.LANG_ALIASES.get(lang, lang)


def read_bulletin(raw_lang: Optional[str]) -> Dict[str, Any]:
    """Cached bulletin for a requested language.

    Never scrapes; a language that was not refreshed yet raises CacheMiss.
    """
    lang = normalize_lang(raw_lang)
    try:
        payload = storage.get_payload(lang)
    except CacheMiss:
        logger.warning("Bulletin cache empty for %s", lang)
        raise
    return {"ok": True, "lang": lang, **payload}
