from __future__ import annotations

from typing import Optional


class SeewetterError(Exception):
    pass


class UpstreamError(SeewetterError):
    """An external source (bulletin site, weather API, object store) failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class CacheMiss(SeewetterError):
    def __init__(self, lang: str):
        super().__init__(f"no cached bulletin for '{lang}'")
        self.lang = lang


class MalformedCacheObject(SeewetterError):
    def __init__(self, lang: str, reason: str = ""):
        msg = f"cached bulletin for '{lang}' is malformed"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.lang = lang
