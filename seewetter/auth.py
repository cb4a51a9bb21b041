from __future__ import annotations

import os
import hmac
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException

# Unset or empty means production; the open refresh needs an explicit non-production value.
SEEWETTER_ENV = os.environ.get("SEEWETTER_ENV") or "production"
REFRESH_TOKEN = os.environ.get("SEEWETTER_REFRESH_TOKEN")  # manual triggers
SCHEDULER_HEADER = os.environ.get("SEEWETTER_SCHEDULER_HEADER", "X-Vercel-Cron")

@dataclass
class Caller:
    sub: str
    via: str

def _bearer(authorization: str | None) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        return ""
    return authorization.split(" ", 1)[1].strip()

def refresh_caller(scheduler: str | None, authorization: str | None) -> Optional[Caller]:
    if scheduler:
        return Caller(sub="scheduler", via="scheduler")

    token = _bearer(authorization)
    if REFRESH_TOKEN and token and hmac.compare_digest(token, REFRESH_TOKEN):
        return Caller(sub="token", via="bearer")

    if SEEWETTER_ENV.lower() != "production":
        return Caller(sub="dev", via="non-production")
    return None

def authorize_refresh(scheduler: str | None, authorization: str | None) -> Caller:
    caller = refresh_caller(scheduler, authorization)
    if caller is None:
        raise HTTPException(status_code=401, detail="unauthorized")
    return caller
