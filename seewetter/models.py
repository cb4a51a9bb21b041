from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class RawSection:
    label: str
    text: str


@dataclass(frozen=True)
class CanonicalBlock:
    label: str = ""
    text: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


# ---------- Persisted payload ----------
class BlockModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    label: str = ""
    text: str = ""


class BlocksModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    warning: BlockModel
    synopsis: BlockModel
    forecast_12h: BlockModel
    outlook_12h: BlockModel


class BulletinPayload(BaseModel):
    """One language's bulletin exactly as it is stored in the cache."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    source_url: str = Field(..., alias="sourceUrl")
    title: str
    issued_at: Optional[str] = Field(default=None, alias="issuedAt")
    fetched_at: str = Field(..., alias="fetchedAt")
    blocks: BlocksModel

    def to_json_dict(self) -> Dict:
        return self.model_dump(by_alias=True)


def iso_utc(dt: datetime) -> str:
    # 2026-02-18T06:00:00.000Z
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
