"""
Bora outlook from the Trieste - Maribor pressure difference.

Bora sets in when pressure at the coast (Trieste) drops several hPa below
pressure inland (Maribor); -4 hPa is the usual onset threshold, -8 hPa marks
a storm-force event. Data come from the Open-Meteo hourly forecast.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
import numpy as np
import pandas as pd

from seewetter.fetcher import fetch_station_series

logger = logging.getLogger(__name__)

INLAND = {"name": "Maribor", "lat": 46.55, "lon": 15.65}
COASTAL = {"name": "Trieste", "lat": 45.65, "lon": 13.77}

INLAND_HOURLY = ["pressure_msl"]
COASTAL_HOURLY = ["pressure_msl", "windspeed_10m", "winddirection_10m"]

FORECAST_DAYS = 7
TICK_HOURS = (0, 6, 12, 18)
KMH_PER_KNOT = 1.852

STORM_THRESHOLD = -8.0
BORA_THRESHOLD = -4.0


@dataclass
class DeltaSeries:
    now: pd.Timestamp
    points: pd.DataFrame  # index: UTC timestamps


def _utc(ts: datetime | pd.Timestamp | None) -> pd.Timestamp:
    t = pd.Timestamp(ts if ts is not None else datetime.now(timezone.utc))
    if t.tzinfo is None:
        return t.tz_localize("UTC")
    return t.tz_convert("UTC")


def _frame(hourly: Dict[str, Any], columns: Dict[str, str]) -> pd.DataFrame:
    times = list(hourly.get("time") or [])
    idx = pd.to_datetime(pd.Series(times, dtype="object"), utc=True)
    data: Dict[str, Any] = {"timeUtc": times}
    for src, dst in columns.items():
        vals = list(hourly.get(src) or [])
        vals = (vals + [None] * len(times))[: len(times)]
        data[dst] = pd.to_numeric(pd.Series(vals, dtype="object"), errors="coerce").to_numpy(dtype=float)
    return pd.DataFrame(data, index=pd.DatetimeIndex(idx))


def compute_delta_frame(inland: Dict[str, Any], coastal: Dict[str, Any]) -> pd.DataFrame:
    """Join both stations on their shared hours and derive the delta columns."""
    m = _frame(inland, {"pressure_msl": "inlandPressure"})
    t = _frame(coastal, {
        "pressure_msl": "coastalPressure",
        "windspeed_10m": "coastalWindKmh",
        "winddirection_10m": "coastalWindDir",
    }).drop(columns=["timeUtc"])

    df = m.join(t, how="inner")
    df = df.dropna(subset=["inlandPressure", "coastalPressure"])
    df = df[~df.index.duplicated(keep="first")].copy()

    df["delta"] = (df["coastalPressure"] - df["inlandPressure"]).round(1)
    df["hourUtc"] = df.index.hour
    df["day"] = df.index.day
    df["month"] = df.index.month
    return df


async def fetch_delta_series(
    now: datetime | None = None,
    client: Optional[httpx.AsyncClient] = None,
) -> DeltaSeries:
    now_ts = _utc(now)
    start_date = now_ts.date().isoformat()
    end_date = (now_ts + timedelta(days=FORECAST_DAYS)).date().isoformat()

    # Both stations or nothing.
    inland, coastal = await asyncio.gather(
        fetch_station_series(INLAND["lat"], INLAND["lon"], start_date, end_date, INLAND_HOURLY, client=client),
        fetch_station_series(COASTAL["lat"], COASTAL["lon"], start_date, end_date, COASTAL_HOURLY, client=client),
    )
    df = compute_delta_frame(inland, coastal)
    logger.info("Bora delta series %s..%s: %d hours", start_date, end_date, len(df))
    return DeltaSeries(now=now_ts, points=df)


def classify_level(min_delta: float) -> str:
    if min_delta <= STORM_THRESHOLD:
        return "storm"
    if min_delta <= BORA_THRESHOLD:
        return "bora"
    if min_delta < 0:
        return "watch"
    return "none"


def tick_label(hour: int, day: int, month: int) -> str:
    if hour == 0:
        return f"{day:02d}.{month:02d}"
    return f"{hour:02d}"


def _series(df: pd.DataFrame) -> Dict[str, List]:
    labels = [tick_label(int(h), int(d), int(m)) for h, d, m in zip(df["hourUtc"], df["day"], df["month"])]
    return {"labels": labels, "data": [float(v) for v in df["delta"]]}


def _num(v: Any) -> Optional[float]:
    if v is None or pd.isna(v):
        return None
    return float(v)


def nearest_index(index: pd.DatetimeIndex, now: pd.Timestamp) -> int:
    # argmin returns the first of equal distances
    diffs = np.abs((index - now).total_seconds().to_numpy())
    return int(np.argmin(diffs))


def build_charts(series: DeltaSeries) -> Dict[str, Any]:
    df = series.points
    now = series.now

    in36 = df[(df.index >= now) & (df.index <= now + pd.Timedelta(hours=36))]
    min_delta = float(in36["delta"].min()) if len(in36) else 0.0
    min_delta = round(min_delta, 1)

    ticks = df[df["hourUtc"].isin(TICK_HOURS)]
    ticks48 = ticks[(ticks.index >= now) & (ticks.index <= now + pd.Timedelta(hours=48))]

    now_point = None
    if len(df):
        row = df.iloc[nearest_index(df.index, now)]
        wind = _num(row["coastalWindKmh"])
        now_point = {
            "timeUtc": row["timeUtc"],
            "coastalPressure": _num(row["coastalPressure"]),
            "inlandPressure": _num(row["inlandPressure"]),
            "delta": _num(row["delta"]),
            "windKn": round(wind / KMH_PER_KNOT, 1) if wind is not None else None,
            "windDir": _num(row["coastalWindDir"]),
        }

    return {
        "week": _series(ticks),
        "h48": _series(ticks48),
        "next36h": {"minDelta": min_delta, "level": classify_level(min_delta)},
        "now": now_point,
    }
