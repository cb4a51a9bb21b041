from __future__ import annotations

import re
from typing import Dict, List, Tuple

# Language tables. Adding a language means adding rows here, not code.

SUPPORTED_LANGS = ("de", "en", "it", "hr", "fr")
CACHED_LANGS = ("de", "en", "it", "hr")
LANG_ALIASES = {"fr": "en"}
DEFAULT_LANG = "en"

_SOURCE_BASE = "https://meteo.hr/prognoze_e.php?section=prognoze_specp&param=jadran&el="
SOURCE_URLS: Dict[str, str] = {
    "de": _SOURCE_BASE + "jadran_n",
    "en": _SOURCE_BASE + "jadran_e",
    "it": _SOURCE_BASE + "jadran_t",
    "hr": _SOURCE_BASE + "jadran_h",
}

CANONICAL_SLOTS = ("warning", "synopsis", "forecast_12h", "outlook_12h")

# Slots that additionally need "12" in the heading to tell them apart.
SLOTS_REQUIRING_12 = frozenset({"forecast_12h", "outlook_12h"})

# Lower-case substrings per slot, covering de/en/it/hr/fr headings.
SLOT_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "warning": ("warn", "avvis", "avverten", "upozor", "avertissement", "avis", "alerte"),
    "synopsis": ("wetterlage", "synop", "situaz", "sinop", "stanje", "situation"),
    "forecast_12h": ("vorhersage", "forecast", "previs", "progno", "prévision", "prevision"),
    "outlook_12h": ("aussicht", "outlook", "tenden", "tendanc", "izgled", "perspective"),
}

# Marker strings for the text fallback, per language and canonical slot,
# scanned in slot order. Matching is case-insensitive.
MARKERS: Dict[str, Dict[str, List[str]]] = {
    "de": {
        "warning": ["Warnung", "Sturmwarnung"],
        "synopsis": ["Wetterlage"],
        "forecast_12h": [
            "Vorhersage für die nächsten 12 Stunden",
            "Wettervorhersage für die nächsten 12 Stunden",
        ],
        "outlook_12h": [
            "Aussichten für die weiteren 12 Stunden",
            "Aussicht für die weiteren 12 Stunden",
        ],
    },
    "en": {
        "warning": ["Warning"],
        "synopsis": ["Synopsis", "Weather situation"],
        "forecast_12h": [
            "Weather forecast for the next 12 hours",
            "Forecast for the next 12 hours",
        ],
        "outlook_12h": [
            "Outlook for the following 12 hours",
            "Outlook for the next 12 hours",
        ],
    },
    "it": {
        "warning": ["Avviso", "Avvertenza"],
        "synopsis": ["Situazione meteorologica", "Situazione"],
        "forecast_12h": [
            "Previsione del tempo per le prossime 12 ore",
            "Previsioni per le prossime 12 ore",
        ],
        "outlook_12h": [
            "Tendenza per le successive 12 ore",
            "Tendenza per le prossime 12 ore",
        ],
    },
    "hr": {
        "warning": ["Upozorenje"],
        "synopsis": ["Stanje", "Sinoptička situacija"],
        "forecast_12h": [
            "Prognoza vremena za sljedećih 12 sati",
            "Prognoza za sljedećih 12 sati",
        ],
        "outlook_12h": [
            "Izgledi vremena za sljedećih 12 sati",
            "Izgled vremena za idućih 12 sati",
        ],
    },
    "fr": {
        "warning": ["Avertissement", "Avis de tempête"],
        "synopsis": ["Situation générale", "Situation"],
        "forecast_12h": ["Prévisions pour les prochaines 12 heures"],
        "outlook_12h": ["Tendance pour les 12 heures suivantes"],
    },
}

# Titles of the upstream landing page; with no date in them the page is a portal.
PORTAL_TITLES = (
    "državni hidrometeorološki zavod",
    "meteorological and hydrological service",
    "dhmz",
    "meteo.hr",
)

# Section labels that never belong to a marine bulletin.
OFF_TOPIC_KEYWORDS = (
    "klima",
    "climate",
    "hidrolog",
    "hydrolog",
    "agrometeo",
    "biometeo",
    "vijesti",
    "news",
    "aktualno",
    "kontakt",
    "contact",
    "pollen",
    "peludn",
    "kvaliteta zraka",
    "air quality",
)

DEFAULT_TITLE = "Seewetterbericht Split"

DATE_RE = re.compile(r"\b\d{1,2}\.\d{1,2}\.\d{4}\b")

_DATE = r"(\d{1,2})\.\s?(\d{1,2})\.\s?(\d{4})\.?"
_HOUR = r"(\d{1,2})"

TITLE_ISSUED_RE = re.compile(
    r"\b(?:vom|on|del|od|dana)\s+" + _DATE + r"\s+(?:um|at|alle|ore|u)\s+" + _HOUR,
    re.IGNORECASE,
)

# Tried in order over the whitespace-normalized body text.
BODY_ISSUED_RES = (
    re.compile(r"\b(?:vom|del)\s+" + _DATE + r"\s+(?:um|alle|ore)\s+" + _HOUR, re.IGNORECASE),
    re.compile(r"\bissued\s+on\s+" + _DATE + r"\s+at\s+" + _HOUR, re.IGNORECASE),
    re.compile(r"\bizdan[oa]?\s+(?:dana\s+)?" + _DATE + r"\s+u\s+" + _HOUR, re.IGNORECASE),
    re.compile(r"\bod\s+" + _DATE + r"\s+u\s+" + _HOUR, re.IGNORECASE),
)
