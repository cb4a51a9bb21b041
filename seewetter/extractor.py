"""
Bulletin section extraction.

The upstream page has no stable markup, so extraction is a chain of small
pure steps: structural parse of the h5-delimited sections, a portal-page
check on that result, and a marker-based scan of the plain body text when
the structural result is unusable. Nothing here raises on odd markup; the
worst case is an empty section list.
"""

from __future__ import annotations

import re
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import pytz
from bs4 import BeautifulSoup, Tag

from seewetter import vocab
from seewetter.models import RawSection, iso_utc

logger = logging.getLogger(__name__)

CONTENT_SELECTORS = (
    "#content .prognoza",
    "#content .tekst",
    "#content",
    "main article",
    "main",
    "article",
    ".content",
)

TEXT_TAGS = ("p", "div", "span")
LIST_TAGS = ("ul", "ol")


@dataclass
class ExtractedBulletin:
    title: str
    issued_at: Optional[str]
    raw_sections: List[RawSection] = field(default_factory=list)
    method: str = "structural"


def clean_text(s: Optional[str]) -> str:
    s = (s or "").replace("\u00a0", " ")
    s = re.sub(r"[ \t]+\n", "\n", s)
    s = re.sub(r"\n{3,}", "\n\n", s)
    return s.strip()


def flatten_whitespace(s: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (s or "").replace("\u00a0", " ")).strip()


# ---------- Content root / title / issue time ----------
def select_content_root(soup: BeautifulSoup) -> Tag:
    for sel in CONTENT_SELECTORS:
        node = soup.select_one(sel)
        if node is not None:
            return node
    return soup


def resolve_title(soup: BeautifulSoup) -> str:
    h4s = soup.find_all("h4")
    for h in h4s:
        t = clean_text(h.get_text())
        if vocab.DATE_RE.search(t):
            return t

    candidates = []
    if h4s:
        candidates.append(h4s[0].get_text())
    h1 = soup.find("h1")
    if h1 is not None:
        candidates.append(h1.get_text())
    if soup.title is not None:
        candidates.append(soup.title.get_text())

    for c in candidates:
        t = clean_text(c)
        if t:
            return t
    return vocab.DEFAULT_TITLE


def _issued_from_match(m: re.Match) -> Optional[str]:
    dd, mm, yyyy, hh = (int(g) for g in m.groups())
    try:
        # Bulletin hours are taken as UTC.
        dt = pytz.UTC.localize(datetime(yyyy, mm, dd, hh))
    except ValueError:
        return None
    return iso_utc(dt)


def resolve_issued_at(title: str, body_text: str) -> Optional[str]:
    m = vocab.TITLE_ISSUED_RE.search(title or "")
    if m:
        issued = _issued_from_match(m)
        if issued:
            return issued

    for rx in vocab.BODY_ISSUED_RES:
        m = rx.search(body_text or "")
        if m:
            return _issued_from_match(m)
    return None


# ---------- Structural scan ----------
def _sibling_text(node: Tag) -> Optional[str]:
    tag = (node.name or "").lower()
    if tag in TEXT_TAGS:
        return clean_text(node.get_text()) or None
    if tag in LIST_TAGS:
        items = [clean_text(li.get_text()) for li in node.find_all("li")]
        items = [x for x in items if x]
        if items:
            return "\n".join(f"- {x}" for x in items)
    return None


def structural_sections(root: Tag) -> List[RawSection]:
    sections: List[RawSection] = []
    for heading in root.find_all("h5"):
        label = clean_text(heading.get_text())
        if not label:
            continue

        parts = []
        for sib in heading.find_next_siblings():
            if sib.name == "h5":
                break
            t = _sibling_text(sib)
            if t:
                parts.append(t)

        text = clean_text("\n\n".join(parts))
        if text:
            sections.append(RawSection(label=label, text=text))
    return sections


def looks_like_portal(title: str, sections: List[RawSection]) -> bool:
    if len(sections) < 2:
        return True

    t = (title or "").lower()
    if not vocab.DATE_RE.search(t) and any(name in t for name in vocab.PORTAL_TITLES):
        return True

    for sec in sections:
        label = sec.label.lower()
        if any(k in label for k in vocab.OFF_TOPIC_KEYWORDS):
            return True
    return False


# ---------- Marker fallback ----------
def _marker_pattern(markers: List[str]) -> Optional[re.Pattern]:
    if not markers:
        return None
    # Longest first so that at one position the full phrase wins.
    alts = sorted((re.escape(m) for m in markers), key=len, reverse=True)
    return re.compile("|".join(alts), re.IGNORECASE)


def marker_sections(body_text: str, lang: str) -> List[RawSection]:
    table = vocab.MARKERS.get(lang) or vocab.MARKERS[vocab.DEFAULT_LANG]
    patterns = [(topic, _marker_pattern(table.get(topic, []))) for topic in vocab.CANONICAL_SLOTS]

    sections: List[RawSection] = []
    for i, (topic, rx) in enumerate(patterns):
        if rx is None:
            continue
        m = rx.search(body_text)
        if not m:
            continue

        start = m.end()
        end = len(body_text)
        for _, later in patterns[i + 1:]:
            if later is None:
                continue
            nxt = later.search(body_text, start)
            if nxt and nxt.start() < end:
                end = nxt.start()

        text = clean_text(body_text[start:end].lstrip(" :.-–"))
        sections.append(RawSection(label=m.group(0), text=text))
    return sections


# ---------- Entry point ----------
def extract_sections(html: str, lang: str) -> ExtractedBulletin:
    soup = BeautifulSoup(html or "", "html.parser")
    for junk in soup(["script", "style", "noscript"]):
        junk.decompose()
    root = select_content_root(soup)
    title = resolve_title(soup)
    body_text = flatten_whitespace(soup.get_text(" "))
    issued_at = resolve_issued_at(title, body_text)

    sections = structural_sections(root)
    if not looks_like_portal(title, sections):
        return ExtractedBulletin(title=title, issued_at=issued_at, raw_sections=sections)

    logger.info(
        "Structural parse unusable for %s (%d sections, title=%r), using marker fallback",
        lang, len(sections), title,
    )
    fallback = marker_sections(body_text, lang)
    return ExtractedBulletin(title=title, issued_at=issued_at, raw_sections=fallback, method="markers")
