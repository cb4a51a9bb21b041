from __future__ import annotations

from typing import Dict, List, Optional

from seewetter import vocab
from seewetter.models import CanonicalBlock, RawSection


def label_matches(slot: str, label: str) -> bool:
    h = (label or "").lower()
    if slot in vocab.SLOTS_REQUIRING_12 and "12" not in h:
        return False
    return any(k in h for k in vocab.SLOT_KEYWORDS[slot])


def map_to_blocks(raw_sections: List[RawSection]) -> Dict[str, CanonicalBlock]:
    """Assign extracted sections to the four canonical slots.

    Keyword match on the heading first; if that fills fewer than two slots,
    the first four sections are taken in canonical order. The result always
    has all four keys.
    """
    blocks: Dict[str, Optional[CanonicalBlock]] = {slot: None for slot in vocab.CANONICAL_SLOTS}

    for sec in raw_sections:
        for slot in vocab.CANONICAL_SLOTS:
            if blocks[slot] is None and label_matches(slot, sec.label):
                blocks[slot] = CanonicalBlock(label=sec.label, text=sec.text)
                break

    filled = sum(1 for b in blocks.values() if b is not None)
    if filled < 2 and len(raw_sections) >= 2:
        for slot, sec in zip(vocab.CANONICAL_SLOTS, raw_sections):
            if blocks[slot] is None:
                blocks[slot] = CanonicalBlock(label=sec.label, text=sec.text)

    return {slot: b if b is not None else CanonicalBlock() for slot, b in blocks.items()}


def blocks_to_dict(blocks: Dict[str, CanonicalBlock]) -> Dict[str, Dict[str, str]]:
    return {slot: blocks[slot].to_dict() for slot in vocab.CANONICAL_SLOTS}
