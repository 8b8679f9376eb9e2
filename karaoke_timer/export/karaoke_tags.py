r"""Karaoke ASS tag parsing and generation (\k, \K, \kf, \ko).

Each tagged segment carries its own highlight duration in centiseconds.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

KARAOKE_TAG = re.compile(r"\{\\(?:kf|ko|k|K)(\d+)\}")


@dataclass
class KaraokeSegment:
    text: str
    duration_cs: int


def has_karaoke_tags(text: str) -> bool:
    return KARAOKE_TAG.search(text) is not None


def duration_cs(seconds: float) -> int:
    r"""Karaoke duration in whole centiseconds for \k tags (nearest, halves up)."""
    return math.floor(seconds * 100 + 0.5)


def parse_karaoke_text(text: str) -> list[KaraokeSegment]:
    """Split tagged dialogue text into (text, duration) segments.

    Text in front of the first tag is folded into the first segment.
    Segments with neither text nor duration are dropped.
    """
    matches = list(KARAOKE_TAG.finditer(text))
    if not matches:
        return []

    lead = text[:matches[0].start()]
    segments: list[KaraokeSegment] = []
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        seg_text = text[m.end():end]
        if i == 0:
            seg_text = lead + seg_text
        dur = int(m.group(1))
        if not seg_text and dur == 0:
            continue
        segments.append(KaraokeSegment(text=seg_text, duration_cs=dur))
    return segments


def generate_karaoke_text(syllables: list[tuple[str, float]], mode: str = "k") -> str:
    r"""Build karaoke-tagged text from (text, seconds) pairs.

    A single syllable is emitted as plain text without tags.
    """
    if not syllables:
        return ""
    if len(syllables) == 1:
        return syllables[0][0]

    tag = f"\\{mode}"
    return "".join(f"{{{tag}{duration_cs(secs)}}}{text}" for text, secs in syllables)
