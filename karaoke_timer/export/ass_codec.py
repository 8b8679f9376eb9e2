"""ASS Dialogue line decoding and encoding for the karaoke timer.

Decoding turns a lyric document line into tokens: ASS Dialogue lines become
timed ``lyric`` tokens (one per ``\\k`` segment), plain lines become
``unmapped`` syllable tokens split on the ``|`` boundary marker.
Encoding turns a fully timed row back into a single Dialogue line.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from karaoke_timer.export.karaoke_tags import generate_karaoke_text, has_karaoke_tags, parse_karaoke_text
from karaoke_timer.lyrics.syllablize import MARKER
from karaoke_timer.lyrics.tokens import DISPLAY_DELIMITER, Timing, Token, TokenKind
from karaoke_timer.utils.logging import debug

if TYPE_CHECKING:
    from karaoke_timer.lyrics.model import LyricsDocument

DIALOGUE_PREFIX = "Dialogue"
DIALOGUE_RE = re.compile(
    r"^Dialogue: (\d+),"
    r"(\d):(\d\d):(\d\d)\.(\d\d),"
    r"(\d):(\d\d):(\d\d)\.(\d\d),"
    r"([^,]+),,0,0,0,,(.*)$"
)
EVENTS_SECTION = "[Events]"
NBSP = "\u00a0"
OUTPUT_FORMATS = ("new", "full")
# the Dialogue time field holds a single hour digit
MAX_ASS_CS = 10 * 360000 - 1


class AssFormatError(ValueError):
    """A line claims to be an ASS Dialogue line but does not parse as one."""


@dataclass
class DialogueInfo:
    start: float
    end: float
    style: str
    text: str
    layer: int = 0


# ── Time formatting ──────────────────────────────────────────────────────────

def _to_seconds(h: str, m: str, s: str, cs: str) -> float:
    return int(h) * 3600 + int(m) * 60 + int(s) + int(cs) / 100


def format_ass_time(seconds: float) -> str:
    """Format seconds as ``H:MM:SS.CC``, truncating to the centisecond.

    Times are clamped to ``0:00:00.00 .. 9:59:59.99`` so the output always
    decodes again.
    """
    # round() first so 0.29 * 100 == 28.999999999999996 still truncates to 29
    total_cs = min(MAX_ASS_CS, max(0, math.floor(round(seconds * 100, 6))))
    h, rem = divmod(total_cs, 360000)
    m, rem = divmod(rem, 6000)
    s, cs = divmod(rem, 100)
    return f"{h}:{m:02d}:{s:02d}.{cs:02d}"


# ── Decoding ─────────────────────────────────────────────────────────────────

def decode_line(line: str) -> DialogueInfo | None:
    """Parse an ASS Dialogue line; ``None`` for lines that are not dialogue.

    Raises AssFormatError when the line starts with ``Dialogue`` but does
    not follow the expected field layout.
    """
    if not line.startswith(DIALOGUE_PREFIX):
        return None
    m = DIALOGUE_RE.match(line)
    if m is None:
        raise AssFormatError(f"Not a valid ASS line: {line}")
    return DialogueInfo(
        layer=int(m.group(1)),
        start=_to_seconds(*m.group(2, 3, 4, 5)),
        end=_to_seconds(*m.group(6, 7, 8, 9)),
        style=m.group(10),
        text=m.group(11),
    )


def decode_dialogue(dialogue: DialogueInfo, line_index: int | None = None) -> list[Token]:
    r"""Tokens for a decoded Dialogue line.

    Karaoke-tagged text yields one timed lyric per segment, all sharing the
    dialogue end; the segment start advances by the preceding durations.
    """
    if not dialogue.text:
        return [Token(TokenKind.newline, source_line=line_index)]

    if not has_karaoke_tags(dialogue.text):
        return [Token(
            TokenKind.lyric, dialogue.text, line_index,
            Timing(dialogue.start, dialogue.end, dialogue.end - dialogue.start),
        )]

    tokens: list[Token] = []
    offset_cs = 0
    for seg in parse_karaoke_text(dialogue.text):
        tokens.append(Token(
            TokenKind.lyric,
            seg.text.replace(" ", NBSP),
            line_index,
            Timing(dialogue.start + offset_cs / 100, dialogue.end, seg.duration_cs / 100),
        ))
        offset_cs += seg.duration_cs
    return tokens or [Token(TokenKind.newline, source_line=line_index)]


def decode_plain_line(line: str, line_index: int | None = None) -> list[Token]:
    """Tokens for a non-dialogue line: one unmapped token per syllable."""
    pieces = [p for p in line.split(MARKER) if p]
    if not pieces:
        return [Token(TokenKind.newline, source_line=line_index)]
    return [
        Token(TokenKind.unmapped, f"{DISPLAY_DELIMITER}{p}{DISPLAY_DELIMITER}", line_index)
        for p in pieces
    ]


def strip_ass_header(text: str) -> str:
    """Drop the script header of a full ASS file, keeping the event lines.

    Returns the text unchanged when no event content is found.
    """
    lines = text.split("\n")
    for i, line in enumerate(lines):
        if not line:
            continue
        if line != EVENTS_SECTION and line.startswith("[") and line.endswith("]"):
            continue
        if not line.startswith("Dialogue:") and ":" in line:
            continue
        if line.startswith(";"):
            continue

        if line == EVENTS_SECTION:
            # skip the section marker and its Format line
            return "\n".join(lines[i + 2:])
        return "\n".join(lines[i:])
    return text


# ── Encoding ─────────────────────────────────────────────────────────────────

def encode_timed_row(tokens: list[Token], style: str = "Romaji", time_shift: float = 0.0) -> str:
    r"""Encode one fully timed row as a Dialogue line.

    Rows with several syllables get one ``{\k<cs>}`` segment per syllable.
    """
    if not tokens:
        raise ValueError("Cannot encode an empty row")
    for tok in tokens:
        if tok.timing is None or tok.timing.is_open:
            raise ValueError(f"Cannot encode untimed syllable: {tok.content!r}")

    start = format_ass_time(tokens[0].timing.start + time_shift)
    end = format_ass_time(tokens[-1].timing.end + time_shift)
    text = generate_karaoke_text([(t.syllable, t.timing.kdur) for t in tokens])
    return f"Dialogue: 0,{start},{end},{style},,0,0,0,,{text}"


def _is_fully_timed(tokens: Iterable[Token]) -> bool:
    return all(t.timing is not None and not t.timing.is_open for t in tokens)


def render_timings(
    document: LyricsDocument,
    style: str = "Romaji",
    time_shift: float = 0.0,
    output_format: str = "new",
) -> str:
    """Produce the timing output for a document.

    ``new`` lists only the timed rows; ``full`` reproduces every source line,
    replacing the lines of timed rows with their Dialogue encoding.
    """
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format: {output_format}")

    encoded: list[tuple[int | None, str]] = []
    for row in document.rows:
        tokens = document.row_tokens(row)
        if not _is_fully_timed(tokens):
            continue
        encoded.append((tokens[0].source_line, encode_timed_row(tokens, style, time_shift)))
    debug(f"Rendering {len(encoded)}/{len(document.rows)} timed rows as '{output_format}'")

    if output_format == "new":
        return "\n".join(line for _, line in encoded)

    by_source: dict[int, str] = {}
    for src, line in encoded:
        if src is not None:
            by_source.setdefault(src, line)
    original = document.text.split("\n")
    return "\n".join(by_source.get(i, line) for i, line in enumerate(original))
