"""Romaji syllable boundary proposer.

Marks syllable boundaries in lyric text with ``|`` so each piece becomes
one timeable token.  The heuristic is dictionary driven:

- level 1: a boundary before every dictionary syllable (optionally with a
  leading doubled consonant, e.g. ``tte``), geminate clusters kept whole
- level 2: additionally between adjacent vowels and before a syllabic ``n``

Text is processed line by line; newlines separate rows.
"""

from __future__ import annotations

import re
from typing import Sequence

MARKER = "|"

# Mono-syllables and digraphs, in the order they are tried.
DEFAULT_DICTIONARY: tuple[str, ...] = (
    "ka", "ki", "ku", "ke", "ko",
    "sa", "shi", "su", "se", "so",
    "ta", "chi", "tsu", "te", "to",
    "na", "ni", "nu", "ne", "no",
    "ha", "hi", "fu", "he", "ho",
    "ma", "mi", "mu", "me", "mo",
    "ya", "yu", "yo",
    "ra", "ri", "ru", "re", "ro",
    "wa", "wo",
    "ga", "gi", "gu", "ge", "go",
    "za", "ji", "zu", "ze", "zo",
    "da", "de", "do",
    "ba", "bi", "bu", "be", "bo",
    "pa", "pi", "pu", "pe", "po",
    "kya", "kyu", "kyo", "sha", "shu", "sho", "cha", "chu", "cho",
    "nya", "nyu", "nyo", "hya", "hyu", "hyo", "mya", "myu", "myo",
    "rya", "ryu", "ryo", "gya", "gyu", "gyo", "ja", "ju", "jo",
    "bya", "byu", "byo", "pya", "pyu", "pyo",
)

# consonants that may double in front of a dictionary syllable
GEMINATE_PREFIXES = ("t", "s", "k")

# move the boundary in front of doubled consonants: "p|pa" -> "|ppa"
GEMINATE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(k)\|(k)", re.IGNORECASE), r"|\1\2"),
    (re.compile(r"(p)\|(p)", re.IGNORECASE), r"|\1\2"),
    (re.compile(r"(t)\|(t)", re.IGNORECASE), r"|\1\2"),
    (re.compile(r"(d)\|(zu)", re.IGNORECASE), r"|\1\2"),
)

_VOWEL_PAIR = re.compile(r"(?<=[aiueo])(?=[aiueo])", re.IGNORECASE)
_VOWEL_N = re.compile(r"(?<=[aiueo])(?=n)", re.IGNORECASE)

CLEANUP_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    # boundary goes in front of a whole run of opening brackets and quotes
    (re.compile(r'([("]+)\|'), r"|\1"),
    (re.compile(r" ([^| ])"), r" |\1"),
    (re.compile(r"\|{2,}"), "|"),
    (re.compile(r"^\|"), ""),
)

MACRON_MAP = {
    "ī": "ii",
    "ū": "uu",
    "ō": "ou",
    "ē": "ee",
    "ā": "aa",
    "…": "...",
    "“": '"',
    "”": '"',
    MARKER: "",
}


def unmacron(text: str) -> str:
    """Spell out macron vowels, flatten typographic punctuation, drop markers."""
    lines = []
    for line in text.split("\n"):
        for src, dst in MACRON_MAP.items():
            line = line.replace(src, dst)
        lines.append(line)
    return "\n".join(lines)


def strip_cr(text: str) -> str:
    return text.replace("\r", "")


def _entry_length(lower: str, pos: int, entries: Sequence[str]) -> int:
    best = 0
    for entry in entries:
        if len(entry) > best and lower.startswith(entry, pos):
            best = len(entry)
    return best


def _mark_dictionary(line: str, entries: Sequence[str]) -> str:
    lower = line.lower()
    out: list[str] = []
    i = 0
    while i < len(line):
        length = _entry_length(lower, i, entries)
        if lower[i] in GEMINATE_PREFIXES:
            doubled = _entry_length(lower, i + 1, entries)
            if doubled and doubled + 1 > length:
                length = doubled + 1

        if not length:
            out.append(line[i])
            i += 1
            continue

        if not out or out[-1] != MARKER:
            out.append(MARKER)
        out.append(line[i:i + length])
        i += length
    return "".join(out)


def _level1(line: str, entries: Sequence[str]) -> str:
    line = _mark_dictionary(line, entries)
    for pattern, repl in GEMINATE_RULES:
        line = pattern.sub(repl, line)
    return line


def _level2(line: str) -> str:
    line = _VOWEL_PAIR.sub(MARKER, line)
    return _VOWEL_N.sub(MARKER, line)


def _cleanup(line: str) -> str:
    for pattern, repl in CLEANUP_RULES:
        line = pattern.sub(repl, line)
    return line


def syllablize(text: str, level: int, dictionary: Sequence[str] | None = None) -> str:
    """Insert ``|`` boundaries into romanized lyric text.

    Level 0 returns the text untouched.  The result is stable under
    repeated application at the same level.
    """
    if level <= 0:
        return text

    entries = [e.lower() for e in (dictionary or DEFAULT_DICTIONARY)]
    lines = []
    for line in text.split("\n"):
        line = _level1(line, entries)
        if level >= 2:
            line = _level2(line)
        lines.append(_cleanup(line))
    return "\n".join(lines)


def prepare_lyrics(text: str, level: int, dictionary: Sequence[str] | None = None) -> str:
    """Normalize raw lyrics and propose syllable boundaries from scratch."""
    return syllablize(unmacron(strip_cr(text)), level, dictionary)
