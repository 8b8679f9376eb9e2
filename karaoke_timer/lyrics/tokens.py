"""Lyric document data model: tokens, timings and rows."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# wraps unmapped syllable text so boundaries stay visible to the operator
DISPLAY_DELIMITER = "-"


class TokenKind(str, Enum):
    text = "text"
    newline = "newline"
    brk = "break"
    lyric = "lyric"
    unmapped = "unmapped"


SEPARATOR_KINDS = (TokenKind.newline, TokenKind.brk)


@dataclass
class Timing:
    start: float
    end: float
    kdur: float

    @property
    def is_open(self) -> bool:
        """Start captured, end not yet committed."""
        return math.isinf(self.end)

    def contains(self, t: float) -> bool:
        return self.start <= t <= self.end

    def copy(self) -> Timing:
        return Timing(self.start, self.end, self.kdur)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.start, self.end, self.kdur)


@dataclass
class Token:
    kind: TokenKind
    content: str = ""
    source_line: int | None = None
    timing: Timing | None = None

    @property
    def is_separator(self) -> bool:
        return self.kind in SEPARATOR_KINDS

    @property
    def syllable(self) -> str:
        """Bare syllable text (display delimiters removed for unmapped tokens)."""
        if self.kind == TokenKind.unmapped:
            return self.content[len(DISPLAY_DELIMITER):-len(DISPLAY_DELIMITER)]
        return self.content

    def copy(self) -> Token:
        return Token(
            kind=self.kind,
            content=self.content,
            source_line=self.source_line,
            timing=self.timing.copy() if self.timing else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "content": self.content,
            "source_line": self.source_line,
            "timing": None if self.timing is None else [
                self.timing.start,
                None if self.timing.is_open else self.timing.end,
                self.timing.kdur,
            ],
        }


@dataclass
class Row:
    """A run of unmapped tokens timed together, by index into the token list."""
    index: int
    token_indices: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.token_indices)
