"""Lyric document builder: source text -> token sequence -> timeable rows."""

from __future__ import annotations

from dataclasses import dataclass, field

from karaoke_timer.export.ass_codec import decode_dialogue, decode_line, decode_plain_line
from karaoke_timer.lyrics.tokens import Row, Token, TokenKind
from karaoke_timer.utils.logging import debug


def build_tokens(text: str) -> list[Token]:
    """Decode every source line and concatenate the tokens.

    Each line is terminated by a row separator so rows never run across
    source lines.  Raises AssFormatError on a malformed Dialogue line.
    """
    tokens: list[Token] = []
    for idx, line in enumerate(text.split("\n")):
        dialogue = decode_line(line)
        if dialogue is None:
            tokens.extend(decode_plain_line(line, idx))
        else:
            tokens.extend(decode_dialogue(dialogue, idx))
        if not tokens[-1].is_separator:
            tokens.append(Token(TokenKind.newline, source_line=idx))
    return tokens


def group_rows(tokens: list[Token]) -> list[Row]:
    """Collect maximal runs of unmapped tokens, in document order."""
    rows: list[Row] = []
    current: list[int] = []
    for i, tok in enumerate(tokens):
        if tok.kind == TokenKind.unmapped:
            current.append(i)
        elif tok.is_separator and current:
            rows.append(Row(len(rows), current))
            current = []
    if current:
        rows.append(Row(len(rows), current))
    return rows


@dataclass
class LyricsDocument:
    """One loaded lyric document: the source text, its tokens and rows."""
    text: str = ""
    tokens: list[Token] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> LyricsDocument:
        tokens = build_tokens(text)
        rows = group_rows(tokens)
        debug(f"Loaded lyrics: {len(tokens)} tokens, {len(rows)} rows")
        return cls(text=text, tokens=tokens, rows=rows)

    def row_tokens(self, row: Row | int) -> list[Token]:
        if isinstance(row, int):
            row = self.rows[row]
        return [self.tokens[i] for i in row.token_indices]

    def row_text(self, row: Row | int) -> str:
        return "".join(t.content for t in self.row_tokens(row))

    def is_row_timed(self, row: Row | int) -> bool:
        """A row counts as timed once its first syllable has a timing."""
        return self.row_tokens(row)[0].timing is not None

    def next_untimed_row(self, start: int) -> int:
        """First untimed row at or after ``start``; ``len(rows)`` if none."""
        cur = start
        while cur < len(self.rows) and self.is_row_timed(cur):
            cur += 1
        return cur

    def active_tokens(self, t: float) -> list[int]:
        """Indices of timed tokens whose interval covers playback time ``t``."""
        return [
            i for i, tok in enumerate(self.tokens)
            if tok.timing is not None and tok.timing.start <= t < tok.timing.end
        ]
