"""Syllable timing capture: turns operator taps into per-syllable timings.

The session walks the untimed rows of a lyric document.  The first tap of
a row anchors it to the playback position; every later tap is placed
relative to that anchor using the high-resolution clock, so syllable starts
are not limited by the coarse player position updates.  Ending a row
commits the end time to all its syllables.

Row states:
  idle       rowAnchor unset, waiting for the first tap of ``row_index``
  active     some syllables of the row tapped
  row_ready  every syllable tapped, waiting for end_row()
  done       no untimed rows left

Sequencing problems (tapping past the end, ending an incomplete row,
ambiguous deletes, empty undelete history) never raise: the command
returns False, leaves state untouched and records ``last_warning``.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any

from karaoke_timer.lyrics.model import LyricsDocument
from karaoke_timer.lyrics.tokens import Timing, Token
from karaoke_timer.timing.host import PlaybackHost
from karaoke_timer.utils.config import TimingConfig
from karaoke_timer.utils.logging import debug, info, warn

MARK_NEXT = "next"
MARK_STAGING = "staging"
MARK_FINISHED = "finished"
MARK_ACTIVE = "active"


class SessionState(str, Enum):
    idle = "idle"
    active = "active"
    row_ready = "row_ready"
    done = "done"


@dataclass
class UndeleteEntry:
    row_index: int
    timings: list[Timing | None]


class TimingSession:
    def __init__(
        self,
        host: PlaybackHost,
        document: LyricsDocument | str | None = None,
        correction_threshold: float = 0.5,
        play_cue: bool = True,
        undelete_depth: int = 50,
    ):
        self.host = host
        self.correction_threshold = correction_threshold
        self.play_cue = play_cue
        self.undelete_depth = undelete_depth

        self.document = LyricsDocument()
        self.row_index = 0
        self.row_anchor: float | None = None
        self.tap_timestamps: list[float] = []
        self.undelete_history: deque[UndeleteEntry] = deque(maxlen=undelete_depth)
        # render side table: token index -> marks, never read for decisions
        self.marks: dict[int, set[str]] = {}
        self.last_warning = ""
        self.ambiguous_rows: list[int] = []

        self.load(document if document is not None else LyricsDocument())

    @classmethod
    def from_config(cls, host: PlaybackHost, cfg: TimingConfig,
                    document: LyricsDocument | str | None = None) -> TimingSession:
        return cls(
            host, document,
            correction_threshold=cfg.correction_threshold,
            play_cue=cfg.play_cue,
            undelete_depth=cfg.undelete_depth,
        )

    # ── Document ─────────────────────────────────────────────────────────────

    def load(self, document: LyricsDocument | str) -> None:
        """Load a new document and reset every piece of session state.

        Text is decoded first; on AssFormatError the current document stays.
        """
        if isinstance(document, str):
            document = LyricsDocument.from_text(document)
        self.document = document
        self.undelete_history.clear()
        self.marks = {}
        self.last_warning = ""
        self.ambiguous_rows = []
        self._advance_from(0)
        info(f"Session loaded: {self.row_count} rows to time")

    # ── State inspection ─────────────────────────────────────────────────────

    @property
    def row_count(self) -> int:
        return len(self.document.rows)

    @property
    def is_done(self) -> bool:
        return self.row_index >= self.row_count

    @property
    def active_row(self) -> int | None:
        """Row with taps in progress, or None before the first tap."""
        if self.row_anchor is None:
            return None
        return self.row_index

    @property
    def state(self) -> SessionState:
        if self.is_done:
            return SessionState.done
        if self.row_anchor is None:
            return SessionState.idle
        if len(self.tap_timestamps) == len(self.document.rows[self.row_index]):
            return SessionState.row_ready
        return SessionState.active

    def upcoming_rows(self) -> list[int]:
        """Rows currently marked as next for the renderer."""
        rows = []
        for row in self.document.rows:
            if MARK_NEXT in self.marks.get(row.token_indices[0], ()):
                rows.append(row.index)
        return rows

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "row_index": self.row_index,
            "row_count": self.row_count,
            "row_anchor": self.row_anchor,
            "taps": len(self.tap_timestamps),
            "upcoming_rows": self.upcoming_rows(),
            "undelete_depth": len(self.undelete_history),
            "last_warning": self.last_warning,
            "ambiguous_rows": list(self.ambiguous_rows),
        }

    # ── Internals ────────────────────────────────────────────────────────────

    def _begin(self) -> None:
        self.last_warning = ""
        self.ambiguous_rows = []

    def _report(self, msg: str) -> bool:
        self.last_warning = msg
        warn(msg)
        return False

    def _mark(self, token_index: int, mark: str) -> None:
        self.marks.setdefault(token_index, set()).add(mark)

    def _unmark(self, token_index: int, *marks: str) -> None:
        current = self.marks.get(token_index)
        if current:
            current.difference_update(marks)

    def _mark_row(self, row_index: int, mark: str) -> None:
        for i in self.document.rows[row_index].token_indices:
            self._mark(i, mark)

    def _advance_from(self, start: int) -> None:
        for marks in self.marks.values():
            marks.discard(MARK_NEXT)
        nxt = self.document.next_untimed_row(start)
        if nxt < self.row_count:
            self._mark_row(nxt, MARK_NEXT)
        self.row_index = nxt
        self.row_anchor = None
        self.tap_timestamps = []

    def _clear_row(self, row_index: int) -> None:
        for i in self.document.rows[row_index].token_indices:
            self.document.tokens[i].timing = None
            self._unmark(i, MARK_STAGING, MARK_FINISHED)

    def _row_tokens(self, row_index: int) -> list[Token]:
        return self.document.row_tokens(row_index)

    # ── Commands ─────────────────────────────────────────────────────────────

    def tap(self) -> bool:
        """Capture the start of the next syllable in the current row."""
        self._begin()
        if self.is_done:
            return self._report("No more unmapped lyrics to time")
        row = self.document.rows[self.row_index]
        if len(self.tap_timestamps) >= len(row):
            return self._report(f"Row {self.row_index} is fully tapped, end it first")

        self.undelete_history.clear()

        now = self.host.clock()
        position = self.host.position()
        self.tap_timestamps.append(now)

        if self.row_anchor is None:
            self.row_anchor = position
            nxt = self.document.next_untimed_row(self.row_index + 1)
            if nxt < self.row_count:
                self._mark_row(nxt, MARK_NEXT)

        idx = len(self.tap_timestamps) - 1
        start = self.row_anchor + (now - self.tap_timestamps[0])
        if start > position + self.correction_threshold:
            debug(f"Tap projection {start:.3f}s ahead of player {position:.3f}s, using player time")
            start = position

        tokens = self._row_tokens(self.row_index)
        tokens[idx].timing = Timing(start, math.inf, 0.0)
        self._mark(row.token_indices[idx], MARK_STAGING)
        if idx > 0:
            prev = tokens[idx - 1].timing
            prev.kdur = start - prev.start

        debug(f"Tap row={self.row_index} syllable={idx} start={start:.3f}")
        if self.play_cue:
            self.host.cue()
        return True

    def end_row(self, advance: bool = False) -> bool:
        """Commit the end time of a fully tapped row and move on.

        With ``advance`` the next row is seeded with a tap at the same
        instant, allowing continuous timing across rows.
        """
        self._begin()
        if self.is_done:
            return self._report("No row is being timed")
        row = self.document.rows[self.row_index]
        if not self.tap_timestamps:
            return self._report("Cannot end empty row")
        if len(self.tap_timestamps) != len(row):
            return self._report(f"Cannot end incomplete row: {self.document.row_text(row)}")

        self.tap_timestamps.append(self.host.clock())
        end = self.host.position()

        tokens = self._row_tokens(self.row_index)
        for i, tok in zip(row.token_indices, tokens):
            tok.timing.end = end
            self._mark(i, MARK_FINISHED)

        # residual against the anchor so rounding does not pile up at the row end
        prior = sum(t.timing.kdur for t in tokens[:-1])
        tokens[-1].timing.kdur = end - (self.row_anchor + prior)

        debug(f"Row {self.row_index} ended at {end:.3f}")
        self._advance_from(self.row_index)

        if advance and not self.is_done:
            self.tap()
        return True

    def tap_key(self) -> bool:
        """Single timing key: tap, or end-and-continue once the row is complete."""
        if self.state == SessionState.row_ready:
            return self.end_row(advance=True)
        return self.tap()

    def back(self) -> bool:
        """Drop the row in progress, or the previous row when none is."""
        self._begin()
        if self.active_row is not None:
            return self.delete(self.row_index)
        if self.row_index > 0:
            return self.delete(self.row_index - 1)
        return self._report("Nothing to go back to")

    def delete_at_playhead(self) -> bool:
        """Delete the row whose first syllable spans the playback position."""
        self._begin()
        if self.active_row is not None:
            return self.back()

        current = self.host.position()
        found = []
        for row in self.document.rows:
            first = self.document.tokens[row.token_indices[0]].timing
            if first is not None and first.contains(current):
                found.append(row.index)

        if not found:
            debug(f"No timed row at {current:.3f}s")
            return False
        if len(found) > 1:
            self._report(
                f"Multiple active lines ({', '.join(map(str, found))}), "
                f"delete one explicitly by row index"
            )
            self.ambiguous_rows = found
            return False
        return self.delete(found[0])

    def delete(self, row_index: int) -> bool:
        """Clear a row's timings, saving them for undelete unless partial."""
        self._begin()
        if not 0 <= row_index < self.row_count:
            raise IndexError(f"Row index out of range: {row_index}")

        partial = self.active_row
        if row_index != partial:
            saved = [t.timing.copy() if t.timing else None for t in self._row_tokens(row_index)]
            self.undelete_history.append(UndeleteEntry(row_index, saved))
        self._clear_row(row_index)
        if partial is not None and partial != row_index:
            # the abandoned row's staged starts would otherwise look timed
            self._clear_row(partial)

        debug(f"Deleted timings of row {row_index}")
        self._advance_from(0)
        return True

    def undelete(self) -> bool:
        """Restore the most recently deleted row."""
        self._begin()
        if not self.undelete_history:
            return self._report("Undelete stack is empty")

        entry = self.undelete_history.pop()
        row = self.document.rows[entry.row_index]
        for i, saved in zip(row.token_indices, entry.timings):
            tok = self.document.tokens[i]
            tok.timing = saved.copy() if saved else None
            # may have been highlighted when deleted
            self._unmark(i, MARK_ACTIVE)
            if saved is not None:
                self._mark(i, MARK_STAGING)
                if not saved.is_open:
                    self._mark(i, MARK_FINISHED)

        debug(f"Restored timings of row {entry.row_index}")
        self._advance_from(0)
        return True
