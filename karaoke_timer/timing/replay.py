"""Replay a recorded command log through a timing session.

A log is a JSON list (or JSON lines) of events such as::

    {"command": "tap", "position": 12.31, "clock": 1043.552}
    {"command": "end", "position": 14.02}
    {"command": "delete", "row": 3}

When an event has no clock reading its playback position is used as the
clock, which matches uninterrupted real-time playback.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, TypeAdapter

from karaoke_timer.timing.host import ManualHost
from karaoke_timer.timing.session import TimingSession
from karaoke_timer.utils.logging import debug


class ReplayCommand(str, Enum):
    tap = "tap"
    tap_key = "tap_key"
    end = "end"
    end_continue = "end_continue"
    back = "back"
    delete = "delete"
    undelete = "undelete"


class ReplayEvent(BaseModel):
    command: ReplayCommand
    position: float | None = None
    clock: float | None = None
    row: int | None = None


_EVENT_LIST = TypeAdapter(list[ReplayEvent])


@dataclass
class ReplayResult:
    applied: int = 0
    rejected: int = 0
    warnings: list[str] = field(default_factory=list)


def parse_events(text: str) -> list[ReplayEvent]:
    stripped = text.strip()
    if not stripped:
        return []
    if stripped.startswith("["):
        return _EVENT_LIST.validate_json(stripped)
    return [ReplayEvent.model_validate_json(line) for line in stripped.splitlines() if line.strip()]


def load_events(path: Path) -> list[ReplayEvent]:
    return parse_events(path.read_text(encoding="utf-8"))


def _dispatch(session: TimingSession, event: ReplayEvent) -> bool:
    cmd = event.command
    if cmd == ReplayCommand.tap:
        return session.tap()
    if cmd == ReplayCommand.tap_key:
        return session.tap_key()
    if cmd == ReplayCommand.end:
        return session.end_row(advance=False)
    if cmd == ReplayCommand.end_continue:
        return session.end_row(advance=True)
    if cmd == ReplayCommand.back:
        return session.back()
    if cmd == ReplayCommand.delete:
        if event.row is None:
            return session.delete_at_playhead()
        return session.delete(event.row)
    return session.undelete()


def replay(session: TimingSession, host: ManualHost, events: list[ReplayEvent]) -> ReplayResult:
    """Feed events into ``session`` in order, pushing positions through ``host``."""
    result = ReplayResult()
    for n, event in enumerate(events):
        if event.position is not None or event.clock is not None:
            clock = event.clock if event.clock is not None else event.position
            host.set(event.position, clock)
        if _dispatch(session, event):
            result.applied += 1
        else:
            result.rejected += 1
            if session.last_warning:
                result.warnings.append(f"#{n} {event.command.value}: {session.last_warning}")
    debug(f"Replayed {len(events)} events ({result.rejected} rejected)")
    return result
