"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class OutputFormatEnum(str, Enum):
    new = "new"
    full = "full"


# ── Requests ──────────────────────────────────────────────────────────────────

class SessionCreate(BaseModel):
    text: str = ""
    ass: bool = False  # strip an ASS script header first


class PlaybackEvent(BaseModel):
    """Host readings that accompany a timing command."""
    position: float | None = None
    clock: float | None = None


class EndRowRequest(PlaybackEvent):
    advance: bool = False


class DeleteRequest(PlaybackEvent):
    row: int | None = Field(default=None, ge=0)


class LyricsUpdate(BaseModel):
    text: str


class SyllablizeRequest(BaseModel):
    text: str | None = None
    level: int | None = Field(default=None, ge=0, le=2)


# ── Responses ─────────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    version: str
    sessions: int


class LyricsInfo(BaseModel):
    text: str
    can_undo: bool
    can_redo: bool


class SessionInfo(BaseModel):
    session_id: str
    state: str
    row_index: int
    row_count: int
    row_anchor: float | None = None
    taps: int = 0
    upcoming_rows: list[int] = []
    undelete_depth: int = 0
    last_warning: str = ""
    ambiguous_rows: list[int] = []
    cues: int = 0
    tokens: list[dict[str, Any]] = []
    marks: dict[int, list[str]] = {}


class CommandResult(BaseModel):
    ok: bool
    warning: str = ""
    session: SessionInfo


class ExportResponse(BaseModel):
    format: OutputFormatEnum
    text: str
