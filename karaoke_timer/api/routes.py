"""FastAPI routes: the timing session command surface over HTTP.

The browser front end owns audio playback; each command carries the
player position (and optionally a high-resolution clock reading) at the
moment the operator pressed the key.
"""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, HTTPException, Query

from karaoke_timer.api import sessions
from karaoke_timer.api.models import (
    CommandResult, DeleteRequest, EndRowRequest, ExportResponse, HealthResponse,
    LyricsInfo, LyricsUpdate, OutputFormatEnum, PlaybackEvent, SessionCreate,
    SessionInfo, SyllablizeRequest,
)
from karaoke_timer.export.ass_codec import AssFormatError, render_timings, strip_ass_header
from karaoke_timer.lyrics.syllablize import prepare_lyrics

VERSION = "1.0.0"

router = APIRouter(prefix="/api", tags=["api"])


def _handle(session_id: str) -> sessions.SessionHandle:
    handle = sessions.get_session(session_id)
    if handle is None:
        raise HTTPException(404, f"Session not found: {session_id}")
    return handle


def _info(handle: sessions.SessionHandle) -> SessionInfo:
    s = handle.session
    return SessionInfo(
        session_id=handle.session_id,
        cues=handle.host.cues,
        tokens=[t.to_dict() for t in s.document.tokens],
        marks={i: sorted(m) for i, m in s.marks.items() if m},
        **s.to_dict(),
    )


def _lyrics(handle: sessions.SessionHandle) -> LyricsInfo:
    h = handle.lyrics
    return LyricsInfo(text=h.current, can_undo=h.can_undo, can_redo=h.can_redo)


def _command(session_id: str, event: PlaybackEvent,
             fn: Callable[[sessions.SessionHandle], bool]) -> CommandResult:
    handle = _handle(session_id)
    with handle.lock:
        handle.host.set(event.position, event.clock)
        ok = fn(handle)
        return CommandResult(ok=ok, warning=handle.session.last_warning, session=_info(handle))


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", version=VERSION, sessions=sessions.session_count())


# ── Sessions ──────────────────────────────────────────────────────────────────

@router.post("/sessions", response_model=SessionInfo)
def create_session(req: SessionCreate):
    text = req.text.replace("\r", "")
    if req.ass:
        text = strip_ass_header(text)
    try:
        handle = sessions.create_session(text)
    except AssFormatError as e:
        raise HTTPException(422, str(e))
    return _info(handle)


@router.get("/sessions/{session_id}", response_model=SessionInfo)
def get_session(session_id: str):
    return _info(_handle(session_id))


@router.delete("/sessions/{session_id}")
def close_session(session_id: str):
    if not sessions.delete_session(session_id):
        raise HTTPException(404, f"Session not found: {session_id}")
    return {"deleted": session_id}


# ── Timing commands ───────────────────────────────────────────────────────────

@router.post("/sessions/{session_id}/tap", response_model=CommandResult)
def tap(session_id: str, event: PlaybackEvent):
    return _command(session_id, event, lambda h: h.session.tap())


@router.post("/sessions/{session_id}/tap-key", response_model=CommandResult)
def tap_key(session_id: str, event: PlaybackEvent):
    return _command(session_id, event, lambda h: h.session.tap_key())


@router.post("/sessions/{session_id}/end", response_model=CommandResult)
def end_row(session_id: str, req: EndRowRequest):
    return _command(session_id, req, lambda h: h.session.end_row(advance=req.advance))


@router.post("/sessions/{session_id}/back", response_model=CommandResult)
def back(session_id: str, event: PlaybackEvent):
    return _command(session_id, event, lambda h: h.session.back())


@router.post("/sessions/{session_id}/delete", response_model=CommandResult)
def delete_row(session_id: str, req: DeleteRequest):
    handle = _handle(session_id)
    if req.row is not None and req.row >= handle.session.row_count:
        raise HTTPException(400, f"Row index out of range: {req.row}")
    if req.row is None:
        return _command(session_id, req, lambda h: h.session.delete_at_playhead())
    return _command(session_id, req, lambda h: h.session.delete(req.row))


@router.post("/sessions/{session_id}/undelete", response_model=CommandResult)
def undelete(session_id: str, event: PlaybackEvent):
    return _command(session_id, event, lambda h: h.session.undelete())


@router.get("/sessions/{session_id}/export", response_model=ExportResponse)
def export(
    session_id: str,
    mode: OutputFormatEnum | None = Query(default=None),
    style: str | None = Query(default=None),
    time_shift: float | None = Query(default=None),
):
    handle = _handle(session_id)
    cfg = sessions.get_config().export
    fmt = mode or OutputFormatEnum(cfg.output_format)
    with handle.lock:
        text = render_timings(
            handle.session.document,
            style=style or cfg.style,
            time_shift=cfg.time_shift if time_shift is None else time_shift,
            output_format=fmt.value,
        )
    return ExportResponse(format=fmt, text=text)


# ── Lyrics editor ─────────────────────────────────────────────────────────────

@router.get("/sessions/{session_id}/lyrics", response_model=LyricsInfo)
def get_lyrics(session_id: str):
    return _lyrics(_handle(session_id))


@router.put("/sessions/{session_id}/lyrics", response_model=LyricsInfo)
def update_lyrics(session_id: str, req: LyricsUpdate):
    handle = _handle(session_id)
    with handle.lock:
        handle.lyrics.edit(req.text.replace("\r", ""))
        return _lyrics(handle)


@router.post("/sessions/{session_id}/lyrics/undo", response_model=LyricsInfo)
def undo_lyrics(session_id: str):
    handle = _handle(session_id)
    with handle.lock:
        if handle.lyrics.undo() is None:
            raise HTTPException(400, "Nothing to undo")
        return _lyrics(handle)


@router.post("/sessions/{session_id}/lyrics/redo", response_model=LyricsInfo)
def redo_lyrics(session_id: str):
    handle = _handle(session_id)
    with handle.lock:
        if handle.lyrics.redo() is None:
            raise HTTPException(400, "Nothing to redo")
        return _lyrics(handle)


@router.post("/sessions/{session_id}/lyrics/syllablize", response_model=LyricsInfo)
def syllablize_lyrics(session_id: str, req: SyllablizeRequest):
    handle = _handle(session_id)
    level = sessions.get_config().syllablize.level if req.level is None else req.level
    with handle.lock:
        handle.lyrics.edit(prepare_lyrics(handle.lyrics.current, level, sessions.get_dictionary()))
        return _lyrics(handle)


@router.post("/sessions/{session_id}/lyrics/apply", response_model=SessionInfo)
def apply_lyrics(session_id: str):
    """Load the edited lyrics into the session, resetting all timing state."""
    handle = _handle(session_id)
    with handle.lock:
        try:
            handle.session.load(handle.lyrics.current)
        except AssFormatError as e:
            raise HTTPException(422, str(e))
        return _info(handle)


# ── Stateless helpers ─────────────────────────────────────────────────────────

@router.post("/syllablize")
async def syllablize(req: SyllablizeRequest):
    level = sessions.get_config().syllablize.level if req.level is None else req.level
    return {"level": level, "text": prepare_lyrics(req.text or "", level, sessions.get_dictionary())}
