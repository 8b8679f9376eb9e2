"""In-process registry of timing sessions, one per loaded document."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass

from karaoke_timer.timing.history import EditHistory
from karaoke_timer.timing.host import ManualHost
from karaoke_timer.timing.session import TimingSession
from karaoke_timer.utils.config import AppConfig, load_config, load_dictionary
from karaoke_timer.utils.logging import info

_sessions: dict[str, SessionHandle] = {}
_sessions_lock = threading.Lock()
_config: AppConfig | None = None
_dictionary: list[str] | None = None


@dataclass
class SessionHandle:
    session_id: str
    session: TimingSession
    host: ManualHost
    lyrics: EditHistory
    # serialises commands on one session; the engine itself is single-threaded
    lock: threading.Lock


def get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(cfg: AppConfig | None) -> None:
    global _config, _dictionary
    _config = cfg
    _dictionary = None


def get_dictionary() -> list[str] | None:
    """Configured syllable dictionary, or None for the built-in one."""
    global _dictionary
    path = get_config().syllablize.dictionary_path
    if not path:
        return None
    if _dictionary is None:
        _dictionary = load_dictionary(path)
    return _dictionary


def create_session(text: str) -> SessionHandle:
    """Build a session for ``text``. Raises AssFormatError on malformed input."""
    cfg = get_config()
    host = ManualHost()
    session = TimingSession.from_config(host, cfg.timing, text)
    handle = SessionHandle(
        session_id=uuid.uuid4().hex[:12],
        session=session,
        host=host,
        lyrics=EditHistory(text, depth=cfg.editor.undo_depth),
        lock=threading.Lock(),
    )
    with _sessions_lock:
        _sessions[handle.session_id] = handle
    info(f"Session {handle.session_id} created ({session.row_count} rows)")
    return handle


def get_session(session_id: str) -> SessionHandle | None:
    with _sessions_lock:
        return _sessions.get(session_id)


def delete_session(session_id: str) -> bool:
    with _sessions_lock:
        return _sessions.pop(session_id, None) is not None


def session_count() -> int:
    with _sessions_lock:
        return len(_sessions)


def clear_sessions() -> None:
    with _sessions_lock:
        _sessions.clear()
