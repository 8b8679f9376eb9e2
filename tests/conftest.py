"""Shared test fixtures.

Provides:
- scripted playback host and timing sessions
- sample lyric documents (plain and ASS)
- FastAPI TestClient with an isolated session registry
- log directory isolation
"""

from __future__ import annotations

import pytest


# ── Seed data ────────────────────────────────────────────────────────────────

SAMPLE_LYRICS = """\
ka|mi
so|ra|no

ha|na"""

SAMPLE_ASS = """\
[Script Info]
Title: Sample
ScriptType: v4.00+

[V4+ Styles]
Format: Name, Fontname, Fontsize
Style: Romaji,Arial,40

[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
Dialogue: 0,0:00:00.00,0:00:02.50,Romaji,,0,0,0,,{\\k50}ka{\\k100}mi
ko|ko|ro
"""


@pytest.fixture
def sample_lyrics() -> str:
    return SAMPLE_LYRICS


@pytest.fixture
def sample_ass() -> str:
    return SAMPLE_ASS


# ── Log isolation ────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _isolate_logs(tmp_path, monkeypatch):
    import karaoke_timer.utils.logging as log_mod
    monkeypatch.setattr(log_mod, "LOG_DIR", tmp_path / "logs")


# ── Timing sessions ──────────────────────────────────────────────────────────

@pytest.fixture
def host():
    from karaoke_timer.timing.host import ManualHost
    return ManualHost(position=0.0, clock=0.0)


@pytest.fixture
def make_session(host):
    """Factory: session over ``text`` driven by the shared scripted host."""
    from karaoke_timer.timing.session import TimingSession

    def _make(text: str, **kwargs) -> TimingSession:
        return TimingSession(host, text, **kwargs)

    return _make


def at(host, position: float, clock: float | None = None) -> None:
    """Move the scripted host; the clock follows the position unless given."""
    host.set(position, position if clock is None else clock)


def time_row(session, host, taps: list[float], end: float, advance: bool = False) -> None:
    """Tap every syllable of the current row at ``taps`` and end it at ``end``."""
    for t in taps:
        at(host, t)
        assert session.tap()
    at(host, end)
    assert session.end_row(advance=advance)


# ── API ──────────────────────────────────────────────────────────────────────

@pytest.fixture
def client():
    """FastAPI TestClient with default config and an empty session registry."""
    from fastapi.testclient import TestClient
    from karaoke_timer.api import sessions
    from karaoke_timer.utils.config import AppConfig
    from main import app

    sessions.set_config(AppConfig())
    sessions.clear_sessions()
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    sessions.clear_sessions()
    sessions.set_config(None)
