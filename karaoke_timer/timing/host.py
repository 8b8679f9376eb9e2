"""Host collaborator contract: whatever plays the audio implements this."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod


class PlaybackHost(ABC):
    """Supplies playback position and a high-resolution clock to a session."""

    @abstractmethod
    def position(self) -> float:
        """Current playback position in seconds."""

    @abstractmethod
    def clock(self) -> float:
        """Monotonic high-resolution clock reading in seconds."""

    def cue(self) -> None:
        """Called after every successful tap (e.g. play a click sound)."""


class ManualHost(PlaybackHost):
    """Host whose position (and optionally clock) is pushed in by the caller.

    Without an explicit clock reading ``time.perf_counter`` is used.
    """

    def __init__(self, position: float = 0.0, clock: float | None = None):
        self._position = position
        self._clock = clock
        self.cues = 0

    def set(self, position: float | None = None, clock: float | None = None) -> None:
        if position is not None:
            self._position = position
        self._clock = clock

    def position(self) -> float:
        return self._position

    def clock(self) -> float:
        if self._clock is None:
            return time.perf_counter()
        return self._clock

    def cue(self) -> None:
        self.cues += 1
