"""Per-user fixed-window cooldown for shock requests.

Each user who has ever produced a fire request owns one CooldownWindow:
 1. If the window duration has elapsed, reset the window start and counter
 2. Allow (and count) if the counter is below the per-window maximum
 3. Otherwise deny, reporting the seconds left until the window resets

State lives in memory only. All reads and writes of the table happen under a
single lock; callers do their network I/O after try_fire() returns.
"""
from __future__ import annotations
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Optional, Tuple, Union


@dataclass
class CooldownWindow:
    window_start: float
    fire_count: int = 0


@dataclass(frozen=True)
class Allowed:
    pass


@dataclass(frozen=True)
class Denied:
    seconds_remaining: int


AdmissionResult = Union[Allowed, Denied]

ALLOWED = Allowed()


def admit(window: CooldownWindow, now: float, window_duration: float, max_fires: int) -> AdmissionResult:
    """Roll the window over if needed, then admit-and-count or deny.

    Rollover and remaining-time arithmetic use the same ``now`` so a denial
    always reports at least one second.
    """
    elapsed = now - window.window_start
    if elapsed >= window_duration:
        window.window_start = now
        window.fire_count = 0
        elapsed = 0.0

    if window.fire_count < max_fires:
        window.fire_count += 1
        return ALLOWED

    return Denied(seconds_remaining=max(1, math.ceil(window_duration - elapsed)))


class CooldownTracker:
    def __init__(
        self,
        window_seconds: int,
        max_fires_per_window: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
        if max_fires_per_window < 0:
            raise ValueError(f"max_fires_per_window must be >= 0, got {max_fires_per_window}")
        self.window_seconds = window_seconds
        self.max_fires_per_window = max_fires_per_window
        self._clock = clock
        self._windows: Dict[Hashable, CooldownWindow] = {}
        self._lock = threading.Lock()

    def try_fire(self, user_id: Hashable, now: Optional[float] = None) -> AdmissionResult:
        if now is None:
            now = self._clock()
        with self._lock:
            window = self._windows.get(user_id)
            if window is None:
                window = CooldownWindow(window_start=now)
                self._windows[user_id] = window
            return admit(window, now, self.window_seconds, self.max_fires_per_window)

    def status(self, user_id: Hashable, now: Optional[float] = None) -> Tuple[int, int, int]:
        """Return (fires_used, fires_left, seconds_until_reset) without mutating state.

        A user with no window, or whose window already elapsed, reports a
        fresh window: nothing used and zero seconds until reset.
        """
        if now is None:
            now = self._clock()
        with self._lock:
            window = self._windows.get(user_id)
            if window is None or now - window.window_start >= self.window_seconds:
                return 0, self.max_fires_per_window, 0
            used = window.fire_count
            remaining = max(1, math.ceil(self.window_seconds - (now - window.window_start)))
        return used, max(0, self.max_fires_per_window - used), remaining

    def evict_expired(self, now: Optional[float] = None) -> int:
        # elapsed windows reset on next use, so dropping them is equivalent
        if now is None:
            now = self._clock()
        with self._lock:
            expired = [k for k, w in self._windows.items() if now - w.window_start >= self.window_seconds]
            for k in expired:
                del self._windows[k]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


def build_cooldown_tracker(window_seconds: int, max_fires_per_window: int) -> CooldownTracker:
    return CooldownTracker(window_seconds=window_seconds, max_fires_per_window=max_fires_per_window)


__all__ = [
    "Allowed",
    "Denied",
    "AdmissionResult",
    "CooldownWindow",
    "CooldownTracker",
    "admit",
    "build_cooldown_tracker",
]
