"""
engine/windows.py — Baseline and sliding HRV windows
======================================================
Both windows hold `HrvPoint`s and expose the same averages, but they are
deliberately separate types:

* `BaselineWindow` — the first N points of a session (the "calm"
  reference).  Append-only; once full it never changes again.
* `SlidingWindow`  — the most recent N points.  FIFO; the oldest point
  is evicted when a new one arrives at capacity.

Averages skip missing values; the HR average also drops out-of-range
readings so a stale artefact cannot shift the reference.
"""

from abc import ABC, abstractmethod
from collections import deque

import numpy as np

from engine.schemas import HrvPoint
from features.hr import is_valid_hr


def _mean_or_none(values: list[float]) -> float | None:
    if not values:
        return None
    return float(np.mean(values))


class _HrvWindow(ABC):
    """Shared read-side helpers; subclasses decide how points are stored."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Window capacity must be ≥ 1, got {capacity}.")
        self.capacity = capacity
        self._points = self._make_store()

    @abstractmethod
    def _make_store(self):
        """Return the empty container that holds the points."""

    @abstractmethod
    def append(self, point: HrvPoint):
        ...

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    @property
    def is_full(self) -> bool:
        return len(self._points) == self.capacity

    def clear(self) -> None:
        self._points.clear()

    def averages(self) -> tuple[float | None, float | None, float | None]:
        """Return (avg_hr, avg_rmssd, avg_pnn50) over the stored points."""
        hr = _mean_or_none([p.hr_mean for p in self._points if is_valid_hr(p.hr_mean)])
        rmssd = _mean_or_none([p.rmssd for p in self._points if p.rmssd is not None])
        pnn50 = _mean_or_none([p.pnn50 for p in self._points if p.pnn50 is not None])
        return hr, rmssd, pnn50


class BaselineWindow(_HrvWindow):
    """First `capacity` points of a session, frozen once full."""

    def _make_store(self):
        return []

    def append(self, point: HrvPoint) -> bool:
        """Add `point` if there is room.  Returns True if it was stored."""
        if self.is_full:
            return False
        self._points.append(point)
        return True


class SlidingWindow(_HrvWindow):
    """Last `capacity` points of a session."""

    def _make_store(self):
        return deque(maxlen=self.capacity)

    def append(self, point: HrvPoint) -> None:
        self._points.append(point)     # deque(maxlen) drops the oldest
