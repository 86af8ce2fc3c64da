"""
session/live_bus.py — In-process result sink
==============================================
Receives every `StressResult` keyed by session ("device|session_id") and
fans it out to subscribers (a dashboard socket, a persistence writer, …).
Transport is the subscriber's problem; the bus only keeps a short replay
buffer per session so a late subscriber sees recent history.

Thread safety
-------------
Buffers and subscriber lists are guarded by `_lock`.  Callbacks are
invoked *outside* the lock so a slow or re-entrant subscriber cannot
block publishers on other sessions.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Protocol

from engine.schemas import StressResult
from config import LIVE_REPLAY_SIZE
from utils.logger import get_logger

logger = get_logger("session.live_bus")


@dataclass(frozen=True)
class LivePoint:
    """A published result with its sequence number and wall-clock time (ms)."""
    seq: int
    t: int
    session_key: str
    result: StressResult

    def to_dict(self) -> dict:
        return {"idx": self.seq, "t": self.t, **self.result.model_dump()}


Subscriber = Callable[[LivePoint], None]


class ResultSink(Protocol):
    """
    Anything the session manager can write results into.  A sink may also
    define `drop(session_key)`; the manager calls it when a session ends.
    """

    def publish(self, session_key: str, result: StressResult) -> None: ...


class LiveBus:
    """
    Bounded, drop-oldest replay buffer + subscriber fan-out per session.

    Parameters
    ----------
    replay : int   Results retained per session for late subscribers.
    """

    def __init__(self, replay: int = LIVE_REPLAY_SIZE):
        self._replay = replay
        self._lock = threading.Lock()
        self._buffers: dict[str, deque[LivePoint]] = {}
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._seq = 0

    def publish(self, session_key: str, result: StressResult) -> None:
        with self._lock:
            self._seq += 1
            point = LivePoint(
                seq=self._seq,
                t=int(time.time() * 1000),
                session_key=session_key,
                result=result,
            )
            self._buffers.setdefault(session_key, deque(maxlen=self._replay)).append(point)
            subscribers = list(self._subscribers.get(session_key, ()))

        for callback in subscribers:
            try:
                callback(point)
            except Exception:
                logger.exception("Subscriber for %s failed:", session_key)

    def subscribe(self, session_key: str, callback: Subscriber, replay: bool = True) -> Callable[[], None]:
        """
        Register `callback` for a session.  Buffered points are replayed
        first when `replay` is True.  Returns an unsubscribe function.
        """
        with self._lock:
            self._subscribers.setdefault(session_key, []).append(callback)
            backlog = list(self._buffers.get(session_key, ())) if replay else []

        for point in backlog:
            callback(point)

        def _unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(session_key, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(session_key, None)

        return _unsubscribe

    def recent(self, session_key: str) -> list[LivePoint]:
        with self._lock:
            return list(self._buffers.get(session_key, ()))

    def drop(self, session_key: str) -> None:
        """Forget the replay buffer and subscribers of an ended session."""
        with self._lock:
            self._buffers.pop(session_key, None)
            self._subscribers.pop(session_key, None)
