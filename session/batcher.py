"""
session/batcher.py — Sample → chunk batching
==============================================
Collects samples as they stream in and releases them as one chunk
every FLUSH_EVERY_SECONDS or every MAX_BATCH samples, whichever comes
first.  The engine itself is agnostic to this policy.
"""

import time

from engine.schemas import Sample
from config import FLUSH_EVERY_SECONDS, MAX_BATCH


class ChunkBatcher:
    """
    Parameters
    ----------
    flush_every_s : float   Maximum age of a chunk before it is released.
    max_batch     : int     Maximum number of samples per chunk.
    clock                   Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        flush_every_s: float = FLUSH_EVERY_SECONDS,
        max_batch: int = MAX_BATCH,
        clock=time.monotonic,
    ):
        if max_batch < 1:
            raise ValueError(f"max_batch must be ≥ 1, got {max_batch}.")
        self.flush_every_s = flush_every_s
        self.max_batch = max_batch
        self._clock = clock
        self._buffer: list[Sample] = []
        self._last_flush = clock()

    def __len__(self) -> int:
        return len(self._buffer)

    def add(self, sample: Sample, now: float | None = None) -> list[Sample] | None:
        """Buffer `sample`; return a chunk if a flush condition was met."""
        self._buffer.append(sample)
        now = self._clock() if now is None else now
        if len(self._buffer) >= self.max_batch or now - self._last_flush >= self.flush_every_s:
            return self.flush(now=now)
        return None

    def flush(self, now: float | None = None) -> list[Sample] | None:
        """Release whatever is buffered (None if empty)."""
        self._last_flush = self._clock() if now is None else now
        if not self._buffer:
            return None
        chunk, self._buffer = self._buffer, []
        return chunk
