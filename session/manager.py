"""
session/manager.py — Per-session engine registry
==================================================
Owns one `StressEngine` per recording session and serialises chunk
processing for each of them.  Upstream code (an HTTP handler, a BLE
callback, the replay CLI) only ever talks to this object.

Thread safety
-------------
* `_registry_lock` guards the session map.
* Each session has its own lock; `process_chunk` runs under it, so two
  chunks for the same session never interleave while different
  sessions proceed in parallel.

Lifecycle
---------
    1. `start_session(device, session_id)` — fresh (or reset) engine.
    2. `submit(rows, sampling_hz)` — route a chunk, publish the result.
    3. `info(device, session_id)` — counters / configuration snapshot.
    4. `end_session(device, session_id)` — drop the engine and, when the
       sink supports it, the session's buffered results.
"""

import threading
from dataclasses import dataclass, field

from engine.schemas import EngineInfo, Sample, StressResult
from engine.stress_engine import StressEngine, validate_sampling_hz, validate_settings
from session.live_bus import LiveBus, ResultSink
from config import DEFAULT_BASELINE_FREQUENCY_HZ, DEFAULT_PPG_SAMPLING_HZ
from utils.logger import get_logger

logger = get_logger("session.manager")


def session_key(device: str, session_id: str) -> str:
    return f"{device}|{session_id}"


@dataclass
class _SessionSlot:
    engine: StressEngine
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionManager:
    """
    Registry of independent engines, one per "device|session_id".

    Parameters
    ----------
    sink         : ResultSink   Receives every result (defaults to a new `LiveBus`).
    freq_hz      : int          Baseline frequency for newly created engines.
    engine_kwargs               Extra `StressEngine` arguments (ratios, model).
    """

    def __init__(
        self,
        sink: ResultSink | None = None,
        freq_hz: int = DEFAULT_BASELINE_FREQUENCY_HZ,
        **engine_kwargs,
    ):
        # Engines are built lazily, so settings are checked up front
        validate_settings(freq_hz, **{k: v for k, v in engine_kwargs.items() if k.endswith("_ratio")})

        self.sink = sink if sink is not None else LiveBus()
        self._freq_hz = freq_hz
        self._engine_kwargs = engine_kwargs
        self._registry_lock = threading.Lock()
        self._sessions: dict[str, _SessionSlot] = {}

    # ── Public API ───────────────────────────────────────────────────────────

    def start_session(self, device: str, session_id: str) -> bool:
        """
        Begin a recording session.  Returns True if a new engine was
        created, False if an existing one was reset.
        """
        key = session_key(device, session_id)
        with self._registry_lock:
            slot = self._sessions.get(key)
            if slot is None:
                self._sessions[key] = _SessionSlot(self._new_engine())
                logger.info("Session %s started.", key)
                return True

        with slot.lock:
            slot.engine.reset()
        logger.info("Session %s restarted — engine reset.", key)
        return False

    def end_session(self, device: str, session_id: str) -> None:
        key = session_key(device, session_id)
        with self._registry_lock:
            removed = self._sessions.pop(key, None)

        drop = getattr(self.sink, "drop", None)
        if drop is not None:
            drop(key)
        if removed is not None:
            logger.info("Session %s ended.", key)

    def submit(
        self,
        rows: list[Sample],
        sampling_hz: int = DEFAULT_PPG_SAMPLING_HZ,
    ) -> StressResult:
        """
        Process a chunk for the session its rows belong to.

        Raises
        ------
        ValueError
            If `rows` is empty (nothing identifies the session), if the rows
            span more than one session, or if `sampling_hz` is not positive.
        """
        if not rows:
            raise ValueError("Cannot submit an empty chunk.")
        validate_sampling_hz(sampling_hz)

        key = rows[0].session_key
        mixed = {r.session_key for r in rows} - {key}
        if mixed:
            raise ValueError(f"Chunk for {key} also holds rows for {sorted(mixed)}.")
        slot = self._slot_for(key)

        with slot.lock:
            result = slot.engine.process_chunk(rows, sampling_hz=sampling_hz)

        self.sink.publish(key, result)
        return result

    def info(self, device: str, session_id: str) -> EngineInfo | None:
        key = session_key(device, session_id)
        with self._registry_lock:
            slot = self._sessions.get(key)
        if slot is None:
            return None
        with slot.lock:
            return slot.engine.info()

    @property
    def active_sessions(self) -> list[str]:
        with self._registry_lock:
            return list(self._sessions)

    # ── Private ──────────────────────────────────────────────────────────────

    def _new_engine(self) -> StressEngine:
        return StressEngine(freq_hz=self._freq_hz, **self._engine_kwargs)

    def _slot_for(self, key: str) -> _SessionSlot:
        with self._registry_lock:
            slot = self._sessions.get(key)
            if slot is None:
                logger.warning("Chunk for unregistered session %s — starting it.", key)
                slot = _SessionSlot(self._new_engine())
                self._sessions[key] = slot
            return slot
