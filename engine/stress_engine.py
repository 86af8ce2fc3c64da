"""
engine/stress_engine.py — Stateful HRV stress engine
======================================================
Turns a stream of sample chunks into one `StressResult` per chunk:

    chunk  →  HR mean / PPG mean
           →  NN intervals (IBI first, PPG peaks as fallback)
           →  RMSSD, pNN50
           →  baseline + sliding window comparison
           →  logistic stress score

Detection rule
--------------
A chunk is flagged against a reference window only when all three
signals move in the "stressed" direction at once:

    rmssd · rmssd_ratio  <  avg_rmssd      (HRV suppressed)
    hr_mean              >  avg_hr · hr_ratio   (HR elevated)
    pnn50 · pnn50_ratio  <  avg_pnn50      (vagal marker reduced)

"basic" uses the frozen baseline window and is evaluated once it is
exactly full; "sliding" uses the trailing window and is evaluated once it
reaches capacity.  Any missing operand means "no warning".

Lifecycle
---------
    1. `reset()` at the start of every recording session.
    2. `process_chunk(rows, sampling_hz)` for each chunk, one at a time.
    3. `info()` for a snapshot of counters / configuration.

There is no locking here: one engine per session, and the caller must not
run two `process_chunk` calls on the same engine concurrently (see
`session/manager.py`).  The data path never raises; insufficient data
yields None fields or zero-valued HRV.
"""

from engine.schemas import (
    EngineInfo,
    HrvPoint,
    Sample,
    StressResult,
    STATUS_SUCCESS,
    STATUS_WARNING,
    STATUS_BASIC_WARNING,
    STATUS_SLIDING_WARNING,
)
from engine.windows import BaselineWindow, SlidingWindow
from features.hr import is_valid_hr, resolve_hr_mean
from features.hrv import compute_rmssd_and_pnn50
from features.intervals import filter_ibi, nn_intervals_from_ppg
from model.stress import LogisticStressModel, DEFAULT_MODEL, ml_label_from_score
from config import (
    BASELINE_MINUTES,
    DEFAULT_BASELINE_FREQUENCY_HZ,
    DEFAULT_PPG_SAMPLING_HZ,
    HEART_RATE_THRESHOLD_RATIO,
    RMSSD_THRESHOLD_RATIO,
    PNN50_THRESHOLD_RATIO,
)
from utils.logger import get_logger

logger = get_logger("engine.stress")


def baseline_row_count(freq_hz: int) -> int:
    """Rows covering BASELINE_MINUTES at `freq_hz` points per second."""
    return (BASELINE_MINUTES * 60) // freq_hz


def validate_settings(
    freq_hz: int,
    hr_ratio: float = HEART_RATE_THRESHOLD_RATIO,
    rmssd_ratio: float = RMSSD_THRESHOLD_RATIO,
    pnn50_ratio: float = PNN50_THRESHOLD_RATIO,
) -> None:
    """Raise ValueError for settings that cannot size or drive an engine."""
    if freq_hz <= 0 or baseline_row_count(freq_hz) < 1:
        raise ValueError(
            f"freq_hz must be in 1..{BASELINE_MINUTES * 60}, got {freq_hz}."
        )
    for name, ratio in (("hr_ratio", hr_ratio), ("rmssd_ratio", rmssd_ratio),
                        ("pnn50_ratio", pnn50_ratio)):
        if ratio <= 0:
            raise ValueError(f"{name} must be positive, got {ratio}.")


def validate_sampling_hz(sampling_hz: float) -> None:
    """Raise ValueError unless `sampling_hz` is a usable PPG sampling rate."""
    if not sampling_hz > 0:
        raise ValueError(f"sampling_hz must be positive, got {sampling_hz}.")


def _mean_or_none(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


class StressEngine:
    """
    Per-session stress detector.

    Parameters
    ----------
    freq_hz     : int     Sizes both windows: baseline_rows = 600 // freq_hz.
    hr_ratio    : float   HR must exceed the reference average × this.
    rmssd_ratio : float   RMSSD × this must fall below the reference average.
    pnn50_ratio : float   pNN50 × this must fall below the reference average.
    model       : LogisticStressModel   Frozen classifier weights.
    """

    def __init__(
        self,
        freq_hz: int = DEFAULT_BASELINE_FREQUENCY_HZ,
        hr_ratio: float = HEART_RATE_THRESHOLD_RATIO,
        rmssd_ratio: float = RMSSD_THRESHOLD_RATIO,
        pnn50_ratio: float = PNN50_THRESHOLD_RATIO,
        model: LogisticStressModel = DEFAULT_MODEL,
    ):
        validate_settings(freq_hz, hr_ratio, rmssd_ratio, pnn50_ratio)

        self.freq_hz = freq_hz
        self.baseline_rows = baseline_row_count(freq_hz)
        self.hr_ratio = hr_ratio
        self.rmssd_ratio = rmssd_ratio
        self.pnn50_ratio = pnn50_ratio
        self.model = model

        self._baseline = BaselineWindow(self.baseline_rows)
        self._sliding = SlidingWindow(self.baseline_rows)
        self._total_count = 0
        self._last_valid_hr: float | None = None

        logger.info(
            "StressEngine created — freq=%d, baseline_rows=%d, ratios(hr=%.2f, rmssd=%.2f, pnn50=%.2f)",
            freq_hz, self.baseline_rows, hr_ratio, rmssd_ratio, pnn50_ratio,
        )

    # ── Public API ───────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Forget everything about the previous session."""
        self._baseline.clear()
        self._sliding.clear()
        self._total_count = 0
        self._last_valid_hr = None
        logger.info("StressEngine reset.")

    def info(self) -> EngineInfo:
        return EngineInfo(
            total_count=self._total_count,
            freq_hz=self.freq_hz,
            baseline_rows=self.baseline_rows,
            hr_ratio=self.hr_ratio,
            rmssd_ratio=self.rmssd_ratio,
            pnn50_ratio=self.pnn50_ratio,
            baseline_size=len(self._baseline),
            sliding_size=len(self._sliding),
            last_valid_hr=self._last_valid_hr,
            model_version=self.model.version,
        )

    def process_chunk(
        self,
        rows: list[Sample],
        sampling_hz: int = DEFAULT_PPG_SAMPLING_HZ,
    ) -> StressResult:
        """
        Process one chunk of samples and return its `StressResult`.

        Parameters
        ----------
        rows        : list[Sample]   Samples of this chunk, in arrival order.
        sampling_hz : int            PPG sampling rate; only used when HRV
                                     has to be derived from PPG peaks.  A
                                     non-positive rate yields no intervals.
        """
        if not rows:
            logger.warning("Empty chunk — returning a degenerate result, state untouched.")
            return StressResult()

        # ── Heart rate ───────────────────────────────────────────────────
        hr_values = [r.hr for r in rows if r.hr is not None]
        ibi_all = filter_ibi(ibi for r in rows for ibi in (r.ibi_ms_list or ()))

        hr_mean = resolve_hr_mean(hr_values, ibi_all, self._last_valid_hr)
        if is_valid_hr(hr_mean):
            self._last_valid_hr = hr_mean

        # ── PPG ──────────────────────────────────────────────────────────
        ppg_values = [r.ppg for r in rows if r.ppg is not None]
        ppg_mean = _mean_or_none(ppg_values)

        # ── HRV: IBI is the primary source, PPG peaks the fallback ───────
        rmssd: float | None = None
        pnn50: float | None = None
        if ibi_all:
            rmssd, pnn50 = compute_rmssd_and_pnn50(ibi_all)
            source = "ibi"
        elif ppg_values:
            nn = nn_intervals_from_ppg(ppg_values, sampling_hz)
            rmssd, pnn50 = compute_rmssd_and_pnn50(nn)
            source = "ppg"
        else:
            source = "none"

        logger.debug(
            "Chunk of %d rows — source=%s, hr=%s, rmssd=%s, pnn50=%s",
            len(rows), source, hr_mean, rmssd, pnn50,
        )

        return self.process_point(HrvPoint(hr_mean=hr_mean, rmssd=rmssd, pnn50=pnn50),
                                  ppg_mean=ppg_mean)

    def process_point(self, point: HrvPoint, ppg_mean: float | None = None) -> StressResult:
        """
        Push an already-computed `HrvPoint` through both windows, the
        detection rules, and the classifier.
        """
        self._total_count += 1

        if self._baseline.append(point) and self._baseline.is_full:
            logger.info("Baseline window complete (%d points).", self.baseline_rows)
        self._sliding.append(point)

        status_basic = STATUS_SUCCESS
        if self._baseline.is_full and self._is_stressed(point, self._baseline.averages()):
            status_basic = STATUS_BASIC_WARNING

        status_sliding = STATUS_SUCCESS
        if self._sliding.is_full and self._is_stressed(point, self._sliding.averages()):
            status_sliding = STATUS_SLIDING_WARNING

        if status_basic == STATUS_BASIC_WARNING or status_sliding == STATUS_SLIDING_WARNING:
            status = STATUS_WARNING
            logger.info(
                "Stress warning #%d — basic=%s, sliding=%s (hr=%.1f, rmssd=%.1f, pnn50=%.1f)",
                self._total_count, status_basic, status_sliding,
                point.hr_mean, point.rmssd, point.pnn50,
            )
        else:
            status = STATUS_SUCCESS

        ml_score = self.model.probability(point.hr_mean, point.rmssd, point.pnn50)

        return StressResult(
            status=status,
            status_basic=status_basic,
            status_sliding=status_sliding,
            hr_mean=point.hr_mean,
            rmssd=point.rmssd,
            pnn50=point.pnn50,
            ppg_mean=ppg_mean,
            ml_score=ml_score,
            ml_label=ml_label_from_score(ml_score),
        )

    # ── Private ──────────────────────────────────────────────────────────────

    def _is_stressed(
        self,
        point: HrvPoint,
        reference: tuple[float | None, float | None, float | None],
    ) -> bool:
        """Conjunctive three-signal rule against (avg_hr, avg_rmssd, avg_pnn50)."""
        ref_hr, ref_rmssd, ref_pnn50 = reference
        if None in (point.hr_mean, point.rmssd, point.pnn50, ref_hr, ref_rmssd, ref_pnn50):
            return False
        hrv_drop = point.rmssd * self.rmssd_ratio < ref_rmssd
        hr_rise = point.hr_mean > ref_hr * self.hr_ratio
        pnn_drop = point.pnn50 * self.pnn50_ratio < ref_pnn50
        return hrv_drop and hr_rise and pnn_drop
