"""
features/intervals.py — NN-interval extraction
===============================================
Two sources feed the HRV metrics:

1. **Direct IBI / PPI reports** (preferred)
   The sensor's own beat timing.  Values are only sanity-filtered to a
   physiological range before use.

2. **PPG peaks** (fallback)
   Beat positions detected on the z-scored waveform, converted to
   milliseconds with the stream's sampling rate.
"""

import math

from ppg.conditioning import z_score_normalize, find_peaks_simple
from config import IBI_MIN_MS, IBI_MAX_MS, PEAK_MIN_DISTANCE, PEAK_MIN_HEIGHT


def nn_intervals_from_peaks(peaks: list[int], sampling_hz: float) -> list[float]:
    """
    Convert consecutive peak indices into NN intervals (ms).

    Returns an empty list when fewer than two peaks are available, or when
    the sampling rate cannot convert sample gaps into milliseconds.
    """
    if len(peaks) < 2 or not (math.isfinite(sampling_hz) and sampling_hz > 0):
        return []
    ms_per_sample = 1000.0 / sampling_hz
    return [(b - a) * ms_per_sample for a, b in zip(peaks, peaks[1:])]


def filter_ibi(values) -> list[float]:
    """Keep finite IBIs strictly inside (IBI_MIN_MS, IBI_MAX_MS)."""
    return [
        float(v) for v in values
        if v is not None and math.isfinite(v) and IBI_MIN_MS < v < IBI_MAX_MS
    ]


def nn_intervals_from_ppg(
    ppg: list[float],
    sampling_hz: float,
    min_distance: int = PEAK_MIN_DISTANCE,
    min_height: float = PEAK_MIN_HEIGHT,
) -> list[float]:
    """PPG chunk → z-score → peaks → NN intervals (ms)."""
    norm = z_score_normalize(ppg)
    peaks = find_peaks_simple(norm, min_distance=min_distance, min_height=min_height)
    return nn_intervals_from_peaks(peaks, sampling_hz)
