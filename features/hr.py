"""
features/hr.py — Chunk-level heart rate
========================================
Resolves one mean heart rate per chunk, in priority order:

1. Mean of the reported HR values that fall in the physiological band.
2. The last valid mean carried forward from an earlier chunk.
3. 60 000 / mean IBI, when inter-beat intervals were reported.

If none of these yield a plausible value the chunk has no heart rate.
"""

import numpy as np
from config import MIN_HEART_RATE_BPM, MAX_HEART_RATE_BPM


def is_valid_hr(hr_bpm: float | None) -> bool:
    """True if `hr_bpm` is present and within [MIN, MAX] BPM."""
    return hr_bpm is not None and MIN_HEART_RATE_BPM <= hr_bpm <= MAX_HEART_RATE_BPM


def mean_valid_hr(values: list[float]) -> float | None:
    """Average of the in-range values, or None if there are none."""
    valid = [v for v in values if is_valid_hr(v)]
    if not valid:
        return None
    return float(np.mean(valid))


def hr_from_ibi(ibi_ms: list[float]) -> float | None:
    """Mean heart rate implied by a list of IBIs (ms), if plausible."""
    if not ibi_ms:
        return None
    avg_ibi = float(np.mean(ibi_ms))
    if avg_ibi <= 0.0:
        return None
    hr_bpm = 60000.0 / avg_ibi
    return hr_bpm if is_valid_hr(hr_bpm) else None


def resolve_hr_mean(
    hr_values: list[float],
    ibi_ms: list[float],
    last_valid_hr: float | None,
) -> float | None:
    """Pick the chunk's mean HR using the priority order above."""
    hr_mean = mean_valid_hr(hr_values)
    if hr_mean is None:
        hr_mean = last_valid_hr
    if hr_mean is None:
        hr_mean = hr_from_ibi(ibi_ms)
    return hr_mean
