"""
ppg/conditioning.py — Waveform normalisation & peak detection
==============================================================
Turns a raw PPG chunk into beat locations:

    raw PPG  →  z-score  →  local maxima above a height threshold
             →  refractory suppression (min distance between beats)

The detector is intentionally simple: a wearable PPG stream already
arrives band-limited, and the chunk sizes we see (a few hundred samples)
are too short for adaptive filtering to settle.

Plateaus
--------
A sample is a peak when it is strictly greater than its left neighbour
and greater than *or equal to* its right neighbour, so a flat top is
reported at its left-most sample.
"""

import numpy as np
from config import PEAK_MIN_DISTANCE, PEAK_MIN_HEIGHT


def z_score_normalize(values: list[float]) -> list[float]:
    """
    Standardise a waveform to zero mean and unit (population) variance.

    Parameters
    ----------
    values : list[float]   Raw PPG samples.

    Returns
    -------
    list[float]
        Normalised samples.  Empty input is returned unchanged; a
        zero-variance input maps to all zeros rather than dividing by 0.
    """
    if len(values) == 0:
        return values

    arr = np.asarray(values, dtype=np.float64)

    # A constant signal can leave a rounding-level std (mean of repeated
    # floats is not always exact), so test the values themselves too.
    sd = float(np.std(arr))              # ddof=0 → population std
    if sd == 0.0 or np.all(arr == arr[0]):
        return [0.0] * len(arr)

    return ((arr - arr.mean()) / sd).tolist()


def find_peaks_simple(
    z: list[float],
    min_distance: int = PEAK_MIN_DISTANCE,
    min_height: float = PEAK_MIN_HEIGHT,
) -> list[int]:
    """
    Locate local maxima in a normalised waveform.

    Parameters
    ----------
    z            : list[float]   Normalised waveform (see `z_score_normalize`).
    min_distance : int           Minimum index gap between accepted peaks.
    min_height   : float         Candidates must exceed this value.

    Returns
    -------
    list[int]
        Ascending peak indices; no two are closer than `min_distance`.
        The first and last samples are never reported.
    """
    peaks: list[int] = []
    last = None
    for i in range(1, len(z) - 1):
        if z[i] > min_height and z[i] > z[i - 1] and z[i] >= z[i + 1]:
            if last is None or i - last >= min_distance:
                peaks.append(i)
                last = i
    return peaks
