"""
features/hrv.py — Heart Rate Variability (HRV) time-domain features
=====================================================================
Computes the two time-domain HRV metrics used by the stress engine from
a sequence of NN intervals (the time between consecutive normal beats):

    RMSSD — Root Mean Square of Successive Differences
    pNN50 — Percentage of successive differences > 50 ms

Clinical context (for reference only — this system is NOT clinical)
-------------------------------------------------------------------
* RMSSD is dominated by parasympathetic (vagal) tone and is less
  sensitive to non-stationarity than SDNN.  It is the preferred
  short-term HRV metric.
* pNN50 is a simplified proxy for RMSSD.

A chunk spans ~12 s of data, so a single value is noisy.  The engine
only ever compares chunk values against window *averages*.
"""

import numpy as np
from config import HRV_MIN_INTERVALS, PNN50_THRESHOLD_MS


def compute_rmssd_and_pnn50(nn_ms: list[float]) -> tuple[float, float]:
    """
    Compute RMSSD and pNN50 from NN intervals.

    Parameters
    ----------
    nn_ms : list[float]
        Successive NN intervals in **milliseconds**.

    Returns
    -------
    (rmssd_ms, pnn50) : tuple[float, float]
        RMSSD in ms and pNN50 as a percentage [0, 100].  Both are 0.0
        when fewer than HRV_MIN_INTERVALS intervals are supplied.
    """
    if len(nn_ms) < HRV_MIN_INTERVALS:
        return 0.0, 0.0

    # Successive differences: ΔNN_i = NN_{i+1} − NN_i
    successive_diffs = np.diff(np.asarray(nn_ms, dtype=np.float64))
    rmssd_ms = float(np.sqrt(np.mean(successive_diffs ** 2)))

    count_above_50 = int(np.sum(np.abs(successive_diffs) > PNN50_THRESHOLD_MS))
    pnn50 = count_above_50 * 100.0 / len(successive_diffs)

    return rmssd_ms, pnn50
