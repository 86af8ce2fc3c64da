"""
model/stress.py — Stress probability (logistic regression)
============================================================

⚠️  DISCLAIMER: This is a heuristic WELLNESS INDICATOR, not a validated
    clinical stress measure.  True psychological stress is multi-factorial
    and cannot be reliably inferred from a few seconds of wearable data.

────────────────────────────────────────────────────────────────────────
Model
────────────────────────────────────────────────────────────────────────
A fixed-weight logistic regression over three per-chunk features:

    z = w0 + w_hr·HR + w_rmssd·RMSSD + w_pnn50·pNN50
    p = 1 / (1 + e^(−z))

The weights are a frozen, pre-trained artifact (see config.py); nothing
is learned online.  The HR weight dominates: with typical RMSSD/pNN50
values the probability crosses 0.5 at roughly 88 BPM.

Labels
------
    p ≥ 0.7        →  "ml_stress"
    p ≤ 0.3        →  "ml_relaxed"
    otherwise      →  "ml_uncertain"

The score is reported next to the engine's threshold warnings; it never
gates them.
────────────────────────────────────────────────────────────────────────
"""

import math
from dataclasses import dataclass

from config import (
    ML_MODEL_VERSION,
    ML_BIAS,
    ML_WEIGHT_HR,
    ML_WEIGHT_RMSSD,
    ML_WEIGHT_PNN50,
    ML_STRESS_THRESHOLD,
    ML_RELAXED_THRESHOLD,
)

ML_STRESS = "ml_stress"
ML_RELAXED = "ml_relaxed"
ML_UNCERTAIN = "ml_uncertain"


def _sigmoid(z: float) -> float:
    # Split on sign so math.exp never overflows for extreme z
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return e / (1.0 + e)


@dataclass(frozen=True)
class LogisticStressModel:
    """
    Frozen logistic-regression weights.

    Parameters
    ----------
    bias, w_hr, w_rmssd, w_pnn50 : float   Model coefficients.
    version                      : str     Identifier of the weight set.
    """
    bias: float = ML_BIAS
    w_hr: float = ML_WEIGHT_HR
    w_rmssd: float = ML_WEIGHT_RMSSD
    w_pnn50: float = ML_WEIGHT_PNN50
    version: str = ML_MODEL_VERSION

    def probability(
        self,
        hr: float | None,
        rmssd: float | None,
        pnn50: float | None,
    ) -> float | None:
        """Stress probability in [0, 1], or None if any feature is missing."""
        if hr is None or rmssd is None or pnn50 is None:
            return None
        z = self.bias + self.w_hr * hr + self.w_rmssd * rmssd + self.w_pnn50 * pnn50
        return _sigmoid(z)


DEFAULT_MODEL = LogisticStressModel()


def ml_stress_probability(
    hr: float | None,
    rmssd: float | None,
    pnn50: float | None,
) -> float | None:
    """Stress probability from the default (frozen) model."""
    return DEFAULT_MODEL.probability(hr, rmssd, pnn50)


def ml_label_from_score(score: float | None) -> str | None:
    """Map a probability onto one of the three ML labels (None passes through)."""
    if score is None:
        return None
    if score >= ML_STRESS_THRESHOLD:
        return ML_STRESS
    if score <= ML_RELAXED_THRESHOLD:
        return ML_RELAXED
    return ML_UNCERTAIN
