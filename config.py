"""
config.py — Centralised configuration & hyper-parameters
=========================================================
Every tunable constant in the project lives here so that the rest of the
codebase can import from a single source of truth.
"""

# ─── Heart Rate ──────────────────────────────────────────────────────────────
# Reported HR values outside this band (inclusive) are treated as sensor
# artefacts and ignored.
MIN_HEART_RATE_BPM: float = 30.0
MAX_HEART_RATE_BPM: float = 220.0

# ─── Inter-Beat Intervals ────────────────────────────────────────────────────
# Plausible IBI range (exclusive), in milliseconds.
# 250 ms  →  240 BPM
# 2000 ms →   30 BPM
IBI_MIN_MS: float = 250.0
IBI_MAX_MS: float = 2000.0

# ─── PPG Peak Detection ──────────────────────────────────────────────────────
PEAK_MIN_DISTANCE: int = 50       # Refractory period, in samples
PEAK_MIN_HEIGHT: float = 0.2      # Threshold on the z-scored waveform
DEFAULT_PPG_SAMPLING_HZ: int = 130   # Polar Verity Sense PPG stream rate

# ─── HRV ─────────────────────────────────────────────────────────────────────
# Minimum number of NN intervals needed for non-zero RMSSD / pNN50
HRV_MIN_INTERVALS: int = 3
PNN50_THRESHOLD_MS: float = 50.0

# ─── Baseline & Sliding Windows ──────────────────────────────────────────────
# freq_hz is "HRV points per second"-equivalent; the baseline covers roughly
# BASELINE_MINUTES worth of chunks:  baseline_rows = (minutes * 60) / freq_hz
DEFAULT_BASELINE_FREQUENCY_HZ: int = 12
BASELINE_MINUTES: int = 10

# A chunk is flagged only when ALL three ratios are crossed at once.
HEART_RATE_THRESHOLD_RATIO: float = 1.05
RMSSD_THRESHOLD_RATIO: float = 1.09
PNN50_THRESHOLD_RATIO: float = 1.09

# ─── Stress Classifier ───────────────────────────────────────────────────────
# Frozen logistic-regression weights over (HR, RMSSD, pNN50).
# No online training happens; bump the version if the weights are replaced.
ML_MODEL_VERSION: str = "lr-hr-rmssd-pnn50-v1"
ML_BIAS: float = -44.24435565553951
ML_WEIGHT_HR: float = 0.5014126733435821
ML_WEIGHT_RMSSD: float = 0.008600895019301714
ML_WEIGHT_PNN50: float = -0.03421459783035022

ML_STRESS_THRESHOLD: float = 0.7    # score ≥ this  → "ml_stress"
ML_RELAXED_THRESHOLD: float = 0.3   # score ≤ this  → "ml_relaxed"

# ─── Chunk Batching ──────────────────────────────────────────────────────────
# Samples are flushed to the engine every FLUSH_EVERY_SECONDS or once
# MAX_BATCH samples have accumulated, whichever comes first.
FLUSH_EVERY_SECONDS: float = 12.0
MAX_BATCH: int = 300

# ─── Live Bus ────────────────────────────────────────────────────────────────
LIVE_REPLAY_SIZE: int = 64        # Results kept per session for late subscribers
