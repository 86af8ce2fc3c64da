"""
engine/schemas.py — Engine input / output models
==================================================
`Sample` is the unit the wearable (or any upstream collaborator) hands us;
it accepts both snake_case names and the JSON keys the phone app posts
(`Device`, `PPG`, `HR`, `uuid`, `User_ID`, `AccX`, …).

`StressResult` is what the engine returns once per chunk.  `HrvPoint` is
the compact per-chunk snapshot the engine keeps in its windows.
"""

from dataclasses import dataclass
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from utils.logger import get_logger

logger = get_logger("engine.schemas")

STATUS_SUCCESS = "success"
STATUS_WARNING = "warning"
STATUS_BASIC_WARNING = "basic_warning"
STATUS_SLIDING_WARNING = "sliding_warning"


# ── Input ────────────────────────────────────────────────────────────────────


class Sample(BaseModel):
    """One sensor observation (a row of a chunk)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    device: str = Field(..., alias="Device", description="Device label, e.g. 'Polar Sense'.")
    time_date: Optional[Union[str, float]] = Field(None, alias="TimeDate")
    time: Optional[Union[str, float]] = Field(None, alias="Time")
    ppg: Optional[float] = Field(None, alias="PPG", description="PPG waveform value.")
    hr: Optional[float] = Field(None, alias="HR", description="Instantaneous heart rate (BPM).")
    ibi_ms_list: Optional[list[float]] = Field(
        None, alias="ibiMsList", description="Inter-beat intervals reported with this row (ms)."
    )
    session_id: str = Field(..., alias="uuid", description="Recording session identifier.")
    user_id: Optional[str] = Field(None, alias="User_ID")
    acc_x: Optional[float] = Field(None, alias="AccX")
    acc_y: Optional[float] = Field(None, alias="AccY")
    acc_z: Optional[float] = Field(None, alias="AccZ")
    ppg0: Optional[float] = None
    ppg2: Optional[float] = None

    @field_validator("user_id")
    @classmethod
    def _blank_user_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def session_key(self) -> str:
        """Key used to route this row to its engine: 'device|session'."""
        return f"{self.device}|{self.session_id}"

    @classmethod
    def parse_many(cls, records: list[dict], strict: bool = False) -> list["Sample"]:
        """
        Validate a list of raw JSON records.

        With `strict=False` malformed records are logged and skipped;
        with `strict=True` the first `ValidationError` is re-raised.
        """
        samples: list[Sample] = []
        for idx, record in enumerate(records):
            try:
                samples.append(cls.model_validate(record))
            except ValidationError as e:
                if strict:
                    raise
                logger.warning("Skipping invalid sample #%d: %s", idx, e.errors()[0]["msg"])
        return samples


# ── Engine state ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HrvPoint:
    """Per-chunk HRV snapshot kept in the baseline / sliding windows."""
    hr_mean: Optional[float] = None
    rmssd: Optional[float] = None
    pnn50: Optional[float] = None


@dataclass(frozen=True)
class EngineInfo:
    """Read-only view of an engine's configuration and counters."""
    total_count: int
    freq_hz: int
    baseline_rows: int
    hr_ratio: float
    rmssd_ratio: float
    pnn50_ratio: float
    baseline_size: int
    sliding_size: int
    last_valid_hr: Optional[float]
    model_version: str


# ── Output ───────────────────────────────────────────────────────────────────


class StressResult(BaseModel):
    """Outcome of processing one chunk."""
    model_config = ConfigDict(frozen=True)

    status: Literal["success", "warning"] = STATUS_SUCCESS
    status_basic: Literal["success", "basic_warning"] = STATUS_SUCCESS
    status_sliding: Literal["success", "sliding_warning"] = STATUS_SUCCESS
    hr_mean: Optional[float] = None
    rmssd: Optional[float] = None
    pnn50: Optional[float] = None
    ppg_mean: Optional[float] = None
    ml_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    ml_label: Optional[Literal["ml_stress", "ml_relaxed", "ml_uncertain"]] = None

    @property
    def is_warning(self) -> bool:
        return self.status == STATUS_WARNING
