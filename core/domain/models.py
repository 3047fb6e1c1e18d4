"""
Domain models for patient risk assessment.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation but could be swapped to dataclasses if needed.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VitalSign(str, Enum):
    """Vital signs scored for every patient."""

    BLOOD_PRESSURE = "blood_pressure"
    TEMPERATURE = "temperature"
    AGE = "age"


class BloodPressureCategory(str, Enum):
    """Blood pressure stages, highest risk first."""

    STAGE_2 = "stage_2"
    STAGE_1 = "stage_1"
    ELEVATED = "elevated"
    NORMAL = "normal"
    UNCATEGORIZED = "uncategorized"


class PatientRecord(BaseModel):
    """
    One item of a patients page.

    Every field is loosely typed: the API guarantees nothing, so values may be
    absent, null, wrongly typed or malformed. Validation happens in the
    normalizers, not here.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    patient_id: Any = None
    blood_pressure: Any = None
    temperature: Any = None
    age: Any = None

    @property
    def usable_id(self) -> str | None:
        """The identifier when it is a non-empty string, else None."""
        if isinstance(self.patient_id, str) and self.patient_id:
            return self.patient_id
        return None


class BloodPressureReading(BaseModel):
    """Parsed "SYS/DIA" reading."""

    model_config = ConfigDict(frozen=True)

    systolic: float
    diastolic: float


class SubScore(BaseModel):
    """Risk contribution of a single vital sign."""

    model_config = ConfigDict(frozen=True)

    vital_sign: VitalSign
    score: int = Field(ge=0, le=4)
    valid: bool
    reason: str | None = Field(default=None, description="Why the raw value was rejected")


class BloodPressureScore(SubScore):
    category: BloodPressureCategory | None = None


class TemperatureScore(SubScore):
    fever: bool = False


class PatientAssessment(BaseModel):
    """Scored view of one patient record."""

    model_config = ConfigDict(frozen=True)

    patient_id: str
    blood_pressure: BloodPressureScore
    temperature: TemperatureScore
    age: SubScore
    high_risk_threshold: int = Field(default=4, gt=0)

    @property
    def total_risk(self) -> int:
        return self.blood_pressure.score + self.temperature.score + self.age.score

    @property
    def is_high_risk(self) -> bool:
        return self.total_risk >= self.high_risk_threshold

    @property
    def has_fever(self) -> bool:
        return self.temperature.valid and self.temperature.fever

    @property
    def has_data_quality_issue(self) -> bool:
        return not (self.blood_pressure.valid and self.temperature.valid and self.age.valid)

    @property
    def invalid_fields(self) -> list[VitalSign]:
        scores = (self.blood_pressure, self.temperature, self.age)
        return [s.vital_sign for s in scores if not s.valid]


class PatientsPage(BaseModel):
    """Decoded GET /patients response."""

    model_config = ConfigDict(frozen=True)

    records: list[PatientRecord] = Field(default_factory=list)
    has_next: bool = False
    skipped_items: int = Field(default=0, ge=0, description="Items that were not JSON objects")

    @classmethod
    def from_json(cls, body: dict[str, Any]) -> "PatientsPage":
        """
        Build a page from a decoded body without trusting its shape.

        A `data` value that is not a list contributes no records, and
        `pagination.hasNext` is read by truthiness.
        """
        data = body.get("data")
        items = data if isinstance(data, list) else []
        records = [PatientRecord.model_validate(item) for item in items if isinstance(item, dict)]

        pagination = body.get("pagination")
        has_next = bool(pagination.get("hasNext")) if isinstance(pagination, dict) else False

        return cls(records=records, has_next=has_next, skipped_items=len(items) - len(records))


class AssessmentPayload(BaseModel):
    """Body of POST /submit-assessment. Lists are deduplicated and sorted."""

    model_config = ConfigDict(frozen=True)

    high_risk_patients: list[str] = Field(default_factory=list)
    fever_patients: list[str] = Field(default_factory=list)
    data_quality_issues: list[str] = Field(default_factory=list)


class ClassificationSummary(BaseModel):
    """Counters reported alongside the payload."""

    records_seen: int = Field(default=0, ge=0)
    records_skipped: int = Field(default=0, ge=0)
    patients_assessed: int = Field(default=0, ge=0)
