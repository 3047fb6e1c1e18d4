"""
Classification aggregator.

Combines per-patient sub-scores into the three alert lists. Accumulators are
sets, so the same identifier seen twice lands once in each list; finalize()
sorts them lexicographically.
"""

from collections.abc import Iterable

import structlog

from core.config import ScoringConfig
from core.domain.models import (
    AssessmentPayload,
    ClassificationSummary,
    PatientAssessment,
    PatientRecord,
)
from core.services.risk_scoring import score_age, score_blood_pressure, score_temperature

logger = structlog.get_logger(__name__)


def assess_patient(
    record: PatientRecord, high_risk_threshold: int = 4
) -> PatientAssessment | None:
    """Score one record. Returns None when the record has no usable identifier."""
    patient_id = record.usable_id
    if patient_id is None:
        return None

    return PatientAssessment(
        patient_id=patient_id,
        blood_pressure=score_blood_pressure(record.blood_pressure),
        temperature=score_temperature(record.temperature),
        age=score_age(record.age),
        high_risk_threshold=high_risk_threshold,
    )


class RiskClassifier:
    """Incremental accumulator over patient records."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()
        self.logger = logger.bind(component="risk_classifier")
        self.high_risk: set[str] = set()
        self.fever: set[str] = set()
        self.data_quality_issues: set[str] = set()
        self._assessed: set[str] = set()
        self._records_seen = 0
        self._records_skipped = 0

    def add(self, record: PatientRecord) -> PatientAssessment | None:
        self._records_seen += 1

        assessment = assess_patient(record, self.config.high_risk_threshold)
        if assessment is None:
            self._records_skipped += 1
            self.logger.warning(
                "patient_skipped_missing_id",
                patient_id_type=type(record.patient_id).__name__,
            )
            return None

        patient_id = assessment.patient_id
        self._assessed.add(patient_id)

        if assessment.has_data_quality_issue:
            self.data_quality_issues.add(patient_id)
            self.logger.info(
                "data_quality_issue",
                patient_id=patient_id,
                invalid_fields=[f.value for f in assessment.invalid_fields],
            )
        if assessment.is_high_risk:
            self.high_risk.add(patient_id)
        if assessment.has_fever:
            self.fever.add(patient_id)

        self.logger.debug(
            "patient_assessed",
            patient_id=patient_id,
            total_risk=assessment.total_risk,
            high_risk=assessment.is_high_risk,
            fever=assessment.has_fever,
        )
        return assessment

    def add_all(self, records: Iterable[PatientRecord]) -> None:
        for record in records:
            self.add(record)

    def summary(self) -> ClassificationSummary:
        return ClassificationSummary(
            records_seen=self._records_seen,
            records_skipped=self._records_skipped,
            patients_assessed=len(self._assessed),
        )

    def finalize(self) -> AssessmentPayload:
        payload = AssessmentPayload(
            high_risk_patients=sorted(self.high_risk),
            fever_patients=sorted(self.fever),
            data_quality_issues=sorted(self.data_quality_issues),
        )
        self.logger.info(
            "classification_completed",
            high_risk=len(payload.high_risk_patients),
            fever=len(payload.fever_patients),
            data_quality_issues=len(payload.data_quality_issues),
            **self.summary().model_dump(),
        )
        return payload


def classify_patients(
    records: Iterable[PatientRecord], config: ScoringConfig | None = None
) -> AssessmentPayload:
    """Classify every record and return the finalized payload."""
    classifier = RiskClassifier(config)
    classifier.add_all(records)
    return classifier.finalize()
