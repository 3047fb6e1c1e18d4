"""
Assessment pipeline that ties fetching, classification and submission together.

Control flow:
1. Walk every patients page through the records API
2. Normalize and score each record, accumulating the three alert lists
3. Submit the finalized payload exactly once (skipped on dry runs)

Fatal errors are not caught here; they unwind to the entry point.
"""

import time
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

from core.config import ScoringConfig
from core.domain.models import AssessmentPayload, ClassificationSummary, PatientRecord
from core.services.classification import RiskClassifier

logger = structlog.get_logger(__name__)


class PatientRecordsAPI(Protocol):
    """
    What the pipeline needs from the remote API.

    Why Protocol over ABC: Structural typing, easier mocking, less coupling.
    """

    async def fetch_all_patients(self) -> list[PatientRecord]: ...

    async def submit_assessment(self, payload: AssessmentPayload) -> dict[str, Any]: ...


@dataclass
class AssessmentOutcome:
    """Result of one run."""

    payload: AssessmentPayload
    summary: ClassificationSummary
    acknowledgment: dict[str, Any] | None = None
    submitted: bool = False
    duration_seconds: float = 0.0


class AssessmentService:
    """Runs one complete assessment against a records API."""

    def __init__(self, api: PatientRecordsAPI, scoring: ScoringConfig | None = None) -> None:
        self.api = api
        self.scoring = scoring or ScoringConfig()
        self.logger = logger.bind(component="assessment_service")

    def classify(
        self, records: list[PatientRecord]
    ) -> tuple[AssessmentPayload, ClassificationSummary]:
        classifier = RiskClassifier(self.scoring)
        classifier.add_all(records)
        return classifier.finalize(), classifier.summary()

    async def run(self, submit: bool = True) -> AssessmentOutcome:
        start_time = time.perf_counter()
        self.logger.info("assessment_starting", submit=submit)

        records = await self.api.fetch_all_patients()
        payload, summary = self.classify(records)

        outcome = AssessmentOutcome(payload=payload, summary=summary)
        if submit:
            outcome.acknowledgment = await self.api.submit_assessment(payload)
            outcome.submitted = True
        else:
            self.logger.info("submission_skipped_dry_run")

        outcome.duration_seconds = round(time.perf_counter() - start_time, 3)
        self.logger.info(
            "assessment_completed",
            submitted=outcome.submitted,
            duration_seconds=outcome.duration_seconds,
        )
        return outcome
