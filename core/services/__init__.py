"""
Core services for the application.

This package contains the main service implementations for the application,
including resilient fetching, vital sign scoring and risk classification.
"""

from .assessment import AssessmentOutcome, AssessmentService, PatientRecordsAPI
from .classification import RiskClassifier, assess_patient, classify_patients
from .normalizers import normalize_number, parse_blood_pressure
from .resilient_fetcher import ResilientFetcher
from .risk_scoring import score_age, score_blood_pressure, score_temperature

__all__ = [
    "AssessmentOutcome",
    "AssessmentService",
    "PatientRecordsAPI",
    "ResilientFetcher",
    "RiskClassifier",
    "assess_patient",
    "classify_patients",
    "normalize_number",
    "parse_blood_pressure",
    "score_age",
    "score_blood_pressure",
    "score_temperature",
]
