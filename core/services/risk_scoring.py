"""
Risk scorers.

Map each vital sign to a sub-score and a validity flag. An invalid input always
scores 0 with valid=False; the aggregator counts it as a data-quality issue.
"""

from typing import Any

from core.domain.models import (
    BloodPressureCategory,
    BloodPressureReading,
    BloodPressureScore,
    SubScore,
    TemperatureScore,
    VitalSign,
)
from core.services.normalizers import normalize_number, parse_blood_pressure

BLOOD_PRESSURE_POINTS: dict[BloodPressureCategory, int] = {
    BloodPressureCategory.STAGE_2: 4,
    BloodPressureCategory.STAGE_1: 3,
    BloodPressureCategory.ELEVATED: 2,
    BloodPressureCategory.NORMAL: 1,
    BloodPressureCategory.UNCATEGORIZED: 0,
}

# Temperature bands in °F
NORMAL_TEMPERATURE_MAX = 99.5
LOW_FEVER_MAX = 100.9
FEVER_THRESHOLD = 99.6

SENIOR_AGE = 65


def categorize_blood_pressure(reading: BloodPressureReading) -> BloodPressureCategory:
    """First matching category wins, checked from highest risk down."""
    sys_, dia = reading.systolic, reading.diastolic

    if sys_ >= 140 or dia >= 90:
        return BloodPressureCategory.STAGE_2
    if 130 <= sys_ <= 139 or 80 <= dia <= 89:
        return BloodPressureCategory.STAGE_1
    if 120 <= sys_ <= 129 and dia < 80:
        return BloodPressureCategory.ELEVATED
    if sys_ < 120 and dia < 80:
        return BloodPressureCategory.NORMAL
    # Numeric but outside every band (fractional gaps such as 139.5)
    return BloodPressureCategory.UNCATEGORIZED


def score_blood_pressure(raw: Any) -> BloodPressureScore:
    parsed = parse_blood_pressure(raw)
    if parsed.is_err():
        return BloodPressureScore(
            vital_sign=VitalSign.BLOOD_PRESSURE,
            score=0,
            valid=False,
            reason=parsed.unwrap_err().reason,
        )

    category = categorize_blood_pressure(parsed.unwrap())
    return BloodPressureScore(
        vital_sign=VitalSign.BLOOD_PRESSURE,
        score=BLOOD_PRESSURE_POINTS[category],
        valid=True,
        category=category,
    )


def score_temperature(raw: Any) -> TemperatureScore:
    """
    Score a Fahrenheit temperature.

    The fever flag is computed independently of the band (t >= 99.6), so a
    reading between 99.5 and 99.6 scores 1 without being a fever.
    """
    normalized = normalize_number(raw, VitalSign.TEMPERATURE)
    if normalized.is_err():
        return TemperatureScore(
            vital_sign=VitalSign.TEMPERATURE,
            score=0,
            valid=False,
            fever=False,
            reason=normalized.unwrap_err().reason,
        )

    t = normalized.unwrap()
    fever = t >= FEVER_THRESHOLD

    if t <= NORMAL_TEMPERATURE_MAX:
        score = 0
    elif t <= LOW_FEVER_MAX:
        score = 1
    else:
        score = 2

    return TemperatureScore(vital_sign=VitalSign.TEMPERATURE, score=score, valid=True, fever=fever)


def score_age(raw: Any) -> SubScore:
    """Over 65 scores 2, anything else numeric scores 1. No plausibility bounds."""
    normalized = normalize_number(raw, VitalSign.AGE)
    if normalized.is_err():
        return SubScore(
            vital_sign=VitalSign.AGE,
            score=0,
            valid=False,
            reason=normalized.unwrap_err().reason,
        )

    score = 2 if normalized.unwrap() > SENIOR_AGE else 1
    return SubScore(vital_sign=VitalSign.AGE, score=score, valid=True)
