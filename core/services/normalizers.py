"""
Vital sign normalizers.

Turn loosely-typed record fields into validated numbers. Malformed input is
never raised: every function returns a Result whose error side is an
InvalidVitalSign describing the rejection.
"""

import math
import re
from typing import Any

from core.domain.models import BloodPressureReading, VitalSign
from core.domain.result import Result
from core.errors import InvalidVitalSign

# Unsigned decimal numeral: digits with an optional fractional part.
DECIMAL_NUMERAL = re.compile(r"[0-9]+(?:\.[0-9]+)?")

NumberResult = Result[float, InvalidVitalSign]
BloodPressureResult = Result[BloodPressureReading, InvalidVitalSign]


def is_decimal_numeral(text: str) -> bool:
    return DECIMAL_NUMERAL.fullmatch(text) is not None


def normalize_number(raw: Any, field: VitalSign | str = "value") -> NumberResult:
    """
    Accept a finite native number or a decimal-numeral string.

    Strings are trimmed; signs, exponents and empty strings are rejected.
    Booleans, None and every other type are invalid.
    """
    name = field.value if isinstance(field, VitalSign) else field

    if raw is None:
        return Result.err(InvalidVitalSign(name, "missing"))

    # bool is an int subclass
    if isinstance(raw, bool):
        return Result.err(InvalidVitalSign(name, "boolean is not a number"))

    if isinstance(raw, int | float):
        try:
            value = float(raw)
        except OverflowError:
            return Result.err(InvalidVitalSign(name, "number out of range"))
        if not math.isfinite(value):
            return Result.err(InvalidVitalSign(name, "number is not finite"))
        return Result.ok(value)

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return Result.err(InvalidVitalSign(name, "empty string"))
        if not is_decimal_numeral(text):
            return Result.err(InvalidVitalSign(name, f"not a decimal numeral: {text!r}"))
        value = float(text)
        if not math.isfinite(value):
            return Result.err(InvalidVitalSign(name, "number is not finite"))
        return Result.ok(value)

    return Result.err(InvalidVitalSign(name, f"unsupported type {type(raw).__name__}"))


def parse_blood_pressure(raw: Any) -> BloodPressureResult:
    """Parse a "SYS/DIA" string into a reading."""
    name = VitalSign.BLOOD_PRESSURE.value

    if raw is None:
        return Result.err(InvalidVitalSign(name, "missing"))
    if not isinstance(raw, str):
        return Result.err(InvalidVitalSign(name, f"unsupported type {type(raw).__name__}"))

    text = raw.strip()
    if not text:
        return Result.err(InvalidVitalSign(name, "empty string"))

    parts = text.split("/")
    if len(parts) != 2:
        return Result.err(InvalidVitalSign(name, f"expected SYS/DIA, got {text!r}"))

    systolic, diastolic = (part.strip() for part in parts)
    if not systolic or not diastolic:
        return Result.err(InvalidVitalSign(name, f"missing component in {text!r}"))
    if not (is_decimal_numeral(systolic) and is_decimal_numeral(diastolic)):
        return Result.err(InvalidVitalSign(name, f"non-numeric component in {text!r}"))

    reading = BloodPressureReading(systolic=float(systolic), diastolic=float(diastolic))
    # Overlong numerals overflow to inf
    if not (math.isfinite(reading.systolic) and math.isfinite(reading.diastolic)):
        return Result.err(InvalidVitalSign(name, "number is not finite"))
    return Result.ok(reading)
