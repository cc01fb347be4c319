# rates.py
from __future__ import annotations
from domain import Grade, PreconditionError

# Base hourly rate per grade (EUR)
GRADE_RATES: dict[Grade, float] = {
    Grade.SAPEUR: 8.61,
    Grade.CAPORAL: 9.24,
    Grade.SERGENT: 10.43,
    Grade.LIEUTENANT: 12.96,
}


def base_rate(grade: Grade) -> float:
    """Hourly rate for a grade. Anything outside the Grade set is a caller bug."""
    try:
        return GRADE_RATES[grade]
    except (KeyError, TypeError):
        raise PreconditionError(f"Unknown grade: {grade!r}") from None
