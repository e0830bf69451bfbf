"""Numeric values that calculated rules and tenure conditions compare."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from ..config import BIRTH_YEAR_FIELD
from ..dates import days_between, parse_date, years_between
from ..schemas.guidance import Calculation, CalculationType, CalculationUnit


def age_in_years(
    profile: Mapping[str, Any],
    today: Optional[date] = None,
    birth_year_field: str = BIRTH_YEAR_FIELD,
) -> Optional[int]:
    """Whole years from January 1st of the profile's birth year until today."""
    raw = profile.get(birth_year_field)
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    try:
        year = int(raw)
    except (TypeError, ValueError):
        return None
    if not 1 <= year <= 9999:
        return None
    return years_between(date(year, 1, 1), today or date.today())


def tenure(
    answers: Mapping[str, Any],
    start_question_id: Optional[str],
    end_question_id: Optional[str],
    unit: CalculationUnit = CalculationUnit.YEARS,
) -> Optional[int]:
    if not start_question_id or not end_question_id:
        return None
    start = parse_date(answers.get(start_question_id))
    end = parse_date(answers.get(end_question_id))
    if start is None or end is None:
        return None
    if unit == CalculationUnit.DAYS:
        return days_between(start, end)
    return years_between(start, end)


def calculate(
    calculation: Calculation,
    answers: Mapping[str, Any],
    profile: Mapping[str, Any],
    today: Optional[date] = None,
    birth_year_field: str = BIRTH_YEAR_FIELD,
) -> Optional[int]:
    """Value of a rule's calculation, or None when its inputs are missing or invalid."""
    if calculation.type == CalculationType.AGE:
        return age_in_years(profile, today, birth_year_field)
    if calculation.type == CalculationType.TENURE:
        return tenure(
            answers,
            calculation.start_date_question_id,
            calculation.end_date_question_id,
            calculation.unit,
        )
    return None
