"""
Condition checks for direct guidance rules.

Each condition kind is evaluated against the combined answer snapshot.
Missing or unparseable inputs make a condition false; nothing here raises
for stored data.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from ..dates import days_between, parse_date
from ..schemas.guidance import Condition, DateOffsetCondition, QuestionCondition, TenureCondition
from .calculations import tenure


def answer_matches(answer: Any, expected: Any) -> bool:
    """Equality, or membership when the stored answer is a list."""
    if isinstance(answer, (list, tuple)):
        return expected in answer
    return answer == expected


def _question_holds(condition: QuestionCondition, answers: Mapping[str, Any]) -> bool:
    return answer_matches(answers.get(condition.question_id), condition.answer)


def _tenure_holds(condition: TenureCondition, answers: Mapping[str, Any]) -> bool:
    years = tenure(answers, condition.start_date_question_id, condition.end_date_question_id)
    if years is None:
        return False
    bounds = condition.bounds
    if condition.operator == "lt":
        return years < bounds[0]
    if condition.operator == "gte":
        return years >= bounds[0]
    if condition.operator == "gte_lt":
        return bounds[0] <= years < bounds[1]
    return False


def _date_offset_holds(condition: DateOffsetCondition, answers: Mapping[str, Any], today: date) -> bool:
    value = parse_date(answers.get(condition.date_question_id))
    if value is None:
        return False
    diff = days_between(today, value)
    if condition.operator == "gt":
        return diff > condition.days
    if condition.operator == "lt":
        return diff < condition.days
    return False


def condition_holds(condition: Condition, answers: Mapping[str, Any], today: Optional[date] = None) -> bool:
    if isinstance(condition, QuestionCondition):
        return _question_holds(condition, answers)
    if isinstance(condition, TenureCondition):
        return _tenure_holds(condition, answers)
    if isinstance(condition, DateOffsetCondition):
        return _date_offset_holds(condition, answers, today or date.today())
    return False


def all_conditions_hold(conditions: list[Condition], answers: Mapping[str, Any], today: Optional[date] = None) -> bool:
    """Logical AND; an empty condition list never holds."""
    if not conditions:
        return False
    return all(condition_holds(c, answers, today) for c in conditions)
