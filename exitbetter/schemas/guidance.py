"""
Guidance rules, catalog entries and recommendation output.

Rules come in two kinds:
- DirectRule: fires when every condition holds (logical AND)
- CalculatedRule: computes age or tenure and picks the first matching range

Conditions of a direct rule are a tagged union, one dataclass per kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class CalculationType(str, Enum):
    AGE = "age"
    TENURE = "tenure"


class CalculationUnit(str, Enum):
    YEARS = "years"
    DAYS = "days"


def _id_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value]


@dataclass
class Assignments:
    task_ids: list[str] = field(default_factory=list)
    tip_ids: list[str] = field(default_factory=list)
    no_guidance_required: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "Assignments":
        if not isinstance(data, dict):
            return cls()
        return cls(
            task_ids=_id_list(data.get("taskIds")),
            tip_ids=_id_list(data.get("tipIds")),
            no_guidance_required=bool(data.get("noGuidanceRequired", False)),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"taskIds": list(self.task_ids), "tipIds": list(self.tip_ids)}
        if self.no_guidance_required:
            out["noGuidanceRequired"] = True
        return out


# =============================================================================
# CONDITIONS
# =============================================================================

@dataclass(frozen=True)
class QuestionCondition:
    """The answer to `question_id` equals (or, for lists, contains) `answer`."""
    question_id: str
    answer: Any
    kind: str = "question"


@dataclass(frozen=True)
class TenureCondition:
    """Tenure in whole years compared against one or two bounds."""
    operator: str                   # "lt", "gte", "gte_lt"
    bounds: tuple[float, ...]
    start_date_question_id: str = "startDate"
    end_date_question_id: str = "finalDate"
    label: str = ""
    kind: str = "tenure"


@dataclass(frozen=True)
class DateOffsetCondition:
    """Days from today until a date answer compared against `days`."""
    date_question_id: str
    operator: str                   # "gt", "lt"
    days: float
    label: str = ""
    kind: str = "date_offset"


Condition = Union[QuestionCondition, TenureCondition, DateOffsetCondition]

_TENURE_OPERATORS = {"lt": 1, "gte": 1, "gte_lt": 2}
_OFFSET_OPERATORS = {"gt", "lt"}


def parse_condition(data: Any) -> Optional[Condition]:
    """Parse one stored condition; None when it cannot be represented."""
    if not isinstance(data, dict):
        return None
    kind = data.get("type") or "question"
    try:
        if kind == "question":
            if not data.get("questionId") or data.get("answer") is None:
                return None
            return QuestionCondition(question_id=str(data["questionId"]), answer=data["answer"])
        if kind == "tenure":
            operator = data.get("operator")
            raw = data.get("value")
            values = raw if isinstance(raw, (list, tuple)) else [raw]
            needed = _TENURE_OPERATORS.get(operator)
            if needed is None or len(values) < needed:
                return None
            return TenureCondition(
                operator=operator,
                bounds=tuple(float(v) for v in values[:needed]),
                start_date_question_id=str(data.get("startDateQuestionId") or "startDate"),
                end_date_question_id=str(data.get("endDateQuestionId") or "finalDate"),
                label=str(data.get("label") or ""),
            )
        if kind == "date_offset":
            if data.get("operator") not in _OFFSET_OPERATORS or not data.get("dateQuestionId"):
                return None
            return DateOffsetCondition(
                date_question_id=str(data["dateQuestionId"]),
                operator=data["operator"],
                days=float(data.get("value")),
                label=str(data.get("label") or ""),
            )
    except (TypeError, ValueError):
        return None
    return None


def condition_to_dict(condition: Condition) -> dict:
    if isinstance(condition, QuestionCondition):
        return {"type": "question", "questionId": condition.question_id, "answer": condition.answer}
    if isinstance(condition, TenureCondition):
        return {
            "type": "tenure",
            "operator": condition.operator,
            "value": list(condition.bounds),
            "startDateQuestionId": condition.start_date_question_id,
            "endDateQuestionId": condition.end_date_question_id,
            "label": condition.label,
        }
    return {
        "type": "date_offset",
        "dateQuestionId": condition.date_question_id,
        "operator": condition.operator,
        "value": condition.days,
        "unit": "days",
        "comparison": "from_today",
        "label": condition.label,
    }


# =============================================================================
# RULES
# =============================================================================

@dataclass
class DirectRule:
    id: str
    conditions: list[Condition]
    assignments: Assignments
    name: str = ""
    question_id: str = ""
    type: str = "direct"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "questionId": self.question_id,
            "type": self.type,
            "conditions": [condition_to_dict(c) for c in self.conditions],
            "assignments": self.assignments.to_dict(),
        }


@dataclass
class Calculation:
    type: CalculationType
    unit: CalculationUnit = CalculationUnit.YEARS
    start_date_question_id: Optional[str] = None
    end_date_question_id: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"type": self.type.value, "unit": self.unit.value}
        if self.start_date_question_id:
            out["startDateQuestionId"] = self.start_date_question_id
        if self.end_date_question_id:
            out["endDateQuestionId"] = self.end_date_question_id
        return out


@dataclass
class Range:
    """Half-open interval [start, end) with its own assignments."""
    start: float
    end: float
    assignments: Assignments

    def contains(self, value: float) -> bool:
        return self.start <= value < self.end

    def to_dict(self) -> dict:
        return {"from": self.start, "to": self.end, "assignments": self.assignments.to_dict()}


@dataclass
class CalculatedRule:
    id: str
    calculation: Calculation
    ranges: list[Range]
    name: str = ""
    question_id: str = ""
    type: str = "calculated"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "questionId": self.question_id,
            "type": self.type,
            "calculation": self.calculation.to_dict(),
            "ranges": [r.to_dict() for r in self.ranges],
        }


GuidanceRule = Union[DirectRule, CalculatedRule]


def parse_rule(data: Any) -> Optional[GuidanceRule]:
    """
    Parse one stored rule.

    Returns None for records that can never be evaluated (unknown type,
    unparseable condition, bad calculation or range bounds). Such rules are
    treated as non-matching by the engine rather than raising.
    """
    if not isinstance(data, dict):
        return None
    rule_id = str(data.get("id") or "")
    name = str(data.get("name") or "")
    question_id = str(data.get("questionId") or data.get("question_id") or "")
    rule_type = data.get("type")

    if rule_type == "direct":
        raw_conditions = data.get("conditions") or []
        if not isinstance(raw_conditions, list):
            logger.debug("Dropping rule %s: conditions is not a list", rule_id)
            return None
        try:
            conditions: list[Condition] = []
            for raw in raw_conditions:
                condition = parse_condition(raw)
                if condition is None:
                    logger.debug("Dropping rule %s: unparseable condition %r", rule_id, raw)
                    return None
                conditions.append(condition)
            assignments = Assignments.from_dict(data.get("assignments"))
        except (TypeError, ValueError, AttributeError):
            logger.debug("Dropping direct rule %s: malformed conditions or assignments", rule_id)
            return None
        return DirectRule(
            id=rule_id,
            name=name,
            question_id=question_id,
            conditions=conditions,
            assignments=assignments,
        )

    if rule_type == "calculated":
        raw_calc = data.get("calculation")
        if not isinstance(raw_calc, dict):
            return None
        try:
            calculation = Calculation(
                type=CalculationType(raw_calc.get("type")),
                unit=CalculationUnit(raw_calc.get("unit") or CalculationUnit.YEARS.value),
                start_date_question_id=raw_calc.get("startDateQuestionId"),
                end_date_question_id=raw_calc.get("endDateQuestionId"),
            )
            ranges = [
                Range(
                    start=float(r["from"]),
                    end=float(r["to"]),
                    assignments=Assignments.from_dict(r.get("assignments")),
                )
                for r in data.get("ranges") or []
            ]
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.debug("Dropping calculated rule %s: malformed calculation or ranges", rule_id)
            return None
        return CalculatedRule(
            id=rule_id, name=name, question_id=question_id,
            calculation=calculation, ranges=ranges,
        )

    logger.debug("Dropping rule %s: unknown type %r", rule_id, rule_type)
    return None


def parse_rules(data: Any) -> list[GuidanceRule]:
    if not isinstance(data, list):
        return []
    return [rule for rule in (parse_rule(item) for item in data) if rule is not None]


# =============================================================================
# CATALOG ENTRIES
# =============================================================================

@dataclass
class MasterTask:
    id: str
    name: str = ""
    category: str = ""
    detail: str = ""
    type: str = ""
    deadline_type: Optional[str] = None
    deadline_days: Optional[int] = None
    linked_resource_id: Optional[str] = None
    is_company_specific: bool = False
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict, company_specific: bool = False) -> "MasterTask":
        days = data.get("deadlineDays", data.get("deadline_days"))
        try:
            days = int(days) if days is not None else None
        except (TypeError, ValueError):
            days = None
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            category=str(data.get("category", "")),
            detail=str(data.get("detail", "")),
            type=str(data.get("type", "")),
            deadline_type=data.get("deadlineType", data.get("deadline_type")),
            deadline_days=days,
            linked_resource_id=data.get("linkedResourceId"),
            is_company_specific=bool(data.get("isCompanySpecific", company_specific)),
            is_active=bool(data.get("isActive", True)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "detail": self.detail,
            "type": self.type,
            "deadlineType": self.deadline_type,
            "deadlineDays": self.deadline_days,
            "linkedResourceId": self.linked_resource_id,
            "isCompanySpecific": self.is_company_specific,
            "isActive": self.is_active,
        }


@dataclass
class MasterTip:
    id: str
    text: str = ""
    category: str = ""
    priority: str = ""
    type: str = ""
    is_company_specific: bool = False
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict, company_specific: bool = False) -> "MasterTip":
        return cls(
            id=str(data.get("id", "")),
            text=str(data.get("text", "")),
            category=str(data.get("category", "")),
            priority=str(data.get("priority", "")),
            type=str(data.get("type", "")),
            is_company_specific=bool(data.get("isCompanySpecific", company_specific)),
            is_active=bool(data.get("isActive", True)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category,
            "priority": self.priority,
            "type": self.type,
            "isCompanySpecific": self.is_company_specific,
            "isActive": self.is_active,
        }


# =============================================================================
# OUTPUT
# =============================================================================

@dataclass
class RecommendationItem:
    task_id: str
    task: str
    category: str
    timeline: str
    details: str = ""
    end_date: str = ""
    is_goal: bool = True
    is_company_specific: bool = False

    def to_dict(self) -> dict:
        return {
            "taskId": self.task_id,
            "task": self.task,
            "category": self.category,
            "timeline": self.timeline,
            "details": self.details,
            "endDate": self.end_date,
            "isGoal": self.is_goal,
            "isCompanySpecific": self.is_company_specific,
        }


@dataclass
class TipItem:
    tip_id: str
    text: str
    category: str
    priority: str = ""
    is_company_specific: bool = False

    def to_dict(self) -> dict:
        return {
            "tipId": self.tip_id,
            "text": self.text,
            "category": self.category,
            "priority": self.priority,
            "isCompanySpecific": self.is_company_specific,
        }


@dataclass
class Recommendations:
    tasks: list[RecommendationItem] = field(default_factory=list)
    tips: list[TipItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "tips": [t.to_dict() for t in self.tips],
        }
