"""
Question definitions for the profile and assessment forms.

A Question is a single prompt. Master questions come from the platform
catalog; companies layer overrides on top of them and may author their own
custom questions. Conditional sub-questions point at their parent through
`parent_id` and are revealed by `trigger_value`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

# trigger_value that fires for any non-empty, non-exclusive checkbox answer
NOT_NONE = "NOT_NONE"


class QuestionType(str, Enum):
    TEXT = "text"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"


class FormType(str, Enum):
    PROFILE = "profile"
    ASSESSMENT = "assessment"


CHOICE_TYPES = {QuestionType.SELECT, QuestionType.RADIO, QuestionType.CHECKBOX}


def _str_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v) for v in value]
    return [str(value)]


def record_list(value: Any) -> list[dict]:
    """Dict entries of a stored list; anything else yields nothing."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass
class GuidanceBundle:
    """
    Guidance attached to one answer value.

    Every field is optional so that a shallow merge can distinguish a field
    that is absent (keep the lower layer) from one explicitly set to empty.
    """
    tasks: Optional[list[str]] = None
    tips: Optional[list[str]] = None
    no_guidance_required: Optional[bool] = None

    @property
    def task_ids(self) -> list[str]:
        if self.no_guidance_required:
            return []
        return list(self.tasks or [])

    @property
    def tip_ids(self) -> list[str]:
        if self.no_guidance_required:
            return []
        return list(self.tips or [])

    def merged_with(self, other: Optional["GuidanceBundle"]) -> "GuidanceBundle":
        """Return a new bundle where fields set on `other` win."""
        if other is None:
            return GuidanceBundle(
                tasks=list(self.tasks) if self.tasks is not None else None,
                tips=list(self.tips) if self.tips is not None else None,
                no_guidance_required=self.no_guidance_required,
            )
        return GuidanceBundle(
            tasks=list(other.tasks) if other.tasks is not None else (
                list(self.tasks) if self.tasks is not None else None),
            tips=list(other.tips) if other.tips is not None else (
                list(self.tips) if self.tips is not None else None),
            no_guidance_required=(
                other.no_guidance_required
                if other.no_guidance_required is not None
                else self.no_guidance_required
            ),
        )

    @classmethod
    def from_dict(cls, data: Any) -> "GuidanceBundle":
        if not isinstance(data, dict):
            return cls()
        return cls(
            tasks=_str_list(data["tasks"]) if "tasks" in data and data["tasks"] is not None else None,
            tips=_str_list(data["tips"]) if "tips" in data and data["tips"] is not None else None,
            no_guidance_required=(
                bool(data["noGuidanceRequired"])
                if data.get("noGuidanceRequired") is not None
                else None
            ),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {}
        if self.tasks is not None:
            out["tasks"] = list(self.tasks)
        if self.tips is not None:
            out["tips"] = list(self.tips)
        if self.no_guidance_required is not None:
            out["noGuidanceRequired"] = self.no_guidance_required
        return out


AnswerGuidance = dict[str, GuidanceBundle]


def parse_answer_guidance(data: Any) -> AnswerGuidance:
    """Parse an `{answer: bundle}` mapping, ignoring malformed entries."""
    if not isinstance(data, dict):
        return {}
    return {str(answer): GuidanceBundle.from_dict(bundle)
            for answer, bundle in data.items() if isinstance(bundle, dict)}


def parse_guidance_overrides(data: Any) -> dict[str, AnswerGuidance]:
    """Parse an `{question_id: {answer: bundle}}` mapping."""
    if not isinstance(data, dict):
        return {}
    return {str(qid): parse_answer_guidance(answers)
            for qid, answers in data.items() if isinstance(answers, dict)}


def guidance_to_dict(guidance: AnswerGuidance) -> dict:
    return {answer: bundle.to_dict() for answer, bundle in guidance.items()}


@dataclass
class Question:
    """A single form question, master or custom."""
    id: str
    label: str = ""
    section: str = ""
    type: QuestionType = QuestionType.TEXT
    form_type: FormType = FormType.ASSESSMENT
    options: list[str] = field(default_factory=list)
    is_active: bool = True
    is_locked: bool = False          # Company may only suggest changes
    is_custom: bool = False          # Authored by a company, not in master catalog
    description: str = ""
    placeholder: str = ""
    default_value: Optional[Union[str, list[str]]] = None

    # Conditional sub-question
    parent_id: Optional[str] = None
    trigger_value: Optional[str] = None

    # Cross-form dependency
    depends_on: Optional[str] = None
    dependency_source: Optional[str] = None   # Form the referenced answer lives in
    depends_on_value: Optional[Union[str, list[str]]] = None

    answer_guidance: AnswerGuidance = field(default_factory=dict)
    project_answer_guidance: dict[str, dict[str, GuidanceBundle]] = field(default_factory=dict)

    # Custom questions only
    project_ids: list[str] = field(default_factory=list)
    position: Optional[str] = None   # "top" | "bottom" within the section
    sort_order: Optional[int] = None

    last_updated: Optional[str] = None
    sub_questions: list["Question"] = field(default_factory=list)

    @property
    def is_choice(self) -> bool:
        return self.type in CHOICE_TYPES

    @classmethod
    def from_dict(cls, data: dict, question_id: Optional[str] = None) -> "Question":
        """Build a question from its stored camelCase record."""
        qid = str(data.get("id") or question_id or "")
        raw_type = data.get("type", QuestionType.TEXT.value)
        try:
            qtype = QuestionType(raw_type)
        except ValueError:
            logger.debug("Question %s has unknown type %r, treating as text", qid, raw_type)
            qtype = QuestionType.TEXT
        raw_form = data.get("formType") or FormType.ASSESSMENT.value
        try:
            form_type = FormType(raw_form)
        except ValueError:
            logger.debug("Question %s has unknown form %r, treating as assessment", qid, raw_form)
            form_type = FormType.ASSESSMENT

        depends_on_value = data.get("dependsOnValue")
        if isinstance(depends_on_value, (list, tuple)):
            depends_on_value = [str(v) for v in depends_on_value]

        project_guidance: dict[str, dict[str, GuidanceBundle]] = {}
        raw_project_guidance = data.get("projectAnswerGuidance")
        if isinstance(raw_project_guidance, dict):
            for answer, per_project in raw_project_guidance.items():
                if isinstance(per_project, dict):
                    project_guidance[str(answer)] = parse_answer_guidance(per_project)

        sort_order = data.get("sortOrder")
        try:
            sort_order = int(sort_order) if sort_order is not None else None
        except (TypeError, ValueError):
            sort_order = None

        return cls(
            id=qid,
            label=str(data.get("label", "")),
            section=str(data.get("section", "")),
            type=qtype,
            form_type=form_type,
            options=_str_list(data.get("options")),
            is_active=bool(data.get("isActive", True)),
            is_locked=bool(data.get("isLocked", False)),
            is_custom=bool(data.get("isCustom", False)),
            description=str(data.get("description") or ""),
            placeholder=str(data.get("placeholder") or ""),
            default_value=data.get("defaultValue"),
            parent_id=data.get("parentId") or None,
            trigger_value=data.get("triggerValue"),
            depends_on=data.get("dependsOn") or None,
            dependency_source=data.get("dependencySource") or None,
            depends_on_value=depends_on_value,
            answer_guidance=parse_answer_guidance(data.get("answerGuidance")),
            project_answer_guidance=project_guidance,
            project_ids=_str_list(data.get("projectIds")),
            position=data.get("position"),
            sort_order=sort_order,
            last_updated=data.get("lastUpdated"),
            sub_questions=[cls.from_dict(sub) for sub in record_list(data.get("subQuestions"))],
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "section": self.section,
            "type": self.type.value,
            "formType": self.form_type.value,
            "isActive": self.is_active,
        }
        if self.options:
            out["options"] = list(self.options)
        if self.is_locked:
            out["isLocked"] = True
        if self.is_custom:
            out["isCustom"] = True
        if self.description:
            out["description"] = self.description
        if self.placeholder:
            out["placeholder"] = self.placeholder
        if self.default_value is not None:
            out["defaultValue"] = self.default_value
        if self.parent_id:
            out["parentId"] = self.parent_id
        if self.trigger_value is not None:
            out["triggerValue"] = self.trigger_value
        if self.depends_on:
            out["dependsOn"] = self.depends_on
            out["dependencySource"] = self.dependency_source
            out["dependsOnValue"] = self.depends_on_value
        if self.answer_guidance:
            out["answerGuidance"] = guidance_to_dict(self.answer_guidance)
        if self.project_answer_guidance:
            out["projectAnswerGuidance"] = {
                answer: guidance_to_dict(per_project)
                for answer, per_project in self.project_answer_guidance.items()
            }
        if self.project_ids:
            out["projectIds"] = list(self.project_ids)
        if self.position:
            out["position"] = self.position
        if self.sort_order is not None:
            out["sortOrder"] = self.sort_order
        if self.last_updated:
            out["lastUpdated"] = self.last_updated
        if self.sub_questions:
            out["subQuestions"] = [sub.to_dict() for sub in self.sub_questions]
        return out


def parse_question_map(data: Any) -> dict[str, Question]:
    """Parse `{id: record}` or a list of records into an ordered id map."""
    questions: dict[str, Question] = {}
    if isinstance(data, dict):
        items = data.items()
    elif isinstance(data, list):
        items = ((item.get("id"), item) for item in data if isinstance(item, dict))
    else:
        return questions
    for qid, record in items:
        if not isinstance(record, dict):
            continue
        question = Question.from_dict(record, question_id=qid)
        if question.id:
            questions[question.id] = question
    return questions
