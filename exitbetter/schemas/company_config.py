"""
Company and project override records.

Overrides are partial: only the fields a company or project changed are
stored. Records come from the configuration store and are parsed
permissively, unknown fields are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .guidance import MasterTask, MasterTip
from .questions import (
    AnswerGuidance,
    Question,
    guidance_to_dict,
    parse_guidance_overrides,
    parse_question_map,
    record_list,
)


def _id_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []
    return [str(v) for v in value]


@dataclass
class OptionOverrides:
    add: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["OptionOverrides"]:
        if not isinstance(data, dict):
            return None
        return cls(add=_id_list(data.get("add")), remove=_id_list(data.get("remove")))

    def to_dict(self) -> dict:
        return {"add": list(self.add), "remove": list(self.remove)}


@dataclass
class QuestionOverride:
    """Company-level changes to one master question."""
    is_active: Optional[bool] = None
    label: Optional[str] = None
    description: Optional[str] = None
    option_overrides: Optional[OptionOverrides] = None
    last_updated: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "QuestionOverride":
        if not isinstance(data, dict):
            return cls()
        is_active = data.get("isActive")
        return cls(
            is_active=bool(is_active) if is_active is not None else None,
            label=data.get("label") if isinstance(data.get("label"), str) else None,
            description=data.get("description") if isinstance(data.get("description"), str) else None,
            option_overrides=OptionOverrides.from_dict(data.get("optionOverrides")),
            last_updated=data.get("lastUpdated"),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {}
        if self.is_active is not None:
            out["isActive"] = self.is_active
        if self.label is not None:
            out["label"] = self.label
        if self.description is not None:
            out["description"] = self.description
        if self.option_overrides is not None:
            out["optionOverrides"] = self.option_overrides.to_dict()
        if self.last_updated is not None:
            out["lastUpdated"] = self.last_updated
        return out

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass
class ProjectConfig:
    """Per-project visibility and guidance overrides inside one company."""
    hidden_questions: frozenset[str] = field(default_factory=frozenset)
    hidden_answers: dict[str, frozenset[str]] = field(default_factory=dict)
    answer_guidance_overrides: dict[str, AnswerGuidance] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "ProjectConfig":
        if not isinstance(data, dict):
            return cls()
        raw_hidden = data.get("hiddenAnswers")
        hidden_answers = {
            str(qid): frozenset(_id_list(options))
            for qid, options in raw_hidden.items()
        } if isinstance(raw_hidden, dict) else {}
        return cls(
            hidden_questions=frozenset(_id_list(data.get("hiddenQuestions"))),
            hidden_answers=hidden_answers,
            answer_guidance_overrides=parse_guidance_overrides(data.get("answerGuidanceOverrides")),
        )

    def to_dict(self) -> dict:
        return {
            "hiddenQuestions": sorted(self.hidden_questions),
            "hiddenAnswers": {qid: sorted(opts) for qid, opts in self.hidden_answers.items()},
            "answerGuidanceOverrides": {
                qid: guidance_to_dict(g) for qid, g in self.answer_guidance_overrides.items()
            },
        }


@dataclass
class CompanyConfig:
    """Everything a company layers on top of the master catalog."""
    questions: dict[str, QuestionOverride] = field(default_factory=dict)
    custom_questions: dict[str, Question] = field(default_factory=dict)
    question_order_by_section: dict[str, list[str]] = field(default_factory=dict)
    answer_guidance_overrides: dict[str, AnswerGuidance] = field(default_factory=dict)
    company_tasks: list[MasterTask] = field(default_factory=list)
    company_tips: list[MasterTip] = field(default_factory=list)
    project_configs: dict[str, ProjectConfig] = field(default_factory=dict)

    def project(self, project_id: Optional[str]) -> Optional[ProjectConfig]:
        if not project_id:
            return None
        return self.project_configs.get(project_id)

    @classmethod
    def from_dict(cls, data: Any) -> "CompanyConfig":
        """
        Parse a stored company config.

        Accepts both the in-app camelCase shape and the snake_case column
        names of the `company_question_configs` table.
        """
        if not isinstance(data, dict):
            return cls()

        def pick(camel: str, snake: str) -> Any:
            return data.get(camel) if data.get(camel) is not None else data.get(snake)

        overrides = pick("questions", "question_overrides") or {}
        projects = pick("projectConfigs", "project_configs") or {}
        order = pick("questionOrderBySection", "question_order_by_section") or {}
        custom = parse_question_map(pick("customQuestions", "custom_questions") or {})
        for question in custom.values():
            question.is_custom = True
        return cls(
            questions={str(qid): QuestionOverride.from_dict(o)
                       for qid, o in overrides.items()} if isinstance(overrides, dict) else {},
            custom_questions=custom,
            question_order_by_section={str(s): _id_list(ids) for s, ids in order.items()}
            if isinstance(order, dict) else {},
            answer_guidance_overrides=parse_guidance_overrides(
                pick("answerGuidanceOverrides", "answer_guidance_overrides")),
            company_tasks=[MasterTask.from_dict(t, company_specific=True)
                           for t in record_list(pick("companyTasks", "company_tasks"))],
            company_tips=[MasterTip.from_dict(t, company_specific=True)
                          for t in record_list(pick("companyTips", "company_tips"))],
            project_configs={str(pid): ProjectConfig.from_dict(p)
                             for pid, p in projects.items()} if isinstance(projects, dict) else {},
        )

    def to_dict(self) -> dict:
        return {
            "questions": {qid: o.to_dict() for qid, o in self.questions.items()},
            "customQuestions": {qid: q.to_dict() for qid, q in self.custom_questions.items()},
            "questionOrderBySection": {s: list(ids) for s, ids in self.question_order_by_section.items()},
            "answerGuidanceOverrides": {
                qid: guidance_to_dict(g) for qid, g in self.answer_guidance_overrides.items()
            },
            "companyTasks": [t.to_dict() for t in self.company_tasks],
            "companyTips": [t.to_dict() for t in self.company_tips],
            "projectConfigs": {pid: p.to_dict() for pid, p in self.project_configs.items()},
        }
