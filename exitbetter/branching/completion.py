"""
Completion statistics over the applicable questions of a form.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from ..config import UNSURE_VALUE
from ..schemas.questions import Question


@dataclass
class SectionProgress:
    name: str
    total: int
    completed: int

    @property
    def percentage(self) -> float:
        return (self.completed / self.total) * 100 if self.total else 100.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "total": self.total,
            "completed": self.completed,
            "percentage": self.percentage,
        }


@dataclass
class CompletionStats:
    percentage: float
    is_complete: bool
    total_applicable: int
    completed: int
    incomplete_questions: list[Question] = field(default_factory=list)
    sections: list[SectionProgress] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "percentage": self.percentage,
            "isComplete": self.is_complete,
            "totalApplicable": self.total_applicable,
            "completed": self.completed,
            "incompleteQuestions": [q.id for q in self.incomplete_questions],
            "sections": [s.to_dict() for s in self.sections],
        }


def is_answered(value: Any, unsure_value: Optional[str] = UNSURE_VALUE) -> bool:
    """
    Whether a stored value counts as an answer.

    None, empty strings and empty lists are unanswered. When `unsure_value`
    is given, that literal is a valid stored value but still unanswered.
    """
    if value is None or value == "":
        return False
    if isinstance(value, (list, tuple, set)) and len(value) == 0:
        return False
    if unsure_value is not None and value == unsure_value:
        return False
    return True


def completion_stats(
    applicable: Iterable[Question],
    answers: Optional[Mapping[str, Any]],
    unsure_value: Optional[str] = UNSURE_VALUE,
) -> CompletionStats:
    """Completion of a form given its applicable questions."""
    questions = list(applicable)
    values = answers or {}
    if not questions:
        return CompletionStats(percentage=100.0, is_complete=True, total_applicable=0, completed=0)

    sections: dict[str, SectionProgress] = {}
    incomplete: list[Question] = []
    completed = 0
    for question in questions:
        progress = sections.setdefault(question.section, SectionProgress(question.section, 0, 0))
        progress.total += 1
        if is_answered(values.get(question.id), unsure_value):
            completed += 1
            progress.completed += 1
        else:
            incomplete.append(question)

    percentage = (completed / len(questions)) * 100
    return CompletionStats(
        percentage=percentage,
        is_complete=completed == len(questions),
        total_applicable=len(questions),
        completed=completed,
        incomplete_questions=incomplete,
        sections=list(sections.values()),
    )


def unsure_question_ids(answers: Optional[Mapping[str, Any]], unsure_value: str = UNSURE_VALUE) -> list[str]:
    return [qid for qid, value in (answers or {}).items() if value == unsure_value]


def first_unsure_section(question_ids: Iterable[str], questions: Mapping[str, Question]) -> Optional[str]:
    """Section of the first unsure answer that maps to a known question."""
    for qid in question_ids:
        question = questions.get(qid)
        if question is not None:
            return question.section
    return None
