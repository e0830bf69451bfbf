"""
Applicability Evaluator - which questions are currently relevant.

Walks a resolved question tree depth-first against the answers collected so
far. A question is applicable when it is active, its cross-form dependency
holds, and (for sub-questions) the parent's current answer triggers it.
The result drives completion percentages and which sub-questions the form
renders and requires.

Nothing is cached: callers re-run the evaluation with a fresh answer
snapshot after every change.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from ..config import EXCLUSIVE_OPTION
from ..schemas.questions import Question
from .triggers import is_dependency_met, is_sub_question_triggered


def applicable_questions(
    tree: Iterable[Question],
    current_answers: Optional[Mapping[str, Any]],
    cross_form_answers: Optional[Mapping[str, Any]] = None,
    exclusive_option: str = EXCLUSIVE_OPTION,
) -> list[Question]:
    """
    Flatten the tree into the questions that are presently applicable.

    Args:
        tree: Root questions, each carrying its sub_questions
        current_answers: Answers of the form being evaluated
        cross_form_answers: Answers of the other form, for dependencies
        exclusive_option: Checkbox option that cancels `NOT_NONE` triggers

    Returns:
        Applicable questions in depth-first pre-order
    """
    answers = current_answers or {}
    other_answers = cross_form_answers or {}
    applicable: list[Question] = []
    seen: set[str] = set()

    def visit(question: Question) -> None:
        if question.id in seen or not question.is_active:
            return
        if not is_dependency_met(question, other_answers):
            return
        seen.add(question.id)
        applicable.append(question)

        parent_answer = answers.get(question.id)
        for sub in question.sub_questions:
            if sub.is_active and is_sub_question_triggered(question, sub, parent_answer, exclusive_option):
                visit(sub)

    for root in tree:
        visit(root)
    return applicable


def applicable_ids(
    tree: Iterable[Question],
    current_answers: Optional[Mapping[str, Any]],
    cross_form_answers: Optional[Mapping[str, Any]] = None,
    exclusive_option: str = EXCLUSIVE_OPTION,
) -> list[str]:
    return [q.id for q in applicable_questions(tree, current_answers, cross_form_answers, exclusive_option)]
