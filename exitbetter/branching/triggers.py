"""
Trigger checks for conditional questions.

Two kinds of conditions decide whether a question is shown:
- sub-question triggers against the parent's current answer
- cross-form dependencies against an answer from another form
"""

from __future__ import annotations

from typing import Any, Mapping

from ..config import EXCLUSIVE_OPTION
from ..schemas.questions import NOT_NONE, Question, QuestionType


def is_sub_question_triggered(
    parent: Question,
    sub_question: Question,
    parent_answer: Any,
    exclusive_option: str = EXCLUSIVE_OPTION,
) -> bool:
    """
    Whether the parent's answer reveals a sub-question.

    Checkbox parents hold a list: the sub-question fires when the list
    contains its trigger value. `NOT_NONE` fires for any non-empty list that
    does not include the exclusive option. Every other parent type compares
    its scalar answer for equality.
    """
    if parent.type == QuestionType.CHECKBOX:
        if not isinstance(parent_answer, (list, tuple)):
            return False
        if sub_question.trigger_value == NOT_NONE:
            return len(parent_answer) > 0 and exclusive_option not in parent_answer
        return sub_question.trigger_value in parent_answer
    if sub_question.trigger_value is None:
        return False
    return parent_answer == sub_question.trigger_value


def is_dependency_met(question: Question, cross_form_answers: Mapping[str, Any]) -> bool:
    """
    Whether a cross-form dependency holds.

    Questions without a dependency always pass. A missing referenced answer
    means the dependency is not triggered.
    """
    if not question.depends_on or not question.dependency_source:
        return True
    if question.depends_on not in cross_form_answers:
        return False
    answer = cross_form_answers[question.depends_on]
    expected = question.depends_on_value
    if isinstance(expected, (list, tuple)):
        if isinstance(answer, (list, tuple)):
            return any(a in expected for a in answer)
        return answer in expected
    return answer == expected
