"""
Branching logic for conditional question flow.

This module provides:
- Sub-question trigger checks (including NOT_NONE checkbox triggers)
- Cross-form dependency checks
- Applicable question evaluation
- Completion statistics
"""

from .triggers import is_dependency_met, is_sub_question_triggered
from .applicability import applicable_ids, applicable_questions
from .completion import (
    CompletionStats,
    SectionProgress,
    completion_stats,
    first_unsure_section,
    is_answered,
    unsure_question_ids,
)

__all__ = [
    "is_dependency_met",
    "is_sub_question_triggered",
    "applicable_ids",
    "applicable_questions",
    "CompletionStats",
    "SectionProgress",
    "completion_stats",
    "first_unsure_section",
    "is_answered",
    "unsure_question_ids",
]
