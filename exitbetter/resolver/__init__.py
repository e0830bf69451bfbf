"""
Question resolution: override merging, tree building and ordering.

This module provides:
- Master/company/project override merging
- Parent/child tree construction
- Section ordering and custom question moves
- Editor helpers that turn edits back into overrides
"""

from .overrides import (
    effective_is_active,
    merge_answer_guidance,
    merge_options,
    resolve_question_map,
    resolve_questions,
)
from .tree import build_tree, cyclic_ids, flatten_tree, find_question, order_questions, order_tree
from .ordering import move_custom_question, next_sort_order, section_order, sectioned_questions
from .editor import (
    EditOutcome,
    ReviewSuggestion,
    build_override,
    build_suggestion,
    has_master_update,
    save_question_edit,
)

__all__ = [
    "effective_is_active",
    "merge_answer_guidance",
    "merge_options",
    "resolve_question_map",
    "resolve_questions",
    "build_tree",
    "cyclic_ids",
    "flatten_tree",
    "find_question",
    "order_questions",
    "order_tree",
    "move_custom_question",
    "next_sort_order",
    "section_order",
    "sectioned_questions",
    "EditOutcome",
    "ReviewSuggestion",
    "build_override",
    "build_suggestion",
    "has_master_update",
    "save_question_edit",
]
