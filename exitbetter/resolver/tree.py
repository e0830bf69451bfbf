"""
Tree Builder - links resolved questions into parent/child trees.

Sub-questions are attached to the parent named by `parent_id` when that
parent is part of the same map. A child whose parent was filtered out is
promoted to the root level instead of disappearing.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import replace
from typing import Iterable, Iterator, Optional

from ..schemas.questions import Question


def build_tree(flat_map: Mapping[str, Question]) -> list[Question]:
    """
    Build a forest from a flat id -> question map.

    Returns fresh question objects; the input map is left untouched.
    Raises TypeError when called with anything other than a mapping.
    """
    if not isinstance(flat_map, Mapping):
        raise TypeError(f"build_tree expects a mapping of id -> Question, got {type(flat_map).__name__}")

    nodes = {qid: replace(q, sub_questions=[]) for qid, q in flat_map.items()}
    cyclic = cyclic_ids(flat_map)
    roots: list[Question] = []
    for qid, node in nodes.items():
        parent = nodes.get(node.parent_id) if node.parent_id and qid not in cyclic else None
        if parent is not None:
            parent.sub_questions.append(node)
        else:
            roots.append(node)
    return roots


def cyclic_ids(flat_map: Mapping[str, Question]) -> set[str]:
    """
    Ids whose `parent_id` chain leads back to themselves.

    Such questions are placed at the root level, so every id in the map
    still appears in the built tree. Self-parents count as cycles.
    """
    cyclic: set[str] = set()
    for qid in flat_map:
        seen = {qid}
        current = flat_map[qid].parent_id
        while current and current in flat_map:
            if current in seen:
                if current == qid:
                    cyclic.add(qid)
                break
            seen.add(current)
            current = flat_map[current].parent_id
    return cyclic


def flatten_tree(roots: Iterable[Question]) -> Iterator[Question]:
    """Depth-first pre-order walk over a forest."""
    for question in roots:
        yield question
        yield from flatten_tree(question.sub_questions)


def find_question(roots: Iterable[Question], question_id: str) -> Optional[Question]:
    for question in flatten_tree(roots):
        if question.id == question_id:
            return question
    return None


def order_questions(
    questions: list[Question],
    question_order_by_section: Optional[Mapping[str, list[str]]] = None,
) -> list[Question]:
    """
    Sort questions within their sections.

    The key is the position in `question_order_by_section[section]`
    (unlisted ids sort after every listed one), then `sort_order`, then the
    original order. Sections keep the order in which they first appear.
    """
    order = question_order_by_section or {}
    index_lookup = {
        section: {qid: position for position, qid in enumerate(ids)}
        for section, ids in order.items()
    }

    section_rank: dict[str, int] = {}
    for question in questions:
        section_rank.setdefault(question.section, len(section_rank))

    def key(item: tuple[int, Question]) -> tuple:
        original, question = item
        listed = index_lookup.get(question.section, {}).get(question.id, math.inf)
        sort_order = question.sort_order if question.sort_order is not None else math.inf
        return (section_rank[question.section], listed, sort_order, original)

    return [question for _, question in sorted(enumerate(questions), key=key)]


def order_tree(
    roots: list[Question],
    question_order_by_section: Optional[Mapping[str, list[str]]] = None,
) -> list[Question]:
    """Order the roots and, recursively, every sub-question list."""
    ordered = order_questions(roots, question_order_by_section)
    return [
        replace(q, sub_questions=order_tree(q.sub_questions, question_order_by_section))
        if q.sub_questions else q
        for q in ordered
    ]
