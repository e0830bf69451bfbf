"""
Question ordering for the company form editor.

Custom questions carry an explicit `position` ("top" or "bottom" of their
section) and an integer `sort_order` within that position. Moving a
question returns a new mapping with re-indexed copies.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping, Optional

from ..schemas.questions import Question

MOVE_DIRECTIONS = ("up", "down", "to_top", "to_bottom")


def _same_slot(a: Question, b: Question) -> bool:
    return a.section == b.section and (a.position or "bottom") == (b.position or "bottom")


def next_sort_order(custom_questions: Mapping[str, Question], section: str, position: Optional[str]) -> int:
    """Sort order for a new custom question appended to a section slot."""
    slot = Question(id="", section=section, position=position)
    orders = [q.sort_order or 0 for q in custom_questions.values() if _same_slot(q, slot)]
    return (max(orders) if orders else 0) + 1


def move_custom_question(
    custom_questions: Mapping[str, Question],
    question_id: str,
    direction: str,
) -> dict[str, Question]:
    """
    Move a custom question within its section.

    `up`/`down` swap sort orders with the neighbour in the same section and
    position; `to_top`/`to_bottom` switch the position. A move past either
    end, or of an unknown id, returns an unchanged copy.
    """
    if direction not in MOVE_DIRECTIONS:
        raise ValueError(f"Unknown move direction: {direction!r}")

    result = dict(custom_questions)
    current = result.get(question_id)
    if current is None:
        return result

    if direction in ("to_top", "to_bottom"):
        result[question_id] = replace(current, position="top" if direction == "to_top" else "bottom")
        return result

    siblings = sorted(
        (q for q in result.values() if _same_slot(q, current)),
        key=lambda q: q.sort_order or 0,
    )
    index = next(i for i, q in enumerate(siblings) if q.id == question_id)
    target = index - 1 if direction == "up" else index + 1
    if target < 0 or target >= len(siblings):
        return result

    neighbour = siblings[target]
    current_order = current.sort_order or 0
    neighbour_order = neighbour.sort_order or 0
    if current_order == neighbour_order:
        # Equal orders: re-index the slot before swapping
        reindexed = {q.id: i + 1 for i, q in enumerate(siblings)}
        for qid, order in reindexed.items():
            result[qid] = replace(result[qid], sort_order=order)
        current_order, neighbour_order = reindexed[question_id], reindexed[neighbour.id]

    result[question_id] = replace(result[question_id], sort_order=neighbour_order)
    result[neighbour.id] = replace(result[neighbour.id], sort_order=current_order)
    return result


def section_order(master_questions: Iterable[Question], questions: Iterable[Question]) -> list[str]:
    """Master section order followed by sections that only custom questions use."""
    sections: list[str] = []
    for question in master_questions:
        if not question.parent_id and question.section not in sections:
            sections.append(question.section)
    for question in questions:
        if not question.parent_id and question.section not in sections:
            sections.append(question.section)
    return sections


def sectioned_questions(
    roots: list[Question],
    sections: list[str],
    question_order_by_section: Optional[Mapping[str, list[str]]] = None,
) -> list[tuple[str, list[Question]]]:
    """
    Group root questions by section for the editor.

    Saved order comes first; unsaved master questions are placed before it
    and unsaved custom questions after it. Empty sections are omitted.
    """
    order = question_order_by_section or {}
    grouped: list[tuple[str, list[Question]]] = []
    for section in sections:
        in_section = [q for q in roots if q.section == section]
        by_id = {q.id: q for q in in_section}
        ordered_ids = [qid for qid in order.get(section, []) if qid in by_id]
        listed = set(ordered_ids)
        head = [q.id for q in in_section if q.id not in listed and not q.is_custom]
        tail = [q.id for q in in_section if q.id not in listed and q.is_custom]
        final_ids = head + ordered_ids + tail
        if final_ids:
            grouped.append((section, [by_id[qid] for qid in final_ids]))
    return grouped
