"""
Tests for tree building and question ordering.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from exitbetter.resolver.tree import build_tree, find_question, flatten_tree, order_questions, order_tree
from exitbetter.schemas import Question


def _flat():
    return {
        "parent": Question(id="parent", section="A"),
        "child": Question(id="child", section="A", parent_id="parent", trigger_value="Yes"),
        "grandchild": Question(id="grandchild", section="A", parent_id="child", trigger_value="No"),
        "other": Question(id="other", section="B"),
    }


class TestBuildTree:
    def test_links_children(self):
        roots = build_tree(_flat())
        assert [r.id for r in roots] == ["parent", "other"]
        parent = roots[0]
        assert [s.id for s in parent.sub_questions] == ["child"]
        assert [s.id for s in parent.sub_questions[0].sub_questions] == ["grandchild"]

    def test_round_trip(self):
        flat = _flat()
        roots = build_tree(flat)
        walked = list(flatten_tree(roots))
        assert {q.id for q in walked} == set(flat)
        for question in walked:
            assert question.parent_id == flat[question.id].parent_id

    def test_dangling_parent_becomes_root(self):
        flat = {"orphan": Question(id="orphan", parent_id="missing")}
        roots = build_tree(flat)
        assert [r.id for r in roots] == ["orphan"]

    def test_self_parent_becomes_root(self):
        roots = build_tree({"loop": Question(id="loop", parent_id="loop")})
        assert [r.id for r in roots] == ["loop"]
        assert roots[0].sub_questions == []

    def test_parent_cycle_keeps_every_question(self):
        flat = {
            "a": Question(id="a", parent_id="b"),
            "b": Question(id="b", parent_id="a"),
            "c": Question(id="c"),
            "d": Question(id="d", parent_id="a"),
        }
        roots = build_tree(flat)
        assert {q.id for q in flatten_tree(roots)} == {"a", "b", "c", "d"}
        assert [r.id for r in roots] == ["a", "b", "c"]
        assert [s.id for s in roots[0].sub_questions] == ["d"]

    def test_input_not_mutated(self):
        flat = _flat()
        build_tree(flat)
        assert flat["parent"].sub_questions == []

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            build_tree([Question(id="a")])

    def test_find_question(self):
        roots = build_tree(_flat())
        assert find_question(roots, "grandchild").trigger_value == "No"
        assert find_question(roots, "nope") is None


class TestOrdering:
    def test_saved_order_first(self):
        questions = [Question(id=qid, section="A") for qid in ("q1", "q2", "q3")]
        ordered = order_questions(questions, {"A": ["q3", "q1"]})
        assert [q.id for q in ordered] == ["q3", "q1", "q2"]

    def test_sort_order_breaks_ties(self):
        questions = [
            Question(id="late", section="A", sort_order=2),
            Question(id="early", section="A", sort_order=1),
            Question(id="plain", section="A"),
        ]
        assert [q.id for q in order_questions(questions)] == ["early", "late", "plain"]

    def test_sections_keep_first_appearance(self):
        questions = [Question(id="b1", section="B"), Question(id="a1", section="A"), Question(id="b2", section="B")]
        assert [q.id for q in order_questions(questions)] == ["b1", "b2", "a1"]

    def test_order_tree_recurses(self):
        flat = {
            "p": Question(id="p", section="A"),
            "s1": Question(id="s1", section="A", parent_id="p"),
            "s2": Question(id="s2", section="A", parent_id="p"),
        }
        roots = order_tree(build_tree(flat), {"A": ["p", "s2", "s1"]})
        assert [s.id for s in roots[0].sub_questions] == ["s2", "s1"]
