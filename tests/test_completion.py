"""
Tests for completion statistics and "Unsure" handling.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from exitbetter.branching import completion_stats, first_unsure_section, is_answered, unsure_question_ids
from exitbetter.schemas import Question


class TestIsAnswered:
    @pytest.mark.parametrize("value", [None, "", [], ()])
    def test_empty_values(self, value):
        assert not is_answered(value)

    @pytest.mark.parametrize("value", ["Yes", ["COBRA"], 0, False, "2020-01-01"])
    def test_real_values(self, value):
        assert is_answered(value)

    def test_unsure(self):
        assert not is_answered("Unsure")
        assert is_answered("Unsure", unsure_value=None)


class TestCompletionStats:
    def _questions(self):
        return [
            Question(id="a", section="Work"),
            Question(id="b", section="Work"),
            Question(id="c", section="Benefits"),
            Question(id="d", section="Benefits"),
        ]

    def test_no_applicable_questions_is_complete(self):
        stats = completion_stats([], {})
        assert stats.percentage == 100
        assert stats.is_complete
        assert stats.total_applicable == 0

    def test_partial(self):
        stats = completion_stats(self._questions(), {"a": "x", "b": "Unsure", "c": ["y"], "d": []})
        assert stats.completed == 2
        assert stats.percentage == 50
        assert not stats.is_complete
        assert [q.id for q in stats.incomplete_questions] == ["b", "d"]

    def test_unsure_counts_when_disabled(self):
        stats = completion_stats(self._questions()[:2], {"a": "x", "b": "Unsure"}, unsure_value=None)
        assert stats.is_complete

    def test_sections(self):
        stats = completion_stats(self._questions(), {"a": "x", "c": "y", "d": "z"})
        by_name = {s.name: s for s in stats.sections}
        assert [s.name for s in stats.sections] == ["Work", "Benefits"]
        assert by_name["Work"].completed == 1
        assert by_name["Work"].percentage == 50
        assert by_name["Benefits"].percentage == 100

    def test_to_dict(self):
        data = completion_stats(self._questions(), {"a": "x"}).to_dict()
        assert data["totalApplicable"] == 4
        assert data["incompleteQuestions"] == ["b", "c", "d"]


class TestUnsure:
    def test_unsure_ids_and_first_section(self):
        questions = {
            "a": Question(id="a", section="Work"),
            "c": Question(id="c", section="Benefits"),
        }
        ids = unsure_question_ids({"ghost": "Unsure", "c": "Unsure", "a": "Yes"})
        assert ids == ["ghost", "c"]
        assert first_unsure_section(ids, questions) == "Benefits"
        assert first_unsure_section([], questions) is None
