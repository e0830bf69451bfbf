"""
Tests for the company form editor helpers: override diffs, locked-question
suggestions, custom question moves and sectioned layout.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from exitbetter.resolver import (
    build_override,
    has_master_update,
    move_custom_question,
    next_sort_order,
    save_question_edit,
    section_order,
    sectioned_questions,
)
from exitbetter.schemas import CompanyConfig, GuidanceBundle, Question, QuestionOverride, QuestionType

NOW = "2026-05-01T12:00:00+00:00"


def _master(**kwargs):
    fields = dict(id="status", label="Status?", section="Work", type=QuestionType.RADIO,
                  options=["Laid off", "Resigned"])
    fields.update(kwargs)
    return Question(**fields)


# ═══════════════════════════════════════════════════════════════
# OVERRIDES AND SUGGESTIONS
# ═══════════════════════════════════════════════════════════════

class TestBuildOverride:
    def test_unchanged_returns_none(self):
        assert build_override(_master(), _master(), now=NOW) is None

    def test_diff(self):
        edited = _master(label="Employment status?", options=["Laid off", "Contract ended"])
        override = build_override(_master(), edited, now=NOW)
        assert override.label == "Employment status?"
        assert override.option_overrides.add == ["Contract ended"]
        assert override.option_overrides.remove == ["Resigned"]
        assert override.last_updated == NOW
        assert override.description is None

    def test_deactivation(self):
        override = build_override(_master(), _master(is_active=False), now=NOW)
        assert override.is_active is False


class TestSaveQuestionEdit:
    def test_override_saved_without_mutating(self):
        config = CompanyConfig()
        outcome = save_question_edit(config, _master(), _master(label="New"), now=NOW)
        assert outcome.changed
        assert outcome.config.questions["status"].label == "New"
        assert config.questions == {}

    def test_reverting_removes_override(self):
        config = CompanyConfig(questions={"status": QuestionOverride(label="Old")})
        outcome = save_question_edit(config, _master(), _master(), now=NOW)
        assert "status" not in outcome.config.questions

    def test_locked_question_becomes_suggestion(self):
        master = _master(is_locked=True)
        edited = _master(
            is_locked=True,
            options=["Laid off", "Resigned", "Furloughed"],
            answer_guidance={"Furloughed": GuidanceBundle(tips=["furlough-tip"])},
        )
        config = CompanyConfig()
        outcome = save_question_edit(config, master, edited, company_name="Globex", user_email="hr@globex.test")
        assert outcome.config is config
        assert not outcome.changed
        data = outcome.suggestion.to_dict()
        assert data["type"] == "question_edit_suggestion"
        assert data["status"] == "pending"
        assert data["change_details"]["optionsToAdd"] == [
            {"option": "Furloughed", "guidance": {"tips": ["furlough-tip"]}},
        ]

    def test_locked_question_without_new_options(self):
        master = _master(is_locked=True)
        outcome = save_question_edit(CompanyConfig(), master, _master(is_locked=True, label="Changed"))
        assert outcome.suggestion is None

    def test_new_custom_question(self):
        existing = Question(id="c1", section="Work", position="bottom", sort_order=4, is_custom=True)
        config = CompanyConfig(custom_questions={"c1": existing})
        edited = Question(id="", label="Laptop?", section="Work", position="bottom", is_custom=True,
                          answer_guidance={"Yes": GuidanceBundle(tasks=["return-laptop"])})
        outcome = save_question_edit(config, None, edited, now=NOW)
        new_ids = [qid for qid in outcome.config.custom_questions if qid != "c1"]
        assert len(new_ids) == 1
        created = outcome.config.custom_questions[new_ids[0]]
        assert created.id.startswith("custom-")
        assert created.sort_order == 5
        assert created.last_updated == NOW
        assert outcome.config.answer_guidance_overrides[created.id]["Yes"].task_ids == ["return-laptop"]

    def test_project_guidance_saved_to_project_config(self):
        edited = _master(project_answer_guidance={"Laid off": {"p1": GuidanceBundle(no_guidance_required=True)}})
        outcome = save_question_edit(CompanyConfig(), _master(), edited, now=NOW)
        project = outcome.config.project_configs["p1"]
        assert project.answer_guidance_overrides["status"]["Laid off"].no_guidance_required is True


class TestMasterUpdate:
    def test_newer_master(self):
        master = _master(last_updated="2026-03-01T09:00:00Z")
        copy = _master(last_updated="2026-02-01T09:00:00Z")
        assert has_master_update(master, copy)
        assert not has_master_update(copy, master)

    def test_missing_timestamps(self):
        assert not has_master_update(_master(), _master(last_updated="2026-02-01"))
        assert not has_master_update(None, _master())


# ═══════════════════════════════════════════════════════════════
# CUSTOM QUESTION MOVES
# ═══════════════════════════════════════════════════════════════

class TestMoveCustomQuestion:
    def _customs(self):
        return {
            "a": Question(id="a", section="Work", position="bottom", sort_order=1),
            "b": Question(id="b", section="Work", position="bottom", sort_order=2),
            "c": Question(id="c", section="Work", position="bottom", sort_order=3),
            "x": Question(id="x", section="Other", position="bottom", sort_order=1),
        }

    def _order(self, customs, section="Work"):
        same = [q for q in customs.values() if q.section == section]
        return [q.id for q in sorted(same, key=lambda q: q.sort_order)]

    def test_move_up(self):
        moved = move_custom_question(self._customs(), "b", "up")
        assert self._order(moved) == ["b", "a", "c"]

    def test_move_down(self):
        moved = move_custom_question(self._customs(), "b", "down")
        assert self._order(moved) == ["a", "c", "b"]

    def test_out_of_range_is_noop(self):
        customs = self._customs()
        assert self._order(move_custom_question(customs, "a", "up")) == ["a", "b", "c"]
        assert self._order(move_custom_question(customs, "c", "down")) == ["a", "b", "c"]

    def test_other_sections_untouched(self):
        moved = move_custom_question(self._customs(), "b", "up")
        assert moved["x"].sort_order == 1

    def test_to_top(self):
        customs = self._customs()
        moved = move_custom_question(customs, "c", "to_top")
        assert moved["c"].position == "top"
        assert customs["c"].position == "bottom"

    def test_equal_orders_reindexed(self):
        customs = {
            "a": Question(id="a", section="Work", sort_order=0),
            "b": Question(id="b", section="Work", sort_order=0),
        }
        moved = move_custom_question(customs, "b", "up")
        assert moved["b"].sort_order < moved["a"].sort_order

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            move_custom_question(self._customs(), "a", "sideways")

    def test_unknown_id(self):
        customs = self._customs()
        assert move_custom_question(customs, "zzz", "up") == customs

    def test_next_sort_order(self):
        assert next_sort_order(self._customs(), "Work", "bottom") == 4
        assert next_sort_order(self._customs(), "Work", "top") == 1


class TestSectionedQuestions:
    def test_layout(self):
        master = [Question(id="m1", section="Work"), Question(id="m2", section="Work"),
                  Question(id="m3", section="Benefits")]
        custom = [Question(id="c1", section="Work", is_custom=True),
                  Question(id="c2", section="Extras", is_custom=True)]
        roots = master + custom
        sections = section_order(master, roots)
        assert sections == ["Work", "Benefits", "Extras"]

        grouped = sectioned_questions(roots, sections, {"Work": ["m2"]})
        assert [(name, [q.id for q in qs]) for name, qs in grouped] == [
            ("Work", ["m1", "m2", "c1"]),
            ("Benefits", ["m3"]),
            ("Extras", ["c2"]),
        ]

    def test_empty_sections_omitted(self):
        grouped = sectioned_questions([Question(id="m1", section="Work")], ["Work", "Empty"])
        assert [name for name, _ in grouped] == ["Work"]
