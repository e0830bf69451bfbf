"""
Tests for catalog snapshot loading and the end-to-end questionnaire service
on the bundled demo snapshot.
"""

import json
import sys
from datetime import date
from pathlib import Path

import pytest
import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from exitbetter.catalog import CatalogSnapshot, parse_master_questions
from exitbetter.catalog import registry as registry_module
from exitbetter.config import DEFAULT_SNAPSHOT
from exitbetter.errors import CatalogLoadError, UnknownCompanyError
from exitbetter.pipeline import QuestionnaireService
from exitbetter.resolver.tree import flatten_tree
from exitbetter.schemas import FormType, MasterTask

GLOBEX = "Globex Corporation"
TODAY = date(2026, 10, 18)

PROFILE = {"birthYear": "1968", "hasDependents": "Yes"}
ASSESSMENT = {
    "workStatus": "Laid off",
    "startDate": "2016-04-01",
    "finalDate": "2026-11-30",
    "notificationDate": "2026-12-31",
    "benefits": ["Severance", "COBRA"],
    "custom-laptop": "Yes",
}


@pytest.fixture(scope="module")
def snapshot():
    return CatalogSnapshot.from_json(DEFAULT_SNAPSHOT)


@pytest.fixture
def service(snapshot):
    return QuestionnaireService(snapshot)


# ═══════════════════════════════════════════════════════════════
# LOADING
# ═══════════════════════════════════════════════════════════════

class TestLoading:
    def test_demo_snapshot(self, snapshot):
        assert len(snapshot.questions_for(FormType.PROFILE)) == 4
        assert len(snapshot.questions_for("assessment")) == 9
        assert set(snapshot.company_configs) == {GLOBEX, "Initech"}
        assert len(snapshot.guidance_rules) == 5
        assert snapshot.project_ids(GLOBEX) == ["proj-alpha"]

    def test_custom_questions_marked(self, snapshot):
        assert snapshot.company(GLOBEX).custom_questions["custom-laptop"].is_custom

    def test_store_rows(self):
        catalog = parse_master_questions([
            {"id": "q2", "question_data": {"label": "Second", "section": "S"}, "form_type": "profile", "sort_order": 2},
            {"id": "q1", "question_data": {"label": "First", "section": "S"}, "form_type": "profile", "sort_order": 1},
            {"id": "a1", "question_data": {"label": "Assess"}, "form_type": "assessment", "sort_order": 1},
        ])
        assert list(catalog[FormType.PROFILE]) == ["q1", "q2"]
        assert catalog[FormType.PROFILE]["q2"].sort_order == 2
        assert list(catalog[FormType.ASSESSMENT]) == ["a1"]

    def test_malformed_company_records_ignored(self):
        snapshot = CatalogSnapshot.from_dict({
            "masterQuestions": {"assessment": [
                {"id": "q1", "label": "Q", "projectAnswerGuidance": ["x"], "subQuestions": 7},
            ]},
            "companies": {
                "Acme": {
                    "projectConfigs": {"p1": {"hiddenAnswers": ["x"], "hiddenQuestions": ["q1"]}},
                    "companyTasks": 3,
                },
                "Bolt": {"projectConfigs": ["p1"], "companyTips": "tip"},
            },
            "masterTasks": 1,
            "projects": {"Acme": ["p1", {"id": "p2"}], "Bolt": 4},
        })
        acme = snapshot.company("Acme")
        assert acme.project("p1").hidden_answers == {}
        assert acme.project("p1").hidden_questions == frozenset({"q1"})
        assert acme.company_tasks == []
        assert snapshot.company("Bolt").project_configs == {}
        assert snapshot.company("Bolt").company_tips == []
        assert snapshot.questions_for("assessment")["q1"].project_answer_guidance == {}
        assert snapshot.master_tasks == []
        assert snapshot.project_ids("Acme") == ["p2"]
        assert snapshot.project_ids("Bolt") == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogLoadError):
            CatalogSnapshot.from_json(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(CatalogLoadError):
            CatalogSnapshot.from_json(path)

    def test_missing_master_questions(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"companies": {}}))
        with pytest.raises(CatalogLoadError):
            CatalogSnapshot.from_json(path)

    def test_tasks_for_company_wins(self, snapshot):
        config = snapshot.company(GLOBEX)
        ids = [t.id for t in snapshot.tasks_for(config)]
        assert "return-laptop" in ids
        assert "file-unemployment" in ids
        override = MasterTask(id="file-unemployment", name="Globex claim help", is_company_specific=True)
        config.company_tasks.append(override)
        try:
            tasks = {t.id: t for t in snapshot.tasks_for(config)}
            assert tasks["file-unemployment"].name == "Globex claim help"
        finally:
            config.company_tasks.remove(override)


class _FakeResponse:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class TestFromUrl:
    def test_loads_payload(self, monkeypatch):
        calls = {}

        def fake_get(url, timeout):
            calls["url"], calls["timeout"] = url, timeout
            return _FakeResponse({"masterQuestions": {"profile": {"q": {"label": "Q"}}}})

        monkeypatch.setattr(registry_module.requests, "get", fake_get)
        snapshot = CatalogSnapshot.from_url("https://example.test/catalog.json")
        assert calls == {"url": "https://example.test/catalog.json", "timeout": 10}
        assert list(snapshot.questions_for("profile")) == ["q"]
        assert snapshot.source == "https://example.test/catalog.json"

    def test_http_error(self, monkeypatch):
        monkeypatch.setattr(registry_module.requests, "get", lambda url, timeout: _FakeResponse({}, status=500))
        with pytest.raises(CatalogLoadError):
            CatalogSnapshot.from_url("https://example.test/catalog.json")

    def test_connection_error(self, monkeypatch):
        def fail(url, timeout):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(registry_module.requests, "get", fail)
        with pytest.raises(CatalogLoadError):
            CatalogSnapshot.load("http://localhost:1/catalog.json")

    def test_not_json(self, monkeypatch):
        monkeypatch.setattr(
            registry_module.requests, "get",
            lambda url, timeout: _FakeResponse(ValueError("no json")),
        )
        with pytest.raises(CatalogLoadError):
            CatalogSnapshot.from_url("https://example.test/catalog.json")

    def test_empty_url(self):
        with pytest.raises(CatalogLoadError):
            CatalogSnapshot.from_url("")


# ═══════════════════════════════════════════════════════════════
# END TO END ON THE DEMO SNAPSHOT
# ═══════════════════════════════════════════════════════════════

class TestQuestionnaireService:
    def test_unknown_company(self, service):
        with pytest.raises(UnknownCompanyError):
            service.question_tree("Umbrella", None, "assessment")

    def test_project_tree(self, service):
        tree = service.question_tree(GLOBEX, "proj-alpha", "assessment")
        assert [q.id for q in tree] == [
            "workStatus", "finalDate", "startDate", "notificationDate", "custom-badge",
            "benefits", "dependentCoverage", "custom-laptop",
        ]
        work_status, benefits = tree[0], tree[5]
        assert work_status.label == "What is your employment status?"
        assert work_status.options == ["Laid off", "Resigned"]
        assert benefits.options == ["Severance", "COBRA", "None of the above", "Stock vesting"]
        assert [s.id for s in benefits.sub_questions] == ["benefitsDetails"]

    def test_editor_tree_keeps_hidden(self, service):
        tree = service.question_tree(GLOBEX, "proj-alpha", "assessment", viewer_is_end_user=False)
        hidden = {q.id for q in flatten_tree(tree) if not q.is_active}
        assert hidden == {"relocationPaid", "relocationRepay"}

    def test_applicable_with_cross_form(self, service):
        without = [q.id for q in service.applicable(GLOBEX, "proj-alpha", "assessment", {}, {})]
        with_deps = [q.id for q in service.applicable(
            GLOBEX, "proj-alpha", "assessment", {"benefits": ["COBRA"]}, {"hasDependents": "Yes"})]
        assert "dependentCoverage" not in without
        assert "benefitsDetails" not in without
        assert "dependentCoverage" in with_deps
        assert with_deps.index("benefitsDetails") == with_deps.index("benefits") + 1

    def test_completion_with_unsure(self, service):
        answers = dict(ASSESSMENT, benefits=["COBRA"], benefitsDetails="x")
        answers["custom-laptop"] = "Unsure"
        answers["custom-badge"] = "No"
        stats = service.completion(GLOBEX, "proj-alpha", "assessment", answers, {})
        assert stats.total_applicable == 8
        assert stats.completed == 7
        assert stats.percentage == 87.5
        assert [q.id for q in stats.incomplete_questions] == ["custom-laptop"]

    def test_profile_completion(self, service):
        stats = service.completion(GLOBEX, None, "profile", {"birthYear": "1968", "state": "Texas",
                                                             "hasDependents": "No"})
        assert stats.is_complete

    def test_recommendations_for_project(self, service):
        recs = service.recommendations(GLOBEX, "proj-alpha", PROFILE, ASSESSMENT, today=TODAY)
        assert [(t.task_id, t.timeline) for t in recs.tasks] == [
            ("file-unemployment", "Within 7 days"),
            ("elect-cobra", "Within 60 days"),
            ("long-tenure-tip", "Within 30 days"),
            ("return-laptop", "Within 3 days"),
        ]
        assert recs.tasks[-1].is_company_specific
        assert [t.tip_id for t in recs.tips] == ["use-notice-period", "retirement-planning"]

    def test_recommendations_without_project(self, service):
        recs = service.recommendations(GLOBEX, None, PROFILE, ASSESSMENT, today=TODAY)
        assert [t.task_id for t in recs.tasks] == [
            "file-unemployment", "elect-cobra", "long-tenure-tip", "review-severance", "return-laptop",
        ]
        assert [t.tip_id for t in recs.tips] == ["use-notice-period", "retirement-planning", "negotiate-severance"]

    def test_demo_config_validates_clean(self, service):
        assert service.validate(GLOBEX) == []
        assert service.validate("Initech") == []
