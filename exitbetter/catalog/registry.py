"""Catalog snapshot loader and lookup utilities."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import requests

from ..errors import CatalogLoadError
from ..schemas.company_config import CompanyConfig
from ..schemas.guidance import GuidanceRule, MasterTask, MasterTip, parse_rules
from ..schemas.questions import FormType, Question, record_list

logger = logging.getLogger(__name__)


def _row_to_record(row: dict) -> dict:
    """Flatten a `master_questions` store row into a question record."""
    if "question_data" not in row:
        return row
    data = row.get("question_data")
    record = dict(data) if isinstance(data, dict) else {}
    record.setdefault("id", row.get("id"))
    if row.get("form_type"):
        record.setdefault("formType", row["form_type"])
    if row.get("sort_order") is not None:
        record.setdefault("sortOrder", row["sort_order"])
    return record


def parse_master_questions(data: Any) -> dict[FormType, dict[str, Question]]:
    """
    Parse the master catalog into form -> id -> Question.

    Accepts `{form: {id: record}}`, `{form: [records]}` or one flat list of
    records/store rows that carry their own form type. Store rows are kept in
    `sort_order` order.
    """
    catalog: dict[FormType, dict[str, Question]] = {form: {} for form in FormType}
    if isinstance(data, dict):
        grouped = []
        for form_name, records in data.items():
            try:
                form = FormType(form_name)
            except ValueError:
                logger.debug("Ignoring master questions for unknown form %r", form_name)
                continue
            if isinstance(records, dict):
                items = [dict(r, id=r.get("id") or qid) for qid, r in records.items() if isinstance(r, dict)]
            else:
                items = record_list(records)
            grouped.extend(dict(_row_to_record(r), formType=form.value) for r in items)
        records = grouped
    elif isinstance(data, list):
        rows = [r for r in data if isinstance(r, dict)]
        if any("question_data" in r for r in rows):
            rows = sorted(rows, key=lambda r: (r.get("sort_order") is None, r.get("sort_order") or 0))
        records = [_row_to_record(r) for r in rows]
    else:
        return catalog

    for record in records:
        question = Question.from_dict(record)
        if question.id:
            catalog[question.form_type][question.id] = question
    return catalog


def _validate_snapshot(data: Any) -> None:
    if not isinstance(data, dict):
        raise CatalogLoadError("Catalog snapshot must be a JSON object")
    if "masterQuestions" not in data:
        raise CatalogLoadError("Catalog snapshot has no masterQuestions")
    companies = data.get("companies", {})
    if not isinstance(companies, dict):
        raise CatalogLoadError("companies must map company names to configs")


@dataclass
class CatalogSnapshot:
    """Read-only view of everything the engine evaluates against."""
    master_questions: dict[FormType, dict[str, Question]] = field(default_factory=dict)
    company_configs: dict[str, CompanyConfig] = field(default_factory=dict)
    guidance_rules: list[GuidanceRule] = field(default_factory=list)
    master_tasks: list[MasterTask] = field(default_factory=list)
    master_tips: list[MasterTip] = field(default_factory=list)
    projects: dict[str, list[dict]] = field(default_factory=dict)
    source: str = ""

    @classmethod
    def from_dict(cls, data: dict, source: str = "") -> "CatalogSnapshot":
        _validate_snapshot(data)
        projects = data.get("projects") or {}
        snapshot = cls(
            master_questions=parse_master_questions(data.get("masterQuestions")),
            company_configs={str(name): CompanyConfig.from_dict(cfg)
                             for name, cfg in (data.get("companies") or {}).items()},
            guidance_rules=parse_rules(data.get("guidanceRules") or []),
            master_tasks=[MasterTask.from_dict(t) for t in record_list(data.get("masterTasks"))],
            master_tips=[MasterTip.from_dict(t) for t in record_list(data.get("masterTips"))],
            projects={str(name): record_list(items) for name, items in projects.items()}
            if isinstance(projects, dict) else {},
            source=source,
        )
        logger.info(
            "Loaded catalog %s: %d profile / %d assessment questions, %d companies, %d rules",
            source or "<dict>",
            len(snapshot.master_questions.get(FormType.PROFILE, {})),
            len(snapshot.master_questions.get(FormType.ASSESSMENT, {})),
            len(snapshot.company_configs),
            len(snapshot.guidance_rules),
        )
        return snapshot

    @classmethod
    def from_json(cls, path: str | Path) -> "CatalogSnapshot":
        path_obj = Path(path)
        try:
            data = json.loads(path_obj.read_text())
        except OSError as exc:
            raise CatalogLoadError(f"Cannot read catalog {path_obj}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CatalogLoadError(f"Catalog {path_obj} is not valid JSON: {exc}") from exc
        return cls.from_dict(data, source=str(path_obj.resolve()))

    @classmethod
    def from_url(cls, url: str, timeout: float = 10) -> "CatalogSnapshot":
        if not url:
            raise CatalogLoadError("Catalog URL is not set")
        try:
            resp = requests.get(url, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise CatalogLoadError(f"Cannot fetch catalog from {url}: {exc}") from exc
        except ValueError as exc:
            raise CatalogLoadError(f"Catalog at {url} is not valid JSON: {exc}") from exc
        return cls.from_dict(data, source=url)

    @classmethod
    def load(cls, location: str | Path) -> "CatalogSnapshot":
        """Load from an http(s) URL or a file path."""
        text = str(location)
        if text.startswith(("http://", "https://")):
            return cls.from_url(text)
        return cls.from_json(location)

    def questions_for(self, form_type: FormType | str) -> dict[str, Question]:
        return self.master_questions.get(FormType(form_type), {})

    def all_master_questions(self) -> dict[str, Question]:
        merged: dict[str, Question] = {}
        for form in FormType:
            merged.update(self.master_questions.get(form, {}))
        return merged

    def company(self, name: str) -> Optional[CompanyConfig]:
        return self.company_configs.get(name)

    def project_ids(self, company_name: str) -> list[str]:
        return [str(p.get("id")) for p in self.projects.get(company_name, []) if p.get("id")]

    def tasks_for(self, company_config: Optional[CompanyConfig]) -> list[MasterTask]:
        """Active master tasks plus the company's own; company wins on equal id."""
        tasks = {t.id: t for t in self.master_tasks if t.is_active}
        for task in company_config.company_tasks if company_config else []:
            tasks[task.id] = task
        return list(tasks.values())

    def tips_for(self, company_config: Optional[CompanyConfig]) -> list[MasterTip]:
        tips = {t.id: t for t in self.master_tips if t.is_active}
        for tip in company_config.company_tips if company_config else []:
            tips[tip.id] = tip
        return list(tips.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "masterQuestions": {
                form.value: {qid: q.to_dict() for qid, q in questions.items()}
                for form, questions in self.master_questions.items()
            },
            "companies": {name: cfg.to_dict() for name, cfg in self.company_configs.items()},
            "guidanceRules": [r.to_dict() for r in self.guidance_rules],
            "masterTasks": [t.to_dict() for t in self.master_tasks],
            "masterTips": [t.to_dict() for t in self.master_tips],
            "projects": {name: list(items) for name, items in self.projects.items()},
        }
