"""
Questionnaire Service - end-to-end evaluation for one viewer.

Wires the pieces together against a loaded catalog snapshot:
- Resolve master + company + project layers for a form
- Build and order the question tree
- Evaluate applicable questions and completion
- Evaluate guidance into recommendations

Every call derives fresh objects from the read-only snapshot, so one service
instance can serve many requests.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional

from .branching.applicability import applicable_questions
from .branching.completion import CompletionStats, completion_stats
from .catalog.registry import CatalogSnapshot
from .config import EngineConfig
from .errors import UnknownCompanyError, ValidationIssue
from .guidance.engine import GuidanceEngine, GuidanceResult
from .guidance.validator import ConfigValidator
from .resolver.overrides import resolve_question_map
from .resolver.tree import build_tree, order_tree
from .schemas.company_config import CompanyConfig
from .schemas.guidance import Recommendations
from .schemas.questions import FormType, Question

logger = logging.getLogger(__name__)


class QuestionnaireService:
    """
    Main entry point for resolving forms and computing guidance.

    Usage:
        service = QuestionnaireService(CatalogSnapshot.from_json(path))
        tree = service.question_tree("Globex Corporation", "proj-alpha", "assessment")
        stats = service.completion("Globex Corporation", "proj-alpha", "assessment", answers, profile)
    """

    def __init__(self, snapshot: CatalogSnapshot, config: Optional[EngineConfig] = None):
        self.snapshot = snapshot
        self.config = config or EngineConfig()
        self.engine = GuidanceEngine(self.config)

    def company_config(self, company: str) -> CompanyConfig:
        config = self.snapshot.company(company)
        if config is None:
            raise UnknownCompanyError(f"Unknown company: {company}")
        return config

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def question_tree(
        self,
        company: str,
        project_id: Optional[str],
        form_type: FormType | str,
        viewer_is_end_user: bool = True,
    ) -> list[Question]:
        """Resolved, linked and ordered question tree for one viewer and form."""
        config = self.company_config(company)
        flat = resolve_question_map(
            self.snapshot.questions_for(form_type),
            config,
            project_id,
            FormType(form_type),
            viewer_is_end_user,
            no_project_sentinel=self.config.no_project_sentinel,
        )
        return order_tree(build_tree(flat), config.question_order_by_section)

    # =========================================================================
    # APPLICABILITY & COMPLETION
    # =========================================================================

    def applicable(
        self,
        company: str,
        project_id: Optional[str],
        form_type: FormType | str,
        answers: Optional[Mapping[str, Any]],
        cross_form_answers: Optional[Mapping[str, Any]] = None,
    ) -> list[Question]:
        tree = self.question_tree(company, project_id, form_type)
        return applicable_questions(tree, answers, cross_form_answers, self.config.exclusive_option)

    def completion(
        self,
        company: str,
        project_id: Optional[str],
        form_type: FormType | str,
        answers: Optional[Mapping[str, Any]],
        cross_form_answers: Optional[Mapping[str, Any]] = None,
    ) -> CompletionStats:
        """
        Completion of one form. "Unsure" only counts as unanswered on the
        assessment; the profile form has no such option.
        """
        questions = self.applicable(company, project_id, form_type, answers, cross_form_answers)
        unsure = self.config.unsure_value if FormType(form_type) == FormType.ASSESSMENT else None
        return completion_stats(questions, answers, unsure)

    # =========================================================================
    # GUIDANCE
    # =========================================================================

    def evaluate_guidance(
        self,
        company: str,
        project_id: Optional[str],
        profile: Optional[Mapping[str, Any]],
        assessment: Optional[Mapping[str, Any]],
        today: Optional[date] = None,
    ) -> GuidanceResult:
        config = self.company_config(company)
        resolved = (
            self.question_tree(company, project_id, FormType.PROFILE)
            + self.question_tree(company, project_id, FormType.ASSESSMENT)
        )
        return self.engine.evaluate(
            self.snapshot.guidance_rules,
            assessment,
            profile,
            config,
            project_id,
            resolved_questions=resolved,
            today=today,
        )

    def recommendations(
        self,
        company: str,
        project_id: Optional[str],
        profile: Optional[Mapping[str, Any]],
        assessment: Optional[Mapping[str, Any]],
        today: Optional[date] = None,
    ) -> Recommendations:
        config = self.company_config(company)
        result = self.evaluate_guidance(company, project_id, profile, assessment, today)
        return self.engine.recommendations(
            result,
            self.snapshot.tasks_for(config),
            self.snapshot.tips_for(config),
        )

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(self, company: str, config: Optional[CompanyConfig] = None) -> list[ValidationIssue]:
        """Save-time issues for a company config (the stored one by default)."""
        company_config = config if config is not None else self.company_config(company)
        validator = ConfigValidator(
            known_task_ids=[t.id for t in self.snapshot.tasks_for(company_config)],
            known_tip_ids=[t.id for t in self.snapshot.tips_for(company_config)],
        )
        issues = validator.validate_company_config(self.snapshot.all_master_questions(), company_config)
        issues += validator.validate_rules(self.snapshot.guidance_rules)
        if issues:
            logger.info("Validation found %d issue(s) for %s", len(issues), company)
        return issues
