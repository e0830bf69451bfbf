"""
Guidance Rule Engine - turns answers into tasks and tips.

Evaluation combines two sources:
- Guidance rules (direct and calculated), applied in rule-list order
- Answer-level guidance attached to resolved questions (or, without
  resolved questions, the company and project override maps)

Results are a union: no rule can remove an id another rule added. Rule data
is never trusted; anything malformed simply does not match.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from ..config import EngineConfig
from ..resolver.overrides import merge_answer_guidance
from ..resolver.tree import flatten_tree
from ..schemas.company_config import CompanyConfig
from ..schemas.guidance import (
    Assignments,
    CalculatedRule,
    DirectRule,
    GuidanceRule,
    MasterTask,
    MasterTip,
    RecommendationItem,
    Recommendations,
    TipItem,
    parse_rules,
)
from ..schemas.questions import AnswerGuidance, Question
from .calculations import calculate
from .conditions import all_conditions_hold

logger = logging.getLogger(__name__)


@dataclass
class GuidanceResult:
    """Ordered, de-duplicated task and tip ids."""
    task_ids: list[str] = field(default_factory=list)
    tip_ids: list[str] = field(default_factory=list)

    def add(self, task_ids: Iterable[str], tip_ids: Iterable[str]) -> None:
        for task_id in task_ids:
            if task_id not in self.task_ids:
                self.task_ids.append(task_id)
        for tip_id in tip_ids:
            if tip_id not in self.tip_ids:
                self.tip_ids.append(tip_id)

    def to_dict(self) -> dict:
        return {"taskIds": list(self.task_ids), "tipIds": list(self.tip_ids)}


def combine_answers(profile: Optional[Mapping[str, Any]], answers: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Profile answers overlaid with assessment answers."""
    combined = dict(profile or {})
    combined.update(answers or {})
    return combined


def _answer_keys(answer: Any) -> list[str]:
    if answer is None or answer == "":
        return []
    if isinstance(answer, (list, tuple)):
        return [str(a) for a in answer]
    return [str(answer)]


def _lookup(entries: Iterable[Any]) -> dict[str, Any]:
    """Id lookup where later entries replace earlier ones."""
    table: dict[str, Any] = {}
    for entry in entries:
        table[entry.id] = entry
    return table


class GuidanceEngine:
    """
    Evaluates guidance rules and answer-level guidance for one end user.

    Usage:
        engine = GuidanceEngine(EngineConfig())
        result = engine.evaluate(rules, assessment, profile, company_config, "p1")
        recs = engine.recommendations(result, master_tasks, master_tips, company_config)
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    # =========================================================================
    # RULES
    # =========================================================================

    def _apply_assignments(self, result: GuidanceResult, assignments: Assignments) -> None:
        if assignments.no_guidance_required:
            return
        result.add(assignments.task_ids, assignments.tip_ids)

    def _apply_direct(self, rule: DirectRule, answers: Mapping[str, Any], result: GuidanceResult,
                      today: Optional[date]) -> bool:
        if not all_conditions_hold(rule.conditions, answers, today):
            return False
        self._apply_assignments(result, rule.assignments)
        return True

    def _apply_calculated(self, rule: CalculatedRule, answers: Mapping[str, Any],
                          profile: Mapping[str, Any], result: GuidanceResult,
                          today: Optional[date]) -> bool:
        value = calculate(rule.calculation, answers, profile, today, self.config.birth_year_field)
        if value is None:
            logger.debug("Skipping calculated rule %s: inputs missing or invalid", rule.id)
            return False
        for candidate in rule.ranges:
            if candidate.contains(value):
                self._apply_assignments(result, candidate.assignments)
                return True
        return False

    def apply_rules(
        self,
        rules: Iterable[Any],
        answers: Mapping[str, Any],
        profile: Mapping[str, Any],
        result: Optional[GuidanceResult] = None,
        today: Optional[date] = None,
    ) -> GuidanceResult:
        """
        Apply rules in order. Raw dict records are parsed first; records that
        cannot be parsed are dropped.
        """
        result = result or GuidanceResult()
        rule_list = list(rules)
        raw = [r for r in rule_list if isinstance(r, dict)]
        parsed: list[GuidanceRule] = [r for r in rule_list if isinstance(r, (DirectRule, CalculatedRule))]
        if raw:
            parsed.extend(parse_rules(raw))

        for rule in parsed:
            if isinstance(rule, DirectRule):
                matched = self._apply_direct(rule, answers, result, today)
            else:
                matched = self._apply_calculated(rule, answers, profile, result, today)
            if matched:
                logger.debug("Rule %s matched", rule.id)
        return result

    # =========================================================================
    # ANSWER-LEVEL GUIDANCE
    # =========================================================================

    def apply_answer_guidance(
        self,
        guidance_by_question: Mapping[str, AnswerGuidance],
        answers: Mapping[str, Any],
        result: Optional[GuidanceResult] = None,
    ) -> GuidanceResult:
        result = result or GuidanceResult()
        for question_id, guidance in guidance_by_question.items():
            for key in _answer_keys(answers.get(question_id)):
                bundle = guidance.get(key)
                if bundle is not None:
                    result.add(bundle.task_ids, bundle.tip_ids)
        return result

    def _override_guidance(self, company_config: CompanyConfig, project_id: Optional[str]) -> dict[str, AnswerGuidance]:
        project_config = company_config.project(project_id)
        project_overrides = project_config.answer_guidance_overrides if project_config else {}
        merged: dict[str, AnswerGuidance] = {}
        for question_id in list(company_config.answer_guidance_overrides) + list(project_overrides):
            if question_id in merged:
                continue
            merged[question_id] = merge_answer_guidance(
                company_config.answer_guidance_overrides.get(question_id, {}),
                project_overrides.get(question_id),
            )
        return merged

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def evaluate(
        self,
        rules: Iterable[Any],
        answers: Optional[Mapping[str, Any]],
        profile: Optional[Mapping[str, Any]],
        company_config: Optional[CompanyConfig] = None,
        project_id: Optional[str] = None,
        resolved_questions: Optional[Iterable[Question]] = None,
        today: Optional[date] = None,
    ) -> GuidanceResult:
        """
        Compute the task and tip ids for one user.

        Args:
            rules: Guidance rules (parsed or raw records)
            answers: Assessment answers
            profile: Profile answers
            company_config: The user's company overrides
            project_id: The user's project, if any
            resolved_questions: Questions already resolved for this viewer;
                their merged answer guidance is used directly
            today: Reference date for age and date offsets

        Returns:
            GuidanceResult with ids in first-seen order
        """
        profile = profile or {}
        combined = combine_answers(profile, answers)
        config = company_config or CompanyConfig()

        result = self.apply_rules(rules, combined, profile, today=today)

        if resolved_questions is not None:
            guidance = {q.id: q.answer_guidance for q in flatten_tree(list(resolved_questions))
                        if q.answer_guidance}
        else:
            guidance = self._override_guidance(config, project_id)
        return self.apply_answer_guidance(guidance, combined, result)

    def recommendations(
        self,
        result: GuidanceResult,
        master_tasks: Iterable[MasterTask],
        master_tips: Iterable[MasterTip],
        company_config: Optional[CompanyConfig] = None,
    ) -> Recommendations:
        """Map ids to display items; ids missing from the catalog are dropped."""
        config = company_config or CompanyConfig()
        tasks = _lookup(list(master_tasks) + list(config.company_tasks))
        tips = _lookup(list(master_tips) + list(config.company_tips))

        items: list[RecommendationItem] = []
        for task_id in result.task_ids:
            task = tasks.get(task_id)
            if task is None:
                logger.debug("Dropping unknown task id %s", task_id)
                continue
            days = task.deadline_days or self.config.default_deadline_days
            items.append(RecommendationItem(
                task_id=task.id,
                task=task.name,
                category=task.category,
                timeline=f"Within {days} days",
                details=task.detail,
                is_company_specific=task.is_company_specific,
            ))

        tip_items: list[TipItem] = []
        for tip_id in result.tip_ids:
            tip = tips.get(tip_id)
            if tip is None:
                logger.debug("Dropping unknown tip id %s", tip_id)
                continue
            tip_items.append(TipItem(
                tip_id=tip.id,
                text=tip.text,
                category=tip.category,
                priority=tip.priority,
                is_company_specific=tip.is_company_specific,
            ))
        return Recommendations(tasks=items, tips=tip_items)

    def recommend(
        self,
        rules: Iterable[Any],
        answers: Optional[Mapping[str, Any]],
        profile: Optional[Mapping[str, Any]],
        master_tasks: Iterable[MasterTask],
        master_tips: Iterable[MasterTip],
        company_config: Optional[CompanyConfig] = None,
        project_id: Optional[str] = None,
        resolved_questions: Optional[Iterable[Question]] = None,
        today: Optional[date] = None,
    ) -> Recommendations:
        result = self.evaluate(rules, answers, profile, company_config, project_id, resolved_questions, today)
        return self.recommendations(result, master_tasks, master_tips, company_config)
