"""Save-time checks for company configs and guidance rules."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from ..errors import ConfigValidationError, ValidationIssue
from ..resolver.tree import cyclic_ids
from ..schemas.company_config import CompanyConfig
from ..schemas.guidance import Assignments, CalculatedRule, DirectRule, GuidanceRule
from ..schemas.questions import AnswerGuidance, Question


class ConfigValidator:
    """
    Collects authoring conflicts the runtime resolves silently.

    The engine itself never calls this; editors run it before saving.
    """

    def __init__(
        self,
        known_task_ids: Optional[Iterable[str]] = None,
        known_tip_ids: Optional[Iterable[str]] = None,
    ):
        self.known_task_ids = set(known_task_ids) if known_task_ids is not None else None
        self.known_tip_ids = set(known_tip_ids) if known_tip_ids is not None else None
        self.issues: list[ValidationIssue] = []

    def _add(self, code: str, message: str, ref: str = "") -> None:
        self.issues.append(ValidationIssue(code=code, message=message, ref=ref))

    def _check_ids(self, task_ids: Iterable[str], tip_ids: Iterable[str], ref: str) -> None:
        if self.known_task_ids is not None:
            for task_id in task_ids:
                if task_id not in self.known_task_ids:
                    self._add("unknown_assignment", f"Task '{task_id}' is not in the catalog.", ref)
        if self.known_tip_ids is not None:
            for tip_id in tip_ids:
                if tip_id not in self.known_tip_ids:
                    self._add("unknown_assignment", f"Tip '{tip_id}' is not in the catalog.", ref)

    def _check_assignments(self, assignments: Assignments, ref: str) -> None:
        self._check_ids(assignments.task_ids, assignments.tip_ids, ref)

    def _check_guidance(self, guidance: AnswerGuidance, ref: str) -> None:
        for answer, bundle in guidance.items():
            self._check_ids(bundle.task_ids, bundle.tip_ids, f"{ref}:{answer}")

    def validate_company_config(
        self,
        master_questions: Mapping[str, Question],
        config: CompanyConfig,
    ) -> list[ValidationIssue]:
        """Check one company config against the master catalog of one or more forms."""
        start = len(self.issues)
        all_ids = set(master_questions) | set(config.custom_questions)

        for qid, custom in config.custom_questions.items():
            if qid in master_questions:
                self._add("duplicate_id", f"Custom question '{qid}' reuses a master question id.", qid)
            if custom.parent_id and custom.parent_id not in all_ids:
                self._add("dangling_parent", f"Parent '{custom.parent_id}' does not exist.", qid)
            self._check_guidance(custom.answer_guidance, qid)

        for qid, master in master_questions.items():
            if master.parent_id and master.parent_id not in all_ids:
                self._add("dangling_parent", f"Parent '{master.parent_id}' does not exist.", qid)

        combined = {**master_questions, **config.custom_questions}
        for qid in sorted(cyclic_ids(combined)):
            self._add("parent_cycle", f"Parent chain of '{qid}' loops back to itself.", qid)

        for qid, guidance in config.answer_guidance_overrides.items():
            self._check_guidance(guidance, qid)
        for project_id, project in config.project_configs.items():
            for qid, guidance in project.answer_guidance_overrides.items():
                self._check_guidance(guidance, f"{project_id}/{qid}")
        return self.issues[start:]

    def validate_rules(self, rules: Iterable[GuidanceRule]) -> list[ValidationIssue]:
        start = len(self.issues)
        for rule in rules:
            if isinstance(rule, DirectRule):
                if not rule.conditions:
                    self._add("empty_conditions", "Direct rule has no conditions and never matches.", rule.id)
                self._check_assignments(rule.assignments, rule.id)
            elif isinstance(rule, CalculatedRule):
                for candidate in rule.ranges:
                    if candidate.start >= candidate.end:
                        self._add("empty_range",
                                  f"Range [{candidate.start}, {candidate.end}) is empty.", rule.id)
                    self._check_assignments(candidate.assignments, rule.id)
                ordered = sorted((r for r in rule.ranges if r.start < r.end), key=lambda r: r.start)
                for previous, current in zip(ordered, ordered[1:]):
                    if current.start < previous.end:
                        self._add(
                            "overlapping_ranges",
                            f"Ranges [{previous.start}, {previous.end}) and "
                            f"[{current.start}, {current.end}) overlap; the first listed wins.",
                            rule.id,
                        )
        return self.issues[start:]

    def raise_for_issues(self) -> None:
        if self.issues:
            raise ConfigValidationError(self.issues)
