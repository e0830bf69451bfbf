"""
Company form editing: turning an edited question back into override data.

An editor works on a resolved copy of a question. Saving diffs that copy
against the master to produce a minimal QuestionOverride, or stores it as a
custom question. Locked master questions cannot be edited by companies; the
edit becomes a suggestion for the platform review queue instead.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional

from ..schemas.company_config import CompanyConfig, OptionOverrides, ProjectConfig, QuestionOverride
from ..schemas.questions import Question
from .ordering import next_sort_order


@dataclass
class ReviewSuggestion:
    """A company's proposed change to a locked master question."""
    question_id: str
    question_label: str
    options_to_add: list[dict[str, Any]] = field(default_factory=list)
    user_email: str = ""
    company_name: str = ""
    type: str = "question_edit_suggestion"
    status: str = "pending"

    def to_dict(self) -> dict:
        return {
            "user_email": self.user_email,
            "type": self.type,
            "status": self.status,
            "companyName": self.company_name,
            "change_details": {
                "questionId": self.question_id,
                "questionLabel": self.question_label,
                "optionsToAdd": self.options_to_add,
            },
        }


@dataclass
class EditOutcome:
    config: CompanyConfig
    suggestion: Optional[ReviewSuggestion] = None
    changed: bool = False


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def has_master_update(master: Optional[Question], company_copy: Question) -> bool:
    """True when the master changed after the company last saved its copy."""
    if master is None:
        return False
    master_ts = _parse_timestamp(master.last_updated)
    copy_ts = _parse_timestamp(company_copy.last_updated)
    if master_ts is None or copy_ts is None:
        return False
    return master_ts > copy_ts


def build_override(master: Question, edited: Question, now: Optional[str] = None) -> Optional[QuestionOverride]:
    """Diff an edited copy against its master; None when nothing changed."""
    override = QuestionOverride()
    if edited.label != master.label:
        override.label = edited.label
    if edited.description != master.description:
        override.description = edited.description
    if edited.is_active != master.is_active:
        override.is_active = edited.is_active

    added = [o for o in edited.options if o not in master.options]
    removed = [o for o in master.options if o not in edited.options]
    if added or removed:
        override.option_overrides = OptionOverrides(add=added, remove=removed)

    if override.is_empty():
        return None
    override.last_updated = now or edited.last_updated or _now_iso()
    return override


def build_suggestion(
    master: Question,
    edited: Question,
    company_name: str = "",
    user_email: str = "",
) -> Optional[ReviewSuggestion]:
    """Suggested option additions (with their guidance) for a locked question."""
    new_options = [o for o in edited.options if o not in master.options]
    if not new_options:
        return None
    return ReviewSuggestion(
        question_id=edited.id,
        question_label=edited.label,
        options_to_add=[
            {
                "option": option,
                "guidance": edited.answer_guidance[option].to_dict()
                if option in edited.answer_guidance else None,
            }
            for option in new_options
        ],
        user_email=user_email,
        company_name=company_name,
    )


def _with_guidance(config: CompanyConfig, question: Question) -> CompanyConfig:
    guidance_overrides = dict(config.answer_guidance_overrides)
    if question.answer_guidance:
        merged = dict(guidance_overrides.get(question.id, {}))
        merged.update(question.answer_guidance)
        guidance_overrides[question.id] = merged

    project_configs = dict(config.project_configs)
    for answer, per_project in question.project_answer_guidance.items():
        for project_id, bundle in per_project.items():
            project = project_configs.get(project_id, ProjectConfig())
            overrides = dict(project.answer_guidance_overrides)
            answers = dict(overrides.get(question.id, {}))
            answers[answer] = bundle
            overrides[question.id] = answers
            project_configs[project_id] = replace(project, answer_guidance_overrides=overrides)

    return replace(config, answer_guidance_overrides=guidance_overrides, project_configs=project_configs)


def save_question_edit(
    config: CompanyConfig,
    master: Optional[Question],
    edited: Question,
    company_name: str = "",
    user_email: str = "",
    now: Optional[str] = None,
) -> EditOutcome:
    """
    Fold an edited question into a new CompanyConfig.

    Args:
        config: Current company configuration (left untouched)
        master: Master question the edit is based on, None for custom questions
        edited: The edited question as shown in the editor
        company_name: Used on review suggestions
        user_email: Used on review suggestions
        now: Timestamp to stamp on the saved copy (defaults to current UTC time)

    Returns:
        EditOutcome with the new config, or with a suggestion when the
        master question is locked
    """
    if master is not None and master.is_locked and not edited.is_custom:
        suggestion = build_suggestion(master, edited, company_name, user_email)
        return EditOutcome(config=config, suggestion=suggestion, changed=False)

    stamp = now or _now_iso()

    if edited.is_custom or master is None:
        custom = replace(edited, is_custom=True, last_updated=stamp, sub_questions=[])
        if not custom.id:
            custom = replace(custom, id=f"custom-{uuid.uuid4()}")
        if custom.sort_order is None:
            custom = replace(
                custom,
                sort_order=next_sort_order(config.custom_questions, custom.section, custom.position),
            )
        custom_questions = dict(config.custom_questions)
        custom_questions[custom.id] = custom
        new_config = replace(config, custom_questions=custom_questions)
        return EditOutcome(config=_with_guidance(new_config, custom), changed=True)

    overrides = dict(config.questions)
    override = build_override(master, edited, now=stamp)
    if override is None:
        overrides.pop(edited.id, None)
    else:
        overrides[edited.id] = override
    new_config = _with_guidance(replace(config, questions=overrides), edited)
    return EditOutcome(config=new_config, changed=True)
