"""
Override Resolver - merges the master catalog with company and project layers.

For one viewer (company, project, end user or editor) and one form, the
resolver produces the flat list of final questions:

1. master questions with company overrides applied and project visibility
   and answer filtering on top
2. company custom questions the viewer is allowed to see

Precedence everywhere is master < company < project. The resolver never
mutates its inputs; every returned question is a fresh object.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Mapping, Optional

from ..config import NO_PROJECT_SENTINEL
from ..schemas.company_config import CompanyConfig, OptionOverrides, ProjectConfig, QuestionOverride
from ..schemas.questions import AnswerGuidance, FormType, GuidanceBundle, Question

logger = logging.getLogger(__name__)


def effective_is_active(
    master_active: bool,
    company_active: Optional[bool],
    project_hidden: bool,
) -> bool:
    """Visibility of a master question: project hide > company flag > master flag."""
    if project_hidden:
        return False
    return master_active if company_active is None else company_active


def merge_options(options: Iterable[str], option_overrides: Optional[OptionOverrides]) -> list[str]:
    """
    Apply a company's option removals, then its additions.

    Removal happens first, so an option both removed and added ends up
    present. The result keeps master order, appends additions in their
    authored order and never contains duplicates.
    """
    removed = set(option_overrides.remove) if option_overrides else set()
    added = option_overrides.add if option_overrides else []

    merged: list[str] = []
    for option in options:
        if option not in removed and option not in merged:
            merged.append(option)
    for option in added:
        if option not in merged:
            merged.append(option)
    return merged


def hide_options(options: Iterable[str], hidden: Optional[Iterable[str]]) -> list[str]:
    hidden_set = set(hidden or ())
    return [option for option in options if option not in hidden_set]


def merge_answer_guidance(base: AnswerGuidance, *layers: Optional[Mapping[str, GuidanceBundle]]) -> AnswerGuidance:
    """
    Layer answer-guidance maps, last writer wins per bundle field.

    For every answer present in a layer the bundle is shallow-merged over the
    accumulated bundle for that answer: `tasks`, `tips` and
    `no_guidance_required` are replaced independently.
    """
    merged: AnswerGuidance = {answer: bundle.merged_with(None) for answer, bundle in base.items()}
    for layer in layers:
        if not layer:
            continue
        for answer, bundle in layer.items():
            merged[answer] = merged.get(answer, GuidanceBundle()).merged_with(bundle)
    return merged


def apply_question_override(master: Question, override: Optional[QuestionOverride]) -> Question:
    """Apply the field-level part of a company override (not visibility)."""
    if override is None:
        return replace(master, options=list(master.options), sub_questions=[])
    return replace(
        master,
        label=override.label if override.label is not None else master.label,
        description=override.description if override.description is not None else master.description,
        last_updated=override.last_updated if override.last_updated is not None else master.last_updated,
        options=merge_options(master.options, override.option_overrides),
        sub_questions=[],
    )


def _project_guidance_layer(question: Question, project_id: Optional[str]) -> dict[str, GuidanceBundle]:
    if not project_id or not question.project_answer_guidance:
        return {}
    layer = {}
    for answer, per_project in question.project_answer_guidance.items():
        bundle = per_project.get(project_id)
        if bundle is not None:
            layer[answer] = bundle
    return layer


def resolve_guidance(
    question: Question,
    company_config: CompanyConfig,
    project_config: Optional[ProjectConfig],
    project_id: Optional[str],
) -> AnswerGuidance:
    """Answer guidance for one question after the master < company < project merge."""
    return merge_answer_guidance(
        question.answer_guidance,
        company_config.answer_guidance_overrides.get(question.id),
        _project_guidance_layer(question, project_id),
        project_config.answer_guidance_overrides.get(question.id) if project_config else None,
    )


def is_custom_visible(
    question: Question,
    project_id: Optional[str],
    no_project_sentinel: str = NO_PROJECT_SENTINEL,
) -> bool:
    """End-user visibility of a custom question targeted at projects."""
    if not question.is_active:
        return False
    if not question.project_ids:
        return True
    if project_id:
        return project_id in question.project_ids
    return no_project_sentinel in question.project_ids


def resolve_questions(
    master_questions: Mapping[str, Question],
    company_config: Optional[CompanyConfig],
    project_id: Optional[str],
    form_type: FormType,
    viewer_is_end_user: bool,
    no_project_sentinel: str = NO_PROJECT_SENTINEL,
) -> list[Question]:
    """
    Merge master, company and project layers into a flat list of questions.

    Args:
        master_questions: Master catalog keyed by question id
        company_config: Company override bundle (None means no overrides)
        project_id: Viewer's project, if any
        form_type: Which form to resolve
        viewer_is_end_user: End users only see visible questions with
            project-hidden answers removed; editors see everything, with
            hidden questions marked inactive

    Returns:
        Flat list of resolved questions (sub-questions not yet linked)
    """
    config = company_config or CompanyConfig()
    project_config = config.project(project_id)
    form_type = FormType(form_type)

    resolved: dict[str, Question] = {}

    for qid, master in master_questions.items():
        if master.form_type != form_type or not master.is_active:
            continue

        override = config.questions.get(qid)
        hidden_by_project = bool(project_config and qid in project_config.hidden_questions)
        visible = effective_is_active(
            master.is_active,
            override.is_active if override else None,
            hidden_by_project,
        )
        if not visible and viewer_is_end_user:
            continue

        question = apply_question_override(master, override)
        options = question.options
        if viewer_is_end_user and project_config and qid in project_config.hidden_answers:
            options = hide_options(options, project_config.hidden_answers[qid])

        resolved[qid] = replace(
            question,
            is_active=visible,
            options=options,
            answer_guidance=resolve_guidance(master, config, project_config, project_id),
        )

    for qid, custom in config.custom_questions.items():
        if custom.form_type != form_type:
            continue
        if viewer_is_end_user and not is_custom_visible(custom, project_id, no_project_sentinel):
            continue
        if qid in resolved:
            logger.debug("Custom question %s shadows a master question with the same id", qid)
        resolved[qid] = replace(
            custom,
            is_custom=True,
            options=list(custom.options),
            sub_questions=[],
            answer_guidance=resolve_guidance(custom, config, project_config, project_id),
        )

    return list(resolved.values())


def resolve_question_map(*args, **kwargs) -> dict[str, Question]:
    """Same as resolve_questions, keyed by id in resolution order."""
    return {q.id: q for q in resolve_questions(*args, **kwargs)}
