"""CLI for evaluating questionnaires against a catalog snapshot."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .catalog.registry import CatalogSnapshot
from .config import EngineConfig, configure_logging
from .errors import ExitBetterError
from .pipeline import QuestionnaireService
from .schemas.questions import FormType, Question


def _print_tree(questions: list[Question], indent: int = 0) -> None:
    for question in questions:
        flags = []
        if not question.is_active:
            flags.append("hidden")
        if question.is_custom:
            flags.append("custom")
        if question.trigger_value is not None:
            flags.append(f"when={question.trigger_value}")
        suffix = f"  [{', '.join(flags)}]" if flags else ""
        print(f"{'  ' * indent}- {question.id}: {question.label}{suffix}")
        _print_tree(question.sub_questions, indent + 1)


def _load_answers(path: Optional[str]) -> dict:
    if not path:
        return {}
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError("Answers file must hold a JSON object")
    return data


def main(argv: Optional[list[str]] = None) -> int:
    config = EngineConfig.from_env()
    parser = argparse.ArgumentParser(
        description="ExitBetter questionnaire and guidance evaluation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m exitbetter.cli --company "Globex Corporation" --show-tree
  python -m exitbetter.cli --company "Globex Corporation" --project proj-alpha --answers answers.json
  python -m exitbetter.cli --company Initech --validate
        """,
    )

    parser.add_argument(
        "--snapshot",
        "-s",
        default=config.snapshot_path,
        help="Catalog snapshot JSON file or URL (defaults to the bundled demo)",
    )
    parser.add_argument(
        "--company",
        "-c",
        required=True,
        help="Company name as it appears in the snapshot",
    )
    parser.add_argument(
        "--project",
        "-p",
        default=None,
        help="Project id of the end user",
    )
    parser.add_argument(
        "--answers",
        "-a",
        default=None,
        help='JSON file with {"profile": {...}, "assessment": {...}}',
    )
    parser.add_argument(
        "--form",
        default=FormType.ASSESSMENT.value,
        choices=[f.value for f in FormType],
        help="Form to show and report completion for",
    )
    parser.add_argument(
        "--show-tree",
        action="store_true",
        help="Print the resolved question tree as an editor sees it",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Run save-time validation on the company config",
    )
    parser.add_argument(
        "--log-level",
        default=config.log_level,
        help="Logging level (DEBUG shows dropped rules and references)",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        snapshot = CatalogSnapshot.load(args.snapshot)
        service = QuestionnaireService(snapshot, config)
        answers = _load_answers(args.answers)
        profile = answers.get("profile") or {}
        assessment = answers.get("assessment") or {}

        if args.show_tree:
            print(f"\n{args.form.title()} form for {args.company}:")
            _print_tree(service.question_tree(args.company, args.project, args.form, viewer_is_end_user=False))

        if args.validate:
            issues = service.validate(args.company)
            print(f"\nValidation: {len(issues)} issue(s)")
            for issue in issues:
                print(f"  {issue.code:<20} {issue.ref:<24} {issue.message}")

        current = profile if args.form == FormType.PROFILE.value else assessment
        other = assessment if args.form == FormType.PROFILE.value else profile
        stats = service.completion(args.company, args.project, args.form, current, other)
        print(f"\nCompletion ({args.form}): {stats.percentage:.0f}% "
              f"({stats.completed}/{stats.total_applicable})")
        for section in stats.sections:
            print(f"  {section.name:<20} {section.completed}/{section.total}")

        recs = service.recommendations(args.company, args.project, profile, assessment)
        print(f"\nTasks: {len(recs.tasks)}")
        for task in recs.tasks:
            print(f"  - {task.task} [{task.category}] {task.timeline}")
        print(f"Tips: {len(recs.tips)}")
        for tip in recs.tips:
            print(f"  - {tip.text} [{tip.category}]")
    except (ExitBetterError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
