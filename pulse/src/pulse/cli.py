"""CLI entry point for pulse survey analytics."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import Settings
from .core import (
    get_burnout_analytics,
    get_engagement_analytics,
    get_survey_analytics,
    score_category,
)
from .errors import AnalyticsError
from .models import SurveyAnalytics
from .sources import JsonSubmissionSource, YamlDefinitionSource

BAR_WIDTH = 30


def _progress(msg: str) -> None:
    print(msg, file=sys.stderr)


def _bar(count: int, largest: int) -> str:
    filled = round(count / largest * BAR_WIDTH) if largest else 0
    return "█" * filled


# ── types command ────────────────────────────────────────────────────

def cmd_types(args: argparse.Namespace, settings: Settings) -> None:
    """List configured survey types."""
    survey_types = YamlDefinitionSource(settings.survey_types_path).list_survey_types()
    if not survey_types:
        print("No survey types configured.")
        return

    print("Survey types:")
    print()
    for survey in survey_types:
        scale = survey.default_scale
        print(f"  {survey.display_name} (v{survey.version})")
        print(f"    ID: {survey.id}  Category: {survey.category.value}  Scale: {scale.min}-{scale.max}")
        print(f"    {len(survey.questions)} questions across {len(survey.factors)} factors")
        print()


# ── report commands ──────────────────────────────────────────────────

def _print_report(analytics: SurveyAnalytics) -> None:
    title = analytics.survey_type_name or "Legacy engagement survey"
    print(f"📊 {title}")
    print(
        f"{analytics.total_responses} responses · overall {analytics.overall_average_score:.2f}"
        f" · completion {analytics.completion_rate:.2f}%"
    )

    enps = getattr(analytics, "enps_score", None)
    if enps is not None:
        print(f"eNPS: {enps} ({analytics.enps_category})")
    risk = getattr(analytics, "burnout_risk", None)
    if risk is not None:
        print(
            f"Burnout risk: {risk.value} (exhaustion {analytics.exhaustion_score:.2f}, "
            f"cynicism {analytics.cynicism_score:.2f}, efficacy {analytics.efficacy_score:.2f})"
        )

    if analytics.factor_analysis:
        print()
        print("Factors:")
        for f in analytics.factor_analysis:
            if f.is_index:
                print(f"  {f.factor}: {f.average_score:+.0f} net score (n={f.response_count})")
            else:
                print(
                    f"  {f.factor}: {f.average_score:.2f} {score_category(f.average_score)}"
                    f" (n={f.response_count})"
                )

    print()
    print("Response distribution:")
    largest = max(analytics.response_distribution.values(), default=0)
    for rating, count in analytics.response_distribution.items():
        print(f"  {rating:>2} {_bar(count, largest)} {count}")

    for key, values in analytics.demographics.items():
        print()
        print(f"By {key}:")
        if not values:
            print("  (no answers)")
        for value, stat in sorted(values.items(), key=lambda kv: -kv[1].count):
            print(f"  {value}: {stat.average_score:.2f} avg · {stat.count} ({stat.percentage}%)")


def cmd_report(args: argparse.Namespace, settings: Settings) -> None:
    """Run analytics over a submissions export and print (or dump) the result."""
    submissions_path = args.submissions or settings.submissions_path
    sources = {}
    if submissions_path:
        sources["submissions"] = JsonSubmissionSource(Path(submissions_path))

    selected = [q.strip() for q in args.questions.split(",") if q.strip()] if args.questions else None
    progress = None if args.json else _progress

    if args.command == "engagement":
        analytics = get_engagement_analytics(
            args.org, args.org_name, args.survey_type,
            selected_question_ids=selected, settings=settings, on_progress=progress, **sources,
        )
    elif args.command == "burnout":
        analytics = get_burnout_analytics(
            args.org, args.org_name, args.survey_type,
            selected_question_ids=selected, settings=settings, on_progress=progress, **sources,
        )
    else:
        analytics = get_survey_analytics(
            args.org, args.org_name, selected, args.survey_type,
            settings=settings, on_progress=progress, **sources,
        )

    if args.json:
        print(analytics.model_dump_json(by_alias=True, indent=2))
    else:
        print()
        _print_report(analytics)


# ── Main entry ───────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pulse",
        description="Employee survey analytics: factor scores, distributions, demographics",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("types", help="List configured survey types")

    report_args = argparse.ArgumentParser(add_help=False)
    report_args.add_argument("--org", help="Organization ID to filter submissions by")
    report_args.add_argument("--org-name", help="Organization name for question text")
    report_args.add_argument("--survey-type", help="Survey type ID (omit for the legacy catalogue)")
    report_args.add_argument("--questions", help="Comma-separated legacy question IDs to include")
    report_args.add_argument("--submissions", help="JSON or JSONL submissions export")
    report_args.add_argument("--json", action="store_true", help="Print analytics as JSON")

    subparsers.add_parser("report", parents=[report_args], help="Survey analytics")
    subparsers.add_parser("engagement", parents=[report_args], help="Analytics with eNPS score")
    subparsers.add_parser("burnout", parents=[report_args], help="Analytics with burnout risk")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    try:
        if args.command == "types":
            cmd_types(args, settings)
        else:
            cmd_report(args, settings)
    except AnalyticsError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
