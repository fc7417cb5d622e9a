"""Survey analytics entry points.

Shared by the CLI and any service layer: fetch submissions and the survey
definition, then compose the quantitative analyzers into one result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from . import quant
from .config import Settings
from .definitions import active_factors, legacy_definition
from .errors import AnalyticsGenerationFailed, DefinitionNotFound
from .models import (
    BurnoutAnalytics,
    BurnoutRisk,
    EngagementAnalytics,
    Submission,
    SubmissionFilter,
    SurveyAnalytics,
    SurveyDefinition,
)
from .sources import (
    DefinitionSource,
    SubmissionSource,
    default_definition_source,
    default_submission_source,
)

logger = logging.getLogger(__name__)

ProgressFn = Callable[[str], None]

EXHAUSTION_FACTOR = "Exhaustion"
CYNICISM_FACTOR = "Cynicism"
EFFICACY_FACTOR = "Professional Efficacy"


def _noop_progress(msg: str) -> None:
    pass


# ── Categories ───────────────────────────────────────────────────────


def score_category(score: float) -> str:
    """Band for an ordinary 1-5 factor or question average."""
    if score >= 4.5:
        return "Excellent"
    if score >= 4.0:
        return "Good"
    if score >= 3.5:
        return "Average"
    if score >= 3.0:
        return "Below Average"
    return "Poor"


def enps_category(score: float) -> str:
    if score >= 50:
        return "Excellent"
    if score >= 30:
        return "Great"
    if score >= 0:
        return "Good"
    if score >= -30:
        return "Needs Improvement"
    return "Critical"


def classify_burnout_risk(exhaustion: float, cynicism: float, efficacy: float) -> BurnoutRisk:
    if exhaustion >= 4 or cynicism >= 4:
        return BurnoutRisk.HIGH
    if exhaustion >= 3 or cynicism >= 3 or efficacy <= 2:
        return BurnoutRisk.MODERATE
    return BurnoutRisk.LOW


# ── Fetching ─────────────────────────────────────────────────────────


def _fetch(
    submissions: SubmissionSource,
    definitions: DefinitionSource,
    filter: SubmissionFilter,
    survey_type_id: str | None,
) -> tuple[list[Submission], SurveyDefinition | None]:
    """Run both reads concurrently; either failing fails the whole call."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        submissions_future = pool.submit(submissions.fetch_submissions, filter)
        definition_future = (
            pool.submit(definitions.fetch_survey_definition, survey_type_id)
            if survey_type_id
            else None
        )
        try:
            fetched = list(submissions_future.result())
            definition = definition_future.result() if definition_future else None
        except DefinitionNotFound:
            raise
        except Exception as exc:
            logger.exception("Error fetching survey data")
            raise AnalyticsGenerationFailed("Failed to generate survey analytics") from exc
    return fetched, definition


def _resolve_sources(
    submissions: SubmissionSource | None,
    definitions: DefinitionSource | None,
    settings: Settings,
) -> tuple[SubmissionSource, DefinitionSource]:
    if submissions is None:
        submissions = default_submission_source(settings)
    if definitions is None:
        definitions = default_definition_source(settings)
    return submissions, definitions


# ── Orchestration ────────────────────────────────────────────────────


def empty_analytics(
    definition: SurveyDefinition,
    survey_type_id: str | None = None,
) -> SurveyAnalytics:
    """Fully keyed analytics for a survey nobody has answered yet."""
    scale = definition.default_scale
    return SurveyAnalytics(
        total_responses=0,
        overall_average_score=0.0,
        factor_analysis=[],
        completion_rate=0.0,
        response_distribution=quant.compute_distribution([], scale.min, scale.max),
        demographics={key: {} for key in definition.demographic_keys},
        survey_type_id=survey_type_id,
        survey_type_name=definition.display_name if survey_type_id else None,
        last_updated=datetime.now(timezone.utc),
    )


def build_analytics(
    submissions: Sequence[Submission],
    definition: SurveyDefinition,
    organization_name: str | None = None,
    index_factors: Collection[str] = quant.DEFAULT_INDEX_FACTORS,
    survey_type_id: str | None = None,
) -> SurveyAnalytics:
    """Aggregate already-fetched submissions against a resolved definition."""
    if not submissions:
        return empty_analytics(definition, survey_type_id)

    questions = definition.resolve(organization_name)
    restricted = quant.restrict_to_definition(submissions, questions)
    frame = quant.answers_frame(restricted)

    factor_analysis = [
        quant.factor_analysis(
            factor,
            sorted((q for q in questions if q.factor == factor), key=lambda q: q.order),
            frame,
            index_factors,
        )
        for factor in active_factors(definition)
    ]

    ratings = [a.rating for s in restricted for a in s.answers]
    scale = definition.default_scale

    return SurveyAnalytics(
        total_responses=len(submissions),
        overall_average_score=quant.overall_average(ratings),
        factor_analysis=factor_analysis,
        completion_rate=quant.completion_rate(len(ratings), len(submissions), len(questions)),
        response_distribution=quant.compute_distribution(ratings, scale.min, scale.max),
        demographics=quant.analyze_demographics(restricted, definition.demographic_keys),
        survey_type_id=survey_type_id,
        survey_type_name=definition.display_name if survey_type_id else None,
        last_updated=datetime.now(timezone.utc),
    )


def get_survey_analytics(
    organization_id: str | None = None,
    organization_name: str | None = None,
    selected_question_ids: Sequence[str] | None = None,
    survey_type_id: str | None = None,
    *,
    submissions: SubmissionSource | None = None,
    definitions: DefinitionSource | None = None,
    settings: Settings | None = None,
    on_progress: ProgressFn | None = None,
) -> SurveyAnalytics:
    """Analytics for an organization's submissions to one survey type.

    Without ``survey_type_id`` the legacy question catalogue is used,
    narrowed by ``selected_question_ids``, over submissions that carry no
    survey type. An unknown ``survey_type_id`` raises
    DefinitionNotFound rather than falling back to the legacy catalogue.
    Source failures raise AnalyticsGenerationFailed.
    """
    progress = on_progress or _noop_progress
    settings = settings or Settings.from_env()
    submission_source, definition_source = _resolve_sources(submissions, definitions, settings)

    progress("[1/3] Fetching submissions and survey definition...")
    fetched, definition = _fetch(
        submission_source,
        definition_source,
        SubmissionFilter(organization_id=organization_id, survey_type_id=survey_type_id),
        survey_type_id,
    )
    progress(f"  Found {len(fetched)} submissions")

    if survey_type_id:
        if definition is None:
            raise DefinitionNotFound(survey_type_id)
    else:
        logger.info("No survey type given; using the legacy question catalogue")
        definition = legacy_definition(selected_question_ids, settings.legacy_questions_path)
        # Only submissions recorded before survey types existed belong to the catalogue
        untyped = [s for s in fetched if s.survey_type_id is None]
        if len(untyped) < len(fetched):
            logger.info(
                "Ignoring %d submissions recorded under a survey type",
                len(fetched) - len(untyped),
            )
        fetched = untyped
    progress(f"[2/3] Using survey definition: {definition.display_name}")

    if not fetched:
        progress("  No submissions yet; returning empty analytics")
        return empty_analytics(definition, survey_type_id)

    progress("[3/3] Aggregating factors, demographics and overall scores...")
    analytics = build_analytics(
        fetched,
        definition,
        organization_name=organization_name,
        index_factors=settings.index_factors,
        survey_type_id=survey_type_id,
    )
    progress(
        f"  {analytics.total_responses} responses, overall average "
        f"{analytics.overall_average_score}, completion {analytics.completion_rate}%"
    )
    return analytics


def get_engagement_analytics(
    organization_id: str | None = None,
    organization_name: str | None = None,
    survey_type_id: str | None = None,
    **kwargs,
) -> EngagementAnalytics:
    """Survey analytics plus the eNPS index as a top-level score."""
    settings = kwargs.pop("settings", None) or Settings.from_env()
    analytics = get_survey_analytics(
        organization_id,
        organization_name,
        survey_type_id=survey_type_id or settings.engagement_survey_type_id,
        settings=settings,
        **kwargs,
    )
    index = next((f for f in analytics.factor_analysis if f.is_index), None)
    score = int(index.average_score) if index else 0
    return EngagementAnalytics(**dict(analytics), enps_score=score, enps_category=enps_category(score))


def get_burnout_analytics(
    organization_id: str | None = None,
    organization_name: str | None = None,
    survey_type_id: str | None = None,
    **kwargs,
) -> BurnoutAnalytics:
    """Survey analytics plus the MBI burnout risk derived from its three dimensions."""
    settings = kwargs.pop("settings", None) or Settings.from_env()
    analytics = get_survey_analytics(
        organization_id,
        organization_name,
        survey_type_id=survey_type_id or settings.burnout_survey_type_id,
        settings=settings,
        **kwargs,
    )
    scores = {f.factor: f.average_score for f in analytics.factor_analysis}
    exhaustion = scores.get(EXHAUSTION_FACTOR, 0.0)
    cynicism = scores.get(CYNICISM_FACTOR, 0.0)
    efficacy = scores.get(EFFICACY_FACTOR, 0.0)

    risk = None
    if analytics.total_responses:
        risk = classify_burnout_risk(exhaustion, cynicism, efficacy)
    return BurnoutAnalytics(
        **dict(analytics),
        exhaustion_score=exhaustion,
        cynicism_score=cynicism,
        efficacy_score=efficacy,
        burnout_risk=risk,
    )
