"""Deterministic quantitative analysis of survey submissions using pandas.

Every function here is pure: submissions are read, never modified, and each
call returns freshly built result models.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass

import pandas as pd

from .models import (
    DemographicBreakdown,
    DemographicStat,
    FactorAnalysis,
    QuestionAnalysis,
    ResolvedQuestion,
    Submission,
    SurveyDefinition,
)

logger = logging.getLogger(__name__)

# Net-score thresholds on the 0-10 scale
PROMOTER_MIN = 9
DETRACTOR_MAX = 6

DEFAULT_INDEX_FACTORS = frozenset({"Employee Net Promoter Score", "eNPS"})

ANSWER_COLUMNS = ["submission", "question_id", "rating"]


def round_half_up(value: float, ndigits: int = 2) -> float:
    """Round with halves going up (2.675 -> 2.68, -12.5 -> -12)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


# ── Answer frame ──────────────────────────────────────────────────────


def answers_frame(submissions: Sequence[Submission]) -> pd.DataFrame:
    """One row per (submission, question) answer; repeated answers keep the first."""
    records = [
        {"submission": idx, "question_id": a.question_id, "rating": a.rating}
        for idx, s in enumerate(submissions)
        for a in s.answers
    ]
    frame = pd.DataFrame(records, columns=ANSWER_COLUMNS)
    frame["rating"] = frame["rating"].astype("int64")
    return frame.drop_duplicates(subset=["submission", "question_id"], keep="first")


def restrict_to_definition(
    submissions: Sequence[Submission],
    questions: Iterable[ResolvedQuestion],
) -> list[Submission]:
    """Copies of the submissions holding only answers the definition can interpret.

    Answers to unknown questions, repeated answers and ratings outside the
    question's effective scale are dropped.
    """
    by_id = {q.id: q for q in questions}
    restricted: list[Submission] = []
    dropped = 0
    for s in submissions:
        kept = []
        seen: set[str] = set()
        for a in s.answers:
            q = by_id.get(a.question_id)
            if q is None or a.question_id in seen or not q.scale.contains(a.rating):
                dropped += 1
                continue
            seen.add(a.question_id)
            kept.append(a)
        restricted.append(s.model_copy(update={"answers": kept}))
    if dropped:
        logger.debug("Excluded %d answers outside the survey definition or its scales", dropped)
    return restricted


# ── Distribution ──────────────────────────────────────────────────────


def compute_distribution(ratings: Iterable[int], scale_min: int, scale_max: int) -> dict[int, int]:
    """Dense histogram over [scale_min, scale_max]; out-of-range ratings are dropped."""
    series = pd.Series(list(ratings), dtype="int64")
    in_range = series[series.between(scale_min, scale_max)]
    counts = in_range.value_counts().reindex(range(scale_min, scale_max + 1), fill_value=0)
    return {int(rating): int(count) for rating, count in counts.items()}


# ── Questions ─────────────────────────────────────────────────────────


def _valid_ratings(question: ResolvedQuestion, frame: pd.DataFrame) -> pd.Series:
    ratings = frame.loc[frame["question_id"] == question.id, "rating"]
    valid = ratings[ratings.between(question.scale.min, question.scale.max)]
    if len(valid) < len(ratings):
        logger.debug(
            "Question %s: ignoring %d ratings outside %d-%d",
            question.id, len(ratings) - len(valid), question.scale.min, question.scale.max,
        )
    return valid


def question_analysis(question: ResolvedQuestion, frame: pd.DataFrame) -> QuestionAnalysis:
    valid = _valid_ratings(question, frame)
    average = round_half_up(float(valid.mean())) if len(valid) else 0.0
    return QuestionAnalysis(
        question_id=question.id,
        question_text=question.text,
        sub_factor=question.sub_factor,
        average_score=average,
        response_count=int(len(valid)),
        distribution=compute_distribution(valid, question.scale.min, question.scale.max),
    )


def analyze_question(
    question_id: str,
    submissions: Sequence[Submission],
    definition: SurveyDefinition,
    organization_name: str | None = None,
) -> QuestionAnalysis:
    """Mean rating and distribution for one question.

    Raises QuestionNotFound when the definition has no such question.
    """
    question = definition.resolve_question(question_id, organization_name)
    return question_analysis(question, answers_frame(submissions))


# ── Factors ───────────────────────────────────────────────────────────


def net_promoter_score(ratings: Collection[int]) -> int:
    """(promoters - detractors) / total * 100, rounded. Passives only count in the total."""
    if not ratings:
        return 0
    promoters = sum(1 for r in ratings if r >= PROMOTER_MIN)
    detractors = sum(1 for r in ratings if r <= DETRACTOR_MAX)
    return int(round_half_up((promoters - detractors) / len(ratings) * 100, 0))


def factor_analysis(
    factor: str,
    questions: Sequence[ResolvedQuestion],
    frame: pd.DataFrame,
    index_factors: Collection[str] = DEFAULT_INDEX_FACTORS,
) -> FactorAnalysis:
    analyses = [question_analysis(q, frame) for q in questions]

    if factor in index_factors:
        pooled = [int(r) for q in questions for r in _valid_ratings(q, frame)]
        if pooled:
            return FactorAnalysis(
                factor=factor,
                average_score=net_promoter_score(pooled),
                response_count=len(pooled),
                questions=analyses,
                is_index=True,
            )

    total_weight = sum(qa.response_count for qa in analyses)
    weighted = sum(qa.average_score * qa.response_count for qa in analyses)
    return FactorAnalysis(
        factor=factor,
        average_score=round_half_up(weighted / total_weight) if total_weight else 0.0,
        response_count=max((qa.response_count for qa in analyses), default=0),
        questions=analyses,
    )


def analyze_factor(
    factor: str,
    submissions: Sequence[Submission],
    definition: SurveyDefinition,
    organization_name: str | None = None,
    index_factors: Collection[str] = DEFAULT_INDEX_FACTORS,
    frame: pd.DataFrame | None = None,
) -> FactorAnalysis:
    """Response-weighted factor average, or the net score for index-style factors."""
    questions = [
        definition.resolve_question(q.id, organization_name)
        for q in definition.questions_for_factor(factor)
    ]
    if frame is None:
        frame = answers_frame(submissions)
    return factor_analysis(factor, questions, frame, index_factors)


# ── Demographics ──────────────────────────────────────────────────────


@dataclass
class RunningMean:
    average: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        self.average = (self.average * self.count + value) / (self.count + 1)
        self.count += 1

    def merge(self, other: RunningMean) -> RunningMean:
        """Combine two partial tallies, e.g. from separately aggregated shards."""
        count = self.count + other.count
        if count == 0:
            return RunningMean()
        average = (self.average * self.count + other.average * other.count) / count
        return RunningMean(average=average, count=count)


def respondent_average(submission: Submission) -> float | None:
    if not submission.answers:
        return None
    return sum(a.rating for a in submission.answers) / len(submission.answers)


def demographic_tallies(
    submissions: Iterable[Submission],
) -> tuple[dict[str, dict[str, RunningMean]], int]:
    """Running means per (key, value) plus the number of demographic-valid submissions."""
    tallies: dict[str, dict[str, RunningMean]] = {}
    total = 0
    for s in submissions:
        if s.demographics is None:
            continue
        total += 1
        score = respondent_average(s)
        for key, value in s.demographics.items():
            buckets = tallies.setdefault(key, {})
            if score is None or not value.strip():
                continue
            buckets.setdefault(value, RunningMean()).add(score)
    return tallies, total


def analyze_demographics(
    submissions: Iterable[Submission],
    placeholder_keys: Iterable[str] = (),
) -> DemographicBreakdown:
    """Count, average respondent score and share of respondents per demographic value.

    Keys are discovered from the submissions themselves; ``placeholder_keys``
    are always present even when nobody answered them. Percentages are taken
    over submissions that carry demographics at all.
    """
    submissions = list(submissions)
    tallies, total = demographic_tallies(submissions)
    skipped = len(submissions) - total
    if skipped:
        logger.debug("Skipped %d submissions without demographics", skipped)

    breakdown: DemographicBreakdown = {key: {} for key in placeholder_keys}
    for key, buckets in tallies.items():
        breakdown[key] = {
            value: DemographicStat(
                count=tally.count,
                average_score=round_half_up(tally.average),
                percentage=int(round_half_up(tally.count / total * 100, 0)),
            )
            for value, tally in buckets.items()
        }
    return breakdown


# ── Survey-wide figures ───────────────────────────────────────────────


def overall_average(ratings: Sequence[int]) -> float:
    """Flat mean over every rating, not weighted by factor."""
    if not ratings:
        return 0.0
    return round_half_up(float(pd.Series(ratings, dtype="int64").mean()))


def completion_rate(answers_given: int, submission_count: int, question_count: int) -> float:
    expected = submission_count * question_count
    if expected == 0:
        return 0.0
    return min(100.0, round_half_up(answers_given / expected * 100))
