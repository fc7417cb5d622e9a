"""Pydantic data models for survey definitions, submissions and analytics."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .errors import QuestionNotFound

DEFAULT_ORGANIZATION_NAME = "the organization"


class _Model(BaseModel):
    # Storage records and API payloads use camelCase, config files snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Rating scales ─────────────────────────────────────────────────────

class ScaleKind(str, Enum):
    LIKERT = "likert"
    FREQUENCY = "frequency"
    AGREEMENT = "agreement"
    CUSTOM = "custom"


class RatingScale(_Model):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    min: int
    max: int
    labels: dict[int, str] = Field(default_factory=dict)
    kind: ScaleKind = Field(
        default=ScaleKind.CUSTOM, validation_alias=AliasChoices("kind", "type")
    )

    @model_validator(mode="after")
    def _check_range(self) -> RatingScale:
        if self.min > self.max:
            raise ValueError(f"scale min ({self.min}) must not exceed max ({self.max})")
        return self

    def values(self) -> list[int]:
        return list(range(self.min, self.max + 1))

    def contains(self, rating: int) -> bool:
        return self.min <= rating <= self.max

    def label(self, value: int) -> str:
        """Semantic label for a value; unlabeled values fall back to the numeral."""
        return self.labels.get(value, str(value))


def _coerce_scale(value: Any) -> Any:
    """Accept a standard scale name (e.g. 'MBI_FREQUENCY') wherever a scale is expected."""
    if isinstance(value, str):
        from .scales import get_scale

        return get_scale(value)
    return value


ScaleRef = Annotated[RatingScale, BeforeValidator(_coerce_scale)]


# ── Survey definitions ────────────────────────────────────────────────

class SurveyCategory(str, Enum):
    WELLBEING = "wellbeing"
    ENGAGEMENT = "engagement"
    CULTURE = "culture"
    BURNOUT = "burnout"
    CUSTOM = "custom"


class QuestionTemplate(_Model):
    id: str | None = None
    factor: str
    sub_factor: str | None = None
    template: str = Field(validation_alias=AliasChoices("template", "questionTemplate"))
    order: int = 0
    required: bool = True
    scale: ScaleRef | None = Field(
        default=None, validation_alias=AliasChoices("scale", "ratingScale")
    )

    def render(self, organization_name: str | None = None) -> str:
        return self.template.replace(
            "{organization}", organization_name or DEFAULT_ORGANIZATION_NAME
        )


class ResolvedQuestion(BaseModel):
    """A question as the analyzers see it, whichever source defined it."""

    id: str
    factor: str
    sub_factor: str | None = None
    scale: RatingScale
    text: str
    order: int = 0


class SurveyDefinition(_Model):
    id: str
    display_name: str
    description: str = ""
    version: str = "1.0"
    category: SurveyCategory = SurveyCategory.CUSTOM
    research_basis: str | None = None
    recommended_frequency: str | None = None
    estimated_minutes: int | None = None
    default_scale: ScaleRef = Field(
        validation_alias=AliasChoices("default_scale", "defaultScale", "defaultRatingScale")
    )
    questions: list[QuestionTemplate] = Field(default_factory=list)
    factors: list[str] = Field(default_factory=list)
    demographic_keys: list[str] = Field(default_factory=list)
    is_active: bool = True

    @model_validator(mode="after")
    def _complete(self) -> SurveyDefinition:
        numbered = [
            q if q.id else q.model_copy(update={"id": f"{self.id}_q{n}"})
            for n, q in enumerate(self.questions, start=1)
        ]
        seen: set[str] = set()
        for q in numbered:
            if q.id in seen:
                raise ValueError(f"duplicate question id '{q.id}' in survey type '{self.id}'")
            seen.add(q.id)
        self.questions = numbered

        if not self.factors:
            self.factors = list(dict.fromkeys(q.factor for q in self.questions))
        return self

    def effective_scale(self, question: QuestionTemplate) -> RatingScale:
        return question.scale or self.default_scale

    def question(self, question_id: str) -> QuestionTemplate:
        for q in self.questions:
            if q.id == question_id:
                return q
        raise QuestionNotFound(question_id, self.id)

    def questions_for_factor(self, factor: str) -> list[QuestionTemplate]:
        return sorted(
            (q for q in self.questions if q.factor == factor), key=lambda q: q.order
        )

    def resolve_question(
        self, question_id: str, organization_name: str | None = None
    ) -> ResolvedQuestion:
        q = self.question(question_id)
        return ResolvedQuestion(
            id=q.id,
            factor=q.factor,
            sub_factor=q.sub_factor,
            scale=self.effective_scale(q),
            text=q.render(organization_name),
            order=q.order,
        )

    def resolve(self, organization_name: str | None = None) -> list[ResolvedQuestion]:
        return [self.resolve_question(q.id, organization_name) for q in self.questions]


class SurveyTypesFile(BaseModel):
    surveys: list[SurveyDefinition]


# ── Submissions ───────────────────────────────────────────────────────

class Answer(_Model):
    question_id: str
    rating: int
    survey_type_id: str | None = None


class Submission(_Model):
    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "sessionId"))
    user_id: str = ""
    organization_id: str | None = None
    organization_name: str | None = None
    survey_type_id: str | None = None
    completed_at: datetime | None = None
    answers: list[Answer] = Field(
        default_factory=list, validation_alias=AliasChoices("answers", "responses")
    )
    demographics: dict[str, str] | None = None

    @field_validator("demographics", mode="before")
    @classmethod
    def _drop_malformed_demographics(cls, value: Any) -> dict[str, str] | None:
        # Records from before demographics existed carry nothing usable here.
        if not isinstance(value, dict):
            return None
        return {str(k): v for k, v in value.items() if isinstance(v, str)}

    def rating_for(self, question_id: str) -> int | None:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer.rating
        return None


class SubmissionFilter(BaseModel):
    organization_id: str | None = None
    survey_type_id: str | None = None

    def matches(self, submission: Submission) -> bool:
        if self.organization_id is not None and submission.organization_id != self.organization_id:
            return False
        if self.survey_type_id is not None and submission.survey_type_id != self.survey_type_id:
            return False
        return True


# ── Analytics results ─────────────────────────────────────────────────

class QuestionAnalysis(_Model):
    question_id: str
    question_text: str
    sub_factor: str | None = None
    average_score: float
    response_count: int
    distribution: dict[int, int]


class FactorAnalysis(_Model):
    factor: str
    average_score: int | float
    response_count: int
    questions: list[QuestionAnalysis]
    is_index: bool = False  # average_score holds a net score in [-100, 100]


class DemographicStat(_Model):
    count: int
    average_score: float
    percentage: int


DemographicBreakdown = dict[str, dict[str, DemographicStat]]


class SurveyAnalytics(_Model):
    total_responses: int
    overall_average_score: float
    factor_analysis: list[FactorAnalysis]
    completion_rate: float
    response_distribution: dict[int, int]
    demographics: DemographicBreakdown
    survey_type_id: str | None = None
    survey_type_name: str | None = None
    last_updated: datetime


class EngagementAnalytics(SurveyAnalytics):
    enps_score: int = 0
    enps_category: str


class BurnoutRisk(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class BurnoutAnalytics(SurveyAnalytics):
    exhaustion_score: float = 0.0
    cynicism_score: float = 0.0
    efficacy_score: float = 0.0
    burnout_risk: BurnoutRisk | None = None
