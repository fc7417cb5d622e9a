import pytest

from pulse.config import LEGACY_QUESTIONS_PATH, SURVEY_TYPES_PATH, Settings
from pulse.models import Answer, QuestionTemplate, Submission, SurveyDefinition
from pulse.quant import DEFAULT_INDEX_FACTORS
from pulse.scales import ENPS_SCALE, FIVE_POINT_LIKERT
from pulse.sources import InMemorySource


def make_submission(ratings, demographics=None, organization_id="org-1",
                    survey_type_id="pulse-check", id=None):
    return Submission(
        id=id,
        user_id=f"user-{id or 'x'}",
        organization_id=organization_id,
        survey_type_id=survey_type_id,
        answers=[Answer(question_id=q, rating=r) for q, r in ratings.items()],
        demographics=demographics,
    )


@pytest.fixture
def pulse_check():
    """Happiness (two 1-5 questions) plus a single 0-10 eNPS question."""
    return SurveyDefinition(
        id="pulse-check",
        display_name="Pulse Check",
        default_scale=FIVE_POINT_LIKERT,
        questions=[
            QuestionTemplate(id="happiness_q1", factor="Happiness",
                             template="I enjoy working at {organization}.", order=1),
            QuestionTemplate(id="happiness_q2", factor="Happiness",
                             template="I am proud to work here.", order=2),
            QuestionTemplate(id="enps_q1", factor="eNPS",
                             template="Would you recommend {organization}?", order=3,
                             scale=ENPS_SCALE),
        ],
        demographic_keys=["department"],
    )


@pytest.fixture
def pulse_submissions():
    return [
        make_submission({"happiness_q1": 4, "happiness_q2": 5, "enps_q1": 9},
                        demographics={"department": "Engineering"}, id="s1"),
        make_submission({"happiness_q1": 3, "happiness_q2": 3, "enps_q1": 2},
                        demographics={"department": "Sales"}, id="s2"),
    ]


@pytest.fixture
def source(pulse_check, pulse_submissions):
    return InMemorySource(pulse_submissions, [pulse_check])


@pytest.fixture
def settings():
    return Settings(
        survey_types_path=SURVEY_TYPES_PATH,
        legacy_questions_path=LEGACY_QUESTIONS_PATH,
        submissions_path=None,
        api_base_url=None,
        api_token=None,
        index_factors=tuple(sorted(DEFAULT_INDEX_FACTORS)),
        engagement_survey_type_id="engagement-pulse",
        burnout_survey_type_id="mbi-burnout",
        log_level="INFO",
    )
