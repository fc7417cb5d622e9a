import pytest

from conftest import make_submission
from pulse.errors import QuestionNotFound
from pulse.models import QuestionTemplate, Submission, SurveyDefinition
from pulse.quant import (
    RunningMean,
    analyze_demographics,
    analyze_factor,
    analyze_question,
    answers_frame,
    completion_rate,
    compute_distribution,
    net_promoter_score,
    overall_average,
    restrict_to_definition,
    round_half_up,
)
from pulse.scales import ENPS_SCALE, FIVE_POINT_LIKERT


# ── Distribution ──────────────────────────────────────────────────────

@pytest.mark.parametrize("ratings,scale_min,scale_max", [
    ([], 1, 5),
    ([1, 1, 5], 1, 5),
    ([0, 3, 6, 7, -1], 0, 6),
    ([10, 10, 0, 11], 0, 10),
])
def test_distribution_is_dense_and_counts_in_range_ratings(ratings, scale_min, scale_max):
    dist = compute_distribution(ratings, scale_min, scale_max)

    assert list(dist) == list(range(scale_min, scale_max + 1))
    assert sum(dist.values()) == len([r for r in ratings if scale_min <= r <= scale_max])


def test_distribution_drops_out_of_range_ratings():
    assert compute_distribution([1, 2, 2, 6, 0], 1, 5) == {1: 1, 2: 2, 3: 0, 4: 0, 5: 0}


# ── Rounding ──────────────────────────────────────────────────────────

def test_round_half_up():
    assert round_half_up(11 / 3) == 3.67
    assert round_half_up(0.5, 0) == 1.0
    assert round_half_up(-12.5, 0) == -12.0
    assert round_half_up(3.75) == 3.75


# ── Questions ─────────────────────────────────────────────────────────

def test_analyze_question_mean_and_distribution(pulse_check, pulse_submissions):
    result = analyze_question("happiness_q1", pulse_submissions, pulse_check, "Acme")

    assert result.average_score == 3.5
    assert result.response_count == 2
    assert result.distribution == {1: 0, 2: 0, 3: 1, 4: 1, 5: 0}
    assert result.question_text == "I enjoy working at Acme."


def test_analyze_question_without_answers_scores_zero(pulse_check):
    subs = [make_submission({"enps_q1": 7})]

    result = analyze_question("happiness_q2", subs, pulse_check)

    assert result.average_score == 0
    assert result.response_count == 0
    assert sum(result.distribution.values()) == 0


def test_analyze_question_uses_question_scale(pulse_check, pulse_submissions):
    result = analyze_question("enps_q1", pulse_submissions, pulse_check)

    assert list(result.distribution) == list(range(0, 11))
    assert result.average_score == 5.5


def test_analyze_question_ignores_out_of_range_ratings(pulse_check):
    subs = [make_submission({"happiness_q1": 4}), make_submission({"happiness_q1": 9})]

    result = analyze_question("happiness_q1", subs, pulse_check)

    assert result.response_count == 1
    assert result.average_score == 4.0


def test_analyze_question_unknown_id_raises(pulse_check, pulse_submissions):
    with pytest.raises(QuestionNotFound) as exc_info:
        analyze_question("nope", pulse_submissions, pulse_check)
    assert exc_info.value.question_id == "nope"


def test_repeated_answers_keep_the_first():
    subs = [make_submission({"happiness_q1": 4})]
    subs[0].answers.append(subs[0].answers[0].model_copy(update={"rating": 1}))

    frame = answers_frame(subs)

    assert frame["rating"].tolist() == [4]


# ── Factors ───────────────────────────────────────────────────────────

@pytest.fixture
def uneven():
    """Two questions in one factor, answered by three and one respondents."""
    definition = SurveyDefinition(
        id="uneven",
        display_name="Uneven",
        default_scale=FIVE_POINT_LIKERT,
        questions=[
            QuestionTemplate(id="q1", factor="Growth", template="Q1", order=1),
            QuestionTemplate(id="q2", factor="Growth", template="Q2 (deprecated)", order=2),
        ],
    )
    subs = [
        make_submission({"q1": 5, "q2": 1}),
        make_submission({"q1": 5}),
        make_submission({"q1": 5}),
    ]
    return definition, subs


def test_factor_average_is_weighted_by_response_count(uneven):
    definition, subs = uneven

    result = analyze_factor("Growth", subs, definition)

    averages = [q.average_score for q in result.questions]
    assert averages == [5.0, 1.0]
    assert result.average_score == 4.0
    assert result.average_score != sum(averages) / len(averages)


def test_factor_response_count_is_max_of_questions(uneven):
    definition, subs = uneven

    result = analyze_factor("Growth", subs, definition)

    assert [q.response_count for q in result.questions] == [3, 1]
    assert result.response_count == 3
    assert result.is_index is False


def test_factor_without_answers_scores_zero(uneven):
    definition, _ = uneven

    result = analyze_factor("Growth", [], definition)

    assert result.average_score == 0
    assert result.response_count == 0


@pytest.mark.parametrize("ratings,expected", [
    ([10, 10, 10, 5, 5, 0], 0),
    ([9, 9, 9, 9], 100),
    ([0, 0, 0, 0], -100),
    ([10, 8, 7, 3], 0),
    ([10, 9, 8], 67),
    ([], 0),
])
def test_net_promoter_score(ratings, expected):
    assert net_promoter_score(ratings) == expected


@pytest.fixture
def enps_definition():
    return SurveyDefinition(
        id="enps",
        display_name="eNPS",
        default_scale=ENPS_SCALE,
        questions=[
            QuestionTemplate(id="recommend", factor="Employee Net Promoter Score",
                             template="Recommend as employer?", order=1),
            QuestionTemplate(id="recommend_product", factor="Employee Net Promoter Score",
                             template="Recommend products?", order=2),
        ],
    )


def test_index_factor_pools_ratings_across_questions(enps_definition):
    subs = [
        make_submission({"recommend": 10, "recommend_product": 5}),
        make_submission({"recommend": 10, "recommend_product": 5}),
        make_submission({"recommend": 10, "recommend_product": 0}),
    ]

    result = analyze_factor("Employee Net Promoter Score", subs, enps_definition)

    assert result.is_index is True
    assert result.average_score == 0
    assert result.response_count == 6
    assert [q.average_score for q in result.questions] == [10.0, 3.33]


def test_index_factor_is_net_score_not_mean(enps_definition):
    subs = [make_submission({"recommend": 9}) for _ in range(4)]

    result = analyze_factor("Employee Net Promoter Score", subs, enps_definition)

    assert result.average_score == 100
    assert isinstance(result.average_score, int)


def test_index_factor_without_ratings_reports_ordinary_zero(enps_definition):
    result = analyze_factor("Employee Net Promoter Score", [], enps_definition)

    assert result.is_index is False
    assert result.average_score == 0
    assert result.response_count == 0


def test_index_dispatch_follows_configured_factor_names(enps_definition):
    subs = [make_submission({"recommend": 9}), make_submission({"recommend": 3})]

    result = analyze_factor(
        "Employee Net Promoter Score", subs, enps_definition, index_factors={"Other"}
    )

    assert result.is_index is False
    assert result.average_score == 6.0


# ── Demographics ──────────────────────────────────────────────────────

def test_running_mean_matches_direct_mean():
    tally = RunningMean()
    for value in [4, 2, 5]:
        tally.add(value)

    assert tally.count == 3
    assert round_half_up(tally.average) == 3.67


def test_running_mean_merge():
    left, right = RunningMean(), RunningMean()
    for value in [4, 2]:
        left.add(value)
    right.add(5)

    merged = left.merge(right)

    assert merged.count == 3
    assert merged.average == pytest.approx(11 / 3)
    assert RunningMean().merge(RunningMean()) == RunningMean()


def test_demographic_average_uses_running_mean():
    subs = [
        make_submission({"q": 4}, demographics={"team": "A"}),
        make_submission({"q": 2}, demographics={"team": "A"}),
        make_submission({"q": 5}, demographics={"team": "A"}),
    ]

    breakdown = analyze_demographics(subs)

    assert breakdown["team"]["A"].average_score == 3.67
    assert breakdown["team"]["A"].count == 3
    assert breakdown["team"]["A"].percentage == 100


def test_demographics_discovers_keys_and_skips_missing():
    subs = [
        make_submission({"q": 4, "r": 2}, demographics={"department": "Eng", "site": "Remote"}),
        make_submission({"q": 5}, demographics={"department": "Sales", "site": ""}),
        make_submission({"q": 1}, demographics={"department": "Eng", "pronouns": "they/them"}),
        make_submission({"q": 1}, demographics=None),
    ]

    breakdown = analyze_demographics(subs)

    assert set(breakdown) == {"department", "site", "pronouns"}
    assert breakdown["department"]["Eng"].count == 2
    assert breakdown["department"]["Eng"].average_score == 2.0
    assert breakdown["department"]["Eng"].percentage == 67
    assert breakdown["department"]["Sales"].percentage == 33
    assert breakdown["site"] == {"Remote": breakdown["site"]["Remote"]}
    assert breakdown["pronouns"]["they/them"].percentage == 33


def test_demographic_percentages_sum_to_about_100():
    values = ["A", "B", "C"]
    subs = [make_submission({"q": 3}, demographics={"team": values[i % 3]}) for i in range(7)]

    breakdown = analyze_demographics(subs)

    total = sum(stat.percentage for stat in breakdown["team"].values())
    assert abs(total - 100) <= len(values)


def test_demographics_placeholders_and_malformed_blobs():
    subs = [make_submission({"q": 3}).model_copy(update={"demographics": None})]
    subs.append(Submission.model_validate({"answers": [], "demographics": "n/a"}))

    breakdown = analyze_demographics(subs, placeholder_keys=["department", "role"])

    assert breakdown == {"department": {}, "role": {}}


# ── Survey-wide figures ───────────────────────────────────────────────

def test_overall_average_is_flat_pool():
    assert overall_average([4, 5, 9, 3, 3, 2]) == 4.33
    assert overall_average([]) == 0


def test_completion_rate():
    assert completion_rate(5, 2, 3) == 83.33
    assert completion_rate(0, 0, 3) == 0
    assert completion_rate(10, 1, 3) == 100.0


def test_restrict_to_definition_leaves_input_untouched(pulse_check):
    sub = make_submission({"happiness_q1": 4, "happiness_q2": 7, "unknown": 3})

    [restricted] = restrict_to_definition([sub], pulse_check.resolve())

    assert [a.question_id for a in restricted.answers] == ["happiness_q1"]
    assert len(sub.answers) == 3
