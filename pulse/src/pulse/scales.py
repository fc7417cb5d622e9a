"""Standard rating scales shared by survey definitions."""

from __future__ import annotations

from .models import RatingScale, ScaleKind

FIVE_POINT_LIKERT = RatingScale(
    min=1,
    max=5,
    kind=ScaleKind.LIKERT,
    labels={
        1: "Strongly Disagree",
        2: "Disagree",
        3: "Neutral",
        4: "Agree",
        5: "Strongly Agree",
    },
)

SEVEN_POINT_LIKERT = RatingScale(
    min=1,
    max=7,
    kind=ScaleKind.LIKERT,
    labels={
        1: "Strongly Disagree",
        2: "Disagree",
        3: "Somewhat Disagree",
        4: "Neutral",
        5: "Somewhat Agree",
        6: "Agree",
        7: "Strongly Agree",
    },
)

FREQUENCY_SCALE = RatingScale(
    min=1,
    max=5,
    kind=ScaleKind.FREQUENCY,
    labels={1: "Never", 2: "Rarely", 3: "Sometimes", 4: "Often", 5: "Always"},
)

MBI_FREQUENCY = RatingScale(
    min=0,
    max=6,
    kind=ScaleKind.FREQUENCY,
    labels={
        0: "Never",
        1: "A few times a year or less",
        2: "Once a month or less",
        3: "A few times a month",
        4: "Once a week",
        5: "A few times a week",
        6: "Every day",
    },
)

ENPS_SCALE = RatingScale(
    min=0,
    max=10,
    kind=ScaleKind.CUSTOM,
    labels={0: "Not at all likely", 5: "Neutral", 10: "Extremely likely"},
)

STANDARD_SCALES: dict[str, RatingScale] = {
    "FIVE_POINT_LIKERT": FIVE_POINT_LIKERT,
    "SEVEN_POINT_LIKERT": SEVEN_POINT_LIKERT,
    "FREQUENCY_SCALE": FREQUENCY_SCALE,
    "MBI_FREQUENCY": MBI_FREQUENCY,
    "ENPS_SCALE": ENPS_SCALE,
}


def get_scale(name: str) -> RatingScale:
    """Look up a standard scale by its catalogue name."""
    try:
        return STANDARD_SCALES[name]
    except KeyError:
        available = ", ".join(sorted(STANDARD_SCALES))
        raise ValueError(f"Unknown rating scale '{name}' (available: {available})") from None
