"""Error taxonomy for survey analytics."""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for analytics failures."""


class ConfigurationError(AnalyticsError):
    """A survey-type or legacy catalogue file is missing or invalid."""


class QuestionNotFound(AnalyticsError, KeyError):
    """A factor or selection references a question absent from the definition."""

    def __init__(self, question_id: str, survey_type_id: str | None = None):
        self.question_id = question_id
        self.survey_type_id = survey_type_id
        where = f" in survey type '{survey_type_id}'" if survey_type_id else ""
        super().__init__(f"Question not found: {question_id}{where}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class DefinitionNotFound(AnalyticsError, LookupError):
    """An explicitly requested survey type has no definition."""

    def __init__(self, survey_type_id: str):
        self.survey_type_id = survey_type_id
        super().__init__(f"Survey type not found: {survey_type_id}")


class AnalyticsGenerationFailed(AnalyticsError):
    """A fetch collaborator failed; no partial analytics are returned."""


AggregationFailed = AnalyticsGenerationFailed
