"""Read-only data sources the analytics consume.

Storage is owned elsewhere; analytics only need two queries: submissions
filtered by organization and/or survey type, and one survey definition by id.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from .config import Settings
from .definitions import find_survey_type, load_survey_types
from .errors import ConfigurationError
from .models import Submission, SubmissionFilter, SurveyDefinition

logger = logging.getLogger(__name__)


class SubmissionSource(Protocol):
    def fetch_submissions(self, filter: SubmissionFilter) -> list[Submission]: ...


class DefinitionSource(Protocol):
    def fetch_survey_definition(self, survey_type_id: str) -> SurveyDefinition | None: ...


def parse_submissions(records: Iterable[dict[str, Any]]) -> list[Submission]:
    """Validate raw submission records, skipping (and logging) unusable ones."""
    submissions: list[Submission] = []
    for n, record in enumerate(records):
        try:
            submissions.append(Submission.model_validate(record))
        except ValidationError as exc:
            logger.warning("Skipping malformed submission #%d: %s", n, exc.errors()[0]["msg"])
    return submissions


class InMemorySource:
    """Both sources over in-process collections."""

    def __init__(
        self,
        submissions: Iterable[Submission] = (),
        definitions: Iterable[SurveyDefinition] = (),
    ):
        self._submissions = list(submissions)
        self._definitions = {d.id: d for d in definitions}

    def fetch_submissions(self, filter: SubmissionFilter) -> list[Submission]:
        return [s for s in self._submissions if filter.matches(s)]

    def fetch_survey_definition(self, survey_type_id: str) -> SurveyDefinition | None:
        return self._definitions.get(survey_type_id)


class YamlDefinitionSource:
    """Survey types from the survey-types YAML file."""

    def __init__(self, path: Path | None = None):
        self.path = path

    def fetch_survey_definition(self, survey_type_id: str) -> SurveyDefinition | None:
        return find_survey_type(survey_type_id, self.path)

    def list_survey_types(self) -> list[SurveyDefinition]:
        return load_survey_types(self.path)


class JsonSubmissionSource:
    """Submissions exported to a JSON array file, or JSON Lines when the suffix is .jsonl."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _records(self) -> list[dict[str, Any]]:
        text = self.path.read_text()
        if self.path.suffix == ".jsonl":
            return [json.loads(line) for line in text.splitlines() if line.strip()]
        data = json.loads(text)
        if isinstance(data, dict):
            data = data.get("submissions", [])
        return data

    def fetch_submissions(self, filter: SubmissionFilter) -> list[Submission]:
        submissions = parse_submissions(self._records())
        return [s for s in submissions if filter.matches(s)]


def default_submission_source(settings: Settings) -> SubmissionSource:
    """The storage API when configured, else the submissions export file."""
    if settings.api_base_url:
        from .api import StorageClient

        return StorageClient(settings.api_base_url, token=settings.api_token)
    if settings.submissions_path is None:
        raise ConfigurationError("Set PULSE_API_BASE_URL or PULSE_SUBMISSIONS_PATH to read submissions")
    return JsonSubmissionSource(settings.submissions_path)


def default_definition_source(settings: Settings) -> DefinitionSource:
    """The storage API when configured, else the survey-types YAML file."""
    if settings.api_base_url:
        from .api import StorageClient

        return StorageClient(settings.api_base_url, token=settings.api_token)
    return YamlDefinitionSource(settings.survey_types_path)
