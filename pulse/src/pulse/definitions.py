"""Survey-type configuration and the legacy fixed question catalogue.

Survey types are kept in a YAML file (``surveys:`` list). Submissions made
before survey types existed are interpreted through the legacy catalogue,
which an organization may have narrowed to a selection of question ids.
Both paths produce a SurveyDefinition, so the analyzers never need to know
which one they were given.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config import LEGACY_QUESTIONS_PATH, SURVEY_TYPES_PATH
from .errors import ConfigurationError, QuestionNotFound
from .models import SurveyDefinition, SurveyTypesFile


def _read_yaml(path: Path) -> Any:
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc


# ── Survey types ──────────────────────────────────────────────────────


def load_survey_types(path: Path | None = None) -> list[SurveyDefinition]:
    """Load every survey type from the survey-types YAML file."""
    path = path or SURVEY_TYPES_PATH
    data = _read_yaml(path) or {"surveys": []}
    try:
        return SurveyTypesFile(**data).surveys
    except (TypeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid survey types in {path}: {exc}") from exc


def find_survey_type(survey_type_id: str, path: Path | None = None) -> SurveyDefinition | None:
    """Survey type by id. Returns None if not found."""
    for survey in load_survey_types(path):
        if survey.id == survey_type_id:
            return survey
    return None


def active_factors(definition: SurveyDefinition) -> list[str]:
    """Explicit factor list when the definition has one, else the factors its questions use."""
    if definition.factors:
        return list(definition.factors)
    return list(dict.fromkeys(q.factor for q in definition.questions))


# ── Legacy catalogue ──────────────────────────────────────────────────


@lru_cache(maxsize=4)
def _load_legacy(path: Path) -> SurveyDefinition:
    data = _read_yaml(path)
    try:
        return SurveyDefinition.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid legacy question catalogue in {path}: {exc}") from exc


def legacy_definition(
    selected_question_ids: Sequence[str] | None = None,
    path: Path | None = None,
) -> SurveyDefinition:
    """The legacy catalogue, narrowed to an organization's question selection.

    An empty or missing selection means every question. Questions keep
    catalogue order and factors are limited to those with at least one
    selected question. Raises QuestionNotFound for ids outside the catalogue.
    """
    catalogue = _load_legacy(path or LEGACY_QUESTIONS_PATH)
    if not selected_question_ids:
        return catalogue

    known = {q.id for q in catalogue.questions}
    for question_id in selected_question_ids:
        if question_id not in known:
            raise QuestionNotFound(question_id, catalogue.id)

    selected = set(selected_question_ids)
    questions = [q for q in catalogue.questions if q.id in selected]
    used = {q.factor for q in questions}
    return catalogue.model_copy(update={
        "questions": questions,
        "factors": [f for f in catalogue.factors if f in used],
    })


def question_stats(
    selected_question_ids: Sequence[str] | None = None,
    path: Path | None = None,
) -> dict[str, Any]:
    """How much of the legacy catalogue a selection covers, overall and per factor."""
    catalogue = _load_legacy(path or LEGACY_QUESTIONS_PATH)
    total = len(catalogue.questions)
    selected = set(selected_question_ids) if selected_question_ids else None
    selected_count = len(selected) if selected else total

    factor_stats: dict[str, dict[str, int]] = {}
    for factor in catalogue.factors:
        in_factor = [q for q in catalogue.questions if q.factor == factor]
        factor_stats[factor] = {
            "total": len(in_factor),
            "selected": len([q for q in in_factor if selected is None or q.id in selected]),
        }

    return {
        "total_questions": total,
        "selected_count": selected_count,
        "factor_stats": factor_stats,
        "selection_percentage": round(selected_count / total * 100) if total else 0,
    }
