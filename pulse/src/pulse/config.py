"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .quant import DEFAULT_INDEX_FACTORS

load_dotenv()

DATA_DIR = Path(__file__).resolve().parent / "data"
SURVEY_TYPES_PATH = DATA_DIR / "survey_types.yaml"
LEGACY_QUESTIONS_PATH = DATA_DIR / "legacy_questions.yaml"


def _env_str(key: str, default: str | None = None) -> str | None:
    v = os.environ.get(key)
    if v is None:
        return default
    v = v.strip()
    return v if v else default


def _env_list(key: str, default: str) -> tuple[str, ...]:
    raw = _env_str(key, default) or ""
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _env_path(key: str, default: Path | None = None) -> Path | None:
    v = _env_str(key)
    return Path(v).expanduser() if v else default


@dataclass(frozen=True)
class Settings:
    survey_types_path: Path
    legacy_questions_path: Path
    submissions_path: Path | None

    # Remote storage service; file sources are used when unset
    api_base_url: str | None
    api_token: str | None

    index_factors: tuple[str, ...]
    engagement_survey_type_id: str
    burnout_survey_type_id: str

    log_level: str

    @staticmethod
    def from_env() -> Settings:
        return Settings(
            survey_types_path=_env_path("PULSE_SURVEY_TYPES_PATH", SURVEY_TYPES_PATH),
            legacy_questions_path=_env_path("PULSE_LEGACY_QUESTIONS_PATH", LEGACY_QUESTIONS_PATH),
            submissions_path=_env_path("PULSE_SUBMISSIONS_PATH"),
            api_base_url=_env_str("PULSE_API_BASE_URL"),
            api_token=_env_str("PULSE_API_TOKEN"),
            index_factors=_env_list("PULSE_INDEX_FACTORS", ",".join(sorted(DEFAULT_INDEX_FACTORS))),
            engagement_survey_type_id=_env_str("PULSE_ENGAGEMENT_SURVEY_TYPE", "engagement-pulse") or "engagement-pulse",
            burnout_survey_type_id=_env_str("PULSE_BURNOUT_SURVEY_TYPE", "mbi-burnout") or "mbi-burnout",
            log_level=(_env_str("PULSE_LOG_LEVEL", "INFO") or "INFO").upper(),
        )
