"""HTTP client for the survey storage service.

Implements both read queries the analytics need:
GET /submissions?organizationId=&surveyTypeId= and GET /survey-types/{id}.
Authenticates via X-API-TOKEN header.
"""

from __future__ import annotations

from typing import Any

import httpx

from .models import Submission, SubmissionFilter, SurveyDefinition
from .sources import parse_submissions


class StorageClient:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["X-API-TOKEN"] = self.token
        return headers

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self.transport,
        )

    def fetch_submissions(self, filter: SubmissionFilter) -> list[Submission]:
        """Fetch submissions, narrowed server-side by whichever filter fields are set."""
        params: dict[str, Any] = {}
        if filter.organization_id is not None:
            params["organizationId"] = filter.organization_id
        if filter.survey_type_id is not None:
            params["surveyTypeId"] = filter.survey_type_id
        with self._client() as client:
            resp = client.get("/submissions", params=params)
            resp.raise_for_status()
            data = resp.json()
        if isinstance(data, dict):
            data = data.get("submissions", [])
        return parse_submissions(data)

    def fetch_survey_definition(self, survey_type_id: str) -> SurveyDefinition | None:
        """Fetch one survey type. Returns None if the service has no such type."""
        with self._client() as client:
            resp = client.get(f"/survey-types/{survey_type_id}")
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            return SurveyDefinition.model_validate(resp.json())
