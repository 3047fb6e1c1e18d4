"""
DemoMed patient records API adapter.

Walks GET /patients strictly page by page and posts the final assessment to
POST /submit-assessment. All HTTP goes through the ResilientFetcher; this
module only decides what counts as success.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import requests
import structlog

from core.config import DemoMedAPIConfig
from core.domain.models import AssessmentPayload, PatientRecord, PatientsPage
from core.errors import FatalHTTPError, ResponseFormatError
from core.services.resilient_fetcher import ResilientFetcher, Sleeper

logger = structlog.get_logger(__name__)

BODY_SNIPPET_CHARS = 200


def _body_snippet(response: requests.Response) -> str:
    return response.text[:BODY_SNIPPET_CHARS]


def _raise_for_status(response: requests.Response, url: str) -> None:
    if not response.ok:
        raise FatalHTTPError(url, response.status_code, _body_snippet(response))


class DemoMedClient:
    """Pagination walker and submitter for the assessment API."""

    def __init__(
        self,
        config: DemoMedAPIConfig,
        fetcher: ResilientFetcher,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self._sleep = sleep
        self.logger = logger.bind(component="demomed_client", base_url=config.base_url)

    @property
    def _auth_headers(self) -> dict[str, str]:
        return {"x-api-key": self.config.api_key}

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    async def fetch_page(self, page: int) -> PatientsPage:
        url = self._url("patients")
        response = await self.fetcher.get(
            url,
            params={"page": page, "limit": self.config.page_limit},
            headers=self._auth_headers,
        )
        _raise_for_status(response, url)

        try:
            body = response.json()
        except ValueError as e:
            raise ResponseFormatError(url, f"page {page} is not JSON: {e}") from e
        if not isinstance(body, dict):
            raise ResponseFormatError(url, f"page {page} is not a JSON object")

        result = PatientsPage.from_json(body)
        self.logger.info(
            "page_fetched",
            page=page,
            records=len(result.records),
            skipped_items=result.skipped_items,
            has_next=result.has_next,
        )
        return result

    async def iter_pages(self) -> AsyncIterator[PatientsPage]:
        """
        Yield pages until hasNext is falsy.

        Page N+1 is requested only after page N is read and the inter-page
        delay has elapsed.
        """
        page = 1
        while True:
            result = await self.fetch_page(page)
            yield result
            if not result.has_next:
                break
            page += 1
            await self._sleep(self.config.page_delay_seconds)

    async def fetch_all_patients(self) -> list[PatientRecord]:
        patients: list[PatientRecord] = []
        pages = 0
        async for result in self.iter_pages():
            patients.extend(result.records)
            pages += 1

        self.logger.info("patients_fetched", pages=pages, total_records=len(patients))
        return patients

    async def submit_assessment(self, payload: AssessmentPayload) -> dict[str, Any]:
        """
        Post the payload once. Returns the JSON acknowledgment, or {} when the
        body is not JSON.
        """
        url = self._url("submit-assessment")
        response = await self.fetcher.post(
            url,
            json=payload.model_dump(),
            headers={"Content-Type": "application/json", **self._auth_headers},
        )
        _raise_for_status(response, url)

        try:
            ack = response.json()
        except ValueError:
            ack = {}
        if not isinstance(ack, dict):
            ack = {"response": ack}

        self.logger.info("assessment_submitted", status_code=response.status_code)
        return ack
