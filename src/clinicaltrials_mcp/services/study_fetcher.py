"""
Bounded retrieval of every study matching a search.

The fetcher probes the total match count with a one-record page, refuses
queries above MAX_STUDIES before any bulk page is requested, then follows
continuation tokens page by page. A failure on any page propagates and the
records gathered so far are dropped with it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from clinicaltrials_mcp.constants import (
    ANALYSIS_PAGE_SIZE,
    API_CALL_DELAY_SECONDS,
    MAX_STUDIES_FOR_ANALYSIS,
)
from clinicaltrials_mcp.errors import StudyLimitExceededError
from clinicaltrials_mcp.models.model_clinical_trials import (
    PagedStudies,
    SearchSpec,
    Study,
)

logger = logging.getLogger(__name__)


class StudySource(Protocol):
    """The slice of ClinicalTrialsClient the fetcher depends on."""

    async def list_studies(
        self,
        spec: SearchSpec | None = None,
        *,
        page_size: int | None = None,
        page_token: str | None = None,
        count_total: bool = False,
    ) -> PagedStudies: ...


class StudyFetcher:
    """Fetch all studies for a SearchSpec, up to a fixed cap."""

    MAX_STUDIES = MAX_STUDIES_FOR_ANALYSIS
    PAGE_SIZE = ANALYSIS_PAGE_SIZE
    PAGE_DELAY_SECONDS = API_CALL_DELAY_SECONDS

    def __init__(self, source: StudySource) -> None:
        self.source = source

    async def count(self, spec: SearchSpec) -> int:
        """Total studies matching spec, from a single one-record page."""
        probe = await self.source.list_studies(spec, page_size=1, count_total=True)
        return probe.total_count or 0

    async def fetch_all(self, spec: SearchSpec) -> list[Study]:
        """Return every matching study in the order the API pages them.

        Raises StudyLimitExceededError when the probed total is above
        MAX_STUDIES; in that case the probe is the only request made.
        """
        logger.debug("Fetching all studies for analysis...")
        total = await self.count(spec)

        if total > self.MAX_STUDIES:
            raise StudyLimitExceededError(total, self.MAX_STUDIES)
        if total == 0:
            return []

        studies: list[Study] = []
        page_token: str | None = None

        while True:
            page = await self.source.list_studies(
                spec, page_size=self.PAGE_SIZE, page_token=page_token
            )
            studies.extend(page.studies)
            page_token = page.next_page_token

            # Stop on a missing token or once the probed total is reached,
            # whichever comes first.
            if not page_token or len(studies) >= total:
                break

            logger.debug(
                "Fetched %d/%d studies, next page in %.2fs",
                len(studies),
                total,
                self.PAGE_DELAY_SECONDS,
            )
            await asyncio.sleep(self.PAGE_DELAY_SECONDS)

        logger.info("Fetched a total of %d studies for analysis.", len(studies))
        return studies
