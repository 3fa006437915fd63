"""
ClinicalTrials.gov REST API v2 client.

Four methods:
  1. list_studies       : one page of search results (query + filter)
  2. fetch_study        : a single study by NCT ID
  3. get_study_metadata : the study data model field tree
  4. get_api_stats      : size / field-value statistics
"""

from __future__ import annotations

import logging
from typing import Any

from clinicaltrials_mcp.config import Settings
from clinicaltrials_mcp.constants import CLINICAL_TRIALS_BASE_URL, STATS_ENDPOINTS
from clinicaltrials_mcp.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    RequestContext,
    RetryConfig,
)
from clinicaltrials_mcp.errors import ErrorCode, McpToolError
from clinicaltrials_mcp.models.model_clinical_trials import (
    PagedStudies,
    SearchSpec,
    Study,
)

logger = logging.getLogger("clinicaltrials_mcp.data_sources.clinical_trials")


class ClinicalTrialsClient(BaseClient):
    """Client for the ClinicalTrials.gov v2 API."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        base_url: str = CLINICAL_TRIALS_BASE_URL,
    ) -> None:
        super().__init__(config)
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> ClinicalTrialsClient:
        config = ClientConfig(
            retry=RetryConfig(max_retries=settings.clinicaltrials_max_retries),
            timeout_seconds=settings.clinicaltrials_timeout_seconds,
            backup_dir=settings.clinicaltrials_data_path,
        )
        return cls(config, base_url=settings.clinicaltrials_base_url)

    @property
    def _source_name(self) -> str:
        return "clinical_trials"

    # ------------------------------------------------------------------
    # Public: list_studies
    # ------------------------------------------------------------------

    async def list_studies(
        self,
        spec: SearchSpec | None = None,
        *,
        fields: list[str] | None = None,
        sort: list[str] | None = None,
        page_size: int | None = None,
        page_token: str | None = None,
        count_total: bool = False,
    ) -> PagedStudies:
        """Fetch one page of studies matching the search spec."""
        params = self._build_search_params(
            spec,
            fields=fields,
            sort=sort,
            page_size=page_size,
            page_token=page_token,
            count_total=count_total,
        )
        data = await self._rest_get(
            f"{self.base_url}/studies",
            params,
            backup_prefix="studies",
            context=RequestContext(
                source=self._source_name, method="list_studies", params=params
            ),
        )
        return PagedStudies.model_validate(data or {})

    # ------------------------------------------------------------------
    # Public: fetch_study
    # ------------------------------------------------------------------

    async def fetch_study(
        self,
        nct_id: str,
        *,
        fields: list[str] | None = None,
        markup_format: str = "markdown",
    ) -> Study:
        """Fetch a single study. A 404 raises DataSourceError('Study not found...')."""
        params: dict[str, Any] = {"format": "json", "markupFormat": markup_format}
        if fields:
            params["fields"] = ",".join(fields)

        return await self._rest_get(
            f"{self.base_url}/studies/{nct_id}",
            params,
            backup_prefix=f"study_{nct_id}",
            context=RequestContext(
                source=self._source_name, method="fetch_study", params=params
            ),
        )

    # ------------------------------------------------------------------
    # Public: metadata and stats
    # ------------------------------------------------------------------

    async def get_study_metadata(
        self,
        include_indexed_only: bool = False,
        include_historic_only: bool = False,
    ) -> list[dict[str, Any]]:
        """Field tree describing the study data model."""
        params: dict[str, Any] = {}
        if include_indexed_only:
            params["includeIndexedOnly"] = "true"
        if include_historic_only:
            params["includeHistoricOnly"] = "true"

        return await self._rest_get(
            f"{self.base_url}/studies/metadata",
            params,
            backup_prefix="metadata",
            context=RequestContext(source=self._source_name, method="get_study_metadata"),
        )

    async def get_api_stats(
        self,
        stat_type: str,
        fields: list[str] | None = None,
        types: list[str] | None = None,
    ) -> Any:
        """Statistics from ``/stats/*``; stat_type is a key of STATS_ENDPOINTS."""
        endpoint = STATS_ENDPOINTS.get(stat_type)
        if endpoint is None:
            raise McpToolError(
                ErrorCode.INVALID_INPUT,
                f"Invalid statType: {stat_type}",
                {"allowed": sorted(STATS_ENDPOINTS)},
            )

        params: dict[str, Any] = {}
        if fields:
            params["fields"] = ",".join(fields)
        if types:
            params["types"] = ",".join(types)

        return await self._rest_get(
            f"{self.base_url}/stats/{endpoint}",
            params,
            backup_prefix=f"stats_{stat_type}",
            context=RequestContext(source=self._source_name, method="get_api_stats"),
        )

    # ------------------------------------------------------------------
    # Private: parameter building
    # ------------------------------------------------------------------

    @staticmethod
    def _build_search_params(
        spec: SearchSpec | None,
        *,
        fields: list[str] | None = None,
        sort: list[str] | None = None,
        page_size: int | None = None,
        page_token: str | None = None,
        count_total: bool = False,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"format": "json"}

        if spec and spec.query:
            for key, value in spec.query.model_dump(exclude_none=True).items():
                if value:
                    params[f"query.{key}"] = value

        if spec and spec.filter:
            f = spec.filter
            if f.ids:
                params["filter.ids"] = ",".join(f.ids)
            if f.overall_status:
                params["filter.overallStatus"] = ",".join(
                    s.value for s in f.overall_status
                )
            if f.geo:
                params["filter.geo"] = f.geo.to_param()
                logger.debug("Transformed geo filter to: %s", params["filter.geo"])
            if f.advanced:
                params["filter.advanced"] = f.advanced

        if fields:
            params["fields"] = ",".join(fields)
        if sort:
            params["sort"] = ",".join(sort)
        if page_size:
            params["pageSize"] = page_size
        if page_token:
            params["pageToken"] = page_token
        if count_total:
            params["countTotal"] = "true"

        return params
