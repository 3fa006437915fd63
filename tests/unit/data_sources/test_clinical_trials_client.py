"""Unit tests for ClinicalTrialsClient (no network calls)."""

from unittest.mock import AsyncMock, patch

import pytest

from clinicaltrials_mcp.config import Settings
from clinicaltrials_mcp.data_sources.clinical_trials import ClinicalTrialsClient
from clinicaltrials_mcp.errors import ErrorCode, McpToolError
from clinicaltrials_mcp.models.model_clinical_trials import (
    GeoFilter,
    OverallStatus,
    SearchSpec,
    StudyFilter,
    StudyQuery,
)

BASE = "https://clinicaltrials.gov/api/v2"


class TestBuildSearchParams:
    """Tests for the query string built from a SearchSpec."""

    def test_no_spec_only_format(self):
        assert ClinicalTrialsClient._build_search_params(None) == {"format": "json"}

    def test_query_fields_prefixed(self):
        spec = SearchSpec(query=StudyQuery(cond="asthma", intr="budesonide"))

        params = ClinicalTrialsClient._build_search_params(spec)

        assert params["query.cond"] == "asthma"
        assert params["query.intr"] == "budesonide"
        assert "query.term" not in params

    def test_empty_query_values_skipped(self):
        spec = SearchSpec(query=StudyQuery(cond="", term="x"))

        params = ClinicalTrialsClient._build_search_params(spec)

        assert "query.cond" not in params
        assert params["query.term"] == "x"

    def test_filters_joined(self):
        spec = SearchSpec(
            filter=StudyFilter(
                ids=["NCT00000001", "NCT00000002"],
                overall_status=[OverallStatus.RECRUITING, OverallStatus.COMPLETED],
                advanced="AREA[Phase]PHASE3",
            )
        )

        params = ClinicalTrialsClient._build_search_params(spec)

        assert params["filter.ids"] == "NCT00000001,NCT00000002"
        assert params["filter.overallStatus"] == "RECRUITING,COMPLETED"
        assert params["filter.advanced"] == "AREA[Phase]PHASE3"

    def test_geo_filter(self):
        spec = SearchSpec(
            filter=StudyFilter(
                geo=GeoFilter(latitude=40.7128, longitude=-74.006, radius=10, unit="mi")
            )
        )

        params = ClinicalTrialsClient._build_search_params(spec)

        assert params["filter.geo"] == "distance(40.7128,-74.006,10mi)"

    def test_paging_and_projection(self):
        params = ClinicalTrialsClient._build_search_params(
            None,
            fields=["NCTId", "BriefTitle"],
            sort=["LastUpdatePostDate:desc"],
            page_size=1000,
            page_token="abc",
            count_total=True,
        )

        assert params == {
            "format": "json",
            "fields": "NCTId,BriefTitle",
            "sort": "LastUpdatePostDate:desc",
            "pageSize": 1000,
            "pageToken": "abc",
            "countTotal": "true",
        }


@pytest.mark.asyncio
class TestClientMethods:
    """Tests for the public methods with _rest_get mocked."""

    async def test_list_studies_parses_page(self):
        client = ClinicalTrialsClient()
        response = {
            "studies": [{"protocolSection": {}}],
            "nextPageToken": "tok",
            "totalCount": 12,
        }

        with patch.object(
            client, "_rest_get", new_callable=AsyncMock, return_value=response
        ) as mock_get:
            page = await client.list_studies(
                SearchSpec(query=StudyQuery(cond="flu")), page_size=1, count_total=True
            )

        assert page.total_count == 12
        assert page.next_page_token == "tok"
        assert len(page.studies) == 1
        url, params = mock_get.call_args.args
        assert url == f"{BASE}/studies"
        assert params["pageSize"] == 1
        assert params["countTotal"] == "true"
        assert mock_get.call_args.kwargs["backup_prefix"] == "studies"

    async def test_list_studies_empty_body(self):
        client = ClinicalTrialsClient()

        with patch.object(client, "_rest_get", new_callable=AsyncMock, return_value={}):
            page = await client.list_studies()

        assert page.studies == []
        assert page.total_count is None
        assert page.next_page_token is None

    async def test_fetch_study(self):
        client = ClinicalTrialsClient()

        with patch.object(
            client, "_rest_get", new_callable=AsyncMock, return_value={"a": 1}
        ) as mock_get:
            study = await client.fetch_study(
                "NCT00000001", fields=["NCTId"], markup_format="legacy"
            )

        assert study == {"a": 1}
        url, params = mock_get.call_args.args
        assert url == f"{BASE}/studies/NCT00000001"
        assert params == {"format": "json", "markupFormat": "legacy", "fields": "NCTId"}

    async def test_get_study_metadata_flags(self):
        client = ClinicalTrialsClient()

        with patch.object(
            client, "_rest_get", new_callable=AsyncMock, return_value=[]
        ) as mock_get:
            await client.get_study_metadata(include_indexed_only=True)

        url, params = mock_get.call_args.args
        assert url == f"{BASE}/studies/metadata"
        assert params == {"includeIndexedOnly": "true"}

    async def test_get_api_stats_endpoint(self):
        client = ClinicalTrialsClient()

        with patch.object(
            client, "_rest_get", new_callable=AsyncMock, return_value={}
        ) as mock_get:
            await client.get_api_stats("fieldValues", fields=["Phase"])

        url, params = mock_get.call_args.args
        assert url == f"{BASE}/stats/field/values"
        assert params == {"fields": "Phase"}

    async def test_get_api_stats_invalid_type(self):
        client = ClinicalTrialsClient()

        with patch.object(client, "_rest_get", new_callable=AsyncMock) as mock_get:
            with pytest.raises(McpToolError) as exc_info:
                await client.get_api_stats("bogus")

        assert exc_info.value.code == ErrorCode.INVALID_INPUT
        mock_get.assert_not_called()


class TestFromSettings:
    def test_settings_applied(self, tmp_path):
        settings = Settings(
            clinicaltrials_base_url="https://example.org/api/",
            clinicaltrials_timeout_seconds=5,
            clinicaltrials_max_retries=1,
            clinicaltrials_data_path=tmp_path,
        )

        client = ClinicalTrialsClient.from_settings(settings)

        assert client.base_url == "https://example.org/api"
        assert client.config.timeout_seconds == 5
        assert client.config.retry.max_retries == 1
        assert client.config.backup_dir == tmp_path
