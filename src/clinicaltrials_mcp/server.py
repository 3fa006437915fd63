"""
MCP server: tool registration, error envelopes and authentication.

Tools are registered on a FastMCP instance built by ``create_server``. The
ClinicalTrials.gov client is passed in (or built from settings) and closed
when the server's lifespan ends. Any failure inside a tool is converted to
an ``McpToolError`` and re-raised as a FastMCP ``ToolError`` whose text is
the JSON envelope ``{"error": {"code", "message", "details"}}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.auth.providers.jwt import JWTVerifier
from pydantic import Field

from clinicaltrials_mcp import __version__
from clinicaltrials_mcp.config import Settings, get_settings
from clinicaltrials_mcp.constants import MAX_STUDIES_FOR_ANALYSIS
from clinicaltrials_mcp.data_sources.clinical_trials import ClinicalTrialsClient
from clinicaltrials_mcp.errors import to_tool_error
from clinicaltrials_mcp.models.model_clinical_trials import (
    AnalysisType,
    AnalyzeTrendsInput,
    CreateLinkInput,
    GetStudyInput,
    SearchStudiesInput,
)
from clinicaltrials_mcp.tools.analyze_trends import analyze_trends_logic
from clinicaltrials_mcp.tools.create_link import create_link_logic
from clinicaltrials_mcp.tools.get_study import get_study_logic
from clinicaltrials_mcp.tools.metadata import (
    get_api_stats_logic,
    get_study_metadata_logic,
)
from clinicaltrials_mcp.tools.search_studies import search_studies_logic

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Tools for searching and analysing clinical studies registered on "
    "ClinicalTrials.gov. Use clinicaltrials_search_studies to browse, "
    "clinicaltrials_get_study for full records, and "
    "clinicaltrials_analyze_trends for aggregate counts."
)

# Nested arguments stay loosely typed so that StudyQuery, StudyFilter and
# AnalyzeTrendsInput validate them inside run_tool.
QueryArg = Annotated[
    dict[str, Any] | None,
    Field(
        description=(
            "A set of search terms that influence result ranking. Keys: cond, "
            "term, locn, titles, intr, outc, spons, id."
        )
    ),
]
FilterArg = Annotated[
    dict[str, Any] | None,
    Field(
        description=(
            "A set of filters that narrow the search results without affecting "
            "ranking. Keys: ids, overallStatus, geo (latitude, longitude, radius, "
            "unit), advanced."
        )
    ),
]


def build_auth(settings: Settings) -> JWTVerifier | None:
    """JWT verifier for the HTTP transport, or None when auth is disabled."""
    if settings.mcp_auth_mode != "jwt":
        return None
    if not (settings.mcp_auth_jwks_uri or settings.mcp_auth_public_key):
        raise ValueError(
            "MCP_AUTH_MODE=jwt requires MCP_AUTH_JWKS_URI or MCP_AUTH_PUBLIC_KEY"
        )
    return JWTVerifier(
        jwks_uri=settings.mcp_auth_jwks_uri or None,
        public_key=settings.mcp_auth_public_key or None,
        issuer=settings.mcp_auth_issuer or None,
        audience=settings.mcp_auth_audience or None,
    )


async def run_tool(tool_name: str, call: Callable[[], Awaitable[Any]]) -> Any:
    """Run tool logic, translating any failure into a ToolError envelope."""
    try:
        return await call()
    except Exception as e:
        error = to_tool_error(e)
        logger.error(
            "Tool %s failed [%s]: %s", tool_name, error.code.value, error.message
        )
        raise ToolError(json.dumps(error.to_payload(), default=str)) from e


def create_server(
    client: ClinicalTrialsClient | None = None,
    settings: Settings | None = None,
) -> FastMCP:
    """Build the FastMCP server with every ClinicalTrials.gov tool registered."""
    settings = settings or get_settings()
    client = client or ClinicalTrialsClient.from_settings(settings)

    @asynccontextmanager
    async def lifespan(_server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        try:
            yield {}
        finally:
            await client.close()

    mcp = FastMCP(
        settings.mcp_server_name,
        instructions=INSTRUCTIONS,
        version=__version__,
        lifespan=lifespan,
        auth=build_auth(settings),
    )

    @mcp.tool(
        name="clinicaltrials_search_studies",
        description=(
            "Searches for clinical studies using a combination of query terms "
            "and filters. Supports pagination, sorting, and geographic filtering."
        ),
    )
    async def search_studies(
        query: QueryArg = None,
        filter: FilterArg = None,
        fields: Annotated[
            list[str] | None,
            Field(description="Specific top-level fields to include in the response."),
        ] = None,
        sort: Annotated[
            list[str] | None, Field(description="Sort order for the results.")
        ] = None,
        page_size: Annotated[
            int, Field(description="Studies per page (1-200). Defaults to 10.")
        ] = 10,
        page_token: Annotated[
            str | None, Field(description="Token for the next page of results.")
        ] = None,
    ) -> dict[str, Any]:
        async def call() -> dict[str, Any]:
            params = SearchStudiesInput(
                query=query,
                filter=filter,
                fields=fields,
                sort=sort,
                page_size=page_size,
                page_token=page_token,
            )
            paged = await search_studies_logic(client, params)
            return paged.model_dump(mode="json", by_alias=True)

        return await run_tool("clinicaltrials_search_studies", call)

    @mcp.tool(
        name="clinicaltrials_get_study",
        description=(
            "Fetches one or more clinical studies by NCT ID (up to 5). Returns "
            "full study data or, with summary_only, a condensed summary. Studies "
            "that cannot be fetched are listed under 'errors'."
        ),
    )
    async def get_study(
        nct_ids: Annotated[
            str | list[str],
            Field(description="A single NCT ID or a list of up to 5 NCT IDs."),
        ],
        markup_format: Annotated[
            str,
            Field(description="Format for rich text fields: markdown or legacy."),
        ] = "markdown",
        fields: Annotated[
            list[str] | None,
            Field(description="Specific top-level fields to include."),
        ] = None,
        summary_only: Annotated[
            bool, Field(description="Return a condensed summary instead of full data.")
        ] = False,
    ) -> dict[str, Any]:
        async def call() -> dict[str, Any]:
            params = GetStudyInput(
                nct_ids=nct_ids,
                markup_format=markup_format,
                fields=fields,
                summary_only=summary_only,
            )
            result = await get_study_logic(client, params)
            return result.model_dump(mode="json", by_alias=True, exclude_none=True)

        return await run_tool("clinicaltrials_get_study", call)

    @mcp.tool(
        name="clinicaltrials_analyze_trends",
        description=(
            "Performs a statistical analysis on a set of clinical trials, "
            "aggregating counts by status, country, sponsor type, or phase. "
            "Use query and filter to narrow the study set; at most "
            f"{MAX_STUDIES_FOR_ANALYSIS} studies can be analysed at once."
        ),
    )
    async def analyze_trends(
        analysis_type: Annotated[
            str | list[str],
            Field(
                description=(
                    "One analysis kind or a non-empty list of kinds: "
                    + ", ".join(k.value for k in AnalysisType)
                )
            ),
        ],
        query: QueryArg = None,
        filter: FilterArg = None,
    ) -> dict[str, Any]:
        async def call() -> dict[str, Any]:
            params = AnalyzeTrendsInput(
                query=query, filter=filter, analysis_type=analysis_type
            )
            result = await analyze_trends_logic(client, params)
            return result.model_dump(mode="json", by_alias=True)

        return await run_tool("clinicaltrials_analyze_trends", call)

    @mcp.tool(
        name="clinicaltrials_create_link",
        description="Builds the ClinicalTrials.gov web link for an NCT ID.",
    )
    async def create_link(
        nct_id: Annotated[
            str, Field(description="NCT ID of the study, e.g. 'NCT12345678'.")
        ],
    ) -> dict[str, str]:
        async def call() -> dict[str, str]:
            return create_link_logic(CreateLinkInput(nct_id=nct_id))

        return await run_tool("clinicaltrials_create_link", call)

    @mcp.tool(
        name="clinicaltrials_get_study_metadata",
        description="Lists the fields of the ClinicalTrials.gov study data model.",
    )
    async def get_study_metadata(
        include_indexed_only: bool = False,
        include_historic_only: bool = False,
    ) -> dict[str, Any]:
        return await run_tool(
            "clinicaltrials_get_study_metadata",
            lambda: get_study_metadata_logic(
                client, include_indexed_only, include_historic_only
            ),
        )

    @mcp.tool(
        name="clinicaltrials_get_api_stats",
        description=(
            "Returns ClinicalTrials.gov statistics: study document sizes, value "
            "counts for fields, or list field sizes."
        ),
    )
    async def get_api_stats(
        stat_type: Annotated[
            str,
            Field(description="One of studySize, fieldValues, listFieldSizes."),
        ],
        fields: list[str] | None = None,
        types: list[str] | None = None,
    ) -> dict[str, Any]:
        return await run_tool(
            "clinicaltrials_get_api_stats",
            lambda: get_api_stats_logic(client, stat_type, fields, types),
        )

    logger.info("Registered ClinicalTrials.gov tools on %s", settings.mcp_server_name)
    return mcp
