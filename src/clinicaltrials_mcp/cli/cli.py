"""Command-line interface for clinicaltrials-mcp."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from pydantic import ValidationError

from clinicaltrials_mcp.config import get_settings
from clinicaltrials_mcp.data_sources.base_client import DataSourceError
from clinicaltrials_mcp.data_sources.clinical_trials import ClinicalTrialsClient
from clinicaltrials_mcp.errors import McpToolError, to_tool_error
from clinicaltrials_mcp.models.model_clinical_trials import (
    AnalysisType,
    AnalyzeTrendsInput,
    CreateLinkInput,
    OverallStatus,
    PagedStudies,
    SearchStudiesInput,
    TrendAnalysis,
)
from clinicaltrials_mcp.tools.analyze_trends import analyze_trends_logic
from clinicaltrials_mcp.tools.create_link import create_link_logic
from clinicaltrials_mcp.tools.search_studies import search_studies_logic
from clinicaltrials_mcp.utils.formatting import (
    format_analysis_markdown,
    format_search_markdown,
)

load_dotenv()

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    # stdout carries the stdio transport, so logs always go to stderr
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


def _fail(exc: Exception) -> None:
    error = to_tool_error(exc)
    click.echo(json.dumps(error.to_payload(), indent=2), err=True)
    sys.exit(1)


@click.group()
@click.version_option(package_name="clinicaltrials-mcp")
@click.option("--log-level", default=None, help="Override LOG_LEVEL.")
def main(log_level: str | None):
    """clinicaltrials-mcp: ClinicalTrials.gov tools for MCP clients."""
    _configure_logging(log_level or get_settings().log_level)


@main.command()
@click.option(
    "-t",
    "--transport",
    type=click.Choice(["stdio", "http"]),
    default=None,
    help="Transport to serve on (default: MCP_TRANSPORT_TYPE).",
)
@click.option("--host", default=None, help="HTTP bind host.")
@click.option("--port", type=int, default=None, help="HTTP bind port.")
def serve(transport: str | None, host: str | None, port: int | None):
    """Start the MCP server."""
    settings = get_settings()
    transport = transport or settings.mcp_transport_type
    logger.info("Starting transport: %s", transport)

    if transport == "stdio":
        from clinicaltrials_mcp.server import create_server

        create_server(settings=settings).run(transport="stdio")
        return

    import uvicorn

    from clinicaltrials_mcp.api.main import create_app

    uvicorn.run(
        create_app(),
        host=host or settings.mcp_http_host,
        port=port or settings.mcp_http_port,
        log_level=settings.log_level.lower(),
    )


async def _run_analysis(params: AnalyzeTrendsInput) -> TrendAnalysis:
    async with ClinicalTrialsClient.from_settings(get_settings()) as client:
        return await analyze_trends_logic(client, params)


@main.command()
@click.option(
    "-a",
    "--analysis",
    "analyses",
    multiple=True,
    required=True,
    type=click.Choice([a.value for a in AnalysisType]),
    help="Analysis kind; repeat for several.",
)
@click.option("--cond", default=None, help="Condition or disease query.")
@click.option("--term", default=None, help="Free-text query.")
@click.option("--intr", default=None, help="Intervention query.")
@click.option(
    "--status",
    "statuses",
    multiple=True,
    type=click.Choice([s.value for s in OverallStatus]),
    help="Overall status filter; repeat for several.",
)
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def analyze(
    analyses: tuple[str, ...],
    cond: str | None,
    term: str | None,
    intr: str | None,
    statuses: tuple[str, ...],
    output: str | None,
):
    """Run a trend analysis over all studies matching the query."""
    try:
        params = AnalyzeTrendsInput(
            query={"cond": cond, "term": term, "intr": intr},
            filter={"overall_status": list(statuses)} if statuses else None,
            analysis_type=list(analyses),
        )
        result = asyncio.run(_run_analysis(params))
    except (McpToolError, DataSourceError, ValidationError) as e:
        _fail(e)
        return

    click.echo(format_analysis_markdown(result))

    if output:
        Path(output).write_text(
            json.dumps(result.model_dump(mode="json", by_alias=True), indent=2)
        )
        click.echo(f"\nResults saved to: {output}")


async def _run_search(params: SearchStudiesInput) -> PagedStudies:
    async with ClinicalTrialsClient.from_settings(get_settings()) as client:
        return await search_studies_logic(client, params)


@main.command()
@click.option("--cond", default=None, help="Condition or disease query.")
@click.option("--term", default=None, help="Free-text query.")
@click.option("--intr", default=None, help="Intervention query.")
@click.option(
    "--status",
    "statuses",
    multiple=True,
    type=click.Choice([s.value for s in OverallStatus]),
    help="Overall status filter; repeat for several.",
)
@click.option(
    "-n",
    "--page-size",
    default=10,
    show_default=True,
    help="Number of studies to return",
)
@click.option("--page-token", default=None, help="Token from a previous page.")
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def search(
    cond: str | None,
    term: str | None,
    intr: str | None,
    statuses: tuple[str, ...],
    page_size: int,
    page_token: str | None,
    output: str | None,
):
    """List one page of studies matching the query."""
    try:
        params = SearchStudiesInput(
            query={"cond": cond, "term": term, "intr": intr},
            filter={"overall_status": list(statuses)} if statuses else None,
            page_size=page_size,
            page_token=page_token,
        )
        result = asyncio.run(_run_search(params))
    except (McpToolError, DataSourceError, ValidationError) as e:
        _fail(e)
        return

    click.echo(format_search_markdown(result))

    if output:
        Path(output).write_text(
            json.dumps(result.model_dump(mode="json", by_alias=True), indent=2)
        )
        click.echo(f"\nResults saved to: {output}")


@main.command()
@click.argument("nct_id")
def link(nct_id: str):
    """Print the ClinicalTrials.gov link for NCT_ID."""
    try:
        click.echo(create_link_logic(CreateLinkInput(nct_id=nct_id))["url"])
    except ValidationError as e:
        _fail(e)


if __name__ == "__main__":
    main()
