"""FastAPI application serving the MCP streamable-HTTP transport."""

from fastapi import FastAPI
from fastmcp import FastMCP

from clinicaltrials_mcp import __version__
from clinicaltrials_mcp.config import get_settings
from clinicaltrials_mcp.server import create_server


def create_app(server: FastMCP | None = None) -> FastAPI:
    """Health endpoint plus the MCP app mounted at the root.

    The MCP endpoint lives at ``settings.mcp_http_path`` and the FastAPI app
    shares the MCP app's lifespan, which runs its session manager.
    """
    settings = get_settings()
    server = server or create_server(settings=settings)
    mcp_app = server.http_app(path=settings.mcp_http_path)

    app = FastAPI(
        title="ClinicalTrials.gov MCP Server",
        description="MCP tools for the ClinicalTrials.gov API",
        version=__version__,
        lifespan=mcp_app.lifespan,
    )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    app.mount("/", mcp_app)
    return app
