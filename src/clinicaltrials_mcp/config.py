"""Application configuration."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

from clinicaltrials_mcp.constants import (
    CLINICAL_TRIALS_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MCP server
    mcp_server_name: str = "clinicaltrials-mcp-server"
    mcp_transport_type: Literal["stdio", "http"] = "stdio"
    mcp_http_host: str = "127.0.0.1"
    mcp_http_port: int = 3010
    mcp_http_path: str = "/mcp"

    # HTTP transport auth
    mcp_auth_mode: Literal["none", "jwt"] = "none"
    mcp_auth_jwks_uri: str = ""
    mcp_auth_public_key: str = ""
    mcp_auth_issuer: str = ""
    mcp_auth_audience: str = ""

    # ClinicalTrials.gov
    clinicaltrials_base_url: str = CLINICAL_TRIALS_BASE_URL
    clinicaltrials_timeout_seconds: float = DEFAULT_TIMEOUT
    clinicaltrials_max_retries: int = DEFAULT_MAX_RETRIES
    clinicaltrials_data_path: Path | None = None

    # App Settings
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
