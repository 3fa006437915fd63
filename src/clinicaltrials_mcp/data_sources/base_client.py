"""
Base client for upstream REST APIs.

Provides: lazy aiohttp session management, retry with exponential backoff,
structured logging, and backup of raw JSON responses to disk.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import aiohttp
from pydantic import BaseModel

from clinicaltrials_mcp.constants import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT
from clinicaltrials_mcp.utils.backup import backup_file_name, write_backup

logger = logging.getLogger("clinicaltrials_mcp.data_sources")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class RetryConfig(BaseModel):
    """Retry behaviour for failed requests."""

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    backoff_factor: float = 2.0
    retryable_status_codes: set[int] = {429, 500, 502, 503, 504}


class ClientConfig(BaseModel):
    """Top-level config aggregating retry, timeout and backup location."""

    retry: RetryConfig = RetryConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT
    backup_dir: Path | None = None


# ---------------------------------------------------------------------------
# Request context (for structured logging)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Metadata attached to every outgoing request for logging."""

    source: str  # e.g. "clinical_trials"
    method: str  # e.g. "list_studies"
    params: dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DataSourceError(Exception):
    """Base exception for data source failures."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for upstream API clients.

    Subclasses implement `_source_name` and their own typed methods that
    call `_rest_get()`.
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'clinical_trials'."""
        ...

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(
                timeout=timeout, headers={"Accept": "application/json"}
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # -- Core request with retry + backup ------------------------------------

    def _backoff_delay(self, attempt: int) -> float:
        retry = self.config.retry
        return min(retry.base_delay * (retry.backoff_factor**attempt), retry.max_delay)

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        backup_prefix: str | None = None,
        context: RequestContext | None = None,
    ) -> Any:
        """
        Make a GET request with retry and return the decoded JSON body.

        Parameters
        ----------
        url : str
            Full URL.
        params : dict, optional
            Query string parameters.
        backup_prefix : str, optional
            File name prefix for the raw response backup. If None, or no
            backup directory is configured, nothing is written.
        context : RequestContext, optional
            Logging context.

        Raises
        ------
        DataSourceError
            On a non-retryable HTTP error, or once retries are exhausted.
        """
        ctx = context or RequestContext(source=self._source_name, method="unknown")
        retry = self.config.retry

        last_error: DataSourceError | None = None
        start = time.monotonic()

        for attempt in range(retry.max_retries + 1):
            try:
                session = await self._get_session()

                logger.info(
                    "Request [%s.%s] attempt=%d url=%s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    url,
                )

                resp = await session.get(url, params=params)

                # --- Handle HTTP errors ---
                if resp.status in retry.retryable_status_codes:
                    body = await resp.text()
                    logger.warning(
                        "Retryable %d from %s.%s: %s",
                        resp.status,
                        ctx.source,
                        ctx.method,
                        body[:200],
                    )
                    last_error = DataSourceError(
                        ctx.source,
                        f"API request failed with status {resp.status}",
                        status_code=resp.status,
                    )
                    if attempt < retry.max_retries:
                        await asyncio.sleep(self._retry_after(resp, attempt))
                    continue

                if resp.status >= 400:
                    body = await resp.text()
                    logger.error(
                        "Error response [%s.%s] %d: %s",
                        ctx.source,
                        ctx.method,
                        resp.status,
                        body[:500],
                    )
                    message = (
                        f"Study not found. {body[:500]}"
                        if resp.status == 404
                        else f"API request failed with status {resp.status}: {body[:500]}"
                    )
                    raise DataSourceError(ctx.source, message, status_code=resp.status)

                # --- Success ---
                data = await resp.json()
                elapsed = time.monotonic() - start

                logger.info(
                    "Success [%s.%s] elapsed=%.2fs",
                    ctx.source,
                    ctx.method,
                    elapsed,
                )

                if backup_prefix:
                    write_backup(
                        data, backup_file_name(backup_prefix), self.config.backup_dir
                    )

                return data

            except asyncio.TimeoutError:
                elapsed = time.monotonic() - start
                last_error = DataSourceError(
                    ctx.source, f"Timeout after {elapsed:.1f}s"
                )
                logger.warning(
                    "Timeout [%s.%s] attempt=%d elapsed=%.1fs",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    elapsed,
                )

            except aiohttp.ClientError as e:
                last_error = DataSourceError(ctx.source, f"Connection error: {e}")
                logger.warning(
                    "Connection error [%s.%s] attempt=%d: %s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    e,
                )

            # Exponential backoff before next attempt
            if attempt < retry.max_retries:
                await asyncio.sleep(self._backoff_delay(attempt))

        # --- All retries exhausted ---
        logger.error(
            "All retries exhausted [%s.%s] after %.1fs: %s",
            ctx.source,
            ctx.method,
            time.monotonic() - start,
            last_error,
        )
        raise last_error

    def _retry_after(self, resp: Any, attempt: int) -> float:
        """Seconds to wait before retrying a retryable status."""
        if resp.status == 429:
            retry_after = resp.headers.get("Retry-After")
            if retry_after:
                try:
                    return min(float(retry_after), self.config.retry.max_delay)
                except ValueError:
                    pass
        return self._backoff_delay(attempt)

    # -- Convenience methods for subclasses ----------------------------------

    async def _rest_get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        backup_prefix: str | None = None,
        context: RequestContext | None = None,
    ) -> Any:
        """Convenience wrapper for REST GET requests."""
        return await self._request(
            url,
            params=params,
            backup_prefix=backup_prefix,
            context=context,
        )
