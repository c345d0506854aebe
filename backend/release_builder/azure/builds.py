"""
Release Builder: Azure DevOps Build REST API client.

Key endpoints used:
  POST {endpoint}/{project}/_apis/build/builds             queue a build
  GET  {endpoint}/{project}/_apis/build/builds/{buildId}   build status
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from release_builder.azure.auth import AzureDevOpsCredentials
from release_builder.errors import PipelineAPIError
from release_builder.models.build import Build
from release_builder.utils.logging import logger

MAX_RETRIES = 1
RETRY_DELAY = 2.0


class BuildsClient:
    """Thin async wrapper around the Azure DevOps Build REST API."""

    def __init__(
        self,
        endpoint: str,
        credentials: AzureDevOpsCredentials,
        api_version: str = "6.0",
        timeout: float = 30.0,
        retry_delay: float = RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.credentials = credentials
        self.api_version = api_version
        self.timeout = timeout
        self.retry_delay = retry_delay
        self._transport = transport

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        h = self.credentials.as_headers()
        h["Accept"] = "application/json"
        if extra:
            h.update(extra)
        return h

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _builds_url(self, project: str, build_id: str | int | None = None) -> str:
        url = f"{self.endpoint}/{project}/_apis/build/builds"
        if build_id is not None:
            url = f"{url}/{build_id}"
        return url

    async def queue_build(
        self, definition_id: int, parameters: dict[str, Any], project: str
    ) -> Build:
        """Queue a new run of the pipeline definition. Never retried."""
        payload = {
            "definition": {"id": definition_id},
            "parameters": json.dumps(parameters),
        }
        try:
            async with self._client() as client:
                resp = await client.post(
                    self._builds_url(project),
                    params={"api-version": self.api_version},
                    headers=self._headers({"Content-Type": "application/json"}),
                    json=payload,
                )
        except httpx.TransportError as exc:
            raise PipelineAPIError("queue build", 0, str(exc)) from exc
        if not resp.is_success:
            logger.error("  Azure DevOps queue build returned %d: %s", resp.status_code, resp.text)
            raise PipelineAPIError("queue build", resp.status_code, resp.text)
        build = Build.from_api(resp.json())
        logger.info("  Queued definition %s -> build %s", definition_id, build.id)
        return build

    async def get_build(self, project: str, build_id: str | int) -> Build:
        """Fetch the current status of a build. Retries once on transient failure."""
        last_err: PipelineAPIError | None = None
        for attempt in range(1, MAX_RETRIES + 2):
            try:
                async with self._client() as client:
                    resp = await client.get(
                        self._builds_url(project, build_id),
                        params={"api-version": self.api_version},
                        headers=self._headers(),
                    )
                if resp.is_success:
                    return Build.from_api(resp.json())
                logger.error(
                    "  Azure DevOps get build %s returned %d (attempt %d/%d): %s",
                    build_id, resp.status_code, attempt, MAX_RETRIES + 1, resp.text,
                )
                last_err = PipelineAPIError("get build", resp.status_code, resp.text)
                if not last_err.retryable:
                    raise last_err
            except httpx.TransportError as exc:
                last_err = PipelineAPIError("get build", 0, str(exc))
            if attempt <= MAX_RETRIES:
                logger.warning(
                    "  Retrying get build %s in %.0fs (attempt %d failed)",
                    build_id, self.retry_delay, attempt,
                )
                await asyncio.sleep(self.retry_delay)
        raise last_err  # type: ignore[misc]
