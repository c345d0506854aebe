"""
Release Builder: FastAPI service.

Endpoints:
  POST /v1/releases/{release_id}/build  Run the build state machine for a release
  GET  /health                          Health check

A scheduler calls the build endpoint and re-invokes it later whenever the
response is 503 (retryable failure).
"""

import time
import uuid

from fastapi import Depends, FastAPI, HTTPException

from release_builder import __version__
from release_builder.errors import ConfigurationError, RecordNotFoundError, ReleaseBuildError
from release_builder.models.build import BuildReport
from release_builder.pipeline.orchestrator import BuildServices, build_release, default_services
from release_builder.utils.logging import logger


app = FastAPI(
    title="Release Builder API",
    description="Build package releases through the Azure DevOps pipeline.",
    version=__version__,
)


@app.on_event("startup")
async def _startup_banner():
    from release_builder.core.config import settings
    logger.info("Release Builder API v%s", __version__)
    logger.info("  POST /v1/releases/{id}/build  -> run release build")
    logger.info("  GET  /health                  -> health check")
    logger.info("  Azure DevOps : %s/%s", settings.azure_devops.endpoint, settings.azure_devops.project)
    logger.info("  Definition   : %s", settings.azure_devops.definition_id)
    logger.info(
        "  Check        : %d retries, step %.1fs, initial wait %.1fs",
        settings.check.retries, settings.check.retry_interval_step, settings.check.duration,
    )


def get_services() -> BuildServices:
    try:
        return default_services()
    except ConfigurationError as exc:
        logger.error("Release Builder is not configured: %s", exc.message)
        raise HTTPException(status_code=500, detail=exc.to_dict())


def _status_for(exc: ReleaseBuildError) -> int:
    if exc.retryable:
        return 503
    if isinstance(exc, RecordNotFoundError):
        return 404
    return 422


@app.get("/health")
async def health():
    return {"status": "ok", "service": "release-builder", "version": __version__}


@app.post("/v1/releases/{release_id}/build", response_model=BuildReport)
async def build_release_endpoint(release_id: int, services: BuildServices = Depends(get_services)):
    """
    Run one pass of the release build state machine.

    200 means the release reached a final state (succeeded, or failed for a
    reason that a rebuild will not fix). 503 means the release was left in a
    resumable state and the call should be repeated later.
    """
    request_id = uuid.uuid4().hex[:12]
    start = time.perf_counter()
    logger.info("[%s] POST /v1/releases/%d/build", request_id, release_id)

    try:
        report = await build_release(release_id, services=services)
    except ReleaseBuildError as exc:
        status = _status_for(exc)
        logger.warning("[%s] Release Builder error: %s (HTTP %d)", request_id, exc.code, status)
        raise HTTPException(status_code=status, detail=exc.to_dict())
    except Exception as exc:
        logger.exception("[%s] Release build failed", request_id)
        raise HTTPException(status_code=500, detail=str(exc))

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "[%s] Complete: state=%s in %.0f ms", request_id, report.state.value, elapsed_ms
    )
    return report
