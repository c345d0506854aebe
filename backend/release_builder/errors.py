"""
Release Builder: structured error catalog.

Every error has a code, human message, and suggested fix. Errors flagged
``retryable`` tell the caller to re-invoke the builder later; the release
record has already been moved to a state the next run can resume from.
"""

from __future__ import annotations

from typing import Any


class ReleaseBuildError(Exception):
    """Base error with structured code + suggestion."""

    retryable = False

    def __init__(self, code: str, message: str, suggestion: str = "", detail: Any = None):
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "error_code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.suggestion:
            d["suggestion"] = self.suggestion
        if self.detail:
            d["detail"] = self.detail
        return d


class RecordNotFoundError(ReleaseBuildError):
    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(
            code="RECORD_NOT_FOUND",
            message=f"{kind} not found: id={record_id}",
            suggestion="Check the identifier and that the record store is seeded.",
        )


class InvalidUpdateError(ReleaseBuildError):
    def __init__(self, release_id: int, fields: list[str]):
        super().__init__(
            code="INVALID_UPDATE",
            message=f"Release {release_id} cannot update fields: {', '.join(sorted(fields))}",
            suggestion="Only state, build_id, reason and publish_log are writable.",
            detail=sorted(fields),
        )


class ConfigurationError(ReleaseBuildError):
    def __init__(self, missing: list[str]):
        super().__init__(
            code="CONFIGURATION_MISSING",
            message=f"Missing configuration: {', '.join(missing)}",
            suggestion="Copy .env.example to .env and fill in the Azure DevOps settings.",
            detail=missing,
        )


class BuildTimeoutError(ReleaseBuildError):
    retryable = True

    def __init__(self, release_id: int, build_id: str, retries: int):
        super().__init__(
            code="BUILD_TIMEOUT",
            message=(
                f"[id={release_id}] [build_id={build_id}] build pipelines timeout "
                f"after {retries} checks."
            ),
            suggestion="Re-run later; the same build will be polled again.",
        )


class BuildFailedError(ReleaseBuildError):
    retryable = True

    def __init__(self, release_id: int, build_id: str, status: str, result: str, reason: str):
        super().__init__(
            code="BUILD_FAILED",
            message=(
                f"[id={release_id}] [build_id={build_id}] build pipelines failed, "
                f"status {status}, result {result}, reason {reason}"
            ),
            suggestion="Upstream registry fault; re-run later to queue a fresh build.",
        )


class PipelineAPIError(ReleaseBuildError):
    def __init__(self, operation: str, status: int, body: str = ""):
        self.status = status
        super().__init__(
            code=f"PIPELINE_{operation.upper().replace(' ', '_')}_ERROR",
            message=(
                f"Azure DevOps {operation} returned HTTP {status}"
                if status
                else f"Azure DevOps {operation} request failed"
            ),
            suggestion="Check the Azure DevOps endpoint, project and access token.",
            detail=body[:500] if body else None,
        )

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status == 0 or self.status >= 500


class LogFetchError(ReleaseBuildError):
    retryable = True

    def __init__(self, url: str, status: int = 0):
        super().__init__(
            code="LOG_FETCH_FAILED",
            message=f"Could not fetch publish log {url}" + (f" (HTTP {status})" if status else ""),
            suggestion="Check PUBLISH_RESULT_URL_TEMPLATE and the storage bucket.",
        )
