"""
Release Builder: Azure DevOps build view and the per-run report.

The REST API reports status and result by name, while the node/python SDKs
use numeric flags. Both are accepted; anything else maps to an explicit
unknown variant so a new upstream value never crashes the poll loop.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from release_builder.models.release import ReleaseReason, ReleaseState


class BuildStatus(str, enum.Enum):
    NONE = "none"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELLING = "cancelling"
    POSTPONED = "postponed"
    NOT_STARTED = "notStarted"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "BuildStatus":
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return _STATUS_CODES.get(value, cls.UNKNOWN)
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (BuildStatus.COMPLETED, BuildStatus.CANCELLING)


class BuildResult(str, enum.Enum):
    NONE = "none"
    SUCCEEDED = "succeeded"
    PARTIALLY_SUCCEEDED = "partiallySucceeded"
    FAILED = "failed"
    CANCELED = "canceled"
    UNDEFINED = "undefined"

    @classmethod
    def parse(cls, value: Any) -> "BuildResult":
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return _RESULT_CODES.get(value, cls.UNDEFINED)
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return cls.UNDEFINED


_STATUS_CODES = {
    0: BuildStatus.NONE,
    1: BuildStatus.IN_PROGRESS,
    2: BuildStatus.COMPLETED,
    4: BuildStatus.CANCELLING,
    8: BuildStatus.POSTPONED,
    32: BuildStatus.NOT_STARTED,
}

_RESULT_CODES = {
    0: BuildResult.NONE,
    2: BuildResult.SUCCEEDED,
    4: BuildResult.PARTIALLY_SUCCEEDED,
    8: BuildResult.FAILED,
    32: BuildResult.CANCELED,
}


class Build(BaseModel):
    """Transient view of a pipeline run, fetched fresh on every poll."""

    id: int
    status: BuildStatus = BuildStatus.UNKNOWN
    result: BuildResult = BuildResult.UNDEFINED
    build_number: str | None = None
    url: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v: Any) -> BuildStatus:
        return BuildStatus.parse(v)

    @field_validator("result", mode="before")
    @classmethod
    def _parse_result(cls, v: Any) -> BuildResult:
        return BuildResult.parse(v)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Build":
        links = payload.get("_links") or {}
        return cls(
            id=payload["id"],
            status=payload.get("status"),
            result=payload.get("result"),
            build_number=payload.get("buildNumber"),
            url=(links.get("web") or {}).get("href") or payload.get("url"),
        )

    @property
    def succeeded(self) -> bool:
        return self.status == BuildStatus.COMPLETED and self.result == BuildResult.SUCCEEDED

    @property
    def failed(self) -> bool:
        """The pipeline itself ran to a failed result (not a cancellation)."""
        return self.status == BuildStatus.COMPLETED and self.result == BuildResult.FAILED


class StepTiming(BaseModel):
    step: str
    duration_ms: int
    status: str = "ok"  # ok | failed
    detail: str = ""


class BuildReport(BaseModel):
    """Outcome of one builder invocation."""

    release_id: int
    state: ReleaseState
    reason: ReleaseReason = ReleaseReason.NONE
    build_id: str = ""
    queued: bool = False
    attempts: int = 0
    build_status: BuildStatus | None = None
    build_result: BuildResult | None = None
    timings: list[StepTiming] = Field(default_factory=list)
