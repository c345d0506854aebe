"""
Release Builder: release, package and project records.

The builder is the only writer of a release after it is created; package
and project rows are read-only inputs for the build request.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field


class ReleaseState(str, enum.Enum):
    PENDING = "pending"
    BUILDING = "building"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ReleaseReason(str, enum.Enum):
    NONE = ""
    TIMEOUT = "timeout"
    PUBLISH_CONFLICT = "publishConflict"
    NON_PACKAGE = "nonPackage"
    BAD_GATEWAY = "badGateway"
    SERVER_ERROR = "serverError"

    @property
    def is_retryable(self) -> bool:
        """Transient registry faults; a fresh build is worth another try."""
        return self in (ReleaseReason.BAD_GATEWAY, ReleaseReason.SERVER_ERROR)


IMMUTABLE_RELEASE_FIELDS = frozenset({"id", "package_id", "version", "tag"})


class Project(BaseModel):
    id: int
    git_url: str = Field(min_length=1)
    name: str = ""


class Package(BaseModel):
    id: int
    project_id: int
    name: str = Field(min_length=1, max_length=214)


class Release(BaseModel):
    """One attempt to publish a package version."""

    id: int
    package_id: int
    version: str = Field(min_length=1)
    tag: str = Field(min_length=1)
    state: ReleaseState = ReleaseState.PENDING
    build_id: str = ""
    reason: ReleaseReason = ReleaseReason.NONE
    publish_log: str = ""

    @property
    def is_resumable(self) -> bool:
        """A timed-out build is polled again instead of requeued."""
        return self.state == ReleaseState.FAILED and self.reason == ReleaseReason.TIMEOUT
