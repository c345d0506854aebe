"""Release Builder data models: typed contracts for the whole build flow."""

from release_builder.models.release import (
    IMMUTABLE_RELEASE_FIELDS,
    Package,
    Project,
    Release,
    ReleaseReason,
    ReleaseState,
)
from release_builder.models.build import (
    Build,
    BuildReport,
    BuildResult,
    BuildStatus,
    StepTiming,
)

__all__ = [
    "IMMUTABLE_RELEASE_FIELDS",
    "Package",
    "Project",
    "Release",
    "ReleaseReason",
    "ReleaseState",
    "Build",
    "BuildReport",
    "BuildResult",
    "BuildStatus",
    "StepTiming",
]
