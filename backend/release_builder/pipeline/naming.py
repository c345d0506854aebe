"""
Release Builder: build name and queue parameters.

Azure DevOps build numbers are limited to 255 characters and may not contain
'"', '/', ':', '<', '>', '\\', '|', '?', '@' or '*'. The pipeline appends its
own suffix at runtime, so 55 characters are kept free for it.
"""

from __future__ import annotations

import re
from typing import Any

from release_builder.models.release import Package, Project, Release

BUILD_NAME_MAX_LENGTH = 255
BUILD_NAME_RESERVED = 55

_ILLEGAL_CHARS = re.compile(r"[/:<>\\|?@*]")


def get_build_name(release_id: int, package_name: str, package_version: str) -> str:
    """Return the deterministic build name ``rel#<id>-<name>#<version>``."""
    build_name = f"{package_name}#{package_version}"
    # Scoped package, e.g. @scope/pkg
    if build_name.startswith("@"):
        build_name = build_name[1:]
    build_name = f"rel#{release_id}-{build_name}"
    build_name = _ILLEGAL_CHARS.sub("_", build_name)
    return build_name[: BUILD_NAME_MAX_LENGTH - BUILD_NAME_RESERVED]


def build_parameters(release: Release, package: Package, project: Project) -> dict[str, Any]:
    """Pipeline variables for a release build."""
    return {
        "repo_url": project.git_url,
        "repo_branch": release.tag,
        "package_name": package.name,
        "package_ver": release.version,
        "build_name": get_build_name(release.id, package.name, release.version),
    }
