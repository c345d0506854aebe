"""
Release Builder: failure reason from an npm publish log.

This matches free text emitted by npm and the registry, so it will drift if
either changes its error output. Rules are checked in order and the first
match wins; a conflict that also mentions a 502 is still a conflict.
"""

from release_builder.models.release import ReleaseReason

_RULES: list[tuple[tuple[str, ...], ReleaseReason]] = [
    (("EPUBLISHCONFLICT",), ReleaseReason.PUBLISH_CONFLICT),
    (("ENOENT", "error path package.json"), ReleaseReason.NON_PACKAGE),
    (("error code E502",), ReleaseReason.BAD_GATEWAY),
    (("error code E500",), ReleaseReason.SERVER_ERROR),
]


def reason_from_publish_log(text: str) -> ReleaseReason:
    """Return the first matching failure reason, or ``ReleaseReason.NONE``."""
    for markers, reason in _RULES:
        if all(marker in text for marker in markers):
            return reason
    return ReleaseReason.NONE
