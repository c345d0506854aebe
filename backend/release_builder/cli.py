"""
Release Builder: command line entry point.

  release-builder <id>

Exit codes: 0 when the release reached a final state (succeeded or a
terminal failure), 75 when the failure is retryable and the command should
be scheduled again, 1 for anything else.
"""

from __future__ import annotations

import asyncio

import typer

from release_builder.errors import ReleaseBuildError
from release_builder.pipeline.orchestrator import build_release
from release_builder.utils.logging import logger

EXIT_RETRY = 75

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Build a release through the Azure DevOps pipeline.",
)


@app.command()
def build(id: int = typer.Argument(..., help="Release id")) -> None:
    """Run one pass of the release build state machine."""
    try:
        report = asyncio.run(build_release(id))
    except ReleaseBuildError as exc:
        if exc.retryable:
            logger.warning("[id=%s] %s: %s", id, exc.code, exc.message)
            raise typer.Exit(code=EXIT_RETRY)
        logger.error("[id=%s] %s: %s", id, exc.code, exc.message)
        if exc.suggestion:
            logger.error("  %s", exc.suggestion)
        raise typer.Exit(code=1)
    logger.info(
        "[id=%s] finished: state=%s reason=%s build_id=%s",
        report.release_id, report.state.value, report.reason.value or "-", report.build_id or "-",
    )


def main() -> None:
    app(prog_name="release-builder")


if __name__ == "__main__":
    main()
