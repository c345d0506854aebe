"""
Release Builder: release build state machine.

  pending ──────────────┐
  failed (other reason) ├─> building ─> queue build ─> poll ─┬─> succeeded
  failed (timeout) ─────┘   (keeps build_id on timeout)      ├─> failed (terminal, logged)
  building (crashed run) ───────────────────────────> poll   ├─> failed + BuildFailedError
                                                             └─> failed/timeout + BuildTimeoutError

Every transition is written to the record store before the builder acts on
it or raises, so a crashed or timed-out run can always be picked up again by
invoking the builder with the same release id.

A build that ends cancelling, canceled or partiallySucceeded is recorded as
`{state: failed, reason: ""}`, not a state-only write. The reason is
cleared on purpose: a cancelled build resumed after a timeout would
otherwise keep `reason=timeout` and be polled again on every run.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from release_builder.core.config import BuildSettings
from release_builder.errors import BuildFailedError, BuildTimeoutError, LogFetchError
from release_builder.models.build import Build, BuildReport, StepTiming
from release_builder.models.release import Package, Release, ReleaseReason, ReleaseState
from release_builder.pipeline.classify import reason_from_publish_log
from release_builder.pipeline.naming import build_parameters, get_build_name
from release_builder.storage.logs import HttpLogFetcher, LogFetcher
from release_builder.storage.records import RecordStore, get_record_store
from release_builder.utils.logging import release_logger, step_timer

Sleep = Callable[[float], Awaitable[None]]


class PipelineService(Protocol):
    async def queue_build(
        self, definition_id: int, parameters: dict[str, Any], project: str
    ) -> Build: ...

    async def get_build(self, project: str, build_id: str | int) -> Build: ...


@dataclass
class BuildServices:
    """Collaborators of the builder, injected so tests can fake them."""
    store: RecordStore
    pipeline: PipelineService
    log_fetcher: LogFetcher
    settings: BuildSettings


def default_services() -> BuildServices:
    """Wire the Azure DevOps client and stores from the environment."""
    from release_builder.azure import AzureDevOpsCredentials, BuildsClient
    from release_builder.core.config import settings, validate_config

    validate_config(settings)
    pipeline = BuildsClient(
        endpoint=settings.azure_devops.endpoint,
        credentials=AzureDevOpsCredentials(token=settings.azure_devops.token),
        api_version=settings.azure_devops.api_version,
    )
    return BuildServices(
        store=get_record_store(),
        pipeline=pipeline,
        log_fetcher=HttpLogFetcher(),
        settings=settings.build,
    )


class ReleaseBuilder:
    """
    Drives one release through the build pipeline.

    ``build()`` runs a single pass: one transition, at most one queued build,
    one polling loop and one terminal write. Retryable outcomes are raised;
    the caller is expected to invoke the builder again later.
    """

    def __init__(self, release: Release, services: BuildServices, sleep: Sleep = asyncio.sleep):
        self.release = release
        self.services = services
        self.settings = services.settings
        self._sleep = sleep
        self._package: Package | None = None
        self.queued = False
        self.attempts = 0
        self.last_build: Build | None = None
        self.timings: list[StepTiming] = []
        self.log = release_logger(lambda: self.release)

    def _record_step(self, name: str, start: float, status: str = "ok", detail: str = ""):
        ms = int((time.perf_counter() - start) * 1000)
        self.timings.append(StepTiming(step=name, duration_ms=ms, status=status, detail=detail))

    async def _update(self, **fields: Any) -> None:
        self.release = await self.services.store.update_release(self.release.id, fields)

    async def _fetch_package(self) -> Package:
        if self._package is None:
            self._package = await self.services.store.fetch_package(self.release.package_id)
        return self._package

    async def build(self) -> BuildReport:
        if self.release.state == ReleaseState.SUCCEEDED:
            self.log.info("skip for state %s.", self.release.state.value)
            return self._report()

        await self._step_prepare()
        if not self.release.build_id:
            await self._step_queue()

        t = time.perf_counter()
        build = await self.check_build()
        if build is None:
            self._record_step("check", t, "failed", f"timeout after {self.attempts} checks")
            await self._update(state=ReleaseState.FAILED, reason=ReleaseReason.TIMEOUT)
            raise BuildTimeoutError(self.release.id, self.release.build_id, self.attempts)
        self._record_step("check", t, detail=f"{build.status.value}/{build.result.value}")

        if build.succeeded:
            await self._update(state=ReleaseState.SUCCEEDED)
            self.log.info("build pipelines succeeded.")
        else:
            await self._step_fail(build)
        return self._report()

    async def _step_prepare(self) -> None:
        if self.release.is_resumable:
            # Previous build timed out, poll the same build again.
            await self._update(state=ReleaseState.BUILDING)
        elif self.release.state in (ReleaseState.PENDING, ReleaseState.FAILED):
            await self._update(state=ReleaseState.BUILDING, build_id="")

    async def _step_queue(self) -> None:
        t = time.perf_counter()
        self.log.info("create build pipelines")
        package = await self._fetch_package()
        project = await self.services.store.fetch_project(package.project_id)
        parameters = build_parameters(self.release, package, project)
        build = await self.services.pipeline.queue_build(
            self.settings.definition_id, parameters, self.settings.project
        )
        await self._update(build_id=str(build.id))
        self.queued = True
        self._record_step("queue", t, detail=parameters["build_name"])
        # Give the pipeline time to register the run before polling it.
        await self._sleep(self.settings.check.duration)

    async def check_build(self) -> Build | None:
        """
        Poll the build until it is completed or cancelling.

        Returns ``None`` when the retry budget runs out. The wait after
        attempt ``i`` is ``retry_interval_step * (i + 1)``.
        """
        check = self.settings.check
        self.log.info("check build pipelines")
        for i in range(check.retries):
            build = await self.services.pipeline.get_build(self.settings.project, self.release.build_id)
            self.attempts = i + 1
            self.last_build = build
            self.log.info(
                "status %s, result %s, retries %d",
                build.status.value, build.result.value, i,
            )
            if build.status.is_terminal:
                return build
            if i < check.retries - 1:
                await self._sleep(check.interval(i))
        return None

    async def _step_fail(self, build: Build) -> None:
        reason = ReleaseReason.NONE
        if build.failed:
            package = await self._fetch_package()
            url = self.settings.publish_result_url(
                self.release.id,
                self.release.build_id,
                get_build_name(self.release.id, package.name, self.release.version),
            )
            try:
                publish_log = await self.services.log_fetcher.fetch_text(url)
            except LogFetchError:
                await self._update(state=ReleaseState.FAILED, reason=ReleaseReason.NONE)
                raise
            reason = reason_from_publish_log(publish_log)
            await self._update(state=ReleaseState.FAILED, reason=reason, publish_log=publish_log)
        else:
            # Cancelled or partially succeeded: no log to classify.
            await self._update(state=ReleaseState.FAILED, reason=ReleaseReason.NONE)

        if reason.is_retryable:
            raise BuildFailedError(
                self.release.id, self.release.build_id,
                build.status.value, build.result.value, reason.value,
            )
        self.log.error(
            "build pipelines failed, status %s, result %s, reason %s",
            build.status.value, build.result.value, reason.value,
        )

    def _report(self) -> BuildReport:
        return BuildReport(
            release_id=self.release.id,
            state=self.release.state,
            reason=self.release.reason,
            build_id=self.release.build_id,
            queued=self.queued,
            attempts=self.attempts,
            build_status=self.last_build.status if self.last_build else None,
            build_result=self.last_build.result if self.last_build else None,
            timings=self.timings,
        )


async def build_release(
    release_id: int,
    *,
    services: BuildServices | None = None,
    sleep: Sleep = asyncio.sleep,
) -> BuildReport:
    """Build the release with the given id. Entry point for the CLI and API."""
    services = services or default_services()
    with step_timer(f"build release {release_id}"):
        release = await services.store.fetch_release(release_id)
        builder = ReleaseBuilder(release, services, sleep=sleep)
        return await builder.build()
