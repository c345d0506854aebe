"""Shared test configuration and fixtures for the Release Builder test suite."""

import sys
from pathlib import Path

import pytest

# Add backend to Python path so imports work
backend_dir = str(Path(__file__).parent.parent / "backend")
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from release_builder.core.config import BuildCheckConfig, BuildSettings  # noqa: E402
from release_builder.models.build import Build, BuildStatus  # noqa: E402
from release_builder.models.release import Package, Project, Release  # noqa: E402
from release_builder.pipeline.orchestrator import BuildServices  # noqa: E402
from release_builder.storage.records import InMemoryRecordStore  # noqa: E402

QUEUED_BUILD_ID = 101

PROJECT = Project(id=1, git_url="https://github.com/example/pkg.git", name="pkg")
PACKAGE = Package(id=3, project_id=1, name="com.example.pkg")
RELEASE_7 = {"id": 7, "package_id": 3, "version": "1.0.0", "tag": "v1.0.0"}


class FakePipeline:
    """Pipeline service that replays canned build states; the last one repeats."""

    def __init__(self, builds: list[Build]):
        self._builds = list(builds)
        self.queue_calls: list[tuple] = []
        self.get_calls: list[tuple] = []

    async def queue_build(self, definition_id, parameters, project):
        self.queue_calls.append((definition_id, parameters, project))
        return Build(id=QUEUED_BUILD_ID, status=BuildStatus.NOT_STARTED)

    async def get_build(self, project, build_id):
        self.get_calls.append((project, str(build_id)))
        if len(self._builds) > 1:
            return self._builds.pop(0)
        return self._builds[0]

    @property
    def call_count(self) -> int:
        return len(self.queue_calls) + len(self.get_calls)


class FakeLogFetcher:
    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.urls: list[str] = []

    async def fetch_text(self, url: str) -> str:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.text


class RecordingSleep:
    def __init__(self):
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


def build(status: str, result: str | None = None, build_id: int = QUEUED_BUILD_ID) -> Build:
    return Build(id=build_id, status=status, result=result)


@pytest.fixture
def build_settings():
    return BuildSettings(
        definition_id=5,
        project="openupm",
        check=BuildCheckConfig(retries=3, retry_interval_step=0.5, duration=2.0),
        publish_result_url_template="https://logs.example.com/{build_name}.log",
    )


@pytest.fixture
def make_store():
    def _make(**release_fields) -> InMemoryRecordStore:
        release = Release(**{**RELEASE_7, **release_fields})
        return InMemoryRecordStore(releases=[release], packages=[PACKAGE], projects=[PROJECT])
    return _make


@pytest.fixture
def make_services(make_store, build_settings):
    def _make(*builds: Build, store=None, settings=None, log_text="", log_error=None) -> BuildServices:
        return BuildServices(
            store=store if store is not None else make_store(),
            pipeline=FakePipeline(list(builds) or [build("inProgress")]),
            log_fetcher=FakeLogFetcher(log_text, log_error),
            settings=settings or build_settings,
        )
    return _make


@pytest.fixture
def make_build():
    return build


@pytest.fixture
def sleep():
    return RecordingSleep()
