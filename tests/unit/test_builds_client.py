"""Unit tests for the Azure DevOps builds client against a mock transport."""

import base64
import json

import httpx
import pytest

from release_builder.azure import AzureDevOpsCredentials, BuildsClient
from release_builder.errors import PipelineAPIError
from release_builder.models.build import BuildResult, BuildStatus


def _client(handler) -> BuildsClient:
    return BuildsClient(
        endpoint="https://dev.azure.com/org/",
        credentials=AzureDevOpsCredentials(token="pat"),
        api_version="6.0",
        retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


class TestCredentials:
    def test_basic_auth_with_empty_user(self):
        header = AzureDevOpsCredentials(token="pat").as_headers()["Authorization"]
        assert header == "Basic " + base64.b64encode(b":pat").decode()


@pytest.mark.asyncio
class TestQueueBuild:
    async def test_posts_definition_and_parameters(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["api_version"] = request.url.params["api-version"]
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": 77, "status": "notStarted"})

        build = await _client(handler).queue_build(5, {"package_name": "com.a.b"}, "openupm")

        assert build.id == 77
        assert build.status == BuildStatus.NOT_STARTED
        assert seen["method"] == "POST"
        assert seen["path"] == "/org/openupm/_apis/build/builds"
        assert seen["api_version"] == "6.0"
        assert seen["auth"].startswith("Basic ")
        assert seen["body"]["definition"] == {"id": 5}
        assert json.loads(seen["body"]["parameters"]) == {"package_name": "com.a.b"}

    async def test_error_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(PipelineAPIError) as excinfo:
            await _client(handler).queue_build(5, {}, "openupm")

        assert excinfo.value.code == "PIPELINE_QUEUE_BUILD_ERROR"
        assert len(calls) == 1


@pytest.mark.asyncio
class TestGetBuild:
    async def test_parses_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/org/openupm/_apis/build/builds/77"
            return httpx.Response(200, json={"id": 77, "status": "completed", "result": "failed"})

        build = await _client(handler).get_build("openupm", "77")

        assert build.status == BuildStatus.COMPLETED
        assert build.result == BuildResult.FAILED

    async def test_retries_once_on_server_error(self):
        responses = [
            httpx.Response(500, text="boom"),
            httpx.Response(200, json={"id": 77, "status": "inProgress"}),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        build = await _client(handler).get_build("openupm", 77)

        assert build.status == BuildStatus.IN_PROGRESS
        assert responses == []

    async def test_gives_up_after_retry(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(PipelineAPIError) as excinfo:
            await _client(handler).get_build("openupm", 77)

        assert excinfo.value.status == 502
        assert len(calls) == 2

    async def test_client_error_fails_fast(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, text="not found")

        with pytest.raises(PipelineAPIError) as excinfo:
            await _client(handler).get_build("openupm", 77)

        assert not excinfo.value.retryable
        assert len(calls) == 1

    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PipelineAPIError) as excinfo:
            await _client(handler).get_build("openupm", 77)

        assert excinfo.value.status == 0
        assert excinfo.value.retryable
