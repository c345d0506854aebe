"""Unit tests for the structured error catalog."""

from release_builder.errors import (
    BuildFailedError,
    BuildTimeoutError,
    ConfigurationError,
    InvalidUpdateError,
    LogFetchError,
    PipelineAPIError,
    RecordNotFoundError,
    ReleaseBuildError,
)


class TestErrorCatalog:
    def test_base_error(self):
        e = ReleaseBuildError(code="TEST", message="test msg", suggestion="try this")
        d = e.to_dict()
        assert d["error_code"] == "TEST"
        assert d["message"] == "test msg"
        assert d["suggestion"] == "try this"
        assert d["retryable"] is False

    def test_record_not_found(self):
        e = RecordNotFoundError("Release", 7)
        assert e.code == "RECORD_NOT_FOUND"
        assert "id=7" in e.message
        assert not e.retryable

    def test_invalid_update(self):
        e = InvalidUpdateError(7, ["version", "tag"])
        assert e.code == "INVALID_UPDATE"
        assert e.to_dict()["detail"] == ["tag", "version"]

    def test_configuration_error(self):
        e = ConfigurationError(["AZURE_DEVOPS_TOKEN"])
        assert e.code == "CONFIGURATION_MISSING"
        assert "AZURE_DEVOPS_TOKEN" in e.message

    def test_build_timeout(self):
        e = BuildTimeoutError(7, "101", 20)
        assert e.code == "BUILD_TIMEOUT"
        assert e.retryable
        assert "[id=7] [build_id=101]" in e.message

    def test_build_failed(self):
        e = BuildFailedError(7, "101", "completed", "failed", "badGateway")
        assert e.code == "BUILD_FAILED"
        assert e.retryable
        assert "badGateway" in e.message

    def test_pipeline_api_error(self):
        e = PipelineAPIError("get build", 401, "Unauthorized")
        assert e.code == "PIPELINE_GET_BUILD_ERROR"
        assert "401" in e.message
        assert not e.retryable

    def test_pipeline_api_error_retryable_on_5xx_and_transport(self):
        assert PipelineAPIError("get build", 503).retryable
        assert PipelineAPIError("queue build", 0, "connection reset").retryable

    def test_log_fetch_error(self):
        e = LogFetchError("https://logs.example.com/a.log", 404)
        assert e.code == "LOG_FETCH_FAILED"
        assert e.retryable
        assert "404" in e.message

    def test_all_errors_are_exceptions(self):
        for cls in (
            RecordNotFoundError, InvalidUpdateError, ConfigurationError,
            BuildTimeoutError, BuildFailedError, PipelineAPIError, LogFetchError,
        ):
            assert issubclass(cls, ReleaseBuildError)
            assert issubclass(cls, Exception)
