"""
Release Builder: configuration.
Loads .env automatically, then reads all settings from environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

from dotenv import load_dotenv

from release_builder.errors import ConfigurationError

_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)


@dataclass(frozen=True)
class AzureDevOpsConfig:
    """Azure DevOps Pipelines connection."""
    endpoint: str
    project: str
    token: str
    definition_id: int
    api_version: str = "6.0"


@dataclass(frozen=True)
class BuildCheckConfig:
    """Polling budget for a queued build."""
    retries: int = 20
    retry_interval_step: float = 5.0
    duration: float = 30.0

    def __post_init__(self):
        if self.retries < 1:
            raise ValueError(f"retries must be >= 1, got {self.retries}")
        if self.retry_interval_step < 0 or self.duration < 0:
            raise ValueError("check intervals must not be negative")

    def interval(self, attempt: int) -> float:
        """Linear backoff: wait after the given zero-based attempt."""
        return self.retry_interval_step * (attempt + 1)


@dataclass(frozen=True)
class BuildSettings:
    """Everything the release builder needs besides its collaborators."""
    definition_id: int
    project: str
    check: BuildCheckConfig = field(default_factory=BuildCheckConfig)
    publish_result_url_template: str = ""

    def publish_result_url(self, release_id: int, build_id: str, build_name: str) -> str:
        return self.publish_result_url_template.format(
            release_id=release_id,
            build_id=build_id,
            build_name=quote(build_name, safe=""),
        )


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""
    azure_devops: AzureDevOpsConfig
    check: BuildCheckConfig
    publish_result_url_template: str
    store_path: str

    @property
    def build(self) -> BuildSettings:
        return BuildSettings(
            definition_id=self.azure_devops.definition_id,
            project=self.azure_devops.project,
            check=self.check,
            publish_result_url_template=self.publish_result_url_template,
        )


def _load_config() -> AppConfig:
    return AppConfig(
        azure_devops=AzureDevOpsConfig(
            endpoint=os.getenv("AZURE_DEVOPS_ENDPOINT", "https://dev.azure.com/openupm"),
            project=os.getenv("AZURE_DEVOPS_PROJECT", "openupm"),
            token=os.getenv("AZURE_DEVOPS_TOKEN", ""),
            definition_id=int(os.getenv("AZURE_DEVOPS_DEFINITION_ID", "1")),
            api_version=os.getenv("AZURE_DEVOPS_API_VERSION", "6.0"),
        ),
        check=BuildCheckConfig(
            retries=int(os.getenv("BUILD_CHECK_RETRIES", "20")),
            retry_interval_step=float(os.getenv("BUILD_CHECK_RETRY_INTERVAL_STEP", "5.0")),
            duration=float(os.getenv("BUILD_CHECK_DURATION", "30.0")),
        ),
        publish_result_url_template=os.getenv("PUBLISH_RESULT_URL_TEMPLATE", ""),
        store_path=os.getenv("RELEASE_STORE_PATH", ""),
    )


def validate_config(cfg: AppConfig) -> None:
    """Fail fast if Azure DevOps credentials or the log location are missing."""
    missing: list[str] = []
    if not cfg.azure_devops.endpoint:
        missing.append("AZURE_DEVOPS_ENDPOINT")
    if not cfg.azure_devops.project:
        missing.append("AZURE_DEVOPS_PROJECT")
    if not cfg.azure_devops.token:
        missing.append("AZURE_DEVOPS_TOKEN")
    if not cfg.publish_result_url_template:
        missing.append("PUBLISH_RESULT_URL_TEMPLATE")
    if missing:
        raise ConfigurationError(missing)


settings = _load_config()
