"""Azure DevOps Pipelines adapter."""

from release_builder.azure.auth import AzureDevOpsCredentials
from release_builder.azure.builds import BuildsClient

__all__ = ["AzureDevOpsCredentials", "BuildsClient"]
