"""
Release Builder: Azure DevOps authentication helpers.

Personal access tokens are sent as HTTP basic auth with an empty user name.
"""

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class AzureDevOpsCredentials:
    token: str

    def as_headers(self) -> dict[str, str]:
        """Return the auth headers required by the Azure DevOps REST API."""
        encoded = base64.b64encode(f":{self.token}".encode()).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}
