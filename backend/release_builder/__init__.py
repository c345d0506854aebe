"""Release Builder: drives package releases through the Azure DevOps build pipeline."""

__version__ = "1.0.0"
