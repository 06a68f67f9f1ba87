"""Google Cloud Secret Manager provider."""

from __future__ import annotations

import logging
from typing import Any

from templatizer.secrets.exceptions import SecretNotFoundError, SecretProviderError
from templatizer.secrets.provider import SecretProvider

logger = logging.getLogger(__name__)


class GCPSecretManagerProvider(SecretProvider):
    """Reads the ``latest`` version of secrets from Google Secret Manager.

    Requires the ``gcp`` extra (``google-cloud-secret-manager``). A client
    may be injected; otherwise one is created with application default
    credentials.
    """

    def __init__(self, project_id: str, version: str = "latest", client: Any = None) -> None:
        if not project_id:
            raise SecretProviderError("GCP project id is required for Secret Manager")

        try:
            from google.api_core import exceptions as gcp_exceptions
        except ImportError as e:
            raise SecretProviderError(
                "Google Secret Manager dependencies are not installed. "
                "Install with: pip install templatizer[gcp]"
            ) from e

        self.project_id = project_id
        self.version = version
        self._not_found = gcp_exceptions.NotFound
        self._api_error = gcp_exceptions.GoogleAPIError

        if client is None:
            from google.cloud import secretmanager

            client = secretmanager.SecretManagerServiceClient()
        self.client = client
        logger.info("Initialized Secret Manager provider for project %s", project_id)

    def _version_path(self, key_name: str) -> str:
        return f"projects/{self.project_id}/secrets/{key_name}/versions/{self.version}"

    def get_secret(self, key_name: str) -> str:
        try:
            response = self.client.access_secret_version(request={"name": self._version_path(key_name)})
        except self._not_found as e:
            raise SecretNotFoundError(f"Secret not found: {key_name}") from e
        except self._api_error as e:
            raise SecretProviderError(f"Failed to access secret {key_name}: {e}") from e

        return response.payload.data.decode("utf-8")
