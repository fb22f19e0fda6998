"""Base service with common methods for all Vault services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vaultctl.core.client import VaultClient


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, client: "VaultClient") -> None:
        """Initialize service with Vault client.

        Args:
            client: Authenticated VaultClient instance
        """
        self.client = client

    def _get(self, path: str, **kwargs: Any) -> Any:
        """Execute GET request and return JSON data."""
        resp = self.client.get(path, **kwargs)
        return resp.json()

    def _post(self, path: str, **kwargs: Any) -> Any:
        """Execute POST request and return response.

        Returns:
            Parsed JSON response or response text
        """
        resp = self.client.post(path, **kwargs)
        if resp.headers.get("content-type", "").startswith("application/json"):
            return resp.json()
        return resp.text

    def _extract_results(
        self,
        data: Any,
        result_key: str = "results",
    ) -> list[dict[str, Any]]:
        """Extract a result list from a Vault response.

        Args:
            data: Raw API response data
            result_key: Dot-notation key to extract results

        Returns:
            List of result items
        """
        if isinstance(data, list):
            return data
        results = data
        for key in result_key.split("."):
            if isinstance(results, dict):
                results = results.get(key, [])
            else:
                return []
        return results if isinstance(results, list) else []

    def _build_path(self, *parts: str) -> str:
        """Build API path from parts."""
        return "/" + "/".join(p.strip("/") for p in parts if p)
