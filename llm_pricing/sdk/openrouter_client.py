"""
OpenRouter catalog client.

Fetches the public model listing and decodes it into catalog models.
"""

import logging
from typing import Any, Iterable, List, Optional

import requests

from ..core.catalog import Model, parse_model
from ..core.errors import CatalogFetchError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://openrouter.ai/api/v1/models"
DEFAULT_TIMEOUT = 30.0
# Aggregator pseudo-model priced at -1, not a real offering
DEFAULT_EXCLUDED_IDS = frozenset({"openrouter/auto"})


class OpenRouterClient:
    """Read-only client for the OpenRouter model catalog.

    Any transport or decoding failure is raised as CatalogFetchError; no
    partial catalog is ever returned.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        exclude: Optional[Iterable[str]] = None
    ):
        """Initialize the catalog client.

        Args:
            api_url: Catalog endpoint returning ``{"data": [...]}``
            timeout: Request timeout in seconds
            exclude: Model ids dropped before decoding (defaults to
                DEFAULT_EXCLUDED_IDS)

        Raises:
            ValueError: If api_url is empty or timeout is not positive
        """
        if not api_url or not api_url.strip():
            raise ValueError("api_url is required and cannot be empty")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.api_url = api_url
        self.timeout = timeout
        self.exclude = frozenset(DEFAULT_EXCLUDED_IDS if exclude is None else exclude)

    def fetch_models(self) -> List[Model]:
        """Download and decode the catalog.

        Returns:
            Models in catalog order, without excluded ids

        Raises:
            CatalogFetchError: If the request fails or the payload is not a catalog
            CatalogFormatError: If a record lacks required fields
        """
        logger.debug("Fetching model catalog from %s", self.api_url)
        try:
            response = requests.get(self.api_url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise CatalogFetchError(str(e)) from e
        except ValueError as e:
            raise CatalogFetchError(f"Invalid JSON from {self.api_url}: {e}") from e

        records = self._records(payload)
        models = [parse_model(record) for record in records if not self._is_excluded(record)]
        logger.debug("Received %d records, kept %d models", len(records), len(models))
        return models

    def _is_excluded(self, record: Any) -> bool:
        # Malformed ids fall through to parse_model, which rejects them
        if not isinstance(record, dict):
            return False
        model_id = record.get("id")
        return isinstance(model_id, str) and model_id in self.exclude

    def _records(self, payload: Any) -> List[Any]:
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise CatalogFetchError(f"Unexpected catalog format from {self.api_url}: missing 'data' list")
        return payload["data"]
