"""
Farms API Client - Pure I/O Operations

Reads farm documents from an HTTP endpoint that serves the farm collection
as JSON. Returns raw documents for the transformation layer.
"""

import time
from typing import Any, Dict, List, Optional

import requests

from ..coreutils.errors import PopulationFetchError
from ..coreutils.request import new_session
import logging

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class FarmsAPIClient:
    """Read-only farm population source over HTTP"""

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: int = REQUEST_TIMEOUT,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or new_session()

    def get_farms(self) -> List[Dict[str, Any]]:
        """
        Fetch every farm document

        Returns:
            List[Dict]: Raw farm documents

        Raises:
            PopulationFetchError: On HTTP errors or a malformed payload
        """
        logger.info(f"Fetching farms from {self.url}")
        start_time = time.time()

        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching farms: {e}")
            raise PopulationFetchError(f"Could not fetch farms from {self.url}: {e}") from e

        # Accept both a bare list and {"farms": [...]}
        if isinstance(data, dict):
            data = data.get("farms")
        if not isinstance(data, list):
            raise PopulationFetchError(
                f"Unexpected farms payload from {self.url}: expected a list"
            )

        elapsed = time.time() - start_time
        logger.info(f"Fetched {len(data)} farms from {self.url}: {elapsed:.2f} seconds")
        return [farm for farm in data if isinstance(farm, dict)]

    def fetch_population(self) -> List[Dict[str, Any]]:
        return self.get_farms()
