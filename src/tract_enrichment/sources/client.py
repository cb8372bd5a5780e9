"""
HTTP client for fetching remote GeoJSON layers.
"""

from typing import Dict, Optional
import logging

import requests

logger = logging.getLogger(__name__)


class SourceFetchError(Exception):
    """Exception raised when a remote layer cannot be fetched or parsed."""
    def __init__(self, message: str, response: Optional[requests.Response] = None):
        """Initialize the error.

        Args:
            message: Error message
            response: Optional response object that caused the error
        """
        self.message = message
        self.response = response
        super().__init__(self.message)


class GeoSourceClient:
    """Client for downloading GeoJSON feature collections."""

    def __init__(self, timeout: float = 60, session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            timeout: Request timeout in seconds
            session: Optional session to reuse (a new one is created otherwise)
        """
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch_geojson(self, url: str, params: Optional[Dict] = None) -> Dict:
        """
        Fetch a GeoJSON FeatureCollection.

        Args:
            url: Location of the GeoJSON document
            params: Optional query parameters

        Returns:
            The decoded FeatureCollection

        Raises:
            SourceFetchError: If the request fails or the body is not a FeatureCollection
        """
        logger.debug(f"Requesting GeoJSON from {url}")

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            logger.debug(f"Response status code: {response.status_code}")
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Request for {url} failed: {str(e)}")
            raise SourceFetchError(
                f"Failed to fetch {url}: {str(e)}",
                response=getattr(e, 'response', None)
            ) from e
        except ValueError as e:
            logger.error(f"Response from {url} is not valid JSON: {str(e)}")
            raise SourceFetchError(f"Invalid JSON from {url}: {str(e)}", response=response) from e

        if not isinstance(data, dict) or data.get('type') != 'FeatureCollection':
            raise SourceFetchError(f"Response from {url} is not a GeoJSON FeatureCollection",
                                   response=response)
        if not isinstance(data.get('features'), list):
            raise SourceFetchError(f"FeatureCollection from {url} has no features list",
                                   response=response)

        logger.debug(f"Fetched {len(data['features'])} features from {url}")
        return data
