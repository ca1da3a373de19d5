"""
HTTP client for the trading backend.
Every record the console shows or edits is read from and written to this backend.
"""
import logging
from typing import Any, Optional

import requests
from django.conf import settings

from .exceptions import BackendAPIError, BackendUnavailable

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    'Content-Type': 'application/json',
    'Cache-Control': 'no-cache, no-store, must-revalidate',
    'Pragma': 'no-cache',
    'Expires': '0',
}


def map_id(item: Any) -> Any:
    """
    Rename the backend's ``_id`` key to ``id``.

    Lists are mapped element-wise. Only the top-level object is rewritten;
    nested objects keep whatever keys the backend sent.
    """
    if not item:
        return item
    if isinstance(item, list):
        return [map_id(entry) for entry in item]
    if isinstance(item, dict) and item.get('_id'):
        rest = {key: value for key, value in item.items() if key != '_id'}
        rest['id'] = item['_id']
        return rest
    return item


class TradingAPIClient:
    """Thin JSON wrapper around a requests session"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.TRADING_API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.TRADING_API_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update(NO_CACHE_HEADERS)

    def request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        """
        Send a request to the backend and decode its JSON answer.

        Args:
            method: HTTP verb (GET, POST, PUT, DELETE)
            path: Path below the base URL, starting with ``/``
            payload: Optional body, sent as JSON

        Returns:
            Decoded JSON, or None when the backend sends an empty body

        Raises:
            BackendAPIError: backend answered with a non-2xx status
            BackendUnavailable: backend could not be reached
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"Fetching: {method} {url}")
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Fetch error for {url}: {str(e)}")
            raise BackendUnavailable(f"Could not reach trading backend: {str(e)}") from e

        if not response.ok:
            error_text = response.text
            logger.error(f"API Error {response.status_code} for {url}: {error_text}")
            raise BackendAPIError(
                response.status_code,
                f"API Error: {response.status_code} {response.reason} - {error_text}",
                body=error_text,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {response.text[:200]}")
            raise BackendAPIError(
                response.status_code,
                f"API Error: invalid JSON from {path}",
                body=response.text,
            ) from e

    def get(self, path: str) -> Any:
        return self.request('GET', path)

    def post(self, path: str, payload: dict) -> Any:
        return self.request('POST', path, payload)

    def put(self, path: str, payload: dict) -> Any:
        return self.request('PUT', path, payload)

    def delete(self, path: str) -> Any:
        return self.request('DELETE', path)
