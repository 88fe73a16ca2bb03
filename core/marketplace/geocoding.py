"""
Geocoding client.

Resolves addresses to coordinates and back through the Google Geocoding
HTTP API. Used by the Location stage's map picker; the picked point is
written into the draft's latitude/longitude.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from core.errors import GeocodingError


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
USER_AGENT = "EstatehubGeocoder/1.0"
REQUEST_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class GeocodeResult:
    """One resolved location."""

    latitude: float
    longitude: float
    formatted_address: str

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "formatted_address": self.formatted_address,
        }


# =============================================================================
# Client
# =============================================================================

class GeocodingClient:
    """
    Thin client over the Geocoding API.

    A ZERO_RESULTS response is not an error: lookups return None. Any other
    non-OK status, a network failure or a malformed body raises
    GeocodingError.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        base_url: str = GEOCODE_URL,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ValueError("A Google Maps API key is required")
        self._api_key = api_key
        self._timeout = timeout
        self._base_url = base_url
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    def _request(self, params: dict) -> Optional[GeocodeResult]:
        try:
            response = self._session.get(
                self._base_url,
                params={**params, "key": self._api_key},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Geocoding request failed: %s", e)
            raise GeocodingError(f"Geocoding request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise GeocodingError("Geocoding response was not valid JSON") from e

        status = payload.get("status")
        if status == "ZERO_RESULTS":
            return None
        if status != "OK":
            message = payload.get("error_message") or status or "unknown status"
            logger.warning("Geocoding API returned %s", status)
            raise GeocodingError(f"Geocoding failed: {message}")

        return self._parse_first(payload.get("results") or [])

    @staticmethod
    def _parse_first(results: list) -> Optional[GeocodeResult]:
        if not results:
            return None
        first = results[0]
        try:
            location = first["geometry"]["location"]
            return GeocodeResult(
                latitude=float(location["lat"]),
                longitude=float(location["lng"]),
                formatted_address=first.get("formatted_address", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError("Geocoding response was malformed") from e

    def geocode(self, address: str) -> Optional[GeocodeResult]:
        """
        Resolve an address to coordinates.

        Args:
            address: Free-text address

        Returns:
            First match, or None if the address is unknown.

        Raises:
            GeocodingError: On network errors or API failures.
        """
        if not address or not address.strip():
            raise GeocodingError("Address is required")
        return self._request({"address": address.strip()})

    def reverse_geocode(self, latitude: float, longitude: float) -> Optional[GeocodeResult]:
        """Resolve coordinates to the nearest formatted address."""
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise GeocodingError("Coordinates out of range")
        result = self._request({"latlng": f"{latitude},{longitude}"})
        if result is None:
            return None
        # Keep the picked point rather than the snapped address location
        return GeocodeResult(latitude, longitude, result.formatted_address)

    def close(self) -> None:
        """Close the session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
