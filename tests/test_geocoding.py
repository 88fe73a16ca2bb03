"""
Tests for the Geocoding Client

The HTTP session is mocked; no request leaves the test process.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from core.errors import GeocodingError
from core.marketplace.geocoding import GEOCODE_URL, GeocodeResult, GeocodingClient


# =============================================================================
# Fixtures
# =============================================================================


def make_session(payload=None, status_code=200, error=None):
    """Mock requests.Session whose get() returns one canned response."""
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    if error is not None:
        session.get.side_effect = error
        return session

    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Server Error")
    session.get.return_value = response
    return session


OK_PAYLOAD = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "123 Main St, New York, NY 10001, USA",
            "geometry": {"location": {"lat": 40.7128, "lng": -74.006}},
        }
    ],
}


# =============================================================================
# Geocode
# =============================================================================


class TestGeocode:
    """Forward lookups."""

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            GeocodingClient("")

    def test_ok(self):
        session = make_session(OK_PAYLOAD)
        client = GeocodingClient("test-key", session=session)

        result = client.geocode("  123 Main St  ")

        assert result == GeocodeResult(40.7128, -74.006, "123 Main St, New York, NY 10001, USA")
        args, kwargs = session.get.call_args
        assert args == (GEOCODE_URL,)
        assert kwargs["params"] == {"address": "123 Main St", "key": "test-key"}
        assert kwargs["timeout"] == 10

    def test_sets_user_agent(self):
        session = make_session(OK_PAYLOAD)
        GeocodingClient("test-key", session=session)

        assert session.headers["User-Agent"].startswith("Estatehub")

    def test_zero_results_is_none(self):
        client = GeocodingClient("test-key", session=make_session({"status": "ZERO_RESULTS", "results": []}))

        assert client.geocode("Nowhere") is None

    def test_api_error_status(self):
        payload = {"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."}
        client = GeocodingClient("test-key", session=make_session(payload))

        with pytest.raises(GeocodingError, match="The provided API key is invalid"):
            client.geocode("123 Main St")

    def test_network_error(self):
        client = GeocodingClient(
            "test-key",
            session=make_session(error=requests.ConnectionError("connection refused")),
        )

        with pytest.raises(GeocodingError, match="request failed"):
            client.geocode("123 Main St")

    def test_http_error(self):
        client = GeocodingClient("test-key", session=make_session({}, status_code=500))

        with pytest.raises(GeocodingError):
            client.geocode("123 Main St")

    def test_invalid_json(self):
        session = make_session()
        session.get.return_value.json.side_effect = ValueError("Expecting value")
        client = GeocodingClient("test-key", session=session)

        with pytest.raises(GeocodingError, match="not valid JSON"):
            client.geocode("123 Main St")

    def test_malformed_result(self):
        payload = {"status": "OK", "results": [{"formatted_address": "x"}]}
        client = GeocodingClient("test-key", session=make_session(payload))

        with pytest.raises(GeocodingError, match="malformed"):
            client.geocode("123 Main St")

    def test_blank_address(self):
        session = make_session(OK_PAYLOAD)
        client = GeocodingClient("test-key", session=session)

        with pytest.raises(GeocodingError, match="Address is required"):
            client.geocode("   ")
        session.get.assert_not_called()


# =============================================================================
# Reverse Geocode
# =============================================================================


class TestReverseGeocode:
    """Coordinate lookups from the map picker."""

    def test_keeps_picked_point(self):
        session = make_session(OK_PAYLOAD)
        client = GeocodingClient("test-key", session=session)

        result = client.reverse_geocode(40.71, -74.0)

        assert result.latitude == 40.71
        assert result.longitude == -74.0
        assert result.formatted_address.startswith("123 Main St")
        assert session.get.call_args[1]["params"]["latlng"] == "40.71,-74.0"

    def test_out_of_range(self):
        client = GeocodingClient("test-key", session=make_session(OK_PAYLOAD))

        with pytest.raises(GeocodingError, match="out of range"):
            client.reverse_geocode(91, 0)

    def test_context_manager_closes_session(self):
        session = make_session(OK_PAYLOAD)
        with GeocodingClient("test-key", session=session):
            pass

        session.close.assert_called_once()
