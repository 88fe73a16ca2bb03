"""
Tests for formatting helpers and configuration.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from utils.config import Config
from utils.formatting import format_area, format_currency


class TestFormatCurrency:
    """Display of money amounts."""

    @pytest.mark.parametrize("amount,expected", [
        (1500, "$1,500"),
        (1500.0, "$1,500"),
        (Decimal("1500.5"), "$1,500.50"),
        (0, "$0"),
        (1234567.891, "$1,234,567.89"),
    ])
    def test_usd(self, amount, expected):
        assert format_currency(amount) == expected

    def test_other_currencies(self):
        assert format_currency(250000, "GBP") == "£250,000"
        assert format_currency(99, "GHS") == "GHS 99"


class TestFormatArea:

    def test_whole_and_fractional(self):
        assert format_area(1200) == "1,200 sqft"
        assert format_area(850.5) == "850.5 sqft"


class TestConfig:
    """Environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("PORT", "CORS_ORIGINS", "GOOGLE_MAPS_API_KEY", "DATA_DIR", "UPLOAD_DIR"):
            monkeypatch.delenv(name, raising=False)

        config = Config.load()

        assert config.port == 8000
        assert config.cors_origins == []
        assert config.google_maps_api_key is None
        assert config.max_images == 6
        assert config.session_expiry_hours == 168

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")
        monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "secret-key")
        monkeypatch.setenv("DATA_DIR", "/var/estatehub")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = Config.load()

        assert config.cors_origins == ["https://a.example", "https://b.example"]
        assert config.log_level == "DEBUG"
        assert config.records_path.endswith("records.json")
        assert config.uploads_path.startswith("/var/estatehub")

    def test_to_dict_hides_api_key(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "secret-key")

        data = Config.load().to_dict()

        assert "secret-key" not in data.values()
        assert data["geocoding_enabled"] is True
