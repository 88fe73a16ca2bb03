"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    cors_origins: list[str] = field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "").split(",")
            if origin.strip()
        ]
    )

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "./data"))
    upload_dir: Optional[str] = field(default_factory=lambda: os.getenv("UPLOAD_DIR"))

    # Listings
    max_image_bytes: int = field(
        default_factory=lambda: int(os.getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))
    )
    max_images: int = field(default_factory=lambda: int(os.getenv("MAX_IMAGES", "6")))

    # Sessions
    session_expiry_hours: int = field(
        default_factory=lambda: int(os.getenv("SESSION_EXPIRY_HOURS", "168"))
    )

    # Geocoding
    google_maps_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("GOOGLE_MAPS_API_KEY") or None
    )
    geocoding_timeout: float = field(
        default_factory=lambda: float(os.getenv("GEOCODING_TIMEOUT", "10"))
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def records_path(self) -> str:
        return str(Path(self.data_dir) / "records.json")

    @property
    def sessions_path(self) -> str:
        return str(Path(self.data_dir) / "sessions.json")

    @property
    def uploads_path(self) -> str:
        return self.upload_dir or str(Path(self.data_dir) / "uploads")

    def to_dict(self) -> dict:
        """Convert config to dictionary. The API key is never included."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "cors_origins": self.cors_origins,
            "data_dir": self.data_dir,
            "upload_dir": self.uploads_path,
            "max_image_bytes": self.max_image_bytes,
            "max_images": self.max_images,
            "session_expiry_hours": self.session_expiry_hours,
            "geocoding_enabled": self.google_maps_api_key is not None,
            "geocoding_timeout": self.geocoding_timeout,
        }
