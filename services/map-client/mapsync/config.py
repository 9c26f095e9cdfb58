"""
Map client configuration using Pydantic BaseSettings.
Values are read from MAPSYNC_* environment variables or a .env file.
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Entries API ────────────────────────────────────────────────────────
    api_url: str = "http://localhost:3000"
    http_timeout: float = 10.0

    # ── Geocoding (Nominatim) ──────────────────────────────────────────────
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "geo-entries-map/1.0"
    nominatim_language: str = "es-ES"

    # ── Map ────────────────────────────────────────────────────────────────
    default_center_lat: float = 40.416775     # Madrid, Puerta del Sol
    default_center_lon: float = -3.703790

    class Config:
        env_prefix = "MAPSYNC_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
