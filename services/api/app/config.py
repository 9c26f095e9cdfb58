"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── TiDB (MySQL-protocol compatible) ───────────────────────────────────
    tidb_host: str = "tidb"
    tidb_port: int = 4000
    tidb_user: str = "root"
    tidb_password: str = ""
    tidb_database: str = "geo_entries"
    # Full SQLAlchemy URL; takes precedence over the tidb_* parts when set
    database_url: Optional[str] = None

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.tidb_user}:{self.tidb_password}"
            f"@{self.tidb_host}:{self.tidb_port}/{self.tidb_database}"
        )

    # ── Redis (geocoding cache) ────────────────────────────────────────────
    redis_host: str = "redis"
    redis_port: int = 6379
    geocode_cache_ttl: int = 7 * 86400   # a week; addresses rarely move

    # ── MinIO (S3-compatible) ──────────────────────────────────────────────
    minio_endpoint: str = "minio:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "media"
    minio_use_ssl: bool = False
    # Public base under which uploaded objects are reachable by browsers
    media_public_url: str = "http://localhost:9000"

    # ── Geocoding (Nominatim) ──────────────────────────────────────────────
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "geo-entries-api/1.0"
    geocode_timeout: float = 5.0

    # ── Proximity ──────────────────────────────────────────────────────────
    proximity_radius: float = 0.2        # decimal degrees, planar

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "entries-api"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
