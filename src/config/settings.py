"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# This class uses pydantic-settings to read configuration from TWO sources
# (in priority order):
#
#   1. **Environment variables** -- e.g., CACHE_TTL_SEARCH=600
#      (highest priority -- always wins)
#   2. **.env file** -- key=value lines in the project root .env file
#
# The mapping is automatic: field name `cache_ttl_search` maps to env var
# `CACHE_TTL_SEARCH`.  Defaults apply when neither source sets a field.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """OpenStream application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # === Upstream catalogs ===
    archive_base_url: str = "https://archive.org"
    musicbrainz_host: str = "musicbrainz.org"
    musicbrainz_app_name: str = "OpenStream"
    musicbrainz_app_version: str = "1.0.0"
    musicbrainz_contact: str = ""
    http_timeout: float = 30.0
    # URL of this backend as seen by the browser client; reported by /health.
    backend_url: str = ""

    # === Search ===
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=50, ge=1)
    # Ranking window: leading raw candidates fetched per query and fed to the
    # O(n^2) duplicate grouping.  Every page is sliced from this window.
    max_candidates: int = Field(default=150, ge=1)
    secondary_source_enabled: bool = False

    # === Cache (seconds) ===
    cache_max_size: int = Field(default=1000, ge=1)
    cache_ttl_search: float = 3600.0
    cache_ttl_album: float = 86400.0
    cache_ttl_artist: float = 43200.0
    cache_sweep_interval: float = 3600.0

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def namespace_ttls(self) -> dict[str, float]:
        """Default cache TTL per namespace."""
        return {
            "search": self.cache_ttl_search,
            "album": self.cache_ttl_album,
            "artist": self.cache_ttl_artist,
        }

    def user_agent(self) -> str:
        """User-Agent string sent to every upstream (MusicBrainz requires one)."""
        contact = f" ({self.musicbrainz_contact})" if self.musicbrainz_contact else ""
        return f"{self.musicbrainz_app_name}/{self.musicbrainz_app_version}{contact}"
