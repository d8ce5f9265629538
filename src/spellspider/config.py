"""Centralized configuration for spellspider using Pydantic Settings."""

import random

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every component receives a Settings instance explicitly; nothing in the
    crawler reads the environment on its own.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # HTTP/Request settings
    http_timeout: float = Field(default=15.0, gt=0, description="Per-attempt HTTP timeout in seconds")

    # Retry budgets per strategy
    direct_max_attempts: int = Field(default=1, ge=1, description="Attempts for the direct (no proxy) fetch")
    direct_backoff_ms: int = Field(default=500, ge=0, description="Backoff base for the direct fetch")
    proxy_max_attempts: int = Field(default=2, ge=1, description="Attempts per relay proxy")
    proxy_backoff_ms: int = Field(default=800, ge=0, description="Backoff base per relay proxy")
    inter_proxy_delay_ms: int = Field(
        default=300, ge=0, description="Pause between consecutive proxy attempts to spare the relays"
    )

    # Response validation
    min_body_length: int = Field(
        default=50, ge=0, description="Bodies must be strictly longer than this to count as content"
    )

    # Sitemap discovery
    sitemap_paths: str = Field(
        default="/sitemap.xml,/sitemap_index.xml,/page-sitemap.xml",
        description="Comma-separated root sitemap locations, tried in order",
    )
    max_sitemap_depth: int = Field(default=5, ge=1, description="Maximum sitemap index nesting followed")
    max_sitemap_documents: int = Field(
        default=250, ge=1, description="Maximum sitemap documents fetched in one discovery run"
    )

    # Analysis
    gemini_api_key: str = Field(default="", description="API key for the hosted analysis model")
    analysis_model: str = Field(default="gemini-1.5-flash", description="Hosted model used for analysis")
    analysis_max_chars: int = Field(default=25000, ge=1, description="Text is truncated to this before analysis")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON log lines")

    # Desktop browser identities; one is picked per HTTP client
    USER_AGENTS: list[str] = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:143.0) Gecko/20100101 Firefox/143.0",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/26.0 Safari/605.1.15",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36 Edg/141.0.0.0",
    ]

    @model_validator(mode="after")
    def _check_sitemap_paths(self) -> "Settings":
        paths = self.get_sitemap_paths()
        if not paths:
            raise ValueError("SITEMAP_PATHS must list at least one sitemap location")
        for path in paths:
            if not path.startswith("/"):
                raise ValueError(f"Sitemap path {path!r} must start with '/'")
        return self

    def get_random_user_agent(self) -> str:
        """Pick a User-Agent for a new HTTP client."""
        return random.choice(self.USER_AGENTS)

    def get_sitemap_paths(self) -> list[str]:
        """Get the ordered list of root sitemap paths (comma-separated)."""
        return [path.strip() for path in self.sitemap_paths.split(",") if path.strip()]
