from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from .version import __version__


PRACTICE_REST_URL = "https://api-fxpractice.oanda.com/v3"
LIVE_REST_URL = "https://api-fxtrade.oanda.com/v3"
PRACTICE_STREAM_URL = "https://stream-fxpractice.oanda.com/v3"
LIVE_STREAM_URL = "https://stream-fxtrade.oanda.com/v3"

DEFAULT_USER_AGENT = f"v20client-python/{__version__}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="V20_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Credentials
    api_token: str | None = None
    account_id: str | None = None

    # Endpoints
    environment: str = "practice"  # practice | live
    hostname: str | None = None  # REST base URL override
    stream_url: str | None = None  # stream base URL override (derived from hostname when unset)

    # HTTP
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 5.0  # total timeout for REST calls, seconds

    # Streaming
    stream_connect_timeout: float = 10.0
    stream_read_timeout: float | None = 90.0  # idle time between chunks; heartbeats arrive every ~5s
    max_line_bytes: int = 1024 * 1024

    # Logging
    log_http: bool = False
    log_level: str = "INFO"

    def is_live(self) -> bool:
        return self.environment.strip().lower() == "live"

    def get_rest_url(self) -> str:
        """REST base URL, honoring the hostname override."""
        if self.hostname:
            return self.hostname.rstrip("/")
        return LIVE_REST_URL if self.is_live() else PRACTICE_REST_URL

    def get_stream_url(self) -> str:
        """Stream base URL; follows the REST host (fxtrade vs fxpractice) unless overridden."""
        if self.stream_url:
            return self.stream_url.rstrip("/")
        return stream_url_for(self.get_rest_url())


def stream_url_for(rest_url: str) -> str:
    """Map a REST base URL to the matching stream host."""
    if "fxtrade" in rest_url:
        return LIVE_STREAM_URL
    return PRACTICE_STREAM_URL


def get_settings() -> Settings:
    return Settings()
