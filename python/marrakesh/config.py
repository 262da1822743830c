import os

from pydantic import BaseModel, SecretStr

DEFAULT_ANALYTICS_ENDPOINT = "https://www.marrakesh.dev/api/ingest"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


class AnalyticsConfig(BaseModel):
    """Configuration for the analytics ingestion client."""

    api_key: SecretStr | None = None
    """Key sent in the `x-api-key` header. Analytics is disabled without one."""
    endpoint: str = DEFAULT_ANALYTICS_ENDPOINT
    """Ingestion endpoint receiving batched records."""
    disabled: bool = False
    """Explicit opt-out. Takes precedence over the api key."""
    debug: bool = False
    """Log telemetry failures at warning level instead of debug."""
    batch_size: int = 50
    """Maximum number of records per ingestion request."""
    max_retries: int = 3
    """Retries for 429, 5xx and network errors."""
    timeout: float = 10.0
    """Per request timeout in seconds."""

    @property
    def enabled(self) -> bool:
        return not self.disabled and self.api_key is not None and bool(self.api_key.get_secret_value())

    @classmethod
    def from_env(cls) -> "AnalyticsConfig":
        """Build the configuration from MARRAKESH_* environment variables."""
        api_key = os.getenv("MARRAKESH_API_KEY")
        return cls(
            api_key=SecretStr(api_key) if api_key else None,
            endpoint=os.getenv("MARRAKESH_ANALYTICS_ENDPOINT") or DEFAULT_ANALYTICS_ENDPOINT,
            disabled=_env_flag("MARRAKESH_ANALYTICS_DISABLED"),
            debug=_env_flag("MARRAKESH_DEBUG"),
        )
