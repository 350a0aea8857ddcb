import os
import logging
from pydantic import BaseModel, Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

_logger = logging.getLogger(__name__)

# Values shipped in sample .env files; treated as "not configured".
_PLACEHOLDER_MARKERS = ("your-project", "your_project", "your-anon-key", "changeme", "<")


class RemoteConfig(BaseModel):
    """Connection details for the authoritative remote backend."""
    url: str
    api_key: str
    schema_name: str = "public"
    timeout_seconds: float = 10.0

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"

    @property
    def project_hint(self) -> str:
        """Host part of the URL, safe to log."""
        return self.url.split("//", 1)[-1].split("/", 1)[0]


class Config(BaseModel):
    app_name: str = "Appraisal Core"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Local cache (always present)
    local_cache_url: str = os.getenv("LOCAL_CACHE_URL", "sqlite:///./appraisal-cache.db")

    # Remote backend
    remote_url: Optional[str] = Field(default=os.getenv("REMOTE_URL"))
    remote_api_key: Optional[str] = Field(default=os.getenv("REMOTE_API_KEY"))
    remote_schema: str = os.getenv("REMOTE_SCHEMA", "public")
    remote_timeout_seconds: float = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "10"))

    # Account provisioning
    username_max_attempts: int = int(os.getenv("USERNAME_MAX_ATTEMPTS", "10"))
    account_lookup_retries: int = int(os.getenv("ACCOUNT_LOOKUP_RETRIES", "5"))
    account_lookup_delay_seconds: float = float(os.getenv("ACCOUNT_LOOKUP_DELAY_SECONDS", "0.5"))


settings = Config()


def _looks_like_placeholder(value: str) -> bool:
    lowered = value.lower()
    return any(marker in lowered for marker in _PLACEHOLDER_MARKERS)


def resolve_remote_config(config: Config = settings) -> Optional[RemoteConfig]:
    """
    Resolve the remote backend configuration once at startup.

    Returns None when the remote is not configured; the storage layer then
    runs in local-only mode. This is an operating mode, not an error.
    """
    url = (config.remote_url or "").strip()
    key = (config.remote_api_key or "").strip()
    if not url or not key:
        _logger.info("Remote backend not configured; running in local-only mode")
        return None
    if _looks_like_placeholder(url) or _looks_like_placeholder(key):
        _logger.warning("Remote backend settings look like placeholders; ignoring them")
        return None
    if not url.startswith(("http://", "https://")):
        _logger.warning(f"Remote backend URL is not http(s): {url!r}; ignoring it")
        return None
    return RemoteConfig(
        url=url,
        api_key=key,
        schema_name=config.remote_schema,
        timeout_seconds=config.remote_timeout_seconds,
    )
