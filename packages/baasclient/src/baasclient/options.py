"""
Client configuration models.

`ClientOptions` is what callers pass in; `ClientConfig` is the immutable
configuration a `Client` derives from its URL and options and keeps for its
whole lifetime.
"""

import logging
import os

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from baasclient.exceptions import InvalidArgumentError
from baasclient.urls import ServicePaths

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"
DEFAULT_TIMEOUT = 30.0

ENV_URL = "BAAS_URL"
ENV_KEY = "BAAS_KEY"
ENV_SCHEMA = "BAAS_SCHEMA"


class ClientOptions(BaseModel):
    """
    Optional settings for `Client`.

    ## Attributes:
    - `headers`: Extra request headers, merged over the defaults (caller wins).
    - `schema_name`: Database schema for the data API. Defaults to `"public"`.
    - `timeout`: Request timeout in seconds for the shared transport.
    - `proxy`: Proxy URL (`"host:port"` or `"http://host:port"`).
    - `http_client`: Pre-built `httpx.AsyncClient`. The client will not close it.
    - `persist_session`: Save sessions to encrypted storage on every update.
    - `storage_dir`: Directory for the encrypted session file.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    headers: dict[str, str] = Field(default_factory=dict)
    schema_name: str = DEFAULT_SCHEMA
    timeout: float = DEFAULT_TIMEOUT
    proxy: str | None = None
    http_client: httpx.AsyncClient | None = None
    persist_session: bool = False
    storage_dir: str | None = None

    @field_validator("schema_name")
    @classmethod
    def default_empty_schema(cls, v: str) -> str:
        """An empty schema falls back to the default one."""
        return v or DEFAULT_SCHEMA

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v


class ClientConfig(BaseModel):
    """Immutable base URL and schema, plus the service URLs derived from them."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    schema_name: str = DEFAULT_SCHEMA

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def rest_url(self) -> str:
        return self.base_url + ServicePaths.REST

    @property
    def storage_url(self) -> str:
        return self.base_url + ServicePaths.STORAGE

    @property
    def auth_url(self) -> str:
        return self.base_url + ServicePaths.AUTH

    @property
    def functions_url(self) -> str:
        return self.base_url + ServicePaths.FUNCTIONS


def load_env_settings() -> tuple[str, str, ClientOptions]:
    """
    Read the base URL, API key and schema from the environment.

    ## Environment:
    - `BAAS_URL` (required)
    - `BAAS_KEY` (required)
    - `BAAS_SCHEMA` (optional, defaults to `"public"`)

    ## Raises:
    - `InvalidArgumentError`: If the URL or key is missing.
    """
    url = os.getenv(ENV_URL)
    key = os.getenv(ENV_KEY)

    if not url or not key:
        raise InvalidArgumentError(f"{ENV_URL} and {ENV_KEY} must be set in environment variables")

    options = ClientOptions(schema_name=os.getenv(ENV_SCHEMA, DEFAULT_SCHEMA))
    logger.debug(f"Loaded client settings from environment for URL: {url}")
    return url, key, options
