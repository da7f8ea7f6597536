"""Configuration for the apflow client."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "http://localhost:8000"


class ClientConfig(BaseSettings):
    """Client configuration, read from APFLOW_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="APFLOW_")

    api_url: str = Field(default=DEFAULT_API_URL)
    auth_token: str | None = Field(default=None)
    timeout: float | None = Field(default=None)  # None = httpx default
    # Passed through verbatim, e.g. LLM provider key headers
    extra_headers: dict[str, str] = Field(default_factory=dict)
    log_level: str = Field(default="INFO")
