"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientConfig(BaseSettings):
    """Client configuration, optionally overridden by APLOS_* environment variables"""

    model_config = SettingsConfigDict(env_prefix="APLOS_", extra="ignore")

    # API
    base_url: str = "https://www.aplos.com/hermes/api/v1"
    user_agent: str = "aplos-python"

    # HTTP Client
    http_timeout_seconds: float = 10.0  # Per connect/read/write phase
    request_deadline_seconds: float | None = None  # Whole call, including token refresh

    # Auth
    token_expiry_leeway_seconds: float = 0.0  # Treat tokens as expired this early

    # Logging, applied by setup_logging
    service_name: str = "aplos-client"
    log_level: str = "INFO"


settings = ClientConfig()
