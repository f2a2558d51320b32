from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ai_gateway.gateway.types import ProviderConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Credentials (absent = provider registered but unusable)
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("google_api_key", "google_ai_api_key"),
    )

    # Default models
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-3-5-sonnet-20241022"
    google_model: str = "gemini-1.5-flash-latest"

    # Endpoints
    openai_endpoint: str = "https://api.openai.com/v1/chat/completions"
    anthropic_endpoint: str = "https://api.anthropic.com/v1/messages"
    google_endpoint: str = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    # Gateway behaviour
    gateway_request_timeout: float = 30.0  # seconds, per provider call
    gateway_default_max_tokens: int = 2000
    gateway_default_temperature: float = 0.7
    gateway_max_retries: int = 0  # 0 = exactly one attempt per provider
    gateway_retry_base_delay: float = 1.0
    gateway_retry_max_delay: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs


settings = Settings()


def build_provider_configs(cfg: Settings | None = None) -> list[ProviderConfig]:
    """Provider configs in registration order: openai, anthropic, google."""
    cfg = cfg or settings
    common = {
        "request_timeout": cfg.gateway_request_timeout,
        "default_max_tokens": cfg.gateway_default_max_tokens,
        "default_temperature": cfg.gateway_default_temperature,
    }
    return [
        ProviderConfig(
            name="openai",
            endpoint=cfg.openai_endpoint,
            credential=cfg.openai_api_key,
            default_model=cfg.openai_model,
            **common,
        ),
        ProviderConfig(
            name="anthropic",
            endpoint=cfg.anthropic_endpoint,
            credential=cfg.anthropic_api_key,
            default_model=cfg.anthropic_model,
            **common,
        ),
        ProviderConfig(
            name="google",
            endpoint=cfg.google_endpoint,
            credential=cfg.google_api_key,
            default_model=cfg.google_model,
            **common,
        ),
    ]


def validate_gateway_settings(cfg: Settings | None = None) -> None:
    """Validate gateway settings. Missing credentials are not errors."""
    cfg = cfg or settings
    errors: list[str] = []

    if cfg.gateway_request_timeout <= 0:
        errors.append("GATEWAY_REQUEST_TIMEOUT must be a positive number of seconds")
    if cfg.gateway_default_max_tokens <= 0:
        errors.append("GATEWAY_DEFAULT_MAX_TOKENS must be positive")
    if cfg.gateway_max_retries < 0:
        errors.append("GATEWAY_MAX_RETRIES must not be negative")
    if cfg.gateway_max_retries and cfg.gateway_retry_base_delay <= 0:
        errors.append("GATEWAY_RETRY_BASE_DELAY must be positive when retries are enabled")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
