"""Application configuration via pydantic-settings.

All values loaded from the .env file at the project root.
The .env file takes precedence over OS-level environment variables
so stale system env vars never shadow the project config.
Settings are built once at import and handed to each component's
constructor. Pipeline code never reads the environment directly.
"""

from pathlib import Path
from typing import Literal, Tuple, Type

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from transbot.core.exceptions import ConfigurationError

# Resolve .env from project root (two levels up from this file: transbot/core/config.py → project root)
_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Central application settings. .env file wins over OS env vars."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Override source priority: .env file > OS env vars > defaults."""
        return (init_settings, dotenv_settings, env_settings, file_secret_settings)

    # --- LINE ---
    line_channel_access_token: str = ""
    line_channel_secret: str = ""
    line_api_base_url: str = "https://api.line.me"

    # --- Primary translator (LLM) ---
    primary_backend: Literal["gemini", "openai"] = "gemini"
    gemini_api_key: str = ""
    gemini_models: list[str] = ["gemini-1.5-flash", "gemini-pro"]
    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o-mini"
    primary_max_attempts: int = 3
    primary_retry_delay_seconds: float = 2.0

    # --- Secondary translator (Google Cloud Translation v2) ---
    google_translate_api_key: str = ""
    google_translate_base_url: str = "https://translation.googleapis.com"

    # --- Languages and reply rendering ---
    target_languages: list[str] = ["zh-TW", "en", "id"]
    language_flags: dict[str, str] = {
        "zh-TW": "🇹🇼",
        "en": "🇺🇸",
        "id": "🇮🇩",
    }
    default_flag: str = "🌐"
    nothing_to_translate_message: str = "🚫 Nothing to translate."
    translation_failed_message: str = (
        "⚠️ Sorry, translation is unavailable right now. Please try again later."
    )

    # --- App ---
    app_env: str = "development"
    log_level: str = "INFO"
    port: int = 3000
    http_timeout_seconds: float = 10.0

    @field_validator("target_languages")
    @classmethod
    def _dedupe_target_languages(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        unique: list[str] = []
        for code in value:
            code = code.strip()
            if not code or code.lower() in seen:
                continue
            seen.add(code.lower())
            unique.append(code)
        if not unique:
            raise ValueError("target_languages must contain at least one language")
        return unique

    @property
    def fallback_enabled(self) -> bool:
        return bool(self.google_translate_api_key)

    def require_credentials(self) -> None:
        """Fail fast when a credential the service cannot run without is missing.

        Raises:
            ConfigurationError: naming every missing variable.
        """
        missing: list[str] = []
        if not self.line_channel_access_token:
            missing.append("LINE_CHANNEL_ACCESS_TOKEN")
        if not self.line_channel_secret:
            missing.append("LINE_CHANNEL_SECRET")
        if self.primary_backend == "gemini" and not self.gemini_api_key:
            missing.append("GEMINI_API_KEY")
        if self.primary_backend == "openai" and not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )


settings = Settings()
