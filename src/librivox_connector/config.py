"""Connector configuration via pydantic-settings (.env + env vars).

The host hands settings over once, at enable time. Defaults are applied
during construction and the resulting config is frozen, so every operation
sees the same values for the lifetime of the source.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .models import ALL_LANGUAGES, API_BASE_URL, LANGUAGES, PLATFORM_BASE_URL

# Host setting keys -> config field names
_HOST_SETTING_KEYS = {
    "allowExplicit": "allow_explicit",
    "preferredLanguage": "preferred_language_index",
    "contentRecommendationOptionIndex": "recommendation_option_index",
}


class ConnectorConfig(BaseSettings):
    """All connector configuration with layered resolution:
    .env file < environment variables (LIBRIVOX_*) < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIBRIVOX_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    # -- Host settings --
    allow_explicit: bool = True
    preferred_language_index: int = Field(default=0, ge=0, le=7)
    recommendation_option_index: int = 0

    # -- Host identity --
    plugin_id: str = ""

    # -- Upstream --
    api_base: str = API_BASE_URL
    site_base: str = PLATFORM_BASE_URL
    http_timeout: float = 30.0
    max_retries: int = Field(default=3, ge=0)

    # -- Logging --
    log_level: str = "INFO"
    log_dir: Path | None = None

    @classmethod
    def from_host_settings(
        cls,
        conf: dict | None = None,
        settings: dict | None = None,
        **overrides: Any,
    ) -> "ConnectorConfig":
        """Build a config from the host's ``conf`` and ``settings`` dicts.

        Missing or null settings fall back to field defaults. Raises
        ConfigError if a supplied value fails validation.
        """
        kwargs: dict[str, Any] = {}
        conf = conf or {}
        if conf.get("id"):
            kwargs["plugin_id"] = str(conf["id"])

        for host_key, field_name in _HOST_SETTING_KEYS.items():
            value = (settings or {}).get(host_key)
            if value is not None:
                kwargs[field_name] = value

        kwargs.update(overrides)
        try:
            return cls(**kwargs)
        except ValidationError as exc:
            logger.bind(stage="config").error(f"Invalid host settings: {exc}")
            raise ConfigError(f"Invalid host settings: {exc}") from exc

    @property
    def language(self) -> str | None:
        """Effective language filter, or None when all languages are allowed."""
        language = LANGUAGES.get(self.preferred_language_index)
        if not language or language == ALL_LANGUAGES:
            return None
        return language

    def setup_logging(self) -> None:
        """Configure loguru for the connector."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_dir is None:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "connector.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
