"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# Profile defaults. "classic" answers with {signal, explanation} and trusts the
# model; "guarded" caches results, reports confidence and runs the guard rails.
PROFILE_DEFAULTS = {
    "classic": {
        "cache_enabled": False,
        "include_confidence": False,
        "allow_zero_prices": False,
        "filter_rules": [],
    },
    "guarded": {
        "cache_enabled": True,
        "include_confidence": True,
        "allow_zero_prices": True,
        "filter_rules": ["htf_trend", "momentum_volume"],
    },
}

REQUIRED_FIELDS = (
    "symbol",
    "tf",
    "ohlc",
    "indicators",
    "adx",
    "atr",
    "volume_ratio",
    "pattern",
    "session",
    "support",
    "resistance",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=("settings_",),
    )

    # Environment
    env: Literal["development", "production", "test"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    profile: Literal["classic", "guarded"] = "guarded"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080
    pre_shared_token: SecretStr = Field(default=SecretStr(""))

    # Language model (OpenAI-compatible chat completions)
    model_api_key: SecretStr = Field(default=SecretStr(""))
    model_endpoint: str = "https://free.v36.cm/v1/chat/completions"
    model_name: str = "gpt-4o-mini"
    model_temperature: float = 0.1
    model_max_tokens: int = 150
    model_timeout: float = 10.0  # seconds

    # Telegram
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    notifier_timeout: float = 5.0  # seconds

    # Request guards
    rate_limit_interval: float = 12.0  # seconds between accepted requests
    cache_ttl: float = 30.0  # seconds
    cache_maxsize: int = 256

    # Profile overrides (None = use the profile default)
    allow_zero_prices: Optional[bool] = None
    filter_rules: Optional[list[str]] = None

    def _profile_default(self, key: str):
        return PROFILE_DEFAULTS[self.profile][key]

    @property
    def cache_enabled(self) -> bool:
        """Whether results are memoized for this profile."""
        return bool(self._profile_default("cache_enabled")) and self.cache_ttl > 0

    @property
    def include_confidence(self) -> bool:
        """Whether the HTTP response carries the confidence field."""
        return bool(self._profile_default("include_confidence"))

    @property
    def zero_prices_allowed(self) -> bool:
        """Price policy: reject zero prices (strict) or only negatives (lenient)."""
        if self.allow_zero_prices is not None:
            return self.allow_zero_prices
        return bool(self._profile_default("allow_zero_prices"))

    @property
    def active_filter_rules(self) -> list[str]:
        """Guard rail rules applied after the model answers."""
        if self.filter_rules is not None:
            return list(self.filter_rules)
        return list(self._profile_default("filter_rules"))

    @property
    def required_fields(self) -> tuple[str, ...]:
        """Body fields that must be present on every request."""
        return REQUIRED_FIELDS


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
