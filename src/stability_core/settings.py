from __future__ import annotations

from pydantic import ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stability_core.circuit_breaker import Breaker
from stability_core.context import Call
from stability_core.debounce import DebounceFirst, DebounceLast
from stability_core.logging import StructuredLogger, get_log_level_value
from stability_core.retry import Retry


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class StabilitySettings(BaseSettings):
    """Default tuning for stability decorators, read from ``STABILITY_*``."""

    model_config = prefixed_settings_config("STABILITY_")

    breaker_failure_threshold: int = 5
    breaker_base_delay_seconds: float = 2.0
    retry_max_retries: int = 3
    retry_delay_seconds: float = 1.0
    debounce_window_seconds: float = 0.1
    debounce_poll_interval_seconds: float = 0.1
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().upper()
            get_log_level_value(normalized)
            return normalized
        return value

    @field_validator(
        "breaker_failure_threshold",
        "breaker_base_delay_seconds",
        "retry_max_retries",
        "retry_delay_seconds",
        "debounce_window_seconds",
    )
    @classmethod
    def _validate_non_negative(
        cls, value: int | float, info: ValidationInfo
    ) -> int | float:
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @model_validator(mode="after")
    def _validate_poll_interval(self) -> StabilitySettings:
        if self.debounce_poll_interval_seconds <= 0:
            raise ValueError("debounce_poll_interval_seconds must be > 0")
        return self

    def build_breaker(self, call: Call, *, name: str = "breaker") -> Breaker:
        """Wrap ``call`` in a breaker using the configured threshold and delay."""
        return Breaker(
            call,
            self.breaker_failure_threshold,
            name=name,
            base_delay=self.breaker_base_delay_seconds,
        )

    def build_retry(
        self, call: Call, *, logger: StructuredLogger | None = None
    ) -> Retry:
        """Wrap ``call`` in a retry using the configured count and delay."""
        return Retry(
            call,
            self.retry_max_retries,
            self.retry_delay_seconds,
            logger=logger,
        )

    def build_debounce_first(self, call: Call) -> DebounceFirst:
        """Wrap ``call`` in a leading-edge debouncer."""
        return DebounceFirst(call, self.debounce_window_seconds)

    def build_debounce_last(
        self, call: Call, *, name: str = "debounce_last"
    ) -> DebounceLast:
        """Wrap ``call`` in a trailing-edge debouncer."""
        return DebounceLast(
            call,
            self.debounce_window_seconds,
            poll_interval=self.debounce_poll_interval_seconds,
            name=name,
        )
