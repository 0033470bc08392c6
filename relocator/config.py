"""Configuration management for relocator."""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .execution.models import RunOptions
from .locators.models import DEFAULT_STRATEGY_ORDER, FindOptions, StrategyName


class Preset(str, Enum):
    """Named configuration presets."""
    DEFAULT = "default"
    FAST = "fast"  # Minimal waiting
    REALISTIC = "realistic"  # Human-like pacing
    DEBUG = "debug"  # Slow, easy to follow
    TOLERANT = "tolerant"  # Relaxed thresholds, keeps going after failures


class RelocatorSettings(BaseSettings):
    """Settings loaded from ``RELOCATOR_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="RELOCATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Element resolution
    find_timeout_ms: int = Field(2000, ge=0, description="Timeout for one element resolution")
    retry_interval_ms: int = Field(150, ge=0, description="Delay between resolution passes")
    max_retries: int = Field(13, ge=0, description="Max extra passes per resolution")
    fuzzy_threshold: float = Field(0.4, ge=0.0, le=1.0, description="Min text similarity for fuzzy matches")
    spatial_threshold_px: float = Field(200, gt=0, description="Max distance (px) for spatial matches")
    strategy_order: list[StrategyName] = Field(
        default_factory=lambda: list(DEFAULT_STRATEGY_ORDER),
        description="Strategy priority order",
    )
    disabled_strategies: list[StrategyName] = Field(default_factory=list, description="Strategies never tried")
    min_confidence: float = Field(0.0, ge=0.0, le=1.0, description="Reject matches below this confidence")
    require_visible: bool = Field(True, description="Only accept visible elements")

    # Retry backoff
    exponential_backoff: bool = Field(False, description="Grow the retry interval after each pass")
    backoff_multiplier: float = Field(1.5, ge=1.0, description="Backoff growth factor")
    max_backoff_delay_ms: int = Field(2000, ge=0, description="Backoff ceiling")

    # Run behavior
    continue_on_failure: bool = Field(False, description="Keep running after a failed step")
    max_consecutive_failures: int = Field(0, ge=0, description="Stop after N failures in a row (0 = no limit)")
    step_delay_ms: int = Field(0, ge=0, description="Delay between steps")
    human_delay_ms: Optional[tuple[int, int]] = Field(None, description="Extra random delay range between steps")
    skip_on_not_found: bool = Field(False, description="Skip steps whose element cannot be found")

    # Logging
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(False, description="Render logs as JSON")

    @field_validator("strategy_order")
    @classmethod
    def _unique_order(cls, value: list[StrategyName]) -> list[StrategyName]:
        if len(set(value)) != len(value):
            raise ValueError("strategy_order contains duplicates")
        return value

    @field_validator("human_delay_ms")
    @classmethod
    def _ordered_range(cls, value: Optional[tuple[int, int]]) -> Optional[tuple[int, int]]:
        if value is not None:
            low, high = value
            if low < 0 or high < low:
                raise ValueError("human_delay_ms must be (min, max) with 0 <= min <= max")
        return value

    @model_validator(mode="after")
    def _some_strategy_enabled(self) -> "RelocatorSettings":
        if not set(self.strategy_order) - set(self.disabled_strategies):
            raise ValueError("every strategy is disabled")
        return self

    def find_options(self) -> FindOptions:
        return FindOptions(
            timeout_ms=self.find_timeout_ms,
            retry_interval_ms=self.retry_interval_ms,
            max_retries=self.max_retries,
            min_confidence=self.min_confidence,
            require_visible=self.require_visible,
            strategy_order=list(self.strategy_order),
            disabled_strategies=list(self.disabled_strategies),
            exponential_backoff=self.exponential_backoff,
            backoff_multiplier=self.backoff_multiplier,
            max_backoff_delay_ms=self.max_backoff_delay_ms,
        )

    def run_options(self) -> RunOptions:
        return RunOptions(
            continue_on_failure=self.continue_on_failure,
            max_consecutive_failures=self.max_consecutive_failures,
            step_delay_ms=self.step_delay_ms,
            human_delay_ms=self.human_delay_ms,
            skip_on_not_found=self.skip_on_not_found,
        )


PRESETS: dict[Preset, dict] = {
    Preset.DEFAULT: {},
    Preset.FAST: {
        "find_timeout_ms": 1000,
        "retry_interval_ms": 50,
        "max_retries": 10,
        "step_delay_ms": 0,
        "human_delay_ms": None,
    },
    Preset.REALISTIC: {
        "step_delay_ms": 500,
        "human_delay_ms": (50, 300),
    },
    Preset.DEBUG: {
        "find_timeout_ms": 5000,
        "step_delay_ms": 1000,
        "human_delay_ms": (200, 500),
        "log_level": "DEBUG",
    },
    Preset.TOLERANT: {
        "find_timeout_ms": 5000,
        "max_retries": 20,
        "fuzzy_threshold": 0.3,
        "spatial_threshold_px": 300,
        "min_confidence": 0.3,
        "continue_on_failure": True,
        "max_consecutive_failures": 5,
    },
}


def get_preset(name: str | Preset, **overrides) -> RelocatorSettings:
    """Settings for a named preset, with optional field overrides.

    Raises:
        ValueError: For an unknown preset name
    """
    preset = Preset(name)
    return RelocatorSettings(**{**PRESETS[preset], **overrides})


def get_settings() -> RelocatorSettings:
    """Get application settings."""
    return RelocatorSettings()
