"""
Centralized Configuration Module

Provides configuration classes and environment variable loading for the
valuation engine. Every numeric default here is a tunable heuristic, not a
derived constant, so each one can be overridden from the environment.

Usage:
    from appraisalcore.config import get_config

    config = get_config()
    threshold = config.valuation.modified_z_threshold
    land_factor = config.adjustment.land_size_factor("house")
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from appraisalcore.exceptions import ConfigurationError

# Load .env file if present
load_dotenv()


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back to default."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be numeric, got {raw!r}") from e


@dataclass
class ValuationConfig:
    """Outlier, range and confidence tuning."""

    default_monthly_growth: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_DEFAULT_MONTHLY_GROWTH", 0.004
    ))
    default_annual_growth: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_DEFAULT_ANNUAL_GROWTH", 0.05
    ))
    min_range_spread: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_MIN_RANGE_SPREAD", 0.03
    ))
    max_range_spread: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_MAX_RANGE_SPREAD", 0.5
    ))
    modified_z_threshold: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_MODIFIED_Z_THRESHOLD", 3.5
    ))
    confidence_threshold: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_CONFIDENCE_THRESHOLD", 0.5
    ))
    context_weight_combined: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_CONTEXT_WEIGHT_COMBINED", 0.7
    ))
    context_weight_single: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_CONTEXT_WEIGHT_SINGLE", 0.5
    ))
    subject_group_leniency: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_SUBJECT_GROUP_LENIENCY", 0.1
    ))
    outlier_flag_threshold: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_OUTLIER_FLAG_THRESHOLD", 0.5
    ))

    def __post_init__(self):
        for name in (
            "confidence_threshold",
            "context_weight_combined",
            "context_weight_single",
            "subject_group_leniency",
            "outlier_flag_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be between 0 and 1, got {value}")
        if self.min_range_spread > self.max_range_spread:
            raise ConfigurationError("min_range_spread cannot exceed max_range_spread")
        if self.max_range_spread >= 1.0:
            raise ConfigurationError("max_range_spread must be below 1.0")


@dataclass
class AdjustmentConfig:
    """Per-property-type land and floor area factors."""

    land_size_factors: Dict[str, float] = field(default_factory=lambda: {
        "apartment": _env_float("APPRAISALCORE_LAND_FACTOR_APARTMENT", 0.05),
        "land": _env_float("APPRAISALCORE_LAND_FACTOR_LAND", 0.8),
        "house": _env_float("APPRAISALCORE_LAND_FACTOR_HOUSE", 0.15),
    })
    default_land_size_factor: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_LAND_FACTOR_DEFAULT", 0.10
    ))
    floor_area_factors: Dict[str, float] = field(default_factory=lambda: {
        "apartment": _env_float("APPRAISALCORE_FLOOR_FACTOR_APARTMENT", 0.25),
        "land": _env_float("APPRAISALCORE_FLOOR_FACTOR_LAND", 0.01),
    })
    default_floor_area_factor: float = field(default_factory=lambda: _env_float(
        "APPRAISALCORE_FLOOR_FACTOR_DEFAULT", 0.15
    ))

    def land_size_factor(self, property_type: Optional[str]) -> float:
        """Land size ratio factor for a consolidated property type."""
        return self.land_size_factors.get(property_type, self.default_land_size_factor)

    def floor_area_factor(self, property_type: Optional[str]) -> float:
        """Floor area ratio factor for a consolidated property type."""
        return self.floor_area_factors.get(property_type, self.default_floor_area_factor)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv(
        "APPRAISALCORE_LOG_LEVEL", "INFO"
    ).upper())
    log_file: Optional[str] = field(default_factory=lambda: os.getenv(
        "APPRAISALCORE_LOG_FILE"
    ))

    def __post_init__(self):
        # Validate log level
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level not in valid_levels:
            self.level = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    valuation: ValuationConfig = field(default_factory=ValuationConfig)
    adjustment: AdjustmentConfig = field(default_factory=AdjustmentConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config: The application configuration.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the configuration (useful for testing)."""
    global _config
    _config = None
