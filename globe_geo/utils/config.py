"""
Configuration management using Pydantic for validation.

This module provides type-safe configuration loading and validation
for clustering, viewport reduction and render scheduling.
"""
from pathlib import Path
from typing import Dict, Literal
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
import yaml

from globe_geo.utils.exceptions import ConfigurationError


LOD_NAMES = ('high', 'medium', 'low', 'minimal')


class ClusteringParams(BaseModel):
    """Parameters for proximity clustering."""
    max_distance_km: float = Field(100.0, ge=0.0, description="Seed-to-member clustering radius")
    unit: Literal["km", "miles"] = Field("km", description="Unit for max_distance_km and cluster radii")


class ViewportParams(BaseModel):
    """Parameters for viewport filtering and level-of-detail reduction."""
    padding_deg: float = Field(10.0, ge=0.0, le=180.0, description="Bounds padding for the reduce pipeline (degrees)")
    high_max_altitude: float = Field(1.5, gt=0.0, description="Altitudes below this render at 'high'")
    medium_max_altitude: float = Field(2.5, gt=0.0, description="Altitudes below this render at 'medium'")
    low_max_altitude: float = Field(4.0, gt=0.0, description="Altitudes below this render at 'low'")
    sample_rates: Dict[str, float] = Field(
        default_factory=lambda: {'high': 1.0, 'medium': 0.7, 'low': 0.4, 'minimal': 0.2}
    )
    marker_scales: Dict[str, float] = Field(
        default_factory=lambda: {'high': 1.0, 'medium': 0.8, 'low': 0.6, 'minimal': 0.4}
    )
    base_marker_size: float = Field(0.3, gt=0.0, description="Marker size at 'high' detail")

    @field_validator('sample_rates')
    @classmethod
    def check_sample_rates(cls, v):
        _require_all_levels(v, 'sample_rates')
        for level, rate in v.items():
            if not 0.0 < rate <= 1.0:
                raise ValueError(f"sample rate for '{level}' must be in (0, 1], got {rate}")
        return v

    @field_validator('marker_scales')
    @classmethod
    def check_marker_scales(cls, v):
        _require_all_levels(v, 'marker_scales')
        for level, scale in v.items():
            if scale <= 0.0:
                raise ValueError(f"marker scale for '{level}' must be > 0, got {scale}")
        return v

    @model_validator(mode='after')
    def check_thresholds_ascend(self):
        if not self.high_max_altitude < self.medium_max_altitude < self.low_max_altitude:
            raise ValueError(
                "altitude thresholds must ascend: "
                f"{self.high_max_altitude} < {self.medium_max_altitude} < {self.low_max_altitude}"
            )
        return self


class SchedulingParams(BaseModel):
    """Render scheduling configuration."""
    debounce_ms: float = Field(100.0, ge=0.0, description="Quiet period before a debounced call runs")
    throttle_ms: float = Field(100.0, ge=0.0, description="Minimum interval between throttled calls")
    batch_delay_ms: float = Field(100.0, ge=0.0, description="Inactivity delay before a batch flushes")
    chunk_size: int = Field(50, ge=1, description="Items per progressive-loading chunk")
    pool_max_size: int = Field(1000, ge=0, description="Maximum idle handles kept by an element pool")


class LoggingParams(BaseModel):
    """Logging configuration."""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = False

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class GeoConfig(BaseModel):
    """Complete configuration for the geo core."""
    clustering: ClusteringParams = Field(default_factory=ClusteringParams)
    viewport: ViewportParams = Field(default_factory=ViewportParams)
    scheduling: SchedulingParams = Field(default_factory=SchedulingParams)
    logging: LoggingParams = Field(default_factory=LoggingParams)


def _require_all_levels(mapping: Dict[str, float], name: str) -> None:
    missing = [level for level in LOD_NAMES if level not in mapping]
    unknown = [level for level in mapping if level not in LOD_NAMES]
    if missing or unknown:
        raise ValueError(f"{name} must define exactly {list(LOD_NAMES)} (missing={missing}, unknown={unknown})")


def load_config(config_path: Path) -> GeoConfig:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Validated GeoConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is malformed
        ConfigurationError: If config validation fails

    Example:
        >>> config = load_config(Path("config/globe_geo.yaml"))
        >>> print(config.clustering.max_distance_km)
        100.0
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config_dict = yaml.safe_load(f) or {}

    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Config root must be a mapping: {config_path}")

    try:
        return GeoConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e


def get_default_config() -> GeoConfig:
    """
    Get default configuration.

    Returns:
        Default GeoConfig
    """
    return GeoConfig()
