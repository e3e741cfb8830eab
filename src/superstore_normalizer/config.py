"""Configuration loading and validation for the superstore normalizer."""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import yaml

from superstore_normalizer.processing.feature_deriver import (
    HIGH_VALUE_THRESHOLD,
    MID_VALUE_THRESHOLD,
    TierThresholds,
)
from superstore_normalizer.utils.logging_config import DEFAULT_LOG_FILE, get_logger

logger = get_logger(__name__)

# Environment variable that overrides the configured log level
LOG_LEVEL_ENV = "SUPERSTORE_LOG_LEVEL"

VALID_OUTPUT_FORMATS = ("csv", "xlsx")


class ConfigError(Exception):
    """Settings file is unreadable or holds invalid values."""

    pass


def _decimal_setting(data: dict[str, object], key: str, default: Decimal) -> Decimal:
    if key not in data or data[key] is None:
        return default
    try:
        return Decimal(str(data[key]))
    except InvalidOperation as e:
        raise ConfigError(f"'{key}' must be a number, got {data[key]!r}") from e


def tiers_from_dict(data: dict[str, object]) -> TierThresholds:
    """Build tier thresholds from the ``tiers`` settings section.

    Raises:
        ConfigError: If a threshold is not a number or the pair is invalid.
    """
    thresholds = TierThresholds(
        high_value=_decimal_setting(data, "high_value_threshold", HIGH_VALUE_THRESHOLD),
        mid_value=_decimal_setting(data, "mid_value_threshold", MID_VALUE_THRESHOLD),
    )
    validate_thresholds(thresholds)
    return thresholds


def validate_thresholds(thresholds: TierThresholds) -> None:
    """Check that tier thresholds are non-negative and strictly ordered.

    Raises:
        ConfigError: If the thresholds cannot form three tiers.
    """
    if thresholds.mid_value < 0 or thresholds.high_value < 0:
        raise ConfigError("Tier thresholds must be non-negative")
    if thresholds.mid_value >= thresholds.high_value:
        raise ConfigError(
            f"mid_value_threshold ({thresholds.mid_value}) must be below "
            f"high_value_threshold ({thresholds.high_value})"
        )


@dataclass
class ParsingConfig:
    """Configuration for loading input files.

    Attributes:
        strict: Abort the batch on the first malformed row instead of
            rejecting the row and continuing.
    """

    strict: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ParsingConfig":
        """Build from the ``parsing`` section."""
        return cls(strict=bool(data.get("strict", False)))


@dataclass
class OutputConfig:
    """Settings for the written files.

    Attributes:
        format: Primary output format (csv or xlsx).
        decimal_places: Decimal places for money columns.
    """

    format: str = "csv"
    decimal_places: int = 2

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "OutputConfig":
        """Build from the ``output`` section.

        Raises:
            ConfigError: If the format is not csv or xlsx, or decimal_places
                is not a non-negative whole number.
        """
        fmt = str(data.get("format", "csv")).lower()
        if fmt not in VALID_OUTPUT_FORMATS:
            raise ConfigError(
                f"output.format must be one of {', '.join(VALID_OUTPUT_FORMATS)}, got '{fmt}'"
            )
        places = data.get("decimal_places", 2)
        if not isinstance(places, int) or isinstance(places, bool) or places < 0:
            raise ConfigError(f"output.decimal_places must be a non-negative integer, got {places!r}")
        return cls(format=fmt, decimal_places=places)


@dataclass
class LoggingConfig:
    """Settings for the log file.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file.
    """

    level: str = "INFO"
    file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Build from the ``logging`` section."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", DEFAULT_LOG_FILE)),
        )


@dataclass
class Config:
    """Main configuration container."""

    tiers: TierThresholds = field(default_factory=TierThresholds)
    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content (empty dict for an empty file).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content


def _section(data: dict[str, object], name: str) -> dict[str, object]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(section).__name__}")
    return section


def load_config(
    settings_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load configuration from settings.yaml.

    A missing settings file is not an error: defaults are used and a
    warning is logged.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        config_dir: Base config directory (default: ./config).

    Returns:
        Complete Config object.

    Raises:
        ConfigError: If the settings file is invalid.
    """
    if config_dir is None:
        config_dir = Path("config")
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    config = Config()

    if settings_path.exists():
        data = load_yaml_file(settings_path)
        config.tiers = tiers_from_dict(_section(data, "tiers"))
        config.parsing = ParsingConfig.from_dict(_section(data, "parsing"))
        config.output = OutputConfig.from_dict(_section(data, "output"))
        config.logging = LoggingConfig.from_dict(_section(data, "logging"))
        logger.info(f"Loaded settings from {settings_path}")
    else:
        logger.warning(f"Settings file not found: {settings_path}, using defaults")

    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        config.logging.level = env_level

    return config


def save_settings(path: Path, config: Config) -> None:
    """Write the effective configuration to settings.yaml.

    Args:
        path: Destination path.
        config: Config to persist.
    """
    data = {
        "tiers": {
            "high_value_threshold": str(config.tiers.high_value),
            "mid_value_threshold": str(config.tiers.mid_value),
        },
        "parsing": {"strict": config.parsing.strict},
        "output": {
            "format": config.output.format,
            "decimal_places": config.output.decimal_places,
        },
        "logging": {"level": config.logging.level, "file": config.logging.file},
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved settings to {path}")
