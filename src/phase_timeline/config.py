"""Configuration management for Phase Timeline."""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
import yaml

from .domain import CanonicalPhase, PhaseTable
from .errors import ConfigError


logger = logging.getLogger(__name__)

KEYWORD_MATCH_MODES = ("substring", "word")
DURATION_ORIGINS = ("project", "phase")


@dataclass
class ConfigModel:
    """Global configuration model for Phase Timeline."""

    # Phase classification
    phase_keywords: Dict[str, List[str]] = field(default_factory=dict)  # empty = built-in table
    extend_default_keywords: bool = False
    keyword_match: str = "substring"  # substring, word
    numeric_fallback: bool = True  # "Phase 2" -> Design when no keyword matched
    catch_all_labels: List[str] = field(default_factory=lambda: ["unsorted"])

    # Duration policy
    clamp_to_launch: bool = True  # earlier phases may not end at/after Launch
    duration_origin: str = "project"  # project, phase
    ignore_subtasks: bool = False

    # Comparison
    skip_projects: List[str] = field(default_factory=list)
    default_sort: str = "duration-asc"

    # Record cache
    cache_expiration_hours: float = 24.0

    # File paths
    data_dir: str = "~/.phase_timeline"

    def __post_init__(self):
        """Post-initialization validation."""
        self.data_dir = os.path.expanduser(self.data_dir)

        if self.keyword_match not in KEYWORD_MATCH_MODES:
            raise ConfigError(
                f"keyword_match must be one of {', '.join(KEYWORD_MATCH_MODES)}, "
                f"got {self.keyword_match!r}"
            )
        if self.duration_origin not in DURATION_ORIGINS:
            raise ConfigError(
                f"duration_origin must be one of {', '.join(DURATION_ORIGINS)}, "
                f"got {self.duration_origin!r}"
            )
        if self.cache_expiration_hours <= 0:
            raise ConfigError("cache_expiration_hours must be positive")
        # Fail early on unknown phase names
        self.build_phase_table()

    def build_phase_table(self) -> PhaseTable:
        """Build the keyword table described by this configuration."""
        if not self.phase_keywords:
            return PhaseTable.from_mapping({}, catch_all_labels=self.catch_all_labels)
        try:
            return PhaseTable.from_mapping(
                self.phase_keywords,
                extend_defaults=self.extend_default_keywords,
                catch_all_labels=self.catch_all_labels,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid phase_keywords: {e}") from e

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "phase_keywords": self.phase_keywords,
            "extend_default_keywords": self.extend_default_keywords,
            "keyword_match": self.keyword_match,
            "numeric_fallback": self.numeric_fallback,
            "catch_all_labels": self.catch_all_labels,
            "clamp_to_launch": self.clamp_to_launch,
            "duration_origin": self.duration_origin,
            "ignore_subtasks": self.ignore_subtasks,
            "skip_projects": self.skip_projects,
            "default_sort": self.default_sort,
            "cache_expiration_hours": self.cache_expiration_hours,
            "data_dir": self.data_dir,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML.

        Raises:
            ConfigError: if the document is not a mapping or holds unknown keys.
        """
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a YAML mapping")

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        return cls(**data)

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"

    def get_cache_path(self) -> Path:
        """Get the record cache file path."""
        return Path(self.data_dir) / "cache.json"


class Config:
    """Configuration manager for Phase Timeline."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file, falling back to defaults."""
        config = ConfigModel()

        if config_path is None:
            config_path = config.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    yaml_content = f.read()
                config = ConfigModel.from_yaml(yaml_content)
                logger.info("Loaded configuration from %s", config_path)
            except (OSError, yaml.YAMLError, ConfigError, TypeError) as e:
                logger.warning("Failed to load config from %s: %s", config_path, e)
                logger.warning("Using default configuration.")
        else:
            logger.debug("No configuration at %s, using defaults", config_path)

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w') as f:
            f.write(config.to_yaml())
        logger.info("Configuration saved to %s", config_path)

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load()

    @classmethod
    def reset(cls) -> None:
        """Forget the cached configuration."""
        cls._instance = None


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    Config.save(config, config_path)


def phase_from_config_name(name: str) -> CanonicalPhase:
    """Resolve a phase name given on the command line or in YAML."""
    try:
        return CanonicalPhase.from_name(name)
    except ValueError as e:
        raise ConfigError(str(e)) from e
