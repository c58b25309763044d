"""
Configuration loader for the packs parity checker

Reads feature flags and paths from environment variables, optionally layered
over a YAML configuration file that is validated against a JSON schema.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import jsonschema
import yaml

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised for configuration-related errors."""

    pass


DEFAULT_CACHE_DIR = "tmp/cache/packwerk"
DEFAULT_PACKS_DIR = "packs"
DEFAULT_WORKERS = 8
DEFAULT_REGION = "ap-northeast-2"
DEFAULT_SOURCE_ROOTS = ["app"]
DEFAULT_EXTENSIONS = ["rb", "rake", "erb"]
DEFAULT_DIGEST_MAP_PATH = "tmp/filename_to_digest_map.yml"

FALSE_TOKENS = {"", "0", "false", "no", "off"}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "fail_fast": {"type": "boolean"},
        "shuffle": {"type": "boolean"},
        "cache_dir": {"type": "string", "minLength": 1},
        "packs_dir": {"type": "string", "minLength": 1},
        "workers": {"type": "integer", "minimum": 1},
        "publish_metrics": {"type": "boolean"},
        "aws_region": {"type": "string", "minLength": 1},
        "source_roots": {"type": "array", "items": {"type": "string"}, "minItems": 1},
        "extensions": {"type": "array", "items": {"type": "string"}, "minItems": 1},
        "digest_map_path": {"type": ["string", "null"]},
    },
}


def _read_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    """
    Evaluate a boolean environment flag.

    Any non-empty value other than a false token enables the flag, so
    ``SHUFFLE=1`` and ``FAIL_FAST=yes`` both work.
    """
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in FALSE_TOKENS


def _read_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {value}")
    return value


class Settings:
    """
    Runtime configuration for a parity run.

    Precedence: explicit overrides (CLI) > environment variables >
    YAML configuration file > defaults.
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize settings.

        Args:
            config_file: Optional YAML file; falls back to PARITY_CONFIG_FILE
            environ: Environment mapping (defaults to os.environ)

        Raises:
            ConfigurationError: If the config file or an env value is invalid
        """
        env = os.environ if environ is None else environ

        config_file = config_file or env.get("PARITY_CONFIG_FILE")
        file_values = self.load_config_file(config_file) if config_file else {}
        self.config_file = config_file

        self.fail_fast = _read_flag(env, "FAIL_FAST", file_values.get("fail_fast", False))
        self.shuffle = _read_flag(env, "SHUFFLE", file_values.get("shuffle", False))
        self.publish_metrics = _read_flag(
            env, "PARITY_PUBLISH_METRICS", file_values.get("publish_metrics", False)
        )

        self.cache_dir = Path(
            env.get("PACKWERK_CACHE_DIR") or file_values.get("cache_dir", DEFAULT_CACHE_DIR)
        )
        self.packs_dir = env.get("PACKS_DIR") or file_values.get("packs_dir", DEFAULT_PACKS_DIR)
        self.workers = _read_int(
            env, "PARITY_WORKERS", file_values.get("workers", DEFAULT_WORKERS)
        )
        self.aws_region = env.get("AWS_REGION") or file_values.get("aws_region", DEFAULT_REGION)

        self.source_roots: List[str] = list(
            file_values.get("source_roots", DEFAULT_SOURCE_ROOTS)
        )
        self.extensions: List[str] = list(file_values.get("extensions", DEFAULT_EXTENSIONS))
        self.digest_map_path: Optional[str] = file_values.get(
            "digest_map_path", DEFAULT_DIGEST_MAP_PATH
        )

    def is_fail_fast_enabled(self) -> bool:
        return self.fail_fast

    def is_shuffle_enabled(self) -> bool:
        return self.shuffle

    def is_metrics_publishing_enabled(self) -> bool:
        return self.publish_metrics

    def apply_overrides(self, **overrides: Any) -> "Settings":
        """
        Apply explicit overrides, ignoring None values.

        Raises:
            ConfigurationError: If an unknown setting is named
        """
        for name, value in overrides.items():
            if value is None:
                continue
            if not hasattr(self, name):
                raise ConfigurationError(f"Unknown setting: {name}")
            if name == "cache_dir":
                value = Path(value)
            if name == "workers" and value < 1:
                raise ConfigurationError(f"workers must be >= 1, got {value}")
            setattr(self, name, value)
        return self

    @staticmethod
    def load_config_file(config_path: str) -> Dict[str, Any]:
        """
        Load settings from YAML and validate against CONFIG_SCHEMA.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Dict of validated settings (empty for an empty file)

        Raises:
            ConfigurationError: Missing file, invalid YAML or schema violation
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration: {e}")
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not content:
            logger.warning(f"Empty configuration file: {config_path}")
            return {}

        try:
            jsonschema.validate(instance=content, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            logger.error(f"Configuration failed schema validation: {e.message}")
            raise ConfigurationError(f"Configuration validation failed: {e.message}") from e

        logger.info(f"Loaded configuration from {config_path}")
        return content

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fail_fast": self.fail_fast,
            "shuffle": self.shuffle,
            "cache_dir": str(self.cache_dir),
            "packs_dir": self.packs_dir,
            "workers": self.workers,
            "publish_metrics": self.publish_metrics,
            "aws_region": self.aws_region,
            "source_roots": self.source_roots,
            "extensions": self.extensions,
            "digest_map_path": self.digest_map_path,
        }
