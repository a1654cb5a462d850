"""
Whowlang Configuration

Loads CLI settings from a YAML file and environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)


# Relative, so it resolves against the working directory at load time
LOCAL_CONFIG_PATH = Path("whowlang.yaml")

# Default configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path.home() / ".whowlang" / "config.yaml",
    LOCAL_CONFIG_PATH,
]

OUTPUT_FORMATS = ("plain", "typed")

TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0")

DEFAULT_CONFIG = {
    "log_level": "WARNING",
    "json_indent": 2,
    "sort_keys": False,
    "output_format": "plain",

    # Source file encodings, tried in order
    "encodings": ["utf-8-sig", "utf-8", "latin-1"],
}


class ConfigError(Exception):
    """Invalid configuration value."""


class WhowlangConfig:
    """Configuration for the whowlang command line tool."""

    def __init__(self, config_path: Optional[Path] = None, search_paths: Optional[List[Path]] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        # Load from file if found
        self._load_config(config_path, search_paths)

        # Override with environment variables
        self._apply_env_overrides()

    def _load_config(self, explicit_path: Optional[Path] = None,
                     search_paths: Optional[List[Path]] = None) -> None:
        """Load configuration from YAML file."""
        if explicit_path:
            explicit_path = Path(explicit_path)
            if not explicit_path.exists():
                raise ConfigError(f"Config file not found: {explicit_path}")
            candidates = [explicit_path]
        else:
            candidates = search_paths if search_paths is not None else CONFIG_SEARCH_PATHS

        for config_path in candidates:
            if config_path and config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        user_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(f"Failed to load config from {config_path}: {e}")
                    continue
                if not isinstance(user_config, dict):
                    logger.warning(f"Ignoring {config_path}: top level must be a mapping")
                    continue
                self._config.update(user_config)
                self._config_path = config_path
                logger.debug(f"Loaded config from {config_path}")
                return

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if "WHOWLANG_LOG_LEVEL" in os.environ:
            self._config["log_level"] = os.environ["WHOWLANG_LOG_LEVEL"]

        if "WHOWLANG_JSON_INDENT" in os.environ:
            raw = os.environ["WHOWLANG_JSON_INDENT"].strip()
            self._config["json_indent"] = None if raw.lower() in ("", "none", "null") else raw

        if "WHOWLANG_SORT_KEYS" in os.environ:
            self._config["sort_keys"] = os.environ["WHOWLANG_SORT_KEYS"]

        if "WHOWLANG_ENCODINGS" in os.environ:
            self._config["encodings"] = [
                e.strip() for e in os.environ["WHOWLANG_ENCODINGS"].split(",") if e.strip()
            ]

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def log_level(self) -> str:
        """Logging level name (DEBUG, INFO, WARNING, ...)."""
        level = str(self._config.get("log_level", "WARNING")).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigError(f"Unknown log level: {level}")
        return level

    @property
    def json_indent(self) -> Optional[int]:
        """Indentation for JSON output, or None for compact output."""
        indent = self._config.get("json_indent")
        if indent is None:
            return None
        try:
            indent = int(indent)
        except (TypeError, ValueError):
            raise ConfigError(f"json_indent must be an integer, got {indent!r}") from None
        if indent < 0:
            raise ConfigError(f"json_indent must not be negative, got {indent}")
        return indent

    @property
    def sort_keys(self) -> bool:
        """Sort object keys in JSON output. Accepts booleans or yes/no style strings."""
        value = self._config.get("sort_keys", False)
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in TRUE_STRINGS:
                return True
            if lowered in FALSE_STRINGS:
                return False
        raise ConfigError(f"sort_keys must be true or false, got {value!r}")

    @property
    def output_format(self) -> str:
        """'plain' JSON or 'typed' JSON with '_type' tags."""
        fmt = self._config.get("output_format", "plain")
        if fmt not in OUTPUT_FORMATS:
            raise ConfigError(f"output_format must be one of {OUTPUT_FORMATS}, got {fmt!r}")
        return fmt

    @property
    def encodings(self) -> List[str]:
        """Source encodings tried in order when reading files."""
        encodings = self._config.get("encodings") or DEFAULT_CONFIG["encodings"]
        if isinstance(encodings, str):
            encodings = [encodings]
        return list(encodings)

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "log_level": self.log_level,
            "json_indent": self.json_indent,
            "sort_keys": self.sort_keys,
            "output_format": self.output_format,
            "encodings": self.encodings,
            "config_file": str(self._config_path) if self._config_path else None,
        }


# Global config instance (lazy-loaded)
_config: Optional[WhowlangConfig] = None


def get_config(config_path: Optional[Path] = None) -> WhowlangConfig:
    """Get the global config instance, loading if needed."""
    global _config
    if _config is None or config_path is not None:
        _config = WhowlangConfig(config_path)
    return _config


def write_default_config(path: Optional[Path] = None) -> Path:
    """
    Write a default configuration file.

    Returns the path where config was written.
    """
    if path is None:
        path = Path.home() / ".whowlang" / "config.yaml"
    path = Path(path)

    path.parent.mkdir(parents=True, exist_ok=True)

    config_content = """# whowlang configuration
#
# Settings for the whowlang command line tool.
# Environment variables override these values:
#   WHOWLANG_LOG_LEVEL, WHOWLANG_JSON_INDENT, WHOWLANG_SORT_KEYS, WHOWLANG_ENCODINGS

# Logging level (DEBUG, INFO, WARNING, ERROR)
log_level: WARNING

# JSON indentation for `whowlang parse` (null for compact output)
json_indent: 2

# Sort keys in JSON output
sort_keys: false

# plain: ordinary JSON; typed: every value tagged with its _type
output_format: plain

# Source file encodings, tried in order
encodings:
  - utf-8-sig
  - utf-8
  - latin-1
"""

    with open(path, 'w', encoding='utf-8') as f:
        f.write(config_content)

    return path
