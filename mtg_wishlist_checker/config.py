"""
Configuration for MTG Wishlist Checker.

Settings live in a ComparisonConfig dataclass that is persisted as JSON under
~/.mtg_wishlist_checker and may be overridden per run through MTG_WISHLIST_*
environment variables.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class ComparisonConfig:
    """Configuration settings for comparing card lists."""

    # Matching preferences
    ignore_edition: bool = False
    ignore_wishlist_sideboard: bool = False
    ignore_collection_sideboard: bool = False

    # Price lookups
    fetch_prices: bool = False
    price_provider: str = "tcgplayer"
    price_fallback: bool = False

    # API settings
    scryfall_base_url: str = "https://api.scryfall.com"
    api_timeout_seconds: int = 15
    max_concurrent_requests: int = 3

    # Output preferences
    default_output_dir: str = "."
    verbose_output: bool = False

    # File handling
    text_encoding: str = "utf-8"


def _option_types() -> Dict[str, type]:
    defaults = ComparisonConfig()
    return {f.name: type(getattr(defaults, f.name)) for f in fields(ComparisonConfig)}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _convert(option_type: type, raw: str) -> Any:
    """Convert an environment string to an option's type."""
    if option_type is bool:
        return _parse_bool(raw)
    return option_type(raw)


class ConfigManager:
    """Loads, updates and persists the configuration file."""

    DEFAULT_CONFIG_DIR = Path.home() / ".mtg_wishlist_checker"
    CONFIG_FILENAME = "config.json"

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Args:
            config_dir: Configuration directory (defaults to ~/.mtg_wishlist_checker)
        """
        self.config_dir = Path(config_dir) if config_dir else self.DEFAULT_CONFIG_DIR
        self.config_file = self.config_dir / self.CONFIG_FILENAME
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self._config = self.load_config()

    def _read_file(self) -> Dict[str, Any]:
        with open(self.config_file, 'r', encoding='utf-8') as f:
            stored = json.load(f)
        if not isinstance(stored, dict):
            raise ValueError("configuration file must hold a JSON object")
        return stored

    def load_config(self) -> ComparisonConfig:
        """
        Read the configuration file, creating it with defaults if needed.

        Unknown options and values of the wrong type are skipped. A file that
        cannot be decoded is kept as config.json.backup and replaced with the
        defaults.

        Returns:
            The loaded configuration
        """
        if not self.config_file.exists():
            self._config = ComparisonConfig()
            self.save_config()
            return self._config

        try:
            stored = self._read_file()
        except (ValueError, OSError) as e:
            backup_file = self.config_file.with_name(self.CONFIG_FILENAME + '.backup')
            logger.warning(f"Unreadable configuration file, moved to {backup_file}: {e}")
            self.config_file.replace(backup_file)
            self._config = ComparisonConfig()
            self.save_config()
            return self._config

        option_types = _option_types()
        known = {}
        for name, value in stored.items():
            option_type = option_types.get(name)
            if option_type is None:
                logger.debug(f"Ignoring unknown configuration option '{name}'")
            elif isinstance(value, option_type) and not (option_type is int and isinstance(value, bool)):
                known[name] = value
            else:
                logger.warning(f"Ignoring configuration option '{name}' with invalid value {value!r}")

        self._config = replace(ComparisonConfig(), **known)
        return self._config

    def save_config(self) -> None:
        """Write the current configuration to disk."""
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(asdict(self._config), f, indent=2, sort_keys=True)
        except OSError as e:
            raise RuntimeError(f"Could not write configuration to {self.config_file}: {e}")

    def get_config(self) -> ComparisonConfig:
        return self._config

    def update_config(self, **options) -> None:
        """
        Change configuration options and save them.

        Raises:
            ValueError: If an option name is unknown
        """
        unknown = sorted(set(options) - set(_option_types()))
        if unknown:
            raise ValueError(f"Unknown configuration option: {', '.join(unknown)}")

        self._config = replace(self._config, **options)
        self.save_config()

    def reset_to_defaults(self) -> None:
        self._config = ComparisonConfig()
        self.save_config()

    def get_logs_dir(self) -> Path:
        """Directory for verbose-mode log files, created on demand."""
        logs_dir = self.config_dir / "logs"
        logs_dir.mkdir(exist_ok=True)
        return logs_dir


def get_default_config() -> ComparisonConfig:
    """Get default configuration without file persistence."""
    return ComparisonConfig()


ENV_OVERRIDES = {
    'MTG_WISHLIST_IGNORE_EDITION': 'ignore_edition',
    'MTG_WISHLIST_FETCH_PRICES': 'fetch_prices',
    'MTG_WISHLIST_PRICE_PROVIDER': 'price_provider',
    'MTG_WISHLIST_PRICE_FALLBACK': 'price_fallback',
    'MTG_WISHLIST_SCRYFALL_URL': 'scryfall_base_url',
    'MTG_WISHLIST_API_TIMEOUT': 'api_timeout_seconds',
    'MTG_WISHLIST_OUTPUT_DIR': 'default_output_dir',
    'MTG_WISHLIST_VERBOSE': 'verbose_output',
}


def apply_env_overrides(config: ComparisonConfig) -> ComparisonConfig:
    """
    Override configuration options from MTG_WISHLIST_* environment variables.

    Values that cannot be converted to the option's type are ignored.

    Args:
        config: Configuration to update in place

    Returns:
        The same configuration object
    """
    option_types = _option_types()

    for env_var, option in ENV_OVERRIDES.items():
        raw = os.getenv(env_var)
        if raw is None:
            continue
        try:
            setattr(config, option, _convert(option_types[option], raw))
        except ValueError:
            logger.warning(f"Ignoring {env_var}={raw!r}: not a valid {option_types[option].__name__}")

    return config
