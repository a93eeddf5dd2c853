"""
Tests for configuration management.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from mtg_wishlist_checker.config import (
    ComparisonConfig, ConfigManager, apply_env_overrides, get_default_config
)


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.config_dir = Path(self.temp_dir) / "config"

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def test_creates_default_config_file(self):
        manager = ConfigManager(self.config_dir)

        self.assertTrue(manager.config_file.exists())
        with open(manager.config_file, 'r', encoding='utf-8') as f:
            data = json.load(f)

        self.assertEqual(data['price_provider'], 'tcgplayer')
        self.assertFalse(data['ignore_edition'])
        self.assertEqual(manager.get_config(), ComparisonConfig())

    def test_update_config_persists(self):
        manager = ConfigManager(self.config_dir)
        manager.update_config(price_provider='cardmarket', fetch_prices=True)

        reloaded = ConfigManager(self.config_dir).get_config()

        self.assertEqual(reloaded.price_provider, 'cardmarket')
        self.assertTrue(reloaded.fetch_prices)

    def test_update_config_unknown_option(self):
        manager = ConfigManager(self.config_dir)

        with self.assertRaises(ValueError):
            manager.update_config(card_theme='dark')

    def test_corrupted_config_is_backed_up(self):
        self.config_dir.mkdir(parents=True)
        config_file = self.config_dir / "config.json"
        config_file.write_text("{not valid json", encoding='utf-8')

        manager = ConfigManager(self.config_dir)

        self.assertEqual(manager.get_config(), ComparisonConfig())
        self.assertTrue((self.config_dir / "config.json.backup").exists())
        self.assertTrue(config_file.exists())

    def test_unknown_keys_in_file_are_ignored(self):
        self.config_dir.mkdir(parents=True)
        (self.config_dir / "config.json").write_text(
            json.dumps({'ignore_edition': True, 'obsolete_option': 1}), encoding='utf-8'
        )

        config = ConfigManager(self.config_dir).get_config()

        self.assertTrue(config.ignore_edition)
        self.assertFalse(hasattr(config, 'obsolete_option'))

    def test_reset_to_defaults(self):
        manager = ConfigManager(self.config_dir)
        manager.update_config(ignore_edition=True)

        manager.reset_to_defaults()

        self.assertFalse(ConfigManager(self.config_dir).get_config().ignore_edition)

    def test_get_logs_dir(self):
        logs_dir = ConfigManager(self.config_dir).get_logs_dir()

        self.assertTrue(logs_dir.is_dir())
        self.assertEqual(logs_dir, self.config_dir / "logs")


class TestEnvironmentOverrides(unittest.TestCase):
    """Test cases for environment variable overrides."""

    def test_overrides_applied(self):
        env = {
            'MTG_WISHLIST_IGNORE_EDITION': 'true',
            'MTG_WISHLIST_PRICE_PROVIDER': 'cardhoarder',
            'MTG_WISHLIST_API_TIMEOUT': '30',
            'MTG_WISHLIST_FETCH_PRICES': 'TRUE',
        }

        with patch.dict(os.environ, env):
            config = apply_env_overrides(get_default_config())

        self.assertTrue(config.ignore_edition)
        self.assertTrue(config.fetch_prices)
        self.assertEqual(config.price_provider, 'cardhoarder')
        self.assertEqual(config.api_timeout_seconds, 30)

    def test_invalid_values_ignored(self):
        with patch.dict(os.environ, {'MTG_WISHLIST_API_TIMEOUT': 'soon'}):
            config = apply_env_overrides(get_default_config())

        self.assertEqual(config.api_timeout_seconds, 15)

    def test_false_values(self):
        config = ComparisonConfig(verbose_output=True)

        with patch.dict(os.environ, {'MTG_WISHLIST_VERBOSE': 'no'}):
            apply_env_overrides(config)

        self.assertFalse(config.verbose_output)


if __name__ == '__main__':
    unittest.main()
