"""
Tests for configuration loading.
"""
import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from photo_qr_scanner.config import (
    AppConfig,
    default_config,
    load_config,
    save_config,
)


class TestConfig(unittest.TestCase):
    """Test cases for load_config and save_config."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.temp_dir, "config.json")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, data):
        with open(self.config_path, 'w') as f:
            json.dump(data, f)

    def test_defaults(self):
        config = default_config()
        self.assertEqual(config.server.host, "127.0.0.1")
        self.assertEqual(config.server.port, 8000)
        self.assertEqual(config.lookups.weather_past_days, 31)
        self.assertEqual(config.decode_target_long_edge, 1024)

    def test_nested_sections(self):
        self._write({
            "lookups": {"request_timeout": 3.5, "max_retries": 4},
            "server": {"port": 9090},
            "max_workers": 2,
        })

        config = load_config(self.config_path)

        self.assertEqual(config.lookups.request_timeout, 3.5)
        self.assertEqual(config.lookups.max_retries, 4)
        self.assertEqual(config.lookups.accept_language, "en")
        self.assertEqual(config.server.port, 9090)
        self.assertEqual(config.server.host, "127.0.0.1")
        self.assertEqual(config.max_workers, 2)

    @patch.dict(os.environ, {"CONTACT_EMAIL": "curator@example.org"})
    def test_environment_substitution(self):
        self._write({"lookups": {"user_agent": "photo-qr-scanner/1.0 (${CONTACT_EMAIL})"}})

        config = load_config(self.config_path)

        self.assertEqual(config.lookups.user_agent, "photo-qr-scanner/1.0 (curator@example.org)")

    @patch.dict(os.environ, {}, clear=True)
    def test_unset_environment_variable_logged(self):
        self._write({"lookups": {"user_agent": "scanner (${MISSING_CONTACT})"}})

        with self.assertLogs("photo_qr_scanner.config", level="WARNING") as logs:
            config = load_config(self.config_path)

        self.assertEqual(config.lookups.user_agent, "scanner ()")
        self.assertIn("MISSING_CONTACT", logs.output[0])

    def test_unknown_keys_rejected(self):
        self._write({"server": {"prot": 80}})
        with self.assertRaises(ValueError):
            load_config(self.config_path)

        self._write({"workers": 3})
        with self.assertRaises(ValueError):
            load_config(self.config_path)

    def test_invalid_values_rejected(self):
        self._write({"max_workers": 0})
        with self.assertRaises(ValueError):
            load_config(self.config_path)

        self._write({"lookups": {"request_timeout": 0}})
        with self.assertRaises(ValueError):
            load_config(self.config_path)

    def test_missing_file(self):
        with self.assertRaises(RuntimeError):
            load_config(os.path.join(self.temp_dir, "absent.json"))

    def test_invalid_json(self):
        with open(self.config_path, 'w') as f:
            f.write("{")
        with self.assertRaises(RuntimeError):
            load_config(self.config_path)

    def test_save_and_load(self):
        config = AppConfig()
        config.server.port = 8123
        config.debug_mode = True

        save_config(config, self.config_path)
        loaded = load_config(self.config_path)

        self.assertEqual(loaded.server.port, 8123)
        self.assertTrue(loaded.debug_mode)


if __name__ == '__main__':
    unittest.main()
