"""
Tests for the command-line interface.
"""
import json
import os
import shutil
import tempfile
import unittest
from datetime import datetime
from unittest.mock import patch, MagicMock

from photo_qr_scanner.cli import parse_arguments, process_arguments, run_cli
from photo_qr_scanner.config import AppConfig
from photo_qr_scanner.models import Coordinate, PhotoAsset, PhotoRecord


class TestCli(unittest.TestCase):
    """Test cases for run_cli."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.temp_dir, "config.json")
        self.preferences_path = os.path.join(self.temp_dir, "collectors.json")
        with open(self.config_path, 'w') as f:
            json.dump({"preferences_path": self.preferences_path}, f)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_process_arguments_overrides(self):
        args = parse_arguments(["--debug", "--port", "0", "--max-workers", "3"])
        config = process_arguments(args, AppConfig())

        self.assertTrue(config.debug_mode)
        self.assertEqual(config.server.port, 0)
        self.assertEqual(config.max_workers, 3)

    @patch('builtins.print')
    def test_list_collectors(self, mock_print):
        with open(self.preferences_path, 'w') as f:
            json.dump({"collectorValues": ["Muir", "Gray"]}, f)

        exit_code = run_cli(["--config", self.config_path, "--list-collectors"])

        self.assertEqual(exit_code, 0)
        printed = [call.args[0] for call in mock_print.call_args_list]
        self.assertEqual(printed, ["Gray", "Muir"])

    @patch('photo_qr_scanner.cli.EnrichmentCoordinator')
    @patch('photo_qr_scanner.cli.load_photo')
    def test_export_selected_photos(self, mock_load_photo, mock_coordinator_class):
        asset = PhotoAsset("IMG_1", datetime(2025, 10, 14, 14, 30), None)
        mock_load_photo.side_effect = [asset, OSError("cannot identify image file")]
        coordinator = MagicMock()
        coordinator.wait.return_value = True
        coordinator.export_json.return_value = b"[]"
        coordinator.records.return_value = [
            PhotoRecord("IMG_1", 1, coordinate=Coordinate(47.6062, -122.3321)),
            PhotoRecord("IMG_2", 2),
        ]
        mock_coordinator_class.return_value = coordinator
        export_path = os.path.join(self.temp_dir, "specimens.json")

        with self.assertLogs("photo_qr_scanner.cli", level="INFO") as logs:
            exit_code = run_cli([
                "--config", self.config_path,
                "--export", export_path,
                "--collector", "Muir",
                "a.jpg", "broken.jpg",
            ])

        self.assertEqual(exit_code, 0)
        coordinator.select_asset.assert_called_once_with(asset)
        coordinator.edit.assert_called_once_with("IMG_1", notes=None, collector="Muir")
        coordinator.shutdown.assert_called_once_with(wait=False)
        output = "\n".join(logs.output)
        self.assertIn("IMG_1: 47.60620, -122.33210, elevation N/A", output)
        self.assertIn("IMG_2: No location, elevation N/A, taken Unknown", output)
        with open(export_path, 'rb') as f:
            self.assertEqual(f.read(), b"[]")

    def test_invalid_config_fails(self):
        with open(self.config_path, 'w') as f:
            json.dump({"unknown_option": 1}, f)

        self.assertEqual(run_cli(["--config", self.config_path, "--list-collectors"]), 1)


if __name__ == '__main__':
    unittest.main()
