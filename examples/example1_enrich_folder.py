#!/usr/bin/env python3
"""
Example 1: Enrich Every Photo in a Folder

This example loads each JPEG in a folder, waits for QR, location and
temperature lookups to finish, and prints a one-line summary per photo.
"""

import os
import sys
import argparse
from pathlib import Path

# Add the parent directory to sys.path to import the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from photo_qr_scanner.config import default_config
from photo_qr_scanner.coordinator import EnrichmentCoordinator
from photo_qr_scanner.exporter import build_export_records
from photo_qr_scanner.logging_setup import setup_logging
from photo_qr_scanner.photo_loader import load_photo


def enrich_folder_example():
    """Folder enrichment example."""
    parser = argparse.ArgumentParser(description="Enrich all photos in a folder")
    parser.add_argument("folder", help="Folder containing .jpg files")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if not os.path.isdir(args.folder):
        print(f"Error: Folder not found: {args.folder}")
        return 1

    config = default_config()
    if args.debug:
        config.debug_mode = True
    setup_logging(config)

    coordinator = EnrichmentCoordinator(config)
    try:
        for name in sorted(os.listdir(args.folder)):
            if not name.lower().endswith((".jpg", ".jpeg")):
                continue
            try:
                coordinator.select_asset(load_photo(os.path.join(args.folder, name), photo_id=name))
            except OSError as e:
                print(f"Skipping {name}: {e}")

        print(f"Waiting for lookups on {len(coordinator.records())} photo(s)...")
        coordinator.wait(timeout=120)

        for record in build_export_records(coordinator.records()):
            print(f"{record.photoID}: QR={record.qrCode or '-'} | {record.location} | "
                  f"{record.temperatureC}C / {record.temperatureF}F")
    finally:
        coordinator.shutdown()

    return 0


if __name__ == "__main__":
    sys.exit(enrich_folder_example())
