#!/usr/bin/env python3
"""
Example 2: Serving Specimen Labels to a Browser

This example enriches the photos given on the command line and keeps the
label page running. Open the printed URL and use the browser's print dialog
to produce labels; refresh the page to pick up lookups that finish later.
"""

import sys
import argparse
from pathlib import Path

# Add the parent directory to sys.path to import the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from photo_qr_scanner.cli import serve_forever
from photo_qr_scanner.config import default_config
from photo_qr_scanner.coordinator import EnrichmentCoordinator
from photo_qr_scanner.http_server import ServerError, SpecimenServer
from photo_qr_scanner.logging_setup import setup_logging
from photo_qr_scanner.photo_loader import load_photo


def label_server_example():
    """Label server example."""
    parser = argparse.ArgumentParser(description="Serve specimen labels for photos")
    parser.add_argument("photos", nargs="+", help="Image files to enrich")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    parser.add_argument("--collector", help="Collector name for every label")
    args = parser.parse_args()

    config = default_config()
    config.server.port = args.port
    setup_logging(config)

    coordinator = EnrichmentCoordinator(config)
    for path in args.photos:
        asset = load_photo(path)
        coordinator.select_asset(asset)
        if args.collector:
            coordinator.edit(asset.photo_id, collector=args.collector)

    # Lookups keep running while the page is served
    server = SpecimenServer(config.server, snapshot_provider=coordinator.export_json)
    try:
        url = server.start()
    except ServerError as e:
        print(f"Error: {e}")
        coordinator.shutdown(wait=False)
        return 1

    print(f"Labels available at {url} (Ctrl-C to stop)")
    serve_forever(server)
    coordinator.shutdown(wait=False)
    return 0


if __name__ == "__main__":
    sys.exit(label_server_example())
