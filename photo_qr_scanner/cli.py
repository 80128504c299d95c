"""
Command-line interface for the photo QR scanner.
"""

import os
import sys
import time
import argparse
from typing import List, Optional

from .config import AppConfig, default_config, load_config
from .coordinator import EnrichmentCoordinator
from .exporter import ExportError, write_export
from .http_server import ServerError, SpecimenServer
from .logging_setup import setup_logging, get_logger
from .photo_loader import load_photo
from .preferences import CollectorPreferences

logger = get_logger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Decode QR labels in photos, add location and temperature, and serve specimen data"
    )

    parser.add_argument(
        "photos",
        nargs="*",
        help="Image files to enrich"
    )

    parser.add_argument(
        "--config",
        default="config.json",
        help="Path to configuration JSON file (default: config.json, defaults if missing)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode regardless of config setting"
    )

    parser.add_argument(
        "--export",
        metavar="FILE",
        help="Write the enriched records as JSON to FILE"
    )

    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the records to a browser until interrupted"
    )

    parser.add_argument(
        "--port",
        type=int,
        help="Override server port from config file"
    )

    parser.add_argument(
        "--collector",
        help="Collector name to set on every photo"
    )

    parser.add_argument(
        "--notes",
        help="Notes to set on every photo"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Seconds to wait for lookups before exporting (default: 120)"
    )

    parser.add_argument(
        "--max-workers",
        type=int,
        help="Override max workers from config file"
    )

    parser.add_argument(
        "--list-collectors",
        action="store_true",
        help="Print remembered collector names and exit"
    )

    parser.add_argument(
        "--clear-collectors",
        action="store_true",
        help="Forget all remembered collector names"
    )

    return parser.parse_args(argv)


def process_arguments(args: argparse.Namespace, config: AppConfig) -> AppConfig:
    """
    Process command-line arguments and override config values.

    Args:
        args: Parsed arguments
        config: Loaded configuration

    Returns:
        Updated configuration
    """
    if args.debug:
        config.debug_mode = True
    if args.port is not None:
        config.server.port = args.port
    if args.max_workers:
        config.max_workers = args.max_workers

    return config


def serve_forever(server: SpecimenServer) -> None:
    """Block until Ctrl-C, then stop the server."""
    try:
        while server.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        server.stop()


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    Run the command-line interface.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    config = None
    coordinator = None
    try:
        args = parse_arguments(argv)

        if os.path.exists(args.config):
            config = load_config(args.config)
        else:
            config = default_config()
        config = process_arguments(args, config)

        setup_logging(config, log_prefix="photo_qr_scanner")
        if not os.path.exists(args.config):
            logger.info(f"No configuration at {args.config}, using defaults")

        preferences = CollectorPreferences(config.preferences_path)
        preferences.load()

        if args.clear_collectors:
            preferences.clear()
            logger.info("Collector names cleared")

        if args.list_collectors:
            for name in preferences.all():
                print(name)
            return 0

        coordinator = EnrichmentCoordinator(config, preferences=preferences)

        selected = []
        for path in args.photos:
            try:
                asset = load_photo(path)
            except OSError as e:
                logger.error(f"Cannot read {path}: {str(e)}")
                continue
            coordinator.select_asset(asset)
            selected.append(asset.photo_id)

        logger.info(f"Selected {len(selected)} of {len(args.photos)} photo(s)")

        if not coordinator.wait(timeout=args.timeout):
            logger.warning(f"Some lookups still running after {args.timeout:.0f}s; their fields stay pending")

        if args.collector is not None or args.notes is not None:
            for photo_id in selected:
                coordinator.edit(photo_id, notes=args.notes, collector=args.collector)

        for record in coordinator.records():
            logger.info(f"{record.photo_id}: {record.lat_long}, elevation {record.elevation}, taken {record.display_timestamp}")

        exit_code = 0
        if args.export:
            try:
                write_export(args.export, coordinator.export_json())
            except ExportError as e:
                logger.error(str(e))
                exit_code = 1

        if args.serve:
            server = SpecimenServer(config.server, snapshot_provider=coordinator.export_json)
            try:
                url = server.start()
            except ServerError as e:
                logger.error(f"Server unavailable: {str(e)}")
                return 1
            print(f"Serving specimen labels at {url} (Ctrl-C to stop)")
            serve_forever(server)
        elif not args.export:
            sys.stdout.write(coordinator.export_json().decode('utf-8') + "\n")

        return exit_code

    except Exception as e:
        logger.error(f"Script execution failed: {str(e)}")
        if config is not None and config.debug_mode:
            import traceback
            logger.error(f"Traceback: {traceback.format_exc()}")
        return 1
    finally:
        if coordinator is not None:
            coordinator.shutdown(wait=False)
