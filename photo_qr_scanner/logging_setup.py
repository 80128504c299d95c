"""
Logging configuration for the photo QR scanner.
"""

import logging
import os
import sys
from typing import Optional
from .config import AppConfig


def setup_logging(config: AppConfig, log_prefix: Optional[str] = None) -> None:
    """
    Configure logging based on settings.
    
    Args:
        config: Application configuration
        log_prefix: Optional prefix for the log file name
    """
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    if config.debug_mode:
        log_level = logging.DEBUG
    log_format = '%(asctime)s - %(levelname)s - %(message)s'
    
    log_file = config.log_file
    
    # Create a timestamp-based log file if prefix provided but no specific file
    if not log_file and log_prefix and config.debug_mode:
        import datetime
        timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        log_file = f"{log_prefix}_{timestamp}.log"
    
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)
            
        logging.basicConfig(
            filename=log_file,
            level=log_level,
            format=log_format
        )
        
        # Also log to console if debug mode is enabled
        if config.debug_mode:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(log_level)
            console.setFormatter(logging.Formatter(log_format))
            logging.getLogger('').addHandler(console)
    else:
        logging.basicConfig(
            level=log_level,
            format=log_format
        )
    
    # Set level for third-party loggers to reduce noise
    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    
    logging.info("Logging initialized")
    
    if config.debug_mode:
        logging.debug("Debug mode enabled")
        logging.debug(f"Python version: {sys.version}")
        logging.debug(f"Platform: {sys.platform}")
        logging.debug("Configuration summary:")
        logging.debug(f"  Max workers: {config.max_workers}")
        logging.debug(f"  Request timeout: {config.lookups.request_timeout}s")
        logging.debug(f"  Max retries: {config.lookups.max_retries}")
        logging.debug(f"  Decode long edge: {config.decode_target_long_edge}px")
        logging.debug(f"  Server: {config.server.host}:{config.server.port}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.
    
    Args:
        name: Name for the logger
        
    Returns:
        Logger instance
    """
    return logging.getLogger(name)
