"""
Configuration handling for the photo QR scanner.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field, asdict, fields
from typing import Optional, Any

logger = logging.getLogger(__name__)

ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


@dataclass
class LookupConfig:
    """Public web services used by the location and temperature resolvers."""
    geocoding_url: str = "https://nominatim.openstreetmap.org/reverse"
    elevation_url: str = "https://api.open-elevation.com/api/v1/lookup"
    weather_url: str = "https://api.open-meteo.com/v1/forecast"
    user_agent: str = "photo-qr-scanner/1.0"
    accept_language: str = "en"
    request_timeout: float = 10.0
    max_retries: int = 2
    weather_past_days: int = 31
    weather_forecast_days: int = 1


@dataclass
class ServerConfig:
    """Embedded HTTP server configuration."""
    host: str = "127.0.0.1"
    port: int = 8000
    assets_dir: Optional[str] = None  # None means the bundled assets/ directory
    backlog: int = 5
    client_timeout: float = 5.0
    read_buffer_size: int = 4096


@dataclass
class AppConfig:
    """Main application configuration."""
    lookups: LookupConfig = field(default_factory=LookupConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    max_workers: int = 8
    decode_target_long_edge: int = 1024
    decode_max_long_edge: int = 2048
    preferences_path: str = "~/.photo_qr_scanner/collectors.json"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    debug_mode: bool = False


def _expand_env(value: Any) -> Any:
    """
    Replace ${NAME} references with environment values, recursing into
    objects and arrays.
    
    Unset variables expand to an empty string and are logged.
    """
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if not isinstance(value, str):
        return value
    
    def lookup(match):
        name = match.group(1)
        if name not in os.environ:
            logger.warning(f"Environment variable {name} referenced in config is not set")
            return ""
        return os.environ[name]
    
    return ENV_REFERENCE.sub(lookup, value)


def _build_section(cls, values: Any, section: str):
    """Build a config section dataclass, rejecting unknown keys."""
    if values is None:
        return cls()
    if not isinstance(values, dict):
        raise ValueError(f"Configuration section '{section}' must be an object")
    
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown keys in '{section}' configuration: {', '.join(unknown)}")
    return cls(**values)


def default_config() -> AppConfig:
    """Return a configuration with every default applied."""
    return AppConfig()


def load_config(config_path: str) -> AppConfig:
    """
    Load and validate configuration from JSON file.
    
    Args:
        config_path: Path to the configuration JSON file
        
    Returns:
        AppConfig object
    
    Raises:
        ValueError: If the configuration is invalid
        RuntimeError: If the configuration file cannot be loaded
    """
    config_path = os.path.abspath(os.path.expanduser(config_path))
    
    try:
        with open(config_path, 'r') as cfg:
            config_dict = json.load(cfg)
    except (json.JSONDecodeError, IOError) as e:
        raise RuntimeError(f"Failed to load configuration from {config_path}: {str(e)}")
    
    if not isinstance(config_dict, dict):
        raise ValueError("Configuration root must be a JSON object")
    
    config_dict = _expand_env(config_dict)
    
    lookups = _build_section(LookupConfig, config_dict.pop('lookups', None), 'lookups')
    server = _build_section(ServerConfig, config_dict.pop('server', None), 'server')
    
    app_known = {f.name for f in fields(AppConfig)} - {'lookups', 'server'}
    unknown = sorted(set(config_dict) - app_known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
    
    config = AppConfig(lookups=lookups, server=server, **config_dict)
    
    if config.max_workers < 1:
        raise ValueError("max_workers must be at least 1")
    if config.lookups.request_timeout <= 0:
        raise ValueError("lookups.request_timeout must be positive")
    if config.lookups.max_retries < 1:
        raise ValueError("lookups.max_retries must be at least 1")
    
    return config


def save_config(config: AppConfig, config_path: str) -> None:
    """
    Save configuration to JSON file.
    
    Args:
        config: AppConfig object
        config_path: Path to save the configuration
        
    Raises:
        RuntimeError: If the configuration cannot be saved
    """
    try:
        with open(config_path, 'w') as f:
            json.dump(asdict(config), f, indent=2)
    except (IOError, TypeError) as e:
        raise RuntimeError(f"Failed to save configuration: {str(e)}")
