"""
Historic temperature lookup at the time and place a photo was taken.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

import numpy as np

from .config import AppConfig
from .logging_setup import get_logger
from .lookup_service import LookupService
from .models import Coordinate, Temperature

logger = get_logger(__name__)

HOUR_FORMAT = "%Y-%m-%dT%H:%M"


def _to_utc(moment: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def closest_hour_index(hours: Sequence[str], moment: datetime) -> Optional[int]:
    """
    Find the hourly entry nearest to a moment.
    
    Entries that cannot be parsed are skipped. When two entries are equally
    close the earlier index wins.
    
    Args:
        hours: UTC hour strings such as "2025-10-14T14:00"
        moment: Capture time
        
    Returns:
        Index into ``hours``, or None when no entry can be parsed
    """
    target = _to_utc(moment).timestamp()
    indices: List[int] = []
    seconds: List[float] = []
    for idx, text in enumerate(hours):
        try:
            hour = datetime.strptime(text, HOUR_FORMAT).replace(tzinfo=timezone.utc)
        except (TypeError, ValueError):
            continue
        indices.append(idx)
        seconds.append(hour.timestamp())
    
    if not indices:
        return None
    
    # argmin returns the first minimum, which gives earliest-index tie breaking
    diffs = np.abs(np.asarray(seconds, dtype=np.float64) - target)
    return indices[int(np.argmin(diffs))]


def select_temperature(hourly: dict, moment: datetime) -> Optional[Temperature]:
    """
    Pick the temperature for a moment out of an hourly series.
    
    Args:
        hourly: The "hourly" object with "time" and "temperature_2m" arrays
        moment: Capture time
        
    Returns:
        Temperature, or None if the series is empty, mismatched or unusable
    """
    if not isinstance(hourly, dict):
        return None
    times = hourly.get('time')
    temps = hourly.get('temperature_2m')
    if not isinstance(times, list) or not isinstance(temps, list) or len(times) != len(temps):
        logger.warning("Hourly temperature series is missing or mismatched")
        return None
    
    idx = closest_hour_index(times, moment)
    if idx is None:
        logger.warning("Hourly temperature series has no usable entries")
        return None
    
    celsius = temps[idx]
    if isinstance(celsius, bool) or not isinstance(celsius, (int, float)) or not np.isfinite(celsius):
        logger.warning(f"No temperature recorded for {times[idx]}")
        return None
    return Temperature.from_celsius(celsius)


class TemperatureResolver(LookupService):
    """Resolves the air temperature at a coordinate and capture time."""
    
    def __init__(self, config: AppConfig):
        super().__init__(config)
        self.weather_url = config.lookups.weather_url
    
    def resolve(self, coordinate: Coordinate, moment: datetime) -> Optional[Temperature]:
        """
        Fetch the hourly series around a photo and pick the closest hour.
        
        The series covers the trailing ``weather_past_days`` days through
        today, in UTC.
        
        Args:
            coordinate: Photo position
            moment: Capture time
            
        Returns:
            Temperature in both units, or None on any failure
        """
        params = {
            'latitude': coordinate.latitude,
            'longitude': coordinate.longitude,
            'hourly': 'temperature_2m',
            'timezone': 'UTC',
            'past_days': self.lookups.weather_past_days,
            'forecast_days': self.lookups.weather_forecast_days,
        }
        data = self.fetch_json(self.weather_url, params)
        if not isinstance(data, dict):
            logger.warning(f"Temperature lookup failed for {coordinate.latitude}, {coordinate.longitude}")
            return None
        
        temperature = select_temperature(data.get('hourly'), moment)
        if temperature is not None:
            logger.debug(f"Temperature at {moment}: {temperature.celsius:.1f}C")
        return temperature
