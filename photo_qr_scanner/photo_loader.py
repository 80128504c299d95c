"""
Load photo files into assets ready for selection.

Reads the pixels plus the EXIF capture time and GPS position with Pillow.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from PIL import Image, ExifTags

from .logging_setup import get_logger
from .models import Coordinate, PhotoAsset

logger = get_logger(__name__)

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


def _to_degrees(value: Any) -> Optional[float]:
    """Convert an EXIF (degrees, minutes, seconds) triple to decimal degrees."""
    if not value:
        return None
    try:
        d, m, s = value
        return float(d) + float(m) / 60.0 + float(s) / 3600.0
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def parse_gps(gps_info: Dict[Any, Any]) -> Optional[Coordinate]:
    """
    Build a coordinate from a GPS IFD.
    
    Args:
        gps_info: GPS IFD keyed by tag id or tag name
        
    Returns:
        Coordinate, or None when latitude or longitude is missing or invalid
    """
    named = {ExifTags.GPSTAGS.get(tag, tag): value for tag, value in gps_info.items()}
    
    lat = _to_degrees(named.get('GPSLatitude'))
    lon = _to_degrees(named.get('GPSLongitude'))
    if lat is None or lon is None:
        return None
    
    if named.get('GPSLatitudeRef') in ('S', b'S'):
        lat = -lat
    if named.get('GPSLongitudeRef') in ('W', b'W'):
        lon = -lon
    
    try:
        return Coordinate(lat, lon)
    except ValueError as e:
        logger.warning(f"Ignoring invalid GPS position: {e}")
        return None


def parse_exif_datetime(value: Any, offset: Any = None) -> Optional[datetime]:
    """
    Parse an EXIF DateTimeOriginal value.
    
    Args:
        value: "YYYY:MM:DD HH:MM:SS" string
        offset: Optional OffsetTimeOriginal value such as "+02:00"
        
    Returns:
        datetime (timezone-aware when an offset is given), or None
    """
    if not isinstance(value, str):
        return None
    try:
        dt = datetime.strptime(value.strip().rstrip('\x00'), EXIF_DATETIME_FORMAT)
    except ValueError:
        return None
    
    if isinstance(offset, str) and len(offset.strip()) == 6:
        offset = offset.strip()
        try:
            sign = -1 if offset[0] == '-' else 1
            delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
            dt = dt.replace(tzinfo=timezone(sign * delta))
        except ValueError:
            logger.debug(f"Ignoring malformed EXIF offset {offset!r}")
    return dt


def load_photo(path: str, photo_id: Optional[str] = None) -> PhotoAsset:
    """
    Load a photo file for enrichment.
    
    Args:
        path: Path to the image file
        photo_id: Identifier to use; defaults to the absolute path
        
    Returns:
        PhotoAsset with pixels loaded into memory
        
    Raises:
        OSError: If the file cannot be opened as an image
    """
    path = os.path.abspath(os.path.expanduser(path))
    
    with Image.open(path) as img:
        img.load()
        exif = img.getexif()
        image = img.copy()
    
    timestamp = None
    coordinate = None
    if exif:
        exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
        timestamp = parse_exif_datetime(
            exif_ifd.get(ExifTags.Base.DateTimeOriginal) or exif.get(ExifTags.Base.DateTime),
            exif_ifd.get(ExifTags.Base.OffsetTimeOriginal),
        )
        gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)
        if gps_ifd:
            coordinate = parse_gps(gps_ifd)
    
    if timestamp is None:
        timestamp = datetime.fromtimestamp(os.path.getmtime(path), tz=timezone.utc)
        logger.debug(f"No EXIF capture time in {path}, using file modification time")
    
    logger.debug(f"Loaded {path}: {image.width}x{image.height}, taken {timestamp}, at {coordinate}")
    return PhotoAsset(
        photo_id=photo_id or path,
        timestamp=timestamp,
        coordinate=coordinate,
        image=image,
        path=path,
    )
