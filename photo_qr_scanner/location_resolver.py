"""
Reverse geocoding and elevation lookup for photo coordinates.
"""

from typing import Any, Dict, Optional

from .address import AddressValueError, encode_address
from .config import AppConfig
from .logging_setup import get_logger
from .lookup_service import LookupService
from .models import Coordinate, FEET_PER_METER, Place

logger = get_logger(__name__)

LOCALITY_KEYS = ('city', 'town', 'village', 'hamlet')


def format_elevation(meters: float) -> str:
    """Format an elevation as "123m / 404ft"."""
    return f"{meters:.0f}m / {meters * FEET_PER_METER:.0f}ft"


def format_place_name(name: Optional[str], address: Dict[str, Any]) -> str:
    """
    Build a single-line place name.
    
    Joins the place name, locality, state and country, skipping the place
    name when it merely repeats the locality.
    """
    locality = next((address[k] for k in LOCALITY_KEYS if address.get(k)), None)
    components = []
    if name and name != locality:
        components.append(name)
    for part in (locality, address.get('state'), address.get('country')):
        if part:
            components.append(str(part))
    return ", ".join(components) if components else "Unknown Location"


class LocationResolver(LookupService):
    """Resolves coordinates to a place name, address attributes and elevation."""
    
    def __init__(self, config: AppConfig):
        super().__init__(config)
        self.geocoding_url = config.lookups.geocoding_url
        self.elevation_url = config.lookups.elevation_url
    
    def resolve(self, coordinate: Coordinate) -> Optional[Place]:
        """
        Reverse geocode a coordinate, then look up its elevation.
        
        The elevation request is only issued once geocoding succeeded. A
        failed elevation lookup leaves the address without an "elevation"
        entry; a failed geocode returns None.
        
        Args:
            coordinate: Photo position
            
        Returns:
            Place if geocoding succeeded, None otherwise
        """
        place = self.reverse_geocode(coordinate)
        if place is None:
            return None
        
        meters = self.fetch_elevation(coordinate)
        if meters is None:
            return place
        
        address = dict(place.address or {})
        address['elevation'] = format_elevation(meters)
        return Place(name=place.name, address=address)
    
    def reverse_geocode(self, coordinate: Coordinate) -> Optional[Place]:
        """
        Look up the place at a coordinate.
        
        Args:
            coordinate: Photo position
            
        Returns:
            Place with the raw address mapping, or None on failure
        """
        params = {
            'lat': coordinate.latitude,
            'lon': coordinate.longitude,
            'format': 'jsonv2',
            'addressdetails': 1,
            'accept-language': self.lookups.accept_language,
        }
        data = self.fetch_json(self.geocoding_url, params)
        if not isinstance(data, dict) or 'error' in data:
            logger.warning(f"Reverse geocoding failed for {coordinate.latitude}, {coordinate.longitude}")
            return None
        
        raw_address = data.get('address')
        if not isinstance(raw_address, dict):
            raw_address = {}
        name = data.get('name') or None
        
        address = dict(raw_address)
        if name:
            address['name'] = name
        try:
            address = encode_address(address)
        except AddressValueError as e:
            logger.warning(f"Discarding malformed address: {e}")
            return None
        
        display_name = format_place_name(name, address)
        logger.debug(f"Geocoded {coordinate.latitude}, {coordinate.longitude} to {display_name}")
        return Place(name=display_name, address=address)
    
    def fetch_elevation(self, coordinate: Coordinate) -> Optional[float]:
        """
        Look up ground elevation in meters.
        
        Args:
            coordinate: Photo position
            
        Returns:
            Elevation in meters, or None on failure
        """
        params = {'locations': f"{coordinate.latitude},{coordinate.longitude}"}
        data = self.fetch_json(self.elevation_url, params)
        try:
            elevation = data['results'][0]['elevation']
        except (TypeError, KeyError, IndexError):
            logger.warning(f"Elevation lookup failed for {coordinate.latitude}, {coordinate.longitude}")
            return None
        
        if isinstance(elevation, bool) or not isinstance(elevation, (int, float)):
            logger.warning(f"Unexpected elevation value: {elevation!r}")
            return None
        return float(elevation)
