"""
Export encoding of the current record set.

The same JSON document is written to export files and served at
/specimens.json.
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .address import Address, AddressValueError, decode_address, encode_address
from .logging_setup import get_logger
from .models import FieldState, PhotoRecord

logger = get_logger(__name__)

PENDING_QR = "Scanning..."
PENDING_TEXT = "Searching..."
UNRESOLVED_TEMPERATURE = "N/A"
UNRESOLVED_LOCATION = "Unknown"


class ExportError(Exception):
    """Raised when an export cannot be encoded or written."""


@dataclass(frozen=True)
class ExportRecord:
    """Immutable, serialization-ready projection of a PhotoRecord."""
    photoID: str
    dateTimeOriginal: str
    latitude: str
    longitude: str
    qrCode: Optional[str]
    temperatureC: str
    temperatureF: str
    notes: str
    collector: str
    location: str
    address: Optional[Address] = None

    @classmethod
    def from_record(cls, record: PhotoRecord) -> 'ExportRecord':
        if record.coordinate is not None:
            latitude = f"{record.coordinate.latitude:.5f}"
            longitude = f"{record.coordinate.longitude:.5f}"
        else:
            latitude = longitude = ""
        
        if record.qr_code.state is FieldState.PENDING:
            qr_code = PENDING_QR
        elif record.qr_code.state is FieldState.RESOLVED:
            qr_code = record.qr_code.value
        else:
            qr_code = None
        
        if record.temperature.state is FieldState.RESOLVED:
            temperature_c = f"{record.temperature.value.celsius:.1f}"
            temperature_f = f"{record.temperature.value.fahrenheit:.1f}"
        elif record.temperature.state is FieldState.PENDING:
            temperature_c = temperature_f = PENDING_TEXT
        else:
            temperature_c = temperature_f = UNRESOLVED_TEMPERATURE
        
        address = None
        if record.location.state is FieldState.RESOLVED:
            location = record.location.value.name
            address = record.location.value.address
        elif record.location.state is FieldState.PENDING:
            location = PENDING_TEXT
        else:
            location = UNRESOLVED_LOCATION
        
        return cls(
            photoID=record.photo_id,
            dateTimeOriginal=record.display_timestamp,
            latitude=latitude,
            longitude=longitude,
            qrCode=qr_code,
            temperatureC=temperature_c,
            temperatureF=temperature_f,
            notes=record.notes,
            collector=record.collector,
            location=location,
            address=address,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON object for this record; empty QR codes and missing addresses are omitted."""
        result = {
            'photoID': self.photoID,
            'dateTimeOriginal': self.dateTimeOriginal,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'temperatureC': self.temperatureC,
            'temperatureF': self.temperatureF,
            'notes': self.notes,
            'collector': self.collector,
            'location': self.location,
        }
        if self.qrCode:
            result['qrCode'] = self.qrCode
        if self.address is not None:
            result['address'] = encode_address(self.address)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExportRecord':
        """
        Decode one exported object.
        
        Raises:
            ExportError: If required keys are missing or have the wrong type
        """
        required = ('photoID', 'dateTimeOriginal', 'latitude', 'longitude', 'temperatureC',
                    'temperatureF', 'notes', 'collector', 'location')
        try:
            values = {key: data[key] for key in required}
        except (KeyError, TypeError) as e:
            raise ExportError(f"Missing export field: {e}")
        for key, value in values.items():
            if not isinstance(value, str):
                raise ExportError(f"Export field {key} must be a string")
        
        qr_code = data.get('qrCode')
        if qr_code is not None and not isinstance(qr_code, str):
            raise ExportError("Export field qrCode must be a string")
        try:
            address = decode_address(data.get('address'))
        except AddressValueError as e:
            raise ExportError(str(e))
        return cls(qrCode=qr_code, address=address, **values)


def build_export_records(records: Iterable[PhotoRecord]) -> List[ExportRecord]:
    """Project records into export records, keeping their order."""
    return [ExportRecord.from_record(record) for record in records]


def encode_export(export_records: Iterable[ExportRecord], indent: Optional[int] = 2) -> bytes:
    """
    Serialize export records to UTF-8 JSON.
    
    Raises:
        ExportError: If a record cannot be encoded
    """
    try:
        payload = [record.to_dict() for record in export_records]
        text = json.dumps(payload, indent=indent, sort_keys=True, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ExportError(f"Failed to encode export: {str(e)}")
    return text.encode('utf-8')


def decode_export(data: bytes) -> List[ExportRecord]:
    """
    Parse an export document back into records.
    
    Raises:
        ExportError: If the document is not a JSON array of export objects
    """
    try:
        payload = json.loads(data.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise ExportError(f"Invalid export document: {str(e)}")
    if not isinstance(payload, list):
        raise ExportError("Export document must be a JSON array")
    return [ExportRecord.from_dict(item) for item in payload]


def write_export(path: str, data: bytes) -> str:
    """
    Write an encoded export to a file.
    
    The data goes to a temporary file beside the destination, which is then
    renamed into place.
    
    Returns:
        Absolute path of the written file
        
    Raises:
        ExportError: If the file cannot be written
    """
    path = os.path.abspath(os.path.expanduser(path))
    tmp_path = f"{path}.tmp"
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(tmp_path, 'wb') as f:
            f.write(data)
        os.replace(tmp_path, path)
    except OSError as e:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise ExportError(f"Failed to write export to {path}: {str(e)}")
    logger.info(f"Exported {len(data)} bytes to {path}")
    return path
