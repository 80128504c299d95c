"""
Record types shared by the enrichment pipeline, the store and the exporter.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from .address import Address

T = TypeVar("T")

FEET_PER_METER = 3.28084


class FieldState(enum.Enum):
    """Lifecycle of one enrichment field."""
    PENDING = "pending"
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"


class FieldKind(enum.Enum):
    """Enrichment fields filled in by background lookups."""
    QR_CODE = "qr_code"
    LOCATION = "location"
    TEMPERATURE = "temperature"


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """
    Value of an enrichment field.
    
    PENDING means the lookup has not finished; UNRESOLVED means it finished
    without a value. Only RESOLVED carries a value.
    """
    state: FieldState
    value: Optional[T] = None

    @classmethod
    def pending(cls) -> 'Lookup':
        return cls(FieldState.PENDING)

    @classmethod
    def resolved(cls, value: T) -> 'Lookup':
        return cls(FieldState.RESOLVED, value)

    @classmethod
    def unresolved(cls) -> 'Lookup':
        return cls(FieldState.UNRESOLVED)

    @property
    def is_pending(self) -> bool:
        return self.state is FieldState.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.state is FieldState.RESOLVED


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class Temperature:
    """Temperature in both units. Build with from_celsius()."""
    celsius: float
    fahrenheit: float

    @classmethod
    def from_celsius(cls, celsius: float) -> 'Temperature':
        celsius = float(celsius)
        return cls(celsius=celsius, fahrenheit=celsius * 9 / 5 + 32)


@dataclass(frozen=True)
class Place:
    """Reverse-geocoded location: display name plus structured attributes."""
    name: str
    address: Optional[Address] = None


@dataclass
class PhotoRecord:
    """Per-photo aggregate of identity plus derived metadata."""
    photo_id: str
    generation: int
    timestamp: Optional[datetime] = None
    coordinate: Optional[Coordinate] = None
    qr_code: Lookup = field(default_factory=Lookup.pending)
    location: Lookup = field(default_factory=Lookup.pending)
    temperature: Lookup = field(default_factory=Lookup.pending)
    notes: str = ""
    collector: str = ""

    @property
    def display_timestamp(self) -> str:
        if self.timestamp is None:
            return "Unknown"
        return self.timestamp.strftime("%Y-%m-%d %H:%M:%S")

    @property
    def lat_long(self) -> str:
        if self.coordinate is None:
            return "No location"
        return f"{self.coordinate.latitude:.5f}, {self.coordinate.longitude:.5f}"

    @property
    def elevation(self) -> str:
        if self.location.is_resolved and self.location.value.address:
            elevation = self.location.value.address.get("elevation")
            if isinstance(elevation, str):
                return elevation
        return "N/A"

    def get_field(self, kind: FieldKind) -> Lookup:
        return getattr(self, kind.value)

    def set_field(self, kind: FieldKind, value: Lookup) -> None:
        setattr(self, kind.value, value)


@dataclass(frozen=True)
class FieldUpdate:
    """Merge message handed from a finished lookup to the record store."""
    photo_id: str
    generation: int
    kind: FieldKind
    value: Lookup


@dataclass
class PhotoAsset:
    """A photo ready for selection: identity, capture metadata and pixels."""
    photo_id: str
    timestamp: Optional[datetime]
    coordinate: Optional[Coordinate]
    image: Any = None  # PIL.Image.Image
    path: Optional[str] = None
