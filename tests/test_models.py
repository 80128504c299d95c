"""
Tests for the record model display properties.
"""
import unittest
from datetime import datetime

from photo_qr_scanner.models import (
    Coordinate,
    FieldKind,
    Lookup,
    PhotoRecord,
    Place,
)


class TestPhotoRecord(unittest.TestCase):
    """Test cases for PhotoRecord display properties."""

    def setUp(self):
        self.record = PhotoRecord(photo_id="IMG_0042", generation=1)

    def test_lat_long(self):
        self.record.coordinate = Coordinate(47.6062, -122.3321)
        self.assertEqual(self.record.lat_long, "47.60620, -122.33210")

    def test_lat_long_without_coordinate(self):
        self.assertEqual(self.record.lat_long, "No location")

    def test_elevation_from_resolved_address(self):
        self.record.location = Lookup.resolved(Place("Seattle", {"elevation": "50m / 164ft"}))
        self.assertEqual(self.record.elevation, "50m / 164ft")

    def test_elevation_fallbacks(self):
        self.assertEqual(self.record.elevation, "N/A")

        self.record.location = Lookup.unresolved()
        self.assertEqual(self.record.elevation, "N/A")

        self.record.location = Lookup.resolved(Place("Seattle", {"city": "Seattle"}))
        self.assertEqual(self.record.elevation, "N/A")

        self.record.location = Lookup.resolved(Place("Seattle"))
        self.assertEqual(self.record.elevation, "N/A")

    def test_display_timestamp(self):
        self.assertEqual(self.record.display_timestamp, "Unknown")
        self.record.timestamp = datetime(2025, 10, 14, 14, 30, 45)
        self.assertEqual(self.record.display_timestamp, "2025-10-14 14:30:45")

    def test_field_access_by_kind(self):
        self.record.set_field(FieldKind.TEMPERATURE, Lookup.unresolved())
        self.assertEqual(self.record.get_field(FieldKind.TEMPERATURE), Lookup.unresolved())
        self.assertTrue(self.record.get_field(FieldKind.QR_CODE).is_pending)

    def test_coordinate_range_checked(self):
        with self.assertRaises(ValueError):
            Coordinate(91.0, 0.0)
        with self.assertRaises(ValueError):
            Coordinate(0.0, -181.0)


if __name__ == '__main__':
    unittest.main()
