"""
Tests for the export encoding module.
"""
import json
import os
import shutil
import tempfile
import unittest
from datetime import datetime

from photo_qr_scanner.address import AddressValueError, encode_address
from photo_qr_scanner.exporter import (
    ExportError,
    ExportRecord,
    build_export_records,
    decode_export,
    encode_export,
    write_export,
)
from photo_qr_scanner.models import Coordinate, Lookup, PhotoRecord, Place, Temperature


def _record(**overrides):
    values = dict(
        photo_id="IMG_0042",
        generation=1,
        timestamp=datetime(2025, 10, 14, 14, 30, 45),
        coordinate=Coordinate(47.6062, -122.3321),
    )
    values.update(overrides)
    return PhotoRecord(**values)


class TestExportRecord(unittest.TestCase):
    """Test cases for projecting records into export records."""

    def test_pending_placeholders(self):
        exported = ExportRecord.from_record(_record()).to_dict()

        self.assertEqual(exported["qrCode"], "Scanning...")
        self.assertEqual(exported["temperatureC"], "Searching...")
        self.assertEqual(exported["temperatureF"], "Searching...")
        self.assertEqual(exported["location"], "Searching...")
        self.assertNotIn("address", exported)

    def test_unresolved_placeholders(self):
        record = _record(
            qr_code=Lookup.unresolved(),
            location=Lookup.unresolved(),
            temperature=Lookup.unresolved(),
        )
        exported = ExportRecord.from_record(record).to_dict()

        self.assertNotIn("qrCode", exported)
        self.assertEqual(exported["temperatureC"], "N/A")
        self.assertEqual(exported["temperatureF"], "N/A")
        self.assertEqual(exported["location"], "Unknown")

    def test_resolved_values(self):
        record = _record(
            qr_code=Lookup.resolved("SPECIMEN-42"),
            location=Lookup.resolved(Place("Seattle, Washington", {"city": "Seattle"})),
            temperature=Lookup.resolved(Temperature.from_celsius(21.25)),
            notes="moss on granite",
            collector="A. Gray",
        )
        exported = ExportRecord.from_record(record).to_dict()

        self.assertEqual(exported, {
            "photoID": "IMG_0042",
            "dateTimeOriginal": "2025-10-14 14:30:45",
            "latitude": "47.60620",
            "longitude": "-122.33210",
            "qrCode": "SPECIMEN-42",
            "temperatureC": "21.2",
            "temperatureF": "70.2",
            "notes": "moss on granite",
            "collector": "A. Gray",
            "location": "Seattle, Washington",
            "address": {"city": "Seattle"},
        })

    def test_missing_coordinate_and_timestamp(self):
        record = _record(timestamp=None, coordinate=None)
        exported = ExportRecord.from_record(record).to_dict()

        self.assertEqual(exported["latitude"], "")
        self.assertEqual(exported["longitude"], "")
        self.assertEqual(exported["dateTimeOriginal"], "Unknown")


class TestEncodeExport(unittest.TestCase):
    """Test cases for JSON encoding and decoding of exports."""

    def test_empty_export(self):
        self.assertEqual(encode_export([]), b"[]")

    def test_nested_address_without_escaped_slashes(self):
        address = {
            "website": "https://example.org/parks/discovery",
            "coordinates": [47.6, -122.4],
            "tags": {"public": True, "area_km2": 2.1, "note": None},
            "name": "Parc de l'Île",
        }
        record = _record(location=Lookup.resolved(Place("Discovery Park", address)))

        data = encode_export(build_export_records([record]))
        text = data.decode('utf-8')

        self.assertIn("https://example.org/parks/discovery", text)
        self.assertNotIn("\\/", text)
        self.assertIn("Île", text)
        self.assertEqual(json.loads(text)[0]["address"], address)

    def test_preserves_record_order(self):
        records = [_record(photo_id=name) for name in ("c", "a", "b")]
        exported = json.loads(encode_export(build_export_records(records)))
        self.assertEqual([item["photoID"] for item in exported], ["c", "a", "b"])

    def test_unencodable_address_raises(self):
        record = _record(location=Lookup.resolved(Place("Somewhere", {"bad": {1, 2}})))
        with self.assertRaises(ExportError):
            encode_export(build_export_records([record]))

    def test_decode_round_trip(self):
        record = _record(
            qr_code=Lookup.resolved("Q"),
            location=Lookup.resolved(Place("Here", {"levels": [1, 2.5, "three"]})),
        )
        export_records = build_export_records([record])

        self.assertEqual(decode_export(encode_export(export_records)), export_records)

    def test_decode_rejects_bad_documents(self):
        with self.assertRaises(ExportError):
            decode_export(b"{not json")
        with self.assertRaises(ExportError):
            decode_export(b'{"photoID": "x"}')
        with self.assertRaises(ExportError):
            decode_export(b'[{"photoID": "x"}]')
        with self.assertRaises(ExportError):
            decode_export(b'\xff\xfe')


class TestAddressEncoding(unittest.TestCase):
    """Test cases for address value normalization."""

    def test_tuples_become_lists(self):
        self.assertEqual(encode_address({"bbox": (1, 2)}), {"bbox": [1, 2]})

    def test_rejects_non_string_keys(self):
        with self.assertRaises(AddressValueError):
            encode_address({"outer": {1: "x"}})

    def test_rejects_non_finite_numbers(self):
        with self.assertRaises(AddressValueError):
            encode_address({"elevation": float("nan")})

    def test_none_address(self):
        self.assertIsNone(encode_address(None))


class TestWriteExport(unittest.TestCase):
    """Test cases for writing export files."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_write_creates_file(self):
        path = os.path.join(self.temp_dir, "out", "specimens.json")

        written = write_export(path, b"[]")

        self.assertEqual(written, path)
        with open(path, 'rb') as f:
            self.assertEqual(f.read(), b"[]")
        self.assertFalse(os.path.exists(path + ".tmp"))

    def test_write_failure_raises(self):
        # a directory cannot be replaced by a file
        target = os.path.join(self.temp_dir, "taken")
        os.makedirs(os.path.join(target, "child"))

        with self.assertRaises(ExportError):
            write_export(target, b"[]")


if __name__ == '__main__':
    unittest.main()
