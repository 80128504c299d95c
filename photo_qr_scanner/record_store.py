"""
Guarded container for the session's photo records.
"""

import dataclasses
import threading
from datetime import datetime
from typing import Dict, List, Optional

from .logging_setup import get_logger
from .models import Coordinate, FieldKind, FieldUpdate, Lookup, PhotoRecord

logger = get_logger(__name__)


class RecordStore:
    """
    Holds one PhotoRecord per selected photo, in selection order.
    
    Every mutation and every read goes through a single lock, so merges are
    atomic relative to snapshots and concurrent writes to different photos
    are never lost. Readers always receive copies.
    """
    
    def __init__(self):
        self._records: Dict[str, PhotoRecord] = {}
        self._lock = threading.RLock()
    
    def create(
        self,
        photo_id: str,
        generation: int,
        timestamp: Optional[datetime] = None,
        coordinate: Optional[Coordinate] = None,
    ) -> PhotoRecord:
        """
        Create (or replace) the pending record for a photo.
        
        Notes and collector survive a replacement; enrichment fields restart
        as pending.
        """
        with self._lock:
            previous = self._records.pop(photo_id, None)
            record = PhotoRecord(
                photo_id=photo_id,
                generation=generation,
                timestamp=timestamp,
                coordinate=coordinate,
            )
            if previous is not None:
                record.notes = previous.notes
                record.collector = previous.collector
            self._records[photo_id] = record
            return dataclasses.replace(record)
    
    def remove(self, photo_id: str) -> bool:
        """Remove a record; returns False if it was not present."""
        with self._lock:
            return self._records.pop(photo_id, None) is not None
    
    def apply(self, update: FieldUpdate) -> bool:
        """
        Merge a lookup result into its record.
        
        The update is dropped when the photo was deselected, when it belongs
        to a superseded run, or when the field already left the pending
        state.
        
        Returns:
            True if the record changed
        """
        with self._lock:
            record = self._records.get(update.photo_id)
            if record is None:
                logger.debug(f"Dropping {update.kind.value} for deselected photo {update.photo_id}")
                return False
            if record.generation != update.generation:
                logger.debug(
                    f"Dropping stale {update.kind.value} for {update.photo_id} "
                    f"(run {update.generation}, current {record.generation})"
                )
                return False
            if not record.get_field(update.kind).is_pending:
                logger.debug(f"{update.kind.value} for {update.photo_id} already settled")
                return False
            record.set_field(update.kind, update.value)
            return True
    
    def edit(
        self,
        photo_id: str,
        qr_code: Optional[str] = None,
        notes: Optional[str] = None,
        collector: Optional[str] = None,
    ) -> Optional[PhotoRecord]:
        """
        Apply user edits to a record.
        
        A QR value overrides whatever the decoder finds; a blank value marks
        the code as not found.
        
        Returns:
            Copy of the updated record, or None if the photo is not selected
        """
        with self._lock:
            record = self._records.get(photo_id)
            if record is None:
                return None
            if qr_code is not None:
                qr_code = qr_code.strip()
                record.qr_code = Lookup.resolved(qr_code) if qr_code else Lookup.unresolved()
            if notes is not None:
                record.notes = notes
            if collector is not None:
                record.collector = collector.strip()
            return dataclasses.replace(record)
    
    def get(self, photo_id: str) -> Optional[PhotoRecord]:
        with self._lock:
            record = self._records.get(photo_id)
            return dataclasses.replace(record) if record is not None else None
    
    def snapshot(self) -> List[PhotoRecord]:
        """Consistent copy of all records, in selection order."""
        with self._lock:
            return [dataclasses.replace(record) for record in self._records.values()]
    
    def __contains__(self, photo_id: str) -> bool:
        with self._lock:
            return photo_id in self._records
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
