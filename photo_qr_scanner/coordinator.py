"""
Per-photo enrichment: fans QR, location and temperature lookups out to worker
threads and merges their results into the record store.
"""

import itertools
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from datetime import datetime
from typing import Any, Callable, List, Optional, Set

from .config import AppConfig
from .exporter import ExportRecord, build_export_records, encode_export
from .location_resolver import LocationResolver
from .logging_setup import get_logger
from .models import Coordinate, FieldKind, FieldUpdate, Lookup, PhotoAsset, PhotoRecord
from .preferences import CollectorPreferences
from .qr_decoder import QrDecoder
from .record_store import RecordStore
from .temperature_resolver import TemperatureResolver

logger = get_logger(__name__)


class EnrichmentCoordinator:
    """
    Owns the session's photo records and the lookups that fill them in.

    Each selection starts a new run with its own generation number. The three
    lookups of a run execute independently on the worker pool; each hands its
    result to the record store as a FieldUpdate, which the store drops if the
    run has since been superseded or the photo deselected.
    """

    def __init__(
        self,
        config: AppConfig,
        store: Optional[RecordStore] = None,
        qr_decoder: Optional[QrDecoder] = None,
        location_resolver: Optional[LocationResolver] = None,
        temperature_resolver: Optional[TemperatureResolver] = None,
        preferences: Optional[CollectorPreferences] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            config: Application configuration
            store: Record container; a fresh one is created if omitted
            qr_decoder: QR decoder; built from config if omitted
            location_resolver: Location resolver; built from config if omitted
            temperature_resolver: Temperature resolver; built from config if omitted
            preferences: Collector name store; edits are not remembered if omitted
        """
        self.config = config
        self.store = store or RecordStore()
        self.qr_decoder = qr_decoder or QrDecoder(config)
        self.location_resolver = location_resolver or LocationResolver(config)
        self.temperature_resolver = temperature_resolver or TemperatureResolver(config)
        self.preferences = preferences

        self.executor = ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix="Enrich",
        )
        self._generations = itertools.count(1)
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    def select(
        self,
        photo_id: str,
        timestamp: Optional[datetime] = None,
        coordinate: Optional[Coordinate] = None,
        image: Any = None,
    ) -> List[Future]:
        """
        Start enriching a photo.

        QR decoding always runs. Location and temperature lookups run only
        when the photo has a coordinate (temperature also needs a timestamp);
        otherwise those fields are marked unresolved straight away.
        Selecting a photo that is already selected starts a new run.

        Args:
            photo_id: Stable photo identifier
            timestamp: Capture time
            coordinate: Capture position, if known
            image: PIL image to scan for a QR code

        Returns:
            Futures of the lookups launched for this run
        """
        with self._lock:
            generation = next(self._generations)
        self.store.create(photo_id, generation, timestamp=timestamp, coordinate=coordinate)
        logger.info(f"Selected {photo_id} (run {generation})")

        futures = [
            self._submit(photo_id, generation, FieldKind.QR_CODE, self._decode_qr, image),
        ]

        if coordinate is not None:
            futures.append(self._submit(
                photo_id, generation, FieldKind.LOCATION,
                self.location_resolver.resolve, coordinate,
            ))
        else:
            self._merge(FieldUpdate(photo_id, generation, FieldKind.LOCATION, Lookup.unresolved()))

        if coordinate is not None and timestamp is not None:
            futures.append(self._submit(
                photo_id, generation, FieldKind.TEMPERATURE,
                self.temperature_resolver.resolve, coordinate, timestamp,
            ))
        else:
            self._merge(FieldUpdate(photo_id, generation, FieldKind.TEMPERATURE, Lookup.unresolved()))

        return futures

    def select_asset(self, asset: PhotoAsset) -> List[Future]:
        """Select a loaded photo asset."""
        return self.select(asset.photo_id, asset.timestamp, asset.coordinate, asset.image)

    def deselect(self, photo_id: str) -> bool:
        """
        Drop a photo's record.

        Lookups already in flight keep running; their results are discarded
        when they arrive.

        Returns:
            True if the photo was selected
        """
        removed = self.store.remove(photo_id)
        if removed:
            logger.info(f"Deselected {photo_id}")
        return removed

    def is_selected(self, photo_id: str) -> bool:
        return photo_id in self.store

    def record(self, photo_id: str) -> Optional[PhotoRecord]:
        return self.store.get(photo_id)

    def records(self) -> List[PhotoRecord]:
        """Snapshot of the current records, in selection order."""
        return self.store.snapshot()

    def edit(
        self,
        photo_id: str,
        qr_code: Optional[str] = None,
        notes: Optional[str] = None,
        collector: Optional[str] = None,
    ) -> Optional[PhotoRecord]:
        """
        Apply user edits to a selected photo.

        A non-blank collector name is also added to the collector suggestions.

        Returns:
            Updated record, or None if the photo is not selected
        """
        updated = self.store.edit(photo_id, qr_code=qr_code, notes=notes, collector=collector)
        if updated is None:
            logger.warning(f"Cannot edit {photo_id}: not selected")
            return None
        if collector and self.preferences is not None:
            self.preferences.add(collector)
        return updated

    def collector_suggestions(self) -> List[str]:
        if self.preferences is None:
            return []
        return self.preferences.all()

    def export_records(self) -> List[ExportRecord]:
        return build_export_records(self.store.snapshot())

    def export_json(self) -> bytes:
        """
        Encode the current records as the export JSON document.

        Raises:
            ExportError: If encoding fails; the records are left untouched
        """
        return encode_export(self.export_records())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every lookup submitted so far has finished.

        Returns:
            True if all lookups finished within the timeout
        """
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool."""
        self.executor.shutdown(wait=wait)

    def _decode_qr(self, image: Any) -> Optional[str]:
        return self.qr_decoder.decode(image)

    def _submit(
        self,
        photo_id: str,
        generation: int,
        kind: FieldKind,
        func: Callable[..., Any],
        *args: Any,
    ) -> Future:
        future = self.executor.submit(self._run_lookup, photo_id, generation, kind, func, *args)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run_lookup(
        self,
        photo_id: str,
        generation: int,
        kind: FieldKind,
        func: Callable[..., Any],
        *args: Any,
    ) -> bool:
        """Run one lookup and merge its outcome; failures become unresolved values."""
        try:
            value = func(*args)
        except Exception as e:
            logger.error(f"{kind.value} lookup for {photo_id} failed: {str(e)}")
            if self.config.debug_mode:
                import traceback
                logger.error(f"Traceback: {traceback.format_exc()}")
            value = None

        if value is None or value == "":
            result = Lookup.unresolved()
        else:
            result = Lookup.resolved(value)
        return self._merge(FieldUpdate(photo_id, generation, kind, result))

    def _merge(self, update: FieldUpdate) -> bool:
        applied = self.store.apply(update)
        if applied:
            logger.debug(f"{update.kind.value} for {update.photo_id}: {update.value.state.value}")
        return applied
