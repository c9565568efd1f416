"""Reconciliation of a physical scan against the inventory record for one location."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence

from .errors import InvalidArgument
from .normalize import normalize_serial, normalize_serials

logger = logging.getLogger(__name__)


class Outcome(str, enum.Enum):
    FOUND = "FOUND"
    FOUND_DIFFERENT_LOCATION = "FOUND_DIFFERENT_LOCATION"
    NEW = "NEW"
    UNSCANNED = "UNSCANNED"


@dataclass(frozen=True)
class InventoryRecord:
    """One asset as the inventory knows it at audit time."""

    asset_id: str
    serial_number: str
    status: str
    location: str
    name: str = ""


@dataclass(frozen=True)
class FoundEntry:
    serial: str
    asset_id: str
    status: str
    location: str
    different_location: bool

    @property
    def outcome(self) -> Outcome:
        if self.different_location:
            return Outcome.FOUND_DIFFERENT_LOCATION
        return Outcome.FOUND


@dataclass
class ReconciliationResult:
    location: str
    scanned: list[str]
    found: list[FoundEntry] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    unscanned: list[InventoryRecord] = field(default_factory=list)
    duplicate_serials: list[str] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return len(self.scanned)

    @property
    def found_items(self) -> int:
        return len(self.found)

    @property
    def missing_items(self) -> int:
        return len(self.missing)


class InventorySnapshotProvider(Protocol):
    """Read access to the inventory the engine reconciles against."""

    def location_exists(self, location: str) -> bool:
        ...

    def records_at_location(self, location: str) -> list[InventoryRecord]:
        ...

    def records_by_serial(self, serials: Sequence[str]) -> list[InventoryRecord]:
        ...


def index_by_serial(records: Iterable[InventoryRecord]) -> tuple[dict[str, InventoryRecord], list[str]]:
    """
    Build a serial -> record lookup.

    The first record seen for a serial wins. Serials carried by more than
    one record are returned separately so they can be reported.
    """

    index: dict[str, InventoryRecord] = {}
    duplicates: dict[str, None] = {}
    for record in records:
        serial = normalize_serial(record.serial_number)
        if not serial:
            continue
        if serial in index:
            if index[serial].asset_id != record.asset_id:
                duplicates.setdefault(serial, None)
            continue
        index[serial] = record
    return index, list(duplicates)


def reconcile(
    location: str,
    scanned_serials: Iterable[str],
    provider: InventorySnapshotProvider,
) -> ReconciliationResult:
    """
    Classify every scanned serial as found, found elsewhere or new, and list
    the assets recorded at `location` that were not scanned.

    An empty scan is a valid audit: nothing is found or missing and every
    asset at the location is unscanned.
    """

    location = normalize_serial(location)
    if not location:
        raise InvalidArgument("Location is required.")
    if not provider.location_exists(location):
        raise InvalidArgument(f"Unknown location: {location}")

    scanned = normalize_serials(scanned_serials)
    location_records = provider.records_at_location(location)
    serial_index, duplicates = index_by_serial(provider.records_by_serial(scanned) if scanned else [])

    result = ReconciliationResult(location=location, scanned=scanned, duplicate_serials=duplicates)
    for serial in scanned:
        match = serial_index.get(serial)
        if match is None:
            result.missing.append(serial)
            continue
        result.found.append(
            FoundEntry(
                serial=serial,
                asset_id=match.asset_id,
                status=match.status,
                location=match.location,
                different_location=match.location != location,
            )
        )

    scanned_set = set(scanned)
    matched_asset_ids = {
        record.asset_id
        for record in location_records
        if normalize_serial(record.serial_number) in scanned_set
    }
    result.unscanned = [record for record in location_records if record.asset_id not in matched_asset_ids]

    if duplicates:
        logger.warning(
            "Inventory serials shared by more than one asset; first match used",
            extra={"location": location, "serials": duplicates},
        )
    return result
