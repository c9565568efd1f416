from __future__ import annotations

import logging
from typing import Callable, List, Sequence, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assetflow.apps.audits.errors import DependencyUnavailable
from assetflow.apps.audits.normalize import normalize_serial
from assetflow.apps.audits.reconcile import InventoryRecord

from . import models

logger = logging.getLogger(__name__)

# Keeps IN (...) lists under the SQLite bind-parameter ceiling.
SERIAL_LOOKUP_CHUNK = 500

T = TypeVar("T")


def _to_record(asset: models.Asset) -> InventoryRecord:
    return InventoryRecord(
        asset_id=str(asset.id),
        serial_number=normalize_serial(asset.serial_number),
        status=asset.status or "",
        location=asset.location or "",
        name=asset.name or "",
    )


class SqlInventorySnapshotProvider:
    """
    Inventory snapshot read from the `assets` table.

    Both reads run on the caller's session. Storage errors surface as
    DependencyUnavailable so no partial audit is written.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _read(self, what: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as exc:
            logger.exception("Inventory snapshot read failed", extra={"read": what})
            raise DependencyUnavailable("Inventory is temporarily unavailable; try again.") from exc

    def location_exists(self, location: str) -> bool:
        return self._read(
            "location",
            lambda: self.db.query(models.InventoryLocation.id)
            .filter(models.InventoryLocation.code == location)
            .first()
            is not None,
        )

    def records_at_location(self, location: str) -> List[InventoryRecord]:
        rows = self._read(
            "records_at_location",
            lambda: self.db.query(models.Asset)
            .filter(models.Asset.location == location)
            .order_by(models.Asset.id.asc())
            .all(),
        )
        return [_to_record(row) for row in rows]

    def records_by_serial(self, serials: Sequence[str]) -> List[InventoryRecord]:
        rows: list[models.Asset] = []
        for start in range(0, len(serials), SERIAL_LOOKUP_CHUNK):
            chunk = list(serials[start:start + SERIAL_LOOKUP_CHUNK])
            rows.extend(
                self._read(
                    "records_by_serial",
                    lambda: self.db.query(models.Asset)
                    .filter(func.trim(models.Asset.serial_number).in_(chunk))
                    .all(),
                )
            )
        rows.sort(key=lambda asset: str(asset.id))
        return [_to_record(row) for row in rows]


def list_locations(db: Session, *, include_inactive: bool = False) -> List[models.InventoryLocation]:
    query = db.query(models.InventoryLocation)
    if not include_inactive:
        query = query.filter(models.InventoryLocation.is_active.is_(True))
    return query.order_by(models.InventoryLocation.code.asc()).all()
