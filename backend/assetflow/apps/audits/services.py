from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assetflow.apps.events.broker import EventBroker, EventEnvelope

from . import models
from .errors import InvalidArgument, NotFound, PersistenceFailure
from .normalize import normalize_serial
from .reconcile import (
    FoundEntry,
    InventoryRecord,
    InventorySnapshotProvider,
    Outcome,
    ReconciliationResult,
    reconcile,
)

logger = logging.getLogger(__name__)

HISTORY_DEFAULT_LIMIT = 50
HISTORY_MAX_LIMIT = int(os.getenv("AUDIT_HISTORY_MAX_LIMIT", "500"))


@dataclass
class ComparisonOutcome:
    """Result returned to the caller, with the stored run when the write succeeded."""

    result: ReconciliationResult
    audit_run: Optional[models.AuditRun] = None
    error: Optional[str] = None

    @property
    def recorded(self) -> bool:
        return self.audit_run is not None


@dataclass(frozen=True)
class StatusChange:
    serial_number: str
    previous: str
    current: str


@dataclass
class AuditDiff:
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    status_changed: List[StatusChange] = field(default_factory=list)


def _require_auditor_name(auditor_name: Optional[str]) -> str:
    name = (auditor_name or "").strip()
    if not name:
        raise InvalidArgument("Auditor name is required.")
    return name


def _items_from_result(result: ReconciliationResult) -> List[models.AuditRunItem]:
    items: List[models.AuditRunItem] = []

    def add(**values) -> None:
        items.append(models.AuditRunItem(position=len(items), **values))

    for entry in result.found:
        add(
            outcome=entry.outcome,
            serial_number=entry.serial,
            asset_id=entry.asset_id,
            status_snapshot=entry.status,
            recorded_location=entry.location,
        )
    for serial in result.missing:
        add(outcome=Outcome.NEW, serial_number=serial)
    for record in result.unscanned:
        add(
            outcome=Outcome.UNSCANNED,
            serial_number=record.serial_number,
            asset_id=record.asset_id,
            status_snapshot=record.status,
            recorded_location=record.location,
        )
    return items


# ---------------------------------------------------------------------------
# WRITE
# ---------------------------------------------------------------------------


def record_audit_run(
    db: Session,
    *,
    auditor_name: str,
    location: str,
    result: ReconciliationResult,
    created_by: Optional[str] = None,
) -> models.AuditRun:
    """
    Persist one audit run with its counts and classified items.

    Id and timestamp are assigned here, never taken from the caller.
    Storage errors roll back and raise PersistenceFailure.
    """
    name = _require_auditor_name(auditor_name)
    location = normalize_serial(location)
    if not location:
        raise InvalidArgument("Location is required.")

    run = models.AuditRun(
        auditor_name=name,
        location=location,
        created_by=created_by,
        total_items=result.total_items,
        found_items=result.found_items,
        missing_items=result.missing_items,
        unscanned_items=len(result.unscanned),
        duplicate_serials=list(result.duplicate_serials) or None,
        items=_items_from_result(result),
    )
    try:
        db.add(run)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "Failed to record audit run",
            extra={"location": location, "total_items": result.total_items},
        )
        raise PersistenceFailure("Audit result could not be recorded.") from exc

    logger.info(
        "Recorded audit run",
        extra={
            "audit_id": run.id,
            "location": location,
            "total_items": run.total_items,
            "found_items": run.found_items,
            "missing_items": run.missing_items,
            "unscanned_items": run.unscanned_items,
        },
    )
    return run


def _publish_completed(broker: EventBroker, run: models.AuditRun, actor: Optional[str]) -> None:
    try:
        broker.publish(
            EventEnvelope(
                type="audit.completed",
                entityType="audit",
                entityId=str(run.id),
                action="audit.completed",
                severity="warning" if run.missing_items or run.unscanned_items else "info",
                actor={"email": actor} if actor else None,
                details=f"Audit completed for {run.location}: {run.found_items}/{run.total_items} found",
                metadata={
                    "location": run.location,
                    "totalItems": run.total_items,
                    "foundItems": run.found_items,
                    "missingItems": run.missing_items,
                    "unscannedItems": run.unscanned_items,
                },
            )
        )
    except Exception:
        logger.warning("Failed to publish audit event", extra={"audit_id": run.id})


def compare_and_record(
    db: Session,
    provider: InventorySnapshotProvider,
    *,
    location: str,
    serials: Iterable[str],
    auditor_name: str,
    created_by: Optional[str] = None,
    broker: Optional[EventBroker] = None,
) -> ComparisonOutcome:
    """
    Reconcile `serials` against `location` and record the run.

    Snapshot failures propagate. A failed write still returns the computed
    result, flagged as not recorded.
    """
    name = _require_auditor_name(auditor_name)
    result = reconcile(location, serials, provider)

    try:
        run = record_audit_run(
            db,
            auditor_name=name,
            location=result.location,
            result=result,
            created_by=created_by,
        )
    except PersistenceFailure as exc:
        return ComparisonOutcome(result=result, error=exc.message)

    if broker is not None:
        _publish_completed(broker, run, created_by)
    return ComparisonOutcome(result=result, audit_run=run)


# ---------------------------------------------------------------------------
# READ
# ---------------------------------------------------------------------------


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return HISTORY_DEFAULT_LIMIT
    return max(1, min(int(limit), HISTORY_MAX_LIMIT))


def list_audit_runs(
    db: Session,
    *,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Tuple[List[models.AuditRun], int]:
    """Newest first; returns the page and the total number of runs."""
    limit = clamp_limit(limit)
    offset = max(0, offset)
    query = db.query(models.AuditRun)
    total = query.count()
    runs = (
        query.order_by(models.AuditRun.created_at.desc(), models.AuditRun.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return runs, total


def get_audit_run(db: Session, audit_id: str) -> models.AuditRun:
    run = db.get(models.AuditRun, (audit_id or "").strip())
    if run is None:
        raise NotFound(f"Audit {audit_id} not found.")
    return run


def list_audit_items(db: Session, audit_id: str) -> List[models.AuditRunItem]:
    return list(get_audit_run(db, audit_id).items)


def result_from_run(run: models.AuditRun) -> ReconciliationResult:
    """Rebuild the found / missing / unscanned buckets from stored items."""
    result = ReconciliationResult(
        location=run.location,
        scanned=[],
        duplicate_serials=list(run.duplicate_serials or []),
    )
    for item in run.items:
        if item.outcome in (Outcome.FOUND, Outcome.FOUND_DIFFERENT_LOCATION):
            result.scanned.append(item.serial_number)
            result.found.append(
                FoundEntry(
                    serial=item.serial_number,
                    asset_id=item.asset_id or "",
                    status=item.status_snapshot or "",
                    location=item.recorded_location or "",
                    different_location=item.outcome == Outcome.FOUND_DIFFERENT_LOCATION,
                )
            )
        elif item.outcome == Outcome.NEW:
            result.scanned.append(item.serial_number)
            result.missing.append(item.serial_number)
        else:
            result.unscanned.append(
                InventoryRecord(
                    asset_id=item.asset_id or "",
                    serial_number=item.serial_number,
                    status=item.status_snapshot or "",
                    location=item.recorded_location or "",
                )
            )
    return result


def _scanned_by_serial(items: Sequence[models.AuditRunItem]) -> dict[str, models.AuditRunItem]:
    return {item.serial_number: item for item in items if item.scanned}


def diff_audit_runs(db: Session, current_id: str, previous_id: str) -> AuditDiff:
    """
    Compare the scanned serials of two runs.

    `added` were scanned now but not before, `removed` the reverse;
    `status_changed` lists serials whose recorded status differs.
    """
    if not (previous_id or "").strip():
        raise InvalidArgument("Missing previous audit id.")
    current = _scanned_by_serial(list_audit_items(db, current_id))
    previous = _scanned_by_serial(list_audit_items(db, previous_id))

    diff = AuditDiff()
    diff.added = [serial for serial in current if serial not in previous]
    diff.removed = [serial for serial in previous if serial not in current]
    for serial, item in current.items():
        before = previous.get(serial)
        if (
            before is not None
            and before.status_snapshot
            and item.status_snapshot
            and before.status_snapshot != item.status_snapshot
        ):
            diff.status_changed.append(
                StatusChange(
                    serial_number=serial,
                    previous=before.status_snapshot,
                    current=item.status_snapshot,
                )
            )
    return diff
