from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from assetflow.apps.accounts import models as account_models
from assetflow.apps.events.broker import EventBroker, get_event_broker
from assetflow.apps.inventory.schemas import InventoryRecordRead
from assetflow.apps.inventory.services import SqlInventorySnapshotProvider
from assetflow.database import get_db, get_read_db
from assetflow.security import require_superadmin

from . import export, models, schemas, services
from .errors import AuditError
from .ingest import decode_upload, parse_serials
from .reconcile import ReconciliationResult

router = APIRouter(
    prefix="/api/audits",
    tags=["audits"],
)


def _comparison_to_read(result: ReconciliationResult) -> schemas.ComparisonRead:
    return schemas.ComparisonRead(
        found=[schemas.FoundEntryRead.from_entry(entry) for entry in result.found],
        missing=list(result.missing),
        unscanned=[InventoryRecordRead.from_record(record) for record in result.unscanned],
        duplicateSerials=list(result.duplicate_serials),
    )


def _outcome_to_response(outcome: services.ComparisonOutcome) -> schemas.CompareResponse:
    comparison = _comparison_to_read(outcome.result)
    return schemas.CompareResponse(
        **comparison.model_dump(),
        auditId=str(outcome.audit_run.id) if outcome.audit_run is not None else None,
        recorded=outcome.recorded,
        error=outcome.error,
    )


def _run_to_read(run: models.AuditRun) -> schemas.AuditRunRead:
    return schemas.AuditRunRead(
        auditId=str(run.id),
        auditorName=run.auditor_name,
        location=run.location,
        createdBy=run.created_by,
        timestamp=run.created_at,
        totalItems=run.total_items,
        foundItems=run.found_items,
        missingItems=run.missing_items,
        unscannedItems=run.unscanned_items,
    )


def _item_to_read(item: models.AuditRunItem) -> schemas.AuditItemRead:
    return schemas.AuditItemRead(
        id=item.id,
        auditId=str(item.audit_id),
        position=item.position,
        outcome=item.outcome,
        serialNumber=item.serial_number,
        assetId=item.asset_id,
        statusSnapshot=item.status_snapshot,
        recordedLocation=item.recorded_location,
    )


@router.post("/compare", response_model=schemas.CompareResponse)
def compare_audit(
    payload: schemas.CompareRequest,
    db: Session = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker),
    current_user: account_models.User = Depends(require_superadmin),
):
    outcome = services.compare_and_record(
        db,
        SqlInventorySnapshotProvider(db),
        location=payload.location,
        serials=payload.serials,
        auditor_name=payload.auditorName,
        created_by=current_user.email,
        broker=broker,
    )
    return _outcome_to_response(outcome)


@router.post("/compare/upload", response_model=schemas.UploadCompareResponse)
async def compare_audit_upload(
    file: UploadFile = File(...),
    location: str = Form(...),
    auditorName: str = Form(...),
    db: Session = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker),
    current_user: account_models.User = Depends(require_superadmin),
):
    """
    Same as /compare, with the serial list read from an uploaded CSV.

    Errors after parsing still return `parsedSerials` so the client can
    retry through /compare without uploading again.
    """
    serials = parse_serials(decode_upload(await file.read()))
    try:
        outcome = services.compare_and_record(
            db,
            SqlInventorySnapshotProvider(db),
            location=location,
            serials=serials,
            auditor_name=auditorName,
            created_by=current_user.email,
            broker=broker,
        )
    except AuditError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "parsedSerials": serials},
        )
    return schemas.UploadCompareResponse(
        **_outcome_to_response(outcome).model_dump(),
        parsedSerials=serials,
    )


@router.get("/history", response_model=schemas.AuditHistoryResponse)
def audit_history(
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_superadmin),
):
    effective_limit = services.clamp_limit(limit)
    runs, total = services.list_audit_runs(db, limit=effective_limit, offset=offset)
    return schemas.AuditHistoryResponse(
        data=[_run_to_read(run) for run in runs],
        pagination=schemas.Pagination(
            total=total,
            limit=effective_limit,
            offset=offset,
            hasMore=offset + effective_limit < total,
        ),
    )


@router.get("/history/export")
def export_audit_history(
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_superadmin),
):
    runs, _ = services.list_audit_runs(db, limit=limit)
    filename = export.history_export_filename()
    return Response(
        content=export.render_history_csv(runs),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{audit_id}", response_model=schemas.AuditRunDetail)
def get_audit(
    audit_id: str,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_superadmin),
):
    run = services.get_audit_run(db, audit_id)
    return schemas.AuditRunDetail(
        **_run_to_read(run).model_dump(),
        result=_comparison_to_read(services.result_from_run(run)),
    )


@router.get("/{audit_id}/items", response_model=List[schemas.AuditItemRead])
def list_audit_items(
    audit_id: str,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_superadmin),
):
    return [_item_to_read(item) for item in services.list_audit_items(db, audit_id)]


@router.get("/{audit_id}/diff", response_model=schemas.AuditDiffRead)
def diff_audit(
    audit_id: str,
    previous: str = Query(..., description="Audit id to compare against"),
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_superadmin),
):
    diff = services.diff_audit_runs(db, audit_id, previous)
    return schemas.AuditDiffRead(
        added=diff.added,
        removed=diff.removed,
        statusChanged=[
            schemas.StatusChange(serialNumber=change.serial_number, from_=change.previous, to=change.current)
            for change in diff.status_changed
        ],
    )
