from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from assetflow.apps.accounts import models as account_models
from assetflow.apps.audits.errors import InvalidArgument
from assetflow.apps.audits.normalize import normalize_serial
from assetflow.database import get_read_db
from assetflow.security import require_superadmin

from . import schemas, services

router = APIRouter(
    prefix="/api/audits",
    tags=["inventory"],
)


@router.get("/locations", response_model=List[schemas.InventoryLocationRead])
def list_locations(
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_superadmin),
):
    return services.list_locations(db)


@router.get("/inventory", response_model=schemas.LocationInventoryResponse)
def list_location_inventory(
    location: str = Query(..., description="Location code"),
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_superadmin),
):
    """Assets recorded at a location, as the audit engine will see them."""
    code = normalize_serial(location)
    if not code:
        raise InvalidArgument("Location is required.")
    provider = services.SqlInventorySnapshotProvider(db)
    records = provider.records_at_location(code)
    return schemas.LocationInventoryResponse(
        location=code,
        assets=[schemas.InventoryRecordRead.from_record(record) for record in records],
    )
