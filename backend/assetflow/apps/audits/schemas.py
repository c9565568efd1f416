from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from assetflow.apps.inventory.schemas import InventoryRecordRead

from .reconcile import FoundEntry, Outcome


class CompareRequest(BaseModel):
    location: str
    serials: List[str] = Field(default_factory=list)
    auditorName: str


class FoundEntryRead(BaseModel):
    serial: str
    assetId: str
    status: str
    location: str
    differentLocation: bool

    @classmethod
    def from_entry(cls, entry: FoundEntry) -> "FoundEntryRead":
        return cls(
            serial=entry.serial,
            assetId=entry.asset_id,
            status=entry.status,
            location=entry.location,
            differentLocation=entry.different_location,
        )


class ComparisonRead(BaseModel):
    found: List[FoundEntryRead]
    missing: List[str]
    unscanned: List[InventoryRecordRead]
    duplicateSerials: List[str] = Field(default_factory=list)


class CompareResponse(ComparisonRead):
    auditId: Optional[str] = None
    recorded: bool
    error: Optional[str] = None


class UploadCompareResponse(CompareResponse):
    parsedSerials: List[str]


class AuditRunRead(BaseModel):
    auditId: str
    auditorName: str
    location: str
    createdBy: Optional[str] = None
    timestamp: datetime
    totalItems: int
    foundItems: int
    missingItems: int
    unscannedItems: int


class AuditRunDetail(AuditRunRead):
    result: ComparisonRead


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    hasMore: bool


class AuditHistoryResponse(BaseModel):
    data: List[AuditRunRead]
    pagination: Pagination


class AuditItemRead(BaseModel):
    id: int
    auditId: str
    position: int
    outcome: Outcome
    serialNumber: str
    assetId: Optional[str] = None
    statusSnapshot: Optional[str] = None
    recordedLocation: Optional[str] = None


class StatusChange(BaseModel):
    serialNumber: str
    from_: str = Field(alias="from")
    to: str

    class Config:
        populate_by_name = True


class AuditDiffRead(BaseModel):
    added: List[str]
    removed: List[str]
    statusChanged: List[StatusChange]
