from __future__ import annotations

from typing import List

from pydantic import BaseModel

from assetflow.apps.audits.reconcile import InventoryRecord


class InventoryLocationRead(BaseModel):
    code: str
    name: str
    is_active: bool

    class Config:
        from_attributes = True


class InventoryRecordRead(BaseModel):
    assetId: str
    serialNumber: str
    status: str
    location: str

    @classmethod
    def from_record(cls, record: InventoryRecord) -> "InventoryRecordRead":
        return cls(
            assetId=record.asset_id,
            serialNumber=record.serial_number,
            status=record.status,
            location=record.location,
        )


class LocationInventoryResponse(BaseModel):
    location: str
    assets: List[InventoryRecordRead]
