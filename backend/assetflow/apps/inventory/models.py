from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    String,
    UniqueConstraint,
)

from assetflow.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryLocation(Base):
    """Site, building or room code that assets are grouped under."""

    __tablename__ = "inventory_locations"
    __table_args__ = (
        UniqueConstraint("code", name="uq_inventory_location_code"),
    )

    id = Column(String(64), primary_key=True)
    code = Column(String(64), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Asset(Base):
    """
    Asset row as maintained by the asset screens.

    The audit engine only reads it. `location` holds the location code,
    and `status` the free-text lifecycle state (e.g. "In Store (New)",
    "Allocated", "Lost / Missing").
    """

    __tablename__ = "assets"
    __table_args__ = (
        Index("ix_assets_location_serial", "location", "serial_number"),
    )

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    asset_type = Column("type", String(50), nullable=False)
    serial_number = Column(String(255), nullable=True, index=True)
    status = Column(String(50), nullable=False)
    location = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<Asset id={self.id} serial={self.serial_number} location={self.location}>"
