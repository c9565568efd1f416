from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    desc,
    event,
)
from sqlalchemy.orm import relationship

from assetflow.database import Base
from assetflow.utils.identifiers import generate_uuid7

from .reconcile import Outcome


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImmutableAuditRecordError(RuntimeError):
    pass


class AuditRun(Base):
    """
    One reconciliation of a scanned serial list against a location.

    Written once; the counts are derived from the same result as the item
    rows and stored together.
    """

    __tablename__ = "audit_runs"
    __table_args__ = (
        Index("ix_audit_runs_created_desc", desc("created_at"), desc("id")),
        Index("ix_audit_runs_location_created", "location", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    auditor_name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False, index=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    total_items = Column(Integer, nullable=False)
    found_items = Column(Integer, nullable=False)
    missing_items = Column(Integer, nullable=False)
    unscanned_items = Column(Integer, nullable=False)
    duplicate_serials = Column(JSON, nullable=True)

    items = relationship(
        "AuditRunItem",
        back_populates="audit_run",
        order_by="AuditRunItem.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<AuditRun id={self.id} location={self.location} total={self.total_items}>"


class AuditRunItem(Base):
    """Classified serial or unscanned asset belonging to an audit run."""

    __tablename__ = "audit_run_items"
    __table_args__ = (
        Index("ix_audit_run_items_run_position", "audit_id", "position"),
        Index("ix_audit_run_items_serial", "serial_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    audit_id = Column(String(36), ForeignKey("audit_runs.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    outcome = Column(SAEnum(Outcome, name="audit_outcome_enum"), nullable=False, index=True)
    serial_number = Column(String(255), nullable=False, default="")
    asset_id = Column(String(64), nullable=True)
    status_snapshot = Column(String(50), nullable=True)
    recorded_location = Column(String(255), nullable=True)

    audit_run = relationship("AuditRun", back_populates="items")

    @property
    def scanned(self) -> bool:
        return self.outcome != Outcome.UNSCANNED


@event.listens_for(AuditRun, "before_update")
@event.listens_for(AuditRunItem, "before_update")
def _reject_update(mapper, connection, target) -> None:
    raise ImmutableAuditRecordError(f"{target!r} is immutable once recorded")


@event.listens_for(AuditRun, "before_delete")
@event.listens_for(AuditRunItem, "before_delete")
def _reject_delete(mapper, connection, target) -> None:
    raise ImmutableAuditRecordError(f"{target!r} cannot be deleted")
