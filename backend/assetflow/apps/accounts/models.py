# backend/assetflow/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Index,
    String,
)

from assetflow.database import Base
from assetflow.utils.identifiers import generate_short_id


class AccountRole(str, enum.Enum):
    """Roles resolved for the signed-in caller.

    Only SUPERADMIN may run or read inventory audits.
    """

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    AUDITOR = "auditor"
    USER = "user"


class User(Base):
    """
    Dashboard user account.

    Profile, preferences and notification settings live outside this
    service; only what the audit gate needs is stored here.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_role_active", "role", "is_active"),
    )

    id = Column(
        String(36),
        primary_key=True,
        default=generate_short_id,
    )
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)

    role = Column(
        Enum(AccountRole, name="account_role_enum"),
        nullable=False,
        default=AccountRole.USER,
        index=True,
    )

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    hashed_password = Column(String(255), nullable=False)

    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    @property
    def is_superadmin(self) -> bool:
        return self.role == AccountRole.SUPERADMIN

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
