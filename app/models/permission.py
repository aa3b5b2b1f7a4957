"""
Permission matrix — modules and per-user capability grants.

A missing (user, module) row means every capability is false.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Integer, String,
                        UniqueConstraint)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Module(Base):
    __tablename__ = "modules"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    key: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    name: str = Column(String(255), nullable=False)  # type: ignore[assignment]


class UserModulePermission(Base):
    __tablename__ = "user_module_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_permission_user_module"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)  # type: ignore[assignment]
    module_id: int = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)  # type: ignore[assignment]
    can_view: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    can_create: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    can_update: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    can_delete: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", back_populates="permissions")
    module = relationship("Module")
