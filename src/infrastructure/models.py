"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``          -- employees and administrators (managed upstream)
* ``rides``          -- ride requests and their lifecycle status
* ``admin_actions``  -- append-only audit log of admin decisions

Indexes
-------
* **B-Tree** on ``rides.status``, ``rides.user_id``, ``rides.scheduled_time``
  and ``rides.created_at`` for the listing, reporting and eligibility queries.
* **B-Tree** on ``admin_actions.ride_id`` and ``admin_actions.created_at``
  for ride history and "recent actions".
"""

import uuid

from sqlalchemy import Column, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from .database import Base, UTCDateTime
from src.domain.dates import utcnow
from src.domain.enums import AdminActionType, RideStatus, UserRole


def _new_id() -> str:
    return str(uuid.uuid4())


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(32), nullable=True)
    company = Column(String(120), nullable=True)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)

    rides = relationship("RideModel", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return UserRole(self.role) == UserRole.ADMIN


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    pickup_location = Column(String(255), nullable=False)
    drop_location = Column(String(255), nullable=False)
    scheduled_time = Column(UTCDateTime(), nullable=False)
    purpose = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(Enum(RideStatus), default=RideStatus.PENDING, nullable=False)

    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)
    updated_at = Column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    user = relationship("UserModel", back_populates="rides")
    admin_actions = relationship(
        "AdminActionModel",
        back_populates="ride",
        order_by="AdminActionModel.created_at.desc()",
    )

    __table_args__ = (
        Index("idx_rides_status", "status"),
        Index("idx_rides_user", "user_id"),
        Index("idx_rides_scheduled", "scheduled_time"),
        Index("idx_rides_created", "created_at"),
    )


class AdminActionModel(Base):
    """Immutable: rows are inserted once and never updated or deleted."""

    __tablename__ = "admin_actions"

    id = Column(String(36), primary_key=True, default=_new_id)
    admin_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    ride_id = Column(String(36), ForeignKey("rides.id"), nullable=False)
    action = Column(Enum(AdminActionType), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)

    admin = relationship("UserModel")
    ride = relationship("RideModel", back_populates="admin_actions")

    __table_args__ = (
        Index("idx_admin_actions_ride", "ride_id"),
        Index("idx_admin_actions_created", "created_at"),
    )
