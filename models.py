"""
ORM models

- User: profile keyed by device id
- Event: one event administered by an organizer
- EntrantRecord: persisted status of one entrant for one event
- EventLog: append-only audit trail
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base
from core.entrant_status import EntrantStatus


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserRole:
    ENTRANT = "entrant"
    ORGANIZER = "organizer"
    ADMIN = "admin"

    ALL = (ENTRANT, ORGANIZER, ADMIN)


class User(Base):
    __tablename__ = "users"

    device_id = Column(String(128), primary_key=True)
    name = Column(String(200), nullable=False, default="")
    email = Column(String(200), nullable=False, default="")
    phone_number = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.ENTRANT)
    notification_history = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    organizer_device_id = Column(String(128), nullable=False, index=True)
    capacity = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    entrants = relationship(
        "EntrantRecord",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EntrantRecord.position",
    )
    logs = relationship("EventLog", cascade="all, delete-orphan")


class EntrantRecord(Base):
    __tablename__ = "entrant_records"
    __table_args__ = (
        UniqueConstraint("event_id", "device_id", name="uq_entrant_per_event"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    device_id = Column(String(128), nullable=False)
    status = Column(Enum(EntrantStatus), nullable=False)
    # Insertion order within the event; enumeration order of the tracker
    position = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    event = relationship("Event", back_populates="entrants")


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(String(36), primary_key=True, default=_uuid)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
