"""
Eventos del restaurante (noches temáticas, reservaciones de grupo, etc.)
"""
from sqlalchemy import Column, String, Text, Date, Enum
from app.database.database import Base
from app.common.mixins import BaseMixin
import enum


class EventStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Event(Base, BaseMixin):
    __tablename__ = "events"

    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(Date, nullable=False, index=True)
    status = Column(
        Enum(EventStatus, values_callable=lambda e: [m.value for m in e], name="event_status"),
        nullable=False,
        default=EventStatus.ACTIVE
    )
