"""
Servicio de eventos: alta, listado y baja con notificación en tiempo real.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.common.business_day import current_business_date
from app.common.exceptions import NotFoundError
from app.database.database import transaction
from app.modules.events.models import Event
from app.modules.events.schemas import EventCreate, EventOut
from app.modules.notifications.notifier import EVENT_CREATED, EVENT_DELETED, Notifier, NullNotifier

logger = logging.getLogger(__name__)


class EventService:

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.notifier = notifier or NullNotifier()

    def list_events(self, upcoming: bool = False) -> List[Event]:
        """Eventos por fecha ascendente; ``upcoming`` descarta los ya pasados"""
        query = self.db.query(Event)
        if upcoming:
            query = query.filter(Event.event_date >= current_business_date())
        return query.order_by(Event.event_date.asc(), Event.created_at.asc()).all()

    def create_event(self, data: EventCreate) -> Event:
        with transaction(self.db):
            event = Event(
                name=data.name.strip(),
                description=data.description,
                event_date=data.event_date,
                status=data.status,
            )
            self.db.add(event)

        logger.info(f"Event {event.id} created for {event.event_date}")
        self.notifier.publish(EVENT_CREATED, EventOut.model_validate(event).model_dump(mode="json"))
        return event

    def delete_event(self, event_id: UUID) -> None:
        with transaction(self.db):
            event = self.db.get(Event, event_id)
            if event is None:
                raise NotFoundError("Evento no encontrado")
            self.db.delete(event)

        logger.info(f"Event {event_id} deleted")
        self.notifier.publish(EVENT_DELETED, {"id": str(event_id)})
