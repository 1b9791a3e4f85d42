from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import CurrentUser, AdminUser
from app.modules.notifications.notifier import Notifier, get_notifier
from app.modules.events.service import EventService
from app.modules.events.schemas import EventCreate, EventOut, EventList

events_router = APIRouter(prefix="/events", tags=["Events"])


@events_router.get("/", response_model=EventList)
def list_events(
    user: CurrentUser,
    upcoming: bool = Query(False, description="Solo eventos de hoy en adelante"),
    db: Session = Depends(get_db)
):
    events = EventService(db).list_events(upcoming=upcoming)
    return EventList(events=events, total=len(events))


@events_router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    data: EventCreate,
    admin: AdminUser,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    return EventService(db, notifier).create_event(data)


@events_router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: UUID,
    admin: AdminUser,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    EventService(db, notifier).delete_event(event_id)
