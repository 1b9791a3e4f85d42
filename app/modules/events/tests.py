"""
Tests para el módulo de Eventos
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from app.common.business_day import current_business_date
from app.common.exceptions import NotFoundError
from app.modules.events.schemas import EventCreate
from app.modules.events.service import EventService
from app.modules.notifications.notifier import EVENT_CREATED, EVENT_DELETED


class TestEventService:

    def test_create_and_delete_publish(self, db_session, notifier):
        service = EventService(db_session, notifier)
        event = service.create_event(EventCreate(name="Noche de mariachi", event_date=current_business_date()))
        service.delete_event(event.id)

        assert notifier.events() == [EVENT_CREATED, EVENT_DELETED]
        assert notifier.published[0][1]["name"] == "Noche de mariachi"
        assert notifier.published[1][1] == {"id": str(event.id)}
        assert service.list_events() == []

    def test_delete_unknown(self, db_session, notifier):
        with pytest.raises(NotFoundError):
            EventService(db_session, notifier).delete_event(uuid4())
        assert notifier.published == []

    def test_list_by_date_and_upcoming(self, db_session):
        service = EventService(db_session)
        today = current_business_date()
        later = service.create_event(EventCreate(name="Posada", event_date=today + timedelta(days=10)))
        past = service.create_event(EventCreate(name="Grito", event_date=today - timedelta(days=3)))
        soon = service.create_event(EventCreate(name="Karaoke", event_date=today))

        assert [e.id for e in service.list_events()] == [past.id, soon.id, later.id]
        assert [e.id for e in service.list_events(upcoming=True)] == [soon.id, later.id]


class TestEventAPI:

    def test_admin_only_writes(self, client, admin_headers, waiter_headers):
        payload = {"name": "Noche de mariachi", "event_date": str(current_business_date())}
        assert client.post("/events/", json=payload, headers=waiter_headers).status_code == 403

        response = client.post("/events/", json=payload, headers=admin_headers)
        assert response.status_code == 201
        event_id = response.json()["id"]

        assert client.get("/events/", headers=waiter_headers).json()["total"] == 1
        assert client.delete(f"/events/{event_id}", headers=admin_headers).status_code == 204
        assert client.delete(f"/events/{event_id}", headers=admin_headers).status_code == 404
