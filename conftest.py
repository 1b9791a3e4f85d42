"""
Fixtures compartidas por los tests de cada módulo (app/modules/*/tests.py)

- Base de datos SQLite en memoria, esquema nuevo por test
- Notifier que registra lo publicado
- Redis falso para los códigos de restablecimiento
- Usuarios por rol y headers con token Bearer
- TestClient con las dependencias sustituidas
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.redis import get_redis
from app.database.database import Base, SessionLocal, engine, get_db
from app.modules.auth.models import Role, User
from app.modules.auth.router import get_reset_code_mailer
from app.modules.auth.utils import create_access_token, hash_password
from app.modules.customers.models import Customer
from app.modules.menu.models import MenuCategory, MenuItem, MenuItemStatus
from app.modules.notifications.notifier import Notifier, get_notifier

STAFF_PASSWORD = "Secreta123"


class RecordingNotifier(Notifier):
    """Guarda cada publicación como (evento, payload)."""

    def __init__(self):
        self.published = []

    def publish(self, event_name, payload):
        self.published.append((event_name, payload))

    def events(self):
        return [name for name, _ in self.published]


class FakeRedis:
    """Subconjunto de redis.Redis usado por ResetCodeStore."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def get(self, key):
        return self.store.get(key)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            self.ttls.pop(key, None)
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    def incr(self, key):
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    def expire(self, key, ttl):
        self.ttls[key] = ttl

    def expire_all(self):
        self.store.clear()


# ===== BASE DE DATOS =====

@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def sent_codes():
    """Códigos que el mailer habría enviado: (email, nombre, código)."""
    return []


@pytest.fixture
def client(db_session, notifier, fake_redis, sent_codes):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_reset_code_mailer] = lambda: (
        lambda email, name, code: sent_codes.append((email, name, code))
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ===== USUARIOS =====

@pytest.fixture
def staff_password():
    return STAFF_PASSWORD


def make_user(db, role: Role, email: str = None) -> User:
    user = User(
        first_name=role.value.capitalize(),
        last_name="Prueba",
        email=email or f"{role.value}@comanda.mx",
        password=hash_password(STAFF_PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, Role.ADMIN)


@pytest.fixture
def cashier_user(db_session):
    return make_user(db_session, Role.CASHIER)


@pytest.fixture
def waiter_user(db_session):
    return make_user(db_session, Role.WAITER)


@pytest.fixture
def kitchen_user(db_session):
    return make_user(db_session, Role.KITCHEN)


def bearer(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def cashier_headers(cashier_user):
    return bearer(cashier_user)


@pytest.fixture
def waiter_headers(waiter_user):
    return bearer(waiter_user)


@pytest.fixture
def kitchen_headers(kitchen_user):
    return bearer(kitchen_user)


# ===== CATÁLOGO =====

@pytest.fixture
def menu_category(db_session):
    category = MenuCategory(name="Tacos")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def taco(db_session, menu_category):
    item = MenuItem(category_id=menu_category.id, name="taco", price=Decimal("10.00"))
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def horchata(db_session, menu_category):
    item = MenuItem(category_id=menu_category.id, name="horchata", price=Decimal("25.50"))
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def sold_out_item(db_session, menu_category):
    item = MenuItem(
        category_id=menu_category.id, name="pozole", price=Decimal("80.00"),
        status=MenuItemStatus.UNAVAILABLE
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def customer(db_session):
    customer = Customer(first_name="Ana", last_name="García", phone="5512345678")
    db_session.add(customer)
    db_session.commit()
    return customer
