"""
Tests para el módulo de Autenticación

- Login por correo y contraseña, usuarios inactivos
- Capacidades por rol (admin pasa cualquier verificación)
- Restablecimiento de contraseña con códigos en Redis
- CRUD de usuarios (solo administradores)
"""

import json
from datetime import timedelta
from unittest.mock import patch

import pytest

from app.common.exceptions import ConflictError, ValidationError
from app.modules.auth.models import Role, User, UserStatus, has_capability
from app.modules.auth.reset_codes import ResetCodeStore
from app.modules.auth.router import get_reset_code_mailer
from app.modules.auth.schemas import UserCreate
from app.modules.auth.service import AuthService, UserService
from app.modules.auth.utils import create_access_token, decode_token, verify_password


# ===== TESTS DE ROLES =====

class TestCapabilities:

    @pytest.mark.parametrize("required", list(Role))
    def test_admin_has_every_capability(self, required):
        assert has_capability(Role.ADMIN, required)

    def test_other_roles_only_their_own(self):
        assert has_capability(Role.CASHIER, Role.CASHIER)
        assert not has_capability(Role.CASHIER, Role.KITCHEN)
        assert not has_capability(Role.WAITER, Role.ADMIN)
        assert not has_capability(Role.KITCHEN, Role.WAITER)


# ===== TESTS DE SERVICIOS =====

class TestLogin:

    def test_login_returns_token(self, db_session, waiter_user, staff_password):
        token = AuthService(db_session).login("WAITER@comanda.mx", staff_password)
        assert token is not None
        payload = decode_token(token.access_token)
        assert payload["sub"] == str(waiter_user.id)
        assert payload["type"] == "access"
        assert token.user.role == Role.WAITER

    def test_wrong_password(self, db_session, waiter_user):
        assert AuthService(db_session).login(waiter_user.email, "incorrecta") is None

    def test_inactive_user_cannot_login(self, db_session, waiter_user, staff_password):
        waiter_user.status = UserStatus.INACTIVE
        db_session.commit()
        assert AuthService(db_session).login(waiter_user.email, staff_password) is None


class TestPasswordReset:

    @pytest.fixture
    def store(self, fake_redis):
        return ResetCodeStore(fake_redis, ttl_seconds=900)

    def test_reset_flow(self, db_session, cashier_user, store):
        sent = []
        service = AuthService(db_session, store, lambda email, name, code: sent.append((email, name, code)))

        service.request_password_reset(cashier_user.email)
        assert len(sent) == 1
        email, name, code = sent[0]
        assert email == cashier_user.email
        assert name == cashier_user.full_name
        assert len(code) == 6 and code.isdigit()

        key = f"password_reset:{cashier_user.email}"
        assert store.client.ttls[key] == 900
        assert json.loads(store.client.store[key])["user_id"] == str(cashier_user.id)

        service.reset_password(cashier_user.email, code, "NuevaClave99")
        assert verify_password("NuevaClave99", db_session.get(User, cashier_user.id).password)
        # El código es de un solo uso
        assert key not in store.client.store
        with pytest.raises(ValidationError):
            service.reset_password(cashier_user.email, code, "OtraClave123")

    def test_unknown_email_sends_nothing(self, db_session, store):
        sent = []
        AuthService(db_session, store, lambda *args: sent.append(args)).request_password_reset("nadie@comanda.mx")
        assert sent == []
        assert store.client.store == {}

    def test_wrong_code(self, db_session, cashier_user, store):
        service = AuthService(db_session, store, lambda *args: None)
        service.request_password_reset(cashier_user.email)
        code = json.loads(store.client.store[f"password_reset:{cashier_user.email}"])["code"]
        wrong = "000000" if code != "000000" else "111111"
        with pytest.raises(ValidationError):
            service.reset_password(cashier_user.email, wrong, "NuevaClave99")

    def test_expired_code(self, db_session, cashier_user, store):
        sent = []
        service = AuthService(db_session, store, lambda *args: sent.append(args))
        service.request_password_reset(cashier_user.email)
        store.client.expire_all()
        with pytest.raises(ValidationError):
            service.reset_password(cashier_user.email, sent[0][2], "NuevaClave99")

    def test_code_invalidated_after_max_attempts(self, db_session, cashier_user, fake_redis):
        store = ResetCodeStore(fake_redis, ttl_seconds=900, max_attempts=3)
        sent = []
        service = AuthService(db_session, store, lambda *args: sent.append(args))
        service.request_password_reset(cashier_user.email)
        code = sent[0][2]
        wrong = "000000" if code != "000000" else "111111"

        for _ in range(3):
            with pytest.raises(ValidationError):
                service.reset_password(cashier_user.email, wrong, "NuevaClave99")

        # El código correcto ya no sirve tras agotar los intentos
        with pytest.raises(ValidationError):
            service.reset_password(cashier_user.email, code, "NuevaClave99")
        assert not verify_password("NuevaClave99", db_session.get(User, cashier_user.id).password)

    def test_new_code_resets_attempts(self, db_session, cashier_user, fake_redis):
        store = ResetCodeStore(fake_redis, ttl_seconds=900, max_attempts=2)
        sent = []
        service = AuthService(db_session, store, lambda *args: sent.append(args))
        service.request_password_reset(cashier_user.email)
        wrong = "000000" if sent[0][2] != "000000" else "111111"
        with pytest.raises(ValidationError):
            service.reset_password(cashier_user.email, wrong, "NuevaClave99")
        assert fake_redis.ttls[f"password_reset_attempts:{cashier_user.email}"] == 900

        service.request_password_reset(cashier_user.email)
        service.reset_password(cashier_user.email, sent[1][2], "NuevaClave99")
        assert verify_password("NuevaClave99", db_session.get(User, cashier_user.id).password)


class TestUserService:

    def test_duplicate_email_conflicts(self, db_session, waiter_user):
        data = UserCreate(
            first_name="Otro", last_name="Mesero", email="Waiter@comanda.mx",
            password="Secreta123", role=Role.WAITER
        )
        with pytest.raises(ConflictError):
            UserService(db_session).create_user(data)


# ===== TESTS DE API ENDPOINTS =====

class TestAuthAPI:

    def test_login_and_me(self, client, kitchen_user, staff_password):
        response = client.post("/auth/login", json={"email": kitchen_user.email, "password": staff_password})
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["role"] == "kitchen"

    def test_bad_credentials_is_401(self, client, kitchen_user):
        response = client.post("/auth/login", json={"email": kitchen_user.email, "password": "incorrecta"})
        assert response.status_code == 401

    def test_expired_token_is_401(self, client, kitchen_user):
        token = create_access_token({"sub": str(kitchen_user.id)}, expires_delta=timedelta(minutes=-1))
        assert client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401

    def test_password_reset_endpoints(self, client, waiter_user, sent_codes):
        response = client.post("/auth/password-reset/request", json={"email": waiter_user.email})
        assert response.status_code == 200
        code = sent_codes[0][2]

        response = client.post("/auth/password-reset/confirm", json={
            "email": waiter_user.email, "code": code, "new_password": "NuevaClave99"
        })
        assert response.status_code == 200

        login = client.post("/auth/login", json={"email": waiter_user.email, "password": "NuevaClave99"})
        assert login.status_code == 200

    def test_reset_unknown_email_same_response(self, client, sent_codes):
        response = client.post("/auth/password-reset/request", json={"email": "nadie@comanda.mx"})
        assert response.status_code == 200
        assert sent_codes == []

    def test_reset_wrong_code_is_400(self, client, waiter_user, sent_codes):
        client.post("/auth/password-reset/request", json={"email": waiter_user.email})
        wrong = "000000" if sent_codes[0][2] != "000000" else "111111"
        response = client.post("/auth/password-reset/confirm", json={
            "email": waiter_user.email, "code": wrong, "new_password": "NuevaClave99"
        })
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_reset_malformed_code_is_422(self, client, waiter_user):
        response = client.post("/auth/password-reset/confirm", json={
            "email": waiter_user.email, "code": "12345x", "new_password": "NuevaClave99"
        })
        assert response.status_code == 422

    def test_mailer_enqueues_celery_task(self):
        with patch("app.modules.auth.router.send_password_reset_code_task") as task:
            get_reset_code_mailer()("ana@comanda.mx", "Ana", "123456")
        task.delay.assert_called_once_with("ana@comanda.mx", "Ana", "123456")

    def test_users_crud_admin_only(self, client, admin_headers, waiter_headers):
        payload = {
            "first_name": "Luis", "last_name": "Pérez", "email": "luis@comanda.mx",
            "password": "Secreta123", "role": "cashier"
        }
        assert client.post("/users/", json=payload, headers=waiter_headers).status_code == 403

        response = client.post("/users/", json=payload, headers=admin_headers)
        assert response.status_code == 201
        user_id = response.json()["id"]
        assert "password" not in response.json()

        assert client.post("/users/", json=payload, headers=admin_headers).status_code == 409

        response = client.put(f"/users/{user_id}", json={"role": "waiter"}, headers=admin_headers)
        assert response.json()["role"] == "waiter"

        assert client.delete(f"/users/{user_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/users/{user_id}", headers=admin_headers).status_code == 404
