"""
Códigos de restablecimiento de contraseña guardados en Redis.

Cada código vive bajo ``password_reset:<email>`` con TTL, así que la
expiración es pasiva y todas las instancias del API comparten el estado.
Los intentos fallidos se cuentan en ``password_reset_attempts:<email>``;
al llegar al máximo el código se invalida.
"""
import json
import secrets
from typing import Optional
from uuid import UUID

import redis

from app.core.config import settings

KEY_PREFIX = "password_reset"
ATTEMPTS_PREFIX = "password_reset_attempts"


class ResetCodeStore:
    """Almacén de códigos de un solo uso con expiración."""

    def __init__(self, client: redis.Redis, ttl_seconds: int = settings.PASSWORD_RESET_CODE_TTL_SECONDS,
                 max_attempts: int = settings.PASSWORD_RESET_MAX_ATTEMPTS):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts

    @staticmethod
    def _key(email: str) -> str:
        return f"{KEY_PREFIX}:{email.lower()}"

    @staticmethod
    def _attempts_key(email: str) -> str:
        return f"{ATTEMPTS_PREFIX}:{email.lower()}"

    @staticmethod
    def generate_code() -> str:
        return f"{secrets.randbelow(1_000_000):06d}"

    def issue(self, email: str, user_id: UUID) -> str:
        """Genera un código nuevo, reemplazando cualquier código previo."""
        code = self.generate_code()
        value = json.dumps({"code": code, "user_id": str(user_id)})
        self.client.setex(self._key(email), self.ttl_seconds, value)
        self.client.delete(self._attempts_key(email))
        return code

    def verify(self, email: str, code: str) -> Optional[UUID]:
        """Devuelve el user_id si el código coincide y no ha vencido."""
        raw = self.client.get(self._key(email))
        if raw is None:
            return None
        data = json.loads(raw)
        if not secrets.compare_digest(data["code"], code):
            return None
        return UUID(data["user_id"])

    def register_failure(self, email: str) -> int:
        """Cuenta un intento fallido y devuelve el total acumulado."""
        attempts_key = self._attempts_key(email)
        attempts = self.client.incr(attempts_key)
        if attempts == 1:
            self.client.expire(attempts_key, self.ttl_seconds)
        if attempts >= self.max_attempts:
            self.client.delete(self._key(email), attempts_key)
        return attempts

    def consume(self, email: str) -> None:
        self.client.delete(self._key(email), self._attempts_key(email))
