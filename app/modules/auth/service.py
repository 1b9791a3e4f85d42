"""
Servicios de autenticación y gestión de usuarios.
"""
import logging
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.exceptions import ConflictError, NotFoundError, ValidationError
from app.database.database import transaction
from app.modules.auth.models import User
from app.modules.auth.reset_codes import ResetCodeStore
from app.modules.auth.schemas import TokenResponse, UserCreate, UserOut, UserUpdate
from app.modules.auth.utils import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

# (email, nombre, código) -> None; en producción encola la tarea de Celery
ResetCodeMailer = Callable[[str, str, str], None]


class AuthService:
    """Login por correo/contraseña y restablecimiento por código."""

    def __init__(self, db: Session, reset_codes: Optional[ResetCodeStore] = None,
                 mailer: Optional[ResetCodeMailer] = None):
        self.db = db
        self.reset_codes = reset_codes
        self.mailer = mailer

    def _get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == email.lower()).first()

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self._get_by_email(email)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password):
            return None
        return user

    def login(self, email: str, password: str) -> Optional[TokenResponse]:
        user = self.authenticate(email, password)
        if user is None:
            logger.info(f"Failed login attempt for {email}")
            return None

        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        logger.info(f"User {user.id} logged in")
        return TokenResponse(access_token=token, user=UserOut.model_validate(user))

    def request_password_reset(self, email: str) -> None:
        """Emite un código si el correo existe; no revela si existe o no."""
        user = self._get_by_email(email)
        if not user or not user.is_active:
            logger.info(f"Password reset requested for unknown or inactive email {email}")
            return

        code = self.reset_codes.issue(user.email, user.id)
        self.mailer(user.email, user.full_name, code)
        logger.info(f"Password reset code issued for user {user.id}")

    def reset_password(self, email: str, code: str, new_password: str) -> User:
        user_id = self.reset_codes.verify(email, code)
        if user_id is None:
            attempts = self.reset_codes.register_failure(email)
            logger.info(f"Invalid password reset code for {email} (attempt {attempts})")
            raise ValidationError("Código inválido o vencido")

        with transaction(self.db):
            user = self.db.get(User, user_id)
            if user is None:
                raise NotFoundError("Usuario no encontrado")
            user.password = hash_password(new_password)

        self.reset_codes.consume(email)
        logger.info(f"Password reset completed for user {user.id}")
        return user


class UserService:
    """CRUD de usuarios del personal (solo administradores)."""

    def __init__(self, db: Session):
        self.db = db

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at).all()

    def get_user(self, user_id: UUID) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("Usuario no encontrado")
        return user

    def create_user(self, data: UserCreate) -> User:
        user = User(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email.lower(),
            password=hash_password(data.password),
            phone=data.phone,
            status=data.status,
            role=data.role,
        )
        try:
            with transaction(self.db):
                self.db.add(user)
        except IntegrityError:
            raise ConflictError(f"Ya existe un usuario con el correo {data.email}")

        logger.info(f"User {user.id} created with role {user.role.value}")
        return user

    def update_user(self, user_id: UUID, data: UserUpdate) -> User:
        user = self.get_user(user_id)
        changes = data.model_dump(exclude_unset=True)

        try:
            with transaction(self.db):
                if "password" in changes:
                    password = changes.pop("password")
                    if password:
                        user.password = hash_password(password)
                if changes.get("email"):
                    changes["email"] = changes["email"].lower()
                for field, value in changes.items():
                    if value is not None:
                        setattr(user, field, value)
        except IntegrityError:
            raise ConflictError("Ya existe un usuario con ese correo")

        logger.info(f"User {user.id} updated")
        return user

    def delete_user(self, user_id: UUID) -> User:
        user = self.get_user(user_id)
        try:
            with transaction(self.db):
                self.db.delete(user)
        except IntegrityError:
            raise ConflictError("El usuario tiene pedidos o movimientos asociados; desactívalo en su lugar")

        logger.info(f"User {user_id} deleted")
        return user
