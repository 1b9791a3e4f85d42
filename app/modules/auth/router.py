from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.core.redis import get_redis
from app.database.database import get_db
from app.modules.auth.dependencies import CurrentUser, AdminUser
from app.modules.auth.reset_codes import ResetCodeStore
from app.modules.auth.service import AuthService, UserService, ResetCodeMailer
from app.modules.auth.schemas import (
    UserCreate, UserUpdate, UserOut, UserList, LoginRequest, TokenResponse,
    PasswordResetRequest, PasswordResetConfirm, MessageResponse
)
from app.modules.email.tasks import send_password_reset_code_task


def get_reset_code_store(client=Depends(get_redis)) -> ResetCodeStore:
    return ResetCodeStore(client)


def get_reset_code_mailer() -> ResetCodeMailer:
    def enqueue(email: str, name: str, code: str) -> None:
        send_password_reset_code_task.delay(email, name, code)
    return enqueue


auth_router = APIRouter()


@auth_router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Login con correo y contraseña. Retorna token de acceso y datos del usuario.
    """
    token = AuthService(db).login(credentials.email, credentials.password)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Correo o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


@auth_router.get("/me", response_model=UserOut)
def get_current_user_info(current_user: CurrentUser):
    """
    Obtener información del usuario actual.
    """
    return current_user


@auth_router.post("/password-reset/request", response_model=MessageResponse)
def request_password_reset(
    request_data: PasswordResetRequest,
    db: Session = Depends(get_db),
    reset_codes: ResetCodeStore = Depends(get_reset_code_store),
    mailer: ResetCodeMailer = Depends(get_reset_code_mailer)
):
    """
    Enviar código de restablecimiento. Siempre responde igual para no revelar cuentas.
    """
    AuthService(db, reset_codes, mailer).request_password_reset(request_data.email)
    return MessageResponse(message="Si el correo está registrado, recibirás un código")


@auth_router.post("/password-reset/confirm", response_model=MessageResponse)
def confirm_password_reset(
    reset_data: PasswordResetConfirm,
    db: Session = Depends(get_db),
    reset_codes: ResetCodeStore = Depends(get_reset_code_store)
):
    """
    Validar el código y establecer la nueva contraseña.
    """
    AuthService(db, reset_codes).reset_password(reset_data.email, reset_data.code, reset_data.new_password)
    return MessageResponse(message="Contraseña actualizada")


# ===== USERS (solo administradores) =====

users_router = APIRouter(prefix="/users", tags=["Users"])


@users_router.get("/", response_model=UserList)
def list_users(admin: AdminUser, db: Session = Depends(get_db)):
    users = UserService(db).list_users()
    return UserList(users=users, total=len(users))


@users_router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: UUID, admin: AdminUser, db: Session = Depends(get_db)):
    return UserService(db).get_user(user_id)


@users_router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(user_data: UserCreate, admin: AdminUser, db: Session = Depends(get_db)):
    """
    Crear usuario del personal con su rol.
    """
    return UserService(db).create_user(user_data)


@users_router.put("/{user_id}", response_model=UserOut)
def update_user(user_id: UUID, user_data: UserUpdate, admin: AdminUser, db: Session = Depends(get_db)):
    return UserService(db).update_user(user_id, user_data)


@users_router.delete("/{user_id}", response_model=UserOut)
def delete_user(user_id: UUID, admin: AdminUser, db: Session = Depends(get_db)):
    return UserService(db).delete_user(user_id)
