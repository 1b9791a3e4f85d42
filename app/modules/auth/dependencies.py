"""
Dependencias de autenticación para FastAPI.
"""
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt

from app.database.database import get_db
from app.modules.auth.models import User, Role, has_capability
from app.modules.auth.utils import decode_token

# Security scheme
security = HTTPBearer()


class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """Obtener usuario actual desde token JWT."""
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No se pudieron validar las credenciales",
            headers={"WWW-Authenticate": "Bearer"},
        )

        try:
            payload = decode_token(credentials.credentials)
            user_id = payload.get("sub")
            if user_id is None or payload.get("type") != "access":
                raise credentials_exception
            user_uuid = UUID(user_id)
        except (jwt.PyJWTError, ValueError):
            raise credentials_exception

        user = db.get(User, user_uuid)
        if user is None or not user.is_active:
            raise credentials_exception

        return user

    @staticmethod
    def require_role(*required_roles: Role):
        """
        Dependencia para requerir alguno de los roles indicados.
        El rol admin pasa cualquier verificación.
        """
        def role_checker(user: User = Depends(AuthDependencies.get_current_user)) -> User:
            if not any(has_capability(user.role, required) for required in required_roles):
                allowed = ", ".join(r.value for r in required_roles)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Se requiere uno de estos roles: {allowed}"
                )
            return user
        return role_checker


get_current_user = AuthDependencies.get_current_user
require_role = AuthDependencies.require_role

CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role(Role.ADMIN))]
