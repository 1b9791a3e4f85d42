from sqlalchemy import Column, String, Enum
from app.database.database import Base
from app.common.mixins import BaseMixin
import enum


class Role(enum.Enum):
    """Roles cerrados del personal del restaurante"""
    ADMIN = "admin"       # Administrador, pasa cualquier verificación
    CASHIER = "cashier"   # Caja: apertura, cierre y ventas
    WAITER = "waiter"     # Mesero: toma pedidos
    KITCHEN = "kitchen"   # Cocina: avanza pedidos en preparación


class UserStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def has_capability(role: Role, required: Role) -> bool:
    """El administrador tiene todas las capacidades; el resto solo la suya."""
    return role == Role.ADMIN or role == required


class User(Base, BaseMixin):
    __tablename__ = "users"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    phone = Column(String(30), nullable=True)
    status = Column(
        Enum(UserStatus, values_callable=lambda e: [m.value for m in e], name="user_status"),
        nullable=False,
        default=UserStatus.ACTIVE
    )
    role = Column(
        Enum(Role, values_callable=lambda e: [m.value for m in e], name="user_role"),
        nullable=False,
        default=Role.WAITER
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
