from sqlalchemy import Column, String, Text
from app.database.database import Base
from app.common.mixins import BaseMixin


class Customer(Base, BaseMixin):
    """Clientes del restaurante; los pedidos de mostrador pueden no tener cliente."""
    __tablename__ = "customers"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    address = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"
