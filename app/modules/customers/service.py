import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from app.common.exceptions import NotFoundError
from app.database.database import transaction
from app.modules.customers.models import Customer
from app.modules.customers.schemas import CustomerCreate

logger = logging.getLogger(__name__)


class CustomerService:

    def __init__(self, db: Session):
        self.db = db

    def list_customers(self) -> List[Customer]:
        return self.db.query(Customer).order_by(Customer.last_name, Customer.first_name).all()

    def get_customer(self, customer_id: UUID) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Cliente no encontrado")
        return customer

    def create_customer(self, data: CustomerCreate) -> Customer:
        customer = Customer(**data.model_dump())
        with transaction(self.db):
            self.db.add(customer)
        logger.info(f"Customer {customer.id} registered")
        return customer
