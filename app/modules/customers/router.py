from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import CurrentUser
from app.modules.customers.service import CustomerService
from app.modules.customers.schemas import CustomerCreate, CustomerOut, CustomerList

customers_router = APIRouter(prefix="/customers", tags=["Customers"])


@customers_router.get("/", response_model=CustomerList)
def list_customers(user: CurrentUser, db: Session = Depends(get_db)):
    customers = CustomerService(db).list_customers()
    return CustomerList(customers=customers, total=len(customers))


@customers_router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: UUID, user: CurrentUser, db: Session = Depends(get_db)):
    return CustomerService(db).get_customer(customer_id)


@customers_router.post("/", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(data: CustomerCreate, user: CurrentUser, db: Session = Depends(get_db)):
    return CustomerService(db).create_customer(data)
