from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime


class CustomerCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    email: Optional[EmailStr] = None


class CustomerOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerList(BaseModel):
    customers: List[CustomerOut]
    total: int
