from typing import Optional
from uuid import UUID
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import EmailStr, StringConstraints
from typing_extensions import Annotated


class AdminRead(SQLModel):
    id: UUID
    name: str
    email: str
    is_active: bool
    last_login: Optional[datetime] = None


class AdminSignin(SQLModel):
    email: Annotated[EmailStr, StringConstraints(to_lower=True)]
    password: str = Field(min_length=6, max_length=128)


class DashboardStats(SQLModel):
    user_count: int
    transporter_count: int
    recycler_count: int
    total_weight_collected: float
    pending_revenue_requests: int


class UserAdminUpdate(SQLModel):
    """Support / data-correction payload. Only identity and address fields."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    street: Optional[str] = Field(default=None, max_length=200)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    pin_code: Optional[str] = Field(default=None, max_length=12)


class AccountCreated(SQLModel):
    message: str
    id: UUID
