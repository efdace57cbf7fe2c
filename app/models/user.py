from typing import List, Optional
from uuid import UUID
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import EmailStr, StringConstraints
from typing_extensions import Annotated

from app.db.schema import WalletOwnerType


class UserRead(SQLModel):
    id: UUID
    name: str
    email: Optional[str] = None
    mobile: str
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = None
    qr_code_url: Optional[str] = None
    wallet_balance: float
    is_active: bool
    created_at: datetime


class UserSignin(SQLModel):
    login_id: str = Field(
        min_length=3,
        max_length=255,
        description="Registered email address or mobile number."
    )
    password: str = Field(
        min_length=6,
        max_length=128,
        description="Plain text password."
    )


class UserCreate(SQLModel):
    """
    DTO for citizen registration. Mobile is the mandatory login handle,
    email is optional.
    """
    name: str = Field(min_length=1, max_length=100)
    email: Optional[Annotated[EmailStr, StringConstraints(to_lower=True)]] = Field(
        default=None,
        description="Optional email address, also usable for signin."
    )
    mobile: str = Field(
        min_length=6,
        max_length=20,
        description="Mobile number, unique per user."
    )
    password: str = Field(min_length=6, max_length=128)
    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    pin_code: str = Field(min_length=3, max_length=12)


class UserUpdate(SQLModel):
    """Partial profile update. Omitted fields are left untouched."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    street: Optional[str] = Field(default=None, max_length=200)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    pin_code: Optional[str] = Field(default=None, max_length=12)


class QRCodeRead(SQLModel):
    qr_code_url: str


class LedgerEntryRead(SQLModel):
    id: UUID
    owner_type: WalletOwnerType
    revenue_request_id: UUID
    amount: float
    created_at: datetime


class WalletRead(SQLModel):
    wallet_balance: float
    entries: List[LedgerEntryRead] = []
