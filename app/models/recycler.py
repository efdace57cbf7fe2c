from typing import Optional
from uuid import UUID
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import EmailStr, StringConstraints
from typing_extensions import Annotated

from app.models.collection import WasteTypes


class RecyclerRead(SQLModel):
    id: UUID
    name: str
    email: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    is_active: bool
    created_at: datetime


class RecyclerSignin(SQLModel):
    email: Annotated[EmailStr, StringConstraints(to_lower=True)]
    password: str = Field(min_length=6, max_length=128)


class RecyclerCreate(SQLModel):
    name: str = Field(min_length=2, max_length=100)
    email: Annotated[EmailStr, StringConstraints(to_lower=True)] = Field(
        max_length=255)
    password: str = Field(min_length=6, max_length=128)
    address: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    zip_code: str = Field(min_length=3, max_length=12)


class RecyclerUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[Annotated[EmailStr, StringConstraints(to_lower=True)]] = None
    address: Optional[str] = Field(default=None, max_length=200)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=12)


class ClaimScan(SQLModel):
    scanned_transporter_id: UUID = Field(
        description="The id decoded from the transporter's QR code.")


class ClaimResult(SQLModel):
    """
    Outcome of a recycler scan. A zero count is a normal result: there was
    nothing new to claim from that transporter.
    """
    message: str
    claimed_count: int
    estimated_total_weight: float = 0.0
    estimated_categorical_weights: WasteTypes = Field(
        default_factory=WasteTypes)
