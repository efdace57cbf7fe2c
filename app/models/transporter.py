from typing import List, Optional
from uuid import UUID
from datetime import datetime, date
from sqlmodel import SQLModel, Field
from pydantic import EmailStr, StringConstraints, field_validator
from typing_extensions import Annotated

from app.models.collection import WasteTypes


class TransporterRead(SQLModel):
    id: UUID
    name: str
    email: Optional[str] = None
    mobile: str
    vehicle_model: Optional[str] = None
    license_plate: str
    qr_code_url: Optional[str] = None
    wallet_balance: float
    current_lng: float
    current_lat: float
    is_active: bool
    created_at: datetime


class TransporterCreate(SQLModel):
    """Used both by self-registration and by admins creating transporters."""
    name: str = Field(min_length=1, max_length=100)
    email: Optional[Annotated[EmailStr, StringConstraints(to_lower=True)]] = Field(default=None)
    mobile: str = Field(min_length=6, max_length=20)
    password: str = Field(min_length=6, max_length=128)
    vehicle_model: Optional[str] = Field(default=None, max_length=100)
    license_plate: str = Field(min_length=2, max_length=20)


class TransporterUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[Annotated[EmailStr, StringConstraints(to_lower=True)]] = None
    vehicle_model: Optional[str] = Field(default=None, max_length=100)
    license_plate: Optional[str] = Field(
        default=None, min_length=2, max_length=20)


class TransporterAdminUpdate(TransporterUpdate):
    """
    Admin correction payload.
    Wallet balances are absent, they only move through the
    distribution ledger.
    """
    is_active: Optional[bool] = None


class PickupScan(SQLModel):
    """
    Payload sent when a Transporter scans a User's QR code.
    """
    user_id: UUID = Field(description="The id decoded from the user's QR code.")
    weight: float = Field(gt=0, description="Total weight in kg.")
    waste_types: WasteTypes = Field(default_factory=WasteTypes)
    coordinates: List[float] = Field(
        description="[longitude, latitude] of the pickup.")

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, value: List[float]) -> List[float]:
        if len(value) != 2:
            raise ValueError("coordinates must be [longitude, latitude].")
        lng, lat = value
        if not -180 <= lng <= 180 or not -90 <= lat <= 90:
            raise ValueError("coordinates are out of range.")
        return value


class CheckpointRead(SQLModel):
    day: date
    coordinates: List[float]
    scanned_at: datetime
