from typing import List, Optional
from uuid import UUID
from datetime import datetime
from sqlmodel import SQLModel, Field

from app.db.schema import CollectionStatus


class WasteTypes(SQLModel):
    """Per-category weight breakdown in kg. Need not sum to the total weight."""
    wet: float = Field(default=0.0, ge=0)
    dry: float = Field(default=0.0, ge=0)
    hazardous: float = Field(default=0.0, ge=0)


class CollectionRead(SQLModel):
    id: UUID
    user_id: UUID
    transporter_id: UUID
    recycler_id: Optional[UUID] = None
    weight: float
    waste_types: WasteTypes
    coordinates: List[float] = Field(description="[longitude, latitude]")
    status: CollectionStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row) -> "CollectionRead":
        return cls(
            id=row.id,
            user_id=row.user_id,
            transporter_id=row.transporter_id,
            recycler_id=row.recycler_id,
            weight=row.weight,
            waste_types=WasteTypes(
                wet=row.wet, dry=row.dry, hazardous=row.hazardous),
            coordinates=[row.location_lng, row.location_lat],
            status=row.status,
            created_at=row.created_at,
            updated_at=row.updated_at
        )
