from typing import List, Optional
from uuid import UUID
from datetime import datetime
from sqlmodel import SQLModel, Field

from app.db.schema import RevenueRequestStatus


class WastePrices(SQLModel):
    """Recycler-declared unit price per kg, per waste category."""
    wet: float = Field(ge=0)
    dry: float = Field(ge=0)
    hazardous: float = Field(ge=0)


class RevenueRequestCreate(SQLModel):
    collection_ids: List[UUID] = Field(
        min_length=1,
        description="Claimed collections to cash out, in display order."
    )
    waste_prices: WastePrices


class FinalDistributionRead(SQLModel):
    total_user_share: float
    total_transporter_share: float
    municipality_share: float
    central_gov_share: float
    recycler_share: float


class RevenueRequestRead(SQLModel):
    id: UUID
    recycler_id: UUID
    collections: List[UUID]
    waste_prices: WastePrices
    total_calculated_revenue: float
    final_distribution: Optional[FinalDistributionRead] = None
    status: RevenueRequestStatus
    decided_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row) -> "RevenueRequestRead":
        distribution = None
        if row.total_user_share is not None:
            distribution = FinalDistributionRead(
                total_user_share=row.total_user_share,
                total_transporter_share=row.total_transporter_share,
                municipality_share=row.municipality_share,
                central_gov_share=row.central_gov_share,
                recycler_share=row.recycler_share
            )

        return cls(
            id=row.id,
            recycler_id=row.recycler_id,
            collections=[item.collection_id for item in row.items],
            waste_prices=WastePrices(
                wet=row.price_wet,
                dry=row.price_dry,
                hazardous=row.price_hazardous
            ),
            total_calculated_revenue=row.total_calculated_revenue,
            final_distribution=distribution,
            status=row.status,
            decided_at=row.decided_at,
            created_at=row.created_at,
            updated_at=row.updated_at
        )


class RevenueDecision(SQLModel):
    id: UUID
    status: RevenueRequestStatus
    final_distribution: Optional[FinalDistributionRead] = None
