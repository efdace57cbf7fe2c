from typing import Optional, List, Dict, Any
from datetime import datetime, date
import uuid
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship, JSON
from enum import Enum


class ActorRole(str, Enum):
    USER = "user"
    TRANSPORTER = "transporter"
    RECYCLER = "recycler"
    ADMIN = "admin"


class CollectionStatus(str, Enum):
    COLLECTED = "Collected"        # Picked up by a Transporter
    TRASH_DUMPED = "Trash Dumped"  # Claimed by a Recycler
    COMPLETED = "Completed"        # Settled by an approved Revenue Request


class RevenueRequestStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DECLINED = "Declined"


class WalletOwnerType(str, Enum):
    USER = "user"
    TRANSPORTER = "transporter"


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    APPROVE = "approve"
    DECLINE = "decline"


class TimestampMixin(SQLModel):
    """
    A foundational mixin that provides standard audit timestamps for database records.
    Every entity inheriting from this mixin tracks when it was originally created
    and when it was last modified.
    """
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="The exact UTC timestamp when this record was first persisted in the database. Example: '2023-10-27 14:30:00'"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column_kwargs={"onupdate": datetime.utcnow},
        description="The exact UTC timestamp when this record was last modified. Updates automatically. Example: '2023-10-28 09:15:00'"
    )


class AccountMixin(SQLModel):
    """
    Fields shared by every login-capable actor (User, Transporter, Recycler, Admin).
    """
    name: str = Field(
        description="Display name of the account holder. Example: 'Asha Patel'"
    )
    hashed_password: str = Field(
        description="The securely salted and hashed password string. Never store plain text."
    )
    is_active: bool = Field(
        default=True,
        description="Soft delete flag. If False, the account cannot log in."
    )


# ==============================================================================
# ACCOUNTS
# ==============================================================================

class User(AccountMixin, TimestampMixin, SQLModel, table=True):
    """
    A citizen who hands waste over to Transporters.
    Identified at pickup time by the QR code encoding their id. Receives a share
    of the user pool whenever a Revenue Request containing their collections is approved.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the user."
    )
    email: Optional[str] = Field(
        default=None,
        unique=True,
        index=True,
        description="Optional login email. Example: 'asha@example.com'"
    )
    mobile: str = Field(
        unique=True,
        index=True,
        description="Mobile number, required and unique. Used for login. Example: '9876543210'"
    )
    street: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    pin_code: Optional[str] = Field(default=None)
    qr_code_url: Optional[str] = Field(
        default=None,
        description="Public URL of the QR code image encoding this user's id."
    )
    wallet_balance: float = Field(
        default=0.0,
        ge=0,
        description="Accumulated credit. Only ever incremented by revenue distribution."
    )

    collections: List["Collection"] = Relationship(back_populates="user")


class Transporter(AccountMixin, TimestampMixin, SQLModel, table=True):
    """
    A waste collection driver. Records pickups by scanning User QR codes and
    hands waste over to Recyclers, who scan the Transporter's QR code.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the transporter."
    )
    email: Optional[str] = Field(
        default=None,
        unique=True,
        index=True,
        description="Optional login email."
    )
    mobile: str = Field(
        unique=True,
        index=True,
        description="Mobile number, required and unique. Used for login."
    )
    vehicle_model: Optional[str] = Field(
        default=None,
        description="Vehicle make/model. Example: 'Tata Ace'"
    )
    license_plate: str = Field(
        unique=True,
        index=True,
        description="Vehicle registration plate. Example: 'KA-01-AB-1234'"
    )
    qr_code_url: Optional[str] = Field(default=None)
    wallet_balance: float = Field(
        default=0.0,
        ge=0,
        description="Accumulated credit. Only ever incremented by revenue distribution."
    )
    current_lng: float = Field(default=0.0)
    current_lat: float = Field(default=0.0)

    collections: List["Collection"] = Relationship(back_populates="transporter")
    checkpoints: List["TransporterCheckpoint"] = Relationship(
        back_populates="transporter")


class Recycler(AccountMixin, TimestampMixin, SQLModel, table=True):
    """
    A recycling facility. Claims collections from Transporters and requests
    payouts for them through Revenue Requests.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the recycler."
    )
    name: str = Field(
        unique=True,
        index=True,
        description="Facility name, unique across recyclers. Example: 'GreenCycle Pvt Ltd'"
    )
    email: str = Field(
        unique=True,
        index=True,
        description="Login email. Example: 'ops@greencycle.in'"
    )
    address: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    zip_code: Optional[str] = Field(default=None)

    revenue_requests: List["RevenueRequest"] = Relationship(
        back_populates="recycler")


class Admin(AccountMixin, TimestampMixin, SQLModel, table=True):
    """
    Platform operator. Manages accounts and is the only actor allowed to
    approve or decline Revenue Requests.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the admin."
    )
    email: str = Field(
        unique=True,
        index=True,
        description="Login email (stored lowercase)."
    )
    last_login: Optional[datetime] = Field(default=None)


# ==============================================================================
# COLLECTION LEDGER
# ==============================================================================

class Collection(TimestampMixin, SQLModel, table=True):
    """
    One waste pickup event.
    Created by a Transporter scan (Collected), claimed by a Recycler scan
    (Trash Dumped) and settled when its Revenue Request is approved (Completed).
    The user and transporter references never change after creation.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the collection."
    )
    user_id: uuid.UUID = Field(
        foreign_key="user.id",
        index=True,
        description="The citizen who handed over the waste."
    )
    transporter_id: uuid.UUID = Field(
        foreign_key="transporter.id",
        index=True,
        description="The transporter who picked the waste up."
    )
    recycler_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="recycler.id",
        index=True,
        description="The recycler who claimed the waste. NULL until claimed."
    )
    weight: float = Field(
        ge=0,
        description="Total weight in kg. Example: 12.5"
    )
    wet: float = Field(default=0.0, ge=0, description="Wet waste weight in kg.")
    dry: float = Field(default=0.0, ge=0, description="Dry waste weight in kg.")
    hazardous: float = Field(
        default=0.0, ge=0, description="Hazardous waste weight in kg.")
    location_lng: float = Field(description="Pickup longitude.")
    location_lat: float = Field(description="Pickup latitude.")
    status: CollectionStatus = Field(
        default=CollectionStatus.COLLECTED,
        index=True,
        description="Lifecycle state. Only ever advances. Example: 'Collected'"
    )

    user: User = Relationship(back_populates="collections")
    transporter: Transporter = Relationship(back_populates="collections")


class TransporterCheckpoint(SQLModel, table=True):
    """
    A single point of a Transporter's daily route, left by each pickup scan.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True
    )
    transporter_id: uuid.UUID = Field(
        foreign_key="transporter.id",
        index=True
    )
    day: date = Field(
        default_factory=date.today,
        index=True,
        description="The calendar day this checkpoint is bucketed under."
    )
    location_lng: float
    location_lat: float
    scanned_at: datetime = Field(default_factory=datetime.utcnow)

    transporter: Transporter = Relationship(back_populates="checkpoints")


# ==============================================================================
# REVENUE WORKFLOW
# ==============================================================================

class RevenueRequest(TimestampMixin, SQLModel, table=True):
    """
    A Recycler's proposal to cash out a batch of claimed collections at
    self-declared per-category unit prices.
    The total is computed once at submission and never changes. Status moves
    from Pending to exactly one terminal value (Approved or Declined).
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the revenue request."
    )
    recycler_id: uuid.UUID = Field(
        foreign_key="recycler.id",
        index=True,
        description="The recycler requesting the payout."
    )
    price_wet: float = Field(ge=0, description="Unit price per kg of wet waste.")
    price_dry: float = Field(ge=0, description="Unit price per kg of dry waste.")
    price_hazardous: float = Field(
        ge=0, description="Unit price per kg of hazardous waste.")
    total_calculated_revenue: float = Field(
        ge=0,
        description="Sum over collections of category weight x category price. Example: 36.0"
    )

    # Final distribution, NULL until approved
    total_user_share: Optional[float] = Field(default=None)
    total_transporter_share: Optional[float] = Field(default=None)
    municipality_share: Optional[float] = Field(default=None)
    central_gov_share: Optional[float] = Field(default=None)
    recycler_share: Optional[float] = Field(default=None)

    status: RevenueRequestStatus = Field(
        default=RevenueRequestStatus.PENDING,
        index=True,
        description="Example: 'Pending'"
    )
    decided_at: Optional[datetime] = Field(
        default=None,
        description="When an admin approved or declined the request."
    )

    recycler: Recycler = Relationship(back_populates="revenue_requests")
    items: List["RevenueRequestItem"] = Relationship(
        back_populates="revenue_request",
        sa_relationship_kwargs={
            "order_by": "RevenueRequestItem.position",
            "cascade": "all, delete-orphan"
        }
    )


class RevenueRequestItem(SQLModel, table=True):
    """
    The frozen, ordered list of collections a Revenue Request was submitted with.
    """
    __table_args__ = (
        UniqueConstraint("revenue_request_id", "collection_id",
                         name="uq_revenue_request_collection"),
    )

    revenue_request_id: uuid.UUID = Field(
        foreign_key="revenuerequest.id",
        primary_key=True
    )
    position: int = Field(
        primary_key=True,
        description="Zero-based index in the submitted list."
    )
    collection_id: uuid.UUID = Field(
        foreign_key="collection.id",
        index=True
    )

    revenue_request: RevenueRequest = Relationship(back_populates="items")


class WalletLedgerEntry(SQLModel, table=True):
    """
    Immutable record of one wallet credit produced by an approved Revenue Request.
    The unique constraint guarantees a request credits any wallet at most once.
    """
    __table_args__ = (
        UniqueConstraint("revenue_request_id", "owner_type", "owner_id",
                         name="uq_ledger_request_owner"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True
    )
    owner_type: WalletOwnerType = Field(index=True)
    owner_id: uuid.UUID = Field(
        index=True,
        description="Id of the User or Transporter credited."
    )
    revenue_request_id: uuid.UUID = Field(
        foreign_key="revenuerequest.id",
        index=True
    )
    amount: float = Field(gt=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AuditLog(SQLModel, table=True):
    """
    Who did what to which entity. Written from background tasks.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True
    )
    actor_id: uuid.UUID = Field(index=True)
    actor_role: ActorRole
    entity_type: str = Field(description="Example: 'RevenueRequest'")
    entity_id: uuid.UUID = Field(index=True)
    action: AuditAction
    changes: Dict[str, Any] = Field(
        default_factory=dict,
        sa_type=JSON,
        description="JSON snapshot of what changed."
    )
    timestamp: datetime = Field(default_factory=datetime.utcnow)
