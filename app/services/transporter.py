from typing import List, Optional
import uuid
from datetime import date

from loguru import logger
from sqlmodel import Session, select, or_, col
from fastapi import HTTPException

from app.db.schema import (
    Transporter, User, Collection, CollectionStatus, TransporterCheckpoint
)
from app.models.transporter import (
    TransporterCreate, TransporterUpdate, PickupScan, CheckpointRead
)
from app.models.collection import CollectionRead
from app.utils.qr import generate_account_qr
from .password import get_password_hash, verify_password


class TransporterService:
    def __init__(self, session: Session):
        self.session = session

    def get_transporter_by_id(self, transporter_id: uuid.UUID) -> Optional[Transporter]:
        return self.session.get(Transporter, transporter_id)

    def get_transporter_by_login(self, login_id: str) -> Optional[Transporter]:
        statement = select(Transporter).where(
            or_(Transporter.email == login_id.lower(), Transporter.mobile == login_id))
        return self.session.exec(statement).first()

    def _check_unique(self, email: Optional[str], license_plate: Optional[str], exclude_id: Optional[uuid.UUID] = None):
        """Raises ValueError when email or license plate belongs to another transporter."""
        if email:
            statement = select(Transporter).where(Transporter.email == email)
            if exclude_id:
                statement = statement.where(Transporter.id != exclude_id)
            if self.session.exec(statement).first():
                raise ValueError("Email already registered.")

        if license_plate:
            statement = select(Transporter).where(
                Transporter.license_plate == license_plate)
            if exclude_id:
                statement = statement.where(Transporter.id != exclude_id)
            if self.session.exec(statement).first():
                raise ValueError("License plate already registered.")

    def create_transporter(self, data: TransporterCreate) -> Transporter:
        """
        Registers a transporter and issues the QR code recyclers scan.
        Raises ValueError on duplicate mobile, email or license plate.
        """
        if self.session.exec(select(Transporter).where(Transporter.mobile == data.mobile)).first():
            raise ValueError("Mobile number already registered.")
        self._check_unique(data.email, data.license_plate)

        try:
            transporter = Transporter(
                name=data.name,
                email=data.email,
                mobile=data.mobile,
                hashed_password=get_password_hash(data.password),
                vehicle_model=data.vehicle_model,
                license_plate=data.license_plate
            )
            self.session.add(transporter)
            self.session.flush()

            transporter.qr_code_url = generate_account_qr("transporter", transporter.id)
            self.session.add(transporter)

            self.session.commit()
            self.session.refresh(transporter)

            logger.info(f"Transporter registered: {transporter.id}")
            return transporter

        except Exception as e:
            self.session.rollback()
            logger.error(f"Transporter registration failed: {str(e)}")
            raise e

    def authenticate_transporter(self, login_id: str, password: str) -> Optional[Transporter]:
        transporter = self.get_transporter_by_login(login_id)
        if not transporter:
            return None
        if not verify_password(password, transporter.hashed_password):
            return None
        return transporter

    def update_profile(self, transporter: Transporter, data: TransporterUpdate) -> Transporter:
        updates = {
            k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None
        }
        self._check_unique(
            updates.get("email"), updates.get("license_plate"), exclude_id=transporter.id)

        for field, value in updates.items():
            setattr(transporter, field, value)

        self.session.add(transporter)
        self.session.commit()
        self.session.refresh(transporter)
        logger.info(f"Profile updated for transporter {transporter.id}")
        return transporter

    def ensure_qr_code(self, transporter: Transporter) -> str:
        """Returns the QR code URL, generating it on the fly for older accounts."""
        if not transporter.qr_code_url:
            transporter.qr_code_url = generate_account_qr("transporter", transporter.id)
            self.session.add(transporter)
            self.session.commit()
        return transporter.qr_code_url

    def record_pickup(self, transporter: Transporter, data: PickupScan) -> CollectionRead:
        """
        Transporter scans a User's QR code.
        1. Creates the Collection (status Collected, no recycler).
        2. Moves the transporter's current location.
        3. Appends a checkpoint to today's route.
        All three land in one commit.
        """
        user = self.session.get(User, data.user_id)
        if not user:
            raise HTTPException(404, "User not found.")

        lng, lat = data.coordinates

        try:
            collection = Collection(
                user_id=user.id,
                transporter_id=transporter.id,
                weight=data.weight,
                wet=data.waste_types.wet,
                dry=data.waste_types.dry,
                hazardous=data.waste_types.hazardous,
                location_lng=lng,
                location_lat=lat,
                status=CollectionStatus.COLLECTED
            )
            self.session.add(collection)

            transporter.current_lng = lng
            transporter.current_lat = lat
            self.session.add(transporter)

            self.session.add(TransporterCheckpoint(
                transporter_id=transporter.id,
                location_lng=lng,
                location_lat=lat
            ))

            self.session.commit()
            self.session.refresh(collection)

        except Exception:
            self.session.rollback()
            logger.exception(
                f"Pickup scan failed for transporter {transporter.id}")
            raise

        logger.info(
            f"Collection {collection.id} recorded: user {user.id}, "
            f"transporter {transporter.id}, {collection.weight} kg")
        return CollectionRead.from_row(collection)

    def list_collections(self, transporter: Transporter, status: Optional[CollectionStatus] = None) -> List[CollectionRead]:
        statement = (
            select(Collection)
            .where(Collection.transporter_id == transporter.id)
            .order_by(col(Collection.created_at).desc())
        )
        if status:
            statement = statement.where(Collection.status == status)

        return [CollectionRead.from_row(row) for row in self.session.exec(statement).all()]

    def list_checkpoints(self, transporter: Transporter, day: Optional[date] = None) -> List[CheckpointRead]:
        day = day or date.today()
        rows = self.session.exec(
            select(TransporterCheckpoint)
            .where(TransporterCheckpoint.transporter_id == transporter.id)
            .where(TransporterCheckpoint.day == day)
            .order_by(col(TransporterCheckpoint.scanned_at))
        ).all()

        return [
            CheckpointRead(
                day=row.day,
                coordinates=[row.location_lng, row.location_lat],
                scanned_at=row.scanned_at
            ) for row in rows
        ]
