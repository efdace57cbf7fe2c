from typing import List, Optional
import uuid

from loguru import logger
from sqlalchemy import update
from sqlmodel import Session, select, col
from fastapi import HTTPException

from app.db.schema import Recycler, Transporter, Collection, CollectionStatus
from app.models.recycler import RecyclerCreate, RecyclerUpdate, ClaimResult
from app.models.collection import CollectionRead, WasteTypes
from .password import get_password_hash, verify_password


class RecyclerService:
    def __init__(self, session: Session):
        self.session = session

    def get_recycler_by_email(self, email: str) -> Optional[Recycler]:
        return self.session.exec(
            select(Recycler).where(Recycler.email == email.lower())
        ).first()

    def _check_unique(self, name: Optional[str], email: Optional[str], exclude_id: Optional[uuid.UUID] = None):
        if email:
            statement = select(Recycler).where(Recycler.email == email)
            if exclude_id:
                statement = statement.where(Recycler.id != exclude_id)
            if self.session.exec(statement).first():
                raise ValueError("Recycler with this email already exists.")

        if name:
            statement = select(Recycler).where(Recycler.name == name)
            if exclude_id:
                statement = statement.where(Recycler.id != exclude_id)
            if self.session.exec(statement).first():
                raise ValueError("Recycler with this name already exists.")

    def create_recycler(self, data: RecyclerCreate) -> Recycler:
        self._check_unique(data.name, data.email)

        recycler = Recycler(
            name=data.name,
            email=data.email,
            hashed_password=get_password_hash(data.password),
            address=data.address,
            city=data.city,
            state=data.state,
            zip_code=data.zip_code
        )
        self.session.add(recycler)
        self.session.commit()
        self.session.refresh(recycler)

        logger.info(f"Recycler registered: {recycler.id}")
        return recycler

    def authenticate_recycler(self, email: str, password: str) -> Optional[Recycler]:
        recycler = self.get_recycler_by_email(email)
        if not recycler:
            return None
        if not verify_password(password, recycler.hashed_password):
            return None
        return recycler

    def update_profile(self, recycler: Recycler, data: RecyclerUpdate) -> Recycler:
        updates = {
            k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None
        }
        self._check_unique(updates.get("name"), updates.get("email"),
                           exclude_id=recycler.id)

        for field, value in updates.items():
            setattr(recycler, field, value)

        self.session.add(recycler)
        self.session.commit()
        self.session.refresh(recycler)
        logger.info(f"Profile updated for recycler {recycler.id}")
        return recycler

    def claim_by_transporter(self, recycler: Recycler, transporter_id: uuid.UUID) -> ClaimResult:
        """
        Recycler scans a Transporter's QR code and takes every collection the
        transporter is carrying that nobody has claimed yet.

        The claim is ONE conditional UPDATE. A row only matches while it is
        still Collected with no recycler, so when two recyclers race for the
        same collection exactly one UPDATE touches it. The weights reported
        back come from the rows this statement matched (RETURNING), never
        from a separate read.
        """
        transporter = self.session.get(Transporter, transporter_id)
        if not transporter:
            logger.warning(
                f"Recycler {recycler.id} scanned unknown transporter {transporter_id}")
            raise HTTPException(
                404, "Transporter not found. The QR code may be invalid.")

        statement = (
            update(Collection)
            .where(col(Collection.transporter_id) == transporter.id)
            .where(col(Collection.status) == CollectionStatus.COLLECTED)
            .where(col(Collection.recycler_id).is_(None))
            .values(recycler_id=recycler.id, status=CollectionStatus.TRASH_DUMPED)
            .returning(
                col(Collection.id), col(Collection.weight),
                col(Collection.wet), col(Collection.dry), col(Collection.hazardous)
            )
            .execution_options(synchronize_session=False)
        )

        try:
            claimed = self.session.execute(statement).all()
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception(
                f"Claim failed: recycler {recycler.id}, transporter {transporter.id}")
            raise

        if not claimed:
            logger.info(
                f"Nothing to claim from transporter {transporter.id} for recycler {recycler.id}")
            return ClaimResult(
                message="No new collected items were available to be claimed from this transporter.",
                claimed_count=0
            )

        categorical = WasteTypes(
            wet=sum(row.wet for row in claimed),
            dry=sum(row.dry for row in claimed),
            hazardous=sum(row.hazardous for row in claimed)
        )
        total_weight = sum(row.weight for row in claimed)

        logger.info(
            f"Recycler {recycler.id} claimed {len(claimed)} collections "
            f"({total_weight} kg) from transporter {transporter.id}")

        return ClaimResult(
            message=f"Successfully claimed {len(claimed)} collections from {transporter.name}.",
            claimed_count=len(claimed),
            estimated_total_weight=total_weight,
            estimated_categorical_weights=categorical
        )

    def list_claimed(self, recycler: Recycler, status: Optional[CollectionStatus] = None) -> List[CollectionRead]:
        """
        Collections this recycler has claimed. Filtering on Trash Dumped gives
        the ones still eligible for a Revenue Request.
        """
        statement = (
            select(Collection)
            .where(Collection.recycler_id == recycler.id)
            .order_by(col(Collection.created_at).desc())
        )
        if status:
            statement = statement.where(Collection.status == status)

        return [CollectionRead.from_row(row) for row in self.session.exec(statement).all()]
