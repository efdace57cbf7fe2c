from typing import List, Optional
import uuid
from datetime import datetime

from loguru import logger
from sqlmodel import Session, select, func, col
from fastapi import HTTPException

from app.db.schema import (
    Admin, User, Transporter, Recycler, Collection,
    RevenueRequest, RevenueRequestStatus
)
from app.models.admin import DashboardStats, UserAdminUpdate
from app.models.transporter import TransporterAdminUpdate
from .password import verify_password
from .transporter import TransporterService


class AdminService:
    def __init__(self, session: Session):
        self.session = session

    def authenticate_admin(self, email: str, password: str) -> Optional[Admin]:
        admin = self.session.exec(
            select(Admin).where(Admin.email == email.lower())
        ).first()
        if not admin:
            return None
        if not verify_password(password, admin.hashed_password):
            return None
        return admin

    def record_login(self, admin: Admin) -> None:
        admin.last_login = datetime.utcnow()
        self.session.add(admin)
        self.session.commit()

    # ==========================================================================
    # DASHBOARD
    # ==========================================================================

    def dashboard_stats(self) -> DashboardStats:
        user_count = self.session.exec(
            select(func.count()).select_from(User)).one()
        transporter_count = self.session.exec(
            select(func.count()).select_from(Transporter)).one()
        recycler_count = self.session.exec(
            select(func.count()).select_from(Recycler)).one()
        total_weight = self.session.exec(
            select(func.coalesce(func.sum(Collection.weight), 0.0))).one()
        pending = self.session.exec(
            select(func.count())
            .select_from(RevenueRequest)
            .where(RevenueRequest.status == RevenueRequestStatus.PENDING)
        ).one()

        return DashboardStats(
            user_count=user_count,
            transporter_count=transporter_count,
            recycler_count=recycler_count,
            total_weight_collected=float(total_weight),
            pending_revenue_requests=pending
        )

    # ==========================================================================
    # USER MANAGEMENT
    # ==========================================================================

    def list_users(self) -> List[User]:
        return self.session.exec(
            select(User).order_by(col(User.created_at).desc())).all()

    def get_user(self, user_id: uuid.UUID) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise HTTPException(404, "User not found.")
        return user

    def update_user(self, user_id: uuid.UUID, data: UserAdminUpdate) -> User:
        user = self.get_user(user_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(user, field, value)

        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"Admin updated user {user.id}")
        return user

    # ==========================================================================
    # TRANSPORTER / RECYCLER MANAGEMENT
    # ==========================================================================

    def list_transporters(self) -> List[Transporter]:
        return self.session.exec(
            select(Transporter).order_by(col(Transporter.created_at).desc())).all()

    def update_transporter(self, transporter_id: uuid.UUID, data: TransporterAdminUpdate) -> Transporter:
        transporter = self.session.get(Transporter, transporter_id)
        if not transporter:
            raise HTTPException(404, "Transporter not found.")

        was_active = transporter.is_active
        # is_active is applied with the profile fields, in the same commit
        profile = TransporterService(self.session).update_profile(transporter, data)

        if profile.is_active != was_active:
            logger.info(
                f"Transporter {profile.id} {'activated' if profile.is_active else 'deactivated'}")

        return profile

    def list_recyclers(self) -> List[Recycler]:
        return self.session.exec(
            select(Recycler).order_by(col(Recycler.created_at).desc())).all()
