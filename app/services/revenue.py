from typing import List, Optional
import uuid
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy import update
from sqlmodel import Session, select, col
from fastapi import HTTPException, BackgroundTasks

from app.core.audit import _perform_audit_log
from app.core.config import settings
from app.db.schema import (
    Admin, Recycler, User, Transporter, Collection, CollectionStatus,
    RevenueRequest, RevenueRequestItem, RevenueRequestStatus,
    WalletLedgerEntry, WalletOwnerType, AuditAction, ActorRole
)
from app.models.revenue import (
    RevenueRequestCreate, RevenueRequestRead, RevenueDecision
)
from .distribution import (
    Contribution, Distribution, collection_revenue, compute_distribution
)


WALLET_MODELS = {
    WalletOwnerType.USER: User,
    WalletOwnerType.TRANSPORTER: Transporter,
}


class RevenueService:
    """
    The payout workflow: recycler submission, admin listing, and the two
    terminal decisions (approve / decline).
    """

    def __init__(self, session: Session):
        self.session = session

    # ==========================================================================
    # RECYCLER ACTIONS
    # ==========================================================================

    def submit(
        self,
        recycler: Recycler,
        data: RevenueRequestCreate,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> RevenueRequestRead:
        """
        Creates a Pending Revenue Request.

        The submitted ids are re-checked against the store: each must belong
        to this recycler and still be Trash Dumped. Any difference (stale
        client, foreign or settled collection, duplicated id) rejects the whole
        submission. Collections are not touched here; settlement happens at
        approval time.
        """
        ids = data.collection_ids
        prices = data.waste_prices

        matched = self.session.exec(
            select(Collection)
            .where(col(Collection.id).in_(ids))
            .where(Collection.recycler_id == recycler.id)
            .where(Collection.status == CollectionStatus.TRASH_DUMPED)
        ).all()

        if len(matched) != len(ids):
            logger.warning(
                f"Revenue request rejected for recycler {recycler.id}: "
                f"{len(ids)} submitted, {len(matched)} eligible")
            raise HTTPException(
                409, "Data mismatch: some collections are not claimed by you or are already settled. Refresh and try again.")

        total = sum(
            (collection_revenue(c.wet, c.dry, c.hazardous,
                                prices.wet, prices.dry, prices.hazardous)
             for c in matched),
            start=Decimal(0)
        )

        try:
            request = RevenueRequest(
                recycler_id=recycler.id,
                price_wet=prices.wet,
                price_dry=prices.dry,
                price_hazardous=prices.hazardous,
                total_calculated_revenue=float(total),
                status=RevenueRequestStatus.PENDING
            )
            self.session.add(request)
            self.session.flush()

            for position, collection_id in enumerate(ids):
                self.session.add(RevenueRequestItem(
                    revenue_request_id=request.id,
                    position=position,
                    collection_id=collection_id
                ))

            self.session.commit()
            self.session.refresh(request)

        except Exception:
            self.session.rollback()
            logger.exception(
                f"Revenue request submission failed for recycler {recycler.id}")
            raise

        logger.info(
            f"Revenue request {request.id} submitted by recycler {recycler.id}: "
            f"{len(ids)} collections, total {request.total_calculated_revenue}")

        if background_tasks:
            background_tasks.add_task(
                _perform_audit_log,
                actor_id=recycler.id,
                actor_role=ActorRole.RECYCLER,
                entity_type="RevenueRequest",
                entity_id=request.id,
                action=AuditAction.CREATE,
                changes={
                    "collections": [str(i) for i in ids],
                    "total_calculated_revenue": request.total_calculated_revenue
                }
            )

        return RevenueRequestRead.from_row(request)

    def list_for_recycler(self, recycler: Recycler) -> List[RevenueRequestRead]:
        rows = self.session.exec(
            select(RevenueRequest)
            .where(RevenueRequest.recycler_id == recycler.id)
            .order_by(col(RevenueRequest.created_at).desc())
        ).all()
        return [RevenueRequestRead.from_row(row) for row in rows]

    # ==========================================================================
    # ADMIN ACTIONS
    # ==========================================================================

    def list_all(self, status: Optional[RevenueRequestStatus] = None) -> List[RevenueRequestRead]:
        statement = select(RevenueRequest).order_by(
            col(RevenueRequest.created_at).desc())
        if status:
            statement = statement.where(RevenueRequest.status == status)
        return [RevenueRequestRead.from_row(row) for row in self.session.exec(statement).all()]

    def _transition(self, request_id: uuid.UUID, target: RevenueRequestStatus) -> bool:
        """
        Pending -> target as a conditional UPDATE. Returns False when the
        request is missing or was already decided (including by a concurrent
        transaction, which blocks on the row and then matches nothing).
        """
        result = self.session.execute(
            update(RevenueRequest)
            .where(col(RevenueRequest.id) == request_id)
            .where(col(RevenueRequest.status) == RevenueRequestStatus.PENDING)
            .values(status=target, decided_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _settle_collections(self, request: RevenueRequest) -> List[Collection]:
        """
        Flips every referenced collection Trash Dumped -> Completed.
        Fails the approval if any of them was settled in the meantime (for
        example by another request submitted over the same collections).
        """
        ids = [item.collection_id for item in request.items]

        result = self.session.execute(
            update(Collection)
            .where(col(Collection.id).in_(ids))
            .where(col(Collection.recycler_id) == request.recycler_id)
            .where(col(Collection.status) == CollectionStatus.TRASH_DUMPED)
            .values(status=CollectionStatus.COMPLETED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != len(ids):
            logger.warning(
                f"Approval of {request.id} aborted: {len(ids) - result.rowcount} "
                f"collections are no longer awaiting settlement")
            raise HTTPException(
                409, "Some collections in this request were already settled. Decline it instead.")

        by_id = {
            c.id: c for c in self.session.exec(
                select(Collection).where(col(Collection.id).in_(ids))
            ).all()
        }
        return [by_id[i] for i in ids]

    def _apply_credits(self, request: RevenueRequest, distribution: Distribution):
        """Atomic wallet increments plus one ledger row per credit."""
        for credit in distribution.credits:
            model = WALLET_MODELS[credit.owner_type]
            self.session.execute(
                update(model)
                .where(col(model.id) == credit.owner_id)
                .values(wallet_balance=col(model.wallet_balance) + float(credit.amount))
                .execution_options(synchronize_session=False)
            )
            self.session.add(WalletLedgerEntry(
                owner_type=credit.owner_type,
                owner_id=credit.owner_id,
                revenue_request_id=request.id,
                amount=float(credit.amount)
            ))

    def approve(
        self,
        admin: Admin,
        request_id: uuid.UUID,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> RevenueDecision:
        """
        Approves a Pending request and distributes its revenue.

        Steps, all inside one transaction:
        1. Pending -> Approved (conditional, so a second approval matches nothing).
        2. Referenced collections Trash Dumped -> Completed (all or fail).
        3. Wallet increments + ledger rows for every distinct user/transporter.
        4. Final distribution written onto the request.
        Any failure rolls back every step.
        """
        try:
            if not self._transition(request_id, RevenueRequestStatus.APPROVED):
                raise HTTPException(
                    409, "Revenue request not found or already processed.")

            request = self.session.get(RevenueRequest, request_id)
            collections = self._settle_collections(request)

            contributions = [
                Contribution(
                    user_id=c.user_id,
                    transporter_id=c.transporter_id,
                    revenue=collection_revenue(
                        c.wet, c.dry, c.hazardous,
                        request.price_wet, request.price_dry, request.price_hazardous)
                ) for c in collections
            ]
            distribution = compute_distribution(
                request.total_calculated_revenue,
                contributions,
                policy=settings.distribution_policy
            )

            self._apply_credits(request, distribution)

            request.total_user_share = float(distribution.total_user_share)
            request.total_transporter_share = float(
                distribution.total_transporter_share)
            request.municipality_share = float(distribution.municipality_share)
            request.central_gov_share = float(distribution.central_gov_share)
            request.recycler_share = float(distribution.recycler_share)
            self.session.add(request)

            self.session.commit()
            self.session.refresh(request)

        except HTTPException:
            self.session.rollback()
            raise
        except Exception:
            self.session.rollback()
            logger.exception(f"Revenue distribution failed for {request_id}")
            raise HTTPException(
                500, "Revenue distribution failed. No changes were applied.")

        logger.info(
            f"Revenue request {request.id} approved by admin {admin.id}: "
            f"{len(distribution.credits)} wallets credited, total {distribution.total_revenue}")

        if background_tasks:
            background_tasks.add_task(
                _perform_audit_log,
                actor_id=admin.id,
                actor_role=ActorRole.ADMIN,
                entity_type="RevenueRequest",
                entity_id=request.id,
                action=AuditAction.APPROVE,
                changes={
                    "old_status": RevenueRequestStatus.PENDING.value,
                    "new_status": RevenueRequestStatus.APPROVED.value,
                    "credits": len(distribution.credits)
                }
            )

        read = RevenueRequestRead.from_row(request)
        return RevenueDecision(
            id=read.id,
            status=read.status,
            final_distribution=read.final_distribution
        )

    def decline(
        self,
        admin: Admin,
        request_id: uuid.UUID,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> RevenueDecision:
        """
        Pending -> Declined. No money moves and no collection changes.
        Only Pending requests can be declined, so an approved payout can never
        be marked declined after the fact.
        """
        if not self.session.get(RevenueRequest, request_id):
            raise HTTPException(404, "Revenue request not found.")

        try:
            if not self._transition(request_id, RevenueRequestStatus.DECLINED):
                raise HTTPException(
                    409, "Revenue request has already been processed.")
            self.session.commit()

        except HTTPException:
            self.session.rollback()
            raise
        except Exception:
            self.session.rollback()
            logger.exception(f"Declining revenue request {request_id} failed")
            raise

        logger.info(
            f"Revenue request {request_id} declined by admin {admin.id}")

        if background_tasks:
            background_tasks.add_task(
                _perform_audit_log,
                actor_id=admin.id,
                actor_role=ActorRole.ADMIN,
                entity_type="RevenueRequest",
                entity_id=request_id,
                action=AuditAction.DECLINE,
                changes={
                    "old_status": RevenueRequestStatus.PENDING.value,
                    "new_status": RevenueRequestStatus.DECLINED.value
                }
            )

        return RevenueDecision(id=request_id, status=RevenueRequestStatus.DECLINED)
