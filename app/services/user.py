from typing import List, Optional
import uuid

from loguru import logger
from sqlmodel import Session, select, or_, col

from app.db.schema import User, Collection, WalletLedgerEntry, WalletOwnerType
from app.models.user import UserCreate, UserUpdate, WalletRead, LedgerEntryRead
from app.models.collection import CollectionRead
from app.utils.qr import generate_account_qr
from .password import get_password_hash, verify_password


class UserService:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_login(self, login_id: str) -> Optional[User]:
        """Users sign in with either their email or their mobile number."""
        statement = select(User).where(
            or_(User.email == login_id.lower(), User.mobile == login_id))
        return self.session.exec(statement).first()

    def create_user(self, user_in: UserCreate) -> User:
        """
        Registers a citizen and issues their QR code.
        Raises ValueError on duplicate mobile or email.
        """
        # 1. Uniqueness checks
        if self.session.exec(select(User).where(User.mobile == user_in.mobile)).first():
            raise ValueError("Mobile number already registered.")

        if user_in.email and self.session.exec(select(User).where(User.email == user_in.email)).first():
            raise ValueError("A user with this email already exists.")

        try:
            # --- START ATOMIC TRANSACTION ---
            new_user = User(
                name=user_in.name,
                email=user_in.email,
                mobile=user_in.mobile,
                hashed_password=get_password_hash(user_in.password),
                street=user_in.street,
                city=user_in.city,
                state=user_in.state,
                pin_code=user_in.pin_code
            )
            self.session.add(new_user)
            self.session.flush()  # Need ID for the QR payload

            new_user.qr_code_url = generate_account_qr("user", new_user.id)
            self.session.add(new_user)

            # --- COMMIT ---
            self.session.commit()
            self.session.refresh(new_user)

            logger.info(f"Registration successful for user {new_user.id}")
            return new_user

        except Exception as e:
            self.session.rollback()
            logger.error(f"User registration failed: {str(e)}")
            raise e

    def authenticate_user(self, login_id: str, password: str) -> Optional[User]:
        user = self.get_user_by_login(login_id)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def update_profile(self, user: User, data: UserUpdate) -> User:
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(user, field, value)

        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"Profile updated for user {user.id}")
        return user

    def ensure_qr_code(self, user: User) -> str:
        if not user.qr_code_url:
            user.qr_code_url = generate_account_qr("user", user.id)
            self.session.add(user)
            self.session.commit()
        return user.qr_code_url

    def list_collections(self, user: User) -> List[CollectionRead]:
        rows = self.session.exec(
            select(Collection)
            .where(Collection.user_id == user.id)
            .order_by(col(Collection.created_at).desc())
        ).all()
        return [CollectionRead.from_row(row) for row in rows]

    def get_wallet(self, user: User) -> WalletRead:
        entries = self.session.exec(
            select(WalletLedgerEntry)
            .where(WalletLedgerEntry.owner_type == WalletOwnerType.USER)
            .where(WalletLedgerEntry.owner_id == user.id)
            .order_by(col(WalletLedgerEntry.created_at).desc())
        ).all()

        return WalletRead(
            wallet_balance=user.wallet_balance,
            entries=[LedgerEntryRead.model_validate(e) for e in entries]
        )
