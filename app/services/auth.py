from typing import Optional, Union
import uuid
from datetime import datetime, timedelta

import jwt
from sqlmodel import Session
from fastapi import HTTPException, status

from app.core.config import settings
from app.db.schema import ActorRole, User, Transporter, Recycler, Admin
from app.models.auth import Token, TokenData


Account = Union[User, Transporter, Recycler, Admin]

ACCOUNT_MODELS = {
    ActorRole.USER: User,
    ActorRole.TRANSPORTER: Transporter,
    ActorRole.RECYCLER: Recycler,
    ActorRole.ADMIN: Admin,
}


class AuthService:
    """
    Token issuance and verification shared by every role.
    The role travels inside the token so one verifier serves all four
    account tables.
    """
    ALGORITHM = "HS256"

    def __init__(self, session: Session):
        self.session = session

    def _create_jwt(self, subject: str, role: ActorRole, expires_delta: timedelta, type: str) -> str:
        """Helper to sign JWTs with specific types."""
        to_encode = {
            "sub": str(subject),
            "role": role.value,
            "exp": datetime.utcnow() + expires_delta,
            "type": type
        }
        return jwt.encode(to_encode, settings.secret_key, algorithm=self.ALGORITHM)

    def _decode(self, token: str, expected_type: str) -> Optional[TokenData]:
        try:
            payload = jwt.decode(token, settings.secret_key,
                                 algorithms=[self.ALGORITHM])
            actor_id = payload.get("sub")
            role = payload.get("role")
            token_type = payload.get("type")

            if not actor_id or not role or token_type != expected_type:
                return None

            return TokenData(actor_id=uuid.UUID(actor_id), role=ActorRole(role))
        except (jwt.PyJWTError, ValueError):
            return None

    def get_actor(self, role: ActorRole, actor_id: uuid.UUID) -> Optional[Account]:
        return self.session.get(ACCOUNT_MODELS[role], actor_id)

    def generate_access_token(self, actor_id: uuid.UUID, role: ActorRole) -> str:
        return self._create_jwt(
            subject=actor_id,
            role=role,
            expires_delta=timedelta(
                minutes=settings.access_token_expire_minutes),
            type="access"
        )

    def generate_tokens(self, actor_id: uuid.UUID, role: ActorRole) -> Token:
        return Token(
            access_token=self.generate_access_token(actor_id, role),
            refresh_token=self._create_jwt(
                subject=actor_id,
                role=role,
                expires_delta=timedelta(
                    minutes=settings.refresh_token_expire_minutes),
                type="refresh"
            ),
            token_type="bearer"
        )

    def verify_access_token(self, token: str) -> Optional[TokenData]:
        return self._decode(token, "access")

    def verify_refresh_token(self, token: str) -> Optional[TokenData]:
        return self._decode(token, "refresh")

    def refresh_session(self, refresh_token: str) -> str:
        """
        Exchange a valid refresh token for a new access token.
        Strictly validates the account state before issuing.
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        # 1. Verify Token Signature & Type
        token_data = self.verify_refresh_token(refresh_token)
        if not token_data:
            raise credentials_exception

        # 2. Verify Account Exists & Is Active
        actor = self.get_actor(token_data.role, token_data.actor_id)
        if not actor or not actor.is_active:
            raise credentials_exception

        # 3. Issue New Access Token
        return self.generate_access_token(actor.id, token_data.role)
