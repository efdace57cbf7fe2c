from uuid import UUID
from sqlmodel import SQLModel

from app.db.schema import ActorRole


class Token(SQLModel):
    access_token: str
    refresh_token: str
    token_type: str


class TokenAccess(SQLModel):
    access_token: str


class TokenRefresh(SQLModel):
    refresh_token: str


class TokenData(SQLModel):
    actor_id: UUID
    role: ActorRole
