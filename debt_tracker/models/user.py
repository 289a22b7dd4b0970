from enum import Enum
from pydantic import BaseModel, Field

from debt_tracker.models.base import DocumentModel


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


class User(DocumentModel):
    """
    Login identity. `phone` is unique; CLIENT users carry an empty password hash.
    """
    name: str = Field(..., min_length=1, max_length=100)
    phone: str
    password_hash: str = ""
    role: UserRole = UserRole.CLIENT
    archived: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Caller(BaseModel):
    """Identity of whoever invokes a ledger operation."""
    user_id: str
    phone: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(user_id=str(user.id), phone=user.phone, role=user.role)
