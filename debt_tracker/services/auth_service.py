from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from loguru import logger

from debt_tracker.core.config import settings
from debt_tracker.core.exceptions import AuthenticationError, ConflictError, ValidationError
from debt_tracker.core.security import hash_password, verify_password
from debt_tracker.models.user import Caller, User, UserRole
from debt_tracker.repositories.user_repo import UserRepository


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": str(user.id),
        "role": user.role,
        "phone": user.phone,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp())
    }

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """User id carried by a token. Raises AuthenticationError if it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError("Invalid token")
    return user_id


class AuthService:
    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    async def login(self, phone: str, password: Optional[str] = None) -> User:
        """
        Authenticate by phone.

        ADMIN users must supply their password. CLIENT users log in with their
        phone alone. Archived users are refused either way.
        """
        user = await self.user_repo.get_user_by_phone(phone.strip())
        if user is None:
            raise AuthenticationError("Invalid phone or password")

        if user.is_admin and not verify_password(password or "", user.password_hash):
            raise AuthenticationError("Invalid phone or password")

        if user.archived:
            raise AuthenticationError("User account is archived")

        logger.info(f"User {user.id} logged in as {user.role}")
        return user

    async def create_admin(self, name: str, phone: str, password: str) -> User:
        if not password or len(password) < 8:
            raise ValidationError("Password must be at least 8 characters")
        phone = phone.strip()
        if await self.user_repo.exists_by_phone(phone):
            raise ConflictError("Phone number already registered", details={"phone": phone})

        user = await self.user_repo.create_user(
            name=name.strip(),
            phone=phone,
            role=UserRole.ADMIN,
            password_hash=hash_password(password)
        )
        logger.info(f"Admin user created: {user.id}")
        return user

    async def ensure_admin(self, name: str, phone: str, password: str) -> Optional[User]:
        """Create the bootstrap administrator unless the phone is already taken."""
        if await self.user_repo.exists_by_phone(phone.strip()):
            return None
        return await self.create_admin(name, phone, password)

    async def caller_for_token(self, token: str) -> Caller:
        user_id = decode_access_token(token)
        user = await self.user_repo.get_user_by_id(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        if user.archived:
            raise AuthenticationError("User account is archived")
        return Caller.from_user(user)
