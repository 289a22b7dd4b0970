from typing import Any, Dict, Optional

from debt_tracker.models.base import utcnow
from debt_tracker.models.user import User, UserRole
from debt_tracker.repositories.base import BaseRepository, parse_object_id


class UserRepository(BaseRepository):
    """User database operations."""

    collection_name = "users"

    async def create_user(
        self,
        name: str,
        phone: str,
        role: UserRole = UserRole.CLIENT,
        password_hash: str = ""
    ) -> User:
        """Create a new user."""
        user = User(name=name, phone=phone, role=role, password_hash=password_hash)
        result = await self.collection.insert_one(user.to_document())
        user.id = str(result.inserted_id)
        return user

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return User.from_document(doc) if doc else None

    async def get_user_by_phone(self, phone: str) -> Optional[User]:
        """Get user by phone (login identity)."""
        doc = await self.collection.find_one({"phone": phone})
        return User.from_document(doc) if doc else None

    async def exists_by_phone(self, phone: str) -> bool:
        return await self.collection.count_documents({"phone": phone}) > 0

    async def update_user(self, user_id: str, update_data: Dict[str, Any]) -> Optional[User]:
        """Update user fields."""
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        update_data["updated_at"] = utcnow()
        await self.collection.update_one({"_id": oid}, {"$set": update_data})
        return await self.get_user_by_id(user_id)

    async def set_archived(self, user_id: str, archived: bool) -> bool:
        oid = parse_object_id(user_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$set": {"archived": archived, "updated_at": utcnow()}}
        )
        return result.matched_count > 0
