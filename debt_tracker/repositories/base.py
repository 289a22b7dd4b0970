import re
from typing import Any, Dict, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """ObjectId for a string id, or None when it cannot be one."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def contains_ignore_case(term: str) -> Dict[str, str]:
    """Case-insensitive substring match on a string field."""
    return {"$regex": re.escape(term), "$options": "i"}


class BaseRepository:
    """Holds the database handle and the collection a repository works on."""

    collection_name: str = ""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.collection_name]

    async def _sum_and_count(self, match: Dict[str, Any], field: str) -> Dict[str, int]:
        """Sum of `field` plus document count for everything matching."""
        result = await self.collection.aggregate([
            {"$match": match},
            {
                "$group": {
                    "_id": None,
                    "total": {"$sum": f"${field}"},
                    "count": {"$sum": 1}
                }
            }
        ]).to_list(None)

        if not result:
            return {"total": 0, "count": 0}
        return {"total": result[0]["total"], "count": result[0]["count"]}
