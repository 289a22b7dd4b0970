"""
DebtRepository - persistence for debts.

Balance writes go through `set_balance`, a compare-and-set on the remaining
amount: if another request moved the balance since it was read, nothing is
written and the caller gets False back.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClientSession

from debt_tracker.models.base import utcnow
from debt_tracker.models.debt import Debt, DebtStatus
from debt_tracker.repositories.base import BaseRepository, contains_ignore_case, parse_object_id


class DebtRepository(BaseRepository):
    """Repository for debts."""

    collection_name = "debts"

    async def create_debt(self, debt: Debt) -> Debt:
        result = await self.collection.insert_one(debt.to_document())
        debt.id = str(result.inserted_id)
        return debt

    async def get_debt(
        self,
        debt_id: str,
        session: Optional[AsyncIOMotorClientSession] = None
    ) -> Optional[Debt]:
        oid = parse_object_id(debt_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid}, session=session)
        return Debt.from_document(doc) if doc else None

    async def exists(self, debt_id: str) -> bool:
        oid = parse_object_id(debt_id)
        if oid is None:
            return False
        return await self.collection.count_documents({"_id": oid}) > 0

    async def get_debts_by_ids(self, debt_ids: List[str]) -> Dict[str, Debt]:
        oids = [oid for oid in (parse_object_id(did) for did in debt_ids) if oid is not None]
        if not oids:
            return {}
        docs = await self.collection.find({"_id": {"$in": oids}}).to_list(None)
        debts = [Debt.from_document(doc) for doc in docs]
        return {debt.id: debt for debt in debts}

    async def _find(self, query: Dict[str, Any], sort_field: str = "created_at", direction: int = -1) -> List[Debt]:
        docs = await self.collection.find(query).sort(sort_field, direction).to_list(None)
        return [Debt.from_document(doc) for doc in docs]

    async def list_debts(
        self,
        client_id: Optional[str] = None,
        archived: Optional[bool] = False,
        status: Optional[DebtStatus] = None
    ) -> List[Debt]:
        """Newest first. Any filter left as None is not applied."""
        query: Dict[str, Any] = {}
        if client_id is not None:
            query["client_id"] = client_id
        if archived is not None:
            query["archived"] = archived
        if status is not None:
            query["status"] = DebtStatus(status).value
        return await self._find(query)

    async def search_debts(self, term: str, client_id: Optional[str] = None) -> List[Debt]:
        """Case-insensitive match on description."""
        query: Dict[str, Any] = {"description": contains_ignore_case(term)}
        if client_id is not None:
            query["client_id"] = client_id
        return await self._find(query)

    async def list_by_total_range(
        self,
        min_cents: int,
        max_cents: int,
        client_id: Optional[str] = None
    ) -> List[Debt]:
        query: Dict[str, Any] = {"total_amount_cents": {"$gte": min_cents, "$lte": max_cents}}
        if client_id is not None:
            query["client_id"] = client_id
        return await self._find(query)

    async def list_outstanding(self, client_id: Optional[str] = None, min_remaining_cents: int = 1) -> List[Debt]:
        """ACTIVE debts with at least `min_remaining_cents` left, largest first."""
        query: Dict[str, Any] = {
            "status": DebtStatus.ACTIVE.value,
            "remaining_amount_cents": {"$gte": min_remaining_cents}
        }
        if client_id is not None:
            query["client_id"] = client_id
        return await self._find(query, sort_field="remaining_amount_cents")

    async def has_outstanding(self, client_id: str) -> bool:
        return await self.collection.count_documents({
            "client_id": client_id,
            "status": DebtStatus.ACTIVE.value,
            "remaining_amount_cents": {"$gt": 0}
        }) > 0

    async def list_overdue(self, before: datetime) -> List[Debt]:
        """ACTIVE debts with money left whose due date is before `before`."""
        return await self._find(
            {
                "status": DebtStatus.ACTIVE.value,
                "remaining_amount_cents": {"$gt": 0},
                "due_date": {"$ne": None, "$lt": before}
            },
            sort_field="due_date",
            direction=1
        )

    async def list_created_between(self, start: datetime, end: datetime) -> List[Debt]:
        return await self._find({"created_at": {"$gte": start, "$lt": end}}, direction=1)

    async def remaining_by_client(self) -> Dict[str, int]:
        """Outstanding cents per client across ACTIVE debts."""
        rows = await self.collection.aggregate([
            {"$match": {"status": DebtStatus.ACTIVE.value}},
            {"$group": {"_id": "$client_id", "total": {"$sum": "$remaining_amount_cents"}}}
        ]).to_list(None)
        return {row["_id"]: row["total"] for row in rows}

    async def total_remaining(self, client_id: Optional[str] = None) -> int:
        match: Dict[str, Any] = {"status": DebtStatus.ACTIVE.value}
        if client_id is not None:
            match["client_id"] = client_id
        return (await self._sum_and_count(match, "remaining_amount_cents"))["total"]

    async def set_balance(
        self,
        debt_id: str,
        remaining_cents: int,
        status: DebtStatus,
        expected_remaining_cents: Optional[int] = None,
        session: Optional[AsyncIOMotorClientSession] = None
    ) -> bool:
        """
        Write a new remaining amount and status.

        With `expected_remaining_cents`, the write only lands if the stored
        balance still equals it. Returns whether a document was updated.
        """
        oid = parse_object_id(debt_id)
        if oid is None:
            return False
        query: Dict[str, Any] = {"_id": oid}
        if expected_remaining_cents is not None:
            query["remaining_amount_cents"] = expected_remaining_cents
        result = await self.collection.update_one(
            query,
            {
                "$set": {
                    "remaining_amount_cents": remaining_cents,
                    "status": DebtStatus(status).value,
                    "updated_at": utcnow()
                }
            },
            session=session
        )
        return result.matched_count > 0

    async def update_debt(
        self,
        debt_id: str,
        update_data: Dict[str, Any],
        expected_remaining_cents: Optional[int] = None
    ) -> Optional[Debt]:
        """Same guard as `set_balance`: None when nothing matched."""
        oid = parse_object_id(debt_id)
        if oid is None:
            return None
        query: Dict[str, Any] = {"_id": oid}
        if expected_remaining_cents is not None:
            query["remaining_amount_cents"] = expected_remaining_cents
        update_data["updated_at"] = utcnow()
        result = await self.collection.update_one(query, {"$set": update_data})
        if result.matched_count == 0:
            return None
        return await self.get_debt(debt_id)

    async def set_archived(self, debt_id: str, archived: bool) -> bool:
        oid = parse_object_id(debt_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$set": {"archived": archived, "updated_at": utcnow()}}
        )
        return result.matched_count > 0

    async def delete_debt(self, debt_id: str) -> bool:
        oid = parse_object_id(debt_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0
