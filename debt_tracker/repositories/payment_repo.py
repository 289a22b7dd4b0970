from datetime import datetime
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClientSession

from debt_tracker.models.base import utcnow
from debt_tracker.models.payment import Payment, PaymentMethod
from debt_tracker.repositories.base import BaseRepository, contains_ignore_case, parse_object_id


class PaymentRepository(BaseRepository):
    """Payment database operations. Listings are newest payment first."""

    collection_name = "payments"

    async def create_payment(
        self,
        payment: Payment,
        session: Optional[AsyncIOMotorClientSession] = None
    ) -> Payment:
        result = await self.collection.insert_one(payment.to_document(), session=session)
        payment.id = str(result.inserted_id)
        return payment

    async def get_payment(self, payment_id: str) -> Optional[Payment]:
        oid = parse_object_id(payment_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return Payment.from_document(doc) if doc else None

    async def _find(self, query: Dict[str, Any], limit: int = 0) -> List[Payment]:
        cursor = self.collection.find(query).sort("payment_date", -1)
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(None)
        return [Payment.from_document(doc) for doc in docs]

    @staticmethod
    def _scoped(query: Dict[str, Any], client_id: Optional[str]) -> Dict[str, Any]:
        if client_id is not None:
            query["client_id"] = client_id
        return query

    async def list_payments(self, client_id: Optional[str] = None) -> List[Payment]:
        return await self._find(self._scoped({}, client_id))

    async def list_by_debt(self, debt_id: str) -> List[Payment]:
        return await self._find({"debt_id": debt_id})

    async def count_by_debt(self, debt_id: str) -> int:
        return await self.collection.count_documents({"debt_id": debt_id})

    async def search_notes(self, term: str, client_id: Optional[str] = None) -> List[Payment]:
        return await self._find(self._scoped({"notes": contains_ignore_case(term)}, client_id))

    async def list_by_method(self, method: PaymentMethod, client_id: Optional[str] = None) -> List[Payment]:
        return await self._find(self._scoped({"payment_method": PaymentMethod(method).value}, client_id))

    async def list_by_amount_range(
        self,
        min_cents: int,
        max_cents: int,
        client_id: Optional[str] = None
    ) -> List[Payment]:
        query = {"amount_cents": {"$gte": min_cents, "$lte": max_cents}}
        return await self._find(self._scoped(query, client_id))

    async def list_between(
        self,
        start: datetime,
        end: datetime,
        client_id: Optional[str] = None
    ) -> List[Payment]:
        """Payments dated within [start, end)."""
        query = {"payment_date": {"$gte": start, "$lt": end}}
        return await self._find(self._scoped(query, client_id))

    async def recent(self, limit: int = 10, client_id: Optional[str] = None) -> List[Payment]:
        return await self._find(self._scoped({}, client_id), limit=limit)

    async def totals(
        self,
        client_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Dict[str, int]:
        """Sum in cents and count, optionally within [start, end)."""
        match: Dict[str, Any] = self._scoped({}, client_id)
        if start is not None or end is not None:
            window: Dict[str, datetime] = {}
            if start is not None:
                window["$gte"] = start
            if end is not None:
                window["$lt"] = end
            match["payment_date"] = window
        return await self._sum_and_count(match, "amount_cents")

    async def totals_by_method(self, client_id: Optional[str] = None) -> Dict[str, Dict[str, int]]:
        rows = await self.collection.aggregate([
            {"$match": self._scoped({}, client_id)},
            {
                "$group": {
                    "_id": "$payment_method",
                    "total": {"$sum": "$amount_cents"},
                    "count": {"$sum": 1}
                }
            }
        ]).to_list(None)
        return {row["_id"]: {"total": row["total"], "count": row["count"]} for row in rows}

    async def update_payment(
        self,
        payment_id: str,
        update_data: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None
    ) -> bool:
        oid = parse_object_id(payment_id)
        if oid is None:
            return False
        update_data["updated_at"] = utcnow()
        result = await self.collection.update_one({"_id": oid}, {"$set": update_data}, session=session)
        return result.matched_count > 0

    async def delete_payment(
        self,
        payment_id: str,
        session: Optional[AsyncIOMotorClientSession] = None
    ) -> bool:
        oid = parse_object_id(payment_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid}, session=session)
        return result.deleted_count > 0
