from typing import Any, Dict, List, Optional

from debt_tracker.models.base import utcnow
from debt_tracker.models.client import Client
from debt_tracker.repositories.base import BaseRepository, parse_object_id


class ClientRepository(BaseRepository):
    """Client database operations."""

    collection_name = "clients"

    async def create_client(self, client: Client) -> Client:
        result = await self.collection.insert_one(client.to_document())
        client.id = str(result.inserted_id)
        return client

    async def get_client(self, client_id: str) -> Optional[Client]:
        oid = parse_object_id(client_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return Client.from_document(doc) if doc else None

    async def get_client_by_phone(self, phone: str) -> Optional[Client]:
        doc = await self.collection.find_one({"phone": phone})
        return Client.from_document(doc) if doc else None

    async def exists_by_phone(self, phone: str, exclude_id: Optional[str] = None) -> bool:
        query: Dict[str, Any] = {"phone": phone}
        oid = parse_object_id(exclude_id)
        if oid is not None:
            query["_id"] = {"$ne": oid}
        return await self.collection.count_documents(query) > 0

    async def list_clients(self, archived: Optional[bool] = False) -> List[Client]:
        """List clients by name. `archived=None` returns every client."""
        query: Dict[str, Any] = {}
        if archived is not None:
            query["archived"] = archived
        docs = await self.collection.find(query).sort("name", 1).to_list(None)
        return [Client.from_document(doc) for doc in docs]

    async def get_clients_by_ids(self, client_ids: List[str]) -> Dict[str, Client]:
        oids = [oid for oid in (parse_object_id(cid) for cid in client_ids) if oid is not None]
        if not oids:
            return {}
        docs = await self.collection.find({"_id": {"$in": oids}}).to_list(None)
        clients = [Client.from_document(doc) for doc in docs]
        return {client.id: client for client in clients}

    async def update_client(self, client_id: str, update_data: Dict[str, Any]) -> Optional[Client]:
        oid = parse_object_id(client_id)
        if oid is None:
            return None
        update_data["updated_at"] = utcnow()
        result = await self.collection.update_one({"_id": oid}, {"$set": update_data})
        if result.matched_count == 0:
            return None
        return await self.get_client(client_id)

    async def set_archived(self, client_id: str, archived: bool) -> bool:
        oid = parse_object_id(client_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$set": {"archived": archived, "updated_at": utcnow()}}
        )
        return result.matched_count > 0

    async def count_clients(self, archived: Optional[bool] = False) -> int:
        query: Dict[str, Any] = {}
        if archived is not None:
            query["archived"] = archived
        return await self.collection.count_documents(query)
