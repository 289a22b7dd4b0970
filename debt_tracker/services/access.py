from typing import Optional

from debt_tracker.core.exceptions import NotFoundError, PermissionDeniedError
from debt_tracker.models.client import Client
from debt_tracker.models.user import Caller
from debt_tracker.repositories.client_repo import ClientRepository


class LedgerAccess:
    """
    Role checks for ledger operations.

    ADMIN callers see everything. CLIENT callers are scoped to the Client
    record whose phone matches their login phone.
    """

    def __init__(self, client_repo: ClientRepository):
        self.client_repo = client_repo

    @staticmethod
    def require_admin(caller: Caller) -> None:
        if not caller.is_admin:
            raise PermissionDeniedError("Only administrators can perform this operation")

    async def caller_client(self, caller: Caller) -> Client:
        """The Client linked to a CLIENT caller."""
        client = await self.client_repo.get_client_by_phone(caller.phone)
        if client is None:
            raise NotFoundError(
                "Client record not found for current user",
                details={"phone": caller.phone}
            )
        return client

    async def client_scope(self, caller: Caller) -> Optional[str]:
        """
        Client id to filter reads by.

        None means no filter (ADMIN).
        """
        if caller.is_admin:
            return None
        client = await self.caller_client(caller)
        return client.id

    async def can_access_client(self, caller: Caller, client_id: str) -> bool:
        scope = await self.client_scope(caller)
        return scope is None or scope == client_id
