import re
from typing import List, Optional

from loguru import logger

from debt_tracker.core.exceptions import ConflictError, NotFoundError, ValidationError
from debt_tracker.models.client import Client
from debt_tracker.models.user import Caller, UserRole
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.user_repo import UserRepository
from debt_tracker.services.access import LedgerAccess
from debt_tracker.services.notification_service import NotificationService

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


def normalize_phone(phone: str) -> str:
    """Strip spaces and dashes; raises ValidationError unless E.164-like."""
    cleaned = re.sub(r"[\s\-()]", "", phone or "")
    if not PHONE_PATTERN.match(cleaned):
        raise ValidationError("Invalid phone number format", details={"phone": phone})
    return cleaned


def _required(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class ClientService:
    """
    Client lifecycle.

    Creating a client also provisions (or links) the CLIENT user that logs in
    with the same phone. Archiving is refused while the client still owes
    money on an ACTIVE debt.
    """

    def __init__(
        self,
        client_repo: ClientRepository,
        user_repo: UserRepository,
        debt_repo: DebtRepository,
        notifications: Optional[NotificationService] = None
    ):
        self.client_repo = client_repo
        self.user_repo = user_repo
        self.debt_repo = debt_repo
        self.notifications = notifications
        self.access = LedgerAccess(client_repo)

    async def create_client(
        self,
        caller: Caller,
        name: str,
        phone: str,
        address: Optional[str] = None,
        email: Optional[str] = None
    ) -> Client:
        self.access.require_admin(caller)
        name = _required(name, "Name")
        phone = normalize_phone(phone)

        if await self.client_repo.exists_by_phone(phone):
            raise ConflictError("Client with this phone number already exists", details={"phone": phone})

        user = await self.user_repo.get_user_by_phone(phone)
        if user is None:
            user = await self.user_repo.create_user(name=name, phone=phone, role=UserRole.CLIENT)
        elif user.is_admin:
            raise ConflictError("Phone number belongs to an administrator", details={"phone": phone})
        elif user.name != name:
            await self.user_repo.update_user(user.id, {"name": name})

        client = await self.client_repo.create_client(Client(
            name=name,
            phone=phone,
            address=_optional(address),
            email=_optional(email),
            user_id=user.id
        ))
        logger.info(f"Client created: {client.id} (user {user.id})")

        if self.notifications is not None:
            await self.notifications.new_client(client)
        return client

    async def get_client(self, caller: Caller, client_id: str) -> Client:
        client = await self.client_repo.get_client(client_id)
        if client is None or not await self.access.can_access_client(caller, client.id):
            raise NotFoundError("Client not found", details={"client_id": client_id})
        return client

    async def list_clients(self, caller: Caller) -> List[Client]:
        """Non-archived clients (ADMIN); a CLIENT caller gets their own record."""
        if not caller.is_admin:
            return [await self.access.caller_client(caller)]
        return await self.client_repo.list_clients(archived=False)

    async def list_archived_clients(self, caller: Caller) -> List[Client]:
        self.access.require_admin(caller)
        return await self.client_repo.list_clients(archived=True)

    async def update_client(
        self,
        caller: Caller,
        client_id: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        email: Optional[str] = None
    ) -> Client:
        """Change contact details. A new phone must stay unique and moves the login with it."""
        self.access.require_admin(caller)
        client = await self.client_repo.get_client(client_id)
        if client is None:
            raise NotFoundError("Client not found", details={"client_id": client_id})

        update_data = {}
        user_update = {}
        if name is not None:
            update_data["name"] = user_update["name"] = _required(name, "Name")
        if phone is not None:
            phone = normalize_phone(phone)
            if phone != client.phone:
                if await self.client_repo.exists_by_phone(phone, exclude_id=client.id):
                    raise ConflictError("Phone number already exists", details={"phone": phone})
                if await self.user_repo.exists_by_phone(phone):
                    raise ConflictError("Phone number already registered", details={"phone": phone})
                update_data["phone"] = user_update["phone"] = phone
        if address is not None:
            update_data["address"] = _optional(address)
        if email is not None:
            update_data["email"] = _optional(email)

        if not update_data:
            return client

        updated = await self.client_repo.update_client(client.id, update_data)
        if user_update and client.user_id:
            await self.user_repo.update_user(client.user_id, user_update)
        logger.info(f"Client updated: {client.id} fields={sorted(update_data)}")
        return updated

    async def archive_client(self, caller: Caller, client_id: str) -> Client:
        self.access.require_admin(caller)
        client = await self.client_repo.get_client(client_id)
        if client is None:
            raise NotFoundError("Client not found", details={"client_id": client_id})

        if await self.debt_repo.has_outstanding(client.id):
            raise ConflictError(
                "Cannot archive client with active debts pending payment",
                details={"client_id": client.id}
            )

        return await self._set_archived(client, True)

    async def unarchive_client(self, caller: Caller, client_id: str) -> Client:
        self.access.require_admin(caller)
        client = await self.client_repo.get_client(client_id)
        if client is None:
            raise NotFoundError("Client not found", details={"client_id": client_id})
        return await self._set_archived(client, False)

    async def _set_archived(self, client: Client, archived: bool) -> Client:
        await self.client_repo.set_archived(client.id, archived)
        if client.user_id:
            await self.user_repo.set_archived(client.user_id, archived)
        client.archived = archived
        logger.info(f"Client {client.id} archived={archived}")
        return client
