from typing import List
from fastapi import APIRouter, Depends, status

from debt_tracker.api.deps import get_client_service, get_current_caller
from debt_tracker.models.user import Caller
from debt_tracker.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from debt_tracker.services.client_service import ClientService

router = APIRouter()


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    caller: Caller = Depends(get_current_caller),
    service: ClientService = Depends(get_client_service)
):
    """Create a client and its login user."""
    client = await service.create_client(
        caller,
        name=payload.name,
        phone=payload.phone,
        address=payload.address,
        email=payload.email
    )
    return ClientResponse.model_validate(client)


@router.get("", response_model=List[ClientResponse])
async def list_clients(
    caller: Caller = Depends(get_current_caller),
    service: ClientService = Depends(get_client_service)
):
    return [ClientResponse.model_validate(client) for client in await service.list_clients(caller)]


@router.get("/archived", response_model=List[ClientResponse])
async def list_archived_clients(
    caller: Caller = Depends(get_current_caller),
    service: ClientService = Depends(get_client_service)
):
    return [ClientResponse.model_validate(client) for client in await service.list_archived_clients(caller)]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ClientService = Depends(get_client_service)
):
    return ClientResponse.model_validate(await service.get_client(caller, client_id))


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    payload: ClientUpdate,
    caller: Caller = Depends(get_current_caller),
    service: ClientService = Depends(get_client_service)
):
    return ClientResponse.model_validate(await service.update_client(caller, client_id, **payload.model_dump(exclude_unset=True)))


@router.post("/{client_id}/archive", response_model=ClientResponse)
async def archive_client(
    client_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ClientService = Depends(get_client_service)
):
    """Archive a client. Refused while the client has unpaid active debts."""
    return ClientResponse.model_validate(await service.archive_client(caller, client_id))


@router.post("/{client_id}/unarchive", response_model=ClientResponse)
async def unarchive_client(
    client_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ClientService = Depends(get_client_service)
):
    return ClientResponse.model_validate(await service.unarchive_client(caller, client_id))
