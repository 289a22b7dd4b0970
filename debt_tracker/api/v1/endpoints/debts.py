from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends, Query, status

from debt_tracker.api.deps import get_current_caller, get_debt_service
from debt_tracker.models.debt import DebtStatus
from debt_tracker.models.user import Caller
from debt_tracker.schemas.bulk import BulkIdsRequest, BulkOperationResult
from debt_tracker.schemas.debt import DebtCreate, DebtResponse, DebtStatistics, DebtUpdate
from debt_tracker.services.debt_service import DebtService

router = APIRouter()


@router.post("", response_model=DebtResponse, status_code=status.HTTP_201_CREATED)
async def create_debt(
    payload: DebtCreate,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    debt = await service.create_debt(
        caller,
        client_id=payload.client_id,
        total_amount=payload.total_amount,
        description=payload.description,
        due_date=payload.due_date
    )
    return DebtResponse.model_validate(debt)


@router.get("", response_model=List[DebtResponse])
async def list_debts(
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    """Non-archived debts visible to the caller."""
    return [DebtResponse.model_validate(debt) for debt in await service.list_debts(caller)]


@router.get("/archived", response_model=List[DebtResponse])
async def list_archived_debts(
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return [DebtResponse.model_validate(debt) for debt in await service.list_archived_debts(caller)]


@router.get("/search", response_model=List[DebtResponse])
async def search_debts(
    q: str = Query(..., min_length=1),
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return [DebtResponse.model_validate(debt) for debt in await service.search_debts(caller, q)]


@router.get("/status/{debt_status}", response_model=List[DebtResponse])
async def debts_by_status(
    debt_status: DebtStatus,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return [DebtResponse.model_validate(debt) for debt in await service.debts_by_status(caller, debt_status)]


@router.get("/amount-range", response_model=List[DebtResponse])
async def debts_by_amount_range(
    min_amount: Decimal,
    max_amount: Decimal,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return [DebtResponse.model_validate(debt) for debt in await service.debts_by_amount_range(caller, min_amount, max_amount)]


@router.get("/statistics", response_model=DebtStatistics)
async def debt_statistics(
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return await service.debt_statistics(caller)


@router.get("/high-priority", response_model=List[DebtResponse])
async def high_priority_debts(
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return [DebtResponse.model_validate(debt) for debt in await service.high_priority_debts(caller)]


@router.post("/bulk/settle", response_model=BulkOperationResult)
async def bulk_settle(
    payload: BulkIdsRequest,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    """Mark debts as settled regardless of payments (admin override)."""
    return await service.bulk_settle(caller, payload.ids)


@router.post("/bulk/delete", response_model=BulkOperationResult)
async def bulk_delete_debts(
    payload: BulkIdsRequest,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return await service.bulk_delete_debts(caller, payload.ids)


@router.get("/{debt_id}", response_model=DebtResponse)
async def get_debt(
    debt_id: str,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return DebtResponse.model_validate(await service.get_debt(caller, debt_id))


@router.put("/{debt_id}", response_model=DebtResponse)
async def update_debt(
    debt_id: str,
    payload: DebtUpdate,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return DebtResponse.model_validate(await service.update_debt(caller, debt_id, **payload.model_dump(exclude_unset=True)))


@router.post("/{debt_id}/archive", response_model=DebtResponse)
async def archive_debt(
    debt_id: str,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return DebtResponse.model_validate(await service.archive_debt(caller, debt_id))


@router.post("/{debt_id}/unarchive", response_model=DebtResponse)
async def unarchive_debt(
    debt_id: str,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    return DebtResponse.model_validate(await service.unarchive_debt(caller, debt_id))


@router.delete("/{debt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_debt(
    debt_id: str,
    caller: Caller = Depends(get_current_caller),
    service: DebtService = Depends(get_debt_service)
):
    """Delete a debt that has no payments."""
    await service.delete_debt(caller, debt_id)
