from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends, Query, status

from debt_tracker.api.deps import get_current_caller, get_payment_service
from debt_tracker.models.payment import PaymentMethod
from debt_tracker.models.user import Caller
from debt_tracker.schemas.bulk import BulkIdsRequest, BulkOperationResult
from debt_tracker.schemas.payment import (
    PaymentCreate,
    PaymentResponse,
    PaymentReverse,
    PaymentStatistics,
    PaymentUpdate,
)
from debt_tracker.services.payment_service import PaymentService

router = APIRouter()


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def add_payment(
    payload: PaymentCreate,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    """Apply a payment to a debt."""
    payment = await service.add_payment(
        caller,
        debt_id=payload.debt_id,
        amount=payload.amount,
        payment_method=payload.payment_method,
        notes=payload.notes
    )
    return PaymentResponse.model_validate(payment)


@router.get("", response_model=List[PaymentResponse])
async def list_payments(
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return [PaymentResponse.model_validate(payment) for payment in await service.list_payments(caller)]


@router.get("/recent", response_model=List[PaymentResponse])
async def recent_payments(
    limit: int = Query(10, ge=1, le=100),
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return [PaymentResponse.model_validate(payment) for payment in await service.recent_payments(caller, limit)]


@router.get("/search", response_model=List[PaymentResponse])
async def search_payments(
    q: str = Query(..., min_length=1),
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    """Search payment notes."""
    return [PaymentResponse.model_validate(payment) for payment in await service.search_payments(caller, q)]


@router.get("/method/{method}", response_model=List[PaymentResponse])
async def payments_by_method(
    method: PaymentMethod,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return [PaymentResponse.model_validate(payment) for payment in await service.payments_by_method(caller, method)]


@router.get("/amount-range", response_model=List[PaymentResponse])
async def payments_by_amount_range(
    min_amount: Decimal,
    max_amount: Decimal,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return [PaymentResponse.model_validate(payment) for payment in await service.payments_by_amount_range(caller, min_amount, max_amount)]


@router.get("/statistics", response_model=PaymentStatistics)
async def payment_statistics(
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return await service.payment_statistics(caller)


@router.get("/debt/{debt_id}", response_model=List[PaymentResponse])
async def payments_by_debt(
    debt_id: str,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return [PaymentResponse.model_validate(payment) for payment in await service.payments_by_debt(caller, debt_id)]


@router.post("/bulk/delete", response_model=BulkOperationResult)
async def bulk_delete_payments(
    payload: BulkIdsRequest,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    """Delete payments one by one, giving each amount back to its debt."""
    return await service.bulk_delete_payments(caller, payload.ids)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: str,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return PaymentResponse.model_validate(await service.get_payment(caller, payment_id))


@router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: str,
    payload: PaymentUpdate,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return PaymentResponse.model_validate(await service.update_payment(caller, payment_id, **payload.model_dump(exclude_unset=True)))


@router.post("/{payment_id}/reverse", response_model=PaymentResponse)
async def reverse_payment(
    payment_id: str,
    payload: PaymentReverse,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    return PaymentResponse.model_validate(await service.reverse_payment(caller, payment_id, payload.reason))


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: str,
    caller: Caller = Depends(get_current_caller),
    service: PaymentService = Depends(get_payment_service)
):
    await service.delete_payment(caller, payment_id)
