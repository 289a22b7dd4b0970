from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, Query

from debt_tracker.api.deps import get_current_caller, get_report_service
from debt_tracker.models.user import Caller
from debt_tracker.schemas.report import (
    BusinessProjection,
    ClientRanking,
    ClientReport,
    CollectionPerformanceReport,
    DateRangeReport,
    MonthlyReport,
    OverdueDebtsReport,
    PaymentMethodAnalysis,
)
from debt_tracker.services.report_service import ReportService

router = APIRouter()


@router.get("/monthly/{year}/{month}", response_model=MonthlyReport)
async def monthly_report(
    year: int,
    month: int,
    caller: Caller = Depends(get_current_caller),
    service: ReportService = Depends(get_report_service)
):
    return await service.monthly_report(caller, year, month)


@router.get("/client/{client_id}", response_model=ClientReport)
async def client_report(
    client_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ReportService = Depends(get_report_service)
):
    return await service.client_report(caller, client_id)


@router.get("/date-range", response_model=DateRangeReport)
async def date_range_report(
    start_date: datetime,
    end_date: datetime,
    caller: Caller = Depends(get_current_caller),
    service: ReportService = Depends(get_report_service)
):
    return await service.date_range_report(caller, start_date, end_date)


@router.get("/top-clients", response_model=List[ClientRanking])
async def top_clients(
    limit: int = Query(10, ge=1, le=100),
    caller: Caller = Depends(get_current_caller),
    service: ReportService = Depends(get_report_service)
):
    return await service.top_clients(caller, limit)


@router.get("/collection-performance", response_model=CollectionPerformanceReport)
async def collection_performance(
    months: int = Query(6, ge=1, le=36),
    caller: Caller = Depends(get_current_caller),
    service: ReportService = Depends(get_report_service)
):
    return await service.collection_performance(caller, months)


@router.get("/payment-methods", response_model=PaymentMethodAnalysis)
async def payment_method_analysis(
    start_date: datetime,
    end_date: datetime,
    caller: Caller = Depends(get_current_caller),
    service: ReportService = Depends(get_report_service)
):
    return await service.payment_method_analysis(caller, start_date, end_date)


@router.get("/overdue", response_model=OverdueDebtsReport)
async def overdue_debts_report(
    caller: Caller = Depends(get_current_caller),
    service: ReportService = Depends(get_report_service)
):
    return await service.overdue_debts_report(caller)


@router.get("/projection", response_model=BusinessProjection)
async def business_projection(
    months: int = Query(3, ge=1, le=24),
    caller: Caller = Depends(get_current_caller),
    service: ReportService = Depends(get_report_service)
):
    return await service.business_projection(caller, months)
