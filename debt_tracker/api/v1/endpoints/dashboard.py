from fastapi import APIRouter, Depends

from debt_tracker.api.deps import get_current_caller, get_dashboard_service
from debt_tracker.models.user import Caller
from debt_tracker.schemas.report import ClientDashboard, DashboardData, DashboardKPIs
from debt_tracker.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("", response_model=DashboardData)
async def get_dashboard(
    caller: Caller = Depends(get_current_caller),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Admin overview: revenue, outstanding debt, recent activity."""
    return await service.dashboard(caller)


@router.get("/kpis", response_model=DashboardKPIs)
async def get_kpis(
    caller: Caller = Depends(get_current_caller),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.kpis(caller)


@router.get("/client", response_model=ClientDashboard)
async def get_client_dashboard(
    caller: Caller = Depends(get_current_caller),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Dashboard for the logged-in client."""
    return await service.client_dashboard(caller)
