from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel

from debt_tracker.schemas.client import ClientResponse
from debt_tracker.schemas.debt import DebtResponse
from debt_tracker.schemas.payment import PaymentResponse


class RecentPayment(BaseModel):
    id: str
    amount: Decimal
    payment_method: str
    payment_date: datetime
    client_name: Optional[str] = None
    debt_description: Optional[str] = None


class ClientDebtSummary(BaseModel):
    client_id: str
    client_name: str
    outstanding_debt: Decimal


class MonthlyData(BaseModel):
    month: str
    revenue: Decimal
    payment_count: int


class DashboardSummary(BaseModel):
    today_revenue: Decimal
    month_revenue: Decimal
    total_outstanding_debt: Decimal
    active_clients: int
    total_clients: int


class DashboardData(BaseModel):
    summary: DashboardSummary
    recent_payments: List[RecentPayment]
    top_debtors: List[ClientDebtSummary]
    payment_method_distribution: Dict[str, int]
    monthly_trend: List[MonthlyData]


class DashboardKPIs(BaseModel):
    current_month_revenue: Decimal
    last_month_revenue: Decimal
    revenue_growth: float
    total_outstanding_debt: Decimal
    average_payment_per_client: Decimal
    debt_to_revenue_ratio: float
    collection_rate: float
    payments_this_month: int
    total_clients: int
    active_clients: int
    new_clients_this_month: int
    client_retention_rate: float


class ClientDashboardSummary(BaseModel):
    total_debt_ever: Decimal
    total_paid: Decimal
    current_outstanding: Decimal
    active_debts_count: int
    settled_debts_count: int
    total_payments_count: int


class ClientDashboard(BaseModel):
    client: ClientResponse
    summary: ClientDashboardSummary
    recent_payments: List[RecentPayment]
    payment_method_distribution: Dict[str, int]
    monthly_trend: List[MonthlyData]


class MonthlyReport(BaseModel):
    month: str
    total_payments: Decimal
    payments_by_method: Dict[str, Decimal]
    total_outstanding_debt: Decimal
    clients_with_active_debts: int
    total_new_debt: Decimal
    new_debts_count: int
    settled_debts_count: int
    total_payments_count: int


class ClientReport(BaseModel):
    client: ClientResponse
    total_debt_ever: Decimal
    total_paid: Decimal
    current_outstanding: Decimal
    active_debts: List[DebtResponse]
    settled_debts: List[DebtResponse]
    payment_history: List[PaymentResponse]


class DateRangeReport(BaseModel):
    start_date: datetime
    end_date: datetime
    total_payments: Decimal
    total_new_debt: Decimal
    payments_by_method: Dict[str, Decimal]
    payments_count: int
    new_debts_count: int
    collection_rate: float


class ClientRanking(BaseModel):
    client_id: str
    client_name: str
    outstanding_debt: Decimal
    total_paid: Decimal
    payments_count: int


class MonthlyCollection(BaseModel):
    month: str
    amount: Decimal


class CollectionPerformanceReport(BaseModel):
    total_collections: Decimal
    monthly_collections: List[MonthlyCollection]
    average_growth_rate: float
    total_payments: int


class PaymentMethodAnalysis(BaseModel):
    method_usage_count: Dict[str, int]
    method_usage_amount: Dict[str, Decimal]
    most_popular_method: Optional[str] = None
    highest_volume_method: Optional[str] = None
    total_amount: Decimal
    total_payments: int


class ClientOverdueSummary(BaseModel):
    client_id: str
    client_name: str
    total_overdue: Decimal
    debts_count: int


class OverdueDebtsReport(BaseModel):
    total_overdue_amount: Decimal
    total_overdue_debts: int
    clients_with_overdue: int
    client_summaries: List[ClientOverdueSummary]


class BusinessProjection(BaseModel):
    projected_collections: Decimal
    projected_outstanding: Decimal
    average_monthly_collection: Decimal
    expected_growth_rate: float
    projection_months: int
