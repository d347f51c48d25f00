import uuid
from datetime import date as date_type
from decimal import Decimal

from pydantic import BaseModel


class FacilityOccupancy(BaseModel):
    facility_id: uuid.UUID
    facility_name: str
    total_units: int
    occupied_units: int
    available_units: int
    reserved_units: int
    maintenance_units: int
    occupancy_rate: float


class RevenuePoint(BaseModel):
    date: date_type
    income: Decimal
    expenses: Decimal
    net: Decimal


class AnalyticsMetrics(BaseModel):
    total_facilities: int
    total_units: int
    total_customers: int
    active_rentals: int
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    average_occupancy_rate: float
    outstanding_balance: Decimal


class ReportResponse(BaseModel):
    occupancy_data: list[FacilityOccupancy]
    revenue_data: list[RevenuePoint]
    analytics_metrics: AnalyticsMetrics
