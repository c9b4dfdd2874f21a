from pydantic import BaseModel


class StaffDashboardOut(BaseModel):
    """Top cards on the staff dashboard. Counts only, no money."""
    total_items: int = 0
    available_items: int = 0
    active_rentals: int = 0
    maintenance_items: int = 0


class AdminDashboardOut(StaffDashboardOut):
    """Staff cards plus month-to-date figures for the calendar month containing now."""
    monthly_revenue: float = 0.0
    monthly_expenses: float = 0.0
    net_profit: float = 0.0
    outstanding_payments: float = 0.0
