"""ORM model package."""

from sales_dashboard.models.entities import (
    Branch,
    Employee,
    Expense,
    ExpenseType,
    MonthlyTarget,
    Sale,
    SalesChannel,
    User,
    UserRole,
)

__all__ = [
    "Branch",
    "Employee",
    "Expense",
    "ExpenseType",
    "MonthlyTarget",
    "Sale",
    "SalesChannel",
    "User",
    "UserRole",
]
