"""Where per-employee targets come from.

Targets have lived in two places: a per-period ``monthly_targets`` table and
fixed per-channel fields on the employee row. Aggregation only needs "the target
of this employee for this period" and "the company target for this period", so
both layouts are exposed through the same two methods.
"""

from __future__ import annotations

from typing import Protocol

from sales_dashboard.models.entities import Employee
from sales_dashboard.repositories.sales_repository import SalesRepository
from sales_dashboard.services.aggregation import TargetSpec
from sales_dashboard.services.metrics import to_decimal


class TargetLookup(Protocol):
    source: str

    def get_target(self, employee: Employee, year: int, month: int) -> TargetSpec | None: ...

    def company_target(self, year: int, month: int) -> TargetSpec: ...


class MonthlyTargetLookup:
    """Targets stored per (employee, year, month); missing rows mean no target."""

    source = "monthly"

    def __init__(self, repo: SalesRepository) -> None:
        self.repo = repo

    def get_target(self, employee: Employee, year: int, month: int) -> TargetSpec | None:
        row = self.repo.get_monthly_target(employee.id, year, month)
        if row is None:
            return None
        return TargetSpec(facebook=row.facebook, shopee=row.shopee, lazada=row.lazada)

    def company_target(self, year: int, month: int) -> TargetSpec:
        return TargetSpec.from_mapping(self.repo.sum_monthly_targets(year, month))


class EmployeeFixedTargetLookup:
    """Targets stored on the employee and applied to every period alike."""

    source = "employee"

    def __init__(self, repo: SalesRepository) -> None:
        self.repo = repo

    def get_target(self, employee: Employee, year: int, month: int) -> TargetSpec | None:
        return TargetSpec(
            facebook=to_decimal(employee.target_facebook),
            shopee=to_decimal(employee.target_shopee),
            lazada=to_decimal(employee.target_lazada),
        )

    def company_target(self, year: int, month: int) -> TargetSpec:
        return TargetSpec.from_mapping(self.repo.sum_employee_fixed_targets())


def build_target_lookup(source: str, repo: SalesRepository) -> TargetLookup:
    if source == MonthlyTargetLookup.source:
        return MonthlyTargetLookup(repo)
    if source == EmployeeFixedTargetLookup.source:
        return EmployeeFixedTargetLookup(repo)
    raise ValueError(f"Unknown target source: {source!r}")
