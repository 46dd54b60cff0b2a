"""Dashboard and trailing-history service layer."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sales_dashboard.core.config import Settings, get_settings
from sales_dashboard.core.errors import RepositoryUnavailable
from sales_dashboard.models.entities import ExpenseType, SalesChannel
from sales_dashboard.repositories.sales_repository import SalesRepository
from sales_dashboard.repositories.target_lookup import TargetLookup, build_target_lookup
from sales_dashboard.services.aggregation import (
    BranchPerformance,
    CompanyPerformance,
    EmployeePerformance,
    PerformanceFigures,
    PeriodSummary,
    aggregate_branch,
    aggregate_company,
    aggregate_employee,
    summarize_period,
    trailing_periods,
    validate_period,
)
from sales_dashboard.services.metrics import format_money

logger = logging.getLogger(__name__)


class DashboardService:
    """Read-only entry points: per-branch dashboard and company history."""

    def __init__(self, repo: SalesRepository, targets: TargetLookup, *, history_window: int = 12) -> None:
        self.repo = repo
        self.targets = targets
        self.history_window = history_window

    @classmethod
    def from_session(cls, db: Session, settings: Settings | None = None) -> DashboardService:
        settings = settings or get_settings()
        repo = SalesRepository(db)
        return cls(
            repo,
            build_target_lookup(settings.target_source, repo),
            history_window=settings.history_window_months,
        )

    @contextmanager
    def _reading(self, what: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception("Repository read failed while computing %s", what)
            raise RepositoryUnavailable(f"Could not read data for {what}; try again later.") from exc

    # ---------- Entry points ----------
    def dashboard(self, year: int, month: int) -> list[BranchPerformance]:
        """Per-branch performance for one period, each branch embedding its employees."""

        year, month = validate_period(year, month)
        result: list[BranchPerformance] = []
        with self._reading(f"dashboard {year}-{month:02d}"):
            for branch in self.repo.list_branches():
                employee_rows: list[EmployeePerformance] = []
                for employee in self.repo.list_employees(branch.id):
                    employee_rows.append(
                        aggregate_employee(
                            employee,
                            self.targets.get_target(employee, year, month),
                            self.repo.sum_sales_by_channel(employee.id, year, month),
                            self.repo.sum_expenses_by_type(employee.id, year, month),
                        )
                    )
                result.append(aggregate_branch(branch, employee_rows))

        logger.debug(
            "Dashboard %s-%02d: %d branches, %d employees (targets from %s)",
            year,
            month,
            len(result),
            sum(len(row.employees) for row in result),
            self.targets.source,
        )
        return result

    def company(self, branches: list[BranchPerformance]) -> CompanyPerformance:
        return aggregate_company(branches)

    def history(self, year: int, month: int) -> list[PeriodSummary]:
        """Company-wide totals for the trailing window ending at (year, month), oldest first."""

        year, month = validate_period(year, month)
        periods = trailing_periods(year, month, self.history_window)
        summaries: list[PeriodSummary] = []
        with self._reading(f"history ending {year}-{month:02d}"):
            for period_year, period_month in periods:
                summaries.append(
                    summarize_period(
                        period_year,
                        period_month,
                        sales_by_channel=self.repo.sum_sales_by_channel(None, period_year, period_month),
                        target=self.targets.company_target(period_year, period_month),
                        expense_amounts=self.repo.sum_expenses_by_type(None, period_year, period_month).values(),
                    )
                )
        return summaries

    # ---------- Serialization ----------
    @staticmethod
    def serialize_figures(figures: PerformanceFigures) -> dict[str, object]:
        return {
            "targets": {
                **{channel.value: format_money(figures.targets.get(channel)) for channel in SalesChannel},
                "total": format_money(figures.total_target),
            },
            "sales": {channel.value: format_money(figures.sales.get(channel)) for channel in SalesChannel},
            "expenses": {
                expense_type.value: format_money(figures.expenses.get(expense_type)) for expense_type in ExpenseType
            },
            "totalTarget": format_money(figures.total_target),
            "totalSales": format_money(figures.total_sales),
            "totalExpenses": format_money(figures.total_expenses),
            "netProfit": format_money(figures.net_profit),
            "diffFromTarget": format_money(figures.diff_from_target),
            "performancePct": figures.performance_pct,
            "costPct": figures.cost_pct,
            "adsPct": figures.ads_pct,
            "feesPct": figures.fees_pct,
            "totalExpPct": figures.total_exp_pct,
            "marginPct": figures.margin_pct,
        }

    @classmethod
    def serialize_employee(cls, row: EmployeePerformance) -> dict[str, object]:
        return {
            "id": row.employee_id,
            "branchId": row.branch_id,
            "name": row.name,
            **cls.serialize_figures(row.figures),
        }

    @classmethod
    def serialize_branch(cls, row: BranchPerformance) -> dict[str, object]:
        return {
            "id": row.branch_id,
            "name": row.name,
            "color": row.color,
            **cls.serialize_figures(row.figures),
            "employees": [cls.serialize_employee(employee) for employee in row.employees],
        }

    @classmethod
    def serialize_company(cls, row: CompanyPerformance) -> dict[str, object]:
        return {
            **cls.serialize_figures(row.figures),
            "branchCount": row.branch_count,
            "employeeCount": row.employee_count,
            "branchesOnTarget": row.branches_on_target,
        }

    @staticmethod
    def serialize_period(row: PeriodSummary) -> dict[str, object]:
        return {
            "year": row.year,
            "month": row.month,
            "sales": {channel.value: format_money(row.sales.get(channel)) for channel in SalesChannel},
            "totalSales": format_money(row.total_sales),
            "totalTarget": format_money(row.total_target),
            "totalExpenses": format_money(row.total_expenses),
            "netProfit": format_money(row.net_profit),
            "performancePct": row.performance_pct,
        }
