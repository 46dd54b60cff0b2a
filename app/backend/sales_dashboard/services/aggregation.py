"""Pure aggregation of monthly sales, expenses and targets.

Nothing in this module touches the database. Callers fetch rows through the
repository and the target lookup, then hand sparse ``{key: amount}`` maps to the
functions below. Roll-ups always sum monetary figures first and recompute every
percentage from the summed totals, so a branch never reports an average of its
employees' percentages.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from sales_dashboard.core.errors import InvalidPeriod
from sales_dashboard.models.entities import Branch, Employee, ExpenseType, SalesChannel
from sales_dashboard.services.metrics import ZERO, Number, safe_percent, sum_amounts, to_decimal


@dataclass(frozen=True, slots=True)
class ChannelAmounts:
    """One amount per sales channel; used for both sales and targets."""

    facebook: Decimal = ZERO
    shopee: Decimal = ZERO
    lazada: Decimal = ZERO

    @classmethod
    def from_mapping(cls, values: Mapping[SalesChannel | str, Number | None]) -> ChannelAmounts:
        amounts = {channel: ZERO for channel in SalesChannel}
        for key, value in values.items():
            amounts[SalesChannel(key)] += to_decimal(value)
        return cls(
            facebook=amounts[SalesChannel.FACEBOOK],
            shopee=amounts[SalesChannel.SHOPEE],
            lazada=amounts[SalesChannel.LAZADA],
        )

    @property
    def total(self) -> Decimal:
        return self.facebook + self.shopee + self.lazada

    def get(self, channel: SalesChannel) -> Decimal:
        return getattr(self, channel.value)

    def __add__(self, other: ChannelAmounts) -> ChannelAmounts:
        return ChannelAmounts(
            facebook=self.facebook + other.facebook,
            shopee=self.shopee + other.shopee,
            lazada=self.lazada + other.lazada,
        )


# Targets share the per-channel shape of sales.
TargetSpec = ChannelAmounts


@dataclass(frozen=True, slots=True)
class ExpenseAmounts:
    """One amount per expense type."""

    cost: Decimal = ZERO
    ads: Decimal = ZERO
    fees: Decimal = ZERO

    @classmethod
    def from_mapping(cls, values: Mapping[ExpenseType | str, Number | None]) -> ExpenseAmounts:
        amounts = {expense_type: ZERO for expense_type in ExpenseType}
        for key, value in values.items():
            amounts[ExpenseType(key)] += to_decimal(value)
        return cls(
            cost=amounts[ExpenseType.COST],
            ads=amounts[ExpenseType.ADS],
            fees=amounts[ExpenseType.FEES],
        )

    @property
    def total(self) -> Decimal:
        return self.cost + self.ads + self.fees

    def get(self, expense_type: ExpenseType) -> Decimal:
        return getattr(self, expense_type.value)

    def __add__(self, other: ExpenseAmounts) -> ExpenseAmounts:
        return ExpenseAmounts(
            cost=self.cost + other.cost,
            ads=self.ads + other.ads,
            fees=self.fees + other.fees,
        )


@dataclass(frozen=True, slots=True)
class PerformanceFigures:
    """Totals and derived ratios shared by employee, branch and company records."""

    targets: ChannelAmounts
    sales: ChannelAmounts
    expenses: ExpenseAmounts
    total_target: Decimal
    total_sales: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    diff_from_target: Decimal
    performance_pct: str
    cost_pct: str
    ads_pct: str
    fees_pct: str
    total_exp_pct: str
    margin_pct: str

    @property
    def reached_target(self) -> bool:
        return self.total_target > 0 and self.total_sales >= self.total_target


@dataclass(frozen=True, slots=True)
class EmployeePerformance:
    employee_id: int
    branch_id: int
    name: str
    figures: PerformanceFigures


@dataclass(frozen=True, slots=True)
class BranchPerformance:
    branch_id: int
    name: str
    color: str
    figures: PerformanceFigures
    employees: tuple[EmployeePerformance, ...]


@dataclass(frozen=True, slots=True)
class CompanyPerformance:
    figures: PerformanceFigures
    branch_count: int
    employee_count: int
    branches_on_target: int


@dataclass(frozen=True, slots=True)
class PeriodSummary:
    """Company-wide totals for one month of the trailing history."""

    year: int
    month: int
    sales: ChannelAmounts
    total_sales: Decimal
    total_target: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    performance_pct: str


def validate_period(year: object, month: object) -> tuple[int, int]:
    """Reject anything that is not an integer year >= 1 and month in 1..12."""

    for field_name, value in (("year", year), ("month", month)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidPeriod(f"{field_name} must be an integer, got {value!r}.")
    if year < 1:
        raise InvalidPeriod(f"year must be greater or equal 1, got {year}.")
    if not 1 <= month <= 12:
        raise InvalidPeriod(f"month must be between 1 and 12, got {month}.")
    return year, month


def trailing_periods(year: int, month: int, window: int = 12) -> list[tuple[int, int]]:
    """Return ``window`` consecutive (year, month) pairs ending at the given period, oldest first."""

    validate_period(year, month)
    periods: list[tuple[int, int]] = []
    current_year, current_month = year, month
    for _ in range(window):
        periods.append((current_year, current_month))
        current_month -= 1
        if current_month < 1:
            current_month = 12
            current_year -= 1
    periods.reverse()
    return periods


def derive_figures(
    targets: ChannelAmounts,
    sales: ChannelAmounts,
    expenses: ExpenseAmounts,
) -> PerformanceFigures:
    total_target = targets.total
    total_sales = sales.total
    total_expenses = expenses.total
    net_profit = total_sales - total_expenses
    return PerformanceFigures(
        targets=targets,
        sales=sales,
        expenses=expenses,
        total_target=total_target,
        total_sales=total_sales,
        total_expenses=total_expenses,
        net_profit=net_profit,
        diff_from_target=total_sales - total_target,
        performance_pct=safe_percent(total_sales, total_target),
        cost_pct=safe_percent(expenses.cost, total_sales),
        ads_pct=safe_percent(expenses.ads, total_sales),
        fees_pct=safe_percent(expenses.fees, total_sales),
        total_exp_pct=safe_percent(total_expenses, total_sales),
        margin_pct=safe_percent(net_profit, total_sales),
    )


def combine_figures(parts: Iterable[PerformanceFigures]) -> PerformanceFigures:
    """Sum the monetary parts of several records, then re-derive every ratio."""

    targets = ChannelAmounts()
    sales = ChannelAmounts()
    expenses = ExpenseAmounts()
    for part in parts:
        targets = targets + part.targets
        sales = sales + part.sales
        expenses = expenses + part.expenses
    return derive_figures(targets, sales, expenses)


def aggregate_employee(
    employee: Employee,
    target: TargetSpec | None,
    sales_by_channel: Mapping[SalesChannel | str, Number | None],
    expenses_by_type: Mapping[ExpenseType | str, Number | None],
) -> EmployeePerformance:
    """Build the performance record of one employee for one period."""

    figures = derive_figures(
        target or TargetSpec(),
        ChannelAmounts.from_mapping(sales_by_channel),
        ExpenseAmounts.from_mapping(expenses_by_type),
    )
    return EmployeePerformance(
        employee_id=employee.id,
        branch_id=employee.branch_id,
        name=employee.name,
        figures=figures,
    )


def aggregate_branch(branch: Branch, employees: Sequence[EmployeePerformance]) -> BranchPerformance:
    """Roll employee records into their branch; employee order is preserved."""

    return BranchPerformance(
        branch_id=branch.id,
        name=branch.name,
        color=branch.color,
        figures=combine_figures(row.figures for row in employees),
        employees=tuple(employees),
    )


def aggregate_company(branches: Sequence[BranchPerformance]) -> CompanyPerformance:
    return CompanyPerformance(
        figures=combine_figures(row.figures for row in branches),
        branch_count=len(branches),
        employee_count=sum(len(row.employees) for row in branches),
        branches_on_target=sum(1 for row in branches if row.figures.reached_target),
    )


def summarize_period(
    year: int,
    month: int,
    *,
    sales_by_channel: Mapping[SalesChannel | str, Number | None],
    target: TargetSpec | None,
    expense_amounts: Iterable[Number | None],
) -> PeriodSummary:
    sales = ChannelAmounts.from_mapping(sales_by_channel)
    total_target = (target or TargetSpec()).total
    total_expenses = sum_amounts(expense_amounts)
    return PeriodSummary(
        year=year,
        month=month,
        sales=sales,
        total_sales=sales.total,
        total_target=total_target,
        total_expenses=total_expenses,
        net_profit=sales.total - total_expenses,
        performance_pct=safe_percent(sales.total, total_target),
    )
