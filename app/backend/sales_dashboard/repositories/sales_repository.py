"""Repository helpers for branches, employees and monthly figures."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import TypeVar

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sales_dashboard.models.entities import (
    Branch,
    Employee,
    Expense,
    ExpenseType,
    MonthlyTarget,
    Sale,
    SalesChannel,
    User,
)

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", MonthlyTarget, Sale, Expense)


class SalesRepository:
    """Persistence operations used by the records and dashboard services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Users ----------
    def get_user(self, user_id: int) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_id))

    def get_user_by_username(self, username: str) -> User | None:
        return self.db.scalar(select(User).where(User.username == username))

    def user_count(self) -> int:
        return self.db.scalar(select(func.count()).select_from(User)) or 0

    def add_user(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    # ---------- Branches ----------
    def list_branches(self) -> list[Branch]:
        return self.db.scalars(select(Branch).order_by(Branch.id.asc())).all()

    def get_branch(self, branch_id: int) -> Branch | None:
        return self.db.scalar(select(Branch).where(Branch.id == branch_id))

    def add_branch(self, branch: Branch) -> Branch:
        self.db.add(branch)
        self.db.flush()
        return branch

    def delete_branch(self, branch: Branch) -> None:
        self.db.delete(branch)
        self.db.flush()

    # ---------- Employees ----------
    def list_employees(self, branch_id: int | None = None) -> list[Employee]:
        statement = select(Employee)
        if branch_id is not None:
            statement = statement.where(Employee.branch_id == branch_id)
        return self.db.scalars(statement.order_by(Employee.id.asc())).all()

    def get_employee(self, employee_id: int) -> Employee | None:
        return self.db.scalar(select(Employee).where(Employee.id == employee_id))

    def add_employee(self, employee: Employee) -> Employee:
        self.db.add(employee)
        self.db.flush()
        return employee

    def delete_employee(self, employee: Employee) -> None:
        self.db.delete(employee)
        self.db.flush()

    def sum_employee_fixed_targets(self) -> dict[SalesChannel, Decimal]:
        row = self.db.execute(
            select(
                func.coalesce(func.sum(Employee.target_facebook), Decimal("0.00")),
                func.coalesce(func.sum(Employee.target_shopee), Decimal("0.00")),
                func.coalesce(func.sum(Employee.target_lazada), Decimal("0.00")),
            )
        ).one()
        return {
            SalesChannel.FACEBOOK: row[0],
            SalesChannel.SHOPEE: row[1],
            SalesChannel.LAZADA: row[2],
        }

    # ---------- Monthly targets ----------
    def get_monthly_target(self, employee_id: int, year: int, month: int) -> MonthlyTarget | None:
        return self.db.scalar(
            select(MonthlyTarget).where(
                and_(
                    MonthlyTarget.employee_id == employee_id,
                    MonthlyTarget.year == year,
                    MonthlyTarget.month == month,
                )
            )
        )

    def sum_monthly_targets(self, year: int, month: int) -> dict[SalesChannel, Decimal]:
        row = self.db.execute(
            select(
                func.coalesce(func.sum(MonthlyTarget.facebook), Decimal("0.00")),
                func.coalesce(func.sum(MonthlyTarget.shopee), Decimal("0.00")),
                func.coalesce(func.sum(MonthlyTarget.lazada), Decimal("0.00")),
            ).where(and_(MonthlyTarget.year == year, MonthlyTarget.month == month))
        ).one()
        return {
            SalesChannel.FACEBOOK: row[0],
            SalesChannel.SHOPEE: row[1],
            SalesChannel.LAZADA: row[2],
        }

    def upsert_monthly_target(
        self,
        *,
        employee_id: int,
        year: int,
        month: int,
        amounts: dict[SalesChannel, Decimal],
    ) -> MonthlyTarget:
        def _apply(row: MonthlyTarget) -> None:
            row.facebook = amounts[SalesChannel.FACEBOOK]
            row.shopee = amounts[SalesChannel.SHOPEE]
            row.lazada = amounts[SalesChannel.LAZADA]
            row.updated_at = datetime.utcnow()

        def _load() -> MonthlyTarget | None:
            return self.get_monthly_target(employee_id, year, month)

        return self._upsert(_load, lambda: MonthlyTarget(employee_id=employee_id, year=year, month=month), _apply)

    # ---------- Sales ----------
    def list_sales(
        self,
        *,
        employee_id: int | None = None,
        year: int | None = None,
        month: int | None = None,
    ) -> list[Sale]:
        conditions = []
        if employee_id is not None:
            conditions.append(Sale.employee_id == employee_id)
        if year is not None:
            conditions.append(Sale.year == year)
        if month is not None:
            conditions.append(Sale.month == month)

        return self.db.scalars(
            select(Sale)
            .where(*conditions)
            .order_by(Sale.year.asc(), Sale.month.asc(), Sale.employee_id.asc(), Sale.id.asc())
        ).all()

    def get_sale(self, *, employee_id: int, channel: SalesChannel, year: int, month: int) -> Sale | None:
        return self.db.scalar(
            select(Sale).where(
                and_(
                    Sale.employee_id == employee_id,
                    Sale.channel == channel,
                    Sale.year == year,
                    Sale.month == month,
                )
            )
        )

    def upsert_sale(
        self,
        *,
        employee_id: int,
        channel: SalesChannel,
        year: int,
        month: int,
        amount: Decimal,
    ) -> Sale:
        def _apply(row: Sale) -> None:
            row.amount = amount
            row.updated_at = datetime.utcnow()

        return self._upsert(
            lambda: self.get_sale(employee_id=employee_id, channel=channel, year=year, month=month),
            lambda: Sale(employee_id=employee_id, channel=channel, year=year, month=month),
            _apply,
        )

    def sum_sales_by_channel(self, employee_id: int | None, year: int, month: int) -> dict[SalesChannel, Decimal]:
        conditions = [Sale.year == year, Sale.month == month]
        if employee_id is not None:
            conditions.append(Sale.employee_id == employee_id)

        rows = self.db.execute(
            select(Sale.channel, func.coalesce(func.sum(Sale.amount), Decimal("0.00")))
            .where(and_(*conditions))
            .group_by(Sale.channel)
        ).all()
        return {channel: amount for channel, amount in rows}

    # ---------- Expenses ----------
    def list_expenses(
        self,
        *,
        employee_id: int | None = None,
        year: int | None = None,
        month: int | None = None,
    ) -> list[Expense]:
        conditions = []
        if employee_id is not None:
            conditions.append(Expense.employee_id == employee_id)
        if year is not None:
            conditions.append(Expense.year == year)
        if month is not None:
            conditions.append(Expense.month == month)

        return self.db.scalars(
            select(Expense)
            .where(*conditions)
            .order_by(Expense.year.asc(), Expense.month.asc(), Expense.employee_id.asc(), Expense.id.asc())
        ).all()

    def get_expense(self, *, employee_id: int, expense_type: ExpenseType, year: int, month: int) -> Expense | None:
        return self.db.scalar(
            select(Expense).where(
                and_(
                    Expense.employee_id == employee_id,
                    Expense.type == expense_type,
                    Expense.year == year,
                    Expense.month == month,
                )
            )
        )

    def upsert_expense(
        self,
        *,
        employee_id: int,
        expense_type: ExpenseType,
        year: int,
        month: int,
        amount: Decimal,
    ) -> Expense:
        def _apply(row: Expense) -> None:
            row.amount = amount
            row.updated_at = datetime.utcnow()

        return self._upsert(
            lambda: self.get_expense(employee_id=employee_id, expense_type=expense_type, year=year, month=month),
            lambda: Expense(employee_id=employee_id, type=expense_type, year=year, month=month),
            _apply,
        )

    def sum_expenses_by_type(self, employee_id: int | None, year: int, month: int) -> dict[ExpenseType, Decimal]:
        conditions = [Expense.year == year, Expense.month == month]
        if employee_id is not None:
            conditions.append(Expense.employee_id == employee_id)

        rows = self.db.execute(
            select(Expense.type, func.coalesce(func.sum(Expense.amount), Decimal("0.00")))
            .where(and_(*conditions))
            .group_by(Expense.type)
        ).all()
        return {expense_type: amount for expense_type, amount in rows}

    # ---------- Upsert primitive ----------
    def _upsert(
        self,
        load: Callable[[], RowT | None],
        create: Callable[[], RowT],
        apply: Callable[[RowT], None],
    ) -> RowT:
        """Overwrite the row keyed by a unique constraint, inserting it if missing.

        The insert runs in a SAVEPOINT; losing a race against a concurrent insert
        of the same key falls back to updating the row that won.
        """

        existing = load()
        if existing is not None:
            apply(existing)
            self.db.flush()
            return existing

        row = create()
        apply(row)
        try:
            with self.db.begin_nested():
                self.db.add(row)
        except IntegrityError:
            logger.info("Concurrent insert detected for %s; updating existing row", type(row).__name__)
            existing = load()
            if existing is None:
                raise
            apply(existing)
            self.db.flush()
            return existing
        return row
