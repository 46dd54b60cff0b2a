"""Application service for branches, employees and monthly figures."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from fastapi import HTTPException, status
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
)
from sales_dashboard.repositories.sales_repository import SalesRepository
from sales_dashboard.services.aggregation import validate_period
from sales_dashboard.services.metrics import ZERO, format_money

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_COLOR = "#3b82f6"


@dataclass(slots=True)
class BranchCreateData:
    name: str
    color: str = DEFAULT_BRANCH_COLOR


@dataclass(slots=True)
class BranchUpdateData:
    name: str | None = None
    color: str | None = None


@dataclass(slots=True)
class EmployeeCreateData:
    branch_id: int
    name: str
    target_facebook: Decimal = ZERO
    target_shopee: Decimal = ZERO
    target_lazada: Decimal = ZERO


@dataclass(slots=True)
class EmployeeUpdateData:
    branch_id: int | None = None
    name: str | None = None
    target_facebook: Decimal | None = None
    target_shopee: Decimal | None = None
    target_lazada: Decimal | None = None


@dataclass(slots=True)
class TargetUpsertData:
    year: int
    month: int
    facebook: Decimal = ZERO
    shopee: Decimal = ZERO
    lazada: Decimal = ZERO


@dataclass(slots=True)
class SaleEntryInput:
    employee_id: int
    channel: SalesChannel
    amount: Decimal
    year: int
    month: int


@dataclass(slots=True)
class ExpenseEntryInput:
    employee_id: int
    type: ExpenseType
    amount: Decimal
    year: int
    month: int


class RecordsService:
    """Validated create/update/delete operations feeding the dashboard."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = SalesRepository(db)

    # ---------- Lookup helpers ----------
    def _get_branch_or_404(self, branch_id: int) -> Branch:
        branch = self.repo.get_branch(branch_id)
        if branch is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Branch not found.")
        return branch

    def _get_employee_or_404(self, employee_id: int) -> Employee:
        employee = self.repo.get_employee(employee_id)
        if employee is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found.")
        return employee

    @staticmethod
    def _validate_non_negative_amount(value: Decimal, field_name: str) -> None:
        if value < ZERO:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"{field_name} must be greater or equal zero.",
            )

    def _commit(self, conflict_detail: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Integrity error on commit: %s", exc.orig)
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=conflict_detail) from exc

    # ---------- Serialization ----------
    @staticmethod
    def serialize_branch(branch: Branch) -> dict[str, object]:
        return {
            "id": branch.id,
            "name": branch.name,
            "color": branch.color,
            "created_at": branch.created_at.isoformat(),
        }

    @staticmethod
    def serialize_employee(employee: Employee) -> dict[str, object]:
        return {
            "id": employee.id,
            "branch_id": employee.branch_id,
            "branch_name": employee.branch.name,
            "name": employee.name,
            "targets": {
                "facebook": format_money(employee.target_facebook),
                "shopee": format_money(employee.target_shopee),
                "lazada": format_money(employee.target_lazada),
            },
            "created_at": employee.created_at.isoformat(),
        }

    @staticmethod
    def serialize_target(employee_id: int, year: int, month: int, row: MonthlyTarget | None) -> dict[str, object]:
        facebook = row.facebook if row is not None else ZERO
        shopee = row.shopee if row is not None else ZERO
        lazada = row.lazada if row is not None else ZERO
        return {
            "employee_id": employee_id,
            "year": year,
            "month": month,
            "facebook": format_money(facebook),
            "shopee": format_money(shopee),
            "lazada": format_money(lazada),
            "total": format_money(facebook + shopee + lazada),
        }

    @staticmethod
    def serialize_sale(row: Sale) -> dict[str, object]:
        return {
            "id": row.id,
            "employee_id": row.employee_id,
            "channel": row.channel.value,
            "amount": format_money(row.amount),
            "year": row.year,
            "month": row.month,
        }

    @staticmethod
    def serialize_expense(row: Expense) -> dict[str, object]:
        return {
            "id": row.id,
            "employee_id": row.employee_id,
            "type": row.type.value,
            "amount": format_money(row.amount),
            "year": row.year,
            "month": row.month,
        }

    # ---------- Branches ----------
    def list_branches(self) -> list[Branch]:
        return self.repo.list_branches()

    def create_branch(self, data: BranchCreateData) -> Branch:
        branch = Branch(
            name=data.name.strip(),
            color=(data.color or DEFAULT_BRANCH_COLOR).strip(),
            created_at=datetime.utcnow(),
        )
        self.repo.add_branch(branch)
        self._commit("Branch violates database constraints.")
        self.db.refresh(branch)
        logger.info("Created branch %s (%s)", branch.id, branch.name)
        return branch

    def update_branch(self, branch_id: int, data: BranchUpdateData) -> Branch:
        branch = self._get_branch_or_404(branch_id)
        if data.name is not None:
            branch.name = data.name.strip()
        if data.color is not None:
            branch.color = data.color.strip()
        self._commit("Branch violates database constraints.")
        self.db.refresh(branch)
        return branch

    def delete_branch(self, branch_id: int) -> None:
        """Delete a branch together with its employees and all their figures."""

        branch = self._get_branch_or_404(branch_id)
        employee_count = len(branch.employees)
        self.repo.delete_branch(branch)
        self.db.commit()
        logger.info("Deleted branch %s with %d employees", branch_id, employee_count)

    # ---------- Employees ----------
    def list_employees(self, branch_id: int | None = None) -> list[Employee]:
        if branch_id is not None:
            self._get_branch_or_404(branch_id)
        return self.repo.list_employees(branch_id)

    def create_employee(self, data: EmployeeCreateData) -> Employee:
        branch = self.repo.get_branch(data.branch_id)
        if branch is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="branch_id must reference an existing branch.",
            )
        for field_name in ("target_facebook", "target_shopee", "target_lazada"):
            self._validate_non_negative_amount(getattr(data, field_name), field_name)

        employee = Employee(
            branch_id=branch.id,
            name=data.name.strip(),
            target_facebook=data.target_facebook,
            target_shopee=data.target_shopee,
            target_lazada=data.target_lazada,
            created_at=datetime.utcnow(),
        )
        self.repo.add_employee(employee)
        self._commit("Employee violates database constraints.")
        self.db.refresh(employee)
        logger.info("Created employee %s (%s) in branch %s", employee.id, employee.name, branch.id)
        return employee

    def update_employee(self, employee_id: int, data: EmployeeUpdateData) -> Employee:
        employee = self._get_employee_or_404(employee_id)
        if data.branch_id is not None and data.branch_id != employee.branch_id:
            if self.repo.get_branch(data.branch_id) is None:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="branch_id must reference an existing branch.",
                )
            employee.branch_id = data.branch_id
        if data.name is not None:
            employee.name = data.name.strip()
        for field_name in ("target_facebook", "target_shopee", "target_lazada"):
            value = getattr(data, field_name)
            if value is not None:
                self._validate_non_negative_amount(value, field_name)
                setattr(employee, field_name, value)

        self._commit("Employee violates database constraints.")
        self.db.refresh(employee)
        return employee

    def delete_employee(self, employee_id: int) -> None:
        employee = self._get_employee_or_404(employee_id)
        self.repo.delete_employee(employee)
        self.db.commit()
        logger.info("Deleted employee %s", employee_id)

    # ---------- Monthly targets ----------
    def get_target(self, employee_id: int, year: int, month: int) -> MonthlyTarget | None:
        self._get_employee_or_404(employee_id)
        year, month = validate_period(year, month)
        return self.repo.get_monthly_target(employee_id, year, month)

    def upsert_target(self, employee_id: int, data: TargetUpsertData) -> MonthlyTarget:
        """Set the target for one period; an existing target for that period is overwritten."""

        employee = self._get_employee_or_404(employee_id)
        year, month = validate_period(data.year, data.month)
        amounts = {
            SalesChannel.FACEBOOK: data.facebook,
            SalesChannel.SHOPEE: data.shopee,
            SalesChannel.LAZADA: data.lazada,
        }
        for channel, value in amounts.items():
            self._validate_non_negative_amount(value, channel.value)

        row = self.repo.upsert_monthly_target(employee_id=employee.id, year=year, month=month, amounts=amounts)
        self._commit("Target violates database constraints.")
        self.db.refresh(row)
        return row

    # ---------- Sales and expenses ----------
    def list_sales(
        self,
        *,
        employee_id: int | None = None,
        year: int | None = None,
        month: int | None = None,
    ) -> list[Sale]:
        self._validate_period_filter(year, month)
        return self.repo.list_sales(employee_id=employee_id, year=year, month=month)

    def list_expenses(
        self,
        *,
        employee_id: int | None = None,
        year: int | None = None,
        month: int | None = None,
    ) -> list[Expense]:
        self._validate_period_filter(year, month)
        return self.repo.list_expenses(employee_id=employee_id, year=year, month=month)

    @staticmethod
    def _validate_period_filter(year: int | None, month: int | None) -> None:
        """Reject an out-of-range year or month filter; either may be omitted."""

        if year is not None or month is not None:
            validate_period(1 if year is None else year, 1 if month is None else month)

    def _validate_entry_employees(self, employee_ids: set[int]) -> None:
        for employee_id in sorted(employee_ids):
            if self.repo.get_employee(employee_id) is None:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail=f"employee_id {employee_id} must reference an existing employee.",
                )

    def upsert_sales(self, entries: list[SaleEntryInput]) -> list[Sale]:
        """Set this month's figure per (employee, channel); repeated submissions replace it."""

        seen_keys: set[tuple[int, SalesChannel, int, int]] = set()
        for entry in entries:
            validate_period(entry.year, entry.month)
            self._validate_non_negative_amount(entry.amount, "amount")
            key = (entry.employee_id, entry.channel, entry.year, entry.month)
            if key in seen_keys:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="Duplicate sales key in bulk payload.",
                )
            seen_keys.add(key)
        self._validate_entry_employees({entry.employee_id for entry in entries})

        persisted = [
            self.repo.upsert_sale(
                employee_id=entry.employee_id,
                channel=entry.channel,
                year=entry.year,
                month=entry.month,
                amount=entry.amount,
            )
            for entry in entries
        ]
        self._commit("Sales upsert violated database constraints.")
        for row in persisted:
            self.db.refresh(row)
        logger.info("Upserted %d sales entries", len(persisted))
        return persisted

    def upsert_expenses(self, entries: list[ExpenseEntryInput]) -> list[Expense]:
        """Set this month's figure per (employee, expense type); repeated submissions replace it."""

        seen_keys: set[tuple[int, ExpenseType, int, int]] = set()
        for entry in entries:
            validate_period(entry.year, entry.month)
            self._validate_non_negative_amount(entry.amount, "amount")
            key = (entry.employee_id, entry.type, entry.year, entry.month)
            if key in seen_keys:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="Duplicate expense key in bulk payload.",
                )
            seen_keys.add(key)
        self._validate_entry_employees({entry.employee_id for entry in entries})

        persisted = [
            self.repo.upsert_expense(
                employee_id=entry.employee_id,
                expense_type=entry.type,
                year=entry.year,
                month=entry.month,
                amount=entry.amount,
            )
            for entry in entries
        ]
        self._commit("Expense upsert violated database constraints.")
        for row in persisted:
            self.db.refresh(row)
        logger.info("Upserted %d expense entries", len(persisted))
        return persisted
