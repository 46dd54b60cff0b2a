"""Monthly sales, expense and target entry endpoints."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from sales_dashboard.core.auth import RequestUserContext, get_current_user_context
from sales_dashboard.db.dependencies import get_db_session
from sales_dashboard.models.entities import ExpenseType, SalesChannel
from sales_dashboard.services.records_service import (
    ExpenseEntryInput,
    RecordsService,
    SaleEntryInput,
    TargetUpsertData,
)

router = APIRouter(tags=["entries"])


class PeriodPayload(BaseModel):
    year: int = Field(ge=1, le=9999)
    month: int = Field(ge=1, le=12)


class TargetUpsertPayload(PeriodPayload):
    facebook: Decimal = Field(default=Decimal("0"), ge=0)
    shopee: Decimal = Field(default=Decimal("0"), ge=0)
    lazada: Decimal = Field(default=Decimal("0"), ge=0)


class SaleEntryPayload(PeriodPayload):
    employee_id: int
    channel: SalesChannel
    amount: Decimal = Field(ge=0)


class SalesBulkUpsertPayload(BaseModel):
    entries: list[SaleEntryPayload]


class ExpenseEntryPayload(PeriodPayload):
    employee_id: int
    type: ExpenseType
    amount: Decimal = Field(ge=0)


class ExpensesBulkUpsertPayload(BaseModel):
    entries: list[ExpenseEntryPayload]


def _records_service(db: Session) -> RecordsService:
    return RecordsService(db)


def _sale_input(item: SaleEntryPayload) -> SaleEntryInput:
    return SaleEntryInput(
        employee_id=item.employee_id,
        channel=item.channel,
        amount=item.amount,
        year=item.year,
        month=item.month,
    )


def _expense_input(item: ExpenseEntryPayload) -> ExpenseEntryInput:
    return ExpenseEntryInput(
        employee_id=item.employee_id,
        type=item.type,
        amount=item.amount,
        year=item.year,
        month=item.month,
    )


# ---------- Targets ----------
@router.get("/employees/{employee_id}/targets")
def get_employee_target(
    employee_id: int,
    year: int = Query(),
    month: int = Query(),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    row = service.get_target(employee_id, year, month)
    return service.serialize_target(employee_id, year, month, row)


@router.put("/employees/{employee_id}/targets")
def put_employee_target(
    employee_id: int,
    payload: TargetUpsertPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    row = service.upsert_target(
        employee_id,
        TargetUpsertData(
            year=payload.year,
            month=payload.month,
            facebook=payload.facebook,
            shopee=payload.shopee,
            lazada=payload.lazada,
        ),
    )
    return service.serialize_target(employee_id, row.year, row.month, row)


# ---------- Sales ----------
@router.get("/sales")
def list_sales(
    employee_id: int | None = None,
    year: int | None = None,
    month: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    rows = service.list_sales(employee_id=employee_id, year=year, month=month)
    return {"items": [service.serialize_sale(row) for row in rows]}


@router.put("/sales")
def put_sale(
    payload: SaleEntryPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    rows = service.upsert_sales([_sale_input(payload)])
    return service.serialize_sale(rows[0])


@router.put("/sales/entries/bulk")
def put_sales_bulk(
    payload: SalesBulkUpsertPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    rows = service.upsert_sales([_sale_input(item) for item in payload.entries])
    return {"updated_entries": len(rows), "items": [service.serialize_sale(row) for row in rows]}


# ---------- Expenses ----------
@router.get("/expenses")
def list_expenses(
    employee_id: int | None = None,
    year: int | None = None,
    month: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    rows = service.list_expenses(employee_id=employee_id, year=year, month=month)
    return {"items": [service.serialize_expense(row) for row in rows]}


@router.put("/expenses")
def put_expense(
    payload: ExpenseEntryPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    rows = service.upsert_expenses([_expense_input(payload)])
    return service.serialize_expense(rows[0])


@router.put("/expenses/entries/bulk")
def put_expenses_bulk(
    payload: ExpensesBulkUpsertPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    rows = service.upsert_expenses([_expense_input(item) for item in payload.entries])
    return {"updated_entries": len(rows), "items": [service.serialize_expense(row) for row in rows]}
