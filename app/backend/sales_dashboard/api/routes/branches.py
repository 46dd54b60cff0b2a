"""Branch and employee administration endpoints."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from sales_dashboard.core.auth import AppRole, RequestUserContext, get_current_user_context, require_roles
from sales_dashboard.db.dependencies import get_db_session
from sales_dashboard.services.records_service import (
    DEFAULT_BRANCH_COLOR,
    BranchCreateData,
    BranchUpdateData,
    EmployeeCreateData,
    EmployeeUpdateData,
    RecordsService,
)

router = APIRouter(tags=["branches"])

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class BranchCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    color: str = Field(default=DEFAULT_BRANCH_COLOR, pattern=HEX_COLOR_PATTERN)


class BranchUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)


class EmployeeCreatePayload(BaseModel):
    branch_id: int
    name: str = Field(min_length=1, max_length=255)
    target_facebook: Decimal = Field(default=Decimal("0"), ge=0)
    target_shopee: Decimal = Field(default=Decimal("0"), ge=0)
    target_lazada: Decimal = Field(default=Decimal("0"), ge=0)


class EmployeeUpdatePayload(BaseModel):
    branch_id: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    target_facebook: Decimal | None = Field(default=None, ge=0)
    target_shopee: Decimal | None = Field(default=None, ge=0)
    target_lazada: Decimal | None = Field(default=None, ge=0)


def _records_service(db: Session) -> RecordsService:
    return RecordsService(db)


# ---------- Branches ----------
@router.get("/branches")
def list_branches(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    return {"items": [service.serialize_branch(row) for row in service.list_branches()]}


@router.post("/branches", status_code=201)
def create_branch(
    payload: BranchCreatePayload,
    context: RequestUserContext = Depends(require_roles(AppRole.ADMIN)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    row = service.create_branch(BranchCreateData(name=payload.name, color=payload.color))
    return service.serialize_branch(row)


@router.patch("/branches/{branch_id}")
def update_branch(
    branch_id: int,
    payload: BranchUpdatePayload,
    context: RequestUserContext = Depends(require_roles(AppRole.ADMIN)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    row = service.update_branch(branch_id, BranchUpdateData(name=payload.name, color=payload.color))
    return service.serialize_branch(row)


@router.delete("/branches/{branch_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_branch(
    branch_id: int,
    context: RequestUserContext = Depends(require_roles(AppRole.ADMIN)),
    db: Session = Depends(get_db_session),
) -> Response:
    _records_service(db).delete_branch(branch_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Employees ----------
@router.get("/employees")
def list_employees(
    branch_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    rows = service.list_employees(branch_id)
    return {"items": [service.serialize_employee(row) for row in rows]}


@router.post("/employees", status_code=201)
def create_employee(
    payload: EmployeeCreatePayload,
    context: RequestUserContext = Depends(require_roles(AppRole.ADMIN)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    row = service.create_employee(
        EmployeeCreateData(
            branch_id=payload.branch_id,
            name=payload.name,
            target_facebook=payload.target_facebook,
            target_shopee=payload.target_shopee,
            target_lazada=payload.target_lazada,
        )
    )
    return service.serialize_employee(row)


@router.patch("/employees/{employee_id}")
def update_employee(
    employee_id: int,
    payload: EmployeeUpdatePayload,
    context: RequestUserContext = Depends(require_roles(AppRole.ADMIN)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _records_service(db)
    row = service.update_employee(
        employee_id,
        EmployeeUpdateData(
            branch_id=payload.branch_id,
            name=payload.name,
            target_facebook=payload.target_facebook,
            target_shopee=payload.target_shopee,
            target_lazada=payload.target_lazada,
        ),
    )
    return service.serialize_employee(row)


@router.delete("/employees/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(
    employee_id: int,
    context: RequestUserContext = Depends(require_roles(AppRole.ADMIN)),
    db: Session = Depends(get_db_session),
) -> Response:
    _records_service(db).delete_employee(employee_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
