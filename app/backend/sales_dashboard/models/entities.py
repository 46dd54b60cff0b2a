"""ORM entities for the sales dashboard schema."""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sales_dashboard.db.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class SalesChannel(str, enum.Enum):
    FACEBOOK = "facebook"
    SHOPEE = "shopee"
    LAZADA = "lazada"


class ExpenseType(str, enum.Enum):
    COST = "cost"
    ADS = "ads"
    FEES = "fees"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            name="user_role",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=UserRole.USER,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Branch(Base):
    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="#3b82f6")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    employees: Mapped[list[Employee]] = relationship(
        back_populates="branch",
        cascade="all, delete-orphan",
        order_by="Employee.id",
    )


class Employee(Base):
    __tablename__ = "employees"
    __table_args__ = (
        CheckConstraint("target_facebook >= 0", name="ck_employees_target_facebook_non_negative"),
        CheckConstraint("target_shopee >= 0", name="ck_employees_target_shopee_non_negative"),
        CheckConstraint("target_lazada >= 0", name="ck_employees_target_lazada_non_negative"),
        Index("ix_employees_branch_id", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    target_facebook: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    target_shopee: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    target_lazada: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    branch: Mapped[Branch] = relationship(back_populates="employees")
    sales: Mapped[list[Sale]] = relationship(cascade="all, delete-orphan")
    expenses: Mapped[list[Expense]] = relationship(cascade="all, delete-orphan")
    monthly_targets: Mapped[list[MonthlyTarget]] = relationship(cascade="all, delete-orphan")


class MonthlyTarget(Base):
    __tablename__ = "monthly_targets"
    __table_args__ = (
        CheckConstraint("month >= 1 AND month <= 12", name="ck_monthly_targets_month_range"),
        CheckConstraint("facebook >= 0", name="ck_monthly_targets_facebook_non_negative"),
        CheckConstraint("shopee >= 0", name="ck_monthly_targets_shopee_non_negative"),
        CheckConstraint("lazada >= 0", name="ck_monthly_targets_lazada_non_negative"),
        Index("ix_monthly_targets_period", "year", "month"),
        UniqueConstraint("employee_id", "year", "month", name="uq_monthly_targets_employee_period"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    facebook: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    shopee: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    lazada: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Sale(Base):
    __tablename__ = "sales"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_sales_amount_non_negative"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_sales_month_range"),
        Index("ix_sales_period", "year", "month"),
        UniqueConstraint("employee_id", "channel", "year", "month", name="uq_sales_employee_channel_period"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    channel: Mapped[SalesChannel] = mapped_column(
        SQLEnum(
            SalesChannel,
            name="sales_channel",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_expenses_month_range"),
        Index("ix_expenses_period", "year", "month"),
        UniqueConstraint("employee_id", "type", "year", "month", name="uq_expenses_employee_type_period"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[ExpenseType] = mapped_column(
        SQLEnum(
            ExpenseType,
            name="expense_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
