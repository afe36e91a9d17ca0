from __future__ import annotations

import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(UTC)


# Every table carries ``budget_id`` (the budget's sync id). One database can
# hold several budgets; all reads and writes are scoped by it.


# ---------------------------
# ledger_accounts
# ---------------------------


class LedgerAccountRow(Base):
    __tablename__ = "ledger_accounts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    budget_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False, default="checking")
    offbudget: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )


# ---------------------------
# ledger_category_groups / ledger_categories
# ---------------------------


class LedgerCategoryGroupRow(Base):
    __tablename__ = "ledger_category_groups"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    budget_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    is_income: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class LedgerCategoryRow(Base):
    __tablename__ = "ledger_categories"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    budget_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    group_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("ledger_category_groups.id"), nullable=False
    )
    is_income: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


# ---------------------------
# ledger_payees
# ---------------------------


class LedgerPayeeRow(Base):
    __tablename__ = "ledger_payees"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    budget_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Set on the payee that stands for "transfer to/from this account"
    transfer_account_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("ledger_accounts.id"), nullable=True
    )


# ---------------------------
# ledger_transactions
# ---------------------------


class LedgerTransactionRow(Base):
    __tablename__ = "ledger_transactions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    budget_id: Mapped[str] = mapped_column(String, nullable=False)
    account_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("ledger_accounts.id"), nullable=False
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    # Signed minor units (cents)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payee_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("ledger_payees.id"), nullable=True
    )
    imported_payee: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("ledger_categories.id"), nullable=True
    )
    # Id of the mirrored transaction in the other account of a transfer
    transfer_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_parent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    parent_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        Index("ix_ledger_tx_budget_account_date", "budget_id", "account_id", "date"),
    )
