import enum
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from sqlalchemy import String, ForeignKey, Integer, Numeric, DateTime, DATE, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from rentbill.database.core import Base

# Enums
class InvoiceStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"

class PaymentMethod(str, enum.Enum):
    YAPE = "YAPE"
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"

class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class AuditMixin:
    """createdAt/updatedAt/deletedAt plus the ids of the acting users"""
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Users live in the external auth service, only their ids are stored
    created_by_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    updated_by_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    deleted_by_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)


# Property
class Property(AuditMixin, Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    address: Mapped[str] = mapped_column(String)

    administrators: Mapped[List["PropertyAdministrator"]] = relationship(back_populates="property")


# PropertyAdministrator (which users manage a property)
class PropertyAdministrator(Base):
    __tablename__ = "property_administrators"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"))
    user_id: Mapped[str] = mapped_column(String, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('property_id', 'user_id', name='uq_property_administrator'),
    )

    property: Mapped["Property"] = relationship(back_populates="administrators")


# Rental (a tenancy of a user in a property)
class Rental(AuditMixin, Base):
    __tablename__ = "rentals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), index=True)

    start_date: Mapped[date] = mapped_column(DATE)
    end_date: Mapped[Optional[date]] = mapped_column(DATE, nullable=True)  # None = ongoing

    def is_active(self, on: Optional[date] = None) -> bool:
        """True if the tenancy covers the given day (default: today)"""
        on = on or date.today()
        return self.start_date <= on and (self.end_date is None or self.end_date >= on)

    def is_active_for(self, period_start: date, period_end: date) -> bool:
        """True if the tenancy overlaps the half-open period [period_start, period_end)"""
        return self.start_date < period_end and (self.end_date is None or self.end_date >= period_start)


# ElectricityBill
class ElectricityBill(AuditMixin, Base):
    __tablename__ = "electricity_bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), index=True)
    period_start: Mapped[date] = mapped_column(DATE)
    period_end: Mapped[date] = mapped_column(DATE)
    total_kwh: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    file_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint('total_kwh > 0', name='ck_electricity_bill_kwh_positive'),
        CheckConstraint('total_cost > 0', name='ck_electricity_bill_cost_positive'),
        CheckConstraint('period_start < period_end', name='ck_electricity_bill_period'),
    )


# WaterBill
class WaterBill(AuditMixin, Base):
    __tablename__ = "water_bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), index=True)
    period_start: Mapped[date] = mapped_column(DATE)
    period_end: Mapped[date] = mapped_column(DATE)
    total_consumption: Mapped[Decimal] = mapped_column(Numeric(12, 2))  # m3
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    file_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint('total_consumption > 0', name='ck_water_bill_consumption_positive'),
        CheckConstraint('total_cost > 0', name='ck_water_bill_cost_positive'),
        CheckConstraint('period_start < period_end', name='ck_water_bill_period'),
    )


# Invoice (one per rental per billing period)
class Invoice(AuditMixin, Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rental_id: Mapped[int] = mapped_column(ForeignKey("rentals.id", ondelete="CASCADE"), index=True)
    month: Mapped[int] = mapped_column(Integer)
    year: Mapped[int] = mapped_column(Integer)

    water_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    energy_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2))  # water_cost + energy_cost

    status: Mapped[InvoiceStatus] = mapped_column(String, default=InvoiceStatus.UNPAID.value)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    receipt_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    invoice_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint('rental_id', 'month', 'year', name='uq_invoice_rental_period'),
        CheckConstraint('month >= 1 AND month <= 12', name='ck_invoice_month'),
        Index('ix_invoices_period', 'year', 'month'),
    )

    rental: Mapped["Rental"] = relationship()

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID.value


# Payment (rent against a rental XOR service payment against an invoice)
class Payment(AuditMixin, Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rental_id: Mapped[Optional[int]] = mapped_column(ForeignKey("rentals.id"), nullable=True, index=True)
    invoice_id: Mapped[Optional[int]] = mapped_column(ForeignKey("invoices.id"), nullable=True, index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    payment_method: Mapped[PaymentMethod] = mapped_column(String)
    reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    receipt_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
        CheckConstraint(
            '(rental_id IS NULL AND invoice_id IS NOT NULL) OR (rental_id IS NOT NULL AND invoice_id IS NULL)',
            name='ck_payment_single_parent'
        ),
    )
