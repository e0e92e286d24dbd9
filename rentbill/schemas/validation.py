from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from rentbill.database.models import InvoiceStatus, PaymentMethod


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case accepted on input"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- Requests ---

class GenerateInvoicesRequest(CamelModel):
    property_id: int = Field(gt=0)
    electricity_bill_id: int = Field(gt=0)
    month: int = Field(ge=1, le=12, description="Month (1-12)")
    year: int = Field(ge=2000, le=2100)
    water_cost: Decimal = Field(ge=0, description="Total water cost of the property for the period")


class CreatePaymentRequest(CamelModel):
    type: Literal["rental", "invoice"]
    rental_id: Optional[int] = Field(default=None, gt=0)
    invoice_id: Optional[int] = Field(default=None, gt=0)
    amount: Decimal = Field(ge=Decimal("0.01"), le=Decimal("999999.99"), decimal_places=2)
    paid_at: datetime
    payment_method: PaymentMethod
    reference: Optional[str] = Field(default=None, max_length=255)
    receipt_url: Optional[str] = None

    @field_validator('amount', mode='before')
    def parse_amount(cls, v):
        if isinstance(v, str):
            # Accept "1 234,50"
            v = v.replace(',', '.').replace(' ', '')
        return v

    @field_validator('receipt_url')
    def check_url(cls, v):
        if v is None:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Receipt URL must be a valid http(s) URL")
        return v

    @model_validator(mode='after')
    def check_target(self):
        # Exactly one parent, matching the declared type
        if self.type == "rental":
            if self.rental_id is None or self.invoice_id is not None:
                raise ValueError("Rental payments require rentalId and no invoiceId")
        else:
            if self.invoice_id is None or self.rental_id is not None:
                raise ValueError("Invoice payments require invoiceId and no rentalId")
        return self


class BillRequestBase(CamelModel):
    property_id: int = Field(gt=0)
    period_start: date
    period_end: date
    total_cost: Decimal = Field(gt=0)
    file_url: Optional[str] = None


class CreateElectricityBillRequest(BillRequestBase):
    total_kwh: Decimal = Field(gt=0)


class CreateWaterBillRequest(BillRequestBase):
    total_consumption: Decimal = Field(gt=0)


# --- Responses ---

class MoneyModel(CamelModel):
    @field_validator('*', mode='before')
    def decimal_to_float(cls, v):
        if isinstance(v, Decimal):
            return float(v)
        return v


class InvoiceResponse(MoneyModel):
    id: int
    rental_id: int
    month: int
    year: int
    water_cost: float
    energy_cost: float
    total_cost: float
    status: InvoiceStatus


class GenerateInvoicesResponse(CamelModel):
    invoices: List[InvoiceResponse]


class InvoiceSummary(MoneyModel):
    id: int
    rental_id: int
    month: int
    year: int
    total_cost: float
    status: InvoiceStatus


class InvoiceListResponse(CamelModel):
    invoices: List[InvoiceSummary]


class InvoiceDetailResponse(InvoiceResponse):
    paid_at: Optional[datetime] = None
    receipt_url: Optional[str] = None
    invoice_url: Optional[str] = None
    amount_paid: float
    remaining_balance: float


class PaymentResponse(MoneyModel):
    id: int
    rental_id: Optional[int] = None
    invoice_id: Optional[int] = None
    amount: float
    paid_at: datetime
    payment_method: PaymentMethod
    reference: Optional[str] = None
    receipt_url: Optional[str] = None


class BillResponseBase(MoneyModel):
    id: int
    property_id: int
    period_start: date
    period_end: date
    total_cost: float
    cost_per_unit: float
    file_url: Optional[str] = None


class ElectricityBillResponse(BillResponseBase):
    total_kwh: float


class WaterBillResponse(BillResponseBase):
    total_consumption: float
