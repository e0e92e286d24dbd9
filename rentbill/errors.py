"""
Domain errors raised by the billing services.

Each error carries a stable machine-readable `code` and the HTTP status
the API layer answers with (see middlewares/error.py).
"""


class DomainError(Exception):
    code = "DOMAIN_ERROR"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str = None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class AuthenticationRequiredError(DomainError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


# 404
class PropertyNotFoundError(DomainError):
    code = "PROPERTY_NOT_FOUND"
    status_code = 404
    default_message = "Property not found"


class ElectricityBillNotFoundError(DomainError):
    code = "ELECTRICITY_BILL_NOT_FOUND"
    status_code = 404
    default_message = "Electricity bill not found"


class InvoiceNotFoundError(DomainError):
    code = "INVOICE_NOT_FOUND"
    status_code = 404
    default_message = "Invoice not found"


class RentalNotFoundError(DomainError):
    code = "RENTAL_NOT_FOUND"
    status_code = 404
    default_message = "Rental not found"


# 403
class InvoiceAccessDeniedError(DomainError):
    code = "INVOICE_ACCESS_DENIED"
    status_code = 403
    default_message = "You do not have access to this invoice"


class RentalAccessDeniedError(DomainError):
    code = "RENTAL_ACCESS_DENIED"
    status_code = 403
    default_message = "You do not have access to this rental"


class PropertyAccessDeniedError(DomainError):
    code = "PROPERTY_ACCESS_DENIED"
    status_code = 403
    default_message = "You are not an administrator of this property"


# 400
class ElectricityBillPropertyMismatchError(DomainError):
    code = "ELECTRICITY_BILL_PROPERTY_MISMATCH"
    default_message = "Electricity bill does not belong to the property"


class InvalidPeriodError(DomainError):
    code = "INVALID_PERIOD"
    default_message = "Invalid billing period"


class InvalidBillError(DomainError):
    code = "INVALID_BILL"
    default_message = "Invalid bill data"


class InvalidPaymentError(DomainError):
    code = "INVALID_PAYMENT"
    default_message = "Invalid payment data"


class InvalidAmountError(DomainError):
    code = "INVALID_AMOUNT"
    default_message = "Invalid amount"


# 409
class InvoiceAlreadyExistsError(DomainError):
    code = "INVOICE_ALREADY_EXISTS"
    status_code = 409
    default_message = "Invoices for this period already exist"


class BillPeriodOverlapError(DomainError):
    code = "BILL_PERIOD_OVERLAP"
    status_code = 409
    default_message = "A bill for an overlapping period already exists"
