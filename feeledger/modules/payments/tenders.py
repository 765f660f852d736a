"""
Payment tenders.

A tender is a payment method together with the identifiers that method
requires. Once a tender exists its required fields are present, so the
collector never checks method names against strings.
"""

from dataclasses import dataclass
from typing import Union

from feeledger.core.exceptions import InvalidMethodError, MissingFieldError
from feeledger.modules.payments.models import PaymentMethod

ELECTRONIC_METHODS = frozenset(
    {
        PaymentMethod.BANK_TRANSFER,
        PaymentMethod.ONLINE,
        PaymentMethod.UPI,
        PaymentMethod.CARD,
        PaymentMethod.NET_BANKING,
    }
)
INSTRUMENT_METHODS = frozenset({PaymentMethod.CHEQUE, PaymentMethod.DEMAND_DRAFT})


@dataclass(frozen=True)
class CashTender:
    method: PaymentMethod = PaymentMethod.CASH

    transaction_id = None
    reference_number = None
    bank_name = None
    branch_name = None


@dataclass(frozen=True)
class ElectronicTender:
    method: PaymentMethod
    transaction_id: str
    bank_name: str | None = None

    reference_number = None
    branch_name = None


@dataclass(frozen=True)
class InstrumentTender:
    method: PaymentMethod
    reference_number: str
    bank_name: str | None = None
    branch_name: str | None = None

    transaction_id = None


Tender = Union[CashTender, ElectronicTender, InstrumentTender]


def parse_method(value: str | PaymentMethod | None) -> PaymentMethod:
    """Payment method from user input. Raises InvalidMethodError."""
    if isinstance(value, PaymentMethod):
        return value
    if not value or not isinstance(value, str):
        raise InvalidMethodError(value)
    try:
        return PaymentMethod(value.strip().upper())
    except ValueError:
        raise InvalidMethodError(value) from None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def build_tender(
    payment_method: str | PaymentMethod | None,
    transaction_id: str | None = None,
    reference_number: str | None = None,
    bank_name: str | None = None,
    branch_name: str | None = None,
) -> Tender:
    """
    Validate method-specific fields and return the matching tender.

    Raises InvalidMethodError for unknown methods and MissingFieldError when the
    identifier the method requires is absent.
    """
    method = parse_method(payment_method)
    transaction_id = _clean(transaction_id)
    reference_number = _clean(reference_number)

    if method in ELECTRONIC_METHODS:
        if not transaction_id:
            raise MissingFieldError("transaction_id", method.value)
        return ElectronicTender(method=method, transaction_id=transaction_id, bank_name=_clean(bank_name))

    if method in INSTRUMENT_METHODS:
        if not reference_number:
            raise MissingFieldError("reference_number", method.value)
        return InstrumentTender(
            method=method,
            reference_number=reference_number,
            bank_name=_clean(bank_name),
            branch_name=_clean(branch_name),
        )

    return CashTender()
