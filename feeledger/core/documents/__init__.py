from feeledger.core.documents.number_generator import DocumentNumberGenerator
from feeledger.core.documents.receipts import (
    ReceiptIssuer,
    SequentialReceiptIssuer,
    UuidReceiptIssuer,
    get_receipt_issuer,
)

__all__ = [
    "DocumentNumberGenerator",
    "ReceiptIssuer",
    "SequentialReceiptIssuer",
    "UuidReceiptIssuer",
    "get_receipt_issuer",
]
