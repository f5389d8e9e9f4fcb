# Overview: Service-layer operations for document numbering; financial-year scoped sequences.

from __future__ import annotations

from datetime import date

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError
from ..extensions import db
from ..models import DocumentSequence
from ..time_utils import financial_year_code


# document_type -> (prefix, zero padding)
DOCUMENT_FORMATS = {
    "ORDER": ("ORD-", 6),
    "INVOICE": ("", 5),
    "TRANSFER": ("", 6),
    "PURCHASE": ("", 5),
    "WASTAGE": ("", 5),
    "VENDOR_ORDER": ("", 5),
    "PURCHASE_PAYMENT": ("PAY-", 5),
}


class DocumentSequenceError(ConflictError):
    """Raised when document sequence operations fail."""


def _allocate(document_type: str, fiscal_year: str) -> int:
    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.fiscal_year == fiscal_year,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    def _current() -> int:
        db.session.flush()
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(document_type=document_type, fiscal_year=fiscal_year)
            .scalar()
        )
        return current - 1

    result = db.session.execute(stmt)
    if result.rowcount:
        return _current()

    try:
        with db.session.begin_nested():
            db.session.add(DocumentSequence(document_type=document_type, fiscal_year=fiscal_year, next_number=2))
    except IntegrityError:
        # Another request created the row first; bump its counter instead
        db.session.execute(stmt)
        return _current()
    return 1


def next_document_number(document_type: str, on: date | None = None) -> str:
    """
    Allocate the next number for a document type within the financial year of `on`.

    Format: <prefix><YYNN>-<zero padded sequence>, e.g. 2526-00001 for the first
    invoice of FY 2025-26.
    """
    if document_type not in DOCUMENT_FORMATS:
        raise DocumentSequenceError(f"Unknown document type: {document_type}")

    prefix, pad = DOCUMENT_FORMATS[document_type]
    fiscal_year = financial_year_code(on)

    number = _allocate(document_type, fiscal_year)
    return f"{prefix}{fiscal_year}-{number:0{pad}d}"
