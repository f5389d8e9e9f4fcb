"""
Document numbering, financial year and date-handling tests.
"""

from datetime import date, datetime

import pytest

from dairy_api.services.document_service import DocumentSequenceError, next_document_number
from dairy_api.services.invoice_service import amount_in_words
from dairy_api.time_utils import financial_year_code, parse_start_date


class TestFinancialYear:

    @pytest.mark.parametrize(
        "on,expected",
        [
            (date(2025, 4, 1), "2526"),
            (date(2026, 3, 31), "2526"),
            (date(2026, 4, 1), "2627"),
            (date(2000, 1, 15), "9900"),
        ],
    )
    def test_april_to_march(self, on, expected):
        assert financial_year_code(on) == expected


class TestStartDate:

    def test_plain_date_taken_as_is(self):
        assert parse_start_date("2025-06-02") == date(2025, 6, 2)

    def test_local_midnight_in_utc_lands_on_intended_day(self):
        # Midnight IST on 2 June is 18:30 UTC on 1 June
        assert parse_start_date("2025-06-01T18:30:00.000Z") == date(2025, 6, 2)

    def test_utc_midnight_stays_on_same_day(self):
        assert parse_start_date("2025-06-02T00:00:00Z") == date(2025, 6, 2)

    def test_datetime_object_shifted(self):
        assert parse_start_date(datetime(2025, 6, 1, 20, 0)) == date(2025, 6, 2)


class TestDocumentNumbers:

    def test_sequence_increments_per_type(self, db_session):
        on = date(2025, 6, 1)
        assert next_document_number("ORDER", on) == "ORD-2526-000001"
        assert next_document_number("ORDER", on) == "ORD-2526-000002"
        assert next_document_number("INVOICE", on) == "2526-00001"
        assert next_document_number("TRANSFER", on) == "2526-000001"

    def test_sequence_restarts_each_financial_year(self, db_session):
        assert next_document_number("PURCHASE", date(2025, 3, 31)) == "2425-00001"
        assert next_document_number("PURCHASE", date(2025, 4, 1)) == "2526-00001"
        assert next_document_number("PURCHASE", date(2025, 4, 2)) == "2526-00002"

    def test_unknown_type_rejected(self, db_session):
        with pytest.raises(DocumentSequenceError):
            next_document_number("RECEIPT")


class TestAmountInWords:

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (0, "Zero Rupees Only"),
            (7, "Seven Rupees Only"),
            (115, "One Hundred Fifteen Rupees Only"),
            ("1250.50", "One Thousand Two Hundred Fifty Rupees and Fifty Paise Only"),
            (120020, "One Lakh Twenty Thousand Twenty Rupees Only"),
            (25000000, "Two Crore Fifty Lakh Rupees Only"),
        ],
    )
    def test_indian_numbering(self, amount, expected):
        assert amount_in_words(amount) == expected
