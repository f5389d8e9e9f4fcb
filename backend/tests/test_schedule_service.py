"""
Delivery schedule generation tests.

Pure functions: no app or database needed.
"""

from datetime import date, timedelta

import pytest

from dairy_api.errors import BadRequestError
from dairy_api.services import schedule_service as sched

# 2025-06-02 is a Monday
MONDAY = date(2025, 6, 2)


class TestScheduleTags:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("DAILY", (sched.DAILY, "DAILY")),
            ("daily", (sched.DAILY, "DAILY")),
            ("SELECT-DAYS", (sched.SELECT_DAYS, "WEEKDAYS")),
            ("ALTERNATE-DAYS", (sched.ALTERNATE_DAYS, "ALTERNATE_DAYS")),
            ("VARYING", (sched.VARYING, "DAY1_DAY2")),
            ("DAY1-DAY2", (sched.VARYING, "DAY1_DAY2")),
        ],
    )
    def test_client_tags_map_to_stored_tags(self, raw, expected):
        assert sched.map_delivery_schedule(raw) == expected

    def test_unknown_tag_rejected(self):
        with pytest.raises(BadRequestError):
            sched.map_delivery_schedule("FORTNIGHTLY")

    def test_weekdays_normalized_and_deduplicated(self):
        assert sched.normalize_weekdays(["Monday", "wed", "MON"]) == ["mon", "wed"]

    def test_bad_weekday_rejected(self):
        with pytest.raises(BadRequestError):
            sched.normalize_weekdays(["funday"])


class TestGenerateDeliveryDates:

    def test_daily_delivers_every_day(self):
        deliveries = sched.generate_delivery_dates(MONDAY, 7, sched.DAILY, 2)
        assert len(deliveries) == 7
        assert deliveries[0] == sched.Delivery(MONDAY, 2)
        assert deliveries[-1].date == date(2025, 6, 8)
        assert {d.quantity for d in deliveries} == {2}

    def test_daily_month_covers_thirty_consecutive_days(self):
        deliveries = sched.generate_delivery_dates(MONDAY, 30, sched.DAILY, 1)
        assert [d.date for d in deliveries] == [MONDAY + timedelta(days=i) for i in range(30)]
        assert deliveries[-1].date == date(2025, 7, 1)
        assert sum(d.quantity for d in deliveries) == 30

    def test_alternate_days_ten_day_period(self):
        deliveries = sched.generate_delivery_dates(MONDAY, 10, sched.ALTERNATE_DAYS, 2, alt_qty=3)
        assert [(d.date - MONDAY).days for d in deliveries] == [0, 2, 4, 6, 8]
        assert [d.quantity for d in deliveries] == [2, 3, 2, 3, 2]

    def test_alternate_days_skip_odd_offsets(self):
        deliveries = sched.generate_delivery_dates(MONDAY, 7, sched.ALTERNATE_DAYS, 1)
        assert [d.date.day for d in deliveries] == [2, 4, 6, 8]

    def test_alternate_days_flip_quantity_with_alt_qty(self):
        deliveries = sched.generate_delivery_dates(MONDAY, 7, sched.ALTERNATE_DAYS, 1, alt_qty=3)
        assert [d.quantity for d in deliveries] == [1, 3, 1, 3]

    def test_varying_alternates_quantity_daily(self):
        deliveries = sched.generate_delivery_dates(MONDAY, 4, sched.VARYING, 2, alt_qty=1)
        assert [d.quantity for d in deliveries] == [2, 1, 2, 1]
        assert len(deliveries) == 4

    def test_varying_without_alt_qty_behaves_as_daily(self):
        deliveries = sched.generate_delivery_dates(MONDAY, 3, sched.VARYING, 2, alt_qty=0)
        assert [d.quantity for d in deliveries] == [2, 2, 2]

    def test_select_days_only_on_chosen_weekdays(self):
        deliveries = sched.generate_delivery_dates(
            MONDAY, 14, sched.SELECT_DAYS, 1, weekdays=["mon", "thu"]
        )
        assert [d.date.isoformat() for d in deliveries] == [
            "2025-06-02", "2025-06-05", "2025-06-09", "2025-06-12",
        ]

    def test_select_days_can_produce_nothing(self):
        assert sched.generate_delivery_dates(MONDAY, 1, sched.SELECT_DAYS, 1, weekdays=["sun"]) == []

    def test_zero_period_yields_no_deliveries(self):
        assert sched.generate_delivery_dates(MONDAY, 0, sched.DAILY, 1) == []


class TestExpiryDate:

    def test_buy_once_expires_on_start_date(self):
        assert sched.expiry_date_for(MONDAY, 1) == MONDAY

    def test_period_covers_inclusive_range(self):
        assert sched.expiry_date_for(MONDAY, 30) == date(2025, 7, 1)
