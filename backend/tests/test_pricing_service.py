"""
Period pricing and wallet allocation tests.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from dairy_api.services import pricing_service


def _variant(**prices):
    base = {
        "mrp": Decimal("30"),
        "buy_once_price": None,
        "price_3_day": None,
        "price_7_day": None,
        "price_15_day": None,
        "price_1_month": None,
    }
    base.update(prices)
    return SimpleNamespace(**base)


class TestPriceForPeriod:

    @pytest.mark.parametrize(
        "period,expected",
        [
            (1, "32.00"),
            (2, "32.00"),
            (3, "31.00"),
            (6, "31.00"),
            (7, "29.00"),
            (14, "29.00"),
            (15, "28.00"),
            (29, "28.00"),
            (30, "26.50"),
            (90, "26.50"),
        ],
    )
    def test_largest_breakpoint_wins(self, period, expected):
        variant = _variant(
            buy_once_price=Decimal("32"),
            price_3_day=Decimal("31"),
            price_7_day=Decimal("29"),
            price_15_day=Decimal("28"),
            price_1_month=Decimal("26.5"),
        )
        assert pricing_service.price_for_period(variant, period) == Decimal(expected)

    def test_unset_tier_falls_back_to_default_price(self):
        variant = _variant(buy_once_price=Decimal("32"), price_3_day=Decimal("31"))
        # 7-day tier matched but not priced; does not fall through to the 3-day tier
        assert pricing_service.price_for_period(variant, 10) == Decimal("32.00")

    def test_default_price_uses_mrp_without_buy_once_price(self):
        assert pricing_service.price_for_period(_variant(), 1) == Decimal("30.00")


class TestAllocateWallet:

    def test_wallet_capped_by_balance(self):
        allocation = pricing_service.allocate_wallet(
            Decimal("300"), Decimal("500"), Decimal("120"), [Decimal("300")]
        )
        assert allocation.wallet_used == Decimal("120.00")
        assert allocation.total_payable == Decimal("180.00")
        assert allocation.order_status == "PENDING"

    def test_wallet_capped_by_total(self):
        allocation = pricing_service.allocate_wallet(
            Decimal("100"), Decimal("500"), Decimal("500"), [Decimal("100")]
        )
        assert allocation.wallet_used == Decimal("100.00")
        assert allocation.total_payable == Decimal("0.00")
        assert allocation.order_status == "PAID"
        assert allocation.status_for(0, Decimal("100")) == "PAID"

    def test_shares_are_proportional_and_sum_exactly(self):
        amounts = [Decimal("100"), Decimal("100"), Decimal("100")]
        allocation = pricing_service.allocate_wallet(Decimal("300"), Decimal("100"), Decimal("100"), amounts)
        # equal remainders: the leftover paisa goes to the first line
        assert allocation.shares == (Decimal("33.34"), Decimal("33.33"), Decimal("33.33"))
        assert sum(allocation.shares) == allocation.wallet_used

    def test_leftover_paise_follow_largest_remainder(self):
        amounts = [Decimal("10.00"), Decimal("20.00"), Decimal("70.00")]
        allocation = pricing_service.allocate_wallet(Decimal("100"), Decimal("0.05"), Decimal("1"), amounts)
        # exact shares 0.5, 1.0 and 3.5 paise
        assert allocation.shares == (Decimal("0.01"), Decimal("0.01"), Decimal("0.03"))

    @pytest.mark.parametrize(
        "total,wallet,amounts",
        [
            ("4.00", "0.02", ["1", "1", "1", "1"]),
            ("4.00", "0.03", ["1", "1", "1", "1"]),
            ("100.00", "99.99", ["33.33", "33.33", "33.34"]),
            ("57.00", "0.01", ["28.50", "28.50"]),
            ("392.00", "250.00", ["87.00", "112.00", "193.00"]),
        ],
    )
    def test_shares_stay_within_each_amount(self, total, wallet, amounts):
        amounts = [Decimal(a) for a in amounts]
        allocation = pricing_service.allocate_wallet(Decimal(total), Decimal(wallet), Decimal("1000"), amounts)

        assert sum(allocation.shares) == allocation.wallet_used
        for index, amount in enumerate(amounts):
            assert Decimal("0") <= allocation.shares[index] <= amount
        payables = [allocation.payable_for(i, a) for i, a in enumerate(amounts)]
        assert sum(payables) == Decimal(total) - allocation.wallet_used
        assert all(p >= 0 for p in payables)

    def test_no_wallet_requested(self):
        allocation = pricing_service.allocate_wallet(Decimal("50"), 0, Decimal("100"), [Decimal("50")])
        assert allocation.wallet_used == Decimal("0.00")
        assert allocation.shares == (Decimal("0.00"),)
        assert allocation.payable_for(0, Decimal("50")) == Decimal("50.00")

    def test_negative_request_treated_as_zero(self):
        allocation = pricing_service.allocate_wallet(Decimal("50"), Decimal("-10"), Decimal("100"), [Decimal("50")])
        assert allocation.wallet_used == Decimal("0.00")
