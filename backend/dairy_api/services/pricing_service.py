# Overview: Period price tiers and proportional wallet allocation across an order's subscriptions.

"""
Pricing rules.

TIERS: a subscription of p days pays the unit price of the largest breakpoint
<= p among 30 (price_1_month), 15 (price_15_day), 7 (price_7_day) and
3 (price_3_day). Below 3 days, or when the matched tier is not set, the
variant's default selling price applies (buy_once_price, else mrp).

WALLET SPLIT: the wallet amount applied to an order is capped by the member's
balance and the order total, then spread over the subscriptions in
proportion to their amounts by largest remainder: every share is floored to
paise, then the leftover paise go to the largest fractional parts. Shares add
up to the amount used and each lies between 0 and its subscription amount.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from ..money import TWO_PLACES, ZERO, round2, to_decimal

PRICE_TIERS = (
    (30, "price_1_month"),
    (15, "price_15_day"),
    (7, "price_7_day"),
    (3, "price_3_day"),
)

PAYMENT_PAID = "PAID"
PAYMENT_PENDING = "PENDING"


def default_price(variant) -> Decimal:
    for field in ("buy_once_price", "mrp"):
        value = getattr(variant, field, None)
        if value is not None and to_decimal(value) > 0:
            return round2(value)
    return ZERO


def price_for_period(variant, period: int) -> Decimal:
    """Unit price for a subscription of `period` days."""
    for breakpoint, field in PRICE_TIERS:
        if period >= breakpoint:
            value = getattr(variant, field, None)
            if value is not None and to_decimal(value) > 0:
                return round2(value)
            return default_price(variant)
    return default_price(variant)


@dataclass(frozen=True)
class WalletAllocation:
    wallet_used: Decimal
    total_payable: Decimal
    shares: tuple[Decimal, ...]

    @property
    def order_status(self) -> str:
        return PAYMENT_PAID if self.total_payable <= 0 else PAYMENT_PENDING

    def payable_for(self, index: int, amount) -> Decimal:
        return round2(to_decimal(amount) - self.shares[index])

    def status_for(self, index: int, amount) -> str:
        return PAYMENT_PAID if self.payable_for(index, amount) <= 0 else PAYMENT_PENDING


def allocate_wallet(
    total_amount,
    requested_wallet,
    available_balance,
    amounts: Sequence,
) -> WalletAllocation:
    """
    Apply up to `requested_wallet` of the member's balance to an order.

    Args:
        total_amount: order total (sum of amounts)
        requested_wallet: wallet amount the client asked to use
        available_balance: member's current wallet balance
        amounts: per-subscription amounts, in order

    Returns:
        WalletAllocation with the amount used, remaining payable and the
        per-subscription shares.
    """
    total = round2(total_amount)
    requested = max(to_decimal(requested_wallet), ZERO)
    balance = max(to_decimal(available_balance), ZERO)

    used = round2(min(requested, balance, total))
    payable = round2(total - used)

    if not amounts:
        return WalletAllocation(wallet_used=used, total_payable=payable, shares=())

    if total <= 0 or used <= 0:
        return WalletAllocation(
            wallet_used=used, total_payable=payable, shares=tuple(ZERO for _ in amounts)
        )

    used_paise = int(used * 100)
    exact = [to_decimal(amount) * used_paise / total for amount in amounts]
    paise = [int(value) for value in exact]
    leftover = used_paise - sum(paise)
    by_remainder = sorted(range(len(amounts)), key=lambda i: (-(exact[i] - paise[i]), i))
    for index in by_remainder[:leftover]:
        paise[index] += 1
    shares = [(Decimal(p) / 100).quantize(TWO_PLACES) for p in paise]

    return WalletAllocation(wallet_used=used, total_payable=payable, shares=tuple(shares))
