from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN
from typing import Sequence


def split_evenly(amount: int, consumers: Sequence[str]) -> dict[str, Decimal]:
    """Exact per-consumer share, not rounded."""
    if not consumers:
        raise ValueError("consumers must not be empty")
    share = Decimal(amount) / Decimal(len(consumers))
    return {consumer: share for consumer in consumers}


def split_amount(amount: int, consumers: Sequence[str]) -> dict[str, int]:
    """Integer shares that sum exactly to ``amount``.

    ``amount`` may be negative when discounts outweigh fees. The leftover
    units after rounding are handed out one by one in consumer order.
    """
    if not consumers:
        raise ValueError("consumers must not be empty")

    n = len(consumers)
    base_share = (Decimal(amount) / Decimal(n)).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)

    shares = [int(base_share) for _ in consumers]
    remainder = amount - sum(shares)

    idx = 0
    step = 1 if remainder > 0 else -1
    while remainder != 0:
        shares[idx] += step
        remainder -= step
        idx = (idx + 1) % n

    return {consumer: share for consumer, share in zip(consumers, shares)}
