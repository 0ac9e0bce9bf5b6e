from __future__ import annotations


def final_price(base_price: int, discount_amount: int | None = None) -> int:
    """Price after a flat discount, floored at zero.

    Total by construction: a discount larger than the price yields a free
    purchase rather than an error.
    """
    return max(0, int(base_price) - int(discount_amount or 0))
