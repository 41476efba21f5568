"""
Split Allocation

Gas-weighted allocation of a total across 1..5 destinations.

    weight_i = sumGas - gas_i
    amount_i = total * weight_i // (sumGas * (n - 1))

Cheaper destinations receive more. The weights sum to sumGas * (n - 1), so
the floored amounts fall short of total by less than n; the shortfall goes
to the destination with the largest weight (first one on ties), keeping the
allocation monotonic in gas price and summing exactly to total.

With every gas price zero the total is split equally and the remainder is
handed out one unit at a time from the first destination on.
"""

from __future__ import annotations

from typing import Sequence

from core.schemas.errors import ValidationException
from core.schemas.split import MAX_SPLIT_DESTINATIONS


def _equal_split(total: int, n: int) -> list[int]:
    base, remainder = divmod(total, n)
    return [base + (1 if i < remainder else 0) for i in range(n)]


def calculate_optimal_split(total: int, gas_prices: Sequence[int]) -> list[int]:
    """
    Allocate total across destinations inversely to their gas prices.

    Args:
        total: Amount to allocate (> 0)
        gas_prices: One non-negative gas price per destination

    Returns:
        Amounts in destination order, summing to total

    Raises:
        ValidationException: Bad destination count, total or gas price
    """
    n = len(gas_prices)
    if not 1 <= n <= MAX_SPLIT_DESTINATIONS:
        raise ValidationException(
            f"Expected 1 to {MAX_SPLIT_DESTINATIONS} destinations, got {n}",
            field_path="destinations",
        )
    if total <= 0:
        raise ValidationException("Total must be positive", field_path="total")
    if any(price < 0 for price in gas_prices):
        raise ValidationException("Gas prices must be non-negative", field_path="gas_prices")

    if n == 1:
        return [total]

    sum_gas = sum(gas_prices)
    if sum_gas == 0:
        return _equal_split(total, n)

    denominator = sum_gas * (n - 1)
    weights = [sum_gas - price for price in gas_prices]
    amounts = [total * weight // denominator for weight in weights]

    shortfall = total - sum(amounts)
    if shortfall:
        heaviest = max(range(n), key=lambda i: (weights[i], -i))
        amounts[heaviest] += shortfall
    return amounts


__all__ = ["calculate_optimal_split"]
