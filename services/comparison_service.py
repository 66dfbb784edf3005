"""
Comparison Service
Centralized ratio, share and difference calculations with zero-baseline rules.
"""

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext


class ComparisonService:
    """Service for ratios and differences with consistent zero-baseline rules."""

    @staticmethod
    def safe_ratio(
        numerator: float,
        denominator: float,
        sentinel: float = math.nan
    ) -> float:
        """
        Divide with a defined result for an empty baseline.

        Rules:
        - denominator == 0 → sentinel (NaN unless the caller picks another value)
        - else → numerator / denominator

        Args:
            numerator: Part value
            denominator: Baseline value

        Returns:
            The ratio, or the sentinel when the baseline is zero
        """
        if not denominator:
            return sentinel
        return numerator / denominator

    @staticmethod
    def calculate_share_pct(
        part: float,
        whole: float,
        sentinel: float = math.nan
    ) -> float:
        """
        Share of a whole in percent (0-100 for a part no larger than its whole).
        """
        ratio = ComparisonService.safe_ratio(part, whole, sentinel=math.nan)
        if math.isnan(ratio):
            return sentinel
        return ratio * 100

    @staticmethod
    def calculate_absolute_change(current: float, previous: float) -> float:
        """
        Calculate absolute change (current - previous).

        Args:
            current: Current value
            previous: Baseline value

        Returns:
            Absolute change (float); negative when current is below baseline
        """
        return current - previous

    @staticmethod
    def round_half_up(value: float, digits: int = 0) -> float | int:
        """
        Round half away from zero, independent of float banker's rounding.

        Returns an int when digits is 0.
        """
        quantum = Decimal(1).scaleb(-digits)
        exact = Decimal(repr(value))
        with localcontext() as ctx:
            # every integer digit plus the requested decimals must fit
            ctx.prec = max(ctx.prec, exact.adjusted() + digits + 2)
            rounded = exact.quantize(quantum, rounding=ROUND_HALF_UP)
        return int(rounded) if digits == 0 else float(rounded)
