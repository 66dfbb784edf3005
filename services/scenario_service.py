"""
Scenario Service
What-if simulation: convert a share of pure grocery baskets into mixed baskets
and price the gain at the current mixed-vs-pure average ticket uplift.
"""

import math
from dataclasses import dataclass

from .comparison_service import ComparisonService
from .config_service import ConfigService
from .error_handling_service import InvalidParameterError
from .metrics_data_service import MetricSet


@dataclass(frozen=True)
class ScenarioResult:
    conversion_rate_pct: float
    txns_converted: int
    delta_avg_ticket: float
    incremental_sales: float

    def to_dict(self) -> dict:
        return {
            "conversionRatePct": self.conversion_rate_pct,
            "txnsConverted": self.txns_converted,
            "deltaAvgTicket": self.delta_avg_ticket,
            "incrementalSales": self.incremental_sales,
        }


class ScenarioService:
    """Linear uplift model over pure → mixed conversion."""

    @staticmethod
    def validate_rate(conversion_rate_pct) -> float:
        """
        Check the conversion rate is a number within the engine's bounds.

        Raises:
            InvalidParameterError: For non-numeric, NaN or out-of-range values
        """
        low, high = ConfigService.SCENARIO_MIN_RATE, ConfigService.SCENARIO_MAX_RATE
        if isinstance(conversion_rate_pct, bool) or not isinstance(conversion_rate_pct, (int, float)):
            raise InvalidParameterError(
                f"conversion rate must be a number between {low:g} and {high:g}"
            )
        rate = float(conversion_rate_pct)
        if math.isnan(rate) or rate < low or rate > high:
            raise InvalidParameterError(
                f"conversion rate must be between {low:g} and {high:g}, got {conversion_rate_pct}"
            )
        return rate

    @staticmethod
    def simulate(metrics: MetricSet, conversion_rate_pct: float) -> ScenarioResult:
        """
        Simulate converting a share of pure grocery transactions to mixed.

        The uplift is not clamped: a negative delta is a valid outcome.

        Args:
            metrics: Grocery totals
            conversion_rate_pct: Share of pure transactions converting, 0-100

        Returns:
            ScenarioResult
        """
        rate = ScenarioService.validate_rate(conversion_rate_pct)

        delta_avg_ticket = metrics.uplift
        if math.isnan(delta_avg_ticket):
            # One segment is empty, there is no ticket gap to price
            delta_avg_ticket = 0.0

        txns_converted = ComparisonService.round_half_up(metrics.pure_txns * rate / 100)
        return ScenarioResult(
            conversion_rate_pct=rate,
            txns_converted=txns_converted,
            delta_avg_ticket=delta_avg_ticket,
            incremental_sales=delta_avg_ticket * txns_converted,
        )
