"""
Insight Service
Board narrative: KPI cards and the CEO / Analyst talking points.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .aggregation_service import DerivedView
from .data_formatting_service import DataFormattingService
from .metrics_data_service import MetricSet
from .scenario_service import ScenarioResult


@dataclass(frozen=True)
class KpiCard:
    label: str
    value: str
    sub: Optional[str] = None


class InsightService:
    """Service for turning derived metrics into board-ready statements."""

    def __init__(self):
        self.fmt = DataFormattingService()

    def build_kpi_cards(self, metrics: MetricSet) -> list[KpiCard]:
        """
        Six headline cards: all, mixed and pure grocery transactions and sales.
        """
        fmt = self.fmt
        return [
            KpiCard("Grocery TXNs (All)", fmt.format_grouped(metrics.total_grocery_txns),
                    f"Avg Ticket ${fmt.format_fixed(metrics.avg_all)}"),
            KpiCard("Grocery Sales (All)", f"${fmt.format_grouped(metrics.total_grocery_sales)}"),
            KpiCard("Mixed Grocery TXNs", fmt.format_grouped(metrics.mixed_txns),
                    f"{fmt.format_percent(metrics.pct_mixed)}% of Grocery"),
            KpiCard("Mixed Grocery Sales", f"${fmt.format_grouped(metrics.mixed_sales)}",
                    f"Avg Ticket ${fmt.format_fixed(metrics.avg_mixed)}"),
            KpiCard("Pure Grocery TXNs", fmt.format_grouped(metrics.pure_txns),
                    f"{fmt.format_percent(metrics.pct_pure)}% of Grocery"),
            KpiCard("Pure Grocery Sales", f"${fmt.format_grouped(metrics.pure_sales)}",
                    f"Avg Ticket ${fmt.format_fixed(metrics.avg_pure)}"),
        ]

    @staticmethod
    def _short_name(name: str) -> str:
        """'Apparel, Footwear & Acc' -> 'Apparel'"""
        return name.split(",")[0].split(" ")[0]

    def scenario_sentence(self, scenario: ScenarioResult) -> str:
        rate = self.fmt.format_grouped(scenario.conversion_rate_pct)
        return (
            f"If we convert {rate}% of pure grocery to mixed at current uplift, "
            f"we add ~{self.fmt.format_currency(scenario.incremental_sales)} "
            f"on ~{self.fmt.format_grouped(scenario.txns_converted)} txns."
        )

    def build_ceo_bullets(self, view: DerivedView, scenario: ScenarioResult) -> list[str]:
        metrics = view.metrics
        ticket_word = "higher" if metrics.uplift >= 0 else "lower"
        bullets = [
            f"{self.fmt.format_percent(metrics.pct_mixed)}% of grocery transactions are MIXED "
            f"({ticket_word} ticket than pure).",
        ]

        top = view.top_categories(2)
        if top:
            names = " & ".join(self._short_name(c.name).upper() for c in top)
            verb = "dominate" if len(top) > 1 else "dominates"
            bullets.append(f"{names} {verb} mix attachments; drive margin via these.")

        bullets.append(self.scenario_sentence(scenario))
        return bullets

    def build_analyst_bullets(self, view: DerivedView) -> list[str]:
        bullets = ["Incidence is non-exclusive; attachments can overlap (no dedupe in this extract)."]

        top = view.top_categories(3)
        if top:
            parts = ", ".join(
                f"{self._short_name(c.name)} ~{self.fmt.format_fixed(c.incidence_pct, 0)}%" for c in top
            )
            bullets.append(f"Attachment incidence: {parts} of mixed txns.")

        overlap = view.category_overlap_ratio
        if not math.isnan(overlap) and overlap > 1:
            bullets.append(
                f"Category incidence sums to {self.fmt.format_fixed(overlap, 2)}x mixed transactions, "
                "so true overlap requires basket-line data."
            )

        bullets.append("Use seasonal programs + adjacency + personalised offers to lift conversion.")
        return bullets
