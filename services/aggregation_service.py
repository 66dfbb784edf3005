"""
Aggregation Service
Derives incidence, share and average-ticket views from the grocery dataset.

All functions are pure: the same inputs always give the same DerivedView and
nothing is cached between calls.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

import pandas as pd

from .comparison_service import ComparisonService
from .metrics_data_service import CategoryMixEntry, HierarchyNode, MetricSet


@dataclass(frozen=True)
class CategoryIncidence:
    name: str
    mix_txns: int
    mix_sales: float
    avg_ticket: float
    incidence_pct: float  # full precision, share of mixed transactions

    @property
    def incidence_display(self) -> float:
        return ComparisonService.round_half_up(self.incidence_pct, 1)


@dataclass(frozen=True)
class HierarchyRow:
    key: str
    name: str
    level: int
    txn_count: int
    sales: float
    units: int
    pct_txns: float
    pct_revenue: float
    avg_ticket: float
    pct_of_parent_txns: float


@dataclass(frozen=True)
class DerivedView:
    """Everything the dashboard, scenario and prompt layers read."""
    metrics: MetricSet
    categories: tuple[CategoryIncidence, ...]
    hierarchy: tuple[HierarchyRow, ...]

    @property
    def category_overlap_ratio(self) -> float:
        """
        Summed category incidence over mixed transactions.

        Above 1.0 means baskets carry several categories at once.
        """
        total = sum(c.mix_txns for c in self.categories)
        return ComparisonService.safe_ratio(total, self.metrics.mixed_txns, sentinel=0.0)

    def top_categories(self, n: int = 2) -> list[CategoryIncidence]:
        return sorted(self.categories, key=lambda c: c.incidence_pct, reverse=True)[:n]

    def hierarchy_row(self, key: str) -> Optional[HierarchyRow]:
        for row in self.hierarchy:
            if row.key == key:
                return row
        return None

    def category_frame(self) -> pd.DataFrame:
        """Category incidence table, one row per category in source order."""
        return pd.DataFrame(
            [
                {
                    "category": c.name,
                    "incidence": c.incidence_display,
                    "incidence_pct": c.incidence_pct,
                    "mix_txns": c.mix_txns,
                    "mix_sales": c.mix_sales,
                    "avg_ticket": c.avg_ticket,
                }
                for c in self.categories
            ],
            columns=["category", "incidence", "incidence_pct", "mix_txns", "mix_sales", "avg_ticket"],
        )

    def hierarchy_frame(self) -> pd.DataFrame:
        """Flattened hierarchy in pre-order; NaN marks undefined ratios."""
        return pd.DataFrame(
            [
                {
                    "key": r.key,
                    "name": r.name,
                    "level": r.level,
                    "txn_count": r.txn_count,
                    "sales": r.sales,
                    "units": r.units,
                    "pct_txns": r.pct_txns,
                    "pct_revenue": r.pct_revenue,
                    "avg_ticket": r.avg_ticket,
                    "pct_of_parent_txns": r.pct_of_parent_txns,
                }
                for r in self.hierarchy
            ],
            columns=[
                "key", "name", "level", "txn_count", "sales", "units",
                "pct_txns", "pct_revenue", "avg_ticket", "pct_of_parent_txns",
            ],
        )


class AggregationService:
    """Service for deriving board metrics from a MetricSet."""

    @staticmethod
    def category_incidence(
        metrics: MetricSet,
        categories: Iterable[CategoryMixEntry]
    ) -> tuple[CategoryIncidence, ...]:
        """
        Incidence of each category among mixed transactions.

        A dataset without mixed transactions reports 0% for every category.
        """
        return tuple(
            CategoryIncidence(
                name=c.name,
                mix_txns=c.mix_txns,
                mix_sales=c.mix_sales,
                avg_ticket=c.avg_ticket,
                incidence_pct=ComparisonService.calculate_share_pct(
                    c.mix_txns, metrics.mixed_txns, sentinel=0.0
                ),
            )
            for c in categories
        )

    @staticmethod
    def hierarchy_rows(root: Optional[HierarchyNode]) -> tuple[HierarchyRow, ...]:
        if root is None:
            return ()

        rows = []
        parents: dict[int, HierarchyNode] = {}
        for level, node in root.walk():
            parents[level] = node
            parent = parents.get(level - 1)
            rows.append(
                HierarchyRow(
                    key=node.key,
                    name=node.name,
                    level=level,
                    txn_count=node.txn_count,
                    sales=node.sales,
                    units=node.units,
                    pct_txns=ComparisonService.calculate_share_pct(node.txn_count, root.txn_count),
                    pct_revenue=ComparisonService.calculate_share_pct(node.sales, root.sales),
                    avg_ticket=ComparisonService.safe_ratio(node.sales, node.txn_count),
                    pct_of_parent_txns=(
                        ComparisonService.calculate_share_pct(node.txn_count, parent.txn_count)
                        if parent is not None else 100.0 if node.txn_count else math.nan
                    ),
                )
            )
        return tuple(rows)

    @staticmethod
    def derive(
        metrics: MetricSet,
        categories: Iterable[CategoryMixEntry],
        hierarchy: Optional[HierarchyNode] = None
    ) -> DerivedView:
        """
        Derive the full board view.

        Args:
            metrics: Grocery totals
            categories: Category mix entries in display order
            hierarchy: Optional transaction hierarchy root

        Returns:
            DerivedView
        """
        return DerivedView(
            metrics=metrics,
            categories=AggregationService.category_incidence(metrics, categories),
            hierarchy=AggregationService.hierarchy_rows(hierarchy),
        )
