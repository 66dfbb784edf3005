"""
Metrics Data Service
Immutable grocery metrics model and the JSON loader that builds it at start-up.

The resource layout mirrors the payload the query endpoint accepts:

    {"kpi": {...}, "mixCats": [...], "hierarchy": {...}}
"""

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

from .comparison_service import ComparisonService
from .config_service import ConfigService
from .error_handling_service import DatasetValidationError


logger = logging.getLogger(__name__)

SALES_REL_TOLERANCE = 1e-9
SALES_ABS_TOLERANCE = 1e-6


def _require_non_negative(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DatasetValidationError(f"{name} must be numeric, got {type(value).__name__}")
    if (isinstance(value, float) and math.isnan(value)) or value < 0:
        raise DatasetValidationError(f"{name} must be >= 0, got {value}")


def _require_count(name: str, value: float) -> None:
    _require_non_negative(name, value)
    if isinstance(value, float) and not value.is_integer():
        raise DatasetValidationError(f"{name} must be a whole number, got {value}")


@dataclass(frozen=True)
class MetricSet:
    """Grocery transaction and sales totals split into pure and mixed baskets."""
    total_grocery_txns: int
    total_grocery_sales: float
    pure_txns: int
    pure_sales: float
    mixed_txns: int
    mixed_sales: float

    def __post_init__(self):
        for name in ("total_grocery_txns", "pure_txns", "mixed_txns"):
            _require_count(name, getattr(self, name))
        for name in ("total_grocery_sales", "pure_sales", "mixed_sales"):
            _require_non_negative(name, getattr(self, name))

        if self.pure_txns + self.mixed_txns != self.total_grocery_txns:
            raise DatasetValidationError(
                f"pure_txns + mixed_txns ({self.pure_txns + self.mixed_txns}) "
                f"!= total_grocery_txns ({self.total_grocery_txns})"
            )
        if not math.isclose(
            self.pure_sales + self.mixed_sales,
            self.total_grocery_sales,
            rel_tol=SALES_REL_TOLERANCE,
            abs_tol=SALES_ABS_TOLERANCE,
        ):
            raise DatasetValidationError(
                f"pure_sales + mixed_sales ({self.pure_sales + self.mixed_sales}) "
                f"!= total_grocery_sales ({self.total_grocery_sales})"
            )

    @property
    def pct_mixed(self) -> float:
        return ComparisonService.safe_ratio(self.mixed_txns, self.total_grocery_txns, sentinel=0.0)

    @property
    def pct_pure(self) -> float:
        return ComparisonService.safe_ratio(self.pure_txns, self.total_grocery_txns, sentinel=0.0)

    @property
    def avg_all(self) -> float:
        return ComparisonService.safe_ratio(self.total_grocery_sales, self.total_grocery_txns)

    @property
    def avg_mixed(self) -> float:
        return ComparisonService.safe_ratio(self.mixed_sales, self.mixed_txns)

    @property
    def avg_pure(self) -> float:
        return ComparisonService.safe_ratio(self.pure_sales, self.pure_txns)

    @property
    def uplift(self) -> float:
        """Mixed minus pure average ticket; negative when mixed baskets are smaller."""
        return ComparisonService.calculate_absolute_change(self.avg_mixed, self.avg_pure)

    def to_payload(self) -> dict[str, float]:
        """KPI object in the camelCase wire shape, derived fields included."""
        return {
            "totalGroceryTxns": self.total_grocery_txns,
            "totalGrocerySales": self.total_grocery_sales,
            "pureTxns": self.pure_txns,
            "pureSales": self.pure_sales,
            "mixedTxns": self.mixed_txns,
            "mixedSales": self.mixed_sales,
            "pctMixed": self.pct_mixed,
            "pctPure": self.pct_pure,
            "avgAll": self.avg_all,
            "avgPure": self.avg_pure,
            "avgMixed": self.avg_mixed,
        }


@dataclass(frozen=True)
class CategoryMixEntry:
    """
    Non-grocery category attached to mixed baskets.

    Incidence is non-exclusive: one transaction may count towards several
    categories, so mix_txns summed across entries can exceed mixed_txns.
    """
    name: str
    mix_txns: int
    mix_sales: float
    avg_ticket: float

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise DatasetValidationError("category name must be a non-empty string")
        _require_count(f"{self.name}.mix_txns", self.mix_txns)
        for name in ("mix_sales", "avg_ticket"):
            _require_non_negative(f"{self.name}.{name}", getattr(self, name))

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "mixTxns": self.mix_txns,
            "mixSales": self.mix_sales,
            "avgTicket": self.avg_ticket,
        }


@dataclass(frozen=True)
class HierarchyNode:
    """One level of the transaction hierarchy (total → grocery → grocery food → pure/mixed)."""
    key: str
    name: str
    txn_count: int
    sales: float
    units: int
    children: tuple["HierarchyNode", ...] = field(default_factory=tuple)
    other_sales: Optional[float] = None  # non-grocery spend carried by mixed baskets
    other_units: Optional[int] = None

    def __post_init__(self):
        _require_count(f"{self.key}.txn_count", self.txn_count)
        _require_count(f"{self.key}.units", self.units)
        _require_non_negative(f"{self.key}.sales", self.sales)
        if self.other_units is not None:
            _require_count(f"{self.key}.other_units", self.other_units)
        for child in self.children:
            if child.txn_count > self.txn_count or child.sales > self.sales:
                raise DatasetValidationError(
                    f"hierarchy node {child.key!r} exceeds its parent {self.key!r}"
                )

    def walk(self, level: int = 0) -> Iterator[tuple[int, "HierarchyNode"]]:
        """Pre-order traversal yielding (depth, node)."""
        yield level, self
        for child in self.children:
            yield from child.walk(level + 1)

    def find(self, key: str) -> Optional["HierarchyNode"]:
        for _, node in self.walk():
            if node.key == key:
                return node
        return None


@dataclass(frozen=True)
class GroceryDataset:
    """The read-only snapshot every service computes from."""
    metrics: MetricSet
    categories: tuple[CategoryMixEntry, ...]
    hierarchy: Optional[HierarchyNode] = None

    def to_payload(self) -> dict[str, Any]:
        """Data object in the shape the query endpoint accepts."""
        return {
            "kpi": self.metrics.to_payload(),
            "mixCats": [c.to_payload() for c in self.categories],
        }


class MetricsDataService:
    """Service for building the grocery dataset from its JSON resource."""

    @staticmethod
    def load_dataset(path: Path | str) -> GroceryDataset:
        """
        Load and validate the dataset resource.

        Args:
            path: JSON file path

        Returns:
            GroceryDataset

        Raises:
            DatasetValidationError: If the file is malformed or breaks an invariant
        """
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except json.JSONDecodeError as e:
            raise DatasetValidationError(f"{path.name} is not valid JSON: {e}") from e

        dataset = MetricsDataService.from_dict(raw)
        logger.info(
            "Loaded grocery dataset from %s (%d categories, hierarchy=%s)",
            path, len(dataset.categories), dataset.hierarchy is not None,
        )
        return dataset

    @staticmethod
    def reference_dataset() -> GroceryDataset:
        """Load the dataset resource named by configuration."""
        return MetricsDataService.load_dataset(ConfigService.get_data_path())

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> GroceryDataset:
        if not isinstance(raw, dict):
            raise DatasetValidationError("dataset root must be an object")
        try:
            kpi = raw["kpi"]
            metrics = MetricSet(
                total_grocery_txns=kpi["totalGroceryTxns"],
                total_grocery_sales=kpi["totalGrocerySales"],
                pure_txns=kpi["pureTxns"],
                pure_sales=kpi["pureSales"],
                mixed_txns=kpi["mixedTxns"],
                mixed_sales=kpi["mixedSales"],
            )
            categories = tuple(
                CategoryMixEntry(
                    name=c["name"],
                    mix_txns=c["mixTxns"],
                    mix_sales=c["mixSales"],
                    avg_ticket=c["avgTicket"],
                )
                for c in raw.get("mixCats") or []
            )
        except (KeyError, TypeError) as e:
            raise DatasetValidationError(f"dataset is missing field {e}") from e

        hierarchy = None
        if raw.get("hierarchy") is not None:
            hierarchy = MetricsDataService._build_node(raw["hierarchy"])
        return GroceryDataset(metrics=metrics, categories=categories, hierarchy=hierarchy)

    @staticmethod
    def _build_node(raw: dict[str, Any]) -> HierarchyNode:
        try:
            other = raw.get("otherCategories") or {}
            return HierarchyNode(
                key=raw["key"],
                name=raw.get("name", raw["key"]),
                txn_count=raw["txnCount"],
                sales=raw["sales"],
                units=raw.get("units", 0),
                children=tuple(MetricsDataService._build_node(c) for c in raw.get("children") or []),
                other_sales=other.get("sales"),
                other_units=other.get("units"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise DatasetValidationError(f"hierarchy node is missing field {e}") from e
