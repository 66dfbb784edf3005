"""
Prompt Builder Service
Renders grocery metrics into the system prompt sent with every question.

Caller payloads may be partial or malformed. Each KPI is merged against
PROMPT_DEFAULTS, the reference dataset's values, so the prompt is always
complete and numerically sane.
"""

import logging
import math
from typing import Any, Iterable, Mapping, Optional

from prompts.ai_prompts import get_category_line, get_grocery_analyst_prompt

from .comparison_service import ComparisonService
from .data_formatting_service import DataFormattingService
from .metrics_data_service import CategoryMixEntry, MetricSet


logger = logging.getLogger(__name__)

# Reference MetricSet values substituted for missing or null payload fields
PROMPT_DEFAULTS: dict[str, float] = {
    "totalGroceryTxns": 24745410,
    "totalGrocerySales": 508220881.0,
    "mixedTxns": 13137779,
    "mixedSales": 274735865.0,
    "pureTxns": 11607631,
    "pureSales": 233485016.0,
    "pctMixed": 0.5309178146573446,
    "pctPure": 0.46908218534265544,
    "avgAll": 20.53798587293563,
    "avgMixed": 20.91189576259427,
    "avgPure": 20.11478621262168,
}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def merge_kpi_defaults(kpi: Optional[Mapping[str, Any] | MetricSet]) -> dict[str, float]:
    """
    Merge a KPI payload over PROMPT_DEFAULTS.

    Missing, null, boolean and non-numeric values take the default; zero is kept.

    Args:
        kpi: camelCase KPI mapping, a MetricSet, or None

    Returns:
        A complete KPI dict with the same keys as PROMPT_DEFAULTS
    """
    if isinstance(kpi, MetricSet):
        kpi = kpi.to_payload()
    if not isinstance(kpi, Mapping):
        kpi = {}

    merged = {}
    for key, default in PROMPT_DEFAULTS.items():
        value = kpi.get(key)
        merged[key] = value if _is_number(value) else default
    return merged


def _coerce_category(entry: Any) -> Optional[dict[str, Any]]:
    if isinstance(entry, CategoryMixEntry):
        return entry.to_payload()
    if not isinstance(entry, Mapping):
        return None
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    return {
        "name": name,
        "mixTxns": entry.get("mixTxns") if _is_number(entry.get("mixTxns")) else 0,
        "mixSales": entry.get("mixSales") if _is_number(entry.get("mixSales")) else 0,
        "avgTicket": entry.get("avgTicket") if _is_number(entry.get("avgTicket")) else 0,
    }


class PromptBuilderService:
    """Service for building the grounded system prompt."""

    @staticmethod
    def format_kpi_fields(merged: Mapping[str, float]) -> dict[str, str]:
        """Display strings for every KPI line of the template."""
        fmt = DataFormattingService
        return {
            "totalGroceryTxns": fmt.format_grouped(merged["totalGroceryTxns"]),
            "totalGrocerySales": fmt.format_grouped(merged["totalGrocerySales"]),
            "mixedTxns": fmt.format_grouped(merged["mixedTxns"]),
            "pctMixed": fmt.format_percent(merged["pctMixed"]),
            "mixedSales": fmt.format_grouped(merged["mixedSales"]),
            "pureTxns": fmt.format_grouped(merged["pureTxns"]),
            "pctPure": fmt.format_percent(merged["pctPure"]),
            "pureSales": fmt.format_grouped(merged["pureSales"]),
            "avgAll": fmt.format_fixed(merged["avgAll"]),
            "avgMixed": fmt.format_fixed(merged["avgMixed"]),
            "avgPure": fmt.format_fixed(merged["avgPure"]),
            "uplift": fmt.format_fixed(
                ComparisonService.calculate_absolute_change(merged["avgMixed"], merged["avgPure"])
            ),
        }

    @staticmethod
    def format_category_lines(
        categories: Optional[Iterable[Any]],
        mixed_txns: float
    ) -> str:
        """
        Category section, one line per usable entry; empty when there are none.
        """
        if not categories or isinstance(categories, (str, bytes, Mapping)):
            return ""

        fmt = DataFormattingService
        lines = []
        for raw in categories:
            cat = _coerce_category(raw)
            if cat is None:
                logger.warning("Skipping malformed category entry in prompt payload")
                continue
            incidence = ComparisonService.calculate_share_pct(cat["mixTxns"], mixed_txns, sentinel=0.0)
            lines.append(
                get_category_line(
                    name=cat["name"],
                    mix_txns=fmt.format_grouped(cat["mixTxns"]),
                    incidence=fmt.format_fixed(incidence, 1),
                    mix_sales=fmt.format_grouped(cat["mixSales"]),
                    avg_ticket=fmt.format_fixed(cat["avgTicket"]),
                )
            )
        return "\n".join(lines)

    @staticmethod
    def build_system_prompt(
        metrics: Optional[Mapping[str, Any] | MetricSet] = None,
        categories: Optional[Iterable[Any]] = None
    ) -> str:
        """
        Build the system prompt for a question.

        Args:
            metrics: Partial KPI payload or MetricSet; None uses the defaults
            categories: CategoryMixEntry objects or camelCase dicts

        Returns:
            Deterministic prompt text
        """
        merged = merge_kpi_defaults(metrics)
        fields = PromptBuilderService.format_kpi_fields(merged)
        category_lines = PromptBuilderService.format_category_lines(categories, merged["mixedTxns"])
        return get_grocery_analyst_prompt(fields, category_lines)


def build_system_prompt(
    metrics: Optional[Mapping[str, Any] | MetricSet] = None,
    categories: Optional[Iterable[Any]] = None
) -> str:
    """Module-level shortcut for PromptBuilderService.build_system_prompt."""
    return PromptBuilderService.build_system_prompt(metrics, categories)
