"""
Data Formatting Service
Handles numeric formatting for prompts, KPI cards and DataFrame display.

Numeric Precision Policy:
- Computations: Use float64 for raw math
- Formatting: Format at render time (display precision)
- Rounding: Half-up for fixed decimals (standard monetary rounding)
- Grouping: en-US thousands separators, as the board deck uses
"""

import math

import pandas as pd

from .comparison_service import ComparisonService
from .config_service import ConfigService


NOT_AVAILABLE = "N/A"


class DataFormattingService:
    """
    Service for formatting data for display.

    Numeric precision: Keep raw math in float64; format at render.
    """

    @staticmethod
    def format_grouped(value: float | int, max_fraction_digits: int = 3) -> str:
        """
        Group thousands and drop trailing zeros, like Number.toLocaleString('en-US').

        Args:
            value: Numeric value to format
            max_fraction_digits: Maximum decimals kept for non-integers

        Returns:
            Formatted string (e.g., "24,745,410", "1,234.5")
        """
        v = float(value)
        if math.isnan(v) or math.isinf(v):
            return NOT_AVAILABLE
        rounded = ComparisonService.round_half_up(v, max_fraction_digits)
        if float(rounded).is_integer():
            return f"{ComparisonService.round_half_up(v, 0):,}"
        text = f"{rounded:,.{max_fraction_digits}f}".rstrip("0").rstrip(".")
        return text

    @staticmethod
    def format_fixed(value: float, digits: int = ConfigService.DEFAULT_DECIMAL_PLACES) -> str:
        """Fixed decimals without grouping (e.g., "20.91")."""
        v = float(value)
        if math.isnan(v) or math.isinf(v):
            return NOT_AVAILABLE
        return f"{ComparisonService.round_half_up(v, digits):.{digits}f}"

    @staticmethod
    def format_percent(fraction: float, digits: int = ConfigService.DEFAULT_PERCENT_DECIMAL_PLACES) -> str:
        """Fraction in [0, 1] rendered as a percentage number without the sign."""
        return DataFormattingService.format_fixed(float(fraction) * 100, digits)

    @staticmethod
    def format_currency(amount: float, digits: int = 0) -> str:
        """
        Dollar amount with grouping; negative amounts keep the sign before the symbol.
        """
        v = float(amount)
        if math.isnan(v) or math.isinf(v):
            return NOT_AVAILABLE
        sign = "-" if v < 0 else ""
        body = f"{ComparisonService.round_half_up(abs(v), digits):,.{digits}f}"
        return f"{sign}${body}"

    @staticmethod
    def format_millions(amount: float) -> str:
        """Sales in millions for the drill-down (e.g., "$508.22M")."""
        v = float(amount)
        if math.isnan(v):
            return NOT_AVAILABLE
        return f"${DataFormattingService.format_fixed(v / 1_000_000, 2)}M"

    def format_hierarchy_dataframe(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Format a hierarchy frame from DerivedView.hierarchy_frame() for display.

        Args:
            df: Hierarchy DataFrame

        Returns:
            Formatted DataFrame with indented names
        """
        out = pd.DataFrame()
        out["Level"] = [("· " * int(lvl)) + name for lvl, name in zip(df["level"], df["name"])]
        out["Transactions"] = df["txn_count"].map(self.format_grouped)
        out["% of Txns"] = df["pct_txns"].map(lambda x: f"{self.format_fixed(x, 1)}%")
        out["Sales"] = df["sales"].map(self.format_millions)
        out["% of Revenue"] = df["pct_revenue"].map(lambda x: f"{self.format_fixed(x, 1)}%")
        out["Avg Ticket"] = df["avg_ticket"].map(lambda x: f"${self.format_fixed(x)}")
        return out

    def format_category_dataframe(self, df: pd.DataFrame) -> pd.DataFrame:
        """Format a category frame from DerivedView.category_frame() for display."""
        out = pd.DataFrame()
        out["Category"] = df["category"]
        out["Mixed TXNs"] = df["mix_txns"].map(self.format_grouped)
        out["Incidence"] = df["incidence_pct"].map(lambda x: f"{self.format_fixed(x, 1)}%")
        out["Sales"] = df["mix_sales"].map(self.format_currency)
        out["Avg Ticket"] = df["avg_ticket"].map(lambda x: f"${self.format_fixed(x)}")
        return out
