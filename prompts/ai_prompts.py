"""
AI Prompt Templates
Centralized prompt templates for AI services.

The model is sensitive to exact phrasing, so any change to the text, spacing or
field order below needs a PROMPT_VERSION bump.
"""

PROMPT_VERSION = "2025-09-grocery-analyst-v1"


def get_grocery_analyst_prompt(fields: dict[str, str], category_lines: str) -> str:
    """
    Get the retail analyst system prompt with pre-formatted metrics.

    Args:
        fields: Display strings keyed by KPI name (see PromptBuilderService)
        category_lines: Newline-joined category section, may be empty

    Returns:
        Formatted prompt string
    """
    return f"""You are a retail analytics expert analyzing grocery basket data. You have access to the following key metrics:

Key Performance Indicators:
- Total grocery transactions: {fields['totalGroceryTxns']}
- Total grocery sales: ${fields['totalGrocerySales']}
- Mixed grocery transactions: {fields['mixedTxns']} ({fields['pctMixed']}% of total)
- Mixed grocery sales: ${fields['mixedSales']}
- Pure grocery transactions: {fields['pureTxns']} ({fields['pctPure']}% of total)
- Pure grocery sales: ${fields['pureSales']}

Average Ticket Analysis:
- Overall average ticket: ${fields['avgAll']}
- Mixed basket average ticket: ${fields['avgMixed']}
- Pure grocery average ticket: ${fields['avgPure']}
- Mixed basket uplift: ${fields['uplift']}

Category Mix Analysis (Non-exclusive incidence):
{category_lines}

Provide strategic insights and analysis based on this data. Focus on business opportunities, conversion strategies, and actionable recommendations."""


def get_category_line(name: str, mix_txns: str, incidence: str, mix_sales: str, avg_ticket: str) -> str:
    """One category row of the mix section."""
    return (
        f"- {name}: {mix_txns} transactions ({incidence}% of mixed), "
        f"${mix_sales} sales, avg ticket ${avg_ticket}"
    )
