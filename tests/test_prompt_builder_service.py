import pytest

from prompts.ai_prompts import PROMPT_VERSION
from services import PROMPT_DEFAULTS, PromptBuilderService, build_system_prompt, merge_kpi_defaults


SECTIONS = [
    "Key Performance Indicators:",
    "Average Ticket Analysis:",
    "Category Mix Analysis (Non-exclusive incidence):",
    "Provide strategic insights and analysis based on this data.",
]


def test_identical_input_gives_identical_prompt(dataset):
    payload = dataset.to_payload()
    first = build_system_prompt(payload["kpi"], payload["mixCats"])
    second = build_system_prompt(payload["kpi"], payload["mixCats"])
    assert first == second


def test_no_payload_uses_reference_fallbacks():
    prompt = build_system_prompt()

    for section in SECTIONS:
        assert section in prompt
    assert "- Total grocery transactions: 24,745,410\n" in prompt
    assert "- Total grocery sales: $508,220,881\n" in prompt
    assert "- Mixed grocery transactions: 13,137,779 (53.1% of total)\n" in prompt
    assert "- Pure grocery transactions: 11,607,631 (46.9% of total)\n" in prompt
    assert "- Overall average ticket: $20.54\n" in prompt
    assert "- Mixed basket average ticket: $20.91\n" in prompt
    assert "- Pure grocery average ticket: $20.11\n" in prompt
    assert "- Mixed basket uplift: $0.80\n" in prompt


def test_reference_metric_set_matches_fallback_prompt(metrics):
    assert build_system_prompt(metrics) == build_system_prompt(None)


def test_empty_categories_give_empty_section():
    prompt = build_system_prompt({}, [])
    assert "Category Mix Analysis (Non-exclusive incidence):\n\n\nProvide strategic" in prompt
    assert build_system_prompt({}, None) == prompt


def test_category_line_format(dataset):
    prompt = build_system_prompt(None, list(dataset.categories))
    assert (
        "- Home & Garden: 6,322,479 transactions (48.1% of mixed), $189,188,916 sales, avg ticket $29.92"
        in prompt
    )
    assert (
        "- Grocery & Celebrations (outside): 1,120,853 transactions (8.5% of mixed), "
        "$12,601,983 sales, avg ticket $11.24"
        in prompt
    )


def test_partial_payload_only_overrides_given_fields():
    merged = merge_kpi_defaults({"mixedTxns": 100})
    assert merged["mixedTxns"] == 100
    assert merged["pureTxns"] == PROMPT_DEFAULTS["pureTxns"]

    prompt = build_system_prompt({"mixedTxns": 100}, [{"name": "Toys", "mixTxns": 25, "mixSales": 50, "avgTicket": 2}])
    assert "- Mixed grocery transactions: 100 (53.1% of total)" in prompt
    assert "- Toys: 25 transactions (25.0% of mixed), $50 sales, avg ticket $2.00" in prompt


@pytest.mark.parametrize("bad", [None, "abc", True, float("nan"), [], {}])
def test_null_and_malformed_fields_fall_back(bad):
    merged = merge_kpi_defaults({"avgAll": bad, "totalGroceryTxns": bad})
    assert merged["avgAll"] == PROMPT_DEFAULTS["avgAll"]
    assert merged["totalGroceryTxns"] == PROMPT_DEFAULTS["totalGroceryTxns"]


def test_zero_is_a_real_value():
    prompt = build_system_prompt({"pureTxns": 0, "pctPure": 0})
    assert "- Pure grocery transactions: 0 (0.0% of total)" in prompt


def test_non_mapping_metrics_fall_back():
    assert build_system_prompt("not a dict") == build_system_prompt()


def test_uplift_follows_merged_averages():
    prompt = build_system_prompt({"avgMixed": 18.0, "avgPure": 20.5})
    assert "- Mixed basket uplift: $-2.50" in prompt


def test_malformed_categories_are_skipped():
    lines = PromptBuilderService.format_category_lines(
        ["oops", {"mixTxns": 5}, {"name": "", "mixTxns": 5}, {"name": "Toys", "mixTxns": "x", "mixSales": 1234.5}],
        mixed_txns=100,
    )
    assert lines == "- Toys: 0 transactions (0.0% of mixed), $1,234.5 sales, avg ticket $0.00"


def test_zero_mixed_transactions_give_zero_incidence():
    prompt = build_system_prompt({"mixedTxns": 0}, [{"name": "Toys", "mixTxns": 5, "mixSales": 10, "avgTicket": 2}])
    assert "- Toys: 5 transactions (0.0% of mixed)" in prompt


def test_prompt_carries_no_configuration(azure_env):
    prompt = build_system_prompt()
    for value in azure_env.values():
        assert value not in prompt


def test_prompt_version_is_set():
    assert PROMPT_VERSION


REFERENCE_PROMPT = """You are a retail analytics expert analyzing grocery basket data. You have access to the following key metrics:

Key Performance Indicators:
- Total grocery transactions: 24,745,410
- Total grocery sales: $508,220,881
- Mixed grocery transactions: 13,137,779 (53.1% of total)
- Mixed grocery sales: $274,735,865
- Pure grocery transactions: 11,607,631 (46.9% of total)
- Pure grocery sales: $233,485,016

Average Ticket Analysis:
- Overall average ticket: $20.54
- Mixed basket average ticket: $20.91
- Pure grocery average ticket: $20.11
- Mixed basket uplift: $0.80

Category Mix Analysis (Non-exclusive incidence):
- Home & Garden: 6,322,479 transactions (48.1% of mixed), $189,188,916 sales, avg ticket $29.92
- Apparel, Footwear & Acc: 5,651,598 transactions (43.0% of mixed), $181,052,443 sales, avg ticket $32.04
- Leisure, Tech & Play: 4,580,373 transactions (34.9% of mixed), $134,103,224 sales, avg ticket $29.28
- Work, Study & Create: 881,694 transactions (6.7% of mixed), $12,393,643 sales, avg ticket $14.06
- Grocery & Celebrations (outside): 1,120,853 transactions (8.5% of mixed), $12,601,983 sales, avg ticket $11.24

Provide strategic insights and analysis based on this data. Focus on business opportunities, conversion strategies, and actionable recommendations."""


def test_reference_prompt_text(dataset):
    assert build_system_prompt(dataset.metrics, dataset.categories) == REFERENCE_PROMPT


def test_reference_payload_gives_reference_prompt(dataset):
    payload = dataset.to_payload()
    assert build_system_prompt(payload["kpi"], payload["mixCats"]) == REFERENCE_PROMPT


def test_very_large_values_still_render():
    prompt = build_system_prompt({"totalGrocerySales": 1e27, "mixedSales": 1.7e308})

    assert "- Total grocery sales: $1,000,000,000,000,000,000,000,000,000\n" in prompt
    assert "- Mixed grocery sales: $170," in prompt


def test_values_too_large_for_a_float_fall_back():
    prompt = build_system_prompt(
        {"pureTxns": 10**400},
        [{"name": "Toys", "mixTxns": 10**400, "mixSales": 10, "avgTicket": 2}],
    )

    assert "- Pure grocery transactions: 11,607,631 (46.9% of total)\n" in prompt
    assert "- Toys: 0 transactions (0.0% of mixed), $10 sales, avg ticket $2.00" in prompt
