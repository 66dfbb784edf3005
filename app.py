import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import plotly.io as pio
from dotenv import load_dotenv

# Import services
from services import (
    AccessService,
    AggregationService,
    AIService,
    DataFormattingService,
    InsightService,
    MetricsDataService,
    ScenarioService,
    get_config,
)

load_dotenv()

# Initialize configuration
config = get_config()
config.configure_logging()

# Apply chart configuration
px.defaults.color_discrete_sequence = config.CHART_COLORS
_board_layout = config.get_chart_layout()
pio.templates["board_dark"] = go.layout.Template(layout=_board_layout)
px.defaults.template = "board_dark"

# Initialize services
ai_service = AIService()
insight_service = InsightService()
data_formatting_service = DataFormattingService()

# Page configuration
st.set_page_config(
    page_title="BasketBridge - Grocery → Margin Mix",
    page_icon="🧺",
    layout="wide",
    initial_sidebar_state="collapsed"
)


def inject_css():
    st.markdown("""
    <style>
      .stApp { background: #000; color: #e5e5e5 !important; }
      h1, h2, h3, h4, p, span, label, li { color: #e5e5e5 !important; }
      .bb-card {
        background: rgba(23,23,23,0.6);
        border: 1px solid #262626;
        border-radius: 16px;
        padding: 18px 20px;
        margin-bottom: 12px;
      }
      .bb-label { color: #a3a3a3 !important; font-size: 0.85rem; }
      .bb-value { color: #fff !important; font-size: 2rem; font-weight: 600; letter-spacing: -0.5px; }
      .bb-sub { color: #737373 !important; font-size: 0.75rem; }
      .stButton>button { background: #fff !important; color: #000 !important; border-radius: 12px !important; }
    </style>
    """, unsafe_allow_html=True)


@st.cache_resource(show_spinner=False)
def load_board_data():
    """Dataset and derived view, built once per process and never mutated."""
    dataset = MetricsDataService.reference_dataset()
    view = AggregationService.derive(dataset.metrics, dataset.categories, dataset.hierarchy)
    return dataset, view


def stat_card(label: str, value: str, sub: str | None = None):
    sub_html = f'<div class="bb-sub">{sub}</div>' if sub else ""
    st.markdown(
        f'<div class="bb-card"><div class="bb-label">{label}</div>'
        f'<div class="bb-value">{value}</div>{sub_html}</div>',
        unsafe_allow_html=True,
    )


def render_gate():
    st.markdown("## 🔒 BasketBridge – Board Access")
    st.caption("Enter the passcode to view the dashboard.")
    code = st.text_input("Passcode", type="password", key="passcode_input")
    if st.button("Unlock", key="btn_unlock"):
        if AccessService.verify_passcode(code):
            st.session_state.unlocked = True
            st.rerun()
        else:
            st.error("Incorrect passcode.")


def render_kpi_grid(dataset):
    cards = insight_service.build_kpi_cards(dataset.metrics)
    for row_start in range(0, len(cards), 3):
        cols = st.columns(3)
        for col, card in zip(cols, cards[row_start:row_start + 3]):
            with col:
                stat_card(card.label, card.value, card.sub)


def render_ceo(dataset, view):
    metrics = dataset.metrics
    fmt = data_formatting_service

    conv = st.session_state.get("conversion_rate_slider", st.session_state.conversion_rate)
    scenario = ScenarioService.simulate(metrics, conv)

    c1, c2 = st.columns([1, 2])
    with c1:
        st.markdown("**Grocery Mix vs Pure (by transactions)**")
        pie_df = pd.DataFrame({
            "segment": ["Mixed Grocery", "Pure Grocery"],
            "txns": [metrics.mixed_txns, metrics.pure_txns],
        })
        fig = px.pie(pie_df, values="txns", names="segment", hole=0.55)
        st.plotly_chart(fig, use_container_width=True, key="plot_mix_pie")
        st.caption(
            f"{fmt.format_percent(metrics.pct_mixed)}% of grocery transactions are mixed. "
            f"Mixed baskets average ${fmt.format_fixed(metrics.avg_mixed)} "
            f"vs pure grocery ${fmt.format_fixed(metrics.avg_pure)}."
        )
    with c2:
        st.markdown("**Mixed-basket category incidence vs avg ticket**")
        cat_df = view.category_frame()
        fig = go.Figure()
        fig.add_bar(x=cat_df["category"], y=cat_df["incidence"], name="Incidence of mixed TXNs (%)",
                    marker_color=config.CHART_COLORS[2])
        fig.add_bar(x=cat_df["category"], y=cat_df["avg_ticket"].round(2), name="Avg. ticket in that category ($)",
                    marker_color=config.CHART_COLORS[1])
        fig.update_layout(barmode="group", xaxis_tickangle=-15)
        st.plotly_chart(fig, use_container_width=True, key="plot_incidence")

    c3, c4 = st.columns([1, 2])
    with c3:
        st.markdown("**Board takeaways**")
        for bullet in insight_service.build_ceo_bullets(view, scenario):
            st.markdown(f"- {bullet}")
    with c4:
        st.markdown("**Scenario: convert pure → mixed**")
        st.session_state.conversion_rate = st.slider(
            "% of pure grocery transactions converting",
            min_value=config.SCENARIO_SLIDER_MIN,
            max_value=config.SCENARIO_SLIDER_MAX,
            value=int(st.session_state.conversion_rate),
            step=1,
            key="conversion_rate_slider",
        )
        s1, s2 = st.columns(2)
        with s1:
            stat_card("Converted TXNs", fmt.format_grouped(scenario.txns_converted))
        with s2:
            stat_card("Incremental Sales", fmt.format_currency(scenario.incremental_sales),
                      f"Uplift ${fmt.format_fixed(scenario.delta_avg_ticket)} per converted txn")


def render_analyst(view):
    st.markdown("**Analyst notes**")
    for bullet in insight_service.build_analyst_bullets(view):
        st.markdown(f"- {bullet}")
    st.dataframe(
        data_formatting_service.format_category_dataframe(view.category_frame()),
        use_container_width=True,
        hide_index=True,
    )


def render_drilldown(view):
    if not view.hierarchy:
        st.info("No transaction hierarchy in this dataset.")
        return

    fmt = data_formatting_service
    st.markdown("**Transaction hierarchy**")
    st.caption("Drill down from total transactions through Grocery categories to Pure vs Mixed breakdowns")
    frame = view.hierarchy_frame()
    chart_df = frame.assign(sales_m=frame["sales"] / 1_000_000)
    fig = go.Figure()
    fig.add_bar(y=chart_df["name"], x=chart_df["txn_count"], orientation="h", name="Transaction Count",
                marker_color=config.CHART_COLORS[0])
    fig.add_bar(y=chart_df["name"], x=chart_df["sales_m"], orientation="h", name="Sales (Millions $)",
                marker_color=config.CHART_COLORS[1])
    fig.update_layout(barmode="group", height=420, yaxis=dict(autorange="reversed"))
    st.plotly_chart(fig, use_container_width=True, key="plot_hierarchy")

    st.dataframe(fmt.format_hierarchy_dataframe(frame), use_container_width=True, hide_index=True)

    total = view.hierarchy_row("total")
    grocery = view.hierarchy_row("grocery")
    food = view.hierarchy_row("grocery_food")
    cols = st.columns(3)
    if total:
        with cols[0]:
            stat_card("Total Transactions", fmt.format_grouped(total.txn_count),
                      f"${fmt.format_grouped(total.sales)} total sales")
    if grocery:
        with cols[1]:
            stat_card("Grocery Transactions", fmt.format_grouped(grocery.txn_count),
                      f"{fmt.format_fixed(grocery.pct_txns, 1)}% of total")
    if food:
        with cols[2]:
            stat_card("Grocery Food Transactions", fmt.format_grouped(food.txn_count),
                      f"{fmt.format_fixed(food.pct_of_parent_txns, 1)}% of Grocery")


def render_qa(dataset):
    st.markdown("**Ask (Azure OpenAI)**")
    question = st.text_input(
        "Question",
        placeholder="e.g., What if we push +3% conversion to Home?",
        key="qa_input",
    )
    if st.button("Ask", key="btn_ask"):
        with st.spinner("Thinking…"):
            result = ai_service.ask(question, dataset.to_payload())
        if result.ok:
            st.session_state.qa_answer = result.answer
        else:
            _, body = result.to_response()
            st.session_state.qa_answer = None
            st.error(body["error"])

    if st.session_state.qa_answer:
        st.markdown(st.session_state.qa_answer)
    else:
        st.caption("The model receives the KPIs and mix categories as structured JSON. No database required.")


# Initialize session state
if 'unlocked' not in st.session_state:
    st.session_state.unlocked = False
if 'conversion_rate' not in st.session_state:
    st.session_state.conversion_rate = config.SCENARIO_DEFAULT_RATE
if 'qa_answer' not in st.session_state:
    st.session_state.qa_answer = None

inject_css()

if not st.session_state.unlocked:
    render_gate()
    st.stop()

board_dataset, board_view = load_board_data()

st.markdown("# BasketBridge <span style='color:#a3a3a3'>• Grocery → Margin Mix</span>", unsafe_allow_html=True)
mode = st.radio("Mode", ["CEO", "Analyst", "Drill-Down", "Q&A"], horizontal=True, key="mode")

render_kpi_grid(board_dataset)

if mode == "CEO":
    render_ceo(board_dataset, board_view)
elif mode == "Analyst":
    render_analyst(board_view)
elif mode == "Drill-Down":
    render_drilldown(board_view)
else:
    render_qa(board_dataset)

st.caption("BasketBridge • Designed for Board & ELT. Configure the passcode and Azure settings before sharing.")
