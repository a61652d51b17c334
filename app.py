"""Wealth Runway Monte Carlo - Streamlit App."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import date

import plotly.graph_objects as go
import streamlit as st

from runway.bands import percentile_bands_frame
from runway.bridge import ExecutionBridge
from runway.exceptions import RunwayError
from runway.presets import RISK_PROFILES, create_simulation_config
from runway.scenarios import calculate_target_probability, run_multi_scenario_analysis
from runway.validation import validate_simulation_config
from utils.helpers import format_currency, format_months

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Seconds between progress bar refreshes while the worker runs
PROGRESS_REFRESH = 0.1

# Trials per return scenario; scenarios run in this process
SCENARIO_TRIALS = 1_000

st.set_page_config(page_title="Wealth Runway", layout="wide")

st.title("Wealth Runway with Monte Carlo Simulation")


@st.cache_resource
def get_bridge() -> ExecutionBridge:
    """One background worker shared across reruns."""
    return ExecutionBridge()


with st.sidebar:
    st.header("Balance sheet")
    current_cash = st.number_input("Cash", min_value=0.0, value=30_000.0, step=1_000.0)
    current_investments = st.number_input(
        "Investments", min_value=0.0, value=120_000.0, step=5_000.0
    )
    current_other = st.number_input(
        "Other assets (non-growing)", min_value=0.0, value=0.0, step=1_000.0
    )

    st.header("Cash flow")
    monthly_income = st.number_input("Monthly income", min_value=0.0, value=4_000.0, step=100.0)
    monthly_expenses = st.number_input(
        "Monthly expenses", min_value=0.0, value=5_000.0, step=100.0
    )

    st.header("Assumptions")
    risk_profile = st.selectbox("Risk profile", list(RISK_PROFILES), index=1)
    inflation_rate = st.slider(
        "Inflation (annual)", min_value=0.0, max_value=0.10, value=0.03, step=0.005
    )

    st.header("Simulation")
    num_simulations = st.select_slider(
        "Trials", options=[1_000, 5_000, 10_000, 25_000], value=10_000
    )
    horizon_years = st.slider("Years to project", min_value=1, max_value=40, value=10)

config = create_simulation_config(
    current_net_worth=current_cash + current_investments,
    current_cash=current_cash,
    monthly_income=monthly_income,
    monthly_expenses=monthly_expenses,
    risk_profile=risk_profile,
    current_other=current_other,
    inflation_rate=inflation_rate,
    num_simulations=int(num_simulations),
    time_horizon_months=horizon_years * 12,
)

validation = validate_simulation_config(config)
if not validation.is_valid():
    st.error("Please fix the following input errors:")
    for message in validation.error_messages():
        st.write(f"- {message}")
    st.stop()

bridge = get_bridge()
if not bridge.is_background_execution_supported():
    st.error("Background execution is unavailable on this host; simulations are disabled.")
    st.stop()
if not bridge.is_running:
    bridge.start()

st.header("Market scenarios")
compare_scenarios = st.checkbox("Compare return scenarios", value=False)
if compare_scenarios:
    target = st.number_input(
        "Target net worth", min_value=0.0, value=config.current_net_worth, step=10_000.0
    )
    scenario_config = replace(config, num_simulations=SCENARIO_TRIALS)
    with st.spinner("Running scenarios..."):
        analysis = run_multi_scenario_analysis(scenario_config, start_date=date.today())

    scenario_chart = go.Figure()
    for scenario_result in analysis.scenarios:
        scenario_chart.add_trace(
            go.Scatter(
                x=scenario_result.frame.index,
                y=scenario_result.frame["p50"],
                name=scenario_result.scenario.name,
            )
        )
    scenario_chart.update_layout(yaxis_title="Median net worth ($)", hovermode="x unified")
    st.plotly_chart(scenario_chart, use_container_width=True)

    comparison = analysis.comparison
    cols = st.columns(3)
    cols[0].metric(
        f"Best ({comparison.best_scenario})", format_currency(comparison.best_value)
    )
    cols[1].metric(
        f"Worst ({comparison.worst_scenario})", format_currency(comparison.worst_value)
    )
    cols[2].metric("Spread", format_currency(comparison.spread))

    for scenario_result in analysis.scenarios:
        probability = calculate_target_probability(scenario_result.bands, target)
        st.write(
            f"{scenario_result.scenario.name} ({scenario_result.scenario.description}): "
            f"{probability:.0%} chance of reaching {format_currency(target)}"
        )

if not st.button("Run simulation", type="primary"):
    st.info("Adjust the inputs and run the simulation.")
    st.stop()

latest_progress = [0.0]
progress_bar = st.progress(0.0, text="Simulating...")
future = bridge.run_simulation(config, on_progress=lambda p: latest_progress.__setitem__(0, p))

while not future.done():
    progress_bar.progress(min(latest_progress[0], 1.0), text="Simulating...")
    time.sleep(PROGRESS_REFRESH)

try:
    result = future.result()
except RunwayError as e:
    progress_bar.empty()
    logger.error(f"Simulation failed: {e}")
    st.error(f"Simulation failed: {e}")
    st.stop()

progress_bar.empty()

st.header("Runway")
cols = st.columns(4)
cols[0].metric("Pessimistic (p10)", format_months(result.p10_months))
cols[1].metric("Median (p50)", format_months(result.p50_months))
cols[2].metric("Optimistic (p90)", format_months(result.p90_months))
cols[3].metric("Never depleted", f"{result.success_rate:.0%}")

cols = st.columns(5)
cols[0].metric("Depleted by 12 mo", f"{result.probability_depleted_by_12mo:.0%}")
cols[1].metric("Depleted by 24 mo", f"{result.probability_depleted_by_24mo:.0%}")
cols[2].metric("Depleted by 36 mo", f"{result.probability_depleted_by_36mo:.0%}")
cols[3].metric("VaR 95%", format_months(result.value_at_risk_95))
cols[4].metric("CVaR 95%", format_months(result.conditional_var_95))

st.header("Net worth over time")
bands = percentile_bands_frame(result.trials, start_date=date.today())

fan_chart = go.Figure()
fan_chart.add_traces(
    [
        go.Scatter(
            x=bands.index,
            y=bands["p95"],
            line=dict(color="rgba(0,0,0,0)"),
            showlegend=False,
            hoverinfo="skip",
        ),
        go.Scatter(
            x=bands.index,
            y=bands["p75"],
            fill="tonexty",
            fillcolor="rgba(0, 123, 255, 0.15)",
            line=dict(color="rgba(0,0,0,0)"),
            name="75-95%",
        ),
        go.Scatter(
            x=bands.index,
            y=bands["p25"],
            fill="tonexty",
            fillcolor="rgba(0, 123, 255, 0.25)",
            line=dict(color="rgba(0,0,0,0)"),
            name="25-75%",
        ),
        go.Scatter(
            x=bands.index,
            y=bands["p5"],
            fill="tonexty",
            fillcolor="rgba(0, 123, 255, 0.35)",
            line=dict(color="rgba(0,0,0,0)"),
            name="5-25%",
        ),
    ]
)
fan_chart.add_trace(
    go.Scatter(
        x=bands.index,
        y=bands["p50"],
        line=dict(color="#0d6efd", width=3),
        name="Median",
    )
)
for path in result.sample_paths.samples:
    fan_chart.add_trace(
        go.Scatter(
            x=bands.index,
            y=path,
            line=dict(color="rgba(108, 117, 125, 0.3)", width=1),
            showlegend=False,
            hoverinfo="skip",
        )
    )
fan_chart.update_layout(yaxis_title="Net worth ($)", hovermode="x unified")
st.plotly_chart(fan_chart, use_container_width=True)

st.header("Distribution of runway")
histogram = go.Figure(
    go.Bar(
        x=[bucket.months for bucket in result.distribution],
        y=[bucket.percentage for bucket in result.distribution],
        marker_color="#0d6efd",
    )
)
histogram.update_layout(xaxis_title="Months of runway", yaxis_title="% of trials")
st.plotly_chart(histogram, use_container_width=True)

st.header("Scenarios")
scenario_cols = st.columns(3)
for col, (label, summary) in zip(
    scenario_cols,
    [
        ("Worst 10%", result.scenarios.worst),
        ("Median 10%", result.scenarios.median),
        ("Best 10%", result.scenarios.best),
    ],
):
    with col:
        st.subheader(label)
        st.write(f"Average runway: {format_months(summary.avg_months)}")
        st.write(f"Average final net worth: {format_currency(summary.avg_final_net_worth)}")
        st.write(f"Average emergencies: {summary.avg_emergencies:.1f}")
