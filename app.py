import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px
from ui.formatting import fmt_pct, fmt_usd, tier_color, wtp_color
from core.errors import ValidationError
from core.session import DecisionSession
from core.state_store import Experiment, EfficacyLevel, RiskLevel, COST_BOUNDS, build_scenario
from core.dce_model import uptake_grid
from core.metrics import build_wtp_table, cost_breakdown, wtp_risk_comparison
from core.coefficients import QALY_SCENARIOS

st.set_page_config(page_title="T2DM Health Plan Decision Aid", layout="wide")

# --- Session (replaces page-level globals)
if "session" not in st.session_state:
    st.session_state.session = DecisionSession()
session: DecisionSession = st.session_state.session

# --- Header
left, right = st.columns([3,2])
with left:
    st.markdown("### T2DM Equity-Efficiency Decision Aid")
    st.caption("Predicted health plan uptake, willingness to pay and cost/QALY benefits")
with right:
    if st.button("Clear saved scenarios", type="primary"):
        session.reset()

# --- Scenario panel
st.sidebar.header("Scenario")
exp_value = st.sidebar.selectbox("Experiment", [e.value for e in Experiment],
                                 format_func=lambda v: Experiment(v).label)
efficacy = st.sidebar.selectbox("Efficacy (Self)", [e.value for e in EfficacyLevel], format_func=lambda v: f"{v}%")
risk = st.sidebar.selectbox("Risk (Self)", [r.value for r in RiskLevel], format_func=lambda v: f"{v}%")
cost = st.sidebar.slider("Monthly Cost (Self), $", COST_BOUNDS[0], COST_BOUNDS[1], 100, 10)

efficacy_o = risk_o = cost_o = None
if Experiment(exp_value).has_others:
    st.sidebar.header("Others")
    efficacy_o = st.sidebar.selectbox("Efficacy (Others)", [e.value for e in EfficacyLevel], format_func=lambda v: f"{v}%")
    risk_o = st.sidebar.selectbox("Risk (Others)", [r.value for r in RiskLevel], format_func=lambda v: f"{v}%")
    cost_o = st.sidebar.slider("Monthly Cost (Others), $", COST_BOUNDS[0], COST_BOUNDS[1], 100, 10)

inputs = (exp_value, efficacy, risk, cost, efficacy_o, risk_o, cost_o)
if st.session_state.get("last_inputs") != inputs:
    session.invalidate()
    st.session_state.last_inputs = inputs

c1, c2 = st.sidebar.columns(2)
if c1.button("Calculate"):
    try:
        session.compute(build_scenario(*inputs))
    except ValidationError as exc:
        st.sidebar.error(str(exc))
if c2.button("Save scenario"):
    try:
        saved = session.save()
        st.sidebar.success(f'"{saved.name}" has been saved successfully.')
    except ValidationError as exc:
        st.sidebar.error(str(exc))

tab_uptake, tab_wtp, tab_costs, tab_saved = st.tabs(["Uptake", "Willingness to Pay", "Costs & Benefits", "Scenarios"])

# --- Uptake
with tab_uptake:
    res = session.result
    if res is None:
        st.info("Set the attributes and press **Calculate**.")
    else:
        fig = go.Figure(go.Bar(x=[res.probability], y=["Predicted Health Plan Uptake"], orientation="h",
                               marker_color=tier_color(res.tier)))
        fig.update_layout(height=220, margin=dict(l=10,r=10,t=40,b=0),
                          xaxis=dict(range=[0,100], title="Uptake Probability (%)"),
                          title=f"Predicted Uptake = {fmt_pct(res.probability)}")
        st.plotly_chart(fig, use_container_width=True)
        st.markdown(f"**{res.tier.capitalize()}.** {res.message}")

    grid = uptake_grid(exp_value)
    grid = grid[(grid["efficacy"] == efficacy)]
    fig_g = px.line(grid, x="cost", y="uptake", color="risk",
                    labels={"cost": "Monthly cost ($)", "uptake": "Uptake (%)", "risk": "Risk (Self) %"})
    fig_g.update_layout(height=300, margin=dict(l=10,r=10,t=30,b=0),
                        title=f"Uptake vs cost at {efficacy}% efficacy")
    st.plotly_chart(fig_g, use_container_width=True)

# --- WTP with error bars
with tab_wtp:
    records = build_wtp_table(exp_value)
    wdf = pd.DataFrame([r.__dict__ for r in records])
    fig_w = go.Figure(go.Bar(
        x=wdf["attribute"], y=wdf["wtp"],
        marker_color=[wtp_color(v) for v in wdf["wtp"]],
        error_y=dict(type="data", array=wdf["standard_error"], visible=True),
        customdata=wdf["p_value"],
        hovertemplate="%{x}<br>WTP %{y:.2f} USD<br>p-value %{customdata:.3f}<extra></extra>",
    ))
    fig_w.update_layout(height=360, margin=dict(l=10,r=10,t=40,b=0), yaxis_title="WTP (USD)",
                        title=f"Willingness to Pay (USD) - {Experiment(exp_value).label}")
    st.plotly_chart(fig_w, use_container_width=True)
    st.caption("Negative WTP indicates a disutility requiring monetary compensation; "
               "experiment 3 rows for others use the self cost coefficient.")

# --- Costs & benefits
with tab_costs:
    qaly = st.selectbox("QALY gain per participant", list(QALY_SCENARIOS),
                        format_func=lambda k: f"{k} ({QALY_SCENARIOS[k]})", index=1)
    if session.result is None:
        st.info("Calculate uptake first.")
    else:
        cb = session.cost_benefit(qaly)
        st.dataframe(cost_breakdown(cb.uptake_probability), use_container_width=True)
        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Participants", f"{cb.participant_count}")
        m2.metric("Total cost", fmt_usd(cb.total_cost))
        m3.metric("Monetised benefit", fmt_usd(cb.monetized_benefit))
        m4.metric("Net benefit", fmt_usd(cb.net_benefit))
        fig_c = px.bar(x=["Total Treatment Cost", "Monetised QALY Benefits"],
                       y=[cb.total_cost, cb.monetized_benefit], labels={"x": "", "y": "USD"})
        fig_c.update_layout(height=300, margin=dict(l=10,r=10,t=10,b=0))
        st.plotly_chart(fig_c, use_container_width=True)

# --- Saved scenarios + comparison
with tab_saved:
    flt = st.selectbox("Filter", ["all"] + [e.value for e in Experiment],
                       format_func=lambda v: "All experiments" if v == "all" else Experiment(v).label)
    st.dataframe(session.store.to_frame(None if flt == "all" else flt), use_container_width=True)

    comparison = wtp_risk_comparison(session.store.list())
    if comparison:
        cdf = pd.DataFrame(comparison).reset_index().melt(id_vars="index", var_name="Experiment", value_name="WTP")
        fig_cmp = px.bar(cdf, x="index", y="WTP", color="Experiment", barmode="group",
                         labels={"index": "", "WTP": "Average WTP (USD)"})
        fig_cmp.update_layout(height=320, margin=dict(l=10,r=10,t=30,b=0),
                              title="Average WTP for Risk Attributes Across Experiments")
        st.plotly_chart(fig_cmp, use_container_width=True)
