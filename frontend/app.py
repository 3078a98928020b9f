"""
Streamlit UI for the phone comparison pipeline.

- Runs: backend.pipeline_graph.run_compare_sync(...)
- Shows the selected phone, runner-up, per-priority scores, trade-offs,
  spec comparison, budget analysis and summary

Usage:
    streamlit run frontend/app.py
"""
from __future__ import annotations
import os
import sys
import logging

import streamlit as st
import pandas as pd

st.set_page_config(page_title="Phone Compare AI", layout="wide")
logger = logging.getLogger("streamlit_compare")
logger.setLevel(logging.INFO)

# Add the repo root to Python path if not already there
repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from backend.agents.prompt import format_inr
from backend.config import Config
from backend.pipeline_graph import build_pipeline, run_compare_sync


@st.cache_resource
def _pipeline():
    # Built once per Streamlit server process
    return build_pipeline(Config.from_env())


st.title("Phone Compare AI")
st.write("Set your budget and priorities. The AI compares the matching phones and explains the trade-offs.")

with st.sidebar:
    st.header("What do you need?")
    budget = st.number_input("Budget (₹, 0 = no limit)", min_value=0, max_value=300000, value=30000, step=1000)
    priorities = st.text_input("Priorities, most important first", value="battery, camera, performance")
    requirements = st.text_area("Anything else? (optional)", value="", height=80)
    require_5g = st.checkbox("Must have 5G", value=True)
    head_to_head = st.checkbox("Final head-to-head between the top 2", value=False)
    run_btn = st.button("Compare phones")


def _show_comparison(comparison, phones):
    selected = comparison.selected_phone
    st.subheader(f"Best match: {selected.phone_name}")
    st.write(selected.reason_for_selection)
    st.info(selected.how_it_matches_priorities)

    if comparison.runner_up:
        with st.expander(f"Runner up: {comparison.runner_up.phone_name}", expanded=True):
            st.write(comparison.runner_up.why_not_selected)

    if comparison.all_phones_evaluated:
        st.subheader("Scores by priority (0-10)")
        rows = []
        for ev in comparison.all_phones_evaluated:
            row = {"phone": ev.phone_name, "price": format_inr(ev.price_inr)}
            row.update(ev.score_by_priority)
            rows.append(row)
        st.dataframe(pd.DataFrame(rows), use_container_width=True)
        for ev in comparison.all_phones_evaluated:
            with st.expander(ev.phone_name):
                left, right = st.columns(2)
                left.markdown("**Strengths**\n" + "\n".join(f"- {s}" for s in ev.key_strengths))
                right.markdown("**Weaknesses**\n" + "\n".join(f"- {s}" for s in ev.key_weaknesses))

    if comparison.tradeoff_analysis:
        st.subheader("Trade-offs")
        for t in comparison.tradeoff_analysis:
            st.markdown(f"**{t.phone_a} vs {t.phone_b}**")
            st.write(f"Gains: {t.what_a_gains}")
            st.write(f"Loses: {t.what_a_loses}")
            st.caption(t.recommendation)

    if comparison.specification_comparison:
        st.subheader("Specification comparison")
        for spec in comparison.specification_comparison:
            st.markdown(f"**{spec.spec_name}** (winner: {spec.winner})")
            st.table(pd.DataFrame([spec.values]))
            st.caption(spec.analysis)

    st.subheader("Budget analysis")
    ba = comparison.budget_analysis
    st.write(f"{format_inr(ba.selected_phone_price)} ({ba.price_range})")
    st.write(ba.value_for_money_explanation)
    if ba.alternative_if_budget_increases:
        st.write(f"If you can spend more: {ba.alternative_if_budget_increases}")
    if ba.alternative_if_budget_decreases:
        st.write(f"If you need to spend less: {ba.alternative_if_budget_decreases}")

    st.subheader("Summary")
    st.write(comparison.summary)

    with st.expander(f"Phones compared ({len(phones)})"):
        st.dataframe(pd.DataFrame([p.model_dump() for p in phones]), use_container_width=True)


if run_btn:
    try:
        with st.spinner("Comparing phones..."):
            state = run_compare_sync(
                _pipeline(),
                priorities=priorities,
                budget=float(budget) or None,
                requirements=requirements or None,
                require_5g=require_5g,
                head_to_head=head_to_head,
            )
    except Exception as e:
        logger.exception("Comparison run failed")
        st.error(f"Comparison failed: {e}")
    else:
        if state.get("error"):
            st.error(state["error"])
        else:
            st.success(f"Compared {len(state['phones'])} phones in {state['processing_time_ms'] / 1000:.1f}s")
            _show_comparison(state["comparison"], state["phones"])
