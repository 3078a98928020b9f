"""
LangGraph pipeline for a phone comparison request.

Wires together:
- narrow        (catalog filtering by budget / 5G, capped)
- compare       (LLM comparison with model fallback)
- head_to_head  (optional: re-compare only the winner and the runner-up)

Run via:
    from backend.pipeline_graph import build_pipeline, run_compare_sync
    pipeline = build_pipeline(cfg, catalog)
    out = run_compare_sync(pipeline, budget=30000, priorities="battery, camera")
"""

from __future__ import annotations
import logging
import time
from typing import TypedDict, List, Optional, Union

from langgraph.graph import StateGraph, END

from backend.agents.compare import compare_and_select
from backend.agents.prompt import format_inr
from backend.config import Config
from backend.errors import PhoneCompareError
from backend.models import ComparisonRequest, ComparisonResult, Phone
from backend.services.catalog import PhoneCatalog
from backend.services.llm_client import LLMClient

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Fewer in-budget phones than this widens the search to BUDGET_STRETCH x budget
MIN_PHONES_IN_BUDGET = 3
BUDGET_STRETCH = 1.2

NO_PRIORITY_MESSAGE = "Please select at least one priority (battery, camera, performance, etc.)"


class PipelineState(TypedDict, total=False):
    budget: Optional[float]
    priorities: List[str]
    requirements: Optional[str]
    require_5g: bool
    head_to_head: bool
    phones: List[Phone]
    comparison: Optional[ComparisonResult]
    error: Optional[str]
    start_time: float
    processing_time_ms: int


def parse_priorities(value: Union[str, List[str], None]) -> List[str]:
    """'battery, camera,,gaming' -> ['battery', 'camera', 'gaming']"""
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [p.strip() for p in items if p and p.strip()]


def narrow_phones(catalog: PhoneCatalog, budget: Optional[float], require_5g: bool, limit: int) -> List[Phone]:
    if budget:
        phones = catalog.in_budget(budget)
        # If no phones in exact budget, get slightly above
        if len(phones) < MIN_PHONES_IN_BUDGET:
            phones = [p for p in catalog.all() if p.price_inr <= budget * BUDGET_STRETCH]
    else:
        phones = catalog.all()

    if require_5g:
        phones = [p for p in phones if p.has_5g]
    return phones[:limit]


def requirements_text(requirements: Optional[str], require_5g: bool) -> Optional[str]:
    extra = (requirements or "").strip()
    if require_5g:
        return f"Must have 5G. {extra}".strip()
    return extra or None


def build_pipeline(cfg: Config, catalog: Optional[PhoneCatalog] = None, client=None):
    """
    Compile the request graph for one configuration. `client` defaults to an
    LLMClient(cfg) shared by every request run through this pipeline.
    """
    catalog = catalog or PhoneCatalog(cfg.PHONES_CSV)
    client = client or LLMClient(cfg)

    def _compare(state: PipelineState, phones: List[Phone]) -> ComparisonResult:
        request = ComparisonRequest(
            phones=phones,
            priorities=state["priorities"],
            budget=state.get("budget"),
            additional_requirements=requirements_text(state.get("requirements"), state.get("require_5g", False)),
        )
        return compare_and_select(request, cfg, client=client)

    def _fail(state: PipelineState, e: Exception) -> PipelineState:
        if isinstance(e, PhoneCompareError):
            logger.warning("Comparison failed: %s", e)
        else:
            logger.exception("Comparison failed unexpectedly: %s", e)
        state["comparison"] = None
        state["error"] = str(e) or "An unexpected error occurred"
        return state

    def node_narrow(state: PipelineState) -> PipelineState:
        state["priorities"] = parse_priorities(state.get("priorities"))
        if not state["priorities"]:
            state["phones"] = []
            state["error"] = NO_PRIORITY_MESSAGE
            return state

        budget = state.get("budget")
        phones = narrow_phones(catalog, budget, state.get("require_5g", False), cfg.MAX_PHONES_PER_COMPARISON)
        logger.info("[narrow] budget=%s require_5g=%s phones=%d", budget, state.get("require_5g", False), len(phones))
        state["phones"] = phones
        if not phones:
            if budget:
                state["error"] = f"No phones found within budget {format_inr(budget)}. Try increasing your budget."
            else:
                state["error"] = "No phones match your filters."
        return state

    def node_compare(state: PipelineState) -> PipelineState:
        logger.info("Comparing %d phones with priorities: %s", len(state["phones"]), ", ".join(state["priorities"]))
        try:
            state["comparison"] = _compare(state, state["phones"])
        except Exception as e:
            return _fail(state, e)
        return state

    def node_head_to_head(state: PipelineState) -> PipelineState:
        first = state["comparison"]
        finalist_ids = [first.selected_phone.phone_id, first.runner_up.phone_id]
        finalists = [p for p in state["phones"] if p.id in finalist_ids]
        if len(finalists) != 2:
            logger.info("[head_to_head] skipped: finalists=%s", finalist_ids)
            return state
        logger.info("[head_to_head] %s vs %s", finalists[0].id, finalists[1].id)
        state["phones"] = finalists
        try:
            state["comparison"] = _compare(state, finalists)
        except Exception as e:
            return _fail(state, e)
        return state

    def _after_narrow(state: PipelineState) -> str:
        return END if state.get("error") else "compare"

    def _after_compare(state: PipelineState) -> str:
        comparison = state.get("comparison")
        if state.get("head_to_head") and comparison is not None and comparison.runner_up is not None:
            return "head_to_head"
        return END

    graph = StateGraph(PipelineState)

    graph.add_node("narrow", node_narrow)
    graph.add_node("compare", node_compare)
    graph.add_node("head_to_head", node_head_to_head)

    graph.set_entry_point("narrow")

    graph.add_conditional_edges("narrow", _after_narrow, {"compare": "compare", END: END})
    graph.add_conditional_edges("compare", _after_compare, {"head_to_head": "head_to_head", END: END})
    graph.add_edge("head_to_head", END)

    return graph.compile()


def run_compare_sync(pipeline,
                     priorities: Union[str, List[str], None],
                     budget: Optional[float] = None,
                     requirements: Optional[str] = None,
                     require_5g: bool = False,
                     head_to_head: bool = False) -> PipelineState:
    init_state: PipelineState = {
        "budget": budget if budget and budget > 0 else None,
        "priorities": priorities,
        "requirements": requirements,
        "require_5g": require_5g,
        "head_to_head": head_to_head,
        "comparison": None,
        "error": None,
        "start_time": time.time(),
    }
    final_state = pipeline.invoke(init_state)
    final_state["processing_time_ms"] = int((time.time() - init_state["start_time"]) * 1000)
    logger.info("Comparison complete in %dms", final_state["processing_time_ms"])
    return final_state
