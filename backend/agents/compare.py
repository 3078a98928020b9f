# backend/agents/compare.py
"""
backend/agents/compare.py

Purpose
-------
Ask a language model to pick the best phone for a user's budget and
priorities, and return its answer as a validated ComparisonResult.

Primary function:
    compare_and_select(request, cfg, client=None) -> ComparisonResult

Flow (per request)
------------------
BUILDING_PROMPT -> TRYING_CANDIDATE(0) -> ... -> SUCCESS | ALL_FAILED

- Preconditions (credentials, non-empty phones and priorities) are checked
  before any model is called and raise PreconditionError.
- Candidates from cfg.CANDIDATE_MODELS are tried in order, one at a time.
  A candidate fails on a transport error, unparseable JSON, or a payload
  that does not validate; the next candidate is then tried.
- The first valid result is returned; later candidates are never called.
- When every candidate fails, AllCandidatesFailedError carries the last
  candidate's error.
"""

from __future__ import annotations
import enum
import logging
import time
from typing import List, Optional, Sequence

from backend.agents.prompt import build_comparison_prompt
from backend.agents.validate import validate_comparison
from backend.config import Config
from backend.errors import AllCandidatesFailedError, CandidateError
from backend.models import ComparisonRequest, ComparisonResult
from backend.services.llm_client import LLMClient, check_credentials, extract_json_payload, load_json_payload, preview

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class CompareState(str, enum.Enum):
    BUILDING_PROMPT = "BUILDING_PROMPT"
    TRYING_CANDIDATE = "TRYING_CANDIDATE"
    SUCCESS = "SUCCESS"
    ALL_FAILED = "ALL_FAILED"


def _try_candidate(client, candidate: str, prompt: str, request: ComparisonRequest) -> ComparisonResult:
    raw = client.generate(candidate, prompt)
    logger.info("Model %s - raw response: %s", candidate, preview(raw))
    payload = extract_json_payload(raw)
    logger.info("Model %s - extracted JSON: %s", candidate, preview(payload))
    parsed = load_json_payload(payload, candidate=candidate)
    try:
        return validate_comparison(parsed, phones=request.phones)
    except CandidateError as e:
        e.candidate = candidate
        raise


def run_candidates(prompt: str,
                   request: ComparisonRequest,
                   candidates: Sequence[str],
                   client) -> ComparisonResult:
    """
    Try each candidate in order and return the first validated result.
    Raises AllCandidatesFailedError when none succeeds.
    """
    errors: List[CandidateError] = []
    for i, candidate in enumerate(candidates):
        logger.info("[%s:%d] attempting with model: %s", CompareState.TRYING_CANDIDATE.value, i, candidate)
        try:
            result = _try_candidate(client, candidate, prompt, request)
        except CandidateError as e:
            if e.candidate is None:
                e.candidate = candidate
            logger.warning("Model %s failed (%s): %s", candidate, type(e).__name__, e)
            errors.append(e)
            if i < len(candidates) - 1:
                logger.info("Falling back to next model...")
            continue
        logger.info("[%s] used model: %s selected=%s", CompareState.SUCCESS.value, candidate, result.selected_phone.phone_id)
        return result

    logger.error("[%s] %d candidate(s) failed", CompareState.ALL_FAILED.value, len(errors))
    raise AllCandidatesFailedError(errors)


def compare_and_select(request: ComparisonRequest,
                       cfg: Config,
                       client: Optional[LLMClient] = None) -> ComparisonResult:
    """
    Main entrypoint for the comparison.

    `client` is anything with generate(candidate, prompt) -> str; by default an
    LLMClient built from cfg.
    """
    start = time.time()
    candidates = list(cfg.CANDIDATE_MODELS)
    check_credentials(cfg, candidates)

    logger.info("[%s] phones=%d priorities=%s", CompareState.BUILDING_PROMPT.value, len(request.phones), ", ".join(request.priorities))
    prompt = build_comparison_prompt(request)

    client = client or LLMClient(cfg)
    result = run_candidates(prompt, request, candidates, client)
    logger.info("compare_and_select completed in %.2fs", time.time() - start)
    return result
