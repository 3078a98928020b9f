"""
backend/services/llm_client.py

LLM client for Google Gemini (google-genai) and OpenAI, plus the helpers that
turn a model's free-form reply into a JSON value.

Design goals:
- One generate(candidate, prompt) -> str call used by the comparison pipeline.
- A candidate is "<provider>:<model>" (e.g. "openai:gpt-4o-mini") or a bare
  model name, which means Gemini.
- SDK clients are created lazily, once per LLMClient (under a lock), from an
  explicit Config.
  There is no module-level client.
- Every SDK failure is reported as CandidateTransportError for that candidate.
"""

from __future__ import annotations
import json
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple

from backend.config import Config
from backend.errors import CandidateTransportError, ExtractionError, PreconditionError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULT_PROVIDER = "gemini"
SUPPORTED_PROVIDERS = ("gemini", "openai")
API_KEY_ENV = {"gemini": "GEMINI_API_KEY", "openai": "OPENAI_API_KEY"}
PREVIEW_CHARS = 500


def parse_candidate(candidate: str) -> Tuple[str, str]:
    """
    Split a candidate identifier into (provider, model).

    >>> parse_candidate("openai:gpt-4o-mini")
    ('openai', 'gpt-4o-mini')
    >>> parse_candidate("gemini-2.0-flash")
    ('gemini', 'gemini-2.0-flash')
    """
    name = (candidate or "").strip()
    if ":" in name:
        provider, model = name.split(":", 1)
        return provider.strip().lower(), model.strip()
    return DEFAULT_PROVIDER, name


def check_credentials(cfg: Config, candidates: Iterable[str]) -> None:
    """
    Raise PreconditionError unless every provider referenced by the candidate
    list is supported and has an API key configured.
    """
    candidates = list(candidates)
    if not candidates:
        raise PreconditionError("No candidate models configured")
    for candidate in candidates:
        provider, model = parse_candidate(candidate)
        if provider not in SUPPORTED_PROVIDERS:
            raise PreconditionError(f"Unsupported provider {provider!r} in candidate {candidate!r}")
        if not model:
            raise PreconditionError(f"Candidate {candidate!r} does not name a model")
        if not cfg.api_key_for(provider):
            raise PreconditionError(f"{API_KEY_ENV[provider]} is not set")


def extract_json_payload(text: str) -> str:
    """
    Reduce a model reply to its JSON payload.

    A ```json fenced block wins, then any fenced block, then the whole text.
    An empty fenced block falls back to the whole text.
    """
    if not text:
        return ""
    payload = text
    if "```json" in text:
        payload = text.split("```json", 1)[1].split("```", 1)[0].strip()
    elif "```" in text:
        payload = text.split("```", 2)[1].strip()
    return payload or text.strip()


def load_json_payload(payload: str, candidate: Optional[str] = None) -> Any:
    """Parse an already extracted payload; ExtractionError if it is empty or not JSON."""
    if not payload:
        raise ExtractionError("Model returned no JSON payload", candidate=candidate)
    try:
        return json.loads(payload)
    # ValueError covers JSONDecodeError and oversized integer literals,
    # RecursionError covers pathologically nested arrays/objects
    except (ValueError, RecursionError) as e:
        raise ExtractionError(f"Model returned invalid JSON: {type(e).__name__}: {preview(str(e), 200)}", candidate=candidate) from e


def parse_json_payload(text: str, candidate: Optional[str] = None) -> Any:
    """Extract and parse the JSON in a model reply; ExtractionError if there is none."""
    return load_json_payload(extract_json_payload(text), candidate=candidate)


def preview(text: Optional[str], limit: int = PREVIEW_CHARS) -> str:
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit] + "..."


class LLMClient:
    """
    Invokes one candidate backend at a time.

    The comparison pipeline only needs generate(); tests substitute any object
    with the same method.
    """

    def __init__(self, cfg: Config):
        self.cfg = cfg
        self._clients: Dict[str, Any] = {}
        # guards _clients; one LLMClient is shared by every request thread
        self._lock = threading.Lock()

    def _gemini(self):
        with self._lock:
            return self._init_gemini()

    def _init_gemini(self):
        if "gemini" not in self._clients:
            # Lazy import to avoid a hard dependency at module import time.
            from google import genai
            from google.genai import types

            self._clients["gemini"] = genai.Client(
                api_key=self.cfg.GEMINI_API_KEY,
                http_options=types.HttpOptions(timeout=int(self.cfg.LLM_TIMEOUT_SECS * 1000)),
            )
            logger.debug("google.genai client initialized")
        return self._clients["gemini"]

    def _openai(self):
        with self._lock:
            return self._init_openai()

    def _init_openai(self):
        if "openai" not in self._clients:
            from openai import OpenAI

            self._clients["openai"] = OpenAI(
                api_key=self.cfg.OPENAI_API_KEY,
                timeout=self.cfg.LLM_TIMEOUT_SECS,
            )
            logger.debug("OpenAI client initialized")
        return self._clients["openai"]

    def _generate_gemini(self, model: str, prompt: str) -> str:
        from google.genai import types

        resp = self._gemini().models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=self.cfg.LLM_TEMPERATURE,
                max_output_tokens=self.cfg.LLM_MAX_OUTPUT_TOKENS,
            ),
        )
        if getattr(resp, "text", None):
            return resp.text
        # Fallback: join text parts of the first candidate
        parts: List[str] = []
        for cand in (getattr(resp, "candidates", None) or [])[:1]:
            content = getattr(cand, "content", None)
            for part in getattr(content, "parts", None) or []:
                if getattr(part, "text", None):
                    parts.append(part.text)
        return "".join(parts)

    def _generate_openai(self, model: str, prompt: str) -> str:
        resp = self._openai().chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.cfg.LLM_TEMPERATURE,
            max_tokens=self.cfg.LLM_MAX_OUTPUT_TOKENS,
        )
        content = resp.choices[0].message.content
        return content if isinstance(content, str) else ""

    def generate(self, candidate: str, prompt: str) -> str:
        """Send the prompt to one candidate and return its raw text reply."""
        provider, model = parse_candidate(candidate)
        try:
            if provider == "gemini":
                text = self._generate_gemini(model, prompt)
            elif provider == "openai":
                text = self._generate_openai(model, prompt)
            else:
                raise ValueError(f"Unsupported provider: {provider}")
        except Exception as e:
            logger.warning("Candidate %s call failed: %s", candidate, e)
            raise CandidateTransportError(f"{candidate}: {e}", candidate=candidate) from e

        if not text or not text.strip():
            raise CandidateTransportError(f"{candidate}: empty response", candidate=candidate)
        return text
