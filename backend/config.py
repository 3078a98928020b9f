"""
Configuration module for the phone comparison backend.
Reads configuration from environment variables and .env file.

A Config is built once at process start (Config.from_env()) and passed
explicitly into the pipeline; nothing below reads os.environ at call time.
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

# Faster model first, more capable model as fallback
DEFAULT_CANDIDATE_MODELS = ["gemini-2.0-flash", "gemini-2.5-flash"]


def _as_list(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return list(default)
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or list(default)


@dataclass
class Config:
    """Configuration values for one running process."""

    GEMINI_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    CANDIDATE_MODELS: List[str] = field(default_factory=lambda: list(DEFAULT_CANDIDATE_MODELS))
    LLM_TIMEOUT_SECS: float = 60.0
    LLM_TEMPERATURE: float = 0.2
    LLM_MAX_OUTPUT_TOKENS: int = 8192
    PHONES_CSV: str = "data/phones.csv"
    MAX_PHONES_PER_COMPARISON: int = 10

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Config":
        # Load environment variables from .env file
        load_dotenv(dotenv_path)
        return cls(
            GEMINI_API_KEY=os.getenv("GEMINI_API_KEY"),
            OPENAI_API_KEY=os.getenv("OPENAI_API_KEY"),
            CANDIDATE_MODELS=_as_list(os.getenv("COMPARISON_MODELS"), DEFAULT_CANDIDATE_MODELS),
            LLM_TIMEOUT_SECS=float(os.getenv("LLM_TIMEOUT_SECS", "60")),
            LLM_TEMPERATURE=float(os.getenv("LLM_TEMPERATURE", "0.2")),
            LLM_MAX_OUTPUT_TOKENS=int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "8192")),
            PHONES_CSV=os.getenv("PHONES_CSV", "data/phones.csv"),
            MAX_PHONES_PER_COMPARISON=int(os.getenv("MAX_PHONES_PER_COMPARISON", "10")),
        )

    def api_key_for(self, provider: str) -> Optional[str]:
        if provider == "gemini":
            return self.GEMINI_API_KEY
        if provider == "openai":
            return self.OPENAI_API_KEY
        return None
