"""
Error types raised by the comparison pipeline.

PreconditionError is raised before any model is called. The CandidateError
family describes a single candidate's failure and is recovered by moving on to
the next candidate; AllCandidatesFailedError is what callers see when none of
them worked.
"""
from __future__ import annotations
from typing import List, Optional


class PhoneCompareError(Exception):
    """Base class for every error the comparison pipeline raises."""


class PreconditionError(PhoneCompareError):
    """Missing credential, empty phone list or empty priority list."""


class CandidateError(PhoneCompareError):
    def __init__(self, message: str, candidate: Optional[str] = None):
        super().__init__(message)
        self.candidate = candidate


class CandidateTransportError(CandidateError):
    """The backend call itself failed (network, auth, quota) or returned nothing."""


class ExtractionError(CandidateError):
    """The backend text could not be reduced to a JSON payload."""


class ValidationError(CandidateError):
    """The parsed JSON does not have the Comparison Result shape."""

    def __init__(self, path: str, expected: str, detail: str = "", candidate: Optional[str] = None):
        message = f"{path}: expected {expected}"
        if detail:
            message += f" ({detail})"
        super().__init__(message, candidate=candidate)
        self.path = path
        self.expected = expected
        self.detail = detail


class AllCandidatesFailedError(PhoneCompareError):
    def __init__(self, errors: List[CandidateError]):
        last = errors[-1] if errors else None
        reason = str(last) if last else "no candidates were tried"
        super().__init__(f"All candidate models failed. Last error: {reason}")
        self.errors = errors
        self.last_error = last
