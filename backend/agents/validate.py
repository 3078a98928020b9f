# backend/agents/validate.py
"""
Structural validation of model output against the Comparison Result shape.

validate_comparison(value, phones=None) -> ComparisonResult

Validation goes through the strict pydantic models in backend.models: no
coercion, first error wins and is reported as a JSON path plus the expected
type. When the originating phones are given, every phone referenced by the
result must be one of them.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from backend.errors import ValidationError
from backend.models import ComparisonResult, Phone

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# pydantic error type -> expected type, in the JSON vocabulary used by the prompt
_EXPECTED_BY_ERROR_TYPE: Dict[str, str] = {
    "missing": "required field",
    "string_type": "string",
    "float_type": "number",
    "int_type": "number",
    "list_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
    "greater_than_equal": "number >= 0",
    "less_than_equal": "number <= 10",
}


def format_path(loc: Sequence[Union[str, int]]) -> str:
    """('all_phones_evaluated', 0, 'price_inr') -> '$.all_phones_evaluated[0].price_inr'"""
    path = "$"
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


# pydantic appends the member type to the location of each failed union member
_UNION_MEMBER_TYPES: Dict[str, str] = {"str": "string", "int": "number", "float": "number"}


def _union_expected(errors: Sequence[Dict[str, Any]], loc: Tuple[Union[str, int], ...]) -> Optional[str]:
    """('values', 'Battery', 'str') failing alongside ..'int' and ..'float' -> 'string or number'"""
    if not loc or loc[-1] not in _UNION_MEMBER_TYPES:
        return None
    names: List[str] = []
    for err in errors:
        other = tuple(err.get("loc", ()))
        if other[:-1] == loc[:-1] and other and other[-1] in _UNION_MEMBER_TYPES:
            name = _UNION_MEMBER_TYPES[other[-1]]
            if name not in names:
                names.append(name)
    return " or ".join(names) if len(names) > 1 else None


def _first_violation(exc: PydanticValidationError) -> Tuple[str, str, str]:
    errors = exc.errors()
    err = errors[0]
    loc = tuple(err.get("loc", ()))
    union = _union_expected(errors, loc)
    if union:
        return format_path(loc[:-1]), union, err.get("msg", "")
    expected = _EXPECTED_BY_ERROR_TYPE.get(err.get("type", ""), err.get("msg", "valid value"))
    return format_path(loc), expected, err.get("msg", "")


def _check_phone_references(result: ComparisonResult, phones: Iterable[Phone]) -> None:
    phones = list(phones)
    known_ids = {p.id for p in phones}
    known_labels = known_ids | {p.name.strip().lower() for p in phones} | {p.id.strip().lower() for p in phones}

    def _require_id(path: str, phone_id: str) -> None:
        if phone_id not in known_ids:
            raise ValidationError(path, "phone id from the request", detail=f"unknown phone id {phone_id!r}")

    _require_id("$.selected_phone.phone_id", result.selected_phone.phone_id)
    if result.runner_up is not None:
        _require_id("$.runner_up.phone_id", result.runner_up.phone_id)
    for i, ev in enumerate(result.all_phones_evaluated):
        _require_id(f"$.all_phones_evaluated[{i}].phone_id", ev.phone_id)
    for i, t in enumerate(result.tradeoff_analysis):
        for side in ("phone_a", "phone_b"):
            label = getattr(t, side)
            if label not in known_ids and label.strip().lower() not in known_labels:
                raise ValidationError(
                    f"$.tradeoff_analysis[{i}].{side}",
                    "phone name or id from the request",
                    detail=f"unknown phone {label!r}",
                )


def validate_comparison(value: Any, phones: Optional[Iterable[Phone]] = None) -> ComparisonResult:
    """
    Validate a parsed JSON value. Raises backend.errors.ValidationError on the
    first mismatch; returns the immutable ComparisonResult otherwise.
    """
    if not isinstance(value, dict):
        raise ValidationError("$", "object", detail=f"got {type(value).__name__}")
    try:
        result = ComparisonResult.model_validate(value)
    except PydanticValidationError as e:
        path, expected, detail = _first_violation(e)
        logger.debug("Comparison payload rejected at %s (expected %s)", path, expected)
        raise ValidationError(path, expected, detail=detail) from e

    if phones is not None:
        _check_phone_references(result, phones)
    return result
