# backend/agents/prompt.py
"""
backend/agents/prompt.py

Builds the comparison prompt sent to every candidate model.

Primary function:
    build_comparison_prompt(request) -> str

The prompt has four parts:
  1. the user's budget, priorities (in order) and extra requirements
  2. one block per phone with its specs (prices as Indian rupees, booleans as Yes/No)
  3. behavioural rules for the model
  4. the exact JSON shape the answer must have (checked later by validate.py)
"""

from __future__ import annotations
import logging
from typing import Optional

from backend.errors import PreconditionError
from backend.models import ComparisonRequest, Phone

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PHONE_SEPARATOR = "\n\n---\n"

_RESPONSE_SHAPE = """
{
  "selected_phone": {
    "phone_id": "string (exact ID from the list)",
    "phone_name": "string",
    "reason_for_selection": "string (detailed explanation)",
    "how_it_matches_priorities": "string (explain for each priority)"
  },
  "runner_up": {
    "phone_id": "string (exact ID from the list)",
    "phone_name": "string",
    "why_not_selected": "string"
  },
  "all_phones_evaluated": [{
    "phone_id": "string (exact ID from the list)",
    "phone_name": "string",
    "price_inr": number,
    "key_strengths": ["string", "string", "string"],
    "key_weaknesses": ["string", "string", "string"],
    "score_by_priority": {"priority_name": number_0_to_10}
  }],
  "tradeoff_analysis": [{
    "phone_a": "string (phone name or ID from the list)",
    "phone_b": "string (phone name or ID from the list)",
    "what_a_gains": "string (with specific numbers)",
    "what_a_loses": "string (with specific numbers)",
    "recommendation": "string"
  }],
  "specification_comparison": [{
    "spec_name": "string",
    "values": {"phone_name": "string or number"},
    "winner": "string",
    "analysis": "string"
  }],
  "budget_analysis": {
    "selected_phone_price": number,
    "price_range": "string",
    "value_for_money_explanation": "string",
    "alternative_if_budget_increases": "string or null (optional)",
    "alternative_if_budget_decreases": "string or null (optional)"
  },
  "summary": "string (2-3 paragraphs)"
}
""".strip()


def format_inr(amount: float) -> str:
    """
    Format an amount as Indian rupees with lakh/crore digit grouping.

    >>> format_inr(125999)
    '₹1,25,999'
    """
    sign = "-" if amount < 0 else ""
    rounded = round(abs(float(amount)), 2)
    whole = int(rounded)
    digits = str(whole)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    paise = f"{rounded:.2f}".split(".")[1].rstrip("0")
    if paise:
        digits = f"{digits}.{paise}"
    return f"{sign}₹{digits}"


def _num(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _text(value: Optional[str]) -> str:
    return value.strip() if value and value.strip() else "N/A"


def describe_phone(phone: Phone) -> str:
    """Human-readable spec block for one phone."""
    return "\n".join([
        f"**{phone.name}** (ID: {phone.id})",
        f"- Price: {format_inr(phone.price_inr)}",
        f"- Brand: {phone.brand}",
        f"- Price Range: {_text(phone.price_range)}",
        f"- Battery: {_num(phone.battery_mah)}mAh",
        f"- Camera: {_num(phone.camera_mp)}MP main ({_text(phone.rear_camera_details)})",
        f"- Front Camera: {_num(phone.front_camera_mp)}MP",
        f"- Display: {_num(phone.screen_inches)}\" {_text(phone.display_type)} at {_num(phone.refresh_rate)}Hz",
        f"- RAM/Storage: {_num(phone.ram_gb)}GB / {_num(phone.storage_gb)}GB",
        f"- Processor: {_text(phone.processor)}",
        f"- Fast Charging: {_num(phone.fast_charging_w)}W",
        f"- 5G: {'Yes' if phone.has_5g else 'No'}",
        f"- Weight: {_num(phone.weight_grams)}g",
        f"- OS: {_text(phone.os)}",
        f"- Key Features: {_text(phone.key_features)}",
    ])


def build_comparison_prompt(request: ComparisonRequest) -> str:
    """
    Render the full instruction text for one comparison request.
    Raises PreconditionError for an empty phone or priority list.
    """
    if not request.phones:
        raise PreconditionError("No phones to compare")
    priorities = [p.strip() for p in request.priorities if p and p.strip()]
    if not priorities:
        raise PreconditionError("At least one priority is required")

    budget_text = format_inr(request.budget) if request.budget else "Not specified"
    extra = (request.additional_requirements or "").strip()
    extra_line = f"**Additional Requirements:** {extra}\n" if extra else ""
    phones_block = PHONE_SEPARATOR.join(describe_phone(p) for p in request.phones)

    p = f"""
You are a phone expert helping an Indian customer choose the best phone from the following options.

**User's Budget:** {budget_text}
**User's Priorities (in order of importance):** {", ".join(priorities)}
{extra_line}
**Phones to Compare:**
{phones_block}

Your task:
1. Analyze each phone against the user's priorities
2. Select the BEST phone that matches the priorities and budget
3. Explain WHY this phone is best for this user's specific needs
4. Show detailed trade-offs between the top contenders with SPECIFIC NUMBERS
5. Compare specifications across all phones
6. Provide a budget analysis: value for money and alternatives

IMPORTANT RULES:
- Use SPECIFIC NUMBERS in comparisons (e.g. "5000mAh vs 4500mAh", "200MP vs 50MP", "₹25,999 vs ₹34,999")
- Score EVERY priority for EVERY phone in "score_by_priority" on a 0 to 10 scale
- Show what you GAIN and what you LOSE when choosing one phone over another
- If a budget is specified, prefer phones within it; mention an over-budget phone only if it is significantly better, and say clearly that it is over budget
- Consider real-world usage and value for money in the Indian market, not just specs on paper
- Use ONLY phone IDs that appear in the list above for "phone_id" fields

Output:
Return ONLY valid JSON that matches this exact structure:
{_RESPONSE_SHAPE}

"runner_up" may be null when only one phone is compared.
Return the JSON now:
"""
    prompt = p.strip()
    logger.debug("Built comparison prompt for %d phones (%d chars)", len(request.phones), len(prompt))
    return prompt
