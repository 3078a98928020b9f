import json
from typing import Any, Dict, List, Optional

import pytest

from backend.config import Config
from backend.models import Phone


CSV_HEADER = "id,name,brand,price_inr,price_range,battery_mah,camera_mp,has_5g,os\n"
CSV_ROWS = [
    "p1,Alpha One,Alpha,24999,mid-range,5000,50,Yes,Android 14\n",
    "p2,Beta Max,Beta,27999,mid-range,6000,108,Yes,Android 14\n",
    "p3,Gamma Lite,Gamma,19999,budget,4500,48,No,Android 13\n",
]


@pytest.fixture
def phones() -> List[Phone]:
    return [
        Phone(id="p1", name="Alpha One", brand="Alpha", price_inr=24999, price_range="mid-range",
              battery_mah=5000, camera_mp=50, has_5g=True, os="Android 14"),
        Phone(id="p2", name="Beta Max", brand="Beta", price_inr=27999, price_range="mid-range",
              battery_mah=6000, camera_mp=108, has_5g=True, os="Android 14"),
        Phone(id="p3", name="Gamma Lite", brand="Gamma", price_inr=19999, price_range="budget",
              battery_mah=4500, camera_mp=48, has_5g=False, os="Android 13"),
    ]


@pytest.fixture
def phones_csv(tmp_path):
    path = tmp_path / "phones.csv"
    path.write_text(CSV_HEADER + "".join(CSV_ROWS), encoding="utf-8")
    return str(path)


@pytest.fixture
def cfg(phones_csv) -> Config:
    return Config(GEMINI_API_KEY="test-key", CANDIDATE_MODELS=["model-a", "model-b"], PHONES_CSV=phones_csv)


def _make_payload(phones: List[Phone], selected: str = "p2", runner_up: Optional[str] = "p1") -> Dict[str, Any]:
    by_id = {p.id: p for p in phones}
    payload: Dict[str, Any] = {
        "selected_phone": {
            "phone_id": selected,
            "phone_name": by_id[selected].name,
            "reason_for_selection": "Biggest battery in the list at 6000mAh.",
            "how_it_matches_priorities": "battery: 6000mAh vs 5000mAh; camera: 108MP vs 50MP",
        },
        "all_phones_evaluated": [
            {
                "phone_id": p.id,
                "phone_name": p.name,
                "price_inr": p.price_inr,
                "key_strengths": ["battery"],
                "key_weaknesses": ["weight"],
                "score_by_priority": {"battery": 8, "camera": 7.5},
            }
            for p in phones
        ],
        "tradeoff_analysis": [
            {
                "phone_a": by_id[selected].name,
                "phone_b": phones[0].name,
                "what_a_gains": "1000mAh more battery",
                "what_a_loses": "₹3,000 more expensive",
                "recommendation": "Worth it for heavy users",
            }
        ],
        "specification_comparison": [
            {
                "spec_name": "Battery",
                "values": {p.name: p.battery_mah for p in phones},
                "winner": by_id[selected].name,
                "analysis": "Bigger is better",
            }
        ],
        "budget_analysis": {
            "selected_phone_price": by_id[selected].price_inr,
            "price_range": "mid-range",
            "value_for_money_explanation": "Good value under ₹30,000",
            "alternative_if_budget_increases": "Nothing higher in the list",
            "alternative_if_budget_decreases": None,
        },
        "summary": "Beta Max is the pick for battery life.",
    }
    if runner_up is not None:
        payload["runner_up"] = {
            "phone_id": runner_up,
            "phone_name": by_id[runner_up].name,
            "why_not_selected": "Smaller battery",
        }
    return payload


@pytest.fixture
def make_payload():
    return _make_payload


@pytest.fixture
def valid_payload(phones) -> Dict[str, Any]:
    return _make_payload(phones)


@pytest.fixture
def valid_json(valid_payload) -> str:
    return json.dumps(valid_payload)
