from dataclasses import dataclass
from typing import Annotated, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Phone(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    brand: str
    price_inr: float
    price_range: str = ""
    battery_mah: Optional[int] = None
    camera_mp: Optional[float] = None
    rear_camera_details: str = ""
    front_camera_mp: Optional[float] = None
    screen_inches: Optional[float] = None
    display_type: str = ""
    refresh_rate: Optional[int] = None
    ram_gb: Optional[float] = None
    storage_gb: Optional[float] = None
    processor: str = ""
    fast_charging_w: Optional[float] = None
    has_5g: bool = False
    weight_grams: Optional[float] = None
    os: str = ""
    key_features: str = ""


@dataclass(frozen=True)
class ComparisonRequest:
    phones: List[Phone]
    priorities: List[str]
    budget: Optional[float] = None
    additional_requirements: Optional[str] = None

    @property
    def phone_ids(self) -> List[str]:
        return [p.id for p in self.phones]


# Comparison Result: what a model must return. Strict so that "8" is never
# accepted where 8 is expected.

class _ResultModel(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True)


PriorityScore = Annotated[float, Field(ge=0, le=10)]


class SelectedPhone(_ResultModel):
    phone_id: str
    phone_name: str
    reason_for_selection: str
    how_it_matches_priorities: str


class RunnerUp(_ResultModel):
    phone_id: str
    phone_name: str
    why_not_selected: str


class PhoneEvaluation(_ResultModel):
    phone_id: str
    phone_name: str
    price_inr: float
    key_strengths: List[str]
    key_weaknesses: List[str]
    score_by_priority: Dict[str, PriorityScore]


class Tradeoff(_ResultModel):
    phone_a: str
    phone_b: str
    what_a_gains: str
    what_a_loses: str
    recommendation: str


class SpecComparison(_ResultModel):
    spec_name: str
    values: Dict[str, Union[str, int, float]]
    winner: str
    analysis: str


class BudgetAnalysis(_ResultModel):
    selected_phone_price: float
    price_range: str
    value_for_money_explanation: str
    alternative_if_budget_increases: Optional[str] = None
    alternative_if_budget_decreases: Optional[str] = None


class ComparisonResult(_ResultModel):
    selected_phone: SelectedPhone
    runner_up: Optional[RunnerUp] = None
    all_phones_evaluated: List[PhoneEvaluation]
    tradeoff_analysis: List[Tradeoff]
    specification_comparison: List[SpecComparison]
    budget_analysis: BudgetAnalysis
    summary: str
