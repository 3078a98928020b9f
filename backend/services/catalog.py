# backend/services/catalog.py
"""
Phone catalog backed by a CSV file.

- PhoneCatalog(csv_path).all()              every phone, in file order
- PhoneCatalog(csv_path).in_budget(budget)   price <= budget, closest to budget first
- PhoneCatalog(csv_path).by_price_range(lbl) phones in a price band ("budget", "mid-range", ...)

The CSV is read once per catalog instance. A missing file is an empty catalog.
"""
from __future__ import annotations
import logging
import os
from typing import Any, Dict, List, Optional

import pandas as pd

from backend.models import Phone

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

EXPECTED_COLS = [
    "id", "name", "brand", "price_inr", "price_range", "battery_mah", "camera_mp",
    "rear_camera_details", "front_camera_mp", "screen_inches", "display_type",
    "refresh_rate", "ram_gb", "storage_gb", "processor", "fast_charging_w",
    "has_5g", "weight_grams", "os", "key_features",
]
INT_COLS = ["battery_mah", "refresh_rate"]
FLOAT_COLS = ["price_inr", "camera_mp", "front_camera_mp", "screen_inches", "ram_gb",
              "storage_gb", "fast_charging_w", "weight_grams"]
TEXT_COLS = ["id", "name", "brand", "price_range", "rear_camera_details", "display_type",
             "processor", "os", "key_features"]


def _as_bool(v, default=False):
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def _clean(v: Any) -> Any:
    if v is None:
        return None
    try:
        if pd.isna(v):
            return None
    except (TypeError, ValueError):
        pass
    return v


def _row_to_phone(row: Dict[str, Any]) -> Optional[Phone]:
    data: Dict[str, Any] = {}
    for c in TEXT_COLS:
        v = _clean(row.get(c))
        data[c] = "" if v is None or str(v).lower() == "nan" else str(v).strip()
    for c in INT_COLS:
        v = _clean(row.get(c))
        data[c] = int(v) if v is not None else None
    for c in FLOAT_COLS:
        v = _clean(row.get(c))
        data[c] = float(v) if v is not None else None
    data["has_5g"] = _as_bool(row.get("has_5g"))

    if not data["id"] or not data["name"] or data["price_inr"] is None:
        return None
    return Phone(**data)


class PhoneCatalog:
    def __init__(self, csv_path: str):
        self.csv_path = csv_path
        self._phones: Optional[List[Phone]] = None

    def _load_df(self) -> pd.DataFrame:
        if not os.path.exists(self.csv_path):
            logger.warning("Phone catalog not found at %s; using an empty catalog", self.csv_path)
            return pd.DataFrame(columns=EXPECTED_COLS)

        df = pd.read_csv(self.csv_path, dtype={"id": str}, low_memory=False)
        for c in EXPECTED_COLS:
            if c not in df.columns:
                df[c] = None
        # numeric coercion
        for c in INT_COLS + FLOAT_COLS:
            df[c] = pd.to_numeric(df[c], errors="coerce")
        return df

    def all(self) -> List[Phone]:
        if self._phones is not None:
            return list(self._phones)
        phones: List[Phone] = []
        skipped = 0
        for row in self._load_df().to_dict(orient="records"):
            phone = _row_to_phone(row)
            if phone is None:
                skipped += 1
                continue
            phones.append(phone)
        if skipped:
            logger.warning("Skipped %d catalog rows without id, name or price", skipped)
        logger.info("Loaded %d phones from %s", len(phones), self.csv_path)
        self._phones = phones
        return list(phones)

    def get(self, phone_id: str) -> Optional[Phone]:
        for p in self.all():
            if p.id == phone_id:
                return p
        return None

    def in_budget(self, budget: float) -> List[Phone]:
        """Phones priced at or under budget, most expensive (closest to budget) first."""
        phones = [p for p in self.all() if 0 < p.price_inr <= float(budget)]
        return sorted(phones, key=lambda p: p.price_inr, reverse=True)

    def by_price_range(self, price_range: str) -> List[Phone]:
        wanted = (price_range or "").strip().lower()
        return [p for p in self.all() if p.price_range.lower() == wanted]

    def price_ranges(self) -> List[str]:
        seen: List[str] = []
        for p in self.all():
            if p.price_range and p.price_range not in seen:
                seen.append(p.price_range)
        return seen
