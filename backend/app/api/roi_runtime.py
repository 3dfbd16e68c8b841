# backend/app/api/roi_runtime.py
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional

# Birim kW başına sabitler
ENERGY_KWH_PER_KW_YEAR = Decimal("1600")   # ~1600 kWh/kW/yıl
CO2_TONNES_PER_KW_YEAR = Decimal("1.3")    # ~1.3 ton/kW/yıl
TARIFF_PER_KWH = Decimal("8")              # ~Rs 8/kWh
SAVINGS_YEARS = Decimal("22")
TREES_PER_KW = Decimal("62")

DEFAULT_PAYBACK_MIN = 2.5
DEFAULT_PAYBACK_MAX = 3.5

ROI_FIELDS = (
    "energy_generation_per_year",
    "co2_savings_per_year",
    "payback_period_min",
    "payback_period_max",
    "total_savings_25_years",
    "trees_equivalent",
    "co2_eliminated_total",
)


def _round(v: Decimal, places: str = "1") -> Decimal:
    return v.quantize(Decimal(places), rounding=ROUND_HALF_UP)


def default_roi(plant_capacity) -> Dict[str, Any]:
    """
    Saf fonksiyon: aynı kapasite her zaman aynı projeksiyonu verir.
    Geri ödeme aralığı kapasiteden hesaplanmaz; sabit varsayılan çifttir.
    """
    cap = Decimal(str(plant_capacity))
    return {
        "energy_generation_per_year": int(_round(cap * ENERGY_KWH_PER_KW_YEAR)),
        "co2_savings_per_year": float(_round(cap * CO2_TONNES_PER_KW_YEAR, "0.1")),
        "payback_period_min": DEFAULT_PAYBACK_MIN,
        "payback_period_max": DEFAULT_PAYBACK_MAX,
        "total_savings_25_years": int(_round(cap * ENERGY_KWH_PER_KW_YEAR * TARIFF_PER_KWH * SAVINGS_YEARS)),
        "trees_equivalent": int(_round(cap * TREES_PER_KW)),
        "co2_eliminated_total": int(_round(cap * CO2_TONNES_PER_KW_YEAR * SAVINGS_YEARS)),
    }


def resolve_roi(plant_capacity, override: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Çağıranın verdiği alanlar önceliklidir; eksik alanlar hesaplanan varsayılandan gelir."""
    roi = default_roi(plant_capacity)
    if override:
        for k in ROI_FIELDS:
            v = override.get(k)
            if v is not None:
                roi[k] = v
    return roi
