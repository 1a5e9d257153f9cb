import math
from pydantic import BaseModel
from typing import Dict, Literal, Optional, Tuple

CoverageLevel = Literal["basic", "partial", "full"]

# cheapest first
COVERAGE_ORDER: Tuple[CoverageLevel, ...] = ("basic", "partial", "full")

COVERAGE_FACTORS: Dict[str, float] = {
    "basic": 1.00,
    "partial": 1.28,
    "full": 1.55,
}

CITY_FACTORS: Dict[str, float] = {
    "ljubljana": 1.05,
    "maribor": 1.03,
    "koper": 1.02,
    "celje": 1.01,
    "kranj": 1.02,
}

OTHER_CITY = "Other"
BASE_ANNUAL_EUR = 220


class PremiumValidationError(ValueError):
    pass


class PremiumResult(BaseModel):
    annual_eur: int
    monthly_eur: int
    breakdown: Dict[str, float]


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _finite(x) -> bool:
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False


def calculate_premium(vehicle_age: int, horsepower: int, city: Optional[str],
                      coverage_level: Optional[CoverageLevel]) -> PremiumResult:
    if not _finite(vehicle_age) or float(vehicle_age) < 0:
        raise PremiumValidationError(f"vehicle_age must be a non-negative number, got {vehicle_age!r}")
    if not _finite(horsepower) or float(horsepower) <= 0:
        raise PremiumValidationError(f"horsepower must be a positive number, got {horsepower!r}")
    if not coverage_level:
        raise PremiumValidationError("coverage_level is required")
    if coverage_level not in COVERAGE_FACTORS:
        raise PremiumValidationError(f"unknown coverage_level {coverage_level!r}")

    age = float(vehicle_age)
    hp = float(horsepower)

    age_factor = _clamp(1.10 - age * 0.02, 0.78, 1.15)
    hp_factor = _clamp(0.85 + hp / 200, 0.85, 1.60)
    city_factor = CITY_FACTORS.get((city or OTHER_CITY).strip().lower(), 1.0)
    coverage_factor = COVERAGE_FACTORS[coverage_level]

    annual = _round_half_up(BASE_ANNUAL_EUR * age_factor * hp_factor * city_factor * coverage_factor)
    monthly = _round_half_up(annual / 12)

    breakdown = {
        "base": float(BASE_ANNUAL_EUR),
        "age_factor": age_factor,
        "hp_factor": hp_factor,
        "city_factor": city_factor,
        "coverage_factor": coverage_factor,
    }
    return PremiumResult(annual_eur=annual, monthly_eur=monthly, breakdown=breakdown)
