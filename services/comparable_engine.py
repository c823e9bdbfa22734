# services/comparable_engine.py

"""
Comparable Box-Office Engine

Maps an artist's engagement metrics to a three-scenario box-office
forecast calibrated on benchmark artists with known box office:

    Step A: max normalization over the cohort (benchmarks + target)
    Step B: demand index        D  = Σ weight_d × x'_d
    Step C: live conversion     LC = clip(c + Σ coef_d × x'_d, min, max)
    Step D: combined index      F  = D × LC
    Step E: comparable          baseline_i = box_office_i × F_target / F_i
    Step F: tier premium        scenario = baseline × premium[tier]

Pure computation: no I/O, no shared state, a new result per call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from statistics import fmean
from typing import Any, Dict, List, Mapping, Optional, Tuple

from services.comparable_config import (
    DEFAULT_CONFIG,
    ComparableConfig,
    ConversionConfig,
    TierPremium,
    frozen_mapping,
)
from services.errors import InvalidInput

logger = logging.getLogger(__name__)

TARGET_ID = "target"
TARGET_NAME = "Target"

NORMALIZATION_NOTE = (
    "Max normalization: x' = x / max(x), where max(x) is taken over every "
    "artist in the cohort, benchmarks included"
)

SCENARIO_LABELS = {
    "conservative": "Conservative",
    "neutral": "Neutral",
    "aggressive": "Aggressive",
}


# =====================================================================
# RESULT TYPES
# =====================================================================
@dataclass(frozen=True)
class CohortMember:
    id: str
    name: str
    raw: Mapping[str, float]
    normalized: Mapping[str, float]
    demand_index: float
    conversion_rate: float
    combined_index: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "rawData": dict(self.raw),
            "normalized": dict(self.normalized),
            "D": self.demand_index,
            "LC": self.conversion_rate,
            "F": self.combined_index,
        }


@dataclass(frozen=True)
class AnchorResult:
    id: str
    name: str
    anchor_tier: str
    reference_box_office: float
    ratio: float
    implied_baseline: float
    demand_index: float
    conversion_rate: float
    combined_index: float

    @property
    def formula(self) -> str:
        return f"{self.reference_box_office} × {self.ratio:.3f} = {self.implied_baseline:.2f}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "anchorTier": self.anchor_tier,
            "anchorBoxOffice": self.reference_box_office,
            "ratio": self.ratio,
            "impliedBaseline": self.implied_baseline,
            "anchorD": self.demand_index,
            "anchorLC": self.conversion_rate,
            "anchorF": self.combined_index,
            "formula": self.formula,
        }


@dataclass(frozen=True)
class BaselineRange:
    values: Tuple[float, ...]
    min: float
    avg: float
    max: float


@dataclass(frozen=True)
class Scenario:
    name: str
    baseline: float
    premium: float
    value: float

    @property
    def label(self) -> str:
        return SCENARIO_LABELS[self.name]

    @property
    def formula(self) -> str:
        return f"{self.baseline:.2f} × {self.premium} = {self.value:.2f}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "label": self.label,
            "premium": self.premium,
            "baseline": self.baseline,
            "formula": self.formula,
        }


@dataclass(frozen=True)
class EstimationResult:
    dimensions: Tuple[str, ...]
    max_values: Mapping[str, float]
    members: Tuple[CohortMember, ...]
    anchors: Tuple[AnchorResult, ...]
    baseline: BaselineRange
    target_tier: str
    premium_tier: str
    conservative: Scenario
    neutral: Scenario
    aggressive: Scenario

    @property
    def target(self) -> CohortMember:
        return self.members[-1]

    @property
    def range(self) -> Tuple[float, float]:
        return (self.conservative.value, self.aggressive.value)

    @property
    def mid(self) -> float:
        return self.neutral.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "normalization": {
                "dimensions": list(self.dimensions),
                "maxValues": dict(self.max_values),
                "explanation": NORMALIZATION_NOTE,
            },
            "indices": [m.to_dict() for m in self.members],
            "anchorResults": [a.to_dict() for a in self.anchors],
            "baseline": {
                "values": list(self.baseline.values),
                "min": self.baseline.min,
                "avg": self.baseline.avg,
                "max": self.baseline.max,
                "fromAnchors": [
                    {"name": a.name, "formula": a.formula, "value": a.implied_baseline}
                    for a in self.anchors
                ],
            },
            "targetTier": self.target_tier,
            "premiumTier": self.premium_tier,
            "output": {
                "conservative": self.conservative.to_dict(),
                "neutral": self.neutral.to_dict(),
                "aggressive": self.aggressive.to_dict(),
                "range": list(self.range),
                "mid": self.mid,
            },
        }


# =====================================================================
# STEPS
# =====================================================================
def _clip(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def _safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def max_values_for(
    dimensions: Tuple[str, ...],
    cohort: List[Mapping[str, float]],
) -> Dict[str, float]:
    return {
        dim: max(float(metrics.get(dim, 0) or 0) for metrics in cohort)
        for dim in dimensions
    }


def normalize(
    metrics: Mapping[str, float],
    max_values: Mapping[str, float],
) -> Dict[str, float]:
    return {
        dim: _safe_ratio(float(metrics.get(dim, 0) or 0), max_v)
        for dim, max_v in max_values.items()
    }


def demand_index(normalized: Mapping[str, float], weights: Mapping[str, float]) -> float:
    d = 0.0
    for dim, value in normalized.items():
        d += weights.get(dim, 0.0) * value
    return d


def conversion_rate(normalized: Mapping[str, float], conversion: ConversionConfig) -> float:
    raw = conversion.base_constant
    for dim, coef in conversion.coefficients.items():
        raw += coef * normalized.get(dim, 0.0)
    return _clip(raw, conversion.min_bound, conversion.max_bound)


def _score_member(
    member_id: str,
    name: str,
    metrics: Mapping[str, float],
    max_values: Mapping[str, float],
    weights: Mapping[str, float],
    conversion: ConversionConfig,
) -> CohortMember:
    normalized = normalize(metrics, max_values)
    d = demand_index(normalized, weights)
    lc = conversion_rate(normalized, conversion)
    return CohortMember(
        id=member_id,
        name=name,
        raw=frozen_mapping({dim: float(metrics.get(dim, 0) or 0) for dim in max_values}),
        normalized=frozen_mapping(normalized),
        demand_index=d,
        conversion_rate=lc,
        combined_index=d * lc,
    )


def _scenario(name: str, baseline: float, premium: TierPremium) -> Scenario:
    multiplier = getattr(premium, name)
    return Scenario(name=name, baseline=baseline, premium=multiplier, value=baseline * multiplier)


# =====================================================================
# ESTIMATE
# =====================================================================
def estimate(
    target_metrics: Mapping[str, float],
    config: Optional[ComparableConfig] = None,
    target_tier: Optional[str] = None,
) -> EstimationResult:
    """
    Runs the Comparable calculation for one target artist.

    target_metrics: dimension id -> non-negative value; its keys define
        the dimensions that are normalized and weighted.
    config: model parameters; the built-in default when omitted.
    target_tier: city tier for the premium; unknown tiers fall back to
        config.default_tier.
    """
    if not target_metrics:
        raise InvalidInput("Artist metrics are required")

    config = config or DEFAULT_CONFIG
    if not config.benchmarks:
        raise InvalidInput("At least one benchmark artist is required")

    tier = target_tier or config.default_tier
    dimensions = tuple(target_metrics.keys())

    logger.debug(
        "comparable_estimate tier=%s dimensions=%d benchmarks=%d",
        tier, len(dimensions), len(config.benchmarks),
    )

    # Step A: cohort + maxima
    cohort = [(b.id, b.name, b.metrics) for b in config.benchmarks]
    cohort.append((TARGET_ID, TARGET_NAME, target_metrics))
    max_values = max_values_for(dimensions, [metrics for _, _, metrics in cohort])

    # Steps B-D
    weights = config.weight_map()
    members = tuple(
        _score_member(member_id, name, metrics, max_values, weights, config.conversion)
        for member_id, name, metrics in cohort
    )
    target = members[-1]

    # Step E: one implied anchor-tier baseline per benchmark
    anchors = tuple(
        _anchor(benchmark, member, target.combined_index)
        for benchmark, member in zip(config.benchmarks, members)
    )
    values = tuple(a.implied_baseline for a in anchors)
    lo, hi = min(values), max(values)
    baseline = BaselineRange(
        values=values,
        min=lo,
        avg=_clip(fmean(values), lo, hi),
        max=hi,
    )

    # Step F
    premium_tier, premium = config.premium_for(tier)

    return EstimationResult(
        dimensions=dimensions,
        max_values=frozen_mapping(max_values),
        members=members,
        anchors=anchors,
        baseline=baseline,
        target_tier=tier,
        premium_tier=premium_tier,
        conservative=_scenario("conservative", baseline.min, premium),
        neutral=_scenario("neutral", baseline.avg, premium),
        aggressive=_scenario("aggressive", baseline.max, premium),
    )


def _anchor(benchmark, member: CohortMember, target_f: float) -> AnchorResult:
    ratio = _safe_ratio(target_f, member.combined_index)
    return AnchorResult(
        id=benchmark.id,
        name=benchmark.name,
        anchor_tier=benchmark.city_tier,
        reference_box_office=benchmark.reference_box_office,
        ratio=ratio,
        implied_baseline=benchmark.reference_box_office * ratio,
        demand_index=member.demand_index,
        conversion_rate=member.conversion_rate,
        combined_index=member.combined_index,
    )
