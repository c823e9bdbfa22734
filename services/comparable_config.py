# services/comparable_config.py
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Tuple


def frozen_mapping(values: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class WeightEntry:
    id: str
    name: str
    value: float


@dataclass(frozen=True)
class ConversionConfig:
    """LC = clip(base_constant + Σ coefficients[d] × normalized[d], min_bound, max_bound)"""

    base_constant: float
    coefficients: Mapping[str, float]
    min_bound: float
    max_bound: float


@dataclass(frozen=True)
class BenchmarkArtist:
    id: str
    name: str
    reference_box_office: float  # millions, anchor-tier single show
    metrics: Mapping[str, float]
    city: str = ""
    city_tier: str = "tier3"


@dataclass(frozen=True)
class CityTier:
    id: str
    name: str
    cities: str
    multiplier: float


@dataclass(frozen=True)
class TierPremium:
    conservative: float
    neutral: float
    aggressive: float


# Used only when neither the requested tier nor the default tier has premiums.
FALLBACK_PREMIUM = TierPremium(conservative=1.15, neutral=1.25, aggressive=1.35)


@dataclass(frozen=True)
class ComparableConfig:
    weights: Tuple[WeightEntry, ...]
    conversion: ConversionConfig
    benchmarks: Tuple[BenchmarkArtist, ...]
    tier_premiums: Mapping[str, TierPremium]
    city_tiers: Tuple[CityTier, ...] = ()
    default_tier: str = "tier1"
    anchor_tier: str = "tier3"

    def weight_map(self) -> Dict[str, float]:
        return {w.id: w.value for w in self.weights}

    def premium_for(self, tier: str) -> Tuple[str, TierPremium]:
        """
        Returns (tier actually applied, premium triple).
        Unknown tiers fall back to default_tier.
        """
        if tier in self.tier_premiums:
            return tier, self.tier_premiums[tier]
        if self.default_tier in self.tier_premiums:
            return self.default_tier, self.tier_premiums[self.default_tier]
        return self.default_tier, FALLBACK_PREMIUM


# ------------------------------------------------------------
# Built-in defaults (anchor market: tier-3 cities)
# ------------------------------------------------------------
DEFAULT_WEIGHTS: Tuple[WeightEntry, ...] = (
    WeightEntry(id="search_index", name="Baidu search index", value=0.45),
    WeightEntry(id="platform_a", name="NetEase Cloud Music followers (10k)", value=0.35),
    WeightEntry(id="platform_b", name="Xiaohongshu followers (10k)", value=0.20),
)

DEFAULT_CONVERSION = ConversionConfig(
    base_constant=0.60,
    coefficients=frozen_mapping({"platform_a": 0.40, "platform_b": -0.20}),
    min_bound=0.60,
    max_bound=1.00,
)

DEFAULT_CITY_TIERS: Tuple[CityTier, ...] = (
    CityTier(id="tier1", name="Tier-1 cities", cities="Shenzhen/Hangzhou/Shanghai/Beijing", multiplier=1.0),
    CityTier(id="tier2", name="Tier-2 cities", cities="Chengdu/Wuhan/Nanjing/Xi'an", multiplier=0.85),
    CityTier(id="tier3", name="Tier-3 cities", cities="Changsha/Zhengzhou/Jinan/Qingdao", multiplier=0.70),
)

DEFAULT_TIER_PREMIUMS: Mapping[str, TierPremium] = MappingProxyType({
    "tier1": TierPremium(conservative=1.15, neutral=1.25, aggressive=1.35),
    "tier2": TierPremium(conservative=0.95, neutral=1.05, aggressive=1.15),
    "tier3": TierPremium(conservative=0.85, neutral=0.95, aggressive=1.05),
})

DEFAULT_BENCHMARKS: Tuple[BenchmarkArtist, ...] = (
    BenchmarkArtist(
        id="travis",
        name="Travis Scott",
        reference_box_office=78.15,
        city="Changsha",
        city_tier="tier3",
        metrics=frozen_mapping({"search_index": 280, "platform_a": 126.6, "platform_b": 1.0}),
    ),
    BenchmarkArtist(
        id="kanye",
        name="Kanye West",
        reference_box_office=51.00,
        city="Macau",
        city_tier="tier3",
        metrics=frozen_mapping({"search_index": 616, "platform_a": 99.7, "platform_b": 13.9}),
    ),
)

DEFAULT_CONFIG = ComparableConfig(
    weights=DEFAULT_WEIGHTS,
    conversion=DEFAULT_CONVERSION,
    benchmarks=DEFAULT_BENCHMARKS,
    tier_premiums=DEFAULT_TIER_PREMIUMS,
    city_tiers=DEFAULT_CITY_TIERS,
)
