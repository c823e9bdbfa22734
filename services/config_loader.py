# services/config_loader.py
"""
Comparable config adapter (JSON ↔ ComparableConfig)

The ONLY place where request payloads are turned into model parameters.
The engine never sees raw JSON; every accepted shape is normalized here:

- weights:     [{"id", "name"?, "value"}, ...]  or  {"<id>": value}
- benchmarks:  [{"id", ...}, ...]               or  {"<id>": {...}}
- benchmark:   metrics | data,  referenceBoxOffice | boxOffice,  cityTier | tier
- conversion:  baseConstant | constant,  minBound | min,  maxBound | max
               (section key: conversion | lc)
               netease_coef | xhs_coef  -> coefficients.platform_a | platform_b
- tierPremiums: tier1 | tier2 | tier3  or  toTier1 | toTier2 | toTier3
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from services.comparable_config import (
    DEFAULT_CONFIG,
    BenchmarkArtist,
    CityTier,
    ComparableConfig,
    ConversionConfig,
    TierPremium,
    WeightEntry,
    frozen_mapping,
)
from services.errors import InvalidInput

logger = logging.getLogger(__name__)

_WEIGHT_SUM_TOLERANCE = 1e-6

_LEGACY_TIER_KEYS = {
    "toTier1": "tier1",
    "toTier2": "tier2",
    "toTier3": "tier3",
}

_LEGACY_COEFFICIENT_KEYS = {
    "netease_coef": "platform_a",
    "xhs_coef": "platform_b",
}

_CONVERSION_KEYS = {
    "baseConstant", "constant",
    "minBound", "min",
    "maxBound", "max",
    "coefficients",
    *_LEGACY_COEFFICIENT_KEYS,
}


# =====================================================================
# Helpers
# =====================================================================
def _number(value: Any, field: str, *, non_negative: bool = False) -> float:
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number") from None
    except OverflowError:
        raise InvalidInput(f"{field} must be finite") from None
    if not math.isfinite(number):
        raise InvalidInput(f"{field} must be finite")
    if non_negative and number < 0:
        raise InvalidInput(f"{field} must be >= 0")
    return number


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _require_mapping(raw: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise InvalidInput(f"{field} must be an object")
    return raw


def _keyed_items(raw: Any, field: str) -> List[Dict[str, Any]]:
    """
    Accepts a list of objects carrying "id", or an object keyed by id.
    """
    if isinstance(raw, Mapping):
        items = []
        for key, value in raw.items():
            item = dict(_require_mapping(value, f"{field}.{key}"))
            item.setdefault("id", key)
            items.append(item)
        return items
    if isinstance(raw, (list, tuple)):
        return [dict(_require_mapping(v, f"{field}[{i}]")) for i, v in enumerate(raw)]
    raise InvalidInput(f"{field} must be a list or an object")


# =====================================================================
# Metrics
# =====================================================================
def coerce_metrics(raw: Any, field: str = "artistData") -> Dict[str, float]:
    """
    Validates a MetricSet: non-empty, numeric, finite, non-negative.
    """
    if not raw:
        raise InvalidInput(f"{field} is required and must not be empty")
    raw = _require_mapping(raw, field)

    metrics: Dict[str, float] = {}
    for dim, value in raw.items():
        if not isinstance(dim, str) or not dim.strip():
            raise InvalidInput(f"{field} keys must be non-empty strings")
        metrics[dim] = _number(value, f"{field}.{dim}", non_negative=True)
    return metrics


# =====================================================================
# Sections
# =====================================================================
def parse_weights(raw: Any) -> Tuple[WeightEntry, ...]:
    if isinstance(raw, Mapping):
        entries = tuple(
            WeightEntry(id=str(k), name=str(k), value=_number(v, f"weights.{k}", non_negative=True))
            for k, v in raw.items()
        )
    elif isinstance(raw, (list, tuple)):
        entries = tuple(
            WeightEntry(
                id=str(item["id"]),
                name=str(item.get("name") or item["id"]),
                value=_number(item.get("value"), f"weights.{item['id']}", non_negative=True),
            )
            for item in (_weight_item(w, i) for i, w in enumerate(raw))
        )
    else:
        raise InvalidInput("weights must be a list or an object")

    total = sum(w.value for w in entries)
    if entries and abs(total - 1.0) > _WEIGHT_SUM_TOLERANCE:
        logger.warning("Comparable weights sum to %.4f (expected 1.0)", total)
    return entries


def _weight_item(raw: Any, index: int) -> Mapping[str, Any]:
    item = _require_mapping(raw, f"weights[{index}]")
    if not item.get("id"):
        raise InvalidInput(f"weights[{index}].id is required")
    return item


def parse_conversion(raw: Any, base: Optional[ConversionConfig] = None) -> ConversionConfig:
    """
    With a base, only the supplied fields are replaced (field-wise merge).
    """
    raw = _require_mapping(raw, "conversion")
    unknown = sorted(str(k) for k in raw if k not in _CONVERSION_KEYS)
    if unknown:
        raise InvalidInput(f"conversion has unknown fields: {', '.join(unknown)}")

    def pick(field: str, *keys: str, fallback: Optional[float]) -> float:
        value = _first(raw, *keys)
        if value is None:
            if fallback is None:
                raise InvalidInput(f"conversion.{field} is required")
            return fallback
        return _number(value, f"conversion.{field}")

    base_constant = pick("baseConstant", "baseConstant", "constant",
                         fallback=base.base_constant if base else None)
    min_bound = pick("minBound", "minBound", "min", fallback=base.min_bound if base else None)
    max_bound = pick("maxBound", "maxBound", "max", fallback=base.max_bound if base else None)

    if min_bound > max_bound:
        raise InvalidInput("conversion.minBound must not exceed conversion.maxBound")

    coefficients_raw = raw.get("coefficients")
    if coefficients_raw is None:
        coefficients = dict(base.coefficients) if base else {}
    else:
        coefficients_raw = _require_mapping(coefficients_raw, "conversion.coefficients")
        coefficients = {
            str(dim): _number(v, f"conversion.coefficients.{dim}")
            for dim, v in coefficients_raw.items()
        }

    for legacy_key, dim in _LEGACY_COEFFICIENT_KEYS.items():
        if raw.get(legacy_key) is not None:
            coefficients[dim] = _number(raw[legacy_key], f"conversion.{legacy_key}")

    return ConversionConfig(
        base_constant=base_constant,
        coefficients=frozen_mapping(coefficients),
        min_bound=min_bound,
        max_bound=max_bound,
    )


def parse_benchmarks(raw: Any, anchor_tier: str = "tier3") -> Tuple[BenchmarkArtist, ...]:
    items = _keyed_items(raw, "benchmarks")
    if not items:
        raise InvalidInput("At least one benchmark artist is required")

    benchmarks = []
    for item in items:
        bid = str(item.get("id") or "").strip()
        if not bid:
            raise InvalidInput("benchmarks[].id is required")

        metrics_raw = _first(item, "metrics", "data")
        if metrics_raw is None:
            raise InvalidInput(f"benchmarks.{bid}.metrics is required")
        metrics_raw = _require_mapping(metrics_raw, f"benchmarks.{bid}.metrics")

        benchmarks.append(BenchmarkArtist(
            id=bid,
            name=str(item.get("name") or bid),
            reference_box_office=_number(
                _first(item, "referenceBoxOffice", "boxOffice"),
                f"benchmarks.{bid}.referenceBoxOffice",
                non_negative=True,
            ),
            metrics=frozen_mapping({
                str(dim): _number(v, f"benchmarks.{bid}.metrics.{dim}", non_negative=True)
                for dim, v in metrics_raw.items()
            }),
            city=str(item.get("city") or ""),
            city_tier=str(_first(item, "cityTier", "tier") or anchor_tier),
        ))
    return tuple(benchmarks)


def parse_tier_premiums(raw: Any) -> Mapping[str, TierPremium]:
    raw = _require_mapping(raw, "tierPremiums")
    if not raw:
        raise InvalidInput("tierPremiums must not be empty")

    premiums: Dict[str, TierPremium] = {}
    for tier, triple in raw.items():
        triple = _require_mapping(triple, f"tierPremiums.{tier}")
        premiums[_LEGACY_TIER_KEYS.get(tier, str(tier))] = TierPremium(
            conservative=_number(triple.get("conservative"), f"tierPremiums.{tier}.conservative"),
            neutral=_number(triple.get("neutral"), f"tierPremiums.{tier}.neutral"),
            aggressive=_number(triple.get("aggressive"), f"tierPremiums.{tier}.aggressive"),
        )
    return MappingProxyType(premiums)


def parse_city_tiers(raw: Any) -> Tuple[CityTier, ...]:
    tiers = []
    for i, item in enumerate(_keyed_items(raw, "cityTiers")):
        if not item.get("id"):
            raise InvalidInput(f"cityTiers[{i}].id is required")
        tid = str(item["id"])
        tiers.append(CityTier(
            id=tid,
            name=str(item.get("name") or tid),
            cities=str(item.get("cities") or ""),
            multiplier=_number(item.get("multiplier", 1.0), f"cityTiers.{tid}.multiplier"),
        ))
    return tuple(tiers)


# =====================================================================
# Whole config
# =====================================================================
def default_config() -> ComparableConfig:
    return DEFAULT_CONFIG


def merge_overrides(
    base: ComparableConfig,
    overrides: Optional[Mapping[str, Any]],
) -> ComparableConfig:
    """
    Shallow merge per top-level section.

    weights / benchmarks / tierPremiums / cityTiers replace the base section;
    conversion merges field-wise over the base conversion params.
    """
    if not overrides:
        return base
    overrides = _require_mapping(overrides, "customParams")

    changes: Dict[str, Any] = {}
    if overrides.get("weights") is not None:
        changes["weights"] = parse_weights(overrides["weights"])

    conversion_raw = _first(overrides, "conversion", "lc")
    if conversion_raw is not None:
        changes["conversion"] = parse_conversion(conversion_raw, base=base.conversion)

    if overrides.get("benchmarks") is not None:
        changes["benchmarks"] = parse_benchmarks(overrides["benchmarks"], base.anchor_tier)

    if overrides.get("tierPremiums") is not None:
        changes["tier_premiums"] = parse_tier_premiums(overrides["tierPremiums"])

    if overrides.get("cityTiers") is not None:
        changes["city_tiers"] = parse_city_tiers(overrides["cityTiers"])

    return replace(base, **changes) if changes else base


def config_to_dict(config: ComparableConfig) -> Dict[str, Any]:
    """Canonical JSON document for a config (GetDefaultConfig body)."""
    return {
        "weights": [
            {"id": w.id, "name": w.name, "value": w.value}
            for w in config.weights
        ],
        "conversion": {
            "baseConstant": config.conversion.base_constant,
            "coefficients": dict(config.conversion.coefficients),
            "minBound": config.conversion.min_bound,
            "maxBound": config.conversion.max_bound,
        },
        "benchmarks": [
            {
                "id": b.id,
                "name": b.name,
                "city": b.city,
                "cityTier": b.city_tier,
                "referenceBoxOffice": b.reference_box_office,
                "metrics": dict(b.metrics),
            }
            for b in config.benchmarks
        ],
        "tierPremiums": {
            tier: {
                "conservative": p.conservative,
                "neutral": p.neutral,
                "aggressive": p.aggressive,
            }
            for tier, p in config.tier_premiums.items()
        },
        "cityTiers": [
            {"id": t.id, "name": t.name, "cities": t.cities, "multiplier": t.multiplier}
            for t in config.city_tiers
        ],
        "defaultTier": config.default_tier,
        "anchorTier": config.anchor_tier,
    }
