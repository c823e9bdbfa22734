"""
comparable.py

Comparable Box-Office API
────────────────────────────────────────
- Default model parameters
- Calculation with optional parameter overrides
- Fixed demo (Cardi B) with step captions
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import APIRouter, HTTPException

from schemas import CalculateRequest
from services.comparable_config import ComparableConfig
from services.comparable_engine import EstimationResult, estimate
from services.config_loader import (
    coerce_metrics,
    config_to_dict,
    default_config,
    merge_overrides,
)
from services.errors import ComparableError, ComputationFailure

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Comparable Estimator"],
)

DEMO_ARTIST = "Cardi B"
DEMO_METRICS = {"search_index": 388.0, "platform_a": 80.6, "platform_b": 82.0}
DEMO_TIER = "tier1"
DEMO_STEPS = {
    "step1": "Step A: normalization - divide each dimension by its cohort maximum",
    "step2": "Step B: demand index D = Σ(weight_i × dimension_i')",
    "step3": "Step C: conversion rate LC = clip(0.60 + 0.40×platform_a' - 0.20×platform_b', 0.60, 1.00)",
    "step4": "Step D: combined index F = D × LC",
    "step5": "Step E: comparable calibration - map the F ratio onto each benchmark's real box office",
    "step6": "Step F: tier premium - project the tier-3 baseline onto the target city tier",
}


# ============================================================
# Helpers
# ============================================================

def http_error(err: ComparableError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.to_detail())


def run_estimate(
    metrics: Mapping[str, float],
    config: ComparableConfig,
    target_tier: Optional[str],
) -> EstimationResult:
    """
    estimate() with unexpected failures reported as ComputationFailure.
    """
    try:
        return estimate(metrics, config, target_tier)
    except ComparableError:
        raise
    except Exception as e:
        logger.exception("Comparable calculation failed")
        raise ComputationFailure("Calculation failed") from e


def calculate_payload(
    artist_data: Any,
    custom_params: Any,
    target_tier: Optional[str],
) -> Dict[str, Any]:
    """
    Calculate: validate metrics, merge overrides over the defaults, estimate.
    """
    metrics = coerce_metrics(artist_data)
    config = merge_overrides(default_config(), custom_params)
    tier = target_tier or config.default_tier

    result = run_estimate(metrics, config, tier)
    return {
        "success": True,
        "input": {
            "artistData": metrics,
            "params": config_to_dict(config),
            "targetTier": tier,
        },
        "result": result.to_dict(),
    }


# ============================================================
# 1. Default parameters
# ============================================================

@router.get("/params/default")
def get_default_params():
    return config_to_dict(default_config())


# ============================================================
# 2. Calculate
# ============================================================

@router.post("/calculate")
def calculate(req: CalculateRequest):
    try:
        return calculate_payload(req.artistData, req.customParams, req.targetTier)
    except ComparableError as e:
        raise http_error(e)


# ============================================================
# 3. Fixed demo
# ============================================================

@router.get("/demo")
@router.get("/demo/cardib")
def run_demo():
    try:
        result = run_estimate(DEMO_METRICS, default_config(), DEMO_TIER)
    except ComparableError as e:
        raise http_error(e)

    return {
        "success": True,
        "artist": DEMO_ARTIST,
        "input": dict(DEMO_METRICS),
        "targetTier": DEMO_TIER,
        "result": result.to_dict(),
        "explanation": dict(DEMO_STEPS),
    }
