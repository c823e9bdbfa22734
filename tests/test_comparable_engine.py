import random
from dataclasses import replace

import pytest

from services.comparable_config import (
    DEFAULT_CONFIG,
    BenchmarkArtist,
    ConversionConfig,
    frozen_mapping,
)
from services.comparable_engine import conversion_rate, estimate
from services.errors import InvalidInput

CARDI_B = {"search_index": 388, "platform_a": 80.6, "platform_b": 82.0}


def _benchmark(bid, box_office, metrics):
    return BenchmarkArtist(
        id=bid, name=bid.title(), reference_box_office=box_office, metrics=frozen_mapping(metrics)
    )


COHORTS = [
    CARDI_B,
    {"search_index": 0, "platform_a": 0, "platform_b": 0},
    {"search_index": 1200, "platform_a": 300, "platform_b": 0.5},
    {"search_index": 50, "platform_a": 2.0},
    {"search_index": 616, "tiktok": 40},
]


# ----------------------------------------------------------
# Reference scenario (default config, Cardi B, tier1)
# ----------------------------------------------------------
def test_reference_normalization_maxima():
    result = estimate(CARDI_B)
    assert dict(result.max_values) == {"search_index": 616, "platform_a": 126.6, "platform_b": 82.0}


def test_reference_target_indices():
    target = estimate(CARDI_B).target

    assert target.id == "target"
    assert target.normalized["search_index"] == pytest.approx(0.62987, abs=1e-3)
    assert target.normalized["platform_a"] == pytest.approx(0.63665, abs=1e-3)
    assert target.normalized["platform_b"] == 1.0
    assert target.demand_index == pytest.approx(0.706, abs=1e-3)
    # 0.60 + 0.40 × 0.6367 - 0.20 × 1.0
    assert target.conversion_rate == pytest.approx(0.655, abs=1e-3)
    assert target.combined_index == pytest.approx(0.462, abs=1e-3)


def test_reference_benchmark_indices():
    travis, kanye, _ = estimate(CARDI_B).members

    assert travis.demand_index == pytest.approx(0.557, abs=1e-3)
    assert travis.conversion_rate == pytest.approx(0.998, abs=1e-3)
    assert travis.combined_index == pytest.approx(0.556, abs=1e-3)
    assert kanye.demand_index == pytest.approx(0.760, abs=1e-3)
    assert kanye.conversion_rate == pytest.approx(0.881, abs=1e-3)
    assert kanye.combined_index == pytest.approx(0.669, abs=1e-3)


def test_reference_baselines_and_scenarios():
    result = estimate(CARDI_B, DEFAULT_CONFIG, "tier1")
    travis, kanye = result.anchors

    assert travis.ratio == pytest.approx(0.832, abs=1e-3)
    assert kanye.ratio == pytest.approx(0.691, abs=1e-3)
    assert travis.implied_baseline == pytest.approx(65.03, abs=0.01)
    assert kanye.implied_baseline == pytest.approx(35.24, abs=0.01)

    assert result.baseline.min == kanye.implied_baseline
    assert result.baseline.max == travis.implied_baseline
    assert result.baseline.avg == pytest.approx(50.13, abs=0.01)

    assert result.conservative.value == pytest.approx(40.52, abs=0.01)
    assert result.neutral.value == pytest.approx(62.67, abs=0.01)
    assert result.aggressive.value == pytest.approx(87.79, abs=0.01)
    assert result.range == (result.conservative.value, result.aggressive.value)
    assert result.mid == result.neutral.value

    # Actual ordering for the reference scenario (not guaranteed in general)
    assert result.conservative.value < result.neutral.value < result.aggressive.value


def test_reference_formula_trace():
    result = estimate(CARDI_B)
    assert result.anchors[0].formula == "78.15 × 0.832 = 65.03"
    assert result.conservative.formula.endswith("× 1.15 = 40.52")
    assert result.to_dict()["output"]["neutral"]["label"] == "Neutral"


# ----------------------------------------------------------
# Properties
# ----------------------------------------------------------
@pytest.mark.parametrize("metrics", COHORTS)
def test_normalized_values_in_unit_interval(metrics):
    result = estimate(metrics)

    for dim in result.dimensions:
        values = [m.normalized[dim] for m in result.members]
        assert all(0.0 <= v <= 1.0 for v in values)
        if result.max_values[dim] > 0:
            assert 1.0 in values
        else:
            assert values == [0.0] * len(values)


@pytest.mark.parametrize("metrics", COHORTS)
def test_combined_index_non_negative_and_baseline_ordered(metrics):
    result = estimate(metrics)

    for m in result.members:
        assert m.combined_index >= 0
        assert m.combined_index == m.demand_index * m.conversion_rate
    assert result.baseline.min <= result.baseline.avg <= result.baseline.max


def test_identical_benchmarks_keep_average_inside_range():
    config = replace(DEFAULT_CONFIG, benchmarks=tuple(
        _benchmark(f"b{i}", 0.1, {"search_index": 10}) for i in range(3)
    ))
    result = estimate({"search_index": 10}, config)

    assert result.baseline.min <= result.baseline.avg <= result.baseline.max
    assert result.baseline.avg == result.baseline.min == result.baseline.max


def test_conversion_rate_always_clipped():
    rng = random.Random(7)
    for _ in range(200):
        lo = rng.uniform(-2, 2)
        hi = lo + rng.uniform(0, 2)
        conversion = ConversionConfig(
            base_constant=rng.uniform(-5, 5),
            coefficients=frozen_mapping({"a": rng.uniform(-10, 10), "b": rng.uniform(-10, 10)}),
            min_bound=lo,
            max_bound=hi,
        )
        normalized = {"a": rng.uniform(-3, 3), "b": rng.uniform(-3, 3)}
        assert lo <= conversion_rate(normalized, conversion) <= hi


def test_reference_box_office_scales_implied_baseline():
    base = estimate(CARDI_B)
    travis, kanye = DEFAULT_CONFIG.benchmarks
    doubled = replace(
        DEFAULT_CONFIG,
        benchmarks=(replace(travis, reference_box_office=travis.reference_box_office * 2), kanye),
    )
    result = estimate(CARDI_B, doubled)

    assert result.anchors[0].implied_baseline == pytest.approx(2 * base.anchors[0].implied_baseline)
    assert result.anchors[1].implied_baseline == base.anchors[1].implied_baseline


def test_estimate_is_idempotent():
    assert estimate(CARDI_B, DEFAULT_CONFIG, "tier2").to_dict() == \
        estimate(CARDI_B, DEFAULT_CONFIG, "tier2").to_dict()


def test_cohort_membership_changes_target_result():
    base = estimate(CARDI_B)
    bigger = replace(
        DEFAULT_CONFIG,
        benchmarks=DEFAULT_CONFIG.benchmarks + (
            _benchmark("giant", 120.0, {"search_index": 2000, "platform_a": 500, "platform_b": 300}),
        ),
    )
    result = estimate(CARDI_B, bigger)

    assert result.max_values["search_index"] == 2000
    assert result.target.demand_index < base.target.demand_index
    assert len(result.baseline.values) == 3


# ----------------------------------------------------------
# Edge cases
# ----------------------------------------------------------
def test_empty_metrics_rejected():
    with pytest.raises(InvalidInput):
        estimate({})


def test_no_benchmarks_rejected():
    with pytest.raises(InvalidInput):
        estimate(CARDI_B, replace(DEFAULT_CONFIG, benchmarks=()))


def test_zero_index_benchmark_yields_zero_ratio():
    config = replace(
        DEFAULT_CONFIG,
        benchmarks=DEFAULT_CONFIG.benchmarks + (_benchmark("silent", 10.0, {}),),
    )
    result = estimate(CARDI_B, config)
    silent = result.anchors[-1]

    assert silent.combined_index == 0
    assert silent.ratio == 0
    assert silent.implied_baseline == 0
    assert result.baseline.min == 0


def test_unknown_dimension_has_no_weight():
    result = estimate({"search_index": 388, "tiktok": 10})
    target = result.target

    assert target.normalized["tiktok"] == 1.0
    assert target.demand_index == pytest.approx(0.45 * 388 / 616)


def test_unknown_tier_falls_back_to_default_tier():
    result = estimate(CARDI_B, DEFAULT_CONFIG, "tier9")

    assert result.target_tier == "tier9"
    assert result.premium_tier == "tier1"
    assert result.aggressive.premium == 1.35


def test_tier_premiums_applied_per_tier():
    result = estimate(CARDI_B, DEFAULT_CONFIG, "tier3")

    assert result.premium_tier == "tier3"
    assert result.conservative.value == pytest.approx(result.baseline.min * 0.85)
    assert result.neutral.value == pytest.approx(result.baseline.avg * 0.95)
    assert result.aggressive.value == pytest.approx(result.baseline.max * 1.05)


def test_default_config_is_not_mutated():
    before = dict(DEFAULT_CONFIG.benchmarks[0].metrics)
    estimate({"search_index": 1, "extra": 3})
    assert dict(DEFAULT_CONFIG.benchmarks[0].metrics) == before
    with pytest.raises(TypeError):
        DEFAULT_CONFIG.benchmarks[0].metrics["search_index"] = 0
