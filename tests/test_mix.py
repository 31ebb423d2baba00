import pytest

from gwg_lca.core.factors import MixMode
from gwg_lca.core.mix import mix_total, normalize_mix, recipe_total, weighted_coefficient
from gwg_lca.models import ResinVariant


def test_percent_mode_divides_by_hundred_and_keeps_short_sums():
    ratios = normalize_mix({ResinVariant.TPS: 60.0, ResinVariant.PLA: 30.0}, MixMode.PERCENT)
    assert ratios[ResinVariant.TPS] == pytest.approx(0.6)
    assert ratios[ResinVariant.PLA] == pytest.approx(0.3)
    # 90 % stays 90 %, nothing is rescaled
    assert sum(ratios.values()) == pytest.approx(0.9)


def test_sum_mode_rescales_to_one():
    ratios = normalize_mix({"a": 3.0, "b": 1.0}, "sum")
    assert ratios == pytest.approx({"a": 0.75, "b": 0.25})


def test_sum_mode_shared_total_across_mixes():
    resin = {"a": 6.0, "b": 3.0}
    additive = {"c": 1.0}
    total = recipe_total(resin, additive)
    assert total == pytest.approx(10.0)
    ratios = normalize_mix(resin, MixMode.SUM, total)
    ratios.update(normalize_mix(additive, MixMode.SUM, total))
    assert sum(ratios.values()) == pytest.approx(1.0)
    assert ratios == pytest.approx({"a": 0.6, "b": 0.3, "c": 0.1})
    # PERCENT ignores the shared total
    assert normalize_mix(resin, MixMode.PERCENT, total) == pytest.approx({"a": 0.06, "b": 0.03})


def test_sum_mode_zero_shared_total_returns_input_unchanged():
    mix = {"a": 0.0}
    assert normalize_mix(mix, MixMode.SUM, recipe_total(mix, {})) == mix


def test_sum_mode_zero_total_returns_input_unchanged():
    mix = {"a": 0.0, "b": 0.0}
    assert normalize_mix(mix, MixMode.SUM) == mix


def test_unknown_mode_rejected():
    with pytest.raises(ValueError, match="mix mode"):
        normalize_mix({"a": 1.0}, "weights")


def test_weighted_coefficient_and_total():
    ratios = {"a": 0.5, "b": 0.25}
    assert weighted_coefficient(ratios, {"a": 2.0, "b": -4.0, "c": 100.0}) == pytest.approx(0.0)
    assert mix_total({"a": 60, "b": 20.5}) == pytest.approx(80.5)
    assert mix_total({}) == 0.0
