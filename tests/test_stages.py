import dataclasses
import math

import pytest

from gwg_lca.core.factors import DEFAULT_FACTORS, MixMode
from gwg_lca.core.stages import (
    customer_transport_emission,
    disposal_emission,
    effective_raw_mass,
    origin_transport_emission,
    pellet_stage_emission,
    product_stage_emission,
    safe_yield_ratio,
    transport_emission,
)
from gwg_lca.models import (
    AdditiveVariant,
    DisposalMode,
    LcaInput,
    ProcessVariant,
    ResinVariant,
    ScenarioName,
    empty_mix,
)

ELEC = 600 * 0.478  # pelletizing electricity term of the base input


def test_effective_raw_mass_at_95_percent():
    assert effective_raw_mass(1000, 95, 0.95) == pytest.approx(1052.63, abs=0.01)


@pytest.mark.parametrize("bad_yield", [0, -5, 150, float("nan")])
def test_invalid_yield_falls_back_to_default(bad_yield):
    assert safe_yield_ratio(bad_yield, 0.95) == 0.95
    assert math.isfinite(effective_raw_mass(1000, bad_yield, 0.95))


def test_full_yield_is_valid():
    assert safe_yield_ratio(100, 0.95) == 1.0


def test_origin_transport_sea_and_land(base_input):
    # 1 t x 3200 km x 0.0085 + 1 t x 200 km x 0.15 = 27.2 + 30
    assert origin_transport_emission(base_input) == pytest.approx(57.2)


def test_customer_transport_uses_customer_legs(base_input):
    inp = dataclasses.replace(base_input, customer_sea_km=1000, customer_land_km=100)
    assert customer_transport_emission(inp) == pytest.approx(1 * (1000 * 0.0085 + 100 * 0.15))
    assert customer_transport_emission(base_input) == 0.0


def test_transport_unset_distances_count_as_zero():
    assert transport_emission(2000, None, None) == 0.0
    assert transport_emission(2000, None, 10) == pytest.approx(2 * 10 * 0.15)


def test_transport_monotone_in_each_distance():
    distances = [0, 1, 50, 400, 3200, 12000]
    sea_series = [transport_emission(1500, d, 250) for d in distances]
    land_series = [transport_emission(1500, 250, d) for d in distances]
    assert sea_series == sorted(sea_series)
    assert land_series == sorted(land_series)
    assert all(v >= 0 for v in sea_series + land_series)


@pytest.mark.parametrize(
    "process, value, expected",
    [
        (ProcessVariant.ELECTRICITY, 600, 286.8),
        (ProcessVariant.INJECTION, 1000, 290.0),
        (ProcessVariant.EXTRUSION, 1000, 219.0),
        (ProcessVariant.SHEET, 1000, 192.0),
        (ProcessVariant.FILM, 1000, 219.0),
    ],
)
def test_product_stage_per_process(base_input, process, value, expected):
    inp = dataclasses.replace(base_input, process_type=process, process_value=value)
    assert product_stage_emission(inp) == pytest.approx(expected)


def test_product_stage_accepts_string_tag(base_input):
    inp = dataclasses.replace(base_input, process_type="injection", process_value=10)
    assert inp.process_type is ProcessVariant.INJECTION
    assert product_stage_emission(inp) == pytest.approx(2.9)


def test_unknown_process_tag_fails_fast(base_input):
    with pytest.raises(ValueError, match="ProcessVariant"):
        dataclasses.replace(base_input, process_type="WELDING")


def test_pellet_stage_reference_recipe(base_input):
    # specific: 0.6*-3.12 + 0.2*0.89 + 0.1*0.81 + 0.02*(2.6+6.99+0.86+18.9+3.52) = -0.9556
    # -0.9556 x 1000/0.95 + 600 x 0.478
    expected = -0.9556 * (1000 / 0.95) + ELEC
    result = pellet_stage_emission(base_input)
    assert result == pytest.approx(expected)
    assert result == pytest.approx(-719.09, abs=0.01)


def test_pellet_stage_without_yield_adjustment(base_input):
    result = pellet_stage_emission(base_input, apply_yield=False)
    assert result == pytest.approx(-0.9556 * 1000 + ELEC)


@pytest.mark.parametrize("k", [0.5, 2.0, 7.0])
def test_pellet_stage_linear_in_mass(base_input, k):
    scaled = dataclasses.replace(base_input, total_production_kg=base_input.total_production_kg * k)
    material = pellet_stage_emission(base_input) - ELEC
    assert pellet_stage_emission(scaled) - ELEC == pytest.approx(k * material)


def test_pellet_stage_may_be_negative_and_is_not_clamped(base_input):
    inp = dataclasses.replace(
        base_input,
        gwg_resin_mix={ResinVariant.TPS: 100},
        gwg_additive_mix={},
        pellet_electricity_kwh=0,
    )
    assert pellet_stage_emission(inp) == pytest.approx(-3.12 * 1000 / 0.95)


def test_pellet_stage_composition_override(base_input):
    result = pellet_stage_emission(
        base_input,
        {ResinVariant.PP_VIRGIN: 100},
        empty_mix(AdditiveVariant),
        apply_yield=False,
    )
    assert result == pytest.approx(1.47 * 1000 + ELEC)


@pytest.mark.parametrize("mode", [DisposalMode.PELLET_ONLY, DisposalMode.TO_PRODUCT])
@pytest.mark.parametrize("scenario", list(ScenarioName))
def test_boundaries_without_disposal_add_nothing(base_input, mode, scenario):
    inp = dataclasses.replace(base_input, disposal_mode=mode)
    assert disposal_emission(inp, scenario=scenario) == 0.0


def test_compost_gwg_is_zero(base_input):
    inp = dataclasses.replace(base_input, disposal_mode=DisposalMode.COMPOST)
    assert disposal_emission(inp, scenario=ScenarioName.GWG) == 0.0


@pytest.mark.parametrize("scenario", [ScenarioName.HDPE, ScenarioName.LDPE, ScenarioName.PP])
def test_compost_reference_priced_as_incineration(base_input, scenario):
    inp = dataclasses.replace(base_input, disposal_mode=DisposalMode.COMPOST)
    result = disposal_emission(inp, DEFAULT_FACTORS.reference_mix[scenario], scenario)
    assert result == pytest.approx(1000 * 3.1)
    assert result > 0


def test_incineration_weights_family_coefficients(base_input):
    inp = dataclasses.replace(base_input, disposal_mode=DisposalMode.INCINERATION)
    # TPS 0.6 x 1.63 + (0.2 + 0.1) x 3.1; additives are not incinerated
    assert disposal_emission(inp) == pytest.approx(1000 * (0.6 * 1.63 + 0.3 * 3.1))


def test_incineration_bio_polymers_use_own_coefficients(base_input):
    inp = dataclasses.replace(
        base_input,
        disposal_mode=DisposalMode.INCINERATION,
        gwg_resin_mix={ResinVariant.PLA: 50, ResinVariant.PBAT: 50},
    )
    assert disposal_emission(inp) == pytest.approx(1000 * (0.5 * 1.83 + 0.5 * 2.4))


def test_incineration_uses_production_mass_not_raw_mass():
    inp = LcaInput(
        total_production_kg=500,
        yield_rate=50,
        gwg_resin_mix={ResinVariant.HDPE_BIO: 100},
        gwg_additive_mix={},
        disposal_mode=DisposalMode.INCINERATION,
    )
    assert disposal_emission(inp) == pytest.approx(500 * 3.1)


SUM_FACTORS = dataclasses.replace(DEFAULT_FACTORS, mix_mode=MixMode.SUM)


def test_pellet_stage_sum_mode_matches_percent_for_full_recipe(base_input):
    percent = pellet_stage_emission(base_input)
    assert percent == pytest.approx(-719.0947, abs=1e-3)
    assert pellet_stage_emission(base_input, factors=SUM_FACTORS) == pytest.approx(percent)


def test_pellet_stage_sum_mode_accepts_raw_weights(base_input):
    # same recipe in kg per 10 kg batch instead of percent
    inp = dataclasses.replace(
        base_input,
        gwg_resin_mix={ResinVariant.TPS: 6, ResinVariant.HDPE_RECYCLE: 2, ResinVariant.LDPE_RECYCLE: 1},
        gwg_additive_mix={variant: 0.2 for variant in AdditiveVariant},
    )
    assert pellet_stage_emission(inp, factors=SUM_FACTORS) == pytest.approx(pellet_stage_emission(base_input))


def test_pellet_stage_sum_mode_reference_recipe(base_input):
    mix = DEFAULT_FACTORS.reference_mix[ScenarioName.HDPE]
    no_additives = empty_mix(AdditiveVariant)
    percent = pellet_stage_emission(base_input, mix, no_additives, apply_yield=False)
    summed = pellet_stage_emission(base_input, mix, no_additives, SUM_FACTORS, apply_yield=False)
    assert summed == pytest.approx(percent)
    assert summed == pytest.approx(1529.3)


def test_incineration_sum_mode_divides_by_whole_recipe(base_input):
    inp = dataclasses.replace(base_input, disposal_mode=DisposalMode.INCINERATION)
    expected = 1000 * (0.6 * 1.63 + 0.3 * 3.1)
    assert disposal_emission(inp, factors=SUM_FACTORS) == pytest.approx(expected)
    explicit = disposal_emission(
        inp, inp.gwg_resin_mix, ScenarioName.GWG, SUM_FACTORS, additive_mix=inp.gwg_additive_mix
    )
    assert explicit == pytest.approx(expected)
