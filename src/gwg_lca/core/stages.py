"""Stage calculators.

Each function maps an ``LcaInput`` (plus an optional composition override) to
a kg CO2e scalar. They are pure: coefficients come from the
``EmissionFactorTable`` argument, nothing is cached between calls.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

from gwg_lca.models import (
    AdditiveVariant,
    DisposalFamily,
    DisposalMode,
    LcaInput,
    ProcessVariant,
    REFERENCE_SCENARIOS,
    ResinVariant,
    ScenarioName,
    complete_mix,
    parse_tag,
)
from .factors import DEFAULT_FACTORS, EmissionFactorTable, TransportMode
from .mix import normalize_mix, recipe_total, weighted_coefficient

logger = logging.getLogger(__name__)


def safe_yield_ratio(yield_rate_percent: float, default_ratio: float) -> float:
    """Yield in percent -> ratio; anything outside (0, 1] uses ``default_ratio``."""
    ratio = float(yield_rate_percent) / 100.0
    if 0.0 < ratio <= 1.0:
        return ratio
    logger.debug("Yield rate %s%% outside (0, 100]; using default ratio %s", yield_rate_percent, default_ratio)
    return default_ratio


def effective_raw_mass(production_kg: float, yield_rate_percent: float, default_ratio: float) -> float:
    """Raw material needed for ``production_kg`` of pellets at the given yield.

    1000 kg at 95 % needs 1000 / 0.95 = 1052.63 kg of feedstock.
    """
    return float(production_kg) / safe_yield_ratio(yield_rate_percent, default_ratio)


# -----------------------
# Pellet stage
# -----------------------
def pellet_stage_emission(
    inp: LcaInput,
    resin_mix: Optional[Mapping[ResinVariant, float]] = None,
    additive_mix: Optional[Mapping[AdditiveVariant, float]] = None,
    factors: EmissionFactorTable = DEFAULT_FACTORS,
    apply_yield: bool = True,
) -> float:
    """Raw materials plus pelletizing electricity.

    Args:
        inp: request record
        resin_mix: composition override; defaults to ``inp.gwg_resin_mix``
        additive_mix: composition override; defaults to ``inp.gwg_additive_mix``
        factors: coefficient table
        apply_yield: divide the mass by the yield ratio (GWG only)

    Returns:
        kg CO2e; negative results are valid for carbon-negative feedstocks.
    """
    if resin_mix is None:
        resin_mix = inp.gwg_resin_mix
    if additive_mix is None:
        additive_mix = inp.gwg_additive_mix

    if apply_yield:
        mass_kg = effective_raw_mass(inp.total_production_kg, inp.yield_rate, factors.default_yield_ratio)
    else:
        mass_kg = float(inp.total_production_kg)

    resin_mix = complete_mix(ResinVariant, resin_mix)
    additive_mix = complete_mix(AdditiveVariant, additive_mix)
    # SUM mode: one divisor for the whole recipe
    total = recipe_total(resin_mix, additive_mix)
    resin_ratios = normalize_mix(resin_mix, factors.mix_mode, total)
    additive_ratios = normalize_mix(additive_mix, factors.mix_mode, total)
    specific = weighted_coefficient(resin_ratios, factors.resin) + weighted_coefficient(additive_ratios, factors.additive)

    electricity = float(inp.pellet_electricity_kwh) * factors.electricity_per_kwh
    return specific * mass_kg + electricity


# -----------------------
# Transport
# -----------------------
def transport_emission(
    mass_kg: float,
    sea_km: Optional[float],
    land_km: Optional[float],
    factors: EmissionFactorTable = DEFAULT_FACTORS,
) -> float:
    """tons x km x per-mode coefficient, summed over sea and land."""
    tons = float(mass_kg) / 1000.0
    sea = float(sea_km or 0.0) * factors.transport[TransportMode.SEA]
    land = float(land_km or 0.0) * factors.transport[TransportMode.LAND]
    return tons * (sea + land)


def origin_transport_emission(inp: LcaInput, factors: EmissionFactorTable = DEFAULT_FACTORS) -> float:
    """Pellet maker -> customer."""
    return transport_emission(inp.total_production_kg, inp.gwg_sea_km, inp.gwg_land_km, factors)


def customer_transport_emission(inp: LcaInput, factors: EmissionFactorTable = DEFAULT_FACTORS) -> float:
    """Customer product -> final destination."""
    return transport_emission(inp.total_production_kg, inp.customer_sea_km, inp.customer_land_km, factors)


# -----------------------
# Product stage
# -----------------------
def product_stage_emission(inp: LcaInput, factors: EmissionFactorTable = DEFAULT_FACTORS) -> float:
    process = parse_tag(ProcessVariant, inp.process_type)
    value = float(inp.process_value)
    if process is ProcessVariant.ELECTRICITY:
        return value * factors.electricity_per_kwh
    if process not in factors.process:
        raise ValueError(f"No emission factor for process '{process.value}'")
    return value * factors.process[process]


# -----------------------
# Disposal stage
# -----------------------
def disposal_emission(
    inp: LcaInput,
    resin_mix: Optional[Mapping[ResinVariant, float]] = None,
    scenario: ScenarioName | str = ScenarioName.GWG,
    factors: EmissionFactorTable = DEFAULT_FACTORS,
    additive_mix: Optional[Mapping[AdditiveVariant, float]] = None,
) -> float:
    """Extra emission from the end-of-life route.

    PELLET_ONLY / TO_PRODUCT stop before disposal and add nothing. GWG
    composts at zero; the reference plastics cannot compost and are priced as
    PE/PP incineration instead. Incineration weights each resin's family
    coefficient by its ratio. Additives are not part of the disposal mass
    balance, but in SUM mode they still count towards the recipe total that
    resin weights are divided by, matching the pellet stage. ``additive_mix``
    defaults to the request's additives only when ``resin_mix`` is not given.
    """
    mode = parse_tag(DisposalMode, inp.disposal_mode)
    scenario = parse_tag(ScenarioName, scenario)
    mass_kg = float(inp.total_production_kg)

    if mode in (DisposalMode.PELLET_ONLY, DisposalMode.TO_PRODUCT):
        return 0.0

    if mode is DisposalMode.COMPOST:
        if scenario in REFERENCE_SCENARIOS:
            return mass_kg * factors.disposal[DisposalFamily.PETROLEUM]
        return 0.0

    if mode is DisposalMode.INCINERATION:
        if resin_mix is None:
            resin_mix = inp.gwg_resin_mix
            if additive_mix is None:
                additive_mix = inp.gwg_additive_mix
        resin_mix = complete_mix(ResinVariant, resin_mix)
        total = recipe_total(resin_mix, additive_mix or {})
        ratios = normalize_mix(resin_mix, factors.mix_mode, total)
        coefficient = sum(ratio * factors.disposal_coefficient(resin) for resin, ratio in ratios.items())
        return mass_kg * coefficient

    raise ValueError(f"Unhandled disposal mode '{mode}'")


__all__ = [
    "safe_yield_ratio",
    "effective_raw_mass",
    "pellet_stage_emission",
    "transport_emission",
    "origin_transport_emission",
    "customer_transport_emission",
    "product_stage_emission",
    "disposal_emission",
]
