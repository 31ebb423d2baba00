"""Scenario aggregation.

GWG is priced from the user's composition with the yield adjustment. HDPE,
LDPE and PP are priced from the table's fixed reference compositions through
the same pellet-stage calculator, without yield adjustment and without
additives. The customer process and both transport legs apply identically to
every scenario.
"""
from __future__ import annotations

from typing import Optional

from gwg_lca.models import (
    AdditiveVariant,
    LcaInput,
    ResultSummary,
    ScenarioName,
    ScenarioResult,
    empty_mix,
    parse_tag,
)
from .factors import DEFAULT_FACTORS, EmissionFactorTable
from .stages import (
    customer_transport_emission,
    disposal_emission,
    origin_transport_emission,
    pellet_stage_emission,
    product_stage_emission,
)


def calculate_scenario(
    inp: LcaInput,
    name: ScenarioName | str,
    factors: EmissionFactorTable = DEFAULT_FACTORS,
) -> ScenarioResult:
    name = parse_tag(ScenarioName, name)
    if name is ScenarioName.GWG:
        resin_mix = inp.gwg_resin_mix
        additive_mix = inp.gwg_additive_mix
        apply_yield = True
    else:
        resin_mix = factors.reference_mix[name]
        additive_mix = empty_mix(AdditiveVariant)
        apply_yield = False

    return ScenarioResult(
        name=name,
        pellet_stage_emission=pellet_stage_emission(inp, resin_mix, additive_mix, factors, apply_yield=apply_yield),
        gwg_transport_emission=origin_transport_emission(inp, factors),
        product_stage_emission=product_stage_emission(inp, factors),
        customer_transport_emission=customer_transport_emission(inp, factors),
        disposal_added_emission=disposal_emission(inp, resin_mix, name, factors, additive_mix=additive_mix),
    )


def calculate_scenario_results(
    inp: LcaInput,
    factors: Optional[EmissionFactorTable] = None,
) -> ResultSummary:
    """Run all four scenarios and return them as one summary."""
    factors = factors or DEFAULT_FACTORS
    return ResultSummary(
        gwg=calculate_scenario(inp, ScenarioName.GWG, factors),
        hdpe=calculate_scenario(inp, ScenarioName.HDPE, factors),
        ldpe=calculate_scenario(inp, ScenarioName.LDPE, factors),
        pp=calculate_scenario(inp, ScenarioName.PP, factors),
        meta={"factor_table": factors.name, "mix_mode": factors.mix_mode.value},
    )


__all__ = ["calculate_scenario", "calculate_scenario_results"]
