# -*- coding: utf-8 -*-
"""
lca_core_api.py
Central API between input collaborators (forms, CLI, batch specs) and the
calculation core.

- input_from_dict / input_to_dict: flat camelCase JSON <-> LcaInput
- composition_warnings: non-blocking checks on resin + additive sums
- run_lca(...): LcaInput -> ResultSummary
- run_scenario(...): coerce a raw payload, resolve the factor table, run,
  and bundle the summary with its comparison table and warnings
- write_run_log(...) helper for simple JSON logs
"""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from gwg_lca.core.aggregate import calculate_scenario_results
from gwg_lca.core.factors import EmissionFactorTable
from gwg_lca.core.io import resolve_factor_table
from gwg_lca.core.mix import mix_total
from gwg_lca.models import (
    AdditiveVariant,
    DisposalMode,
    LcaInput,
    ProcessVariant,
    ResinVariant,
    ResultSummary,
    ScenarioResult,
    default_input,
    parse_tag,
)
from gwg_lca.reporting.comparison import comparison_table

logger = logging.getLogger(__name__)

COMPOSITION_TOLERANCE = 0.01  # percentage points

# camelCase wire key -> LcaInput field
SCALAR_FIELDS = {
    "totalProductionKg": "total_production_kg",
    "yieldRate": "yield_rate",
    "pelletElectricityKwh": "pellet_electricity_kwh",
    "gwgSeaKm": "gwg_sea_km",
    "gwgLandKm": "gwg_land_km",
    "customerSeaKm": "customer_sea_km",
    "customerLandKm": "customer_land_km",
    "processValue": "process_value",
}

RESULT_FIELDS = {
    "pelletStageEmission": "pellet_stage_emission",
    "gwgTransportEmission": "gwg_transport_emission",
    "productStageEmission": "product_stage_emission",
    "customerTransportEmission": "customer_transport_emission",
    "disposalAddedEmission": "disposal_added_emission",
    "totalEmission": "total_emission",
}


def _env_flag_truthy(var_name: str) -> bool:
    """
    Return True when the environment variable is set to a truthy value.
    Accepted truthy values: '1', 'true', 'yes', 'on' (case insensitive).
    """
    raw = os.environ.get(var_name, "")
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _is_debug_io_enabled() -> bool:
    return _env_flag_truthy("GWG_LCA_DEBUG_IO")


def _coerce_number(value) -> float:
    """Form-style numeric coercion: anything non-numeric becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        out = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(out):
        return 0.0
    return out


def _coerce_mix(enum_cls, raw: Any, fallback: Mapping) -> Dict:
    if raw is None:
        return dict(fallback)
    if not isinstance(raw, Mapping):
        raise TypeError(f"Expected mapping for {enum_cls.__name__} mix, got {type(raw).__name__}")
    # composition entries are clamped at 0
    return {parse_tag(enum_cls, k): max(0.0, _coerce_number(v)) for k, v in raw.items()}


# ==============================
# Serialization
# ==============================
def input_from_dict(payload: Mapping[str, Any], base: Optional[LcaInput] = None) -> LcaInput:
    """Build an LcaInput from a flat camelCase mapping.

    Keys missing from ``payload`` keep the value from ``base`` (a fresh
    ``default_input()`` when not given). Unknown keys are ignored with a
    warning; unknown enum tags raise ValueError.
    """
    base = base or default_input()
    payload = dict(payload or {})
    known = set(SCALAR_FIELDS) | {"gwgResinMix", "gwgAdditiveMix", "processType", "disposalMode"}
    extra = sorted(k for k in payload if k not in known)
    if extra:
        logger.warning("Ignoring unknown input keys: %s", ", ".join(extra))

    kwargs: Dict[str, Any] = {}
    for wire, attr in SCALAR_FIELDS.items():
        kwargs[attr] = _coerce_number(payload[wire]) if wire in payload else getattr(base, attr)

    resin_raw = payload.get("gwgResinMix")
    additive_raw = payload.get("gwgAdditiveMix")
    # a supplied mix replaces the base mix; unspecified variants are 0
    kwargs["gwg_resin_mix"] = _coerce_mix(ResinVariant, resin_raw, base.gwg_resin_mix)
    kwargs["gwg_additive_mix"] = _coerce_mix(AdditiveVariant, additive_raw, base.gwg_additive_mix)
    kwargs["process_type"] = parse_tag(ProcessVariant, payload.get("processType", base.process_type))
    kwargs["disposal_mode"] = parse_tag(DisposalMode, payload.get("disposalMode", base.disposal_mode))
    return LcaInput(**kwargs)


def input_to_dict(inp: LcaInput) -> Dict[str, Any]:
    out: Dict[str, Any] = {wire: getattr(inp, attr) for wire, attr in SCALAR_FIELDS.items()}
    out["gwgResinMix"] = {k.value: v for k, v in inp.gwg_resin_mix.items()}
    out["gwgAdditiveMix"] = {k.value: v for k, v in inp.gwg_additive_mix.items()}
    out["processType"] = inp.process_type.value
    out["disposalMode"] = inp.disposal_mode.value
    return out


def scenario_to_dict(result: ScenarioResult) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": result.name.value}
    for wire, attr in RESULT_FIELDS.items():
        out[wire] = float(getattr(result, attr))
    return out


def summary_to_dict(summary: ResultSummary) -> Dict[str, Any]:
    rows = [scenario_to_dict(s) for s in summary.scenarios]
    return {
        "scenarios": rows,
        "gwg": rows[0],
        "hdpe": rows[1],
        "ldpe": rows[2],
        "pp": rows[3],
    }


# ==============================
# Validation (non-blocking)
# ==============================
def composition_warnings(inp: LcaInput) -> List[str]:
    """Messages for compositions that do not add up; the run still proceeds."""
    warnings: List[str] = []
    resin_sum = mix_total(inp.gwg_resin_mix)
    additive_sum = mix_total(inp.gwg_additive_mix)
    total = resin_sum + additive_sum
    if abs(total - 100.0) > COMPOSITION_TOLERANCE:
        warnings.append(
            f"Resin + additive composition sums to {total:.2f}% "
            f"(resin {resin_sum:.2f}%, additive {additive_sum:.2f}%), expected 100%"
        )
    if not 0.0 < inp.yield_rate <= 100.0:
        warnings.append(f"Yield rate {inp.yield_rate}% is outside (0, 100]; default yield applied")
    return warnings


# ==============================
# Dataclasses
# ==============================
@dataclass
class RunOutputs:
    """Complete results from one LCA run.

    Attributes:
        inputs: the coerced request actually computed
        summary: per-scenario stage emissions (kg CO2e)
        comparison: DataFrame view of ``summary`` with differences vs GWG
        warnings: non-blocking composition/yield messages
        meta: factor table name, mix mode
    """
    inputs: LcaInput
    summary: ResultSummary
    comparison: pd.DataFrame
    warnings: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)


# ==============================
# Main API
# ==============================
def run_lca(inp: LcaInput, factors: Optional[EmissionFactorTable] = None) -> ResultSummary:
    return calculate_scenario_results(inp, resolve_factor_table(factors))


def run_scenario(
    payload: LcaInput | Mapping[str, Any],
    factors: Optional[EmissionFactorTable] = None,
    factors_path: Optional[str] = None,
) -> RunOutputs:
    """
    Execute the model for one request.
    Steps:
      1) Coerce the payload into an LcaInput (flat camelCase mapping accepted)
      2) Resolve the factor table (explicit > path > $GWG_LCA_FACTORS > default)
      3) Emit composition warnings
      4) Compute the four scenarios and the comparison table
    """
    inp = payload if isinstance(payload, LcaInput) else input_from_dict(payload)
    if _is_debug_io_enabled():
        logger.debug("Coerced input: %s", json.dumps(input_to_dict(inp), indent=2))

    table = resolve_factor_table(factors, factors_path)
    warnings = composition_warnings(inp)
    for msg in warnings:
        logger.warning(msg)

    summary = calculate_scenario_results(inp, table)
    return RunOutputs(
        inputs=inp,
        summary=summary,
        comparison=comparison_table(summary),
        warnings=warnings,
        meta=dict(summary.meta),
    )


def write_run_log(log_dir: str, payload: Dict[str, Any]) -> str:
    """
    Write a compact JSON log (inputs + per-scenario results). Returns the file path.

    Log files are named with UTC timestamp: run_YYYYMMDDTHHMMSSffffffZ.json
    """
    os.makedirs(log_dir, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    fname = f"run_{ts}.json"
    fpath = os.path.join(log_dir, fname)
    with open(fpath, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return fpath


__all__ = [
    "input_from_dict",
    "input_to_dict",
    "scenario_to_dict",
    "summary_to_dict",
    "composition_warnings",
    "RunOutputs",
    "run_lca",
    "run_scenario",
    "write_run_log",
]
