import json
import logging

import pytest

from gwg_lca.lca_core_api import (
    composition_warnings,
    input_from_dict,
    input_to_dict,
    run_lca,
    run_scenario,
    summary_to_dict,
    write_run_log,
)
from gwg_lca.models import AdditiveVariant, DisposalMode, ProcessVariant, ResinVariant, default_input


def test_wire_format_round_trip(base_input):
    wire = input_to_dict(base_input)
    assert wire["processType"] == "ELECTRICITY"
    assert wire["gwgResinMix"]["TPS"] == 60.0
    assert json.loads(json.dumps(wire)) == wire
    assert input_from_dict(wire) == base_input


def test_missing_keys_take_defaults():
    inp = input_from_dict({"totalProductionKg": 2500})
    assert inp.total_production_kg == 2500.0
    assert inp.yield_rate == default_input().yield_rate
    assert inp.gwg_resin_mix == default_input().gwg_resin_mix


def test_form_style_coercion():
    inp = input_from_dict(
        {
            "totalProductionKg": "abc",
            "gwgSeaKm": "",
            "customerSeaKm": "nan",
            "customerLandKm": float("inf"),
            "processValue": "-inf",
            "gwgLandKm": -20,
            "gwgResinMix": {"TPS": -5, "pla": "40"},
            "gwgAdditiveMix": {"BIOMASS_1": None, "BIOMASS_2": "nan"},
            "processType": "sheet",
            "disposalMode": "compost",
        }
    )
    assert inp.total_production_kg == 0.0
    assert inp.gwg_sea_km == 0.0
    # non-finite numbers coerce to 0 like any other non-numeric value
    assert inp.customer_sea_km == 0.0
    assert inp.customer_land_km == 0.0
    assert inp.process_value == 0.0
    # negatives are only clamped for compositions
    assert inp.gwg_land_km == -20.0
    assert inp.gwg_resin_mix[ResinVariant.TPS] == 0.0
    assert inp.gwg_resin_mix[ResinVariant.PLA] == 40.0
    assert inp.gwg_resin_mix[ResinVariant.HDPE_RECYCLE] == 0.0
    assert inp.gwg_additive_mix[AdditiveVariant.BIOMASS_1] == 0.0
    assert inp.gwg_additive_mix[AdditiveVariant.BIOMASS_2] == 0.0
    assert inp.process_type is ProcessVariant.SHEET
    assert inp.disposal_mode is DisposalMode.COMPOST


@pytest.mark.parametrize(
    "payload, match",
    [
        ({"processType": "WELDING"}, "ProcessVariant"),
        ({"disposalMode": "LANDFILL"}, "DisposalMode"),
        ({"gwgResinMix": {"NYLON": 10}}, "ResinVariant"),
    ],
)
def test_unknown_tags_rejected(payload, match):
    with pytest.raises(ValueError, match=match):
        input_from_dict(payload)


def test_mix_must_be_mapping():
    with pytest.raises(TypeError):
        input_from_dict({"gwgResinMix": [60, 40]})


def test_unknown_keys_warn(caplog):
    with caplog.at_level(logging.WARNING):
        input_from_dict({"filmKg": 600})
    assert "filmKg" in caplog.text


def test_composition_warnings(base_input):
    assert composition_warnings(base_input) == []
    short = input_from_dict({"gwgResinMix": {"TPS": 80}, "gwgAdditiveMix": {}})
    messages = composition_warnings(short)
    assert len(messages) == 1
    assert "80.00%" in messages[0]
    bad_yield = input_from_dict({"yieldRate": 0})
    assert any("Yield rate" in m for m in composition_warnings(bad_yield))


def test_run_lca_and_summary_dict(base_input):
    summary = run_lca(base_input)
    data = summary_to_dict(summary)
    assert [row["name"] for row in data["scenarios"]] == ["GWG", "HDPE", "LDPE", "PP"]
    assert data["gwg"]["gwgTransportEmission"] == pytest.approx(57.2)
    assert data["hdpe"]["totalEmission"] == pytest.approx(summary.hdpe.total_emission)
    assert set(data["pp"]) == {
        "name",
        "pelletStageEmission",
        "gwgTransportEmission",
        "productStageEmission",
        "customerTransportEmission",
        "disposalAddedEmission",
        "totalEmission",
    }


def test_run_scenario_from_raw_payload(caplog):
    with caplog.at_level(logging.WARNING):
        out = run_scenario({"gwgResinMix": {"TPS": 50}, "gwgAdditiveMix": {}})
    assert out.warnings and "50.00%" in out.warnings[0]
    assert "composition sums" in caplog.text
    assert out.comparison.loc["GWG", "Diff vs GWG"] == 0.0
    assert out.meta["factor_table"] == "default"


def test_run_scenario_with_factor_file(tmp_path, base_input):
    path = tmp_path / "f.yml"
    path.write_text("name: grid-2030\nelectricity_per_kwh: 0.3\n", encoding="utf-8")
    out = run_scenario(base_input, factors_path=str(path))
    assert out.meta["factor_table"] == "grid-2030"
    assert out.summary.gwg.pellet_stage_emission == pytest.approx(-0.9556 * 1000 / 0.95 + 600 * 0.3)


def test_write_run_log(tmp_path, base_input):
    path = write_run_log(str(tmp_path / "logs"), {"input": input_to_dict(base_input)})
    assert path.endswith(".json")
    with open(path, encoding="utf-8") as f:
        assert json.load(f)["input"]["yieldRate"] == 95.0
