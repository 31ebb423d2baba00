"""Comparison tables for a ResultSummary.

Builds the GWG-vs-reference views consumed by the CLI and any rendering
layer: a wide per-stage table, a long-form stage breakdown, and the
savings/ranking figures behind the textual analysis.
"""
from __future__ import annotations

from typing import Dict

import pandas as pd

from gwg_lca.models import REFERENCE_SCENARIOS, ResultSummary

STAGE_COLUMNS = {
    "pellet_stage_emission": "Pellet stage",
    "gwg_transport_emission": "GWG transport",
    "product_stage_emission": "Product stage",
    "customer_transport_emission": "Customer transport",
    "disposal_added_emission": "Disposal",
}
TOTAL_COLUMN = "Total"
DIFF_COLUMN = "Diff vs GWG"


def comparison_table(summary: ResultSummary) -> pd.DataFrame:
    """Wide table indexed by scenario name, kg CO2e.

    ``Diff vs GWG`` is scenario total minus GWG total: positive means the
    scenario emits more than GWG.
    """
    rows = []
    for scn in summary.scenarios:
        row = {label: float(getattr(scn, attr)) for attr, label in STAGE_COLUMNS.items()}
        row[TOTAL_COLUMN] = float(scn.total_emission)
        rows.append(row)
    df = pd.DataFrame(rows, index=[s.name.value for s in summary.scenarios])
    df.index.name = "Scenario"
    df[DIFF_COLUMN] = df[TOTAL_COLUMN] - df.loc["GWG", TOTAL_COLUMN]
    return df


def stage_breakdown(summary: ResultSummary) -> pd.DataFrame:
    """Long-form (Scenario, Stage, kg CO2e) rows, one per stage per scenario."""
    entries = []
    for scn in summary.scenarios:
        for attr, label in STAGE_COLUMNS.items():
            entries.append({"Scenario": scn.name.value, "Stage": label, "kg CO2e": float(getattr(scn, attr))})
    return pd.DataFrame(entries, columns=["Scenario", "Stage", "kg CO2e"])


def savings_vs_references(summary: ResultSummary) -> Dict[str, float]:
    """Reference total minus GWG total per reference plastic (positive = GWG saves)."""
    gwg_total = summary.gwg.total_emission
    return {name.value: summary.by_name(name).total_emission - gwg_total for name in REFERENCE_SCENARIOS}


def gwg_is_lowest(summary: ResultSummary) -> bool:
    return all(saving > 0 for saving in savings_vs_references(summary).values())


__all__ = [
    "STAGE_COLUMNS",
    "TOTAL_COLUMN",
    "DIFF_COLUMN",
    "comparison_table",
    "stage_breakdown",
    "savings_vs_references",
    "gwg_is_lowest",
]
