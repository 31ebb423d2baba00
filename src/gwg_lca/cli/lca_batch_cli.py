#!/usr/bin/env python3
"""
GWG LCA batch runner CLI.

Executes one or multiple LCA requests through ``run_scenario`` without a UI.
Requests can be supplied directly on the command line or through a YAML/JSON
spec that describes a batch. Typical workflow:

    python -m gwg_lca.cli.lca_batch_cli run --spec configs/batch_disposal_modes.yml --output results.csv

Spec files can be either a list of runs or a mapping containing ``defaults`` and
``runs``. Each run entry supports:

    name: Optional label for summaries/logs
    input_file: Path to a YAML/JSON request (flat camelCase keys)
    input: Inline mapping merged on top of input_file contents
    overrides:
      gwgResinMix.TPS: 55          # dotted path assignments
    factors: path/to/emission_factors.yml
    log_dir: logs/gwg

When no spec is provided, a single run can be invoked with ``--input`` and
optional ``--set`` overrides (e.g. ``--set disposalMode=INCINERATION``).
Without ``--input`` the default request is used.
"""

from __future__ import annotations

import argparse
import copy
import csv
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from gwg_lca.lca_core_api import (
    RunOutputs,
    input_from_dict,
    input_to_dict,
    run_scenario,
    summary_to_dict,
    write_run_log,
)
from gwg_lca.core.io import load_factor_table
from gwg_lca.models import REFERENCE_SCENARIOS
from gwg_lca.reporting.comparison import gwg_is_lowest, savings_vs_references


# -----------------------------
# Utilities
# -----------------------------

def _fmt_float(value: Any) -> str:
    if value is None:
        return "n/a"
    try:
        return f"{float(value):,.2f}"
    except (TypeError, ValueError):
        return str(value)


def _coerce_override(value: str) -> Any:
    """``--set`` values: JSON literals (numbers, true/false/null), else the raw string."""
    text = value.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two dictionaries, returning the mutated base.
    Scalars in ``update`` overwrite values from ``base``.
    """
    for key, value in (update or {}).items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _apply_path_override(target: Dict[str, Any], dotted_path: str, value: Any) -> None:
    """Assign ``value`` at ``key`` or ``mixKey.VARIANT`` (e.g. gwgResinMix.TPS)."""
    tokens = [t for t in dotted_path.split(".") if t]
    if not tokens:
        raise ValueError("Override path cannot be empty.")
    if len(tokens) > 2:
        raise ValueError(f"Override path '{dotted_path}' is nested too deep; requests are flat apart from the mixes.")
    if len(tokens) == 1:
        target[tokens[0]] = value
        return
    mix_key, variant = tokens
    if not isinstance(target.get(mix_key), dict):
        target[mix_key] = {}
    target[mix_key][variant] = value


def _load_mapping(path: Path) -> Dict[str, Any]:
    """Load a JSON or YAML mapping from disk."""
    data = _load_any(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping in {path}, got {type(data).__name__}")
    return data


def _load_any(path: Path) -> Any:
    """Load arbitrary JSON/YAML content."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yml", ".yaml"}:
        return yaml.safe_load(text)
    return json.loads(text)


def _resolve_path(raw: Optional[str | Path], base: Path) -> Optional[Path]:
    """Resolve a path relative to spec base, with project-root fallback."""
    if raw is None:
        return None
    candidate = Path(raw).expanduser()
    if candidate.is_absolute():
        return candidate
    p1 = (base / candidate).resolve()
    if p1.exists():
        return p1
    # …/src/gwg_lca/cli → repo
    repo_root = Path(__file__).resolve().parents[3]
    return (repo_root / candidate).resolve()


def _payload_from_spec(spec: Dict[str, Any], base_dir: Path) -> Dict[str, Any]:
    """input_file, then inline input, then dotted overrides."""
    payload: Dict[str, Any] = {}
    input_file = spec.get("input_file")
    if input_file:
        input_path = _resolve_path(input_file, base_dir)
        if input_path is None:
            raise ValueError(f"Could not resolve input_file: {input_file}")
        payload = _load_mapping(input_path)
    inline = spec.get("input") or {}
    if not isinstance(inline, dict):
        raise TypeError("'input' entry must be a dict when provided.")
    _deep_merge(payload, copy.deepcopy(inline))
    overrides = spec.get("overrides") or {}
    if not isinstance(overrides, dict):
        raise TypeError("'overrides' entry must be a dict of dotted paths.")
    for dotted, value in overrides.items():
        _apply_path_override(payload, str(dotted), value)
    return payload


@dataclass
class RunPlan:
    name: str
    payload: Dict[str, Any]
    factors_path: Optional[Path]
    log_dir: Optional[Path]


@dataclass
class RunRecord:
    plan: RunPlan
    result: RunOutputs
    summary: Dict[str, Any]


def _enumerate_run_specs(
    spec_data: Any,
    spec_path: Optional[Path],
    cli_defaults: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Normalize spec content (a list of runs, or ``{defaults, runs}``) into
    per-run dictionaries. Run entries win over spec defaults, which win over
    CLI defaults.
    """
    if spec_data is None:
        return []
    base_dir = spec_path.parent if spec_path else Path.cwd()
    defaults: Dict[str, Any] = {}
    if isinstance(spec_data, list):
        runs_raw = spec_data
    elif isinstance(spec_data, dict) and "runs" in spec_data:
        runs_raw = spec_data.get("runs") or []
        defaults = spec_data.get("defaults") or {}
    else:
        raise ValueError("Spec must be a list of runs or a mapping with 'runs'.")

    if not isinstance(runs_raw, list):
        raise ValueError("'runs' must be a list of run definitions.")

    plans: List[Dict[str, Any]] = []
    for idx, raw in enumerate(runs_raw):
        if not isinstance(raw, dict):
            raise ValueError("Each run entry must be a dict.")
        combined = copy.deepcopy(cli_defaults)
        _deep_merge(combined, copy.deepcopy(defaults))
        _deep_merge(combined, copy.deepcopy(raw))
        combined["_spec_base_dir"] = base_dir
        combined["_index"] = idx
        plans.append(combined)
    return plans


def _choose_run_name(spec: Dict[str, Any], input_path: Optional[Path], idx: int) -> str:
    name = spec.get("name")
    if name:
        return str(name)
    if input_path is not None:
        return input_path.stem
    return f"run_{idx + 1}"


def _build_run_plan(raw: Dict[str, Any]) -> RunPlan:
    base_dir: Path = raw.get("_spec_base_dir", Path.cwd())
    idx: int = raw.get("_index", 0)
    input_path = _resolve_path(raw.get("input_file"), base_dir)
    payload = _payload_from_spec(raw, base_dir)
    factors = raw.get("factors")
    return RunPlan(
        name=_choose_run_name(raw, input_path, idx),
        payload=payload,
        factors_path=_resolve_path(factors, base_dir) if factors else None,
        log_dir=_resolve_path(raw.get("log_dir"), base_dir) if raw.get("log_dir") else None,
    )


def _plans_from_spec(spec_path: Path, cli_defaults: Dict[str, Any]) -> List[RunPlan]:
    spec_data = _load_any(spec_path)
    raw_runs = _enumerate_run_specs(spec_data, spec_path, cli_defaults)
    return [_build_run_plan(raw) for raw in raw_runs]


def _single_run_plan(args: argparse.Namespace) -> RunPlan:
    base_dir = Path.cwd()
    overrides: Dict[str, Any] = {}
    for assignment in args.set or []:
        if "=" not in assignment:
            raise ValueError(f"Override '{assignment}' must contain '='.")
        key, raw_val = assignment.split("=", 1)
        overrides[key.strip()] = _coerce_override(raw_val)
    spec = {"input_file": args.input, "overrides": overrides}
    payload = _payload_from_spec(spec, base_dir)
    name = args.name
    if not name:
        name = Path(args.input).stem if args.input else "run"
    return RunPlan(
        name=name,
        payload=payload,
        factors_path=_resolve_path(args.factors, base_dir) if args.factors else None,
        log_dir=_resolve_path(args.log_dir, base_dir) if args.log_dir else None,
    )


def _summarize_result(plan: RunPlan, result: RunOutputs) -> Dict[str, Any]:
    """One flat row per run: totals per scenario and GWG savings."""
    summary = result.summary
    row: Dict[str, Any] = {
        "name": plan.name,
        "factor_table": result.meta.get("factor_table", ""),
        "disposal_mode": result.inputs.disposal_mode.value,
        "process_type": result.inputs.process_type.value,
    }
    for scn in summary.scenarios:
        row[f"{scn.name.value.lower()}_total_kg"] = scn.total_emission
    for name, saving in savings_vs_references(summary).items():
        row[f"saving_vs_{name.lower()}_kg"] = saving
    row["gwg_is_lowest"] = gwg_is_lowest(summary)
    row["warnings"] = "; ".join(result.warnings)
    return row


def _write_summary(path: Path, rows: List[Dict[str, Any]]) -> None:
    if not rows:
        return
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix in {".json", ".jsonl"}:
        path.write_text(json.dumps(rows, indent=2), encoding="utf-8")
        return
    if suffix == ".csv":
        fieldnames: List[str] = []
        for row in rows:
            for key in row:
                if key not in fieldnames:
                    fieldnames.append(key)
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=fieldnames)
            writer.writeheader()
            for row in rows:
                writer.writerow({k: row.get(k, "") for k in fieldnames})
        return
    raise ValueError(f"Unsupported output format for '{path}'. Use .csv or .json.")


def _log_payload(plan: RunPlan, result: RunOutputs, result_summary: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": plan.name,
        "factors": str(plan.factors_path) if plan.factors_path else None,
        "input": input_to_dict(result.inputs),
        "results": summary_to_dict(result.summary),
        "summary": result_summary,
        "warnings": list(result.warnings),
        "meta": result.meta,
    }


def run_batch(
    plans: List[RunPlan],
    log_dir_default: Optional[Path] = None,
    fail_fast: bool = False,
    show_table: bool = False,
) -> Tuple[List[Dict[str, Any]], int, List[RunRecord]]:
    summaries: List[Dict[str, Any]] = []
    failures = 0
    records: List[RunRecord] = []
    for plan in plans:
        try:
            factors = load_factor_table(plan.factors_path) if plan.factors_path else None
            inp = input_from_dict(copy.deepcopy(plan.payload))
            result = run_scenario(inp, factors=factors)
            summary = _summarize_result(plan, result)
            summaries.append(summary)
            gwg = summary.get("gwg_total_kg")
            refs = ", ".join(
                f"{name.value}={_fmt_float(summary.get(f'{name.value.lower()}_total_kg'))}"
                for name in REFERENCE_SCENARIOS
            )
            print(f"{plan.name}: GWG={_fmt_float(gwg)} kg CO2e; {refs}")
            if show_table:
                print(result.comparison.round(2).to_string())
            log_dir = plan.log_dir or log_dir_default
            if log_dir:
                payload = _log_payload(plan, result, summary)
                try:
                    path_written = write_run_log(str(log_dir), payload)
                    print(f"  ↳ log written to {path_written}")
                except OSError as exc:
                    print(f"  ! failed to write log in {log_dir}: {exc}", file=sys.stderr)
            records.append(RunRecord(plan=plan, result=result, summary=summary))
        except (ValueError, TypeError, KeyError, OSError) as exc:
            failures += 1
            print(f"{plan.name}: FAILED – {exc}", file=sys.stderr)
            if fail_fast:
                raise
            summaries.append({
                "name": plan.name,
                "error": str(exc),
            })
    return summaries, failures, records


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Batch runner for the GWG LCA core API.",
    )
    subparsers = parser.add_subparsers(dest="command")
    run_parser = subparsers.add_parser("run", help="Execute one or more LCA requests.")
    run_parser.add_argument("--spec", type=Path, help="YAML/JSON file describing runs.")
    run_parser.add_argument("--input", type=str, help="Request YAML/JSON for a single run (shortcut instead of --spec).")
    run_parser.add_argument("--set", action="append", help="Override a request value using dotted path, e.g. gwgResinMix.TPS=55")
    run_parser.add_argument("--factors", type=str, help="Emission factor YAML (default: built-in table or $GWG_LCA_FACTORS).")
    run_parser.add_argument("--output", type=Path, help="Optional CSV/JSON summary output path.")
    run_parser.add_argument("--log-dir", type=str, help="Directory to store detailed JSON logs per run.")
    run_parser.add_argument("--name", type=str, help="Friendly name for a single run.")
    run_parser.add_argument("--show-table", action="store_true", help="Print the per-stage comparison table for each run.")
    run_parser.add_argument("--fail-fast", action="store_true", help="Abort on first failure.")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command != "run":
        parser.print_help()
        return 1
    cli_defaults: Dict[str, Any] = {}
    if args.factors:
        cli_defaults["factors"] = args.factors
    try:
        if args.spec:
            plans = _plans_from_spec(Path(args.spec), cli_defaults)
        else:
            plans = [_single_run_plan(args)]
    except (ValueError, TypeError, OSError) as exc:
        print(f"Failed to build run plan: {exc}", file=sys.stderr)
        return 2
    log_dir_default = _resolve_path(args.log_dir, Path.cwd()) if args.log_dir else None
    try:
        summaries, failures, _records = run_batch(
            plans,
            log_dir_default=log_dir_default,
            fail_fast=args.fail_fast,
            show_table=args.show_table,
        )
    except (ValueError, TypeError, KeyError, OSError) as exc:
        print(f"Execution aborted: {exc}", file=sys.stderr)
        return 3
    if args.output:
        try:
            _write_summary(args.output, summaries)
            print(f"Summary written to {args.output}")
        except (ValueError, OSError) as exc:
            print(f"Failed to write summary: {exc}", file=sys.stderr)
            return 4
    return 0 if failures == 0 else 5


if __name__ == "__main__":
    sys.exit(main())
