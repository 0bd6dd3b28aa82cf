"""Command line interface."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
import typer

# Load .env file for NUANCE_POLICY_FILE
load_dotenv()

from nuance_control.config import PolicyConfig, config_dict_for_hash, load_config
from nuance_control.constants import Lane
from nuance_control.io.hashing import sha256_json
from nuance_control.io.json_io import load_json
from nuance_control.nuance.defaults import normalize_lane
from nuance_control.nuance.fingerprint import compute_fingerprint, compute_similarity_risk
from nuance_control.nuance.gate import run_nuance_gate
from nuance_control.nuance.prompt import build_nuance_prompt_block
from nuance_control.nuance.repair import build_repair_instruction
from nuance_control.nuance.scoring import compute_melodrama_score, compute_nuance_metrics, compute_nuance_score
from nuance_control.qualifications.resolver import is_stale, resolve_qualifications
from nuance_control.reporting import build_evaluation_report, write_report
from nuance_control.schemas.nuance import GateOptions, NuanceFingerprint
from nuance_control.schemas.style import StyleTarget
from nuance_control.style.deviation import build_style_eval_meta, evaluate_style, select_best_attempt
from nuance_control.style.extractor import extract_fingerprint

POLICY_ENV_VAR = "NUANCE_POLICY_FILE"

app = typer.Typer(help="Nuance control and qualification CLI", add_completion=False)


@app.callback()
def main_callback(verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _emit(payload: dict) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=True))


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _policy(path: Path | None) -> PolicyConfig:
    if path is None:
        env_path = os.getenv(POLICY_ENV_VAR)
        if not env_path:
            return PolicyConfig()
        path = Path(env_path)
    return load_config(path.resolve())


def _recent(path: Path | None) -> list[NuanceFingerprint]:
    if path is None:
        return []
    return [NuanceFingerprint.model_validate(item) for item in load_json(path)]


def _target(path: Path | None) -> StyleTarget | None:
    if path is None:
        return None
    return StyleTarget.model_validate(load_json(path))


@app.command("fingerprint")
def fingerprint_cmd(file: Path = typer.Option(..., "--file", help="Path to text file")) -> None:
    """Extract the style fingerprint of a text."""
    try:
        fingerprint = extract_fingerprint(_read_text(file))
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    _emit(fingerprint.model_dump(mode="json"))


@app.command("style-score")
def style_score_cmd(
    file: Path = typer.Option(..., "--file", help="Path to text file"),
    target: Path = typer.Option(..., "--target", help="Path to StyleTarget JSON"),
    previous_score: float | None = typer.Option(None, "--previous-score", help="Score of the earlier attempt"),
    policy: Path | None = typer.Option(None, "--policy", help="Path to YAML policy"),
) -> None:
    """Score a text against a target voice."""
    try:
        config = _policy(policy)
        thresholds = config.thresholds
        result = evaluate_style(
            _read_text(file),
            _target(target),
            thresholds.style_low_drift_floor,
            thresholds.style_medium_drift_floor,
        )
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    payload = build_style_eval_meta(result)
    if previous_score is not None:
        payload["selected_attempt"] = select_best_attempt(
            previous_score, result.score, thresholds.acceptable_style_score
        )
    _emit(payload)


@app.command("metrics")
def metrics_cmd(file: Path = typer.Option(..., "--file", help="Path to text file")) -> None:
    """Compute nuance metrics with melodrama and nuance scores."""
    try:
        metrics = compute_nuance_metrics(_read_text(file))
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    _emit(
        {
            "metrics": metrics.model_dump(mode="json"),
            "melodrama_score": compute_melodrama_score(metrics),
            "nuance_score": compute_nuance_score(metrics),
        }
    )


@app.command("gate")
def gate_cmd(
    file: Path = typer.Option(..., "--file", help="Path to text file"),
    lane: str | None = typer.Option(None, "--lane", help="Lane (vertical_drama, series, feature_film, documentary)"),
    policy: Path | None = typer.Option(None, "--policy", help="Path to YAML policy"),
    recent: Path | None = typer.Option(None, "--recent", help="JSON list of recent fingerprints"),
) -> None:
    """Run the nuance gate and attach a repair instruction on failure."""
    try:
        config = _policy(policy)
        lane_key = normalize_lane(lane or config.default_lane)
        caps = config.caps_for(lane_key)
        text = _read_text(file)
        window = _recent(recent)
        similarity_risk = 0.0
        if window:
            current = compute_fingerprint(
                text, lane_key.value, config.story_engine, config.causal_grammar, config.conflict_mode
            )
            similarity_risk = compute_similarity_risk(current, window, lane_key.value)
        result = run_nuance_gate(
            compute_nuance_metrics(text),
            GateOptions(
                lane=lane_key.value,
                caps=caps,
                diversify_enabled=config.diversify and bool(window),
                similarity_risk=similarity_risk,
                restraint=config.restraint,
                melodrama_threshold=config.melodrama_threshold_for(lane_key),
                similarity_threshold=config.similarity_threshold_for(lane_key),
            ),
        )
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    payload = {"lane": lane_key.value, **result.model_dump(mode="json")}
    if not result.passed:
        payload["repair_instruction"] = build_repair_instruction(
            result.failures, caps, config.anti_tropes, lane=lane_key
        )
    _emit(payload)


@app.command("repair")
def repair_cmd(
    failures: str = typer.Option(..., "--failures", help="Comma-separated failure codes"),
    lane: str | None = typer.Option(None, "--lane", help="Lane"),
    policy: Path | None = typer.Option(None, "--policy", help="Path to YAML policy"),
) -> None:
    """Build a repair instruction from failure codes."""
    try:
        config = _policy(policy)
        codes = [code.strip().upper() for code in failures.split(",") if code.strip()]
        instruction = build_repair_instruction(
            codes, config.caps_for(lane), config.anti_tropes, lane=lane or config.default_lane
        )
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    _emit({"failures": codes, "repair_instruction": instruction})


@app.command("prompt")
def prompt_cmd(
    lane: str | None = typer.Option(None, "--lane", help="Lane"),
    policy: Path | None = typer.Option(None, "--policy", help="Path to YAML policy"),
) -> None:
    """Render the nuance constraints block for a generation prompt."""
    try:
        config = _policy(policy)
        block = build_nuance_prompt_block(config.nuance_params(), config.caps_for(lane))
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    _emit({"lane": normalize_lane(lane or config.default_lane).value, "prompt_block": block})


@app.command("resolve")
def resolve_cmd(
    input_file: Path = typer.Option(..., "--input", help="Path to qualification input JSON"),
    stored_hash: str | None = typer.Option(None, "--stored-hash", help="Previously stored resolver hash"),
) -> None:
    """Resolve project qualifications."""
    try:
        raw = load_json(input_file)
        result = resolve_qualifications(raw)
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    payload = result.model_dump(mode="json")
    if stored_hash is not None:
        payload["stale"] = is_stale(stored_hash, raw)
    _emit(payload)


@app.command("evaluate")
def evaluate_cmd(
    file: Path = typer.Option(..., "--file", help="Path to text file"),
    lane: str | None = typer.Option(None, "--lane", help="Lane"),
    policy: Path | None = typer.Option(None, "--policy", help="Path to YAML policy"),
    target: Path | None = typer.Option(None, "--target", help="Path to StyleTarget JSON"),
    recent: Path | None = typer.Option(None, "--recent", help="JSON list of recent fingerprints"),
    attempt: int = typer.Option(0, "--attempt", help="Attempt number"),
    out: Path | None = typer.Option(None, "--out", help="Write the report JSON here"),
) -> None:
    """Run every gate over a text and report."""
    try:
        report = build_evaluation_report(
            _read_text(file),
            _policy(policy),
            lane=lane,
            style_target=_target(target),
            recent_fingerprints=_recent(recent),
            attempt=attempt,
        )
        if out is not None:
            write_report(out.resolve(), report)
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    payload = report.model_dump(mode="json")
    if out is not None:
        payload["report_path"] = str(out.resolve())
    _emit(payload)


@app.command("policy")
def policy_cmd(policy: Path | None = typer.Option(None, "--policy", help="Path to YAML policy")) -> None:
    """Show the effective policy and its hash."""
    try:
        config = _policy(policy)
    except Exception as exc:
        _emit({"error": str(exc)})
        raise typer.Exit(code=1)
    data = config_dict_for_hash(config)
    _emit(
        {
            "policy": data,
            "policy_sha256": sha256_json(data),
            "caps": {lane.value: config.caps_for(lane).model_dump(mode="json") for lane in Lane},
        }
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
