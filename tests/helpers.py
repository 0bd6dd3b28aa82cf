from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from nuance_control.io.json_io import dump_canonical_json

SCREENPLAY_SCENE = "\n".join(
    [
        "INT. KITCHEN - NIGHT",
        "",
        "Maya stands at the sink. She rinses the same cup twice.",
        "",
        "          MAYA",
        "     You said you'd call.",
        "",
        "          DANIEL",
        "          (quietly)",
        "     I did. You didn't pick up.",
        "",
        "She looks at the phone. Silence.",
    ]
)

PLAIN_PROSE = (
    "Anna folds the letter and puts it back in the drawer. She makes tea. "
    "Her brother calls about the rent and she says she will think about it."
)

NUANCED_PROSE = (
    "She pauses at the door. Silence. He stares at the floor while the kettle ticks. "
    "What she won't say is that she is leaving; she says instead that the soup is cold. "
    "Her tactic is patience, and the tell is her hands. Beneath the surface the quarrel is not settled. "
    "Later she realizes the letter meant something else."
)

MELODRAMATIC_PROSE = (
    "The explosion kills everyone. A kidnapping. Murder in the street. She always knew. "
    "He never lied. Everything is lost forever. It turns out the conspiracy was secretly run "
    "by a shadow syndicate. Betrayal!"
)


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_json(path: Path, payload: Any) -> Path:
    dump_canonical_json(path, payload)
    return path


def write_policy(path: Path, overrides: dict[str, Any] | None = None) -> Path:
    payload: dict[str, Any] = {
        "project_name": "test-nuance-control",
        "default_lane": "series",
        "restraint": 50,
        "diversify": True,
        "anti_tropes": ["secret_organization"],
        "thresholds": {
            "acceptable_style_score": 0.6,
            "style_low_drift_floor": 0.8,
            "style_medium_drift_floor": 0.6,
        },
    }
    if overrides:
        payload.update(overrides)
    out = path / "policy.yaml"
    out.write_text(json.dumps(payload), encoding="utf-8")
    return out


def sample_qualification_input(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "project_id": "proj-1",
        "format_subtype": "tv-series",
        "project_qualification_fields": {},
        "overrides": {"qualifications": {}},
        "guardrails_config": None,
        "locked_fields": [],
    }
    payload.update(overrides)
    return payload
