from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from nuance_control.config import PolicyConfig, config_dict_for_hash, load_config
from nuance_control.constants import Lane
from nuance_control.io.hashing import sha256_json
from nuance_control.nuance.defaults import get_default_caps
from tests.helpers import write_policy


def test_defaults_without_file() -> None:
    config = PolicyConfig()

    assert config.default_lane is Lane.SERIES
    assert config.restraint == 70
    assert config.thresholds.acceptable_style_score == 0.60
    assert config.caps_for() == get_default_caps("series")
    assert config.melodrama_threshold_for() is None


def test_load_config_normalizes_lane_keys(tmp_path: Path) -> None:
    path = write_policy(
        tmp_path,
        {
            "default_lane": "Vertical Drama",
            "lane_caps": {"feature-film": {"faction_cap": 3}},
            "melodrama_thresholds": {"Documentary": 0.3},
            "similarity_thresholds": {"vertical": 0.8},
        },
    )
    config = load_config(path)

    assert config.default_lane is Lane.VERTICAL_DRAMA
    feature = config.caps_for("feature_film")
    assert feature.faction_cap == 3
    assert feature.subtext_scenes_min == get_default_caps("feature_film").subtext_scenes_min
    assert config.melodrama_threshold_for("documentary") == 0.3
    assert config.melodrama_threshold_for("series") is None
    assert config.similarity_threshold_for() == 0.8


def test_empty_yaml_loads_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == PolicyConfig()


@pytest.mark.parametrize(
    "overrides",
    [
        {"restraint": 150},
        {"restraint": -1},
        {"thresholds": {"style_low_drift_floor": 0.5, "style_medium_drift_floor": 0.7}},
        {"melodrama_thresholds": {"series": 1.5}},
        {"lane_caps": {"series": {"twist_cap": -1}}},
    ],
)
def test_invalid_policy_is_rejected(tmp_path: Path, overrides: dict) -> None:
    with pytest.raises(ValidationError):
        load_config(write_policy(tmp_path, overrides))


def test_nuance_params_follow_policy() -> None:
    config = PolicyConfig(restraint=85, anti_tropes=["chosen_one"], drama_budget=1, diversify=False)
    params = config.nuance_params()

    assert params.restraint == 85
    assert params.anti_tropes == ["chosen_one"]
    assert params.drama_budget == 1
    assert params.diversify is False


def test_config_hash_is_stable(tmp_path: Path) -> None:
    first = load_config(write_policy(tmp_path))
    second = load_config(write_policy(tmp_path))

    assert sha256_json(config_dict_for_hash(first)) == sha256_json(config_dict_for_hash(second))
    assert sha256_json(config_dict_for_hash(first)) != sha256_json(config_dict_for_hash(PolicyConfig()))
