import json

import pytest

from tankproc.presets import PRESETS, CampaignConfig, HULLS, load_config


def test_condition_lookup():
    cfg = CampaignConfig()
    assert cfg.condition_for_run(63).code == 7
    assert cfg.condition_for_run(141).code == 7
    assert cfg.condition_for_run(142).code == 8
    assert cfg.condition_for_run(250) is None
    assert cfg.hull_for(10).name == "1804"
    assert not cfg.condition(1).turbulence_correction
    assert cfg.condition(12).turbulence_correction
    with pytest.raises(KeyError):
        cfg.condition(99)


def test_conditions_cover_runs_once():
    cfg = CampaignConfig()
    seen = [r for c in cfg.conditions for r in c.runs]
    assert sorted(seen) == list(range(1, 250))


def test_full_scale_hull():
    fs = HULLS["1500"].full_scale(21.6)
    assert fs.lwl == pytest.approx(4.30 * 21.6)
    assert fs.wsa == pytest.approx(1.501 * 21.6 ** 2)


def test_load_config_overrides(tmp_path):
    p = tmp_path / "c.json"
    p.write_text(json.dumps({"trim_start": 500, "constants": {"gravity": 9.81},
                             "uncertainty_conditions": [7, 10]}))
    cfg = load_config(p, base=PRESETS["AMC2013-resistance"])
    assert cfg.trim_start == 500
    assert cfg.first_run == 63
    assert cfg.constants.gravity == 9.81
    assert cfg.constants.scale_ratio == 21.6
    assert cfg.uncertainty_conditions == (7, 10)
    assert PRESETS["AMC2013-resistance"].trim_start == 1000


def test_load_config_rejects_unknown_and_fixed_keys(tmp_path):
    p = tmp_path / "c.json"
    p.write_text(json.dumps({"trimstart": 500}))
    with pytest.raises(ValueError):
        load_config(p)
    p.write_text(json.dumps({"hulls": {}}))
    with pytest.raises(ValueError):
        load_config(p)
