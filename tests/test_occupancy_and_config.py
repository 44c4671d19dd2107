from pathlib import Path
from typing import Any, Dict

import pytest

from lanespeed.oracle.http import HttpOracle
from lanespeed.oracle.registry import create_oracle
from lanespeed.tracking.occupancy import OccupancyClassifier
from lanespeed.utils.config import load_app_config, load_yaml
from lanespeed.utils.types import AppConfig

CONFIG = Path(__file__).resolve().parents[1] / "configs" / "traffic.yaml"


def _cfg_dict() -> Dict[str, Any]:
    return {
        "video": {"uri": "x.mp4", "width": 120, "height": 24},
        "grid": {"cell_width": 24, "cell_height": 12},
        "lanes": [{"name": "a", "offset_y": 12}],
        "tracking": {"cooldown_ms": 80},
    }


def test_occupancy_threshold_is_inclusive() -> None:
    clf = OccupancyClassifier(threshold=0.525)
    assert clf.is_occupied(0.525) is True
    assert clf.is_occupied(0.9) is True
    assert clf.is_occupied(0.52) is False
    assert clf.is_occupied(None) is False
    assert clf.classify([0.6, None, 0.1]) == [True, False, False]


def test_reference_config_loads() -> None:
    cfg = load_app_config(str(CONFIG))
    assert cfg.grid.columns == 16
    assert cfg.grid.feature_size == 8
    assert [lane.offset_y for lane in cfg.lanes] == [52, 15]
    assert [lane.perspective_multiplier for lane in cfg.lanes] == [1.0, 1.12]
    assert cfg.tracking.cooldown_ms == 80.0
    assert cfg.occupancy.threshold == 0.525
    assert cfg.training.sample_size == 4096
    assert cfg.oracle.scoring.max_workers == 8
    assert cfg.speed.output_units == "mph"


def test_config_defaults_fill_missing_sections() -> None:
    cfg = AppConfig.from_dict(_cfg_dict())
    assert cfg.grid.columns == 5
    assert cfg.lanes[0].perspective_multiplier == 1.0
    assert cfg.occupancy.threshold == 0.525
    assert cfg.oracle.backend == "isolation_forest"
    assert cfg.overlay.enabled is False


@pytest.mark.parametrize(
    "section,patch",
    [
        ("tracking", {"cooldown_ms": 0}),
        ("tracking", {"cooldown_ms": -5}),
        ("lanes", [{"name": "a", "offset_y": 20}]),
        ("lanes", []),
        ("grid", {"cell_width": 100, "cell_height": 12}),
        ("speed", {"units": {"output": "mps"}}),
        ("occupancy", {"threshold": float("nan")}),
    ],
)
def test_config_errors_are_fatal(section: str, patch: Any) -> None:
    d = _cfg_dict()
    d[section] = patch
    with pytest.raises(ValueError):
        AppConfig.from_dict(d)


def test_load_yaml_rejects_non_mapping(tmp_path: Path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml(str(p))


def test_oracle_registry() -> None:
    o = create_oracle("http", {"url": "http://127.0.0.1:9/score", "headers": {"X-Key": 1}, "timeout_s": 0.5})
    assert isinstance(o, HttpOracle)
    assert o.headers == {"X-Key": "1"}
    with pytest.raises(ValueError):
        create_oracle("http", {})
    with pytest.raises(ValueError):
        create_oracle("isolation_forest", {})
    with pytest.raises(ValueError):
        create_oracle("magic", {})
