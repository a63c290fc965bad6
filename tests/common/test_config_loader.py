from __future__ import annotations

import logging
from pathlib import Path

import pytest

from terra.util.utils import _safe_load_yaml, load_config, merge_config


def test_merge_config_is_recursive_and_pure() -> None:
    base = {"globe": {"radius": 2.0}, "layers": {"borders": {"radius": 2.005, "material": {"color": "#1a73e8", "opacity": 0.8}}}}
    override = {"layers": {"borders": {"material": {"color": "#ff0000"}}}, "extra": 1}
    merged = merge_config(base, override)
    assert merged["layers"]["borders"]["material"] == {"color": "#ff0000", "opacity": 0.8}
    assert merged["layers"]["borders"]["radius"] == 2.005
    assert merged["extra"] == 1
    assert base["layers"]["borders"]["material"]["color"] == "#1a73e8"


def test_safe_load_yaml_is_fail_soft(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("layers: [unclosed\n", encoding="utf-8")
    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("42\n", encoding="utf-8")
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        assert _safe_load_yaml(bad) == {}
        assert _safe_load_yaml(scalar) == {}
    assert _safe_load_yaml(empty) == {}
    assert _safe_load_yaml(tmp_path / "missing.yaml") == {}


def test_load_config_with_explicit_override(tmp_path: Path) -> None:
    user = tmp_path / "mine.yaml"
    user.write_text("layers:\n  borders:\n    stagger_ms: 99\n", encoding="utf-8")
    cfg = load_config(user)
    assert cfg["layers"]["borders"]["stagger_ms"] == 99


@pytest.mark.integration
def test_load_config_override_keeps_default_layer_keys(tmp_path: Path) -> None:
    base = load_config()
    if not base.get("test_marker"):
        pytest.skip("configs/default.yaml not found from this install")
    user = tmp_path / "mine.yaml"
    user.write_text("layers:\n  borders:\n    stagger_ms: 99\n", encoding="utf-8")
    cfg = load_config(user)
    assert cfg["layers"]["borders"]["radius"] == base["layers"]["borders"]["radius"]
    assert cfg["layers"]["coastlines"] == base["layers"]["coastlines"]
