"""
どこで: `terra.api.layers`。
何を: 構成ファイル（`configs/default.yaml` の `layers:`）から名前付きオーバーレイの
      ビルド引数を組み立て、`build` を呼ぶ薄いヘルパ。
なぜ: 海岸線/国境など定番レイヤーの半径・色・線幅・reveal 設定をコード外で一元管理するため。
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from terra.util.utils import load_config

from .build import GlobeOverlay, build

logger = logging.getLogger(__name__)

# 構成キー → build 引数名
_KEY_MAP = {
    "radius": "radius",
    "animated": "animated",
    "reveal_duration_ms": "reveal_duration_ms",
    "stagger_ms": "stagger_ms",
    "elevation": "elevation",
    "elevation_scale": "elevation_scale",
    "antimeridian": "antimeridian",
    "material": "material_options",
}


def layer_options(name: str, config: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """名前付きレイヤーの `build` 引数辞書を返す。

    - `config` 省略時は `load_config()` を使う。
    - `radius` が無ければ `globe.radius` を使う。
    - 未知のキー（`enabled`, `step_deg` など）は返さない。

    例外:
        KeyError: レイヤーが構成に存在しない場合。
    """
    cfg = load_config() if config is None else config
    layers = cfg.get("layers") or {}
    if not isinstance(layers, Mapping) or name not in layers:
        raise KeyError(f"unknown overlay layer: {name!r}")
    raw = layers[name] or {}
    opts: dict[str, Any] = {}
    for key, arg in _KEY_MAP.items():
        if key in raw:
            opts[arg] = dict(raw[key]) if key == "material" else raw[key]
    if "radius" not in opts:
        globe = cfg.get("globe") or {}
        opts["radius"] = float(globe.get("radius", 1.0))
    return opts


def layer_enabled(name: str, config: Mapping[str, Any] | None = None) -> bool:
    cfg = load_config() if config is None else config
    layers = cfg.get("layers") or {}
    raw = layers.get(name) if isinstance(layers, Mapping) else None
    return bool(raw and raw.get("enabled", True))


def build_layer(
    name: str,
    document: Any,
    *,
    config: Mapping[str, Any] | None = None,
    **overrides: Any,
) -> GlobeOverlay:
    """構成済みレイヤー `name` として文書をビルドする（`overrides` が構成値に優先）。"""
    opts = layer_options(name, config)
    opts.update(overrides)
    opts.setdefault("name", name)
    logger.debug("building layer %r with %s", name, sorted(opts))
    return build(document, **opts)


__all__ = ["layer_options", "layer_enabled", "build_layer"]
