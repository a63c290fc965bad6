"""
どこで: `terra` パッケージ入口。
何を: GeoJSON を球面上の線オーバーレイへ変換する `build` と結果型・例外を再輸出。
なぜ: 利用者が単一名前空間から「文書 → ノード + update」まで完結できるようにするため。

Usage:
    import json
    from terra import build

    with open("ne_110m_coastline.json", encoding="utf-8") as f:
        doc = json.load(f)

    overlay = build(doc, radius=2.005, material_options={"color": 0x9EC6FF},
                    animated=True, reveal_duration_ms=2500, stagger_ms=5)
    # 描画ループ側で毎フレーム
    overlay.update(now_ms)
"""

from .api.build import GlobeOverlay, build
from .api.graticule import graticule
from .api.layers import build_layer, layer_options
from .common.errors import GeometryError, ProjectionError, TerraError, ValidationError
from .engine.core.projection import project

__all__ = [
    "build",
    "GlobeOverlay",
    "build_layer",
    "layer_options",
    "graticule",
    "project",
    "TerraError",
    "ValidationError",
    "GeometryError",
    "ProjectionError",
]

__version__ = "2026.10"
