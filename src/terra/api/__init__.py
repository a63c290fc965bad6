"""
どこで: `terra.api` 入口（高レベル公開 API）。
何を: `build`（文書 → ノード + update）とレイヤープリセット、経緯線生成を再輸出。
なぜ: 利用者が描画エンジン非依存の単一入口からオーバーレイを構築できるようにするため。
"""

from .build import GlobeOverlay, build
from .graticule import graticule
from .layers import build_layer, layer_options

__all__ = ["build", "GlobeOverlay", "build_layer", "layer_options", "graticule"]
