"""
どこで: `terra.api.build`（出力アダプタ）。
何を: パース済み GeoJSON から同期的にオーバーレイを構築し、シーンへ挿入可能な `node` と
      毎フレーム呼ぶ `update(now_ms)` を 1 つの結果オブジェクトで返す。
なぜ: 「I/O（取得/パース）は外側、構築は同期の純粋処理」という二段契約にし、
      リテラルの fixture だけで構築処理を単体テストできるようにするため。

失敗時の保証:
- 文書レベルの不正（`ValidationError`）やパラメータ不正は例外で中断し、途中まで作った
  ノードは返さない。
- フィーチャ/リング単位の不正は警告ログを出してスキップする。
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from terra.common.settings import get as get_settings
from terra.engine.geo.antimeridian import AntimeridianPolicy
from terra.engine.geo.batches import BuildStats, accumulate
from terra.engine.geo.normalizer import normalize
from terra.engine.render.types import MaterialOptions, OverlayNode
from terra.engine.reveal.controller import RevealController, RevealState

logger = logging.getLogger(__name__)


class GlobeOverlay:
    """1 回のビルド結果（グローブ 1 インスタンスにつき 1 つ）。

    - `node`: 描画エンジンへ渡す不透明ハンドル（挿入/削除は呼び出し側）。
    - `update(now_ms)`: ビルド後に状態を変える唯一の経路（描画スレッドから毎フレーム）。
    - 破棄はこのオブジェクトを手放すだけ（タイマーやスレッドは持たない）。
    """

    __slots__ = ("node", "stats", "_reveal")

    def __init__(self, node: OverlayNode, reveal: RevealController, stats: BuildStats) -> None:
        self.node = node
        self.stats = stats
        self._reveal = reveal

    def update(self, now_ms: float) -> None:
        """時刻 `now_ms`（ミリ秒）に合わせて可視範囲を進める。"""
        self._reveal.update(now_ms)

    def reset(self, start_ms: float | None = None) -> None:
        """reveal を明示的に最初からやり直す。"""
        self._reveal.reset(start_ms)

    def reveal_state(self, batch_index: int) -> RevealState:
        return self._reveal.state(batch_index)

    @property
    def complete(self) -> bool:
        return self._reveal.complete

    def __iter__(self):
        # `node, update = build(...)` 形式の分解を許す
        yield self.node
        yield self.update

    def __repr__(self) -> str:
        return f"GlobeOverlay(node={self.node!r}, complete={self.complete})"


def build(
    document: Any,
    radius: float,
    material_options: Mapping[str, Any] | MaterialOptions | None = None,
    animated: bool = False,
    reveal_duration_ms: float | None = None,
    stagger_ms: float | None = None,
    *,
    elevation: float = 0.0,
    elevation_scale: float = 0.0,
    antimeridian: AntimeridianPolicy | str | None = None,
    start_ms: float | None = None,
    min_segment_length: float | None = None,
    name: str | None = None,
) -> GlobeOverlay:
    """GeoJSON 文書から球面オーバーレイを構築する（同期・全か無か）。

    Parameters
    ----------
    document : Any
        パース済み GeoJSON（FeatureCollection / Feature / Geometry）。保持しない。
    radius : float
        球の半径（有限かつ > 0）。
    material_options : Mapping | MaterialOptions | None
        `{color, linewidth, opacity}`。コアは解釈せず `node.material` として渡す。
    animated : bool, default False
        True なら reveal アニメーション、False なら最初から全表示。
    reveal_duration_ms : float | None
        1 バッチが描き終わるまでの時間。None は設定値（`TERRA_REVEAL_DURATION_MS`）。
    stagger_ms : float | None
        バッチ順の開始遅延。None は設定値（`TERRA_STAGGER_MS`）。
    elevation : float, default 0.0
        全点共通の半径方向オフセット。
    elevation_scale : float, default 0.0
        座標 3 列目（標高）に掛ける係数。
    antimeridian : AntimeridianPolicy | str | None
        ``"break"``（既定）/ ``"split"`` / ``"connect"``。None は設定値。
    start_ms : float | None
        reveal の全体開始時刻。None なら最初の `update` の時刻。
    min_segment_length : float | None
        これ以下の弦長のセグメントは描かない。None は設定値。
    name : str | None
        ログ/デバッグ用のノード名。

    Returns
    -------
    GlobeOverlay
        `node` と `update(now_ms)` を持つ結果。

    Raises
    ------
    ValidationError
        文書のトップレベル形状が認識できない場合。
    ValueError
        半径・標高・時間・ポリシー指定が不正な場合（`radius + elevation <= 0` を含む）。
        座標ごとの標高で実効半径が 0 以下になるリングは警告してスキップする。
    """
    settings = get_settings()
    radius_f = float(radius)
    if not math.isfinite(radius_f) or radius_f <= 0.0:
        raise ValueError(f"radius must be finite and > 0, got {radius!r}")
    elevation_f = float(elevation)
    elevation_scale_f = float(elevation_scale)
    if not (math.isfinite(elevation_f) and math.isfinite(elevation_scale_f)):
        raise ValueError(
            f"elevation and elevation_scale must be finite, got {elevation!r}, {elevation_scale!r}"
        )
    if radius_f + elevation_f <= 0.0:
        raise ValueError(f"radius + elevation must be > 0, got {radius_f + elevation_f!r}")
    duration = settings.REVEAL_DURATION_MS if reveal_duration_ms is None else reveal_duration_ms
    stagger = settings.STAGGER_MS if stagger_ms is None else stagger_ms
    min_len = settings.MIN_SEGMENT_LENGTH if min_segment_length is None else min_segment_length
    policy = AntimeridianPolicy.coerce(antimeridian)
    material = MaterialOptions.from_mapping(material_options)

    shapes = normalize(document)
    batch_set = accumulate(
        shapes,
        radius=radius_f,
        elevation=elevation_f,
        elevation_scale=elevation_scale_f,
        policy=policy,
        min_segment_length=float(min_len),
    )
    reveal = RevealController(
        batch_set.batches,
        duration_ms=duration,
        stagger_ms=stagger,
        start_ms=start_ms,
        animated=animated,
    )
    node = OverlayNode(
        geometry=batch_set.geometry,
        indices=batch_set.indices,
        batches=batch_set.batches,
        material=material,
        reveal=reveal,
        name=name,
    )
    stats = batch_set.stats
    logger.debug(
        "built overlay %r: shapes=%d batches=%d vertices=%d segments=%d "
        "breaks=%d skipped_rings=%d skipped_shapes=%d",
        name,
        stats.shapes,
        stats.batches,
        stats.vertices,
        stats.segments,
        stats.antimeridian_breaks,
        stats.skipped_rings,
        stats.skipped_shapes,
    )
    return GlobeOverlay(node, reveal, stats)


__all__ = ["build", "GlobeOverlay"]
