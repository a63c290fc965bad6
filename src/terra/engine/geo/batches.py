"""
どこで: `terra.engine.geo.batches`。
何を: 正規化済みジオメトリ列を走査し、リング/ライン 1 本ごとに `LineBatch` を作って
      共有頂点バッファ（`Geometry`）と共有インデックスバッファ（LINES 用ペア）へ追記する。
なぜ: 1 オーバーレイ = VBO/IBO 各 1 本にまとめ、バッチは範囲で区別することで、
      reveal 時にバッファを作り直さず draw range の調整だけで済ませるため。

不変条件:
- バッチ順は入力順（決定的なレイヤリングと stagger 順序）。
- 頂点範囲/インデックス範囲は単調増加で重ならない。
- 単一リングの `GeometryError` は警告してスキップし、ビルドは継続する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from terra.common.errors import GeometryError
from terra.engine.core.geometry import Geometry

from .antimeridian import AntimeridianPolicy
from .normalizer import MULTI_LINE_STRING, MULTI_POLYGON, POLYGON, GeoShape, StyleOverride
from .rings import RingBuild, build_ring

logger = logging.getLogger(__name__)


@dataclass
class LineBatch:
    """リング/ライン 1 本分の描画単位。

    範囲は共有バッファ上の `[start, start + count)`。`index_*` は IBO 上の要素数単位
    （セグメント 1 本 = 2 要素）。`segment_ends` はセグメント終点のローカル頂点 index（昇順）で、
    reveal 時に「可視頂点数 → 可視インデックス数」を求めるのに使う。
    """

    batch_index: int
    geometry_type: str
    vertex_start: int
    vertex_count: int
    index_start: int
    index_count: int
    segment_ends: np.ndarray
    style: StyleOverride | None = None
    node: str = "$"

    @property
    def vertex_range(self) -> tuple[int, int]:
        return self.vertex_start, self.vertex_start + self.vertex_count

    @property
    def index_range(self) -> tuple[int, int]:
        return self.index_start, self.index_start + self.index_count

    @property
    def n_segments(self) -> int:
        return self.index_count // 2


@dataclass
class BuildStats:
    """ビルド集計（ログ/HUD 用）。"""

    shapes: int = 0
    batches: int = 0
    vertices: int = 0
    segments: int = 0
    antimeridian_breaks: int = 0
    skipped_rings: int = 0
    skipped_shapes: int = 0


@dataclass
class BatchSet:
    """共有バッファとバッチ列の束。"""

    geometry: Geometry
    indices: np.ndarray
    batches: list[LineBatch]
    stats: BuildStats = field(default_factory=BuildStats)

    def __len__(self) -> int:
        return len(self.batches)


def accumulate(
    shapes: Sequence[GeoShape],
    *,
    radius: float,
    elevation: float = 0.0,
    elevation_scale: float = 0.0,
    policy: AntimeridianPolicy | str = AntimeridianPolicy.BREAK,
    min_segment_length: float = 0.0,
) -> BatchSet:
    """ジオメトリ列をバッチへ展開し、共有バッファを構築する。

    Parameters
    ----------
    shapes : Sequence[GeoShape]
        `normalize` の結果。
    radius : float
        球の半径。
    elevation, elevation_scale : float
        `build_ring` へそのまま渡す。
    policy : AntimeridianPolicy | str
        反子午線ポリシー。
    min_segment_length : float
        これ以下の弦長のセグメントは描かない。

    Returns
    -------
    BatchSet
        `geometry.offsets` の各区間が 1 バッチに対応する。`indices` は uint32 の
        グローバル頂点 index ペア列（LINES）。
    """
    policy = AntimeridianPolicy.coerce(policy)
    stats = BuildStats(shapes=len(shapes))
    builds: list[RingBuild] = []
    batches: list[LineBatch] = []
    vertex_cursor = 0
    index_cursor = 0

    for shape in shapes:
        produced = 0
        for p, part in enumerate(shape.parts):
            for r, ring in enumerate(part):
                node = _ring_node(shape, p, r)
                try:
                    if isinstance(ring, GeometryError):
                        raise ring
                    rb = build_ring(
                        ring,
                        radius=radius,
                        closed=shape.closed,
                        elevation=elevation,
                        elevation_scale=elevation_scale,
                        policy=policy,
                        min_segment_length=min_segment_length,
                        node=node,
                    )
                except GeometryError as e:
                    stats.skipped_rings += 1
                    logger.warning("skipping ring: %s", e)
                    continue

                index_count = rb.n_segments * 2
                batches.append(
                    LineBatch(
                        batch_index=len(batches),
                        geometry_type=shape.geometry_type,
                        vertex_start=vertex_cursor,
                        vertex_count=rb.n_points,
                        index_start=index_cursor,
                        index_count=index_count,
                        segment_ends=rb.segments[:, 1].astype(np.int64),
                        style=shape.style,
                        node=node,
                    )
                )
                builds.append(rb)
                vertex_cursor += rb.n_points
                index_cursor += index_count
                stats.antimeridian_breaks += rb.breaks
                produced += 1
        if produced == 0:
            stats.skipped_shapes += 1

    geometry = Geometry.from_lines(rb.points for rb in builds)
    indices = _build_indices(builds, batches, index_cursor)

    stats.batches = len(batches)
    stats.vertices = geometry.n_vertices
    stats.segments = index_cursor // 2
    return BatchSet(geometry=geometry, indices=indices, batches=batches, stats=stats)


def _ring_node(shape: GeoShape, part: int, ring: int) -> str:
    """ログ用の位置（元文書の coordinates 内パス）。"""
    base = f"{shape.node}.coordinates"
    if shape.geometry_type == MULTI_POLYGON:
        return f"{base}[{part}][{ring}]"
    if shape.geometry_type == POLYGON:
        return f"{base}[{ring}]"
    if shape.geometry_type == MULTI_LINE_STRING:
        return f"{base}[{part}]"
    return base


def _build_indices(
    builds: Sequence[RingBuild], batches: Sequence[LineBatch], total: int
) -> np.ndarray:
    """各バッチのローカルセグメントをグローバル頂点 index へずらして連結する。"""
    indices = np.empty(total, dtype=np.uint32)
    for rb, batch in zip(builds, batches):
        if batch.index_count == 0:
            continue
        lo, hi = batch.index_range
        indices[lo:hi] = (rb.segments.reshape(-1) + batch.vertex_start).astype(np.uint32)
    return indices


__all__ = ["LineBatch", "BatchSet", "BuildStats", "accumulate"]
