"""
どこで: `terra.engine.geo.rings`。
何を: 1 本のリング/ラインを「投影済み点列 + 独立セグメント（隣接点ペア）」へ変換する。
なぜ: 描画側の線プリミティブは離散セグメント（LINES）を描くため、連続ストリップではなく
      ペアで持てば、反子午線などの不連続点で退化コネクタ無しにきれいに途切れさせられる。

不変条件:
- 点列は入力順を保持する（reveal の描画方向になる）。
- 穴（内周リング）も外周と同じ扱い（閉路として描く、塗りなし）。
- 横断の無い N 点の閉リング（先頭 == 末尾）は N-1 本のセグメントを生み、長さ 0 のものは無い。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from terra.common.errors import GeometryError
from terra.engine.core.projection import project_array

from .antimeridian import AntimeridianPolicy, crossing_mask, split_crossings, wrap_longitudes

logger = logging.getLogger(__name__)

MIN_LINE_POINTS = 2
MIN_RING_POINTS = 4


@dataclass(frozen=True)
class RingBuild:
    """リング 1 本の変換結果。

    - `points (K, 3) float32`: 投影済み点列（入力順）。
    - `segments (S, 2) int32`: `points` 内のローカル index ペア（i, i+1）。昇順。
    - `breaks`: 反子午線ポリシーで省いた/分割した横断数。
    """

    points: np.ndarray
    segments: np.ndarray
    breaks: int = 0

    @property
    def n_points(self) -> int:
        return int(self.points.shape[0])

    @property
    def n_segments(self) -> int:
        return int(self.segments.shape[0])


def build_ring(
    coords: np.ndarray,
    *,
    radius: float,
    closed: bool,
    elevation: float = 0.0,
    elevation_scale: float = 0.0,
    policy: AntimeridianPolicy | str = AntimeridianPolicy.BREAK,
    min_segment_length: float = 0.0,
    node: str | None = None,
) -> RingBuild:
    """座標列を投影し、描画セグメントを構築する。

    引数:
        coords: `(K, 2|3)` の `[lon, lat(, elevation)]`。
        radius: 球の半径。
        closed: ポリゴンのリングなら True（閉路でなければ先頭点を末尾に補う）。
        elevation / elevation_scale: `project_array` を参照。
        policy: 反子午線ポリシー。
        min_segment_length: これ以下の弦長のセグメントは描かない（既定 0 = 長さ 0 のみ除外）。
        node: ログ/例外に載せる位置情報。

    返り値:
        `RingBuild`。

    例外:
        GeometryError: 非有限座標、または点数不足（ライン < 2、閉リング < 4）。
    """
    policy = AntimeridianPolicy.coerce(policy)
    arr = np.asarray(coords, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] < 2:
        raise GeometryError(f"coordinates must have shape (K, 2|3), got {arr.shape}", node=node)
    if not np.all(np.isfinite(arr)):
        raise GeometryError("non-finite coordinate", node=node)

    lon = arr[:, 0]
    n_wrapped = int(np.count_nonzero((lon < -180.0) | (lon > 180.0)))
    if n_wrapped:
        # 横断判定は折り返し後の経度で行う
        logger.warning("%d longitude(s) outside [-180, 180] wrapped at %s", n_wrapped, node)
        arr = arr.copy()
        arr[:, 0] = wrap_longitudes(lon)

    arr = _dedupe_consecutive(arr)
    if closed and arr.shape[0] >= 2 and not np.array_equal(arr[0, :2], arr[-1, :2]):
        logger.debug("closing unclosed ring at %s", node)
        arr = np.vstack([arr, arr[:1]])

    min_points = MIN_RING_POINTS if closed else MIN_LINE_POINTS
    if arr.shape[0] < min_points:
        kind = "closed ring" if closed else "line"
        raise GeometryError(
            f"{kind} needs at least {min_points} distinct points, got {arr.shape[0]}", node=node
        )

    crossings = crossing_mask(arr[:, 0])
    n_cross = int(np.count_nonzero(crossings))
    if policy is AntimeridianPolicy.SPLIT and n_cross:
        arr, gaps = split_crossings(arr, crossings)
    elif policy is AntimeridianPolicy.BREAK:
        gaps = crossings
    else:
        gaps = np.zeros(arr.shape[0] - 1, dtype=bool)

    try:
        points = project_array(arr, radius, elevation=elevation, elevation_scale=elevation_scale)
    except GeometryError as e:
        raise GeometryError(e.reason, node=node) from None

    starts = np.arange(points.shape[0] - 1, dtype=np.int32)
    keep = ~gaps
    if keep.any():
        lengths = np.linalg.norm(points[1:] - points[:-1], axis=1)
        keep &= lengths > float(min_segment_length)
    starts = starts[keep]
    segments = np.stack([starts, starts + 1], axis=1).astype(np.int32, copy=False)
    return RingBuild(
        points=points,
        segments=segments.reshape(-1, 2),
        breaks=n_cross if policy is not AntimeridianPolicy.CONNECT else 0,
    )


def _dedupe_consecutive(arr: np.ndarray) -> np.ndarray:
    """連続する完全一致座標（経度/緯度）を 1 点にまとめる。"""
    if arr.shape[0] < 2:
        return arr
    same = np.all(arr[1:, :2] == arr[:-1, :2], axis=1)
    if not same.any():
        return arr
    keep = np.concatenate([[True], ~same])
    return arr[keep]


__all__ = ["RingBuild", "build_ring", "MIN_LINE_POINTS", "MIN_RING_POINTS"]
