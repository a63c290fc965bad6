"""
どこで: `terra.engine.core.projection`。
何を: 経度/緯度（+任意の標高）を半径 r の球面上の XYZ へ写像する純関数。
なぜ: テクスチャ球メッシュ（外部コラボレータ）と同一の向き規約を 1 箇所に固定し、
      オーバーレイが海岸線からずれないようにするため。

向き規約（テクスチャ球と共有、変更不可）:

    phi   = (90 - lat) * π/180      # 北極からの余緯度
    theta = (lon + 180) * π/180
    x = -(r + e) * sin(phi) * cos(theta)
    y =  (r + e) * cos(phi)
    z =  (r + e) * sin(phi) * sin(theta)

代表点（r=1）:
- 北極 (任意, 90)  → (0, 1, 0) / 南極 (任意, -90) → (0, -1, 0)
- (0, 0)   → (1, 0, 0)   本初子午線 × 赤道
- (90, 0)  → (0, 0, -1)
- (±180, 0) → (-1, 0, 0)  テクスチャの継ぎ目

範囲外入力:
- 緯度は [-90, 90] にクランプ、経度は [-180, 180) へラップしてから投影する。
- 単一座標の範囲外では例外を送出しない（警告ログのみ）。上流データの一部不正で
  データセット全体が失敗しないようにするため。
"""

from __future__ import annotations

import logging
import math

import numpy as np

from terra.common.errors import GeometryError, ProjectionError
from terra.common.types import Vec3

logger = logging.getLogger(__name__)

_DEG2RAD = math.pi / 180.0


def wrap_longitude(lon: float) -> float:
    """経度を [-180, 180) に折り返す。"""
    return ((float(lon) + 180.0) % 360.0) - 180.0


def clamp_latitude(lat: float) -> float:
    return -90.0 if lat < -90.0 else 90.0 if lat > 90.0 else float(lat)


def project(lon: float, lat: float, radius: float, elevation: float = 0.0) -> Vec3:
    """1 座標を球面上の点へ投影する。

    引数:
        lon: 経度（度）。範囲外は [-180, 180) へラップ。
        lat: 緯度（度）。範囲外は [-90, 90] にクランプ。
        radius: 球の半径。
        elevation: 半径方向のオフセット（球面からの高さ）。

    返り値:
        `(x, y, z)`。原点からの距離は `radius + elevation`。

    例外:
        GeometryError: `radius + elevation <= 0` の場合（点が対蹠側へ反転するため）。
        ProjectionError: 結果が有限値にならない場合（半径が非有限など）。
    """
    lon_f = float(lon)
    lat_f = float(lat)
    # lon=180 は範囲内（-180 と同一点）として扱い、警告しない
    if not (-180.0 <= lon_f <= 180.0 and -90.0 <= lat_f <= 90.0):
        logger.warning("out-of-range coordinate clamped: lon=%r lat=%r", lon, lat)
    lon_f = wrap_longitude(lon_f)
    lat_f = clamp_latitude(lat_f)

    r = float(radius) + float(elevation)
    if r <= 0.0:
        raise GeometryError(
            f"effective radius must be > 0, got {r!r} (radius={radius!r}, elevation={elevation!r})"
        )
    phi = (90.0 - lat_f) * _DEG2RAD
    theta = (lon_f + 180.0) * _DEG2RAD
    x = -r * math.sin(phi) * math.cos(theta)
    y = r * math.cos(phi)
    z = r * math.sin(phi) * math.sin(theta)
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        raise ProjectionError(
            f"non-finite projection for lon={lon!r} lat={lat!r} radius={radius!r}"
        )
    return (x, y, z)


def project_array(
    lonlat: np.ndarray,
    radius: float,
    elevation: float = 0.0,
    elevation_scale: float = 0.0,
) -> np.ndarray:
    """座標列 `(K, 2|3)` を一括投影して `(K, 3) float32` を返す。

    Parameters
    ----------
    lonlat : np.ndarray
        `[lon, lat]` または `[lon, lat, elevation]` の行からなる配列（有限値であること）。
    radius : float
        球の半径。
    elevation : float, default 0.0
        全点に共通の半径方向オフセット。
    elevation_scale : float, default 0.0
        3 列目（座標ごとの標高）に掛ける係数。0 なら 3 列目は無視される。

    Returns
    -------
    np.ndarray
        投影済み頂点 `(K, 3) float32`。

    Notes
    -----
    `project` と同じ規約・同じ範囲外ポリシー（クランプ/ラップ + 警告）を適用する。
    実効半径 `radius + elevation + elevation_scale * 標高` が 0 以下の点があれば
    `GeometryError` を送出する。
    """
    arr = np.asarray(lonlat, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] < 2:
        raise ValueError(f"lonlat は形状 (K, 2|3) の配列である必要があります: {arr.shape}")
    if arr.shape[0] == 0:
        return np.empty((0, 3), dtype=np.float32)

    lon = arr[:, 0]
    lat = arr[:, 1]
    bad = (lon < -180.0) | (lon > 180.0) | (lat < -90.0) | (lat > 90.0)
    n_bad = int(np.count_nonzero(bad))
    if n_bad:
        logger.warning("%d out-of-range coordinate(s) clamped/wrapped", n_bad)
    lon = np.mod(lon + 180.0, 360.0) - 180.0
    lat = np.clip(lat, -90.0, 90.0)

    r = np.full(arr.shape[0], float(radius) + float(elevation), dtype=np.float64)
    if elevation_scale and arr.shape[1] >= 3:
        r += float(elevation_scale) * arr[:, 2]
    n_inside = int(np.count_nonzero(r <= 0.0))
    if n_inside:
        # 負の半径は対蹠点へ反転してしまう
        raise GeometryError(f"{n_inside} point(s) with effective radius <= 0 (radius + elevation)")

    phi = (90.0 - lat) * _DEG2RAD
    theta = (lon + 180.0) * _DEG2RAD
    sin_phi = np.sin(phi)
    out = np.empty((arr.shape[0], 3), dtype=np.float64)
    out[:, 0] = -r * sin_phi * np.cos(theta)
    out[:, 1] = r * np.cos(phi)
    out[:, 2] = r * sin_phi * np.sin(theta)
    if not np.all(np.isfinite(out)):
        raise ProjectionError(f"non-finite projection (radius={radius!r})")
    return out.astype(np.float32)


__all__ = ["project", "project_array", "wrap_longitude", "clamp_latitude"]
