"""
どこで: `terra.engine.geo.antimeridian`。
何を: 経度 ±180° をまたぐ隣接座標の扱い（break / split / connect）を決める。
なぜ: 経度差が 180° を超える 2 点を素直に結ぶと、球の内部を貫く弦やテクスチャの継ぎ目を
      横切る筋が描かれるため。既定は「break（そのセグメントを描かない）」。

判定: [-180, 180] へ折り返した経度で `|lon[i+1] - lon[i]| > 180` のとき「横断」とみなす。

ポリシー:
- ``"break"``   : 横断セグメントを省く（既定）。
- ``"split"``   : 横断点の緯度を線形補間し、手前側 ±180 と向こう側 ∓180 に点を挿入。
                  p0→端点A と 端点B→p1 を描き、A–B 間は結ばない。
- ``"connect"`` : 横断を無視してそのまま結ぶ。
"""

from __future__ import annotations

from enum import Enum

import numpy as np


class AntimeridianPolicy(str, Enum):
    BREAK = "break"
    SPLIT = "split"
    CONNECT = "connect"

    @classmethod
    def coerce(cls, value: "AntimeridianPolicy | str | None") -> "AntimeridianPolicy":
        """文字列/None を受理してポリシーへ変換（None は設定値）。"""
        if value is None:
            from terra.common.settings import get as _get_settings

            value = _get_settings().ANTIMERIDIAN
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ValueError(
                f"unknown antimeridian policy {value!r} (expected one of: {choices})"
            ) from None


def wrap_longitudes(lon: np.ndarray) -> np.ndarray:
    """経度列を [-180, 180] へ折り返した新しい配列を返す。

    0..360 表記などの範囲外経度も、横断判定の前にここで揃える。+180 側の値
    （180, 540 など）は -180 ではなく 180 のまま残し、180 へ向かう線が横断扱いにならないようにする。
    """
    lon = np.asarray(lon, dtype=np.float64)
    wrapped = np.mod(lon + 180.0, 360.0) - 180.0
    wrapped[(wrapped == -180.0) & (lon > 0.0)] = 180.0
    return wrapped


def crossing_mask(lon: np.ndarray) -> np.ndarray:
    """隣接ペア i→i+1 が反子午線を横断するかの真偽配列（長さ K-1）を返す。"""
    lon = np.asarray(lon, dtype=np.float64)
    if lon.shape[0] < 2:
        return np.zeros(0, dtype=bool)
    return np.abs(np.diff(lon)) > 180.0


def split_crossings(coords: np.ndarray, crossings: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """横断箇所に端点を挿入した座標列と、結ばないペアのマスクを返す。

    Parameters
    ----------
    coords : np.ndarray
        `(K, 2|3)` の座標列（経度は `wrap_longitudes` 済み）。
    crossings : np.ndarray
        `crossing_mask(coords[:, 0])` の結果。

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        `(new_coords, gaps)`。`gaps[j]` が True のとき `new_coords[j]→new_coords[j+1]` は描かない。
        挿入した 2 点は経度 ±180 の同一緯度（3 列目は線形補間）。
    """
    if not np.any(crossings):
        return coords, np.zeros(max(0, coords.shape[0] - 1), dtype=bool)

    out_rows: list[np.ndarray] = [coords[0]]
    gaps: list[bool] = []
    for i in range(coords.shape[0] - 1):
        p0 = coords[i]
        p1 = coords[i + 1]
        if crossings[i]:
            lon0 = float(p0[0])
            lon1 = float(p1[0])
            # 連続になるよう p1 側の経度を 360° ずらして交点を求める
            edge = 180.0 if lon0 > lon1 else -180.0
            lon1_unwrapped = lon1 + 2.0 * edge
            denom = lon1_unwrapped - lon0
            t = (edge - lon0) / denom if denom != 0.0 else 0.5
            t = min(1.0, max(0.0, t))
            mid = p0 + t * (p1 - p0)
            a = mid.copy()
            a[0] = edge
            b = mid.copy()
            b[0] = -edge
            out_rows.extend([a, b])
            gaps.extend([False, True])
        out_rows.append(p1)
        gaps.append(False)
    return np.vstack(out_rows), np.asarray(gaps, dtype=bool)


__all__ = ["AntimeridianPolicy", "crossing_mask", "split_crossings", "wrap_longitudes"]
