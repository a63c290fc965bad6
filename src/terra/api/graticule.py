"""
どこで: `terra.api.graticule`。
何を: 経緯線（緯度線/経度線のグリッド）を MultiLineString の GeoJSON 文書として生成する。
なぜ: テクスチャ読込前のワイヤーフレーム表示や参照グリッドを、データセットと同じ
      `build` 経路（投影/反子午線/reveal）で描けるようにするため。
"""

from __future__ import annotations

import numpy as np


def graticule(
    step_deg: float = 15.0,
    *,
    sample_deg: float = 2.0,
    include_poles: bool = False,
) -> dict:
    """経緯線の GeoJSON（Feature / MultiLineString）を返す。

    引数:
        step_deg: 線の間隔（度、0 < step ≤ 90）。
        sample_deg: 各線のサンプリング間隔（度）。小さいほど滑らか。
        include_poles: True なら ±90° の緯度線（退化した点列）も含める。

    返り値:
        `{"type": "Feature", "geometry": {"type": "MultiLineString", ...}}`。
        緯度線は -180→180 の開いた線（反子午線で閉じない）、経度線は南極→北極。
    """
    step = float(step_deg)
    sample = float(sample_deg)
    if not 0.0 < step <= 90.0:
        raise ValueError(f"step_deg must be in (0, 90], got {step_deg!r}")
    if sample <= 0.0:
        raise ValueError(f"sample_deg must be > 0, got {sample_deg!r}")

    lines: list[list[list[float]]] = []

    n_lon = max(2, int(np.ceil(360.0 / sample)) + 1)
    lon_samples = np.linspace(-180.0, 180.0, n_lon)
    lat_limit = 90.0 if include_poles else 90.0 - 1e-9
    for lat in np.arange(-90.0, 90.0 + 1e-9, step):
        if abs(lat) > lat_limit:
            continue
        lines.append([[float(lon), float(lat)] for lon in lon_samples])

    n_lat = max(2, int(np.ceil(180.0 / sample)) + 1)
    lat_samples = np.linspace(-90.0, 90.0, n_lat)
    for lon in np.arange(-180.0, 180.0 - 1e-9, step):
        lines.append([[float(lon), float(lat)] for lat in lat_samples])

    return {
        "type": "Feature",
        "properties": {"name": f"graticule {step:g}°"},
        "geometry": {"type": "MultiLineString", "coordinates": lines},
    }


__all__ = ["graticule"]
