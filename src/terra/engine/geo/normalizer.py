"""
どこで: `terra.engine.geo.normalizer`。
何を: パース済み GeoJSON（FeatureCollection / Feature / 裸の Geometry）を検証し、
      型付きの `GeoShape` 列へ平坦化する。
なぜ: 後段（投影/セグメント化）が文書構造を意識せず、リング配列だけを扱えるようにするため。

エラー方針:
- トップレベルの形状が認識できない → `ValidationError`（ビルド全体を中断）。
- 未対応のジオメトリ型（Point, GeometryCollection 等）→ 警告ログを出してスキップ。
- 個々の座標配列が不正 → `GeometryError`（その部分のみ、アキュムレータ側でスキップ）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from terra.common.errors import GeometryError, ValidationError

logger = logging.getLogger(__name__)

POLYGON = "Polygon"
MULTI_POLYGON = "MultiPolygon"
LINE_STRING = "LineString"
MULTI_LINE_STRING = "MultiLineString"

SUPPORTED_TYPES = frozenset({POLYGON, MULTI_POLYGON, LINE_STRING, MULTI_LINE_STRING})
# 認識はするが描かない型（トップレベルでも ValidationError にはしない）
UNSUPPORTED_TYPES = frozenset({"Point", "MultiPoint", "GeometryCollection"})

# properties から拾うスタイル上書きキー（simplestyle 名も別名として受理）
_COLOR_KEYS = ("color", "stroke")
_OPACITY_KEYS = ("opacity", "stroke-opacity")


@dataclass(frozen=True)
class StyleOverride:
    """フィーチャ単位のスタイル上書き（未指定は None）。値は解釈せず描画側へ渡す。"""

    color: Any = None
    opacity: float | None = None


@dataclass(frozen=True)
class GeoShape:
    """正規化済みジオメトリ 1 件。

    - `parts`: Polygon → `(rings,)`、MultiPolygon → ポリゴンごとの `rings`、
      LineString → `((line,),)`、MultiLineString → ラインごとに `(line,)`。
    - 各リング/ラインは未検証の座標配列（`float64 (K, 2|3)`）、または変換に失敗した
      部分を表す `GeometryError`。
    - `closed`: ポリゴン系（リングは閉路）なら True。
    """

    geometry_type: str
    parts: tuple[tuple[np.ndarray | GeometryError, ...], ...]
    style: StyleOverride | None = None
    node: str = "$"

    @property
    def closed(self) -> bool:
        return self.geometry_type in (POLYGON, MULTI_POLYGON)

    @property
    def ring_count(self) -> int:
        return sum(len(p) for p in self.parts)


def normalize(document: Any) -> list[GeoShape]:
    """文書を `GeoShape` 列へ平坦化する（入力順を保持）。

    引数:
        document: `json.load` 済みの GeoJSON オブジェクト。

    返り値:
        描画対象ジオメトリのリスト（空の場合もある）。

    例外:
        ValidationError: トップレベルが FeatureCollection/Feature/Geometry のいずれでもない場合。
    """
    if not isinstance(document, Mapping):
        raise ValidationError(
            f"document must be a JSON object, got {type(document).__name__}", node="$"
        )
    doc_type = document.get("type")
    if not isinstance(doc_type, str):
        raise ValidationError("missing or non-string 'type'", node="$")

    shapes: list[GeoShape] = []
    if doc_type == "FeatureCollection":
        features = document.get("features")
        if not isinstance(features, list):
            raise ValidationError("'features' must be an array", node="$.features")
        for idx, raw in enumerate(features):
            _collect_feature(raw, f"$.features[{idx}]", shapes)
    elif doc_type == "Feature":
        _collect_feature(document, "$", shapes, strict=True)
    elif doc_type in SUPPORTED_TYPES or doc_type in UNSUPPORTED_TYPES:
        _collect_geometry(document, "$", None, shapes)
    else:
        raise ValidationError(f"unrecognized GeoJSON type {doc_type!r}", node="$")
    return shapes


def _collect_feature(
    raw: Any, node: str, out: list[GeoShape], *, strict: bool = False
) -> None:
    """Feature を 1 件解釈して `out` に追加する。"""
    if not isinstance(raw, Mapping) or raw.get("type") != "Feature":
        logger.warning("skipping malformed feature at %s", node)
        return
    geometry = raw.get("geometry")
    if geometry is None:
        # 位置を持たない Feature は正当な GeoJSON（描くものが無いだけ）
        logger.debug("feature without geometry at %s", node)
        return
    if not isinstance(geometry, Mapping):
        if strict:
            raise ValidationError("'geometry' must be an object or null", node=f"{node}.geometry")
        logger.warning("skipping feature with non-object geometry at %s", node)
        return
    style = _extract_style(raw.get("properties"))
    _collect_geometry(geometry, f"{node}.geometry", style, out)


def _collect_geometry(
    geometry: Mapping[str, Any],
    node: str,
    style: StyleOverride | None,
    out: list[GeoShape],
) -> None:
    geom_type = geometry.get("type")
    if geom_type not in SUPPORTED_TYPES:
        logger.warning("skipping unsupported geometry type %r at %s", geom_type, node)
        return

    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, (list, tuple)):
        logger.warning("skipping %s without coordinates array at %s", geom_type, node)
        return

    if geom_type == LINE_STRING:
        parts = ((_to_array(coordinates, f"{node}.coordinates"),),)
    elif geom_type == MULTI_LINE_STRING:
        parts = tuple(
            (_to_array(line, f"{node}.coordinates[{i}]"),) for i, line in enumerate(coordinates)
        )
    elif geom_type == POLYGON:
        parts = (_rings(coordinates, f"{node}.coordinates"),)
    else:
        parts = tuple(
            _rings(poly, f"{node}.coordinates[{i}]") for i, poly in enumerate(coordinates)
        )
    out.append(GeoShape(geometry_type=geom_type, parts=parts, style=style, node=node))


def _rings(polygon: Any, node: str) -> tuple[np.ndarray | GeometryError, ...]:
    if not isinstance(polygon, (list, tuple)):
        return (GeometryError("polygon must be an array of rings", node=node),)
    return tuple(_to_array(ring, f"{node}[{j}]") for j, ring in enumerate(polygon))


def _to_array(coords: Any, node: str) -> np.ndarray | GeometryError:
    """座標列を `float64 (K, 2|3)` へ変換する。失敗時は例外を返す（送出しない）。

    標高付き（3 要素）と 2 要素が混在する場合は 2 列に揃える。
    """
    if not isinstance(coords, (list, tuple)):
        return GeometryError("coordinates must be an array of positions", node=node)
    rows: list[list[float]] = []
    width = 3
    try:
        for pos in coords:
            if not isinstance(pos, (list, tuple)) or len(pos) < 2:
                return GeometryError("position must have at least [lon, lat]", node=node)
            values = pos[:3]
            if not all(_is_number(v) for v in values):
                return GeometryError("position values must be numbers", node=node)
            rows.append([float(v) for v in values])
            width = min(width, len(rows[-1]))
    except (TypeError, ValueError, OverflowError):
        return GeometryError("position values must be numbers", node=node)
    if not rows:
        return np.empty((0, 2), dtype=np.float64)
    return np.array([r[:width] for r in rows], dtype=np.float64)


def _is_number(value: Any) -> bool:
    """JSON の数値のみ真（bool と数値文字列は不可）。"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _extract_style(properties: Any) -> StyleOverride | None:
    """properties からスタイル上書きだけを取り出す（他のキーは破棄）。"""
    if not isinstance(properties, Mapping):
        return None
    color = next((properties[k] for k in _COLOR_KEYS if properties.get(k) is not None), None)
    opacity_raw = next(
        (properties[k] for k in _OPACITY_KEYS if properties.get(k) is not None), None
    )
    opacity: float | None = None
    if opacity_raw is not None:
        try:
            opacity = min(1.0, max(0.0, float(opacity_raw)))
        except (TypeError, ValueError):
            logger.warning("ignoring non-numeric opacity %r", opacity_raw)
    if color is None and opacity is None:
        return None
    return StyleOverride(color=color, opacity=opacity)


__all__ = [
    "GeoShape",
    "StyleOverride",
    "normalize",
    "SUPPORTED_TYPES",
    "POLYGON",
    "MULTI_POLYGON",
    "LINE_STRING",
    "MULTI_LINE_STRING",
]
