"""
どこで: `terra.engine.render` 型定義。
何を: マテリアル指定 `MaterialOptions` と、シーンへ挿入する不透明ハンドル `OverlayNode`。
なぜ: ビルド結果を描画エンジンに依存しない形で受け渡し、描画側が必要な情報
      （共有バッファ・バッチ範囲・可視範囲・スタイル）だけを読めるようにするため。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, Mapping

import numpy as np

from terra.engine.core.geometry import Geometry
from terra.engine.geo.batches import LineBatch

if TYPE_CHECKING:
    from terra.engine.reveal.controller import RevealController


@dataclass(frozen=True)
class MaterialOptions:
    """線マテリアル指定。コアは値を解釈・検証せず描画側へそのまま渡す。

    数値化や不正値のフォールバックは描画側（`OverlayRenderer`）の責務。
    """

    color: Any = 0xFFFFFF
    linewidth: Any = 1.0
    opacity: Any = 1.0
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, options: "Mapping[str, Any] | MaterialOptions | None") -> "MaterialOptions":
        """辞書（three.js 流の `{color, linewidth, opacity}`）から生成する。

        未知のキーは `extra` に保持する。
        """
        if options is None:
            return cls()
        if isinstance(options, MaterialOptions):
            return options
        if not isinstance(options, Mapping):
            raise TypeError(f"material_options must be a mapping, got {type(options).__name__}")
        known = {"color", "linewidth", "opacity"}
        base = cls()
        return cls(
            color=options.get("color", base.color),
            linewidth=options.get("linewidth", base.linewidth),
            opacity=options.get("opacity", base.opacity),
            extra={k: v for k, v in options.items() if k not in known},
        )


class OverlayNode:
    """シーングラフへ挿入するオーバーレイ 1 つ分のハンドル。

    挿入/削除は呼び出し側の責務。内容（バッファ）はビルド後に不変で、
    可視範囲だけが `GlobeOverlay.update` によって進む。
    """

    __slots__ = ("geometry", "indices", "batches", "material", "_reveal", "name")

    def __init__(
        self,
        geometry: Geometry,
        indices: np.ndarray,
        batches: list[LineBatch],
        material: MaterialOptions,
        reveal: "RevealController",
        name: str | None = None,
    ) -> None:
        self.geometry = geometry
        self.indices = indices
        self.batches = batches
        self.material = material
        self._reveal = reveal
        self.name = name

    @property
    def vertices(self) -> np.ndarray:
        return self.geometry.coords

    @property
    def is_empty(self) -> bool:
        return self.indices.size == 0

    def draw_ranges(self) -> Iterator[tuple[LineBatch, int, int]]:
        """可視なバッチについて `(batch, first_index, index_count)` を返す。"""
        for i, first, count in self._reveal.draw_ranges():
            yield self.batches[i], first, count

    def __repr__(self) -> str:
        return (
            f"OverlayNode(name={self.name!r}, batches={len(self.batches)}, "
            f"vertices={self.geometry.n_vertices}, indices={int(self.indices.size)})"
        )


__all__ = ["MaterialOptions", "OverlayNode"]
