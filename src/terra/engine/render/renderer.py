"""
どこで: `terra.engine.render` の高レベル描画。
何を: 登録された OverlayNode を ModernGL の VBO/IBO に 1 度転送し、毎フレーム各バッチの
      可視インデックス範囲だけを `LINES` で描画する。
なぜ: reveal の進行を draw range の調整に閉じ込め、毎フレームのバッファ再転送を無くすため。
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterator, Sequence

import moderngl as mgl
import numpy as np

from terra.common.types import RGBA
from terra.util.color import normalize_color, with_opacity

from .line_mesh import OverlayMesh
from .shader import Shader
from .types import OverlayNode


class _Attached:
    """登録済みノード 1 つ分の GPU 側状態。"""

    __slots__ = ("node", "mesh", "base_color", "batch_colors", "linewidth")

    def __init__(
        self,
        node: OverlayNode,
        mesh: OverlayMesh,
        base_color: RGBA,
        batch_colors: dict[int, RGBA],
        linewidth: float,
    ) -> None:
        self.node = node
        self.mesh = mesh
        self.base_color = base_color
        self.batch_colors = batch_colors
        self.linewidth = linewidth


class OverlayRenderer:
    """
    OverlayNode を GPU に送り込み、毎フレーム描画する作業を管理。
    """

    def __init__(
        self,
        mgl_context: Any,
        mvp: np.ndarray | None = None,
        *,
        program: Any = None,
    ):
        self.ctx = mgl_context
        self._logger = logging.getLogger(__name__)
        self.program = program if program is not None else Shader.create_shader(mgl_context)
        self.set_mvp(np.eye(4, dtype=np.float32) if mvp is None else mvp)
        self._attached: list[_Attached] = []
        # HUD 連携用: 直近フレームの描画コール数/インデックス数
        self._last_draw_calls: int = 0
        self._last_index_count: int = 0

    # --------------------------------------------------------------------- #
    # 登録                                                                   #
    # --------------------------------------------------------------------- #
    def attach(self, node: OverlayNode) -> None:
        """ノードを登録し、バッファを GPU へ転送する。"""
        mesh = OverlayMesh(self.ctx, self.program)
        mesh.upload(node.vertices, node.indices)
        material = node.material
        opacity = self._coerce_float(material.opacity, "opacity", default=1.0, lo=0.0, hi=1.0)
        linewidth = self._coerce_float(material.linewidth, "linewidth", default=1.0, lo=0.0)
        base = self._resolve_color(material.color, opacity, fallback=None)
        batch_colors: dict[int, RGBA] = {}
        for batch in node.batches:
            style = batch.style
            if style is None:
                continue
            color = style.color if style.color is not None else material.color
            batch_opacity = opacity if style.opacity is None else style.opacity
            batch_colors[batch.batch_index] = self._resolve_color(color, batch_opacity, fallback=base)
        self._attached.append(_Attached(node, mesh, base, batch_colors, linewidth))
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(
                "Uploaded overlay %r: verts=%d (%.1f KB), inds=%d (%.1f KB)",
                node.name,
                mesh.vertex_count,
                node.vertices.nbytes / 1024.0,
                mesh.index_count,
                node.indices.nbytes / 1024.0,
            )

    def detach(self, node: OverlayNode) -> None:
        """ノードの登録を外し、GPU リソースを解放する。"""
        keep: list[_Attached] = []
        for a in self._attached:
            if a.node is node:
                a.mesh.release()
            else:
                keep.append(a)
        self._attached = keep

    # --------------------------------------------------------------------- #
    # Public drawing API                                                    #
    # --------------------------------------------------------------------- #
    def set_mvp(self, matrix: np.ndarray) -> None:
        """MVP 行列（4x4, 列優先で GPU へ書き込む）を更新する。"""
        m = np.asarray(matrix, dtype=np.float32)
        if m.shape != (4, 4):
            raise ValueError(f"mvp must be a 4x4 matrix, got {m.shape}")
        self.program["mvp"].write(m.T.copy().tobytes())

    def draw(self) -> None:
        """GPUに送ったデータを画面に描画"""
        draw_calls = 0
        index_count = 0
        for a in self._attached:
            self._apply_linewidth(a.linewidth)
            for color, first, count in _coalesce(a):
                self.program["color"].value = color
                a.mesh.render_range(mgl.LINES, first, count)
                draw_calls += 1
                index_count += count
        self._last_draw_calls = draw_calls
        self._last_index_count = index_count

    def release(self) -> None:
        """GPU リソースを解放。"""
        for a in self._attached:
            a.mesh.release()
        self._attached = []

    # HUD 用: 直近フレームの描画コール数/インデックス数
    def get_last_counts(self) -> tuple[int, int]:
        return int(self._last_draw_calls), int(self._last_index_count)

    # --------------------------------------------------------------------- #
    # Internal helpers                                                      #
    # --------------------------------------------------------------------- #
    def _apply_linewidth(self, value: float) -> None:
        try:
            self.ctx.line_width = float(value)
        except (TypeError, ValueError, AttributeError):
            # コアプロファイル等で線幅が変えられない環境では既定幅のまま描く
            pass

    def _coerce_float(
        self,
        value: object,
        name: str,
        *,
        default: float,
        lo: float | None = None,
        hi: float | None = None,
    ) -> float:
        """マテリアルの数値項目を float 化する（不正値は警告して既定値、範囲外は丸める）。"""
        try:
            f = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            f = math.nan
        if not math.isfinite(f):
            self._logger.warning("invalid material %s %r; using %s", name, value, default)
            return default
        if lo is not None and f < lo:
            f = lo
        if hi is not None and f > hi:
            f = hi
        return f

    def _resolve_color(self, color: object, opacity: float | None, fallback: RGBA | None) -> RGBA:
        try:
            rgba = normalize_color(color)
        except ValueError:
            self._logger.warning("invalid overlay color %r; using fallback", color)
            if fallback is not None:
                return fallback
            rgba = (1.0, 1.0, 1.0, 1.0)
        return with_opacity(rgba, opacity)


def _coalesce(a: _Attached) -> Iterator[tuple[RGBA, int, int]]:
    """連続かつ同色の可視範囲を 1 回の描画コールにまとめる。"""
    cur_color: RGBA | None = None
    cur_first = 0
    cur_count = 0
    for batch, first, count in a.node.draw_ranges():
        color = a.batch_colors.get(batch.batch_index, a.base_color)
        if cur_color == color and cur_first + cur_count == first:
            cur_count += count
            continue
        if cur_color is not None:
            yield cur_color, cur_first, cur_count
        cur_color, cur_first, cur_count = color, first, count
    if cur_color is not None:
        yield cur_color, cur_first, cur_count


def perspective_mvp(
    fovy_deg: float,
    aspect: float,
    near: float,
    far: float,
    eye: Sequence[float],
    *,
    rotation_y: float = 0.0,
    tilt_z_deg: float = 0.0,
) -> np.ndarray:
    """透視投影 × 視点 × 地球グループ回転（自転 Y, 地軸傾き Z）の MVP を返す（行優先）。"""
    f = 1.0 / np.tan(np.radians(fovy_deg) / 2.0)
    proj = np.array(
        [
            [f / aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (far + near) / (near - far), 2.0 * far * near / (near - far)],
            [0.0, 0.0, -1.0, 0.0],
        ],
        dtype=np.float64,
    )
    view = np.eye(4)
    view[:3, 3] = -np.asarray(eye, dtype=np.float64)
    cy, sy = np.cos(rotation_y), np.sin(rotation_y)
    rot_y = np.array([[cy, 0, sy, 0], [0, 1, 0, 0], [-sy, 0, cy, 0], [0, 0, 0, 1]], dtype=np.float64)
    tz = np.radians(tilt_z_deg)
    cz, sz = np.cos(tz), np.sin(tz)
    rot_z = np.array([[cz, -sz, 0, 0], [sz, cz, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]], dtype=np.float64)
    return (proj @ view @ rot_z @ rot_y).astype(np.float32)


__all__ = ["OverlayRenderer", "perspective_mvp"]
