"""
どこで: `terra.engine.render` の低レベルメッシュ層。
何を: OverlayNode の頂点/インデックスを VBO/IBO に 1 度だけ転送し、VAO を管理する。
なぜ: reveal は draw range の調整だけで済むため、バッファ転送をビルド直後の 1 回に限定し、
      GPU 転送の詳細を Renderer から切り離すため。
"""

from __future__ import annotations

from typing import Any

import numpy as np


class OverlayMesh:
    """
    GPUに頂点やインデックスなどの描画データを送り込む作業を管理
    """

    def __init__(self, ctx: Any, program: Any):
        """
        ctx: GPUへの描画処理を行うためのモダンOpenGL（moderngl）コンテキスト
        program: GPU側で使うシェーダープログラム。
        VBO (Vertex Buffer Object): 全バッチの投影済み頂点（float32 XYZ）。
        IBO (Index Buffer Object): セグメント端点ペア（uint32、LINES で描く）。
        VAO (Vertex Array Object): VBOとIBOを関連付けて、描画命令をシンプルに管理する仕組み。
        """
        self.ctx = ctx
        self.program = program
        self.vbo: Any = None
        self.ibo: Any = None
        self.vao: Any = None
        self.vertex_count: int = 0
        self.index_count: int = 0

    # ---------- バッファ操作 ----------
    def upload(self, vertices: np.ndarray, indices: np.ndarray) -> None:
        """データをGPUへ送り込む（既存バッファは解放して作り直す）"""
        self.release()
        verts = np.ascontiguousarray(vertices, dtype=np.float32)
        inds = np.ascontiguousarray(indices, dtype=np.uint32)
        self.vertex_count = int(verts.shape[0])
        self.index_count = int(inds.shape[0])
        if self.index_count == 0:
            return
        self.vbo = self.ctx.buffer(verts.tobytes())
        self.ibo = self.ctx.buffer(inds.tobytes())
        self.vao = self.ctx.simple_vertex_array(
            self.program, self.vbo, "in_vert", index_buffer=self.ibo, index_element_size=4
        )

    def render_range(self, mode: int, first: int, count: int) -> None:
        """IBO の `[first, first + count)` だけを描画する。"""
        if self.vao is None or count <= 0:
            return
        self.vao.render(mode, vertices=int(count), first=int(first))

    def release(self) -> None:
        """GPUのメモリを解放する（終了時/再アップロード時に使う）"""
        for res in (self.vao, self.vbo, self.ibo):
            if res is not None:
                res.release()
        self.vao = None
        self.vbo = None
        self.ibo = None
        self.vertex_count = 0
        self.index_count = 0
