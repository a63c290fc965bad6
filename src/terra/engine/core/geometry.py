"""
共有頂点バッファ `Geometry`（プロジェクト中核データ型）

本モジュールは、全バッチ（リング/ライン 1 本 = 1 バッチ）の投影済み頂点を 1 本の連続メモリで
保持する `Geometry` を提供する。GPU 転送時に境界摩擦が生じないよう、dtype/形状は生成時に
正規化済み状態へ揃える。

データモデル（不変条件）:
- `coords: float32 ndarray (N, 3)`: 全頂点を 1 本の連続メモリで保持（行は XYZ）。
- `offsets: int32 ndarray (M+1,)`: 各バッチの開始 index（末尾は必ず N）。
- i 本目のバッチ頂点列は `coords[offsets[i] : offsets[i+1]]` で取り出せる。
- offsets は単調非減少であり、バッチ同士の頂点範囲は重ならない。

直感図（2 バッチの格納）:

    # バッチ0 = 外周リング 4 点、バッチ1 = ライン 2 点
    # coords (N=6)
    #   idx  xyz
    #   0..3 外周リング
    #   4..5 ライン
    # offsets (M+1=3): [0, 4, 6]

補足:
- 空ジオメトリは `coords.shape==(0,3)`, `offsets==[0]`（バッチ数 M=0）。
- 生成後に内容を書き換える API は提供しない（表示範囲の更新は draw range 側で行う）。
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

NumberLike = float | int
LineLike = np.ndarray | Sequence[Sequence[NumberLike]]


def _normalize_geometry_input(
    coords: np.ndarray,
    offsets: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """dtype/形状を検証し、VBO へそのまま渡せる連続配列へ揃える。"""
    # float32 / int32 の C 連続配列（GPU 転送時の再コピーを避ける）
    coords_arr = np.ascontiguousarray(coords, dtype=np.float32)
    offsets_arr = np.ascontiguousarray(offsets, dtype=np.int32)

    if coords_arr.ndim != 2 or coords_arr.shape[1] != 3:
        raise ValueError(f"頂点配列は形状 (N, 3) が必要です: {coords_arr.shape}")
    if offsets_arr.ndim != 1 or offsets_arr.size == 0:
        raise ValueError(f"offsets は長さ 1 以上の 1 次元配列が必要です: {offsets_arr.shape}")
    n = coords_arr.shape[0]
    if offsets_arr[0] != 0 or offsets_arr[-1] != n:
        raise ValueError(f"offsets は 0 で始まり頂点数 {n} で終わる必要があります")
    if offsets_arr.size > 1 and bool((offsets_arr[1:] < offsets_arr[:-1]).any()):
        raise ValueError("バッチ範囲が重なっています（offsets が減少）")
    return coords_arr, offsets_arr


class Geometry:
    """共有頂点バッファ。

    フィールド:
    - `coords (N,3) float32`: すべてのバッチの頂点を連結した配列。
    - `offsets (M+1,) int32`: 各バッチの開始 index（末尾は N）。

    設計意図:
    - 1 オーバーレイにつき VBO を 1 本だけ確保し、バッチは範囲で区別する。
    - 生成時に dtype/形状を検証し、正規化済み状態だけを許容する。
    """

    __slots__ = ("coords", "offsets")

    coords: np.ndarray
    offsets: np.ndarray

    def __init__(self, coords: np.ndarray, offsets: np.ndarray) -> None:
        norm_coords, norm_offsets = _normalize_geometry_input(coords, offsets)
        self.coords = norm_coords
        self.offsets = norm_offsets

    # ── ファクトリ ───────────────────
    @classmethod
    def from_lines(cls, lines: Iterable[LineLike]) -> "Geometry":
        """点列の集合を連結して `Geometry` を生成する。

        Parameters
        ----------
        lines : Iterable[LineLike]
            各要素は形状 `(K, 3)` の座標列（投影済み XYZ）。入力順がバッチ順になる。

        Returns
        -------
        Geometry
            `coords (N, 3) float32` と `offsets (M+1,) int32` を持つジオメトリ。

        Raises
        ------
        ValueError
            いずれかの要素が `(K, 3)` に適合しない場合。
        """
        chunks = [np.asarray(line, dtype=np.float32) for line in lines]
        for i, arr in enumerate(chunks):
            if arr.ndim != 2 or arr.shape[1] != 3:
                raise ValueError(f"バッチ {i} の頂点配列の形状が不正です: {arr.shape}")

        offsets = np.zeros(len(chunks) + 1, dtype=np.int32)
        if not chunks:
            return cls(np.empty((0, 3), dtype=np.float32), offsets)
        offsets[1:] = np.cumsum([arr.shape[0] for arr in chunks])
        return cls(np.concatenate(chunks, axis=0), offsets)

    # ── 参照 ────────────────────────
    def as_arrays(self, *, copy: bool = False) -> tuple[np.ndarray, np.ndarray]:
        """`(coords, offsets)` を返す（既定は読み取り専用ビュー、`copy=True` で複製）。"""
        if copy:
            return self.coords.copy(), self.offsets.copy()
        return _readonly(self.coords), _readonly(self.offsets)

    def vertex_range(self, index: int) -> tuple[int, int]:
        """`index` 番目のバッチが占める頂点範囲 `[start, stop)`。"""
        if not 0 <= index < self.n_lines:
            raise IndexError(f"line index out of range: {index}")
        return int(self.offsets[index]), int(self.offsets[index + 1])

    def line(self, index: int) -> np.ndarray:
        """`index` 番目のバッチ頂点列（読み取り専用ビュー）。"""
        start, stop = self.vertex_range(index)
        return _readonly(self.coords[start:stop])

    @property
    def is_empty(self) -> bool:
        return self.coords.size == 0

    @property
    def n_lines(self) -> int:
        return int(self.offsets.shape[0] - 1)

    @property
    def n_vertices(self) -> int:
        return int(self.coords.shape[0])

    def __len__(self) -> int:
        return self.n_lines

    def __repr__(self) -> str:
        return f"Geometry(n_vertices={self.n_vertices}, n_lines={self.n_lines})"


def _readonly(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.setflags(write=False)
    return view


__all__ = ["Geometry"]
