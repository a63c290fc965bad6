"""
どこで: `terra.engine.reveal.controller`。
何を: 時刻 `now_ms` から各バッチの可視頂点数/可視インデックス数（draw range）を計算し、
      線が描き込まれていく reveal アニメーションを実現する。
なぜ: バッファ内容を作り直さず範囲だけを動かすことで、60fps ループの毎フレーム処理を
      バッチ数に比例する軽量な更新に抑えるため。

計算（バッチごと）:

    start_ms        = global_start_ms + batch_index * stagger_ms
    fraction        = clamp((now_ms - start_ms) / duration_ms, 0, 1)   # 単調非減少
    visible_vertices = floor(total_vertices * fraction)
    visible_indices  = 2 * (#セグメントのうち両端点 index < visible_vertices)  # 構築時に表化

補足:
- `global_start_ms=None` のとき、最初の `update` の時刻を開始時刻として固定する。
- 小さい `now_ms` を渡しても巻き戻らない。巻き戻しは `reset()` でのみ行う。
- 全バッチが完了した後の `update` は何もしない（冪等・割当なし）。
- 進行中の `update` も事前確保した作業配列と表引き（`np.take(..., out=)`）だけで計算し、
  バッチ数に比例する一時配列を作らない。
- 内部同期は持たない。複数スレッドから呼ぶ場合は呼び出し側で直列化すること。
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from terra.engine.geo.batches import LineBatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevealState:
    """1 バッチの reveal 状態のスナップショット。"""

    start_ms: float
    duration_ms: float
    visible_fraction: float
    visible_vertices: int
    visible_indices: int


class RevealController:
    """バッチ列の draw range を時刻から更新する。"""

    def __init__(
        self,
        batches: Sequence[LineBatch],
        *,
        duration_ms: float,
        stagger_ms: float = 0.0,
        start_ms: float | None = None,
        animated: bool = True,
    ) -> None:
        duration_ms = float(duration_ms)
        stagger_ms = float(stagger_ms)
        if not math.isfinite(duration_ms) or duration_ms < 0.0:
            raise ValueError(f"duration_ms must be finite and >= 0, got {duration_ms!r}")
        if not math.isfinite(stagger_ms) or stagger_ms < 0.0:
            raise ValueError(f"stagger_ms must be finite and >= 0, got {stagger_ms!r}")

        n = len(batches)
        self._animated = bool(animated)
        self._duration_ms = duration_ms
        self._stagger_ms = stagger_ms

        self._total = np.array([b.vertex_count for b in batches], dtype=np.float64)
        self._index_start = np.array([b.index_start for b in batches], dtype=np.int64)
        # 可視頂点数 v → 可視インデックス数 の表（バッチ i は区間 [base_i, base_i + total_i] を使う）
        self._lookup, self._lookup_base = _index_lookup(batches)
        self._start_offset = np.arange(n, dtype=np.float64) * stagger_ms

        self._start = np.empty(n, dtype=np.float64)
        self._fraction = np.zeros(n, dtype=np.float64)
        self._visible_vertices = np.zeros(n, dtype=np.int64)
        self._visible_indices = np.zeros(n, dtype=np.int64)
        # 毎フレーム用の作業領域（steady state で再確保しない）
        self._scratch = np.empty(n, dtype=np.float64)
        self._limits = np.empty(n, dtype=np.int64)
        self._reached = np.empty(n, dtype=bool)

        self._global_start_ms: float | None = None
        self._complete = False
        self.reset(start_ms)

    # ---- 公開 API ----
    def update(self, now_ms: float) -> None:
        """時刻 `now_ms` に合わせて可視範囲を進める（巻き戻さない）。"""
        if self._complete:
            return
        now = float(now_ms)
        if not math.isfinite(now):
            logger.debug("ignoring non-finite reveal time %r", now_ms)
            return
        if self._global_start_ms is None:
            self._anchor(now)

        s = self._scratch
        np.subtract(now, self._start, out=s)
        if self._duration_ms > 0.0:
            np.divide(s, self._duration_ms, out=s)
        else:
            np.greater_equal(s, 0.0, out=self._reached)
            np.copyto(s, self._reached)
        np.clip(s, 0.0, 1.0, out=s)
        np.maximum(self._fraction, s, out=self._fraction)
        self._refresh_counts()
        if self._fraction.size == 0 or self._fraction.min() >= 1.0:
            self._complete = True

    def reset(self, start_ms: float | None = None) -> None:
        """reveal 状態を明示的に巻き戻す。

        `start_ms=None` なら次の `update` の時刻で開始時刻を固定する。
        非アニメーション構成では常に全表示のまま。
        """
        if not self._animated:
            self._global_start_ms = 0.0 if start_ms is None else float(start_ms)
            np.add(self._start_offset, self._global_start_ms, out=self._start)
            self._fraction.fill(1.0)
            self._refresh_counts()
            self._complete = True
            return
        self._fraction.fill(0.0)
        self._visible_vertices.fill(0)
        self._visible_indices.fill(0)
        self._complete = False
        if start_ms is None:
            self._global_start_ms = None
            self._start.fill(np.nan)
        else:
            self._anchor(float(start_ms))

    def draw_ranges(self) -> Iterator[tuple[int, int, int]]:
        """`(batch_index, first_index, visible_index_count)` を可視分だけ返す。"""
        for i in range(self._visible_indices.shape[0]):
            count = int(self._visible_indices[i])
            if count > 0:
                yield i, int(self._index_start[i]), count

    def state(self, batch_index: int) -> RevealState:
        i = int(batch_index)
        return RevealState(
            start_ms=float(self._start[i]),
            duration_ms=self._duration_ms,
            visible_fraction=float(self._fraction[i]),
            visible_vertices=int(self._visible_vertices[i]),
            visible_indices=int(self._visible_indices[i]),
        )

    # ---- 参照用プロパティ ----
    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def animated(self) -> bool:
        return self._animated

    @property
    def global_start_ms(self) -> float | None:
        return self._global_start_ms

    @property
    def visible_fractions(self) -> np.ndarray:
        return _readonly(self._fraction)

    @property
    def visible_vertex_counts(self) -> np.ndarray:
        return _readonly(self._visible_vertices)

    @property
    def visible_index_counts(self) -> np.ndarray:
        return _readonly(self._visible_indices)

    def __len__(self) -> int:
        return int(self._fraction.shape[0])

    # ---- 内部 ----
    def _anchor(self, global_start_ms: float) -> None:
        self._global_start_ms = global_start_ms
        np.add(self._start_offset, global_start_ms, out=self._start)

    def _refresh_counts(self) -> None:
        """fraction から可視頂点数と可視インデックス数を求める。"""
        s = self._scratch
        np.multiply(self._total, self._fraction, out=s)
        np.floor(s, out=s)
        np.copyto(self._visible_vertices, s, casting="unsafe")
        # 表引きのみ（mode="clip" は out へ直接書き込み、一時配列を作らない）
        np.add(self._lookup_base, self._visible_vertices, out=self._limits)
        np.take(self._lookup, self._limits, out=self._visible_indices, mode="clip")


def _index_lookup(batches: Sequence[LineBatch]) -> tuple[np.ndarray, np.ndarray]:
    """バッチごとに「可視頂点数 v → 終点 < v のセグメント数 × 2」の表を連結して返す。"""
    tables: list[np.ndarray] = []
    bases = np.zeros(len(batches), dtype=np.int64)
    cursor = 0
    for i, b in enumerate(batches):
        ends = np.asarray(b.segment_ends, dtype=np.int64)
        v = np.arange(b.vertex_count + 1, dtype=np.int64)
        tables.append(2 * np.searchsorted(ends, v, side="left").astype(np.int64))
        bases[i] = cursor
        cursor += b.vertex_count + 1
    lookup = np.concatenate(tables) if tables else np.zeros(1, dtype=np.int64)
    return lookup, bases


def _readonly(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.setflags(write=False)
    return view


__all__ = ["RevealController", "RevealState"]
