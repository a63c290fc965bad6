"""
どこで: `terra.engine.core` の簡易フレームドライバ。
何を: `Updatable` の列を固定順序で呼び出す FrameClock（経過時間の測定とループ管理）。
なぜ: GUI/ループから呼び出すだけで複数オーバーレイの reveal 時刻を統一するため。
"""

from __future__ import annotations

import time
from typing import Callable, Sequence

from .updatable import Updatable


class FrameClock:
    """登録された Updatable を固定順序で実行するだけの極小クラス。

    時刻は生成時点を 0 とするミリ秒。`time_fn` を差し替えるとテストで決定的に駆動できる。
    """

    def __init__(
        self,
        updatables: Sequence[Updatable] = (),
        *,
        time_fn: Callable[[], float] = time.perf_counter,
    ):
        self._updatables: list[Updatable] = list(updatables)
        self._time_fn = time_fn
        self._origin = time_fn()
        self._elapsed_ms = 0.0

    def add(self, updatable: Updatable) -> None:
        self._updatables.append(updatable)

    @property
    def elapsed_ms(self) -> float:
        return self._elapsed_ms

    # GUI フレームワークから schedule_interval で呼ばせる
    def tick(self, dt: float | None = None) -> float:
        """時刻を進めて全 Updatable に `update(now_ms)` を配る。

        `dt`（秒）が渡されればそれを積算し（pyglet は dt を渡してくれる）、
        省略時は `time_fn` の実時間を使う。戻り値は配った `now_ms`。
        """
        if dt is None:
            self._elapsed_ms = (self._time_fn() - self._origin) * 1000.0
        else:
            self._elapsed_ms += float(dt) * 1000.0

        now_ms = self._elapsed_ms
        for u in self._updatables:
            u.update(now_ms)
        return now_ms
