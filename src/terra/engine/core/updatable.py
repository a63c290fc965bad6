"""
どこで: `terra.engine.core` の更新インターフェース。
何を: 1フレーム更新 `update(now_ms)` を持つ `Updatable` Protocol を定義。
なぜ: フレーム駆動のオブジェクト（オーバーレイ/レンダラ等）を一様に扱うため。
"""

from typing import Protocol


class Updatable(Protocol):
    """1 フレーム分の更新を行うインターフェース。"""

    def update(self, now_ms: float) -> None:
        """内部状態を時刻 `now_ms`（ミリ秒）へ進める。"""
