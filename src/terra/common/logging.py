"""
どこで: `terra.common.logging`。
何を: デモ/CLI 用の最小ロギング設定ヘルパ。
なぜ: ライブラリ本体はモジュールごとの `logging.getLogger(__name__)` に出力するだけにし、
      ハンドラ構成はアプリ側（未設定なら本ヘルパ）に任せるため。
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _coerce_level(level: int | str | None) -> int:
    if level is None:
        from .settings import get as _get_settings

        level = _get_settings().LOG_LEVEL
    if isinstance(level, str):
        value = logging.getLevelName(level.strip().upper())
        # 未知の名前は "Level xxx" 文字列が返る
        return value if isinstance(value, int) else logging.INFO
    return int(level)


def setup_default_logging(level: int | str | None = None) -> None:
    """ルートロガーが未設定なら `basicConfig` を 1 度だけ適用する。

    `level` 省略時は `TERRA_LOG_LEVEL`（既定 info）。既にハンドラがあれば何もしない。
    """
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(level=_coerce_level(level), format=LOG_FORMAT)


__all__ = ["setup_default_logging", "LOG_FORMAT"]
