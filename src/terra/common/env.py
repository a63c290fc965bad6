"""
どこで: `terra.common.env`
何を: `TERRA_*` 環境変数の型付きパースヘルパ。
なぜ: 未設定/空/不正値を一律に既定値へ落とす処理を 1 箇所にまとめ、
      設定読込（`settings.reload_from_env`）を宣言的に書けるようにするため。
"""

from __future__ import annotations

import math
import os
from typing import Optional

_TRUE = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE = frozenset({"0", "false", "f", "no", "n", "off"})


def _raw(name: str) -> Optional[str]:
    """前後空白を除いた値。未設定または空文字は None。"""
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def env_int(
    name: str, default: Optional[int] = None, *, min_value: Optional[int] = None
) -> Optional[int]:
    """整数環境変数（未設定/不正値は `default`、`min_value` 未満は下限へ丸める）。"""
    raw = _raw(name)
    if raw is None:
        return default
    try:
        val = int(raw)
    except ValueError:
        return default
    return val if min_value is None else max(val, min_value)


def env_float(name: str, default: float, *, min_value: Optional[float] = None) -> float:
    """浮動小数環境変数を取得する。

    Parameters
    ----------
    name : str
        環境変数名。
    default : float
        未設定/不正値/非有限値（``nan``, ``inf``）のときの値。
    min_value : Optional[float]
        下限。下回る値は下限に丸める。
    """
    raw = _raw(name)
    try:
        val = float(raw) if raw is not None else float(default)
    except ValueError:
        val = float(default)
    if not math.isfinite(val):
        val = float(default)
    if min_value is not None and val < min_value:
        val = float(min_value)
    return val


def env_bool(name: str, default: bool = False) -> bool:
    """真偽環境変数（数値は 0 以外を真、true/false 系の語も受理。その他は `default`）。"""
    raw = _raw(name)
    if raw is None:
        return bool(default)
    try:
        return int(raw) != 0
    except ValueError:
        s = raw.lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        return bool(default)


def env_str(name: str, default: str, *, choices: Optional[set[str]] = None) -> str:
    """文字列環境変数（小文字化。`choices` 外の値は `default`）。"""
    raw = _raw(name)
    if raw is None:
        return default
    s = raw.lower()
    if choices is not None and s not in choices:
        return default
    return s


__all__ = ["env_int", "env_float", "env_bool", "env_str"]
