"""
どこで: `terra.common.settings`
何を: プロジェクトの環境変数を型付きで一元管理し、起動時に読み込む。
なぜ: `os.getenv` の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int, env_str

ANTIMERIDIAN_CHOICES = {"break", "split", "connect"}


@dataclass
class _Settings:
    # Reveal
    REVEAL_DURATION_MS: float = 2000.0
    STAGGER_MS: float = 0.0

    # Geometry
    ANTIMERIDIAN: str = "break"
    # これ以下の長さ（球面上の弦長）のセグメントは描かない
    MIN_SEGMENT_LENGTH: float = 0.0

    # Window (demo)
    MSAA_SAMPLES: int = 4
    VSYNC: bool = True

    # Misc
    LOG_LEVEL: str = "info"


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - 数値は `env_float`（下限 0 に丸め）、列挙は `env_str(choices=...)` を使用。
    - 不正値は既定値へフォールバックする。
    """
    _settings.REVEAL_DURATION_MS = env_float("TERRA_REVEAL_DURATION_MS", 2000.0, min_value=0.0)
    _settings.STAGGER_MS = env_float("TERRA_STAGGER_MS", 0.0, min_value=0.0)
    _settings.ANTIMERIDIAN = env_str(
        "TERRA_ANTIMERIDIAN", "break", choices=ANTIMERIDIAN_CHOICES
    )
    _settings.MIN_SEGMENT_LENGTH = env_float("TERRA_MIN_SEGMENT_LENGTH", 0.0, min_value=0.0)
    _settings.MSAA_SAMPLES = int(env_int("TERRA_MSAA_SAMPLES", 4, min_value=0) or 0)
    _settings.VSYNC = env_bool("TERRA_VSYNC", True)
    _settings.LOG_LEVEL = env_str("TERRA_LOG_LEVEL", "info")


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings", "ANTIMERIDIAN_CHOICES"]
