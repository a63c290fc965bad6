"""
どこで: `terra.common.errors`。
何を: ビルド処理の例外階層（文書レベル/フィーチャレベル/数値破綻）を定義。
なぜ: 「文書の不正は即失敗、単一リングの不正はスキップして継続」という伝搬方針を
      型で区別し、呼び出し側が捕捉範囲を選べるようにするため。
"""

from __future__ import annotations


class TerraError(Exception):
    """本パッケージが送出する例外の基底。"""


class ValidationError(TerraError, ValueError):
    """文書のトップレベル形状が認識できない（致命的、ビルド全体を中断）。

    `node` は問題箇所を示す JSON パス風の文字列（例: ``"$"``, ``"$.features"``）。
    """

    def __init__(self, message: str, node: str = "$") -> None:
        super().__init__(f"{node}: {message}")
        self.node = node
        self.reason = message


class GeometryError(TerraError, ValueError):
    """単一のリング/ラインが不正（点数不足・非有限座標など）。

    フィーチャ局所のエラーであり、アキュムレータで警告ログを出してスキップされる。
    """

    def __init__(self, message: str, node: str | None = None) -> None:
        super().__init__(f"{node}: {message}" if node else message)
        self.node = node
        self.reason = message


class ProjectionError(TerraError, ArithmeticError):
    """投影結果が有限値にならない数値破綻（通常の範囲外座標はクランプで処理）。"""


__all__ = ["TerraError", "ValidationError", "GeometryError", "ProjectionError"]
