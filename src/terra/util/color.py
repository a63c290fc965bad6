"""
どこで: `terra.util.color`。
何を: 色指定の正規化/変換（Hex 文字列, 0xRRGGBB 整数, RGBA 0–1, RGBA 0–255）を一元化。
なぜ: マテリアル指定（three.js 流の `0x9ec6ff` 整数を含む）と描画側で同一の受理仕様を使うため。
"""

from __future__ import annotations

from typing import Sequence


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else 1.0 if x > 1.0 else float(x)


def parse_hex_color_str(s: str) -> tuple[float, float, float, float]:
    """Hex 文字列から RGBA(0–1) を返す。

    受理形式: "#RRGGBB", "#RRGGBBAA", "0xRRGGBB", "0xRRGGBBAA", "RRGGBB", "RRGGBBAA"。
    大文字/小文字は不問。
    """
    t = s.strip()
    if t.startswith("#"):
        t = t[1:]
    elif t.lower().startswith("0x"):
        t = t[2:]
    if len(t) not in (6, 8):
        raise ValueError(f"invalid hex color length: '{s}' (expected RRGGBB or RRGGBBAA)")
    try:
        r = int(t[0:2], 16)
        g = int(t[2:4], 16)
        b = int(t[4:6], 16)
        a = int(t[6:8], 16) if len(t) == 8 else 255
    except ValueError as e:
        raise ValueError(f"invalid hex color: '{s}'") from e
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def parse_hex_color_int(value: int) -> tuple[float, float, float, float]:
    """24bit 整数 `0xRRGGBB` から RGBA(0–1) を返す（アルファは 1.0）。"""
    if isinstance(value, bool) or value < 0 or value > 0xFFFFFF:
        raise ValueError(f"invalid integer color: {value!r} (expected 0x000000..0xFFFFFF)")
    r = (value >> 16) & 0xFF
    g = (value >> 8) & 0xFF
    b = value & 0xFF
    return (r / 255.0, g / 255.0, b / 255.0, 1.0)


def _as_sequence(value: object) -> Sequence[float | int] | None:
    if isinstance(value, (list, tuple)):
        return value  # type: ignore[return-value]
    return None


def normalize_color(value: object) -> tuple[float, float, float, float]:
    """色を RGBA(0–1) へ正規化する。

    - 受理: Hex 文字列, 整数 0xRRGGBB, (r,g,b[,a]) （0–1 または 0–255）
    - 返値: (r,g,b,a) （0–1）
    """
    if isinstance(value, str):
        return parse_hex_color_str(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return parse_hex_color_int(value)
    seq = _as_sequence(value)
    if seq is None:
        raise ValueError(f"unsupported color type: {type(value)!r}")
    if len(seq) not in (3, 4):
        raise ValueError("color tuple/list must be length 3 or 4")
    try:
        fseq = [float(seq[0]), float(seq[1]), float(seq[2])]
        a = float(seq[3]) if len(seq) == 4 else 1.0
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid color tuple/list: {value!r}") from e
    # 全要素が 0..1 ならそのまま
    if all(0.0 <= x <= 1.0 for x in fseq + [a]):
        r, g, b = fseq
        return (_clamp01(r), _clamp01(g), _clamp01(b), _clamp01(a))
    # 次に 0–255 とみなし、整数丸め → 0–1 へスケール
    r8, g8, b8 = (max(0, min(255, int(round(x)))) for x in fseq)
    a8 = max(0, min(255, int(round(a)))) if len(seq) == 4 else 255
    return (r8 / 255.0, g8 / 255.0, b8 / 255.0, a8 / 255.0)


def with_opacity(
    rgba: tuple[float, float, float, float], opacity: float | None
) -> tuple[float, float, float, float]:
    """アルファにマテリアルの opacity を乗算した RGBA を返す。"""
    if opacity is None:
        return rgba
    r, g, b, a = rgba
    return (r, g, b, _clamp01(a * float(opacity)))


__all__ = [
    "parse_hex_color_str",
    "parse_hex_color_int",
    "normalize_color",
    "with_opacity",
]
