"""
どこで: `terra.engine.core` の描画ウィンドウ薄ラッパ。
何を: Pyglet Window（GL 3.3 core / MSAA / 深度バッファ / 背景クリア）と描画コールバック登録。
なぜ: レンダラ/ジオメトリ層から GUI 依存を切り離し、デモの配線を最小にするため。

使用例:
    win = GlobeWindow(1280, 720)

    def draw_scene():
        renderer.draw()

    win.add_draw_callback(draw_scene)
    pyglet.app.run()

MSAA のサンプル数と vsync は `TERRA_MSAA_SAMPLES` / `TERRA_VSYNC` で変更できる。
"""

from __future__ import annotations

from typing import Callable

import pyglet
from pyglet.gl import Config, glClearColor

from terra.common.settings import get as get_settings


def _gl_config(samples: int) -> Config:
    """GL 3.3 core の構成。`samples=0` なら MSAA 無し。"""
    msaa = {"sample_buffers": 1, "samples": samples} if samples > 0 else {}
    return Config(
        double_buffer=True,
        depth_size=24,
        major_version=3,
        minor_version=3,
        forward_compatible=True,
        **msaa,
    )


class GlobeWindow(pyglet.window.Window):
    def __init__(
        self,
        width: int,
        height: int,
        *,
        bg_color: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0),
        caption: str = "Terra",
    ):
        """ウィンドウを生成する。

        引数:
            width, height: ウィンドウサイズ（ピクセル）。
            bg_color: 背景色 RGBA（0.0〜1.0）。宇宙背景を想定して既定は黒。
            caption: タイトル。
        """
        settings = get_settings()
        super().__init__(
            width=width,
            height=height,
            caption=caption,
            config=_gl_config(settings.MSAA_SAMPLES),
            vsync=settings.VSYNC,
            resizable=True,
        )
        self._bg_color = bg_color
        self._draw_callbacks: list[Callable[[], None]] = []

    @property
    def aspect(self) -> float:
        return self.width / max(1, self.height)

    def add_draw_callback(self, func: Callable[[], None]) -> None:
        """`on_draw` で登録順に呼ぶ描画関数（引数なし）を追加する。"""
        self._draw_callbacks.append(func)

    def on_draw(self):  # Pyglet 既定のイベント名
        r, g, b, a = self._bg_color
        glClearColor(r, g, b, a)
        self.clear()
        for cb in self._draw_callbacks:
            cb()


__all__ = ["GlobeWindow"]
