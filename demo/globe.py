"""
GeoJSON の海岸線/国境を回転する地球儀上に描き込むデモ。

    python demo/globe.py ne_110m_coastline.json countries.json

引数のファイルは順に構成レイヤー `coastlines`, `borders` として描かれる（構成は
`configs/default.yaml`）。ファイルが無ければ経緯線だけを描く。
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import moderngl
import pyglet

from terra import build_layer, graticule
from terra.api.layers import layer_enabled
from terra.common.logging import setup_default_logging
from terra.engine.core.frame_clock import FrameClock
from terra.engine.core.render_window import GlobeWindow
from terra.engine.render.renderer import OverlayRenderer, perspective_mvp
from terra.util.utils import load_config

logger = logging.getLogger("demo.globe")

LAYER_ORDER = ("coastlines", "borders")


def _load_document(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def main(argv: list[str]) -> int:
    setup_default_logging()
    config = load_config()
    tilt = float((config.get("globe") or {}).get("axial_tilt_deg", 23.4))

    window = GlobeWindow(1280, 720)
    ctx = moderngl.create_context()
    ctx.enable(moderngl.DEPTH_TEST | moderngl.BLEND)
    renderer = OverlayRenderer(ctx)
    clock = FrameClock()

    overlays = []
    for layer, arg in zip(LAYER_ORDER, argv):
        if not layer_enabled(layer, config):
            continue
        overlays.append(build_layer(layer, _load_document(Path(arg)), config=config))
    if not overlays:
        step = float(((config.get("layers") or {}).get("graticule") or {}).get("step_deg", 15.0))
        overlays.append(build_layer("graticule", graticule(step), config=config))

    for overlay in overlays:
        renderer.attach(overlay.node)
        clock.add(overlay)
        logger.info("%r", overlay.node)

    def draw_scene() -> None:
        angle = clock.elapsed_ms * 0.0002
        renderer.set_mvp(
            perspective_mvp(75.0, window.aspect, 0.1, 1000.0, (0.0, 0.0, 5.0), rotation_y=angle, tilt_z_deg=tilt)
        )
        renderer.draw()

    window.add_draw_callback(draw_scene)
    pyglet.clock.schedule_interval(clock.tick, 1 / 60)
    try:
        pyglet.app.run()
    finally:
        renderer.release()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
