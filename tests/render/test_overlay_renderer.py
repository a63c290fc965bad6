from __future__ import annotations

import logging

import moderngl as mgl
import numpy as np
import pytest

from conftest import DummyProgram, square
from terra.api.build import build
from terra.engine.render.renderer import OverlayRenderer, perspective_mvp


def _two_polygons(style: dict | None = None) -> dict:
    first = {"type": "Feature", "properties": style or {}, "geometry": {"type": "Polygon", "coordinates": [square(0, 0, 10)]}}
    second = {"type": "Feature", "properties": {}, "geometry": {"type": "Polygon", "coordinates": [square(20, 0, 10)]}}
    return {"type": "FeatureCollection", "features": [first, second]}


def test_renderer_creates_program_from_context(dummy_ctx) -> None:
    r = OverlayRenderer(dummy_ctx)
    assert isinstance(r.program, DummyProgram)
    assert r.program["mvp"].written == np.eye(4, dtype=np.float32).tobytes()


def test_attach_uploads_once_and_draw_does_not_reupload(dummy_ctx) -> None:
    overlay = build(_two_polygons(), radius=1.0, material_options={"color": 0x1A73E8})
    r = OverlayRenderer(dummy_ctx)
    r.attach(overlay.node)
    assert len(dummy_ctx.buffers) == 2
    r.draw()
    r.draw()
    assert len(dummy_ctx.buffers) == 2


def test_adjacent_same_color_batches_are_merged(dummy_ctx) -> None:
    overlay = build(_two_polygons(), radius=1.0, material_options={"color": "#ffffff", "linewidth": 2})
    r = OverlayRenderer(dummy_ctx)
    r.attach(overlay.node)
    r.draw()
    calls = dummy_ctx.vaos[0].render_calls
    assert calls == [(mgl.LINES, 16, 0)]
    assert r.get_last_counts() == (1, 16)
    assert dummy_ctx.line_width == 2.0
    assert r.program["color"].value == (1.0, 1.0, 1.0, 1.0)


def test_per_feature_style_splits_draw_calls(dummy_ctx) -> None:
    overlay = build(
        _two_polygons({"stroke": "#ff0000", "stroke-opacity": 0.5}),
        radius=1.0,
        material_options={"color": "#00ff00", "opacity": 0.8},
    )
    r = OverlayRenderer(dummy_ctx)
    r.attach(overlay.node)
    r.draw()
    assert dummy_ctx.vaos[0].render_calls == [(mgl.LINES, 8, 0), (mgl.LINES, 8, 8)]
    history = r.program["color"].history
    assert history[-2] == (1.0, 0.0, 0.0, 0.5)
    assert history[-1] == pytest.approx((0.0, 1.0, 0.0, 0.8))


def test_partial_reveal_draws_only_visible_prefix(dummy_ctx) -> None:
    overlay = build(
        _two_polygons(),
        radius=1.0,
        animated=True,
        reveal_duration_ms=1000,
        stagger_ms=0,
        start_ms=0,
    )
    r = OverlayRenderer(dummy_ctx)
    r.attach(overlay.node)
    r.draw()
    assert dummy_ctx.vaos[0].render_calls == []
    overlay.update(500)
    r.draw()
    # 各リング 5 頂点 → floor(2.5)=2 頂点 → セグメント 1 本ずつ（非連続なので 2 コール）
    assert dummy_ctx.vaos[0].render_calls == [(mgl.LINES, 2, 0), (mgl.LINES, 2, 8)]


def test_invalid_color_falls_back_with_warning(dummy_ctx, caplog: pytest.LogCaptureFixture) -> None:
    overlay = build(_two_polygons(), radius=1.0, material_options={"color": "not-a-color"})
    r = OverlayRenderer(dummy_ctx)
    with caplog.at_level(logging.WARNING):
        r.attach(overlay.node)
    assert "invalid overlay color" in caplog.text
    r.draw()
    assert r.program["color"].value == (1.0, 1.0, 1.0, 1.0)


def test_detach_releases_mesh(dummy_ctx) -> None:
    overlay = build(_two_polygons(), radius=1.0)
    r = OverlayRenderer(dummy_ctx)
    r.attach(overlay.node)
    r.detach(overlay.node)
    assert dummy_ctx.vaos[0].released
    r.draw()
    assert r.get_last_counts() == (0, 0)


def test_set_mvp_rejects_non_4x4(dummy_ctx) -> None:
    r = OverlayRenderer(dummy_ctx, program=DummyProgram())
    with pytest.raises(ValueError):
        r.set_mvp(np.eye(3))


def test_perspective_mvp_shape_and_dtype() -> None:
    m = perspective_mvp(45.0, 16 / 9, 0.1, 100.0, (0.0, 0.0, 6.0), rotation_y=0.3, tilt_z_deg=23.4)
    assert m.shape == (4, 4)
    assert m.dtype == np.float32
    assert np.all(np.isfinite(m))


def test_invalid_material_numbers_fall_back_with_warning(
    dummy_ctx, caplog: pytest.LogCaptureFixture
) -> None:
    overlay = build(
        _two_polygons(),
        radius=1.0,
        material_options={"color": "#00ff00", "linewidth": None, "opacity": "0.5x"},
    )
    r = OverlayRenderer(dummy_ctx)
    with caplog.at_level(logging.WARNING):
        r.attach(overlay.node)
    assert caplog.text.count("invalid material") == 2
    dummy_ctx.line_width = 7.0
    r.draw()
    assert dummy_ctx.line_width == 1.0
    assert r.program["color"].value == pytest.approx((0.0, 1.0, 0.0, 1.0))


def test_material_numbers_are_clamped(dummy_ctx) -> None:
    overlay = build(_two_polygons(), radius=1.0, material_options={"opacity": 3, "linewidth": -2})
    r = OverlayRenderer(dummy_ctx)
    r.attach(overlay.node)
    r.draw()
    assert dummy_ctx.line_width == 0.0
    assert r.program["color"].value[3] == pytest.approx(1.0)
