from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from conftest import square
from terra import GlobeOverlay, ValidationError, build
from terra.engine.render.types import MaterialOptions


def test_unrecognized_document_raises_validation_error() -> None:
    with pytest.raises(ValidationError) as ei:
        build({"type": "NotAShape"}, radius=1.0)
    assert ei.value.node == "$"


def test_multipolygon_with_hole_builds_three_batches(multipolygon_with_hole: dict) -> None:
    overlay = build(multipolygon_with_hole, radius=2.0)
    node = overlay.node
    assert len(node.batches) == 3
    ranges = [b.vertex_range for b in node.batches]
    assert ranges == [(0, 5), (5, 10), (10, 15)]
    assert node.vertices.shape == (15, 3)
    assert node.vertices.dtype == np.float32
    assert node.indices.dtype == np.uint32
    np.testing.assert_allclose(np.linalg.norm(node.vertices, axis=1), 2.0, rtol=1e-6)
    assert overlay.stats.batches == 3
    assert overlay.stats.skipped_rings == 0


def test_not_animated_is_fully_visible(polygon_doc: dict) -> None:
    overlay = build(polygon_doc, radius=1.0)
    assert overlay.complete
    st = overlay.reveal_state(0)
    assert st.visible_vertices == 5
    assert st.visible_indices == 8


def test_animated_reveal_progresses_with_update(polygon_doc: dict) -> None:
    overlay = build(polygon_doc, radius=1.0, animated=True, reveal_duration_ms=1000, start_ms=0)
    overlay.update(250)
    a = overlay.reveal_state(0).visible_vertices
    overlay.update(800)
    b = overlay.reveal_state(0).visible_vertices
    assert a <= b
    overlay.update(1000)
    full = overlay.reveal_state(0)
    overlay.update(5000)
    assert overlay.reveal_state(0) == full
    assert full.visible_vertices == 5


def test_result_unpacks_into_node_and_update(polygon_doc: dict) -> None:
    overlay = build(polygon_doc, radius=1.0, animated=True, reveal_duration_ms=100, start_ms=0)
    node, update = overlay
    assert node is overlay.node
    update(100)
    assert overlay.complete


def test_material_is_passed_through(polygon_doc: dict) -> None:
    overlay = build(
        polygon_doc,
        radius=1.0,
        material_options={"color": 0x1A73E8, "linewidth": 1.5, "opacity": 0.8, "depthTest": False},
    )
    mat = overlay.node.material
    assert isinstance(mat, MaterialOptions)
    assert mat.color == 0x1A73E8
    assert mat.linewidth == 1.5
    assert mat.opacity == 0.8
    assert mat.extra == {"depthTest": False}


def test_material_must_be_mapping(polygon_doc: dict) -> None:
    with pytest.raises(TypeError):
        build(polygon_doc, radius=1.0, material_options=[1, 2, 3])  # type: ignore[arg-type]


@pytest.mark.parametrize("radius", [0.0, -1.0, math.inf, math.nan])
def test_invalid_radius_raises(polygon_doc: dict, radius: float) -> None:
    with pytest.raises(ValueError):
        build(polygon_doc, radius=radius)


def test_unknown_antimeridian_policy_raises(polygon_doc: dict) -> None:
    with pytest.raises(ValueError):
        build(polygon_doc, radius=1.0, antimeridian="wrap")


def test_negative_duration_raises(polygon_doc: dict) -> None:
    with pytest.raises(ValueError):
        build(polygon_doc, radius=1.0, animated=True, reveal_duration_ms=-5)


def test_empty_collection_builds_empty_node() -> None:
    overlay = build({"type": "FeatureCollection", "features": []}, radius=1.0)
    assert isinstance(overlay, GlobeOverlay)
    assert overlay.node.is_empty
    assert list(overlay.node.draw_ranges()) == []
    overlay.update(10)


def test_elevation_offsets_radius(polygon_doc: dict) -> None:
    overlay = build(polygon_doc, radius=1.0, elevation=0.01)
    np.testing.assert_allclose(np.linalg.norm(overlay.node.vertices, axis=1), 1.01, rtol=1e-6)


def test_elevation_scale_uses_third_coordinate() -> None:
    doc = {"type": "LineString", "coordinates": [[0, 0, 100.0], [10, 0, 0.0]]}
    overlay = build(doc, radius=1.0, elevation_scale=0.001)
    norms = np.linalg.norm(overlay.node.vertices, axis=1)
    np.testing.assert_allclose(norms, [1.1, 1.0], rtol=1e-6)


def test_skipped_features_are_logged_not_fatal(collection_doc: dict, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        overlay = build(collection_doc, radius=1.0)
    assert len(overlay.node.batches) == 3
    assert "Point" in caplog.text


def test_antimeridian_policies_change_segment_count() -> None:
    doc = {"type": "LineString", "coordinates": [[170, 0], [-170, 0]]}
    broken = build(doc, radius=1.0, antimeridian="break")
    split = build(doc, radius=1.0, antimeridian="split")
    connected = build(doc, radius=1.0, antimeridian="connect")
    assert broken.node.indices.size == 0
    assert split.node.indices.size == 4
    assert connected.node.indices.size == 2
    assert broken.stats.antimeridian_breaks == 1
    assert connected.stats.antimeridian_breaks == 0


def test_build_does_not_mutate_document(multipolygon_with_hole: dict) -> None:
    import copy

    before = copy.deepcopy(multipolygon_with_hole)
    build(multipolygon_with_hole, radius=1.0)
    assert multipolygon_with_hole == before


def test_holes_are_drawn_like_outer_rings() -> None:
    doc = {"type": "Polygon", "coordinates": [square(0, 0, 10), square(2, 2, 2)]}
    overlay = build(doc, radius=1.0)
    assert [b.n_segments for b in overlay.node.batches] == [4, 4]


@pytest.mark.parametrize("elevation", [-1.0, -2.0, math.nan, math.inf])
def test_invalid_elevation_raises(polygon_doc: dict, elevation: float) -> None:
    with pytest.raises(ValueError):
        build(polygon_doc, radius=1.0, elevation=elevation)


def test_ring_sinking_below_center_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    doc = {
        "type": "MultiLineString",
        "coordinates": [
            [[0, 0, 0.0], [10, 0, 0.0]],
            [[20, 0, 0.0], [30, 0, -2000.0]],
        ],
    }
    with caplog.at_level(logging.WARNING):
        overlay = build(doc, radius=1.0, elevation_scale=0.001)
    assert overlay.stats.skipped_rings == 1
    assert len(overlay.node.batches) == 1
    assert "effective radius" in caplog.text
    np.testing.assert_allclose(np.linalg.norm(overlay.node.vertices, axis=1), 1.0, rtol=1e-6)


def test_non_numeric_material_values_are_kept_raw(polygon_doc: dict) -> None:
    overlay = build(polygon_doc, radius=1.0, material_options={"linewidth": None, "opacity": "0.5x"})
    assert overlay.node.material.linewidth is None
    assert overlay.node.material.opacity == "0.5x"


def test_0_360_longitudes_build_without_breaks() -> None:
    doc = {"type": "LineString", "coordinates": [[350, 0], [10, 0]]}
    for policy in ("break", "split"):
        overlay = build(doc, radius=1.0, antimeridian=policy)
        assert overlay.node.indices.size == 2
        assert overlay.stats.antimeridian_breaks == 0
