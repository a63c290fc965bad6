from __future__ import annotations

import logging

import numpy as np
import pytest

from conftest import square
from terra.engine.geo.batches import accumulate
from terra.engine.geo.normalizer import normalize


def _ranges_disjoint(ranges: list[tuple[int, int]]) -> bool:
    for (a0, a1), (b0, b1) in zip(ranges, ranges[1:]):
        if not (a0 <= a1 <= b0 <= b1):
            return False
    return True


def test_multipolygon_with_hole_yields_three_independent_batches(
    multipolygon_with_hole: dict,
) -> None:
    bs = accumulate(normalize(multipolygon_with_hole), radius=1.0)
    assert len(bs) == 3
    assert [b.batch_index for b in bs.batches] == [0, 1, 2]
    assert _ranges_disjoint([b.vertex_range for b in bs.batches])
    assert _ranges_disjoint([b.index_range for b in bs.batches])
    assert [b.vertex_count for b in bs.batches] == [5, 5, 5]
    assert bs.geometry.offsets.tolist() == [0, 5, 10, 15]
    assert bs.stats.batches == 3
    assert bs.stats.segments == 12


def test_indices_are_global_vertex_pairs(multipolygon_with_hole: dict) -> None:
    bs = accumulate(normalize(multipolygon_with_hole), radius=1.0)
    assert bs.indices.dtype == np.uint32
    pairs = bs.indices.reshape(-1, 2)
    for b in bs.batches:
        lo, hi = b.index_range
        seg = pairs[lo // 2 : hi // 2]
        v0, v1 = b.vertex_range
        assert np.all((seg >= v0) & (seg < v1))
        assert np.all(seg[:, 1] == seg[:, 0] + 1)


def test_batch_order_follows_input_order(collection_doc: dict) -> None:
    bs = accumulate(normalize(collection_doc), radius=1.0)
    assert [b.geometry_type for b in bs.batches] == [
        "LineString",
        "MultiLineString",
        "MultiLineString",
    ]
    assert [b.vertex_count for b in bs.batches] == [3, 2, 3]
    assert bs.batches[0].style is not None
    assert bs.batches[1].style is None


def test_bad_ring_is_skipped_and_build_continues(caplog: pytest.LogCaptureFixture) -> None:
    doc = {
        "type": "MultiPolygon",
        "coordinates": [
            [[[0, 0], [1, 0], [0, 0]]],  # 点数不足
            [square(10.0, 10.0, 5.0)],
            [[[0, 0], [0, "bad"], [1, 1], [0, 0]]],
        ],
    }
    with caplog.at_level(logging.WARNING):
        bs = accumulate(normalize(doc), radius=1.0)
    assert len(bs) == 1
    assert bs.batches[0].vertex_start == 0
    assert bs.stats.skipped_rings == 2
    assert bs.stats.skipped_shapes == 0
    assert "$.coordinates[0][0]" in caplog.text


def test_shape_with_no_usable_rings_is_counted() -> None:
    doc = {"type": "LineString", "coordinates": [[0, 0]]}
    bs = accumulate(normalize(doc), radius=1.0)
    assert len(bs) == 0
    assert bs.geometry.is_empty
    assert bs.indices.size == 0
    assert bs.stats.skipped_shapes == 1


def test_antimeridian_breaks_are_counted() -> None:
    doc = {"type": "LineString", "coordinates": [[170, 0], [-170, 0], [-160, 0]]}
    bs = accumulate(normalize(doc), radius=1.0)
    assert bs.stats.antimeridian_breaks == 1
    assert bs.batches[0].n_segments == 1
    assert bs.batches[0].segment_ends.tolist() == [2]
