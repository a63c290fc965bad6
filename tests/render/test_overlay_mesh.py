from __future__ import annotations

import numpy as np

from conftest import DummyProgram
from terra.engine.render.line_mesh import OverlayMesh


def test_upload_creates_buffers_once(dummy_ctx) -> None:
    mesh = OverlayMesh(dummy_ctx, DummyProgram())
    verts = np.zeros((4, 3), dtype=np.float32)
    inds = np.array([0, 1, 2, 3], dtype=np.uint32)
    mesh.upload(verts, inds)
    assert mesh.vertex_count == 4
    assert mesh.index_count == 4
    assert len(dummy_ctx.buffers) == 2
    assert dummy_ctx.buffers[0].data == verts.tobytes()
    assert dummy_ctx.buffers[1].data == inds.tobytes()
    assert len(dummy_ctx.vaos) == 1


def test_reupload_releases_previous_buffers(dummy_ctx) -> None:
    mesh = OverlayMesh(dummy_ctx, DummyProgram())
    mesh.upload(np.zeros((2, 3)), np.array([0, 1]))
    first_vao = dummy_ctx.vaos[0]
    mesh.upload(np.zeros((2, 3)), np.array([0, 1]))
    assert first_vao.released
    assert all(b.released for b in dummy_ctx.buffers[:2])
    assert not dummy_ctx.buffers[2].released


def test_empty_indices_skip_gpu_allocation(dummy_ctx) -> None:
    mesh = OverlayMesh(dummy_ctx, DummyProgram())
    mesh.upload(np.zeros((0, 3)), np.zeros(0, dtype=np.uint32))
    assert dummy_ctx.buffers == []
    mesh.render_range(1, 0, 10)  # VAO が無ければ何もしない
    assert mesh.vao is None


def test_render_range_passes_first_and_count(dummy_ctx) -> None:
    mesh = OverlayMesh(dummy_ctx, DummyProgram())
    mesh.upload(np.zeros((4, 3)), np.array([0, 1, 2, 3]))
    mesh.render_range(1, 2, 2)
    mesh.render_range(1, 0, 0)
    assert dummy_ctx.vaos[0].render_calls == [(1, 2, 2)]


def test_release_clears_counts(dummy_ctx) -> None:
    mesh = OverlayMesh(dummy_ctx, DummyProgram())
    mesh.upload(np.zeros((2, 3)), np.array([0, 1]))
    mesh.release()
    assert mesh.vao is None and mesh.vbo is None and mesh.ibo is None
    assert mesh.index_count == 0
