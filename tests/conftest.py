"""共通フィクスチャ。

- 小さな GeoJSON 試料（ポリゴン/穴付きマルチポリゴン/ライン）
- moderngl を使わないダミー GPU オブジェクト
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pytest


def square(lon0: float, lat0: float, size: float) -> list[list[float]]:
    """反時計回りの閉じた正方形リング（5 点、先頭 == 末尾）。"""
    return [
        [lon0, lat0],
        [lon0 + size, lat0],
        [lon0 + size, lat0 + size],
        [lon0, lat0 + size],
        [lon0, lat0],
    ]


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture()
def polygon_doc() -> dict:
    return {"type": "Polygon", "coordinates": [square(0.0, 0.0, 10.0)]}


@pytest.fixture()
def multipolygon_with_hole() -> dict:
    """2 ポリゴン、うち 1 つに穴 1 つ → リング 3 本。"""
    return {
        "type": "Feature",
        "properties": {"name": "two islands", "population": 12},
        "geometry": {
            "type": "MultiPolygon",
            "coordinates": [
                [square(0.0, 0.0, 10.0), square(2.0, 2.0, 2.0)],
                [square(40.0, 10.0, 5.0)],
            ],
        },
    }


@pytest.fixture()
def collection_doc() -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"stroke": "#ff0000"},
                "geometry": {"type": "LineString", "coordinates": [[10, 0], [20, 0], [30, 5]]},
            },
            {
                "type": "Feature",
                "properties": {},
                "geometry": {
                    "type": "MultiLineString",
                    "coordinates": [[[0, 0], [0, 10]], [[5, 5], [6, 6], [7, 7]]],
                },
            },
            {"type": "Feature", "properties": {}, "geometry": {"type": "Point", "coordinates": [1, 2]}},
            {"type": "Feature", "properties": {}, "geometry": None},
        ],
    }


class DummyBuffer:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.released = False

    def release(self) -> None:
        self.released = True


class DummyVAO:
    def __init__(self) -> None:
        self.render_calls: list[tuple[int, int, int]] = []
        self.released = False

    def render(self, mode: int, vertices: int = -1, *, first: int = 0) -> None:
        self.render_calls.append((mode, vertices, first))

    def release(self) -> None:
        self.released = True


class DummyUniform:
    def __init__(self) -> None:
        self.value: Any = None
        self.written: bytes | None = None
        self.history: list[Any] = []

    def write(self, data: bytes) -> None:
        self.written = data

    def __setattr__(self, key: str, val: Any) -> None:
        if key == "value" and "history" in self.__dict__:
            self.__dict__["history"].append(val)
        object.__setattr__(self, key, val)


class DummyProgram(dict):
    def __missing__(self, key: str) -> DummyUniform:
        u = DummyUniform()
        self[key] = u
        return u


class DummyContext:
    def __init__(self) -> None:
        self.buffers: list[DummyBuffer] = []
        self.vaos: list[DummyVAO] = []
        self.line_width = 1.0

    def buffer(self, data: bytes) -> DummyBuffer:
        buf = DummyBuffer(data)
        self.buffers.append(buf)
        return buf

    def simple_vertex_array(self, program, vbo, *attrs, index_buffer=None, index_element_size=4):
        vao = DummyVAO()
        self.vaos.append(vao)
        return vao

    def program(self, vertex_shader: str, fragment_shader: str) -> DummyProgram:
        return DummyProgram()


@pytest.fixture()
def dummy_ctx() -> DummyContext:
    return DummyContext()
