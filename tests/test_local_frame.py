"""要素局所座標系のテスト.

検証項目:
  - 回転行列の直交性・右手系
  - 1D: 参照ベクトルによる局所 y 軸、自動選択、平行参照ベクトルのエラー
  - 2D: 面内局所座標、法線方向
  - 3D: 恒等変換
  - 局所↔全体の点写像の往復
  - 未対応次元のエラー
"""

from __future__ import annotations

import numpy as np
import pytest

from aeroelem.core.errors import ContractViolation
from aeroelem.geometry.local_frame import (
    Local1DFrame,
    Local2DFrame,
    Local3DFrame,
    build_local_frame,
)


def _assert_orthonormal(T: np.ndarray) -> None:
    np.testing.assert_allclose(T.T @ T, np.eye(3), atol=1e-12)
    assert np.linalg.det(T) == pytest.approx(1.0)


class TestLocal1DFrame:
    """1D 要素の局所座標系."""

    def test_axis_aligned(self):
        """x軸方向の梁、参照ベクトル y → 恒等行列."""
        nodes = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
        frame = Local1DFrame(nodes, np.array([0.0, 1.0, 0.0]))
        np.testing.assert_allclose(frame.T, np.eye(3), atol=1e-14)
        assert frame.length == pytest.approx(2.0)
        np.testing.assert_allclose(frame.local_nodes[1], [2.0, 0.0, 0.0], atol=1e-14)

    def test_inclined_beam(self):
        """xy面内 30° 傾斜の梁、参照ベクトル z → 局所 y = 全体 z."""
        th = np.deg2rad(30.0)
        c, s = np.cos(th), np.sin(th)
        nodes = np.array([[0.0, 0.0, 0.0], [c, s, 0.0]])
        frame = Local1DFrame(nodes, np.array([0.0, 0.0, 1.0]))
        _assert_orthonormal(frame.T)
        np.testing.assert_allclose(frame.T[:, 0], [c, s, 0.0], atol=1e-14)
        np.testing.assert_allclose(frame.T[:, 1], [0.0, 0.0, 1.0], atol=1e-14)
        np.testing.assert_allclose(frame.T[:, 2], [s, -c, 0.0], atol=1e-14)

    def test_reference_not_orthogonal(self):
        """参照ベクトルが軸に直交しなくても Gram-Schmidt で直交化される."""
        nodes = np.array([[1.0, 2.0, 3.0], [2.0, 3.0, 5.0]])
        frame = Local1DFrame(nodes, np.array([1.0, 1.0, 1.0]))
        _assert_orthonormal(frame.T)
        # 局所 y は参照ベクトルと局所 x が張る面内にある
        y_ref = np.array([1.0, 1.0, 1.0])
        assert abs(np.cross(frame.T[:, 0], y_ref) @ frame.T[:, 1]) < 1e-12

    def test_default_reference(self):
        """参照ベクトル省略時は軸に最も直交する座標軸を使う."""
        nodes = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 3.0]])
        frame = Local1DFrame(nodes)
        _assert_orthonormal(frame.T)
        np.testing.assert_allclose(frame.T[:, 1], [1.0, 0.0, 0.0], atol=1e-14)

    def test_parallel_reference_raises(self):
        nodes = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        with pytest.raises(ContractViolation):
            Local1DFrame(nodes, np.array([2.0, 0.0, 0.0]))

    def test_zero_length_raises(self):
        nodes = np.array([[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]])
        with pytest.raises(ContractViolation):
            Local1DFrame(nodes)

    def test_point_mapping_round_trip(self):
        """全体→局所→全体 の点写像が恒等."""
        nodes = np.array([[1.0, -2.0, 0.5], [3.0, 1.0, 2.0]])
        frame = Local1DFrame(nodes, np.array([0.0, 0.0, 1.0]))
        p = np.array([0.3, 0.7, -1.1])
        q = frame.global_coordinates_location(frame.local_coordinates_location(p))
        np.testing.assert_allclose(q, p, atol=1e-12)
        # 節点0は局所原点
        np.testing.assert_allclose(frame.local_coordinates_location(nodes[0]), 0.0, atol=1e-14)


class TestLocal2DFrame:
    """2D 要素の局所座標系."""

    def test_tilted_quad(self):
        """x軸まわりに傾けた四辺形: 局所節点は z=0、法線は局所 z."""
        th = np.deg2rad(40.0)
        ey = np.array([0.0, np.cos(th), np.sin(th)])
        nodes = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [2.0, 0.0, 0.0] + ey, ey])
        frame = Local2DFrame(nodes)
        _assert_orthonormal(frame.T)
        np.testing.assert_allclose(frame.T[:, 0], [1.0, 0.0, 0.0], atol=1e-14)
        np.testing.assert_allclose(frame.T[:, 1], ey, atol=1e-14)
        np.testing.assert_allclose(frame.local_nodes[:, 2], 0.0, atol=1e-14)
        np.testing.assert_allclose(frame.local_nodes[2, :2], [2.0, 1.0], atol=1e-14)
        assert not frame.is_identity

    def test_skewed_triangle_normal(self):
        """局所 z = 最初の3節点の面法線、局所 x = 第1辺方向."""
        nodes = np.array([[1.0, 0.0, 0.0], [2.0, 1.0, 1.0], [0.5, 2.0, 0.0]])
        frame = Local2DFrame(nodes)
        _assert_orthonormal(frame.T)
        normal = np.cross(nodes[1] - nodes[0], nodes[2] - nodes[0])
        np.testing.assert_allclose(frame.T[:, 2], normal / np.linalg.norm(normal), atol=1e-14)
        edge = nodes[1] - nodes[0]
        np.testing.assert_allclose(frame.T[:, 0], edge / np.linalg.norm(edge), atol=1e-14)
        # 第3節点は局所 y > 0 側
        assert frame.local_nodes[2, 1] > 0.0

    def test_collinear_raises(self):
        nodes = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
        with pytest.raises(ContractViolation):
            Local2DFrame(nodes)


class TestLocal3DFrame:
    def test_identity(self):
        nodes = np.random.default_rng(0).random((8, 3))
        frame = Local3DFrame(nodes)
        assert frame.is_identity
        np.testing.assert_allclose(frame.T, np.eye(3))
        np.testing.assert_allclose(frame.local_nodes, nodes)
        p = np.array([1.0, 2.0, 3.0])
        np.testing.assert_allclose(frame.global_coordinates_location(p), p)


class TestBuildLocalFrame:
    @pytest.mark.parametrize(
        ("dim", "cls"),
        [(1, Local1DFrame), (2, Local2DFrame), (3, Local3DFrame)],
    )
    def test_dispatch(self, dim, cls):
        nodes = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        assert isinstance(build_local_frame(nodes, dim), cls)

    @pytest.mark.parametrize("dim", [0, 4, -1])
    def test_unsupported_dim(self, dim):
        nodes = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        with pytest.raises(ContractViolation):
            build_local_frame(nodes, dim)

    def test_frame_is_read_only(self):
        frame = build_local_frame(np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 0.0]]), 1)
        with pytest.raises(ValueError):
            frame.T[0, 0] = 2.0
