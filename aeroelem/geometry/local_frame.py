"""要素局所座標系.

低次元要素（1D 梁・2D 平板）は局所座標系で定式化し、結果を全体座標系へ
回転する。3D 固体は全体座標系そのものを使う（変換なし）。

回転行列 T (3x3):
  T の列ベクトルが局所 x, y, z 軸を全体座標系で表したもの
  v_global = T @ v_local,  v_local = T^T @ v_global

局所軸の定義:
  1D: x = 節点0→節点1 方向, y = 参照ベクトルから Gram-Schmidt, z = x × y
  2D: x = 節点0→節点1 方向, z = 最初の3節点が張る面の法線, y = z × x
  3D: 単位行列
"""

from __future__ import annotations

import numpy as np

from aeroelem.core.errors import ContractViolation


def _length_and_direction(nodes: np.ndarray) -> tuple[float, np.ndarray]:
    """節点0→節点1 の長さと単位方向ベクトル."""
    dx = nodes[1] - nodes[0]
    length = float(np.linalg.norm(dx))
    if length < 1e-15:
        raise ContractViolation("要素長さがほぼゼロです。節点0と節点1が同一座標です。")
    return length, dx / length


def _default_reference(e_x: np.ndarray) -> np.ndarray:
    """要素軸に最も直交する座標軸を返す."""
    abs_ex = np.abs(e_x)
    if abs_ex[0] <= abs_ex[1] and abs_ex[0] <= abs_ex[2]:
        return np.array([1.0, 0.0, 0.0])
    if abs_ex[1] <= abs_ex[2]:
        return np.array([0.0, 1.0, 0.0])
    return np.array([0.0, 0.0, 1.0])


def _build_local_axes(e_x: np.ndarray, v_ref: np.ndarray | None = None) -> np.ndarray:
    """局所座標系の回転行列 T (3x3) を構築する.

    Args:
        e_x: 要素軸方向の単位ベクトル
        v_ref: 局所 y 軸を定義する参照ベクトル。None の場合は自動選択。

    Returns:
        T: (3, 3) 列が局所 x, y, z 軸
    """
    if v_ref is None:
        v_ref = _default_reference(e_x)
    v_ref = np.asarray(v_ref, dtype=float)

    normal = np.cross(e_x, v_ref)
    norm = np.linalg.norm(normal)
    if norm < 1e-10:
        raise ContractViolation(f"参照ベクトルが要素軸と平行です。v_ref={v_ref}, e_x={e_x}")
    return _axes_from_normal(e_x, normal / norm)


def _axes_from_normal(e_x: np.ndarray, e_z: np.ndarray) -> np.ndarray:
    """直交する単位ベクトル e_x, e_z から T = [e_x, e_z × e_x, e_z] を作る."""
    return np.column_stack([e_x, np.cross(e_z, e_x), e_z])


class LocalFrame:
    """局所座標系の共通部分.

    Attributes:
        dim: 要素の位相次元
        T: (3, 3) 局所→全体の回転行列（読み取り専用）
        origin: (3,) 局所座標系の原点（全体座標）
        local_nodes: (n, 3) 局所座標系での節点座標（読み取り専用）
    """

    dim: int

    def __init__(self, nodes: np.ndarray, T: np.ndarray, origin: np.ndarray) -> None:
        T = np.array(T, dtype=float)
        T.setflags(write=False)
        origin = np.array(origin, dtype=float)
        origin.setflags(write=False)
        self.T = T
        self.origin = origin
        local_nodes = (np.asarray(nodes, dtype=float) - origin) @ T
        local_nodes.setflags(write=False)
        self.local_nodes = local_nodes

    @property
    def is_identity(self) -> bool:
        """局所→全体変換が不要（3D 固体）なら True."""
        return False

    def global_coordinates_location(self, local_point: np.ndarray) -> np.ndarray:
        """局所座標の点を全体座標の物理点に写像する."""
        return self.origin + self.T @ np.asarray(local_point, dtype=float)

    def local_coordinates_location(self, global_point: np.ndarray) -> np.ndarray:
        """全体座標の物理点を局所座標に写像する."""
        return self.T.T @ (np.asarray(global_point, dtype=float) - self.origin)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_nodes={self.local_nodes.shape[0]})"


class Local1DFrame(LocalFrame):
    """1D 要素（梁）の局所座標系.

    Args:
        nodes: (n, 3) 全体座標系の節点座標（節点0, 1 が要素端）
        y_vector: 局所 y 軸の参照ベクトル（None = 自動選択）
    """

    dim = 1

    def __init__(self, nodes: np.ndarray, y_vector: np.ndarray | None = None) -> None:
        nodes = np.asarray(nodes, dtype=float)
        self.length, e_x = _length_and_direction(nodes)
        super().__init__(nodes, _build_local_axes(e_x, y_vector), nodes[0])


class Local2DFrame(LocalFrame):
    """2D 要素（平板・シェル）の局所座標系.

    Args:
        nodes: (n, 3) 全体座標系の節点座標（n >= 3）
    """

    dim = 2

    def __init__(self, nodes: np.ndarray) -> None:
        nodes = np.asarray(nodes, dtype=float)
        if nodes.shape[0] < 3:
            raise ContractViolation(f"2D 要素には3節点以上が必要です: {nodes.shape[0]}")
        _, e_x = _length_and_direction(nodes)
        normal = np.cross(nodes[1] - nodes[0], nodes[2] - nodes[0])
        norm = np.linalg.norm(normal)
        if norm < 1e-15:
            raise ContractViolation("最初の3節点が同一直線上にあり、面の法線を定義できません。")
        super().__init__(nodes, _axes_from_normal(e_x, normal / norm), nodes[0])


class Local3DFrame(LocalFrame):
    """3D 固体要素の局所座標系（全体座標系と一致）."""

    dim = 3

    def __init__(self, nodes: np.ndarray) -> None:
        super().__init__(nodes, np.eye(3), np.zeros(3))

    @property
    def is_identity(self) -> bool:
        return True

    def global_coordinates_location(self, local_point: np.ndarray) -> np.ndarray:
        return np.array(local_point, dtype=float)

    def local_coordinates_location(self, global_point: np.ndarray) -> np.ndarray:
        return np.array(global_point, dtype=float)


LocalFrameVariant = Local1DFrame | Local2DFrame | Local3DFrame


def build_local_frame(
    nodes: np.ndarray,
    dim: int,
    y_vector: np.ndarray | None = None,
) -> LocalFrameVariant:
    """要素次元に応じた局所座標系を構築する.

    Args:
        nodes: (n, 3) 全体座標系の節点座標
        dim: 要素の位相次元（1, 2, 3）
        y_vector: 1D 要素の局所 y 軸参照ベクトル（2D/3D では無視）

    Raises:
        ContractViolation: dim が 1, 2, 3 以外
    """
    if dim == 1:
        return Local1DFrame(nodes, y_vector)
    if dim == 2:
        return Local2DFrame(nodes)
    if dim == 3:
        return Local3DFrame(nodes)
    raise ContractViolation(f"未対応の要素次元です: dim={dim}")
