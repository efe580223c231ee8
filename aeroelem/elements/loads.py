"""外力（面圧・微小擾乱面圧・熱荷重）の要素残差.

面圧:
  force[0:3] = p · n,  force[3:6] = 0
  f_local += Σ JxW · Bᵀ force    （B は 6 成分のブロック補間演算子）

微小擾乱面圧（定常空力状態まわりの線形化）:
  force[0:3] = p · δn + δp · n
    p  : 定常圧力（実数）            "pressure"
    δp : 非定常圧力擾乱（kind 型）    "dpressure"
    δn : 面法線の擾乱（kind 型 3成分）"dnormal"

熱荷重（初期ひずみ）:
  f_local -= Σ JxW · Bεᵀ (Dα · (T - T_ref))

辺/面積分（side 版）は基底が与える外向き法線を使う。要素自身の面に作用する
荷重（face 版、1D/2D のみ）は局所軸の合成法線 n[dim] = -1 を使う
（1D: 局所 y 軸、2D: 局所 z 軸）。

荷重は変形に追従しない（フォロワー荷重は未実装）ため状態に対して線形で、
接線の寄与はない。フォロワー荷重で接線を要求した場合はエラー。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from aeroelem.core.boundary import BoundaryCondition, BoundaryConditionType
from aeroelem.core.errors import ContractViolation, UnsupportedFeatureError
from aeroelem.core.field import ScalarKind
from aeroelem.fe.basis import QuadratureData
from aeroelem.fe.operator import BlockOperator

if TYPE_CHECKING:
    from aeroelem.elements.structural import StructuralElementBase

logger = logging.getLogger(__name__)

N_VARS = 6


def _check_follower(element: StructuralElementBase, request_jacobian: bool) -> None:
    if request_jacobian and element.follower_forces:
        raise UnsupportedFeatureError("フォロワー荷重の接線は未実装です。")


def _face_normal(element: StructuralElementBase) -> np.ndarray:
    """要素自身の面に作用する荷重の合成法線（局所座標系）."""
    if element.dim >= 3:
        raise ContractViolation("要素面の荷重は 1D/2D 要素にのみ適用できます。")
    normal = np.zeros(3)
    normal[element.dim] = -1.0
    return normal


def _pressure_residual(
    element: StructuralElementBase,
    q: QuadratureData,
    normals: np.ndarray,
    bc: BoundaryCondition,
) -> np.ndarray:
    func = bc.get("pressure", ScalarKind.REAL)
    local_f = np.zeros(N_VARS * q.n_shape_functions, dtype=element.dtype)
    force = np.zeros(N_VARS)
    for qp in range(q.n_qp):
        pt = element.local_elem.global_coordinates_location(q.xyz[qp])
        Bmat = BlockOperator(N_VARS, q.phi[:, qp])
        press = float(func(pt, element.time))
        force[:3] = press * normals[qp]
        local_f += q.JxW[qp] * Bmat.vector_mult_transpose(force)
    return local_f


def side_pressure_residual(
    element: StructuralElementBase,
    request_jacobian: bool,
    f: np.ndarray,
    jac: np.ndarray,
    side: int,
    bc: BoundaryCondition,
) -> bool:
    """辺/面 side に作用する面圧の残差を加算する."""
    _check_follower(element, request_jacobian)
    q = element.side_quadrature(side)
    local_f = _pressure_residual(element, q, q.normals, bc)
    element.add_local_vector(f, local_f)
    return request_jacobian and element.follower_forces


def face_pressure_residual(
    element: StructuralElementBase,
    request_jacobian: bool,
    f: np.ndarray,
    jac: np.ndarray,
    bc: BoundaryCondition,
) -> bool:
    """要素自身の面（梁・平板の面）に作用する面圧の残差を加算する."""
    normal = _face_normal(element)
    _check_follower(element, request_jacobian)
    q = element.quadrature
    local_f = _pressure_residual(element, q, np.tile(normal, (q.n_qp, 1)), bc)
    element.add_local_vector(f, local_f)
    return request_jacobian and element.follower_forces


def _small_disturbance_residual(
    element: StructuralElementBase,
    q: QuadratureData,
    normals: np.ndarray,
    bc: BoundaryCondition,
) -> np.ndarray:
    if bc.type() is not BoundaryConditionType.SMALL_DISTURBANCE_MOTION:
        raise ContractViolation(f"微小擾乱境界条件が必要です: {bc.type().value}")
    kind = element.kind
    press_fn = bc.get("pressure", ScalarKind.REAL)
    dpress_fn = bc.get("dpressure", kind)
    dn_rot_fn = bc.get("dnormal", kind)

    local_f = np.zeros(N_VARS * q.n_shape_functions, dtype=kind.dtype)
    force = np.zeros(N_VARS, dtype=kind.dtype)
    for qp in range(q.n_qp):
        pt = element.local_elem.global_coordinates_location(q.xyz[qp])
        Bmat = BlockOperator(N_VARS, q.phi[:, qp])

        press = float(press_fn(pt, element.time))
        dpress = dpress_fn(pt, element.time)
        dn_rot = np.asarray(dn_rot_fn(pt, element.time))
        if dn_rot.shape != (3,):
            raise ContractViolation(f"dnormal は (3,) が必要。実際: {dn_rot.shape}")
        if not kind.accepts(dpress) or not kind.accepts(dn_rot):
            raise ContractViolation(f"擾乱場の値が kind={kind.value} と一致しません。")

        # 定常圧力 × 法線擾乱 + 非定常圧力 × 定常法線
        force[:3] = press * dn_rot + dpress * normals[qp]
        local_f += q.JxW[qp] * Bmat.vector_mult_transpose(force)
    return local_f


def side_small_disturbance_residual(
    element: StructuralElementBase,
    request_jacobian: bool,
    f: np.ndarray,
    jac: np.ndarray,
    side: int,
    bc: BoundaryCondition,
) -> bool:
    """辺/面 side に作用する微小擾乱面圧の残差を加算する."""
    _check_follower(element, request_jacobian)
    q = element.side_quadrature(side)
    local_f = _small_disturbance_residual(element, q, q.normals, bc)
    element.add_local_vector(f, local_f)
    return request_jacobian and element.follower_forces


def face_small_disturbance_residual(
    element: StructuralElementBase,
    request_jacobian: bool,
    f: np.ndarray,
    jac: np.ndarray,
    bc: BoundaryCondition,
) -> bool:
    """要素自身の面に作用する微小擾乱面圧の残差を加算する."""
    normal = _face_normal(element)
    _check_follower(element, request_jacobian)
    q = element.quadrature
    local_f = _small_disturbance_residual(element, q, np.tile(normal, (q.n_qp, 1)), bc)
    element.add_local_vector(f, local_f)
    return request_jacobian and element.follower_forces


# ============================================================
# 熱荷重
# ============================================================


def strain_operator(dN_dx: np.ndarray, dim: int) -> np.ndarray:
    """並進自由度に対するひずみ-変位行列 Bε（成分ブロック順）.

    Args:
        dN_dx: (n, dim) 積分点での形状関数の物理座標微分
        dim: 要素次元

    Returns:
        Bε: 1D (1, 6n) [εx] / 2D (3, 6n) [εx, εy, γxy] /
            3D (6, 6n) [εxx, εyy, εzz, γyz, γxz, γxy]
    """
    n = dN_dx.shape[0]
    u, v, w = slice(0, n), slice(n, 2 * n), slice(2 * n, 3 * n)
    if dim == 1:
        B = np.zeros((1, N_VARS * n))
        B[0, u] = dN_dx[:, 0]
    elif dim == 2:
        B = np.zeros((3, N_VARS * n))
        B[0, u] = dN_dx[:, 0]  # εx = du/dx
        B[1, v] = dN_dx[:, 1]  # εy = dv/dy
        B[2, u] = dN_dx[:, 1]  # γxy = du/dy + dv/dx
        B[2, v] = dN_dx[:, 0]
    elif dim == 3:
        B = np.zeros((6, N_VARS * n))
        B[0, u] = dN_dx[:, 0]  # εxx = du/dx
        B[1, v] = dN_dx[:, 1]  # εyy = dv/dy
        B[2, w] = dN_dx[:, 2]  # εzz = dw/dz
        B[3, v] = dN_dx[:, 2]  # γyz = dv/dz + dw/dy
        B[3, w] = dN_dx[:, 1]
        B[4, u] = dN_dx[:, 2]  # γxz = du/dz + dw/dx
        B[4, w] = dN_dx[:, 0]
        B[5, u] = dN_dx[:, 1]  # γxy = du/dy + dv/dx
        B[5, v] = dN_dx[:, 0]
    else:
        raise ContractViolation(f"未対応の要素次元です: dim={dim}")
    return B


def thermal_residual(
    element: StructuralElementBase,
    request_jacobian: bool,
    f: np.ndarray,
    jac: np.ndarray,
    bc: BoundaryCondition,
) -> bool:
    """温度変化による初期ひずみの残差を加算する.

    境界条件の場 "temperature", "ref_temperature" と、プロパティカードの
    thermal_expansion_matrix（単位温度上昇あたりの熱応力合力）を使う。
    """
    if bc.type() is not BoundaryConditionType.TEMPERATURE:
        raise ContractViolation(f"温度境界条件が必要です: {bc.type().value}")
    if not hasattr(element.property, "thermal_expansion_matrix"):
        raise ContractViolation("プロパティカードが thermal_expansion_matrix を提供していません。")
    q = element.quadrature
    if q.dphi is None:
        raise ContractViolation("熱荷重には形状関数の微分（dphi）が必要です。")

    temp_fn = bc.get("temperature", ScalarKind.REAL)
    ref_fn = bc.get("ref_temperature", ScalarKind.REAL)
    mat_fn = element.property.thermal_expansion_matrix(element)
    n_strain = {1: 1, 2: 3, 3: 6}[element.dim]

    local_f = np.zeros(N_VARS * q.n_shape_functions, dtype=element.dtype)
    for qp in range(q.n_qp):
        pt = element.local_elem.global_coordinates_location(q.xyz[qp])
        delta_t = float(temp_fn(pt, element.time)) - float(ref_fn(pt, element.time))
        stress = np.asarray(mat_fn(pt, element.time), dtype=float).ravel()
        if stress.shape != (n_strain,):
            raise ContractViolation(
                f"熱応力合力は ({n_strain},) が必要。実際: {stress.shape}"
            )
        B_eps = strain_operator(q.dphi[:, qp, :], element.dim)
        local_f -= q.JxW[qp] * (B_eps.T @ (stress * delta_t))

    logger.debug("熱荷重: %s", element)
    element.add_local_vector(f, local_f)
    return False
