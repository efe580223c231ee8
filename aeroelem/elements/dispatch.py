"""境界条件の振り分け（辺/面・体積）.

辺/面版: 境界 ID を持つ各辺/面について、その ID に登録された全境界条件を
種別ごとに残差ルーチンへ振り分ける。

  SURFACE_PRESSURE          → 面圧（辺/面積分）
  SMALL_DISTURBANCE_MOTION  → 微小擾乱面圧（辺/面積分）
  DIRICHLET                 → 寄与なし（拘束処理は外部）
  その他                     → UnsupportedFeatureError

体積版: 要素のサブドメイン ID で同様に振り分ける。

  SURFACE_PRESSURE          → 面圧（要素自身の面）
  TEMPERATURE               → 熱荷重
  SMALL_DISTURBANCE_MOTION  → 微小擾乱面圧（要素自身の面）
  その他                     → UnsupportedFeatureError

戻り値は「接線を要求し、かつ少なくとも1つの寄与が接線を生成した」場合に True。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from aeroelem.core.boundary import BoundaryConditionMap, BoundaryConditionType
from aeroelem.core.errors import UnsupportedFeatureError
from aeroelem.core.results import ExternalResidual
from aeroelem.elements import loads

if TYPE_CHECKING:
    from aeroelem.elements.structural import StructuralElementBase

logger = logging.getLogger(__name__)


def side_external_residual(
    element: StructuralElementBase,
    request_jacobian: bool,
    f: np.ndarray,
    jac: np.ndarray,
    bc_map: BoundaryConditionMap,
) -> bool:
    """辺/面の境界 ID に登録された外力の残差を加算する.

    Args:
        element: 構造要素
        request_jacobian: 接線を計算するか
        f: (6n,) 残差ベクトル（加算される）
        jac: (6n, 6n) 接線（加算される）
        bc_map: 境界 ID → 境界条件 の多値マップ

    Returns:
        接線の寄与があったか
    """
    geom = element.elem
    calculate_jac = False

    for side in range(geom.n_sides):
        if not geom.n_boundary_ids(side):
            continue
        for bid in geom.boundary_ids(side):
            for bc in bc_map.equal_range(bid):
                bc_type = bc.type()
                logger.debug("side=%d, id=%d: %s", side, bid, bc_type.value)
                if bc_type is BoundaryConditionType.SURFACE_PRESSURE:
                    contributed = loads.side_pressure_residual(
                        element, request_jacobian, f, jac, side, bc
                    )
                elif bc_type is BoundaryConditionType.SMALL_DISTURBANCE_MOTION:
                    contributed = loads.side_small_disturbance_residual(
                        element, request_jacobian, f, jac, side, bc
                    )
                elif bc_type is BoundaryConditionType.DIRICHLET:
                    contributed = False
                else:
                    raise UnsupportedFeatureError(
                        f"辺/面の境界条件 {bc_type.value} は未実装です。"
                    )
                calculate_jac = calculate_jac or contributed

    return request_jacobian and calculate_jac


def volume_external_residual(
    element: StructuralElementBase,
    request_jacobian: bool,
    f: np.ndarray,
    jac: np.ndarray,
    bc_map: BoundaryConditionMap,
) -> bool:
    """サブドメイン ID に登録された外力の残差を加算する.

    Args:
        element: 構造要素
        request_jacobian: 接線を計算するか
        f: (6n,) 残差ベクトル（加算される）
        jac: (6n, 6n) 接線（加算される）
        bc_map: サブドメイン ID → 境界条件 の多値マップ

    Returns:
        接線の寄与があったか
    """
    sid = element.elem.subdomain_id
    calculate_jac = False

    for bc in bc_map.equal_range(sid):
        bc_type = bc.type()
        logger.debug("subdomain=%d: %s", sid, bc_type.value)
        if bc_type is BoundaryConditionType.SURFACE_PRESSURE:
            contributed = loads.face_pressure_residual(element, request_jacobian, f, jac, bc)
        elif bc_type is BoundaryConditionType.TEMPERATURE:
            contributed = loads.thermal_residual(element, request_jacobian, f, jac, bc)
        elif bc_type is BoundaryConditionType.SMALL_DISTURBANCE_MOTION:
            contributed = loads.face_small_disturbance_residual(
                element, request_jacobian, f, jac, bc
            )
        else:
            raise UnsupportedFeatureError(f"体積の境界条件 {bc_type.value} は未実装です。")
        calculate_jac = calculate_jac or contributed

    return request_jacobian and calculate_jac


def assemble_external(
    element: StructuralElementBase,
    *,
    side_bcs: BoundaryConditionMap | None = None,
    volume_bcs: BoundaryConditionMap | None = None,
    request_jacobian: bool = False,
) -> ExternalResidual:
    """外力項をゼロ初期化した配列に計算して返す."""
    n2 = element.n_dofs
    f = np.zeros(n2, dtype=element.dtype)
    jac = np.zeros((n2, n2), dtype=element.dtype)
    contributed = False
    if side_bcs is not None:
        contributed = side_external_residual(element, request_jacobian, f, jac, side_bcs)
    if volume_bcs is not None:
        contributed = (
            volume_external_residual(element, request_jacobian, f, jac, volume_bcs)
            or contributed
        )
    return ExternalResidual(f, jac, contributed)
