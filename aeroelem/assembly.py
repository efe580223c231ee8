"""要素ループによる全体残差・接線アセンブリ（逐次）.

各要素について構造要素を構築し、状態ベクトルを設定したうえで
慣性項・外力項（辺/面・体積）を計算し、全体ベクトルと COO→CSR 行列に加算する。

全体 DOF 番号: 6 * node_id + c（節点ごとに 6 成分）

要素同士は可変状態を共有しないため並列化は可能だが、全体配列への加算の
同期は呼び出し側の責務。ここでは逐次実行のみ提供する。
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np
import scipy.sparse as sp

from aeroelem.core.boundary import BoundaryConditionMap
from aeroelem.core.config import ElementConfig
from aeroelem.core.field import ScalarKind
from aeroelem.core.results import GlobalAssemblyResult
from aeroelem.elements.factory import build_structural_element
from aeroelem.mesh import ElementGeometry

PostAssembly = Callable[[np.ndarray, "sp.csr_matrix | None", "sp.csr_matrix | None"], None]


def _global_ndof(elements: Sequence[ElementGeometry]) -> int:
    n_nodes = max(int(e.node_ids.max()) for e in elements) + 1
    return 6 * n_nodes


def assemble_residual_and_jacobian(
    elements: Sequence[ElementGeometry],
    property_card: Any,
    *,
    solution: np.ndarray | None = None,
    velocity: np.ndarray | None = None,
    acceleration: np.ndarray | None = None,
    side_bcs: BoundaryConditionMap | None = None,
    volume_bcs: BoundaryConditionMap | None = None,
    request_jacobian: bool = True,
    kind: ScalarKind = ScalarKind.REAL,
    config: ElementConfig | None = None,
    post_assembly: PostAssembly | None = None,
    show_progress: bool = False,
) -> GlobalAssemblyResult:
    """全体残差ベクトルと接線行列を組み立てる.

    Args:
        elements: 要素の幾何情報のリスト
        property_card: 全要素共通のプロパティカード
        solution: (ndof,) 全体変位（None = ゼロ）
        velocity: (ndof,) 全体速度（None = ゼロ）
        acceleration: (ndof,) 全体加速度（None = ゼロ）
        side_bcs: 境界 ID → 境界条件
        volume_bcs: サブドメイン ID → 境界条件
        request_jacobian: 接線を計算するか
        kind: 計算のスカラー型
        config: 要素の計算設定
        post_assembly: アセンブリ後に (R, J_xddot, J) を受け取る関数
        show_progress: 進捗表示の有無

    Returns:
        GlobalAssemblyResult: (R, J_xddot, J)
    """
    if not elements:
        raise ValueError("要素が空です。")
    ndof_total = _global_ndof(elements)
    dtype = kind.dtype

    R = np.zeros(ndof_total, dtype=dtype)
    rows: list[np.ndarray] = []
    cols: list[np.ndarray] = []
    data_xddot: list[np.ndarray] = []
    data_jac: list[np.ndarray] = []

    t0 = time.time()
    for elem in elements:
        element = build_structural_element(elem, property_card, kind=kind, config=config)
        edofs = element.dof_indices()
        if solution is not None:
            element.set_solution(np.asarray(solution)[edofs])
        if velocity is not None:
            element.set_velocity(np.asarray(velocity)[edofs])
        if acceleration is not None:
            element.set_acceleration(np.asarray(acceleration)[edofs])

        n2 = element.n_dofs
        f = np.zeros(n2, dtype=dtype)
        jac_xddot = np.zeros((n2, n2), dtype=dtype)
        jac_xdot = np.zeros((n2, n2), dtype=dtype)
        jac = np.zeros((n2, n2), dtype=dtype)

        element.inertial_residual(request_jacobian, f, jac_xddot, jac_xdot, jac)
        if side_bcs is not None:
            element.side_external_residual(request_jacobian, f, jac, side_bcs)
        if volume_bcs is not None:
            element.volume_external_residual(request_jacobian, f, jac, volume_bcs)

        np.add.at(R, edofs, f)
        if request_jacobian:
            rows.append(np.repeat(edofs, n2))
            cols.append(np.tile(edofs, n2))
            data_xddot.append(jac_xddot.ravel())
            data_jac.append(jac.ravel())

    J_xddot = J = None
    if request_jacobian:
        r = np.concatenate(rows)
        c = np.concatenate(cols)
        shape = (ndof_total, ndof_total)
        J_xddot = sp.csr_matrix((np.concatenate(data_xddot), (r, c)), shape=shape, dtype=dtype)
        J = sp.csr_matrix((np.concatenate(data_jac), (r, c)), shape=shape, dtype=dtype)
        J_xddot.sum_duplicates()
        J.sum_duplicates()

    if show_progress:
        print(f"Assemble R/J: {len(elements)} elements in {time.time() - t0:.2f} sec")

    if post_assembly is not None:
        post_assembly(R, J_xddot, J)

    return GlobalAssemblyResult(R=R, J_xddot=J_xddot, J=J)
