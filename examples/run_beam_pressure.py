#!/usr/bin/env python3
"""傾斜梁・平板の外力アセンブリ実行スクリプト.

分割梁に面圧・熱荷重を与えて全体残差を組み立て、合力を解析値と比較する。
平板については周波数領域（複素数）の微小擾乱面圧を組み立てる。

Usage:
    python examples/run_beam_pressure.py           # 全ケース実行
    python examples/run_beam_pressure.py beam      # 梁のみ
    python examples/run_beam_pressure.py panel     # 平板のみ
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np

# プロジェクトルートを PYTHONPATH に追加
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from aeroelem.assembly import assemble_residual_and_jacobian
from aeroelem.core import (
    BoundaryCondition,
    BoundaryConditionMap,
    BoundaryConditionType,
    ScalarKind,
    UniformPropertyCard,
)
from aeroelem.mesh import ElementGeometry


def run_inclined_beam():
    """xy 面内 30° 傾斜の梁: 一様面圧と温度上昇."""
    print("=" * 60)
    print("傾斜梁（EDGE2 × 8, 面圧 + 熱荷重）")
    print("=" * 60)

    L, n_elems = 2.0, 8
    th = np.deg2rad(30.0)
    axis = np.array([np.cos(th), np.sin(th), 0.0])
    e_y = np.array([-np.sin(th), np.cos(th), 0.0])
    xyz = np.outer(np.linspace(0.0, L, n_elems + 1), axis)
    mesh = [
        ElementGeometry(xyz[i : i + 2], dim=1, node_ids=[i, i + 1], subdomain_id=1)
        for i in range(n_elems)
    ]
    card = UniformPropertyCard.beam(
        7850.0, 1.0e-3, 2.0e-7, 3.0e-7, E=2.1e11, alpha=1.2e-5, orientation=e_y
    )

    p, dT = 5.0e3, 40.0
    pressure = BoundaryCondition(BoundaryConditionType.SURFACE_PRESSURE, name="wind")
    pressure.add("pressure", p)
    thermal = BoundaryCondition(BoundaryConditionType.TEMPERATURE, name="heating")
    thermal.add("temperature", 20.0 + dT).add("ref_temperature", 20.0)

    result = assemble_residual_and_jacobian(
        mesh,
        card,
        volume_bcs=BoundaryConditionMap([(1, pressure), (1, thermal)]),
        show_progress=True,
    )
    R = result.R
    resultant = np.array([R[c::6].sum() for c in range(3)])
    print(f"  面圧合力       : {resultant}")
    print(f"  解析値 -pL e_y : {-p * L * e_y}")
    tip_axial = R[6 * n_elems : 6 * n_elems + 3] @ axis
    print(f"  先端節点の軸力 : {tip_axial:.4e} (解析値 {-2.1e11 * 1.0e-3 * 1.2e-5 * dT:.4e})")
    print(f"  質量行列 nnz   : {result.J_xddot.nnz}")


def run_oscillating_panel():
    """QUAD4 平板の微小擾乱面圧（複素振幅）."""
    print("=" * 60)
    print("平板（QUAD4 × 4, 微小擾乱面圧, 複素数）")
    print("=" * 60)

    xs = np.linspace(0.0, 1.0, 3)
    node_id = {(i, j): 3 * j + i for j in range(3) for i in range(3)}
    mesh = []
    for j in range(2):
        for i in range(2):
            corners = [(i, j), (i + 1, j), (i + 1, j + 1), (i, j + 1)]
            mesh.append(
                ElementGeometry(
                    np.array([[xs[a], xs[b], 0.0] for a, b in corners]),
                    dim=2,
                    node_ids=[node_id[c] for c in corners],
                )
            )
    card = UniformPropertyCard.plate(2700.0, 2.0e-3)

    gust = BoundaryCondition(BoundaryConditionType.SMALL_DISTURBANCE_MOTION, name="gust")
    gust.add("pressure", 1.0e3)
    gust.add("dpressure", lambda pt, t: 50.0 * np.exp(1j * np.pi * pt[0]), ScalarKind.COMPLEX)
    gust.add("dnormal", np.array([0.0, 0.0, 1.0e-3j]), ScalarKind.COMPLEX)

    result = assemble_residual_and_jacobian(
        mesh,
        card,
        volume_bcs=BoundaryConditionMap([(0, gust)]),
        kind=ScalarKind.COMPLEX,
        request_jacobian=False,
    )
    fz = result.R[2::6].sum()
    print(f"  z 方向合力（複素振幅）: {fz:.4f}")
    print(f"  振幅 |Fz| = {abs(fz):.4f}, 位相 = {np.degrees(np.angle(fz)):.2f} deg")


CASES = {
    "beam": run_inclined_beam,
    "panel": run_oscillating_panel,
}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    selected = sys.argv[1:] or list(CASES)
    for name in selected:
        CASES[name]()
