"""メソッド戻り値の型定義.

要素レベル・全体レベルの残差/接線を NamedTuple で返す。
要素メソッド本体は呼び出し側の配列に加算し、寄与の有無（bool）を返す。
ここで定義する型はその結果をまとめて返すラッパー用。
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
import scipy.sparse as sp


class InertialResidual(NamedTuple):
    """慣性項の要素残差.

    Attributes:
        f: (6n,) 慣性力ベクトル（全体座標系）
        jac_xddot: (6n, 6n) 加速度に関する接線（質量行列）
        jac_xdot: (6n, 6n) 速度に関する接線
        jac: (6n, 6n) 変位に関する接線
        contributed_jacobian: 接線の寄与があったか
    """

    f: np.ndarray
    jac_xddot: np.ndarray
    jac_xdot: np.ndarray
    jac: np.ndarray
    contributed_jacobian: bool


class ExternalResidual(NamedTuple):
    """外力項の要素残差.

    Attributes:
        f: (6n,) 外力残差（全体座標系）
        jac: (6n, 6n) 変位に関する接線
        contributed_jacobian: 接線の寄与があったか
    """

    f: np.ndarray
    jac: np.ndarray
    contributed_jacobian: bool


class GlobalAssemblyResult(NamedTuple):
    """全体アセンブリの結果.

    Attributes:
        R: (ndof,) 全体残差ベクトル
        J_xddot: 全体質量行列 (CSR)。接線を計算しない場合は None。
        J: 変位に関する全体接線 (CSR)。接線を計算しない場合は None。
    """

    R: np.ndarray
    J_xddot: sp.csr_matrix | None
    J: sp.csr_matrix | None
