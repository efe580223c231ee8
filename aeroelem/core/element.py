"""構造要素の抽象インタフェース定義.

Protocol 階層:
  StructuralElementProtocol : 状態設定・慣性項・外力項・座標変換

求解ドライバは要素ループの中でこの Protocol のみを使う。
要素メソッドは呼び出し側の配列に加算し、接線の寄与の有無を bool で返す。
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class StructuralElementProtocol(Protocol):
    """構造要素の共通インタフェース.

    Attributes:
        dim: 要素の位相次元（1, 2, 3）
        n_dofs: 要素あたりの総自由度数（= 6 * 形状関数の数）
        time: 場関数を評価する時刻

    適合クラス:
      - StructuralElement1D  (梁)
      - StructuralElement2D  (平板)
      - SolidElement3D       (3D固体)
    """

    dim: int
    time: float

    @property
    def n_dofs(self) -> int: ...

    def set_solution(self, vec: np.ndarray, if_sens: bool = False) -> None:
        """変位（全体座標系）を設定する."""
        ...

    def set_velocity(self, vec: np.ndarray, if_sens: bool = False) -> None:
        """速度（全体座標系）を設定する."""
        ...

    def set_base_solution(self, vec: np.ndarray, if_sens: bool = False) -> None:
        """基準解（全体座標系）を設定する."""
        ...

    def set_acceleration(self, vec: np.ndarray, if_sens: bool = False) -> None:
        """加速度（全体座標系）を設定する."""
        ...

    def inertial_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac_xddot: np.ndarray,
        jac_xdot: np.ndarray,
        jac: np.ndarray,
    ) -> bool:
        """慣性項の残差と接線を加算する."""
        ...

    def side_external_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac: np.ndarray,
        bc_map: Any,
    ) -> bool:
        """辺/面の外力の残差と接線を加算する."""
        ...

    def volume_external_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac: np.ndarray,
        bc_map: Any,
    ) -> bool:
        """体積の外力の残差と接線を加算する."""
        ...

    def transform_vector_to_local(self, global_vec: np.ndarray) -> np.ndarray: ...

    def transform_vector_to_global(self, local_vec: np.ndarray) -> np.ndarray: ...

    def transform_matrix_to_global(self, local_mat: np.ndarray) -> np.ndarray: ...
