"""構造要素（1D 梁・2D 平板・3D 固体）の要素残差・接線計算.

自由度: 各節点 6 成分 [u, v, w, θx, θy, θz]、成分ブロック順
  要素 DOF index = c * n + i  （成分 c, 節点 i, n = 形状関数の数）

状態ベクトル（変位・速度・基準解・加速度）は全体座標系で受け取り、
set_* の時点で局所座標系のコピーを作る。局所コピーは常に最後の set_* と一致する。

座標変換（1D/2D のみ。3D 固体は恒等）:
  E = kron(I₂, kron(T, Iₙ))   並進・回転の両ブロックに T を埋め込む
  v_local  = Eᵀ v_global
  v_global = E  v_local
  M_global = E M_local Eᵀ

要素メソッドは呼び出し側の配列 f, jac に加算し（上書きしない）、
接線の寄与があったかを bool で返す。

スカラー型:
  ScalarKind.REAL    静的・過渡解析
  ScalarKind.COMPLEX 周波数領域・微小擾乱空力連成
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import scipy.sparse as sp

from aeroelem.core.boundary import BoundaryCondition, BoundaryConditionMap
from aeroelem.core.config import ElementConfig
from aeroelem.core.errors import ContractViolation
from aeroelem.core.field import ScalarKind
from aeroelem.core.results import InertialResidual
from aeroelem.elements import dispatch, loads
from aeroelem.fe.basis import QuadratureData, basis_for, element_quadrature, side_quadrature
from aeroelem.fe.operator import BlockOperator
from aeroelem.geometry.local_frame import (
    Local1DFrame,
    Local2DFrame,
    Local3DFrame,
    LocalFrameVariant,
)
from aeroelem.mesh import ElementGeometry

logger = logging.getLogger(__name__)

# 節点あたりの変数数（並進3 + 回転3）
N_VARS = 6


def accumulate(target: np.ndarray, value: np.ndarray) -> None:
    """target に value を加算する（形状・スカラー型を検査）."""
    if target.shape != value.shape:
        raise ContractViolation(f"加算先の形状が不一致: {target.shape} != {value.shape}")
    if np.iscomplexobj(value) and not np.iscomplexobj(target):
        raise ContractViolation("複素数の寄与を実数配列に加算することはできません。")
    target += value


class StructuralElementBase:
    """構造要素の共通部分.

    Args:
        elem: 要素の幾何情報
        property_card: プロパティカード（PropertyCardProtocol 適合）
        kind: 計算のスカラー型
        config: 計算設定（None = 既定値）

    Attributes:
        time: 場関数を評価する時刻
        follower_forces: フォロワー荷重の有無（True で接線を要求するとエラー）
    """

    dim: int

    def __init__(
        self,
        elem: ElementGeometry,
        property_card: Any,
        *,
        kind: ScalarKind = ScalarKind.REAL,
        config: ElementConfig | None = None,
    ) -> None:
        if elem.dim != self.dim:
            raise ContractViolation(
                f"{type(self).__name__} は dim={self.dim} の要素用です。実際: dim={elem.dim}"
            )
        config = config or ElementConfig()
        self.elem = elem
        self.property = property_card
        self.kind = kind
        self.time = config.time
        self.follower_forces = config.follower_forces
        self._n_gauss = config.n_gauss

        self._local_elem = self._build_local_frame()
        self._basis = basis_for(elem.elem_type)
        self._qdata = element_quadrature(self._basis, self._local_elem.local_nodes, self._n_gauss)
        self._transform: sp.csr_matrix | None = None

        n2 = self.n_dofs
        dtype = kind.dtype
        self._sol = np.zeros(n2, dtype=dtype)
        self._vel = np.zeros(n2, dtype=dtype)
        self._base_sol = np.zeros(n2, dtype=dtype)
        self._accel = np.zeros(n2, dtype=dtype)
        self._local_sol = np.zeros(n2, dtype=dtype)
        self._local_vel = np.zeros(n2, dtype=dtype)
        self._local_base_sol = np.zeros(n2, dtype=dtype)
        self._local_accel = np.zeros(n2, dtype=dtype)

    def _build_local_frame(self) -> LocalFrameVariant:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # 基本情報
    # ------------------------------------------------------------------

    @property
    def dtype(self) -> np.dtype:
        return self.kind.dtype

    @property
    def local_elem(self) -> LocalFrameVariant:
        """局所座標系."""
        return self._local_elem

    @property
    def quadrature(self) -> QuadratureData:
        """要素内積分の積分点データ（要素座標系）."""
        return self._qdata

    @property
    def n_shape_functions(self) -> int:
        return self._qdata.n_shape_functions

    @property
    def n_dofs(self) -> int:
        return N_VARS * self._basis.n_nodes

    def side_quadrature(self, side: int) -> QuadratureData:
        """辺/面 side の積分点データ（要素座標系）."""
        return side_quadrature(self._basis, self._local_elem.local_nodes, side, self._n_gauss)

    def dof_indices(self) -> np.ndarray:
        return self.elem.dof_indices()

    # ------------------------------------------------------------------
    # 状態ベクトル
    # ------------------------------------------------------------------

    def _set_state(self, vec: np.ndarray, if_sens: bool, name: str) -> None:
        if if_sens:
            raise ContractViolation("感度計算用の状態設定はサポートされていません。")
        vec = self._check_vector(vec)
        if np.iscomplexobj(vec) and self.kind is ScalarKind.REAL:
            raise ContractViolation("実数要素に複素数の状態ベクトルは設定できません。")
        setattr(self, f"_{name}", np.array(vec, dtype=self.dtype))
        setattr(self, f"_local_{name}", self.transform_vector_to_local(vec).astype(self.dtype))

    def set_solution(self, vec: np.ndarray, if_sens: bool = False) -> None:
        """変位（全体座標系）を設定する."""
        self._set_state(vec, if_sens, "sol")

    def set_velocity(self, vec: np.ndarray, if_sens: bool = False) -> None:
        """速度（全体座標系）を設定する."""
        self._set_state(vec, if_sens, "vel")

    def set_base_solution(self, vec: np.ndarray, if_sens: bool = False) -> None:
        """基準解（全体座標系）を設定する."""
        self._set_state(vec, if_sens, "base_sol")

    def set_acceleration(self, vec: np.ndarray, if_sens: bool = False) -> None:
        """加速度（全体座標系）を設定する."""
        self._set_state(vec, if_sens, "accel")

    @property
    def solution(self) -> np.ndarray:
        return self._sol

    @property
    def local_solution(self) -> np.ndarray:
        return self._local_sol

    @property
    def local_velocity(self) -> np.ndarray:
        return self._local_vel

    @property
    def local_base_solution(self) -> np.ndarray:
        return self._local_base_sol

    @property
    def local_acceleration(self) -> np.ndarray:
        return self._local_accel

    # ------------------------------------------------------------------
    # 座標変換
    # ------------------------------------------------------------------

    def transformation_matrix(self) -> sp.csr_matrix:
        """節点ブロック対角の 6 成分回転行列 E (6n, 6n)."""
        if self._transform is None:
            n = self.n_shape_functions
            T = sp.csr_matrix(self._local_elem.T)
            self._transform = sp.kron(sp.identity(2), sp.kron(T, sp.identity(n))).tocsr()
        return self._transform

    def _check_vector(self, vec: np.ndarray) -> np.ndarray:
        vec = np.asarray(vec)
        if vec.shape != (self.n_dofs,):
            raise ContractViolation(f"ベクトルは ({self.n_dofs},) が必要。実際: {vec.shape}")
        return vec

    def _check_matrix(self, mat: np.ndarray) -> np.ndarray:
        mat = np.asarray(mat)
        if mat.shape != (self.n_dofs, self.n_dofs):
            raise ContractViolation(
                f"行列は ({self.n_dofs}, {self.n_dofs}) が必要。実際: {mat.shape}"
            )
        return mat

    def transform_vector_to_local(self, global_vec: np.ndarray) -> np.ndarray:
        """Eᵀ v: 全体座標系 → 局所座標系."""
        global_vec = self._check_vector(global_vec)
        if self._local_elem.is_identity:
            return np.array(global_vec)
        return self.transformation_matrix().T @ global_vec

    def transform_vector_to_global(self, local_vec: np.ndarray) -> np.ndarray:
        """E v: 局所座標系 → 全体座標系."""
        local_vec = self._check_vector(local_vec)
        if self._local_elem.is_identity:
            return np.array(local_vec)
        return self.transformation_matrix() @ local_vec

    def transform_matrix_to_global(self, local_mat: np.ndarray) -> np.ndarray:
        """E M Eᵀ: 局所座標系 → 全体座標系（合同変換）."""
        local_mat = self._check_matrix(local_mat)
        if self._local_elem.is_identity:
            return np.array(local_mat)
        E = self.transformation_matrix()
        return np.asarray(E @ (E @ local_mat).T).T

    def add_local_vector(self, f: np.ndarray, local_f: np.ndarray) -> None:
        """局所座標系のベクトルを全体座標系に変換して f に加算する."""
        accumulate(f, self.transform_vector_to_global(local_f))

    def add_local_matrix(self, jac: np.ndarray, local_jac: np.ndarray) -> None:
        """局所座標系の行列を全体座標系に変換して jac に加算する."""
        accumulate(jac, self.transform_matrix_to_global(local_jac))

    # ------------------------------------------------------------------
    # 慣性項
    # ------------------------------------------------------------------

    def _inertia_at(self, inertia_fn: Any, local_point: np.ndarray) -> np.ndarray:
        p = self._local_elem.global_coordinates_location(local_point)
        mat = np.asarray(inertia_fn(p, self.time))
        if mat.shape != (N_VARS, N_VARS):
            raise ContractViolation(f"慣性行列は (6,6) が必要。実際: {mat.shape}")
        return mat

    def inertial_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac_xddot: np.ndarray,
        jac_xdot: np.ndarray,
        jac: np.ndarray,
    ) -> bool:
        """慣性力 f = M a と質量行列 ∂f/∂a を加算する.

        集中質量（property.if_diagonal_mass_matrix()）:
          第1積分点の慣性行列 × 平均節点体積（ΣJxW / n）を対角に配置
        整合質量:
          f   += Σ JxW · Bᵀ (M B a)
          jac += Σ JxW · Bᵀ M B

        Args:
            request_jacobian: 接線を計算するか
            f: (6n,) 残差ベクトル（加算される）
            jac_xddot: (6n, 6n) 加速度に関する接線（加算される）
            jac_xdot: (6n, 6n) 速度に関する接線（慣性項の寄与なし）
            jac: (6n, 6n) 変位に関する接線（慣性項の寄与なし）

        Returns:
            接線の寄与があったか（= request_jacobian）
        """
        self._check_vector(f)
        for mat in (jac_xddot, jac_xdot, jac):
            self._check_matrix(mat)

        q = self._qdata
        n_phi = q.n_shape_functions
        n2 = N_VARS * n_phi
        local_f = np.zeros(n2, dtype=self.dtype)
        local_jac = np.zeros((n2, n2), dtype=float)
        inertia_fn = self.property.inertia_matrix(self)

        if self.property.if_diagonal_mass_matrix():
            logger.debug("集中質量: n_phi=%d", n_phi)
            # 近似として第1積分点の慣性行列を使う
            material_mat = self._inertia_at(inertia_fn, q.xyz[0])
            vol = q.JxW.sum() / n_phi
            local_jac[np.diag_indices(n2)] = vol * np.repeat(np.diag(material_mat), n_phi)
            local_f = local_jac @ self._local_accel
        else:
            logger.debug("整合質量: n_qp=%d, n_phi=%d", q.n_qp, n_phi)
            for qp in range(q.n_qp):
                material_mat = self._inertia_at(inertia_fn, q.xyz[qp])
                Bmat = BlockOperator(N_VARS, q.phi[:, qp])
                mat1_n1n2 = Bmat.left_multiply(material_mat)
                vec1_n1 = mat1_n1n2 @ self._local_accel
                local_f += q.JxW[qp] * Bmat.vector_mult_transpose(vec1_n1)
                if request_jacobian:
                    local_jac += q.JxW[qp] * Bmat.right_multiply_transpose(mat1_n1n2)

        self.add_local_vector(f, local_f)
        if request_jacobian:
            self.add_local_matrix(jac_xddot, local_jac)
        return request_jacobian

    # ------------------------------------------------------------------
    # 外力項（dispatch / loads に委譲）
    # ------------------------------------------------------------------

    def side_external_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac: np.ndarray,
        bc_map: BoundaryConditionMap,
    ) -> bool:
        """辺/面の境界 ID に登録された外力を加算する."""
        return dispatch.side_external_residual(self, request_jacobian, f, jac, bc_map)

    def volume_external_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac: np.ndarray,
        bc_map: BoundaryConditionMap,
    ) -> bool:
        """サブドメイン ID に登録された外力を加算する."""
        return dispatch.volume_external_residual(self, request_jacobian, f, jac, bc_map)

    def surface_pressure_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac: np.ndarray,
        bc: BoundaryCondition,
        side: int | None = None,
    ) -> bool:
        """面圧残差（side=None は要素自身の面に作用する圧力）."""
        if side is None:
            return loads.face_pressure_residual(self, request_jacobian, f, jac, bc)
        return loads.side_pressure_residual(self, request_jacobian, f, jac, side, bc)

    def small_disturbance_surface_pressure_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac: np.ndarray,
        bc: BoundaryCondition,
        side: int | None = None,
    ) -> bool:
        """微小擾乱面圧残差（side=None は要素自身の面）."""
        if side is None:
            return loads.face_small_disturbance_residual(self, request_jacobian, f, jac, bc)
        return loads.side_small_disturbance_residual(self, request_jacobian, f, jac, side, bc)

    def thermal_residual(
        self,
        request_jacobian: bool,
        f: np.ndarray,
        jac: np.ndarray,
        bc: BoundaryCondition,
    ) -> bool:
        """熱荷重残差."""
        return loads.thermal_residual(self, request_jacobian, f, jac, bc)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.elem.elem_type}, kind={self.kind.value}, "
            f"subdomain={self.elem.subdomain_id})"
        )


class StructuralElement1D(StructuralElementBase):
    """1D 構造要素（梁）.

    局所 y 軸はプロパティカードの y_vector()（なければ自動選択）で決まる。
    """

    dim = 1

    def _build_local_frame(self) -> Local1DFrame:
        y_vector = self.property.y_vector() if hasattr(self.property, "y_vector") else None
        return Local1DFrame(self.elem.nodes, y_vector)

    @property
    def length(self) -> float:
        return self._local_elem.length


class StructuralElement2D(StructuralElementBase):
    """2D 構造要素（平板・シェル）."""

    dim = 2

    def _build_local_frame(self) -> Local2DFrame:
        return Local2DFrame(self.elem.nodes)


class SolidElement3D(StructuralElementBase):
    """3D 固体要素（全体座標系で計算）."""

    dim = 3

    def _build_local_frame(self) -> Local3DFrame:
        return Local3DFrame(self.elem.nodes)


def assemble_inertia(
    element: StructuralElementBase,
    request_jacobian: bool = True,
) -> InertialResidual:
    """慣性項をゼロ初期化した配列に計算して返す."""
    n2 = element.n_dofs
    f = np.zeros(n2, dtype=element.dtype)
    jac_xddot = np.zeros((n2, n2), dtype=element.dtype)
    jac_xdot = np.zeros((n2, n2), dtype=element.dtype)
    jac = np.zeros((n2, n2), dtype=element.dtype)
    contributed = element.inertial_residual(request_jacobian, f, jac_xddot, jac_xdot, jac)
    return InertialResidual(f, jac_xddot, jac_xdot, jac, contributed)
