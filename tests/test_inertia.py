"""構造要素の慣性項と座標変換のテスト.

検証項目:
  - 座標変換の往復 Eᵀ(E v) = v、合同変換の対称性・半正定値性の保存
  - 3D 固体は恒等変換
  - 集中質量: 節点質量の総和 = 体積 × 慣性行列の対角
  - 整合質量: 対称、f = J_xddot @ a、EDGE2 の古典的整合質量行列
  - 傾斜梁の並進慣性力の総和 = ρAL · a
  - 状態ベクトル設定の契約違反（感度・複素数・サイズ）
"""

from __future__ import annotations

import numpy as np
import pytest

from aeroelem.core.config import ElementConfig
from aeroelem.core.errors import ContractViolation
from aeroelem.core.field import ScalarKind
from aeroelem.core.property import UniformPropertyCard
from aeroelem.elements.factory import build_structural_element
from aeroelem.elements.structural import N_VARS, assemble_inertia
from aeroelem.mesh import ElementGeometry

RHO = 7800.0
AREA = 2.0e-3
IY = 1.0e-6
IZ = 2.0e-6

UNIT_CUBE = np.array(
    [
        [0, 0, 0],
        [1, 0, 0],
        [1, 1, 0],
        [0, 1, 0],
        [0, 0, 1],
        [1, 0, 1],
        [1, 1, 1],
        [0, 1, 1],
    ],
    dtype=float,
)


def _inclined_beam(length: float = 2.0, lumped: bool = False, n_nodes: int = 2):
    d = np.array([1.0, 2.0, 2.0]) / 3.0
    ends = np.array([[0.5, -1.0, 0.2], [0.5, -1.0, 0.2] + length * d])
    nodes = ends if n_nodes == 2 else np.vstack([ends, ends.mean(axis=0)])
    card = UniformPropertyCard.beam(
        RHO, AREA, IY, IZ, orientation=np.array([0.0, 0.0, 1.0]), lumped=lumped
    )
    elem = ElementGeometry(nodes=nodes, dim=1)
    return build_structural_element(elem, card), card, d


def _uniform_accel(n_phi: int, a: np.ndarray) -> np.ndarray:
    """全節点に同じ並進加速度 a を与えた全体座標系ベクトル."""
    acc = np.zeros(N_VARS * n_phi)
    for c in range(3):
        acc[c * n_phi : (c + 1) * n_phi] = a[c]
    return acc


def _translational_sum(f: np.ndarray, n_phi: int) -> np.ndarray:
    return f.reshape(N_VARS, n_phi)[:3].sum(axis=1)


class TestTransform:
    """局所↔全体の座標変換."""

    def test_vector_round_trip(self):
        element, _, _ = _inclined_beam()
        v = np.random.default_rng(0).standard_normal(element.n_dofs)
        np.testing.assert_allclose(
            element.transform_vector_to_local(element.transform_vector_to_global(v)),
            v,
            atol=1e-12,
        )
        np.testing.assert_allclose(
            element.transform_vector_to_global(element.transform_vector_to_local(v)),
            v,
            atol=1e-12,
        )

    def test_matrix_symmetry_and_psd(self):
        element, _, _ = _inclined_beam()
        A = np.random.default_rng(1).standard_normal((element.n_dofs, element.n_dofs))
        M = A @ A.T
        G = element.transform_matrix_to_global(M)
        np.testing.assert_allclose(G, G.T, atol=1e-10)
        assert np.linalg.eigvalsh(G).min() > -1e-10
        # 合同変換はスペクトルを保存
        np.testing.assert_allclose(
            np.sort(np.linalg.eigvalsh(G)), np.sort(np.linalg.eigvalsh(M)), rtol=1e-10
        )

    def test_matrix_consistent_with_vector(self):
        """(E M Eᵀ)(E v) = E (M v)."""
        element, _, _ = _inclined_beam()
        rng = np.random.default_rng(2)
        M = rng.standard_normal((element.n_dofs, element.n_dofs))
        v = rng.standard_normal(element.n_dofs)
        lhs = element.transform_matrix_to_global(M) @ element.transform_vector_to_global(v)
        rhs = element.transform_vector_to_global(M @ v)
        np.testing.assert_allclose(lhs, rhs, atol=1e-10)

    def test_solid_identity(self):
        card = UniformPropertyCard.solid(RHO)
        element = build_structural_element(ElementGeometry(UNIT_CUBE, dim=3), card)
        v = np.arange(element.n_dofs, dtype=float)
        np.testing.assert_array_equal(element.transform_vector_to_local(v), v)
        np.testing.assert_array_equal(element.transform_vector_to_global(v), v)
        M = np.outer(v, v)
        np.testing.assert_array_equal(element.transform_matrix_to_global(M), M)

    def test_local_state_copy(self):
        """set_solution 後の局所コピー = Eᵀ v."""
        element, _, _ = _inclined_beam()
        v = np.random.default_rng(3).standard_normal(element.n_dofs)
        element.set_solution(v)
        np.testing.assert_allclose(element.solution, v)
        np.testing.assert_allclose(element.local_solution, element.transform_vector_to_local(v))
        element.set_velocity(2.0 * v)
        np.testing.assert_allclose(element.local_velocity, 2.0 * element.local_solution)


class TestLumpedMass:
    """集中質量."""

    def test_beam_total_mass(self):
        length = 2.0
        element, card, _ = _inclined_beam(length, lumped=True)
        res = assemble_inertia(element)
        assert res.contributed_jacobian
        n = element.n_shape_functions
        diag = np.diag(res.jac_xddot).reshape(N_VARS, n)
        # 並進成分は回転に対して等方なので全体座標系でも対角
        np.testing.assert_allclose(diag[:3].sum(axis=1), RHO * AREA * length, rtol=1e-12)

    def test_beam_uniform_acceleration(self):
        """一様並進加速度 → 並進慣性力の総和 = ρAL · a（傾斜梁、全体座標系）."""
        length = 2.0
        element, _, _ = _inclined_beam(length, lumped=True)
        a = np.array([0.3, -1.2, 9.81])
        element.set_acceleration(_uniform_accel(2, a))
        res = assemble_inertia(element, request_jacobian=False)
        assert not res.contributed_jacobian
        np.testing.assert_allclose(
            _translational_sum(res.f, 2), RHO * AREA * length * a, rtol=1e-10, atol=1e-10
        )
        np.testing.assert_array_equal(res.jac_xddot, 0.0)

    def test_hex_total_mass(self):
        card = UniformPropertyCard.solid(2.0, lumped=True)
        element = build_structural_element(ElementGeometry(UNIT_CUBE * 2.0, dim=3), card)
        res = assemble_inertia(element)
        diag = np.diag(res.jac_xddot).reshape(N_VARS, 8)
        np.testing.assert_allclose(diag[:3].sum(axis=1), 2.0 * 8.0)
        np.testing.assert_allclose(diag[3:], 0.0)
        # 対角行列
        assert np.count_nonzero(res.jac_xddot - np.diag(np.diag(res.jac_xddot))) == 0


class TestConsistentMass:
    """整合質量."""

    def test_symmetric(self):
        element, _, _ = _inclined_beam(n_nodes=3)
        res = assemble_inertia(element)
        np.testing.assert_allclose(res.jac_xddot, res.jac_xddot.T, atol=1e-12)
        assert np.linalg.eigvalsh(res.jac_xddot).min() > -1e-8

    def test_residual_equals_mass_times_accel(self):
        element, _, _ = _inclined_beam()
        a = np.random.default_rng(4).standard_normal(element.n_dofs)
        element.set_acceleration(a)
        res = assemble_inertia(element)
        np.testing.assert_allclose(res.f, res.jac_xddot @ a, rtol=1e-10, atol=1e-12)
        # 慣性項は速度・変位の接線に寄与しない
        np.testing.assert_array_equal(res.jac_xdot, 0.0)
        np.testing.assert_array_equal(res.jac, 0.0)

    def test_edge2_classical_matrix(self):
        """x軸方向 EDGE2: 並進成分 = ρAL/6 [[2,1],[1,2]]."""
        length = 3.0
        card = UniformPropertyCard.beam(RHO, AREA, IY, IZ)
        elem = ElementGeometry(np.array([[0.0, 0, 0], [length, 0, 0]]), dim=1)
        res = assemble_inertia(build_structural_element(elem, card))
        expected = RHO * AREA * length / 6.0 * np.array([[2.0, 1.0], [1.0, 2.0]])
        for c in range(3):
            blk = res.jac_xddot[2 * c : 2 * c + 2, 2 * c : 2 * c + 2]
            np.testing.assert_allclose(blk, expected, rtol=1e-12)
        # 回転成分 θx: ρ(Iy+Iz)
        blk = res.jac_xddot[6:8, 6:8]
        np.testing.assert_allclose(blk, RHO * (IY + IZ) * length / 6.0 * np.array([[2, 1], [1, 2]]))

    def test_total_translational_mass(self):
        """1ᵀ M 1（並進1成分）= 総質量."""
        length = 2.0
        element, _, _ = _inclined_beam(length, n_nodes=3)
        a = np.array([1.0, 0.0, 0.0])
        element.set_acceleration(_uniform_accel(3, a))
        res = assemble_inertia(element)
        np.testing.assert_allclose(
            _translational_sum(res.f, 3), RHO * AREA * length * a, rtol=1e-10, atol=1e-9
        )

    def test_spatially_varying_inertia(self):
        """積分点ごとの位置で慣性を評価: ρ(x) = x の梁の質量 = ∫x dx."""

        class LinearDensityCard:
            def inertia_matrix(self, element):
                return lambda p, t: np.diag([p[0]] * 3 + [0.0] * 3)

            def if_diagonal_mass_matrix(self):
                return False

        elem = ElementGeometry(np.array([[1.0, 0, 0], [3.0, 0, 0]]), dim=1)
        element = build_structural_element(elem, LinearDensityCard())
        element.set_acceleration(_uniform_accel(2, np.array([1.0, 0.0, 0.0])))
        res = assemble_inertia(element)
        # ∫_1^3 x dx = 4
        assert _translational_sum(res.f, 2)[0] == pytest.approx(4.0)

    def test_complex_kind(self):
        element, _, _ = _inclined_beam()
        card = UniformPropertyCard.beam(RHO, AREA, IY, IZ, orientation=np.array([0.0, 0, 1]))
        cplx = build_structural_element(element.elem, card, kind=ScalarKind.COMPLEX)
        a = np.random.default_rng(5).standard_normal(cplx.n_dofs) * (1.0 + 0.5j)
        cplx.set_acceleration(a)
        res = assemble_inertia(cplx)
        assert res.f.dtype == np.complex128
        np.testing.assert_allclose(res.f, res.jac_xddot @ a, rtol=1e-10, atol=1e-12)


class TestStateContracts:
    def test_sensitivity_not_supported(self):
        element, _, _ = _inclined_beam()
        with pytest.raises(ContractViolation):
            element.set_solution(np.zeros(element.n_dofs), if_sens=True)

    def test_complex_into_real(self):
        element, _, _ = _inclined_beam()
        with pytest.raises(ContractViolation):
            element.set_velocity(np.zeros(element.n_dofs, dtype=complex))

    def test_wrong_size(self):
        element, _, _ = _inclined_beam()
        with pytest.raises(ContractViolation):
            element.set_base_solution(np.zeros(element.n_dofs + 1))

    def test_complex_contribution_into_real_target(self):
        element, card, _ = _inclined_beam()
        cplx = build_structural_element(element.elem, card, kind=ScalarKind.COMPLEX)
        n2 = cplx.n_dofs
        with pytest.raises(ContractViolation):
            cplx.inertial_residual(
                True, np.zeros(n2), np.zeros((n2, n2)), np.zeros((n2, n2)), np.zeros((n2, n2))
            )

    def test_time_from_config(self):
        card = UniformPropertyCard.beam(RHO, AREA, IY, IZ)
        elem = ElementGeometry(np.array([[0.0, 0, 0], [1.0, 0, 0]]), dim=1)
        element = build_structural_element(elem, card, config=ElementConfig(time=1.5))
        assert element.time == 1.5
