"""Lagrange 形状関数とガウス積分（基底・積分点データの提供）.

要素計算は積分点スナップショット QuadratureData を読み取り専用で使う:
  xyz:     (nq, 3)           積分点の物理座標（要素座標系）
  JxW:     (nq,)             積分重み × 写像ヤコビアン
  phi:     (n_phi, nq)       形状関数値
  dphi:    (n_phi, nq, dim)  形状関数の物理座標微分（要素内積分のみ）
  normals: (nq, 3)           外向き単位法線（辺/面積分のみ）

対応要素:
  EDGE2, EDGE3 : 1D（辺 = 端点）
  TRI3, QUAD4  : 2D（辺 = 線分）
  HEX8         : 3D（面 = 四辺形）

節点順序・辺/面番号は libMesh 互換。
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from aeroelem.core.errors import ContractViolation


@dataclass(frozen=True)
class QuadratureData:
    """積分点スナップショット（不変）."""

    xyz: np.ndarray
    JxW: np.ndarray
    phi: np.ndarray
    dphi: np.ndarray | None = None
    normals: np.ndarray | None = None

    def __post_init__(self) -> None:
        for name in ("xyz", "JxW", "phi", "dphi", "normals"):
            arr = getattr(self, name)
            if arr is None:
                continue
            arr = np.array(arr, dtype=float)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        nq = self.JxW.shape[0]
        if self.xyz.shape != (nq, 3) or self.phi.shape[1] != nq:
            raise ContractViolation(
                f"積分点データの形状が不整合: xyz={self.xyz.shape}, "
                f"JxW={self.JxW.shape}, phi={self.phi.shape}"
            )

    @property
    def n_qp(self) -> int:
        return self.JxW.shape[0]

    @property
    def n_shape_functions(self) -> int:
        return self.phi.shape[0]


# ============================================================
# 形状関数
# ============================================================


def _bilinear(s: float, t: float) -> tuple[np.ndarray, np.ndarray]:
    """4節点四辺形の双一次関数と微分 (4,), (2, 4)."""
    N = 0.25 * np.array([(1 - s) * (1 - t), (1 + s) * (1 - t), (1 + s) * (1 + t), (1 - s) * (1 + t)])
    dN = 0.25 * np.array(
        [
            [-(1 - t), (1 - t), (1 + t), -(1 + t)],
            [-(1 - s), -(1 + s), (1 + s), (1 - s)],
        ]
    )
    return N, dN


def _gauss_line(n: int) -> tuple[np.ndarray, np.ndarray]:
    return np.polynomial.legendre.leggauss(n)


def _gauss_tensor(n: int, dim: int) -> tuple[np.ndarray, np.ndarray]:
    """[-1,1]^dim のテンソル積ガウス則."""
    g, w = _gauss_line(n)
    grids = np.meshgrid(*([g] * dim), indexing="ij")
    wgrids = np.meshgrid(*([w] * dim), indexing="ij")
    points = np.column_stack([a.ravel() for a in grids])
    weights = np.prod(np.column_stack([a.ravel() for a in wgrids]), axis=1)
    return points, weights


class LagrangeBasis:
    """Lagrange 要素の基底の共通部分.

    Attributes:
        name: 要素種別名
        dim: 位相次元
        n_nodes: 節点数
        ref_vertices: (nv, dim) 参照要素の頂点座標
        sides: 各辺/面を構成する頂点番号
        default_n_gauss: 既定のガウス点数（1方向あたり）
    """

    name: str
    dim: int
    n_nodes: int
    ref_vertices: np.ndarray
    sides: tuple[tuple[int, ...], ...]
    default_n_gauss: int = 2

    def shape(self, xi: np.ndarray) -> np.ndarray:
        """参照座標 xi での形状関数値 (n_nodes,)."""
        raise NotImplementedError

    def dshape(self, xi: np.ndarray) -> np.ndarray:
        """参照座標 xi での形状関数微分 (dim, n_nodes)."""
        raise NotImplementedError

    def gauss_rule(self, n: int) -> tuple[np.ndarray, np.ndarray]:
        """参照要素上の積分点 (nq, dim) と重み (nq,)."""
        return _gauss_tensor(n, self.dim)

    @property
    def n_sides(self) -> int:
        return len(self.sides)


class Edge2(LagrangeBasis):
    name = "EDGE2"
    dim = 1
    n_nodes = 2
    ref_vertices = np.array([[-1.0], [1.0]])
    sides = ((0,), (1,))
    default_n_gauss = 2

    def shape(self, xi):
        x = float(xi[0])
        return np.array([0.5 * (1.0 - x), 0.5 * (1.0 + x)])

    def dshape(self, xi):
        return np.array([[-0.5, 0.5]])


class Edge3(LagrangeBasis):
    """3節点 2次線要素（節点2 = 中点）."""

    name = "EDGE3"
    dim = 1
    n_nodes = 3
    ref_vertices = np.array([[-1.0], [1.0]])
    sides = ((0,), (1,))
    default_n_gauss = 3

    def shape(self, xi):
        x = float(xi[0])
        return np.array([0.5 * x * (x - 1.0), 0.5 * x * (x + 1.0), 1.0 - x * x])

    def dshape(self, xi):
        x = float(xi[0])
        return np.array([[x - 0.5, x + 0.5, -2.0 * x]])


class Tri3(LagrangeBasis):
    name = "TRI3"
    dim = 2
    n_nodes = 3
    ref_vertices = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    sides = ((0, 1), (1, 2), (2, 0))
    default_n_gauss = 2

    def shape(self, xi):
        x, y = float(xi[0]), float(xi[1])
        return np.array([1.0 - x - y, x, y])

    def dshape(self, xi):
        return np.array([[-1.0, 1.0, 0.0], [-1.0, 0.0, 1.0]])

    def gauss_rule(self, n):
        if n == 1:
            return np.array([[1.0 / 3.0, 1.0 / 3.0]]), np.array([0.5])
        # 正方形ガウス則を三角形に縮退写像（Duffy 変換）
        sq, w = _gauss_tensor(n, 2)
        u, v = sq[:, 0], sq[:, 1]
        points = np.column_stack([0.25 * (1.0 + u) * (1.0 - v), 0.5 * (1.0 + v)])
        return points, w * (1.0 - v) / 8.0


class Quad4(LagrangeBasis):
    name = "QUAD4"
    dim = 2
    n_nodes = 4
    ref_vertices = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]])
    sides = ((0, 1), (1, 2), (2, 3), (3, 0))
    default_n_gauss = 2

    def shape(self, xi):
        return _bilinear(float(xi[0]), float(xi[1]))[0]

    def dshape(self, xi):
        return _bilinear(float(xi[0]), float(xi[1]))[1]


class Hex8(LagrangeBasis):
    name = "HEX8"
    dim = 3
    n_nodes = 8
    ref_vertices = np.array(
        [
            [-1, -1, -1],
            [1, -1, -1],
            [1, 1, -1],
            [-1, 1, -1],
            [-1, -1, 1],
            [1, -1, 1],
            [1, 1, 1],
            [-1, 1, 1],
        ],
        dtype=float,
    )
    sides = (
        (0, 3, 2, 1),
        (0, 1, 5, 4),
        (1, 2, 6, 5),
        (2, 3, 7, 6),
        (3, 0, 4, 7),
        (4, 5, 6, 7),
    )
    default_n_gauss = 2

    def _factors(self, xi) -> np.ndarray:
        # (8, 3): 1 + ξ_a · ξ_ia
        return 1.0 + self.ref_vertices * np.asarray(xi, dtype=float)[:3]

    def shape(self, xi):
        """三重線形関数 N_i = Π_a (1 + ξ_a ξ_ia) / 8."""
        return 0.125 * self._factors(xi).prod(axis=1)

    def dshape(self, xi):
        f = self._factors(xi)
        dN = np.empty((3, self.n_nodes))
        for a in range(3):
            dN[a] = 0.125 * self.ref_vertices[:, a] * np.delete(f, a, axis=1).prod(axis=1)
        return dN


BASIS_TYPES: dict[str, type[LagrangeBasis]] = {
    cls.name: cls for cls in (Edge2, Edge3, Tri3, Quad4, Hex8)
}


def basis_for(elem_type: str | None) -> LagrangeBasis:
    """要素種別名から基底を返す."""
    try:
        return BASIS_TYPES[elem_type]()
    except KeyError:
        raise ContractViolation(f"未対応の要素種別です: {elem_type}") from None


# ============================================================
# 積分点データ
# ============================================================


def element_quadrature(
    basis: LagrangeBasis,
    nodes: np.ndarray,
    n_gauss: int | None = None,
) -> QuadratureData:
    """要素内積分の積分点データを計算する.

    Args:
        basis: 要素の基底
        nodes: (n, 3) 要素座標系の節点座標（1D/2D は局所座標系）
        n_gauss: 1方向あたりのガウス点数（None = 既定値）

    Returns:
        QuadratureData（normals なし）
    """
    nodes = _check_nodes(basis, nodes)
    dim = basis.dim
    points, weights = basis.gauss_rule(n_gauss or basis.default_n_gauss)

    nq = len(weights)
    xyz = np.empty((nq, 3))
    JxW = np.empty(nq)
    phi = np.empty((basis.n_nodes, nq))
    dphi = np.empty((basis.n_nodes, nq, dim))

    for qp, (xi, w) in enumerate(zip(points, weights, strict=True)):
        N = basis.shape(xi)
        dN = basis.dshape(xi)
        J = dN @ nodes  # (dim, 3)
        if dim == 1:
            measure = float(np.linalg.norm(J[0]))
            dN_dx = dN / measure
        elif dim == 2:
            measure = float(np.linalg.norm(np.cross(J[0], J[1])))
            dN_dx = np.linalg.solve(J[:, :2], dN)
        else:
            measure = float(np.linalg.det(J))
            dN_dx = np.linalg.solve(J, dN)
        if measure <= 0.0:
            raise ContractViolation(f"写像ヤコビアン={measure:.3e} <= 0（退化または反転要素）")
        xyz[qp] = N @ nodes
        JxW[qp] = w * measure
        phi[:, qp] = N
        dphi[:, qp, :] = dN_dx.T

    return QuadratureData(xyz=xyz, JxW=JxW, phi=phi, dphi=dphi)


def side_quadrature(
    basis: LagrangeBasis,
    nodes: np.ndarray,
    side: int,
    n_gauss: int | None = None,
) -> QuadratureData:
    """辺/面積分の積分点データを計算する.

    形状関数は要素全体の n 個（辺/面上で評価）。法線は外向き単位ベクトル。

    Args:
        basis: 要素の基底
        nodes: (n, 3) 要素座標系の節点座標
        side: 辺/面番号
        n_gauss: 1方向あたりのガウス点数（None = 既定値）
    """
    nodes = _check_nodes(basis, nodes)
    if not (0 <= side < basis.n_sides):
        raise ContractViolation(f"{basis.name} の辺/面番号が範囲外です: side={side}")
    n = n_gauss or basis.default_n_gauss
    verts = basis.ref_vertices[list(basis.sides[side])]

    if basis.dim == 1:
        # 端点: 1点、重み 1、法線 = 外向き接線
        xi_list = [verts[0]]
        w_list = [1.0]
        sign = -1.0 if side == 0 else 1.0
    elif basis.dim == 2:
        t, w_list = _gauss_line(n)
        xi_list = [verts[0] + 0.5 * (ti + 1.0) * (verts[1] - verts[0]) for ti in t]
    else:
        st, w_list = _gauss_tensor(n, 2)
        xi_list = [_bilinear(s, t)[0] @ verts for s, t in st]

    nq = len(w_list)
    xyz = np.empty((nq, 3))
    JxW = np.empty(nq)
    phi = np.empty((basis.n_nodes, nq))
    normals = np.empty((nq, 3))
    centroid = nodes.mean(axis=0)

    for qp in range(nq):
        xi = xi_list[qp]
        N = basis.shape(xi)
        dN = basis.dshape(xi)
        J = dN @ nodes
        if basis.dim == 1:
            tangent = J[0] / np.linalg.norm(J[0])
            normal = sign * tangent
            measure = 1.0
        elif basis.dim == 2:
            r_t = (0.5 * (verts[1] - verts[0])) @ J
            surface = np.cross(J[0], J[1])
            normal = np.cross(r_t, surface)
            normal /= np.linalg.norm(normal)
            measure = float(np.linalg.norm(r_t))
        else:
            s, t = st[qp]
            dM = _bilinear(s, t)[1]
            r_s = (dM[0] @ verts) @ J
            r_t = (dM[1] @ verts) @ J
            normal = np.cross(r_s, r_t)
            measure = float(np.linalg.norm(normal))
            normal /= measure
            if normal @ (N @ nodes - centroid) < 0.0:
                normal = -normal
        xyz[qp] = N @ nodes
        JxW[qp] = w_list[qp] * measure
        phi[:, qp] = N
        normals[qp] = normal

    return QuadratureData(xyz=xyz, JxW=JxW, phi=phi, normals=normals)


def _check_nodes(basis: LagrangeBasis, nodes: np.ndarray) -> np.ndarray:
    nodes = np.asarray(nodes, dtype=float)
    if nodes.shape != (basis.n_nodes, 3):
        raise ContractViolation(
            f"{basis.name} の節点座標は ({basis.n_nodes}, 3) が必要。実際: {nodes.shape}"
        )
    return nodes
