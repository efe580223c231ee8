"""ブロック補間演算子（B 行列）.

積分点での w 成分の物理量と、成分ブロック順に並んだ w·n 自由度ベクトルを
結ぶ演算子:

  B = blockdiag(φᵀ, φᵀ, ..., φᵀ)   (w × w·n)
  B[c, c*n + i] = φ_i

弱形式のテスト関数による縮約 ∫ Bᵀ (…) dV はすべて以下の 3 つの基本演算で
表される。B は密行列として組み立てず、形状関数ベクトル φ に対して直接計算する。

  left_multiply(M)             M @ B     (m×w → m×w·n)
  right_multiply_transpose(M)  Bᵀ @ M    (w×k → w·n×k)
  vector_mult_transpose(v)     Bᵀ @ v    (w → w·n)
"""

from __future__ import annotations

import numpy as np

from aeroelem.core.errors import ContractViolation


class BlockOperator:
    """形状関数値から構築するブロック補間演算子.

    Args:
        n_rows: 物理量の成分数 w（力ベクトルなら 6、慣性なら変数数）
        phi: (n,) 積分点での形状関数値
    """

    def __init__(self, n_rows: int, phi: np.ndarray) -> None:
        phi = np.asarray(phi, dtype=float)
        if phi.ndim != 1 or phi.size == 0:
            raise ContractViolation(f"phi は空でない1次元配列が必要。実際: {phi.shape}")
        if n_rows < 1:
            raise ContractViolation(f"n_rows は1以上: {n_rows}")
        self.n_rows = int(n_rows)
        self.phi = phi

    @property
    def n_phi(self) -> int:
        return self.phi.size

    @property
    def n_cols(self) -> int:
        return self.n_rows * self.phi.size

    @property
    def shape(self) -> tuple[int, int]:
        return self.n_rows, self.n_cols

    def vector_mult(self, x: np.ndarray) -> np.ndarray:
        """B @ x: 自由度ベクトルを積分点の物理量に補間する."""
        x = np.asarray(x)
        if x.shape != (self.n_cols,):
            raise ContractViolation(f"x は ({self.n_cols},) が必要。実際: {x.shape}")
        return x.reshape(self.n_rows, self.n_phi) @ self.phi

    def vector_mult_transpose(self, v: np.ndarray) -> np.ndarray:
        """Bᵀ @ v: 物理量を自由度ベクトルに分配する."""
        v = np.asarray(v)
        if v.shape != (self.n_rows,):
            raise ContractViolation(f"v は ({self.n_rows},) が必要。実際: {v.shape}")
        return np.outer(v, self.phi).ravel()

    def left_multiply(self, mat: np.ndarray) -> np.ndarray:
        """M @ B: (m, w) → (m, w·n)."""
        mat = np.asarray(mat)
        if mat.ndim != 2 or mat.shape[1] != self.n_rows:
            raise ContractViolation(f"M は (m, {self.n_rows}) が必要。実際: {mat.shape}")
        m = mat.shape[0]
        return (mat[:, :, None] * self.phi[None, None, :]).reshape(m, self.n_cols)

    def right_multiply_transpose(self, mat: np.ndarray) -> np.ndarray:
        """Bᵀ @ M: (w, k) → (w·n, k)."""
        mat = np.asarray(mat)
        if mat.ndim != 2 or mat.shape[0] != self.n_rows:
            raise ContractViolation(f"M は ({self.n_rows}, k) が必要。実際: {mat.shape}")
        k = mat.shape[1]
        return (mat[:, None, :] * self.phi[None, :, None]).reshape(self.n_cols, k)

    def to_dense(self) -> np.ndarray:
        """検証用に B を密行列として返す."""
        return np.kron(np.eye(self.n_rows), self.phi[None, :])

    def __repr__(self) -> str:
        return f"BlockOperator(n_rows={self.n_rows}, n_phi={self.n_phi})"
