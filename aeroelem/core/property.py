"""要素プロパティカード.

要素計算がプロパティカードに問い合わせる内容は以下に限られる:
  - inertia_matrix(element)            → 場関数 (点, 時刻) → (6,6) 慣性行列
  - if_diagonal_mass_matrix()          → 集中質量近似を使うか
  - y_vector()                         → 1D 要素の局所 y 軸参照ベクトル
  - thermal_expansion_matrix(element)  → 場関数 (点, 時刻) → 単位温度上昇あたりの熱応力合力

慣性行列の成分順は要素自由度と同じ [u, v, w, θx, θy, θz]。

熱応力合力ベクトルの長さ:
  1D: 1  （軸力 EAα）
  2D: 3  （膜力 Nx, Ny, Nxy）
  3D: 6  （Voigt 表記 σxx, σyy, σzz, τyz, τxz, τxy）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import numpy as np

from aeroelem.core.field import ConstantField, FieldFunction


@runtime_checkable
class PropertyCardProtocol(Protocol):
    """プロパティカードの共通インタフェース."""

    def inertia_matrix(self, element: Any) -> FieldFunction:
        """局所慣性行列 (6,6) を返す場関数."""
        ...

    def if_diagonal_mass_matrix(self) -> bool:
        """集中（対角）質量行列を使う場合 True."""
        ...


@dataclass(frozen=True)
class UniformPropertyCard:
    """要素内で一様なプロパティカード.

    Attributes:
        inertia: (6, 6) 局所慣性行列
        lumped: 集中質量近似を使うか
        orientation: 1D 要素の局所 y 軸参照ベクトル（None = 自動選択）
        thermal_stress: 単位温度上昇あたりの熱応力合力（None = 熱荷重なし）
    """

    inertia: np.ndarray
    lumped: bool = False
    orientation: np.ndarray | None = None
    thermal_stress: np.ndarray | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        inertia = np.array(self.inertia, dtype=float)
        if inertia.shape != (6, 6):
            raise ValueError(f"慣性行列は (6,6) が必要。実際: {inertia.shape}")
        inertia.setflags(write=False)
        object.__setattr__(self, "inertia", inertia)
        if self.orientation is not None:
            y_vec = np.array(self.orientation, dtype=float)
            if y_vec.shape != (3,):
                raise ValueError(f"orientation は (3,) が必要。実際: {y_vec.shape}")
            y_vec.setflags(write=False)
            object.__setattr__(self, "orientation", y_vec)
        if self.thermal_stress is not None:
            ts = np.array(self.thermal_stress, dtype=float).ravel()
            if ts.size not in (1, 3, 6):
                raise ValueError(f"thermal_stress の長さは 1, 3, 6 のいずれか。実際: {ts.size}")
            ts.setflags(write=False)
            object.__setattr__(self, "thermal_stress", ts)

    @classmethod
    def beam(
        cls,
        rho: float,
        A: float,
        Iy: float,
        Iz: float,
        *,
        E: float = 0.0,
        alpha: float = 0.0,
        orientation: np.ndarray | None = None,
        lumped: bool = False,
    ) -> UniformPropertyCard:
        """梁断面のプロパティカード.

        慣性: diag(ρA, ρA, ρA, ρ(Iy+Iz), ρIy, ρIz)
        熱: EAα
        """
        if rho <= 0 or A <= 0:
            raise ValueError(f"rho, A は正値: rho={rho}, A={A}")
        inertia = np.diag([rho * A, rho * A, rho * A, rho * (Iy + Iz), rho * Iy, rho * Iz])
        return cls(
            inertia=inertia,
            lumped=lumped,
            orientation=orientation,
            thermal_stress=np.array([E * A * alpha]),
        )

    @classmethod
    def plate(
        cls,
        rho: float,
        h: float,
        *,
        E: float = 0.0,
        nu: float = 0.0,
        alpha: float = 0.0,
        lumped: bool = False,
    ) -> UniformPropertyCard:
        """平板（厚さ h）のプロパティカード.

        慣性: diag(ρh, ρh, ρh, ρh³/12, ρh³/12, 0)
        熱: Ehα/(1-ν) · [1, 1, 0]
        """
        if rho <= 0 or h <= 0:
            raise ValueError(f"rho, h は正値: rho={rho}, h={h}")
        i_rot = rho * h**3 / 12.0
        inertia = np.diag([rho * h, rho * h, rho * h, i_rot, i_rot, 0.0])
        n_t = E * h * alpha / (1.0 - nu)
        return cls(inertia=inertia, lumped=lumped, thermal_stress=np.array([n_t, n_t, 0.0]))

    @classmethod
    def solid(
        cls,
        rho: float,
        *,
        E: float = 0.0,
        nu: float = 0.0,
        alpha: float = 0.0,
        lumped: bool = False,
    ) -> UniformPropertyCard:
        """3D 固体のプロパティカード.

        慣性: diag(ρ, ρ, ρ, 0, 0, 0)
        熱: Eα/(1-2ν) · [1, 1, 1, 0, 0, 0]
        """
        if rho <= 0:
            raise ValueError(f"rho は正値: {rho}")
        inertia = np.diag([rho, rho, rho, 0.0, 0.0, 0.0])
        s_t = E * alpha / (1.0 - 2.0 * nu)
        return cls(
            inertia=inertia,
            lumped=lumped,
            thermal_stress=np.array([s_t, s_t, s_t, 0.0, 0.0, 0.0]),
        )

    def inertia_matrix(self, element: Any) -> FieldFunction:
        return ConstantField(self.inertia)

    def if_diagonal_mass_matrix(self) -> bool:
        return self.lumped

    def y_vector(self) -> np.ndarray | None:
        return self.orientation

    def thermal_expansion_matrix(self, element: Any) -> FieldFunction:
        if self.thermal_stress is None:
            return ConstantField(np.zeros(_n_thermal_components(element.dim)))
        return ConstantField(self.thermal_stress)


def _n_thermal_components(dim: int) -> int:
    return {1: 1, 2: 3, 3: 6}[dim]
