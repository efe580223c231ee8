"""要素の幾何情報.

メッシュのトポロジ・隣接関係は外部の責務。ここでは要素計算に必要な
節点座標・位相次元・辺/面の境界 ID・サブドメイン ID のみを保持する。

対応要素（次元, 節点数）:
  EDGE2 (1, 2), EDGE3 (1, 3), TRI3 (2, 3), QUAD4 (2, 4), HEX8 (3, 8)
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

ELEMENT_TYPES: dict[tuple[int, int], str] = {
    (1, 2): "EDGE2",
    (1, 3): "EDGE3",
    (2, 3): "TRI3",
    (2, 4): "QUAD4",
    (3, 8): "HEX8",
}

N_SIDES: dict[str, int] = {
    "EDGE2": 2,
    "EDGE3": 2,
    "TRI3": 3,
    "QUAD4": 4,
    "HEX8": 6,
}


@dataclass(frozen=True)
class ElementGeometry:
    """要素の幾何情報.

    Attributes:
        nodes: (n, 3) 全体座標系の節点座標（2D 座標は z=0 で補完）
        dim: 位相次元（1, 2, 3）
        node_ids: (n,) 全体節点番号（全体アセンブリ用。None = 0..n-1）
        subdomain_id: サブドメイン ID
        side_boundary_ids: {辺/面番号: 境界 ID のタプル}
    """

    nodes: np.ndarray
    dim: int
    node_ids: np.ndarray | None = None
    subdomain_id: int = 0
    side_boundary_ids: dict[int, tuple[int, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        nodes = np.array(self.nodes, dtype=float)
        if nodes.ndim != 2 or nodes.shape[1] not in (1, 2, 3):
            raise ValueError(f"nodes は (n, 1..3) が必要。実際: {nodes.shape}")
        if nodes.shape[1] < 3:
            nodes = np.hstack([nodes, np.zeros((nodes.shape[0], 3 - nodes.shape[1]))])
        nodes.setflags(write=False)
        object.__setattr__(self, "nodes", nodes)

        if self.node_ids is None:
            ids = np.arange(nodes.shape[0], dtype=np.int64)
        else:
            ids = np.asarray(self.node_ids, dtype=np.int64)
            if ids.shape != (nodes.shape[0],):
                raise ValueError(f"node_ids は ({nodes.shape[0]},) が必要。実際: {ids.shape}")
        object.__setattr__(self, "node_ids", ids)

        sides = {int(s): tuple(int(b) for b in bids) for s, bids in self.side_boundary_ids.items()}
        object.__setattr__(self, "side_boundary_ids", sides)
        if self.elem_type is not None:
            bad = sorted(s for s in sides if not (0 <= s < self.n_sides))
            if bad:
                raise ValueError(
                    f"{self.elem_type} の辺/面番号は 0〜{self.n_sides - 1}。範囲外: {bad}"
                )

    @property
    def n_nodes(self) -> int:
        return self.nodes.shape[0]

    @property
    def elem_type(self) -> str | None:
        """要素種別名。未対応の組合せなら None."""
        return ELEMENT_TYPES.get((self.dim, self.n_nodes))

    @property
    def n_sides(self) -> int:
        et = self.elem_type
        return N_SIDES[et] if et is not None else 0

    def boundary_ids(self, side: int) -> tuple[int, ...]:
        """辺/面 side に付与された境界 ID."""
        return self.side_boundary_ids.get(side, ())

    def n_boundary_ids(self, side: int) -> int:
        return len(self.boundary_ids(side))

    def dof_indices(self) -> np.ndarray:
        """要素 DOF（成分ブロック順）に対応する全体 DOF インデックス.

        要素内: index = c * n + i（成分 c, 節点 i）
        全体  : 6 * node_id + c（節点ごとに 6 成分）

        Returns:
            edofs: (6n,) 全体 DOF インデックス
        """
        comps = np.arange(6, dtype=np.int64)
        return (6 * self.node_ids[None, :] + comps[:, None]).ravel()
