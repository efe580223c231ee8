"""構造要素のファクトリ."""

from __future__ import annotations

from typing import Any

from aeroelem.core.config import ElementConfig
from aeroelem.core.errors import ContractViolation
from aeroelem.core.field import ScalarKind
from aeroelem.elements.structural import (
    SolidElement3D,
    StructuralElement1D,
    StructuralElement2D,
)
from aeroelem.mesh import ElementGeometry

StructuralElement = StructuralElement1D | StructuralElement2D | SolidElement3D


def build_structural_element(
    elem: ElementGeometry,
    property_card: Any,
    *,
    kind: ScalarKind = ScalarKind.REAL,
    config: ElementConfig | None = None,
) -> StructuralElement:
    """要素の位相次元に応じた構造要素を構築する.

    Args:
        elem: 要素の幾何情報
        property_card: プロパティカード
        kind: 計算のスカラー型
        config: 計算設定

    Raises:
        ContractViolation: dim が 1, 2, 3 以外
    """
    if elem.dim == 1:
        return StructuralElement1D(elem, property_card, kind=kind, config=config)
    if elem.dim == 2:
        return StructuralElement2D(elem, property_card, kind=kind, config=config)
    if elem.dim == 3:
        return SolidElement3D(elem, property_card, kind=kind, config=config)
    raise ContractViolation(f"未対応の要素次元です: dim={elem.dim}")
