"""aeroelem.core - 要素・境界条件・プロパティの抽象インタフェースと戻り値型.

Protocol:
  StructuralElementProtocol : 構造要素（状態設定・慣性項・外力項・座標変換）
  PropertyCardProtocol      : プロパティカード（慣性行列・集中質量フラグ）
  FieldFunction             : 場関数 (点, 時刻) → 値
"""

from aeroelem.core.boundary import (
    BoundaryCondition,
    BoundaryConditionMap,
    BoundaryConditionType,
)
from aeroelem.core.config import ElementConfig
from aeroelem.core.element import StructuralElementProtocol
from aeroelem.core.errors import AeroelemError, ContractViolation, UnsupportedFeatureError
from aeroelem.core.field import ConstantField, FieldFunction, FunctionField, ScalarKind
from aeroelem.core.property import PropertyCardProtocol, UniformPropertyCard
from aeroelem.core.results import ExternalResidual, GlobalAssemblyResult, InertialResidual

__all__ = [
    "AeroelemError",
    "BoundaryCondition",
    "BoundaryConditionMap",
    "BoundaryConditionType",
    "ConstantField",
    "ContractViolation",
    "ElementConfig",
    "ExternalResidual",
    "FieldFunction",
    "FunctionField",
    "GlobalAssemblyResult",
    "InertialResidual",
    "PropertyCardProtocol",
    "ScalarKind",
    "StructuralElementProtocol",
    "UniformPropertyCard",
    "UnsupportedFeatureError",
]
