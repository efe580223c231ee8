"""境界条件オブジェクトと境界 ID マップ.

境界条件は種別タグ（BoundaryConditionType）と名前付きの場関数の集合。
場関数は (名前, ScalarKind) で登録・取得する:

  SURFACE_PRESSURE          "pressure" (REAL)
  SMALL_DISTURBANCE_MOTION  "pressure" (REAL), "dpressure" (kind), "dnormal" (kind, 3成分)
  TEMPERATURE               "temperature" (REAL), "ref_temperature" (REAL)
  DIRICHLET                 残差への寄与なし（拘束処理は外部）

BoundaryConditionMap は境界 ID（またはサブドメイン ID）→ 境界条件 の
多値マップ。アセンブリ中は読み取り専用。
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any

from aeroelem.core.errors import ContractViolation
from aeroelem.core.field import FieldFunction, ScalarKind, as_field


class BoundaryConditionType(Enum):
    """境界条件の種別タグ."""

    SURFACE_PRESSURE = "surface_pressure"
    SMALL_DISTURBANCE_MOTION = "small_disturbance_motion"
    TEMPERATURE = "temperature"
    DIRICHLET = "dirichlet"
    POINT_LOAD = "point_load"


class BoundaryCondition:
    """名前付き場関数を保持する境界条件.

    Args:
        bc_type: 境界条件の種別
        name: 表示用の名前

    Example::

        bc = BoundaryCondition(BoundaryConditionType.SURFACE_PRESSURE)
        bc.add("pressure", 2.0e3)
        p = bc.get("pressure")(point, 0.0)
    """

    def __init__(self, bc_type: BoundaryConditionType, name: str = "") -> None:
        if not isinstance(bc_type, BoundaryConditionType):
            raise ContractViolation(f"境界条件種別が不正です: {bc_type!r}")
        self._type = bc_type
        self.name = name
        self._fields: dict[tuple[str, ScalarKind], FieldFunction] = {}

    def type(self) -> BoundaryConditionType:
        """境界条件の種別を返す."""
        return self._type

    def add(
        self,
        name: str,
        field: Any,
        kind: ScalarKind = ScalarKind.REAL,
    ) -> BoundaryCondition:
        """場関数を登録する.

        Args:
            name: 場の名前
            field: 場関数、または一様値
            kind: 場の値のスカラー型

        Returns:
            self（連鎖呼び出し用）
        """
        key = (name, kind)
        if key in self._fields:
            raise ContractViolation(f"場 '{name}' ({kind.value}) は登録済みです。")
        if not callable(field) and not kind.accepts(field):
            raise ContractViolation(
                f"場 '{name}' に複素数値が指定されましたが kind={kind.value} です。"
            )
        self._fields[key] = as_field(field)
        return self

    def contains(self, name: str, kind: ScalarKind = ScalarKind.REAL) -> bool:
        return (name, kind) in self._fields

    def get(self, name: str, kind: ScalarKind = ScalarKind.REAL) -> FieldFunction:
        """場関数を取得する.

        Raises:
            ContractViolation: 場が未登録、またはスカラー型が一致しない場合
        """
        try:
            return self._fields[(name, kind)]
        except KeyError:
            registered = sorted(k.value for (n, k) in self._fields if n == name)
            if registered:
                raise ContractViolation(
                    f"場 '{name}' は {registered} として登録されていますが "
                    f"{kind.value} が要求されました。"
                ) from None
            raise ContractViolation(
                f"境界条件 {self._type.value} に場 '{name}' がありません。"
            ) from None

    def __repr__(self) -> str:
        names = ", ".join(f"{n}:{k.value}" for n, k in self._fields)
        return f"BoundaryCondition({self._type.value}, [{names}])"


class BoundaryConditionMap:
    """境界 ID → 境界条件 の多値マップ.

    同一 ID に複数の境界条件を登録できる。登録順は保持される。
    """

    def __init__(
        self,
        items: Iterable[tuple[int, BoundaryCondition]] | None = None,
    ) -> None:
        self._map: dict[int, list[BoundaryCondition]] = {}
        if items is not None:
            for bid, bc in items:
                self.add(bid, bc)

    def add(self, boundary_id: int, bc: BoundaryCondition) -> None:
        if not isinstance(bc, BoundaryCondition):
            raise ContractViolation(f"BoundaryCondition が必要です: {bc!r}")
        self._map.setdefault(int(boundary_id), []).append(bc)

    def equal_range(self, boundary_id: int) -> tuple[BoundaryCondition, ...]:
        """ID に登録された全境界条件を返す（未登録なら空）."""
        return tuple(self._map.get(int(boundary_id), ()))

    def ids(self) -> list[int]:
        return sorted(self._map)

    def __contains__(self, boundary_id: object) -> bool:
        return boundary_id in self._map

    def __iter__(self) -> Iterator[tuple[int, BoundaryCondition]]:
        for bid, bcs in self._map.items():
            for bc in bcs:
                yield bid, bc

    def __len__(self) -> int:
        return sum(len(v) for v in self._map.values())
