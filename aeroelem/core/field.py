"""スカラー型と場関数（FieldFunction）の定義.

要素計算は実数（静的・過渡解析）と複素数（周波数領域・微小擾乱空力連成）
の両方に対応する。スカラー型は ScalarKind で表し、要素・境界条件の
場関数の取得はどちらも (名前, ScalarKind) をキーとする。

場関数は (点, 時刻) → 値 の純粋関数。
  点: (3,) 全体座標系の物理座標
  値: スカラー / (3,) ベクトル / (6,6) 行列 など
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import numpy as np


class ScalarKind(Enum):
    """要素計算のスカラー型."""

    REAL = "real"
    COMPLEX = "complex"

    @property
    def dtype(self) -> np.dtype:
        """対応する numpy dtype."""
        if self is ScalarKind.COMPLEX:
            return np.dtype(np.complex128)
        return np.dtype(np.float64)

    def accepts(self, value: Any) -> bool:
        """値がこのスカラー型で表現可能かを返す."""
        if self is ScalarKind.COMPLEX:
            return True
        return not np.iscomplexobj(value)


@runtime_checkable
class FieldFunction(Protocol):
    """場関数の共通インタフェース."""

    def __call__(self, point: np.ndarray, time: float) -> Any:
        """点 point、時刻 time での値を返す."""
        ...


class ConstantField:
    """空間・時間に一様な場.

    Args:
        value: 場の値（スカラー、ベクトル、行列のいずれか）
    """

    def __init__(self, value: Any) -> None:
        if np.ndim(value) == 0:
            self._value = value
        else:
            self._value = np.array(value)
            self._value.setflags(write=False)

    @property
    def value(self) -> Any:
        return self._value

    def __call__(self, point: np.ndarray, time: float) -> Any:
        return self._value

    def __repr__(self) -> str:
        return f"ConstantField({self._value!r})"


class FunctionField:
    """Python 関数をラップした場.

    Args:
        func: (point, time) → value の関数
        name: 表示用の名前
    """

    def __init__(self, func: Callable[[np.ndarray, float], Any], name: str = "") -> None:
        self._func = func
        self.name = name or getattr(func, "__name__", "field")

    def __call__(self, point: np.ndarray, time: float) -> Any:
        return self._func(point, time)

    def __repr__(self) -> str:
        return f"FunctionField({self.name})"


def as_field(value: Any) -> FieldFunction:
    """値または呼び出し可能オブジェクトを場関数に変換する."""
    if isinstance(value, (ConstantField, FunctionField)):
        return value
    if callable(value):
        return FunctionField(value)
    return ConstantField(value)
