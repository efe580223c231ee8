"""例外型の定義.

要素アセンブリで発生するエラーはすべて呼び出し側の契約違反として扱い、
パッケージ内部では捕捉しない。

  AeroelemError            : ルート
  ContractViolation        : 次元不正・サイズ不一致・型不一致など（常にバグ）
  UnsupportedFeatureError  : 未実装の境界条件種別・フォロワー荷重の接線など
"""

from __future__ import annotations


class AeroelemError(Exception):
    """aeroelem の全例外の基底クラス."""


class ContractViolation(AeroelemError, ValueError):
    """呼び出し側の契約違反（回復不能）."""


class UnsupportedFeatureError(ContractViolation, NotImplementedError):
    """未実装機能の要求（回復不能）."""
