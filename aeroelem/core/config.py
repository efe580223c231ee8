"""要素アセンブリの設定."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ElementConfig:
    """構造要素の計算設定.

    Attributes:
        follower_forces: 荷重方向を変形に追従させるか（未実装。接線要求時はエラー）
        time: 場関数を評価する時刻
        n_gauss: 1方向あたりのガウス点数（None = 要素種別ごとの既定値）
    """

    follower_forces: bool = False
    time: float = 0.0
    n_gauss: int | None = None

    def __post_init__(self) -> None:
        if self.n_gauss is not None and not (1 <= self.n_gauss <= 10):
            raise ValueError(f"n_gauss は 1〜10: {self.n_gauss}")
