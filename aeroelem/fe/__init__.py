"""基底関数・積分点データ・ブロック補間演算子."""
