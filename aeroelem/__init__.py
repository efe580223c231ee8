"""aeroelem - 構造要素の残差・接線アセンブリ（実数/複素数、空力弾性の微小擾乱荷重対応）."""

__version__ = "0.1.0"
