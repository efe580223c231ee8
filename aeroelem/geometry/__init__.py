"""要素局所座標系."""
