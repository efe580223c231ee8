"""構造要素（1D 梁・2D 平板・3D 固体）と外力の振り分け."""
