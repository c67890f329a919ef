"""OpenLeaf Reader: a small personal PDF library with a two-page reader."""

__version__ = "0.1.0"
