"""Parity checker for packwerk and packs unresolved-reference caches."""

__version__ = "0.1.0"
