"""Cycle-level simulator of a five-stage pipelined 8-bit processor with operand forwarding."""

__version__ = "1.0.0"
__all__ = ["__version__"]