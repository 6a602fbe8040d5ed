"""A small AArch64 CPU simulator: bit views, a register file and a five-stage CPU."""

__version__ = "0.1.0"
__all__ = ["bits", "registers", "cpu"]