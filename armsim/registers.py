"""Register file of the simulated AArch64 core.

Integer registers R0-R30 are 64 bits wide and can be viewed as X (64-bit)
or W (32-bit) registers. Floating-point registers V0-V31 are held as 64-bit
patterns and can be viewed as D (double) or S (single) registers. The
stack pointer is kept apart from the general-purpose bank.
"""

from __future__ import annotations

from .bits import (
    double_as_uint64,
    float_as_uint64_low,
    uint64_as_double,
    uint64_low_as_float,
)

INTEGER_REGISTER_COUNT = 31
FP_REGISTER_COUNT = 32

_UINT32_MASK = 0xFFFFFFFF
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF


def _check_index(n: int, count: int, bank: str) -> int:
    if not 0 <= n < count:
        raise IndexError(f"{bank} register index {n} out of range 0..{count - 1}")
    return n


class RegisterFile:
    """Integer and floating-point register banks plus the stack pointer."""

    def __init__(self) -> None:
        self.x: list[int] = [0] * INTEGER_REGISTER_COUNT
        self.v: list[int] = [0] * FP_REGISTER_COUNT
        self.sp: int = 0
        self.zr: int = 0

    def read_w(self, n: int) -> int:
        """Return the low 32 bits of integer register ``n``."""
        return self.x[_check_index(n, INTEGER_REGISTER_COUNT, "integer")] & _UINT32_MASK

    def write_w(self, n: int, value: int) -> None:
        """Write a 32-bit value to register ``n``, clearing its upper 32 bits."""
        self.x[_check_index(n, INTEGER_REGISTER_COUNT, "integer")] = value & _UINT32_MASK

    def read_x(self, n: int) -> int:
        """Return the full 64-bit contents of integer register ``n``."""
        return self.x[_check_index(n, INTEGER_REGISTER_COUNT, "integer")]

    def write_x(self, n: int, value: int) -> None:
        """Write a 64-bit value to integer register ``n``."""
        self.x[_check_index(n, INTEGER_REGISTER_COUNT, "integer")] = value & _UINT64_MASK

    def read_s(self, n: int) -> float:
        """Return floating-point register ``n`` read as a single-precision value."""
        return uint64_low_as_float(self.v[_check_index(n, FP_REGISTER_COUNT, "floating-point")])

    def read_s_bits(self, n: int) -> int:
        """Return the low 32 bits of floating-point register ``n`` unconverted."""
        return self.v[_check_index(n, FP_REGISTER_COUNT, "floating-point")] & _UINT32_MASK

    def write_s(self, n: int, value: float) -> None:
        """Store ``value`` as single precision in register ``n``, upper bits zero."""
        self.v[_check_index(n, FP_REGISTER_COUNT, "floating-point")] = float_as_uint64_low(value)

    def read_d(self, n: int) -> float:
        """Return floating-point register ``n`` read as a double-precision value."""
        return uint64_as_double(self.v[_check_index(n, FP_REGISTER_COUNT, "floating-point")])

    def write_d(self, n: int, value: float) -> None:
        """Store ``value`` as double precision in floating-point register ``n``."""
        self.v[_check_index(n, FP_REGISTER_COUNT, "floating-point")] = double_as_uint64(value)