"""Reinterpret floating-point values as raw register bits and back.

The values keep their binary encoding. Only the view changes, as in a
register file that stores every value as a 64-bit unsigned integer.
"""

from __future__ import annotations

import struct

_LOW32_MASK = 0xFFFFFFFF
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF

_FLOAT32 = struct.Struct("<f")
_UINT32 = struct.Struct("<I")
_FLOAT64 = struct.Struct("<d")
_UINT64 = struct.Struct("<Q")


def float_as_uint64_low(value: float) -> int:
    """Return the IEEE single-precision bits of ``value`` as an unsigned integer.

    The value is first rounded to single precision. The encoding fills the
    low 32 bits and the upper 32 bits are zero.
    """
    (bits,) = _UINT32.unpack(_FLOAT32.pack(value))
    return bits


def uint64_low_as_float(value: int) -> float:
    """Read the low 32 bits of ``value`` as an IEEE single-precision float.

    The upper bits are ignored.
    """
    (result,) = _FLOAT32.unpack(_UINT32.pack(value & _LOW32_MASK))
    return result


def double_as_uint64(value: float) -> int:
    """Return the IEEE double-precision bits of ``value`` as a 64-bit unsigned integer."""
    (bits,) = _UINT64.unpack(_FLOAT64.pack(value))
    return bits


def uint64_as_double(value: int) -> float:
    """Read a 64-bit unsigned integer as an IEEE double-precision float.

    Bits above the 64th are ignored.
    """
    (result,) = _FLOAT64.unpack(_UINT64.pack(value & _UINT64_MASK))
    return result