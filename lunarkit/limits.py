"""Implementation limits and number conversions used by the core."""

from __future__ import annotations

import math
import struct

INT_MAX = 2**31 - 1
INT_MIN = -(2**31)
UCHAR_MAX = 255
DBL_MAX_EXP = 1024

MAX_SIZET = (1 << (8 * struct.calcsize("P"))) - 1 - 2
MAX_INT = INT_MAX - 2

# Maximum depth for nested native calls and syntactical nested non-terminals.
MAXCCALLS = 200
# Maximum number of upvalues in a closure.
MAXUPVAL = UCHAR_MAX
# Maximum stack for a function.
MAXSTACK = 250
# Minimum size for the string table (a power of 2).
MINSTRTABSIZE = 32
# Minimum size for string buffers.
MINBUFFER = 32

_SUPUNSIGNED = float(2**32)


def number_to_int(n: float) -> int:
    """Convert a number to an int by truncation toward zero."""
    if not math.isfinite(n):
        raise ValueError(f"cannot convert {n!r} to an integer")
    result = math.trunc(n)
    if not INT_MIN <= result <= INT_MAX:
        raise OverflowError(f"{n!r} does not fit in an int")
    return result


def number_to_unsigned(n: float) -> int:
    """Convert a number to a 32-bit unsigned value with modulo behaviour."""
    if not math.isfinite(n):
        raise ValueError(f"cannot convert {n!r} to an unsigned integer")
    n = float(n)
    reduced = n - math.floor(n / _SUPUNSIGNED) * _SUPUNSIGNED
    return math.trunc(reduced) % 2**32


def unsigned_to_number(u: int) -> float:
    """Convert a 32-bit unsigned value to a number."""
    if not 0 <= u < 2**32:
        raise ValueError(f"{u!r} is not a 32-bit unsigned value")
    return float(u)


def hash_number(n: float) -> int:
    """Hash a number into an int from its mantissa and exponent.

    Non-finite values convert to the most negative int, as they do on
    common hardware.
    """
    mantissa, exponent = math.frexp(n)
    scaled = mantissa * float(INT_MAX - DBL_MAX_EXP)
    if not math.isfinite(scaled):
        return INT_MIN + exponent
    return math.trunc(scaled) + exponent