"""WAD fixed-point arithmetic for the pricing curves.

Every function is stateless and operates on plain Python ints. Python ints never
wrap, so the width limits of the on-chain representation are enforced
explicitly: prices and deltas are u128, running totals are u256. Callers check
results against `U128_MAX` / `U256_MAX` and turn violations into typed errors.

Rounding follows solmate's `FixedPointMathLib`:
- `fmul` / `fdiv` truncate (floor for non-negative operands),
- `rpow` rounds half-up at every squaring step.
"""

from __future__ import annotations

WAD: int = 10**18

U128_MAX: int = (1 << 128) - 1
U256_MAX: int = (1 << 256) - 1


def require_uint(name: str, value: int, *, bits: int = 256) -> None:
    """Raise unless *value* is a non-negative int that fits in *bits* bits."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    if value >> bits:
        raise ValueError(f"{name} must fit in u{bits}: {value}")


def fits_u128(value: int) -> bool:
    return 0 <= value <= U128_MAX


def fits_u256(value: int) -> bool:
    return 0 <= value <= U256_MAX


def fmul(x: int, y: int, base: int = WAD) -> int:
    """``floor(x * y / base)``."""
    if base <= 0:
        raise ValueError("base must be positive")
    return (x * y) // base


def fdiv(x: int, y: int, base: int = WAD) -> int:
    """``floor(x * base / y)``."""
    if y == 0:
        raise ZeroDivisionError("fdiv by zero")
    return (x * base) // y


def rpow(x: int, n: int, base: int = WAD) -> int:
    """``x ** n`` in fixed point with base *base* (round half-up per step).

    Binary exponentiation, step-for-step identical to solmate's `fpow` so the
    exponential curve reproduces on-chain quotes exactly. Raises OverflowError
    when an intermediate product leaves the u256 range.
    """
    if n < 0:
        raise ValueError("exponent must be non-negative")
    if x == 0:
        return base if n == 0 else 0
    half = base // 2
    z = x if n % 2 else base
    n //= 2
    while n:
        xx = x * x + half
        if xx > U256_MAX:
            raise OverflowError("rpow intermediate exceeds u256")
        x = xx // base
        if n % 2:
            zx = z * x + half
            if zx > U256_MAX:
                raise OverflowError("rpow intermediate exceeds u256")
            z = zx // base
        n //= 2
    return z


def arithmetic_series(first: int, step: int, count: int) -> int:
    """Sum of ``first, first + step, ..., first + (count - 1) * step``."""
    if count <= 0:
        return 0
    return count * first + (step * count * (count - 1)) // 2
