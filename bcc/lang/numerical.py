"""Numeric helpers for bcc's arithmetic operators and the divmod built-in. bcc integers are 64-bit signed: anything
leaving that range is an overflow, not a silently promoted Python int.

Failures are reported with plain Python exceptions (OverflowError, ZeroDivisionError, ValueError); the evaluator turns
them into RuntimeFaults carrying the offending expression's span.
"""

import math

INT_MIN = -2 ** 63
INT_MAX = 2 ** 63 - 1

ROUND_MODES = ("down", "up", "nearest")


def check_int(num):
    """Returns num if it fits in a 64-bit signed integer, raises OverflowError otherwise."""
    if not INT_MIN <= num <= INT_MAX:
        raise OverflowError(f"{num} does not fit in a 64-bit integer")
    return num


def truncate_div(dividend, divisor):
    """Integer division rounding toward zero (not toward negative infinity like Python's //)."""
    quotient = abs(dividend) // abs(divisor)
    return quotient if (dividend < 0) == (divisor < 0) else -quotient


def divmod_ints(dividend, divisor, round_mode="down"):
    """Returns (quotient, remainder) of two ints, remainder always being dividend - quotient * divisor.

    - "down": truncating division, so the remainder takes the sign of the dividend
    - "up": (dividend + divisor - 1) / divisor when both operands have the same sign, plain truncating division
            otherwise. Note this isn't rounding toward positive infinity for negative operands: divmod(-7, -2) rounds
            up to 5, divmod(-7, 2) gives -3
    - "nearest": quotient rounded to nearest by way of a float, ties to even
    """
    if divisor == 0:
        raise ZeroDivisionError("division by zero")

    if round_mode == "down":
        quotient = truncate_div(dividend, divisor)
    elif round_mode == "up":
        if (dividend < 0) == (divisor < 0):
            quotient = truncate_div(dividend + divisor - 1, divisor)
        else:
            quotient = truncate_div(dividend, divisor)
    elif round_mode == "nearest":
        quotient = int(round(dividend / divisor))
    else:
        raise ValueError(f"unknown rounding mode '{round_mode}'")

    return check_int(quotient), check_int(dividend - quotient * divisor)


def _round_double(num, round_mode):
    """Rounds float num to a whole float per round_mode. Non-finite floats are returned as-is."""
    if not math.isfinite(num):
        return num
    if round_mode == "down":
        return float(math.floor(num))
    elif round_mode == "up":
        return float(math.ceil(num))
    elif round_mode == "nearest":
        return float(round(num))
    raise ValueError(f"unknown rounding mode '{round_mode}'")


def divmod_doubles(dividend, divisor, round_mode="down"):
    """Returns (quotient, remainder) of two floats. "down" floors, "up" ceils, "nearest" rounds (ties to even)."""
    if divisor == 0.0:
        raise ZeroDivisionError("division by zero")

    quotient = _round_double(dividend / divisor, round_mode)
    return quotient, dividend - quotient * divisor
