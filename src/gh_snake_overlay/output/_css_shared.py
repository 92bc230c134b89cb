"""Shared helpers for stylesheet and markup output."""

import math
from functools import lru_cache


def _to_compact_name(value: int) -> str:
    digits = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
    if value == 0:
        return digits[0]
    out = []
    current = value
    base = len(digits)
    while current >= 0:
        current, remainder = divmod(current, base)
        out.append(digits[remainder])
        current -= 1
        if current < 0:
            break
    return "".join(reversed(out))


def _short_hex(color: str) -> str:
    lower = color.lower()
    if len(lower) == 7 and lower[1] == lower[2] and lower[3] == lower[4] and lower[5] == lower[6]:
        return f"#{lower[1]}{lower[3]}{lower[5]}"
    return lower


def _tl_finite(value: float, default: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return value


@lru_cache(maxsize=8192)
def _tl_num(value: float) -> str:
    value = _tl_finite(value)
    if isinstance(value, int):
        return str(value)
    if abs(value - round(value)) < 1e-9:
        return str(int(round(value)))
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


@lru_cache(maxsize=8192)
def _tl_fixed1(value: float) -> str:
    text = f"{_tl_finite(value):.1f}"
    return "0.0" if text == "-0.0" else text


@lru_cache(maxsize=8192)
def _tl_pct(value: float) -> str:
    """Normalized time as a keyframe selector, rounded to two decimals."""
    scaled = _tl_finite(value) * 100
    text = f"{scaled:.2f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return f"{text}%"
