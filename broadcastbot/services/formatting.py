import math
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any

# Above this magnitude numbers print in exponent form instead of fixed-point
EXPONENT_THRESHOLD = 1e21
# Enough digits to quantize any finite double
WIDE_PRECISION = 400


def as_number(value: Any) -> float:
    """
    Lenient numeric coercion for display: None and blank strings are 0,
    numeric strings are parsed, anything else is NaN.
    """
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _non_finite(number: float) -> str:
    if math.isnan(number):
        return "NaN"
    return "Infinity" if number > 0 else "-Infinity"


def to_fixed(value: Any, places: int) -> str:
    """
    Fixed-point rendering of the binary double, e.g. to_fixed(0.25, 1) -> "0.3"
    but to_fixed(0.15, 1) -> "0.1" since 0.15 is stored just below the tie.
    """
    number = float(value)
    if not math.isfinite(number):
        return _non_finite(number)
    if abs(number) >= EXPONENT_THRESHOLD:
        return repr(number)
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = WIDE_PRECISION
        rounded = Decimal(number).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded) if number >= 0 else rounded
    return f"{rounded:f}"


def locale_number(value: Any) -> str:
    """en-US grouping with at most three fraction digits: 1234567.8912 -> "1,234,567.891"."""
    number = as_number(value)
    if not math.isfinite(number):
        return "NaN" if math.isnan(number) else ("∞" if number > 0 else "-∞")
    with localcontext() as ctx:
        ctx.prec = WIDE_PRECISION
        rounded = Decimal(repr(number)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    text = f"{rounded:,f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def to_exponential(value: Any, places: int) -> str:
    """Scientific notation with an unpadded exponent: 0.0000123 -> "1.23e-5"."""
    number = as_number(value)
    if not math.isfinite(number):
        return _non_finite(number)
    mantissa, exponent = f"{number:.{places}e}".split("e")
    sign, digits = exponent[0], exponent[1:].lstrip("0") or "0"
    return f"{mantissa}e{sign}{digits}"


def utc_clock_time(timestamp_millis: int) -> str:
    """HH:MM:SS in UTC."""
    return datetime.fromtimestamp(timestamp_millis / 1000, tz=timezone.utc).strftime("%H:%M:%S")
