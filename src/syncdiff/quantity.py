"""Resource quantity parsing and canonical formatting.

Clusters store resource quantities (cpu, memory, storage) in a canonical
string form. A manifest may spell the same amount differently, e.g. ``0.2``,
``"0.2"`` and ``"200m"``. ``canonicalize`` rewrites any accepted spelling to
the form the cluster would report back.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_UP, Decimal, InvalidOperation, localcontext
from enum import Enum

_QUANTITY_PATTERN = re.compile(
    r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+))"
    r"(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|[eE][+-]?\d+|[numkMGTPE])?$"
)

_DECIMAL_EXPONENTS = {
    "n": -9,
    "u": -6,
    "m": -3,
    "": 0,
    "k": 3,
    "M": 6,
    "G": 9,
    "T": 12,
    "P": 15,
    "E": 18,
}
_DECIMAL_SUFFIXES = {exp: suffix for suffix, exp in _DECIMAL_EXPONENTS.items()}
_BINARY_SHIFTS = {"Ki": 10, "Mi": 20, "Gi": 30, "Ti": 40, "Pi": 50, "Ei": 60}

# Smallest representable amount; finer values are rounded up to it
NANO = Decimal("1e-9")
_PRECISION = 64


class QuantityFormat(Enum):
    """How a quantity is written, derived from its suffix."""

    DECIMAL_SI = "DecimalSI"
    BINARY_SI = "BinarySI"
    DECIMAL_EXPONENT = "DecimalExponent"


@dataclass(frozen=True)
class Quantity:
    """A parsed resource quantity."""

    value: Decimal
    format: QuantityFormat

    @classmethod
    def parse(cls, raw: str | int | float) -> Quantity:
        """
        Parse a quantity from its string or bare numeric spelling.

        Raises:
            ValueError: If ``raw`` is not a valid quantity
        """
        if isinstance(raw, bool):
            raise ValueError(f"Invalid quantity: {raw!r}")
        if isinstance(raw, (int, float)):
            if isinstance(raw, float) and not math.isfinite(raw):
                raise ValueError(f"Invalid quantity: {raw!r}")
            number, suffix = str(raw), ""
        elif isinstance(raw, str):
            match = _QUANTITY_PATTERN.match(raw.strip())
            if match is None:
                raise ValueError(f"Invalid quantity: {raw!r}")
            number, suffix = match.group("number"), match.group("suffix") or ""
        else:
            raise ValueError(f"Invalid quantity: {raw!r}")

        with localcontext() as ctx:
            ctx.prec = _PRECISION
            try:
                value = Decimal(number)
            except InvalidOperation as e:
                raise ValueError(f"Invalid quantity: {raw!r}") from e

            if suffix in _BINARY_SHIFTS:
                value *= 2 ** _BINARY_SHIFTS[suffix]
                fmt = QuantityFormat.BINARY_SI
            elif suffix[:1] in ("e", "E"):
                value = value.scaleb(int(suffix[1:]))
                fmt = QuantityFormat.DECIMAL_EXPONENT
            else:
                value = value.scaleb(_DECIMAL_EXPONENTS[suffix])
                fmt = QuantityFormat.DECIMAL_SI

            # Sub-nano precision is not representable and rounds away from zero
            try:
                value = value.quantize(NANO, rounding=ROUND_UP).normalize()
            except InvalidOperation as e:
                raise ValueError(f"Quantity out of range: {raw!r}") from e

        return cls(value=value, format=fmt)

    def canonical(self) -> str:
        """Return the canonical string form of this quantity."""
        with localcontext() as ctx:
            ctx.prec = _PRECISION
            if self.value == 0:
                return "0"
            if self.format is QuantityFormat.BINARY_SI and _is_integral(self.value):
                if abs(self.value) >= 1024:
                    return _format_binary(self.value)
                return str(int(self.value))
            return _format_decimal(self.value, self.format is QuantityFormat.DECIMAL_EXPONENT)


def canonicalize(raw: str | int | float) -> str:
    """Parse ``raw`` and return its canonical quantity string."""
    return Quantity.parse(raw).canonical()


def _is_integral(value: Decimal) -> bool:
    return value == value.to_integral_value()


def _format_binary(value: Decimal) -> str:
    integer = int(value)
    for suffix, shift in sorted(_BINARY_SHIFTS.items(), key=lambda item: -item[1]):
        if integer % (1 << shift) == 0:
            return f"{integer >> shift}{suffix}"
    return str(integer)


def _format_decimal(value: Decimal, exponent_form: bool) -> str:
    # Pick the largest multiple-of-three exponent that keeps the mantissa integral
    for exponent in range(18, -12, -3):
        mantissa = value.scaleb(-exponent)
        if _is_integral(mantissa):
            break
    digits = str(int(mantissa))
    if exponent_form:
        return digits if exponent == 0 else f"{digits}e{exponent}"
    return f"{digits}{_DECIMAL_SUFFIXES[exponent]}"
