import re
from decimal import Decimal, InvalidOperation
from functools import total_ordering

from errors import AmountOverflowError, ParseError

AMOUNT_SCALE = 4
_FACTOR = 10 ** AMOUNT_SCALE

# Balances live in a signed 64-bit count of minor units.
MAX_UNITS = 2 ** 63 - 1
MIN_UNITS = -(2 ** 63)

# Plain ASCII decimal text, optionally with an exponent.
_AMOUNT_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def _checked(units: int) -> int:
    if units > MAX_UNITS or units < MIN_UNITS:
        raise AmountOverflowError(f"amount out of range: {units} minor units")
    return units


@total_ordering
class Amount:
    """
    Fixed-point monetary value with AMOUNT_SCALE fractional digits.
    Stored as an integer number of minor units, so addition and
    subtraction are exact. Out-of-range results raise AmountOverflowError.
    """

    __slots__ = ("_units",)

    def __init__(self, units: int = 0):
        if not isinstance(units, int) or isinstance(units, bool):
            raise TypeError(f"Amount units must be int, got {type(units).__name__}")
        self._units = _checked(units)

    @classmethod
    def zero(cls) -> "Amount":
        return cls(0)

    @classmethod
    def parse(cls, text: str) -> "Amount":
        """Parse decimal text such as "1.5" or "-0.0001"."""
        if text is None:
            raise ParseError("missing amount")
        stripped = text.strip()
        if not stripped:
            raise ParseError("empty amount")

        if not _AMOUNT_PATTERN.fullmatch(stripped):
            raise ParseError(f"amount is not a decimal number: {text!r}")

        try:
            value = Decimal(stripped)
        except InvalidOperation:
            raise ParseError(f"amount is not a decimal number: {text!r}") from None

        sign, digits, exponent = value.as_tuple()
        coefficient = int("".join(map(str, digits)))
        shift = exponent + AMOUNT_SCALE

        if coefficient == 0:
            units = 0
        elif shift >= 0:
            if len(digits) + shift > 19:
                raise ParseError(f"amount {text!r} is out of range")
            units = coefficient * 10 ** shift
        else:
            # Exact integer check; Decimal context rounding would hide digits.
            if -shift > len(digits) or coefficient % 10 ** -shift:
                raise ParseError(f"amount {text!r} has more than {AMOUNT_SCALE} fractional digits")
            units = coefficient // 10 ** -shift

        if sign:
            units = -units
        try:
            return cls(units)
        except AmountOverflowError:
            raise ParseError(f"amount {text!r} is out of range") from None

    @property
    def units(self) -> int:
        return self._units

    def is_positive(self) -> bool:
        return self._units > 0

    def is_negative(self) -> bool:
        return self._units < 0

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(_checked(self._units + other._units))

    def __sub__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(_checked(self._units - other._units))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self._units == other._units

    def __lt__(self, other: "Amount") -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self._units < other._units

    def __hash__(self) -> int:
        return hash(self._units)

    def __str__(self) -> str:
        sign = "-" if self._units < 0 else ""
        whole, fraction = divmod(abs(self._units), _FACTOR)
        return f"{sign}{whole}.{fraction:0{AMOUNT_SCALE}d}"

    def __repr__(self) -> str:
        return f"Amount('{self}')"
