"""Time token value type.

Architecture:
    A time token identifies an event's position in channel storage. Tokens
    are integers counting 100-nanosecond units since the Unix epoch, which
    gives 17 decimal digits for present-day instants. That exceeds the
    53-bit mantissa of a float, so tokens are always held as Python ints
    and converted through Decimal, never through float arithmetic.

Design Decisions:
    - Frozen, ordered dataclass: hashable and totally ordered
    - Precision normalization: seconds, milliseconds and microseconds are
      scaled to token precision based on their integer digit count
    - Pydantic integration: tokens validate from int/str and serialize
      as decimal strings
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from .exceptions import ValidationError

# Token units per second (100ns resolution)
TOKENS_PER_SECOND = 10_000_000

# Integer digit count -> multiplier to reach token precision
_PRECISION_SCALE = (
    (10, 10_000_000),  # seconds
    (13, 10_000),  # milliseconds
    (16, 10),  # microseconds
)

# Longest integer part accepted from callers
MAX_TOKEN_DIGITS = 20


def _scale_for(integer_part: int) -> int:
    digits = len(str(abs(integer_part)))
    for max_digits, scale in _PRECISION_SCALE:
        if digits <= max_digits:
            return scale
    return 1


@dataclass(frozen=True, order=True)
class TimeToken:
    """Immutable storage position of an event.

    Attributes:
        value: Token value in 100ns units since the Unix epoch
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"TimeToken value must be an int, got {type(self.value).__name__}"
            )
        if self.value < 0:
            raise ValidationError(f"TimeToken value must be non-negative, got {self.value}")

    @classmethod
    def parse(cls, value: Any) -> TimeToken:
        """Build a token from a token, number, decimal string, or datetime.

        Numeric values are normalized to token precision: up to 10 integer
        digits are read as seconds, up to 13 as milliseconds, up to 16 as
        microseconds, and anything longer as a token already.

        Args:
            value: Value to convert

        Returns:
            TimeToken for the value

        Raises:
            ValidationError: If the value cannot be represented as a token
        """
        if isinstance(value, TimeToken):
            return value
        if isinstance(value, datetime):
            return cls.from_datetime(value)
        if isinstance(value, bool):
            raise ValidationError("Boolean is not a valid time token")
        if isinstance(value, int):
            if abs(value) >= 10**MAX_TOKEN_DIGITS:
                raise ValidationError(f"Time token has too many digits: {value!r}")
            return cls(value * _scale_for(value))

        try:
            if isinstance(value, float):
                # repr-based conversion keeps the digits the caller wrote
                number = Decimal(repr(value))
            elif isinstance(value, (str, Decimal)):
                number = Decimal(str(value).strip())
            else:
                raise ValidationError(f"Unsupported time token type: {type(value).__name__}")
        except InvalidOperation as e:
            raise ValidationError(f"Invalid time token: {value!r}") from e

        if not number.is_finite():
            raise ValidationError(f"Invalid time token: {value!r}")
        if number.adjusted() >= MAX_TOKEN_DIGITS:
            raise ValidationError(f"Time token has too many digits: {value!r}")

        scaled = number * _scale_for(int(number))
        return cls(int(scaled.to_integral_value(rounding=ROUND_DOWN)))

    @classmethod
    def from_datetime(cls, dt: datetime) -> TimeToken:
        """Convert a datetime to a token. Naive datetimes are treated as UTC."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        delta = dt - datetime(1970, 1, 1, tzinfo=UTC)
        micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
        return cls(micros * 10)

    @classmethod
    def now(cls) -> TimeToken:
        return cls.from_datetime(datetime.now(UTC))

    def to_datetime(self) -> datetime:
        """Convert to an aware UTC datetime (microsecond resolution)."""
        seconds, remainder = divmod(self.value, TOKENS_PER_SECOND)
        return datetime.fromtimestamp(seconds, tz=UTC).replace(microsecond=remainder // 10)

    def to_decimal_seconds(self) -> Decimal:
        return Decimal(self.value) / TOKENS_PER_SECOND

    def __add__(self, other: int) -> TimeToken:
        if isinstance(other, bool) or not isinstance(other, int):
            return NotImplemented
        return TimeToken(self.value + other)

    def __sub__(self, other: Any) -> Any:
        if isinstance(other, TimeToken):
            return self.value - other.value
        if isinstance(other, bool) or not isinstance(other, int):
            return NotImplemented
        return TimeToken(self.value - other)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"TimeToken({self.value})"

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def _validate(cls, value: Any) -> TimeToken:
        # Wire values are already at token precision; no normalization
        if isinstance(value, TimeToken):
            return value
        if isinstance(value, bool):
            raise ValueError("Boolean is not a valid time token")
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit():
                raise ValueError(f"Invalid time token string: {value!r}")
            return cls(int(value))
        if isinstance(value, int):
            if value < 0:
                raise ValueError(f"Time token must be non-negative, got {value}")
            return cls(value)
        raise ValueError(f"Unsupported time token type: {type(value).__name__}")
