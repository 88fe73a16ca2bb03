"""
Field Rules - Per-Field Checks for Record Schemas

Each rule checks one raw value and returns the normalised value together with
any violations. Rules never clamp or repair a value: out-of-range input is
always reported, never corrected.

Form input arrives as strings, so numeric rules accept numeric strings and a
blank string on an optional field counts as "not supplied".
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Final, Optional, Pattern


# =============================================================================
# Constants
# =============================================================================

# Canonical 8-4-4-4-12 hexadecimal grouping
UUID_REGEX: Final = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Digits, spaces, plus, minus and parentheses only
PHONE_REGEX: Final = re.compile(r"^[\d\s\-+()]+$")

# ISO-8601 calendar date (YYYY-MM-DD)
ISO_DATE_REGEX: Final = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Plain decimal notation with an optional exponent
NUMERIC_REGEX: Final = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

REQUIRED_MESSAGE: Final[str] = "Required"


class _Missing:
    """Sentinel for a field absent from the input mapping."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


# =============================================================================
# Violation
# =============================================================================


@dataclass(frozen=True)
class Violation:
    """A single field/message pair describing why validation failed."""

    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


CheckResult = tuple[Any, list[Violation]]


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


# =============================================================================
# Base Rule
# =============================================================================


@dataclass(frozen=True)
class FieldRule(ABC):
    """
    Base rule handling presence.

    required=False: the field may be absent (or blank for form strings).
    nullable=True: an explicit None is accepted.
    A supplied value is always fully checked by the concrete rule.
    """

    required: bool = True
    nullable: bool = False

    def is_blank(self, value: Any) -> bool:
        """Whether a supplied value counts as "not supplied"."""
        return isinstance(value, str) and not value.strip()

    def check(self, field: str, value: Any = MISSING) -> CheckResult:
        """
        Check a raw value.

        Returns:
            (normalised value or MISSING, violations)
        """
        if value is MISSING or self.is_blank(value):
            if self.required:
                return MISSING, [Violation(field, REQUIRED_MESSAGE)]
            if value is not MISSING and self.nullable:
                return None, []
            return MISSING, []

        if value is None:
            if self.nullable:
                return None, []
            if self.required:
                return MISSING, [Violation(field, REQUIRED_MESSAGE)]
            return MISSING, [Violation(field, f"Expected {self.expected}, received null")]

        return self.check_value(field, value)

    @property
    def expected(self) -> str:
        return "value"

    @abstractmethod
    def check_value(self, field: str, value: Any) -> CheckResult:
        """Check a supplied, non-null value."""


# =============================================================================
# Concrete Rules
# =============================================================================


@dataclass(frozen=True)
class BoundedString(FieldRule):
    """String whose trimmed length lies in [min_length, max_length]."""

    min_length: int = 0
    max_length: Optional[int] = None
    min_message: Optional[str] = None
    max_message: Optional[str] = None

    @property
    def expected(self) -> str:
        return "string"

    def is_blank(self, value: Any) -> bool:
        # Blank text on a required field is reported by the length check
        return not self.required and super().is_blank(value)

    def check_value(self, field: str, value: Any) -> CheckResult:
        if not isinstance(value, str):
            return value, [Violation(field, f"Expected string, received {_type_name(value)}")]

        text = value.strip()
        violations = []
        if len(text) < self.min_length:
            violations.append(Violation(
                field,
                self.min_message
                or f"Must contain at least {self.min_length} character(s)",
            ))
        if self.max_length is not None and len(text) > self.max_length:
            violations.append(Violation(
                field,
                self.max_message
                or f"Must contain at most {self.max_length} character(s)",
            ))
        return text, violations


@dataclass(frozen=True)
class EnumField(FieldRule):
    """String tag drawn from a closed set."""

    choices: tuple[str, ...] = ()

    @property
    def expected(self) -> str:
        return "string"

    def check_value(self, field: str, value: Any) -> CheckResult:
        if isinstance(value, str) and value in self.choices:
            return value, []
        allowed = " | ".join(f"'{c}'" for c in self.choices)
        return value, [Violation(
            field,
            f"Invalid value. Expected {allowed}, received '{value}'",
        )]


@dataclass(frozen=True)
class BoundedNumber(FieldRule):
    """Number in [minimum, maximum] inclusive. Numeric strings are parsed."""

    minimum: Optional[float] = None
    maximum: Optional[float] = None
    integer: bool = False
    min_message: Optional[str] = None
    max_message: Optional[str] = None

    @property
    def expected(self) -> str:
        return "integer" if self.integer else "number"

    def _parse(self, value: Any) -> Optional[float]:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            text = value.strip()
            return float(text) if NUMERIC_REGEX.match(text) else None
        return None

    def check_value(self, field: str, value: Any) -> CheckResult:
        number = self._parse(value)
        if number is None:
            return value, [Violation(
                field, f"Expected {self.expected}, received {_type_name(value)}"
            )]
        if isinstance(number, float) and not math.isfinite(number):
            return value, [Violation(field, f"Expected a finite {self.expected}")]

        if self.integer:
            if isinstance(number, float) and not number.is_integer():
                return value, [Violation(field, "Expected integer, received float")]
            number = int(number)

        violations = []
        if self.minimum is not None and number < self.minimum:
            violations.append(Violation(
                field,
                self.min_message or f"Must be greater than or equal to {_fmt(self.minimum)}",
            ))
        if self.maximum is not None and number > self.maximum:
            violations.append(Violation(
                field,
                self.max_message or f"Must be less than or equal to {_fmt(self.maximum)}",
            ))
        return number, violations


@dataclass(frozen=True)
class PatternString(FieldRule):
    """String that must match a regular expression (format check only)."""

    pattern: Optional[Pattern] = None
    message: str = "Invalid format"

    @property
    def expected(self) -> str:
        return "string"

    def check_value(self, field: str, value: Any) -> CheckResult:
        if not isinstance(value, str):
            return value, [Violation(field, f"Expected string, received {_type_name(value)}")]
        text = value.strip()
        if self.pattern is None or not self.pattern.match(text):
            return text, [Violation(field, self.message)]
        return text, []


@dataclass(frozen=True)
class PhoneNumber(FieldRule):
    """
    Optional phone number.

    The empty string is an explicit "no phone" and is returned unchanged.
    A non-empty value must match PHONE_REGEX and be 10-20 characters long.
    Every failing check is reported.
    """

    min_length: int = 10
    max_length: int = 20

    @property
    def expected(self) -> str:
        return "string"

    def is_blank(self, value: Any) -> bool:
        return False

    def check_value(self, field: str, value: Any) -> CheckResult:
        if not isinstance(value, str):
            return value, [Violation(field, f"Expected string, received {_type_name(value)}")]
        if value == "":
            return "", []

        violations = []
        if not PHONE_REGEX.match(value):
            violations.append(Violation(field, "Invalid phone number format"))
        if len(value) < self.min_length:
            violations.append(Violation(field, "Phone number too short"))
        if len(value) > self.max_length:
            violations.append(Violation(field, "Phone number too long"))
        return value, violations


def uuid_field(message: str = "Invalid identifier", **kwargs: Any) -> PatternString:
    """UUID-shaped string rule. Existence is the caller's concern."""
    return PatternString(pattern=UUID_REGEX, message=message, **kwargs)


def iso_date_field(message: str = "Expected a date (YYYY-MM-DD)", **kwargs: Any) -> PatternString:
    """ISO calendar date rule."""
    return PatternString(pattern=ISO_DATE_REGEX, message=message, **kwargs)


def _fmt(number: float) -> str:
    if float(number).is_integer():
        return f"{int(number):,}"
    return str(number)
