"""
Schema Validator - Pure Record Validation

A Schema is an ordered, immutable set of field rules for one record shape.
Validating a record checks every field in a single pass and returns either
the normalised record or every violation found. Nothing here has side
effects; the same input always yields the same result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from core.errors import ValidationError
from core.validation.rules import MISSING, FieldRule, Violation


# =============================================================================
# Validation Result
# =============================================================================


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one record against a schema.

    value holds the normalised record when valid, None otherwise.
    violations is ordered by schema field order, then rule order.
    """

    schema_name: str
    valid: bool
    value: Optional[dict[str, Any]]
    violations: tuple[Violation, ...]

    @property
    def is_blocked(self) -> bool:
        """Check if the record must not be written."""
        return not self.valid

    @property
    def fields_with_errors(self) -> tuple[str, ...]:
        """Fields that failed, in order of first violation."""
        return tuple(dict.fromkeys(v.field for v in self.violations))

    def errors_for(self, field: str) -> list[str]:
        """All messages reported for one field."""
        return [v.message for v in self.violations if v.field == field]

    def raise_for_violations(self) -> dict[str, Any]:
        """Return the normalised record, or raise ValidationError."""
        if not self.valid:
            raise ValidationError(self.violations)
        return dict(self.value)

    def to_dict(self) -> dict:
        return {
            "schema": self.schema_name,
            "valid": self.valid,
            "value": dict(self.value) if self.value is not None else None,
            "errors": [v.to_dict() for v in self.violations],
        }


# =============================================================================
# Schema
# =============================================================================


class Schema:
    """
    Closed rule set for one record shape.

    Unknown input keys are ignored and left out of the normalised record.
    Fields that are optional and absent from the input stay absent.
    """

    def __init__(self, name: str, rules: Iterable[tuple[str, FieldRule]]):
        self._name = name
        self._rules: tuple[tuple[str, FieldRule], ...] = tuple(rules)
        self._index = {field: rule for field, rule in self._rules}
        if len(self._index) != len(self._rules):
            raise ValueError(f"Duplicate field in schema {name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(field for field, _ in self._rules)

    def rule(self, field: str) -> FieldRule:
        return self._index[field]

    def project(self, fields: Iterable[str], name: Optional[str] = None) -> "Schema":
        """
        Build a sub-schema holding only the named fields.

        Field order follows this schema, not the argument.

        Raises:
            KeyError: If a field is not part of this schema
        """
        wanted = set(fields)
        unknown = wanted.difference(self._index)
        if unknown:
            raise KeyError(f"Unknown fields for {self._name}: {sorted(unknown)}")
        return Schema(
            name or f"{self._name}[{','.join(f for f in self.fields if f in wanted)}]",
            ((f, r) for f, r in self._rules if f in wanted),
        )

    def extend(self, name: str, rules: Iterable[tuple[str, FieldRule]]) -> "Schema":
        """Build a new schema with extra fields appended."""
        return Schema(name, self._rules + tuple(rules))

    def validate(
        self,
        data: Mapping[str, Any],
        fields: Optional[Iterable[str]] = None,
    ) -> ValidationResult:
        """
        Validate a candidate record.

        Args:
            data: Raw field values (may be missing, wrong-typed, out of range)
            fields: Optional subset to validate (partial-schema check)

        Returns:
            ValidationResult with the normalised record or all violations
        """
        if fields is not None:
            return self.project(fields).validate(data)

        if not isinstance(data, Mapping):
            return ValidationResult(
                schema_name=self._name,
                valid=False,
                value=None,
                violations=(Violation("_record", "Expected an object"),),
            )

        normalised: dict[str, Any] = {}
        violations: list[Violation] = []

        for field, rule in self._rules:
            value, field_violations = rule.check(field, data.get(field, MISSING))
            violations.extend(field_violations)
            if value is not MISSING and not field_violations:
                normalised[field] = value

        if violations:
            return ValidationResult(
                schema_name=self._name,
                valid=False,
                value=None,
                violations=tuple(violations),
            )

        return ValidationResult(
            schema_name=self._name,
            valid=True,
            value=normalised,
            violations=(),
        )

    def __repr__(self) -> str:
        return f"Schema({self._name!r}, fields={list(self.fields)!r})"


def validate_record(
    schema: Schema,
    data: Mapping[str, Any],
    fields: Optional[Iterable[str]] = None,
) -> ValidationResult:
    """Validate data against schema. See Schema.validate."""
    return schema.validate(data, fields=fields)
