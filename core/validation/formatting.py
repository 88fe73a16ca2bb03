"""
Violation formatting for form rendering.
"""

from __future__ import annotations

from typing import Iterable

from core.validation.rules import Violation


def violations_to_field_map(violations: Iterable[Violation]) -> dict[str, str]:
    """
    Map each field to its first message.

    Forms render one inline error per field, so later messages for a field
    that already has one are dropped here (they stay in the violation list).
    """
    field_map: dict[str, str] = {}
    for violation in violations:
        field_map.setdefault(violation.field, violation.message)
    return field_map


def violations_to_list(violations: Iterable[Violation]) -> list[dict]:
    """Serialise violations to the [{field, message}] wire shape."""
    return [v.to_dict() for v in violations]


def summarise_violations(violations: Iterable[Violation]) -> str:
    """One-line summary suitable for a toast or log line."""
    items = list(violations)
    if not items:
        return ""
    fields = list(dict.fromkeys(v.field for v in items))
    if len(fields) == 1:
        return f"Please fix the {fields[0]} field"
    return f"Please fix {len(fields)} fields: {', '.join(fields)}"
