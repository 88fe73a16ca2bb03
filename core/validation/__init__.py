"""
Estatehub - Validation Module

Schemas for every record the marketplace accepts from a form. Validation is
pure: a record goes in, a normalised record or a list of field violations
comes out.
"""

from core.validation.rules import (
    Violation,
    FieldRule,
    BoundedString,
    BoundedNumber,
    EnumField,
    PatternString,
    PhoneNumber,
    uuid_field,
    iso_date_field,
    MISSING,
    UUID_REGEX,
    PHONE_REGEX,
)
from core.validation.validator import (
    Schema,
    ValidationResult,
    validate_record,
)
from core.validation.schemas import (
    PropertyType,
    ListingType,
    PropertyStatus,
    MaintenanceCategory,
    MaintenancePriority,
    MaintenanceStatus,
    UserType,
    PaymentMethod,
    TransactionType,
    TransactionStatus,
    PROPERTY_SCHEMA,
    PROPERTY_UPDATE_SCHEMA,
    NEW_PROPERTY_SCHEMA,
    MAINTENANCE_SCHEMA,
    EXISTING_PROPERTY_SCHEMA,
    MAINTENANCE_UPDATE_SCHEMA,
    PROFILE_SCHEMA,
    PAYMENT_CREATE_SCHEMA,
    PAYMENT_COMPLETE_SCHEMA,
    SCHEMAS,
    get_schema,
    enum_values,
)
from core.validation.formatting import (
    violations_to_field_map,
    violations_to_list,
    summarise_violations,
)

__all__ = [
    # Rules
    "Violation",
    "FieldRule",
    "BoundedString",
    "BoundedNumber",
    "EnumField",
    "PatternString",
    "PhoneNumber",
    "uuid_field",
    "iso_date_field",
    "MISSING",
    "UUID_REGEX",
    "PHONE_REGEX",
    # Validator
    "Schema",
    "ValidationResult",
    "validate_record",
    # Enums
    "PropertyType",
    "ListingType",
    "PropertyStatus",
    "MaintenanceCategory",
    "MaintenancePriority",
    "MaintenanceStatus",
    "UserType",
    "PaymentMethod",
    "TransactionType",
    "TransactionStatus",
    # Schemas
    "PROPERTY_SCHEMA",
    "PROPERTY_UPDATE_SCHEMA",
    "NEW_PROPERTY_SCHEMA",
    "MAINTENANCE_SCHEMA",
    "EXISTING_PROPERTY_SCHEMA",
    "MAINTENANCE_UPDATE_SCHEMA",
    "PROFILE_SCHEMA",
    "PAYMENT_CREATE_SCHEMA",
    "PAYMENT_COMPLETE_SCHEMA",
    "SCHEMAS",
    "get_schema",
    "enum_values",
    # Formatting
    "violations_to_field_map",
    "violations_to_list",
    "summarise_violations",
]
