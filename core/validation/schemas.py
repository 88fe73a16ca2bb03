"""
Marketplace Schemas - Field Rules for Every Validated Record Shape

Property, MaintenanceRequest and Profile are the primary form records.
The remaining schemas cover the edit, payment and "new property" forms and
are built from the primary ones wherever their fields overlap, so each field
rule is defined exactly once.
"""

from __future__ import annotations

from enum import Enum
from typing import Final

from core.validation.rules import (
    BoundedNumber,
    BoundedString,
    EnumField,
    PhoneNumber,
    iso_date_field,
    uuid_field,
)
from core.validation.validator import Schema


# =============================================================================
# Enums
# =============================================================================


class PropertyType(Enum):
    """Kind of property being listed."""

    APARTMENT = "apartment"
    HOUSE = "house"
    COMMERCIAL = "commercial"
    LAND = "land"
    OFFICE = "office"


class ListingType(Enum):
    """Whether a listing is offered for rent, sale or both."""

    RENT = "rent"
    SALE = "sale"
    BOTH = "both"


class PropertyStatus(Enum):
    """Availability of a listed property."""

    AVAILABLE = "available"
    RENTED = "rented"
    SOLD = "sold"
    PENDING = "pending"


class MaintenanceCategory(Enum):
    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    HVAC = "hvac"
    CARPENTRY = "carpentry"
    PAINTING = "painting"
    CLEANING = "cleaning"
    LANDSCAPING = "landscaping"
    OTHER = "other"


class MaintenancePriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MaintenanceStatus(Enum):
    """
    Lifecycle of a maintenance request.

    COMPLETED stamps completed_date; every other status clears it.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class UserType(Enum):
    TENANT = "tenant"
    OWNER = "owner"
    AGENT = "agent"
    MAINTENANCE_PROVIDER = "maintenance_provider"


class PaymentMethod(Enum):
    PAYPAL = "paypal"
    MTN_MOBILE_MONEY = "mtn_mobile_money"


class TransactionType(Enum):
    RENT = "rent"
    SALE = "sale"
    MAINTENANCE = "maintenance"
    DEPOSIT = "deposit"


class TransactionStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


def enum_values(enum_cls: type[Enum]) -> tuple[str, ...]:
    """Closed set of string tags for an Enum."""
    return tuple(member.value for member in enum_cls)


# =============================================================================
# Constants
# =============================================================================

MAX_PRICE: Final[int] = 100_000_000
MAX_ROOMS: Final[int] = 50
MAX_AREA_SQFT: Final[int] = 1_000_000
MAX_MAINTENANCE_COST: Final[int] = 1_000_000


# =============================================================================
# Property
# =============================================================================

PROPERTY_SCHEMA: Final[Schema] = Schema("property", [
    ("title", BoundedString(
        min_length=5, max_length=100,
        min_message="Title must be at least 5 characters",
        max_message="Title too long",
    )),
    ("description", BoundedString(
        required=False, max_length=1000, max_message="Description too long",
    )),
    ("property_type", EnumField(choices=enum_values(PropertyType))),
    ("listing_type", EnumField(choices=enum_values(ListingType))),
    ("price", BoundedNumber(
        minimum=1, maximum=MAX_PRICE,
        min_message="Price must be greater than 0",
        max_message="Price too high",
    )),
    ("bedrooms", BoundedNumber(
        required=False, nullable=True, minimum=0, maximum=MAX_ROOMS, integer=True,
    )),
    ("bathrooms", BoundedNumber(
        required=False, nullable=True, minimum=0, maximum=MAX_ROOMS, integer=True,
    )),
    ("area_sqft", BoundedNumber(
        required=False, nullable=True, minimum=1, maximum=MAX_AREA_SQFT,
    )),
    ("address", BoundedString(min_length=1, min_message="Address is required")),
    ("city", BoundedString(min_length=1, min_message="City is required")),
    ("state", BoundedString(required=False, max_length=100)),
    ("country", BoundedString(min_length=1, min_message="Country is required")),
    ("postal_code", BoundedString(required=False, max_length=20)),
    ("latitude", BoundedNumber(minimum=-90, maximum=90)),
    ("longitude", BoundedNumber(minimum=-180, maximum=180)),
])

# Owner edit form: every property field plus availability
PROPERTY_UPDATE_SCHEMA: Final[Schema] = PROPERTY_SCHEMA.extend("property_update", [
    ("status", EnumField(choices=enum_values(PropertyStatus))),
])

# Minimal property created from the maintenance form's "new property" tab
NEW_PROPERTY_SCHEMA: Final[Schema] = PROPERTY_SCHEMA.project(
    (
        "title",
        "property_type",
        "address",
        "city",
        "state",
        "country",
        "postal_code",
        "latitude",
        "longitude",
    ),
    name="new_property",
)


# =============================================================================
# Maintenance Request
# =============================================================================

MAINTENANCE_SCHEMA: Final[Schema] = Schema("maintenance_request", [
    ("property_id", uuid_field(message="Invalid property")),
    ("title", BoundedString(
        min_length=5, max_length=100,
        min_message="Title must be at least 5 characters",
        max_message="Title too long",
    )),
    ("description", BoundedString(
        min_length=10, max_length=1000,
        min_message="Description must be at least 10 characters",
        max_message="Description too long",
    )),
    ("category", EnumField(choices=enum_values(MaintenanceCategory))),
    ("priority", EnumField(choices=enum_values(MaintenancePriority))),
    ("estimated_cost", BoundedNumber(
        required=False, nullable=True, minimum=0, maximum=MAX_MAINTENANCE_COST,
    )),
])

EXISTING_PROPERTY_SCHEMA: Final[Schema] = MAINTENANCE_SCHEMA.project(
    ("property_id",), name="existing_property",
)

MAINTENANCE_UPDATE_SCHEMA: Final[Schema] = Schema("maintenance_update", [
    ("status", EnumField(choices=enum_values(MaintenanceStatus))),
    ("priority", MAINTENANCE_SCHEMA.rule("priority")),
    ("estimated_cost", MAINTENANCE_SCHEMA.rule("estimated_cost")),
    ("actual_cost", BoundedNumber(
        required=False, nullable=True, minimum=0, maximum=MAX_MAINTENANCE_COST,
    )),
    ("scheduled_date", iso_date_field(required=False, nullable=True)),
])


# =============================================================================
# Profile
# =============================================================================

PROFILE_SCHEMA: Final[Schema] = Schema("profile", [
    ("full_name", BoundedString(
        min_length=2, max_length=100,
        min_message="Name must be at least 2 characters",
        max_message="Name too long",
    )),
    ("phone", PhoneNumber(required=False, nullable=True)),
    ("user_type", EnumField(choices=enum_values(UserType))),
])


# =============================================================================
# Payments
# =============================================================================

PAYMENT_CREATE_SCHEMA: Final[Schema] = Schema("payment_create", [
    ("amount", BoundedNumber(
        minimum=0.01, maximum=MAX_PRICE,
        min_message="Amount must be greater than 0",
        max_message="Amount too high",
    )),
    ("payment_method", EnumField(choices=enum_values(PaymentMethod))),
    ("transaction_type", EnumField(choices=enum_values(TransactionType))),
    ("property_id", uuid_field(message="Invalid property", required=False, nullable=True)),
    ("maintenance_request_id", uuid_field(
        message="Invalid maintenance request", required=False, nullable=True,
    )),
])

PAYMENT_COMPLETE_SCHEMA: Final[Schema] = Schema("payment_complete", [
    ("transaction_id", uuid_field(message="Invalid transaction")),
    ("payment_reference", BoundedString(required=False, nullable=True, max_length=200)),
    ("status", EnumField(choices=enum_values(TransactionStatus))),
])


SCHEMAS: Final[dict[str, Schema]] = {
    schema.name: schema
    for schema in (
        PROPERTY_SCHEMA,
        PROPERTY_UPDATE_SCHEMA,
        NEW_PROPERTY_SCHEMA,
        MAINTENANCE_SCHEMA,
        EXISTING_PROPERTY_SCHEMA,
        MAINTENANCE_UPDATE_SCHEMA,
        PROFILE_SCHEMA,
        PAYMENT_CREATE_SCHEMA,
        PAYMENT_COMPLETE_SCHEMA,
    )
}


def get_schema(name: str) -> Schema:
    """
    Look up a schema by name.

    Raises:
        KeyError: If no schema has that name
    """
    return SCHEMAS[name]
