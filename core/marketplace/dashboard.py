"""
Dashboard summary for the signed-in user.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.marketplace.identity import CurrentUser
from core.marketplace.payments import PaymentService
from core.marketplace.store import MAINTENANCE_REQUESTS, PROFILES, PROPERTIES, RecordStore
from utils.formatting import format_currency


@dataclass(frozen=True)
class DashboardSummary:
    """Headline numbers shown on the dashboard."""

    full_name: Optional[str]
    user_type: Optional[str]
    property_count: int
    maintenance_count: int
    completed_payment_total: Decimal

    def to_dict(self) -> dict:
        return {
            "full_name": self.full_name,
            "user_type": self.user_type,
            "property_count": self.property_count,
            "maintenance_count": self.maintenance_count,
            "completed_payment_total": float(self.completed_payment_total),
            "completed_payment_total_formatted": format_currency(self.completed_payment_total),
        }


def dashboard_summary(store: RecordStore, user: CurrentUser) -> DashboardSummary:
    """
    Build the caller's dashboard numbers.

    Args:
        store: Record store
        user: Signed-in user

    Returns:
        DashboardSummary
    """
    profile = store.get(PROFILES, user.id) or {}
    return DashboardSummary(
        full_name=profile.get("full_name"),
        user_type=profile.get("user_type"),
        property_count=store.count(PROPERTIES, {"owner_id": user.id}),
        maintenance_count=store.count(MAINTENANCE_REQUESTS, {"requester_id": user.id}),
        completed_payment_total=PaymentService(store).completed_total(user),
    )
