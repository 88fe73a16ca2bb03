"""
Payments - Transaction Records

A transaction is created as pending when the payer starts a checkout and is
completed (or failed) by the caller once the payment provider answers.
Provider integration itself lives outside this module.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping

from core.errors import NotFoundError
from core.marketplace.identity import CurrentUser
from core.marketplace.store import TRANSACTIONS, RecordStore
from core.validation.schemas import (
    PAYMENT_COMPLETE_SCHEMA,
    PAYMENT_CREATE_SCHEMA,
    TransactionStatus,
)


logger = logging.getLogger(__name__)


class PaymentService:
    """Transaction operations over the record store."""

    def __init__(self, store: RecordStore):
        self._store = store

    def create_transaction(self, user: CurrentUser, payment: Mapping[str, Any]) -> dict:
        """
        Record a pending transaction for the caller.

        Raises:
            ValidationError: If the payment form fails validation
            StoreError: If the insert fails
        """
        values = PAYMENT_CREATE_SCHEMA.validate(payment).raise_for_violations()
        values.setdefault("property_id", None)
        values.setdefault("maintenance_request_id", None)
        values.update({
            "user_id": user.id,
            "status": TransactionStatus.PENDING.value,
        })
        created = self._store.insert(TRANSACTIONS, values)[0]
        logger.info(
            "Transaction %s created: %s via %s",
            created["id"],
            created["transaction_type"],
            created["payment_method"],
        )
        return created

    def complete_transaction(self, user: CurrentUser, completion: Mapping[str, Any]) -> dict:
        """
        Record the provider's answer on one of the caller's transactions.

        Raises:
            ValidationError: If the completion form fails validation
            NotFoundError: If the transaction is missing or not the caller's
        """
        values = PAYMENT_COMPLETE_SCHEMA.validate(completion).raise_for_violations()
        transaction_id = values.pop("transaction_id")
        values.setdefault("payment_reference", None)

        updated = self._store.update(
            TRANSACTIONS,
            values,
            {"id": transaction_id, "user_id": user.id},
        )
        if not updated:
            raise NotFoundError(TRANSACTIONS, transaction_id)

        logger.info("Transaction %s marked %s", transaction_id, values["status"])
        return updated[0]

    def list_for_user(self, user: CurrentUser) -> list[dict]:
        """Caller's transactions, newest first."""
        return self._store.select(TRANSACTIONS, {"user_id": user.id})

    def completed_total(self, user: CurrentUser) -> Decimal:
        """Sum of the caller's completed transaction amounts."""
        rows = self._store.select(
            TRANSACTIONS,
            {"user_id": user.id, "status": TransactionStatus.COMPLETED.value},
            order_by=None,
        )
        return sum((Decimal(str(row.get("amount") or 0)) for row in rows), Decimal("0"))
