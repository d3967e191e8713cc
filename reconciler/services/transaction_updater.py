"""
Transaction State Updater
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from reconciler.core.state_machine import PaymentOutcome, Transition, resolve_transition
from reconciler.models.transaction import Transaction
from reconciler.schemas.webhook import PaymentEntity

logger = logging.getLogger(__name__)


class TransactionStateUpdater:
    """
    Applies a gateway outcome to a transaction in memory; persisting is the
    caller's unit of work.
    """

    def apply_outcome(
        self,
        transaction: Transaction,
        outcome: PaymentOutcome,
        payment: PaymentEntity,
        raw_payload: Optional[Dict[str, Any]] = None
    ) -> Transition:
        """
        completed: status, payment id, raw payload, method.
        failed: status, payment id, raw payload (failure payloads may lack a method).
        authorized: payment id, raw payload, method; status stays pending.

        Illegal transitions write nothing. Replays rewrite the same fields.
        """
        transition = resolve_transition(transaction.status, outcome)

        if transition.is_illegal:
            logger.warning(
                f"Ignoring {outcome.value} for transaction {transaction.transaction_id} "
                f"in status {transition.current.value}",
                extra={"transaction_id": transaction.transaction_id},
            )
            return transition

        if transition.is_replay:
            logger.info(
                f"Replayed {outcome.value} for transaction {transaction.transaction_id}",
                extra={"transaction_id": transaction.transaction_id},
            )

        transaction.status = transition.new_status
        transaction.razorpay_payment_id = payment.id
        transaction.payment_response = raw_payload if raw_payload is not None else payment.raw()
        if outcome != PaymentOutcome.FAILED and payment.method:
            transaction.payment_method = payment.method
        transaction.updated_at = datetime.now(timezone.utc)

        return transition
