"""
Razorpay webhook reconciliation

Verifies a delivery, routes it by event kind and applies it to the matching
transaction and booking in a single database transaction.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import enum
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.core.locks import EventLock
from reconciler.core.signature import SignatureVerifier
from reconciler.core.state_machine import PaymentOutcome
from reconciler.repositories.transactions import TransactionRepository
from reconciler.schemas.webhook import (
    KNOWN_EVENTS,
    GatewayEvent,
    OrderPaidEvent,
    PaymentAuthorizedEvent,
    PaymentCapturedEvent,
    PaymentEntity,
    PaymentFailedEvent,
    parse_envelope,
    parse_event,
)
from reconciler.services.booking_sync import BookingSynchronizer
from reconciler.services.transaction_updater import TransactionStateUpdater

logger = logging.getLogger(__name__)


class DispatchStatus(str, enum.Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"


@dataclass
class DispatchResult:
    event: str
    status: DispatchStatus
    transaction_id: Optional[str] = None


class WebhookService:
    """
    Not-found transactions, unknown event kinds and illegal transitions are
    results, not errors. Anything raised propagates to the endpoint.
    """

    def __init__(
        self,
        session: AsyncSession,
        verifier: SignatureVerifier,
        event_lock: Optional[EventLock] = None,
        provider: str = "razorpay"
    ):
        self.session = session
        self.verifier = verifier
        self.event_lock = event_lock
        self.provider = provider
        self.transactions = TransactionRepository(session)
        self.updater = TransactionStateUpdater()
        self.synchronizer = BookingSynchronizer(session)

        self._handlers = {
            "payment.captured": self._handle_payment_captured,
            "payment.failed": self._handle_payment_failed,
            "payment.authorized": self._handle_payment_authorized,
            "order.paid": self._handle_order_paid,
        }

    async def verify(self, raw_body: bytes, signature: Optional[str]) -> bool:
        return await self.verifier.verify(raw_body, signature)

    async def process(self, raw_body: bytes) -> DispatchResult:
        """Parse a verified body and dispatch it"""
        envelope = parse_envelope(raw_body)

        if envelope.event not in KNOWN_EVENTS:
            logger.info(f"Unhandled webhook event: {envelope.event}", extra={"event": envelope.event})
            return DispatchResult(envelope.event, DispatchStatus.IGNORED)

        return await self.dispatch(parse_event(envelope))

    async def dispatch(self, event: GatewayEvent) -> DispatchResult:
        handler = self._handlers[event.event]

        if self.event_lock is None:
            return await self._run(handler, event)

        async with self.event_lock.hold(self._lock_resource(event)):
            return await self._run(handler, event)

    async def _run(self, handler, event: GatewayEvent) -> DispatchResult:
        # Transaction and booking writes commit together or not at all
        try:
            result = await handler(event)
            await self.session.commit()
            return result
        except Exception:
            await self.session.rollback()
            raise

    def _lock_resource(self, event: GatewayEvent) -> str:
        if isinstance(event, OrderPaidEvent):
            key = event.order.id
        else:
            key = event.payment.order_id or event.payment.id
        return f"webhook:{self.provider}:{key}"

    async def _handle_payment_captured(self, event: PaymentCapturedEvent) -> DispatchResult:
        payment = event.payment
        return await self._apply(event.event, PaymentOutcome.COMPLETED, payment, payment.order_id)

    async def _handle_payment_failed(self, event: PaymentFailedEvent) -> DispatchResult:
        payment = event.payment
        return await self._apply(event.event, PaymentOutcome.FAILED, payment, payment.order_id)

    async def _handle_payment_authorized(self, event: PaymentAuthorizedEvent) -> DispatchResult:
        payment = event.payment
        return await self._apply(event.event, PaymentOutcome.AUTHORIZED, payment, payment.order_id)

    async def _handle_order_paid(self, event: OrderPaidEvent) -> DispatchResult:
        raw_payload = {"order": event.order.raw(), "payment": event.payment.raw()}
        return await self._apply(
            event.event, PaymentOutcome.COMPLETED, event.payment, event.order.id, raw_payload
        )

    async def _apply(
        self,
        event_name: str,
        outcome: PaymentOutcome,
        payment: PaymentEntity,
        order_id: Optional[str],
        raw_payload: Optional[Dict[str, Any]] = None
    ) -> DispatchResult:
        logger.info(f"Processing {event_name}: payment {payment.id}", extra={"event": event_name})

        transaction = await self.transactions.locate(payment_id=payment.id, order_id=order_id)
        if transaction is None:
            logger.info(
                f"Transaction not found for {event_name}: payment {payment.id}, order {order_id}",
                extra={"event": event_name},
            )
            return DispatchResult(event_name, DispatchStatus.NOT_FOUND)

        transition = self.updater.apply_outcome(transaction, outcome, payment, raw_payload)
        if transition.is_illegal:
            return DispatchResult(event_name, DispatchStatus.REJECTED, transaction.transaction_id)

        await self.transactions.save(transaction)

        if outcome != PaymentOutcome.AUTHORIZED:
            await self.synchronizer.sync(transaction, outcome)

        logger.info(
            f"Successfully processed {event_name} for transaction {transaction.transaction_id}",
            extra={"event": event_name, "transaction_id": transaction.transaction_id},
        )
        return DispatchResult(event_name, DispatchStatus.PROCESSED, transaction.transaction_id)
