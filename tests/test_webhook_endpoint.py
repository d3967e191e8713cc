"""
Integration tests for the Razorpay webhook endpoint
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from prometheus_client import REGISTRY

from conftest import (
    create_booking,
    create_transaction,
    encode,
    order_paid_event,
    payment_event,
    sign,
)
from reconciler.models.booking import BookingStatus, HostelBooking
from reconciler.models.transaction import TransactionStatus, TransactionType

WEBHOOK_URL = "/api/v1/webhooks/razorpay"


async def post_event(client, event: dict, signature: str = None):
    body = encode(event)
    headers = {"Content-Type": "application/json", "X-Razorpay-Signature": signature or sign(body)}
    return await client.post(WEBHOOK_URL, content=body, headers=headers)


@pytest.mark.integration
class TestSignatureHandling:

    @pytest.mark.asyncio
    async def test_invalid_signature_is_rejected(self, client, razorpay_settings, booking_transaction, cabin_booking):
        event = payment_event("payment.captured", "pay_001", booking_transaction.razorpay_order_id)

        response = await post_event(client, event, signature="0" * 64)

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid webhook signature"}
        assert booking_transaction.status == TransactionStatus.PENDING
        assert cabin_booking.status == BookingStatus.PENDING

    @pytest.mark.asyncio
    async def test_missing_signature_header_is_rejected(self, client, razorpay_settings):
        body = encode(payment_event("payment.captured", "pay_001", "order_001"))

        response = await client.post(WEBHOOK_URL, content=body)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_signature_over_different_body_is_rejected(self, client, razorpay_settings, booking_transaction):
        event = payment_event("payment.captured", "pay_001", booking_transaction.razorpay_order_id)
        tampered = dict(event, event="payment.failed")

        response = await post_event(client, tampered, signature=sign(encode(event)))

        assert response.status_code == 400
        assert booking_transaction.status == TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_missing_secret_fails_closed(self, client, booking_transaction):
        event = payment_event("payment.captured", "pay_001", booking_transaction.razorpay_order_id)

        response = await post_event(client, event)

        assert response.status_code == 400
        assert booking_transaction.status == TransactionStatus.PENDING


@pytest.mark.integration
class TestBookingPayments:

    @pytest.mark.asyncio
    async def test_payment_captured_completes_transaction_and_booking(
        self, client, razorpay_settings, booking_transaction, cabin_booking
    ):
        before = datetime.now(timezone.utc)
        event = payment_event("payment.captured", "pay_001", booking_transaction.razorpay_order_id, method="upi")

        response = await post_event(client, event)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Webhook processed successfully"}

        assert booking_transaction.status == TransactionStatus.COMPLETED
        assert booking_transaction.razorpay_payment_id == "pay_001"
        assert booking_transaction.payment_method == "upi"
        assert booking_transaction.payment_response["id"] == "pay_001"

        assert cabin_booking.payment_status == BookingStatus.COMPLETED
        assert cabin_booking.status == BookingStatus.COMPLETED
        assert cabin_booking.payment_date >= before

    @pytest.mark.asyncio
    async def test_payment_failed_fails_transaction_and_booking(
        self, client, razorpay_settings, booking_transaction, cabin_booking
    ):
        event = payment_event("payment.failed", "pay_002", booking_transaction.razorpay_order_id, method=None)

        response = await post_event(client, event)

        assert response.status_code == 200
        assert booking_transaction.status == TransactionStatus.FAILED
        assert booking_transaction.razorpay_payment_id == "pay_002"
        assert cabin_booking.payment_status == BookingStatus.FAILED
        assert cabin_booking.status == BookingStatus.FAILED

    @pytest.mark.asyncio
    async def test_hostel_booking_is_synchronized(self, client, db_session, razorpay_settings):
        booking = await create_booking(db_session, model=HostelBooking)
        transaction = await create_transaction(db_session, booking)
        event = payment_event("payment.captured", "pay_003", transaction.razorpay_order_id)

        response = await post_event(client, event)

        assert response.status_code == 200
        assert booking.status == BookingStatus.COMPLETED
        assert booking.payment_status == BookingStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_payment_authorized_keeps_transaction_pending(
        self, client, razorpay_settings, booking_transaction, cabin_booking
    ):
        event = payment_event("payment.authorized", "pay_004", booking_transaction.razorpay_order_id, method="card")

        response = await post_event(client, event)

        assert response.status_code == 200
        assert booking_transaction.status == TransactionStatus.PENDING
        assert booking_transaction.razorpay_payment_id == "pay_004"
        assert booking_transaction.payment_method == "card"
        assert cabin_booking.status == BookingStatus.PENDING
        assert cabin_booking.payment_status == BookingStatus.PENDING

    @pytest.mark.asyncio
    async def test_order_paid_records_order_and_payment(
        self, client, razorpay_settings, booking_transaction, cabin_booking
    ):
        order_id = booking_transaction.razorpay_order_id
        event = order_paid_event(order_id, "pay_005", method="netbanking")

        response = await post_event(client, event)

        assert response.status_code == 200
        assert booking_transaction.status == TransactionStatus.COMPLETED
        assert booking_transaction.razorpay_payment_id == "pay_005"
        assert booking_transaction.payment_method == "netbanking"
        assert booking_transaction.payment_response["order"]["id"] == order_id
        assert booking_transaction.payment_response["payment"]["id"] == "pay_005"
        assert cabin_booking.status == BookingStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_transaction_located_by_payment_id(self, client, db_session, razorpay_settings, cabin_booking):
        transaction = await create_transaction(
            db_session, cabin_booking, razorpay_order_id=None, razorpay_payment_id="pay_006"
        )
        event = payment_event("payment.captured", "pay_006", "order_unknown")

        response = await post_event(client, event)

        assert response.status_code == 200
        assert transaction.status == TransactionStatus.COMPLETED


@pytest.mark.integration
class TestRenewalPayments:

    @pytest.mark.asyncio
    async def test_renewal_extends_booking(self, client, razorpay_settings, renewal_transaction, cabin_booking):
        event = payment_event("payment.captured", "pay_101", renewal_transaction.razorpay_order_id)

        response = await post_event(client, event)

        assert response.status_code == 200
        assert renewal_transaction.status == TransactionStatus.COMPLETED
        assert cabin_booking.end_date.date() == datetime(2025, 2, 28).date()
        assert cabin_booking.months == 2
        assert cabin_booking.total_price == 2000
        assert len(cabin_booking.renewal_history) == 1

        entry = cabin_booking.renewal_history[0]
        assert entry["previousAmount"] == 1000
        assert entry["additionalAmount"] == 1000
        assert entry["additionalMonths"] == 1
        assert entry["transactionId"] == str(renewal_transaction.id)
        assert entry["renewedBy"] == str(renewal_transaction.user_id)
        assert cabin_booking.coupons_history == []

    @pytest.mark.asyncio
    async def test_renewal_with_coupon_appends_coupon_history(self, client, db_session, razorpay_settings, cabin_booking):
        transaction = await create_transaction(
            db_session,
            cabin_booking,
            transaction_type=TransactionType.RENEWAL,
            amount=1000,
            additional_months=1,
            previous_end_date=datetime(2025, 1, 31, tzinfo=timezone.utc),
            new_end_date=datetime(2025, 2, 28, tzinfo=timezone.utc),
            applied_coupon={"couponCode": "SAVE10", "discountAmount": 100, "couponType": "fixed", "couponValue": 100},
        )
        event = payment_event("payment.captured", "pay_102", transaction.razorpay_order_id)

        response = await post_event(client, event)

        assert response.status_code == 200
        assert len(cabin_booking.coupons_history) == 1
        coupon = cabin_booking.coupons_history[0]
        assert coupon["couponCode"] == "SAVE10"
        assert coupon["transactionType"] == "renewal"
        assert coupon["transactionId"] == str(transaction.id)
        assert coupon["discountAmount"] == 100

    @pytest.mark.asyncio
    async def test_failed_renewal_leaves_booking_untouched(
        self, client, razorpay_settings, renewal_transaction, cabin_booking
    ):
        cabin_booking_status = cabin_booking.status
        event = payment_event("payment.failed", "pay_103", renewal_transaction.razorpay_order_id, method=None)

        response = await post_event(client, event)

        assert response.status_code == 200
        assert renewal_transaction.status == TransactionStatus.FAILED
        assert cabin_booking.end_date.date() == datetime(2025, 1, 31).date()
        assert cabin_booking.months == 1
        assert cabin_booking.total_price == 1000
        assert cabin_booking.status == cabin_booking_status
        assert cabin_booking.renewal_history == []

    @pytest.mark.asyncio
    async def test_redelivered_capture_is_applied_once(
        self, client, razorpay_settings, renewal_transaction, cabin_booking
    ):
        event = payment_event("payment.captured", "pay_104", renewal_transaction.razorpay_order_id)

        first = await post_event(client, event)
        second = await post_event(client, event)

        assert first.status_code == 200
        assert second.status_code == 200
        assert cabin_booking.total_price == 2000
        assert cabin_booking.months == 2
        assert len(cabin_booking.renewal_history) == 1

    @pytest.mark.asyncio
    async def test_capture_then_order_paid_is_applied_once(
        self, client, razorpay_settings, renewal_transaction, cabin_booking
    ):
        order_id = renewal_transaction.razorpay_order_id

        await post_event(client, payment_event("payment.captured", "pay_105", order_id))
        await post_event(client, order_paid_event(order_id, "pay_105"))

        assert cabin_booking.total_price == 2000
        assert len(cabin_booking.renewal_history) == 1


@pytest.mark.integration
class TestIgnoredDeliveries:

    @pytest.mark.asyncio
    async def test_unknown_event_is_acknowledged_without_writes(
        self, client, razorpay_settings, booking_transaction, cabin_booking
    ):
        event = {"event": "refund.processed", "payload": {"refund": {"entity": {"id": "rfnd_1"}}}}

        response = await post_event(client, event)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert booking_transaction.status == TransactionStatus.PENDING
        assert booking_transaction.razorpay_payment_id is None
        assert cabin_booking.status == BookingStatus.PENDING

    @pytest.mark.asyncio
    async def test_missing_transaction_is_acknowledged(self, client, razorpay_settings, booking_transaction):
        event = payment_event("payment.captured", "pay_999", "order_not_ours")

        response = await post_event(client, event)

        assert response.status_code == 200
        assert booking_transaction.status == TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_capture_after_failure_is_not_applied(
        self, client, db_session, razorpay_settings, cabin_booking
    ):
        transaction = await create_transaction(db_session, cabin_booking, status=TransactionStatus.FAILED)
        event = payment_event("payment.captured", "pay_201", transaction.razorpay_order_id)

        response = await post_event(client, event)

        assert response.status_code == 200
        assert transaction.status == TransactionStatus.FAILED
        assert transaction.razorpay_payment_id is None
        assert cabin_booking.status == BookingStatus.PENDING

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [None, [], "refund"])
    async def test_unknown_event_with_any_payload_is_acknowledged(self, client, razorpay_settings, payload):
        event = {"event": "refund.processed", "payload": payload}

        response = await post_event(client, event)

        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.asyncio
    async def test_unknown_event_counted_under_shared_label(self, client, razorpay_settings):
        labels = {"event": "other", "result": "ignored"}
        before = REGISTRY.get_sample_value("webhook_events_total", labels) or 0

        await post_event(client, {"event": "virtual_account.credited", "payload": {}})
        await post_event(client, {"event": "invoice.paid", "payload": {}})

        assert REGISTRY.get_sample_value("webhook_events_total", labels) == before + 2
        assert REGISTRY.get_sample_value(
            "webhook_events_total", {"event": "invoice.paid", "result": "ignored"}
        ) is None

    @pytest.mark.asyncio
    async def test_known_event_without_payload_is_malformed(self, client, razorpay_settings):
        response = await post_event(client, {"event": "payment.captured", "payload": None})

        assert response.status_code == 500
        assert "payload" in response.json()["error"]


@pytest.mark.integration
class TestProcessingFailures:

    @pytest.mark.asyncio
    async def test_malformed_payload_returns_diagnostic(self, client, razorpay_settings):
        event = {"event": "payment.captured", "payload": {"payment": {"entity": {"method": "upi"}}}}

        response = await post_event(client, event)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Webhook processing failed"
        assert "payload.payment.entity.id" in body["error"]

    @pytest.mark.asyncio
    async def test_non_json_body_returns_server_error(self, client, razorpay_settings):
        body = b"not json"

        response = await client.post(WEBHOOK_URL, content=body, headers={"X-Razorpay-Signature": sign(body)})

        assert response.status_code == 500
        assert response.json()["success"] is False


@pytest.mark.integration
class TestEventLocking:

    @pytest.mark.asyncio
    async def test_delivery_holds_lock_on_order(self, client, razorpay_settings, booking_transaction):
        from reconciler.main import app
        from reconciler.api.deps import get_event_lock
        from reconciler.core.locks import EventLock

        redis_manager = AsyncMock()
        redis_manager.acquire_lock.return_value = "lock-token"
        app.dependency_overrides[get_event_lock] = lambda: EventLock(redis_manager, ttl=30, wait_seconds=0.1)

        order_id = booking_transaction.razorpay_order_id
        response = await post_event(client, payment_event("payment.captured", "pay_301", order_id))

        assert response.status_code == 200
        redis_manager.acquire_lock.assert_awaited_once_with(f"webhook:razorpay:{order_id}", ttl=30)
        redis_manager.release_lock.assert_awaited_once_with(f"webhook:razorpay:{order_id}", "lock-token")

    @pytest.mark.asyncio
    async def test_lock_timeout_returns_server_error(self, client, razorpay_settings, booking_transaction):
        from reconciler.main import app
        from reconciler.api.deps import get_event_lock
        from reconciler.core.locks import EventLock

        redis_manager = AsyncMock()
        redis_manager.acquire_lock.return_value = None
        app.dependency_overrides[get_event_lock] = lambda: EventLock(redis_manager, ttl=30, wait_seconds=0.05)

        event = payment_event("payment.captured", "pay_302", booking_transaction.razorpay_order_id)
        response = await post_event(client, event)

        assert response.status_code == 500
        assert "Failed to acquire lock" in response.json()["error"]
        assert booking_transaction.status == TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_release_failure_after_commit_is_acknowledged(
        self, client, razorpay_settings, booking_transaction, cabin_booking
    ):
        from reconciler.main import app
        from reconciler.api.deps import get_event_lock
        from reconciler.core.locks import EventLock

        redis_manager = AsyncMock()
        redis_manager.acquire_lock.return_value = "lock-token"
        redis_manager.release_lock.side_effect = ConnectionError("Circuit breaker is open")
        app.dependency_overrides[get_event_lock] = lambda: EventLock(redis_manager, ttl=30, wait_seconds=0.1)

        event = payment_event("payment.captured", "pay_303", booking_transaction.razorpay_order_id)
        response = await post_event(client, event)

        assert response.status_code == 200
        assert booking_transaction.status == TransactionStatus.COMPLETED
        assert cabin_booking.status == BookingStatus.COMPLETED
        redis_manager.release_lock.assert_awaited_once()
