"""
Razorpay webhook payloads

Bodies are parsed in two steps: the envelope first, so unknown event kinds
can be acknowledged without looking at their payload, then the known kinds
into one tagged variant each.
"""

import json
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from reconciler.core.exceptions import WebhookPayloadError

PAYMENT_CAPTURED = "payment.captured"
PAYMENT_FAILED = "payment.failed"
PAYMENT_AUTHORIZED = "payment.authorized"
ORDER_PAID = "order.paid"

KNOWN_EVENTS = frozenset({PAYMENT_CAPTURED, PAYMENT_FAILED, PAYMENT_AUTHORIZED, ORDER_PAID})


class GatewayEntity(BaseModel):
    # Provider-specific fields are kept and stored with the transaction
    model_config = ConfigDict(extra="allow")

    id: str

    def raw(self) -> Dict[str, Any]:
        return {**self.model_dump(exclude_unset=True), **(self.model_extra or {})}


class PaymentEntity(GatewayEntity):
    order_id: Optional[str] = None
    method: Optional[str] = None
    amount: Optional[int] = None
    status: Optional[str] = None


class OrderEntity(GatewayEntity):
    amount: Optional[int] = None
    status: Optional[str] = None


class PaymentContainer(BaseModel):
    entity: PaymentEntity


class OrderContainer(BaseModel):
    entity: OrderEntity


class PaymentPayload(BaseModel):
    payment: PaymentContainer


class OrderPaidPayload(BaseModel):
    order: OrderContainer
    payment: PaymentContainer


class PaymentCapturedEvent(BaseModel):
    event: Literal["payment.captured"]
    payload: PaymentPayload

    @property
    def payment(self) -> PaymentEntity:
        return self.payload.payment.entity


class PaymentFailedEvent(BaseModel):
    event: Literal["payment.failed"]
    payload: PaymentPayload

    @property
    def payment(self) -> PaymentEntity:
        return self.payload.payment.entity


class PaymentAuthorizedEvent(BaseModel):
    event: Literal["payment.authorized"]
    payload: PaymentPayload

    @property
    def payment(self) -> PaymentEntity:
        return self.payload.payment.entity


class OrderPaidEvent(BaseModel):
    event: Literal["order.paid"]
    payload: OrderPaidPayload

    @property
    def order(self) -> OrderEntity:
        return self.payload.order.entity

    @property
    def payment(self) -> PaymentEntity:
        return self.payload.payment.entity


GatewayEvent = Annotated[
    Union[PaymentCapturedEvent, PaymentFailedEvent, PaymentAuthorizedEvent, OrderPaidEvent],
    Field(discriminator="event"),
]

gateway_event_adapter = TypeAdapter(GatewayEvent)


class WebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    event: str
    # Only known kinds have their payload validated, in parse_event
    payload: Any = None


def parse_envelope(raw_body: bytes) -> WebhookEnvelope:
    """Parse the outer `{event, payload}` object"""
    try:
        return WebhookEnvelope.model_validate(json.loads(raw_body))
    except (ValueError, PydanticValidationError) as e:
        # json.JSONDecodeError is a ValueError
        errors = e.errors(include_url=False) if isinstance(e, PydanticValidationError) else []
        raise WebhookPayloadError("webhook", str(e).splitlines()[0], errors) from e


def parse_event(envelope: WebhookEnvelope) -> GatewayEvent:
    """Validate a known event kind into its tagged variant"""
    try:
        return gateway_event_adapter.validate_python(envelope.model_dump())
    except PydanticValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"][1:]) + f" ({error['msg']})"
            for error in e.errors()
        )
        raise WebhookPayloadError(envelope.event, fields, e.errors(include_url=False)) from e
