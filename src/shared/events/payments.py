"""Cross-domain event contracts for Payments domain events.

Dispatch consumes these from the ``payments::payment`` stream: a captured
payment confirms the order, a completed refund cancels it. They are
registered as external events via dispatch.register_external_event() with
matching __type__ strings so Protean's stream deserialization works.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Float, Identifier, String


class PaymentSucceeded(BaseEvent):
    """Payment was successfully captured by the gateway."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    gateway_transaction_id = String(required=True)
    succeeded_at = DateTime(required=True)


class RefundCompleted(BaseEvent):
    """A refund was completed by the gateway."""

    __version__ = 1

    payment_id = Identifier(required=True)
    refund_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    gateway_refund_id = String(required=True)
    completed_at = DateTime(required=True)
