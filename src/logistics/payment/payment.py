"""Payment aggregate: money collected against a shipment.

State Machine:
    PENDING → COMPLETED → REFUNDED
    PENDING → FAILED
    PENDING → CANCELLED

Amounts are fixed-point with two decimal places. A rejected action raises
``InvalidState`` and leaves the payment untouched.
"""

import json
from enum import Enum

from protean.fields import DateTime, Decimal, Identifier, String, Text

from logistics.domain import logistics
from logistics.payment.events import (
    PaymentCancelled,
    PaymentCompleted,
    PaymentCreated,
    PaymentFailed,
    PaymentRefunded,
)
from logistics.shared.clock import now
from logistics.shared.errors import InvalidState, ValidationFailed
from logistics.shared.money import to_money


class PaymentType(Enum):
    SHIPMENT_FEE = "shipment_fee"
    PRODUCT_PAYMENT = "product_payment"
    RETURN_FEE = "return_fee"
    INSURANCE = "insurance"


class PaymentMethod(Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),  # terminal
    PaymentStatus.REFUNDED: set(),  # terminal
    PaymentStatus.CANCELLED: set(),  # terminal
}


def _parse(enum_cls, value, field: str):
    try:
        return value if isinstance(value, enum_cls) else enum_cls(value)
    except ValueError:
        raise ValidationFailed(f"{field}: unknown value '{value}'") from None


@logistics.aggregate
class Payment:
    shipment_id = Identifier(required=True)
    user_id = Identifier(required=True)
    payment_type = String(required=True, choices=PaymentType)
    payment_method = String(required=True, choices=PaymentMethod)
    amount = Decimal(required=True, min_value=0, precision=12, scale=2)
    transaction_id = String(required=True, max_length=30, unique=True)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_date = DateTime()
    gateway_response = Text()  # JSON
    refund_reason = Text()
    failure_reason = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        shipment_id: str,
        user_id: str,
        payment_type,
        payment_method,
        amount,
        transaction_id: str,
        gateway_response: dict | None = None,
    ):
        kind = _parse(PaymentType, payment_type, "payment_type")
        method = _parse(PaymentMethod, payment_method, "payment_method")
        value = to_money(amount, "amount")

        at = now()
        payment = cls(
            shipment_id=shipment_id,
            user_id=user_id,
            payment_type=kind.value,
            payment_method=method.value,
            amount=value,
            transaction_id=transaction_id,
            status=PaymentStatus.PENDING.value,
            created_at=at,
            updated_at=at,
        )
        payment._store_gateway_response(gateway_response)
        payment.raise_(
            PaymentCreated(
                payment_id=str(payment.id),
                shipment_id=shipment_id,
                user_id=user_id,
                payment_type=kind.value,
                payment_method=method.value,
                amount=float(value),
                transaction_id=transaction_id,
                created_at=at,
            )
        )
        return payment

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_shipment_fee(self) -> bool:
        return self.payment_type == PaymentType.SHIPMENT_FEE.value

    def can_be_refunded(self) -> bool:
        return self.status == PaymentStatus.COMPLETED.value

    def gateway_details(self) -> dict | None:
        return json.loads(self.gateway_response) if self.gateway_response else None

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: PaymentStatus, action: str) -> None:
        current = PaymentStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidState(f"Cannot {action} a payment that is {current.value}")

    def _store_gateway_response(self, gateway_response: dict | None) -> None:
        if gateway_response:
            self.gateway_response = json.dumps(gateway_response)

    def mark_as_completed(self, gateway_response: dict | None = None) -> None:
        self._assert_can_transition(PaymentStatus.COMPLETED, "complete")
        at = now()
        self.status = PaymentStatus.COMPLETED.value
        self.payment_date = at
        self.updated_at = at
        self._store_gateway_response(gateway_response)
        self.raise_(
            PaymentCompleted(
                payment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                user_id=str(self.user_id),
                payment_type=self.payment_type,
                amount=float(self.amount),
                transaction_id=self.transaction_id,
                completed_at=at,
            )
        )

    def mark_as_failed(self, reason: str | None = None, gateway_response: dict | None = None) -> None:
        self._assert_can_transition(PaymentStatus.FAILED, "fail")
        at = now()
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = reason
        self.updated_at = at
        self._store_gateway_response(gateway_response)
        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                user_id=str(self.user_id),
                payment_type=self.payment_type,
                amount=float(self.amount),
                transaction_id=self.transaction_id,
                reason=reason,
                failed_at=at,
            )
        )

    def cancel(self) -> None:
        self._assert_can_transition(PaymentStatus.CANCELLED, "cancel")
        at = now()
        self.status = PaymentStatus.CANCELLED.value
        self.updated_at = at
        self.raise_(
            PaymentCancelled(
                payment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                cancelled_at=at,
            )
        )

    def refund(self, reason: str) -> None:
        if not self.can_be_refunded():
            raise InvalidState(f"Cannot refund a payment that is {self.status}")
        if not reason:
            raise ValidationFailed("reason: a refund reason is required")

        at = now()
        self.status = PaymentStatus.REFUNDED.value
        self.refund_reason = reason
        self.updated_at = at
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                payment_type=self.payment_type,
                amount=float(self.amount),
                reason=reason,
                refunded_at=at,
            )
        )
