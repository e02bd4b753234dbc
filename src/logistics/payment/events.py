"""Payment domain events."""

from protean.fields import DateTime, Float, Identifier, String, Text

from logistics.domain import logistics


@logistics.event(part_of="Payment")
class PaymentCreated:
    """A payment was opened against a shipment."""

    __version__ = 1

    payment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    user_id = Identifier(required=True)
    payment_type = String(required=True)
    payment_method = String(required=True)
    amount = Float(required=True)
    transaction_id = String(required=True)
    created_at = DateTime(required=True)


@logistics.event(part_of="Payment")
class PaymentCompleted:
    __version__ = 1

    payment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    user_id = Identifier(required=True)
    payment_type = String(required=True)
    amount = Float(required=True)
    transaction_id = String(required=True)
    completed_at = DateTime(required=True)


@logistics.event(part_of="Payment")
class PaymentFailed:
    __version__ = 1

    payment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    user_id = Identifier(required=True)
    payment_type = String(required=True)
    amount = Float(required=True)
    transaction_id = String(required=True)
    reason = Text()
    failed_at = DateTime(required=True)


@logistics.event(part_of="Payment")
class PaymentCancelled:
    __version__ = 1

    payment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    cancelled_at = DateTime(required=True)


@logistics.event(part_of="Payment")
class PaymentRefunded:
    __version__ = 1

    payment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    payment_type = String(required=True)
    amount = Float(required=True)
    reason = Text(required=True)
    refunded_at = DateTime(required=True)
