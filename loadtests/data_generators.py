"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the domain's validation rules and
match the field names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()


def actor_id(prefix: str) -> str:
    """Generate unique actor IDs like 'sender-lt-a1b2c3d4'."""
    return f"{prefix}-lt-{uuid.uuid4().hex[:8]}"


def address() -> str:
    return fake.address().replace("\n", ", ")


def package_data() -> dict:
    """Generate a PackageRequest payload with plausible dimensions (cm, kg)."""
    payload = {
        "description": fake.sentence(nb_words=3)[:500],
        "weight": round(random.uniform(0.1, 30.0), 2),
        "is_fragile": random.random() < 0.2,
    }
    if random.random() < 0.7:
        payload.update(
            {
                "length": round(random.uniform(5, 120), 1),
                "width": round(random.uniform(5, 80), 1),
                "height": round(random.uniform(2, 60), 1),
            }
        )
    if random.random() < 0.3:
        payload["declared_value"] = round(random.uniform(10, 2000), 2)
    return payload


def booking_data(sender_id: str, receiver_id: str, agent_id: str) -> dict:
    """Generate a BookShipmentRequest payload with 1-4 packages."""
    return {
        "sender_id": sender_id,
        "receiver_id": receiver_id,
        "agent_id": agent_id,
        "pickup_address": address(),
        "delivery_address": address(),
        "packages": [package_data() for _ in range(random.randint(1, 4))],
        "shipment_fee": round(random.uniform(5, 150), 2),
        "special_instructions": fake.sentence() if random.random() < 0.3 else None,
        "location": fake.city(),
    }


def payment_data(shipment_id: str, amount: float | None = None) -> dict:
    return {
        "shipment_id": shipment_id,
        "payment_type": "shipment_fee",
        "payment_method": random.choice(["cash", "card", "mobile_money", "bank_transfer"]),
        "amount": amount if amount is not None else round(random.uniform(5, 150), 2),
    }


def gateway_response() -> dict:
    return {"reference": uuid.uuid4().hex[:12], "approved_at": fake.iso8601()}


def tracking_event_data() -> dict:
    return {
        "event_type": "delivery_attempted",
        "location": fake.city(),
        "description": random.choice(["Nobody home", "Gate locked", "Address not found"]),
    }
