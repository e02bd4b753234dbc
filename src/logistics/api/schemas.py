"""Pydantic API schemas for the logistics domain.

These are the external API contracts, separate from domain commands.
The API layer translates between these schemas and domain commands.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas: shipments
# ---------------------------------------------------------------------------
class PackageRequest(BaseModel):
    description: str
    weight: float = Field(ge=0)
    length: float | None = Field(default=None, ge=0)
    width: float | None = Field(default=None, ge=0)
    height: float | None = Field(default=None, ge=0)
    special_instructions: str | None = None
    is_fragile: bool = False
    insurance_amount: float | None = Field(default=None, ge=0)
    declared_value: float | None = Field(default=None, ge=0)


class BookShipmentRequest(BaseModel):
    sender_id: str | None = None
    receiver_id: str
    agent_id: str | None = None
    pickup_address: str
    delivery_address: str
    packages: list[PackageRequest]
    shipment_fee: float | None = Field(default=None, ge=0)
    total_amount: float | None = Field(default=None, ge=0)
    special_instructions: str | None = None
    is_business_courier: bool = False
    location: str | None = None


class TransitionStatusRequest(BaseModel):
    status: str
    location: str | None = None
    notes: str | None = None


class RecordPickupRequest(BaseModel):
    location: str | None = None
    notes: str | None = None
    photos: list[str] = []


class RecordDeliveryRequest(BaseModel):
    delivery_type: str = "delivered"
    location: str | None = None
    notes: str | None = None
    signature: str | None = None
    photos: list[str] = []


class RecordEventRequest(BaseModel):
    event_type: str
    location: str | None = None
    description: str | None = None
    details: dict[str, Any] | None = None
    timestamp: datetime | None = None


class ReassignAgentRequest(BaseModel):
    agent_id: str


class UpdatePackageRequest(BaseModel):
    description: str | None = None
    weight: float | None = Field(default=None, ge=0)
    length: float | None = Field(default=None, ge=0)
    width: float | None = Field(default=None, ge=0)
    height: float | None = Field(default=None, ge=0)
    special_instructions: str | None = None
    is_fragile: bool | None = None
    insurance_amount: float | None = Field(default=None, ge=0)
    declared_value: float | None = Field(default=None, ge=0)


class AddPhotoRequest(BaseModel):
    photo: str


# ---------------------------------------------------------------------------
# Request schemas: assignments
# ---------------------------------------------------------------------------
class CreateAssignmentRequest(BaseModel):
    shipment_id: str
    driver_id: str
    assignment_type: str
    vehicle_id: str | None = None
    notes: str | None = None
    estimated_duration: int | None = Field(default=None, ge=0)


class StartAssignmentRequest(BaseModel):
    location: str | None = None


class CompleteAssignmentRequest(BaseModel):
    notes: str | None = None


class CloseAssignmentRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Request schemas: payments
# ---------------------------------------------------------------------------
class CreatePaymentRequest(BaseModel):
    shipment_id: str
    payment_type: str
    payment_method: str
    amount: float = Field(ge=0)
    gateway_response: dict[str, Any] | None = None


class CompletePaymentRequest(BaseModel):
    gateway_response: dict[str, Any] | None = None


class FailPaymentRequest(BaseModel):
    reason: str | None = None
    gateway_response: dict[str, Any] | None = None


class RefundPaymentRequest(BaseModel):
    reason: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class SuccessResponse(BaseModel):
    success: bool = True
    data: Any = None


class ErrorDetail(BaseModel):
    kind: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail
