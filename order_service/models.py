# order_service/models.py
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from common.ids import new_order_id

# Customer fields copied from the client payload onto the order.
CUSTOMER_FIELDS = ("name", "email", "phone", "address", "junction")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Order(BaseModel):
    id: str = Field(default_factory=new_order_id)
    reference: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    junction: Optional[str] = None
    items: list[Any] = Field(default_factory=list)
    totalAmount: float = 0
    # pending, paid, processing, dispatched, delivered; not enforced
    status: str = "pending"
    createdAt: datetime = Field(default_factory=now_utc)
    dispatchedAt: Optional[datetime] = None
    deliveredAt: Optional[datetime] = None

    def to_json(self) -> dict:
        return self.model_dump(mode="json")


class PaymentVerification(BaseModel):
    reference: str
    status: str
    amount_minor: int
    amount: float


class OrderData(BaseModel):
    """Client order payload. Shape is checked before the payment gateway is called."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    junction: Optional[str] = None
    items: Optional[list[Any]] = None
    # informational only, the verified gateway amount wins
    totalAmount: Optional[float] = None


class VerifyPaymentRequest(BaseModel):
    # Presence is checked by the orchestrator so a missing field is a 400, not a 422.
    model_config = ConfigDict(extra="ignore")

    reference: Optional[str] = None
    orderData: Optional[OrderData] = None


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None


def order_summary(order: Order) -> dict:
    """Read-only projection handed to the dispatcher and the dashboards."""
    return {
        "customer": order.name,
        "phone": order.phone,
        "totalAmount": order.totalAmount,
        "reference": order.reference,
        "time": order.createdAt.isoformat(),
        "status": order.status,
    }
