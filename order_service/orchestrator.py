# order_service/orchestrator.py
import asyncio
import enum
import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from order_service.errors import Conflict, InvalidRequest, OrderServiceError, PersistenceError
from order_service.models import CUSTOMER_FIELDS, Order, OrderData, PaymentVerification, order_summary
from order_service.notifications import NotificationDispatcher
from order_service.payment import PaymentVerifier
from order_service.realtime import NEW_ORDER, Broadcaster
from order_service.store import OrderStore

logger = logging.getLogger(__name__)


class Stage(enum.Enum):
    RECEIVED = "received"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    REJECTED = "rejected"
    PERSISTED = "persisted"
    NOTIFIED = "notified"
    RESPONDED = "responded"


class OrderSubmission:
    """Turns a verified payment into a stored, announced order.

    The flow is strictly linear: verify, persist, notify, respond. Anything
    failing before the write rejects the submission and nothing is stored.
    Notification failures after the write are only logged.
    """

    def __init__(
        self,
        verifier: PaymentVerifier,
        store: OrderStore,
        dispatcher: NotificationDispatcher,
        broadcaster: Broadcaster,
    ):
        self.verifier = verifier
        self.store = store
        self.dispatcher = dispatcher
        self.broadcaster = broadcaster

    def _enter(self, reference: Optional[str], stage: Stage) -> None:
        logger.info(f"Submission {reference or '<none>'}: {stage.value}")

    @staticmethod
    def build_order(reference: str, order_data: OrderData, payment: PaymentVerification) -> Order:
        # the client's totalAmount is ignored, the gateway amount is authoritative
        fields = {name: getattr(order_data, name) for name in CUSTOMER_FIELDS}
        return Order(
            reference=reference,
            items=order_data.items or [],
            totalAmount=payment.amount,
            status="paid",
            **fields,
        )

    @staticmethod
    def parse_order_data(order_data: Union[OrderData, dict[str, Any], None]) -> OrderData:
        if isinstance(order_data, OrderData):
            return order_data
        if not isinstance(order_data, dict):
            raise InvalidRequest("Missing order data")
        try:
            return OrderData.model_validate(order_data)
        except ValidationError as e:
            raise InvalidRequest("Invalid order data", str(e)) from e

    async def submit(self, reference: Optional[str], order_data: Union[OrderData, dict[str, Any], None]) -> Order:
        self._enter(reference, Stage.RECEIVED)
        try:
            if not reference:
                raise InvalidRequest("Missing payment reference")
            # payload shape is settled before any money is checked
            order_data = self.parse_order_data(order_data)

            self._enter(reference, Stage.VERIFYING)
            payment = await asyncio.to_thread(self.verifier.verify, reference)
            self._enter(reference, Stage.VERIFIED)

            order = self.build_order(reference, order_data, payment)
            try:
                order = await asyncio.to_thread(self.store.create, order)
            except (Conflict, PersistenceError):
                raise
            except Exception as e:
                raise PersistenceError("Error saving order. Please try again.", str(e)) from e
        except OrderServiceError as e:
            self._enter(reference, Stage.REJECTED)
            logger.warning(f"Submission {reference or '<none>'} rejected: {e.message}")
            raise
        self._enter(reference, Stage.PERSISTED)

        summary = order_summary(order)
        outcome, delivered = await asyncio.gather(
            self.dispatcher.dispatch(summary),
            self.broadcaster.broadcast(NEW_ORDER, summary),
        )
        logger.info(f"Submission {reference}: notifications {outcome}, dashboards reached {delivered}")
        self._enter(reference, Stage.NOTIFIED)

        self._enter(reference, Stage.RESPONDED)
        return order
