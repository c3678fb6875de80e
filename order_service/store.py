# order_service/store.py
import json
import logging
import os
import threading
from typing import Optional

from order_service.errors import Conflict, NotFound, PersistenceError
from order_service.models import Order, now_utc

logger = logging.getLogger(__name__)


class OrderStore:
    """Order documents kept in memory, optionally mirrored to a JSON file.

    Every operation runs under one lock, so single create/update/delete calls
    are atomic. Nothing spans calls. Callers always get copies back.
    """

    def __init__(self, path: Optional[str] = None, unique_references: bool = False):
        self.path = path
        self.unique_references = unique_references
        self._lock = threading.Lock()
        # Local in-memory order store, insertion ordered
        self._orders: dict[str, Order] = {}
        if path:
            self._load()

    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                documents = json.load(f)
            if not isinstance(documents, list):
                raise TypeError(f"expected a list of orders, got {type(documents).__name__}")
            orders = [Order.model_validate(doc) for doc in documents]
        except (OSError, ValueError, TypeError) as e:
            # pydantic's ValidationError is a ValueError
            raise PersistenceError("Error reading order store", str(e)) from e
        for order in orders:
            self._orders[order.id] = order
        logger.info(f"Loaded {len(self._orders)} orders from {self.path}")

    def _flush(self) -> None:
        # caller holds the lock
        if not self.path:
            return
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump([o.to_json() for o in self._orders.values()], f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError("Error writing order store", str(e)) from e

    def _first_with_reference(self, reference: str) -> Optional[Order]:
        for order in self._orders.values():
            if order.reference == reference:
                return order
        return None

    def create(self, order: Order) -> Order:
        with self._lock:
            if self.unique_references and self._first_with_reference(order.reference):
                raise Conflict(f"Order with reference {order.reference} already exists")
            stored = order.model_copy(deep=True)
            self._orders[stored.id] = stored
            try:
                self._flush()
            except PersistenceError:
                del self._orders[stored.id]
                raise
            logger.info(f"Stored order {stored.id} (reference {stored.reference})")
            return stored.model_copy(deep=True)

    def find_all(self) -> list[Order]:
        with self._lock:
            orders = [o.model_copy(deep=True) for o in reversed(self._orders.values())]
        # stable sort: equal timestamps keep newest-inserted first
        return sorted(orders, key=lambda o: o.createdAt, reverse=True)

    def find_by_reference(self, reference: str) -> Order:
        with self._lock:
            order = self._first_with_reference(reference)
            if order is None:
                raise NotFound("Order not found")
            return order.model_copy(deep=True)

    def update_status(self, reference: str, status: str) -> Order:
        with self._lock:
            current = self._first_with_reference(reference)
            if current is None:
                raise NotFound("Order not found")
            changes = {"status": status}
            label = status.lower()
            if label == "delivered":
                changes["deliveredAt"] = now_utc()
            elif label == "dispatched":
                changes["dispatchedAt"] = now_utc()
            updated = current.model_copy(update=changes, deep=True)
            self._orders[updated.id] = updated
            try:
                self._flush()
            except PersistenceError:
                self._orders[current.id] = current
                raise
            return updated.model_copy(deep=True)

    def delete(self, order_id: str) -> Order:
        """Remove by document id, falling back to the payment reference."""
        with self._lock:
            order = self._orders.get(order_id) or self._first_with_reference(order_id)
            if order is None:
                raise NotFound("Order not found")
            del self._orders[order.id]
            try:
                self._flush()
            except PersistenceError:
                self._orders[order.id] = order
                raise
            logger.info(f"Deleted order {order.id} (reference {order.reference})")
            return order
