"""External collaborators the checkout talks to after an order exists."""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from storefront.ordering.order.order import Order
from storefront.utils.logging import get_logger


class Notifier(Protocol):
    def order_confirmed(self, order: Order) -> None: ...


class LoggingNotifier:
    """Default notifier: records the confirmation in the log only."""

    def __init__(self, logger=None):
        self._logger = logger or get_logger(__name__)

    def order_confirmed(self, order: Order) -> None:
        self._logger.info("order_confirmation_sent", order_id=order.id, email=order.email, total=order.total)


@dataclass(frozen=True)
class ReconciliationItem:
    """Money moved but no order was written."""

    transaction_id: str
    order_ref: str
    user_id: str
    amount: float
    payment_method: str
    reason: str
    raised_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class OperatorQueue(Protocol):
    def escalate(self, item: ReconciliationItem) -> None: ...


class LoggingOperatorQueue:
    """Keeps unresolved reconciliation items in memory and logs them at error level."""

    def __init__(self, logger=None):
        self._logger = logger or get_logger(__name__)
        self._pending: list[ReconciliationItem] = []
        self._lock = threading.Lock()

    def escalate(self, item: ReconciliationItem) -> None:
        with self._lock:
            self._pending.append(item)
        self._logger.error(
            "reconciliation_required",
            transaction_id=item.transaction_id,
            order_ref=item.order_ref,
            user_id=item.user_id,
            amount=item.amount,
            payment_method=item.payment_method,
            reason=item.reason,
        )

    @property
    def pending(self) -> list[ReconciliationItem]:
        with self._lock:
            return list(self._pending)

    def resolve(self, transaction_id: str) -> bool:
        with self._lock:
            before = len(self._pending)
            self._pending = [i for i in self._pending if i.transaction_id != transaction_id]
            return len(self._pending) < before
