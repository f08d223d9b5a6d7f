# railfood/services/order_board.py
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from railfood.domain.schemas import Order, OrderStatus, PaymentStatus
from railfood.domain.status import Bucket, bucket_for
from railfood.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BoardSummary:
    active_count: int
    historical_count: int
    delivered_revenue: Decimal


class OrderBoard:
    """
    Dwa rozlaczne kubelki zamowien widoczne na dashboardzie: active i historical.
    Po aktualizacji statusu zamowienie jest lokalnie przenoszone / podmieniane,
    bez ponownego pobierania calej listy.
    """

    def __init__(self, orders: Iterable[Order] = ()):
        self._lock = threading.Lock()
        self._active: List[Order] = []
        self._historical: List[Order] = []
        self.replace(orders)

    @property
    def active(self) -> List[Order]:
        with self._lock:
            return list(self._active)

    @property
    def historical(self) -> List[Order]:
        with self._lock:
            return list(self._historical)

    def replace(self, orders: Iterable[Order]) -> None:
        """Kubelek liczony ze statusu, nie z endpointu z ktorego przyszlo zamowienie."""
        active: List[Order] = []
        historical: List[Order] = []
        seen = set()
        for order in orders:
            if order.order_id in seen:
                continue
            seen.add(order.order_id)
            if bucket_for(order.order_status) is Bucket.HISTORICAL:
                historical.append(order)
            else:
                active.append(order)

        with self._lock:
            self._active = active
            self._historical = historical

    def find(self, order_id: int) -> Optional[Order]:
        with self._lock:
            located = self._locate(order_id)
            return located[2] if located else None

    def _locate(self, order_id: int) -> Optional[Tuple[List[Order], int, Order]]:
        for bucket in (self._active, self._historical):
            for index, order in enumerate(bucket):
                if order.order_id == order_id:
                    return bucket, index, order
        return None

    def apply_status_update(self, order_id: int, new_status: OrderStatus) -> Order:
        new_status = OrderStatus(new_status)
        with self._lock:
            located = self._locate(order_id)
            if located is None:
                raise ValueError(f"Order {order_id} is not on the board")

            bucket, index, order = located
            updated = order.model_copy(update={"order_status": new_status})
            target = self._historical if new_status.is_terminal else self._active

            if bucket is target:
                bucket[index] = updated
            else:
                del bucket[index]
                target.append(updated)
                logger.info(f"Order {order_id} moved to {bucket_for(new_status).value} orders")

            return updated

    def apply_payment_update(self, order_id: int, payment_status: PaymentStatus) -> Order:
        payment_status = PaymentStatus(payment_status)
        with self._lock:
            located = self._locate(order_id)
            if located is None:
                raise ValueError(f"Order {order_id} is not on the board")

            bucket, index, order = located
            updated = order.model_copy(update={"payment_status": payment_status})
            bucket[index] = updated
            return updated

    def summary(self) -> BoardSummary:
        with self._lock:
            revenue = sum(
                (o.final_amount for o in self._historical if o.order_status is OrderStatus.DELIVERED),
                Decimal("0.00"),
            )
            return BoardSummary(
                active_count=len(self._active),
                historical_count=len(self._historical),
                delivered_revenue=revenue,
            )
