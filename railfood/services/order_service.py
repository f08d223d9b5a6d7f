# railfood/services/order_service.py
from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, Optional

from railfood.domain.errors import ApiError
from railfood.domain.query import PageTracker, PageView, build_query
from railfood.domain.schemas import (
    Order,
    OrderStatus,
    PaymentStatus,
    Role,
    SessionContext,
)
from railfood.domain.status import (
    Bucket,
    ensure_payment_transition,
    ensure_transition,
    next_allowed_payment_statuses,
    next_allowed_statuses,
)
from railfood.services.api_client import ApiClient
from railfood.services.lock_service import LockService
from railfood.services.order_board import OrderBoard
from railfood.utils.settings import DEFAULT_PAGE_SIZE
from railfood.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_FILTER_KEYS = ("vendorId", "startDate", "endDate")

_LIST_PATHS = {
    Role.ADMIN: {
        Bucket.ACTIVE: "/admin/orders/active",
        Bucket.HISTORICAL: "/admin/orders/historical",
    },
    Role.VENDOR: {
        Bucket.ACTIVE: "/orders/vendor/active",
        Bucket.HISTORICAL: "/orders/vendor/historical",
    },
}


@dataclass(frozen=True)
class OrderListing:
    active: PageView[Order]
    historical: PageView[Order]


class OrderService:
    """
    Dashboard zamowien dla admina i vendora.
    - listowanie (active / historical) ze stronicowaniem i filtrami
    - zmiana statusu zamowienia i statusu platnosci COD
    - maszyna stanow sprawdzana przed wyslaniem requestu
    - mutacje tego samego zamowienia serializowane
    """

    def __init__(
        self,
        api: ApiClient,
        session: SessionContext,
        board: Optional[OrderBoard] = None,
        lock_service: Optional[LockService] = None,
        lookups=None,
    ):
        if session.role not in _LIST_PATHS:
            raise PermissionError("Order dashboard is available to admins and vendors only")
        if session.role is Role.VENDOR and session.vendor_id is None:
            #bez vendorId lista nie bylaby zawezona
            raise PermissionError("Vendor session has no vendor id")
        self.api = api
        self.session = session
        self.board = board or OrderBoard()
        self.lock_service = lock_service or LockService()
        self.lookups = lookups
        self._trackers = {
            Bucket.ACTIVE: PageTracker(Order.model_validate),
            Bucket.HISTORICAL: PageTracker(Order.model_validate),
        }

    @property
    def is_admin(self) -> bool:
        return self.session.role is Role.ADMIN

    # =====================================================
    # QUERY
    # =====================================================
    def _filters_for_role(self, filters: Optional[Mapping[str, Any]]) -> dict:
        scoped = {k: v for k, v in (filters or {}).items() if k in ORDER_FILTER_KEYS}
        if self.session.role is Role.VENDOR:
            #vendor widzi tylko swoje zamowienia
            scoped["vendorId"] = self.session.vendor_id
        return scoped

    def _fetch_page(
        self,
        bucket: Bucket,
        filters: Mapping[str, Any],
        page_number: int,
        page_size: int,
    ) -> PageView[Order]:
        query = build_query(_LIST_PATHS[self.session.role][bucket], filters, page_number, page_size)
        try:
            envelope = self.api.get(query.path, params=query.params) or {}
        except ApiError as e:
            logger.error(f"Failed to fetch {bucket.value} orders: {e}")
            envelope = {}
        return self._trackers[bucket].parse_response(envelope, page_number)

    def load(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> OrderListing:
        scoped = self._filters_for_role(filters)
        active = self._fetch_page(Bucket.ACTIVE, scoped, page_number, page_size)
        historical = self._fetch_page(Bucket.HISTORICAL, scoped, page_number, page_size)

        orders = active.items + historical.items
        if self.lookups is not None and orders:
            orders = self.lookups.enrich_orders(orders)
        self.board.replace(orders)

        logger.info(
            f"Loaded {len(active.items)} active and {len(historical.items)} historical orders"
        )
        return OrderListing(
            active=PageView(items=self.board.active, meta=active.meta),
            historical=PageView(items=self.board.historical, meta=historical.meta),
        )

    def get_order(self, order_id: int) -> Order:
        data = self.api.get(f"/orders/{order_id}", fallback="Failed to load order details")
        return Order.model_validate(data)

    def _require_loaded(self, order_id: int) -> Order:
        order = self.board.find(order_id)
        if order is None:
            raise ValueError(f"Order {order_id} is not loaded")
        return order

    def available_statuses(self, order_id: int) -> FrozenSet[OrderStatus]:
        order = self._require_loaded(order_id)
        return next_allowed_statuses(order.order_status, self.session.role)

    def available_payment_statuses(self, order_id: int) -> FrozenSet[PaymentStatus]:
        order = self._require_loaded(order_id)
        return next_allowed_payment_statuses(
            order.order_status, order.payment_method, order.payment_status, self.session.role
        )

    # =====================================================
    # COMMANDS
    # =====================================================
    def update_status(self, order_id: int, status: OrderStatus, remarks: str = "") -> Order:
        status = OrderStatus(status)

        with self.lock_service.hold(("order", order_id)):
            order = self._require_loaded(order_id)
            ensure_transition(order.order_status, status, self.session.role)

            logger.info(f"Updating order {order_id} status {order.order_status.value} -> {status.value}")
            if self.is_admin:
                data = self.api.put(
                    f"/admin/orders/{order_id}/status",
                    json={"status": status.value, "remarks": remarks or ""},
                    fallback="Failed to update order status.",
                )
            else:
                data = self.api.put(
                    f"/orders/{order_id}/status",
                    params={
                        "status": status.value,
                        "remarks": remarks or "",
                        "updatedById": self.session.user_id,
                    },
                    fallback="Failed to update order status.",
                )

            confirmed = Order.model_validate(data).order_status if data else status
            return self.board.apply_status_update(order_id, confirmed)

    def update_cod_payment_status(
        self,
        order_id: int,
        payment_status: PaymentStatus,
        remarks: str = "",
    ) -> Order:
        payment_status = PaymentStatus(payment_status)

        with self.lock_service.hold(("order", order_id)):
            order = self._require_loaded(order_id)
            ensure_payment_transition(
                order.order_status,
                order.payment_method,
                order.payment_status,
                payment_status,
                self.session.role,
            )

            logger.info(f"Updating COD payment of order {order_id} to {payment_status.value}")
            if self.is_admin:
                data = self.api.put(
                    f"/admin/orders/{order_id}/cod-payment-status",
                    json={"paymentStatus": payment_status.value, "remarks": remarks or ""},
                    fallback="Failed to update COD payment status.",
                )
                confirmed = Order.model_validate(data).payment_status if data else payment_status
            else:
                self.api.post(
                    f"/orders/{order_id}/cod/complete",
                    params={"updatedById": self.session.user_id, "remarks": remarks or ""},
                    fallback="Failed to complete COD payment.",
                )
                confirmed = PaymentStatus.COMPLETED

            #status zamowienia zostaje bez zmian
            return self.board.apply_payment_update(order_id, confirmed)
