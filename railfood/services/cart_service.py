# railfood/services/cart_service.py
import threading
from typing import Dict, Optional, Tuple

from railfood.domain.errors import ApiError
from railfood.domain.schemas import AddItemRequest, CartSummary, SessionContext
from railfood.services.api_client import ApiClient
from railfood.services.lock_service import LockService
from railfood.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Cache koszyka per (klient, vendor). Backend jest zrodlem prawdy:
    commands (add, remove, clear) wysylaja delte i zawsze pobieraja summary od nowa,
    query (fetch, cart) czytaja cache.
    Ilosc wyswietlana = ilosc z cache + delta w trakcie wysylania.
    """

    def __init__(
        self,
        api: ApiClient,
        session: SessionContext,
        lock_service: Optional[LockService] = None,
    ):
        self.api = api
        self.session = session
        self.lock_service = lock_service or LockService()
        self._carts: Dict[int, Optional[CartSummary]] = {}
        self._pending: Dict[Tuple[int, int], int] = {}
        self._state_lock = threading.Lock()

    def _cart_key(self, vendor_id: int) -> Tuple[str, int, int]:
        return ("cart", self.session.user_id, vendor_id)

    def _require_customer(self) -> None:
        if not self.session.is_customer:
            raise PermissionError("Cart is only available to customers")

    #query - odczyt
    def cart(self, vendor_id: int) -> Optional[CartSummary]:
        with self._state_lock:
            return self._carts.get(vendor_id)

    def fetch_cart(self, vendor_id: int) -> Optional[CartSummary]:
        if not self.session.is_customer:
            #koszyk nie moze przeciec miedzy rolami
            self.discard(vendor_id)
            return None

        summary = self.load_summary(vendor_id)
        self._store(vendor_id, summary)
        return summary

    def store(self, vendor_id: int, summary: Optional[CartSummary]) -> None:
        """Zapisuje summary pobrane przez load_summary."""
        self._store(vendor_id, summary)

    def load_summary(self, vendor_id: int) -> Optional[CartSummary]:
        """Pobiera summary bez zapisu do cache."""
        try:
            data = self.api.get("/cart/summary", params={"vendorId": vendor_id})
            return CartSummary.model_validate(data) if data else None
        except (ApiError, ValueError) as e:
            #blad odczytu = pusty koszyk, nie stare dane
            logger.error(f"Error fetching cart for vendor {vendor_id}: {e}")
            return None

    def _store(
        self,
        vendor_id: int,
        summary: Optional[CartSummary],
        settle: Optional[Tuple[int, int]] = None,
    ) -> None:
        with self._state_lock:
            self._carts[vendor_id] = summary
            if settle is not None:
                self._settle_locked(vendor_id, *settle)

    def display_quantity(self, vendor_id: int, item_id: int) -> int:
        with self._state_lock:
            summary = self._carts.get(vendor_id)
            line = summary.line(item_id) if summary else None
            base = line.quantity if line else 0
            return max(base + self._pending.get((vendor_id, item_id), 0), 0)

    def pending_delta(self, vendor_id: int, item_id: int) -> int:
        with self._state_lock:
            return self._pending.get((vendor_id, item_id), 0)

    def is_busy(self, vendor_id: int) -> bool:
        return self.lock_service.is_locked(self._cart_key(vendor_id))

    #commands
    def add_item(
        self,
        item_id: int,
        vendor_id: int,
        quantity: int,
        special_instructions: Optional[str] = None,
        delivery: Optional[dict] = None,
    ) -> Optional[CartSummary]:
        """quantity to delta (+1 / -1), nie wartosc absolutna."""
        self._require_customer()
        if quantity == 0:
            raise ValueError("Quantity delta must not be zero")

        request = AddItemRequest(
            item_id=item_id,
            vendor_id=vendor_id,
            quantity=quantity,
            special_instructions=special_instructions,
            **(delivery or {}),
        )

        self._push_pending(vendor_id, item_id, quantity)
        settled = False
        try:
            with self.lock_service.hold(self._cart_key(vendor_id)):
                logger.info(
                    f"Adding delta {quantity} of item {item_id} to cart for vendor {vendor_id}"
                )
                self.api.post(
                    "/cart/add-item",
                    json=request.to_wire(),
                    fallback="Failed to add item to cart",
                )
                summary = self.load_summary(vendor_id)
                self._store(vendor_id, summary, settle=(item_id, quantity))
                settled = True
                return summary
        finally:
            if not settled:
                self._pop_pending(vendor_id, item_id, quantity)

    def remove_item(self, item_id: int, vendor_id: int) -> Optional[CartSummary]:
        self._require_customer()
        with self.lock_service.hold(self._cart_key(vendor_id)):
            logger.info(f"Removing item {item_id} from cart for vendor {vendor_id}")
            self.api.delete(
                f"/cart/items/{item_id}",
                params={"vendorId": vendor_id},
                fallback="Failed to remove item from cart",
            )
            return self.fetch_cart(vendor_id)

    def clear_cart(self, vendor_id: int) -> Optional[CartSummary]:
        self._require_customer()
        with self.lock_service.hold(self._cart_key(vendor_id)):
            logger.info(f"Clearing cart for vendor {vendor_id}")
            self.api.delete(
                "/cart",
                params={"vendorId": vendor_id},
                fallback="Failed to clear cart",
            )
            return self.fetch_cart(vendor_id)

    def discard(self, vendor_id: Optional[int] = None) -> None:
        """Porzuca lokalny widok koszyka (bez wywolania backendu)."""
        with self._state_lock:
            if vendor_id is None:
                self._carts.clear()
                self._pending.clear()
                return
            self._carts.pop(vendor_id, None)
            for key in [k for k in self._pending if k[0] == vendor_id]:
                del self._pending[key]

    def _push_pending(self, vendor_id: int, item_id: int, delta: int) -> None:
        with self._state_lock:
            key = (vendor_id, item_id)
            self._pending[key] = self._pending.get(key, 0) + delta

    def _pop_pending(self, vendor_id: int, item_id: int, delta: int) -> None:
        with self._state_lock:
            self._settle_locked(vendor_id, item_id, delta)

    def _settle_locked(self, vendor_id: int, item_id: int, delta: int) -> None:
        key = (vendor_id, item_id)
        if key not in self._pending:
            return
        left = self._pending[key] - delta
        if left == 0:
            del self._pending[key]
        else:
            self._pending[key] = left
