# railfood/services/checkout_service.py
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from railfood.domain.errors import (
    ApiError,
    CheckoutValidationError,
    EmptyCartError,
    LoadCancelled,
)
from railfood.domain.schemas import (
    CartSummary,
    DeliveryContext,
    Order,
    OrderCreate,
    OrderItemIn,
    PaymentMethod,
    SessionContext,
    Vendor,
)
from railfood.services.api_client import ApiClient
from railfood.services.cart_service import CartService
from railfood.services.payment_gateway import (
    GatewayCheckoutRequest,
    GatewayOutcome,
    PaymentGateway,
)
from railfood.utils.retry import cart_load_retry
from railfood.utils.settings import (
    CART_LOAD_MAX_RETRIES,
    DEFAULT_PREPARATION_MINUTES,
    MERCHANT_NAME,
    PAYMENT_CURRENCY,
    RAZORPAY_KEY_ID,
)
from railfood.utils.logging import get_logger

logger = get_logger(__name__)

_FIELD_MESSAGES = {
    "pnr_number": "PNR number must be exactly 10 digits",
    "train_number": "Train number must be numeric",
    "coach_number": "Coach number is required",
    "seat_number": "Seat number is required",
    "delivery_station_id": "Delivery station is required",
    "payment_method": "Please select a payment method",
}


class CheckoutOutcome(str, Enum):
    CONFIRMED = "CONFIRMED"
    PAYMENT_CANCELLED = "PAYMENT_CANCELLED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"


@dataclass(frozen=True)
class CheckoutResult:
    outcome: CheckoutOutcome
    order: Order
    message: str
    redirect_to: Optional[str] = None

    @property
    def confirmed(self) -> bool:
        return self.outcome is CheckoutOutcome.CONFIRMED


def _field_message(error: Mapping[str, Any]) -> str:
    name = error["loc"][0]
    if name == "train_number" and error["type"] in ("missing", "string_too_short"):
        return "Valid train number is required"
    return _FIELD_MESSAGES.get(name, error["msg"])


class CheckoutService:
    """
    Zamiana koszyka na zamowienie.

    1. Walidacja formularza dostawy (wszystkie bledy naraz)
    2. Odrzucenie pustego koszyka
    3. POST /orders (bez retry)
    4. COD -> potwierdzenie, ONLINE -> bramka -> weryfikacja podpisu
    """

    def __init__(
        self,
        api: ApiClient,
        session: SessionContext,
        cart_service: CartService,
        gateway: Optional[PaymentGateway] = None,
        razorpay_key: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
        load_wait=None,
        max_load_retries: Optional[int] = None,
    ):
        self.api = api
        self.session = session
        self.cart_service = cart_service
        self.gateway = gateway
        self.razorpay_key = razorpay_key if razorpay_key is not None else RAZORPAY_KEY_ID
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._load_wait = load_wait
        self.max_load_retries = (
            max_load_retries if max_load_retries is not None else CART_LOAD_MAX_RETRIES
        )
        self._closed = threading.Event()

    def _require_customer(self) -> None:
        if not self.session.is_customer:
            raise PermissionError("Please log in to continue")

    # =====================================================
    # INITIAL LOAD
    # =====================================================
    def close(self) -> None:
        """Widok zamkniety: zaplanowane ponowienie ladowania nie wykona sie."""
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _sleep(self, seconds: float) -> None:
        if self._closed.wait(seconds):
            raise LoadCancelled("Checkout view closed before the cart reload")

    def _fetch_while_open(self, vendor_id: int) -> Optional[CartSummary]:
        summary = self.cart_service.load_summary(vendor_id)
        #odpowiedz dla zamknietego widoku nie trafia do cache
        if self.closed:
            raise LoadCancelled("Checkout view closed during the cart load")
        return summary

    def load_cart(self, vendor_id: int) -> CartSummary:
        self._require_customer()
        if self.closed:
            raise LoadCancelled("Checkout view is closed")

        logger.info(f"Loading cart for vendor {vendor_id}")
        retrying = cart_load_retry(
            self.max_load_retries,
            sleep=self._sleep,
            wait=self._load_wait,
        )
        summary = retrying(self._fetch_while_open, vendor_id)
        if self.closed:
            raise LoadCancelled("Checkout view closed during the cart load")
        self.cart_service.store(vendor_id, summary)

        if summary is None or summary.is_empty:
            logger.warning(f"Cart for vendor {vendor_id} is still empty after retries")
            raise EmptyCartError()
        return summary

    def preparation_minutes(self, vendor_id: int) -> Optional[int]:
        try:
            data = self.api.get(f"/vendors/{vendor_id}")
            return Vendor.model_validate(data).preparation_time if data else None
        except (ApiError, ValueError) as e:
            logger.warning(f"Vendor {vendor_id} details unavailable: {e}")
            return None

    def estimate_delivery_time(
        self,
        preparation_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> datetime:
        minutes = preparation_minutes or DEFAULT_PREPARATION_MINUTES
        return (now or self._clock()) + timedelta(minutes=minutes)

    # =====================================================
    # CHECKOUT
    # =====================================================
    def validate(self, form: Union[DeliveryContext, Mapping[str, Any]]) -> DeliveryContext:
        if isinstance(form, DeliveryContext):
            return form
        try:
            return DeliveryContext.model_validate(dict(form))
        except ValidationError as e:
            field_errors: Dict[str, str] = {}
            for error in e.errors():
                name = str(error["loc"][0]) if error["loc"] else "__root__"
                field_errors.setdefault(name, _field_message(error))
            logger.warning(f"Form validation failed: {field_errors}")
            raise CheckoutValidationError(field_errors) from e

    def _build_payload(
        self,
        vendor_id: int,
        context: DeliveryContext,
        cart: CartSummary,
        delivery_time: datetime,
    ) -> OrderCreate:
        return OrderCreate(
            vendor_id=vendor_id,
            payment_method=context.payment_method.wire_value,
            delivery_time=delivery_time,
            pnr_number=context.pnr_number,
            train_id=int(context.train_number),
            coach_number=context.coach_number,
            seat_number=context.seat_number,
            delivery_station_id=int(context.delivery_station_id),
            delivery_instructions=context.delivery_instructions,
            items=[
                OrderItemIn(
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    item_name=line.item_name,
                    special_instructions=line.special_instructions,
                )
                for line in cart.items
            ],
        )

    def place_order(
        self,
        vendor_id: int,
        form: Union[DeliveryContext, Mapping[str, Any]],
        cart: Optional[CartSummary],
        preparation_minutes: Optional[int] = None,
    ) -> CheckoutResult:
        self._require_customer()
        context = self.validate(form)

        if cart is None or cart.is_empty:
            logger.error("Empty cart during order placement")
            raise EmptyCartError()

        online = context.payment_method is PaymentMethod.ONLINE
        if online and (self.gateway is None or not self.razorpay_key):
            raise RuntimeError("Razorpay key not configured")

        #liczone raz, nie przeliczane po wyslaniu
        delivery_time = self.estimate_delivery_time(preparation_minutes)
        payload = self._build_payload(vendor_id, context, cart, delivery_time)

        logger.info(
            f"Creating order for vendor {vendor_id} with {context.payment_method.value} payment"
        )
        data = self.api.post(
            "/orders",
            json=payload.to_wire(),
            fallback="Failed to process your order. Please try again.",
        )
        order = Order.model_validate(data)
        logger.info(f"Order {order.order_id} created")

        if not online:
            return self._confirm(vendor_id, order, "Order placed successfully!")
        return self._pay_online(vendor_id, order)

    def _confirm(self, vendor_id: int, order: Order, message: str) -> CheckoutResult:
        # backend zamienil koszyk w zamowienie, lokalny widok do wyrzucenia
        self.cart_service.discard(vendor_id)
        return CheckoutResult(
            outcome=CheckoutOutcome.CONFIRMED,
            order=order,
            message=message,
            redirect_to=f"/order-confirmation/{order.order_id}",
        )

    def _pay_online(self, vendor_id: int, order: Order) -> CheckoutResult:
        try:
            request = GatewayCheckoutRequest.for_order(
                order,
                key=self.razorpay_key,
                currency=PAYMENT_CURRENCY,
                merchant_name=MERCHANT_NAME,
            )
        except ValueError as e:
            logger.error(f"Cannot start payment for order {order.order_id}: {e}")
            return CheckoutResult(CheckoutOutcome.PAYMENT_FAILED, order, str(e))

        #kazda proba to nowa nakladka, stary uchwyt nie jest wznawiany
        result = self.gateway.open_checkout(request)

        if result.outcome is GatewayOutcome.DISMISSED:
            logger.warning(f"Payment cancelled by user for order {order.order_id}")
            return CheckoutResult(CheckoutOutcome.PAYMENT_CANCELLED, order, "Payment cancelled")

        if result.outcome is GatewayOutcome.FAILED:
            logger.error(f"Payment failed for order {order.order_id}: {result.error_description}")
            return CheckoutResult(
                CheckoutOutcome.PAYMENT_FAILED,
                order,
                f"Payment failed: {result.error_description or 'unknown error'}",
            )

        logger.info(f"Verifying payment for order {order.order_id}")
        try:
            self.api.post(
                f"/payments/verify-payment/{order.order_id}",
                json=result.verification().model_dump(),
                fallback="Payment verification failed",
            )
        except ApiError as e:
            # bez ponawiania: podrobiony albo powtorzony callback nie idzie drugi raz
            logger.error(f"Payment verification failed for order {order.order_id}: {e.message}")
            return CheckoutResult(CheckoutOutcome.VERIFICATION_FAILED, order, e.message)

        return self._confirm(vendor_id, order, "Payment successful!")
