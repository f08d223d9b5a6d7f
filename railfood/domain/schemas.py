# railfood/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    ADMIN = "ADMIN"
    VENDOR = "VENDOR"
    CUSTOMER = "CUSTOMER"

    @classmethod
    def parse(cls, value: str) -> "Role":
        #backend nazywa klienta "user"
        normalized = (value or "").strip().upper()
        if normalized == "USER":
            return cls.CUSTOMER
        return cls(normalized)


class OrderStatus(str, Enum):
    PLACED = "PLACED"
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    DISPATCHED = "DISPATCHED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    CAPTURED = "CAPTURED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    PROCESSING = "PROCESSING"


class PaymentMethod(str, Enum):
    COD = "COD"
    ONLINE = "ONLINE"

    @property
    def wire_value(self) -> str:
        #platnosc online idzie przez razorpay
        return "RAZORPAY" if self is PaymentMethod.ONLINE else self.value


class SessionContext(BaseModel):
    """Read-only auth context injected into every service."""

    user_id: int
    role: Role
    access_token: str
    vendor_id: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value):
        if isinstance(value, str):
            return Role.parse(value)
        return value

    @property
    def is_customer(self) -> bool:
        return self.role is Role.CUSTOMER


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =====================================================
# CART
# =====================================================
class CartLine(CamelModel):
    item_id: int
    quantity: int = Field(..., ge=0)
    unit_price: Decimal = Field(..., ge=0)
    item_name: str = ""
    special_instructions: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CartSummary(CamelModel):
    cart_id: str
    customer_id: int
    vendor_id: Optional[int] = None
    items: List[CartLine] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    tax_amount: Decimal = Decimal("0.00")
    delivery_charges: Decimal = Decimal("0.00")
    final_amount: Decimal = Decimal("0.00")

    # zapisane dane dostawy, uzywane do wypelnienia formularza
    pnr_number: Optional[str] = None
    train_id: Optional[int] = None
    coach_number: Optional[str] = None
    seat_number: Optional[str] = None
    delivery_station_id: Optional[int] = None
    delivery_instructions: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    def line(self, item_id: int) -> Optional[CartLine]:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None


class AddItemRequest(CamelModel):
    """Body for POST /cart/add-item. quantity is a signed delta."""

    item_id: int
    vendor_id: int
    quantity: int
    special_instructions: Optional[str] = None
    train_id: Optional[int] = None
    pnr_number: Optional[str] = None
    coach_number: Optional[str] = None
    seat_number: Optional[str] = None
    delivery_station_id: Optional[int] = None
    delivery_instructions: Optional[str] = None


# =====================================================
# CHECKOUT
# =====================================================
class DeliveryContext(BaseModel):
    """Checkout form. Lives only for a single checkout attempt."""

    pnr_number: str = Field(..., pattern=r"^\d{10}$")
    train_number: str = Field(..., min_length=1, pattern=r"^\d+$")
    coach_number: str = Field(..., min_length=1)
    seat_number: str = Field(..., min_length=1)
    delivery_station_id: str = Field(..., min_length=1, pattern=r"^\d+$")
    delivery_instructions: str = ""
    payment_method: PaymentMethod

    # formularz moze podac id stacji albo numer pociagu jako liczbe
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)

    @classmethod
    def prefill(cls, summary: Optional["CartSummary"], **overrides: Any) -> dict:
        """Raw form values seeded from the cart summary; not validated."""
        values = {
            "pnr_number": "",
            "train_number": "",
            "coach_number": "",
            "seat_number": "",
            "delivery_station_id": "",
            "delivery_instructions": "",
            "payment_method": PaymentMethod.COD.value,
        }
        if summary is not None:
            values.update(
                pnr_number=summary.pnr_number or "",
                train_number=str(summary.train_id) if summary.train_id else "",
                coach_number=summary.coach_number or "",
                seat_number=summary.seat_number or "",
                delivery_station_id=(
                    str(summary.delivery_station_id) if summary.delivery_station_id else ""
                ),
                delivery_instructions=summary.delivery_instructions or "",
            )
        values.update(overrides)
        return values


class OrderItemIn(CamelModel):
    item_id: int
    quantity: int
    unit_price: Decimal
    item_name: str = ""
    special_instructions: Optional[str] = None


class OrderCreate(CamelModel):
    """Body for POST /orders."""

    vendor_id: int
    payment_method: str
    delivery_time: datetime
    pnr_number: str
    train_id: int
    coach_number: str
    seat_number: str
    delivery_station_id: int
    delivery_instructions: str = ""
    items: List[OrderItemIn]


class PaymentVerification(BaseModel):
    # backend oczekuje kluczy w formacie razorpay (snake_case)
    razorpay_payment_id: str
    razorpay_order_id: str
    razorpay_signature: str


# =====================================================
# ORDERS
# =====================================================
class OrderItem(CamelModel):
    item_id: int
    item_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    special_instructions: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None


class Order(CamelModel):
    order_id: int
    customer_id: Optional[int] = None
    vendor_id: int
    train_id: Optional[int] = None
    pnr_number: Optional[str] = None
    coach_number: Optional[str] = None
    seat_number: Optional[str] = None
    delivery_station_id: Optional[int] = None
    delivery_time: Optional[datetime] = None
    delivery_instructions: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0.00")
    tax_amount: Decimal = Decimal("0.00")
    delivery_charges: Decimal = Decimal("0.00")
    discount_amount: Optional[Decimal] = None
    final_amount: Decimal = Decimal("0.00")
    order_status: OrderStatus
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str = "COD"
    razorpay_order_id: Optional[str] = Field(default=None, alias="razorpayOrderID")

    # uzupelniane przez LookupService
    vendor_name: Optional[str] = None
    train_number: Optional[str] = None

    @property
    def is_cod(self) -> bool:
        return self.payment_method == PaymentMethod.COD.value


# =====================================================
# PAGING
# =====================================================
class Pageable(CamelModel):
    offset: int = 0
    page_number: int = 0
    page_size: int = 0


class PageEnvelope(CamelModel):
    content: List[Any] = Field(default_factory=list)
    pageable: Pageable = Field(default_factory=Pageable)
    number_of_elements: int = 0
    total_elements: int = 0
    total_pages: int = 0


class PageMeta(BaseModel):
    current_page: int
    per_page: int
    total: int
    last_page: int
    from_: int = Field(alias="from")
    to: int
    remaining_pages: int = 0

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# =====================================================
# LOOKUPS
# =====================================================
class Station(CamelModel):
    station_id: int
    station_name: str
    station_code: str = "Unknown"
    city: Optional[str] = None
    state: Optional[str] = None


class Vendor(CamelModel):
    vendor_id: int
    business_name: Optional[str] = None
    vendor_name: Optional[str] = None
    preparation_time: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.business_name or self.vendor_name or f"Vendor #{self.vendor_id}"


class MenuItem(CamelModel):
    item_id: int
    item_name: str
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
