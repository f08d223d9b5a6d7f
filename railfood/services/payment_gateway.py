# railfood/services/payment_gateway.py
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Protocol

from railfood.domain.schemas import Order, PaymentVerification


class GatewayOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    DISMISSED = "DISMISSED"


@dataclass(frozen=True)
class GatewayCheckoutRequest:
    """Options handed to the Razorpay checkout overlay for one attempt."""

    key: str
    amount: int  # w paisach
    currency: str
    name: str
    description: str
    order_id: str
    prefill: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def for_order(
        cls,
        order: Order,
        key: str,
        currency: str,
        merchant_name: str,
        prefill: Optional[Dict[str, str]] = None,
    ) -> "GatewayCheckoutRequest":
        if not order.razorpay_order_id:
            raise ValueError(f"Order {order.order_id} has no gateway order handle")
        return cls(
            key=key,
            amount=int((Decimal(order.final_amount) * 100).to_integral_value()),
            currency=currency,
            name=merchant_name,
            description=f"Food Order #{order.order_id}",
            order_id=order.razorpay_order_id,
            prefill=dict(prefill or {}),
        )


@dataclass(frozen=True)
class GatewayResult:
    outcome: GatewayOutcome
    payment_id: Optional[str] = None
    gateway_order_id: Optional[str] = None
    signature: Optional[str] = None
    error_description: Optional[str] = None

    @classmethod
    def success(cls, payment_id: str, gateway_order_id: str, signature: str) -> "GatewayResult":
        return cls(GatewayOutcome.SUCCESS, payment_id, gateway_order_id, signature)

    @classmethod
    def failed(cls, description: str) -> "GatewayResult":
        return cls(GatewayOutcome.FAILED, error_description=description)

    @classmethod
    def dismissed(cls) -> "GatewayResult":
        return cls(GatewayOutcome.DISMISSED)

    def verification(self) -> PaymentVerification:
        return PaymentVerification(
            razorpay_payment_id=self.payment_id or "",
            razorpay_order_id=self.gateway_order_id or "",
            razorpay_signature=self.signature or "",
        )


class PaymentGateway(Protocol):
    """
    Nakladka platnicza (SDK w przegladarce).
    Blokuje do momentu sukcesu, bledu albo zamkniecia przez uzytkownika.
    """

    def open_checkout(self, request: GatewayCheckoutRequest) -> GatewayResult: ...
