# railfood/dev_backend/main.py
"""
In-memory mock of the ordering backend for local development.
Run with: uvicorn railfood.dev_backend.main:app --port 8080
"""
import itertools
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from railfood.domain.schemas import (
    AddItemRequest,
    OrderCreate,
    OrderStatus,
    PaymentStatus,
    PaymentVerification,
)
from railfood.utils.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(title="Railfood Backend (dev mock)")


@app.exception_handler(HTTPException)
async def _error_body(request: Request, exc: HTTPException):
    #ten sam ksztalt bledu co prawdziwy backend
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


TAX_RATE = Decimal("0.05")
DELIVERY_CHARGE = Decimal("20.00")
CUSTOMER_ID = 1

MENU = {
    1: {"itemId": 1, "itemName": "Veg Biryani", "basePrice": Decimal("200.00"), "category": "Indian"},
    2: {"itemId": 2, "itemName": "Paneer Tikka", "basePrice": Decimal("100.00"), "category": "Indian"},
    3: {"itemId": 3, "itemName": "Spring Rolls", "basePrice": Decimal("180.00"), "category": "Chinese"},
}

VENDORS = {
    6: {"vendorId": 6, "businessName": "Station Kitchen", "vendorName": "Station Kitchen", "preparationTime": 25},
}

STATIONS = {
    3: {"stationId": 3, "stationName": "Nagpur Junction", "stationCode": "NGP", "city": "Nagpur", "state": "Maharashtra"},
    4: {"stationId": 4, "stationName": "Pune Junction", "stationCode": "PUNE", "city": "Pune", "state": "Maharashtra"},
}

STATION_VENDORS = {3: [6], 4: []}

# (vendor_id, item_id) -> ilosc / instrukcje
CARTS: Dict[Tuple[int, int], int] = {}
INSTRUCTIONS: Dict[Tuple[int, int], Optional[str]] = {}
ORDERS: Dict[int, dict] = {}
_order_ids = itertools.count(501)


class StatusIn(BaseModel):
    status: OrderStatus
    remarks: str = ""


class CodPaymentIn(BaseModel):
    paymentStatus: PaymentStatus
    remarks: str = ""


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"))


def _summary(vendor_id: int) -> dict:
    items = []
    for (v_id, item_id), qty in sorted(CARTS.items()):
        if v_id != vendor_id or qty <= 0:
            continue
        menu = MENU[item_id]
        items.append(
            {
                "itemId": item_id,
                "quantity": qty,
                "unitPrice": str(menu["basePrice"]),
                "itemName": menu["itemName"],
                "specialInstructions": INSTRUCTIONS.get((v_id, item_id)),
            }
        )

    subtotal = sum((Decimal(i["unitPrice"]) * i["quantity"] for i in items), Decimal("0.00"))
    tax = _money(subtotal * TAX_RATE)
    delivery = DELIVERY_CHARGE if items else Decimal("0.00")
    return {
        "cartId": f"{CUSTOMER_ID}-{vendor_id}",
        "customerId": CUSTOMER_ID,
        "vendorId": vendor_id,
        "items": items,
        "subtotal": str(_money(subtotal)),
        "taxAmount": str(tax),
        "deliveryCharges": str(delivery),
        "finalAmount": str(_money(subtotal + tax + delivery)),
    }


def _page(orders: List[dict], page: int, size: int) -> dict:
    start = page * size
    content = orders[start:start + size]
    total = len(orders)
    return {
        "content": content,
        "pageable": {"offset": start, "pageNumber": page, "pageSize": size},
        "numberOfElements": len(content),
        "totalElements": total,
        "totalPages": (total + size - 1) // size if size else 0,
    }


def _get_order(order_id: int) -> dict:
    order = ORDERS.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _filtered(
    terminal: bool,
    vendor_id: Optional[int],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[dict]:
    result = []
    for order in ORDERS.values():
        if OrderStatus(order["orderStatus"]).is_terminal != terminal:
            continue
        if vendor_id is not None and order["vendorId"] != vendor_id:
            continue
        created = datetime.fromisoformat(order["createdAt"])
        if (start and created < start) or (end and created > end):
            continue
        result.append(order)
    return result


# =====================================================
# CART
# =====================================================
@app.get("/cart/summary")
def cart_summary(vendorId: int):
    return _summary(vendorId)


@app.post("/cart/add-item", status_code=204)
def add_item(payload: AddItemRequest):
    if payload.item_id not in MENU:
        raise HTTPException(status_code=404, detail="Item not found")
    key = (payload.vendor_id, payload.item_id)
    #delta, nie wartosc absolutna
    CARTS[key] = max(CARTS.get(key, 0) + payload.quantity, 0)
    if payload.special_instructions is not None:
        INSTRUCTIONS[key] = payload.special_instructions
    logger.info(f"Cart {key} quantity is now {CARTS[key]}")


@app.delete("/cart/items/{item_id}", status_code=204)
def remove_item(item_id: int, vendorId: int):
    CARTS.pop((vendorId, item_id), None)
    INSTRUCTIONS.pop((vendorId, item_id), None)


@app.delete("/cart", status_code=204)
def clear_cart(vendorId: int):
    for key in [k for k in CARTS if k[0] == vendorId]:
        CARTS.pop(key, None)
        INSTRUCTIONS.pop(key, None)


# =====================================================
# ORDERS
# =====================================================
@app.post("/orders", status_code=201)
def create_order(payload: OrderCreate):
    if not payload.items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    summary = _summary(payload.vendor_id)
    order_id = next(_order_ids)
    online = payload.payment_method != "COD"
    order = {
        "orderId": order_id,
        "customerId": CUSTOMER_ID,
        "vendorId": payload.vendor_id,
        "trainId": payload.train_id,
        "pnrNumber": payload.pnr_number,
        "coachNumber": payload.coach_number,
        "seatNumber": payload.seat_number,
        "deliveryStationId": payload.delivery_station_id,
        "deliveryTime": payload.delivery_time.isoformat(),
        "deliveryInstructions": payload.delivery_instructions,
        "items": [i.to_wire() for i in payload.items],
        "totalAmount": summary["subtotal"],
        "taxAmount": summary["taxAmount"],
        "deliveryCharges": summary["deliveryCharges"],
        "discountAmount": None,
        "finalAmount": summary["finalAmount"],
        "orderStatus": OrderStatus.PLACED.value,
        "paymentStatus": (PaymentStatus.PROCESSING if online else PaymentStatus.PENDING).value,
        "paymentMethod": payload.payment_method,
        "razorpayOrderID": f"order_{uuid.uuid4().hex[:14]}" if online else None,
        "createdAt": datetime.now().isoformat(timespec="seconds"),
    }
    ORDERS[order_id] = order
    if not online:
        clear_cart(payload.vendor_id)
    logger.info(f"Order {order_id} created for vendor {payload.vendor_id}")
    return order


@app.get("/orders/{order_id}")
def get_order(order_id: int):
    return _get_order(order_id)


@app.post("/payments/verify-payment/{order_id}", status_code=204)
def verify_payment(order_id: int, payload: PaymentVerification):
    order = _get_order(order_id)
    #mock: podpis musi tylko pasowac do uchwytu zamowienia
    if payload.razorpay_order_id != order["razorpayOrderID"] or not payload.razorpay_signature:
        raise HTTPException(status_code=400, detail="Invalid payment signature")
    order["paymentStatus"] = PaymentStatus.CAPTURED.value
    #koszyk online znika dopiero po potwierdzonej platnosci
    clear_cart(order["vendorId"])


@app.put("/admin/orders/{order_id}/status")
def admin_update_status(order_id: int, payload: StatusIn):
    order = _get_order(order_id)
    order["orderStatus"] = payload.status.value
    return order


@app.put("/orders/{order_id}/status")
def vendor_update_status(
    order_id: int,
    status: OrderStatus,
    remarks: str = "",
    updatedById: Optional[int] = None,
):
    order = _get_order(order_id)
    order["orderStatus"] = status.value
    return order


@app.put("/admin/orders/{order_id}/cod-payment-status")
def admin_update_cod(order_id: int, payload: CodPaymentIn):
    order = _get_order(order_id)
    order["paymentStatus"] = payload.paymentStatus.value
    return order


@app.post("/orders/{order_id}/cod/complete", status_code=204)
def vendor_complete_cod(order_id: int, updatedById: Optional[int] = None, remarks: str = ""):
    order = _get_order(order_id)
    order["paymentStatus"] = PaymentStatus.COMPLETED.value


def _require_vendor(vendor_id: Optional[int]) -> int:
    if vendor_id is None:
        raise HTTPException(status_code=400, detail="vendorId is required")
    return vendor_id


@app.get("/admin/orders/active")
def admin_active(
    page: int = 0,
    size: int = Query(10, gt=0),
    vendorId: Optional[int] = None,
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
):
    return _page(_filtered(False, vendorId, startDate, endDate), page, size)


@app.get("/admin/orders/historical")
def admin_historical(
    page: int = 0,
    size: int = Query(10, gt=0),
    vendorId: Optional[int] = None,
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
):
    return _page(_filtered(True, vendorId, startDate, endDate), page, size)


@app.get("/orders/vendor/active")
def vendor_active(
    page: int = 0,
    size: int = Query(10, gt=0),
    vendorId: Optional[int] = None,
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
):
    return _page(_filtered(False, _require_vendor(vendorId), startDate, endDate), page, size)


@app.get("/orders/vendor/historical")
def vendor_historical(
    page: int = 0,
    size: int = Query(10, gt=0),
    vendorId: Optional[int] = None,
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
):
    return _page(_filtered(True, _require_vendor(vendorId), startDate, endDate), page, size)


# =====================================================
# LOOKUPS
# =====================================================
@app.get("/vendors/{vendor_id}")
def get_vendor(vendor_id: int):
    vendor = VENDORS.get(vendor_id)
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return vendor


@app.get("/stations/all")
def list_stations():
    return list(STATIONS.values())


@app.get("/stations/{station_id}")
def get_station(station_id: int):
    station = STATIONS.get(station_id)
    if not station:
        raise HTTPException(status_code=404, detail="Station not found")
    return station


@app.get("/vendors/stations/{station_id}")
def vendors_for_station(station_id: int, page: int = 0, size: int = Query(100, gt=0)):
    vendors = [VENDORS[v_id] for v_id in STATION_VENDORS.get(station_id, [])]
    return _page(vendors, page, size)


@app.get("/menu/items/{item_id}")
def get_menu_item(item_id: int):
    item = MENU.get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return {k: str(v) if isinstance(v, Decimal) else v for k, v in item.items()}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8080)
