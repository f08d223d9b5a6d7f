# tests/conftest.py
from collections import defaultdict, deque

import pytest

from railfood.domain.schemas import Role, SessionContext


class FakeApi:
    """
    Zastepuje ApiClient w testach serwisow.
    Odpowiedzi skryptowane per (METHOD, path); lista = kolejne odpowiedzi,
    wyjatek w skrypcie jest rzucany.
    """

    def __init__(self):
        self.calls = []
        self._scripts = defaultdict(deque)
        self._defaults = {}

    def script(self, method, path, *responses):
        self._scripts[(method, path)].extend(responses)

    def default(self, method, path, response):
        self._defaults[(method, path)] = response

    def request(self, method, path, params=None, json=None, fallback=None):
        self.calls.append({"method": method, "path": path, "params": params, "json": json})
        key = (method, path)
        if self._scripts[key]:
            response = self._scripts[key].popleft()
        else:
            response = self._defaults.get(key)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params=params, json=json)
        return response

    def get(self, path, params=None, fallback=None):
        return self.request("GET", path, params=params, fallback=fallback)

    def post(self, path, json=None, params=None, fallback=None):
        return self.request("POST", path, params=params, json=json, fallback=fallback)

    def put(self, path, json=None, params=None, fallback=None):
        return self.request("PUT", path, params=params, json=json, fallback=fallback)

    def delete(self, path, params=None, fallback=None):
        return self.request("DELETE", path, params=params, fallback=fallback)

    def calls_to(self, method, path):
        return [c for c in self.calls if c["method"] == method and c["path"] == path]


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def customer():
    return SessionContext(user_id=1, role="user", access_token="token-c")


@pytest.fixture
def admin():
    return SessionContext(user_id=99, role=Role.ADMIN, access_token="token-a")


@pytest.fixture
def vendor():
    return SessionContext(user_id=42, role=Role.VENDOR, access_token="token-v", vendor_id=6)


def cart_payload(items=(), vendor_id=6, **extra):
    """Summary koszyka w formacie backendu (camelCase)."""
    lines = [
        {"itemId": item_id, "quantity": qty, "unitPrice": price, "itemName": f"Item {item_id}"}
        for item_id, qty, price in items
    ]
    subtotal = sum(qty * price for _, qty, price in items)
    data = {
        "cartId": f"1-{vendor_id}",
        "customerId": 1,
        "vendorId": vendor_id,
        "items": lines,
        "subtotal": subtotal,
        "taxAmount": 0,
        "deliveryCharges": 0,
        "finalAmount": subtotal,
    }
    data.update(extra)
    return data


def order_payload(order_id, status="PLACED", vendor_id=6, **extra):
    data = {
        "orderId": order_id,
        "customerId": 1,
        "vendorId": vendor_id,
        "trainId": 12345,
        "deliveryStationId": 3,
        "items": [{"itemId": 1, "quantity": 2, "unitPrice": 200}],
        "finalAmount": 400,
        "orderStatus": status,
        "paymentStatus": "PENDING",
        "paymentMethod": "COD",
    }
    data.update(extra)
    return data


def page_payload(orders, page=0, size=10, total=None):
    total = len(orders) if total is None else total
    return {
        "content": orders,
        "pageable": {"offset": page * size, "pageNumber": page, "pageSize": size},
        "numberOfElements": len(orders),
        "totalElements": total,
        "totalPages": (total + size - 1) // size,
    }
