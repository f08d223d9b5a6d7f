# tests/test_api_client.py
from unittest.mock import MagicMock

import pytest
import requests

from railfood.domain.errors import ApiError
from railfood.services.api_client import GENERIC_ERROR, ApiClient, extract_error_message


def _response(status=200, body=None, reason="OK", content=b"{}"):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.ok = status < 400
    resp.reason = reason
    resp.content = content
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


def _client(customer, resp=None, side_effect=None):
    http = MagicMock(spec=requests.Session)
    if side_effect is not None:
        http.request.side_effect = side_effect
    else:
        http.request.return_value = resp
    return ApiClient(customer, base_url="http://backend/api/", timeout=3, http=http), http


def test_request_sends_bearer_token_and_drops_none_params(customer):
    client, http = _client(customer, _response(body={"ok": True}))

    data = client.get("/cart/summary", params={"vendorId": 6, "page": None})

    assert data == {"ok": True}
    http.request.assert_called_once_with(
        "GET",
        "http://backend/api/cart/summary",
        params={"vendorId": 6},
        json=None,
        headers={"Accept": "application/json", "Authorization": "Bearer token-c"},
        timeout=3,
    )


def test_no_content_returns_none(customer):
    client, _ = _client(customer, _response(status=204, content=b""))
    assert client.delete("/cart", params={"vendorId": 6}) is None


def test_backend_message_is_preferred(customer):
    client, _ = _client(
        customer, _response(status=400, body={"message": "Item not available"}, reason="Bad Request")
    )
    with pytest.raises(ApiError) as exc:
        client.post("/cart/add-item", json={}, fallback="Failed to add item to cart")
    assert exc.value.message == "Item not available"
    assert exc.value.status_code == 400


def test_error_field_then_reason_then_fallback():
    assert extract_error_message(_response(400, {"error": "Bad PNR"}, reason="Bad Request")) == "Bad PNR"
    assert extract_error_message(_response(500, ValueError("no json"), reason="Server Error")) == "Server Error"
    assert extract_error_message(_response(500, {"message": ""}, reason=""), "Try later") == "Try later"
    assert extract_error_message(_response(500, None, reason="")) == GENERIC_ERROR


def test_network_error_uses_fallback(customer):
    client, _ = _client(customer, side_effect=requests.ConnectionError("refused"))
    with pytest.raises(ApiError) as exc:
        client.put("/orders/1/status", fallback="Failed to update order status.")
    assert exc.value.message == "Failed to update order status."
    assert exc.value.status_code is None


def test_anonymous_client_sends_no_authorization():
    client, http = _client(None, _response(body=[]))
    client.get("/stations/all")
    assert "Authorization" not in http.request.call_args.kwargs["headers"]
