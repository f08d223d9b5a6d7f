# railfood/services/api_client.py
from typing import Any, Mapping, Optional

import requests
from requests import RequestException

from railfood.domain.errors import ApiError
from railfood.domain.schemas import SessionContext
from railfood.utils.settings import API_BASE_URL, API_TIMEOUT_SECONDS
from railfood.utils.logging import get_logger

logger = get_logger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again."


def extract_error_message(resp: requests.Response, fallback: str = GENERIC_ERROR) -> str:
    """message z backendu -> error -> reason HTTP -> fallback."""
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value

    if resp.reason:
        return resp.reason
    return fallback


def _clean_params(params: Optional[Mapping[str, Any]]) -> Optional[dict]:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None}


class ApiClient:
    """
    Cienki klient REST nad requests.Session.
    Kazdy blad (siec, 4xx, 5xx) zamieniany na ApiError z czytelnym komunikatem.
    Brak automatycznych retry: odczyty degraduja wyzej, zapisy nie moga sie dublowac.
    """

    def __init__(
        self,
        session_ctx: Optional[SessionContext] = None,
        base_url: str | None = None,
        timeout: float | None = None,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else API_TIMEOUT_SECONDS
        self.http = http or requests.Session()
        self.session_ctx = session_ctx

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.session_ctx is not None and self.session_ctx.access_token:
            headers["Authorization"] = f"Bearer {self.session_ctx.access_token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        fallback: str = GENERIC_ERROR,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.info(f"ApiClient {method} {url}")

        try:
            resp = self.http.request(
                method,
                url,
                params=_clean_params(params),
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except RequestException as e:
            logger.error(f"ApiClient {method} {url} failed: {e}")
            raise ApiError(fallback) from e

        if not resp.ok:
            message = extract_error_message(resp, fallback)
            logger.error(f"ApiClient {method} {url} -> {resp.status_code}: {message}")
            raise ApiError(message, status_code=resp.status_code)

        #void endpointy (DELETE, verify-payment)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    def get(self, path: str, params=None, fallback: str = GENERIC_ERROR) -> Any:
        return self.request("GET", path, params=params, fallback=fallback)

    def post(self, path: str, json=None, params=None, fallback: str = GENERIC_ERROR) -> Any:
        return self.request("POST", path, params=params, json=json, fallback=fallback)

    def put(self, path: str, json=None, params=None, fallback: str = GENERIC_ERROR) -> Any:
        return self.request("PUT", path, params=params, json=json, fallback=fallback)

    def delete(self, path: str, params=None, fallback: str = GENERIC_ERROR) -> Any:
        return self.request("DELETE", path, params=params, fallback=fallback)
