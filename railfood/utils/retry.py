# railfood/utils/retry.py
import logging
from typing import Callable, Optional

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from railfood.utils.logging import get_logger

logger = get_logger(__name__)


def _cart_missing(summary) -> bool:
    return summary is None or summary.is_empty


def initial_load_backoff():
    # 1s, 2s, 4s
    return wait_exponential(multiplier=1, min=1, max=4)


def cart_load_retry(
    max_retries: int,
    sleep: Callable[[float], None],
    wait=None,
) -> Retrying:
    """
    Tylko dla pierwszego ladowania koszyka po nawigacji.
    Pusty koszyk = ponow (opoznienie spojnosci po add-item).
    Po wyczerpaniu prob zwraca ostatni wynik zamiast RetryError.
    """
    return Retrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait if wait is not None else initial_load_backoff(),
        retry=retry_if_result(_cart_missing),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.INFO),
        retry_error_callback=_last_result,
    )


def _last_result(retry_state) -> Optional[object]:
    return retry_state.outcome.result()
