# railfood/domain/query.py
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar, Union

from railfood.domain.schemas import PageEnvelope, PageMeta

T = TypeVar("T")

_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

#filtry dat rozszerzane do poczatku / konca dnia
_START_OF_DAY_KEYS = ("startDate",)
_END_OF_DAY_KEYS = ("endDate",)


@dataclass(frozen=True)
class RequestDescriptor:
    path: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PageView(Generic[T]):
    items: List[T]
    meta: PageMeta


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _as_day(value: Union[str, date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _normalize(key: str, value: Any) -> Any:
    if key in _START_OF_DAY_KEYS:
        return datetime.combine(_as_day(value), time.min).strftime(_DATE_FORMAT)
    if key in _END_OF_DAY_KEYS:
        return datetime.combine(_as_day(value), time(23, 59, 59)).strftime(_DATE_FORMAT)
    if isinstance(value, str):
        return value.strip()
    if hasattr(value, "value"):
        return value.value
    return value


def build_query(
    path: str,
    filters: Optional[Mapping[str, Any]],
    page_number: int,
    page_size: int,
) -> RequestDescriptor:
    """
    page_number jest liczony od 1 (UI), backend dostaje page od 0.
    Puste filtry sa pomijane, reszta laczona przez AND po stronie backendu.
    """
    if page_number < 1:
        raise ValueError("page_number starts at 1")
    if page_size < 1:
        raise ValueError("page_size must be positive")

    params: Dict[str, Any] = {"page": page_number - 1, "size": page_size}
    for key, value in (filters or {}).items():
        if _is_blank(value):
            continue
        params[key] = _normalize(key, value)

    return RequestDescriptor(path=path, params=params)


class PageTracker(Generic[T]):
    """
    Zamienia koperte strony na PageView.
    Jesli metadane sie nie zmienily, zwraca ten sam obiekt PageMeta.
    """

    _COMPARED = ("current_page", "per_page", "total", "last_page", "from_", "to")

    def __init__(self, parse_item: Optional[Callable[[Any], T]] = None):
        self._parse_item = parse_item
        self._meta: Optional[PageMeta] = None
        self._lock = threading.Lock()

    @property
    def meta(self) -> Optional[PageMeta]:
        return self._meta

    def parse_response(
        self,
        envelope: Union[PageEnvelope, Mapping[str, Any]],
        page_number: int,
    ) -> PageView[T]:
        if not isinstance(envelope, PageEnvelope):
            envelope = PageEnvelope.model_validate(envelope or {})

        if self._parse_item is not None:
            items = [self._parse_item(raw) for raw in envelope.content]
        else:
            items = list(envelope.content)

        offset = envelope.pageable.offset
        candidate = PageMeta(
            current_page=page_number,
            per_page=envelope.pageable.page_size,
            total=envelope.total_elements,
            last_page=envelope.total_pages,
            from_=offset + 1 if envelope.number_of_elements else 0,
            to=offset + envelope.number_of_elements,
            remaining_pages=max(envelope.total_pages - page_number, 0),
        )

        with self._lock:
            if self._meta is not None and self._same(self._meta, candidate):
                return PageView(items=items, meta=self._meta)
            self._meta = candidate
            return PageView(items=items, meta=candidate)

    @classmethod
    def _same(cls, old: PageMeta, new: PageMeta) -> bool:
        return all(getattr(old, name) == getattr(new, name) for name in cls._COMPARED)
