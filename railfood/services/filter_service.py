# railfood/services/filter_service.py
import threading
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from railfood.utils.settings import DEFAULT_PAGE_SIZE, FILTER_DEBOUNCE_SECONDS
from railfood.utils.logging import get_logger

logger = get_logger(__name__)


class Debouncer:
    """
    Odpala callback dopiero po `delay` sekundach ciszy.
    Callback nie dostaje argumentow: sam czyta najnowszy stan w chwili odpalenia.
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._lock = threading.Lock()

    def trigger(self) -> None:
        with self._lock:
            self._drop_locked()
            self._timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def _drop_locked(self) -> Optional[threading.Timer]:
        #stary timer, ktory juz wystartowal, nie moze nic odpalic
        timer, self._timer = self._timer, None
        self._generation += 1
        if timer is not None:
            timer.cancel()
        return timer

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        self.callback()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def cancel(self) -> None:
        with self._lock:
            self._drop_locked()

    def flush(self) -> None:
        """Natychmiast odpala oczekujace wywolanie (jesli jest)."""
        with self._lock:
            timer = self._drop_locked()
        if timer is not None:
            self.callback()


class FilterState:
    """
    Filtry listy z dashboardu.

    - filtry wyboru (select, daty) zatwierdzane od razu
    - filtry tekstowe zatwierdzane po 300 ms ciszy
    - kazde zatwierdzenie wraca na strone 1 i wywoluje on_change(filters, page, page_size)
    - wybor rodzica (np. stacja) czysci zaleznych (np. vendor) i wola on_parent_change
    """

    def __init__(
        self,
        on_change: Callable[[Dict[str, Any], int, int], None],
        text_fields: Iterable[str] = (),
        dependents: Optional[Mapping[str, Iterable[str]]] = None,
        on_parent_change: Optional[Callable[[str, Any], None]] = None,
        debounce_seconds: Optional[float] = None,
        page_size: Optional[int] = None,
    ):
        self.on_change = on_change
        self.text_fields = frozenset(text_fields)
        self.dependents = {k: tuple(v) for k, v in (dependents or {}).items()}
        self.on_parent_change = on_parent_change
        self._lock = threading.Lock()
        self._committed: Dict[str, Any] = {}
        self._typed: Dict[str, Any] = {}
        self._page = 1
        self._page_size = page_size or DEFAULT_PAGE_SIZE
        self._debouncer = Debouncer(
            debounce_seconds if debounce_seconds is not None else FILTER_DEBOUNCE_SECONDS,
            self._commit_typed,
        )

    @property
    def filters(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._committed)

    @property
    def page(self) -> int:
        with self._lock:
            return self._page

    @property
    def page_size(self) -> int:
        with self._lock:
            return self._page_size

    def type_text(self, name: str, value: str) -> None:
        if name not in self.text_fields:
            raise ValueError(f"{name} is not a free-text filter")
        with self._lock:
            self._typed[name] = value
        self._debouncer.trigger()

    def _commit_typed(self) -> None:
        with self._lock:
            if not self._typed:
                return
            changed = any(self._committed.get(k) != v for k, v in self._typed.items())
            self._committed.update(self._typed)
            self._typed.clear()
            if not changed:
                return
            self._page = 1
            snapshot, page, size = dict(self._committed), self._page, self._page_size
        logger.info(f"Applying text filters {snapshot}")
        self.on_change(snapshot, page, size)

    def select(self, name: str, value: Any) -> None:
        reset = self.dependents.get(name, ())
        with self._lock:
            if self._committed.get(name) == value:
                return
            self._committed[name] = value
            for child in reset:
                self._committed.pop(child, None)
            self._page = 1
            snapshot, page, size = dict(self._committed), self._page, self._page_size

        if reset and self.on_parent_change is not None:
            self.on_parent_change(name, value)
        self.on_change(snapshot, page, size)

    def go_to_page(self, page_number: int) -> None:
        if page_number < 1:
            raise ValueError("page_number starts at 1")
        with self._lock:
            if page_number == self._page:
                return
            self._page = page_number
            snapshot, size = dict(self._committed), self._page_size
        self.on_change(snapshot, page_number, size)

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        with self._lock:
            if page_size == self._page_size:
                return
            self._page_size = page_size
            self._page = 1
            snapshot = dict(self._committed)
        self.on_change(snapshot, 1, page_size)

    def flush(self) -> None:
        self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.cancel()
