"""Keep the host's address bar in sync with a live set of query parameters."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from .query_params import QueryParams, query_params_to_str

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.1


class UrlBinderError(Exception):
    """Raised when a UrlBinder is used out of order."""

    pass


class ObservableUrl(ABC):
    """Source of query parameters that announces when they change."""

    debounce_mode: bool = False

    @property
    @abstractmethod
    def params(self) -> QueryParams:
        """Current query parameters."""
        pass

    @abstractmethod
    def observe(self, callback: Callable[[QueryParams], None]) -> Callable[[], None]:
        """Call callback on every change to params; return a disposer."""
        pass


class LocationPort(ABC):
    """Access to the host's current location."""

    @abstractmethod
    def get_query_str(self) -> str:
        pass

    @abstractmethod
    def replace_query_str(self, query_str: str) -> None:
        """Replace the query portion in place, without a new history entry."""
        pass


class InMemoryLocation(LocationPort):
    """Location kept in memory, recording every replacement."""

    def __init__(self, query_str: str = ""):
        self.query_str = query_str
        self.history: List[str] = []

    def get_query_str(self) -> str:
        return self.query_str

    def replace_query_str(self, query_str: str) -> None:
        self.query_str = query_str
        self.history.append(query_str)


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        pass


class Scheduler(ABC):
    """Runs callbacks after a delay."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        pass


class _ThreadingTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Scheduler backed by threading.Timer."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _ThreadingTimerHandle(timer)


class UrlBinder:
    """
    Pushes an ObservableUrl's params to a LocationPort whenever they change.

    While the source is in debounce mode (e.g. timeline playback) pushes are
    coalesced: one push fires once no change has arrived for debounce_seconds,
    carrying the params as they are at that moment. Otherwise every change is
    pushed at once.
    """

    def __init__(
        self,
        location: LocationPort,
        scheduler: Optional[Scheduler] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.location = location
        self.scheduler = scheduler or ThreadingScheduler()
        self.debounce_seconds = debounce_seconds
        self._url: Optional[ObservableUrl] = None
        self._dispose: Optional[Callable[[], None]] = None
        self._pending: Optional[TimerHandle] = None
        self._pending_token: Optional[object] = None
        self._lock = threading.Lock()

    @property
    def is_bound(self) -> bool:
        return self._url is not None

    def bind_to_window(self, url: ObservableUrl) -> None:
        """
        Start pushing url's params to the location.

        Raises:
            UrlBinderError: If this binder is already bound
        """
        if self.is_bound:
            raise UrlBinderError("UrlBinder is already bound; unbind it first")

        self._url = url
        self._dispose = url.observe(self._on_params_changed)
        logger.debug("Bound URL to window")

    def unbind_from_window(self) -> None:
        """Stop pushing and cancel any pending debounced push."""
        if not self.is_bound:
            logger.warning("unbind_from_window called on an unbound UrlBinder")
            return

        with self._lock:
            self._cancel_pending()
            if self._dispose:
                self._dispose()
            self._dispose = None
            self._url = None
        logger.debug("Unbound URL from window")

    def _on_params_changed(self, params: QueryParams) -> None:
        url = self._url
        if url is None:
            return

        if url.debounce_mode:
            with self._lock:
                self._cancel_pending()
                token = object()
                self._pending_token = token
                self._pending = self.scheduler.call_later(
                    self.debounce_seconds, lambda: self._flush(token)
                )
        else:
            with self._lock:
                self._cancel_pending()
                self._push(url)

    def _flush(self, token: object) -> None:
        with self._lock:
            # A timer cancelled after it started firing must not push
            if token is not self._pending_token:
                return
            self._pending = None
            self._pending_token = None
            if self._url is not None:
                self._push(self._url)

    def _push(self, url: ObservableUrl) -> None:
        query_str = query_params_to_str(url.params)
        logger.debug(f"Replacing query string: {query_str!r}")
        self.location.replace_query_str(query_str)

    def _cancel_pending(self) -> None:
        self._pending_token = None
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
