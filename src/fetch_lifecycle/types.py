"""
Type definitions for fetch_lifecycle.
"""
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, Literal, Optional, Protocol
from xml.etree.ElementTree import Element


# Response kinds. "html" is kept for compatibility and is returned as raw text.
ResponseKind = Literal["text", "html", "json", "xml"]

Callback = Callable[..., Any]


def noop(*args: Any, **kwargs: Any) -> None:
    """Default callback."""
    return None


class ReadyState(IntEnum):
    """Transport ready states, mirroring XMLHttpRequest."""

    UNSENT = 0
    OPENED = 1
    HEADERS_RECEIVED = 2
    LOADING = 3
    DONE = 4


@dataclass(frozen=True)
class RequestOptions:
    """Options for a single request. Merged over defaults once per call."""

    method: str = "GET"
    url: str = ""
    response_kind: ResponseKind = "text"
    header_filter: Optional[str] = None
    """Header to return for HEAD requests (all headers when unset)."""

    post_body: str = ""
    """Body sent with POST/PUT/PATCH."""

    timeout_ms: int = 30000
    is_async: bool = True
    success: Callback = noop
    error: Callback = noop
    complete: Callback = noop
    abort: Callback = noop
    id: Optional[int] = None
    """Request ID stamped at submission."""


class Transport(Protocol):
    """XMLHttpRequest-like transport consumed by the request lifecycle."""

    ready_state: ReadyState
    status: int
    failed: bool
    response_text: str
    on_ready_state_change: Optional[Callable[[], None]]
    timeout: Optional[float]
    """Network timeout in seconds; the lifecycle fills it in when unset."""

    @property
    def response_xml(self) -> Optional[Element]:
        """Parsed XML document, if the body is XML."""
        ...

    def open(self, method: str, url: str, is_async: bool = True) -> None:
        ...

    def set_header(self, name: str, value: str) -> None:
        ...

    def send(self, body: Optional[str] = None) -> None:
        ...

    def abort(self) -> None:
        """Cancel the request. Idempotent."""
        ...

    def get_header(self, name: str) -> Optional[str]:
        ...

    def get_all_headers(self) -> Dict[str, str]:
        ...


TransportFactory = Callable[[], Transport]


@dataclass
class RequestOutcome:
    """Terminal outcome of a request."""

    request_id: int
    data: Any
    success: bool
    aborted: bool = False


@dataclass
class RequestHandle:
    """Runtime state of one in-flight request."""

    id: int
    transport: Transport
    options: RequestOptions
    cancelled: bool = False
    timer: Optional[threading.Timer] = None
    future: "Future[RequestOutcome]" = field(default_factory=Future)
    outcome: Optional[RequestOutcome] = None
    _resolved: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def resolved(self) -> bool:
        return self._resolved

    def resolve(self) -> bool:
        """Claim the terminal outcome. Only the first caller gets True."""
        with self._lock:
            if self._resolved:
                return False
            self._resolved = True
            return True

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
