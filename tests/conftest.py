"""
Shared fixtures for fetch_lifecycle tests.
"""
import threading
from typing import Callable, Dict, List, Optional, Tuple
from xml.etree import ElementTree

import pytest

from fetch_lifecycle.registry import RequestRegistry
from fetch_lifecycle.types import ReadyState


class FakeTransport:
    """Scriptable Transport. Tests decide when and how it completes."""

    def __init__(
        self,
        status: int = 200,
        text: str = "",
        headers: Optional[Dict[str, str]] = None,
        auto_complete: bool = False,
        failed: bool = False,
    ) -> None:
        self.ready_state = ReadyState.UNSENT
        self.status = 0
        self.failed = False
        self.response_text = ""
        self.on_ready_state_change: Optional[Callable[[], None]] = None
        self.timeout: Optional[float] = None

        self.opened: Optional[Tuple] = None
        self.request_headers: Dict[str, str] = {}
        self.sent_body: Optional[str] = "<not sent>"
        self.abort_calls = 0
        self._headers: Dict[str, str] = {}
        self._scripted = (status, text, headers or {}, failed)
        self._auto_complete = auto_complete

    # Transport interface

    def open(self, *args) -> None:
        self.opened = args
        self.ready_state = ReadyState.OPENED

    def set_header(self, name: str, value: str) -> None:
        self.request_headers[name] = value

    def send(self, body: Optional[str] = None) -> None:
        self.sent_body = body
        if self._auto_complete:
            self.complete()

    def abort(self) -> None:
        self.abort_calls += 1
        self.ready_state = ReadyState.UNSENT
        self.status = 0

    def get_header(self, name: str) -> Optional[str]:
        for key, value in self._headers.items():
            if key.lower() == name.lower():
                return value
        return None

    def get_all_headers(self) -> Dict[str, str]:
        return dict(self._headers)

    @property
    def response_xml(self):
        try:
            return ElementTree.fromstring(self.response_text)
        except ElementTree.ParseError:
            return None

    # Test controls

    def complete(
        self,
        status: Optional[int] = None,
        text: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        failed: Optional[bool] = None,
    ) -> None:
        """Finish the request and fire the state-change callback."""
        s_status, s_text, s_headers, s_failed = self._scripted
        self.status = s_status if status is None else status
        self.response_text = s_text if text is None else text
        self._headers = s_headers if headers is None else headers
        self.failed = s_failed if failed is None else failed
        self.ready_state = ReadyState.DONE
        if self.on_ready_state_change is not None:
            self.on_ready_state_change()


class TransportRecorder:
    """Transport factory that remembers every transport it made."""

    def __init__(self, **scripted) -> None:
        self.scripted = scripted
        self.transports: List[FakeTransport] = []

    def __call__(self) -> FakeTransport:
        transport = FakeTransport(**self.scripted)
        self.transports.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.transports[-1]


class CallLog:
    """Records callback invocations in order."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, tuple]] = []
        self.done = threading.Event()

    def callbacks(self) -> Dict[str, Callable]:
        def record(name):
            def callback(*args):
                self.calls.append((name, args))
                if name == "complete":
                    self.done.set()
            return callback

        return {name: record(name) for name in ("success", "error", "complete", "abort")}

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def args(self, name: str) -> tuple:
        for call_name, args in self.calls:
            if call_name == name:
                return args
        raise AssertionError(f"{name} was not called")


@pytest.fixture
def registry():
    """Fresh registry per test."""
    return RequestRegistry()


@pytest.fixture
def transports():
    """Factory of fake transports that complete only when told to."""
    return TransportRecorder()


@pytest.fixture
def call_log():
    return CallLog()
