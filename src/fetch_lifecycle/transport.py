"""
XMLHttpRequest-like transport backed by httpx.
"""
import logging
import mimetypes
import os
import threading
from pathlib import Path
from typing import Callable, Dict, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname
from xml.etree import ElementTree

import httpx

from .classify import is_local_file
from .types import ReadyState

logger = logging.getLogger("fetch_lifecycle.transport")


def _is_ssl_verify_disabled_by_env() -> bool:
    """
    Check if SSL verification is disabled via environment variables.

    Returns True if any of these are set:
    - NODE_TLS_REJECT_UNAUTHORIZED=0
    - SSL_CERT_VERIFY=0
    """
    node_tls = os.environ.get("NODE_TLS_REJECT_UNAUTHORIZED", "")
    ssl_cert_verify = os.environ.get("SSL_CERT_VERIFY", "")
    return node_tls == "0" or ssl_cert_verify == "0"


class HttpxTransport:
    """
    One outbound request with XMLHttpRequest semantics.

    open() -> set_header() -> send(). Asynchronous sends run on a daemon
    worker thread; synchronous sends block the caller. When the request
    finishes, ready_state becomes DONE and on_ready_state_change is called
    once. An aborted request never reports completion. ``timeout`` (seconds)
    bounds every network operation of the request.

    Example:
        transport = HttpxTransport()
        transport.on_ready_state_change = lambda: print(transport.status)
        transport.open("GET", "https://example.com/", is_async=False)
        transport.send()
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout
        self._lock = threading.Lock()
        self._method = "GET"
        self._url = ""
        self._is_async = True
        self._request_headers: Dict[str, str] = {}
        self._response_headers = httpx.Headers()
        self._response_xml: Optional[ElementTree.Element] = None
        self._xml_parsed = False
        self._thread: Optional[threading.Thread] = None

        self.ready_state = ReadyState.UNSENT
        self.status = 0
        self.status_text = ""
        self.failed = False
        self.aborted = False
        self.error: Optional[BaseException] = None
        self.response_text = ""
        self.on_ready_state_change: Optional[Callable[[], None]] = None

    def open(self, method: str, url: str, is_async: bool = True) -> None:
        self._method = method.upper()
        self._url = url
        self._is_async = is_async
        self._request_headers = {}
        self.ready_state = ReadyState.OPENED

    def set_header(self, name: str, value: str) -> None:
        if self.ready_state != ReadyState.OPENED:
            raise RuntimeError("Transport must be opened before setting headers")
        self._request_headers[name] = value

    def send(self, body: Optional[str] = None) -> None:
        if self.ready_state != ReadyState.OPENED:
            raise RuntimeError("Transport must be opened before sending")

        logger.debug(f"HttpxTransport.send: method={self._method}, url={self._url}, async={self._is_async}")

        if not self._is_async:
            self._perform(body)
            return

        self._thread = threading.Thread(
            target=self._perform,
            args=(body,),
            name=f"transport-{self._method}-{id(self):x}",
            daemon=True,
        )
        self._thread.start()

    def abort(self) -> None:
        """Cancel the request. Safe to call repeatedly or after completion."""
        with self._lock:
            if self.aborted or self.ready_state == ReadyState.DONE:
                return
            self.aborted = True
            self.failed = True
            self.status = 0
            self.ready_state = ReadyState.UNSENT
            client = self._client if self._owns_client else None
        logger.debug(f"HttpxTransport.abort: method={self._method}, url={self._url}")
        # Closing the pool releases a worker blocked on the network.
        if client is not None:
            client.close()

    def get_header(self, name: str) -> Optional[str]:
        return self._response_headers.get(name)

    def get_all_headers(self) -> Dict[str, str]:
        return dict(self._response_headers.items())

    @property
    def response_xml(self) -> Optional[ElementTree.Element]:
        """Parsed XML body, or None when the body is not well-formed XML."""
        if not self._xml_parsed:
            self._xml_parsed = True
            try:
                self._response_xml = ElementTree.fromstring(self.response_text)
            except ElementTree.ParseError:
                self._response_xml = None
        return self._response_xml

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for an asynchronous send to finish. True once no worker is running."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=None,
                verify=not _is_ssl_verify_disabled_by_env(),
            )
        return self._client

    def _read_local_file(self) -> None:
        path = Path(url2pathname(urlparse(self._url).path))
        text = path.read_text(encoding="utf-8")
        content_type, _ = mimetypes.guess_type(str(path))
        with self._lock:
            if self.aborted:
                return
            # Local files carry no HTTP status.
            self.status = 0
            self.response_text = text
            self._response_headers = httpx.Headers(
                {"content-type": content_type} if content_type else {}
            )

    def _fetch(self, body: Optional[str]) -> None:
        if self.aborted:
            return
        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        response = self._get_client().request(
            self._method,
            self._url,
            headers=self._request_headers,
            content=body if body else None,
            **kwargs,
        )
        with self._lock:
            if self.aborted:
                return
            self.status = response.status_code
            self.status_text = response.reason_phrase or ""
            self._response_headers = response.headers
            self.response_text = response.text

    def _perform(self, body: Optional[str]) -> None:
        try:
            if is_local_file(self._url):
                self._read_local_file()
            else:
                self._fetch(body)
        except (httpx.HTTPError, httpx.InvalidURL, OSError, UnicodeDecodeError) as error:
            logger.debug(f"HttpxTransport: {self._method} {self._url} failed: {error!r}")
            with self._lock:
                if not self.aborted:
                    self.failed = True
                    self.error = error
                    self.status = 0
        except RuntimeError:
            # Raised by a client closed through abort().
            if not self.aborted:
                raise
        finally:
            if self._owns_client and self._client is not None:
                self._client.close()
                self._client = None

        with self._lock:
            if self.aborted:
                return
            self.ready_state = ReadyState.DONE

        callback = self.on_ready_state_change
        if callback is not None:
            callback()
