"""
Registry of in-flight requests.
"""
import itertools
import logging
import threading
from typing import Dict, Optional

from .errors import DuplicateRequestError
from .types import RequestHandle

logger = logging.getLogger("fetch_lifecycle.registry")


class RequestRegistry:
    """
    Thread-safe map of request ID to in-flight RequestHandle.

    An ID is present only between send and terminal outcome. IDs come from a
    monotonic counter owned by the registry, so a removed
    ID is never handed out again, not even after reset().

    Example:
        registry = RequestRegistry()
        ajax = create_ajax(registry=registry)
        ajax.load({"url": "https://example.com/"})
        registry.size()  # 1 until the request completes
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: Dict[int, RequestHandle] = {}
        self._counter = itertools.count(1)

    def next_id(self) -> int:
        """Mint a new request ID."""
        with self._lock:
            return next(self._counter)

    def register(self, handle: RequestHandle) -> None:
        """Add a handle. Raises if its ID is already live."""
        with self._lock:
            if handle.id in self._requests:
                raise DuplicateRequestError(f"Request {handle.id} is already registered")
            self._requests[handle.id] = handle
        logger.debug(f"RequestRegistry.register: id={handle.id}")

    def deregister(self, request_id: Optional[int]) -> Optional[RequestHandle]:
        """Remove a handle, returning it if it was present."""
        with self._lock:
            handle = self._requests.pop(request_id, None)
        if handle is not None:
            logger.debug(f"RequestRegistry.deregister: id={request_id}")
        return handle

    def get(self, request_id: int) -> Optional[RequestHandle]:
        with self._lock:
            return self._requests.get(request_id)

    def has(self, request_id: int) -> bool:
        with self._lock:
            return request_id in self._requests

    def size(self) -> int:
        with self._lock:
            return len(self._requests)

    def snapshot(self) -> Dict[int, RequestHandle]:
        """Copy of the current contents."""
        with self._lock:
            return dict(self._requests)

    def reset(self) -> None:
        """Forget every tracked request. The ID counter keeps counting."""
        with self._lock:
            dropped = len(self._requests)
            self._requests.clear()
        logger.debug(f"RequestRegistry.reset: dropped={dropped}")


default_registry = RequestRegistry()


def get_default_registry() -> RequestRegistry:
    """Registry shared by lifecycles that are not given one."""
    return default_registry
