"""
Request lifecycle: submission, timeout race, classification and dispatch.
"""
import asyncio
import dataclasses
import logging
import threading
from typing import Any, Dict, Mapping, Optional, Union

from .classify import extract_response_data, was_successful
from .compose import mixin_if
from .config import BODY_METHODS, FORM_CONTENT_TYPE, merge_options, resolve_default_options
from .registry import RequestRegistry, get_default_registry
from .transport import HttpxTransport
from .types import (
    ReadyState,
    RequestHandle,
    RequestOptions,
    RequestOutcome,
    Transport,
    TransportFactory,
)

logger = logging.getLogger("fetch_lifecycle.lifecycle")

Options = Union[RequestOptions, Mapping[str, Any], None]


class RequestLifecycle:
    """
    Issues requests and delivers exactly one terminal callback per request.

    Every call gets its own merged options, a fresh ID and a registry entry.
    The transport's completion and the timeout race for the terminal outcome;
    whichever comes first wins and the other is ignored. Callbacks run in
    order: success or error, then complete. The registry entry is removed
    afterwards.

    Usable on its own, or as the base of a composed object (see
    fetch_lifecycle.factory.create_ajax), in which case the lifecycle events
    ``send``, ``abort`` and ``complete`` are published to subscribers.

    Example:
        lifecycle = RequestLifecycle()
        lifecycle.load({
            "url": "https://api.example.com/items",
            "response_kind": "json",
            "success": lambda data, options, ok, transport: print(data),
        })
    """

    LIFECYCLE_EVENTS = ("send", "abort", "complete")

    def __init__(
        self,
        registry: Optional[RequestRegistry] = None,
        transport_factory: Optional[TransportFactory] = None,
        defaults: Optional[RequestOptions] = None,
    ) -> None:
        if registry is not None:
            self.registry = registry
        if transport_factory is not None:
            self.transport_factory = transport_factory
        if defaults is not None:
            self.defaults = defaults
        self.post_compose()

    def post_compose(self, *mixins: Any) -> None:
        """Fill in settings that were not supplied and declare lifecycle events."""
        mixin_if(self, {
            "registry": get_default_registry(),
            "transport_factory": HttpxTransport,
            "defaults": resolve_default_options(),
        })

        declare = getattr(self, "declare", None)
        if callable(declare):
            declare(*self.LIFECYCLE_EVENTS)

    def _publish(self, name: str, **fields: Any) -> None:
        fire = getattr(self, "fire", None)
        if callable(fire):
            fire(name, fields)

    def load(self, options: Options = None) -> Any:
        """
        Issue a request.

        Returns None for asynchronous requests; their results arrive through
        the callbacks. With ``is_async=False`` the call blocks until the
        transport finishes and returns the extracted data when the request
        succeeded (None otherwise). A malformed JSON body raises
        ResponseDecodeError from the blocking call.
        """
        handle = self._submit(options)
        outcome = handle.outcome
        if not handle.options.is_async and outcome is not None and outcome.success:
            return outcome.data
        return None

    def get(self, url: str) -> str:
        """Blocking GET returning the raw response text, whatever the status."""
        handle = self._submit({"url": url, "is_async": False, "response_kind": "text"})
        return handle.transport.response_text

    async def aload(self, options: Options = None) -> RequestOutcome:
        """
        Issue a request and await its terminal outcome.

        The send is always asynchronous so the event loop is never blocked;
        ``is_async`` in the options is ignored.
        """
        handle = self._submit(options, is_async=True)
        return await asyncio.wrap_future(handle.future)

    def get_requests(self) -> Dict[int, RequestHandle]:
        """Snapshot of the requests that are currently in flight."""
        return self.registry.snapshot()

    def on_complete(
        self,
        response: Any,
        options: RequestOptions,
        success: bool,
        transport: Transport,
    ) -> None:
        """Dispatch the terminal callbacks and drop the registry entry."""
        if success:
            options.success(response, options, True, transport)
        else:
            options.error(response, options, False, transport)

        options.complete()
        self.registry.deregister(options.id)

    def _submit(self, options: Options, **overrides: Any) -> RequestHandle:
        request_id = self.registry.next_id()
        merged = merge_options(options, self.defaults, **overrides)
        merged = dataclasses.replace(merged, id=request_id)

        handle = RequestHandle(
            id=request_id,
            transport=self.transport_factory(),
            options=merged,
        )
        logger.debug(f"RequestLifecycle.submit: id={request_id}, method={merged.method}, url={merged.url}")
        self._send_request(handle)
        return handle

    def _send_request(self, handle: RequestHandle) -> None:
        options = handle.options
        transport = handle.transport

        self.registry.register(handle)

        timer = threading.Timer(options.timeout_ms / 1000.0, self._on_timeout, args=(handle,))
        timer.daemon = True
        handle.timer = timer
        timer.start()

        transport.on_ready_state_change = lambda: self._on_ready_state_change(handle)
        # Network-level limit; a stalled worker exits after an abort.
        if getattr(transport, "timeout", None) is None:
            transport.timeout = options.timeout_ms / 1000.0

        try:
            if options.method == "HEAD":
                transport.open(options.method, options.url)
            else:
                transport.open(options.method, options.url, options.is_async)

            self._publish("send", request_id=handle.id, options=options)

            if options.method in BODY_METHODS:
                transport.set_header("Content-Type", FORM_CONTENT_TYPE)
                transport.send(options.post_body)
            else:
                transport.send(None)
        except Exception as error:
            # A completion raising inside a blocking send has already resolved.
            if handle.resolve():
                handle.cancel_timer()
                self.registry.deregister(handle.id)
                handle.future.set_exception(error)
                logger.debug(f"RequestLifecycle: request {handle.id} failed to send: {error!r}")
            raise

    def _on_ready_state_change(self, handle: RequestHandle) -> None:
        transport = handle.transport
        if transport.ready_state != ReadyState.DONE:
            return
        if not handle.resolve():
            logger.debug(f"RequestLifecycle: ignoring late completion of request {handle.id}")
            return

        handle.cancel_timer()
        options = handle.options
        success = was_successful(transport.status, options.url, transport.failed)

        try:
            data = extract_response_data(transport, options)
        except Exception as error:
            self.registry.deregister(handle.id)
            handle.future.set_exception(error)
            raise

        logger.debug(f"RequestLifecycle: request {handle.id} finished, status={transport.status}, success={success}")
        self._finish(handle, data, success)

    def _on_timeout(self, handle: RequestHandle) -> None:
        if not handle.resolve():
            return

        options = handle.options
        handle.cancelled = True
        logger.warning(
            f"RequestLifecycle: request {handle.id} timed out after {options.timeout_ms}ms "
            f"({options.method} {options.url})"
        )

        handle.transport.abort()
        options.abort()
        self._publish("abort", request_id=handle.id)
        self._finish(handle, None, False)

    def _finish(self, handle: RequestHandle, data: Any, success: bool) -> None:
        outcome = RequestOutcome(
            request_id=handle.id,
            data=data,
            success=success,
            aborted=handle.cancelled,
        )
        handle.outcome = outcome

        try:
            self.on_complete(data, handle.options, success, handle.transport)
        except Exception as error:
            self.registry.deregister(handle.id)
            handle.future.set_exception(error)
            raise

        self.registry.deregister(handle.id)
        handle.future.set_result(outcome)
        self._publish("complete", request_id=handle.id, success=success)
