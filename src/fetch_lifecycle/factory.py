"""
Factory functions for composed request managers.
"""
from typing import Any, Dict, Optional

from .compose import Composite, compose
from .events import EventBus
from .lifecycle import RequestLifecycle
from .registry import RequestRegistry
from .types import RequestOptions, TransportFactory


def create_ajax(
    *,
    registry: Optional[RequestRegistry] = None,
    transport_factory: Optional[TransportFactory] = None,
    defaults: Optional[RequestOptions] = None,
    **members: Any,
) -> Composite:
    """
    Create a request manager with publish/subscribe capability.

    The result delegates to RequestLifecycle and has EventBus mixed in, so it
    publishes ``send``, ``abort`` and ``complete`` events. Extra keyword
    arguments are mixed in last and may override members, e.g. a custom
    ``on_complete``.

    Args:
        registry: Registry of in-flight requests (default: process-wide)
        transport_factory: Callable returning a new Transport per request
        defaults: Default request options
        **members: Additional members to mix into the composed object

    Example:
        ajax = create_ajax()
        ajax.subscribe("complete", lambda event: print(event["request_id"]))
        ajax.load({"url": "https://example.com/", "is_async": False})
    """
    settings: Dict[str, Any] = {}
    if registry is not None:
        settings["registry"] = registry
    if transport_factory is not None:
        settings["transport_factory"] = transport_factory
    if defaults is not None:
        settings["defaults"] = defaults
    settings.update(members)

    return compose(RequestLifecycle, EventBus, settings)
