"""
Request lifecycle manager with timeout racing and declared-event publishing.

Issues XMLHttpRequest-style requests over httpx, tracks them by ID, races
each against a timeout, and delivers exactly one terminal callback. The
request manager is composed with a publish/subscribe capability through a
small delegation-and-mixin compositor.
"""
from .types import (
    ReadyState,
    RequestHandle,
    RequestOptions,
    RequestOutcome,
    ResponseKind,
    Transport,
    TransportFactory,
    noop,
)
from .errors import (
    DuplicateRequestError,
    FetchLifecycleError,
    InvalidOptionError,
    ResponseDecodeError,
)
from .config import (
    BODY_METHODS,
    DEFAULT_REQUEST_OPTIONS,
    FORM_CONTENT_TYPE,
    merge_options,
    resolve_default_options,
)
from .events import EventBus
from .compose import Composite, compose, compose_if, mixin, mixin_if
from .registry import RequestRegistry, default_registry, get_default_registry
from .classify import extract_response_data, is_local_file, was_successful
from .transport import HttpxTransport
from .lifecycle import RequestLifecycle
from .factory import create_ajax

__all__ = [
    # Types
    "ReadyState",
    "RequestHandle",
    "RequestOptions",
    "RequestOutcome",
    "ResponseKind",
    "Transport",
    "TransportFactory",
    "noop",
    # Errors
    "DuplicateRequestError",
    "FetchLifecycleError",
    "InvalidOptionError",
    "ResponseDecodeError",
    # Config
    "BODY_METHODS",
    "DEFAULT_REQUEST_OPTIONS",
    "FORM_CONTENT_TYPE",
    "merge_options",
    "resolve_default_options",
    # Events
    "EventBus",
    # Composition
    "Composite",
    "compose",
    "compose_if",
    "mixin",
    "mixin_if",
    # Registry
    "RequestRegistry",
    "default_registry",
    "get_default_registry",
    # Classification
    "extract_response_data",
    "is_local_file",
    "was_successful",
    # Transport
    "HttpxTransport",
    # Lifecycle
    "RequestLifecycle",
    "create_ajax",
]

__version__ = "0.1.0"
