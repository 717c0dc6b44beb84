"""
Default options and option merging for fetch_lifecycle.
"""
import dataclasses
import logging
import os
from typing import Any, Dict, Mapping, Optional, Union

from .errors import InvalidOptionError
from .types import RequestOptions, noop

logger = logging.getLogger("fetch_lifecycle.config")

TIMEOUT_ENV_VAR = "FETCH_LIFECYCLE_TIMEOUT_MS"

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

RESPONSE_KINDS = ("text", "html", "json", "xml")

CALLBACK_FIELDS = ("success", "error", "complete", "abort")

# Alternate spellings accepted in option mappings.
OPTION_ALIASES = {
    "async": "is_async",
    "type": "method",
    "data": "response_kind",
    "headers": "header_filter",
    "postvars": "post_body",
    "timeout": "timeout_ms",
}

DEFAULT_REQUEST_OPTIONS = RequestOptions()

_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(RequestOptions))


def resolve_default_options(
    env: Optional[Mapping[str, str]] = None,
) -> RequestOptions:
    """
    Build default options, honouring environment overrides.

    FETCH_LIFECYCLE_TIMEOUT_MS replaces the default timeout when it holds
    a positive integer; anything else is ignored with a warning.
    """
    env = os.environ if env is None else env
    raw = env.get(TIMEOUT_ENV_VAR)
    if not raw:
        return DEFAULT_REQUEST_OPTIONS

    try:
        timeout_ms = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {TIMEOUT_ENV_VAR}={raw!r}: not an integer")
        return DEFAULT_REQUEST_OPTIONS

    if timeout_ms <= 0:
        logger.warning(f"Ignoring {TIMEOUT_ENV_VAR}={raw!r}: must be positive")
        return DEFAULT_REQUEST_OPTIONS

    return dataclasses.replace(DEFAULT_REQUEST_OPTIONS, timeout_ms=timeout_ms)


def _normalize_fields(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Resolve aliases, drop absent callbacks and reject unknown names."""
    fields: Dict[str, Any] = {}
    for key, value in options.items():
        name = OPTION_ALIASES.get(key, key)
        if name not in _FIELD_NAMES:
            raise InvalidOptionError(f"Unknown request option: {key!r}")
        if name in CALLBACK_FIELDS and value is None:
            continue
        fields[name] = value
    return fields


def merge_options(
    options: Union[RequestOptions, Mapping[str, Any], None] = None,
    defaults: Optional[RequestOptions] = None,
    **overrides: Any,
) -> RequestOptions:
    """
    Shallow-merge caller options over defaults.

    A mapping is a partial override: its keys win, absent fields keep the
    defaults. A RequestOptions instance is already complete, so every one of
    its fields wins. Keyword overrides are applied last. The caller's object
    is never modified; a new RequestOptions is returned on every call.
    """
    base = defaults or DEFAULT_REQUEST_OPTIONS

    if options is None:
        fields: Dict[str, Any] = {}
    elif isinstance(options, RequestOptions):
        fields = {
            f.name: getattr(options, f.name)
            for f in dataclasses.fields(RequestOptions)
        }
    else:
        fields = _normalize_fields(options)

    fields.update(_normalize_fields(overrides))

    merged = dataclasses.replace(base, **fields)

    if merged.response_kind not in RESPONSE_KINDS:
        raise InvalidOptionError(
            f"Invalid response_kind: {merged.response_kind!r}. Must be one of: {list(RESPONSE_KINDS)}"
        )
    if merged.timeout_ms <= 0:
        raise InvalidOptionError(f"timeout_ms must be positive, got {merged.timeout_ms}")

    fixes: Dict[str, Any] = {"method": (merged.method or "GET").upper()}
    for name in CALLBACK_FIELDS:
        if getattr(merged, name) is None:
            fixes[name] = noop

    return dataclasses.replace(merged, **fixes)
