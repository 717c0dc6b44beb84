"""
Outcome classification and response extraction.
"""
import json
from typing import Any, Optional
from urllib.parse import urlparse

from .errors import ResponseDecodeError
from .types import RequestOptions, Transport


def is_local_file(url: Optional[str]) -> bool:
    """Whether the URL targets a local file resource."""
    if not url:
        return False
    return urlparse(url).scheme.lower() == "file"


def was_successful(status: Optional[int], url: Optional[str], failed: bool = False) -> bool:
    """
    Classify a finished transport.

    Successful when there is no status and a local file was requested,
    when the status is in the 2xx range, or when it is 304 Not Modified.
    An explicit error signal from the transport is always a failure.
    """
    if failed:
        return False
    if not status:
        return is_local_file(url)
    return 200 <= status < 300 or status == 304


def extract_response_data(transport: Transport, options: RequestOptions) -> Any:
    """
    Pull the response out of a finished transport.

    HEAD requests yield headers (all of them, or the one named by
    header_filter). JSON is decoded and raises ResponseDecodeError when the
    body is malformed. XML, requested or announced by the content type,
    yields the parsed document. Everything else yields the raw text.
    A transport that failed has no response, so nothing is decoded and the
    result is None.
    """
    if transport.failed:
        return None

    if options.method == "HEAD":
        if options.header_filter:
            return transport.get_header(options.header_filter)
        return transport.get_all_headers()

    if options.response_kind == "json":
        text = transport.response_text
        try:
            return json.loads(text)
        except ValueError as error:
            raise ResponseDecodeError(
                f"Response for {options.method} {options.url} is not valid JSON: {error}",
                request_id=options.id,
                body=text,
            ) from error

    content_type = transport.get_header("content-type") or ""
    if options.response_kind == "xml" or "xml" in content_type:
        return transport.response_xml

    return transport.response_text
