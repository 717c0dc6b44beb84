"""
Tests for default options and option merging.
"""
import dataclasses
import logging

import pytest

from fetch_lifecycle.config import (
    DEFAULT_REQUEST_OPTIONS,
    TIMEOUT_ENV_VAR,
    merge_options,
    resolve_default_options,
)
from fetch_lifecycle.errors import InvalidOptionError
from fetch_lifecycle.types import RequestOptions, noop


class TestDefaults:
    """Tests for the default option set."""

    def test_default_values(self):
        assert DEFAULT_REQUEST_OPTIONS.method == "GET"
        assert DEFAULT_REQUEST_OPTIONS.response_kind == "text"
        assert DEFAULT_REQUEST_OPTIONS.timeout_ms == 30000
        assert DEFAULT_REQUEST_OPTIONS.is_async is True
        assert DEFAULT_REQUEST_OPTIONS.success is noop

    def test_env_overrides_timeout(self):
        options = resolve_default_options({TIMEOUT_ENV_VAR: "1500"})
        assert options.timeout_ms == 1500

    def test_env_missing_uses_defaults(self):
        assert resolve_default_options({}) is DEFAULT_REQUEST_OPTIONS

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_invalid_env_is_ignored_with_warning(self, raw, caplog):
        with caplog.at_level(logging.WARNING, logger="fetch_lifecycle.config"):
            options = resolve_default_options({TIMEOUT_ENV_VAR: raw})

        assert options.timeout_ms == 30000
        assert TIMEOUT_ENV_VAR in caplog.text

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv(TIMEOUT_ENV_VAR, "2500")
        assert resolve_default_options().timeout_ms == 2500


class TestMergeOptions:
    """Tests for merge_options()."""

    def test_mapping_fields_override_defaults(self):
        options = merge_options({"url": "https://example.com/", "response_kind": "json"})

        assert options.url == "https://example.com/"
        assert options.response_kind == "json"
        assert options.method == "GET"
        assert options.timeout_ms == 30000

    def test_caller_mapping_is_not_modified(self):
        caller = {"url": "https://example.com/", "method": "post"}
        merge_options(caller)
        assert caller == {"url": "https://example.com/", "method": "post"}

    def test_returns_new_object_each_call(self):
        first = merge_options({})
        second = merge_options({})
        assert first == second
        assert first is not second
        assert first is not DEFAULT_REQUEST_OPTIONS

    def test_aliases_are_accepted(self):
        options = merge_options({
            "async": False,
            "type": "post",
            "data": "json",
            "headers": "ETag",
            "postvars": "a=1",
            "timeout": 100,
        })

        assert options.is_async is False
        assert options.method == "POST"
        assert options.response_kind == "json"
        assert options.header_filter == "ETag"
        assert options.post_body == "a=1"
        assert options.timeout_ms == 100

    def test_unknown_option_raises(self):
        with pytest.raises(InvalidOptionError, match="bogus"):
            merge_options({"bogus": 1})

    def test_invalid_response_kind_raises(self):
        with pytest.raises(InvalidOptionError):
            merge_options({"response_kind": "yaml"})

    def test_non_positive_timeout_raises(self):
        with pytest.raises(InvalidOptionError):
            merge_options({"timeout_ms": 0})

    def test_none_callbacks_become_noop(self):
        options = merge_options({"success": None, "error": None})
        assert options.success is noop
        assert options.error is noop

    def test_method_is_upper_cased(self):
        assert merge_options({"method": "head"}).method == "HEAD"

    def test_dataclass_options_are_fully_explicit(self):
        defaults = dataclasses.replace(
            resolve_default_options({TIMEOUT_ENV_VAR: "900"}), method="POST"
        )
        options = merge_options(
            RequestOptions(url="https://example.com/", timeout_ms=30000, method="GET"),
            defaults,
        )

        assert options.url == "https://example.com/"
        assert options.timeout_ms == 30000
        assert options.method == "GET"

    def test_mapping_options_keep_custom_defaults(self):
        defaults = resolve_default_options({TIMEOUT_ENV_VAR: "900"})
        options = merge_options({"url": "https://example.com/"}, defaults)

        assert options.timeout_ms == 900

    def test_keyword_overrides_win_over_dataclass_options(self):
        options = merge_options(RequestOptions(is_async=False), is_async=True)
        assert options.is_async is True

    def test_keyword_overrides_win(self):
        options = merge_options({"url": "https://a.example/"}, url="https://b.example/")
        assert options.url == "https://b.example/"

    def test_none_options(self):
        assert merge_options(None) == DEFAULT_REQUEST_OPTIONS
