"""
Unit tests for route selection and the shared dispatcher.
"""
import re

import pytest

from xssguard.services.dispatcher import (
    RequestDispatcher,
    Route,
    media_type,
    parse_content_length,
    select_route,
)
from xssguard.services.exceptions import NotJsonError
from xssguard.services.policy import FieldPolicy


def strip_tags(text: str) -> str:
    return re.sub(r"<[^>]*>", "", text)


@pytest.fixture
def dispatcher():
    return RequestDispatcher(FieldPolicy(sanitize=strip_tags))


@pytest.mark.parametrize("method,content_type,length,expected", [
    ("POST", "application/json", 10, Route.JSON),
    ("PUT", "application/json; charset=utf-8", 10, Route.JSON),
    ("PATCH", "Application/JSON", 2, Route.JSON),
    ("POST", "application/json", 1, Route.PASSTHROUGH),
    ("POST", "application/json", parse_content_length(None), Route.PASSTHROUGH),
    ("POST", "application/x-www-form-urlencoded", 0, Route.FORM),
    ("PUT", "multipart/form-data; boundary=abc", 100, Route.MULTIPART),
    ("POST", "text/plain", 10, Route.PASSTHROUGH),
    ("POST", None, 10, Route.PASSTHROUGH),
    ("GET", "application/json", 10, Route.QUERY),
    ("get", None, 0, Route.QUERY),
    ("DELETE", "application/json", 10, Route.PASSTHROUGH),
    ("HEAD", None, 0, Route.PASSTHROUGH),
])
def test_select_route(method, content_type, length, expected):
    assert select_route(method, content_type, length) is expected


def test_media_type():
    assert media_type(" Text/HTML ; charset=utf-8") == "text/html"
    assert media_type(None) == ""


def test_parse_content_length():
    assert parse_content_length("42") == 42
    assert parse_content_length(None) == 0
    assert parse_content_length("abc") == 0


class TestRequestDispatcher:

    def test_json_body(self, dispatcher):
        out = dispatcher.sanitize_body(Route.JSON, b'{"a": "<b>x</b>"}', "application/json")
        assert out == b'{"a":"x"}'

    def test_form_body(self, dispatcher):
        out = dispatcher.sanitize_body(
            Route.FORM, b"a=%3Cb%3Ex&a=y", "application/x-www-form-urlencoded"
        )
        assert out == b"a=x&a=y"

    def test_form_body_collapsed(self):
        dispatcher = RequestDispatcher(FieldPolicy(sanitize=strip_tags), keep_all_form_values=False)
        out = dispatcher.sanitize_body(
            Route.FORM, b"a=%3Cb%3Ex&a=y", "application/x-www-form-urlencoded"
        )
        assert out == b"a=x"

    def test_multipart_body(self, dispatcher):
        body = (
            b'--b\r\nContent-Disposition: form-data; name="a"\r\n\r\n<i>x</i>\r\n'
            b'--b\r\nContent-Disposition: form-data; name="c"\r\n\r\ny\r\n'
            b"--b--\r\n"
        )
        capped = RequestDispatcher(FieldPolicy(sanitize=strip_tags), max_multipart_parts=1)
        out = capped.sanitize_body(Route.MULTIPART, body, "multipart/form-data; boundary=b")
        assert out == b'--b\r\nContent-Disposition: form-data; name="a"\r\n\r\nx\r\n--b--\r\n'

    def test_passthrough_body(self, dispatcher):
        assert dispatcher.sanitize_body(Route.PASSTHROUGH, b"<b>", "text/plain") == b"<b>"

    def test_response_json(self, dispatcher):
        out = dispatcher.sanitize_response(b'[{"a": "<b>x</b>"}]', "application/json; charset=utf-8")
        assert out == b'[{"a":"x"}]'

    def test_response_non_json_passes(self, dispatcher):
        assert dispatcher.sanitize_response(b"<b>x</b>", "text/html") is None
        assert dispatcher.sanitize_response(b"<b>x</b>", None) is None

    def test_response_empty_passes(self, dispatcher):
        assert dispatcher.sanitize_response(b"", "application/json") is None

    def test_response_bad_json_raises(self, dispatcher):
        with pytest.raises(NotJsonError):
            dispatcher.sanitize_response(b"{oops", "application/json")
