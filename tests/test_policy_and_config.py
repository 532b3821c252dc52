"""
Tests for FieldPolicy, the bleach-backed sanitizers and Settings.
"""
import dataclasses

import pytest
from pydantic import ValidationError

from xssguard.core.config import Settings
from xssguard.services.policy import (
    FieldPolicy,
    build_sanitizer,
    strict_sanitizer,
    ugc_sanitizer,
)


class TestSanitizers:

    def test_strict_removes_all_tags(self):
        sanitize = strict_sanitizer()
        out = sanitize('<b>bold</b><img src=x onerror="alert(1)"><script>evil()</script>')
        assert "<" not in out
        assert "onerror" not in out
        assert "bold" in out

    def test_strict_keeps_plain_text(self):
        assert strict_sanitizer()("hello world 42") == "hello world 42"

    def test_strict_is_idempotent(self):
        sanitize = strict_sanitizer()
        once = sanitize("a < b & <i>c</i>")
        assert sanitize(once) == once

    def test_ugc_keeps_formatting_without_attributes(self):
        out = ugc_sanitizer()('<b onclick="x()">hi</b><script>y</script>')
        assert "<b>hi</b>" in out
        assert "onclick" not in out
        assert "<script" not in out

    def test_build_sanitizer(self):
        assert build_sanitizer("strict")("<b>x</b>") == "x"
        assert build_sanitizer("ugc")("<b>x</b>") == "<b>x</b>"
        with pytest.raises(ValueError):
            build_sanitizer("lenient")


class TestFieldPolicy:

    def test_skip_match_is_exact(self):
        policy = FieldPolicy(sanitize=str.upper, skip_fields=("password",))
        assert policy.should_skip("password")
        assert not policy.should_skip("Password")
        assert not policy.should_skip("password2")

    def test_apply(self):
        policy = FieldPolicy(sanitize=str.upper, skip_fields=("password",))
        assert policy.apply("password", "abc") == "abc"
        assert policy.apply("name", "abc") == "ABC"
        assert policy.clean("abc") == "ABC"

    def test_default_policy(self):
        policy = FieldPolicy.default("token", "password")
        assert policy.skip_fields == ("password", "token")
        assert policy.apply("name", "<b>x</b>") == "x"

    def test_immutable(self):
        policy = FieldPolicy.default()
        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.skip_fields = ()

    def test_from_settings(self):
        settings = Settings(skip_fields="password,html", sanitize_policy="ugc")
        policy = FieldPolicy.from_settings(settings)
        assert policy.skip_fields == ("password", "html")
        assert policy.apply("bio", "<i>x</i><u>y</u><span>z</span>") == "<i>x</i><u>y</u>z"


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.skip_field_names() == ("password",)
        assert settings.sanitize_policy == "strict"
        assert settings.sanitize_responses is True
        assert settings.max_multipart_parts == 100
        assert settings.keep_all_form_values is True

    def test_skip_fields_normalized(self):
        settings = Settings(skip_fields=" password , token,password")
        assert settings.skip_field_names() == ("password", "token")

    def test_empty_skip_field_rejected(self):
        with pytest.raises(ValidationError):
            Settings(skip_fields="a,,b")

    def test_part_cap_bounds(self):
        with pytest.raises(ValidationError):
            Settings(max_multipart_parts=0)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SKIP_FIELDS", "token,secret")
        monkeypatch.setenv("SANITIZE_RESPONSES", "false")
        settings = Settings()
        assert settings.skip_field_names() == ("token", "secret")
        assert settings.sanitize_responses is False
