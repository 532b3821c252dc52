"""
Field policy: which fields are sanitized and how.

The markup engine is an injected capability (`Sanitizer`), so codecs never
depend on bleach directly. The bleach-backed factories below are the
defaults.
"""
from dataclasses import dataclass, field
from typing import Callable, Iterable

import bleach

from xssguard.core.config import Settings

Sanitizer = Callable[[str], str]

# Tags kept by the user-generated-content policy; no attributes are allowed.
UGC_ALLOWED_TAGS = frozenset({"b", "i", "u", "strong", "em", "p", "br"})

DEFAULT_SKIP_FIELDS = ("password",)


def strict_sanitizer() -> Sanitizer:
    """Strip every tag and comment; escape stray markup characters."""

    def sanitize(text: str) -> str:
        return bleach.clean(
            text,
            tags=frozenset(),
            attributes={},
            strip=True,
            strip_comments=True,
        )

    return sanitize


def ugc_sanitizer(allowed_tags: Iterable[str] = UGC_ALLOWED_TAGS) -> Sanitizer:
    """Keep a small set of formatting tags, drop all attributes."""
    tags = frozenset(allowed_tags)

    def sanitize(text: str) -> str:
        return bleach.clean(
            text,
            tags=tags,
            attributes={},
            strip=True,
            strip_comments=True,
        )

    return sanitize


def build_sanitizer(name: str) -> Sanitizer:
    """Resolve a configured policy name to a sanitizer."""
    if name == "strict":
        return strict_sanitizer()
    if name == "ugc":
        return ugc_sanitizer()
    raise ValueError(f"Unknown sanitize policy: {name}")


@dataclass(frozen=True)
class FieldPolicy:
    """
    Immutable skip-field set plus sanitize capability.

    Built once at startup and shared read-only by every request.
    Field names match exactly and case-sensitively.
    """
    sanitize: Sanitizer
    skip_fields: tuple[str, ...] = DEFAULT_SKIP_FIELDS
    _skip_lookup: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "skip_fields", tuple(self.skip_fields))
        object.__setattr__(self, "_skip_lookup", frozenset(self.skip_fields))

    @classmethod
    def default(cls, *extra_skip_fields: str) -> "FieldPolicy":
        """Strict policy skipping `password` plus any extra fields."""
        names = list(DEFAULT_SKIP_FIELDS)
        for name in extra_skip_fields:
            if name not in names:
                names.append(name)
        return cls(sanitize=strict_sanitizer(), skip_fields=tuple(names))

    @classmethod
    def from_settings(cls, settings: Settings) -> "FieldPolicy":
        return cls(
            sanitize=build_sanitizer(settings.sanitize_policy),
            skip_fields=settings.skip_field_names(),
        )

    def should_skip(self, name: str) -> bool:
        return name in self._skip_lookup

    def clean(self, text: str) -> str:
        """Sanitize unconditionally."""
        return self.sanitize(text)

    def apply(self, name: str, text: str) -> str:
        """Return `text` verbatim for a skipped field, sanitized otherwise."""
        if self.should_skip(name):
            return text
        return self.sanitize(text)
