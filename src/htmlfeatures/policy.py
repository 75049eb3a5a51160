"""Sanitization policy exported by a `Whitelist`.

These are the values a sanitizer consumes. They carry no behaviour of their
own: walking the DOM, stripping tags and validating URLs happen in the
sanitizer.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field

# Key in `allowed_attributes` whose attributes are allowed on every tag.
GLOBAL_ATTRIBUTES = "*"


@dataclass(frozen=True, slots=True)
class UrlRule:
    """Rule for a single URL-valued attribute (e.g. a[href], img[src])."""

    # Allow relative URLs (including /path, ./path, ../path, ?query).
    allow_relative: bool = True

    # Allow same-document fragments (#foo).
    allow_fragment: bool = True

    # Allow protocol-relative URLs (//example.com). These are effectively
    # network URLs, so they are off unless asked for.
    allow_protocol_relative: bool = False

    # Allow absolute URLs with these schemes, e.g. {"https"}.
    # If empty, all absolute URLs with a scheme are disallowed.
    allowed_schemes: Collection[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        # Accept lists/tuples from user code, normalize for internal use.
        if not isinstance(self.allowed_schemes, set):
            object.__setattr__(self, "allowed_schemes", set(self.allowed_schemes))


@dataclass(frozen=True, slots=True)
class SanitizationPolicy:
    """An allow-list policy for sanitizing a parsed DOM.

    - Tags not in `allowed_tags` are disallowed.
    - Attributes not in `allowed_attributes[tag]` (or
      `allowed_attributes["*"]`) are disallowed.
    - URL scheme checks apply to the `(tag, attr)` pairs in `url_rules`; a
      `("*", attr)` rule covers `attr` on tags without a rule of their own.
    - `enforced_attributes[tag][attr]` is set on every kept `tag`, replacing
      whatever value the input had.
    """

    allowed_tags: Collection[str]
    allowed_attributes: Mapping[str, Collection[str]]
    url_rules: Mapping[tuple[str, str], UrlRule]
    enforced_attributes: Mapping[str, Mapping[str, str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Normalize to sets so the sanitizer can do fast membership checks.
        if not isinstance(self.allowed_tags, set):
            object.__setattr__(self, "allowed_tags", set(self.allowed_tags))

        if not isinstance(self.allowed_attributes, dict) or any(
            not isinstance(v, set) for v in self.allowed_attributes.values()
        ):
            normalized_attrs: dict[str, set[str]] = {}
            for tag, attrs in self.allowed_attributes.items():
                normalized_attrs[str(tag)] = attrs if isinstance(attrs, set) else set(attrs)
            object.__setattr__(self, "allowed_attributes", normalized_attrs)

        if not isinstance(self.url_rules, dict):
            object.__setattr__(self, "url_rules", dict(self.url_rules))

        if not isinstance(self.enforced_attributes, dict) or any(
            not isinstance(v, dict) for v in self.enforced_attributes.values()
        ):
            normalized_enforced: dict[str, dict[str, str]] = {}
            for tag, values in self.enforced_attributes.items():
                normalized_enforced[str(tag)] = dict(values)
            object.__setattr__(self, "enforced_attributes", normalized_enforced)

    def is_allowed_attribute(self, tag: str, attr: str) -> bool:
        if attr in self.allowed_attributes.get(tag, ()):
            return True
        return attr in self.allowed_attributes.get(GLOBAL_ATTRIBUTES, ())

    def url_rule(self, tag: str, attr: str) -> UrlRule | None:
        rule = self.url_rules.get((tag, attr))
        if rule is None:
            rule = self.url_rules.get((GLOBAL_ATTRIBUTES, attr))
        return rule
