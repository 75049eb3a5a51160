"""Merge features into a complete allow-list.

A `Whitelist` is the consumer of `Feature` values: it unions any number of
them (plus ad-hoc additions) and exports a frozen `SanitizationPolicy` for a
sanitizer to apply.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import InvalidArgument
from .feature import ALL_TAGS, Feature, FeatureBuilder
from .policy import GLOBAL_ATTRIBUTES, SanitizationPolicy, UrlRule

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Protocol

    class ReportCallback(Protocol):
        def __call__(self, msg: str) -> None: ...


class Whitelist:
    """Mutable aggregate of features.

    Merging is a set union, so adding the same feature twice changes nothing.
    Enforced values are the exception: one tag/attribute pair holds a single
    value, so a later feature that enforces a different value replaces the
    earlier one and `report` is told about it.

        policy = Whitelist(links(), tables()).add_tags("p", "br").to_policy()
    """

    __slots__ = (
        "_allow_fragment",
        "_allow_protocol_relative",
        "_attributes",
        "_enforced",
        "_protocols",
        "_relative_links",
        "_report",
        "_tags",
    )

    def __init__(
        self,
        *features: Feature,
        allow_fragment: bool = True,
        allow_protocol_relative: bool = False,
        report: ReportCallback | None = None,
    ) -> None:
        self._tags: set[str] = set()
        self._attributes: dict[str, set[str]] = {}
        self._enforced: dict[str, dict[str, str]] = {}
        self._protocols: dict[str, dict[str, set[str]]] = {}
        self._relative_links = False
        self._allow_fragment = bool(allow_fragment)
        self._allow_protocol_relative = bool(allow_protocol_relative)
        self._report = report
        self.add_feature(*features)

    def add_feature(self, *features: Feature) -> Whitelist:
        # Check everything first so a bad argument adds nothing.
        for feature in features:
            if not isinstance(feature, Feature):
                raise InvalidArgument("feature", f"Expected a Feature, got {type(feature).__name__}")

        for feature in features:
            self._tags.update(feature.tags)
            for tag, keys in feature.attributes.items():
                self._attributes.setdefault(tag, set()).update(keys)
            for tag, values in feature.enforced.items():
                current = self._enforced.setdefault(tag, {})
                for key, value in values.items():
                    old = current.get(key)
                    if old is not None and old != value and self._report is not None:
                        self._report(f"Enforced attribute {tag}[{key}] changed from {old!r} to {value!r}")
                    current[key] = value
            for tag, keys in feature.protocols.items():
                by_key = self._protocols.setdefault(tag, {})
                for key, names in keys.items():
                    by_key.setdefault(key, set()).update(names)
        return self

    def add_tags(self, *names: str) -> Whitelist:
        return self.add_feature(FeatureBuilder().allow_tags(*names).build())

    def add_attributes(self, tag: str, *keys: str) -> Whitelist:
        return self.add_feature(FeatureBuilder().allow_attribute(tag, *keys).build())

    def add_enforced_attribute(self, tag: str, key: str, value: str) -> Whitelist:
        return self.add_feature(FeatureBuilder().enforce_attribute(tag, key, value).build())

    def add_protocols(self, tag: str, key: str, *protocols: str) -> Whitelist:
        return self.add_feature(FeatureBuilder().allow_protocol(tag, key, *protocols).build())

    def preserve_relative_links(self, preserve: bool = True) -> Whitelist:
        """Keep relative URLs in protocol-checked attributes (off by default)."""
        self._relative_links = bool(preserve)
        return self

    @property
    def relative_links(self) -> bool:
        return self._relative_links

    def as_feature(self) -> Feature:
        """Snapshot everything merged so far as a single `Feature`."""
        return Feature(self._tags, self._attributes, self._enforced, self._protocols)

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(self._tags)

    @property
    def attributes(self) -> Mapping[str, frozenset[str]]:
        return self.as_feature().attributes

    @property
    def enforced(self) -> Mapping[str, Mapping[str, str]]:
        return self.as_feature().enforced

    @property
    def protocols(self) -> Mapping[str, Mapping[str, frozenset[str]]]:
        return self.as_feature().protocols

    def to_policy(self) -> SanitizationPolicy:
        """Export the merged permissions as a `SanitizationPolicy`.

        `ALL_TAGS` entries become the policy's global `"*"` entry, for both
        attributes and URL rules. Every tag/attribute pair with protocols
        becomes a `UrlRule` carrying this whitelist's URL options.
        """

        allowed_attributes: dict[str, set[str]] = {}
        for tag, keys in self._attributes.items():
            target = GLOBAL_ATTRIBUTES if tag == ALL_TAGS else tag
            allowed_attributes.setdefault(target, set()).update(keys)

        url_rules: dict[tuple[str, str], UrlRule] = {}
        for tag, by_key in self._protocols.items():
            target = GLOBAL_ATTRIBUTES if tag == ALL_TAGS else tag
            for key, names in by_key.items():
                rule = url_rules.get((target, key))
                schemes = set(names) if rule is None else set(rule.allowed_schemes) | names
                url_rules[(target, key)] = UrlRule(
                    allow_relative=self._relative_links,
                    allow_fragment=self._allow_fragment,
                    allow_protocol_relative=self._allow_protocol_relative,
                    allowed_schemes=schemes,
                )

        return SanitizationPolicy(
            allowed_tags=set(self._tags),
            allowed_attributes=allowed_attributes,
            url_rules=url_rules,
            enforced_attributes={tag: dict(values) for tag, values in self._enforced.items() if values},
        )
