"""Composable HTML allow-list features.

A feature is a bundle of sanitization permissions: the tags it allows, the
attributes it allows per tag, attribute values it forces onto matching tags,
and the URL schemes it allows for URL-valued attributes.

Features are assembled with `FeatureBuilder` and frozen into a `Feature`
value, which a `Whitelist` later merges into a complete policy.

Notes:
- Names are stored as given. Case folding is the consumer's job.
- `ALL_TAGS` is an ordinary key here. Only the consumer expands it to
  "every tag".
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .errors import InvalidArgument

ALL_TAGS = ":all"

_EMPTY_NAMES: frozenset[str] = frozenset()
_EMPTY_VALUES: Mapping[str, str] = MappingProxyType({})

_DICT_KEYS = frozenset({"tags", "attributes", "enforced", "protocols"})


def _check_name(value: Any, param: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(param)
    return value


def _check_names(values: Any, param: str) -> tuple[str, ...]:
    # A bare string would otherwise be split into characters.
    if values is None or isinstance(values, str) or not isinstance(values, Iterable):
        raise InvalidArgument(param, f"{param} names must be given as a sequence of strings")
    return tuple(_check_name(v, param) for v in values)


def _check_mapping(value: Any, param: str) -> Mapping[Any, Any]:
    if not isinstance(value, Mapping):
        raise InvalidArgument(param, f"{param} must be a mapping")
    return value


def _freeze_attributes(attributes: Mapping[str, Iterable[str]]) -> Mapping[str, frozenset[str]]:
    frozen: dict[str, frozenset[str]] = {}
    for tag, keys in _check_mapping(attributes, "attributes").items():
        _check_name(tag, "tag")
        names = frozenset(_check_names(keys, "key"))
        if names:
            frozen[tag] = names
    return MappingProxyType(frozen)


def _freeze_enforced(enforced: Mapping[str, Mapping[str, str]]) -> Mapping[str, Mapping[str, str]]:
    frozen: dict[str, Mapping[str, str]] = {}
    for tag, values in _check_mapping(enforced, "enforced").items():
        _check_name(tag, "tag")
        pairs = {
            _check_name(key, "key"): _check_name(value, "value")
            for key, value in _check_mapping(values, "enforced values").items()
        }
        if pairs:
            frozen[tag] = MappingProxyType(pairs)
    return MappingProxyType(frozen)


def _freeze_protocols(
    protocols: Mapping[str, Mapping[str, Iterable[str]]],
) -> Mapping[str, Mapping[str, frozenset[str]]]:
    frozen: dict[str, Mapping[str, frozenset[str]]] = {}
    for tag, keys in _check_mapping(protocols, "protocols").items():
        _check_name(tag, "tag")
        schemes: dict[str, frozenset[str]] = {}
        for key, names in _check_mapping(keys, "protocol keys").items():
            _check_name(key, "key")
            checked = frozenset(_check_names(names, "protocol"))
            if checked:
                schemes[key] = checked
        if schemes:
            frozen[tag] = MappingProxyType(schemes)
    return MappingProxyType(frozen)


@dataclass(frozen=True, slots=True)
class Feature:
    """An immutable bundle of allow-list permissions.

    - `tags`: allowed tag names.
    - `attributes`: tag -> allowed attribute names (`ALL_TAGS` applies to
      every tag once a consumer expands it).
    - `enforced`: tag -> attribute -> value that is always set.
    - `protocols`: tag -> attribute -> allowed URL schemes.

    All collections are read-only. Two features are equal when their
    contents are equal, regardless of the order they were built in.
    """

    tags: frozenset[str]
    attributes: Mapping[str, frozenset[str]]
    enforced: Mapping[str, Mapping[str, str]]
    protocols: Mapping[str, Mapping[str, frozenset[str]]]

    def __init__(
        self,
        tags: Iterable[str] = (),
        attributes: Mapping[str, Iterable[str]] | None = None,
        enforced: Mapping[str, Mapping[str, str]] | None = None,
        protocols: Mapping[str, Mapping[str, Iterable[str]]] | None = None,
    ) -> None:
        object.__setattr__(self, "tags", frozenset(_check_names(tags, "tag")))
        object.__setattr__(self, "attributes", _freeze_attributes(attributes if attributes is not None else {}))
        object.__setattr__(self, "enforced", _freeze_enforced(enforced if enforced is not None else {}))
        object.__setattr__(self, "protocols", _freeze_protocols(protocols if protocols is not None else {}))

    def __reduce__(self) -> tuple[Any, ...]:
        # mappingproxy fields do not pickle, so rebuild from plain data.
        return (Feature.from_dict, (self.as_dict(),))

    def __hash__(self) -> int:
        return hash(
            (
                self.tags,
                frozenset(self.attributes.items()),
                frozenset((tag, frozenset(values.items())) for tag, values in self.enforced.items()),
                frozenset((tag, frozenset(keys.items())) for tag, keys in self.protocols.items()),
            )
        )

    def __repr__(self) -> str:
        d = self.as_dict()
        return (
            f"Feature(tags={d['tags']!r}, attributes={d['attributes']!r}, "
            f"enforced={d['enforced']!r}, protocols={d['protocols']!r})"
        )

    @staticmethod
    def builder() -> FeatureBuilder:
        return FeatureBuilder()

    @property
    def is_empty(self) -> bool:
        return not (self.tags or self.attributes or self.enforced or self.protocols)

    def allows_tag(self, tag: str) -> bool:
        return tag in self.tags

    def allowed_attributes(self, tag: str) -> frozenset[str]:
        return self.attributes.get(tag, _EMPTY_NAMES)

    def enforced_attributes(self, tag: str) -> Mapping[str, str]:
        return self.enforced.get(tag, _EMPTY_VALUES)

    def allowed_protocols(self, tag: str, key: str) -> frozenset[str]:
        keys = self.protocols.get(tag)
        if keys is None:
            return _EMPTY_NAMES
        return keys.get(key, _EMPTY_NAMES)

    def as_dict(self) -> dict[str, Any]:
        """Return the feature as plain, sorted, JSON-friendly data."""
        return {
            "tags": sorted(self.tags),
            "attributes": {tag: sorted(keys) for tag, keys in sorted(self.attributes.items())},
            "enforced": {tag: dict(sorted(values.items())) for tag, values in sorted(self.enforced.items())},
            "protocols": {
                tag: {key: sorted(names) for key, names in sorted(keys.items())}
                for tag, keys in sorted(self.protocols.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Feature:
        """Build a feature from data shaped like `as_dict()` output.

        Every section is optional. Unknown sections are rejected so that a
        misspelled config key does not silently allow nothing.
        """

        _check_mapping(data, "data")
        unknown = set(data) - _DICT_KEYS
        if unknown:
            raise InvalidArgument("data", f"Unknown feature sections: {', '.join(sorted(map(str, unknown)))}")
        return cls(
            tags=data.get("tags", ()),
            attributes=data.get("attributes"),
            enforced=data.get("enforced"),
            protocols=data.get("protocols"),
        )


class FeatureBuilder:
    """Fluent, mutable accumulator for a `Feature`.

    Every method validates all of its arguments before touching any state, so
    a call that raises `InvalidArgument` leaves earlier additions intact.
    Additions are set unions; there is no removal.

        feature = (
            FeatureBuilder()
            .allow_tags("a")
            .allow_attribute("a", "href")
            .enforce_attribute("a", "rel", "nofollow")
            .allow_protocol("a", "href", "http", "https")
            .build()
        )
    """

    __slots__ = ("_attributes", "_enforced", "_protocols", "_tags")

    def __init__(self) -> None:
        self._tags: set[str] = set()
        self._attributes: dict[str, set[str]] = {}
        self._enforced: dict[str, dict[str, str]] = {}
        self._protocols: dict[str, dict[str, set[str]]] = {}

    def allow_tags(self, *names: str) -> FeatureBuilder:
        self._tags.update(_check_names(names, "tag"))
        return self

    def allow_attribute(self, tag: str, *keys: str) -> FeatureBuilder:
        _check_name(tag, "tag")
        checked = _check_names(keys, "key")
        if checked:
            self._attributes.setdefault(tag, set()).update(checked)
        return self

    def enforce_attribute(self, tag: str, key: str, value: str) -> FeatureBuilder:
        _check_name(tag, "tag")
        _check_name(key, "key")
        _check_name(value, "value")
        self._enforced.setdefault(tag, {})[key] = value
        return self

    def allow_protocol(self, tag: str, key: str, *protocols: str) -> FeatureBuilder:
        _check_name(tag, "tag")
        _check_name(key, "key")
        checked = _check_names(protocols, "protocol")
        if checked:
            self._protocols.setdefault(tag, {}).setdefault(key, set()).update(checked)
        return self

    def include(self, feature: Feature) -> FeatureBuilder:
        """Union an already built feature into this builder."""
        if not isinstance(feature, Feature):
            raise InvalidArgument("feature", "feature must be a Feature")
        self._tags.update(feature.tags)
        for tag, keys in feature.attributes.items():
            self._attributes.setdefault(tag, set()).update(keys)
        for tag, values in feature.enforced.items():
            self._enforced.setdefault(tag, {}).update(values)
        for tag, keys in feature.protocols.items():
            by_key = self._protocols.setdefault(tag, {})
            for key, names in keys.items():
                by_key.setdefault(key, set()).update(names)
        return self

    def build(self) -> Feature:
        """Snapshot the accumulated permissions into an immutable `Feature`.

        The builder stays usable; later calls do not affect features that were
        already built.
        """

        return Feature(self._tags, self._attributes, self._enforced, self._protocols)
