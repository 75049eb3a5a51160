"""Ready-made features for common policy fragments.

Each factory returns a new `Feature`; calling one twice gives two equal,
independent values.
"""

from __future__ import annotations

from collections.abc import Callable

from .errors import InvalidArgument
from .feature import ALL_TAGS, Feature, FeatureBuilder


def css() -> Feature:
    """`<style>` blocks plus `class` and `style` on every tag."""
    return FeatureBuilder().allow_tags("style").allow_attribute(ALL_TAGS, "class", "style").build()


def document() -> Feature:
    """Whole-document structure: `html`, `head`, `body`, `title` and `meta`."""
    return (
        FeatureBuilder()
        .allow_tags("body", "head", "html", "meta", "title")
        .allow_attribute("meta", "charset", "content", "http-equiv", "name")
        .build()
    )


def links() -> Feature:
    """Anchors with `href`, limited to ftp/http/https/mailto and forced to `rel="nofollow"`."""
    return (
        FeatureBuilder()
        .allow_tags("a")
        .allow_attribute("a", "href")
        .enforce_attribute("a", "rel", "nofollow")
        .allow_protocol("a", "href", "ftp", "http", "https", "mailto")
        .build()
    )


def tables() -> Feature:
    return (
        FeatureBuilder()
        .allow_tags("table", "tbody", "td", "tfoot", "th", "thead", "tr")
        .allow_attribute("td", "colspan", "headers", "rowspan")
        .allow_attribute("th", "colspan", "headers", "rowspan", "scope", "sorted")
        .build()
    )


PRESETS: dict[str, Callable[[], Feature]] = {
    "css": css,
    "document": document,
    "links": links,
    "tables": tables,
}


def get_preset(name: str) -> Feature:
    """Build the preset registered under `name`."""
    factory = PRESETS.get(name) if isinstance(name, str) else None
    if factory is None:
        raise InvalidArgument("name", f"Unknown feature preset: {name!r}")
    return factory()
