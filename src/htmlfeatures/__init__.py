from .errors import InvalidArgument
from .feature import ALL_TAGS, Feature, FeatureBuilder
from .policy import GLOBAL_ATTRIBUTES, SanitizationPolicy, UrlRule
from .presets import PRESETS, css, document, get_preset, links, tables
from .whitelist import Whitelist

__all__ = [
    "ALL_TAGS",
    "GLOBAL_ATTRIBUTES",
    "PRESETS",
    "Feature",
    "FeatureBuilder",
    "InvalidArgument",
    "SanitizationPolicy",
    "UrlRule",
    "Whitelist",
    "css",
    "document",
    "get_preset",
    "links",
    "tables",
]
