from __future__ import annotations

import unittest

from htmlfeatures import (
    ALL_TAGS,
    FeatureBuilder,
    InvalidArgument,
    SanitizationPolicy,
    UrlRule,
    Whitelist,
    css,
    document,
    links,
    tables,
)


class TestWhitelist(unittest.TestCase):
    def test_merges_features_by_union(self) -> None:
        whitelist = Whitelist(links(), tables()).add_feature(links())
        assert whitelist.tags == {"a", "table", "tbody", "td", "tfoot", "th", "thead", "tr"}
        assert whitelist.attributes["a"] == {"href"}
        assert whitelist.attributes["th"] == {"colspan", "headers", "rowspan", "scope", "sorted"}
        assert dict(whitelist.enforced["a"]) == {"rel": "nofollow"}
        assert whitelist.protocols["a"]["href"] == {"ftp", "http", "https", "mailto"}

    def test_attributes_from_several_features_accumulate(self) -> None:
        first = FeatureBuilder().allow_attribute("img", "src").allow_protocol("img", "src", "https").build()
        second = FeatureBuilder().allow_attribute("img", "alt").allow_protocol("img", "src", "data").build()
        whitelist = Whitelist(first, second)
        assert whitelist.attributes["img"] == {"src", "alt"}
        assert whitelist.protocols["img"]["src"] == {"https", "data"}

    def test_ad_hoc_additions_are_validated(self) -> None:
        whitelist = Whitelist()
        whitelist.add_tags("p", "br").add_attributes("p", "id").add_protocols("q", "cite", "https")
        whitelist.add_enforced_attribute("a", "target", "_blank")
        assert whitelist.tags == {"p", "br"}
        assert whitelist.attributes["p"] == {"id"}
        assert whitelist.protocols["q"]["cite"] == {"https"}
        assert dict(whitelist.enforced["a"]) == {"target": "_blank"}

        before = whitelist.as_feature()
        with self.assertRaises(InvalidArgument):
            whitelist.add_tags("")
        with self.assertRaises(InvalidArgument):
            whitelist.add_attributes("", "id")
        with self.assertRaises(InvalidArgument):
            whitelist.add_enforced_attribute("a", "rel", "")
        with self.assertRaises(InvalidArgument):
            whitelist.add_protocols("a", "href", None)  # type: ignore[arg-type]
        assert whitelist.as_feature() == before

    def test_add_feature_rejects_non_features_without_partial_merge(self) -> None:
        whitelist = Whitelist()
        with self.assertRaises(InvalidArgument):
            whitelist.add_feature(links(), "tables")  # type: ignore[arg-type]
        assert whitelist.tags == frozenset()

    def test_conflicting_enforced_value_is_reported(self) -> None:
        messages: list[str] = []
        follow = FeatureBuilder().enforce_attribute("a", "rel", "noopener").build()
        whitelist = Whitelist(links(), report=messages.append)
        whitelist.add_feature(links())
        assert messages == []

        whitelist.add_feature(follow)
        assert dict(whitelist.enforced["a"]) == {"rel": "noopener"}
        assert messages == ["Enforced attribute a[rel] changed from 'nofollow' to 'noopener'"]

    def test_conflict_without_report_callback(self) -> None:
        whitelist = Whitelist(links())
        whitelist.add_enforced_attribute("a", "rel", "noopener")
        assert dict(whitelist.enforced["a"]) == {"rel": "noopener"}

    def test_read_views_are_snapshots(self) -> None:
        whitelist = Whitelist(links())
        attributes = whitelist.attributes
        whitelist.add_attributes("a", "title")
        assert attributes["a"] == {"href"}
        assert whitelist.attributes["a"] == {"href", "title"}
        with self.assertRaises(TypeError):
            attributes["a"] = frozenset()  # type: ignore[index]


class TestWhitelistPolicy(unittest.TestCase):
    def test_to_policy(self) -> None:
        policy = Whitelist(links(), css()).to_policy()
        assert isinstance(policy, SanitizationPolicy)
        assert policy.allowed_tags == {"a", "style"}
        assert policy.allowed_attributes == {"*": {"class", "style"}, "a": {"href"}}
        assert policy.enforced_attributes == {"a": {"rel": "nofollow"}}
        assert policy.url_rules == {
            ("a", "href"): UrlRule(allow_relative=False, allowed_schemes={"ftp", "http", "https", "mailto"}),
        }

    def test_wildcard_attributes_apply_to_every_tag(self) -> None:
        policy = Whitelist(css(), tables()).to_policy()
        assert policy.is_allowed_attribute("td", "class")
        assert policy.is_allowed_attribute("td", "rowspan")
        assert not policy.is_allowed_attribute("td", "scope")
        assert policy.is_allowed_attribute("p", "style")

    def test_preserve_relative_links(self) -> None:
        whitelist = Whitelist(links())
        assert not whitelist.relative_links
        rule = whitelist.preserve_relative_links().to_policy().url_rule("a", "href")
        assert rule is not None
        assert rule.allow_relative
        assert not whitelist.preserve_relative_links(False).to_policy().url_rule("a", "href").allow_relative

    def test_wildcard_protocols_become_global_url_rules(self) -> None:
        feature = FeatureBuilder().allow_attribute(ALL_TAGS, "href").allow_protocol(ALL_TAGS, "href", "https").build()
        policy = Whitelist(feature, links()).to_policy()
        assert set(policy.url_rules) == {("*", "href"), ("a", "href")}
        assert policy.is_allowed_attribute("area", "href")

        rule = policy.url_rule("area", "href")
        assert rule is not None
        assert rule.allowed_schemes == {"https"}
        # A tag with its own rule keeps it.
        assert policy.url_rule("a", "href").allowed_schemes == {"ftp", "http", "https", "mailto"}

    def test_wildcard_and_literal_global_protocols_merge(self) -> None:
        whitelist = Whitelist().add_protocols(ALL_TAGS, "src", "https").add_protocols("*", "src", "data")
        assert whitelist.to_policy().url_rule("img", "src").allowed_schemes == {"https", "data"}

    def test_url_options_are_carried_into_rules(self) -> None:
        rule = Whitelist(links()).to_policy().url_rule("a", "href")
        assert rule.allow_fragment
        assert not rule.allow_protocol_relative

        whitelist = Whitelist(links(), allow_fragment=False, allow_protocol_relative=True)
        rule = whitelist.to_policy().url_rule("a", "href")
        assert not rule.allow_fragment
        assert rule.allow_protocol_relative

    def test_policy_is_detached_from_the_whitelist(self) -> None:
        whitelist = Whitelist(links())
        policy = whitelist.to_policy()
        whitelist.add_feature(document()).add_protocols("a", "href", "javascript")
        assert policy.allowed_tags == {"a"}
        assert policy.url_rule("a", "href").allowed_schemes == {"ftp", "http", "https", "mailto"}

    def test_empty_whitelist(self) -> None:
        policy = Whitelist().to_policy()
        assert policy.allowed_tags == set()
        assert policy.allowed_attributes == {}
        assert policy.url_rules == {}
        assert policy.enforced_attributes == {}


if __name__ == "__main__":
    unittest.main()
