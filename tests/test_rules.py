"""
Test Rules Engine Module
=======================

Unit tests for keyword conditions, the matcher and rule tiers.
"""

import pytest
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from rules.engine import (
    AllOf, AnyOf, Always, MatchRule, RuleCategory, RuleStore, RuleTier, match
)
from core.exceptions import ConfigurationDefect


def make_rules():
    """The three-rule tier used across tests: all, any, fallback."""
    return [
        MatchRule(AllOf(("gordon", "1234", "transaction")), "R1", rule_id="r1"),
        MatchRule(AnyOf(("password",)), "R2", rule_id="r2"),
        MatchRule(Always(), "R3", rule_id="r3", category=RuleCategory.FALLBACK),
    ]


class TestConditions:
    """Tests for AllOf, AnyOf and Always."""

    def test_all_requires_every_keyword(self):
        """Two of three keywords is not enough."""
        condition = AllOf(("gordon", "1234", "transaction"))

        assert condition.is_satisfied("gordon 1234 transaction")
        assert not condition.is_satisfied("gordon 1234 details")

    def test_any_requires_one_keyword(self):
        """A single listed keyword is enough."""
        condition = AnyOf(("fees", "cost", "percentage"))

        assert condition.is_satisfied("what does it cost")
        assert not condition.is_satisfied("hello there")

    def test_keywords_are_substrings(self):
        """Keywords match inside longer words."""
        assert AnyOf(("pay",)).is_satisfied("payments overview")

    def test_empty_keyword_lists_never_match(self):
        """Empty conditions must not act as a catch-all."""
        assert not AllOf(()).is_satisfied("anything")
        assert not AnyOf(()).is_satisfied("anything")

    def test_always(self):
        """Always matches even empty text."""
        assert Always().is_satisfied("")
        assert Always().is_satisfied("what is the weather")


class TestMatch:
    """Tests for the match function."""

    def test_concrete_scenario(self):
        """Each input lands on the expected rule."""
        rules = make_rules()

        assert match("show Gordon 1234 transaction details", rules).response == "R1"
        assert match("I forgot my password", rules).response == "R2"
        assert match("what is the weather", rules).response == "R3"

    def test_case_insensitive(self):
        """Both input and keywords are compared in lower case."""
        rules = [MatchRule(AnyOf(("ISA Allowance",)), "isa")]

        assert match("my isa ALLOWANCE please", rules).response == "isa"

    def test_earlier_rule_wins(self):
        """When two rules match, list order decides."""
        rules = [
            MatchRule(AnyOf(("password",)), "first"),
            MatchRule(AnyOf(("forgot",)), "second"),
        ]

        assert match("I forgot my password", rules).response == "first"

    def test_no_match_returns_none(self):
        """A tier without fallback can miss."""
        rules = make_rules()[:2]

        assert match("what is the weather", rules) is None

    def test_stops_at_first_hit(self):
        """Rules after the winner are never evaluated."""
        evaluated = []

        class Recording:
            def __init__(self, name, result):
                self.name = name
                self.result = result

            def is_satisfied(self, normalized):
                evaluated.append(self.name)
                return self.result

        rules = [
            MatchRule(Recording("a", False), "A"),
            MatchRule(Recording("b", True), "B"),
            MatchRule(Recording("c", True), "C"),
        ]

        assert match("anything", rules).response == "B"
        assert evaluated == ["a", "b"]

    def test_rule_matches_helper(self):
        """MatchRule.matches normalizes the raw message."""
        rule = MatchRule(AnyOf(("ESG",)), "esg")

        assert rule.matches("Which funds are esg funds?")
        assert not rule.matches("Which funds are ethical?")


class TestRuleTier:
    """Tests for tier validation."""

    def test_valid_general_tier(self):
        """A trailing fallback satisfies the invariant."""
        RuleTier("general", tuple(make_rules()), requires_fallback=True).validate()

    def test_missing_fallback(self):
        """A general tier without fallback is a configuration defect."""
        tier = RuleTier("general", tuple(make_rules()[:2]), requires_fallback=True)

        with pytest.raises(ConfigurationDefect):
            tier.validate()

    def test_fallback_not_last(self):
        """A fallback in the middle would shadow later rules."""
        rules = make_rules()
        tier = RuleTier("general", (rules[2], rules[0], rules[1]))

        with pytest.raises(ConfigurationDefect):
            tier.validate()

    def test_two_fallbacks(self):
        """Only one always-match rule per tier."""
        fallback = make_rules()[2]
        tier = RuleTier("general", (fallback, fallback))

        with pytest.raises(ConfigurationDefect):
            tier.validate()

    def test_local_tier_without_fallback(self):
        """The local tier may miss."""
        RuleTier("local", tuple(make_rules()[:2])).validate()


class TestRuleStore:
    """Tests for RuleStore."""

    @pytest.fixture
    def store(self):
        local = (MatchRule(AnyOf(("fees",)), "L1", rule_id="l1"),)
        return RuleStore([
            RuleTier("local", local),
            RuleTier("general", tuple(make_rules()), requires_fallback=True),
        ])

    def test_local_tier_first(self, store):
        """A local hit wins over general rules."""
        tier, rule = store.resolve("my password fees")

        assert tier.name == "local"
        assert rule.response == "L1"

    def test_general_tier_second(self, store):
        """Without a local hit the general tier answers."""
        tier, rule = store.resolve("I forgot my password")

        assert tier.name == "general"
        assert rule.response == "R2"

    def test_general_fallback(self, store):
        """The fallback catches everything else."""
        tier, rule = store.resolve("what is the weather")

        assert tier.name == "general"
        assert rule.is_fallback

    def test_validation_on_construction(self):
        """Building a store checks the fallback invariant."""
        with pytest.raises(ConfigurationDefect):
            RuleStore([RuleTier("general", tuple(make_rules()[:2]), requires_fallback=True)])

    def test_validation_can_be_deferred(self):
        """validate=False allows a store without fallback."""
        store = RuleStore(
            [RuleTier("general", tuple(make_rules()[:2]), requires_fallback=True)],
            validate=False
        )

        assert store.resolve("what is the weather") == (None, None)

    def test_duplicate_tier_names(self):
        """Tier names identify tiers and must be unique."""
        with pytest.raises(ConfigurationDefect):
            RuleStore([RuleTier("local", ()), RuleTier("local", ())])

    def test_tiers_are_immutable(self, store):
        """Tiers and their rules are exposed as tuples."""
        assert isinstance(store.tiers, tuple)
        assert all(isinstance(tier.rules, tuple) for tier in store.tiers)

    def test_lookup_and_counts(self, store):
        """Tier lookup by name and rule counts."""
        assert store.tier("general") is not None
        assert store.tier("missing") is None
        assert store.counts() == {"local": 1, "general": 3}
        assert len(store.all_rules()) == 4


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
