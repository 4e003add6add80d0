"""
Rules Engine - Keyword matching for canned responses
====================================================

This module implements the matcher that decides whether a canned
response answers a chat message before the completion provider is
asked. Rules are grouped into ordered tiers; inside a tier the first
satisfied rule wins.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple, Union

from core.exceptions import ConfigurationDefect


class RuleCategory(Enum):
    """How a rule is presented as a suggestion button."""
    SPECIFIC_ACCOUNT = "specific-account"  # questions about the user's own account
    GENERAL_HELP = "general-help"
    SMALL_TALK = "small-talk"              # greetings, thanks, off-topic
    FALLBACK = "fallback"


@dataclass(frozen=True)
class AllOf:
    """Satisfied when every keyword occurs in the message."""
    keywords: Tuple[str, ...]

    def is_satisfied(self, normalized: str) -> bool:
        if not self.keywords:
            return False
        return all(kw.lower() in normalized for kw in self.keywords)


@dataclass(frozen=True)
class AnyOf:
    """Satisfied when at least one keyword occurs in the message."""
    keywords: Tuple[str, ...]

    def is_satisfied(self, normalized: str) -> bool:
        return any(kw.lower() in normalized for kw in self.keywords)


@dataclass(frozen=True)
class Always:
    """Unconditional match, used for the default answer of a tier."""
    keywords: Tuple[str, ...] = ()

    def is_satisfied(self, normalized: str) -> bool:
        return True


MatchCondition = Union[AllOf, AnyOf, Always]


@dataclass(frozen=True)
class MatchRule:
    """
    A single canned response and the condition that triggers it.

    Attributes:
        condition: AllOf, AnyOf or Always
        response (str): Text returned verbatim when the rule fires
        description (str): Diagnostic label, never shown to users
        rule_id (str): Stable identifier used in logs and the API
        category (RuleCategory): Suggestion group of the rule
        display_prompt (str): Suggestion button text, if any
    """
    condition: MatchCondition
    response: str
    description: Optional[str] = None
    rule_id: str = ""
    category: RuleCategory = RuleCategory.GENERAL_HELP
    display_prompt: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return isinstance(self.condition, Always)

    def matches(self, message: str) -> bool:
        """Check this rule alone against a raw message."""
        return self.condition.is_satisfied(message.lower())


def match(message: str, rules: Iterable[MatchRule]) -> Optional[MatchRule]:
    """
    Return the first rule whose condition the message satisfies.

    Matching is a case-insensitive substring test. Evaluation stops at
    the first hit.

    Args:
        message: Free text typed by the user
        rules: Ordered rules of one tier

    Returns:
        The winning rule, or None if nothing in the tier matched
    """
    normalized = message.lower()
    for rule in rules:
        if rule.condition.is_satisfied(normalized):
            return rule
    return None


@dataclass(frozen=True)
class RuleTier:
    """
    An ordered rule list evaluated as a unit.

    Attributes:
        name (str): Tier name ("local", "general")
        rules (tuple): Rules in precedence order
        requires_fallback (bool): Whether the tier must end with Always
    """
    name: str
    rules: Tuple[MatchRule, ...] = field(default_factory=tuple)
    requires_fallback: bool = False

    def match(self, message: str) -> Optional[MatchRule]:
        return match(message, self.rules)

    def validate(self) -> None:
        """
        Check the fallback invariant of the tier.

        Raises:
            ConfigurationDefect: If an always-match rule is misplaced,
                duplicated, or missing from a tier that requires one
        """
        positions = [i for i, rule in enumerate(self.rules) if rule.is_fallback]

        if len(positions) > 1:
            raise ConfigurationDefect(
                f"Tier '{self.name}' has more than one always-match rule",
                {"positions": positions}
            )

        if positions and positions[0] != len(self.rules) - 1:
            raise ConfigurationDefect(
                f"Always-match rule in tier '{self.name}' must be the last rule",
                {"position": positions[0], "rules": len(self.rules)}
            )

        if self.requires_fallback and not positions:
            raise ConfigurationDefect(
                f"Tier '{self.name}' must end with an always-match rule",
                {"rules": len(self.rules)}
            )

    def __len__(self) -> int:
        return len(self.rules)


class RuleStore:
    """
    Immutable, ordered collection of rule tiers.

    The store is built once at startup and handed to every dialogue
    controller. Tiers are evaluated strictly in the order given.

    Example:
        store = RuleStore([
            RuleTier("local", local_rules),
            RuleTier("general", general_rules, requires_fallback=True),
        ])
        tier, rule = store.resolve("I forgot my password")
    """

    def __init__(self, tiers: Sequence[RuleTier], validate: bool = True):
        """
        Initialize the store.

        Args:
            tiers: Tiers in evaluation order
            validate: Enforce the fallback invariant now
        """
        names = [tier.name for tier in tiers]
        if len(set(names)) != len(names):
            raise ConfigurationDefect("Tier names must be unique", {"tiers": names})

        self._tiers: Tuple[RuleTier, ...] = tuple(tiers)

        if validate:
            self.validate()

    @property
    def tiers(self) -> Tuple[RuleTier, ...]:
        return self._tiers

    def tier(self, name: str) -> Optional[RuleTier]:
        for tier in self._tiers:
            if tier.name == name:
                return tier
        return None

    def validate(self) -> None:
        """Validate every tier; raises ConfigurationDefect."""
        for tier in self._tiers:
            tier.validate()

    def resolve(self, message: str) -> Tuple[Optional[RuleTier], Optional[MatchRule]]:
        """
        Evaluate tiers in order and return the first hit.

        Returns:
            (tier, rule) of the winning rule, or (None, None)
        """
        for tier in self._tiers:
            rule = tier.match(message)
            if rule is not None:
                return tier, rule
        return None, None

    def all_rules(self) -> Tuple[MatchRule, ...]:
        return tuple(rule for tier in self._tiers for rule in tier.rules)

    def counts(self) -> dict:
        return {tier.name: len(tier) for tier in self._tiers}
