"""
Suggestion Prompts - Clickable question text for canned responses
=================================================================

Each general rule can be offered to the user as a suggestion button.
The button text is derived from the rule's keywords unless the rule
file names it explicitly.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .engine import AllOf, AnyOf, MatchCondition, RuleCategory, RuleStore


# Transaction-history lookup for the demo account
TRANSACTION_HISTORY_KEYWORDS = frozenset({"gordon", "1234", "transaction"})
TRANSACTION_HISTORY_PROMPT = "PortalUser1234 Transaction history"


def _capitalize_first(word: str) -> str:
    # str.capitalize() would lower-case the rest ("ISA" -> "Isa")
    return word[:1].upper() + word[1:]


def derive_display_prompt(
    condition: MatchCondition,
    explicit: Optional[str] = None
) -> Optional[str]:
    """
    Build the suggestion text for a rule.

    Order of precedence:
    1. Always rules never get a prompt
    2. An explicit prompt from the rule file
    3. The fixed transaction-history prompt
    4. First "any" keyword, capitalized
    5. All "all" keywords, capitalized and joined by a space

    Args:
        condition: The rule condition
        explicit: Prompt given in the rule file, if any

    Returns:
        Prompt text, or None when the rule should not be offered
    """
    if not isinstance(condition, (AllOf, AnyOf)):
        return None

    if explicit:
        return explicit

    if isinstance(condition, AllOf):
        lowered = {kw.lower() for kw in condition.keywords}
        if TRANSACTION_HISTORY_KEYWORDS <= lowered:
            return TRANSACTION_HISTORY_PROMPT
        return " ".join(_capitalize_first(kw) for kw in condition.keywords) or None

    if condition.keywords:
        return _capitalize_first(condition.keywords[0])
    return None


@dataclass(frozen=True)
class Suggestion:
    """A suggestion button: the text shown and the rule it answers with."""
    prompt: str
    rule_id: str
    category: RuleCategory

    def to_dict(self) -> Dict[str, str]:
        return {
            "prompt": self.prompt,
            "rule_id": self.rule_id,
            "category": self.category.value,
        }


def suggestion_groups(store: RuleStore) -> Tuple[List[Suggestion], List[Suggestion]]:
    """
    Split the offered prompts into account-specific and general help.

    Rules without a prompt, small talk and the fallback are not offered.
    Duplicate prompt texts are shown once, first rule wins.

    Returns:
        (specific_account, general_help)
    """
    specific: List[Suggestion] = []
    general: List[Suggestion] = []
    seen = set()

    for rule in store.all_rules():
        if not rule.display_prompt or rule.display_prompt in seen:
            continue

        if rule.category == RuleCategory.SPECIFIC_ACCOUNT:
            target = specific
        elif rule.category == RuleCategory.GENERAL_HELP:
            target = general
        else:
            continue

        seen.add(rule.display_prompt)
        target.append(Suggestion(rule.display_prompt, rule.rule_id, rule.category))

    return specific, general
