"""
Rules Module - Canned response engine
=====================================

This module provides the rule-based responder that answers chat
messages before the completion provider is consulted:
- Keyword matching (all / any / always)
- Ordered rule tiers with a mandatory fallback
- Rule file loading and validation
- Suggestion prompt derivation
"""

from .engine import (
    AllOf,
    AnyOf,
    Always,
    MatchRule,
    RuleCategory,
    RuleStore,
    RuleTier,
    match,
)
from .loader import build_rule_store, load_rule_file, parse_rules, rule_from_dict
from .prompts import Suggestion, derive_display_prompt, suggestion_groups

__all__ = [
    "AllOf",
    "AnyOf",
    "Always",
    "MatchRule",
    "RuleCategory",
    "RuleStore",
    "RuleTier",
    "match",
    "build_rule_store",
    "load_rule_file",
    "parse_rules",
    "rule_from_dict",
    "Suggestion",
    "derive_display_prompt",
    "suggestion_groups",
]
