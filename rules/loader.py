"""
Rule Loader - Builds rule tiers from configuration records
==========================================================

Rule files are YAML (JSON parses as YAML too). A file holds either a
plain list of records or a mapping with a ``rules`` list. Each record
names exactly one condition under ``keywords``::

    - id: forgot-password
      category: general-help
      keywords:
        any: [password, log in, login]
      response: "You can reset your password from the sign-in page."
      description: "Password reset help"

Records are validated strictly; a bad record stops startup with a
RuleConfigError that names the record.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from core.exceptions import RuleConfigError
from core.logging import get_logger
from .engine import AllOf, AnyOf, Always, MatchRule, RuleCategory, RuleStore, RuleTier
from .prompts import derive_display_prompt
from . import defaults

logger = get_logger("rules.loader")

LOCAL_TIER = "local"
GENERAL_TIER = "general"

_ALWAYS_KEYS = ("alwaysMatch", "always_match")


def _parse_keywords(value: Any, form: str, where: Dict[str, Any]) -> tuple:
    """Validate a keyword list and return it as an ordered, de-duplicated tuple."""
    if not isinstance(value, list):
        raise RuleConfigError(f"'{form}' keywords must be a list", where)

    keywords = []
    for kw in value:
        if not isinstance(kw, str) or not kw.strip():
            raise RuleConfigError(
                f"'{form}' keywords must be non-empty strings",
                dict(where, keyword=kw)
            )
        keywords.append(kw)

    if not keywords:
        raise RuleConfigError(f"'{form}' keyword list is empty", where)

    return tuple(dict.fromkeys(keywords))


def _parse_condition(keywords: Any, where: Dict[str, Any]):
    if not isinstance(keywords, dict):
        raise RuleConfigError("Rule 'keywords' must be a mapping", where)

    forms = []
    if keywords.get("all") is not None:
        forms.append("all")
    if keywords.get("any") is not None:
        forms.append("any")

    for key in _ALWAYS_KEYS:
        if key in keywords:
            if keywords[key] is not True:
                raise RuleConfigError(f"'{key}' must be true when present", where)
            forms.append("alwaysMatch")
            break

    if len(forms) != 1:
        raise RuleConfigError(
            "Rule must define exactly one of all, any, alwaysMatch",
            dict(where, found=forms)
        )

    form = forms[0]
    if form == "alwaysMatch":
        return Always()
    if form == "all":
        return AllOf(_parse_keywords(keywords["all"], "all", where))
    return AnyOf(_parse_keywords(keywords["any"], "any", where))


def rule_from_dict(
    data: Dict[str, Any],
    index: int,
    tier: str = GENERAL_TIER,
    with_prompts: bool = True
) -> MatchRule:
    """
    Create a rule from a configuration record.

    Args:
        data: The record
        index: Position of the record in its tier, used for default ids
        tier: Tier name, used in default ids and error details
        with_prompts: Derive a suggestion prompt for the rule

    Returns:
        Validated MatchRule

    Raises:
        RuleConfigError: If the record is malformed
    """
    where = {"tier": tier, "index": index}

    if not isinstance(data, dict):
        raise RuleConfigError("Rule record must be a mapping", where)

    condition = _parse_condition(data.get("keywords"), where)

    response = data.get("response")
    if not isinstance(response, str) or not response.strip():
        raise RuleConfigError("Rule 'response' must be a non-empty string", where)

    description = data.get("description")
    if description is not None and not isinstance(description, str):
        raise RuleConfigError("Rule 'description' must be a string", where)

    rule_id = data.get("id") or f"{tier}-{index}"
    if not isinstance(rule_id, str):
        raise RuleConfigError("Rule 'id' must be a string", where)

    if isinstance(condition, Always):
        category = RuleCategory.FALLBACK
    else:
        raw_category = data.get("category", RuleCategory.GENERAL_HELP.value)
        try:
            category = RuleCategory(raw_category)
        except ValueError:
            raise RuleConfigError(
                f"Unknown rule category: {raw_category!r}",
                dict(where, allowed=[c.value for c in RuleCategory])
            )
        if category == RuleCategory.FALLBACK:
            raise RuleConfigError("Only always-match rules can be fallback rules", where)

    explicit_prompt = data.get("prompt")
    if explicit_prompt is not None and not isinstance(explicit_prompt, str):
        raise RuleConfigError("Rule 'prompt' must be a string", where)

    display_prompt = None
    if with_prompts:
        display_prompt = derive_display_prompt(condition, explicit_prompt)

    return MatchRule(
        condition=condition,
        response=response,
        description=description,
        rule_id=rule_id,
        category=category,
        display_prompt=display_prompt,
    )


def parse_rules(
    records: Sequence[Dict[str, Any]],
    tier: str = GENERAL_TIER,
    with_prompts: bool = True
) -> tuple:
    """
    Parse an ordered list of records into rules.

    Raises:
        RuleConfigError: On a malformed record or a duplicated id
    """
    rules = []
    seen_ids = set()

    for index, record in enumerate(records):
        rule = rule_from_dict(record, index, tier=tier, with_prompts=with_prompts)
        if rule.rule_id in seen_ids:
            raise RuleConfigError(
                f"Duplicate rule id: {rule.rule_id}",
                {"tier": tier, "index": index}
            )
        seen_ids.add(rule.rule_id)
        rules.append(rule)

    return tuple(rules)


def load_rule_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read rule records from a YAML or JSON file.

    Raises:
        RuleConfigError: If the file is missing, unreadable or malformed
    """
    rules_path = Path(path).expanduser()

    try:
        with open(rules_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise RuleConfigError("Rules file not found", {"path": str(rules_path)})
    except yaml.YAMLError as e:
        raise RuleConfigError(f"Failed to parse rules file: {e}", {"path": str(rules_path)})
    except IOError as e:
        raise RuleConfigError(f"Failed to read rules file: {e}", {"path": str(rules_path)})

    if isinstance(data, dict):
        data = data.get("rules")

    if not isinstance(data, list):
        raise RuleConfigError(
            "Rules file must hold a list of rules or a 'rules' list",
            {"path": str(rules_path)}
        )

    return data


def build_rule_store(
    rules_file: Optional[str] = None,
    use_local_rules: bool = True
) -> RuleStore:
    """
    Build the validated two-tier store used by the chat.

    Args:
        rules_file: General tier rule file; the bundled file when empty
        use_local_rules: Include the built-in local tier

    Returns:
        RuleStore with tiers (local, general)

    Raises:
        RuleConfigError: If a record is malformed
        ConfigurationDefect: If the general tier has no trailing fallback
    """
    path = rules_file or defaults.BUNDLED_RULES_PATH
    general = parse_rules(load_rule_file(path), tier=GENERAL_TIER)

    tiers = []
    if use_local_rules:
        local = parse_rules(defaults.LOCAL_RULES, tier=LOCAL_TIER, with_prompts=False)
        tiers.append(RuleTier(LOCAL_TIER, local))
    tiers.append(RuleTier(GENERAL_TIER, general, requires_fallback=True))

    store = RuleStore(tiers)

    logger.info(
        "Rule store loaded",
        extra={"path": str(path), **store.counts()}
    )
    return store
