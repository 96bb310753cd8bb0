"""Policy rule matching."""

from typing import Sequence

from whocan.models.rbac import WILDCARD, Action, PolicyRule


def _contains(values: Sequence[str], value: str) -> bool:
    """Membership test honouring the ``*`` wildcard."""
    for candidate in values:
        if candidate == WILDCARD or candidate == value:
            return True
    return False


def verb_matches(rule: PolicyRule, verb: str) -> bool:
    return _contains(rule.verbs, verb)


def api_group_matches(rule: PolicyRule, api_group: str) -> bool:
    return _contains(rule.api_groups, api_group)


def resource_matches(rule: PolicyRule, action: Action) -> bool:
    """Check the resource token, including ``*/subresource`` entries."""
    token = action.resource_token
    for candidate in rule.resources:
        if candidate == WILDCARD or candidate == token:
            return True
        if action.subresource and candidate == f"{WILDCARD}/{action.subresource}":
            return True
    return False


def resource_name_matches(rule: PolicyRule, resource_name: str) -> bool:
    # An empty list of names on the rule leaves it unrestricted.
    if not resource_name or not rule.resource_names:
        return True
    return resource_name in rule.resource_names


def non_resource_url_matches(rule: PolicyRule, url: str) -> bool:
    for candidate in rule.non_resource_urls:
        if candidate == url:
            return True
        if candidate.endswith(WILDCARD) and url.startswith(candidate[:-1]):
            return True
    return False


def matches(rule: PolicyRule, action: Action) -> bool:
    """Return True if ``rule`` authorizes ``action``."""
    if not verb_matches(rule, action.verb):
        return False

    if action.is_non_resource:
        return non_resource_url_matches(rule, action.non_resource_url)

    return (
        api_group_matches(rule, action.api_group)
        and resource_matches(rule, action)
        and resource_name_matches(rule, action.resource_name)
    )


def any_rule_matches(rules: Sequence[PolicyRule], action: Action) -> bool:
    """OR over a role's rules; RBAC has no deny."""
    return any(matches(rule, action) for rule in rules)
