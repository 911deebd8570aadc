"""Catalog of AWS managed rule groups enabled by default.

Covers the AWS baseline and use-case specific rule groups recommended for
public web applications:

- Core Rule Set (CRS)
- Known Bad Inputs
- Amazon IP Reputation List
- Anonymous IP List
- SQL Injection Protection
- Linux Operating System Protection
- POSIX Operating System Protection
"""

from dataclasses import dataclass

from wafpolicy.waf.rules import (
    ManagedRuleGroupStatement,
    OverrideAction,
    ResolvedRule,
    VisibilityConfig,
)

MANAGED_RULE_VENDOR = "AWS"


@dataclass(frozen=True)
class ManagedRuleEntry:
    """A managed rule group in the default catalog."""

    name: str
    description: str


DEFAULT_MANAGED_RULES: tuple[ManagedRuleEntry, ...] = (
    ManagedRuleEntry("AWSManagedRulesCommonRuleSet", "Core Rule Set"),
    ManagedRuleEntry("AWSManagedRulesKnownBadInputsRuleSet", "Known Bad Inputs"),
    ManagedRuleEntry("AWSManagedRulesAmazonIpReputationList", "Amazon IP Reputation"),
    ManagedRuleEntry("AWSManagedRulesAnonymousIpList", "Anonymous IP List"),
    ManagedRuleEntry("AWSManagedRulesSQLiRuleSet", "SQL Injection"),
    ManagedRuleEntry("AWSManagedRulesLinuxRuleSet", "Linux OS"),
    ManagedRuleEntry("AWSManagedRulesUnixRuleSet", "POSIX OS"),
)


def managed_rule_names() -> list[str]:
    """Names of the default managed rule groups in evaluation order."""
    return [entry.name for entry in DEFAULT_MANAGED_RULES]


def expand_managed_rules(start_priority: int = 100) -> list[ResolvedRule]:
    """Build rules for every default managed rule group.

    Args:
        start_priority: Priority of the first rule; the rest follow
            consecutively.

    Returns:
        List of resolved rules in catalog order.
    """
    if start_priority < 0:
        raise ValueError(f"start_priority must be non-negative, got {start_priority}")

    return [
        ResolvedRule(
            name=entry.name,
            priority=start_priority + index,
            statement=ManagedRuleGroupStatement(
                name=entry.name,
                vendor_name=MANAGED_RULE_VENDOR,
            ),
            override_action=OverrideAction.NONE,
            visibility_config=VisibilityConfig(metric_name=entry.name),
        )
        for index, entry in enumerate(DEFAULT_MANAGED_RULES)
    ]
