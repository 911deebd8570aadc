"""Compiled rule types.

Statements are a closed set of frozen dataclasses, one per rule category.
``to_wafv2`` renders the AWS WAFv2 API shape consumed by
``aws wafv2 create-web-acl --cli-input-json``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from wafpolicy.core.models import (
    IPAddressVersion,
    IPSetDeclaration,
    PolicyScope,
    RuleAction,
)


class OverrideAction(str, Enum):
    """Override action for rule group references."""

    NONE = "NONE"  # defer to the rule group's own verdicts
    COUNT = "COUNT"


@dataclass(frozen=True)
class VisibilityConfig:
    """CloudWatch metrics and request sampling settings."""

    metric_name: str
    sampled_requests_enabled: bool = True
    cloudwatch_metrics_enabled: bool = True

    def to_wafv2(self) -> dict[str, Any]:
        return {
            "SampledRequestsEnabled": self.sampled_requests_enabled,
            "CloudWatchMetricsEnabled": self.cloudwatch_metrics_enabled,
            "MetricName": self.metric_name,
        }


@dataclass(frozen=True)
class RateBasedStatement:
    """Rate limit per source IP over an evaluation window."""

    limit: int
    aggregate_key_type: str = "IP"
    evaluation_window_sec: int = 300
    scope_down_statement: Optional[dict[str, Any]] = None

    def to_wafv2(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "Limit": self.limit,
            "AggregateKeyType": self.aggregate_key_type,
            "EvaluationWindowSec": self.evaluation_window_sec,
        }
        if self.scope_down_statement is not None:
            body["ScopeDownStatement"] = self.scope_down_statement
        return {"RateBasedStatement": body}


@dataclass(frozen=True)
class GeoMatchStatement:
    """Match requests by originating country."""

    country_codes: tuple[str, ...]

    def to_wafv2(self) -> dict[str, Any]:
        return {"GeoMatchStatement": {"CountryCodes": list(self.country_codes)}}


@dataclass(frozen=True)
class IPSetReferenceStatement:
    """Match requests against an IP set created alongside the web ACL."""

    ip_set_name: str
    addresses: tuple[str, ...] = ()
    ip_address_version: IPAddressVersion = IPAddressVersion.IPV4

    @property
    def arn_placeholder(self) -> str:
        """Placeholder for the IP set ARN, known only after deployment."""
        return f"${{IPSet.{self.ip_set_name}.Arn}}"

    def to_wafv2(self) -> dict[str, Any]:
        return {"IPSetReferenceStatement": {"ARN": self.arn_placeholder}}


@dataclass(frozen=True)
class ManagedRuleGroupStatement:
    """Reference to a vendor managed rule group."""

    name: str
    vendor_name: str = "AWS"
    excluded_rules: tuple[str, ...] = ()

    def to_wafv2(self) -> dict[str, Any]:
        body: dict[str, Any] = {"VendorName": self.vendor_name, "Name": self.name}
        if self.excluded_rules:
            body["ExcludedRules"] = [{"Name": name} for name in self.excluded_rules]
        return {"ManagedRuleGroupStatement": body}


RuleStatement = Union[
    RateBasedStatement,
    GeoMatchStatement,
    IPSetReferenceStatement,
    ManagedRuleGroupStatement,
]


@dataclass(frozen=True)
class ResolvedRule:
    """A fully specified rule with its final priority.

    Exactly one of ``action`` and ``override_action`` is set: rule group
    references carry an override action, every other statement a
    terminating action.
    """

    name: str
    priority: int
    statement: RuleStatement
    action: Optional[RuleAction] = None
    override_action: Optional[OverrideAction] = None
    visibility_config: Optional[VisibilityConfig] = None

    def __post_init__(self) -> None:
        if (self.action is None) == (self.override_action is None):
            raise ValueError(f"rule {self.name} needs exactly one of action or override_action")
        if self.visibility_config is None:
            object.__setattr__(self, "visibility_config", VisibilityConfig(metric_name=self.name))

    def to_wafv2(self) -> dict[str, Any]:
        rule: dict[str, Any] = {
            "Name": self.name,
            "Priority": self.priority,
            "Statement": self.statement.to_wafv2(),
        }
        if self.action is not None:
            rule["Action"] = {self.action.value.capitalize(): {}}
        else:
            rule["OverrideAction"] = {self.override_action.value.capitalize(): {}}
        rule["VisibilityConfig"] = self.visibility_config.to_wafv2()
        return rule


@dataclass(frozen=True)
class CompiledPolicy:
    """Output of one compilation, ready for a deployment collaborator."""

    name: str
    scope: PolicyScope
    default_action: RuleAction
    rules: tuple[ResolvedRule, ...] = ()
    ip_sets: tuple[IPSetDeclaration, ...] = ()

    @property
    def priorities(self) -> list[int]:
        return [rule.priority for rule in self.rules]

    def get_rule(self, name: str) -> Optional[ResolvedRule]:
        """Look up a rule by name."""
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    def to_wafv2(self) -> dict[str, Any]:
        """Render the web ACL in the AWS WAFv2 CreateWebACL request shape."""
        return {
            "Name": self.name,
            "Scope": self.scope.value,
            "DefaultAction": {self.default_action.value.capitalize(): {}},
            "Rules": [rule.to_wafv2() for rule in self.rules],
            "VisibilityConfig": VisibilityConfig(metric_name=self.name).to_wafv2(),
        }

    def ip_sets_to_wafv2(self) -> list[dict[str, Any]]:
        """Render referenced IP sets in the AWS WAFv2 CreateIPSet request shape.

        Each set must be created before the web ACL; its ARN replaces the
        ``${IPSet.<name>.Arn}`` placeholder in the rules.
        """
        return [
            {
                "Name": ip_set.name,
                "Scope": self.scope.value,
                "IPAddressVersion": ip_set.ip_address_version.value,
                "Addresses": list(ip_set.addresses),
            }
            for ip_set in self.ip_sets
        ]
