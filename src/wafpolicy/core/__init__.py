"""Core data models shared by the compiler, renderers and CLI."""

from wafpolicy.core.models import (
    CustomManagedRuleDeclaration,
    GeoBlockDeclaration,
    IPAddressVersion,
    IPSetDeclaration,
    ManagedRulesToggle,
    PolicyDeclarations,
    PolicyScope,
    RateLimitDeclaration,
    RuleAction,
    RuleDeclaration,
    allow_ip_set,
    block_ip_set,
    geo_block,
    rate_limit,
)

__all__ = [
    # Enums
    "IPAddressVersion",
    "PolicyScope",
    "RuleAction",
    # Declarations
    "CustomManagedRuleDeclaration",
    "GeoBlockDeclaration",
    "IPSetDeclaration",
    "ManagedRulesToggle",
    "PolicyDeclarations",
    "RateLimitDeclaration",
    "RuleDeclaration",
    # Helpers
    "allow_ip_set",
    "block_ip_set",
    "geo_block",
    "rate_limit",
]
