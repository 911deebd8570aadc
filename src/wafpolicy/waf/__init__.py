"""Web ACL policy compilation.

Components:
- region: compile-time classification of region strings
- scope: CLOUDFRONT/REGIONAL scope resolution
- priority: immutable priority counter
- catalog: default AWS managed rule groups
- compiler: rule compiler folding declarations into a policy
- providers: Terraform renderers for compiled policies
"""

from wafpolicy.waf.catalog import (
    DEFAULT_MANAGED_RULES,
    ManagedRuleEntry,
    expand_managed_rules,
    managed_rule_names,
)
from wafpolicy.waf.compiler import (
    CompileState,
    RuleCompiler,
    compile_policy,
)
from wafpolicy.waf.priority import PriorityCounter
from wafpolicy.waf.region import EDGE_REGION, Region, RegionKind, parse_region
from wafpolicy.waf.rules import (
    CompiledPolicy,
    GeoMatchStatement,
    IPSetReferenceStatement,
    ManagedRuleGroupStatement,
    OverrideAction,
    RateBasedStatement,
    ResolvedRule,
    RuleStatement,
    VisibilityConfig,
)
from wafpolicy.waf.scope import resolve_scope, scope_from_region

__all__ = [
    # Catalog
    "DEFAULT_MANAGED_RULES",
    "ManagedRuleEntry",
    "expand_managed_rules",
    "managed_rule_names",
    # Compiler
    "CompileState",
    "RuleCompiler",
    "compile_policy",
    # Priority
    "PriorityCounter",
    # Region and scope
    "EDGE_REGION",
    "Region",
    "RegionKind",
    "parse_region",
    "resolve_scope",
    "scope_from_region",
    # Rules
    "CompiledPolicy",
    "GeoMatchStatement",
    "IPSetReferenceStatement",
    "ManagedRuleGroupStatement",
    "OverrideAction",
    "RateBasedStatement",
    "ResolvedRule",
    "RuleStatement",
    "VisibilityConfig",
]
