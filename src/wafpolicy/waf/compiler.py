"""Web ACL rule compiler.

This module turns independent rule declarations into a single ordered,
collision-free rule list. Categories are always processed in the same
order:

1. Rate limit
2. Geo block
3. IP sets (in declaration order)
4. Default managed rules
5. Custom managed rules

Each category is a step function ``(state, declaration) -> state`` over an
immutable CompileState, so the priority counter is threaded through the
compilation rather than mutated in place.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Optional, Union

from wafpolicy.core.models import (
    CustomManagedRuleDeclaration,
    GeoBlockDeclaration,
    IPSetDeclaration,
    ManagedRulesToggle,
    PolicyDeclarations,
    PolicyScope,
    RateLimitDeclaration,
    RuleAction,
    RuleDeclaration,
)
from wafpolicy.errors import ConfigurationError, DeclarationError
from wafpolicy.utils.logging import get_logger
from wafpolicy.waf.catalog import expand_managed_rules, managed_rule_names
from wafpolicy.waf.priority import PriorityCounter
from wafpolicy.waf.region import Region
from wafpolicy.waf.rules import (
    CompiledPolicy,
    GeoMatchStatement,
    IPSetReferenceStatement,
    ManagedRuleGroupStatement,
    OverrideAction,
    RateBasedStatement,
    ResolvedRule,
    VisibilityConfig,
)
from wafpolicy.waf.scope import resolve_scope

logger = get_logger(__name__)

RATE_LIMIT_RULE_NAME = "RateLimitRule"
GEO_BLOCK_RULE_NAME = "GeoBlockRule"
IP_SET_RULE_PREFIX = "IPSetRule"


@dataclass(frozen=True)
class CompileState:
    """Rules synthesized so far and the priority counter after them."""

    counter: PriorityCounter = field(default_factory=PriorityCounter)
    rules: tuple[ResolvedRule, ...] = ()

    def add(self, rule: ResolvedRule, counter: PriorityCounter) -> "CompileState":
        logger.debug("Rule %s assigned priority %d", rule.name, rule.priority)
        return CompileState(counter=counter, rules=self.rules + (rule,))


def compile_rate_limit(state: CompileState, declaration: RateLimitDeclaration) -> CompileState:
    """Add the rate-based blocking rule."""
    priority, counter = state.counter.allocate(declaration.priority, RATE_LIMIT_RULE_NAME)
    rule = ResolvedRule(
        name=RATE_LIMIT_RULE_NAME,
        priority=priority,
        statement=RateBasedStatement(
            limit=declaration.limit,
            aggregate_key_type="IP",
            evaluation_window_sec=declaration.evaluation_window_sec,
            scope_down_statement=declaration.scope_down_statement,
        ),
        action=RuleAction.BLOCK,
        visibility_config=VisibilityConfig(metric_name=RATE_LIMIT_RULE_NAME),
    )
    return state.add(rule, counter)


def compile_geo_block(state: CompileState, declaration: GeoBlockDeclaration) -> CompileState:
    """Add the country blocking rule."""
    priority, counter = state.counter.allocate(declaration.priority, GEO_BLOCK_RULE_NAME)
    rule = ResolvedRule(
        name=GEO_BLOCK_RULE_NAME,
        priority=priority,
        statement=GeoMatchStatement(country_codes=declaration.country_codes),
        action=RuleAction.BLOCK,
        visibility_config=VisibilityConfig(metric_name=GEO_BLOCK_RULE_NAME),
    )
    return state.add(rule, counter)


def compile_ip_set(state: CompileState, declaration: IPSetDeclaration) -> CompileState:
    """Add a rule referencing one IP set."""
    name = f"{IP_SET_RULE_PREFIX}{declaration.name}"
    priority, counter = state.counter.allocate(declaration.priority, name)
    rule = ResolvedRule(
        name=name,
        priority=priority,
        statement=IPSetReferenceStatement(
            ip_set_name=declaration.name,
            addresses=declaration.addresses,
            ip_address_version=declaration.ip_address_version,
        ),
        action=declaration.action,
        visibility_config=VisibilityConfig(metric_name=name),
    )
    return state.add(rule, counter)


def compile_default_managed_rules(
    state: CompileState,
    declaration: ManagedRulesToggle,
) -> CompileState:
    """Add the default managed rule groups at consecutive priorities."""
    if not declaration.enabled:
        return state

    start, counter = state.counter.claim_range(managed_rule_names())
    rules = expand_managed_rules(start)
    for rule in rules:
        logger.debug("Rule %s assigned priority %d", rule.name, rule.priority)
    return CompileState(counter=counter, rules=state.rules + tuple(rules))


def compile_custom_managed_rule(
    state: CompileState,
    declaration: CustomManagedRuleDeclaration,
) -> CompileState:
    """Add a rule referencing a single vendor managed rule group."""
    priority, counter = state.counter.allocate(declaration.priority, declaration.name)
    rule = ResolvedRule(
        name=declaration.name,
        priority=priority,
        statement=ManagedRuleGroupStatement(
            name=declaration.name,
            vendor_name=declaration.vendor_name,
            excluded_rules=declaration.excluded_rules,
        ),
        override_action=OverrideAction.NONE,
        visibility_config=VisibilityConfig(metric_name=declaration.name),
    )
    return state.add(rule, counter)


Step = Callable[[CompileState, RuleDeclaration], CompileState]

CATEGORY_STEPS: dict[type, Step] = {
    RateLimitDeclaration: compile_rate_limit,
    GeoBlockDeclaration: compile_geo_block,
    IPSetDeclaration: compile_ip_set,
    ManagedRulesToggle: compile_default_managed_rules,
    CustomManagedRuleDeclaration: compile_custom_managed_rule,
}


class RuleCompiler:
    """Compiles rule declarations into a web ACL policy."""

    def step(self, state: CompileState, declaration: RuleDeclaration) -> CompileState:
        """Apply one declaration to the compile state.

        Args:
            state: State after the previous declarations.
            declaration: Declaration to compile.

        Returns:
            New state including the declaration's rules.
        """
        step = CATEGORY_STEPS.get(type(declaration))
        if step is None:
            raise TypeError(f"Unsupported declaration: {type(declaration).__name__}")
        return step(state, declaration)

    def compile(
        self,
        declarations: Union[PolicyDeclarations, Iterable[RuleDeclaration], None],
        region: Union[str, Region, None],
        name: str,
        scope: Optional[PolicyScope] = None,
        default_action: Optional[RuleAction] = None,
    ) -> CompiledPolicy:
        """Compile declarations into an ordered, collision-free policy.

        Args:
            declarations: Rule declarations, bundled or as a flat list.
            region: Target deployment region (literal or deploy-time token).
            name: Web ACL name.
            scope: Explicit scope; derived from the region when omitted.
            default_action: Action for unmatched requests (default ALLOW).

        Returns:
            The compiled policy.

        Raises:
            ConfigurationError: Invalid scope/region combination or policy name.
            PriorityCollisionError: Two rules request the same priority.
            DeclarationError: Two rules would share a name.
        """
        if not name or not name.strip():
            raise ConfigurationError("Web ACL name must not be empty")

        resolved_scope = resolve_scope(scope, region)

        if declarations is None:
            declarations = PolicyDeclarations()
        elif not isinstance(declarations, PolicyDeclarations):
            declarations = PolicyDeclarations.from_declarations(declarations)

        state = CompileState()
        for declaration in declarations.iter_declarations():
            state = self.step(state, declaration)

        _check_unique_names(state.rules)

        policy = CompiledPolicy(
            name=name,
            scope=resolved_scope,
            default_action=RuleAction(default_action) if default_action else RuleAction.ALLOW,
            rules=state.rules,
            ip_sets=declarations.ip_sets,
        )

        logger.info(
            "Compiled web ACL %s: %d rules, scope %s, default action %s",
            policy.name,
            len(policy.rules),
            policy.scope.value,
            policy.default_action.value,
        )
        return policy


def _check_unique_names(rules: tuple[ResolvedRule, ...]) -> None:
    seen: set[str] = set()
    for rule in rules:
        if rule.name in seen:
            raise DeclarationError(
                f"Duplicate rule name '{rule.name}'",
                hint="IP set and managed rule group names must be unique within a web ACL.",
            )
        seen.add(rule.name)


def compile_policy(
    declarations: Union[PolicyDeclarations, Iterable[RuleDeclaration], None] = None,
    region: Union[str, Region, None] = None,
    *,
    name: str,
    scope: Optional[PolicyScope] = None,
    default_action: Optional[RuleAction] = None,
) -> CompiledPolicy:
    """Convenience function to compile a policy.

    Args:
        declarations: Rule declarations.
        region: Target deployment region.
        name: Web ACL name.
        scope: Explicit scope, if any.
        default_action: Action for unmatched requests.

    Returns:
        The compiled policy.
    """
    return RuleCompiler().compile(
        declarations,
        region,
        name=name,
        scope=scope,
        default_action=default_action,
    )
