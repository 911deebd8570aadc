"""AWS WAFv2 Terraform generation for compiled policies."""

import re
from typing import Any

from wafpolicy.core.models import IPSetDeclaration, PolicyScope
from wafpolicy.errors import ConfigurationError
from wafpolicy.waf.providers.base import BaseWafProvider, WafProviderType
from wafpolicy.waf.region import parse_region
from wafpolicy.waf.rules import (
    CompiledPolicy,
    GeoMatchStatement,
    IPSetReferenceStatement,
    ManagedRuleGroupStatement,
    RateBasedStatement,
    ResolvedRule,
    RuleStatement,
    VisibilityConfig,
)

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def to_snake_case(key: str) -> str:
    """Convert a WAFv2 API key (``IPSetReferenceStatement``) to HCL form."""
    return _WORD_BOUNDARY.sub(r"\1_\2", _ACRONYM_BOUNDARY.sub(r"\1_\2", key)).lower()


class AwsWafProvider(BaseWafProvider):
    """AWS WAFv2 Terraform provider."""

    provider_type = WafProviderType.AWS

    def generate_rule(self, rule: ResolvedRule) -> str:
        """Generate Terraform for a single web ACL rule."""
        if rule.action is not None:
            action_hcl = f'''action {{
      {rule.action.value.lower()} {{}}
    }}'''
        else:
            action_hcl = f'''override_action {{
      {rule.override_action.value.lower()} {{}}
    }}'''

        statement_hcl = self._generate_statement(rule.statement)

        return f'''
  rule {{
    name     = "{self._escape_hcl_string(rule.name)}"
    priority = {rule.priority}

    {action_hcl}

    statement {{
      {statement_hcl}
    }}

    {self._generate_visibility_config(rule.visibility_config, indent=4)}
  }}
'''

    def _generate_statement(self, statement: RuleStatement) -> str:
        """Generate the statement body for one rule."""
        if isinstance(statement, RateBasedStatement):
            return self._generate_rate_based_statement(statement)
        if isinstance(statement, GeoMatchStatement):
            codes = ", ".join(f'"{code}"' for code in statement.country_codes)
            return f'''geo_match_statement {{
        country_codes = [{codes}]
      }}'''
        if isinstance(statement, IPSetReferenceStatement):
            return f'''ip_set_reference_statement {{
        arn = {self._ip_set_reference(statement.ip_set_name)}.arn
      }}'''
        if isinstance(statement, ManagedRuleGroupStatement):
            return self._generate_managed_rule_group_statement(statement)
        raise TypeError(f"Unsupported statement: {type(statement).__name__}")

    def _generate_rate_based_statement(self, statement: RateBasedStatement) -> str:
        """Generate rate_based_statement block."""
        scope_down_hcl = ""
        if statement.scope_down_statement is not None:
            scope_down_hcl = (
                "\n\n        scope_down_statement {\n"
                + self._generate_nested_blocks(statement.scope_down_statement, indent=10)
                + "\n        }"
            )

        return f'''rate_based_statement {{
        limit                 = {statement.limit}
        aggregate_key_type    = "{statement.aggregate_key_type}"
        evaluation_window_sec = {statement.evaluation_window_sec}{scope_down_hcl}
      }}'''

    def _generate_managed_rule_group_statement(
        self,
        statement: ManagedRuleGroupStatement,
    ) -> str:
        """Generate managed_rule_group_statement block.

        Excluded rules are expressed as COUNT overrides, the current
        provider equivalent of rule exclusion.
        """
        overrides = "".join(
            f'''

        rule_action_override {{
          name = "{self._escape_hcl_string(excluded)}"

          action_to_use {{
            count {{}}
          }}
        }}'''
            for excluded in statement.excluded_rules
        )

        return f'''managed_rule_group_statement {{
        name        = "{self._escape_hcl_string(statement.name)}"
        vendor_name = "{self._escape_hcl_string(statement.vendor_name)}"{overrides}
      }}'''

    def _generate_nested_blocks(self, statement: dict[str, Any], indent: int) -> str:
        """Convert a WAFv2 JSON statement into nested HCL blocks.

        Objects become blocks, lists of objects become repeated blocks with
        a singular name, everything else becomes an attribute.
        """
        pad = " " * indent
        lines: list[str] = []

        for key, value in statement.items():
            name = to_snake_case(key)
            if isinstance(value, dict):
                if value:
                    lines.append(f"{pad}{name} {{")
                    lines.append(self._generate_nested_blocks(value, indent + 2))
                    lines.append(f"{pad}}}")
                else:
                    lines.append(f"{pad}{name} {{}}")
            elif isinstance(value, list) and value and all(isinstance(v, dict) for v in value):
                block_name = name[:-1] if name.endswith("s") else name
                for item in value:
                    lines.append(f"{pad}{block_name} {{")
                    lines.append(self._generate_nested_blocks(item, indent + 2))
                    lines.append(f"{pad}}}")
            else:
                lines.append(f"{pad}{name} = {self._hcl_value(value)}")

        return "\n".join(lines)

    def _hcl_value(self, value: Any) -> str:
        """Render a scalar or list of scalars as an HCL expression."""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, list):
            return "[" + ", ".join(self._hcl_value(v) for v in value) + "]"
        if value is None:
            return "null"
        return f'"{self._escape_hcl_string(str(value))}"'

    def _generate_visibility_config(self, config: VisibilityConfig, indent: int = 2) -> str:
        """Generate visibility_config block."""
        pad = " " * indent
        return f'''visibility_config {{
{pad}  cloudwatch_metrics_enabled = {self._hcl_value(config.cloudwatch_metrics_enabled)}
{pad}  metric_name                = "{self._escape_hcl_string(config.metric_name)}"
{pad}  sampled_requests_enabled   = {self._hcl_value(config.sampled_requests_enabled)}
{pad}}}'''

    def _generate_tags(self, extra: dict[str, str]) -> str:
        """Generate tags block."""
        all_tags = dict(self._tags)
        all_tags.update(extra)

        tag_lines = [
            f'    "{self._escape_hcl_string(k)}" = "{self._escape_hcl_string(v)}"'
            for k, v in all_tags.items()
        ]
        return "tags = {\n" + "\n".join(tag_lines) + "\n  }"

    def _ip_set_reference(self, ip_set_name: str) -> str:
        return f"aws_wafv2_ip_set.{self._sanitize_name(ip_set_name)}"

    def generate_ip_set(self, ip_set: IPSetDeclaration, scope: PolicyScope) -> str:
        """Generate Terraform for an IP set referenced by the web ACL."""
        addresses = ", ".join(f'"{address}"' for address in ip_set.addresses)

        return f'''resource "aws_wafv2_ip_set" "{self._sanitize_name(ip_set.name)}" {{
  name               = "{self._escape_hcl_string(ip_set.name)}"
  scope              = "{scope.value}"
  ip_address_version = "{ip_set.ip_address_version.value}"
  addresses          = [{addresses}]

  {self._generate_tags({"Name": ip_set.name})}
}}
'''

    def generate_web_acl(self, policy: CompiledPolicy) -> str:
        """Generate Terraform for the web ACL with its inline rules."""
        sanitized_name = self._sanitize_name(policy.name)
        rules_hcl = "".join(self.generate_rule(rule) for rule in policy.rules)

        return f'''resource "aws_wafv2_web_acl" "{sanitized_name}" {{
  name  = "{self._escape_hcl_string(policy.name)}"
  scope = "{policy.scope.value}"

  default_action {{
    {policy.default_action.value.lower()} {{}}
  }}
{rules_hcl}
  {self._generate_visibility_config(VisibilityConfig(metric_name=policy.name))}

  {self._generate_tags({"Name": policy.name})}
}}
'''

    def generate_association(
        self,
        policy: CompiledPolicy,
        association_id: str,
        resource_arn: str,
    ) -> str:
        """Generate Terraform associating the web ACL with a regional resource.

        Args:
            policy: Compiled policy.
            association_id: Unique identifier for the association.
            resource_arn: ARN of the ALB, API Gateway stage, AppSync API or
                Cognito user pool.

        Raises:
            ConfigurationError: The policy is not REGIONAL.
        """
        if policy.scope != PolicyScope.REGIONAL:
            raise ConfigurationError(
                "Resource association only works with REGIONAL scope",
                hint="For CloudFront, pass the web ACL ARN to the distribution instead.",
            )

        return f'''resource "aws_wafv2_web_acl_association" "{self._sanitize_name(association_id)}" {{
  resource_arn = "{self._escape_hcl_string(resource_arn)}"
  web_acl_arn  = aws_wafv2_web_acl.{self._sanitize_name(policy.name)}.arn
}}
'''

    def _generate_main_config(
        self,
        policy: CompiledPolicy,
        associations: dict[str, str],
    ) -> str:
        """Generate main Terraform configuration for the web ACL."""
        provider_hcl = '''terraform {
  required_providers {
    aws = {
      source  = "hashicorp/aws"
      version = "~> 5.0"
    }
  }
}

provider "aws" {
  region = var.aws_region
}

'''

        ip_sets_hcl = "\n".join(
            self.generate_ip_set(ip_set, policy.scope) for ip_set in policy.ip_sets
        )

        associations_hcl = "\n".join(
            self.generate_association(policy, association_id, resource_arn)
            for association_id, resource_arn in associations.items()
        )

        parts = [provider_hcl]
        if ip_sets_hcl:
            parts.append(ip_sets_hcl + "\n")
        parts.append(self.generate_web_acl(policy))
        if associations_hcl:
            parts.append("\n" + associations_hcl)
        return "".join(parts)

    def _generate_variables(self, region: str) -> str:
        """Generate Terraform variables for the web ACL."""
        parsed = parse_region(region)
        default_hcl = f'\n  default     = "{parsed.value}"' if parsed.is_literal else ""

        return f'''variable "aws_region" {{
  description = "AWS region for WAF resources (CLOUDFRONT scope requires us-east-1)"
  type        = string{default_hcl}
}}
'''

    def _generate_outputs(self, policy: CompiledPolicy) -> str:
        """Generate Terraform outputs for the web ACL."""
        sanitized_name = self._sanitize_name(policy.name)

        outputs = f'''output "web_acl_id" {{
  description = "WAF Web ACL ID"
  value       = aws_wafv2_web_acl.{sanitized_name}.id
}}

output "web_acl_arn" {{
  description = "WAF Web ACL ARN"
  value       = aws_wafv2_web_acl.{sanitized_name}.arn
}}
'''
        for ip_set in policy.ip_sets:
            outputs += f'''
output "ip_set_{self._sanitize_name(ip_set.name).replace("-", "_")}_arn" {{
  description = "ARN of IP set {self._escape_hcl_string(ip_set.name)}"
  value       = {self._ip_set_reference(ip_set.name)}.arn
}}
'''
        return outputs
