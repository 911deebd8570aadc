"""Configuration management for wafpolicy."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from wafpolicy.core.models import PolicyDeclarations, PolicyScope, RuleAction
from wafpolicy.errors import ConfigFileError

CONFIG_FILENAMES = (".wafpolicy.yml", ".wafpolicy.yaml")


class OutputConfig(BaseModel):
    """Configuration for rendering a compiled policy."""

    format: str = Field(
        default="terraform",
        description="Output format (terraform, json)",
    )
    output_dir: str = Field(
        default="./terraform/waf",
        description="Output directory for generated files",
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate output format value."""
        allowed = {"terraform", "json"}
        if v.lower() not in allowed:
            raise ValueError(f"format must be one of: {allowed}")
        return v.lower()


class PolicyConfig(BaseModel):
    """Complete web ACL policy configuration."""

    version: int = Field(default=1, description="Configuration file version")
    name: str = Field(default="wafpolicy-waf", min_length=1, description="Web ACL name")
    region: str = Field(default="", description="Target region or deploy-time token")
    scope: PolicyScope | None = Field(
        default=None,
        description="Explicit scope (CLOUDFRONT, REGIONAL); derived from region if omitted",
    )
    default_action: RuleAction = Field(
        default=RuleAction.ALLOW,
        description="Action for requests matching no rule",
    )
    tags: dict[str, str] = Field(default_factory=dict)
    associations: dict[str, str] = Field(
        default_factory=dict,
        description="Regional resource ARNs to associate, keyed by id",
    )
    rules: PolicyDeclarations = Field(default_factory=PolicyDeclarations)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("scope", "default_action", mode="before")
    @classmethod
    def upper_case_enums(cls, v: Any) -> Any:
        """Accept enum values in any case."""
        if isinstance(v, str):
            return v.upper()
        return v


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest .wafpolicy.yml configuration file.

    Searches from start_path up to the root directory.

    Args:
        start_path: Starting directory for search (defaults to cwd).

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.exists():
                return config_path

        if current == current.parent:
            return None
        current = current.parent


def load_config(
    config_path: Path | None = None,
    env_prefix: str = "WAFPOLICY_",
) -> PolicyConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. WAFPOLICY_REGION, then AWS_REGION / AWS_DEFAULT_REGION (region only)
    2. Config file
    3. Defaults

    Args:
        config_path: Path to config file (searches if not provided).
        env_prefix: Prefix for environment variables.

    Returns:
        Loaded configuration.

    Raises:
        ConfigFileError: The file cannot be parsed or fails validation.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path and config_path.exists():
        try:
            with open(config_path) as f:
                file_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigFileError(str(config_path), e) from e
        if file_data:
            if not isinstance(file_data, dict):
                raise ConfigFileError(
                    str(config_path),
                    message=f"Policy configuration {config_path} must be a YAML mapping",
                )
            config_data = file_data

    env_region = os.environ.get(f"{env_prefix}REGION")
    if env_region:
        config_data["region"] = env_region
    elif not config_data.get("region"):
        aws_region = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
        if aws_region:
            config_data["region"] = aws_region

    try:
        return PolicyConfig(**config_data)
    except ValidationError as e:
        raise ConfigFileError(str(config_path or ""), e) from e


def generate_example_config() -> str:
    """Generate an example configuration file.

    Returns:
        YAML string of example configuration.
    """
    example = """# wafpolicy configuration

version: 1

# Web ACL name
name: my-app-waf

# Target region. us-east-1 selects CLOUDFRONT scope automatically.
# Overridden by WAFPOLICY_REGION; AWS_REGION is used when unset.
region: us-east-1

# Explicit scope: CLOUDFRONT or REGIONAL (omit to derive from region)
# scope: CLOUDFRONT

# Action for requests that match no rule: ALLOW or BLOCK
default_action: ALLOW

# Tags applied to the web ACL and IP sets
tags:
  Environment: production

# Regional resources to attach (REGIONAL scope only)
# associations:
#   alb: arn:aws:elasticloadbalancing:eu-west-1:123456789012:loadbalancer/app/my-alb/abc

rules:
  # Block IPs exceeding 2000 requests per 5 minutes
  rate_limit:
    limit: 2000
    priority: 1

  # Block requests from these countries (ISO 3166-1 alpha-2)
  geo_block:
    country_codes: [CN, RU]
    priority: 2

  # IP allow/block lists
  ip_sets:
    - name: Office
      addresses:
        - 203.0.113.0/24
      action: ALLOW
      priority: 0

  # Enable the default AWS managed rule groups
  enable_managed_rules: true

  # Additional managed rule groups
  managed_rules:
    - name: AWSManagedRulesAdminProtectionRuleSet
      excluded_rules: []

output:
  # Output format: terraform or json
  format: terraform
  output_dir: ./terraform/waf
"""
    return example
