"""Pytest configuration and fixtures for wafpolicy tests."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from wafpolicy.core.models import (
    CustomManagedRuleDeclaration,
    GeoBlockDeclaration,
    IPSetDeclaration,
    PolicyDeclarations,
    RateLimitDeclaration,
    RuleAction,
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def full_declarations() -> PolicyDeclarations:
    """Declarations covering every rule category."""
    return PolicyDeclarations(
        rate_limit=RateLimitDeclaration(limit=2000, priority=1),
        geo_block=GeoBlockDeclaration(country_codes=("CN", "RU"), priority=2),
        ip_sets=(
            IPSetDeclaration(
                name="Office",
                addresses=("203.0.113.0/24",),
                action=RuleAction.ALLOW,
            ),
            IPSetDeclaration(
                name="Blocklist",
                addresses=("198.51.100.7",),
                action=RuleAction.BLOCK,
            ),
        ),
        enable_managed_rules=True,
        managed_rules=(
            CustomManagedRuleDeclaration(
                name="AWSManagedRulesAdminProtectionRuleSet",
                excluded_rules=("AdminProtection_URIPATH",),
            ),
        ),
    )


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample .wafpolicy.yml configuration file."""
    content = """version: 1
name: test-waf
region: us-east-1
default_action: ALLOW
tags:
  Team: web

rules:
  rate_limit:
    limit: 2000
    priority: 1
  geo_block:
    country_codes: [CN, RU]
    priority: 2
  enable_managed_rules: true
"""
    file_path = temp_dir / ".wafpolicy.yml"
    file_path.write_text(content)
    return file_path


@pytest.fixture
def regional_config(temp_dir: Path) -> Path:
    """Create a REGIONAL policy with an IP set and an association."""
    content = """version: 1
name: regional-waf
region: eu-west-1
default_action: BLOCK
associations:
  alb: arn:aws:elasticloadbalancing:eu-west-1:123456789012:loadbalancer/app/my-alb/abc

rules:
  ip_sets:
    - name: Office
      addresses: [203.0.113.0/24]
      action: ALLOW
      priority: 0
  enable_managed_rules: true
"""
    file_path = temp_dir / "regional.yml"
    file_path.write_text(content)
    return file_path


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove region environment variables for testing."""
    monkeypatch.delenv("WAFPOLICY_REGION", raising=False)
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
