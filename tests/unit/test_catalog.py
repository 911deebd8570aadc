"""Tests for the default managed rule catalog."""

import pytest

from wafpolicy.waf.catalog import (
    DEFAULT_MANAGED_RULES,
    expand_managed_rules,
    managed_rule_names,
)
from wafpolicy.waf.rules import ManagedRuleGroupStatement, OverrideAction


class TestManagedRuleCatalog:
    """Tests for the managed rule catalog."""

    def test_catalog_order(self) -> None:
        """Test the catalog lists the seven rule groups in order."""
        assert managed_rule_names() == [
            "AWSManagedRulesCommonRuleSet",
            "AWSManagedRulesKnownBadInputsRuleSet",
            "AWSManagedRulesAmazonIpReputationList",
            "AWSManagedRulesAnonymousIpList",
            "AWSManagedRulesSQLiRuleSet",
            "AWSManagedRulesLinuxRuleSet",
            "AWSManagedRulesUnixRuleSet",
        ]

    def test_descriptions(self) -> None:
        """Test every entry has a description."""
        assert all(entry.description for entry in DEFAULT_MANAGED_RULES)

    def test_expand_default_start(self) -> None:
        """Test the default start priority is 100."""
        rules = expand_managed_rules()
        assert [r.priority for r in rules] == list(range(100, 107))

    def test_expand_consecutive_priorities(self) -> None:
        """Test priorities are consecutive from the start priority."""
        rules = expand_managed_rules(3)

        assert len(rules) == 7
        assert [r.priority for r in rules] == [3, 4, 5, 6, 7, 8, 9]

    def test_expanded_rule_shape(self) -> None:
        """Test each rule defers to the vendor verdict and has its own metric."""
        for rule in expand_managed_rules(0):
            assert isinstance(rule.statement, ManagedRuleGroupStatement)
            assert rule.statement.vendor_name == "AWS"
            assert rule.statement.name == rule.name
            assert rule.override_action == OverrideAction.NONE
            assert rule.action is None
            assert rule.visibility_config.metric_name == rule.name
            assert rule.visibility_config.sampled_requests_enabled is True
            assert rule.visibility_config.cloudwatch_metrics_enabled is True

    def test_negative_start_rejected(self) -> None:
        """Test negative start priorities are rejected."""
        with pytest.raises(ValueError):
            expand_managed_rules(-1)
