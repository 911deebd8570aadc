"""Renderers turning compiled policies into deployable configuration."""

from wafpolicy.waf.providers.aws import AwsWafProvider
from wafpolicy.waf.providers.base import (
    BaseWafProvider,
    GeneratedTerraform,
    WafProviderType,
)

__all__ = [
    "AwsWafProvider",
    "BaseWafProvider",
    "GeneratedTerraform",
    "WafProviderType",
]
