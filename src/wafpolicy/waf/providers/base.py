"""Base renderer interface for compiled web ACL policies."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from wafpolicy.errors import DeclarationError
from wafpolicy.waf.rules import CompiledPolicy


class WafProviderType(str, Enum):
    """Supported deployment targets."""

    AWS = "aws"


@dataclass
class GeneratedTerraform:
    """Generated Terraform output."""

    filename: str
    content: str
    provider: WafProviderType


class BaseWafProvider(ABC):
    """Base class for rendering a compiled policy into deployable files."""

    provider_type: WafProviderType

    def __init__(self, tags: Optional[dict[str, str]] = None) -> None:
        """Initialize the provider.

        Args:
            tags: Tags applied to every generated resource.
        """
        self._tags = dict(tags or {})
        if "ManagedBy" not in self._tags:
            self._tags["ManagedBy"] = "wafpolicy"

    def render(
        self,
        policy: CompiledPolicy,
        region: str = "",
        associations: Optional[dict[str, str]] = None,
    ) -> list[GeneratedTerraform]:
        """Render the complete configuration for a policy.

        Args:
            policy: Compiled policy.
            region: Deployment region for the provider block.
            associations: Regional resources to attach, keyed by id.

        Returns:
            List of generated Terraform files.

        Raises:
            DeclarationError: Two IP sets or two associations map to the
                same Terraform identifier.
        """
        associations = associations or {}
        self._check_unique_identifiers("IP set", [ip_set.name for ip_set in policy.ip_sets])
        self._check_unique_identifiers("Association", list(associations))

        return [
            GeneratedTerraform(
                filename="main.tf",
                content=self._generate_main_config(policy, associations),
                provider=self.provider_type,
            ),
            GeneratedTerraform(
                filename="variables.tf",
                content=self._generate_variables(region),
                provider=self.provider_type,
            ),
            GeneratedTerraform(
                filename="outputs.tf",
                content=self._generate_outputs(policy),
                provider=self.provider_type,
            ),
        ]

    @abstractmethod
    def _generate_main_config(
        self,
        policy: CompiledPolicy,
        associations: dict[str, str],
    ) -> str:
        """Generate main Terraform configuration."""
        pass

    @abstractmethod
    def _generate_variables(self, region: str) -> str:
        """Generate Terraform variables."""
        pass

    @abstractmethod
    def _generate_outputs(self, policy: CompiledPolicy) -> str:
        """Generate Terraform outputs."""
        pass

    def _sanitize_name(self, name: str) -> str:
        """Sanitize a name for use in Terraform resources.

        Args:
            name: Original name.

        Returns:
            Sanitized name.
        """
        sanitized = name.lower()
        sanitized = sanitized.replace(".", "-")
        sanitized = sanitized.replace("_", "-")
        sanitized = sanitized.replace(" ", "-")

        while "--" in sanitized:
            sanitized = sanitized.replace("--", "-")

        sanitized = sanitized.strip("-")

        # Terraform identifiers must start with a letter or underscore
        if sanitized and not (sanitized[0].isalpha() or sanitized[0] == "_"):
            sanitized = f"r-{sanitized}"

        return sanitized

    def _check_unique_identifiers(self, kind: str, names: list[str]) -> None:
        """Reject names that sanitize to the same Terraform identifier.

        Args:
            kind: Label used in the error message.
            names: Original names in declaration order.

        Raises:
            DeclarationError: Two names share a sanitized identifier.
        """
        seen: dict[str, str] = {}
        for name in names:
            identifier = self._sanitize_name(name)
            if identifier in seen:
                raise DeclarationError(
                    f"{kind} names '{seen[identifier]}' and '{name}' both map to"
                    f" Terraform identifier '{identifier}'",
                    hint="Names must differ after lower-casing and replacing '.', '_' and ' ' with '-'.",
                )
            seen[identifier] = name

    def _escape_hcl_string(self, value: str) -> str:
        """Escape a string for HCL.

        Args:
            value: Original string.

        Returns:
            Escaped string.
        """
        return value.replace("\\", "\\\\").replace('"', '\\"').replace("${", "$${")
