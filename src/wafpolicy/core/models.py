"""Core data models for wafpolicy.

Rule declarations form a closed, tagged union discriminated on ``kind``.
Each variant describes one firewall feature the caller wants enabled;
the compiler turns them into priority-ordered rules.
"""

import ipaddress
import re
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class PolicyScope(str, Enum):
    """Deployment scope of a web ACL."""

    CLOUDFRONT = "CLOUDFRONT"  # edge-network wide
    REGIONAL = "REGIONAL"  # single-region resource (ALB, API Gateway, ...)


class RuleAction(str, Enum):
    """Terminating action of a rule, also used as the web ACL default action."""

    ALLOW = "ALLOW"
    BLOCK = "BLOCK"


class IPAddressVersion(str, Enum):
    """IP address family of an IP set."""

    IPV4 = "IPV4"
    IPV6 = "IPV6"


IP_SET_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
COUNTRY_CODE_PATTERN = re.compile(r"^[A-Z]{2}$")
EVALUATION_WINDOWS = (60, 120, 300, 600)


class _Declaration(BaseModel):
    """Common settings for every rule declaration."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class RateLimitDeclaration(_Declaration):
    """Block source IPs exceeding a request count per evaluation window."""

    kind: Literal["rate_limit"] = "rate_limit"
    limit: int = Field(..., gt=0, description="Maximum requests per evaluation window")
    priority: int | None = Field(default=None, ge=0)
    scope_down_statement: dict[str, Any] | None = Field(
        default=None,
        description="WAFv2 statement restricting which requests are counted",
    )
    evaluation_window_sec: int = Field(default=300)

    @field_validator("scope_down_statement")
    @classmethod
    def validate_scope_down(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        """Reject an empty scope-down statement; omit the field instead."""
        if v is not None and not v:
            raise ValueError("scope_down_statement must not be empty")
        return v

    @field_validator("evaluation_window_sec")
    @classmethod
    def validate_window(cls, v: int) -> int:
        """Validate the evaluation window against the values WAFv2 accepts."""
        if v not in EVALUATION_WINDOWS:
            raise ValueError(f"evaluation_window_sec must be one of: {EVALUATION_WINDOWS}")
        return v


class GeoBlockDeclaration(_Declaration):
    """Block requests originating from the listed countries."""

    kind: Literal["geo_block"] = "geo_block"
    country_codes: tuple[str, ...] = Field(..., min_length=1)
    priority: int | None = Field(default=None, ge=0)

    @field_validator("country_codes", mode="before")
    @classmethod
    def normalize_country_codes(cls, v: Any) -> Any:
        """Upper-case ISO 3166-1 alpha-2 codes and reject anything else."""
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple)):
            raise ValueError("country_codes must be a list of country codes")
        codes = []
        for code in v:
            code = str(code).strip().upper()
            if not COUNTRY_CODE_PATTERN.match(code):
                raise ValueError(f"invalid country code: {code!r}")
            codes.append(code)
        return tuple(codes)


class IPSetDeclaration(_Declaration):
    """Allow or block requests from a named set of CIDR ranges."""

    kind: Literal["ip_set"] = "ip_set"
    name: str
    ip_address_version: IPAddressVersion = IPAddressVersion.IPV4
    addresses: tuple[str, ...] = Field(default=())
    priority: int | None = Field(default=None, ge=0)
    action: RuleAction

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the IP set name against WAFv2 naming rules."""
        if not IP_SET_NAME_PATTERN.match(v):
            raise ValueError(
                "name must be 1-128 characters of letters, digits, '_' or '-'"
            )
        return v

    @field_validator("addresses")
    @classmethod
    def normalize_addresses(cls, v: tuple[str, ...], info: ValidationInfo) -> tuple[str, ...]:
        """Normalize addresses to CIDR notation of the declared IP version."""
        version = info.data.get("ip_address_version")
        normalized = []
        for address in v:
            try:
                network = ipaddress.ip_network(address.strip(), strict=False)
            except ValueError as e:
                raise ValueError(f"invalid address {address!r}: {e}") from e
            if version is not None and network.version != (4 if version == IPAddressVersion.IPV4 else 6):
                raise ValueError(f"address {address!r} is not an {version.value} address")
            normalized.append(network.with_prefixlen)
        return tuple(normalized)


class ManagedRulesToggle(_Declaration):
    """Enable or disable the default catalog of vendor managed rule groups."""

    kind: Literal["managed_rules"] = "managed_rules"
    enabled: bool = True


class CustomManagedRuleDeclaration(_Declaration):
    """Reference a single vendor managed rule group by name."""

    kind: Literal["custom_managed_rule"] = "custom_managed_rule"
    name: str = Field(..., min_length=1)
    vendor_name: str = Field(default="AWS", min_length=1)
    priority: int | None = Field(default=None, ge=0)
    excluded_rules: tuple[str, ...] = Field(default=())


RuleDeclaration = Annotated[
    Union[
        RateLimitDeclaration,
        GeoBlockDeclaration,
        IPSetDeclaration,
        ManagedRulesToggle,
        CustomManagedRuleDeclaration,
    ],
    Field(discriminator="kind"),
]


class PolicyDeclarations(BaseModel):
    """All rule declarations for one web ACL."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rate_limit: RateLimitDeclaration | None = None
    geo_block: GeoBlockDeclaration | None = None
    ip_sets: tuple[IPSetDeclaration, ...] = Field(default=())
    enable_managed_rules: bool = False
    managed_rules: tuple[CustomManagedRuleDeclaration, ...] = Field(default=())

    @classmethod
    def from_declarations(cls, declarations: Iterable[RuleDeclaration]) -> "PolicyDeclarations":
        """Build the bundle from a flat list of tagged declarations.

        List-valued categories keep their relative order. A single-valued
        category declared twice is rejected.

        Args:
            declarations: Declarations in any order.

        Returns:
            PolicyDeclarations holding the same declarations.
        """
        rate_limit: RateLimitDeclaration | None = None
        geo_block: GeoBlockDeclaration | None = None
        ip_sets: list[IPSetDeclaration] = []
        managed_rules: list[CustomManagedRuleDeclaration] = []
        enable_managed_rules = False

        for declaration in declarations:
            if isinstance(declaration, RateLimitDeclaration):
                if rate_limit is not None:
                    raise ValueError("rate_limit may only be declared once")
                rate_limit = declaration
            elif isinstance(declaration, GeoBlockDeclaration):
                if geo_block is not None:
                    raise ValueError("geo_block may only be declared once")
                geo_block = declaration
            elif isinstance(declaration, IPSetDeclaration):
                ip_sets.append(declaration)
            elif isinstance(declaration, ManagedRulesToggle):
                enable_managed_rules = declaration.enabled
            elif isinstance(declaration, CustomManagedRuleDeclaration):
                managed_rules.append(declaration)
            else:
                raise TypeError(f"Unsupported declaration: {type(declaration).__name__}")

        return cls(
            rate_limit=rate_limit,
            geo_block=geo_block,
            ip_sets=tuple(ip_sets),
            enable_managed_rules=enable_managed_rules,
            managed_rules=tuple(managed_rules),
        )

    def iter_declarations(self) -> Iterator[RuleDeclaration]:
        """Yield declarations in the fixed category evaluation order."""
        if self.rate_limit is not None:
            yield self.rate_limit
        if self.geo_block is not None:
            yield self.geo_block
        yield from self.ip_sets
        if self.enable_managed_rules:
            yield ManagedRulesToggle(enabled=True)
        yield from self.managed_rules


def rate_limit(limit: int, priority: int = 1) -> RateLimitDeclaration:
    """Create a rate limit declaration.

    Args:
        limit: Maximum requests per 5 minutes.
        priority: Rule priority.
    """
    return RateLimitDeclaration(limit=limit, priority=priority)


def geo_block(country_codes: list[str], priority: int = 2) -> GeoBlockDeclaration:
    """Create a geographic blocking declaration.

    Args:
        country_codes: ISO 3166-1 alpha-2 country codes.
        priority: Rule priority.
    """
    return GeoBlockDeclaration(country_codes=tuple(country_codes), priority=priority)


def block_ip_set(name: str, addresses: list[str], priority: int) -> IPSetDeclaration:
    """Create an IPv4 IP set declaration that blocks matching requests."""
    return IPSetDeclaration(
        name=name,
        addresses=tuple(addresses),
        priority=priority,
        action=RuleAction.BLOCK,
        ip_address_version=IPAddressVersion.IPV4,
    )


def allow_ip_set(name: str, addresses: list[str], priority: int) -> IPSetDeclaration:
    """Create an IPv4 IP set declaration that allows matching requests."""
    return IPSetDeclaration(
        name=name,
        addresses=tuple(addresses),
        priority=priority,
        action=RuleAction.ALLOW,
        ip_address_version=IPAddressVersion.IPV4,
    )
