"""Region values as known at policy compile time.

A region handed to the compiler may be a literal (``eu-west-1``), a
deploy-time token whose value is unknown until the template is deployed
(``${AWS::Region}``, ``${Token[AWS.Region.12]}``), or missing entirely for
environment-agnostic stacks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

# CloudFront-scoped web ACLs can only be created in this region.
EDGE_REGION = "us-east-1"

# Deploy-time tokens start with this marker; anything else is taken literally.
TOKEN_MARKER = "${"


class RegionKind(str, Enum):
    """How much is known about a region at compile time."""

    LITERAL = "literal"
    UNRESOLVED = "unresolved"
    UNSPECIFIED = "unspecified"


@dataclass(frozen=True)
class Region:
    """A region string classified by what can be checked statically."""

    value: str
    kind: RegionKind

    @property
    def is_literal(self) -> bool:
        """Whether the region value is known at compile time."""
        return self.kind == RegionKind.LITERAL

    @property
    def is_edge(self) -> bool:
        """Whether this is literally the edge control-plane region."""
        return self.is_literal and self.value == EDGE_REGION

    def __str__(self) -> str:
        return self.value or "<unspecified>"


def parse_region(value: Union[str, Region, None]) -> Region:
    """Classify a region string.

    Args:
        value: Region name, deploy-time token, or None.

    Returns:
        Region with its kind resolved.
    """
    if isinstance(value, Region):
        return value

    if value is None or not value.strip():
        return Region(value="", kind=RegionKind.UNSPECIFIED)

    value = value.strip()
    if value.startswith(TOKEN_MARKER):
        return Region(value=value, kind=RegionKind.UNRESOLVED)

    return Region(value=value, kind=RegionKind.LITERAL)

