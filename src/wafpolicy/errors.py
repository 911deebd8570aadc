"""Custom exceptions for wafpolicy with user-friendly error messages."""


class WafPolicyError(Exception):
    """Base exception with user-friendly message and optional hint.

    Attributes:
        message: The main error message.
        hint: Optional hint for resolving the error.
    """

    def __init__(self, message: str, hint: str = "") -> None:
        """Initialize the exception.

        Args:
            message: The main error message.
            hint: Optional hint for resolving the error.
        """
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation."""
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class ConfigurationError(WafPolicyError):
    """Invalid configuration."""

    pass


class EdgeScopeRegionError(ConfigurationError):
    """CLOUDFRONT scope requested outside the edge control-plane region."""

    def __init__(
        self,
        region: str,
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            message = (
                "WAF Web ACL with CLOUDFRONT scope must be created in us-east-1 region"
                f" (got '{region}')"
            )
        if not hint:
            hint = "Deploy the policy to us-east-1 or use REGIONAL scope."
        self.region = region
        super().__init__(message, hint)


class PriorityCollisionError(ConfigurationError):
    """Two rules were given the same explicit priority."""

    def __init__(
        self,
        priority: int,
        rule_name: str = "",
        existing_rule: str = "",
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            if rule_name and existing_rule:
                message = (
                    f"Priority {priority} of rule '{rule_name}' is already used"
                    f" by rule '{existing_rule}'"
                )
            else:
                message = f"Priority {priority} is already in use"
        if not hint:
            hint = "Give every rule a distinct priority or omit it to auto-assign one."
        self.priority = priority
        self.rule_name = rule_name
        self.existing_rule = existing_rule
        super().__init__(message, hint)


class DeclarationError(ConfigurationError):
    """Rule declarations are inconsistent with each other."""

    pass


class ConfigFileError(ConfigurationError):
    """Policy configuration file could not be read or parsed."""

    def __init__(
        self,
        path: str = "",
        original_error: Exception | None = None,
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            message = f"Failed to load policy configuration {path}".rstrip()
            if original_error:
                message += f": {original_error}"
        if not hint:
            hint = "Run 'wafpolicy config init' to create an example configuration."
        super().__init__(message, hint)
