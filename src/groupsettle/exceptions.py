"""Custom exceptions for GroupSettle."""


class GroupSettleError(Exception):
    """Base exception for all GroupSettle errors."""

    error_code = "GROUP_SETTLE_ERROR"


class ConfigurationError(GroupSettleError):
    """Raised when configuration is invalid or missing."""

    error_code = "CONFIGURATION_ERROR"


class ValidationError(GroupSettleError):
    """Raised when caller input is malformed or inconsistent.

    Example: explicit splits that don't add up to the expense total.
    """

    error_code = "VALIDATION_ERROR"


class BusinessRuleError(GroupSettleError):
    """Raised when a request violates a domain rule (non-member, empty group)."""

    error_code = "BUSINESS_RULE_VIOLATION"


class ResourceNotFoundError(GroupSettleError):
    """Raised when a participant, group or expense doesn't exist."""

    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, field: str, value: object):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} not found with {field}: '{value}'")


class DuplicateResourceError(GroupSettleError):
    """Raised when creating something that already exists."""

    error_code = "DUPLICATE_RESOURCE"
