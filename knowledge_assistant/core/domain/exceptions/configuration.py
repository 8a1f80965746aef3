"""Configuration-related exceptions."""

from .base import AssistantError


class ConfigurationError(AssistantError):
    """Configuration or environment variable errors.

    Raised when required configuration is missing or invalid.
    """

    error_code = "KA_CFG_001"


class MissingAPIKeyError(ConfigurationError):
    """The completion provider API key is not configured."""

    error_code = "KA_CFG_002"


class MissingSourceListError(ConfigurationError):
    """Neither a content-source CSV location nor a sheet id is configured."""

    error_code = "KA_CFG_003"
