"""
Configuration module
"""

from swish_client.config.swish_config import (
    ClientConfig,
    SwishEnvironment,
    SWISH_BASE_URLS,
    ENV_VAR_MAPPING,
    ConfigDefaults,
    CredentialSource,
    resolve_base_url,
)
from swish_client.config.config_loader import ConfigLoader
from swish_client.config.config_validator import (
    ConfigValidator,
    ValidationResult,
    ValidationErrorDetail,
)

__all__ = [
    "ClientConfig",
    "SwishEnvironment",
    "SWISH_BASE_URLS",
    "ENV_VAR_MAPPING",
    "ConfigDefaults",
    "CredentialSource",
    "resolve_base_url",
    "ConfigLoader",
    "ConfigValidator",
    "ValidationResult",
    "ValidationErrorDetail",
]
