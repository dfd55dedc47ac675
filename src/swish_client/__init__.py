"""
Swish Commerce API client for Python

Main entry point for the package
"""

from swish_client.client import (
    SwishClient,
    CancellationToken,
    HttpClient,
    HttpMethod,
    HttpResponse,
    HttpAuditEntry,
)
from swish_client.exceptions import (
    SwishError,
    SwishErrorCategory,
    ValidationError,
    ConfigError,
    CredentialError,
    CredentialErrorReason,
    UnsupportedTransportError,
    TransportError,
    CancellationError,
    ApiError,
    ApiStatusError,
    MissingLocationError,
    ResponseDecodeError,
)

# Configuration
from swish_client.config import (
    ClientConfig,
    SwishEnvironment,
    ConfigLoader,
    ConfigValidator,
    SWISH_BASE_URLS,
    ENV_VAR_MAPPING,
    ConfigDefaults,
    resolve_base_url,
)

# Credentials
from swish_client.crypto import (
    ClientCredentials,
    CredentialLoader,
    TrustedRoots,
    SecureChannel,
    install_secure_channel,
)

# Models
from swish_client.models import (
    PaymentRecord,
    ApiErrorDetail,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "SwishClient",
    "CancellationToken",
    # HTTP Client
    "HttpClient",
    "HttpMethod",
    "HttpResponse",
    "HttpAuditEntry",
    # Exceptions
    "SwishError",
    "SwishErrorCategory",
    "ValidationError",
    "ConfigError",
    "CredentialError",
    "CredentialErrorReason",
    "UnsupportedTransportError",
    "TransportError",
    "CancellationError",
    "ApiError",
    "ApiStatusError",
    "MissingLocationError",
    "ResponseDecodeError",
    # Configuration
    "ClientConfig",
    "SwishEnvironment",
    "ConfigLoader",
    "ConfigValidator",
    "SWISH_BASE_URLS",
    "ENV_VAR_MAPPING",
    "ConfigDefaults",
    "resolve_base_url",
    # Credentials
    "ClientCredentials",
    "CredentialLoader",
    "TrustedRoots",
    "SecureChannel",
    "install_secure_channel",
    # Models
    "PaymentRecord",
    "ApiErrorDetail",
]
