"""
Swish client configuration types
Type-safe configuration objects for the Swish client
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator


class SwishEnvironment(str, Enum):
    """Swish environment types"""
    TEST = "test"
    PRODUCTION = "production"


# Base URLs for Swish environments
SWISH_BASE_URLS = {
    SwishEnvironment.TEST: "https://mss.swicpc.bankgirot.se/swish-cpcapi/api/v1",
    SwishEnvironment.PRODUCTION: "https://swicpc.bankgirot.se/swish-cpcapi/api/v1",
}


class ConfigDefaults:
    """Default configuration values"""
    ENVIRONMENT = SwishEnvironment.TEST
    PASSPHRASE = ""
    ALLOW_UNSUPPORTED_TRANSPORT = False
    ENABLE_AUDIT_LOG = False


# Environment variable mapping
ENV_VAR_MAPPING = {
    "SWISH_ENVIRONMENT": "environment",
    "SWISH_P12": "p12",
    "SWISH_PASSPHRASE": "passphrase",
    "SWISH_ROOT": "root",
    "SWISH_BASE_URL": "base_url",
    "SWISH_TIMEOUT": "timeout",
    "SWISH_ALLOW_UNSUPPORTED_TRANSPORT": "allow_unsupported_transport",
    "SWISH_ENABLE_AUDIT_LOG": "enable_audit_log",
}


CredentialSource = Union[bytes, str, Path]


def resolve_base_url(environment: Union[str, SwishEnvironment, None]) -> str:
    """
    Map an environment name to the Swish API base URL

    Only "production" selects the live host; every other value, including
    an empty string, selects the sandbox.
    """
    if isinstance(environment, SwishEnvironment):
        environment = environment.value
    if environment == SwishEnvironment.PRODUCTION.value:
        return SWISH_BASE_URLS[SwishEnvironment.PRODUCTION]
    return SWISH_BASE_URLS[SwishEnvironment.TEST]


class ClientConfig(BaseModel):
    """
    Swish client configuration

    Credential sources given as ``str`` or ``Path`` are file paths; ``bytes``
    are the already-loaded archive or bundle.
    """

    environment: str = Field(
        default=ConfigDefaults.ENVIRONMENT.value,
        description="'production' for the live API, anything else for the sandbox"
    )

    # Required - Certificate configuration
    p12: CredentialSource = Field(
        ...,
        description="PKCS#12 client certificate archive - file path or content"
    )
    passphrase: str = Field(
        default=ConfigDefaults.PASSPHRASE,
        description="Passphrase protecting the PKCS#12 archive"
    )
    root: CredentialSource = Field(
        ...,
        description="PEM root CA bundle - file path or content"
    )

    # Optional - Transport settings
    base_url: Optional[str] = Field(
        default=None,
        description="Override the environment's base URL"
    )
    timeout: Optional[int] = Field(
        default=None,
        description="Request timeout in milliseconds, none by default",
        ge=1000,
        le=300000
    )
    allow_unsupported_transport: bool = Field(
        default=ConfigDefaults.ALLOW_UNSUPPORTED_TRANSPORT,
        description="Warn instead of failing when mutual TLS cannot be installed"
    )
    enable_audit_log: bool = Field(
        default=ConfigDefaults.ENABLE_AUDIT_LOG,
        description="Emit an audit entry for every request"
    )

    model_config = {
        "frozen": True,
    }

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: Union[str, SwishEnvironment, None]) -> str:
        """Accept the enum as well as plain strings"""
        if v is None:
            return ""
        if isinstance(v, SwishEnvironment):
            return v.value
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate base_url is a valid URL"""
        if v is not None and v != "":
            if not v.startswith(("http://", "https://")):
                raise ValueError("base_url must be a valid HTTP/HTTPS URL")
            return v.rstrip("/")
        return None

    @field_validator("p12", "root")
    @classmethod
    def validate_source(cls, v: CredentialSource) -> CredentialSource:
        """Reject empty credential sources"""
        if isinstance(v, (bytes, str)) and len(v) == 0:
            raise ValueError("credential source cannot be empty")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == SwishEnvironment.PRODUCTION.value

    def get_resolved_base_url(self) -> str:
        """Get the resolved base URL"""
        return self.base_url or resolve_base_url(self.environment)

    @property
    def timeout_seconds(self) -> Optional[float]:
        if self.timeout is None:
            return None
        return self.timeout / 1000.0
