"""Exception classes for the Swish client"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class SwishErrorCategory(str, Enum):
    """Swish error category codes"""
    CREDENTIAL = "CRED"
    VALIDATION = "VAL"
    NETWORK = "NET"
    API = "API"
    CONFIG = "CONFIG"
    UNKNOWN = "UNKNOWN"


class SwishError(Exception):
    """
    Base exception for Swish client errors

    All errors raised by the client extend from this class.
    Provides consistent error handling and categorization.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.cause = cause
        self.details = details
        self.timestamp = datetime.now(timezone.utc)
        self.category = self._determine_category(code)

    def _determine_category(self, code: Optional[str]) -> SwishErrorCategory:
        """Determine error category from code"""
        if not code:
            return SwishErrorCategory.UNKNOWN

        for category in SwishErrorCategory:
            if category is not SwishErrorCategory.UNKNOWN and code.startswith(category.value):
                return category

        return SwishErrorCategory.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary"""
        return {
            "name": self.__class__.__name__,
            "message": str(self),
            "code": self.code,
            "status_code": self.status_code,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }

    def has_code(self, code: str) -> bool:
        """Check if error has a specific code"""
        return self.code == code

    def is_category(self, category: SwishErrorCategory) -> bool:
        """Check if error belongs to a category"""
        return self.category == category

    def get_description(self) -> str:
        """Get human-readable error description"""
        parts = [str(self)]

        if self.code:
            parts.insert(0, f"[{self.code}]")

        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")

        return " ".join(parts)


class ValidationError(SwishError):
    """Validation error"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="VAL01", details=details)
        self.field = field


class ConfigError(SwishError):
    """Configuration error"""

    def __init__(
        self,
        message: str,
        code: str = "CONFIG01",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class CredentialErrorReason(str, Enum):
    """Why client credentials could not be turned into a secure channel"""
    SOURCE_UNREADABLE = "source-unreadable"
    DECRYPT_FAILED = "decrypt-failed"
    KEY_PAIR_INVALID = "key-pair-invalid"
    NO_TRUSTED_ROOTS = "no-trusted-roots"


class CredentialError(SwishError):
    """
    Raised while loading the PKCS#12 archive or the root CA bundle

    Fatal to client construction: no client is returned when this is raised.
    """

    _CODES = {
        CredentialErrorReason.SOURCE_UNREADABLE: "CRED01",
        CredentialErrorReason.DECRYPT_FAILED: "CRED02",
        CredentialErrorReason.KEY_PAIR_INVALID: "CRED03",
        CredentialErrorReason.NO_TRUSTED_ROOTS: "CRED04",
    }

    def __init__(
        self,
        message: str,
        reason: CredentialErrorReason,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            code=self._CODES[reason],
            cause=cause,
            details={"reason": reason.value},
        )
        self.reason = reason


class UnsupportedTransportError(SwishError):
    """The session's transport adapter cannot carry a TLS context"""

    def __init__(self, adapter_type: str) -> None:
        super().__init__(
            f"Transport adapter {adapter_type} does not support a TLS context; "
            "mutual TLS cannot be applied",
            code="CRED10",
            details={"adapter": adapter_type},
        )
        self.adapter_type = adapter_type


class TransportError(SwishError):
    """
    Network error from the underlying HTTP stack
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, code="NET01", cause=cause)

    @classmethod
    def from_exception(cls, error: Exception) -> "TransportError":
        """Wrap a requests/urllib3 exception"""
        return cls(f"Transport error: {error}", cause=error)


class CancellationError(SwishError):
    """The caller cancelled the call"""

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message, code="NET07")


class ApiStatusError(SwishError):
    """Non-success status without a decodable error body"""

    def __init__(self, status_code: int) -> None:
        super().__init__(
            f"Bad status code from Swish API: {status_code}",
            code="API01",
            status_code=status_code,
        )


class ApiError(SwishError):
    """
    Structured error reported by the Swish API

    Only the first error of the response body is carried.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        additional_information: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            code="API02",
            status_code=status_code,
            details={
                "error_code": error_code,
                "additional_information": additional_information,
            },
        )
        self.error_code = error_code
        self.additional_information = additional_information


class MissingLocationError(SwishError):
    """A create call succeeded but the response had no Location header"""

    def __init__(self) -> None:
        super().__init__("No location header from Swish API", code="API03")


class ResponseDecodeError(SwishError):
    """A successful response body could not be decoded"""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message, code="API04", cause=cause)
