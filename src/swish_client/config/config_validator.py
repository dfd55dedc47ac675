"""
Configuration Validator
Validates Swish client configuration with clear error messages
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class ValidationErrorDetail:
    """Validation error detail"""
    field: str
    message: str
    value: Optional[Any] = None


@dataclass
class ValidationResult:
    """Validation result"""
    valid: bool
    errors: List[ValidationErrorDetail] = field(default_factory=list)


class ConfigValidator:
    """
    ConfigValidator class
    Validates a configuration dictionary before it becomes a ClientConfig
    """

    P12_EXTENSIONS = (".p12", ".pfx")
    ROOT_EXTENSIONS = (".pem", ".crt", ".cer")

    def __init__(self) -> None:
        self._errors: List[ValidationErrorDetail] = []

    def validate(self, config: Dict[str, Any]) -> ValidationResult:
        """
        Validate the entire configuration dictionary

        Args:
            config: Configuration dictionary to validate

        Returns:
            ValidationResult with any errors
        """
        self._errors = []

        self._validate_required(config)
        self._validate_formats(config)
        self._validate_ranges(config)
        self._validate_flags(config)
        self._validate_credential_sources(config)

        return ValidationResult(
            valid=len(self._errors) == 0,
            errors=self._errors.copy()
        )

    def validate_or_raise(self, config: Dict[str, Any]) -> None:
        """
        Validate and raise if invalid

        Raises:
            ValidationError: If configuration is invalid
        """
        from swish_client.exceptions import ValidationError

        result = self.validate(config)
        if not result.valid:
            error_messages = "; ".join(
                f"{e.field}: {e.message}" for e in result.errors
            )
            raise ValidationError(
                f"Configuration validation failed: {error_messages}",
                field=result.errors[0].field,
            )

    def _validate_required(self, config: Dict[str, Any]) -> None:
        """Validate required fields are present and non-empty"""
        for field_name in ("p12", "root"):
            value = config.get(field_name)
            if value is None:
                self._errors.append(ValidationErrorDetail(
                    field=field_name,
                    message=f"{field_name} is required"
                ))
            elif isinstance(value, (str, bytes)) and len(value.strip()) == 0:
                self._errors.append(ValidationErrorDetail(
                    field=field_name,
                    message=f"{field_name} cannot be empty",
                ))

    def _validate_formats(self, config: Dict[str, Any]) -> None:
        """Validate field formats"""
        base_url = config.get("base_url")
        if base_url is not None and base_url != "":
            if not isinstance(base_url, str) or not base_url.startswith(("http://", "https://")):
                self._errors.append(ValidationErrorDetail(
                    field="base_url",
                    message="base_url must be a valid HTTP/HTTPS URL",
                    value=base_url
                ))

        environment = config.get("environment")
        if environment is not None and not isinstance(environment, str):
            self._errors.append(ValidationErrorDetail(
                field="environment",
                message="environment must be a string",
                value=environment
            ))

        passphrase = config.get("passphrase")
        if passphrase is not None and not isinstance(passphrase, str):
            self._errors.append(ValidationErrorDetail(
                field="passphrase",
                message="passphrase must be a string",
                value="[REDACTED]"
            ))

    def _validate_ranges(self, config: Dict[str, Any]) -> None:
        """Validate numeric ranges"""
        timeout = config.get("timeout")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
                self._errors.append(ValidationErrorDetail(
                    field="timeout",
                    message="timeout must be a positive integer (milliseconds)",
                    value=timeout
                ))
            elif timeout < 1000:
                self._errors.append(ValidationErrorDetail(
                    field="timeout",
                    message="timeout should be at least 1000ms for reliable operation",
                    value=timeout
                ))
            elif timeout > 300000:
                self._errors.append(ValidationErrorDetail(
                    field="timeout",
                    message="timeout should not exceed 300000ms (5 minutes)",
                    value=timeout
                ))

    def _validate_flags(self, config: Dict[str, Any]) -> None:
        """Validate boolean switches"""
        for flag in ("allow_unsupported_transport", "enable_audit_log"):
            value = config.get(flag)
            if value is not None and not isinstance(value, bool):
                self._errors.append(ValidationErrorDetail(
                    field=flag,
                    message=f"{flag} must be a boolean",
                    value=value
                ))

    def _validate_credential_sources(self, config: Dict[str, Any]) -> None:
        """Paths must at least look like the right kind of file"""
        checks = (
            ("p12", self.P12_EXTENSIONS),
            ("root", self.ROOT_EXTENSIONS),
        )
        for field_name, extensions in checks:
            value = config.get(field_name)
            if isinstance(value, Path):
                value = str(value)
            if not isinstance(value, str) or value.strip() == "":
                continue
            if not value.lower().endswith(extensions) and not Path(value).exists():
                self._errors.append(ValidationErrorDetail(
                    field=field_name,
                    message=(
                        f"{field_name} must be an existing file or a path ending in "
                        f"{', '.join(extensions)}"
                    ),
                    value=value
                ))
