"""
Configuration Loader
Builds a ClientConfig from a JSON file, SWISH_* environment variables and
keyword overrides
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from swish_client.config.swish_config import ClientConfig, ENV_VAR_MAPPING
from swish_client.config.config_validator import ConfigValidator
from swish_client.exceptions import ConfigError


TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")


class ConfigLoader:
    """
    ConfigLoader class

    Sources are layered in increasing priority: file, then environment,
    then keyword overrides. A ``None`` value never overrides a lower layer.
    Relative credential paths in a file are resolved against that file's
    directory, so a config file and its certificates can move together.
    """

    CREDENTIAL_FIELDS = ("p12", "root")
    BOOLEAN_FIELDS = ("allow_unsupported_transport", "enable_audit_log")

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """
        Args:
            environ: Variables to read instead of ``os.environ``
        """
        self._environ = os.environ if environ is None else environ
        self._validator = ConfigValidator()

    def load(
        self,
        file: Optional[Union[str, Path]] = None,
        env: bool = True,
        **overrides: Any,
    ) -> ClientConfig:
        """
        Load and validate a client configuration

        Args:
            file: JSON configuration file (optional)
            env: Read SWISH_* environment variables
            overrides: ClientConfig fields that win over every other source

        Raises:
            ConfigError: If the file or an environment value is unusable
            ValidationError: If the combined settings are invalid
        """
        settings: Dict[str, Any] = {}

        layers = [
            self.from_file(file) if file is not None else {},
            self.from_environment() if env else {},
            overrides,
        ]
        for layer in layers:
            settings.update(
                (key, value) for key, value in layer.items() if value is not None
            )

        self._validator.validate_or_raise(settings)
        return ClientConfig(**settings)

    def from_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Read settings from a JSON object

        Unknown keys are rejected so that a misspelt field does not silently
        fall back to its default.

        Raises:
            ConfigError: If the file is missing, not a JSON object, or has
                unknown keys
        """
        file_path = Path(path).resolve()

        try:
            raw = file_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigError(
                f"Configuration file not found: {file_path}",
                code="CONFIG_FILE_NOT_FOUND"
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(
                f"Cannot read configuration file {file_path}: {e}",
                code="CONFIG_FILE_UNREADABLE"
            ) from e

        try:
            settings = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in configuration file {file_path}: {e}",
                code="CONFIG_PARSE_ERROR"
            ) from e

        if not isinstance(settings, dict):
            raise ConfigError(
                f"Configuration file must contain a JSON object: {file_path}",
                code="CONFIG_PARSE_ERROR"
            )

        unknown = sorted(set(settings) - set(ClientConfig.model_fields))
        if unknown:
            raise ConfigError(
                f"Unknown keys in {file_path}: {', '.join(unknown)}",
                code="CONFIG_UNKNOWN_KEY",
                details={"keys": unknown},
            )

        for key in self.CREDENTIAL_FIELDS:
            value = settings.get(key)
            if isinstance(value, str) and value:
                settings[key] = file_path.parent / value

        return settings

    def from_environment(self) -> Dict[str, Any]:
        """
        Read settings from SWISH_* variables; empty variables are skipped

        Raises:
            ConfigError: If a boolean or timeout variable cannot be parsed
        """
        settings: Dict[str, Any] = {}

        for variable, key in ENV_VAR_MAPPING.items():
            value = self._environ.get(variable)
            if not value:
                continue
            if key in self.BOOLEAN_FIELDS:
                settings[key] = self._parse_flag(variable, value)
            elif key == "timeout":
                settings[key] = self._parse_timeout(variable, value)
            elif key in self.CREDENTIAL_FIELDS:
                settings[key] = Path(value).expanduser()
            else:
                # Passphrases may legitimately carry surrounding spaces
                settings[key] = value

        return settings

    def _parse_flag(self, variable: str, value: str) -> bool:
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ConfigError(
            f"{variable} must be one of {', '.join(TRUE_VALUES + FALSE_VALUES)}",
            code="CONFIG_ENV_INVALID",
            details={"variable": variable},
        )

    def _parse_timeout(self, variable: str, value: str) -> int:
        try:
            return int(value.strip())
        except ValueError as e:
            raise ConfigError(
                f"{variable} must be a whole number of milliseconds",
                code="CONFIG_ENV_INVALID",
                details={"variable": variable},
            ) from e
