"""
Configuration Module Unit Tests
"""

import json
from pathlib import Path

import pytest

from swish_client.client import SwishClient
from swish_client.config import (
    ClientConfig,
    ConfigLoader,
    ConfigValidator,
    SWISH_BASE_URLS,
    SwishEnvironment,
    resolve_base_url,
)
from swish_client.exceptions import ConfigError, ValidationError

from conftest import PASSPHRASE, PRODUCTION_URL, SANDBOX_URL


class TestResolveBaseUrl:
    """Environment name to API host"""

    @pytest.mark.parametrize("environment", ["production", SwishEnvironment.PRODUCTION])
    def test_production(self, environment):
        assert resolve_base_url(environment) == PRODUCTION_URL

    @pytest.mark.parametrize("environment", ["test", "", "sandbox", "PRODUCTION", None])
    def test_anything_else_is_sandbox(self, environment):
        assert resolve_base_url(environment) == SANDBOX_URL

    def test_url_table(self):
        assert SWISH_BASE_URLS[SwishEnvironment.TEST] == SANDBOX_URL


class TestConfigValidator:
    """Dict-level checks before a ClientConfig is built"""

    BASE = {"p12": "/certs/merchant.p12", "root": "/certs/swish-root.pem"}

    def errors_for(self, **changes):
        settings = {**self.BASE, **changes}
        settings = {k: v for k, v in settings.items() if v is not ...}
        return {e.field: e for e in ConfigValidator().validate(settings).errors}

    def test_minimal_settings_pass(self):
        assert self.errors_for() == {}

    def test_raw_bytes_pass(self):
        assert self.errors_for(p12=b"\x30\x82", root=b"-----BEGIN CERTIFICATE-----") == {}

    @pytest.mark.parametrize(
        "changes,field",
        [
            ({"p12": ...}, "p12"),
            ({"root": "   "}, "root"),
            ({"p12": "/certs/merchant.txt"}, "p12"),
            ({"root": "/certs/swish-root.der"}, "root"),
            ({"base_url": "ftp://swish.example"}, "base_url"),
            ({"environment": 1}, "environment"),
            ({"timeout": 999}, "timeout"),
            ({"timeout": 300001}, "timeout"),
            ({"timeout": True}, "timeout"),
            ({"enable_audit_log": "yes"}, "enable_audit_log"),
        ],
    )
    def test_rejected(self, changes, field):
        assert field in self.errors_for(**changes)

    def test_existing_file_needs_no_extension(self, tmp_path):
        archive = tmp_path / "merchant-cert"
        archive.write_bytes(b"x")
        assert self.errors_for(p12=archive) == {}

    def test_passphrase_value_is_not_echoed(self):
        error = self.errors_for(passphrase=1234)["passphrase"]
        assert error.value == "[REDACTED]"

    def test_validate_or_raise_names_first_field(self):
        with pytest.raises(ValidationError) as exc_info:
            ConfigValidator().validate_or_raise({"p12": "/certs/merchant.p12"})
        assert exc_info.value.field == "root"
        assert "root is required" in str(exc_info.value)


class TestConfigLoaderEnvironment:
    """SWISH_* variables"""

    def test_values_are_typed(self):
        loader = ConfigLoader(environ={
            "SWISH_ENVIRONMENT": "production",
            "SWISH_P12": "/certs/merchant.p12",
            "SWISH_PASSPHRASE": " swish ",
            "SWISH_TIMEOUT": " 15000 ",
            "SWISH_ENABLE_AUDIT_LOG": "On",
            "SWISH_ALLOW_UNSUPPORTED_TRANSPORT": "0",
            "UNRELATED": "x",
        })

        assert loader.from_environment() == {
            "environment": "production",
            "p12": Path("/certs/merchant.p12"),
            "passphrase": " swish ",
            "timeout": 15000,
            "enable_audit_log": True,
            "allow_unsupported_transport": False,
        }

    def test_empty_variables_are_skipped(self):
        loader = ConfigLoader(environ={"SWISH_ROOT": "", "SWISH_TIMEOUT": ""})
        assert loader.from_environment() == {}

    @pytest.mark.parametrize(
        "variable,value",
        [("SWISH_ENABLE_AUDIT_LOG", "maybe"), ("SWISH_TIMEOUT", "30s")],
    )
    def test_unparseable_value(self, variable, value):
        loader = ConfigLoader(environ={variable: value})
        with pytest.raises(ConfigError) as exc_info:
            loader.from_environment()
        assert exc_info.value.code == "CONFIG_ENV_INVALID"
        assert exc_info.value.details == {"variable": variable}

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("SWISH_BASE_URL", "https://localhost:8443/api/v1")
        assert ConfigLoader().from_environment()["base_url"] == "https://localhost:8443/api/v1"


class TestConfigLoaderFile:
    """JSON configuration files"""

    @pytest.fixture
    def write(self, tmp_path):
        def write(settings, name="swish.json"):
            path = tmp_path / name
            path.write_text(
                settings if isinstance(settings, str) else json.dumps(settings),
                encoding="utf-8",
            )
            return path
        return write

    def test_credential_paths_follow_the_file(self, write, tmp_path):
        path = write({"p12": "certs/merchant.p12", "root": "/etc/swish/root.pem"})

        settings = ConfigLoader().from_file(path)

        assert settings["p12"] == tmp_path.resolve() / "certs" / "merchant.p12"
        assert settings["root"] == Path("/etc/swish/root.pem")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().from_file(tmp_path / "absent.json")
        assert exc_info.value.code == "CONFIG_FILE_NOT_FOUND"

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '"p12"'])
    def test_not_a_json_object(self, write, content):
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().from_file(write(content))
        assert exc_info.value.code == "CONFIG_PARSE_ERROR"

    def test_unknown_keys_are_rejected(self, write):
        path = write({"p12": "a.p12", "root": "r.pem", "pasphrase": "swish", "retries": 3})
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().from_file(path)
        assert exc_info.value.code == "CONFIG_UNKNOWN_KEY"
        assert exc_info.value.details == {"keys": ["pasphrase", "retries"]}


class TestConfigLoaderLayering:
    """file < environment < overrides"""

    def test_priority(self, tmp_path):
        path = tmp_path / "swish.json"
        path.write_text(json.dumps({
            "environment": "production",
            "p12": "merchant.p12",
            "root": "root.pem",
            "timeout": 60000,
        }))
        loader = ConfigLoader(environ={
            "SWISH_ENVIRONMENT": "test",
            "SWISH_PASSPHRASE": "from-env",
        })

        config = loader.load(file=path, passphrase="override", timeout=None)

        assert config.environment == "test"
        assert config.passphrase == "override"
        assert config.timeout == 60000
        assert config.p12 == tmp_path.resolve() / "merchant.p12"
        assert config.get_resolved_base_url() == SANDBOX_URL

    def test_environment_can_be_ignored(self):
        loader = ConfigLoader(environ={"SWISH_ENVIRONMENT": "production"})
        config = loader.load(env=False, p12=b"archive", root=b"roots")
        assert config.is_production is False

    def test_invalid_combination(self):
        loader = ConfigLoader(environ={})
        with pytest.raises(ValidationError):
            loader.load(p12="/certs/merchant.p12")

    def test_swish_client_load(self, pki, tmp_path, monkeypatch):
        (tmp_path / "merchant.p12").write_bytes(pki.p12)
        (tmp_path / "root.pem").write_bytes(pki.root_pem)
        path = tmp_path / "swish.json"
        path.write_text(json.dumps({"p12": "merchant.p12", "root": "root.pem"}))
        monkeypatch.setenv("SWISH_PASSPHRASE", PASSPHRASE)
        monkeypatch.setenv("SWISH_ENVIRONMENT", "production")

        with SwishClient.load(path) as client:
            assert client.base_url == PRODUCTION_URL
            assert client.config.passphrase == PASSPHRASE


class TestClientConfig:
    """ClientConfig model"""

    def make(self, **changes) -> ClientConfig:
        return ClientConfig(**{"p12": b"archive", "root": Path("/certs/root.pem"), **changes})

    def test_defaults(self):
        config = self.make()
        assert config.environment == "test"
        assert config.passphrase == ""
        assert config.timeout_seconds is None
        assert config.allow_unsupported_transport is False
        assert config.enable_audit_log is False

    def test_environment_enum_and_none(self):
        assert self.make(environment=SwishEnvironment.PRODUCTION).is_production is True
        assert self.make(environment=None).get_resolved_base_url() == SANDBOX_URL

    def test_base_url_trailing_slash(self):
        config = self.make(base_url="https://localhost:8443/api/v1/")
        assert config.get_resolved_base_url() == "https://localhost:8443/api/v1"

    def test_timeout_in_seconds(self):
        assert self.make(timeout=15000).timeout_seconds == 15.0

    @pytest.mark.parametrize(
        "changes",
        [{"base_url": "swish.example"}, {"p12": b""}, {"root": ""}, {"timeout": 10}],
    )
    def test_rejected(self, changes):
        with pytest.raises(ValueError):
            self.make(**changes)

    def test_frozen(self):
        config = self.make()
        with pytest.raises(ValueError):
            config.environment = "production"
