"""
Shared fixtures: throwaway PKI material and a stub transport
"""

import io
import ipaddress
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    NoEncryption,
    PrivateFormat,
    pkcs12,
)
from cryptography.x509.oid import NameOID
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from swish_client.config import ClientConfig


PASSPHRASE = "swish"
SANDBOX_URL = "https://mss.swicpc.bankgirot.se/swish-cpcapi/api/v1"
PRODUCTION_URL = "https://swicpc.bankgirot.se/swish-cpcapi/api/v1"
LOOPBACK = "127.0.0.1"


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _build_certificate(common_name, issuer, public_key, signing_key, is_ca, ip=None):
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(common_name))
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
    )
    if ip is not None:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.IPAddress(ipaddress.ip_address(ip))]),
            critical=False,
        )
    return builder.sign(signing_key, hashes.SHA256())


class Pki:
    """CA, client certificate and the PKCS#12 archive built from them"""

    def __init__(self) -> None:
        self.ca_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        ca_name = _name("Test Swish Root CA")
        self.ca_cert = _build_certificate(
            "Test Swish Root CA", ca_name, self.ca_key.public_key(), self.ca_key, True
        )

        self.client_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        self.client_cert = _build_certificate(
            "1231181189", ca_name, self.client_key.public_key(), self.ca_key, False
        )

        self.other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

        # Server certificates for loopback handshakes: one issued by the
        # Swish test root, one by an unrelated CA
        self.server_key = ec.generate_private_key(ec.SECP256R1())
        self.server_cert = _build_certificate(
            LOOPBACK, ca_name, self.server_key.public_key(), self.ca_key, False, ip=LOOPBACK
        )
        self.rogue_ca_key = ec.generate_private_key(ec.SECP256R1())
        rogue_name = _name("Unrelated Public CA")
        self.rogue_ca_cert = _build_certificate(
            "Unrelated Public CA", rogue_name, self.rogue_ca_key.public_key(),
            self.rogue_ca_key, True,
        )
        self.rogue_server_cert = _build_certificate(
            LOOPBACK, rogue_name, self.server_key.public_key(), self.rogue_ca_key,
            False, ip=LOOPBACK,
        )

        self.p12 = pkcs12.serialize_key_and_certificates(
            b"swish-client",
            self.client_key,
            self.client_cert,
            [self.ca_cert],
            BestAvailableEncryption(PASSPHRASE.encode("utf-8")),
        )
        self.p12_without_key = pkcs12.serialize_key_and_certificates(
            b"swish-client",
            None,
            self.client_cert,
            None,
            BestAvailableEncryption(PASSPHRASE.encode("utf-8")),
        )
        self.root_pem = self.ca_cert.public_bytes(Encoding.PEM)
        self.rogue_root_pem = self.rogue_ca_cert.public_bytes(Encoding.PEM)

    def server_chain_pem(self, rogue: bool = False) -> bytes:
        """Server certificate followed by its unencrypted key"""
        cert = self.rogue_server_cert if rogue else self.server_cert
        return cert.public_bytes(Encoding.PEM) + self.server_key.private_bytes(
            Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
        )


@pytest.fixture(scope="session")
def pki() -> Pki:
    return Pki()


@pytest.fixture
def cert_files(tmp_path, pki):
    """Write the archive and root bundle to disk; returns (p12_path, root_path)"""
    p12_path = tmp_path / "client.p12"
    root_path = tmp_path / "root.pem"
    p12_path.write_bytes(pki.p12)
    root_path.write_bytes(pki.root_pem)
    return p12_path, root_path


class StubBody(io.BytesIO):
    """Response body that records close/release instead of discarding its state"""

    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.released = False
        self.close_called = False

    def close(self) -> None:
        self.close_called = True

    def release_conn(self) -> None:
        self.released = True


def make_response(
    request: requests.PreparedRequest,
    status: int,
    body: bytes = b"",
    headers: Optional[dict] = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.headers = CaseInsensitiveDict(headers or {})
    response.raw = StubBody(body)
    response.url = request.url
    response.request = request
    response.encoding = "utf-8"
    return response


class StubAdapter(HTTPAdapter):
    """HTTPAdapter that answers from a responder instead of the network"""

    def __init__(self) -> None:
        super().__init__(max_retries=0)
        self.responder: Callable[[requests.PreparedRequest], requests.Response] = (
            lambda request: make_response(request, 200)
        )
        self.requests: List[requests.PreparedRequest] = []
        self.responses: List[requests.Response] = []

    def send(self, request, **kwargs):
        self.requests.append(request)
        response = self.responder(request)
        self.responses.append(response)
        return response


@pytest.fixture
def stub_adapter() -> StubAdapter:
    return StubAdapter()


@pytest.fixture
def session(stub_adapter) -> requests.Session:
    session = requests.Session()
    session.mount("https://", stub_adapter)
    yield session
    session.close()


@pytest.fixture
def config(pki) -> ClientConfig:
    return ClientConfig(
        environment="test",
        p12=pki.p12,
        passphrase=PASSPHRASE,
        root=pki.root_pem,
    )
