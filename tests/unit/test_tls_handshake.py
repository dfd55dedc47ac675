"""
Mutual TLS Handshake Tests
Runs the client against a loopback HTTPS server that requires a client
certificate
"""

import json
import socketserver
import ssl
import threading
from http.server import BaseHTTPRequestHandler

import pytest

from swish_client.client import SwishClient
from swish_client.config import ClientConfig
from swish_client.exceptions import TransportError
from swish_client.models import PaymentRecord

from conftest import LOOPBACK, PASSPHRASE


class PaymentRequestHandler(BaseHTTPRequestHandler):
    """Accepts any payment request and records who sent it"""

    def do_POST(self):
        length = int(self.headers.get("Content-Length", "0"))
        self.server.bodies.append(json.loads(self.rfile.read(length)))
        self.server.peer_certs.append(self.connection.getpeercert())

        self.send_response(201)
        self.send_header("Location", f"{self.server.base_url}/paymentrequests/ID1")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        pass


class LoopbackSwishServer(socketserver.TCPServer):
    """HTTPS server on 127.0.0.1 requiring a client certificate from the test root"""

    allow_reuse_address = True

    def __init__(self, server_chain_path, client_roots: bytes) -> None:
        super().__init__((LOOPBACK, 0), PaymentRequestHandler)

        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(str(server_chain_path))
        context.verify_mode = ssl.CERT_REQUIRED
        context.load_verify_locations(cadata=client_roots.decode("ascii"))
        self.socket = context.wrap_socket(self.socket, server_side=True)

        self.base_url = f"https://{LOOPBACK}:{self.server_address[1]}"
        self.bodies = []
        self.peer_certs = []


@pytest.fixture(autouse=True)
def direct_connection(monkeypatch):
    """Keep proxy settings from the environment away from loopback calls"""
    for variable in ("HTTPS_PROXY", "https_proxy", "ALL_PROXY", "all_proxy"):
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.setenv("NO_PROXY", LOOPBACK)


@pytest.fixture
def start_server(pki, tmp_path):
    servers = []

    def start(rogue: bool = False) -> LoopbackSwishServer:
        chain_path = tmp_path / f"server-{len(servers)}.pem"
        chain_path.write_bytes(pki.server_chain_pem(rogue=rogue))
        server = LoopbackSwishServer(chain_path, pki.root_pem)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


def client_for(pki, server: LoopbackSwishServer) -> SwishClient:
    return SwishClient(ClientConfig(
        p12=pki.p12,
        passphrase=PASSPHRASE,
        root=pki.root_pem,
        base_url=server.base_url,
        timeout=5000,
    ))


class TestMutualTlsHandshake:
    """Handshakes over a real socket"""

    def test_client_certificate_reaches_server(self, pki, start_server):
        server = start_server()

        with client_for(pki, server) as client:
            created = client.create_payment(PaymentRecord(amount="100.00", currency="SEK"))

        assert created.id == "ID1"
        assert server.bodies == [{"amount": "100", "currency": "SEK"}]
        subject = dict(field[0] for field in server.peer_certs[0]["subject"])
        assert subject["commonName"] == "1231181189"

    def test_trusted_roots_stay_fixed_across_connections(self, pki, start_server):
        server = start_server()

        with client_for(pki, server) as client:
            before = client.http.ssl_context.get_ca_certs()
            client.create_payment(PaymentRecord(amount="1"))
            client.create_payment(PaymentRecord(amount="2"))
            after = client.http.ssl_context.get_ca_certs()

        assert len(after) == 1
        assert after == before

    def test_server_from_another_ca_is_rejected(self, pki, start_server):
        server = start_server(rogue=True)

        with client_for(pki, server) as client:
            with pytest.raises(TransportError):
                client.create_payment(PaymentRecord(amount="100"))

        assert server.bodies == []

    def test_environment_ca_bundle_does_not_widen_trust(
        self, pki, start_server, tmp_path, monkeypatch
    ):
        """A CA bundle named by the environment is not added to the trusted roots"""
        bundle = tmp_path / "public-bundle.pem"
        bundle.write_bytes(pki.rogue_root_pem)
        monkeypatch.setenv("REQUESTS_CA_BUNDLE", str(bundle))
        server = start_server(rogue=True)

        with client_for(pki, server) as client:
            with pytest.raises(TransportError):
                client.create_payment(PaymentRecord(amount="100"))
            assert len(client.http.ssl_context.get_ca_certs()) == 1

        assert server.bodies == []
