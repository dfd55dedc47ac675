"""
Secure channel for mutual TLS
Builds the TLS context from loaded credentials and installs it on a
requests session
"""

import logging
import os
import secrets
import ssl
import tempfile
from dataclasses import dataclass
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    PrivateFormat,
    load_pem_private_key,
)

from swish_client.config.swish_config import ClientConfig
from swish_client.crypto.credentials import (
    ClientCredentials,
    CredentialLoader,
    TrustedRoots,
)
from swish_client.exceptions import (
    CredentialError,
    CredentialErrorReason,
    UnsupportedTransportError,
)


logger = logging.getLogger(__name__)


class SessionDefaults:
    """Pool settings for sessions created by the client"""
    POOL_CONNECTIONS = 10
    POOL_MAXSIZE = 10


class PinnedSSLContext(ssl.SSLContext):
    """
    SSL context whose trust store is fixed once sealed

    requests hands urllib3 a CA bundle path for every verified connection
    (its default bundle, or REQUESTS_CA_BUNDLE), and urllib3 loads it into
    whatever context the pool uses. After ``seal()`` those loads are ignored,
    so the context keeps trusting only the roots it was built with.
    """

    _sealed = False

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def load_verify_locations(self, cafile=None, capath=None, cadata=None):
        if self._sealed:
            logger.debug("Ignoring CA locations offered to a sealed Swish TLS context")
            return
        super().load_verify_locations(cafile, capath, cadata)

    def load_default_certs(self, purpose=ssl.Purpose.SERVER_AUTH):
        if self._sealed:
            return
        super().load_default_certs(purpose)

    def set_default_verify_paths(self):
        if self._sealed:
            return
        super().set_default_verify_paths()


@dataclass(frozen=True)
class SecureChannel:
    """
    Mutual TLS material owned by one client

    Holds exactly one client certificate/key pair and one trusted-root set.
    Instances compare by value, so channels loaded from a path and from the
    same bytes are equal.
    """
    credentials: ClientCredentials
    trusted_roots: TrustedRoots

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        loader: Optional[CredentialLoader] = None,
    ) -> "SecureChannel":
        """
        Load both credential sources of a configuration

        Raises:
            CredentialError: If either source is unreadable or malformed
        """
        loader = loader or CredentialLoader()
        credentials = loader.load_client_credentials(config.p12, config.passphrase)
        trusted_roots = loader.load_trusted_roots(config.root)
        return cls(credentials=credentials, trusted_roots=trusted_roots)

    def create_ssl_context(self) -> PinnedSSLContext:
        """
        Create an SSL context that trusts only the channel's roots and
        presents the client certificate

        The returned context is sealed: later attempts to add CA locations
        are ignored.

        Raises:
            CredentialError: If OpenSSL rejects the roots or the key pair
        """
        # PROTOCOL_TLS_CLIENT implies CERT_REQUIRED and hostname checking
        context = PinnedSSLContext(ssl.PROTOCOL_TLS_CLIENT)
        try:
            context.load_verify_locations(cadata=self.trusted_roots.pem.decode("ascii"))
        except (ssl.SSLError, ValueError) as e:
            raise CredentialError(
                f"Failed to load trusted roots: {e}",
                reason=CredentialErrorReason.NO_TRUSTED_ROOTS,
                cause=e,
            ) from e

        self._load_client_certificate(context)
        context.seal()
        return context

    def _load_client_certificate(self, context: ssl.SSLContext) -> None:
        """
        Load the key pair into the context

        The ssl module only reads key material from files, so the key is
        written re-encrypted under a one-time password to a private temp
        file that is removed immediately.
        """
        password = secrets.token_urlsafe(32)
        private_key = load_pem_private_key(self.credentials.private_key_pem, password=None)
        encrypted_key = private_key.private_bytes(
            encoding=Encoding.PEM,
            format=PrivateFormat.PKCS8,
            encryption_algorithm=BestAvailableEncryption(password.encode("utf-8")),
        )

        fd, path = tempfile.mkstemp(prefix="swish-", suffix=".pem")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(self.credentials.certificate_pem)
                f.write(b"".join(self.credentials.chain_pem))
                f.write(encrypted_key)
            context.load_cert_chain(certfile=path, password=password)
        except ssl.SSLError as e:
            raise CredentialError(
                f"TLS library rejected the client key pair: {e}",
                reason=CredentialErrorReason.KEY_PAIR_INVALID,
                cause=e,
            ) from e
        finally:
            os.unlink(path)


def create_default_session() -> requests.Session:
    """Create a session with its own connection pool and no retries"""
    session = requests.Session()

    adapter = HTTPAdapter(
        pool_connections=SessionDefaults.POOL_CONNECTIONS,
        pool_maxsize=SessionDefaults.POOL_MAXSIZE,
        max_retries=0,  # Callers own retry policy
    )

    session.mount("http://", adapter)
    session.mount("https://", adapter)

    return session


def install_secure_channel(
    session: requests.Session,
    channel: SecureChannel,
    url: str,
    allow_unsupported: bool = False,
) -> ssl.SSLContext:
    """
    Install the channel's TLS context on the adapter serving ``url``

    The adapter's pool manager is rebuilt with its existing pool settings
    plus the sealed SSL context; nothing else on the session is touched.
    CA bundles that requests passes down per connection (``verify=True`` or
    REQUESTS_CA_BUNDLE) are ignored by the sealed context.

    Args:
        session: Session whose transport should carry mutual TLS
        channel: Loaded credentials
        url: Base URL the client will call
        allow_unsupported: Log a warning instead of raising when the adapter
            cannot take a TLS context

    Returns:
        The SSL context built for the channel

    Raises:
        UnsupportedTransportError: If the adapter is not an HTTPAdapter and
            allow_unsupported is False
    """
    context = channel.create_ssl_context()

    try:
        adapter = session.get_adapter(url)
    except requests.exceptions.InvalidSchema:
        adapter = None

    if not isinstance(adapter, HTTPAdapter):
        adapter_type = type(adapter).__name__
        if allow_unsupported:
            logger.warning(
                f"Transport adapter {adapter_type} cannot carry a TLS context; "
                "requests will be sent without the client certificate"
            )
            return context
        raise UnsupportedTransportError(adapter_type)

    adapter.poolmanager.clear()
    adapter.init_poolmanager(
        adapter._pool_connections,
        adapter._pool_maxsize,
        block=adapter._pool_block,
        ssl_context=context,
    )

    logger.debug(f"Mutual TLS installed on {type(adapter).__name__} for {url}")
    return context
