"""Cryptography module initialization

This module turns Swish certificate material into a mutual TLS channel:
- CredentialLoader: PKCS#12 archive and root bundle decoding
- SecureChannel: TLS context construction and installation
"""

from swish_client.crypto.credentials import (
    ClientCredentials,
    CredentialLoader,
    TrustedRoots,
    split_pem_blocks,
)
from swish_client.crypto.secure_channel import (
    PinnedSSLContext,
    SecureChannel,
    SessionDefaults,
    create_default_session,
    install_secure_channel,
)

__all__ = [
    # Credential loading
    "ClientCredentials",
    "CredentialLoader",
    "TrustedRoots",
    "split_pem_blocks",
    # Secure channel
    "PinnedSSLContext",
    "SecureChannel",
    "SessionDefaults",
    "create_default_session",
    "install_secure_channel",
]
