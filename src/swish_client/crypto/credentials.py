"""
Client credential loading
Turns a PKCS#12 archive and a root CA bundle into PEM material

The PKCS#12 archive is decrypted in memory, every certificate and key it
holds is re-encoded as PEM and the result is parsed back as a single
certificate/private-key pair. The root bundle is reduced to the certificate
blocks that actually parse.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from cryptography import x509
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
    pkcs12,
)

from swish_client.config.swish_config import CredentialSource
from swish_client.exceptions import CredentialError, CredentialErrorReason


logger = logging.getLogger(__name__)

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----\r?\n.*?-----END \1-----\r?\n?",
    re.DOTALL,
)

CERTIFICATE_LABEL = b"CERTIFICATE"
PRIVATE_KEY_LABELS = (b"PRIVATE KEY", b"RSA PRIVATE KEY", b"EC PRIVATE KEY")


@dataclass(frozen=True)
class ClientCredentials:
    """
    Client certificate and key decoded from a PKCS#12 archive

    Attributes:
        certificate_pem: Leaf certificate presented to the server
        private_key_pem: Unencrypted PKCS#8 key matching the leaf certificate
        chain_pem: Any further certificates from the archive, in order
    """
    certificate_pem: bytes
    private_key_pem: bytes
    chain_pem: Tuple[bytes, ...] = ()

    @property
    def pem_bundle(self) -> bytes:
        """All blocks concatenated: certificate, chain, key"""
        return self.certificate_pem + b"".join(self.chain_pem) + self.private_key_pem

    def __repr__(self) -> str:
        return f"ClientCredentials(chain={len(self.chain_pem)}, private_key=[REDACTED])"


@dataclass(frozen=True)
class TrustedRoots:
    """Root certificates used to verify the server"""
    pem: bytes
    count: int


def split_pem_blocks(data: bytes) -> List[Tuple[bytes, bytes]]:
    """Return (label, block) pairs for every PEM block in ``data``"""
    return [(match.group(1), match.group(0)) for match in _PEM_BLOCK.finditer(data)]


class CredentialLoader:
    """
    Loads the credential material a Swish client needs

    Both loaders accept either a filesystem path or the raw bytes; a path is
    read fully into memory and then runs through the same decode path as
    bytes, so the two input modes give identical results.

    Example:
        >>> loader = CredentialLoader()
        >>> credentials = loader.load_client_credentials('./certs/client.p12', 'swish')
        >>> roots = loader.load_trusted_roots('./certs/root.pem')
    """

    def read_source(self, source: CredentialSource, label: str) -> bytes:
        """
        Resolve a credential source to bytes

        Raises:
            CredentialError: If the file cannot be read or the source is empty
        """
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        elif isinstance(source, (str, Path)):
            path = Path(source)
            try:
                data = path.read_bytes()
            except OSError as e:
                raise CredentialError(
                    f"Failed to read {label} from {path}: {e}",
                    reason=CredentialErrorReason.SOURCE_UNREADABLE,
                    cause=e,
                ) from e
        else:
            raise CredentialError(
                f"Unsupported {label} source type: {type(source).__name__}",
                reason=CredentialErrorReason.SOURCE_UNREADABLE,
            )

        if not data:
            raise CredentialError(
                f"{label} is empty",
                reason=CredentialErrorReason.SOURCE_UNREADABLE,
            )

        return data

    def load_client_credentials(
        self,
        p12: CredentialSource,
        passphrase: str,
    ) -> ClientCredentials:
        """
        Decrypt a PKCS#12 archive into a PEM certificate/key pair

        Args:
            p12: Archive path or content
            passphrase: Archive passphrase

        Returns:
            The decoded client credentials

        Raises:
            CredentialError: source-unreadable, decrypt-failed or key-pair-invalid
        """
        data = self.read_source(p12, "PKCS#12 archive")
        pem_data = self._pkcs12_to_pem(data, passphrase)
        return self._parse_key_pair(pem_data)

    def load_trusted_roots(self, root: CredentialSource) -> TrustedRoots:
        """
        Parse a PEM bundle into the set of trusted roots

        Blocks that are not certificates or fail to parse are skipped.

        Raises:
            CredentialError: source-unreadable, or no-trusted-roots when no
                block in the bundle is a usable certificate
        """
        data = self.read_source(root, "root CA bundle")

        certificates: List[bytes] = []
        for label, block in split_pem_blocks(data):
            if label != CERTIFICATE_LABEL:
                logger.debug(f"Skipping {label.decode('ascii')} block in root bundle")
                continue
            try:
                certificate = x509.load_pem_x509_certificate(block)
            except ValueError as e:
                logger.debug(f"Skipping unparseable certificate in root bundle: {e}")
                continue
            certificates.append(certificate.public_bytes(Encoding.PEM))

        if not certificates:
            raise CredentialError(
                "Root CA bundle contains no usable certificates",
                reason=CredentialErrorReason.NO_TRUSTED_ROOTS,
            )

        logger.debug(f"Loaded {len(certificates)} trusted root certificate(s)")
        return TrustedRoots(pem=b"".join(certificates), count=len(certificates))

    # ============ Private Helper Methods ============

    def _pkcs12_to_pem(self, data: bytes, passphrase: str) -> bytes:
        """Decrypt the archive and re-encode its contents as PEM"""
        password = passphrase.encode("utf-8") if passphrase else None

        try:
            private_key, certificate, additional = pkcs12.load_key_and_certificates(
                data, password
            )
        except (ValueError, TypeError) as e:
            raise CredentialError(
                "Failed to decrypt PKCS#12 archive. Wrong passphrase or corrupted data.",
                reason=CredentialErrorReason.DECRYPT_FAILED,
                cause=e,
            ) from e

        blocks: List[bytes] = []
        if certificate is not None:
            blocks.append(certificate.public_bytes(Encoding.PEM))
        for extra in additional or []:
            blocks.append(extra.public_bytes(Encoding.PEM))
        if private_key is not None:
            blocks.append(private_key.private_bytes(
                encoding=Encoding.PEM,
                format=PrivateFormat.PKCS8,
                encryption_algorithm=NoEncryption(),
            ))

        return b"".join(blocks)

    def _parse_key_pair(self, pem_data: bytes) -> ClientCredentials:
        """Pick the leaf certificate and key out of the PEM data and match them"""
        certificate_blocks: List[bytes] = []
        key_block = None

        for label, block in split_pem_blocks(pem_data):
            if label == CERTIFICATE_LABEL:
                certificate_blocks.append(block)
            elif label in PRIVATE_KEY_LABELS and key_block is None:
                key_block = block

        if not certificate_blocks:
            raise CredentialError(
                "PKCS#12 archive contains no certificate",
                reason=CredentialErrorReason.KEY_PAIR_INVALID,
            )
        if key_block is None:
            raise CredentialError(
                "PKCS#12 archive contains no private key",
                reason=CredentialErrorReason.KEY_PAIR_INVALID,
            )

        try:
            leaf = x509.load_pem_x509_certificate(certificate_blocks[0])
            private_key = load_pem_private_key(key_block, password=None)
        except (ValueError, TypeError) as e:
            raise CredentialError(
                f"Invalid certificate or private key: {e}",
                reason=CredentialErrorReason.KEY_PAIR_INVALID,
                cause=e,
            ) from e

        if self._public_bytes(leaf.public_key()) != self._public_bytes(private_key.public_key()):
            raise CredentialError(
                "Private key does not match the client certificate",
                reason=CredentialErrorReason.KEY_PAIR_INVALID,
            )

        return ClientCredentials(
            certificate_pem=certificate_blocks[0],
            private_key_pem=key_block,
            chain_pem=tuple(certificate_blocks[1:]),
        )

    @staticmethod
    def _public_bytes(public_key) -> bytes:
        return public_key.public_bytes(
            encoding=Encoding.DER,
            format=PublicFormat.SubjectPublicKeyInfo,
        )
