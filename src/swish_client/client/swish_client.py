"""
Swish API client
Payment request and refund operations on top of HttpClient
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlsplit

import pydantic
import requests

from swish_client.client.cancellation import CancellationToken
from swish_client.client.http_client import HttpClient, HttpResponse
from swish_client.config.config_loader import ConfigLoader
from swish_client.config.swish_config import ClientConfig
from swish_client.crypto.credentials import CredentialLoader
from swish_client.crypto.secure_channel import SecureChannel
from swish_client.exceptions import MissingLocationError, ResponseDecodeError
from swish_client.models.payment import PaymentRecord


logger = logging.getLogger(__name__)

PAYMENT_REQUESTS_PATH = "/paymentrequests"
REFUNDS_PATH = "/refunds"


class SwishClient:
    """
    Client for the Swish Commerce API

    The PKCS#12 archive and root bundle are loaded once, at construction;
    a failure there raises before any client exists. Calls share no mutable
    state, so one client can be used from several threads.

    Example:
        >>> config = ClientConfig(p12='./certs/client.p12', passphrase='swish',
        ...                       root='./certs/root.pem')
        >>> with SwishClient(config) as client:
        ...     created = client.create_payment(PaymentRecord(
        ...         payee_alias='1231181189', amount='100.00', currency='SEK',
        ...         callback_url='https://example.com/swish/callback'))
        ...     print(client.get_payment(created.id).status)
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[requests.Session] = None,
        credential_loader: Optional[CredentialLoader] = None,
    ) -> None:
        """
        Create a Swish client

        Args:
            config: Client configuration
            session: Optional caller-owned requests session
            credential_loader: Optional loader override

        Raises:
            CredentialError: If the credentials cannot be loaded
            UnsupportedTransportError: If the session cannot carry mutual TLS
        """
        self.config = config
        self._channel = SecureChannel.from_config(config, loader=credential_loader)
        self._http = HttpClient(config, self._channel, session=session)
        logger.info(
            f"Swish client ready for {self.base_url} "
            f"({'production' if config.is_production else 'sandbox'})"
        )

    @classmethod
    def load(
        cls,
        file: Optional[Union[str, Path]] = None,
        env: bool = True,
        session: Optional[requests.Session] = None,
        **overrides: Any,
    ) -> "SwishClient":
        """
        Create a client from a config file, SWISH_* variables and overrides

        Example:
            >>> client = SwishClient.load("./swish.json", passphrase=secret)

        Raises:
            ConfigError: If the file or an environment value is unusable
            ValidationError: If the combined settings are invalid
            CredentialError: If the credentials cannot be loaded
        """
        config = ConfigLoader().load(file=file, env=env, **overrides)
        return cls(config, session=session)

    @property
    def base_url(self) -> str:
        return self._http.base_url

    @property
    def channel(self) -> SecureChannel:
        return self._channel

    @property
    def http(self) -> HttpClient:
        return self._http

    # ============ Payment requests ============

    def create_payment(
        self,
        record: PaymentRecord,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PaymentRecord:
        """
        Create a payment request

        Args:
            record: Payment request fields; ``id`` is ignored
            cancel_token: Optional cancellation token

        Returns:
            A copy of ``record`` with ``id`` set from the Location header

        Raises:
            MissingLocationError: If Swish accepted the request without a Location
        """
        return self._create(PAYMENT_REQUESTS_PATH, record, cancel_token)

    def get_payment(
        self,
        payment_id: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PaymentRecord:
        """Fetch a payment request by identifier"""
        return self._fetch(PAYMENT_REQUESTS_PATH, payment_id, cancel_token)

    # ============ Refunds ============

    def create_refund(
        self,
        record: PaymentRecord,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PaymentRecord:
        """
        Create a refund

        Args:
            record: Refund fields, including original_payment_reference
            cancel_token: Optional cancellation token

        Returns:
            A copy of ``record`` with ``id`` set from the Location header
        """
        return self._create(REFUNDS_PATH, record, cancel_token)

    def get_refund(
        self,
        refund_id: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PaymentRecord:
        """Fetch a refund by identifier"""
        return self._fetch(REFUNDS_PATH, refund_id, cancel_token)

    # ============ Private Helper Methods ============

    def _create(
        self,
        collection: str,
        record: PaymentRecord,
        cancel_token: Optional[CancellationToken],
    ) -> PaymentRecord:
        response = self._http.post(collection, record.to_payload(), cancel_token=cancel_token)
        identifier = self._identifier_from_location(collection, response)
        logger.info(f"Created {collection.lstrip('/')} resource {identifier}")
        return record.model_copy(update={"id": identifier})

    def _fetch(
        self,
        collection: str,
        identifier: str,
        cancel_token: Optional[CancellationToken],
    ) -> PaymentRecord:
        response = self._http.get(f"{collection}/{identifier}", cancel_token=cancel_token)
        try:
            return PaymentRecord.model_validate(response.data)
        except pydantic.ValidationError as e:
            raise ResponseDecodeError(
                f"Unexpected {collection.lstrip('/')} payload from Swish API: {e}",
                cause=e,
            ) from e

    def _identifier_from_location(
        self, collection: str, response: HttpResponse
    ) -> str:
        """Strip the collection URL from the Location header"""
        location = next(
            (value for key, value in response.headers.items() if key.lower() == "location"),
            "",
        )
        if not location:
            raise MissingLocationError()

        prefix = f"{self.base_url}{collection}/"
        if location.startswith(prefix):
            return location[len(prefix):]

        # Location outside the expected prefix, e.g. a relative path
        return urlsplit(location).path.rstrip("/").rsplit("/", 1)[-1]

    def close(self) -> None:
        """Release the session if the client created it"""
        self._http.close()

    def __enter__(self) -> "SwishClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
