"""
HTTP transport layer for the Swish API
Every API call goes through HttpClient.request: serialize, send over the
mutual TLS session, interpret the status and map failures to the error
taxonomy
"""

import json
import time
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Optional,
    TypeVar,
)

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from swish_client.client.cancellation import CancellationToken
from swish_client.config.swish_config import ClientConfig
from swish_client.crypto.secure_channel import (
    SecureChannel,
    create_default_session,
    install_secure_channel,
)
from swish_client.exceptions import (
    ApiError,
    ApiStatusError,
    CancellationError,
    ResponseDecodeError,
    SwishError,
    TransportError,
)
from swish_client.models.error import first_error


# Type variable for generic response
T = TypeVar("T")

# Logger for this module
logger = logging.getLogger(__name__)

# Bytes read from an unread body before closing so the connection can be reused
DRAIN_LIMIT = 512

SUCCESS_STATUSES = (200, 201)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class HttpMethod(str, Enum):
    """HTTP method types supported"""
    GET = "GET"
    POST = "POST"


@dataclass
class HttpResponse(Generic[T]):
    """HTTP response wrapper"""
    data: T
    status: int
    headers: Dict[str, str]
    duration: int  # milliseconds
    request_id: str


@dataclass
class HttpAuditEntry:
    """Audit log entry for HTTP requests"""
    timestamp: str
    request_id: str
    method: str
    url: str
    body: Optional[Any] = None
    status: Optional[int] = None
    duration: int = 0
    success: bool = False
    error: Optional[str] = None


# Sensitive fields that should be redacted in logs
SENSITIVE_FIELDS = [
    "payeralias",
    "passphrase",
    "privatekey",
    "private_key",
]


class HttpClient:
    """
    HTTP Client for the Swish API

    Features:
    - Mutual TLS installed on the session at construction
    - JSON request/response handling
    - Uniform error mapping (transport, cancellation, API errors)
    - Response bodies drained and closed on every path
    - Optional audit logging with sensitive fields redacted

    No retries are performed; callers own retry policy.

    Example:
        >>> channel = SecureChannel.from_config(config)
        >>> client = HttpClient(config, channel)
        >>> response = client.get("/paymentrequests/AB23D7406ECE4542A80152D909EF9F6B")
        >>> print(response.data)
    """

    def __init__(
        self,
        config: ClientConfig,
        channel: SecureChannel,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Create a new HTTP client instance

        Args:
            config: Resolved client configuration
            channel: Loaded mutual TLS material
            session: Caller-owned session; a private one is created if omitted

        Raises:
            CredentialError: If the TLS context cannot be built
            UnsupportedTransportError: If the session cannot carry mutual TLS
        """
        self.config = config
        self.channel = channel

        self._owns_session = session is None
        self._session = session if session is not None else create_default_session()

        # Audit logging callback
        self._audit_log_callback: Optional[Callable[[HttpAuditEntry], None]] = None

        try:
            self._ssl_context = install_secure_channel(
                self._session,
                channel,
                self.base_url,
                allow_unsupported=config.allow_unsupported_transport,
            )
        except SwishError:
            if self._owns_session:
                self._session.close()
            raise

    def _generate_request_id(self) -> str:
        """Generate unique request ID for log correlation"""
        timestamp = hex(int(time.time() * 1000))[2:]
        unique_id = uuid.uuid4().hex[:8]
        return f"swish-{timestamp}-{unique_id}"

    def _redact_sensitive_data(self, obj: Any) -> Any:
        """Redact sensitive data from object for logging"""
        if isinstance(obj, list):
            return [self._redact_sensitive_data(item) for item in obj]

        if isinstance(obj, dict):
            redacted = {}
            for key, value in obj.items():
                lower_key = key.lower()
                is_sensitive = any(
                    field in lower_key for field in SENSITIVE_FIELDS
                )

                if is_sensitive:
                    redacted[key] = "[REDACTED]"
                elif isinstance(value, (dict, list)):
                    redacted[key] = self._redact_sensitive_data(value)
                else:
                    redacted[key] = value
            return redacted

        return obj

    def _log_audit(
        self,
        method: HttpMethod,
        url: str,
        body: Optional[Any],
        request_id: str,
        start_time: float,
        status: Optional[int] = None,
        error: Optional[Exception] = None,
    ) -> None:
        """Create and dispatch an audit entry"""
        if not (self.config.enable_audit_log and self._audit_log_callback):
            return

        entry = HttpAuditEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
            method=method.value,
            url=url,
            body=self._redact_sensitive_data(body),
            status=status,
            duration=int((time.time() - start_time) * 1000),
            success=error is None,
            error=str(error) if error else None,
        )
        self._audit_log_callback(entry)

    def set_audit_log_callback(
        self, callback: Callable[[HttpAuditEntry], None]
    ) -> None:
        """Set audit log callback"""
        self._audit_log_callback = callback

    def request(
        self,
        method: HttpMethod,
        path: str,
        data: Optional[Any] = None,
        cancel_token: Optional[CancellationToken] = None,
        read_body: bool = False,
    ) -> HttpResponse[Any]:
        """
        Perform one request against the Swish API

        Args:
            method: HTTP method
            path: Path relative to the base URL
            data: JSON-serializable body; no body is sent when None
            cancel_token: Optional cancellation token
            read_body: Decode the JSON body of a successful response

        Returns:
            HTTP response wrapper; ``data`` is None unless read_body is set

        Raises:
            CancellationError: If the token was cancelled before sending or
                while a failed send was in flight
            TransportError: If the HTTP stack failed
            ApiError: Non-success status with a Swish error body
            ApiStatusError: Non-success status without a decodable body
            ResponseDecodeError: read_body set and the body is not JSON
        """
        url = f"{self.base_url}{path}"
        body = json.dumps(data).encode("utf-8") if data is not None else None
        request_id = self._generate_request_id()

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        start_time = time.time()
        logger.debug(f"[{request_id}] {method.value} {url}")

        try:
            response = self._session.request(
                method.value,
                url,
                data=body,
                headers=DEFAULT_HEADERS,
                timeout=self.config.timeout_seconds,
                stream=True,
            )
        except requests.exceptions.RequestException as e:
            # A cancelled call reports the cancellation, not the side effect
            if cancel_token is not None and cancel_token.cancelled:
                self._log_audit(method, url, data, request_id, start_time, error=e)
                raise CancellationError() from e

            logger.warning(f"[{request_id}] {method.value} {url} failed: {e}")
            self._log_audit(method, url, data, request_id, start_time, error=e)
            raise TransportError.from_exception(e) from e

        try:
            if response.status_code not in SUCCESS_STATUSES:
                error = self._error_from_response(response)
                logger.warning(
                    f"[{request_id}] {method.value} {url} returned "
                    f"{response.status_code}: {error}"
                )
                self._log_audit(
                    method, url, data, request_id, start_time,
                    status=response.status_code, error=error,
                )
                raise error

            payload = self._read_json(response, cancel_token) if read_body else None

            duration = int((time.time() - start_time) * 1000)
            logger.debug(
                f"[{request_id}] {method.value} {url} -> {response.status_code} "
                f"in {duration}ms"
            )
            self._log_audit(
                method, url, data, request_id, start_time,
                status=response.status_code,
            )

            return HttpResponse(
                data=payload,
                status=response.status_code,
                headers=dict(response.headers),
                duration=duration,
                request_id=request_id,
            )
        finally:
            self._drain_and_close(response)

    def _error_from_response(self, response: requests.Response) -> SwishError:
        """
        Map a non-success response to an error

        Only the first error of a Swish error array is reported.
        """
        try:
            content = response.content
        except (requests.exceptions.RequestException, Urllib3HTTPError) as e:
            logger.debug(f"Failed to read error body: {e}")
            content = b""

        first = first_error(content) if content else None
        if first is not None:
            return ApiError(
                first.error_message or "",
                error_code=first.error_code,
                additional_information=first.additional_information,
                status_code=response.status_code,
            )

        return ApiStatusError(response.status_code)

    def _read_json(
        self,
        response: requests.Response,
        cancel_token: Optional[CancellationToken],
    ) -> Any:
        """Read and decode the full response body"""
        try:
            content = response.content
        except requests.exceptions.RequestException as e:
            if cancel_token is not None and cancel_token.cancelled:
                raise CancellationError() from e
            raise TransportError.from_exception(e) from e

        try:
            return json.loads(content)
        except ValueError as e:
            raise ResponseDecodeError(
                f"Invalid JSON in Swish API response: {e}", cause=e
            ) from e

    def _drain_and_close(self, response: requests.Response) -> None:
        """Read at most DRAIN_LIMIT bytes of what is left, then close"""
        try:
            if response.raw is not None:
                response.raw.read(DRAIN_LIMIT)
        except (OSError, ValueError, Urllib3HTTPError) as e:
            logger.debug(f"Failed to drain response body: {e}")
        finally:
            response.close()

    def get(
        self,
        path: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> HttpResponse[Any]:
        """
        Perform GET request and decode the JSON body

        Args:
            path: Request path (relative to base URL)
            cancel_token: Optional cancellation token

        Returns:
            HTTP response wrapper
        """
        return self.request(
            HttpMethod.GET, path, None, cancel_token=cancel_token, read_body=True
        )

    def post(
        self,
        path: str,
        data: Optional[Any] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> HttpResponse[Any]:
        """
        Perform POST request; the body of the response is not read

        Args:
            path: Request path (relative to base URL)
            data: Request body data
            cancel_token: Optional cancellation token

        Returns:
            HTTP response wrapper
        """
        return self.request(HttpMethod.POST, path, data, cancel_token=cancel_token)

    @property
    def base_url(self) -> str:
        """Get base URL"""
        return self.config.get_resolved_base_url()

    @property
    def ssl_context(self):
        """SSL context installed on the session"""
        return self._ssl_context

    @property
    def session(self) -> requests.Session:
        return self._session

    def close(self) -> None:
        """Close the HTTP session if this client created it"""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "HttpClient":
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit"""
        self.close()
