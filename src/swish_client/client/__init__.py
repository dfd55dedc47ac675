"""
HTTP Client module for the Swish client
"""

from swish_client.client.cancellation import CancellationToken
from swish_client.client.swish_client import (
    SwishClient,
    PAYMENT_REQUESTS_PATH,
    REFUNDS_PATH,
)
from swish_client.client.http_client import (
    HttpClient,
    HttpMethod,
    HttpResponse,
    HttpAuditEntry,
    DRAIN_LIMIT,
)

__all__ = [
    "SwishClient",
    "PAYMENT_REQUESTS_PATH",
    "REFUNDS_PATH",
    "CancellationToken",
    "HttpClient",
    "HttpMethod",
    "HttpResponse",
    "HttpAuditEntry",
    "DRAIN_LIMIT",
]
