"""Cooperative cancellation for client calls"""

import threading

from swish_client.exceptions import CancellationError


class CancellationToken:
    """
    Cancellation signal shared between a caller and an in-flight call

    The client checks the token before sending a request and again when a
    send fails; a cancelled token turns the failure into CancellationError.
    Safe to cancel from another thread.

    Example:
        >>> token = CancellationToken()
        >>> threading.Timer(5.0, token.cancel).start()
        >>> client.get_payment(payment_id, cancel_token=token)
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise CancellationError if the token has been cancelled"""
        if self._event.is_set():
            raise CancellationError()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
