"""Checkout exceptions."""

from __future__ import annotations

from typing import Dict


class CheckoutError(Exception):
    """Base class for checkout failures."""


class ValidationFailed(CheckoutError):
    """One or more checkout fields are invalid; nothing was submitted.

    ``errors`` maps the camelCase field name to its message.
    """

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("Please correct the highlighted fields.")


class SubmissionInProgress(CheckoutError):
    """``submit`` was called while an earlier submission was still running."""


class OrderSubmissionFailed(CheckoutError):
    """The order commit was rejected or rolled back.

    ``message`` is the server's message, unchanged.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class GatewayUnavailable(CheckoutError):
    """The order backend could not be reached."""
