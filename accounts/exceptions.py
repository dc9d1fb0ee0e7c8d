"""Errors raised by the activation workflow.

``NotFound`` and ``AlreadyActivated`` double as Django's ``Http404`` and
``PermissionDenied`` so that views can let them propagate and have the
request handler answer 404/403.
"""

from django.core.exceptions import PermissionDenied
from django.http import Http404


class ActivationError(Exception):
    """Base class for activation workflow failures."""


class NotFound(ActivationError, Http404):
    """Unknown, expired or already used activation token."""


class AlreadyActivated(ActivationError, PermissionDenied):
    """The account has already been activated."""


class ValidationFailed(ActivationError):
    """Signup or credential input was rejected.

    ``errors`` maps field names (``__all__`` for form-wide problems) to the
    list of messages for that field.
    """

    def __init__(self, errors):
        self.errors = errors
        super().__init__(
            "; ".join(f"{field}: {' '.join(messages)}" for field, messages in errors.items())
        )
