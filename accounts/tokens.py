"""Perishable token utilities.

Each user carries a single random token that is stored on the user row
together with the time it was issued. The token is embedded in activation
links and looked up again when the link is followed; it is only honoured
within ``ACTIVATION_TOKEN_MAX_AGE_DAYS`` of being issued and is rotated every
time an activation email goes out.
"""

from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from django.utils.crypto import constant_time_compare, get_random_string

TOKEN_LENGTH = 20


def activation_token_max_age() -> timedelta:
    return timedelta(days=settings.ACTIVATION_TOKEN_MAX_AGE_DAYS)


def generate_perishable_token() -> str:
    """Return a fresh random token suitable for use in a URL."""

    return get_random_string(TOKEN_LENGTH)


def reset_perishable_token(user) -> str:
    """Issue a new perishable token for ``user`` and persist it immediately."""

    user.perishable_token = generate_perishable_token()
    user.perishable_token_issued_at = timezone.now()
    user.save(update_fields=["perishable_token", "perishable_token_issued_at"])
    return user.perishable_token


def is_token_fresh(user, max_age: timedelta | None = None) -> bool:
    issued_at = user.perishable_token_issued_at
    if issued_at is None:
        return False
    return issued_at >= timezone.now() - (max_age or activation_token_max_age())


def validate_perishable_token(user, token: str, max_age: timedelta | None = None) -> bool:
    """Check ``token`` against the token currently stored for ``user``."""

    if not token or not user.perishable_token:
        return False
    return constant_time_compare(user.perishable_token, token) and is_token_fresh(user, max_age)


def find_using_perishable_token(token: str, max_age: timedelta | None = None):
    """Return the user owning ``token`` if it was issued within ``max_age``."""

    if not token:
        return None
    cutoff = timezone.now() - (max_age or activation_token_max_age())
    return (
        get_user_model()
        .objects.filter(perishable_token=token, perishable_token_issued_at__gte=cutoff)
        .first()
    )
