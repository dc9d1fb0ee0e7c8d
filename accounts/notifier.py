"""
Activation emails.

Both messages are rendered from a plain-text and an HTML template and carry
subject, sender, recipient and send timestamp. Links are absolute and built
from ``EMAIL_LINK_PROTOCOL``/``EMAIL_LINK_DOMAIN`` because they are rendered
inside Celery tasks where no request is available.
"""

import logging
from email.utils import format_datetime

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.urls import reverse
from django.utils import timezone

logger = logging.getLogger(__name__)

ACTIVATION_INSTRUCTIONS_SUBJECT = "Activation Instructions"
ACTIVATION_CONFIRMATION_SUBJECT = "Activation Complete"


def absolute_url(path: str) -> str:
    return f"{settings.EMAIL_LINK_PROTOCOL}://{settings.EMAIL_LINK_DOMAIN}{path}"


def register_url(token: str) -> str:
    return absolute_url(reverse("accounts:register", kwargs={"activation_code": token}))


def root_url() -> str:
    return absolute_url(reverse("home"))


def _send(subject, template_base, user, context):
    sent_on = timezone.now()
    context = {"user": user, "sent_on": sent_on, **context}
    message = EmailMultiAlternatives(
        subject=subject,
        body=render_to_string(f"{template_base}.txt", context),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[user.email],
        headers={"Date": format_datetime(sent_on)},
    )
    message.attach_alternative(render_to_string(f"{template_base}.html", context), "text/html")
    message.send(fail_silently=False)
    logger.info("%s email sent to %s", subject, user.email)
    return message


def activation_instructions(user):
    """Send the email carrying the registration link for ``user``'s current token."""

    return _send(
        ACTIVATION_INSTRUCTIONS_SUBJECT,
        "accounts/emails/activation_instructions",
        user,
        {"account_activation_url": register_url(user.perishable_token)},
    )


def activation_confirmation(user):
    return _send(
        ACTIVATION_CONFIRMATION_SUBJECT,
        "accounts/emails/activation_confirmation",
        user,
        {"root_url": root_url()},
    )
