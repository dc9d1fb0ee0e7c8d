import logging
import smtplib

from celery import shared_task
from django.contrib.auth import get_user_model

from . import notifier

logger = logging.getLogger(__name__)

MAIL_RETRY = dict(
    autoretry_for=(smtplib.SMTPException, ConnectionError),
    retry_backoff=True,
    max_retries=3,
)


def _load(user_id):
    User = get_user_model()
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        logger.warning("Activation mail skipped: user %s no longer exists", user_id)
        return None


@shared_task(**MAIL_RETRY)
def send_activation_instructions(user_id):
    """Email the registration link for the token stored on the user right now."""
    user = _load(user_id)
    if user is None:
        return False
    if user.active:
        logger.info("Activation instructions skipped: user %s is already active", user_id)
        return False
    notifier.activation_instructions(user)
    return True


@shared_task(**MAIL_RETRY)
def send_activation_confirmation(user_id):
    user = _load(user_id)
    if user is None:
        return False
    notifier.activation_confirmation(user)
    return True
