import smtplib
from unittest.mock import patch

import pytest

from accounts import notifier, tasks
from .factories import ActiveUserFactory, PendingUserFactory


@pytest.mark.django_db
def test_activation_instructions_email(mailoutbox, settings):
    settings.DEFAULT_FROM_EMAIL = "Notifier <noreply@example.com>"
    user = PendingUserFactory(login="alice", email="alice@example.com")

    notifier.activation_instructions(user)

    assert len(mailoutbox) == 1
    email = mailoutbox[0]
    assert email.subject == "Activation Instructions"
    assert email.from_email == "Notifier <noreply@example.com>"
    assert email.to == ["alice@example.com"]
    assert "Date" in email.extra_headers
    url = f"http://testserver/register/{user.perishable_token}"
    assert url in email.body
    html, mimetype = email.alternatives[0]
    assert mimetype == "text/html"
    assert url in html


@pytest.mark.django_db
def test_activation_confirmation_email(mailoutbox):
    user = ActiveUserFactory(email="bob@example.com")

    notifier.activation_confirmation(user)

    email = mailoutbox[0]
    assert email.subject == "Activation Complete"
    assert email.to == ["bob@example.com"]
    assert "http://testserver/" in email.body
    assert user.perishable_token not in email.body


@pytest.mark.django_db
def test_instructions_task_uses_token_stored_at_send_time(mailoutbox):
    user = PendingUserFactory()
    user.perishable_token = "rotated-before-send"
    user.save(update_fields=["perishable_token"])

    assert tasks.send_activation_instructions(user.pk) is True
    assert "/register/rotated-before-send" in mailoutbox[0].body


@pytest.mark.django_db
def test_instructions_task_skips_active_users(mailoutbox):
    user = ActiveUserFactory()
    assert tasks.send_activation_instructions(user.pk) is False
    assert mailoutbox == []


@pytest.mark.django_db
def test_tasks_skip_missing_users(mailoutbox):
    assert tasks.send_activation_instructions(424242) is False
    assert tasks.send_activation_confirmation(424242) is False
    assert mailoutbox == []


@pytest.mark.django_db
def test_smtp_failure_propagates_from_notifier():
    user = PendingUserFactory()
    with patch(
        "accounts.notifier.EmailMultiAlternatives.send",
        side_effect=smtplib.SMTPException("fail"),
    ):
        with pytest.raises(smtplib.SMTPException):
            notifier.activation_instructions(user)
