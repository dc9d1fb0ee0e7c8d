"""Signup and activation workflow.

Accounts move through two states, *pending* and *activated*, with a single
one-way transition performed by :func:`activate`. Functions here take plain
input mappings and return :class:`WorkflowResult` objects; request errors
(unknown token, account already active) are raised as the exceptions from
:mod:`accounts.exceptions` so the HTTP layer can turn them into 404/403.

Emails are never sent inline. Each ``deliver_*`` helper first rotates the
user's perishable token and then queues the Celery task once the surrounding
transaction commits, so the link in the email always matches the token that
was stored at send time and a failed dispatch never undoes a signup or an
activation.
"""

import logging
from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.forms import Form

from . import tasks
from .exceptions import AlreadyActivated, NotFound, ValidationFailed
from .forms import ActivationForm, SignupForm
from .tokens import find_using_perishable_token, reset_perishable_token, validate_perishable_token

logger = logging.getLogger(__name__)

SIGNUP_NOTICE = (
    "Your account has been created. "
    "Please check your e-mail for your account activation instructions!"
)
RESENT_NOTICE = "We have resent the activation link to your email."
ACTIVATION_NOTICE = "Your account has been activated."


@dataclass
class WorkflowResult:
    """Outcome of :func:`signup` or :func:`activate`.

    Views read ``ok``/``form``/``notice`` directly. ``raise_for_errors`` is for
    callers without a form to re-render (scripts, shells, other services) and
    turns a failed result into ``ValidationFailed``.
    """

    form: Form
    user: object = None
    notice: str = ""

    @property
    def ok(self) -> bool:
        return self.user is not None and not self.form.errors

    @property
    def errors(self) -> dict:
        return {field: [str(m) for m in messages] for field, messages in self.form.errors.items()}

    def raise_for_errors(self):
        if not self.ok:
            raise ValidationFailed(self.errors)
        return self


def _dispatch(task, user):
    user_id = user.pk

    def queue():
        try:
            task.delay(user_id)
        except Exception:
            # The account change is already committed; a lost email can be resent
            logger.exception("Could not queue %s for user %s", task.name, user_id)

    transaction.on_commit(queue)


def deliver_activation_instructions(user):
    reset_perishable_token(user)
    _dispatch(tasks.send_activation_instructions, user)


def deliver_activation_confirmation(user):
    reset_perishable_token(user)
    _dispatch(tasks.send_activation_confirmation, user)


def request_activation_form(activation_code):
    """Return the pending user owning ``activation_code``.

    Raises ``NotFound`` for unknown or expired codes and for users that are
    already active.
    """
    user = find_using_perishable_token(activation_code)
    if user is None:
        logger.info("Activation form requested with unknown or expired code")
        raise NotFound("Unknown or expired activation code.")
    if user.active:
        logger.info("Activation form requested for already active user %s", user.pk)
        raise NotFound("This account has already been activated.")
    return user


def _lock_user(user_id):
    User = get_user_model()
    try:
        return User.objects.select_for_update().get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFound("Unknown account.")


def activate(user_id, activation_code, data) -> WorkflowResult:
    """Set credentials on a pending user and flip it to active.

    The flip is a conditional update on ``active=False``; when two requests
    race for the same account only one of them updates the row and the other
    raises ``AlreadyActivated``.
    """
    User = get_user_model()
    with transaction.atomic():
        user = _lock_user(user_id)
        if user.active:
            raise AlreadyActivated("This account has already been activated.")
        if not validate_perishable_token(user, activation_code):
            logger.info("Activation rejected for user %s: bad or expired code", user.pk)
            raise NotFound("Unknown or expired activation code.")

        form = ActivationForm(data, user=user)
        if not form.is_valid():
            return WorkflowResult(form=form)

        form.apply(user)
        updated = User.objects.filter(pk=user.pk, active=False).update(
            active=True,
            password=user.password,
            openid_identifier=user.openid_identifier,
        )
        if updated != 1:
            raise AlreadyActivated("This account has already been activated.")
        user.active = True

        deliver_activation_confirmation(user)

    logger.info("User %s activated", user.pk)
    return WorkflowResult(form=form, user=user, notice=ACTIVATION_NOTICE)


def signup(data) -> WorkflowResult:
    """Create a pending user and send the activation instructions.

    No session is established; the new account cannot log in until it is
    activated. When the email belongs to an account that is still pending,
    no user is created: that account gets a fresh token and the instructions
    again, and its credentials are left untouched.
    """
    form = SignupForm(data)
    if not form.is_valid():
        return WorkflowResult(form=form)

    pending_user = form.pending_user
    if pending_user is not None:
        # Signing up again with a pending account's email reissues its link
        with transaction.atomic():
            deliver_activation_instructions(pending_user)
        logger.info("Resent activation instructions to pending user %s", pending_user.pk)
        return WorkflowResult(form=form, user=pending_user, notice=RESENT_NOTICE)

    User = get_user_model()
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                login=form.cleaned_data["login"],
                email=form.cleaned_data["email"],
                password=form.cleaned_data.get("password") or None,
            )
            deliver_activation_instructions(user)
    except IntegrityError:
        form.add_error(None, "This login or email is already registered.")
        return WorkflowResult(form=form)

    logger.info("User %s signed up, activation pending", user.pk)
    return WorkflowResult(form=form, user=user, notice=SIGNUP_NOTICE)
