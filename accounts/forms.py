from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError


def _check_password_pair(form, password, confirmation, user):
    """Attach password errors for ``user`` to ``form``. Returns True when valid."""

    if password != confirmation:
        form.add_error("password_confirmation", "Password confirmation doesn't match password.")
        return False
    try:
        validate_password(password, user=user)
    except ValidationError as exc:
        form.add_error("password", exc)
        return False
    return True


class SignupForm(forms.Form):
    """Signup data for a new pending account.

    An email that already belongs to a *pending* account is accepted and kept
    on ``pending_user`` so the caller can resend that account's activation
    instructions instead of creating a second one.
    """

    login = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput, required=False, strip=False)
    password_confirmation = forms.CharField(widget=forms.PasswordInput, required=False, strip=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pending_user = None

    def clean_login(self):
        return self.cleaned_data["login"].strip()

    def clean_email(self):
        email = self.cleaned_data["email"].strip().lower()
        existing = get_user_model().objects.filter(email__iexact=email).first()
        if existing is not None:
            if existing.active:
                raise ValidationError("An account with this email already exists.")
            self.pending_user = existing
        return email

    def clean(self):
        cleaned = super().clean()
        login = cleaned.get("login")
        if login:
            taken = get_user_model().objects.filter(login__iexact=login)
            if self.pending_user is not None:
                taken = taken.exclude(pk=self.pending_user.pk)
            if taken.exists():
                self.add_error("login", "This login is already taken. Please choose another one.")

        password = cleaned.get("password", "")
        confirmation = cleaned.get("password_confirmation", "")
        if password or confirmation:
            # The user instance is not saved to the database
            temp_user = get_user_model()(login=cleaned.get("login", ""), email=cleaned.get("email", ""))
            _check_password_pair(self, password, confirmation, temp_user)
        return cleaned


class ActivationForm(forms.Form):
    """Credential entry shown to a pending user following an activation link."""

    password = forms.CharField(widget=forms.PasswordInput, required=False, strip=False)
    password_confirmation = forms.CharField(widget=forms.PasswordInput, required=False, strip=False)
    openid_identifier = forms.URLField(max_length=255, required=False, assume_scheme="https")

    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = user

    def clean(self):
        cleaned = super().clean()
        password = cleaned.get("password", "")
        confirmation = cleaned.get("password_confirmation", "")
        openid_identifier = cleaned.get("openid_identifier", "")

        if password or confirmation:
            _check_password_pair(self, password, confirmation, self.user)
        elif not openid_identifier and "openid_identifier" not in self.errors and self.user.has_no_credentials():
            raise ValidationError("Choose a password or enter an OpenID identifier to activate your account.")
        return cleaned

    def apply(self, user):
        """Copy the validated credentials onto ``user`` without saving."""

        password = self.cleaned_data.get("password")
        if password:
            user.set_password(password)
        openid_identifier = self.cleaned_data.get("openid_identifier")
        if openid_identifier:
            user.openid_identifier = openid_identifier
        return user
