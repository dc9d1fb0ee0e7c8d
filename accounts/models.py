"""User model for the signup/activation flow.

A user is created *pending* (``active=False``) with only a login and an email
address, receives a perishable token by email, and becomes *activated* once a
credential (password and/or OpenID identifier) has been set through the
activation form. Activation is one-way.
"""

from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.contrib.auth.models import PermissionsMixin
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    use_in_migrations = True

    def get_by_natural_key(self, login):
        return self.get(login__iexact=login)

    def create_user(self, login, email, password=None, **extra_fields):
        if not login:
            raise ValueError("The login must be set")
        email = self.normalize_email(email).lower()
        user = self.model(login=login, email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, login, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("active", True)
        return self.create_user(login, email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    login = models.CharField(max_length=150, unique=True)
    email = models.EmailField(unique=True)
    openid_identifier = models.URLField(max_length=255, blank=True)
    perishable_token = models.CharField(max_length=64, blank=True, db_index=True)
    perishable_token_issued_at = models.DateTimeField(null=True, blank=True)
    active = models.BooleanField(default=False)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = "login"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["email"]

    class Meta:
        db_table = "users"
        ordering = ("login",)

    def __str__(self):
        return self.login

    @property
    def is_active(self):
        # Pending users cannot authenticate
        return self.active

    def has_no_credentials(self) -> bool:
        """True when neither a usable password nor an OpenID identifier is set."""
        return not self.has_usable_password() and not self.openid_identifier
