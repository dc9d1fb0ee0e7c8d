"""
Django settings.py — consolidated for DEV/PROD with Postgres via DATABASE_URL,
CSP (django-csp), WhiteNoise, optional Redis, Celery mail dispatch,
Debug Toolbar, and django-axes.
"""

from __future__ import annotations
import os
import warnings
from pathlib import Path
from dotenv import load_dotenv
from csp.constants import NONCE
import dj_database_url
import sentry_sdk
from sentry_sdk.integrations.django import DjangoIntegration

# ────────────────────────────────────────────────────
# Paths & .env
# ────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")
ENV = os.getenv

def env_bool(key: str, default: str = "false") -> bool:
    return ENV(key, default).lower() in {"1", "true", "yes", "on"}

# ────────────────────────────────────────────────────
# Core flags & secret
# ────────────────────────────────────────────────────
DEBUG: bool = env_bool("DEBUG")

SECRET_KEY = ENV("SECRET_KEY")
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY environment variable is required")

if not DEBUG:
    warnings.filterwarnings("ignore")

# ────────────────────────────────────────────────────
# Sentry (error monitoring)
# ────────────────────────────────────────────────────
SENTRY_DSN = ENV("SENTRY_DSN", "")
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[DjangoIntegration()],
        traces_sample_rate=float(ENV("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        sample_rate=float(ENV("SENTRY_SAMPLE_RATE", "0.1")),
        send_default_pii=False,
    )

# ────────────────────────────────────────────────────
# Hosts & CSRF trusted origins
# ────────────────────────────────────────────────────
ALLOWED_HOSTS = [
    "localhost",
    "127.0.0.1",
]

CSRF_TRUSTED_ORIGINS = [
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

def _extend_from_env_list(env_key: str, target_list: list[str], require_scheme: bool = False) -> None:
    raw = ENV(env_key, "") or ""
    if not raw:
        return
    for item in [x.strip() for x in raw.split(",") if x.strip()]:
        if require_scheme and not (item.startswith("http://") or item.startswith("https://")):
            continue
        target_list.append(item)

_extend_from_env_list("EXTRA_ALLOWED_HOSTS", ALLOWED_HOSTS, require_scheme=False)
_extend_from_env_list("EXTRA_CSRF_TRUSTED_ORIGINS", CSRF_TRUSTED_ORIGINS, require_scheme=True)

# ────────────────────────────────────────────────────
# Apps & Middleware
# ────────────────────────────────────────────────────
INSTALLED_APPS = [
    # Django
    "django.contrib.admin", "django.contrib.auth", "django.contrib.contenttypes",
    "django.contrib.sessions", "django.contrib.messages", "django.contrib.staticfiles",
    # Third-party
    "whitenoise.runserver_nostatic",
    "widget_tweaks",
    "csp",
    "axes",
    "anymail",
    # Project
    "accounts",
    "core",
]

SHOW_DEBUG_TOOLBAR = env_bool("SHOW_DEBUG_TOOLBAR")
if DEBUG and SHOW_DEBUG_TOOLBAR:
    INSTALLED_APPS += ["debug_toolbar"]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "csp.middleware.CSPMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "core.middleware.permissions_policy.PermissionsPolicyMiddleware",
    "core.middleware.rate_limiting.RateLimitMiddleware",
]
MIDDLEWARE.append("axes.middleware.AxesMiddleware")  # axes middleware must come last

if DEBUG and SHOW_DEBUG_TOOLBAR:
    MIDDLEWARE.insert(0, "debug_toolbar.middleware.DebugToolbarMiddleware")
    INTERNAL_IPS = ["127.0.0.1"]

AUTH_USER_MODEL = "accounts.User"

AUTHENTICATION_BACKENDS = [
    "axes.backends.AxesStandaloneBackend",
    "django.contrib.auth.backends.ModelBackend",
]

ROOT_URLCONF = "activation_site.urls"
WSGI_APPLICATION = "activation_site.wsgi.application"

# ────────────────────────────────────────────────────
# Templates
# ────────────────────────────────────────────────────
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "accounts" / "templates", BASE_DIR / "core" / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# ────────────────────────────────────────────────────
# Database (DATABASE_URL preferred; fallback SQLite)
# ────────────────────────────────────────────────────
DATABASE_URL = ENV("DATABASE_URL")
if not DATABASE_URL and ENV("DB_HOST"):
    DATABASE_URL = (
        f"postgresql://{ENV('DB_USER')}:{ENV('DB_PASSWORD')}"
        f"@{ENV('DB_HOST')}:{ENV('DB_PORT','5432')}/{ENV('DB_NAME')}"
    )

if DATABASE_URL:
    DATABASES = {
        "default": dj_database_url.parse(
            DATABASE_URL,
            conn_max_age=int(ENV("DB_CONN_MAX_AGE", "600")),
            ssl_require=not DEBUG,
        )
    }
else:
    DATABASES = {
        "default": {"ENGINE": "django.db.backends.sqlite3", "NAME": BASE_DIR / "db.sqlite3"}
    }

# ────────────────────────────────────────────────────
# Cache (optional Redis)
# ────────────────────────────────────────────────────
if ENV("REDIS_URL"):
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": ENV("REDIS_URL"),
            "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
            "KEY_PREFIX": "activation",
            "TIMEOUT": 300,
        }
    }
else:
    CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache", "LOCATION": "activation-cache"}}

# ────────────────────────────────────────────────────
# I18N
# ────────────────────────────────────────────────────
LANGUAGE_CODE = "en-gb"
TIME_ZONE = ENV("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

# ────────────────────────────────────────────────────
# Static (WhiteNoise)
# ────────────────────────────────────────────────────
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {
        "BACKEND": (
            "django.contrib.staticfiles.storage.StaticFilesStorage" if DEBUG
            else "whitenoise.storage.CompressedManifestStaticFilesStorage"
        ),
    },
}
WHITENOISE_USE_FINDERS = True
WHITENOISE_AUTOREFRESH = DEBUG

# ────────────────────────────────────────────────────
# Auth / activation
# ────────────────────────────────────────────────────
LOGIN_URL = "/login/"
LOGIN_REDIRECT_URL = "/account/"
LOGOUT_REDIRECT_URL = "/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Activation links stay valid for this many days after the token was issued
ACTIVATION_TOKEN_MAX_AGE_DAYS = int(ENV("ACTIVATION_TOKEN_MAX_AGE_DAYS", "7"))
PASSWORD_MIN_LENGTH = int(ENV("PASSWORD_MIN_LENGTH", "4"))

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.Argon2PasswordHasher",
    "django.contrib.auth.hashers.PBKDF2PasswordHasher",
    "django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher",
]
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator", "OPTIONS": {"min_length": PASSWORD_MIN_LENGTH}},
]

# ────────────────────────────────────────────────────
# Security profiles (DEV/PROD): HTTPS, Cookies/CSRF, and CSP
# ────────────────────────────────────────────────────
CONTENT_SECURITY_POLICY = {
    "DIRECTIVES": {
        "default-src": ("'self'",),
        "script-src": ("'self'", NONCE),
        "style-src": ("'self'", NONCE),
        "img-src": ("'self'", "data:"),
        "connect-src": ("'self'",),
        "object-src": ("'none'",),
        "base-uri": ("'self'",),
        "form-action": ("'self'",),
    }
}

if not DEBUG:
    CONTENT_SECURITY_POLICY["DIRECTIVES"]["upgrade-insecure-requests"] = True

SESSION_COOKIE_SAMESITE = ENV("SESSION_COOKIE_SAMESITE", "Strict")
CSRF_COOKIE_SAMESITE = ENV("CSRF_COOKIE_SAMESITE", "Strict")

if DEBUG:
    # Dev: no forced HTTPS
    SECURE_SSL_REDIRECT = False
    SECURE_PROXY_SSL_HEADER = None
    SESSION_COOKIE_SECURE = False
    CSRF_COOKIE_SECURE = False
    CSRF_COOKIE_HTTPONLY = False
    SECURE_HSTS_SECONDS = 0
    CONTENT_SECURITY_POLICY["DIRECTIVES"].pop("upgrade-insecure-requests", None)
else:
    # Prod: enforce HTTPS and strong headers
    SECURE_SSL_REDIRECT = True
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = "DENY"
    SECURE_REFERRER_POLICY = "strict-origin-when-cross-origin"
    SECURE_CROSS_ORIGIN_OPENER_POLICY = "same-origin"

    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    CSRF_COOKIE_HTTPONLY = True

# ────────────────────────────────────────────────────
# Email
# ────────────────────────────────────────────────────
EMAIL_BACKEND = ENV("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
DEFAULT_FROM_EMAIL = ENV("DEFAULT_FROM_EMAIL", "Activation Notifier <noreply@localhost>")
EMAIL_LINK_DOMAIN = ENV("EMAIL_LINK_DOMAIN", "localhost:8000")
EMAIL_LINK_PROTOCOL = ENV("EMAIL_LINK_PROTOCOL", "http" if DEBUG else "https")
EMAIL_HOST = ENV("EMAIL_HOST", "")
EMAIL_PORT = int(ENV("EMAIL_PORT", "587"))
EMAIL_USE_TLS = env_bool("EMAIL_USE_TLS", "true")
EMAIL_HOST_USER = ENV("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = ENV("EMAIL_HOST_PASSWORD", "")
EMAIL_TIMEOUT = int(ENV("EMAIL_TIMEOUT", "20"))
SERVER_EMAIL = ENV("SERVER_EMAIL", DEFAULT_FROM_EMAIL)

# Resend via django-anymail when an API key is configured
ANYMAIL = {"RESEND_API_KEY": ENV("RESEND_API_KEY", "")}
if ANYMAIL["RESEND_API_KEY"]:
    EMAIL_BACKEND = "anymail.backends.resend.EmailBackend"
elif DEBUG and not EMAIL_HOST:
    EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

# ────────────────────────────────────────────────────
# django-axes (brute-force)
# ────────────────────────────────────────────────────
AXES_ENABLED = not DEBUG
AXES_FAILURE_LIMIT = 5
AXES_COOLOFF_TIME = 1  # hours
AXES_LOCKOUT_PARAMETERS = ["username", "ip_address"]
AXES_USERNAME_CALLABLE = "accounts.utils.axes_username"

# ────────────────────────────────────────────────────
# Logging (simple and sufficient)
# ────────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler", "level": "DEBUG"},
        "null": {"class": "logging.NullHandler"},
    },
    "filters": {
        "noisy_paths": {"()": "core.log_filters.NoisyPathFilter"},
    },
    "root": {"handlers": ["console"] if DEBUG else ["null"], "level": "DEBUG" if DEBUG else "INFO"},
    "loggers": {
        # Request lines in DEBUG, minus /healthz and /static/
        "django.server": {
            "handlers": ["console"] if DEBUG else ["null"],
            "level": "INFO" if DEBUG else "WARNING",
            "filters": ["noisy_paths"],
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console"] if DEBUG else ["null"],
            "level": "WARNING",
            "propagate": False,
        },
        "accounts": {
            "handlers": ["console"] if DEBUG else ["null"],
            "level": "DEBUG" if DEBUG else "INFO",
            "propagate": False,
        },
    },
}

# ────────────────────────────────────────────────────
# Celery (activation mail dispatch)
# ────────────────────────────────────────────────────
CELERY_BROKER_URL = ENV("CELERY_BROKER_URL", default="memory://")
CELERY_RESULT_BACKEND = ENV("CELERY_RESULT_BACKEND", default="cache+memory://")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER")
