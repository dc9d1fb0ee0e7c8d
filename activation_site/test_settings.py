import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from .settings import *  # inherit base settings

# --- Database: in-memory SQLite for tests ---
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# --- Email: in-memory so tests don't hit real SMTP ---
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
EMAIL_LINK_DOMAIN = "testserver"
EMAIL_LINK_PROTOCOL = "http"

# --- Caches: local memory to avoid external dependencies ---
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "activation-test-cache",
    }
}

# --- Speed up auth hashing in tests ---
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# --- Celery: run mail tasks inline ---
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"

# --- Make tests deterministic & quiet noisy integrations ---
DEBUG = False
SECURE_SSL_REDIRECT = False
CSRF_COOKIE_SECURE = False
SESSION_COOKIE_SECURE = False
AXES_ENABLED = False
STORAGES["staticfiles"]["BACKEND"] = "django.contrib.staticfiles.storage.StaticFilesStorage"

# Allow Django test client host
ALLOWED_HOSTS.append("testserver")
