def normalize_login(value):
    """Canonical form of a login, matching the case-insensitive lookup in ``UserManager``."""
    return (value or "").strip().lower()


def axes_username(request, credentials):
    """``AXES_USERNAME_CALLABLE`` keyed on the normalised login."""
    username = (credentials or {}).get("username")
    if username is None and request is not None:
        username = request.POST.get("username")
    return normalize_login(username)
