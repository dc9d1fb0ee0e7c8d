import logging
from functools import wraps

from django.contrib import messages
from django.contrib.auth import login
from django.contrib.auth.decorators import login_required
from django.contrib.auth.views import LoginView
from django.core.cache import cache
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_POST

from . import services
from .forms import ActivationForm, SignupForm
from .utils import normalize_login

logger = logging.getLogger(__name__)

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_TIMEOUT = 600  # 10 minutes in seconds


def require_no_user(view):
    """Only let anonymous visitors through; signed-in users go to their account."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if request.user.is_authenticated:
            messages.info(request, "You must be logged out to access this page.")
            return redirect("accounts:account")
        return view(request, *args, **kwargs)

    return wrapper


@require_no_user
@require_GET
def new_user(request):
    return render(request, "accounts/signup.html", {"form": SignupForm()})


@require_no_user
@require_POST
def signup(request):
    result = services.signup(request.POST)
    if result.ok:
        messages.success(request, result.notice)
        return redirect("home")
    return render(request, "accounts/signup.html", {"form": result.form}, status=400)


@require_no_user
@require_GET
def register(request, activation_code):
    """Show the credential form for a pending account reached from its email link."""
    user = services.request_activation_form(activation_code)
    return render(
        request,
        "accounts/activation_form.html",
        {"form": ActivationForm(user=user), "activated_user": user, "activation_code": activation_code},
    )


@require_no_user
@require_POST
def activate(request, user_id):
    activation_code = request.POST.get("activation_code", "")
    result = services.activate(user_id, activation_code, request.POST)
    if result.ok:
        # IMPORTANT: specify backend or Django will raise ValueError
        login(request, result.user, backend="django.contrib.auth.backends.ModelBackend")
        messages.success(request, result.notice)
        return redirect("accounts:account")

    return render(
        request,
        "accounts/activation_form.html",
        {"form": result.form, "activated_user": result.form.user, "activation_code": activation_code},
        status=400,
    )


@login_required
def account(request):
    return render(request, "accounts/account.html")


class CustomLoginView(LoginView):
    """Login view that locks a login after too many failed attempts.

    Logins match case-insensitively, so the lockout keys use the normalised
    login; ``Tester`` and ``tester`` share one counter.
    """

    template_name = "accounts/login.html"

    def dispatch(self, request, *args, **kwargs):
        username = normalize_login(request.POST.get("username"))
        if username:
            lock_key = f"lockout_{username}"
            if cache.get(lock_key):
                messages.error(
                    request,
                    "Account locked: too many login attempts. Please try again later.",
                )
                return self.render_to_response(self.get_context_data())
        return super().dispatch(request, *args, **kwargs)

    def form_invalid(self, form):
        username = normalize_login(self.request.POST.get("username"))
        if username:
            attempts_key = f"failed_{username}"
            lock_key = f"lockout_{username}"
            attempts = cache.get(attempts_key, 0) + 1
            cache.set(attempts_key, attempts, LOCKOUT_TIMEOUT)
            if attempts >= MAX_FAILED_ATTEMPTS:
                cache.set(lock_key, True, LOCKOUT_TIMEOUT)
                logger.warning("Login %s locked after %s failed attempts", username, attempts)
                messages.error(
                    self.request,
                    "Account locked: too many login attempts. Please try again later.",
                )
        return super().form_invalid(form)

    def form_valid(self, form):
        username = normalize_login(form.get_user().get_username())
        cache.delete(f"failed_{username}")
        cache.delete(f"lockout_{username}")
        return super().form_valid(form)
