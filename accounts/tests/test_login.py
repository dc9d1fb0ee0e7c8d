import string

import pytest
from django.core.cache import cache
from django.test import RequestFactory
from django.urls import reverse
from hypothesis import HealthCheck, given, settings, strategies as st

from accounts.utils import axes_username

from .factories import ActiveUserFactory, PendingUserFactory


@pytest.mark.django_db
def test_login_page_renders(client):
    response = client.get(reverse("accounts:login"))
    assert response.status_code == 200
    assert "accounts/login.html" in [t.name for t in response.templates]


@pytest.mark.django_db
def test_active_user_can_log_in(client):
    ActiveUserFactory(login="tester", password="secret")
    response = client.post(reverse("accounts:login"), {"username": "tester", "password": "secret"})
    assert response.status_code == 302
    assert response.url == reverse("accounts:account")


@pytest.mark.django_db
def test_pending_user_cannot_log_in(client):
    PendingUserFactory(login="pending", password="secret")
    response = client.post(reverse("accounts:login"), {"username": "pending", "password": "secret"})
    assert response.status_code == 200
    assert client.session.get("_auth_user_id") is None


@pytest.mark.django_db
def test_login_lockout_after_failures(client, settings):
    settings.MIDDLEWARE = [m for m in settings.MIDDLEWARE if "rate_limiting" not in m]
    ActiveUserFactory(login="tester", password="secret")
    url = reverse("accounts:login")
    for _ in range(5):
        client.post(url, {"username": "tester", "password": "wrong"})
    response = client.post(url, {"username": "tester", "password": "secret"})
    assert response.status_code == 200
    messages = list(response.context["messages"])
    assert any("Account locked" in str(m) for m in messages)


@pytest.mark.django_db
def test_login_success_resets_failed_attempts(client):
    ActiveUserFactory(login="tester", password="secret")
    url = reverse("accounts:login")
    for _ in range(3):
        client.post(url, {"username": "tester", "password": "wrong"})
    assert cache.get("failed_tester") == 3
    response = client.post(url, {"username": "tester", "password": "secret"})
    assert response.status_code == 302
    assert cache.get("failed_tester") is None


@pytest.mark.django_db
@given(code=st.text(alphabet=string.ascii_letters + string.digits + "-_", min_size=1, max_size=40))
@settings(
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
def test_register_fuzz(client, code):
    response = client.get(reverse("accounts:register", kwargs={"activation_code": code}))
    assert response.status_code == 404


@pytest.mark.django_db
def test_login_sql_injection_attempt(client):
    payload = "' OR '1'='1"
    response = client.post(reverse("accounts:login"), {"username": payload, "password": payload})
    assert response.status_code == 200
    assert client.session.get("_auth_user_id") is None


@pytest.mark.django_db
def test_lockout_applies_to_every_case_of_the_login(client, settings):
    settings.MIDDLEWARE = [m for m in settings.MIDDLEWARE if "rate_limiting" not in m]
    ActiveUserFactory(login="tester", password="secret")
    url = reverse("accounts:login")
    for _ in range(5):
        client.post(url, {"username": "tester", "password": "wrong"})

    for variant in ("TESTER", "Tester", " tester "):
        response = client.post(url, {"username": variant, "password": "secret"})
        assert response.status_code == 200
        assert client.session.get("_auth_user_id") is None


@pytest.mark.django_db
def test_failed_attempts_are_shared_across_login_case(client, settings):
    settings.MIDDLEWARE = [m for m in settings.MIDDLEWARE if "rate_limiting" not in m]
    ActiveUserFactory(login="tester", password="secret")
    url = reverse("accounts:login")
    for variant in ("tester", "TESTER", "Tester", "tEster", "teSter"):
        client.post(url, {"username": variant, "password": "wrong"})
    assert cache.get("lockout_tester") is True


def test_axes_username_is_normalised():
    request = RequestFactory().post("/login/", {"username": " Tester "})
    assert axes_username(request, None) == "tester"
    assert axes_username(request, {"username": "TESTER"}) == "tester"
