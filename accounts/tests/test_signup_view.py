import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse

from .factories import ActiveUserFactory, PendingUserFactory

User = get_user_model()


@pytest.mark.django_db
def test_signup_page_renders(client):
    response = client.get(reverse("accounts:signup"))
    assert response.status_code == 200
    assert "accounts/signup.html" in [t.name for t in response.templates]


@pytest.mark.django_db
def test_signup_redirects_home_with_notice(client, mailoutbox, django_capture_on_commit_callbacks):
    data = {"login": "alice", "email": "a@x.com", "password": "pw123", "password_confirmation": "pw123"}
    with django_capture_on_commit_callbacks(execute=True):
        response = client.post(reverse("accounts:users"), data, follow=True)

    assert response.redirect_chain == [(reverse("home"), 302)]
    messages = [str(m) for m in response.context["messages"]]
    assert any("check your e-mail" in m for m in messages)
    user = User.objects.get(login="alice")
    assert not user.active
    # No session is established for the pending account
    assert "_auth_user_id" not in client.session
    assert len(mailoutbox) == 1


@pytest.mark.django_db
def test_signup_missing_login(client):
    response = client.post(reverse("accounts:users"), {"email": "a@x.com"})
    assert response.status_code == 400
    assert User.objects.count() == 0
    assert "login" in response.context["form"].errors


@pytest.mark.django_db
def test_signup_invalid_email(client):
    response = client.post(reverse("accounts:users"), {"login": "alice", "email": "not-an-email"})
    assert response.status_code == 400
    assert User.objects.count() == 0
    assert "email" in response.context["form"].errors


@pytest.mark.django_db
def test_signup_password_mismatch(client):
    data = {"login": "alice", "email": "a@x.com", "password": "pw123", "password_confirmation": "pw999"}
    response = client.post(reverse("accounts:users"), data)
    assert response.status_code == 400
    assert User.objects.count() == 0
    assert "doesn&#x27;t match" in response.content.decode()


@pytest.mark.django_db
def test_signup_duplicate_email(client):
    ActiveUserFactory(email="dup@example.com")
    response = client.post(reverse("accounts:users"), {"login": "other", "email": "DUP@example.com"})
    assert response.status_code == 400
    assert response.context["form"].errors["email"] == ["An account with this email already exists."]
    assert User.objects.filter(email="dup@example.com").count() == 1


@pytest.mark.django_db
def test_signup_with_pending_email_resends_instructions(client, mailoutbox, django_capture_on_commit_callbacks):
    pending = PendingUserFactory(login="alice", email="a@x.com")
    old_token = pending.perishable_token

    with django_capture_on_commit_callbacks(execute=True):
        response = client.post(reverse("accounts:users"), {"login": "alice2", "email": "a@x.com"}, follow=True)

    assert response.redirect_chain == [(reverse("home"), 302)]
    messages = [str(m) for m in response.context["messages"]]
    assert "We have resent the activation link to your email." in messages
    assert User.objects.count() == 1
    pending.refresh_from_db()
    assert pending.perishable_token != old_token
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ["a@x.com"]
    assert f"/register/{pending.perishable_token}" in mailoutbox[0].body


@pytest.mark.django_db
def test_signup_requires_logged_out_visitor(client):
    client.force_login(ActiveUserFactory())
    response = client.get(reverse("accounts:signup"))
    assert response.status_code == 302
    assert response.url == reverse("accounts:account")
