from django.urls import path
from django.contrib.auth import views as auth_views
from . import views

app_name = "accounts"

urlpatterns = [
    # Signup & activation
    path("users/new", views.new_user, name="signup"),
    path("users", views.signup, name="users"),
    path("register/<str:activation_code>", views.register, name="register"),
    path("activate/<int:user_id>", views.activate, name="activate"),
    path("account/", views.account, name="account"),

    # Authentication
    path("login/", views.CustomLoginView.as_view(), name="login"),
    path("logout/", auth_views.LogoutView.as_view(next_page="/"), name="logout"),
]
