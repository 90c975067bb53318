# accounts/urls.py
"""
URL configuration for accounts/auth API.

Endpoints:
- /auth/ - Authentication (login, refresh, logout, me)
- /users/ - User and role management
"""

from django.urls import path

from .views import (
    # Auth
    LoginView,
    RefreshView,
    LogoutView,
    MeView,
    # Users
    UserListCreateView,
    UserRoleView,
)

app_name = "accounts"

urlpatterns = [
    # ==========================================================================
    # Authentication
    # ==========================================================================
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="token-refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/me/", MeView.as_view(), name="me"),

    # ==========================================================================
    # Users
    # ==========================================================================
    path("users/", UserListCreateView.as_view(), name="user-list"),
    path("users/<int:pk>/role/", UserRoleView.as_view(), name="user-role"),
]
