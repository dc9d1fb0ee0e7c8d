# accounts/admin.py

from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("login", "email", "active", "is_staff", "date_joined")
    list_filter = ("active", "is_staff")
    search_fields = ("login", "email")
    readonly_fields = ("password", "perishable_token", "perishable_token_issued_at", "last_login", "date_joined")
    exclude = ("user_permissions",)
