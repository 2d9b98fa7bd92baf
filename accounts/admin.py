from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "name", "email", "role", "is_active", "date_joined")
    list_filter = ("role", "is_active", "is_staff", "gender")
    search_fields = ("username", "name", "email", "first_name", "last_name")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Training", {"fields": ("role", "name", "birthday", "gender")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Training", {"fields": ("email", "role", "name")}),
    )
    actions = ["activate_users"]

    @admin.action(description="Activate selected users")
    def activate_users(self, request, queryset):
        inactive = list(queryset.filter(is_active=False))
        for user in inactive:
            user.activate()
        self.message_user(request, f"Activated {len(inactive)} user(s).")
