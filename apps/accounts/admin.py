# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for portal users (email login, role based access)."""

    list_display = [
        'email',
        'first_name',
        'last_name',
        'role',
        'is_active',
        'created_at',
    ]

    list_filter = [
        'role',
        'is_active',
        'is_staff',
    ]

    search_fields = [
        'email',
        'first_name',
        'last_name',
    ]

    ordering = ['last_name', 'email']

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'first_name', 'last_name', 'password')
        }),
        ('Role', {
            'fields': ('role',)
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = ['created_at', 'last_login']
