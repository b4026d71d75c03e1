# accounts/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'role', 'company_name', 'is_active', 'created_at']
    list_filter = ['role', 'is_active']
    search_fields = ['username', 'email', 'company_name']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Tendering', {'fields': ('role', 'company_name', 'phone_number', 'profile_picture')}),
    )
