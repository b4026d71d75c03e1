# accounts/permissions.py

from rest_framework import permissions

from .models import User


def can_create_tenders(user):
    """Admins and tender creators publish tenders, vendors never do."""
    role = User.Role(user.role)
    if role is User.Role.ADMIN:
        return True
    elif role is User.Role.TENDER_CREATOR:
        return True
    elif role is User.Role.VENDOR:
        return False
    raise ValueError(f"Unhandled role: {role}")


def can_manage_tender(user, tender):
    """Owner of the tender, or any administrator."""
    role = User.Role(user.role)
    if role is User.Role.ADMIN:
        return True
    elif role is User.Role.TENDER_CREATOR:
        return tender.created_by_id == user.id
    elif role is User.Role.VENDOR:
        return False
    raise ValueError(f"Unhandled role: {role}")


class IsVendor(permissions.BasePermission):
    message = 'Only vendors can perform this action.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_vendor)


class IsTenderManager(permissions.BasePermission):
    """Admins and tender creators; object checks defer to tender ownership."""
    message = 'Only tender creators and administrators can perform this action.'

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and can_create_tenders(request.user)
        )

    def has_object_permission(self, request, view, obj):
        return can_manage_tender(request.user, obj)
