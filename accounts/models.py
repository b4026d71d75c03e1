# accounts/models.py

from django.contrib.auth.models import AbstractUser, UserManager as BaseUserManager
from django.db import models


class UserManager(BaseUserManager):

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        # Superusers always carry the admin role
        extra_fields.setdefault('role', User.Role.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Custom User model with role-based authorization
    """

    class Role(models.TextChoices):
        ADMIN = 'admin', 'Administrator'
        TENDER_CREATOR = 'tender_creator', 'Tender Creator'
        VENDOR = 'vendor', 'Vendor'

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.VENDOR,
        help_text="User role: admin, tender creator or vendor"
    )
    phone_number = models.CharField(max_length=15, blank=True, null=True)
    company_name = models.CharField(max_length=255, blank=True, null=True)
    profile_picture = models.ImageField(
        upload_to='profile_pictures/',
        blank=True,
        null=True,
        help_text="User profile picture"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    def __str__(self):
        return f"{self.username} - {self.role}"

    class Meta:
        ordering = ['-created_at']

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN

    @property
    def is_tender_creator(self):
        return self.role == self.Role.TENDER_CREATOR

    @property
    def is_vendor(self):
        return self.role == self.Role.VENDOR

    @property
    def display_name(self):
        """Name shown to other parties in notifications"""
        if self.company_name:
            return self.company_name
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.username
