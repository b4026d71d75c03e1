from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import User
from tenders.models import Bid, Tender


@pytest.fixture(autouse=True)
def fast_password_hashing(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']


@pytest.fixture(autouse=True)
def inline_notification_email(settings):
    settings.NOTIFICATION_EMAIL_ASYNC = False


@pytest.fixture
def make_user(db):
    def _make(username, role=User.Role.VENDOR, **extra):
        return User.objects.create_user(
            username=username,
            password='Tr1cky-Passw0rd',
            email=f'{username}@example.com',
            role=role,
            **extra,
        )
    return _make


@pytest.fixture
def owner(make_user):
    return make_user('owner', User.Role.TENDER_CREATOR, company_name='City Works Dept')


@pytest.fixture
def other_creator(make_user):
    return make_user('rival', User.Role.TENDER_CREATOR)


@pytest.fixture
def admin_user(make_user):
    return make_user('root', User.Role.ADMIN)


@pytest.fixture
def vendor_a(make_user):
    return make_user('vendor_a', company_name='Alpha Paving')


@pytest.fixture
def vendor_b(make_user):
    return make_user('vendor_b', company_name='Beta Builders')


@pytest.fixture
def vendor_c(make_user):
    return make_user('vendor_c', company_name='Gamma Civil')


@pytest.fixture
def make_tender(owner):
    def _make(created_by=None, status=Tender.Status.PUBLISHED, deadline=None, **extra):
        return Tender.objects.create(
            created_by=created_by or owner,
            title=extra.pop('title', 'Road resurfacing, Main St'),
            description='Resurface 4km of Main St including drainage.',
            base_price=Decimal('1000.00'),
            deadline=deadline or timezone.now() + timedelta(days=7),
            duration=30,
            status=status,
            **extra,
        )
    return _make


@pytest.fixture
def tender(make_tender):
    return make_tender()


@pytest.fixture
def make_bid():
    def _make(tender, vendor, amount='100.00', status=Bid.Status.SUBMITTED):
        return Bid.objects.create(tender=tender, vendor=vendor, amount=Decimal(amount), status=status)
    return _make


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(api_client):
    def _as(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _as
