from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from notifications.models import Notification
from tenders.exceptions import DeadlinePassed, DuplicateBid, Forbidden, InvalidState, NotFound
from tenders.models import Bid, Tender
from tenders.services import award_tender, revise_bid, submit_bid, withdraw_bid


def test_submit_creates_submitted_bid_and_notifies_owner_after_commit(
        tender, owner, vendor_a, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        bid = submit_bid(tender.pk, vendor_a, Decimal('500.00'), notes='Includes drainage', documents=['s3://bids/quote.pdf'])

    assert bid.status == Bid.Status.SUBMITTED
    assert bid.amount == Decimal('500.00')
    assert bid.currency == tender.currency
    assert bid.documents == ['s3://bids/quote.pdf']
    notice = Notification.objects.get(user=owner)
    assert notice.type == Notification.Type.BID_SUBMITTED
    assert 'Alpha Paving' in notice.message
    assert notice.reference_id == bid.pk


def test_revise_then_duplicate_submit(tender, vendor_a):
    bid = submit_bid(tender.pk, vendor_a, Decimal('500'))

    revised = revise_bid(bid.pk, vendor_a, amount=Decimal('450'))

    assert revised.status == Bid.Status.REVISED
    revised.refresh_from_db()
    assert revised.amount == Decimal('450')
    with pytest.raises(DuplicateBid):
        submit_bid(tender.pk, vendor_a, Decimal('400'))
    assert Bid.objects.filter(tender=tender, vendor=vendor_a).count() == 1


def test_revise_keeps_fields_that_are_not_given(tender, vendor_a):
    bid = submit_bid(tender.pk, vendor_a, Decimal('500'), notes='Original notes', documents=['a.pdf'])

    revise_bid(bid.pk, vendor_a, documents=['b.pdf', 'c.pdf'])

    bid.refresh_from_db()
    assert bid.amount == Decimal('500')
    assert bid.notes == 'Original notes'
    assert bid.documents == ['b.pdf', 'c.pdf']


def test_submit_after_deadline_fails_and_creates_nothing(make_tender, vendor_a):
    tender = make_tender(deadline=timezone.now() - timedelta(minutes=1))

    with pytest.raises(DeadlinePassed):
        submit_bid(tender.pk, vendor_a, Decimal('100'))

    assert not Bid.objects.exists()


@pytest.mark.parametrize('status', [Tender.Status.DRAFT, Tender.Status.CLOSED])
def test_submit_requires_published_tender(status, make_tender, vendor_a):
    tender = make_tender(status=status)

    with pytest.raises(InvalidState):
        submit_bid(tender.pk, vendor_a, Decimal('100'))


def test_submit_on_missing_tender_is_not_found(db, vendor_a):
    with pytest.raises(NotFound):
        submit_bid(424242, vendor_a, Decimal('100'))


def test_only_vendors_submit(tender, owner):
    with pytest.raises(Forbidden):
        submit_bid(tender.pk, owner, Decimal('100'))


def test_withdrawn_bid_allows_resubmission(tender, vendor_a, django_capture_on_commit_callbacks):
    first = submit_bid(tender.pk, vendor_a, Decimal('300'))

    with django_capture_on_commit_callbacks(execute=True):
        withdrawn = withdraw_bid(first.pk, vendor_a, reason='Pricing error')
    second = submit_bid(tender.pk, vendor_a, Decimal('320'))

    assert withdrawn.status == Bid.Status.WITHDRAWN
    assert withdrawn.withdrawal_reason == 'Pricing error'
    assert second.pk != first.pk
    assert second.status == Bid.Status.SUBMITTED
    assert Notification.objects.filter(type=Notification.Type.BID_WITHDRAWN).count() == 1


def test_withdrawn_bid_is_terminal(tender, vendor_a):
    bid = submit_bid(tender.pk, vendor_a, Decimal('300'))
    withdraw_bid(bid.pk, vendor_a)

    with pytest.raises(InvalidState):
        revise_bid(bid.pk, vendor_a, amount=Decimal('200'))
    with pytest.raises(InvalidState):
        withdraw_bid(bid.pk, vendor_a)


def test_revise_or_withdraw_after_award_is_invalid_state(tender, owner, vendor_a, vendor_b):
    winner = submit_bid(tender.pk, vendor_a, Decimal('100'))
    loser = submit_bid(tender.pk, vendor_b, Decimal('120'))
    award_tender(tender.pk, winner.pk, owner)

    for bid, vendor in ((winner, vendor_a), (loser, vendor_b)):
        bid.refresh_from_db()
        before = (bid.status, bid.amount, bid.updated_at)
        with pytest.raises(InvalidState):
            revise_bid(bid.pk, vendor, amount=Decimal('1'))
        with pytest.raises(InvalidState):
            withdraw_bid(bid.pk, vendor, reason='changed my mind')
        bid.refresh_from_db()
        assert (bid.status, bid.amount, bid.updated_at) == before


def test_other_vendor_cannot_touch_bid(tender, vendor_a, vendor_b):
    bid = submit_bid(tender.pk, vendor_a, Decimal('100'))

    with pytest.raises(Forbidden):
        revise_bid(bid.pk, vendor_b, amount=Decimal('1'))
    with pytest.raises(Forbidden):
        withdraw_bid(bid.pk, vendor_b)


def test_revise_after_deadline_fails(make_tender, make_bid, vendor_a):
    tender = make_tender(deadline=timezone.now() - timedelta(hours=1))
    bid = make_bid(tender, vendor_a)

    with pytest.raises(DeadlinePassed):
        revise_bid(bid.pk, vendor_a, amount=Decimal('90'))
    with pytest.raises(DeadlinePassed):
        withdraw_bid(bid.pk, vendor_a)

    bid.refresh_from_db()
    assert bid.status == Bid.Status.SUBMITTED


def test_missing_bid_is_not_found(db, vendor_a):
    with pytest.raises(NotFound):
        revise_bid(31337, vendor_a, amount=Decimal('1'))


@pytest.mark.parametrize('amount', [Decimal('0'), Decimal('-10.00')])
def test_service_rejects_non_positive_amounts(tender, vendor_a, amount):
    with pytest.raises(ValidationError):
        submit_bid(tender.pk, vendor_a, amount)
    assert not Bid.objects.exists()

    bid = submit_bid(tender.pk, vendor_a, Decimal('50'))
    with pytest.raises(ValidationError):
        revise_bid(bid.pk, vendor_a, amount=amount)
    bid.refresh_from_db()
    assert bid.amount == Decimal('50')
    assert bid.status == Bid.Status.SUBMITTED


def test_database_refuses_non_positive_amounts(tender, vendor_a):
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Bid.objects.create(tender=tender, vendor=vendor_a, amount=Decimal('0'))
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Tender.objects.filter(pk=tender.pk).update(base_price=Decimal('-1'))
