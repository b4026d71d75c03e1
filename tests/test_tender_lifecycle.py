from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from notifications.models import Notification
from tenders.exceptions import DeadlinePassed, Forbidden, InvalidState
from tenders.models import Bid, Tender, TenderInvitation
from tenders.services import close_expired_tenders, invite_vendors, publish_tender


def test_tender_numbers_are_sequential(make_tender):
    first = make_tender()
    second = make_tender()

    assert first.tender_number == 'TND-001'
    assert second.tender_number == 'TND-002'


def test_publish_moves_draft_to_published_and_bumps_version(make_tender, owner):
    draft = make_tender(status=Tender.Status.DRAFT)

    published = publish_tender(draft.pk, owner)

    assert published.status == Tender.Status.PUBLISHED
    assert published.version == draft.version + 1
    assert published.is_open_for_bidding


def test_publish_twice_is_invalid_state(make_tender, owner):
    draft = make_tender(status=Tender.Status.DRAFT)
    publish_tender(draft.pk, owner)

    with pytest.raises(InvalidState):
        publish_tender(draft.pk, owner)


@pytest.mark.parametrize('actor_name', ['other_creator', 'vendor_a'])
def test_publish_by_non_owner_is_forbidden(request, actor_name, make_tender):
    draft = make_tender(status=Tender.Status.DRAFT)

    with pytest.raises(Forbidden):
        publish_tender(draft.pk, request.getfixturevalue(actor_name))

    draft.refresh_from_db()
    assert draft.status == Tender.Status.DRAFT


def test_publish_with_past_deadline_fails(make_tender, owner):
    draft = make_tender(status=Tender.Status.DRAFT, deadline=timezone.now() - timedelta(days=1))

    with pytest.raises(DeadlinePassed):
        publish_tender(draft.pk, owner)


def test_transition_table():
    S = Tender.Status
    assert Tender.can_transition(S.DRAFT, S.PUBLISHED)
    assert Tender.can_transition(S.PUBLISHED, S.AWARDED)
    assert Tender.can_transition(S.PUBLISHED, S.CLOSED)
    assert not Tender.can_transition(S.DRAFT, S.AWARDED)
    assert not Tender.can_transition(S.CLOSED, S.AWARDED)
    assert not Tender.can_transition(S.AWARDED, S.PUBLISHED)
    assert Tender(status=S.AWARDED).is_terminal
    assert not Tender(status=S.PUBLISHED).is_terminal


class TestCloseExpiredTenders:

    def test_closes_expired_tender_without_active_bids(self, make_tender, make_bid, vendor_a):
        expired = make_tender(deadline=timezone.now() - timedelta(hours=1))
        make_bid(expired, vendor_a, status=Bid.Status.WITHDRAWN)

        assert close_expired_tenders() == 1

        expired.refresh_from_db()
        assert expired.status == Tender.Status.CLOSED

    def test_keeps_expired_tender_with_bids_inside_award_window(self, make_tender, make_bid, vendor_a):
        expired = make_tender(deadline=timezone.now() - timedelta(days=1))
        make_bid(expired, vendor_a)

        assert close_expired_tenders() == 0

        expired.refresh_from_db()
        assert expired.status == Tender.Status.PUBLISHED

    def test_closes_tender_once_award_window_has_run_out(self, settings, make_tender, make_bid, vendor_a):
        settings.TENDER_AWARD_WINDOW_DAYS = 5
        stale = make_tender(deadline=timezone.now() - timedelta(days=6))
        bid = make_bid(stale, vendor_a)

        assert close_expired_tenders() == 1

        stale.refresh_from_db()
        bid.refresh_from_db()
        assert stale.status == Tender.Status.CLOSED
        assert stale.awarded_bid_id is None
        assert bid.status == Bid.Status.SUBMITTED

    def test_leaves_open_draft_and_awarded_tenders_alone(self, make_tender, make_bid, owner, vendor_a):
        past = timezone.now() - timedelta(days=60)
        still_open = make_tender()
        draft = make_tender(status=Tender.Status.DRAFT, deadline=past)
        awarded = make_tender()
        bid = make_bid(awarded, vendor_a)
        Tender.objects.filter(pk=awarded.pk).update(
            status=Tender.Status.AWARDED, awarded_bid=bid, deadline=past
        )

        assert close_expired_tenders() == 0

        for tender, expected in ((still_open, Tender.Status.PUBLISHED),
                                 (draft, Tender.Status.DRAFT),
                                 (awarded, Tender.Status.AWARDED)):
            tender.refresh_from_db()
            assert tender.status == expected

    def test_management_command_reports_result(self, make_tender):
        make_tender(deadline=timezone.now() - timedelta(minutes=5))
        out = StringIO()

        call_command('close_expired_tenders', stdout=out)
        assert 'Closed 1 expired tender(s).' in out.getvalue()

        out = StringIO()
        call_command('close_expired_tenders', stdout=out)
        assert 'No tenders to close.' in out.getvalue()


class TestInviteVendors:

    def test_invites_vendors_and_notifies_them(
            self, tender, owner, vendor_a, vendor_b, other_creator, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            invitations = invite_vendors(
                tender.pk, [vendor_a.pk, vendor_b.pk, other_creator.pk], owner, 'Please quote'
            )

        assert {i.vendor for i in invitations} == {vendor_a, vendor_b}
        assert all(i.message == 'Please quote' for i in invitations)
        notices = Notification.objects.filter(type=Notification.Type.TENDER_INVITATION)
        assert {n.user for n in notices} == {vendor_a, vendor_b}

    def test_already_invited_vendors_are_skipped(self, tender, owner, vendor_a, vendor_b):
        invite_vendors(tender.pk, [vendor_a.pk], owner)

        invitations = invite_vendors(tender.pk, [vendor_a.pk, vendor_b.pk], owner)

        assert [i.vendor for i in invitations] == [vendor_b]
        assert TenderInvitation.objects.filter(tender=tender).count() == 2

    def test_no_valid_vendors_is_a_validation_error(self, tender, owner, other_creator):
        with pytest.raises(ValidationError):
            invite_vendors(tender.pk, [other_creator.pk, 987654], owner)

    def test_only_managers_invite(self, tender, vendor_a, vendor_b):
        with pytest.raises(Forbidden):
            invite_vendors(tender.pk, [vendor_b.pk], vendor_a)

    def test_terminal_tender_cannot_invite(self, make_tender, owner, vendor_a):
        closed = make_tender(status=Tender.Status.CLOSED)

        with pytest.raises(InvalidState):
            invite_vendors(closed.pk, [vendor_a.pk], owner)
