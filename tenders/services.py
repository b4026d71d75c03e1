# tenders/services.py
"""
Tender and bid state transitions.

Every mutation here runs inside ``transaction.atomic()`` and locks the
tender row first, so the tender is the single serialization point for
its bids. Notifications are registered with ``transaction.on_commit`` and
only fire once the unit of work has committed.

The award workflow is the only code that writes ``Bid.Status.ACCEPTED``,
``Bid.Status.REJECTED`` or ``Tender.Status.AWARDED``.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Exists, F, OuterRef, Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from accounts.models import User
from accounts.permissions import can_manage_tender
from notifications.models import Notification
from notifications.services import notify_on_commit
from .exceptions import (
    AlreadyAwarded, ConflictRetry, DeadlinePassed, DuplicateBid,
    Forbidden, InvalidState, NotFound,
)
from .models import Bid, Tender, TenderInvitation

logger = logging.getLogger(__name__)


def _locked_tender(tender_id):
    try:
        return Tender.objects.select_for_update().get(pk=tender_id)
    except Tender.DoesNotExist:
        raise NotFound('Tender not found.')


def _ensure_open_for_bidding(tender, now=None):
    if tender.status != Tender.Status.PUBLISHED:
        raise InvalidState('Tender is not open for bidding.')
    if tender.deadline_passed(now):
        raise DeadlinePassed()


def _ensure_positive_amount(amount):
    if amount <= 0:
        raise ValidationError({'amount': 'Bid amount must be greater than zero.'})


def _locked_vendor_bid(bid_id, vendor):
    """Lock the owning tender, then the bid, and check both are still changeable."""
    try:
        bid = Bid.objects.get(pk=bid_id)
    except Bid.DoesNotExist:
        raise NotFound('Bid not found.')
    if bid.vendor_id != vendor.pk:
        raise Forbidden('You can only change your own bids.')

    tender = _locked_tender(bid.tender_id)
    bid = Bid.objects.select_for_update().get(pk=bid.pk)
    bid.tender = tender

    if not bid.is_active:
        raise InvalidState(f'Bid cannot be changed because it has been {bid.status}.')
    _ensure_open_for_bidding(tender)
    return bid


# ── Bid lifecycle ──

def submit_bid(tender_id, vendor, amount, notes='', documents=None, currency=None):
    """Place a vendor's first (or post-withdrawal) bid on a published tender."""
    if not vendor.is_vendor:
        raise Forbidden('Only vendors can place bids.')
    _ensure_positive_amount(amount)

    with transaction.atomic():
        tender = _locked_tender(tender_id)
        _ensure_open_for_bidding(tender)

        active = Bid.objects.filter(tender=tender, vendor=vendor).exclude(status=Bid.Status.WITHDRAWN)
        if active.exists():
            raise DuplicateBid()

        try:
            with transaction.atomic():
                bid = Bid.objects.create(
                    tender=tender,
                    vendor=vendor,
                    amount=amount,
                    currency=currency or tender.currency,
                    notes=notes or '',
                    documents=documents or [],
                    status=Bid.Status.SUBMITTED,
                )
        except IntegrityError:
            raise DuplicateBid()

        notify_on_commit(Notification.Type.BID_SUBMITTED, tender.created_by_id, {
            'message': f'{vendor.display_name} has submitted a bid for tender "{tender.title}"',
            'reference_id': bid.pk,
            'reference_type': 'bid',
        })

    logger.info("Bid %s submitted on %s by %s", bid.pk, tender.tender_number, vendor.username)
    return bid


def revise_bid(bid_id, vendor, amount=None, notes=None, documents=None):
    """
    Change an active bid while bidding is open. Arguments left as None keep
    their current value; documents, when given, replace the existing list.
    """
    if amount is not None:
        _ensure_positive_amount(amount)

    with transaction.atomic():
        bid = _locked_vendor_bid(bid_id, vendor)

        if amount is not None:
            bid.amount = amount
        if notes is not None:
            bid.notes = notes
        if documents is not None:
            bid.documents = documents
        bid.status = Bid.Status.REVISED
        bid.save()

        notify_on_commit(Notification.Type.BID_REVISED, bid.tender.created_by_id, {
            'message': f'{vendor.display_name} has updated their bid for "{bid.tender.title}"',
            'reference_id': bid.pk,
            'reference_type': 'bid',
        })

    logger.info("Bid %s revised by %s", bid.pk, vendor.username)
    return bid


def withdraw_bid(bid_id, vendor, reason=''):
    """Withdraw an active bid; the vendor may submit a fresh one afterwards."""
    with transaction.atomic():
        bid = _locked_vendor_bid(bid_id, vendor)

        bid.status = Bid.Status.WITHDRAWN
        bid.withdrawal_reason = reason or ''
        bid.save(update_fields=['status', 'withdrawal_reason', 'updated_at'])

        notify_on_commit(Notification.Type.BID_WITHDRAWN, bid.tender.created_by_id, {
            'message': f'{vendor.display_name} has withdrawn their bid for "{bid.tender.title}"',
            'reference_id': bid.pk,
            'reference_type': 'bid',
        })

    logger.info("Bid %s withdrawn by %s", bid.pk, vendor.username)
    return bid


# ── Award workflow ──

def award_tender(tender_id, winning_bid_id, actor):
    """
    Accept one bid, reject every other active bid and mark the tender
    awarded, all in one transaction.

    The tender row is locked for the whole unit of work and the status
    change is a compare-and-set on (status, awarded_bid, version), so of
    two concurrent awards exactly one commits. The loser sees
    ``AlreadyAwarded`` once the winner's row is visible to it, or
    ``ConflictRetry`` if it read the tender before the winner committed.
    """
    with transaction.atomic():
        tender = _locked_tender(tender_id)

        if not can_manage_tender(actor, tender):
            raise Forbidden('Only the tender owner or an administrator can award this tender.')
        if tender.awarded_bid_id is not None:
            raise AlreadyAwarded()
        if tender.status != Tender.Status.PUBLISHED:
            raise InvalidState(f'Cannot award a {tender.status} tender. It must be published.')

        try:
            winner = Bid.objects.select_for_update().get(pk=winning_bid_id, tender_id=tender.pk)
        except Bid.DoesNotExist:
            raise NotFound('Bid not found on this tender.')
        if not winner.is_active:
            raise InvalidState(f'Cannot award a {winner.status} bid.')

        now = timezone.now()
        claimed = Tender.objects.filter(
            pk=tender.pk,
            status=Tender.Status.PUBLISHED,
            awarded_bid__isnull=True,
            version=tender.version,
        ).update(
            status=Tender.Status.AWARDED,
            awarded_bid=winner,
            version=F('version') + 1,
            updated_at=now,
        )
        if not claimed:
            raise ConflictRetry()

        Bid.objects.filter(pk=winner.pk).update(status=Bid.Status.ACCEPTED, updated_at=now)

        losers = list(
            Bid.objects
            .filter(tender_id=tender.pk, status__in=Bid.ACTIVE_STATUSES)
            .exclude(pk=winner.pk)
            .values_list('pk', 'vendor_id')
        )
        Bid.objects.filter(pk__in=[pk for pk, _ in losers]).update(
            status=Bid.Status.REJECTED, updated_at=now
        )

        notify_on_commit(Notification.Type.BID_ACCEPTED, winner.vendor_id, {
            'message': f'Your bid for "{tender.title}" has been accepted!',
            'reference_id': tender.pk,
            'reference_type': 'tender',
        })
        for _, vendor_id in losers:
            notify_on_commit(Notification.Type.BID_REJECTED, vendor_id, {
                'message': f'Your bid for "{tender.title}" was not selected.',
                'reference_id': tender.pk,
                'reference_type': 'tender',
            })

    logger.info(
        "Tender %s awarded to bid %s by %s; %s other bid(s) rejected",
        tender.tender_number, winner.pk, actor.username, len(losers),
    )
    tender.refresh_from_db()
    return tender


# ── Tender lifecycle ──

def publish_tender(tender_id, actor):
    """Open a draft tender for bidding."""
    with transaction.atomic():
        tender = _locked_tender(tender_id)

        if not can_manage_tender(actor, tender):
            raise Forbidden('Only the tender owner or an administrator can publish this tender.')
        if tender.status != Tender.Status.DRAFT:
            raise InvalidState('Only draft tenders can be published.')
        if tender.deadline_passed():
            raise DeadlinePassed('The deadline is in the past. Move it forward before publishing.')

        claimed = Tender.objects.filter(pk=tender.pk, status=Tender.Status.DRAFT).update(
            status=Tender.Status.PUBLISHED,
            version=F('version') + 1,
            updated_at=timezone.now(),
        )
        if not claimed:
            raise ConflictRetry()

    logger.info("Tender published: %s by %s", tender.tender_number, actor.username)
    tender.refresh_from_db()
    return tender


def close_expired_tenders(now=None):
    """
    Close published tenders whose deadline has passed and that will not be
    awarded: either nobody holds an active bid, or the award window after
    the deadline has run out too. Returns the number of tenders closed.
    """
    now = now or timezone.now()
    award_cutoff = now - timedelta(days=settings.TENDER_AWARD_WINDOW_DAYS)

    expired_ids = list(
        Tender.objects
        .filter(status=Tender.Status.PUBLISHED, deadline__lte=now)
        .annotate(has_active_bids=Exists(
            Bid.objects.filter(tender=OuterRef('pk'), status__in=Bid.ACTIVE_STATUSES)
        ))
        .filter(Q(has_active_bids=False) | Q(deadline__lte=award_cutoff))
        .values_list('pk', flat=True)
    )
    if not expired_ids:
        return 0

    with transaction.atomic():
        closed = Tender.objects.filter(pk__in=expired_ids, status=Tender.Status.PUBLISHED).update(
            status=Tender.Status.CLOSED,
            version=F('version') + 1,
            updated_at=now,
        )

    logger.info("Closed %s expired tender(s)", closed)
    return closed


def invite_vendors(tender_id, vendor_ids, actor, message=''):
    """Invite vendors to bid; vendors already invited are skipped."""
    with transaction.atomic():
        tender = _locked_tender(tender_id)

        if not can_manage_tender(actor, tender):
            raise Forbidden('Only the tender owner or an administrator can invite vendors.')
        if tender.is_terminal:
            raise InvalidState(f'Vendors cannot be invited to a {tender.status} tender.')

        vendors = list(User.objects.filter(pk__in=vendor_ids, role=User.Role.VENDOR))
        if not vendors:
            raise ValidationError({'vendor_ids': 'No valid vendors found.'})

        already_invited = set(
            TenderInvitation.objects
            .filter(tender=tender, vendor__in=vendors)
            .values_list('vendor_id', flat=True)
        )

        invitations = []
        for vendor in vendors:
            if vendor.pk in already_invited:
                continue
            invitations.append(TenderInvitation.objects.create(
                tender=tender,
                vendor=vendor,
                invited_by=actor,
                message=message or '',
            ))
            notify_on_commit(Notification.Type.TENDER_INVITATION, vendor.pk, {
                'message': f'{actor.display_name} invited you to bid on "{tender.title}"',
                'reference_id': tender.pk,
                'reference_type': 'tender',
            })

    logger.info("%s vendor(s) invited to tender %s", len(invitations), tender.tender_number)
    return invitations
