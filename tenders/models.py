# tenders/models.py

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from accounts.models import User


class TenderQuerySet(models.QuerySet):

    def visible_to(self, user):
        """
        Drafts are private to their owner and administrators;
        everything else is visible to every signed-in user.
        """
        role = User.Role(user.role)
        if role is User.Role.ADMIN:
            return self.all()
        elif role is User.Role.TENDER_CREATOR:
            return self.filter(Q(created_by=user) | ~Q(status=Tender.Status.DRAFT))
        elif role is User.Role.VENDOR:
            return self.exclude(status=Tender.Status.DRAFT)
        raise ValueError(f"Unhandled role: {role}")


class BidQuerySet(models.QuerySet):

    def visible_to(self, user):
        """
        Vendors see their own bids plus every bid on an open-category tender;
        tender creators see bids on tenders they own.
        """
        role = User.Role(user.role)
        if role is User.Role.ADMIN:
            return self.all()
        elif role is User.Role.TENDER_CREATOR:
            return self.filter(tender__created_by=user)
        elif role is User.Role.VENDOR:
            return self.filter(
                Q(vendor=user)
                | (Q(tender__category=Tender.Category.OPEN) & ~Q(tender__status=Tender.Status.DRAFT))
            )
        raise ValueError(f"Unhandled role: {role}")


class Tender(models.Model):
    """
    A procurement request. Moves draft -> published -> closed | awarded;
    closed and awarded are terminal.
    """

    class Category(models.TextChoices):
        OPEN = 'open', 'Open (bids visible to vendors)'
        CLOSED = 'closed', 'Closed (bids private)'

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'
        CLOSED = 'closed', 'Closed'
        AWARDED = 'awarded', 'Awarded'

    TRANSITIONS = {
        Status.DRAFT: {Status.PUBLISHED},
        Status.PUBLISHED: {Status.CLOSED, Status.AWARDED},
        Status.CLOSED: set(),
        Status.AWARDED: set(),
    }

    # Auto-generated tender number
    tender_number = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Auto-generated tender number"
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tenders',
    )

    title = models.CharField(max_length=200)
    description = models.TextField()
    requirements = models.TextField(blank=True)

    category = models.CharField(
        max_length=10,
        choices=Category.choices,
        default=Category.OPEN,
        help_text="Bid visibility mode"
    )

    base_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    currency = models.CharField(max_length=3, default='USD')

    deadline = models.DateTimeField(help_text="Bids are accepted until this moment")
    duration = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Contract duration in days"
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT
    )

    # Written only by the award workflow, together with status=awarded
    awarded_bid = models.OneToOneField(
        'Bid',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='awarded_tender',
    )

    # Bumped on every status change; compared on award
    version = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenderQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Tender'
        verbose_name_plural = 'Tenders'
        constraints = [
            models.CheckConstraint(
                condition=(
                    (Q(status='awarded') & Q(awarded_bid__isnull=False))
                    | (~Q(status='awarded') & Q(awarded_bid__isnull=True))
                ),
                name='tender_awarded_bid_iff_awarded',
            ),
            models.CheckConstraint(
                condition=Q(base_price__gt=0),
                name='tender_base_price_positive',
            ),
        ]

    def __str__(self):
        return f"{self.tender_number} - {self.title}"

    def save(self, *args, **kwargs):
        if not self.tender_number:
            self.tender_number = self.next_tender_number()
        super().save(*args, **kwargs)

    @classmethod
    def next_tender_number(cls):
        """TND-001, TND-002, ... continuing from the newest tender"""
        last_tender = cls.objects.order_by('-id').first()
        new_number = 1
        if last_tender and last_tender.tender_number:
            try:
                new_number = int(last_tender.tender_number.split('-')[1]) + 1
            except (IndexError, ValueError):
                pass
        return f"TND-{new_number:03d}"

    @classmethod
    def can_transition(cls, from_status, to_status):
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @property
    def is_terminal(self):
        return not self.TRANSITIONS[self.status]

    def deadline_passed(self, now=None):
        return (now or timezone.now()) >= self.deadline

    @property
    def is_open_for_bidding(self):
        return self.status == self.Status.PUBLISHED and not self.deadline_passed()


class Bid(models.Model):
    """
    A vendor's priced proposal against a tender.
    """

    class Status(models.TextChoices):
        SUBMITTED = 'submitted', 'Submitted'
        REVISED = 'revised', 'Revised'
        ACCEPTED = 'accepted', 'Accepted'
        REJECTED = 'rejected', 'Rejected'
        WITHDRAWN = 'withdrawn', 'Withdrawn'

    ACTIVE_STATUSES = (Status.SUBMITTED, Status.REVISED)

    tender = models.ForeignKey(
        Tender,
        on_delete=models.CASCADE,
        related_name='bids'
    )

    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bids',
    )

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    currency = models.CharField(max_length=3, default='USD')

    notes = models.TextField(blank=True)

    # Opaque file references; storage is handled elsewhere
    documents = models.JSONField(default=list, blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SUBMITTED
    )
    withdrawal_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BidQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['tender', 'vendor'],
                condition=~Q(status='withdrawn'),
                name='unique_active_bid_per_vendor',
            ),
            models.UniqueConstraint(
                fields=['tender'],
                condition=Q(status='accepted'),
                name='unique_accepted_bid_per_tender',
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name='bid_amount_positive',
            ),
        ]

    def __str__(self):
        return f"Bid by {self.vendor.username} on {self.tender.tender_number}"

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES


class TenderInvitation(models.Model):
    tender = models.ForeignKey(Tender, on_delete=models.CASCADE, related_name='invitations')
    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tender_invitations',
    )
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_invitations',
    )
    message = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        unique_together = ['tender', 'vendor']

    def __str__(self):
        return f"{self.vendor.username} invited to {self.tender.tender_number}"


class Comment(models.Model):
    tender = models.ForeignKey(Tender, on_delete=models.CASCADE, related_name='comments')
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tender_comments',
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='replies',
    )
    content = models.TextField(max_length=1000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.author.username} on {self.tender.tender_number}: {self.content[:40]}"
