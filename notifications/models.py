from django.db import models
from django.conf import settings


class Notification(models.Model):

    class Type(models.TextChoices):
        BID_SUBMITTED = 'bid_submitted', 'New Bid Submitted'
        BID_REVISED = 'bid_revised', 'Bid Updated'
        BID_WITHDRAWN = 'bid_withdrawn', 'Bid Withdrawn'
        BID_ACCEPTED = 'bid_accepted', 'Bid Accepted'
        BID_REJECTED = 'bid_rejected', 'Bid Not Selected'
        TENDER_INVITATION = 'tender_invitation', 'New Tender Invitation'
        COMMENT_ADDED = 'comment_added', 'New Comment'

    user           = models.ForeignKey(settings.AUTH_USER_MODEL, related_name='notifications', on_delete=models.CASCADE)
    type           = models.CharField(max_length=30, choices=Type.choices)
    title          = models.CharField(max_length=200)
    message        = models.TextField()
    reference_id   = models.PositiveBigIntegerField(null=True, blank=True)
    reference_type = models.CharField(max_length=20, blank=True)
    is_read        = models.BooleanField(default=False)
    created_at     = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.username} ← {self.type}: {self.title}"
