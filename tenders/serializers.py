# tenders/serializers.py

from rest_framework import serializers
from django.utils import timezone
from .models import Tender, Bid, TenderInvitation, Comment
from accounts.serializers import UserSerializer


class TenderSerializer(serializers.ModelSerializer):
    created_by_details = UserSerializer(source='created_by', read_only=True)
    bid_count = serializers.SerializerMethodField()
    is_open_for_bidding = serializers.BooleanField(read_only=True)

    class Meta:
        model = Tender
        fields = [
            'id', 'tender_number', 'created_by', 'created_by_details',
            'title', 'description', 'requirements', 'category',
            'base_price', 'currency', 'deadline', 'duration',
            'status', 'awarded_bid', 'version', 'created_at', 'updated_at',
            'bid_count', 'is_open_for_bidding'
        ]
        # Status and award are moved only by the workflow endpoints
        read_only_fields = [
            'id',
            'tender_number',
            'created_by',
            'status',
            'awarded_bid',
            'version',
            'created_at',
            'updated_at'
        ]

    def get_bid_count(self, obj):
        return obj.bids.exclude(status=Bid.Status.WITHDRAWN).count()

    def validate_title(self, value):
        if len(value.strip()) < 5:
            raise serializers.ValidationError('Title must be at least 5 characters long.')
        return value

    def validate_base_price(self, value):
        if value <= 0:
            raise serializers.ValidationError('Base price must be greater than zero.')
        return value

    def validate_currency(self, value):
        if len(value) != 3 or not value.isalpha():
            raise serializers.ValidationError('Currency must be a 3-letter code.')
        return value.upper()

    def validate_deadline(self, value):
        if value <= timezone.now():
            raise serializers.ValidationError('Deadline must be in the future.')
        return value


class BidSerializer(serializers.ModelSerializer):
    # Plain id so a missing tender surfaces as 404 from the workflow, not a 400 here
    tender = serializers.IntegerField(source='tender_id')
    vendor_details = UserSerializer(source='vendor', read_only=True)
    tender_title = serializers.CharField(source='tender.title', read_only=True)
    tender_status = serializers.CharField(source='tender.status', read_only=True)
    documents = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        max_length=20,
    )

    class Meta:
        model = Bid
        fields = [
            'id',
            'tender',
            'tender_title',
            'tender_status',
            'vendor',
            'vendor_details',
            'amount',
            'currency',
            'notes',
            'documents',
            'status',
            'withdrawal_reason',
            'created_at',
            'updated_at'
        ]
        read_only_fields = [
            'id',
            'vendor',
            'currency',
            'status',
            'withdrawal_reason',
            'created_at',
            'updated_at'
        ]

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError(
                'Bid amount must be greater than zero.'
            )
        return value

    def validate_notes(self, value):
        if len(value) > 1000:
            raise serializers.ValidationError('Notes cannot exceed 1000 characters.')
        return value


class BidRevisionSerializer(BidSerializer):
    """Same fields as a bid, but the tender cannot be changed"""
    tender = serializers.IntegerField(source='tender_id', read_only=True)


class WithdrawBidSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class AwardSerializer(serializers.Serializer):
    bid_id = serializers.IntegerField(min_value=1)


class InviteVendorsSerializer(serializers.Serializer):
    vendor_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        min_length=1,
    )
    message = serializers.CharField(required=False, allow_blank=True, max_length=500)


class TenderInvitationSerializer(serializers.ModelSerializer):

    class Meta:
        model = TenderInvitation
        fields = ['id', 'tender', 'vendor', 'invited_by', 'message', 'created_at']
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source='author.display_name', read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'tender', 'author', 'author_name', 'parent', 'content', 'created_at', 'updated_at']
        read_only_fields = ['id', 'tender', 'author', 'created_at', 'updated_at']

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError('Comment cannot be empty.')
        return value

    def validate_parent(self, value):
        if value is None:
            return value

        tender = self.context.get('tender')
        if tender is None and self.instance is not None:
            tender = self.instance.tender
        if tender is not None and value.tender_id != tender.pk:
            raise serializers.ValidationError('Replies must belong to the same tender.')

        if self.instance is not None:
            # Walk up the thread so a comment never ends up replying to itself
            ancestor = value
            while ancestor is not None:
                if ancestor.pk == self.instance.pk:
                    raise serializers.ValidationError('A comment cannot reply to itself.')
                ancestor = ancestor.parent
        return value
