# tenders/views.py

import logging

from rest_framework import status, generics, permissions
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView
from django.shortcuts import get_object_or_404
from accounts.permissions import IsTenderManager, IsVendor, can_manage_tender
from notifications.models import Notification
from notifications.services import notify_on_commit
from .exceptions import Forbidden, InvalidState
from .models import Tender, Bid, Comment
from .serializers import (
    TenderSerializer, BidSerializer, BidRevisionSerializer, WithdrawBidSerializer,
    AwardSerializer, InviteVendorsSerializer, TenderInvitationSerializer, CommentSerializer,
)
from . import services

logger = logging.getLogger(__name__)


class TenderListCreateView(generics.ListCreateAPIView):
    """
    GET  → tenders visible to the caller, optionally ?status= and ?category=
    POST → new draft tender (administrators and tender creators)
    """
    serializer_class = TenderSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsTenderManager()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        tenders = Tender.objects.visible_to(self.request.user).select_related('created_by')

        status_filter = self.request.query_params.get('status')
        if status_filter:
            tenders = tenders.filter(status=status_filter)

        category = self.request.query_params.get('category')
        if category:
            tenders = tenders.filter(category=category)

        return tenders.order_by('-created_at')

    def perform_create(self, serializer):
        tender = serializer.save(created_by=self.request.user)
        logger.info("Tender created: %s by %s", tender.tender_number, self.request.user.username)


class TenderDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Retrieve any visible tender; edit or delete only your own drafts."""
    serializer_class = TenderSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Tender.objects.visible_to(self.request.user)

    def _check_editable(self, tender):
        if not can_manage_tender(self.request.user, tender):
            raise Forbidden('You can only change your own tenders.')
        if tender.status != Tender.Status.DRAFT:
            raise InvalidState(f'A {tender.status} tender can no longer be changed.')

    def perform_update(self, serializer):
        self._check_editable(serializer.instance)
        serializer.save()

    def perform_destroy(self, instance):
        self._check_editable(instance)
        logger.info("Tender deleted: %s by %s", instance.tender_number, self.request.user.username)
        instance.delete()


class PublishTenderView(APIView):
    """POST /api/tenders/<pk>/publish/"""
    permission_classes = [IsTenderManager]

    def post(self, request, pk):
        tender = services.publish_tender(pk, request.user)
        return Response(TenderSerializer(tender).data)


class AwardTenderView(APIView):
    """
    POST /api/tenders/<pk>/award/ {bid_id}
    Accepts the chosen bid and rejects every other active bid on the tender.
    """
    permission_classes = [IsTenderManager]

    def post(self, request, pk):
        serializer = AwardSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tender = services.award_tender(pk, serializer.validated_data['bid_id'], request.user)
        rejected_count = tender.bids.filter(status=Bid.Status.REJECTED).count()

        return Response({
            'message':             'Tender awarded successfully.',
            'rejected_bids_count': rejected_count,
            'tender':              TenderSerializer(tender).data,
        }, status=status.HTTP_200_OK)


class InviteVendorsView(APIView):
    """POST /api/tenders/<pk>/invite/ {vendor_ids, message}"""
    permission_classes = [IsTenderManager]

    def post(self, request, pk):
        serializer = InviteVendorsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invitations = services.invite_vendors(
            pk,
            serializer.validated_data['vendor_ids'],
            request.user,
            serializer.validated_data.get('message', ''),
        )
        return Response({
            'message':     f'Invitations sent to {len(invitations)} vendor(s).',
            'invitations': TenderInvitationSerializer(invitations, many=True).data,
        }, status=status.HTTP_201_CREATED)


class TenderBidsView(generics.ListAPIView):
    """
    Bids on one tender, cheapest first. Owners and administrators see all of
    them; vendors see their own, or every bid when the tender is open-category.
    """
    serializer_class = BidSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        tender = get_object_or_404(Tender.objects.visible_to(self.request.user), pk=self.kwargs['tender_id'])
        return (
            Bid.objects.visible_to(self.request.user)
            .filter(tender=tender)
            .select_related('vendor', 'tender')
            .order_by('amount', 'created_at')
        )


class TenderCommentsView(generics.ListCreateAPIView):
    """GET/POST /api/tenders/<tender_id>/comments/"""
    serializer_class = CommentSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_tender(self):
        if not hasattr(self, '_tender'):
            self._tender = get_object_or_404(
                Tender.objects.visible_to(self.request.user), pk=self.kwargs['tender_id']
            )
        return self._tender

    def get_queryset(self):
        return Comment.objects.filter(tender=self.get_tender()).select_related('author')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['tender'] = self.get_tender()
        return context

    def perform_create(self, serializer):
        tender = self.get_tender()
        comment = serializer.save(tender=tender, author=self.request.user)

        if tender.created_by_id != self.request.user.pk:
            notify_on_commit(Notification.Type.COMMENT_ADDED, tender.created_by_id, {
                'message': f'{self.request.user.display_name} commented on "{tender.title}"',
                'reference_id': comment.pk,
                'reference_type': 'comment',
            })


class CommentDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Authors edit their comments; authors and administrators delete them."""
    serializer_class = CommentSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        visible = Tender.objects.visible_to(self.request.user)
        return Comment.objects.filter(tender__in=visible).select_related('author', 'tender')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if 'pk' in self.kwargs:
            context['tender'] = self.get_object().tender
        return context

    def perform_update(self, serializer):
        if serializer.instance.author_id != self.request.user.pk:
            raise Forbidden('You can only edit your own comments.')
        serializer.save()

    def perform_destroy(self, instance):
        if instance.author_id != self.request.user.pk and not self.request.user.is_admin:
            raise Forbidden('You can only delete your own comments.')
        instance.delete()


class BidListCreateView(generics.ListCreateAPIView):
    """
    GET  → vendors: their own bids; tender creators: bids on their tenders;
           administrators: everything. Optional ?status= and ?tender=
    POST → submit a bid (vendors only)
    """
    serializer_class = BidSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsVendor()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        if user.is_vendor:
            bids = Bid.objects.filter(vendor=user)
        else:
            bids = Bid.objects.visible_to(user)

        status_filter = self.request.query_params.get('status')
        if status_filter:
            bids = bids.filter(status=status_filter)

        tender_id = self.request.query_params.get('tender')
        if tender_id:
            if not tender_id.isdecimal():
                raise ValidationError({'tender': 'tender must be a numeric id.'})
            bids = bids.filter(tender_id=int(tender_id))

        return bids.select_related('vendor', 'tender').order_by('-created_at')

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        bid = services.submit_bid(
            data['tender_id'],
            request.user,
            amount=data['amount'],
            notes=data.get('notes', ''),
            documents=data.get('documents'),
        )
        return Response(self.get_serializer(bid).data, status=status.HTTP_201_CREATED)


class BidDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET    → a visible bid
    PUT    → revise (vendor, own active bid, bidding still open)
    DELETE → withdraw with an optional {reason}
    """
    serializer_class = BidSerializer

    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.IsAuthenticated()]
        return [IsVendor()]

    def get_queryset(self):
        return Bid.objects.visible_to(self.request.user).select_related('vendor', 'tender')

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = BidRevisionSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        bid = services.revise_bid(
            self.kwargs['pk'],
            request.user,
            amount=data.get('amount'),
            notes=data.get('notes'),
            documents=data.get('documents'),
        )
        return Response(BidSerializer(bid).data)

    def destroy(self, request, *args, **kwargs):
        serializer = WithdrawBidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        bid = services.withdraw_bid(
            self.kwargs['pk'],
            request.user,
            reason=serializer.validated_data.get('reason', ''),
        )
        return Response({
            'message': 'Bid withdrawn successfully.',
            'bid':     BidSerializer(bid).data,
        }, status=status.HTTP_200_OK)
