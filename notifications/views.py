from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count, Q
from django.utils.dateparse import parse_datetime
from .models import Notification
from .serializers import NotificationSerializer
from . import services


class NotificationListView(APIView):
    """
    GET /api/notifications/?unread=true&since=2026-01-01T00:00:00Z
    Clients poll with ``since`` set to the newest created_at they hold.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        notifications = Notification.objects.filter(user=request.user)

        if request.query_params.get('unread') in ('1', 'true'):
            notifications = notifications.filter(is_read=False)

        since = request.query_params.get('since')
        if since:
            since_at = parse_datetime(since)
            if since_at is None:
                return Response({'error': 'since must be an ISO 8601 timestamp.'}, status=400)
            notifications = notifications.filter(created_at__gt=since_at)

        return Response(NotificationSerializer(notifications[:100], many=True).data)


class UnreadCountView(APIView):
    """GET /api/notifications/unread-count/ → { count: N }"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'count': services.unread_count(request.user)})


class NotificationStatsView(APIView):
    """GET /api/notifications/stats/ → totals plus per-type breakdown"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        notifications = Notification.objects.filter(user=request.user)
        by_type = (
            notifications.values('type')
            .annotate(total=Count('id'), unread=Count('id', filter=Q(is_read=False)))
            .order_by('type')
        )
        return Response({
            'total': notifications.count(),
            'unread': notifications.filter(is_read=False).count(),
            'by_type': list(by_type),
        })


class MarkReadView(APIView):
    """POST /api/notifications/<id>/read/"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        updated = Notification.objects.filter(pk=pk, user=request.user).update(is_read=True)
        if not updated:
            return Response({'error': 'Notification not found.'}, status=404)
        return Response({'status': 'ok'})


class MarkAllReadView(APIView):
    """POST /api/notifications/read-all/"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        return Response({'updated': services.mark_all_read(request.user)})


class NotificationDeleteView(APIView):
    """DELETE /api/notifications/<id>/"""
    permission_classes = [IsAuthenticated]

    def delete(self, request, pk):
        deleted, _ = Notification.objects.filter(pk=pk, user=request.user).delete()
        if not deleted:
            return Response({'error': 'Notification not found.'}, status=404)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DeleteReadView(APIView):
    """DELETE /api/notifications/read/ → removes everything already read"""
    permission_classes = [IsAuthenticated]

    def delete(self, request):
        deleted, _ = Notification.objects.filter(user=request.user, is_read=True).delete()
        return Response({'deleted': deleted})
