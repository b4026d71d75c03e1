from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from notifications.models import Notification
from notifications.services import mark_all_read, notify, unread_count


@pytest.fixture
def notice(vendor_a):
    def _make(type=Notification.Type.BID_ACCEPTED, is_read=False, user=None):
        return Notification.objects.create(
            user=user or vendor_a, type=type, title='Bid Accepted',
            message='Your bid for "Road resurfacing" has been accepted!', is_read=is_read,
        )
    return _make


def test_notify_stores_notification_and_sends_email(vendor_a, mailoutbox):
    created = notify(Notification.Type.BID_REJECTED, vendor_a.pk, {
        'message': 'Your bid was not selected.',
        'reference_id': 7,
        'reference_type': 'tender',
    })

    assert created.title == 'Bid Not Selected'
    assert created.reference_id == 7
    assert mailoutbox[0].to == ['vendor_a@example.com']
    assert mailoutbox[0].subject == 'Bid Not Selected'


def test_notify_swallows_delivery_failures(vendor_a):
    with mock.patch('notifications.services.send_mail', side_effect=OSError('smtp down')), \
            mock.patch('notifications.services.logger') as logger:
        created = notify(Notification.Type.COMMENT_ADDED, vendor_a.pk, {'message': 'hi', 'title': 'Ping'})

    assert created.title == 'Ping'
    logger.exception.assert_called_once()


def test_email_goes_to_background_worker_when_async(settings, vendor_a, mailoutbox):
    settings.NOTIFICATION_EMAIL_ASYNC = True

    with mock.patch('notifications.services._mail_executor') as executor:
        created = notify(Notification.Type.BID_ACCEPTED, vendor_a.pk, {'message': 'You won.'})

    assert created.pk is not None
    assert mailoutbox == []
    executor.submit.assert_called_once()
    send, *args = executor.submit.call_args.args
    send(*args)
    assert mailoutbox[0].to == ['vendor_a@example.com']
    assert mailoutbox[0].body == 'You won.'


def test_unread_count_and_mark_all_read(vendor_a, vendor_b, notice):
    notice()
    notice()
    notice(is_read=True)
    notice(user=vendor_b)

    assert unread_count(vendor_a) == 2
    assert mark_all_read(vendor_a) == 2
    assert unread_count(vendor_a) == 0
    assert unread_count(vendor_b) == 1


class TestNotificationEndpoints:

    def test_list_only_shows_own_notifications(self, client_for, vendor_a, vendor_b, notice):
        mine = notice()
        notice(user=vendor_b)

        response = client_for(vendor_a).get('/api/notifications/')

        assert response.status_code == 200
        assert [n['id'] for n in response.data] == [mine.pk]

    def test_unread_filter(self, client_for, vendor_a, notice):
        unread = notice()
        notice(is_read=True)

        response = client_for(vendor_a).get('/api/notifications/', {'unread': 'true'})

        assert [n['id'] for n in response.data] == [unread.pk]

    def test_polling_with_since_returns_only_newer(self, client_for, vendor_a, notice):
        old = notice()
        Notification.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(hours=1))
        fresh = notice()
        since = (timezone.now() - timedelta(minutes=5)).isoformat()

        response = client_for(vendor_a).get('/api/notifications/', {'since': since})

        assert [n['id'] for n in response.data] == [fresh.pk]

    def test_bad_since_is_rejected(self, client_for, vendor_a):
        response = client_for(vendor_a).get('/api/notifications/', {'since': 'yesterday'})

        assert response.status_code == 400

    def test_unread_count_and_stats(self, client_for, vendor_a, notice):
        notice()
        notice(type=Notification.Type.TENDER_INVITATION)
        notice(is_read=True)
        client = client_for(vendor_a)

        assert client.get('/api/notifications/unread-count/').data == {'count': 2}
        stats = client.get('/api/notifications/stats/').data
        assert stats['total'] == 3
        assert stats['unread'] == 2
        assert {row['type']: row['unread'] for row in stats['by_type']} == {
            'bid_accepted': 1, 'tender_invitation': 1,
        }

    def test_mark_read_and_read_all(self, client_for, vendor_a, vendor_b, notice):
        first = notice()
        notice()
        foreign = notice(user=vendor_b)
        client = client_for(vendor_a)

        assert client.post(f'/api/notifications/{first.pk}/read/').status_code == 200
        assert client.post(f'/api/notifications/{foreign.pk}/read/').status_code == 404
        assert client.post('/api/notifications/read-all/').data == {'updated': 1}
        assert not Notification.objects.filter(user=vendor_a, is_read=False).exists()
        foreign.refresh_from_db()
        assert not foreign.is_read

    def test_delete_one_and_delete_read(self, client_for, vendor_a, notice):
        target = notice()
        notice(is_read=True)
        notice(is_read=True)
        keep = notice()
        client = client_for(vendor_a)

        assert client.delete(f'/api/notifications/{target.pk}/').status_code == 204
        assert client.delete(f'/api/notifications/{target.pk}/').status_code == 404
        assert client.delete('/api/notifications/read/').data == {'deleted': 2}
        assert list(Notification.objects.filter(user=vendor_a)) == [keep]

    def test_requires_authentication(self, api_client, db):
        assert api_client.get('/api/notifications/').status_code == 401
