# notifications/services.py

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.db import transaction

from .models import Notification

logger = logging.getLogger(__name__)

_mail_executor = ThreadPoolExecutor(
    max_workers=settings.NOTIFICATION_MAIL_WORKERS,
    thread_name_prefix='notification-mail',
)


def _send_email(event, recipient_id, address, title, message):
    try:
        send_mail(title, message, None, [address])
    except Exception:
        logger.exception("Could not email %s notification to user %s", event.value, recipient_id)


def notify(event, recipient_id, payload):
    """
    Fan one event out to a user: an in-app notification plus an email.

    ``payload`` carries ``message`` and optionally ``title``,
    ``reference_id`` and ``reference_type``. Delivery problems are logged
    and swallowed; callers never see them. With
    ``NOTIFICATION_EMAIL_ASYNC`` on, the email goes out on a background
    worker and the caller does not wait for SMTP.
    """
    event = Notification.Type(event)
    title = payload.get('title') or event.label
    message = payload['message']

    notification = None
    try:
        notification = Notification.objects.create(
            user_id=recipient_id,
            type=event,
            title=title,
            message=message,
            reference_id=payload.get('reference_id'),
            reference_type=payload.get('reference_type', ''),
        )
        logger.info("Notification created for user %s: %s", recipient_id, event.value)
    except Exception:
        logger.exception("Could not store %s notification for user %s", event.value, recipient_id)

    try:
        address = (
            get_user_model().objects
            .filter(pk=recipient_id)
            .values_list('email', flat=True)
            .first()
        )
        if address:
            if settings.NOTIFICATION_EMAIL_ASYNC:
                _mail_executor.submit(_send_email, event, recipient_id, address, title, message)
            else:
                _send_email(event, recipient_id, address, title, message)
    except Exception:
        logger.exception("Could not email %s notification to user %s", event.value, recipient_id)

    return notification


def notify_on_commit(event, recipient_id, payload):
    """Defer ``notify`` until the surrounding transaction commits."""
    transaction.on_commit(partial(notify, event, recipient_id, payload))


def unread_count(user):
    return Notification.objects.filter(user=user, is_read=False).count()


def mark_all_read(user):
    updated = Notification.objects.filter(user=user, is_read=False).update(is_read=True)
    logger.info("Marked %s notifications as read for user %s", updated, user.pk)
    return updated
