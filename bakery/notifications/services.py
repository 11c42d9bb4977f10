import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Count, Q
from django.db.models.functions import TruncDate
from django.utils import timezone

from bakery.core.exceptions import NotFound, ValidationFailed
from .models import Notification
from .senders import get_sender
from .templates import NOTIFICATION_TEMPLATES, render_template

logger = logging.getLogger(__name__)


def _success_rate(sent, failed):
    finished = sent + failed
    return round(sent / finished * 100, 2) if finished else 0


def build_notification_data(data):
    """
    Resolve a create payload. With ``template`` the type, subject and message
    come from the rendered template unless given explicitly.
    """
    data = dict(data)
    template_id = data.pop('template', '') or ''
    variables = data.pop('variables', None) or {}
    if template_id:
        if template_id not in NOTIFICATION_TEMPLATES:
            raise ValidationFailed(f"Unknown notification template '{template_id}'")
        rendered = render_template(template_id, variables)
        for key, value in rendered.items():
            if not data.get(key):
                data[key] = value
        data['template'] = template_id
    if not data.get('type'):
        raise ValidationFailed('Notification type is required')
    if not data.get('message'):
        raise ValidationFailed('Notification message is required')
    return data


def create_notification(data):
    notification = Notification.objects.create(**build_notification_data(data))
    logger.info(f"Notification {notification.id} queued: {notification.type} to {notification.recipient}")
    return notification


def create_bulk_notifications(payloads):
    """
    Create each payload independently. Returns one result per payload, in
    order, with either the created notification or the error.
    """
    results = []
    for index, payload in enumerate(payloads):
        try:
            with transaction.atomic():
                notification = create_notification(payload)
        except ValidationFailed as exc:
            results.append({'index': index, 'success': False, 'error': exc.detail})
        else:
            results.append({'index': index, 'success': True, 'notification': notification})
    return results


@transaction.atomic
def set_notification_status(notification_id, status, error_message=''):
    try:
        notification = Notification.objects.select_for_update().get(pk=notification_id)
    except Notification.DoesNotExist:
        raise NotFound('Notification not found')
    notification.status = status
    if status == Notification.SENT:
        notification.sent_at = timezone.now()
        notification.error_message = ''
    elif status == Notification.FAILED:
        notification.error_message = error_message
    notification.save()
    return notification


def process_pending_notifications(limit=None, sender=None):
    """Hand PENDING notifications to the sender; returns (sent, failed)"""
    sender = sender or get_sender()
    pending = Notification.objects.filter(status=Notification.PENDING).order_by('created_at', 'id')
    if limit:
        pending = pending[:limit]

    sent = failed = 0
    for notification in pending:
        try:
            sender.send(notification)
        except Exception as exc:
            logger.warning(f"Notification {notification.id} failed: {exc}")
            set_notification_status(notification.id, Notification.FAILED, str(exc))
            failed += 1
        else:
            set_notification_status(notification.id, Notification.SENT)
            sent += 1
    logger.info(f"Processed notifications: {sent} sent, {failed} failed")
    return sent, failed


def notification_summary():
    notifications = Notification.objects.all()
    by_status = {row['status']: row['count'] for row in
                 notifications.values('status').annotate(count=Count('id')).order_by('status')}
    by_type = {row['type']: row['count'] for row in
               notifications.values('type').annotate(count=Count('id')).order_by('type')}
    sent = by_status.get(Notification.SENT, 0)
    failed = by_status.get(Notification.FAILED, 0)
    return {
        'total': notifications.count(),
        'pending': by_status.get(Notification.PENDING, 0),
        'sent': sent,
        'failed': failed,
        'by_status': by_status,
        'by_type': by_type,
        'success_rate': _success_rate(sent, failed),
    }


def notification_stats(days=7):
    """Per-day counts for the last ``days`` days, oldest first"""
    today = timezone.localdate()
    first_day = today - timedelta(days=days - 1)
    rows = (Notification.objects
            .filter(created_at__date__gte=first_day)
            .annotate(day=TruncDate('created_at'))
            .values('day')
            .annotate(
                total=Count('id'),
                sent=Count('id', filter=Q(status=Notification.SENT)),
                failed=Count('id', filter=Q(status=Notification.FAILED)),
                pending=Count('id', filter=Q(status=Notification.PENDING)),
            )
            .order_by('day'))
    by_day = {row['day']: row for row in rows}

    daily = []
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        row = by_day.get(day, {'total': 0, 'sent': 0, 'failed': 0, 'pending': 0})
        daily.append({
            'date': day.isoformat(),
            'total': row['total'],
            'sent': row['sent'],
            'failed': row['failed'],
            'pending': row['pending'],
            'success_rate': _success_rate(row['sent'], row['failed']),
        })

    sent = sum(day['sent'] for day in daily)
    failed = sum(day['failed'] for day in daily)
    return {
        'days': days,
        'total': sum(day['total'] for day in daily),
        'sent': sent,
        'failed': failed,
        'success_rate': _success_rate(sent, failed),
        'daily': daily,
    }
