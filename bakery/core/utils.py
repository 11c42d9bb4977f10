"""Shared helpers: audit logging, document numbering and money rounding"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import DatabaseError, transaction
from django.utils import timezone

from .models import AuditLog

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def quantize_money(value):
    """Round a monetary amount to two decimal places, half up"""
    if value is None:
        return Decimal('0.00')
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def round_percent(part, whole):
    """``part`` as a whole-number percentage of ``whole``, halves rounded up; 0 when ``whole`` is 0"""
    if not whole:
        return 0
    return int((Decimal(part) * 100 / Decimal(whole)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def generate_sequence_number(model, field_name, prefix):
    """
    Build a day-scoped document number such as ``ORD20240315007``.

    The sequence restarts every day; if the counted slot is already taken
    (deletions, concurrent inserts) the next free one is used.
    """
    base = f"{prefix}{timezone.now().strftime('%Y%m%d')}"
    seq = model.objects.filter(**{f'{field_name}__startswith': base}).count() + 1
    number = f'{base}{seq:03d}'
    while model.objects.filter(**{field_name: number}).exists():
        seq += 1
        number = f'{base}{seq:03d}'
    return number


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry.

    Args:
        request: request the action came from (user and IP are taken from it)
        action: one of ``AuditLog.ACTION_CHOICES``
        model_name: name of the model acted upon
        object_id: primary key of the object
        changes: dict describing what changed
        user: explicit actor, overrides ``request.user``
        object_name: human readable label (product name, order number)
        object_reference: secondary reference (batch number, PO number)

    Failures are logged and swallowed so the audited operation still succeeds.
    """
    if not action or not model_name or object_id is None:
        logger.warning(
            f"Audit log skipped: missing required fields "
            f"(action={action}, model_name={model_name}, object_id={object_id})"
        )
        return None

    audit_user = user
    if audit_user is None and request is not None:
        audit_user = getattr(request, 'user', None)
    if audit_user is not None and not audit_user.is_authenticated:
        audit_user = None

    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                user=audit_user,
                action=action,
                model_name=model_name,
                object_id=str(object_id),
                object_name=object_name,
                object_reference=object_reference,
                changes=changes or {},
                ip_address=get_client_ip(request),
            )
    except (DatabaseError, TypeError, ValueError) as e:
        logger.warning(f"Failed to create audit log for {model_name}#{object_id}: {e}")
        return None
