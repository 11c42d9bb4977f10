"""
Cache invalidation signals
Automatically invalidate report and stock caches when data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_reports_cache, invalidate_stock_cache

logger = logging.getLogger(__name__)

# Models whose writes change report figures
REPORT_MODELS = {
    'orders.Order',
    'orders.OrderItem',
    'orders.Delivery',
    'pos.POSOrder',
    'pos.POSPayment',
    'inventory.InventoryRecord',
    'production.Production',
    'purchasing.PurchaseOrder',
    'parties.Customer',
    'catalog.Product',
}

STOCK_MODELS = {
    'inventory.InventoryRecord',
    'catalog.Product',
}

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations; the caches are invalidated once on exit.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False
        invalidate_reports_cache()
        invalidate_stock_cache()


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def _invalidate_for(label):
    try:
        if label in REPORT_MODELS:
            invalidate_reports_cache()
        if label in STOCK_MODELS:
            invalidate_stock_cache()
    except Exception as e:
        logger.warning(f"Cache invalidation failed for {label}: {e}")


@receiver(post_save)
@receiver(post_delete)
def invalidate_on_change(sender, **kwargs):
    """Invalidate caches affected by a write to one of the tracked models, once the write commits"""
    if is_suspended():
        return
    label = sender._meta.label
    if label in REPORT_MODELS or label in STOCK_MODELS:
        transaction.on_commit(lambda: _invalidate_for(label))
