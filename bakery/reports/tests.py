"""
Test suite for the reports module
Tests: report types, periods, export, caching and invalidation
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from bakery.core.models import User
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.inventory import services as inventory_services
from bakery.orders import services as order_services
from bakery.pos import services as pos_services
from bakery.production import services as production_services
from bakery.production.models import Production
from bakery.purchasing.models import PurchaseOrder
from bakery.reports.services import REPORT_BUILDERS


class ReportsTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(role=User.STORE_MANAGER)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.bread = TestDataFactory.create_product(name='Bread', selling_price=Decimal('100.00'),
                                                    cost_price=Decimal('40.00'))

    def get_report(self, report_type, period='7d'):
        response = self.client.get(f'/api/reports/?type={report_type}&period={period}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return response.data

    def sell_at_till(self, quantity=1):
        total = Decimal('108.00') * quantity
        return pos_services.checkout(
            self.user,
            items=[{'product': self.bread, 'quantity': quantity, 'unit_price': self.bread.selling_price}],
            payments=[{'method': 'CASH', 'amount': total}],
        )


class ReportAccessTests(ReportsTestCase):

    def test_every_report_type(self):
        for report_type in REPORT_BUILDERS:
            data = self.get_report(report_type)
            self.assertEqual(data['type'], report_type)
            self.assertEqual(data['period'], '7d')

    def test_defaults(self):
        response = self.client.get('/api/reports/')
        self.assertEqual(response.data['type'], 'overview')
        self.assertEqual(response.data['period'], '7d')

    def test_invalid_period(self):
        response = self.client.get('/api/reports/?type=sales&period=2w')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('period', response.data)

    def test_invalid_type(self):
        response = self.client.get('/api/reports/?type=weather')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cashier_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=User.CASHIER))
        response = self.client.get('/api/reports/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_export_is_attachment_with_metadata(self):
        response = self.client.post('/api/reports/', {'report_type': 'financial', 'period': '30d'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Disposition'].startswith('attachment; filename="financial-report-30d-'))
        self.assertEqual(response.data['type'], 'financial')
        metadata = response.data['metadata']
        self.assertEqual(metadata['report_type'], 'financial')
        self.assertEqual(metadata['generated_by'], self.user.id)
        self.assertEqual(metadata['format'], 'json')


class SalesFigureTests(ReportsTestCase):
    """Test revenue figures across orders and till sales"""

    def setUp(self):
        super().setUp()
        TestDataFactory.create_order(self.user, items=[{'product': self.bread, 'quantity': 2}])
        cancelled = TestDataFactory.create_order(self.user, items=[{'product': self.bread, 'quantity': 5}])
        order_services.cancel_order(cancelled.id)
        self.sell_at_till()

    def test_sales_report(self):
        data = self.get_report('sales')
        self.assertEqual(data['order_revenue'], Decimal('236.00'))
        self.assertEqual(data['pos_revenue'], Decimal('108.00'))
        self.assertEqual(data['total_revenue'], Decimal('344.00'))
        self.assertEqual(data['total_orders'], 2)
        self.assertEqual(data['average_order_value'], Decimal('236.00'))
        self.assertEqual(data['top_products'][0]['name'], 'Bread')
        self.assertEqual(data['top_products'][0]['sales'], 3)
        self.assertEqual(data['revenue_by_period'][-1]['date'], timezone.localdate().isoformat())
        self.assertEqual(data['revenue_by_period'][-1]['revenue'], Decimal('344.00'))

    def test_overview(self):
        data = self.get_report('overview', period='1d')
        self.assertEqual(data['total_revenue'], Decimal('344.00'))
        self.assertEqual(data['total_pos_orders'], 1)
        self.assertEqual(data['pending_orders'], 1)
        self.assertEqual(len(data['sales_trend']), 2)

    def test_customer_report(self):
        data = self.get_report('customers')
        self.assertEqual(data['total_customers'], 2)
        self.assertEqual(data['active_customers'], 1)
        self.assertEqual(data['top_customers'][0]['revenue'], Decimal('236.00'))

    def test_financial_report(self):
        po = TestDataFactory.create_purchase_order(self.user)
        PurchaseOrder.objects.filter(pk=po.pk).update(status=PurchaseOrder.ORDERED)
        TestDataFactory.create_purchase_order(self.user)

        data = self.get_report('financial')
        self.assertEqual(data['total_expenses'], Decimal('250.00'))
        self.assertEqual(data['net_profit'], Decimal('94.00'))
        self.assertEqual(data['profit_margin'], Decimal('27.33'))
        self.assertEqual(len(data['expense_breakdown']), 1)
        self.assertEqual(data['revenue_by_category'][0]['category'], 'BREAD')


class OperationsReportTests(ReportsTestCase):
    """Test inventory, production and delivery reports"""

    def test_inventory_report(self):
        record = TestDataFactory.create_inventory(product=self.bread, quantity=10, reserved_qty=2)
        inventory_services.adjust_inventory(record.id, 'remove', 3, 'damaged', self.user)
        TestDataFactory.create_inventory(quantity=0)

        data = self.get_report('inventory')
        self.assertEqual(data['total_items'], 2)
        self.assertEqual(data['total_quantity'], 7)
        self.assertEqual(data['reserved_quantity'], 2)
        self.assertEqual(data['out_of_stock_items'], 1)
        self.assertEqual(data['total_value'], Decimal('280.00'))
        self.assertEqual(data['top_moving_items'][0]['quantity'], 3)
        self.assertEqual(data['top_moving_items'][0]['value'], Decimal('300.00'))

    def test_production_report(self):
        done = TestDataFactory.create_production(self.user, planned_qty=100)
        production_services.change_production_status(done.id, Production.IN_PROGRESS)
        production_services.change_production_status(done.id, Production.COMPLETED, actual_qty=80)
        stopped = TestDataFactory.create_production(self.user)
        production_services.change_production_status(stopped.id, Production.CANCELLED)

        data = self.get_report('production')
        self.assertEqual(data['total_batches'], 2)
        self.assertEqual(data['completed_batches'], 1)
        self.assertEqual(data['cancelled_batches'], 1)
        self.assertEqual(data['average_efficiency'], 80)

    def test_delivery_report(self):
        order = TestDataFactory.create_order(self.user)
        delivery = order_services.create_delivery(order, timezone.now(), delivery_address='1 Road', city='Pune')
        order_services.set_delivery_status(delivery.id, 'DELIVERED')
        failed = order_services.create_delivery(order, timezone.now(), delivery_address='2 Road', city='Nashik')
        order_services.set_delivery_status(failed.id, 'FAILED')

        data = self.get_report('delivery')
        self.assertEqual(data['total_deliveries'], 2)
        self.assertEqual(data['completed_deliveries'], 1)
        self.assertEqual(data['failed_deliveries'], 1)
        self.assertEqual({area['area'] for area in data['top_delivery_areas']}, {'Pune', 'Nashik'})


class ReportCachingTests(ReportsTestCase):
    """Test that reports are cached until a tracked model changes"""

    def test_untracked_write_keeps_cached_report(self):
        first = self.get_report('overview')
        TestDataFactory.create_supplier()
        second = self.get_report('overview')
        self.assertEqual(first['active_suppliers'], second['active_suppliers'])

    def test_tracked_write_invalidates(self):
        first = self.get_report('overview')
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_customer()
        second = self.get_report('overview')
        self.assertEqual(second['total_customers'], first['total_customers'] + 1)

    def test_periods_cached_separately(self):
        self.sell_at_till()
        self.assertEqual(self.get_report('sales', '1d')['pos_revenue'], Decimal('108.00'))
        self.assertEqual(len(self.get_report('sales', '30d')['revenue_by_period']), 31)

    def test_cache_dropped_only_after_commit(self):
        first = self.get_report('overview')
        with self.captureOnCommitCallbacks() as callbacks:
            TestDataFactory.create_customer()
            during = self.get_report('overview')
        self.assertEqual(during['total_customers'], first['total_customers'])
        self.assertTrue(callbacks)

        for callback in callbacks:
            callback()
        after = self.get_report('overview')
        self.assertEqual(after['total_customers'], first['total_customers'] + 1)
