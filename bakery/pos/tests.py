"""
Test suite for the POS module
Tests: checkout, payments, receipts, cashier sessions, offline sync, duplicate check, daily report
"""
from datetime import timedelta
from unittest import mock
from decimal import Decimal
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from bakery.core.models import AuditLog, User
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.inventory.models import InventoryRecord
from bakery.pos import services
from bakery.pos.models import POSOrder, POSPayment, POSReceipt, POSSession


class POSTestCase(TestCase):

    def setUp(self):
        self.cashier = TestDataFactory.create_user(role=User.CASHIER)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.cashier)
        self.bread = TestDataFactory.create_product(name='Bread', selling_price=Decimal('100.00'))
        self.bun = TestDataFactory.create_product(name='Bun', selling_price=Decimal('50.00'))

    def checkout(self, paid='300.00', method=POSPayment.CASH, **extra):
        payload = {
            'items': [
                {'product': self.bread.id, 'quantity': 2},
                {'product': self.bun.id, 'quantity': 1},
            ],
            'payments': [{'method': method, 'amount': paid}],
        }
        payload.update(extra)
        return self.client.post('/api/pos/orders/', payload)


class CheckoutTests(POSTestCase):
    """Test till checkout"""

    def test_checkout_totals_and_change(self):
        response = self.checkout()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], POSOrder.COMPLETED)
        self.assertEqual(response.data['subtotal'], '250.00')
        self.assertEqual(response.data['tax_amount'], '20.00')
        self.assertEqual(response.data['total_amount'], '270.00')
        self.assertEqual(response.data['paid_amount'], '300.00')
        self.assertEqual(response.data['change_amount'], '30.00')
        self.assertTrue(response.data['order_number'].startswith('POS-'))
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(len(response.data['payments']), 1)

    def test_checkout_prints_receipt(self):
        order_id = self.checkout().data['id']
        receipt = POSReceipt.objects.get(order_id=order_id)
        self.assertEqual(receipt.type, POSReceipt.PRINT)
        self.assertIn('Total: 270.00', receipt.content)
        self.assertIn('Change: 30.00', receipt.content)

    def test_underpayment_rejected(self):
        response = self.checkout(paid='269.99')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Insufficient payment', response.data['detail'])
        self.assertFalse(POSOrder.objects.exists())

    def test_split_payment(self):
        response = self.checkout(payments=[
            {'method': POSPayment.CARD, 'amount': '200.00'},
            {'method': POSPayment.UPI, 'amount': '70.00', 'reference': 'UPI-991'},
        ])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['change_amount'], '0.00')

    def test_discounts_recorded_not_applied(self):
        response = self.checkout(discount_amount='10.00')
        self.assertEqual(response.data['discount_amount'], '10.00')
        self.assertEqual(response.data['total_amount'], '270.00')

    def test_empty_cart(self):
        response = self.checkout(items=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_checkout_attaches_active_session(self):
        session = TestDataFactory.create_pos_session(self.cashier)
        response = self.checkout()
        self.assertEqual(response.data['session'], session.id)

    def test_online_checkout_leaves_stock(self):
        record = TestDataFactory.create_inventory(product=self.bread, quantity=10)
        self.checkout()
        record.refresh_from_db()
        self.assertEqual(record.quantity, 10)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.checkout()
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_status_is_audited(self):
        order_id = self.checkout().data['id']
        response = self.client.patch(f'/api/pos/orders/{order_id}/', {'status': POSOrder.REFUNDED})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], POSOrder.REFUNDED)
        self.assertTrue(AuditLog.objects.filter(model_name='POSOrder', action='update').exists())

    def test_list_filters(self):
        self.checkout()
        self.checkout(is_offline=True)
        response = self.client.get('/api/pos/orders/?is_offline=true')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get(f'/api/pos/orders/?date={timezone.localdate().isoformat()}')
        self.assertEqual(response.data['count'], 2)


class PaymentTests(POSTestCase):
    """Test payments added after checkout"""

    def setUp(self):
        super().setUp()
        self.order = POSOrder.objects.create(order_number='POS-TEST-001', cashier=self.cashier,
                                             total_amount=Decimal('100.00'))

    def pay(self, amount, order=None):
        return self.client.post('/api/pos/payments/', {
            'order': (order or self.order).id, 'method': POSPayment.CASH, 'amount': amount,
        })

    def test_partial_then_full_payment(self):
        response = self.pay('40.00')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order']['status'], POSOrder.IN_PROGRESS)
        self.assertEqual(response.data['order']['paid_amount'], '40.00')

        response = self.pay('70.00')
        self.assertEqual(response.data['order']['status'], POSOrder.COMPLETED)
        self.assertEqual(response.data['order']['change_amount'], '10.00')

    def test_payment_on_cancelled_order(self):
        self.order.status = POSOrder.CANCELLED
        self.order.save()
        response = self.pay('10.00')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_zero_payment(self):
        response = self.pay('0.00')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_payments_by_order(self):
        self.pay('10.00')
        self.checkout()
        response = self.client.get(f'/api/pos/payments/?order={self.order.id}')
        self.assertEqual(response.data['count'], 1)


class ReceiptTests(POSTestCase):

    def test_generate_and_list(self):
        order_id = self.checkout().data['id']
        response = self.client.post('/api/pos/receipts/', {'order': order_id, 'type': POSReceipt.EMAIL})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['receipt_number'].startswith('RCP-'))

        response = self.client.get(f'/api/pos/receipts/?order={order_id}')
        self.assertEqual(len(response.data), 2)

    def test_list_requires_order(self):
        response = self.client.get('/api/pos/receipts/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'detail': 'order query parameter is required'})


class SessionTests(POSTestCase):
    """Test cashier sessions"""

    def test_start_closes_previous_session(self):
        first = self.client.post('/api/pos/session/', {'starting_cash': '500.00'})
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        second = self.client.post('/api/pos/session/', {'starting_cash': '250.00'})
        self.assertEqual(POSSession.objects.filter(cashier=self.cashier, is_active=True).count(), 1)
        self.assertFalse(POSSession.objects.get(pk=first.data['id']).is_active)

        response = self.client.get('/api/pos/session/active/')
        self.assertEqual(response.data['session']['id'], second.data['id'])

    def test_end_session_totals_sales(self):
        self.client.post('/api/pos/session/', {'starting_cash': '500.00'})
        self.checkout()
        self.checkout(paid='270.00')
        response = self.client.patch('/api/pos/session/', {'ending_cash': '1040.00', 'notes': 'Balanced'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        self.assertEqual(response.data['total_sales'], '540.00')
        self.assertEqual(response.data['total_transactions'], 2)
        self.assertIsNotNone(response.data['end_time'])

    def test_end_without_active_session(self):
        response = self.client.patch('/api/pos/session/', {'ending_cash': '0.00'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_end_closed_session(self):
        session = TestDataFactory.create_pos_session(self.cashier, is_active=False)
        response = self.client.patch('/api/pos/session/', {'session_id': session.id, 'ending_cash': '0.00'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_no_active_session(self):
        response = self.client.get('/api/pos/session/active/')
        self.assertIsNone(response.data['session'])

    def test_history_scoped_to_cashier(self):
        other = TestDataFactory.create_user(role=User.CASHIER)
        TestDataFactory.create_pos_session(other)
        TestDataFactory.create_pos_session(self.cashier)

        response = self.client.get(f'/api/pos/session/?cashier={other.id}')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['cashier'], self.cashier.id)

        self.client.authenticate_user(TestDataFactory.create_user(role=User.STORE_MANAGER))
        response = self.client.get(f'/api/pos/session/?cashier={other.id}')
        self.assertEqual(response.data['results'][0]['cashier'], other.id)


class UtilityTests(POSTestCase):
    """Test offline sync and duplicate detection"""

    def test_sync_offline_orders(self):
        record = TestDataFactory.create_inventory(product=self.bread, quantity=10)
        TestDataFactory.create_inventory(product=self.bun, quantity=5)
        order_id = self.checkout(is_offline=True).data['id']

        response = self.client.post('/api/pos/utils/', {'action': 'sync'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'synced': 1, 'errors': []})
        record.refresh_from_db()
        self.assertEqual(record.quantity, 8)
        self.assertIsNotNone(POSOrder.objects.get(pk=order_id).synced_at)

        response = self.client.post('/api/pos/utils/', {'action': 'sync'})
        self.assertEqual(response.data['synced'], 0)

    def test_sync_reports_shortage_and_rolls_back(self):
        record = TestDataFactory.create_inventory(product=self.bread, quantity=10)
        self.checkout(is_offline=True)
        with self.assertLogs('bakery.pos.services', level='WARNING'):
            response = self.client.post('/api/pos/utils/', {'action': 'sync'})
        self.assertEqual(response.data['synced'], 0)
        self.assertEqual(len(response.data['errors']), 1)
        record.refresh_from_db()
        self.assertEqual(record.quantity, 10)
        self.assertEqual(InventoryRecord.objects.count(), 1)

    def test_check_duplicates(self):
        customer = TestDataFactory.create_customer()
        self.checkout(customer=customer.id)
        response = self.client.post('/api/pos/utils/', {'action': 'check-duplicates', 'customer': customer.id})
        self.assertFalse(response.data['has_duplicates'])

        self.checkout(customer=customer.id)
        response = self.client.post('/api/pos/utils/', {'action': 'check-duplicates', 'customer': customer.id})
        self.assertTrue(response.data['has_duplicates'])
        self.assertEqual(response.data['time_window'], 5)
        self.assertEqual(len(response.data['orders']), 2)

    def test_check_duplicates_ignores_old_orders(self):
        order_id = self.checkout().data['id']
        POSOrder.objects.filter(pk=order_id).update(created_at=timezone.now() - timedelta(minutes=30))
        self.checkout()
        response = self.client.post('/api/pos/utils/', {'action': 'check-duplicates', 'time_window': 10})
        self.assertEqual(len(response.data['orders']), 1)

    def test_invalid_action(self):
        response = self.client.post('/api/pos/utils/', {'action': 'reboot'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DailyReportTests(POSTestCase):

    def test_daily_report(self):
        self.checkout()
        self.checkout(method=POSPayment.CARD, paid='270.00')
        cancelled = self.checkout().data['id']
        POSOrder.objects.filter(pk=cancelled).update(status=POSOrder.CANCELLED)

        response = self.client.get('/api/pos/reports/daily/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['date'], timezone.localdate().isoformat())
        self.assertEqual(response.data['total_sales'], Decimal('540.00'))
        self.assertEqual(response.data['total_orders'], 2)
        self.assertEqual(response.data['total_transactions'], 2)
        self.assertEqual(response.data['payment_method_breakdown'],
                         {POSPayment.CARD: Decimal('270.00'), POSPayment.CASH: Decimal('300.00')})
        top = response.data['top_products'][0]
        self.assertEqual(top['product_name'], 'Bread')
        self.assertEqual(top['quantity'], 4)
        self.assertEqual(top['revenue'], Decimal('400.00'))

    def test_other_day_is_empty(self):
        self.checkout()
        yesterday = (timezone.localdate() - timedelta(days=1)).isoformat()
        response = self.client.get(f'/api/pos/reports/daily/?date={yesterday}')
        self.assertEqual(response.data['total_orders'], 0)
        self.assertEqual(response.data['total_sales'], Decimal('0.00'))

    def test_invalid_date(self):
        response = self.client.get('/api/pos/reports/daily/?date=someday')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ReceiptFailureTests(POSTestCase):
    """Test that a failed receipt never fails the sale"""

    def test_render_error_still_completes_checkout(self):
        with mock.patch('bakery.pos.services.render_receipt', side_effect=ValueError('template broke')), \
                self.assertLogs('bakery.pos.services', level='WARNING') as logs:
            response = self.checkout()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], POSOrder.COMPLETED)
        self.assertEqual(POSOrder.objects.count(), 1)
        self.assertFalse(POSReceipt.objects.exists())
        self.assertIn('could not be generated', logs.output[0])

    def test_database_error_still_completes_checkout(self):
        with mock.patch('bakery.pos.services.generate_receipt', side_effect=DatabaseError('disk full')), \
                self.assertLogs('bakery.pos.services', level='WARNING'):
            order = services.checkout(
                self.cashier,
                items=[{'product': self.bread, 'quantity': 1, 'unit_price': self.bread.selling_price}],
                payments=[{'method': POSPayment.CASH, 'amount': Decimal('108.00')}],
            )
        self.assertTrue(POSOrder.objects.filter(pk=order.pk, status=POSOrder.COMPLETED).exists())
        self.assertEqual(order.change_amount, Decimal('0.00'))
