"""
Test suite for the inventory module
Tests: adjustments, transfers, reservations, movements, stock reports
"""
from datetime import timedelta
from unittest import mock
from django.core.cache import cache
from django.db.models import Sum
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from bakery.core.exceptions import InsufficientStock
from bakery.core.models import AuditLog, User
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.inventory import services
from bakery.inventory.models import InventoryRecord, InventoryMovement


class InventoryAPITestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(role=User.STORE_MANAGER)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(name='Multigrain Loaf', min_stock_level=10)
        self.warehouse_a = TestDataFactory.create_warehouse(name='Warehouse A')
        self.warehouse_b = TestDataFactory.create_warehouse(name='Warehouse B')
        self.record = TestDataFactory.create_inventory(
            product=self.product, warehouse=self.warehouse_a, quantity=100, reserved_qty=20
        )

    def adjust(self, adjustment_type, quantity, reason='correction', record=None):
        record = record or self.record
        return self.client.post(f'/api/inventory/{record.id}/adjust/', {
            'adjustment_type': adjustment_type, 'quantity': quantity, 'reason': reason,
        })


class InventoryAdjustTests(InventoryAPITestCase):
    """Test add, remove and set adjustments"""

    def test_remove_more_than_available_is_rejected(self):
        """Test that 90 of 80 available units cannot be removed"""
        response = self.adjust('remove', 90, reason='damaged')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('available', response.data['detail'])
        self.record.refresh_from_db()
        self.assertEqual(self.record.quantity, 100)
        self.assertFalse(self.record.movements.exists())

    def test_remove_within_available(self):
        response = self.adjust('remove', 50, reason='damaged')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inventory']['quantity'], 50)
        self.assertEqual(response.data['inventory']['available_qty'], 30)
        movement = response.data['movement']
        self.assertEqual(movement['movement_type'], InventoryMovement.REMOVE)
        self.assertEqual(movement['previous_quantity'], 100)
        self.assertEqual(movement['new_quantity'], 50)
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust', model_name='InventoryRecord').exists())

    def test_add(self):
        response = self.adjust('add', 25, reason='received')
        self.assertEqual(response.data['inventory']['quantity'], 125)

    def test_set_below_reserved_is_rejected(self):
        response = self.adjust('set', 10)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.record.refresh_from_db()
        self.assertEqual(self.record.quantity, 100)

    def test_set(self):
        response = self.adjust('set', 40, reason='count_error')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inventory']['quantity'], 40)
        self.assertEqual(response.data['movement']['movement_type'], InventoryMovement.SET)

    def test_zero_quantity_rejected(self):
        response = self.adjust('add', 0)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_reason(self):
        response = self.adjust('add', 5, reason='magic')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('reason', response.data)

    def test_unknown_record(self):
        response = self.client.post('/api/inventory/9999/adjust/', {
            'adjustment_type': 'add', 'quantity': 1, 'reason': 'other',
        })
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_manager_role(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=User.CASHIER))
        response = self.adjust('add', 5)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class InventoryTransferTests(InventoryAPITestCase):
    """Test moving stock between warehouses"""

    def transfer(self, quantity, warehouse=None):
        return self.client.post(f'/api/inventory/{self.record.id}/transfer/', {
            'to_warehouse_id': (warehouse or self.warehouse_b).id, 'quantity': quantity,
        })

    def test_transfer_creates_destination_record(self):
        response = self.transfer(30)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['source']['quantity'], 70)
        self.assertEqual(response.data['destination']['quantity'], 30)
        self.assertEqual(response.data['destination']['warehouse'], self.warehouse_b.id)

    def test_scenario_remove_then_transfer(self):
        """Test 100/20 -> remove 90 rejected -> remove 50 -> transfer 30"""
        destination = TestDataFactory.create_inventory(product=self.product, warehouse=self.warehouse_b,
                                                       quantity=5)
        self.assertEqual(self.adjust('remove', 90).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.adjust('remove', 50).status_code, status.HTTP_200_OK)
        response = self.transfer(30)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.record.refresh_from_db()
        destination.refresh_from_db()
        self.assertEqual(self.record.quantity, 20)
        self.assertEqual(self.record.reserved_qty, 20)
        self.assertEqual(destination.quantity, 35)

    def test_transfer_conserves_total(self):
        before = InventoryRecord.objects.filter(product=self.product).aggregate(total=Sum('quantity'))['total']
        self.transfer(45)
        after = InventoryRecord.objects.filter(product=self.product).aggregate(total=Sum('quantity'))['total']
        self.assertEqual(before, after)
        movement_types = set(InventoryMovement.objects.values_list('movement_type', flat=True))
        self.assertEqual(movement_types, {InventoryMovement.TRANSFER_OUT, InventoryMovement.TRANSFER_IN})

    def test_transfer_beyond_available(self):
        response = self.transfer(81)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(InventoryRecord.objects.count(), 1)

    def test_transfer_to_same_warehouse(self):
        response = self.transfer(5, warehouse=self.warehouse_a)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_transfer_to_missing_warehouse(self):
        response = self.client.post(f'/api/inventory/{self.record.id}/transfer/', {
            'to_warehouse_id': 9999, 'quantity': 5,
        })
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ReservationTests(InventoryAPITestCase):
    """Test reserve and release"""

    def test_reserve_and_release(self):
        response = self.client.post(f'/api/inventory/{self.record.id}/reserve/', {'quantity': 30, 'reference': 'ORD-1'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reserved_qty'], 50)
        self.assertEqual(response.data['available_qty'], 50)

        response = self.client.post(f'/api/inventory/{self.record.id}/release/', {'quantity': 50})
        self.assertEqual(response.data['reserved_qty'], 0)

    def test_reserve_beyond_available(self):
        response = self.client.post(f'/api/inventory/{self.record.id}/reserve/', {'quantity': 81})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_release_more_than_reserved(self):
        response = self.client.post(f'/api/inventory/{self.record.id}/release/', {'quantity': 21})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_record_with_reservation(self):
        response = self.client.delete(f'/api/inventory/{self.record.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class InventoryRecordTests(InventoryAPITestCase):
    """Test record creation, listing and movement history"""

    def test_create_record_logs_opening_stock(self):
        product = TestDataFactory.create_product()
        response = self.client.post('/api/inventory/', {
            'product': product.id, 'warehouse': self.warehouse_b.id, 'quantity': 12,
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        record = InventoryRecord.objects.get(pk=response.data['id'])
        self.assertEqual(record.movements.get().movement_type, InventoryMovement.ADD)

    def test_create_record_reserved_above_quantity(self):
        response = self.client.post('/api/inventory/', {
            'product': self.product.id, 'warehouse': self.warehouse_b.id, 'quantity': 1, 'reserved_qty': 2,
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_cannot_change_quantity(self):
        response = self.client.patch(f'/api/inventory/{self.record.id}/', {'quantity': 1, 'location': 'Shelf 3'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 100)
        self.assertEqual(response.data['location'], 'Shelf 3')

    def test_list_filter_by_warehouse(self):
        TestDataFactory.create_inventory(warehouse=self.warehouse_b)
        response = self.client.get(f'/api/inventory/?warehouse={self.warehouse_b.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_movements_newest_first(self):
        self.adjust('add', 5)
        self.adjust('remove', 3)
        response = self.client.get(f'/api/inventory/{self.record.id}/movements/')
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['results'][0]['movement_type'], InventoryMovement.REMOVE)
        self.assertEqual(response.data['results'][0]['user_email'], self.user.email)

    def test_repeated_get_is_identical(self):
        first = self.client.get('/api/inventory/')
        second = self.client.get('/api/inventory/')
        self.assertEqual(first.json(), second.json())


class StockReportTests(InventoryAPITestCase):
    """Test summary, low-stock and expiring listings"""

    def test_summary_totals_across_warehouses(self):
        TestDataFactory.create_inventory(product=self.product, warehouse=self.warehouse_b, quantity=15)
        response = self.client.get(f'/api/inventory/summary/?product={self.product.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = response.data['results'][0]
        self.assertEqual(entry['total_quantity'], 115)
        self.assertEqual(entry['reserved_quantity'], 20)
        self.assertEqual(entry['available_quantity'], 95)
        self.assertEqual(len(entry['warehouses']), 2)

    def test_summary_reflects_adjustment(self):
        self.client.get(f'/api/inventory/summary/?product={self.product.id}')
        with self.captureOnCommitCallbacks(execute=True):
            self.adjust('add', 10)
        response = self.client.get(f'/api/inventory/summary/?product={self.product.id}')
        self.assertEqual(response.data['results'][0]['total_quantity'], 110)

    def test_summary_invalid_product(self):
        response = self.client.get('/api/inventory/summary/?product=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_low_stock(self):
        scarce = TestDataFactory.create_product(name='Rye', min_stock_level=50)
        TestDataFactory.create_inventory(product=scarce, warehouse=self.warehouse_a, quantity=8)
        response = self.client.get('/api/inventory/low-stock/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['product_id'], scarce.id)
        self.assertEqual(response.data['results'][0]['shortfall'], 42)

    def test_expiring(self):
        today = timezone.localdate()
        soon = TestDataFactory.create_inventory(warehouse=self.warehouse_b, quantity=5,
                                                expiry_date=today + timedelta(days=2))
        TestDataFactory.create_inventory(warehouse=self.warehouse_b, quantity=5,
                                         expiry_date=today + timedelta(days=20))
        response = self.client.get('/api/inventory/expiring/?days=3')
        self.assertEqual(response.data['days'], 3)
        self.assertEqual([r['id'] for r in response.data['results']], [soon.id])

    def test_expiring_invalid_days(self):
        response = self.client.get('/api/inventory/expiring/?days=-1')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ConsumeStockTests(InventoryAPITestCase):
    """Test draw-down across warehouses"""

    def test_consumes_earliest_expiry_first(self):
        today = timezone.localdate()
        early = TestDataFactory.create_inventory(product=self.product, warehouse=self.warehouse_b,
                                                 quantity=10, expiry_date=today + timedelta(days=1))
        services.consume_stock(self.product, 15, self.user, reference='POS-1')
        early.refresh_from_db()
        self.record.refresh_from_db()
        self.assertEqual(early.quantity, 0)
        self.assertEqual(self.record.quantity, 95)

    def test_insufficient_stock(self):
        with self.assertRaises(InsufficientStock):
            services.consume_stock(self.product, 81, self.user)
        self.record.refresh_from_db()
        self.assertEqual(self.record.quantity, 100)


class TransferRollbackTests(InventoryAPITestCase):
    """Test that a failed transfer leaves both warehouses untouched"""

    def failing_on_transfer_in(self):
        record_movement = services._record_movement

        def fail_transfer_in(record, movement_type, *args, **kwargs):
            if movement_type == InventoryMovement.TRANSFER_IN:
                raise RuntimeError('movement log unavailable')
            return record_movement(record, movement_type, *args, **kwargs)
        return mock.patch('bakery.inventory.services._record_movement', side_effect=fail_transfer_in)

    def test_failure_on_destination_rolls_back_source(self):
        with self.failing_on_transfer_in(), self.assertRaises(RuntimeError):
            services.transfer_inventory(self.record.id, self.warehouse_b.id, 30, self.user)

        self.record.refresh_from_db()
        self.assertEqual(self.record.quantity, 100)
        self.assertFalse(InventoryRecord.objects.filter(warehouse=self.warehouse_b).exists())
        self.assertFalse(InventoryMovement.objects.exists())

    def test_failure_keeps_existing_destination(self):
        destination = TestDataFactory.create_inventory(product=self.product, warehouse=self.warehouse_b,
                                                       quantity=5)
        with self.failing_on_transfer_in(), self.assertRaises(RuntimeError):
            services.transfer_inventory(self.record.id, self.warehouse_b.id, 30, self.user)

        self.record.refresh_from_db()
        destination.refresh_from_db()
        self.assertEqual(self.record.quantity, 100)
        self.assertEqual(destination.quantity, 5)


class RecordUniquenessTests(InventoryAPITestCase):
    """Test one record per product, warehouse and batch"""

    def test_duplicate_record_conflicts(self):
        response = self.client.post('/api/inventory/', {
            'product': self.product.id, 'warehouse': self.warehouse_a.id, 'quantity': 3,
        })
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(InventoryRecord.objects.filter(product=self.product).count(), 1)

    def test_other_batch_in_same_warehouse(self):
        response = self.client.post('/api/inventory/', {
            'product': self.product.id, 'warehouse': self.warehouse_a.id, 'quantity': 3, 'batch_number': 'B-2',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_rename_batch_onto_existing(self):
        other = TestDataFactory.create_inventory(product=self.product, warehouse=self.warehouse_a,
                                                 quantity=3, batch_number='B-2')
        response = self.client.patch(f'/api/inventory/{other.id}/', {'batch_number': ''})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('batch_number', response.data)

    def test_repeated_transfers_share_destination(self):
        services.transfer_inventory(self.record.id, self.warehouse_b.id, 10, self.user)
        services.transfer_inventory(self.record.id, self.warehouse_b.id, 15, self.user)
        destination = InventoryRecord.objects.get(product=self.product, warehouse=self.warehouse_b)
        self.assertEqual(destination.quantity, 25)
