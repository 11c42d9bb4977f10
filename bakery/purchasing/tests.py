"""
Test suite for the purchasing module
Tests: purchase order creation, item edits, status changes, receiving into stock
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from bakery.core.models import User
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.inventory.models import InventoryRecord, InventoryMovement
from bakery.purchasing.models import PurchaseOrder


class PurchaseOrderAPITests(TestCase):
    """Test purchase order endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role=User.STORE_MANAGER)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier(name='Golden Mills')
        self.warehouse = TestDataFactory.create_warehouse()
        self.flour = TestDataFactory.create_product(name='Flour', category='OTHER')
        self.sugar = TestDataFactory.create_product(name='Sugar', category='OTHER')

    def create_po(self, **extra):
        payload = {
            'supplier': self.supplier.id,
            'warehouse': self.warehouse.id,
            'items': [
                {'product': self.flour.id, 'quantity': 10, 'unit_price': '25.00'},
                {'product': self.sugar.id, 'quantity': 4, 'unit_price': '12.50'},
            ],
        }
        payload.update(extra)
        return self.client.post('/api/purchase-orders/', payload)

    def test_create_computes_total(self):
        response = self.create_po(total_amount='1.00')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], PurchaseOrder.DRAFT)
        self.assertEqual(response.data['total_amount'], '300.00')
        self.assertTrue(response.data['po_number'].startswith('PO'))
        self.assertEqual(response.data['supplier_name'], 'Golden Mills')

    def test_inactive_supplier_rejected(self):
        self.supplier.is_active = False
        self.supplier.save()
        response = self.create_po()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_item_changes_recompute_total(self):
        po_id = self.create_po().data['id']

        response = self.client.post(f'/api/purchase-orders/{po_id}/items/', {
            'product': self.flour.id, 'quantity': 2, 'unit_price': '30.00',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['purchase_order']['total_amount'], '360.00')
        item_id = response.data['item']['id']

        response = self.client.patch(f'/api/purchase-orders/{po_id}/items/{item_id}/', {'quantity': 1})
        self.assertEqual(response.data['purchase_order']['total_amount'], '330.00')

        response = self.client.delete(f'/api/purchase-orders/{po_id}/items/{item_id}/')
        self.assertEqual(response.data['total_amount'], '300.00')

    def test_items_locked_after_receiving_starts(self):
        po = TestDataFactory.create_purchase_order(self.user, supplier=self.supplier, warehouse=self.warehouse)
        PurchaseOrder.objects.filter(pk=po.pk).update(status=PurchaseOrder.PARTIALLY_RECEIVED)
        response = self.client.post(f'/api/purchase-orders/{po.id}/items/', {
            'product': self.flour.id, 'quantity': 1, 'unit_price': '1.00',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_change(self):
        po_id = self.create_po().data['id']
        response = self.client.patch(f'/api/purchase-orders/{po_id}/status/', {'status': PurchaseOrder.APPROVED})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], PurchaseOrder.APPROVED)

    def test_terminal_status_is_final(self):
        po_id = self.create_po().data['id']
        self.client.patch(f'/api/purchase-orders/{po_id}/status/', {'status': PurchaseOrder.CANCELLED})
        response = self.client.patch(f'/api/purchase-orders/{po_id}/status/', {'status': PurchaseOrder.ORDERED})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_not_writable_through_update(self):
        po_id = self.create_po().data['id']
        response = self.client.patch(f'/api/purchase-orders/{po_id}/', {'status': PurchaseOrder.RECEIVED,
                                                                      'notes': 'Call before delivery'})
        self.assertEqual(response.data['status'], PurchaseOrder.DRAFT)
        self.assertEqual(response.data['notes'], 'Call before delivery')

    def test_filters(self):
        self.create_po()
        TestDataFactory.create_purchase_order(self.user)
        response = self.client.get(f'/api/purchase-orders/?supplier={self.supplier.id}')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/purchase-orders/?search=golden')
        self.assertEqual(response.data['count'], 1)


class ReceivingTests(TestCase):
    """Test receiving goods into stock"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.warehouse = TestDataFactory.create_warehouse()
        self.flour = TestDataFactory.create_product(name='Flour', category='OTHER')
        self.po = TestDataFactory.create_purchase_order(
            self.user, warehouse=self.warehouse,
            items=[{'product': self.flour, 'quantity': 10, 'unit_price': Decimal('25.00')}],
        )
        self.item = self.po.items.get()
        PurchaseOrder.objects.filter(pk=self.po.pk).update(status=PurchaseOrder.ORDERED)

    def receive(self, quantity=None):
        payload = {} if quantity is None else {'quantity': quantity}
        return self.client.post(f'/api/purchase-orders/{self.po.id}/items/{self.item.id}/receive/', payload)

    def test_partial_then_full_receipt(self):
        response = self.receive(4)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['received_qty'], 4)
        self.assertEqual(response.data['item']['remaining_qty'], 6)
        self.assertEqual(response.data['purchase_order']['status'], PurchaseOrder.PARTIALLY_RECEIVED)
        self.assertEqual(InventoryRecord.objects.get(product=self.flour, warehouse=self.warehouse).quantity, 4)

        response = self.receive()
        self.assertEqual(response.data['purchase_order']['status'], PurchaseOrder.RECEIVED)
        self.assertIsNotNone(response.data['purchase_order']['received_date'])
        record = InventoryRecord.objects.get(product=self.flour, warehouse=self.warehouse)
        self.assertEqual(record.quantity, 10)
        self.assertEqual(record.movements.filter(movement_type=InventoryMovement.RECEIVE).count(), 2)
        self.assertEqual(record.movements.first().reference, self.po.po_number)

    def test_receive_into_existing_record(self):
        TestDataFactory.create_inventory(product=self.flour, warehouse=self.warehouse, quantity=7)
        self.receive(3)
        self.assertEqual(InventoryRecord.objects.get(product=self.flour, warehouse=self.warehouse).quantity, 10)

    def test_over_receipt_rejected(self):
        response = self.receive(11)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(InventoryRecord.objects.exists())

    def test_nothing_left_to_receive(self):
        self.receive()
        response = self.receive()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_draft_cannot_receive(self):
        PurchaseOrder.objects.filter(pk=self.po.pk).update(status=PurchaseOrder.DRAFT)
        response = self.receive(1)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_warehouse(self):
        PurchaseOrder.objects.filter(pk=self.po.pk).update(warehouse=None)
        response = self.receive(1)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_received_goods_block_delete(self):
        self.receive(1)
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/purchase-orders/{self.po.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_received_item_cannot_be_edited_below_received(self):
        self.receive(6)
        PurchaseOrder.objects.filter(pk=self.po.pk).update(status=PurchaseOrder.ORDERED)
        response = self.client.patch(f'/api/purchase-orders/{self.po.id}/items/{self.item.id}/', {'quantity': 5})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
