"""
Test suite for the locations module
Tests: warehouse CRUD and activation
"""
from django.test import TestCase
from rest_framework import status
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.locations.models import Warehouse


class WarehouseAPITests(TestCase):
    """Test warehouse endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_warehouse(self):
        response = self.client.post('/api/warehouses/', {'name': 'Central Kitchen', 'city': 'Pune'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_active'])

    def test_duplicate_name_rejected(self):
        TestDataFactory.create_warehouse(name='Central Kitchen')
        response = self.client.post('/api/warehouses/', {'name': 'Central Kitchen'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        TestDataFactory.create_warehouse(name='North Store', city='Mumbai')
        TestDataFactory.create_warehouse(name='South Store', is_active=False)
        response = self.client.get('/api/warehouses/?search=mumbai')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/warehouses/?is_active=false')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'South Store')

    def test_toggle_status(self):
        warehouse = TestDataFactory.create_warehouse()
        response = self.client.patch(f'/api/warehouses/{warehouse.id}/status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        response = self.client.patch(f'/api/warehouses/{warehouse.id}/status/', {'is_active': True})
        self.assertTrue(response.data['is_active'])

    def test_delete_warehouse_with_stock_conflicts(self):
        record = TestDataFactory.create_inventory()
        response = self.client.delete(f'/api/warehouses/{record.warehouse_id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Warehouse.objects.filter(pk=record.warehouse_id).exists())

    def test_unknown_warehouse(self):
        response = self.client.get('/api/warehouses/9999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
