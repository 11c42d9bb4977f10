"""
Test suite for the catalog module
Tests: product CRUD, filtering, status changes, storefront listing
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from bakery.catalog.models import Product
from bakery.core.models import User
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ProductAPITests(TestCase):
    """Test product endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_product(self):
        response = self.client.post('/api/products/', {
            'sku': 'BRD-001',
            'name': 'Sourdough Loaf',
            'category': 'BREAD',
            'base_price': '80.00',
            'selling_price': '120.00',
            'min_stock_level': 10,
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sku'], 'BRD-001')
        self.assertEqual(response.data['status'], 'ACTIVE')

    def test_create_product_duplicate_sku(self):
        TestDataFactory.create_product(sku='BRD-001')
        response = self.client.post('/api/products/', {
            'sku': 'BRD-001', 'name': 'Other', 'base_price': '1.00', 'selling_price': '1.00',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sku', response.data)

    def test_max_stock_level_below_min(self):
        response = self.client.post('/api/products/', {
            'sku': 'CAKE-1', 'name': 'Cake', 'base_price': '1.00', 'selling_price': '1.00',
            'min_stock_level': 10, 'max_stock_level': 5,
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('max_stock_level', response.data)

    def test_list_products_search_and_category(self):
        TestDataFactory.create_product(name='Butter Croissant', category='PASTRY')
        TestDataFactory.create_product(name='Rye Bread', category='BREAD')
        response = self.client.get('/api/products/?search=croissant')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Butter Croissant')

        response = self.client.get('/api/products/?category=BREAD')
        self.assertEqual(response.data['count'], 1)

    def test_invalid_filter_value(self):
        response = self.client.get('/api/products/?category=PIZZA')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_product(self):
        product = TestDataFactory.create_product()
        response = self.client.patch(f'/api/products/{product.id}/', {'selling_price': '150.00'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.selling_price, Decimal('150.00'))

    def test_change_status(self):
        product = TestDataFactory.create_product()
        response = self.client.patch(f'/api/products/{product.id}/status/', {'status': 'DISCONTINUED'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'DISCONTINUED')

    def test_delete_stocked_product_conflicts(self):
        """Test that a product referenced by stock cannot be deleted"""
        record = TestDataFactory.create_inventory()
        response = self.client.delete(f'/api/products/{record.product_id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Product.objects.filter(pk=record.product_id).exists())

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_products_forbidden_for_delivery_team(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=User.DELIVERY_TEAM))
        response = self.client.get('/api/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PublicProductTests(TestCase):
    """Test the anonymous storefront listing"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        TestDataFactory.create_product(name='Baguette', category='BREAD')
        TestDataFactory.create_product(name='Eclair', category='PASTRY')
        TestDataFactory.create_product(name='Old Muffin', category='PASTRY', status='DISCONTINUED')

    def test_lists_active_products_only(self):
        response = self.client.get('/api/public/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [product['name'] for product in response.data['products']]
        self.assertEqual(names, ['Baguette', 'Eclair'])
        self.assertNotIn('cost_price', response.data['products'][0])

    def test_category_and_limit(self):
        response = self.client.get('/api/public/products/?category=pastry')
        self.assertEqual([p['name'] for p in response.data['products']], ['Eclair'])

        response = self.client.get('/api/public/products/?limit=1')
        self.assertEqual(len(response.data['products']), 1)

    def test_invalid_limit(self):
        response = self.client.get('/api/public/products/?limit=many')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
