"""
Test suite for the parties module
Tests: storefront registration, customers, addresses, suppliers
"""
from django.test import TestCase
from rest_framework import status
from bakery.core.models import AuditLog, User
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.parties.models import Customer, CustomerAddress


class RegistrationTests(TestCase):
    """Test anonymous customer self-registration"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.payload = {
            'customer_type': 'b2c',
            'name': 'Asha Rao',
            'email': 'Asha@Example.com',
            'phone': '9876543210',
            'address': '12 Baker Street',
            'city': 'Pune',
            'pincode': '411001',
        }

    def test_register_creates_customer_and_default_address(self):
        response = self.client.post('/api/auth/register/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer']['customer_type'], Customer.INDIVIDUAL)
        self.assertEqual(response.data['customer']['last_name'], 'Rao')

        customer = Customer.objects.get(email='asha@example.com')
        address = customer.addresses.get()
        self.assertEqual(address.address_type, CustomerAddress.SHIPPING)
        self.assertTrue(address.is_default)

    def test_register_with_separate_billing_address(self):
        self.payload.update({
            'same_as_shipping': False,
            'billing_address': '7 Ledger Lane',
            'billing_city': 'Mumbai',
            'billing_pincode': '400001',
        })
        response = self.client.post('/api/auth/register/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        customer = Customer.objects.get(pk=response.data['customer']['id'])
        self.assertEqual(customer.addresses.count(), 2)
        self.assertTrue(customer.addresses.filter(address_type=CustomerAddress.BILLING, city='Mumbai').exists())

    def test_duplicate_registration_conflicts(self):
        self.client.post('/api/auth/register/', self.payload)
        self.payload['email'] = 'other@example.com'
        response = self.client.post('/api/auth/register/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Customer.objects.count(), 1)

    def test_invalid_phone(self):
        self.payload['phone'] = '12345'
        response = self.client.post('/api/auth/register/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    def test_invalid_customer_type(self):
        self.payload['customer_type'] = 'wholesale'
        response = self.client.post('/api/auth/register/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CustomerAPITests(TestCase):
    """Test staff-side customer endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role=User.STORE_MANAGER)
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_customer(self):
        response = self.client.post('/api/customers/', {
            'first_name': 'Ravi', 'last_name': 'Kumar', 'email': 'RAVI@test.com', 'phone': '9123456780',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['email'], 'ravi@test.com')
        self.assertEqual(response.data['full_name'], 'Ravi Kumar')
        self.assertTrue(AuditLog.objects.filter(model_name='Customer', action='create').exists())

    def test_b2b_customer_requires_company(self):
        response = self.client.post('/api/customers/', {
            'first_name': 'Cafe', 'email': 'cafe@test.com', 'customer_type': Customer.B2B,
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('company_name', response.data)

    def test_list_and_search(self):
        TestDataFactory.create_customer(first_name='Meera')
        TestDataFactory.create_customer(first_name='Kiran')
        response = self.client.get('/api/customers/?search=meera')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['first_name'], 'Meera')

    def test_repeated_get_is_identical(self):
        """Test that reading twice without writes yields identical output"""
        TestDataFactory.create_customer()
        first = self.client.get('/api/customers/')
        second = self.client.get('/api/customers/')
        self.assertEqual(first.json(), second.json())

    def test_status_change_is_admin_only(self):
        customer = TestDataFactory.create_customer()
        response = self.client.patch(f'/api/customers/{customer.id}/status/', {'is_active': False})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/customers/{customer.id}/status/', {'is_active': False})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        customer.refresh_from_db()
        self.assertFalse(customer.is_active)

    def test_change_type(self):
        customer = TestDataFactory.create_customer()
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/customers/{customer.id}/type/', {'customer_type': Customer.COMMUNITY})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['customer_type'], Customer.COMMUNITY)

    def test_type_not_writable_through_update(self):
        customer = TestDataFactory.create_customer()
        self.client.patch(f'/api/customers/{customer.id}/', {'customer_type': Customer.B2B})
        customer.refresh_from_db()
        self.assertEqual(customer.customer_type, Customer.INDIVIDUAL)

    def test_delete_customer_with_orders_conflicts(self):
        order = TestDataFactory.create_order(self.manager)
        response = self.client.delete(f'/api/customers/{order.customer_id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_unauthenticated(self):
        self.client.logout()
        response = self.client.get('/api/customers/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CustomerAddressTests(TestCase):
    """Test address bookkeeping"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.customer = TestDataFactory.create_customer()

    def _add(self, **overrides):
        payload = {'address_type': CustomerAddress.SHIPPING, 'address': '1 Main Road', 'city': 'Pune',
                   'zip_code': '411001', 'is_default': True}
        payload.update(overrides)
        return self.client.post(f'/api/customers/{self.customer.id}/addresses/', payload)

    def test_new_default_demotes_previous(self):
        first = self._add()
        second = self._add(address='2 Side Road')
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        defaults = self.customer.addresses.filter(address_type=CustomerAddress.SHIPPING, is_default=True)
        self.assertEqual(list(defaults.values_list('id', flat=True)), [second.data['id']])
        self.assertNotEqual(first.data['id'], second.data['id'])

    def test_defaults_are_per_type(self):
        self._add()
        self._add(address_type=CustomerAddress.BILLING)
        self.assertEqual(self.customer.addresses.filter(is_default=True).count(), 2)

    def test_address_of_other_customer_not_found(self):
        other = TestDataFactory.create_customer()
        address_id = self._add().data['id']
        response = self.client.get(f'/api/customers/{other.id}/addresses/{address_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_address(self):
        address_id = self._add().data['id']
        response = self.client.delete(f'/api/customers/{self.customer.id}/addresses/{address_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(self.customer.addresses.exists())


class SupplierAPITests(TestCase):
    """Test supplier endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_create_and_list(self):
        response = self.client.post('/api/suppliers/', {'name': 'Golden Mills', 'email': 'sales@golden.test'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        TestDataFactory.create_supplier(name='Dairy Co')
        response = self.client.get('/api/suppliers/?search=golden')
        self.assertEqual(response.data['count'], 1)

    def test_toggle_status(self):
        supplier = TestDataFactory.create_supplier()
        response = self.client.patch(f'/api/suppliers/{supplier.id}/status/')
        self.assertFalse(response.data['is_active'])
        response = self.client.get('/api/suppliers/?is_active=false')
        self.assertEqual(response.data['count'], 1)
