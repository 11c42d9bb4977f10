"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from bakery.core.views import CustomTokenObtainPairSerializer
from bakery.locations.models import Warehouse
from bakery.catalog.models import Product
from bakery.parties.models import Customer, Supplier
from bakery.inventory.models import InventoryRecord
from bakery.orders import services as order_services
from bakery.production.models import Recipe, RecipeItem
from bakery.production import services as production_services
from bakery.purchasing import services as purchasing_services
from bakery.pos.models import POSSession
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(role=User.STORE_MANAGER, email=None, password='testpass123', is_active=True):
        """Create a test user with a role"""
        username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username.lower()}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_active=is_active,
        )

    @staticmethod
    def create_admin(**kwargs):
        return TestDataFactory.create_user(role=User.ADMIN, **kwargs)

    @staticmethod
    def create_warehouse(name=None, **kwargs):
        """Create a test warehouse"""
        if not name:
            name = f'Warehouse_{TestDataFactory.random_string(6)}'
        kwargs.setdefault('city', 'Pune')
        return Warehouse.objects.create(name=name, **kwargs)

    @staticmethod
    def create_product(name=None, sku=None, selling_price=Decimal('100.00'), **kwargs):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        kwargs.setdefault('base_price', selling_price)
        kwargs.setdefault('cost_price', Decimal('40.00'))
        kwargs.setdefault('category', 'BREAD')
        return Product.objects.create(name=name, sku=sku, selling_price=selling_price, **kwargs)

    @staticmethod
    def create_customer(first_name=None, email=None, **kwargs):
        """Create a test customer"""
        if not first_name:
            first_name = f'Customer_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{first_name.lower()}@test.com'
        kwargs.setdefault('phone', f'9{random.randint(100000000, 999999999)}')
        return Customer.objects.create(first_name=first_name, last_name='Test', email=email, **kwargs)

    @staticmethod
    def create_supplier(name=None, **kwargs):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        kwargs.setdefault('email', f'{name.lower()}@test.com')
        return Supplier.objects.create(name=name, **kwargs)

    @staticmethod
    def create_inventory(product=None, warehouse=None, quantity=100, reserved_qty=0, **kwargs):
        """Create an inventory record directly, without movements"""
        return InventoryRecord.objects.create(
            product=product or TestDataFactory.create_product(),
            warehouse=warehouse or TestDataFactory.create_warehouse(),
            quantity=quantity,
            reserved_qty=reserved_qty,
            **kwargs
        )

    @staticmethod
    def create_order(user, customer=None, items=None, tax_rate=None):
        """Create an order through the order service so totals are computed"""
        if items is None:
            items = [{'product': TestDataFactory.create_product(), 'quantity': 2}]
        return order_services.create_order(
            user=user,
            customer=customer or TestDataFactory.create_customer(),
            items=items,
            tax_rate=tax_rate,
        )

    @staticmethod
    def create_recipe(name=None, ingredients=None, servings=10):
        """Create a recipe; ``ingredients`` is a list of (product, quantity) pairs"""
        if not name:
            name = f'Recipe_{TestDataFactory.random_string(6)}'
        recipe = Recipe.objects.create(name=name, servings=servings)
        if ingredients is None:
            ingredients = [(TestDataFactory.create_product(category='OTHER'), Decimal('2.5'))]
        for product, quantity in ingredients:
            RecipeItem.objects.create(recipe=recipe, product=product, quantity=quantity, unit='kg')
        return recipe

    @staticmethod
    def create_production(user, recipe=None, planned_qty=100, planned_date=None):
        return production_services.create_production(
            user=user,
            recipe=recipe or TestDataFactory.create_recipe(),
            planned_qty=planned_qty,
            planned_date=planned_date or timezone.now(),
        )

    @staticmethod
    def create_purchase_order(user, supplier=None, warehouse=None, items=None, **fields):
        """Create a purchase order; one item of 10 @ 25.00 unless ``items`` is given"""
        if items is None:
            items = [{'product': TestDataFactory.create_product(), 'quantity': 10,
                      'unit_price': Decimal('25.00')}]
        return purchasing_services.create_purchase_order(
            user=user,
            supplier=supplier or TestDataFactory.create_supplier(),
            items=items,
            warehouse=warehouse,
            **fields
        )

    @staticmethod
    def create_pos_session(cashier, starting_cash=Decimal('500.00'), is_active=True):
        return POSSession.objects.create(cashier=cashier, starting_cash=starting_cash, is_active=is_active)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        token = CustomTokenObtainPairSerializer.get_token(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {token.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
