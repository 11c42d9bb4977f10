"""
Management command to load a small demo bakery: staff accounts, a warehouse,
products, customers and opening stock.
Usage: python manage.py seed_demo_data [--password secret]
"""
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from bakery.catalog.models import Product
from bakery.core.cache_signals import suspend_cache_signals
from bakery.core.models import User
from bakery.inventory import services as inventory_services
from bakery.inventory.models import InventoryRecord
from bakery.locations.models import Warehouse
from bakery.parties.models import Customer

STAFF = [
    ('admin@bakery.local', 'admin', User.ADMIN),
    ('manager@bakery.local', 'manager', User.STORE_MANAGER),
]

# sku, name, category, unit, selling, cost, min stock, opening qty, shelf life (days)
PRODUCTS = [
    ('BRD-SOUR', 'Sourdough Loaf', 'BREAD', 'PIECE', '120.00', '45.00', 20, 60, 3),
    ('BRD-BAG', 'Baguette', 'BREAD', 'PIECE', '80.00', '25.00', 30, 80, 2),
    ('PST-CROI', 'Butter Croissant', 'PASTRY', 'PIECE', '60.00', '22.00', 40, 120, 2),
    ('CAK-CHOC', 'Chocolate Cake', 'CAKE', 'PIECE', '650.00', '260.00', 5, 12, 4),
    ('COK-OAT', 'Oat Cookie Pack', 'COOKIE', 'PACK', '150.00', '55.00', 15, 40, 30),
    ('BEV-LATTE', 'Cafe Latte', 'BEVERAGE', 'PIECE', '140.00', '35.00', 0, 0, None),
    ('ING-FLOUR', 'Wheat Flour', 'OTHER', 'KG', '0.00', '48.00', 50, 200, 180),
    ('ING-BUTTER', 'Butter', 'OTHER', 'KG', '0.00', '520.00', 10, 25, 30),
]

CUSTOMERS = [
    {'first_name': 'Asha', 'last_name': 'Kulkarni', 'email': 'asha@example.com', 'phone': '9820011223',
     'city': 'Pune', 'zip_code': '411001'},
    {'first_name': 'Rohan', 'last_name': 'Mehta', 'email': 'rohan@example.com', 'phone': '9820044556',
     'city': 'Pune', 'zip_code': '411004'},
    {'first_name': 'Cafe', 'last_name': 'Corner', 'email': 'orders@cafecorner.example.com', 'phone': '9820077889',
     'city': 'Mumbai', 'zip_code': '400001', 'customer_type': Customer.B2B,
     'company_name': 'Cafe Corner Pvt Ltd'},
]


class Command(BaseCommand):
    help = 'Create demo users, a warehouse, products, customers and opening stock'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='bakery123', help='Password for the demo staff accounts')

    def handle(self, *args, **options):
        with suspend_cache_signals(), transaction.atomic():
            admin = self._seed_staff(options['password'])
            warehouse, _ = Warehouse.objects.get_or_create(
                name='Main Bakery',
                defaults={'address': '12 Baker Street', 'city': 'Pune', 'zip_code': '411001'},
            )
            products = self._seed_products()
            customers = [
                Customer.objects.get_or_create(email=data['email'], defaults=data)[0]
                for data in CUSTOMERS
            ]
            stocked = self._seed_stock(admin, warehouse, products)

        self.stdout.write(self.style.SUCCESS(
            f'Seeded {len(products)} product(s), {len(customers)} customer(s), '
            f'{stocked} new stock record(s) in {warehouse.name}'
        ))

    def _seed_staff(self, password):
        users = []
        for email, username, role in STAFF:
            user = User.objects.filter(email=email).first()
            if user is None:
                user = User.objects.create_user(username=username, email=email, password=password, role=role,
                                                is_staff=role == User.ADMIN, is_superuser=role == User.ADMIN)
                self.stdout.write(f'  Created {role} {email}')
            users.append(user)
        return users[0]

    def _seed_products(self):
        products = []
        for sku, name, category, unit, selling, cost, min_stock, _, shelf_life in PRODUCTS:
            product, _ = Product.objects.get_or_create(sku=sku, defaults={
                'name': name,
                'category': category,
                'unit_type': unit,
                'base_price': Decimal(selling),
                'selling_price': Decimal(selling),
                'cost_price': Decimal(cost),
                'min_stock_level': min_stock,
                'shelf_life': shelf_life,
            })
            products.append(product)
        return products

    def _seed_stock(self, user, warehouse, products):
        today = timezone.localdate()
        created = 0
        for product, row in zip(products, PRODUCTS):
            quantity, shelf_life = row[7], row[8]
            if not quantity or InventoryRecord.objects.filter(product=product, warehouse=warehouse).exists():
                continue
            inventory_services.create_inventory_record(
                user, product, warehouse, quantity=quantity,
                expiry_date=today + timedelta(days=shelf_life) if shelf_life else None,
            )
            created += 1
        return created
