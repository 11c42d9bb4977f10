"""
Test suite for the production module
Tests: recipes, batch planning, status workflow, schedule, ingredient alerts, efficiency
"""
from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from bakery.core.models import User
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.production import services
from bakery.production.models import Production, RecipeItem


class RecipeAPITests(TestCase):
    """Test recipe endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.flour = TestDataFactory.create_product(name='Flour', category='OTHER')
        self.yeast = TestDataFactory.create_product(name='Yeast', category='OTHER')

    def test_create_recipe_with_items(self):
        response = self.client.post('/api/recipes/', {
            'name': 'Country Loaf',
            'servings': 10,
            'items': [
                {'product': self.flour.id, 'quantity': '5.000', 'unit': 'kg'},
                {'product': self.yeast.id, 'quantity': '0.050', 'unit': 'kg'},
            ],
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['items'][0]['product_name'], 'Flour')

    def test_replace_items_on_update(self):
        recipe = TestDataFactory.create_recipe(ingredients=[(self.flour, Decimal('1'))])
        response = self.client.patch(f'/api/recipes/{recipe.id}/', {
            'items': [{'product': self.yeast.id, 'quantity': '0.100', 'unit': 'kg'}],
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(recipe.items.values_list('product_id', flat=True)), [self.yeast.id])

    def test_patch_without_items_keeps_them(self):
        recipe = TestDataFactory.create_recipe(ingredients=[(self.flour, Decimal('1'))])
        self.client.patch(f'/api/recipes/{recipe.id}/', {'description': 'Overnight proof'})
        self.assertEqual(RecipeItem.objects.filter(recipe=recipe).count(), 1)

    def test_delete_recipe_admin_only(self):
        recipe = TestDataFactory.create_recipe()
        response = self.client.delete(f'/api/recipes/{recipe.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ProductionPlanningTests(TestCase):
    """Test batch planning and ingredient expansion"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role=User.STORE_MANAGER)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.flour = TestDataFactory.create_product(name='Flour', category='OTHER')
        self.butter = TestDataFactory.create_product(name='Butter', category='OTHER')
        self.recipe = TestDataFactory.create_recipe(
            name='Croissant',
            ingredients=[(self.flour, Decimal('2.5')), (self.butter, Decimal('0.3'))],
            servings=10,
        )

    def test_ingredients_scaled_from_servings(self):
        response = self.client.post('/api/productions/', {
            'recipe': self.recipe.id,
            'planned_qty': 25,
            'planned_date': timezone.now().isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], Production.PLANNED)
        self.assertTrue(response.data['batch_number'].startswith('BATCH'))
        required = {item['product']: item['planned_qty'] for item in response.data['items']}
        # 2.5 * 25 / 10 = 6.25 and 0.3 * 25 / 10 = 0.75, rounded up
        self.assertEqual(required, {self.flour.id: 7, self.butter.id: 1})

    def test_explicit_items_override_recipe(self):
        response = self.client.post('/api/productions/', {
            'recipe': self.recipe.id,
            'planned_qty': 10,
            'planned_date': timezone.now().isoformat(),
            'items': [{'product': self.flour.id, 'planned_qty': 3}],
        })
        self.assertEqual([(i['product'], i['planned_qty']) for i in response.data['items']], [(self.flour.id, 3)])

    def test_inactive_recipe_rejected(self):
        self.recipe.is_active = False
        self.recipe.save()
        response = self.client.post('/api/productions/', {
            'recipe': self.recipe.id, 'planned_qty': 10, 'planned_date': timezone.now().isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_zero_quantity_rejected(self):
        response = self.client.post('/api/productions/', {
            'recipe': self.recipe.id, 'planned_qty': 0, 'planned_date': timezone.now().isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_recipe_in_use_cannot_be_deleted(self):
        TestDataFactory.create_production(self.user, recipe=self.recipe)
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/recipes/{self.recipe.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)


class ProductionStatusTests(TestCase):
    """Test the batch workflow"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.production = TestDataFactory.create_production(self.user, planned_qty=100)

    def move(self, new_status, **extra):
        payload = {'status': new_status}
        payload.update(extra)
        return self.client.patch(f'/api/productions/{self.production.id}/status/', payload)

    def test_start_and_complete(self):
        response = self.move(Production.IN_PROGRESS)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['start_date'])

        response = self.move(Production.COMPLETED, actual_qty=95)
        self.assertEqual(response.data['status'], Production.COMPLETED)
        self.assertIsNotNone(response.data['end_date'])
        self.assertEqual(response.data['efficiency'], 95)

    def test_planned_cannot_complete(self):
        response = self.move(Production.COMPLETED)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_hold_and_resume(self):
        self.move(Production.ON_HOLD)
        response = self.move(Production.PLANNED)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_terminal_states(self):
        self.move(Production.CANCELLED)
        response = self.move(Production.IN_PROGRESS)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_start_date_kept_on_resume(self):
        self.move(Production.IN_PROGRESS)
        started = Production.objects.get(pk=self.production.pk).start_date
        self.move(Production.ON_HOLD)
        self.move(Production.IN_PROGRESS)
        self.assertEqual(Production.objects.get(pk=self.production.pk).start_date, started)


class ProductionReportTests(TestCase):
    """Test schedule, alerts and efficiency"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.flour = TestDataFactory.create_product(name='Flour', category='OTHER')
        self.recipe = TestDataFactory.create_recipe(name='Baguette', ingredients=[(self.flour, Decimal('1'))],
                                                    servings=1)

    def test_schedule_covers_seven_days(self):
        TestDataFactory.create_production(self.user, recipe=self.recipe, planned_qty=40)
        TestDataFactory.create_production(self.user, recipe=self.recipe, planned_qty=5,
                                          planned_date=timezone.now() + timedelta(days=2))
        TestDataFactory.create_production(self.user, recipe=self.recipe, planned_qty=5,
                                          planned_date=timezone.now() + timedelta(days=30))

        response = self.client.get('/api/productions/schedule/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        days = response.data['days']
        self.assertEqual(len(days), 7)
        self.assertEqual(days[0]['date'], timezone.localdate().isoformat())
        self.assertEqual(days[0]['total_planned_qty'], 40)
        self.assertEqual(sum(day['count'] for day in days), 2)

    def test_ingredient_alerts(self):
        warehouse = TestDataFactory.create_warehouse()
        TestDataFactory.create_inventory(product=self.flour, warehouse=warehouse, quantity=30, reserved_qty=5)
        first = TestDataFactory.create_production(self.user, recipe=self.recipe, planned_qty=20)
        TestDataFactory.create_production(self.user, recipe=self.recipe, planned_qty=15)

        response = self.client.get('/api/productions/alerts/')
        self.assertEqual(response.data['count'], 1)
        alert = response.data['results'][0]
        self.assertEqual(alert['required'], 35)
        self.assertEqual(alert['available'], 25)
        self.assertEqual(alert['shortage'], 10)
        self.assertIn(first.batch_number, alert['batches'])

    def test_no_alerts_when_stock_covers(self):
        TestDataFactory.create_inventory(product=self.flour, quantity=500)
        TestDataFactory.create_production(self.user, recipe=self.recipe, planned_qty=20)
        response = self.client.get('/api/productions/alerts/')
        self.assertEqual(response.data['count'], 0)

    def test_efficiency(self):
        for planned, actual in ((100, 90), (50, 50)):
            production = TestDataFactory.create_production(self.user, recipe=self.recipe, planned_qty=planned)
            services.change_production_status(production.id, Production.IN_PROGRESS)
            services.change_production_status(production.id, Production.COMPLETED, actual_qty=actual)

        response = self.client.get('/api/productions/efficiency/?days=7')
        self.assertEqual(response.data['completed_batches'], 2)
        self.assertEqual(response.data['total_planned'], 150)
        self.assertEqual(response.data['total_actual'], 140)
        self.assertEqual(response.data['overall_efficiency'], 93)
        self.assertEqual(response.data['average_batch_efficiency'], 95)
        self.assertEqual(response.data['by_recipe'][0]['recipe_name'], 'Baguette')

    def test_efficiency_invalid_days(self):
        response = self.client.get('/api/productions/efficiency/?days=0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class EfficiencyRoundingTests(TestCase):
    """Test that efficiency percentages round halves up"""

    def test_half_percent_rounds_up(self):
        self.assertEqual(Production(planned_qty=8, actual_qty=1).efficiency, 13)
        self.assertEqual(Production(planned_qty=8, actual_qty=5).efficiency, 63)
        self.assertEqual(Production(planned_qty=8, actual_qty=3).efficiency, 38)

    def test_missing_actual_is_zero(self):
        self.assertEqual(Production(planned_qty=8).efficiency, 0)

    def test_report_rounds_half_up(self):
        user = TestDataFactory.create_user()
        production = TestDataFactory.create_production(user, planned_qty=8)
        services.change_production_status(production.id, Production.IN_PROGRESS)
        services.change_production_status(production.id, Production.COMPLETED, actual_qty=1)

        report = services.efficiency_report(days=7)
        self.assertEqual(report['overall_efficiency'], 13)
        self.assertEqual(report['average_batch_efficiency'], 13)
        self.assertEqual(report['by_recipe'][0]['efficiency'], 13)
