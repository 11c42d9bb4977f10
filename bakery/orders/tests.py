"""
Test suite for the orders module
Tests: order totals, items, status changes, summaries, deliveries
"""
from datetime import datetime, time, timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from bakery.core.models import AuditLog, User
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.orders import services
from bakery.orders.models import Order, Delivery


class OrderTotalsTests(TestCase):
    """Test server-side computation of order totals"""

    def test_calculate_totals(self):
        subtotal, tax, total = services.calculate_totals([(3, Decimal('100.00')), (1, Decimal('50.00'))], 18)
        self.assertEqual(subtotal, Decimal('350.00'))
        self.assertEqual(tax, Decimal('63.00'))
        self.assertEqual(total, Decimal('413.00'))

    def test_tax_rounds_half_up(self):
        _, tax, total = services.calculate_totals([(1, Decimal('0.25'))], Decimal('18'))
        self.assertEqual(tax, Decimal('0.05'))
        self.assertEqual(total, Decimal('0.30'))

    def test_empty_lines(self):
        self.assertEqual(services.calculate_totals([], 18), (Decimal('0.00'), Decimal('0.00'), Decimal('0.00')))


class OrderAPITests(TestCase):
    """Test order endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role=User.STORE_MANAGER)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)
        self.customer = TestDataFactory.create_customer(first_name='Nisha')
        self.bread = TestDataFactory.create_product(name='Bread', selling_price=Decimal('100.00'))
        self.cake = TestDataFactory.create_product(name='Cake', selling_price=Decimal('50.00'))

    def create_order(self, **extra):
        payload = {
            'customer': self.customer.id,
            'items': [
                {'product': self.bread.id, 'quantity': 3},
                {'product': self.cake.id, 'quantity': 1},
            ],
        }
        payload.update(extra)
        return self.client.post('/api/orders/', payload)

    def test_create_order_computes_totals(self):
        """Test that 3 x 100 + 1 x 50 at 18% totals 413.00"""
        response = self.create_order(subtotal='1.00', total_amount='1.00')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['subtotal'], '350.00')
        self.assertEqual(response.data['tax_amount'], '63.00')
        self.assertEqual(response.data['total_amount'], '413.00')
        self.assertEqual(len(response.data['items']), 2)
        self.assertTrue(response.data['order_number'].startswith('ORD'))
        self.assertEqual(response.data['created_by_email'], self.manager.email)

    def test_create_order_custom_tax_rate(self):
        response = self.create_order(tax_rate='5.00')
        self.assertEqual(response.data['tax_amount'], '17.50')
        self.assertEqual(response.data['total_amount'], '367.50')

    def test_create_order_unit_price_override(self):
        response = self.client.post('/api/orders/', {
            'customer': self.customer.id,
            'items': [{'product': self.bread.id, 'quantity': 2, 'unit_price': '80.00'}],
        })
        self.assertEqual(response.data['subtotal'], '160.00')

    def test_create_order_without_items(self):
        response = self.create_order(items=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Order.objects.count(), 0)

    def test_create_order_zero_quantity(self):
        response = self.create_order(items=[{'product': self.bread.id, 'quantity': 0}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_order_inactive_customer(self):
        self.customer.is_active = False
        self.customer.save()
        response = self.create_order()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_order_numbers_are_unique(self):
        first = self.create_order().data['order_number']
        second = self.create_order().data['order_number']
        self.assertNotEqual(first, second)

    def test_replace_items_recomputes(self):
        order_id = self.create_order().data['id']
        response = self.client.patch(f'/api/orders/{order_id}/', {
            'items': [{'product': self.cake.id, 'quantity': 4}],
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal'], '200.00')
        self.assertEqual(response.data['total_amount'], '236.00')
        self.assertEqual(len(response.data['items']), 1)

    def test_add_update_and_remove_item(self):
        order_id = self.create_order().data['id']

        response = self.client.post(f'/api/orders/{order_id}/items/', {'product': self.cake.id, 'quantity': 2})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order']['subtotal'], '450.00')
        item_id = response.data['item']['id']

        response = self.client.patch(f'/api/orders/{order_id}/items/{item_id}/', {'quantity': 4})
        self.assertEqual(response.data['item']['total_price'], '200.00')
        self.assertEqual(response.data['order']['subtotal'], '550.00')

        response = self.client.delete(f'/api/orders/{order_id}/items/{item_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal'], '350.00')

    def test_missing_item(self):
        order_id = self.create_order().data['id']
        response = self.client.patch(f'/api/orders/{order_id}/items/9999/', {'quantity': 1})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_change_status(self):
        order_id = self.create_order().data['id']
        response = self.client.patch(f'/api/orders/{order_id}/status/', {
            'status': Order.CONFIRMED, 'payment_status': Order.PAYMENT_PAID,
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.CONFIRMED)
        self.assertEqual(response.data['payment_status'], Order.PAYMENT_PAID)
        self.assertTrue(AuditLog.objects.filter(model_name='Order', action='status_change').exists())

    def test_change_status_requires_a_field(self):
        order_id = self.create_order().data['id']
        response = self.client.patch(f'/api/orders/{order_id}/status/', {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel(self):
        order_id = self.create_order().data['id']
        response = self.client.post(f'/api/orders/{order_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.CANCELLED)
        self.assertEqual(response.data['payment_status'], Order.PAYMENT_REFUNDED)

        response = self.client.post(f'/api/orders/{order_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel_delivered_order(self):
        order_id = self.create_order(status=Order.DELIVERED).data['id']
        response = self.client.post(f'/api/orders/{order_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filters(self):
        self.create_order()
        other = TestDataFactory.create_customer(first_name='Arjun')
        TestDataFactory.create_order(self.manager, customer=other)
        response = self.client.get('/api/orders/?search=arjun')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get(f'/api/orders/?customer={self.customer.id}&date_range=today')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/orders/?date_range=last_decade')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_summary(self):
        self.create_order()
        cancelled = self.create_order().data['id']
        self.client.post(f'/api/orders/{cancelled}/cancel/')
        response = self.client.get('/api/orders/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 2)
        self.assertEqual(response.data['total_revenue'], Decimal('413.00'))
        self.assertEqual(response.data['average_order_value'], Decimal('413.00'))
        self.assertEqual(response.data['by_status'][Order.CANCELLED]['count'], 1)

    def test_delete_is_admin_only(self):
        order_id = self.create_order().data['id']
        response = self.client.delete(f'/api/orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_repeated_get_is_identical(self):
        order_id = self.create_order().data['id']
        first = self.client.get(f'/api/orders/{order_id}/')
        second = self.client.get(f'/api/orders/{order_id}/')
        self.assertEqual(first.json(), second.json())


class DeliveryAPITests(TestCase):
    """Test delivery scheduling, assignment and routing"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role=User.STORE_MANAGER)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)
        self.customer = TestDataFactory.create_customer(address='5 Oven Lane', city='Pune', zip_code='411002')
        self.order = TestDataFactory.create_order(self.manager, customer=self.customer)
        self.today = timezone.localdate()

    def at(self, hour, day=None):
        return timezone.make_aware(datetime.combine(day or self.today, time(hour)))

    def schedule(self, **extra):
        payload = {'order': self.order.id, 'scheduled_date': self.at(10).isoformat()}
        payload.update(extra)
        return self.client.post('/api/deliveries/', payload)

    def test_schedule_uses_customer_address(self):
        response = self.schedule()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['delivery_address'], '5 Oven Lane')
        self.assertEqual(response.data['zip_code'], '411002')
        self.assertEqual(response.data['customer'], self.customer.id)
        self.assertEqual(response.data['status'], Delivery.SCHEDULED)

    def test_schedule_for_cancelled_order(self):
        services.cancel_order(self.order.id)
        response = self.schedule()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_driver_moves_in_transit(self):
        delivery_id = self.schedule().data['id']
        response = self.client.post(f'/api/deliveries/{delivery_id}/assign/', {
            'driver_name': 'Sam', 'vehicle_number': 'MH12 AB 1234',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Delivery.IN_TRANSIT)
        self.assertEqual(response.data['driver_name'], 'Sam')

    def test_delivered_sets_actual_date(self):
        delivery_id = self.schedule().data['id']
        response = self.client.patch(f'/api/deliveries/{delivery_id}/status/', {'status': Delivery.DELIVERED})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['actual_date'])

        response = self.client.post(f'/api/deliveries/{delivery_id}/assign/', {'driver_name': 'Late'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_does_not_touch_order(self):
        delivery_id = self.schedule().data['id']
        self.client.patch(f'/api/deliveries/{delivery_id}/status/', {'status': Delivery.DELIVERED})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.PENDING)

    def test_routes_group_by_area(self):
        self.schedule(scheduled_date=self.at(11).isoformat())
        self.schedule(scheduled_date=self.at(9).isoformat())
        self.schedule(zip_code='400001', delivery_address='1 Sea Road')
        self.schedule(scheduled_date=self.at(9, self.today + timedelta(days=1)).isoformat())

        response = self.client.get(f'/api/deliveries/routes/?date={self.today.isoformat()}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        routes = {route['area']: route for route in response.data['routes']}
        self.assertEqual(routes['411002']['delivery_count'], 2)
        times = [d['scheduled_date'] for d in routes['411002']['deliveries']]
        self.assertEqual(times, sorted(times))
        self.assertEqual(routes['400001']['delivery_count'], 1)

    def test_routes_invalid_date(self):
        response = self.client.get('/api/deliveries/routes/?date=tomorrow')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_summary_success_rate(self):
        first = self.schedule().data['id']
        second = self.schedule().data['id']
        self.client.post(f'/api/deliveries/{first}/assign/', {'driver_name': 'Sam'})
        self.client.patch(f'/api/deliveries/{first}/status/', {'status': Delivery.DELIVERED})
        self.client.patch(f'/api/deliveries/{second}/status/', {'status': Delivery.FAILED})

        response = self.client.get('/api/deliveries/summary/')
        self.assertEqual(response.data['total_deliveries'], 2)
        self.assertEqual(response.data['success_rate'], 50.0)
        self.assertEqual(response.data['by_driver']['Sam'], {'total': 1, 'delivered': 1})

    def test_order_with_deliveries_cannot_be_deleted(self):
        self.schedule()
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
