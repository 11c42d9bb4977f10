"""
Test suite for the notifications module
Tests: templates, queueing, bulk creation, status changes, summaries, processing
"""
from io import StringIO
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from bakery.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bakery.notifications import services
from bakery.notifications.models import Notification
from bakery.notifications.templates import render_template, render_text, template_variables


class FailingSender:
    def send(self, notification):
        raise RuntimeError('gateway down')


class TemplateRenderingTests(TestCase):

    def test_render_known_variables(self):
        rendered = render_template('order_confirmation', {
            'customer_name': 'Asha', 'order_number': 'ORD20240101001',
            'total_amount': '413.00', 'delivery_date': '2024-01-02',
        })
        self.assertEqual(rendered['type'], Notification.SMS)
        self.assertIn('Hi Asha, your order ORD20240101001 has been confirmed.', rendered['message'])
        self.assertNotIn('{', rendered['message'])

    def test_missing_variables_left_in_place(self):
        text = render_text('Hi {customer_name}, code {promo_code}', {'customer_name': 'Ravi', 'promo_code': ''})
        self.assertEqual(text, 'Hi Ravi, code {promo_code}')

    def test_template_variables_in_order(self):
        self.assertEqual(template_variables('{a} {b} {a} {c}'), ['a', 'b', 'c'])

    def test_unknown_template(self):
        with self.assertRaises(KeyError):
            render_template('birthday_wishes')


class NotificationAPITests(TestCase):
    """Test notification endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_list_templates(self):
        response = self.client.get('/api/notifications/templates/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        templates = {template['id']: template for template in response.data['results']}
        self.assertIn('delivery_failed', templates)
        self.assertEqual(templates['delivery_failed']['variables'], ['customer_name', 'order_number', 'reason'])

    def test_create_raw_notification(self):
        response = self.client.post('/api/notifications/', {
            'type': Notification.EMAIL, 'recipient': 'asha@test.com',
            'subject': 'Hello', 'message': 'Your cake is ready',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], Notification.PENDING)
        self.assertIsNone(response.data['sent_at'])

    def test_create_from_template(self):
        response = self.client.post('/api/notifications/', {
            'template': 'order_confirmation_email',
            'recipient': 'asha@test.com',
            'variables': {'customer_name': 'Asha', 'order_number': 'ORD1'},
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['type'], Notification.EMAIL)
        self.assertEqual(response.data['subject'], 'Order Confirmation - ORD1')
        self.assertEqual(response.data['template'], 'order_confirmation_email')
        self.assertIn('{total_amount}', response.data['message'])

    def test_raw_notification_requires_message(self):
        response = self.client.post('/api/notifications/', {'type': Notification.SMS, 'recipient': '9876543210'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('message', response.data)

    def test_bulk_partial_success(self):
        response = self.client.post('/api/notifications/bulk/', {'notifications': [
            {'type': Notification.SMS, 'recipient': '9876543210', 'message': 'One'},
            {'type': 'PIGEON', 'recipient': 'roof', 'message': 'Two'},
            {'template': 'delivery_out', 'recipient': '9876543211', 'variables': {'customer_name': 'Kiran'}},
        ]})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], 2)
        self.assertEqual(response.data['failed'], 1)
        self.assertEqual([r['index'] for r in response.data['results']], [0, 1, 2])
        self.assertFalse(response.data['results'][1]['success'])
        self.assertEqual(Notification.objects.count(), 2)

    def test_bulk_all_failed(self):
        response = self.client.post('/api/notifications/bulk/', {'notifications': [{'recipient': 'x'}]})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['created'], 0)

    def test_mark_sent_stamps_sent_at(self):
        notification = services.create_notification({'type': Notification.SMS, 'recipient': '1', 'message': 'Hi'})
        response = self.client.patch(f'/api/notifications/{notification.id}/status/', {'status': Notification.SENT})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['sent_at'])

    def test_mark_failed_keeps_error(self):
        notification = services.create_notification({'type': Notification.SMS, 'recipient': '1', 'message': 'Hi'})
        response = self.client.patch(f'/api/notifications/{notification.id}/status/', {
            'status': Notification.FAILED, 'error_message': 'Invalid number',
        })
        self.assertEqual(response.data['error_message'], 'Invalid number')
        self.assertIsNone(response.data['sent_at'])

    def test_summary_and_stats(self):
        for index, final_status in enumerate([Notification.SENT, Notification.SENT, Notification.FAILED, None]):
            notification = services.create_notification({
                'type': Notification.SMS, 'recipient': str(index), 'message': 'Hi',
            })
            if final_status:
                services.set_notification_status(notification.id, final_status)

        response = self.client.get('/api/notifications/summary/')
        self.assertEqual(response.data['total'], 4)
        self.assertEqual(response.data['pending'], 1)
        self.assertEqual(response.data['success_rate'], 66.67)

        response = self.client.get('/api/notifications/stats/?days=3')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['daily']), 3)
        self.assertEqual(response.data['daily'][-1]['total'], 4)
        self.assertEqual(response.data['sent'], 2)

    def test_stats_invalid_days(self):
        response = self.client.get('/api/notifications/stats/?days=0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProcessNotificationsTests(TestCase):
    """Test handing queued notifications to a sender"""

    def setUp(self):
        self.ok = services.create_notification({'type': Notification.SMS, 'recipient': '9876543210', 'message': 'Hi'})
        self.no_recipient = Notification.objects.create(type=Notification.SMS, recipient='', message='Hi')

    def test_command_with_log_sender(self):
        out = StringIO()
        call_command('process_notifications', stdout=out)
        self.ok.refresh_from_db()
        self.no_recipient.refresh_from_db()
        self.assertEqual(self.ok.status, Notification.SENT)
        self.assertEqual(self.no_recipient.status, Notification.FAILED)
        self.assertIn('Sent 1 notification(s)', out.getvalue())

    @override_settings(NOTIFICATION_SENDER='bakery.notifications.tests.FailingSender')
    def test_sender_failure_marks_failed(self):
        with self.assertLogs('bakery.notifications.services', level='WARNING'):
            sent, failed = services.process_pending_notifications()
        self.assertEqual((sent, failed), (0, 2))
        self.ok.refresh_from_db()
        self.assertEqual(self.ok.error_message, 'gateway down')

    def test_limit(self):
        sent, failed = services.process_pending_notifications(limit=1)
        self.assertEqual(sent + failed, 1)
