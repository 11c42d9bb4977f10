"""
Built-in message templates.

Placeholders are written ``{name}``. Rendering replaces the ones a value is
given for and leaves every other placeholder in the text unchanged.
"""
import re

from .models import Notification

PLACEHOLDER = re.compile(r'\{(\w+)\}')

NOTIFICATION_TEMPLATES = {
    'order_confirmation': {
        'name': 'Order Confirmation',
        'type': Notification.SMS,
        'subject': '',
        'message': ('Hi {customer_name}, your order {order_number} has been confirmed. '
                    'Total: ₹{total_amount}. Delivery scheduled for {delivery_date}. Thank you!'),
    },
    'order_confirmation_email': {
        'name': 'Order Confirmation Email',
        'type': Notification.EMAIL,
        'subject': 'Order Confirmation - {order_number}',
        'message': ('Dear {customer_name},\n\nYour order {order_number} has been confirmed.\n\n'
                    'Order Details:\nTotal Amount: ₹{total_amount}\nDelivery Date: {delivery_date}\n\n'
                    'Thank you for choosing us!\n\nBest regards,\nBakery Team'),
    },
    'delivery_ready': {
        'name': 'Delivery Ready',
        'type': Notification.SMS,
        'subject': '',
        'message': ('Hi {customer_name}, your order {order_number} is ready for delivery. '
                    'Driver: {driver_name}, Vehicle: {vehicle_number}. Expected delivery time: {expected_time}.'),
    },
    'delivery_out': {
        'name': 'Out for Delivery',
        'type': Notification.SMS,
        'subject': '',
        'message': 'Hi {customer_name}, your order {order_number} is out for delivery. Track your order: {tracking_link}.',
    },
    'delivery_delivered': {
        'name': 'Delivery Completed',
        'type': Notification.SMS,
        'subject': '',
        'message': ('Hi {customer_name}, your order {order_number} has been delivered successfully. '
                    'Thank you for your business!'),
    },
    'delivery_failed': {
        'name': 'Delivery Failed',
        'type': Notification.SMS,
        'subject': '',
        'message': ('Hi {customer_name}, we were unable to deliver your order {order_number}. '
                    'Reason: {reason}. Please contact us to reschedule.'),
    },
    'payment_reminder': {
        'name': 'Payment Reminder',
        'type': Notification.SMS,
        'subject': '',
        'message': ('Hi {customer_name}, payment for order {order_number} is pending. Amount: ₹{amount}. '
                    'Please complete payment to confirm your order.'),
    },
    'promotional_offer': {
        'name': 'Promotional Offer',
        'type': Notification.SMS,
        'subject': '',
        'message': ('Hi {customer_name}, special offer just for you! {offer_description}. '
                    'Valid until {valid_until}. Use code: {promo_code}'),
    },
}


def template_variables(text):
    """Placeholder names in ``text`` in order of first appearance"""
    seen = []
    for name in PLACEHOLDER.findall(text or ''):
        if name not in seen:
            seen.append(name)
    return seen


def render_text(text, variables):
    def replace(match):
        value = variables.get(match.group(1))
        if value is None or value == '':
            return match.group(0)
        return str(value)
    return PLACEHOLDER.sub(replace, text or '')


def render_template(template_id, variables=None):
    """
    Render a built-in template. Returns a dict with ``type``, ``subject`` and
    ``message``; raises ``KeyError`` for an unknown template id.
    """
    template = NOTIFICATION_TEMPLATES[template_id]
    variables = variables or {}
    return {
        'type': template['type'],
        'subject': render_text(template['subject'], variables),
        'message': render_text(template['message'], variables),
    }


def list_templates():
    return [
        {
            'id': template_id,
            'name': template['name'],
            'type': template['type'],
            'subject': template['subject'],
            'message': template['message'],
            'variables': template_variables(template['subject'] + ' ' + template['message']),
        }
        for template_id, template in NOTIFICATION_TEMPLATES.items()
    ]
