"""Customer registration and address bookkeeping"""
import logging

from django.db import transaction
from django.db.models import Q

from bakery.core.exceptions import Conflict
from .models import Customer, CustomerAddress

logger = logging.getLogger(__name__)


@transaction.atomic
def register_customer(data):
    """
    Create a customer from the storefront registration form together with a
    default shipping address and, when it differs, a billing address.
    """
    if Customer.objects.filter(Q(email__iexact=data['email']) | Q(phone=data['phone'])).exists():
        raise Conflict('Customer with this email or phone number already exists')

    first_name, _, last_name = data['name'].strip().partition(' ')
    customer = Customer.objects.create(
        first_name=first_name,
        last_name=last_name.strip(),
        email=data['email'],
        phone=data['phone'],
        customer_type=data['customer_type'],
        address=data['address'],
        city=data['city'],
        zip_code=data['pincode'],
    )
    CustomerAddress.objects.create(
        customer=customer,
        address_type=CustomerAddress.SHIPPING,
        address=data['address'],
        city=data['city'],
        zip_code=data['pincode'],
        is_default=True,
    )

    billing = (data.get('billing_address'), data.get('billing_city'), data.get('billing_pincode'))
    if not data.get('same_as_shipping', True) and all(billing):
        CustomerAddress.objects.create(
            customer=customer,
            address_type=CustomerAddress.BILLING,
            address=billing[0],
            city=billing[1],
            zip_code=billing[2],
            is_default=True,
        )

    logger.info(f"Customer {customer.email} registered ({customer.customer_type})")
    return customer


@transaction.atomic
def save_address(serializer, customer):
    """Save an address; a default address demotes the customer's other defaults of the same type"""
    address = serializer.save(customer=customer)
    if address.is_default:
        (CustomerAddress.objects
         .filter(customer=customer, address_type=address.address_type, is_default=True)
         .exclude(pk=address.pk)
         .update(is_default=False))
    return address
