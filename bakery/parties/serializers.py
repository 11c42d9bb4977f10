import re

from rest_framework import serializers
from .models import Customer, CustomerAddress, Supplier


class CustomerAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomerAddress
        fields = [
            'id', 'customer', 'address_type', 'address', 'city', 'state', 'zip_code', 'country',
            'contact_name', 'contact_phone', 'delivery_instructions', 'is_default',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['customer', 'created_at', 'updated_at']


class CustomerSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    addresses = CustomerAddressSerializer(many=True, read_only=True)

    class Meta:
        model = Customer
        fields = [
            'id', 'first_name', 'last_name', 'full_name', 'email', 'phone', 'address', 'city', 'state',
            'zip_code', 'customer_type', 'company_name', 'company_registration', 'tax_id', 'tax_type',
            'tax_exempt', 'is_active', 'addresses', 'created_at', 'updated_at'
        ]
        read_only_fields = ['is_active', 'customer_type', 'created_at', 'updated_at']

    def validate_email(self, value):
        return value.lower()


class CustomerCreateSerializer(CustomerSerializer):
    """Staff-side creation: the customer type may be chosen up front"""
    class Meta(CustomerSerializer.Meta):
        read_only_fields = ['is_active', 'created_at', 'updated_at']

    def validate(self, attrs):
        if attrs.get('customer_type') == Customer.B2B and not attrs.get('company_name'):
            raise serializers.ValidationError({'company_name': 'Company name is required for B2B customers'})
        return attrs


class CustomerStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class CustomerTypeSerializer(serializers.Serializer):
    customer_type = serializers.ChoiceField(choices=Customer.CUSTOMER_TYPE_CHOICES)


class CustomerRegistrationSerializer(serializers.Serializer):
    """Storefront self-registration payload"""
    customer_type = serializers.CharField()
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20)
    address = serializers.CharField()
    city = serializers.CharField(max_length=100)
    pincode = serializers.CharField(max_length=20)
    same_as_shipping = serializers.BooleanField(default=True)
    billing_address = serializers.CharField(required=False, allow_blank=True)
    billing_city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    billing_pincode = serializers.CharField(required=False, allow_blank=True, max_length=20)

    def validate_customer_type(self, value):
        value = value.upper()
        if value == 'B2C':
            return Customer.INDIVIDUAL
        if value not in dict(Customer.CUSTOMER_TYPE_CHOICES):
            raise serializers.ValidationError('Invalid customer type')
        return value

    def validate_phone(self, value):
        if not re.fullmatch(r'[0-9]{10}', re.sub(r'\D', '', value)):
            raise serializers.ValidationError('Invalid phone number format')
        return value

    def validate_email(self, value):
        return value.lower()


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = [
            'id', 'name', 'contact_person', 'email', 'phone', 'address', 'city', 'state', 'zip_code',
            'tax_id', 'payment_terms', 'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']
