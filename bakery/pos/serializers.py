from decimal import Decimal

from rest_framework import serializers
from bakery.catalog.models import Product
from bakery.parties.models import Customer
from .models import POSSession, POSOrder, POSOrderItem, POSPayment, POSReceipt


class POSSessionSerializer(serializers.ModelSerializer):
    cashier_email = serializers.CharField(source='cashier.email', read_only=True)

    class Meta:
        model = POSSession
        fields = [
            'id', 'cashier', 'cashier_email', 'starting_cash', 'ending_cash',
            'total_sales', 'total_transactions', 'is_active', 'start_time', 'end_time', 'notes'
        ]
        read_only_fields = fields


class SessionStartSerializer(serializers.Serializer):
    starting_cash = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class SessionEndSerializer(serializers.Serializer):
    """``session_id`` defaults to the cashier's active session"""
    session_id = serializers.IntegerField(required=False)
    ending_cash = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True)


class POSOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)

    class Meta:
        model = POSOrderItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'quantity', 'unit_price',
                  'discount', 'total_price', 'notes']
        read_only_fields = fields


class POSPaymentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)

    class Meta:
        model = POSPayment
        fields = ['id', 'order', 'order_number', 'method', 'amount', 'reference', 'notes',
                  'status', 'processed_at', 'created_at']
        read_only_fields = ['status', 'processed_at', 'created_at']


class POSReceiptSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)

    class Meta:
        model = POSReceipt
        fields = ['id', 'order', 'order_number', 'receipt_number', 'type', 'content', 'created_at']
        read_only_fields = ['receipt_number', 'content', 'created_at']


class POSOrderSerializer(serializers.ModelSerializer):
    cashier_email = serializers.CharField(source='cashier.email', read_only=True)
    customer_name = serializers.CharField(source='customer.full_name', read_only=True, default=None)
    items = POSOrderItemSerializer(many=True, read_only=True)
    payments = POSPaymentSerializer(many=True, read_only=True)

    class Meta:
        model = POSOrder
        fields = [
            'id', 'order_number', 'cashier', 'cashier_email', 'session', 'customer', 'customer_name',
            'status', 'subtotal', 'discount_amount', 'tax_amount', 'total_amount',
            'paid_amount', 'change_amount', 'notes', 'is_offline', 'synced_at',
            'items', 'payments', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class CartItemSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs.get('unit_price') is None:
            attrs['unit_price'] = attrs['product'].selling_price
        return attrs


class CheckoutPaymentSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=POSPayment.METHOD_CHOICES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    reference = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class CheckoutSerializer(serializers.Serializer):
    """Till sale payload; totals are computed server-side"""
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all(), required=False, allow_null=True)
    items = CartItemSerializer(many=True, allow_empty=False)
    payments = CheckoutPaymentSerializer(many=True, allow_empty=False)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    is_offline = serializers.BooleanField(default=False)


class POSOrderUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=POSOrder.STATUS_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class ReceiptCreateSerializer(serializers.Serializer):
    order = serializers.PrimaryKeyRelatedField(queryset=POSOrder.objects.all())
    type = serializers.ChoiceField(choices=POSReceipt.TYPE_CHOICES, default=POSReceipt.PRINT)


class POSUtilitySerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=[('sync', 'sync'), ('check-duplicates', 'check-duplicates')])
    customer = serializers.IntegerField(required=False, allow_null=True)
    time_window = serializers.IntegerField(min_value=1, max_value=1440, default=5)
